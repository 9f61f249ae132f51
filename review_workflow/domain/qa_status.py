from __future__ import annotations

from dataclasses import dataclass

from review_workflow.errors import DomainValidationError, InvalidStatusTransitionError

QA_STATUS_VALUES: tuple[str, ...] = ("pending", "processing", "completed", "error")

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"processing"}),
    "processing": frozenset({"completed", "error"}),
    "completed": frozenset(),
    # error is terminal for the engine run but may be re-queued explicitly
    "error": frozenset({"pending"}),
}


@dataclass(frozen=True)
class QaStatus:
    """Immutable Q&A processing status.

    Use ``create`` for untrusted input and ``reconstruct`` for rows that were
    validated when they were written. Transitions return a new instance.
    """

    value: str

    @classmethod
    def create(cls, value: str) -> "QaStatus":
        normalized = str(value or "").strip().lower()
        if normalized not in QA_STATUS_VALUES:
            raise DomainValidationError("QA_HISTORY_STATUS_INVALID", f"unknown qa status: {value!r}")
        return cls(normalized)

    @classmethod
    def reconstruct(cls, value: str) -> "QaStatus":
        return cls(value)

    @classmethod
    def pending(cls) -> "QaStatus":
        return cls("pending")

    @classmethod
    def processing(cls) -> "QaStatus":
        return cls("processing")

    @classmethod
    def completed(cls) -> "QaStatus":
        return cls("completed")

    @classmethod
    def error(cls) -> "QaStatus":
        return cls("error")

    def is_pending(self) -> bool:
        return self.value == "pending"

    def is_processing(self) -> bool:
        return self.value == "processing"

    def is_completed(self) -> bool:
        return self.value == "completed"

    def is_error(self) -> bool:
        return self.value == "error"

    def is_active(self) -> bool:
        return self.value in {"pending", "processing"}

    def is_terminal(self) -> bool:
        return self.value in {"completed", "error"}

    def can_transition_to(self, target: "QaStatus") -> bool:
        return target.value in ALLOWED_TRANSITIONS.get(self.value, frozenset())

    def transition_to(self, target: "QaStatus") -> "QaStatus":
        if not self.can_transition_to(target):
            raise InvalidStatusTransitionError(current_status=self.value, target_status=target.value)
        return QaStatus(target.value)

    def __str__(self) -> str:
        return self.value
