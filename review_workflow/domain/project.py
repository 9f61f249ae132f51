from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Project:
    """Externally owned project; this core only reads its membership."""

    id: str
    name: str
    member_ids: frozenset[str]

    @classmethod
    def reconstruct(cls, row: dict[str, Any]) -> "Project":
        return cls(
            id=row["project_id"],
            name=row.get("name") or "",
            member_ids=frozenset(str(x) for x in row.get("member_ids") or ()),
        )

    def has_member(self, user_id: str) -> bool:
        return user_id in self.member_ids
