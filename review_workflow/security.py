from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from review_workflow.errors import ApiError


def _split_csv(raw: str) -> list[str]:
    return [x.strip() for x in raw.split(",") if x.strip()]


def _b64url_decode(raw: str) -> bytes:
    padded = raw + "=" * ((4 - len(raw) % 4) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _unauthorized(message: str) -> ApiError:
    return ApiError(
        code="AUTH_UNAUTHORIZED",
        message=message,
        error_class="security_sensitive",
        retryable=False,
        http_status=401,
    )


@dataclass
class AuthContext:
    """Authenticated principal as handed over by the identity provider."""

    employee_id: str
    display_name: str
    claims: dict[str, Any]


@dataclass
class JwtSecurityConfig:
    enabled: bool
    issuer: str
    audience: str
    shared_secret: str
    required_claims: list[str]
    employee_claim: str
    display_name_claim: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "JwtSecurityConfig":
        env = os.environ if environ is None else environ
        issuer = env.get("JWT_ISSUER", "").strip()
        audience = env.get("JWT_AUDIENCE", "").strip()
        shared_secret = env.get("JWT_SHARED_SECRET", "").strip()
        employee_claim = env.get("JWT_EMPLOYEE_CLAIM", "preferred_username").strip() or "preferred_username"
        return cls(
            enabled=bool(issuer or audience or shared_secret),
            issuer=issuer,
            audience=audience,
            shared_secret=shared_secret,
            required_claims=_split_csv(env.get("JWT_REQUIRED_CLAIMS", f"{employee_claim},exp")),
            employee_claim=employee_claim,
            display_name_claim=env.get("JWT_DISPLAY_NAME_CLAIM", "name").strip() or "name",
        )


def _parse_token_parts(token: str) -> tuple[dict[str, Any], dict[str, Any], str, str]:
    parts = token.split(".")
    if len(parts) != 3:
        raise _unauthorized("invalid token format")
    header_raw, payload_raw, signature_raw = parts
    try:
        header_obj = json.loads(_b64url_decode(header_raw))
        payload_obj = json.loads(_b64url_decode(payload_raw))
    except (json.JSONDecodeError, ValueError, TypeError):
        raise _unauthorized("invalid token payload") from None
    if not isinstance(header_obj, dict) or not isinstance(payload_obj, dict):
        raise _unauthorized("invalid token payload")
    return header_obj, payload_obj, f"{header_raw}.{payload_raw}", signature_raw


def _verify_signature(*, signing_input: str, signature_raw: str, secret: str) -> None:
    expected = _b64url_encode(
        hmac.new(
            secret.encode("utf-8"),
            signing_input.encode("ascii"),
            hashlib.sha256,
        ).digest()
    )
    if not hmac.compare_digest(expected, signature_raw):
        raise _unauthorized("invalid token signature")


def _verify_time_window(payload_obj: dict[str, Any]) -> None:
    now_ts = int(datetime.now(UTC).timestamp())
    exp = _as_int(payload_obj.get("exp"))
    if exp is None or exp <= now_ts:
        raise _unauthorized("token expired")
    nbf = _as_int(payload_obj.get("nbf"))
    if nbf is not None and nbf > now_ts:
        raise _unauthorized("token not yet valid")


def _verify_audience(payload_obj: dict[str, Any], audience: str) -> None:
    aud = payload_obj.get("aud")
    if isinstance(aud, list):
        ok = audience in {str(x) for x in aud}
    else:
        ok = str(aud or "") == audience
    if not ok:
        raise _unauthorized("jwt audience mismatch")


def parse_and_validate_bearer_token(*, authorization: str | None, cfg: JwtSecurityConfig) -> AuthContext:
    """Validate an HS256 bearer token and extract the employee principal.

    Only verification happens here; tokens are issued by the external
    identity provider.
    """
    if not authorization:
        raise _unauthorized("missing Authorization bearer token")
    prefix = "Bearer "
    if not authorization.startswith(prefix):
        raise _unauthorized("invalid Authorization header")
    token = authorization[len(prefix) :].strip()
    if not token:
        raise _unauthorized("empty bearer token")
    header_obj, payload_obj, signing_input, signature_raw = _parse_token_parts(token)
    if str(header_obj.get("alg", "")).upper() != "HS256":
        raise _unauthorized("unsupported jwt algorithm")
    if not cfg.shared_secret:
        raise _unauthorized("jwt shared secret not configured")
    _verify_signature(signing_input=signing_input, signature_raw=signature_raw, secret=cfg.shared_secret)
    _verify_time_window(payload_obj)

    if cfg.issuer and str(payload_obj.get("iss", "")) != cfg.issuer:
        raise _unauthorized("jwt issuer mismatch")
    if cfg.audience:
        _verify_audience(payload_obj, cfg.audience)
    for claim in cfg.required_claims:
        if claim not in payload_obj:
            raise _unauthorized(f"missing required claim: {claim}")

    employee_id = str(payload_obj.get(cfg.employee_claim) or "").strip()
    if not employee_id:
        raise _unauthorized("missing employee claim")
    display_name = str(payload_obj.get(cfg.display_name_claim) or "").strip() or employee_id
    return AuthContext(employee_id=employee_id, display_name=display_name, claims=payload_obj)


def principal_from_headers(headers: Mapping[str, str]) -> AuthContext | None:
    """Header-based principal used when JWT validation is not configured (local runs and tests)."""
    employee_id = str(headers.get("x-employee-id") or "").strip()
    if not employee_id:
        return None
    display_name = str(headers.get("x-display-name") or "").strip() or employee_id
    return AuthContext(employee_id=employee_id, display_name=display_name, claims={})
