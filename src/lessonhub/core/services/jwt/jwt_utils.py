import base64
import json
from dataclasses import dataclass
from typing import Any, Final

from loguru import logger

from src.lessonhub.core.exceptions import AuthError
from src.lessonhub.runtime.config.config_data import OIDCProviderConfig
from src.lessonhub.runtime.context import get_config

# ---------------- tunables ----------------
MAX_JWT_CHARS: Final = 8192
MAX_SEGMENT_CHARS: Final = 8192
MAX_HEADER_BYTES: Final = 8 * 1024
MAX_PAYLOAD_BYTES: Final = 64 * 1024
_ALLOWED: Final = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_."
)  # no '='


def _reject(reason: str) -> AuthError:
    # Reason goes to the log only; callers always see the generic message
    logger.debug(f"Rejected credential: {reason}")
    return AuthError()


# --------------- one-pass prefilter ---------------
def _prefilter_compact_jwt(token: str) -> tuple[str, str, str]:
    if not token or len(token) > MAX_JWT_CHARS:
        raise _reject("invalid JWT size")
    if any(ch not in _ALLOWED for ch in token):
        raise _reject("invalid JWT characters")
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        raise _reject("invalid JWT format")
    if any(len(part) > MAX_SEGMENT_CHARS for part in parts):
        raise _reject("invalid JWT segment size")
    return parts[0], parts[1], parts[2]


def _b64url_decode_unpadded(seg: str, what: str, max_bytes: int) -> bytes:
    pad = (-len(seg)) % 4
    try:
        raw = base64.urlsafe_b64decode((seg + "=" * pad).encode("ascii"))
    except ValueError as e:
        raise _reject(f"invalid base64url in {what}") from e
    if len(raw) > max_bytes:
        raise _reject(f"{what} too large")
    return raw


def _decode_json_object(raw: bytes, what: str) -> dict[str, Any]:
    try:
        obj = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise _reject(f"non-UTF8 {what}") from e
    except json.JSONDecodeError as e:
        raise _reject(f"invalid JSON in {what}") from e
    if not isinstance(obj, dict):
        raise _reject(f"{what} must be a JSON object")
    return obj


@dataclass(frozen=True)
class JwtPreview:
    """Unverified header and claims, used only to pick a verification path."""

    header: dict[str, Any]
    claims: dict[str, Any]
    alg: str | None
    kid: str | None
    iss: str | None


def preview_jwt(token: str) -> JwtPreview:
    """Split and decode header+payload exactly once."""
    h_seg, p_seg, _ = _prefilter_compact_jwt(token)
    header = _decode_json_object(
        _b64url_decode_unpadded(h_seg, "JWT header", MAX_HEADER_BYTES), "JWT header"
    )
    claims = _decode_json_object(
        _b64url_decode_unpadded(p_seg, "JWT payload", MAX_PAYLOAD_BYTES), "JWT payload"
    )
    iss = claims.get("iss")
    iss = iss.rstrip("/") if isinstance(iss, str) and iss else None

    return JwtPreview(
        header=header,
        claims=claims,
        alg=header.get("alg"),
        kid=header.get("kid"),
        iss=iss,
    )


def lookup_provider_by_issuer(issuer: str) -> OIDCProviderConfig | None:
    """Look up an enabled federated identity provider by issuer URL."""
    for provider in get_config().oidc.providers.values():
        if provider.enabled and provider.issuer.rstrip("/") == issuer.rstrip("/"):
            return provider
    return None
