"""Identity tokens issued by the external authentication provider."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from src.roomify.core.config import get_settings


@dataclass(frozen=True)
class Identity:
    """The signed-in caller.

    `user_id` is the provider's stable account id and is what ownership is
    checked against. `username` is a display name and may be absent.
    """

    user_id: str
    username: str | None = None


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate JWT token. Returns None on any error."""
    settings = get_settings()
    try:
        return jwt.decode(  # type: ignore[no-any-return]
            token,
            settings.auth_secret_key,
            algorithms=[settings.auth_algorithm],
        )
    except JWTError:
        return None


def identity_from_token(token: str) -> Identity | None:
    """Build an Identity from a bearer token, or None if it is not usable."""
    payload = decode_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        return None

    username = payload.get("username") or payload.get("name")
    return Identity(user_id=user_id, username=username if isinstance(username, str) else None)


def create_identity_token(
    user_id: str,
    username: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a token in the provider's format.

    Used by tests and local tooling; production tokens come from the provider.
    """
    settings = get_settings()
    expire = datetime.now(UTC) + (expires_delta or timedelta(hours=1))
    to_encode: dict[str, Any] = {"sub": user_id, "exp": expire}
    if username:
        to_encode["username"] = username
    return jwt.encode(to_encode, settings.auth_secret_key, algorithm=settings.auth_algorithm)
