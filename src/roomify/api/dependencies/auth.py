"""Authentication dependencies.

Identity comes from the external provider's bearer token. A missing or
invalid token means "not signed in"; whether that is an error is decided by
the operation, not here.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.roomify.core.logging import bind_user_context
from src.roomify.core.security import Identity, identity_from_token


async def get_optional_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity | None:
    """Return the signed-in caller, or None."""
    if not authorization or not authorization.startswith("Bearer "):
        return None

    identity = identity_from_token(authorization[7:])
    if identity is not None:
        bind_user_context(identity.user_id)
    return identity


OptionalIdentity = Annotated[Identity | None, Depends(get_optional_identity)]


async def require_identity(identity: OptionalIdentity) -> Identity:
    """Require a signed-in caller."""
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return identity


CurrentIdentity = Annotated[Identity, Depends(require_identity)]
