"""Caller identity for API routes.

Authentication happens upstream; the gateway forwards the user id in a header.
"""

from uuid import UUID

from fastapi import Header, HTTPException


async def get_user_id(x_user_id: UUID | None = Header(default=None)) -> UUID | None:
    """Return the caller's user id or None for anonymous requests."""
    return x_user_id


async def require_user_id(x_user_id: UUID | None = Header(default=None)) -> UUID:
    """Return the caller's user id or raise 401."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Login required")
    return x_user_id
