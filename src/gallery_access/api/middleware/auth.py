"""Principal authentication for the key management routes.

Login and session handling belong to the upstream gateway, which forwards
the authenticated user id in ``x-auth-user``.  This module only resolves
that id against the principal directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from gallery_access.errors.definitions import ErrUnauthorized

if TYPE_CHECKING:
    from gallery_access.engine.client import GalleryEngine

AUTH_HEADER_USER = "x-auth-user"


@dataclass(frozen=True)
class UserContext:
    """Authenticated user context attached to the request."""

    user_id: str
    username: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


async def authenticate_request(engine: GalleryEngine, *, user_header: str = "") -> UserContext:
    """Resolve the ``x-auth-user`` header to a known user.

    Raises:
        GalleryError: 401 if the header is missing or names no user.
    """
    if not user_header:
        raise ErrUnauthorized

    user = await engine.users.find_by_id(user_header)
    if user is None:
        raise ErrUnauthorized

    return UserContext(user_id=user.id, username=user.username, role=user.role)
