"""Image access gate — token-protected image routes.

Per request: token present? → parsed and verified? → permission granted?
→ authorized (image attached to ``request.state``) or rejected with the
error raised at the failing step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gallery_access.errors.access_errors import (
    InsufficientPermissionError,
    MissingTokenError,
)

if TYPE_CHECKING:
    from gallery_access.engine.models import Image, User
    from gallery_access.engine.permissions import Permission
    from gallery_access.engine.services.access_key_service import AccessKeyService

logger = logging.getLogger(__name__)

IMAGE_TOKEN_QUERY_PARAM = "token"
IMAGE_TOKEN_HEADER = "x-image-token"


@dataclass(frozen=True)
class ImageAccessContext:
    """Resolved grant handed to token-protected route handlers."""

    image: Image
    grantee: User | None
    permissions: frozenset[Permission]
    access_key_id: str


def extract_token(query_token: str | None, header_token: str | None) -> str:
    """Pick the presented token: query parameter first, header as fallback.

    Raises:
        MissingTokenError: If neither carries a token.
    """
    token = query_token or header_token
    if not token:
        raise MissingTokenError
    return token


async def authorize(
    service: AccessKeyService,
    token: str,
    required: Permission,
) -> ImageAccessContext:
    """Verify *token* and check it grants *required*.

    Verification errors propagate unchanged; the gate never retries.

    Raises:
        InsufficientPermissionError: If the key lacks *required*.
    """
    access = await service.verify(token)
    if required not in access.permissions:
        logger.info(
            "Access key %s on image %s lacks %s permission",
            access.access_key_id,
            access.image.id,
            required,
        )
        raise InsufficientPermissionError
    return ImageAccessContext(
        image=access.image,
        grantee=access.grantee,
        permissions=access.permissions,
        access_key_id=access.access_key_id,
    )
