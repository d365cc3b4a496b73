"""V1 access key endpoints.

Issue and revoke time-limited access keys on an image for the current user.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from gallery_access.api.dependencies import get_engine, require_user
from gallery_access.api.middleware.auth import UserContext  # noqa: TC001
from gallery_access.api.v1.schemas import (
    AccessKeyCreateRequest,
    AccessKeyCreateResponse,
    AccessKeyRevokeResponse,
    ErrorResponse,
)
from gallery_access.engine.client import GalleryEngine  # noqa: TC001
from gallery_access.engine.permissions import sorted_permissions

router = APIRouter(
    tags=["access_keys"],
    responses={401: {"model": ErrorResponse}},
)


@router.post(
    "/images/{image_id}/access-keys",
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_access_key(
    image_id: str,
    ctx: Annotated[UserContext, Depends(require_user)],
    engine: Annotated[GalleryEngine, Depends(get_engine)],
    body: AccessKeyCreateRequest | None = None,
) -> dict:
    """Issue an access key on an image for the current user."""
    body = body or AccessKeyCreateRequest()
    issued = await engine.access_key_service.issue(
        image_id,
        ctx.user_id,
        expires_in=body.expires_in,
        permissions=body.permissions,
        max_usage=body.max_usage,
    )
    return AccessKeyCreateResponse(
        token=issued.token,
        expires_at=issued.expires_at,
        image_id=issued.image_id,
        permissions=sorted_permissions(issued.permissions),
    ).model_dump(mode="json", by_alias=True)


@router.delete("/images/{image_id}/access-keys")
async def revoke_access_keys(
    image_id: str,
    ctx: Annotated[UserContext, Depends(require_user)],
    engine: Annotated[GalleryEngine, Depends(get_engine)],
) -> dict:
    """Revoke every access key the current user holds on an image."""
    revoked = await engine.access_key_service.revoke(image_id, ctx.user_id)
    return AccessKeyRevokeResponse(
        message="All access keys for this image have been revoked",
        revoked=revoked,
    ).model_dump(mode="json")
