"""V1 token-protected image endpoints.

These routes take no login; the image access token is the credential.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from gallery_access.api.dependencies import require_image_access
from gallery_access.api.middleware.image_access import ImageAccessContext  # noqa: TC001
from gallery_access.api.v1.schemas import ErrorResponse, SharedImageResponse
from gallery_access.engine.permissions import Permission, sorted_permissions

_ERRORS: dict[int | str, dict] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
}

router = APIRouter(tags=["shared_images"], responses=_ERRORS)


@router.get("/images/{image_id}/shared")
async def view_shared_image(
    image_id: str,
    access: Annotated[ImageAccessContext, Depends(require_image_access(Permission.VIEW))],
) -> dict:
    """Return image metadata for a holder of a ``view`` key."""
    image = access.image
    return SharedImageResponse(
        id=image.id,
        title=image.title,
        url=image.url,
        description=image.description,
        author_id=image.author_id,
        permissions=sorted_permissions(access.permissions),
    ).model_dump(mode="json", by_alias=True)


@router.get("/images/{image_id}/shared/download")
async def download_shared_image(
    image_id: str,
    access: Annotated[ImageAccessContext, Depends(require_image_access(Permission.DOWNLOAD))],
) -> RedirectResponse:
    """Redirect a holder of a ``download`` key to the stored image."""
    return RedirectResponse(access.image.url, status_code=307)
