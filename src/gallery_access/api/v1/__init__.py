"""V1 REST API routes.

Combines all sub-routers under the ``/api/v1`` prefix.
"""

from fastapi import APIRouter

from gallery_access.api.v1.access_keys import router as access_keys_router
from gallery_access.api.v1.shared_images import router as shared_images_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(access_keys_router)
v1_router.include_router(shared_images_router)

__all__ = ["v1_router"]
