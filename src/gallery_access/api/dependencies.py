"""FastAPI dependency injection helpers.

Provides ``Depends()``-compatible callables for engine access, principal
authentication and token-protected image access in route handlers.

Usage in a route::

    @router.get("/images/{image_id}/shared")
    async def view(
        access: ImageAccessContext = Depends(require_image_access(Permission.VIEW)),
    ) -> ...:
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Header, Query, Request

from gallery_access.api.middleware.auth import (
    AUTH_HEADER_USER,
    UserContext,
    authenticate_request,
)
from gallery_access.api.middleware.image_access import (
    IMAGE_TOKEN_HEADER,
    IMAGE_TOKEN_QUERY_PARAM,
    ImageAccessContext,
    authorize,
    extract_token,
)
from gallery_access.engine.client import GalleryEngine  # noqa: TC001
from gallery_access.errors.access_errors import AccessDeniedError
from gallery_access.errors.definitions import ErrEngineUnavailable
from gallery_access.errors.gallery_errors import GalleryError
from gallery_access.metrics.middleware import (
    GATE_GRANTED,
    GATE_OUTCOME_STATE,
    GATE_PERMISSION_STATE,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from gallery_access.engine.permissions import Permission

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def get_engine(request: Request) -> GalleryEngine:
    """Retrieve the engine from ``app.state``.

    The engine is stored on ``app.state.engine`` during lifespan startup.

    Raises:
        GalleryError: 503 if the engine is not initialized.
    """
    engine: GalleryEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise ErrEngineUnavailable
    return engine


# ---------------------------------------------------------------------------
# Principal auth
# ---------------------------------------------------------------------------


async def get_user_context(
    engine: Annotated[GalleryEngine, Depends(get_engine)],
    x_auth_user: Annotated[str, Header(alias=AUTH_HEADER_USER)] = "",
) -> UserContext:
    """Resolve the authenticated user forwarded by the login gateway."""
    return await authenticate_request(engine, user_header=x_auth_user)


def require_user(
    ctx: Annotated[UserContext, Depends(get_user_context)],
) -> UserContext:
    """Dependency that requires an authenticated user."""
    return ctx


# ---------------------------------------------------------------------------
# Image access gate
# ---------------------------------------------------------------------------


def require_image_access(
    permission: Permission,
) -> Callable[..., Awaitable[ImageAccessContext]]:
    """Build a dependency guarding a route with an image access token.

    The token comes from the ``token`` query parameter or, failing that, the
    ``x-image-token`` header.  When the route has an ``image_id`` path
    parameter the token's image must match it.  The decision (granted or
    the error code) is left on ``request.state`` for the metrics middleware.
    """

    async def _require_image_access(
        request: Request,
        engine: Annotated[GalleryEngine, Depends(get_engine)],
        token: Annotated[str | None, Query(alias=IMAGE_TOKEN_QUERY_PARAM)] = None,
        x_image_token: Annotated[str | None, Header(alias=IMAGE_TOKEN_HEADER)] = None,
    ) -> ImageAccessContext:
        setattr(request.state, GATE_PERMISSION_STATE, str(permission))
        try:
            presented = extract_token(token, x_image_token)
            access = await authorize(engine.access_key_service, presented, permission)

            path_image_id = request.path_params.get("image_id")
            if path_image_id is not None and path_image_id != access.image.id:
                raise AccessDeniedError
        except GalleryError as exc:
            setattr(request.state, GATE_OUTCOME_STATE, exc.code)
            raise
        setattr(request.state, GATE_OUTCOME_STATE, GATE_GRANTED)

        request.state.image = access.image
        request.state.image_permissions = access.permissions
        return access

    return _require_image_access
