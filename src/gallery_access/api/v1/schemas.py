"""V1 API request/response Pydantic schemas.

These are the *API-layer* schemas — thin wrappers that define the HTTP
contract.  They deliberately do NOT inherit from SQLAlchemy models; the
endpoint code maps between ORM objects and these schemas.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime

from pydantic import BaseModel, Field

from gallery_access.engine.permissions import Permission  # noqa: TC001


class ErrorResponse(BaseModel):
    """Standard error body."""

    code: str
    message: str


# ---------------------------------------------------------------------------
# Access keys
# ---------------------------------------------------------------------------


class AccessKeyCreateRequest(BaseModel):
    """POST /api/v1/images/{image_id}/access-keys — all fields optional."""

    expires_in: int | None = Field(None, alias="expiresIn", description="Lifetime in seconds")
    permissions: list[str] | None = Field(None, description="Granted permissions")
    max_usage: int | None = Field(None, alias="maxUsage", description="Maximum successful uses")

    model_config = {"populate_by_name": True}


class AccessKeyCreateResponse(BaseModel):
    """Freshly issued key; ``token`` is never retrievable again."""

    token: str
    expires_at: datetime = Field(alias="expiresAt")
    image_id: str = Field(alias="imageId")
    permissions: list[Permission]

    model_config = {"populate_by_name": True}


class AccessKeyRevokeResponse(BaseModel):
    """DELETE /api/v1/images/{image_id}/access-keys."""

    message: str
    revoked: int


# ---------------------------------------------------------------------------
# Shared images
# ---------------------------------------------------------------------------


class SharedImageResponse(BaseModel):
    """Image metadata served through an access token."""

    id: str
    title: str
    url: str
    description: str | None = None
    author_id: str = Field(alias="authorId")
    permissions: list[Permission]

    model_config = {"populate_by_name": True}
