"""ImageAccessKey model — scoped, expiring, usage-capped image grants."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from gallery_access.engine.models.base import Base, TimestampMixin, new_id
from gallery_access.engine.permissions import Permission


class ImageAccessKey(Base, TimestampMixin):
    """A capability grant on one image for one grantee.

    Only ``secret_hash`` (SHA-256 of the bearer secret) is stored; the secret
    itself is handed out once inside the public token.
    """

    __tablename__ = "image_access_keys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    image_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("images.id", ondelete="CASCADE"), nullable=False
    )
    grantee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    secret_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, comment="SHA-256 of the bearer secret"
    )
    permissions: Mapped[list[str]] = mapped_column(nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False, index=True)
    last_used_at: Mapped[datetime | None] = mapped_column(nullable=True, default=None)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_usage: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)

    __table_args__ = (
        Index("ix_image_access_keys_image_grantee", "image_id", "grantee_id"),
        Index("ix_image_access_keys_created_at", "created_at"),
    )

    @property
    def permission_set(self) -> frozenset[Permission]:
        return frozenset(Permission(p) for p in self.permissions)

    def is_expired(self, now: datetime) -> bool:
        """Check if the key has passed its expiry at *now*."""
        return self.expires_at < now

    @property
    def is_over_limit(self) -> bool:
        """Check if the usage count has exceeded ``max_usage`` (when set)."""
        return self.max_usage is not None and self.usage_count > self.max_usage

    def __repr__(self) -> str:
        return (
            f"<ImageAccessKey id={self.id} image={self.image_id} "
            f"grantee={self.grantee_id} uses={self.usage_count}>"
        )
