"""Image and User models — gallery entities read by the access key core."""

from __future__ import annotations

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gallery_access.engine.models.base import Base, TimestampMixin, new_id


class User(Base, TimestampMixin):
    """A gallery principal.  Owned by the login system; read-only here."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username}>"


class Image(Base, TimestampMixin):
    """An uploaded gallery image.  Storage lives with the upload pipeline."""

    __tablename__ = "images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<Image id={self.id} title={self.title!r}>"
