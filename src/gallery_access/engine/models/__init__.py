"""Engine data models (SQLAlchemy ORM).

Import :data:`ALL_MODELS` for migration and table creation.
"""

from gallery_access.engine.models.access_key import ImageAccessKey
from gallery_access.engine.models.base import Base, TimestampMixin, UTCDateTime
from gallery_access.engine.models.image import Image, User

ALL_MODELS: list[type[Base]] = [
    User,
    Image,
    ImageAccessKey,
]

__all__ = [
    "ALL_MODELS",
    "Base",
    "Image",
    "ImageAccessKey",
    "TimestampMixin",
    "UTCDateTime",
    "User",
]
