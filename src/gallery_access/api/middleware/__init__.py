"""API middleware — auth, image access gate, CORS."""

from gallery_access.api.middleware.auth import UserContext
from gallery_access.api.middleware.cors import setup_cors
from gallery_access.api.middleware.image_access import ImageAccessContext

__all__ = ["ImageAccessContext", "UserContext", "setup_cors"]
