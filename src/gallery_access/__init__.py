"""gallery-access — time-limited image access keys for the gallery backend."""

__version__ = "0.1.0"
