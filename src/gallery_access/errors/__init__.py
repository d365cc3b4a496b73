"""Error taxonomy for gallery access."""
