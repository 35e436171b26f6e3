"""Terminal user interface for KickCount."""
