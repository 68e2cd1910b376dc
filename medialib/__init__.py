"""Personal media library service."""

__version__ = "0.1.0"
