"""Core app configuration, security primitives and exceptions."""

from authapi.core.config import get_settings, settings

__all__ = ["get_settings", "settings"]
