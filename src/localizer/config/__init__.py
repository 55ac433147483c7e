"""Configuration for the localizer service and CLI."""

from .settings import AppSettings

__all__ = ["AppSettings"]
