"""Request models for API endpoints."""

from enum import Enum


class Layout(str, Enum):
    """Supported HTML layouts."""

    PREVIEW = "preview"
    PRINT = "print"
