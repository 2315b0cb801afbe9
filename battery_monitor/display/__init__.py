"""Display module for rendering and showing signs."""

from .base import DisplayBase, DisplayError
from .mock import MockDisplay
from .render import render_sign

__all__ = ["DisplayBase", "DisplayError", "MockDisplay", "render_sign"]
