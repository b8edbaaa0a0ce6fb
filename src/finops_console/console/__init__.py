"""Terminal rendering for the console."""

from .render import ConsoleRenderer
from .themes import ConsoleTheme

__all__ = ["ConsoleRenderer", "ConsoleTheme"]
