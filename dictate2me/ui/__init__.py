"""Terminal presentation for Dictate2Me."""

from .console_view import ConsoleView

__all__ = ["ConsoleView"]
