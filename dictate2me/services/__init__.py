"""Services layer for Dictate2Me application logic."""

from .dictation_service import DictationService

__all__ = [
    "DictationService",
]
