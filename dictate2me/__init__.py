"""Dictate2Me - chunked dictation with ordered transcription and rule-based correction."""

__version__ = "0.1.0"
