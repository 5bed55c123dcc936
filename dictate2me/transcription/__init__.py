"""Transcription module for Dictate2Me."""

from .base import AbstractInferenceEngine
from .bridge import TranscriptionBridge, extract_output
from .lifecycle import ModelLifecycle
from .publisher import TranscriptionPublisher
from .worker import InferenceWorker

__all__ = [
    "AbstractInferenceEngine",
    "TranscriptionBridge",
    "extract_output",
    "ModelLifecycle",
    "TranscriptionPublisher",
    "InferenceWorker",
]
