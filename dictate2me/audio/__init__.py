"""Audio capture and processing module."""

from .capture import AudioCapture
from .buffer import ChunkBuffer
from .controller import CaptureController
from .audio_pub import AudioPublisher
from .normalizer import normalize, decode_pcm16

__all__ = [
    'AudioCapture',
    'ChunkBuffer',
    'CaptureController',
    'AudioPublisher',
    'normalize',
    'decode_pcm16',
]
