"""Audio-related data models."""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class CaptureState(Enum):
    """States of the capture controller."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    buffer_size: int  # Samples waiting in the chunk buffer
    sample_rate: int
    chunk_size: int
    total_chunks: int  # Frames read from the device
    chunks_flushed: int = 0
    peak_level: float = 0.0


@dataclass(frozen=True, eq=False)
class AudioChunk:
    """A sequence-numbered slice of captured audio at the source sample rate."""
    samples: np.ndarray  # float32, mono
    sample_rate: int
    sequence_number: int
    channels: int = 1

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate


@dataclass(frozen=True, eq=False)
class NormalizedChunk:
    """Audio resampled to the target rate, mono and peak-normalized."""
    samples: np.ndarray  # float32, mono, at sample_rate
    sample_rate: int
    sequence_number: int
    peak: float  # Peak of the resampled signal before gain
    rms: float   # RMS of the resampled signal before gain
    gain: float
    source_sample_rate: int
    is_silent: bool = False  # True when peak was zero or non-finite

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate
