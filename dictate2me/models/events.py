"""Event models: microphone frames and the inference worker protocol.

The worker protocol is a closed set of frozen dataclasses. Requests flow into
the worker (``Configure``, ``Transcribe``) and events flow back out
(``DownloadProgress``, ``Ready``, ``Complete``, ``WorkerError``).
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

import numpy as np


@dataclass
class AudioEvent:
    """Raw PCM frame read from the microphone."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when frame was captured
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
    chunk_duration_ms: Optional[int] = None
    final: bool = False  # True for the last frame of the session

    def __post_init__(self):
        """Calculate frame duration if not provided."""
        if self.chunk_duration_ms is None and self.audio_data:
            # 16-bit audio, 2 bytes per sample
            bytes_per_second = self.sample_rate * self.channels * 2
            duration_seconds = len(self.audio_data) / bytes_per_second
            self.chunk_duration_ms = int(duration_seconds * 1000)


# Stages a WorkerError can originate from
STAGE_CONFIGURE = "configure"
STAGE_TRANSCRIBE = "transcribe"


@dataclass(frozen=True)
class Configure:
    """Ask the worker to load the inference engine."""
    type: str = field(default="configure", init=False)


@dataclass(frozen=True, eq=False)
class Transcribe:
    """Ask the worker to transcribe one normalized chunk."""
    sequence_number: int
    samples: np.ndarray
    locale: str
    type: str = field(default="transcribe", init=False)


@dataclass(frozen=True)
class DownloadProgress:
    """Engine load progress, 0-100."""
    progress: float
    file: Optional[str] = None
    type: str = field(default="download-progress", init=False)


@dataclass(frozen=True)
class Ready:
    """The engine finished loading."""
    type: str = field(default="ready", init=False)


@dataclass(frozen=True)
class Complete:
    """Engine output for one request.

    ``output`` is whatever the engine returned: a mapping with ``text`` (and
    optionally timestamped ``chunks``), a list of segment mappings, or a string.
    """
    sequence_number: int
    output: Any
    processing_time: float = 0.0
    type: str = field(default="complete", init=False)


@dataclass(frozen=True)
class WorkerError:
    """A failure inside the worker, converted to a message."""
    reason: str
    stage: str
    sequence_number: Optional[int] = None
    type: str = field(default="error", init=False)


WorkerRequest = Union[Configure, Transcribe]
WorkerEvent = Union[DownloadProgress, Ready, Complete, WorkerError]
