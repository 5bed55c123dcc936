"""Transcription-related data models."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .audio import NormalizedChunk


class ModelState(Enum):
    """Lifecycle states of the inference engine."""
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ModelStatus:
    """Snapshot of the engine lifecycle."""
    state: ModelState = ModelState.UNLOADED
    progress: float = 0.0  # 0-100, meaningful while loading
    reason: Optional[str] = None  # Set when failed


@dataclass(frozen=True)
class TranscriptSegment:
    """A timestamped piece of engine output."""
    text: str
    start: Optional[float] = None  # Seconds from chunk start
    end: Optional[float] = None


@dataclass(frozen=True)
class TranscriptionRequest:
    """One chunk waiting for, or undergoing, inference."""
    sequence_number: int
    chunk: NormalizedChunk
    locale: str
    generation: int = 0  # Session generation the request belongs to


@dataclass
class TranscriptionResult:
    """Result of a transcription operation."""
    sequence_number: int
    text: str
    segments: Optional[List[TranscriptSegment]] = None
    processing_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    service: str = ""
    language: str = "en-US"
    is_silent: bool = False  # Source chunk was flagged invalid-silent


class Transcript:
    """Append-only running transcript.

    Texts are joined with single spaces. Only ``reset`` shrinks it.
    """

    def __init__(self):
        self._entries: List[str] = []
        self._lock = threading.Lock()

    def append(self, text: str) -> bool:
        """Append a result text; returns False if it was empty."""
        text = text.strip()
        if not text:
            return False
        with self._lock:
            self._entries.append(text)
        return True

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def entries(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    @property
    def text(self) -> str:
        with self._lock:
            return " ".join(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __str__(self) -> str:
        return self.text
