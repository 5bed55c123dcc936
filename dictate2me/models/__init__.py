"""Data models for the Dictate2Me application."""

from .audio import AudioStats, AudioChunk, NormalizedChunk, CaptureState
from .correction import Change, ChangeType, CorrectionResult
from .events import (
    AudioEvent,
    Configure,
    Transcribe,
    DownloadProgress,
    Ready,
    Complete,
    WorkerError,
    WorkerRequest,
    WorkerEvent,
)
from .transcription import (
    ModelState,
    ModelStatus,
    Transcript,
    TranscriptSegment,
    TranscriptionRequest,
    TranscriptionResult,
)
from .ui import DictationStatus

__all__ = [
    "AudioStats",
    "AudioChunk",
    "NormalizedChunk",
    "CaptureState",
    "Change",
    "ChangeType",
    "CorrectionResult",
    # Worker protocol
    "AudioEvent",
    "Configure",
    "Transcribe",
    "DownloadProgress",
    "Ready",
    "Complete",
    "WorkerError",
    "WorkerRequest",
    "WorkerEvent",
    "ModelState",
    "ModelStatus",
    "Transcript",
    "TranscriptSegment",
    "TranscriptionRequest",
    "TranscriptionResult",
    "DictationStatus",
]
