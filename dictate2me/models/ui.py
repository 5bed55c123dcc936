"""UI-related data models."""

from dataclasses import dataclass
from typing import Optional

from .audio import CaptureState
from .correction import CorrectionResult
from .transcription import ModelState


@dataclass(frozen=True)
class DictationStatus:
    """Read-only snapshot of the dictation state for the presentation layer."""
    capture_state: CaptureState = CaptureState.IDLE
    model_state: ModelState = ModelState.UNLOADED
    model_progress: float = 0.0
    is_transcribing: bool = False
    transcription: str = ""
    error: Optional[str] = None
    chunks_flushed: int = 0
    chunks_completed: int = 0
    chunks_failed: int = 0
    peak_level: float = 0.0
    correction: Optional[CorrectionResult] = None

    @property
    def is_recording(self) -> bool:
        return self.capture_state == CaptureState.RECORDING

    @property
    def is_model_loading(self) -> bool:
        return self.model_state == ModelState.LOADING

    @property
    def is_model_loaded(self) -> bool:
        return self.model_state == ModelState.READY
