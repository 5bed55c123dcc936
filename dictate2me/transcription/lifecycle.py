"""Inference engine lifecycle state machine."""

import logging
import threading
from typing import Optional

from ..errors import InvalidTransitionError
from ..models.transcription import ModelState, ModelStatus

logger = logging.getLogger(__name__)

_ALLOWED = {
    ModelState.UNLOADED: {ModelState.LOADING},
    ModelState.LOADING: {ModelState.LOADING, ModelState.READY, ModelState.FAILED},
    ModelState.READY: set(),
    ModelState.FAILED: {ModelState.LOADING},
}


class ModelLifecycle:
    """Tracks unloaded -> loading(progress) -> ready | failed(reason).

    Transitions only move forward, except failed -> loading on retry.
    ``reset`` returns to unloaded when the engine is disposed.
    """

    def __init__(self):
        self._status = ModelStatus()
        self._lock = threading.Lock()

    @property
    def status(self) -> ModelStatus:
        return self._status

    @property
    def state(self) -> ModelState:
        return self._status.state

    @property
    def progress(self) -> float:
        return self._status.progress

    @property
    def reason(self) -> Optional[str]:
        return self._status.reason

    def _transition(self, state: ModelState, progress: float = 0.0, reason: Optional[str] = None) -> ModelStatus:
        with self._lock:
            current = self._status.state
            if state not in _ALLOWED[current]:
                raise InvalidTransitionError(f"Cannot move model from {current.value} to {state.value}")
            self._status = ModelStatus(state=state, progress=progress, reason=reason)
            status = self._status
        logger.debug(f"Model lifecycle: {current.value} -> {state.value} ({progress:.0f}%)")
        return status

    def begin_loading(self) -> ModelStatus:
        return self._transition(ModelState.LOADING, 0.0)

    def update_progress(self, progress: float) -> ModelStatus:
        """Record load progress, clamped to 0-100 and never moving backwards."""
        with self._lock:
            current = self._status
        if current.state != ModelState.LOADING:
            logger.debug(f"Ignoring progress {progress} while {current.state.value}")
            return current
        clamped = max(current.progress, min(100.0, max(0.0, float(progress))))
        return self._transition(ModelState.LOADING, clamped)

    def mark_ready(self) -> ModelStatus:
        return self._transition(ModelState.READY, 100.0)

    def mark_failed(self, reason: str) -> ModelStatus:
        return self._transition(ModelState.FAILED, self._status.progress, reason)

    def reset(self) -> ModelStatus:
        with self._lock:
            self._status = ModelStatus()
            return self._status
