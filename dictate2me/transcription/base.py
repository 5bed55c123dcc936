"""Abstract base class for inference engines."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
import logging

import numpy as np

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, Optional[str]], None]


class AbstractInferenceEngine(ABC):
    """Speech-to-text engine owned by one InferenceWorker.

    Engines are only ever called from the worker thread, one call at a time.
    """

    service_name = "engine"

    def __init__(self, language: str = "en-US"):
        """Initialize engine with language preference."""
        self.language = language

    @abstractmethod
    def load(self, progress_callback: Optional[ProgressCallback] = None) -> None:
        """Load model resources.

        Args:
            progress_callback: Called with (percent 0-100, file name or None)

        Raises:
            Exception: Any failure; the worker reports it as a configure error
        """
        pass

    @abstractmethod
    def transcribe(self, samples: np.ndarray, locale: str) -> Any:
        """Transcribe mono 16kHz float32 samples.

        Returns:
            A mapping with ``text`` (optionally ``chunks`` of
            ``{"text", "timestamp": (start, end)}``), a list of such segment
            mappings, or a plain string
        """
        pass

    @abstractmethod
    def dispose(self) -> None:
        """Release engine resources."""
        pass
