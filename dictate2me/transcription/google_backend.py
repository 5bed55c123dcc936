"""Google Speech-to-Text inference engine."""

import logging
from typing import Optional, Dict, Any, List

import numpy as np

from .base import AbstractInferenceEngine, ProgressCallback

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechEngine(AbstractInferenceEngine):
    """Google Speech-to-Text API engine for transcription."""

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 model: str = "latest_short",
                 timeout: Optional[float] = None):
        """Initialize Google Speech engine.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Rate of the samples passed to transcribe
            language: Language code (e.g., 'en-US')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            model: Recognition model name
            timeout: Per-request deadline in seconds; None waits for the service
        """
        super().__init__(language)
        if not credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.credentials_path = credentials_path
        self.sample_rate = sample_rate
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.model = model
        self.timeout = timeout
        self.client = None
        self.project_id = None

    def _recognition_config(self, locale: str) -> speech.RecognitionConfig:
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
            language_code=locale or self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            model=self.model,
        )

    def load(self, progress_callback: Optional[ProgressCallback] = None) -> None:
        """Create the Speech client from service account credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        if progress_callback:
            progress_callback(0.0, self.credentials_path)

        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

        if progress_callback:
            progress_callback(100.0, self.credentials_path)

    def transcribe(self, samples: np.ndarray, locale: str) -> Dict[str, Any]:
        """Transcribe float samples; returns ``{"text", "chunks"}``."""
        if self.client is None:
            raise RuntimeError("Google Speech engine is not loaded")

        pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype("<i2").tobytes()
        audio = speech.RecognitionAudio(content=pcm)
        logger.debug(f"Recognizing {len(samples)} samples ({len(pcm)} bytes), locale={locale}")

        try:
            response = self.client.recognize(
                config=self._recognition_config(locale), audio=audio, timeout=self.timeout)
        except gax_exceptions.DeadlineExceeded as e:
            raise RuntimeError(f"Google Speech recognize timeout: {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            raise RuntimeError(f"Google Speech service unavailable: {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            raise RuntimeError(f"Google Speech API error: {e}") from e

        return self.__extract_output(response)

    def __extract_output(self, response) -> Dict[str, Any]:
        chunks: List[Dict[str, Any]] = []
        start = 0.0
        for result in response.results:
            if not result.alternatives:
                continue
            text = result.alternatives[0].transcript.strip()
            end = self._offset_seconds(getattr(result, "result_end_time", None))
            chunks.append({"text": text, "timestamp": (start, end)})
            if end is not None:
                start = end

        if not chunks:
            logger.debug("--- NO SPEECH DETECTED ---")
        text = " ".join(c["text"] for c in chunks if c["text"])
        return {"text": text, "chunks": chunks}

    @staticmethod
    def _offset_seconds(offset) -> Optional[float]:
        if offset is None:
            return None
        if hasattr(offset, "total_seconds"):
            return offset.total_seconds()
        return float(getattr(offset, "seconds", 0)) + getattr(offset, "nanos", 0) / 1e9

    def dispose(self) -> None:
        """Close the Speech client transport."""
        client, self.client = self.client, None
        if client is not None and hasattr(client, "transport"):
            client.transport.close()
        logger.debug("Google Speech engine disposed")
