"""Dictation service composing capture, transcription and correction."""

import itertools
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pubsub import pub

from ..audio.audio_pub import AudioPublisher
from ..audio.capture import AudioCapture
from ..audio.controller import CaptureController
from ..config import Dictate2MeConfig
from ..correction import CorrectionLexicon, apply_corrections
from ..errors import Dictate2MeError, InvalidSilentChunk, PermissionDenied
from ..models.audio import CaptureState
from ..models.correction import CorrectionResult
from ..models.ui import DictationStatus
from ..transcription.base import AbstractInferenceEngine
from ..transcription.bridge import TranscriptionBridge
from ..transcription.google_backend import GoogleSpeechEngine
from ..transcription.publisher import TranscriptionPublisher
from ..transcription.worker import InferenceWorker

logger = logging.getLogger(__name__)


class DictationService:
    """Single entry point for the presentation layer.

    Normalized chunks travel from the capture controller to the bridge over
    a per-instance subtopic of ``pubsub.audio_topic``; results, errors and
    model status leave the bridge on the ``pubsub.*_topic`` topics.
    """

    _instance_ids = itertools.count(1)

    def __init__(self,
                 config: Dictate2MeConfig,
                 engine: Optional[AbstractInferenceEngine] = None,
                 capture_factory: Callable[..., AudioCapture] = AudioCapture,
                 worker_factory: Callable[..., InferenceWorker] = InferenceWorker):
        """Initialize dictation service.

        Args:
            config: Application configuration
            engine: Inference engine; built from ``transcription.engine`` if None
            capture_factory: Builds the microphone wrapper for each session
            worker_factory: Builds the inference worker
        """
        self.config = config
        self.errors: List[Dictate2MeError] = []
        self.last_error: Optional[Dictate2MeError] = None
        self.correction: Optional[CorrectionResult] = None
        self.correction_enabled = bool(config.get('correction.enabled', True))
        self.lexicon = CorrectionLexicon.from_config(config.get('correction'))
        self._errors_lock = threading.Lock()
        self._closed = False

        # One subtopic per service: chunks only reach this service's bridge
        base_topic = config.get('pubsub.audio_topic', 'audio.chunk')
        self.audio_topic = f"{base_topic}.s{next(self._instance_ids)}"
        self.transcription_publisher = TranscriptionPublisher(
            result_topic=config.get('pubsub.result_topic', 'transcription.result'),
            error_topic=config.get('pubsub.error_topic', 'transcription.error'),
            status_topic=config.get('pubsub.status_topic', 'model.status'),
        )

        self.engine = engine if engine is not None else self._create_engine()
        self.bridge = TranscriptionBridge(
            engine=self.engine,
            locale=config.get('transcription.locale', 'en-US'),
            on_result=self.transcription_publisher.publish_result,
            on_error=self._record_error,
            on_status=self.transcription_publisher.publish_status,
            worker_factory=worker_factory,
        )

        self.audio_publisher = AudioPublisher(self.audio_topic)
        pub.subscribe(self.bridge.submit, self.audio_topic)

        self.controller = CaptureController(
            on_chunk=self.audio_publisher.publish_chunk,
            sample_rate=config.get('audio.sample_rate', 16000),
            chunk_size=config.get('audio.chunk_size', 1024),
            channels=config.get('audio.channels', 1),
            chunk_duration_seconds=config.get('audio.chunk_duration_seconds', 4.0),
            target_sample_rate=config.get('normalization.target_sample_rate', 16000),
            peak_ceiling=config.get('normalization.peak_ceiling', 0.95),
            on_error=self._record_error,
            capture_factory=capture_factory,
        )
        logger.info("DictationService ready")

    def _create_engine(self) -> AbstractInferenceEngine:
        """Build the inference engine named in the configuration."""
        engine_name = self.config.get('transcription.engine', 'google')
        if engine_name != 'google':
            raise ValueError(f"Unknown transcription engine: {engine_name}")

        credentials_path = self.config.get_google_credentials_path()
        logger.info(f"Google credentials path: {credentials_path}")
        return GoogleSpeechEngine(
            credentials_path=credentials_path,
            sample_rate=self.config.get('normalization.target_sample_rate', 16000),
            language=self.config.get('transcription.locale', 'en-US'),
            use_enhanced=self.config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=self.config.get('google_cloud.enable_automatic_punctuation', True),
            model=self.config.get('google_cloud.model', 'latest_short'),
        )

    def _record_error(self, error: Dictate2MeError) -> None:
        with self._errors_lock:
            self.errors.append(error)
            # Silent chunks are warnings, not failures
            if not isinstance(error, InvalidSilentChunk):
                self.last_error = error
        self.transcription_publisher.publish_error(error)

    def load_model(self) -> bool:
        """Load the inference engine, or retry after a load failure."""
        return self.bridge.load()

    def start_recording(self) -> Dict[str, Any]:
        """Start a new dictation session.

        Returns:
            Result dictionary with success status and details
        """
        if self._closed:
            return {"success": False, "error": "Service has been cleaned up"}
        if self.controller.state != CaptureState.IDLE:
            return {"success": False, "error": "Already recording"}

        self.bridge.begin_session()
        self.correction = None
        with self._errors_lock:
            self.errors.clear()
            self.last_error = None
        self.bridge.load()

        try:
            started = self.controller.start()
        except PermissionDenied as e:
            logger.error(f"❌ {e}")
            self._record_error(e)
            return {"success": False, "error": e.reason, "message": str(e)}

        if not started:
            return {"success": False, "error": "Already recording"}

        logger.info("Started dictation session")
        return {"success": True, "started_at": datetime.now().isoformat()}

    def stop_recording(self) -> Dict[str, Any]:
        """Stop the session; queued chunks keep transcribing in the background.

        Returns:
            Result dictionary with chunk counts
        """
        if not self.controller.stop():
            return {"success": False, "error": "Not recording"}

        result = {
            "success": True,
            "stopped_at": datetime.now().isoformat(),
            "chunks_flushed": self.controller.chunks_flushed,
            "pending_chunks": self.bridge.pending_count,
        }
        logger.info(f"Stopped dictation session: {result['chunks_flushed']} chunks, "
                    f"{result['pending_chunks']} still queued")
        return result

    def wait_for_transcription(self, timeout: Optional[float] = None) -> bool:
        """Block until every dispatched chunk has been answered."""
        return self.bridge.wait_until_idle(timeout)

    def reset_transcription(self) -> None:
        """Clear the running transcript and any correction."""
        self.bridge.reset_transcript()
        self.correction = None
        logger.info("Transcription reset")

    @property
    def transcription(self) -> str:
        return self.bridge.transcript.text

    def refine(self, text: Optional[str] = None) -> Optional[CorrectionResult]:
        """Run the correction pass over ``text`` or the current transcript.

        Returns:
            CorrectionResult, or None when correction is disabled
        """
        if not self.correction_enabled:
            logger.debug("Correction disabled, skipping refine")
            return None

        source = self.transcription if text is None else text
        self.correction = apply_corrections(source, self.lexicon)
        logger.info(f"✨ Refined transcript with {len(self.correction.changes)} changes")
        return self.correction

    def get_status(self) -> DictationStatus:
        """Snapshot of capture, model and transcript state."""
        model_status = self.bridge.model_status
        stats = self.controller.get_recording_stats()
        last_error = self.last_error
        return DictationStatus(
            capture_state=self.controller.state,
            model_state=model_status.state,
            model_progress=model_status.progress,
            is_transcribing=self.bridge.is_transcribing,
            transcription=self.transcription,
            error=last_error.reason if last_error else None,
            chunks_flushed=self.controller.chunks_flushed,
            chunks_completed=len(self.bridge.results),
            chunks_failed=len(self.bridge.failures),
            peak_level=stats.peak_level,
            correction=self.correction,
        )

    def cleanup(self) -> None:
        """Stop recording, unsubscribe and dispose the engine. Safe to call twice."""
        if self._closed:
            return
        self._closed = True

        if self.controller.state == CaptureState.RECORDING:
            self.controller.stop()
        pub.unsubscribe(self.bridge.submit, self.audio_topic)
        self.bridge.dispose()
        logger.info("DictationService cleaned up")
