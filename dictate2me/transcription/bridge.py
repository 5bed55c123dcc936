"""Transcription bridge between captured chunks and the inference worker.

Only one ``Transcribe`` request is outstanding at any time. Further chunks
wait in a FIFO queue and are dispatched after the worker answers the current
request with ``Complete`` or ``WorkerError``, so results are appended to the
transcript in dispatch order regardless of how long each inference takes.
"""

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, List, Mapping, Optional, Tuple

from .base import AbstractInferenceEngine
from .lifecycle import ModelLifecycle
from .worker import InferenceWorker
from ..errors import Dictate2MeError, EngineInferenceError, EngineLoadError, InvalidTransitionError
from ..models.audio import NormalizedChunk
from ..models.events import (
    Configure,
    Transcribe,
    DownloadProgress,
    Ready,
    Complete,
    WorkerError,
    WorkerEvent,
    STAGE_CONFIGURE,
)
from ..models.transcription import (
    ModelState,
    ModelStatus,
    Transcript,
    TranscriptSegment,
    TranscriptionRequest,
    TranscriptionResult,
)

logger = logging.getLogger(__name__)


def _segment_from(item: Any) -> Optional[TranscriptSegment]:
    if isinstance(item, str):
        return TranscriptSegment(text=item.strip())
    if not isinstance(item, Mapping):
        return None

    start = item.get("start")
    end = item.get("end")
    timestamp = item.get("timestamp")
    if isinstance(timestamp, (list, tuple)) and len(timestamp) == 2:
        start, end = timestamp
    return TranscriptSegment(text=str(item.get("text") or "").strip(), start=start, end=end)


def _segments_from(items: Any) -> List[TranscriptSegment]:
    segments = []
    for item in items:
        segment = _segment_from(item)
        if segment is not None:
            segments.append(segment)
    return segments


def extract_output(output: Any) -> Tuple[str, Optional[List[TranscriptSegment]]]:
    """Pull text and optional segments out of engine output.

    Accepts a mapping with ``text`` (and optional timestamped ``chunks``), a
    list of segment mappings whose texts are joined with single spaces, or a
    plain string. Unknown shapes yield empty text.
    """
    if output is None:
        return "", None
    if isinstance(output, str):
        return output.strip(), None
    if isinstance(output, Mapping):
        text = str(output.get("text") or "").strip()
        chunks = output.get("chunks")
        segments = _segments_from(chunks) if chunks else None
        if not text and segments:
            text = " ".join(s.text for s in segments if s.text)
        return text, segments
    if isinstance(output, (list, tuple)):
        segments = _segments_from(output)
        return " ".join(s.text for s in segments if s.text).strip(), segments

    logger.warning(f"Unrecognized engine output of type {type(output).__name__}")
    return "", None


class TranscriptionBridge:
    """Serializes chunk dispatch to an InferenceWorker and merges results."""

    def __init__(self,
                 engine: AbstractInferenceEngine,
                 locale: str = "en-US",
                 on_result: Optional[Callable[[TranscriptionResult], None]] = None,
                 on_error: Optional[Callable[[Dictate2MeError], None]] = None,
                 on_status: Optional[Callable[[ModelStatus], None]] = None,
                 worker_factory: Callable[..., InferenceWorker] = InferenceWorker):
        """Initialize the bridge.

        Args:
            engine: Inference engine; owned by this bridge's worker from load() on
            locale: Locale sent with every request
            on_result: Called with each merged TranscriptionResult
            on_error: Called with EngineLoadError / EngineInferenceError
            on_status: Called with every ModelStatus change
            worker_factory: Builds the worker as ``factory(engine, on_message)``
        """
        self.engine = engine
        self.locale = locale
        self.on_result = on_result
        self.on_error = on_error
        self.on_status = on_status
        self.worker_factory = worker_factory

        self.lifecycle = ModelLifecycle()
        self.transcript = Transcript()
        self.pending: Deque[TranscriptionRequest] = deque()
        self.in_flight: Optional[TranscriptionRequest] = None
        self.results: List[TranscriptionResult] = []
        self.failures: List[EngineInferenceError] = []
        self.last_error: Optional[Dictate2MeError] = None
        self.generation = 0
        self.worker: Optional[InferenceWorker] = None
        self.disposed = False

        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)

    def load(self) -> bool:
        """Send ``configure`` to the worker, starting it on first use.

        Also used to retry after a load failure.

        Returns:
            True if a configure request was sent
        """
        with self._lock:
            if self.disposed:
                logger.warning("Cannot load: bridge has been disposed")
                return False
            if self.lifecycle.state in (ModelState.LOADING, ModelState.READY):
                return False

            if self.worker is None:
                self.worker = self.worker_factory(self.engine, self.handle_message)
                self.worker.start()

            status = self.lifecycle.begin_loading()
            self.worker.post(Configure())

        logger.info(f"🔄 Loading inference engine {self.engine.service_name}")
        self._notify_status(status)
        return True

    @property
    def model_status(self) -> ModelStatus:
        return self.lifecycle.status

    @property
    def is_ready(self) -> bool:
        return self.lifecycle.state == ModelState.READY

    def dispose(self) -> None:
        """Terminate the worker. Safe to call more than once."""
        with self._lock:
            if self.disposed:
                return
            self.disposed = True
            dropped = len(self.pending)
            self.pending.clear()
            self.in_flight = None
            worker, self.worker = self.worker, None
            self._idle.notify_all()

        if dropped:
            logger.info(f"Discarded {dropped} queued requests on dispose")
        # Join outside the lock; the worker may be waiting on it in handle_message
        if worker is not None:
            worker.terminate()
        self.lifecycle.reset()
        logger.info("Transcription bridge disposed")

    def begin_session(self) -> None:
        """Reset queue and transcript for a new recording session.

        A request already in flight keeps its slot until the worker answers,
        but its result belongs to the previous session and is discarded.
        """
        with self._lock:
            self.generation += 1
            self.pending.clear()
            self.transcript.reset()
            self.results.clear()
            self.failures.clear()
            self.last_error = None
            self._idle.notify_all()
        logger.debug(f"Began transcription session generation {self.generation}")

    def reset_transcript(self) -> None:
        """Clear the transcript text (explicit user action)."""
        self.transcript.reset()

    def submit(self, chunk: NormalizedChunk) -> Optional[TranscriptionRequest]:
        """Queue a chunk for transcription, loading the engine on first use."""
        with self._lock:
            if self.disposed:
                logger.warning(f"Dropping chunk #{chunk.sequence_number}: bridge has been disposed")
                return None
            request = TranscriptionRequest(
                sequence_number=chunk.sequence_number,
                chunk=chunk,
                locale=self.locale,
                generation=self.generation,
            )
            self.pending.append(request)
            needs_load = self.lifecycle.state == ModelState.UNLOADED
            logger.debug(f"Queued chunk #{chunk.sequence_number} ({len(self.pending)} pending)")

        if needs_load:
            self.load()
        self._dispatch_next()
        return request

    def _dispatch_next(self) -> None:
        with self._lock:
            if self.disposed or self.in_flight is not None or not self.pending:
                return
            if self.lifecycle.state != ModelState.READY:
                return

            request = self.pending.popleft()
            self.in_flight = request
            # Posting under the lock keeps inbox order equal to dispatch order
            self.worker.post(Transcribe(
                sequence_number=request.sequence_number,
                samples=request.chunk.samples,
                locale=request.locale,
            ))
        logger.debug(f"📤 Dispatched chunk #{request.sequence_number}")

    @property
    def is_transcribing(self) -> bool:
        with self._lock:
            return self.in_flight is not None or bool(self.pending)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self.pending)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no request is queued or in flight.

        Also returns once the engine has failed to load, since queued requests
        cannot make progress until a retry.

        Returns:
            True if idle, False on timeout
        """
        def settled() -> bool:
            if self.in_flight is not None:
                return False
            return not self.pending or self.lifecycle.state == ModelState.FAILED or self.disposed

        with self._idle:
            return self._idle.wait_for(settled, timeout)

    def handle_message(self, event: WorkerEvent) -> None:
        """Demultiplex one event from the worker."""
        if self.disposed:
            logger.debug(f"Ignoring {event.type} after dispose")
            return

        try:
            if isinstance(event, DownloadProgress):
                self._notify_status(self.lifecycle.update_progress(event.progress))
            elif isinstance(event, Ready):
                self._on_ready()
            elif isinstance(event, Complete):
                self._on_complete(event)
            elif isinstance(event, WorkerError):
                self._on_worker_error(event)
            else:
                logger.error(f"Unknown worker event: {event!r}")
        except InvalidTransitionError as e:
            logger.warning(f"Ignoring out-of-order {event.type}: {e}")

    def _on_ready(self) -> None:
        with self._lock:
            status = self.lifecycle.mark_ready()
            self._idle.notify_all()
        logger.info(f"✅ Inference engine ready ({len(self.pending)} chunks queued)")
        self._notify_status(status)
        self._dispatch_next()

    def _on_complete(self, event: Complete) -> None:
        result = None
        with self._lock:
            request = self.in_flight
            if request is None or request.sequence_number != event.sequence_number:
                logger.warning(f"Unexpected completion for chunk #{event.sequence_number}")
                return
            self.in_flight = None

            if request.generation != self.generation:
                logger.info(f"Discarding result for chunk #{request.sequence_number} from a previous session")
            else:
                text, segments = extract_output(event.output)
                result = TranscriptionResult(
                    sequence_number=request.sequence_number,
                    text=text,
                    segments=segments,
                    processing_time=event.processing_time,
                    service=self.engine.service_name,
                    language=request.locale,
                    is_silent=request.chunk.is_silent,
                )
                self.results.append(result)
                if self.transcript.append(text):
                    logger.info(f"📝 #{request.sequence_number}: '{text}'")
                else:
                    logger.debug(f"🔇 #{request.sequence_number}: no speech")

            self._dispatch_next()
            self._idle.notify_all()
        if result is not None and self.on_result:
            self.on_result(result)

    def _on_worker_error(self, event: WorkerError) -> None:
        if event.stage == STAGE_CONFIGURE:
            with self._lock:
                status = self.lifecycle.mark_failed(event.reason)
                error = EngineLoadError(f"Inference engine failed to load: {event.reason}")
                self.last_error = error
                self._idle.notify_all()
            logger.error(f"❌ {error}")
            self._notify_status(status)
            self._notify_error(error)
            return

        with self._lock:
            request = self.in_flight
            if request is None or request.sequence_number != event.sequence_number:
                logger.warning(f"Unexpected error for chunk #{event.sequence_number}: {event.reason}")
                return
            self.in_flight = None
            error = EngineInferenceError(
                f"Transcription failed for chunk #{request.sequence_number}: {event.reason}",
                request.sequence_number,
            )
            stale = request.generation != self.generation
            if not stale:
                self.failures.append(error)
                self.last_error = error
            self._dispatch_next()
            self._idle.notify_all()

        logger.error(f"❌ {error}; continuing with next chunk")
        if not stale:
            self._notify_error(error)

    def _notify_status(self, status: ModelStatus) -> None:
        if self.on_status:
            self.on_status(status)

    def _notify_error(self, error: Dictate2MeError) -> None:
        if self.on_error:
            self.on_error(error)
