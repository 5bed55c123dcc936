"""Isolated inference worker.

The worker owns the engine on its own thread. Requests enter through a FIFO
inbox and events leave through a single callback; no exception raised by the
engine crosses the boundary without first becoming a ``WorkerError`` message.
"""

import logging
import queue
import threading
import time
from typing import Callable, Optional

from .base import AbstractInferenceEngine
from ..models.events import (
    Configure,
    Transcribe,
    DownloadProgress,
    Ready,
    Complete,
    WorkerError,
    WorkerEvent,
    WorkerRequest,
    STAGE_CONFIGURE,
    STAGE_TRANSCRIBE,
)

logger = logging.getLogger(__name__)


class InferenceWorker:
    """Runs an inference engine on a dedicated thread."""

    def __init__(self,
                 engine: AbstractInferenceEngine,
                 on_message: Callable[[WorkerEvent], None],
                 name: str = "inference"):
        self.engine = engine
        self.on_message = on_message
        self.name = name

        self.inbox: "queue.Queue[Optional[WorkerRequest]]" = queue.Queue()
        self.thread: Optional[threading.Thread] = None
        self.terminated = False
        self._lock = threading.Lock()

    def start(self) -> None:
        """Start the worker thread."""
        with self._lock:
            if self.terminated:
                raise RuntimeError(f"Worker {self.name} has been terminated")
            if self.thread is not None:
                return
            self.thread = threading.Thread(target=self._worker_loop, daemon=True)
            self.thread.name = f"worker_{self.name}"
            self.thread.start()
        logger.info(f"Started inference worker {self.name}")

    @property
    def is_alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def post(self, message: WorkerRequest) -> None:
        """Queue a request for the worker thread."""
        if self.terminated:
            logger.warning(f"Dropping {message.type} posted to terminated worker {self.name}")
            return
        self.inbox.put(message)

    def _worker_loop(self) -> None:
        thread_name = threading.current_thread().name
        logger.debug(f"Worker thread {thread_name} starting")

        while True:
            message = self.inbox.get()
            try:
                if message is None:
                    logger.debug(f"Worker {thread_name} received sentinel, exiting.")
                    break
                self._handle(message)
            except Exception as e:
                # Anything escaping _handle is a bug in our own emit path
                logger.error(f"Unhandled exception in worker {thread_name}: {e}", exc_info=True)
            finally:
                self.inbox.task_done()

        logger.debug(f"Worker thread {thread_name} exiting")

    def _handle(self, message: WorkerRequest) -> None:
        if isinstance(message, Configure):
            self._configure()
        elif isinstance(message, Transcribe):
            self._transcribe(message)
        else:
            logger.error(f"Unknown worker request: {message!r}")

    def _configure(self) -> None:
        logger.info(f"[{self.name}] Loading inference engine {self.engine.service_name}...")

        def report_progress(progress: float, file: Optional[str] = None) -> None:
            self._emit(DownloadProgress(progress=progress, file=file))

        try:
            self.engine.load(progress_callback=report_progress)
        except Exception as e:
            logger.error(f"[{self.name}] Error loading engine: {e}")
            self._emit(WorkerError(reason=str(e) or e.__class__.__name__, stage=STAGE_CONFIGURE))
            return

        logger.info(f"[{self.name}] ✅ Engine loaded")
        self._emit(Ready())

    def _transcribe(self, message: Transcribe) -> None:
        if message.samples is None or len(message.samples) == 0:
            logger.error(f"[{self.name}] No audio data provided for #{message.sequence_number}")
            self._emit(WorkerError(reason="No audio data provided",
                                   stage=STAGE_TRANSCRIBE,
                                   sequence_number=message.sequence_number))
            return

        start_time = time.time()
        try:
            output = self.engine.transcribe(message.samples, message.locale)
        except Exception as e:
            logger.error(f"[{self.name}] Transcription error on #{message.sequence_number}: {e}")
            self._emit(WorkerError(reason=str(e) or e.__class__.__name__,
                                   stage=STAGE_TRANSCRIBE,
                                   sequence_number=message.sequence_number))
            return

        processing_time = time.time() - start_time
        logger.debug(f"[{self.name}] Transcribed #{message.sequence_number} in {processing_time:.3f}s")
        self._emit(Complete(sequence_number=message.sequence_number,
                            output=output,
                            processing_time=processing_time))

    def _emit(self, event: WorkerEvent) -> None:
        self.on_message(event)

    def terminate(self, timeout: float = 5.0) -> None:
        """Stop the worker thread and dispose the engine. Safe to call repeatedly."""
        with self._lock:
            if self.terminated:
                return
            self.terminated = True
            thread = self.thread

        if thread is not None:
            self.inbox.put(None)
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"Worker thread {thread.name} did not terminate cleanly.")

        try:
            self.engine.dispose()
        except Exception as e:
            logger.warning(f"Error disposing engine {self.engine.service_name}: {e}")

        logger.info(f"Inference worker {self.name} terminated")
