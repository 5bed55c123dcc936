"""Capture controller: microphone frames in, normalized chunks out.

Capture is streaming: the device is read continuously and a chunk is flushed
every ``chunk_duration_seconds`` of source audio while recording, plus one
final partial chunk on stop.
"""

import logging
import threading
from typing import Callable, Optional

from .buffer import ChunkBuffer
from .capture import AudioCapture
from .normalizer import decode_pcm16, normalize, TARGET_SAMPLE_RATE, PEAK_CEILING
from ..errors import ChunkDeliveryError, Dictate2MeError, DecodeError, InvalidSilentChunk
from ..models.audio import AudioChunk, AudioStats, CaptureState, NormalizedChunk
from ..models.events import AudioEvent

logger = logging.getLogger(__name__)


class CaptureController:
    """Owns one microphone session at a time and slices it into chunks."""

    def __init__(self,
                 on_chunk: Callable[[NormalizedChunk], None],
                 sample_rate: int = 16000,
                 chunk_size: int = 1024,
                 channels: int = 1,
                 chunk_duration_seconds: float = 4.0,
                 target_sample_rate: int = TARGET_SAMPLE_RATE,
                 peak_ceiling: float = PEAK_CEILING,
                 on_error: Optional[Callable[[Dictate2MeError], None]] = None,
                 capture_factory: Callable[..., AudioCapture] = AudioCapture):
        """Initialize the capture controller.

        Args:
            on_chunk: Receives every NormalizedChunk in sequence order
            sample_rate: Microphone sample rate in Hz
            chunk_size: Frames per device read
            channels: Microphone channel count
            chunk_duration_seconds: Source audio per flushed chunk
            target_sample_rate: Rate chunks are resampled to
            peak_ceiling: Peak amplitude after normalization
            on_error: Receives per-frame and per-chunk errors; they never stop the session
            capture_factory: Builds the device wrapper for each session
        """
        self.on_chunk = on_chunk
        self.on_error = on_error
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.target_sample_rate = target_sample_rate
        self.peak_ceiling = peak_ceiling
        self.capture_factory = capture_factory

        self.buffer = ChunkBuffer(chunk_duration_seconds, sample_rate, channels)
        self.audio_capture: Optional[AudioCapture] = None
        self.state = CaptureState.IDLE
        self.chunks_flushed = 0
        self._lock = threading.RLock()

    @property
    def is_recording(self) -> bool:
        return self.state == CaptureState.RECORDING

    def start(self) -> bool:
        """Start a new recording session.

        Returns:
            True if a session was started, False if one was already active

        Raises:
            PermissionDenied: If the microphone cannot be opened
        """
        with self._lock:
            if self.state != CaptureState.IDLE:
                logger.warning(f"Cannot start recording while {self.state.value}")
                return False

            # New session: partial buffers discarded, sequence restarts at 1
            self.buffer.clear()
            self.chunks_flushed = 0

            capture = self.capture_factory(
                callback=self.on_audio_event,
                sample_rate=self.sample_rate,
                chunk_size=self.chunk_size,
                channels=self.channels,
            )
            self.state = CaptureState.RECORDING
            try:
                capture.start_recording()
            except Exception:
                self.state = CaptureState.IDLE
                raise
            self.audio_capture = capture

        logger.info("🎙️ Capture session started")
        return True

    def stop(self) -> bool:
        """Stop the session, release the device and flush the partial buffer.

        Returns:
            True if a session was stopped, False if none was active
        """
        with self._lock:
            if self.state != CaptureState.RECORDING:
                logger.warning(f"Cannot stop recording while {self.state.value}")
                return False
            self.state = CaptureState.STOPPING

        try:
            try:
                if self.audio_capture:
                    self.audio_capture.stop_recording()
            finally:
                final_chunk = self.buffer.flush()
                if final_chunk is not None:
                    self._emit(final_chunk)
        finally:
            with self._lock:
                self.state = CaptureState.IDLE

        logger.info(f"⏹️ Capture session stopped after {self.chunks_flushed} chunks")
        return True

    def on_audio_event(self, event: AudioEvent) -> None:
        """Handle one raw frame from the device thread."""
        if self.state == CaptureState.IDLE:
            return

        try:
            samples = decode_pcm16(event.audio_data, event.channels)
        except DecodeError as e:
            logger.warning(f"Dropping frame {event.chunk_id}: {e}")
            self._report(e)
            return

        if event.final:
            logger.debug(f"Final frame {event.chunk_id} received")

        for chunk in self.buffer.append(samples):
            self._emit(chunk)

    def _emit(self, chunk: AudioChunk) -> None:
        try:
            normalized = normalize(
                chunk.samples,
                chunk.sample_rate,
                target_rate=self.target_sample_rate,
                sequence_number=chunk.sequence_number,
                ceiling=self.peak_ceiling,
            )
        except DecodeError as e:
            logger.warning(f"Dropping chunk #{chunk.sequence_number}: {e}")
            self._report(e)
            return

        self.chunks_flushed += 1
        if normalized.is_silent:
            logger.info(f"Chunk #{chunk.sequence_number} is silent, forwarding un-normalized")
            self._report(InvalidSilentChunk(
                f"Chunk #{chunk.sequence_number} has zero peak amplitude", chunk.sequence_number))

        logger.debug(f"Forwarding chunk #{normalized.sequence_number} "
                     f"({normalized.duration_seconds:.2f}s, gain={normalized.gain:.2f})")
        try:
            self.on_chunk(normalized)
        except Exception as e:
            logger.error(f"Chunk #{normalized.sequence_number} consumer failed: {e}")
            self._report(ChunkDeliveryError(str(e), normalized.sequence_number))

    def _report(self, error: Dictate2MeError) -> None:
        if self.on_error:
            self.on_error(error)

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        if self.audio_capture:
            stats = self.audio_capture.get_recording_stats()
        else:
            stats = AudioStats(
                is_recording=False,
                duration_seconds=0.0,
                buffer_size=0,
                sample_rate=self.sample_rate,
                chunk_size=self.chunk_size,
                total_chunks=0,
            )
        stats.is_recording = self.is_recording
        stats.buffer_size = self.buffer.buffered_samples
        stats.chunks_flushed = self.chunks_flushed
        return stats
