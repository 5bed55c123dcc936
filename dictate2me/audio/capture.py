"""Microphone capture with a background read thread and frame callbacks."""

import logging
import time
from datetime import datetime
from threading import Thread, Event, Lock
from typing import Callable, Optional

import numpy as np
import pyaudio

from ..errors import PermissionDenied
from ..models.audio import AudioStats
from ..models.events import AudioEvent

logger = logging.getLogger(__name__)


class AudioCapture:
    """Owns the microphone device and publishes raw PCM frames."""

    def __init__(
        self,
        callback: Callable[[AudioEvent], None],
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            callback: Called from the read thread with every AudioEvent
            sample_rate: Device sample rate in Hz
            chunk_size: Frames per device read
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.audio_event_callback = callback
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        self.error: Optional[Exception] = None

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        # Device handles, released by _release_device
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self._release_lock = Lock()

    def start_recording(self) -> None:
        """Open the device and start reading in a background thread.

        Raises:
            PermissionDenied: If the input device cannot be opened
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio recording")
        self.stop_event.clear()
        self.error = None
        self.total_chunks = 0
        self.peak_level = 0.0

        self.stream = self.__open_audio_stream()
        self.start_time = datetime.now()

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.is_recording = True
        self.recording_thread.start()

    def stop_recording(self) -> None:
        """Stop recording and release the device before returning."""
        if not self.is_recording:
            logger.debug("No recording in progress")
            return

        logger.info("Stopping audio recording")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        # The read thread releases on exit; this covers a thread that never ran
        self._release_device()
        self.is_recording = False
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")

    def __open_audio_stream(self):
        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=None
            )
        except (OSError, IOError) as e:
            logger.error(f"Could not open microphone: {e}")
            self._release_device()
            raise PermissionDenied(
                "Could not access microphone. Please ensure permissions are granted.") from e

        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def __read_audio_chunk(self) -> bytes:
        stream = self.stream
        if stream is None:
            raise OSError("Audio stream already released")
        audio_chunk = stream.read(
            self.chunk_size,
            exception_on_overflow=False
        )
        self.total_chunks += 1
        return audio_chunk

    def __publish_audio_event(self, audio_chunk: bytes, final: bool = False) -> None:
        self.peak_level = self._frame_peak(audio_chunk)
        audio_event = AudioEvent(
            chunk_id=f"chunk_{self.total_chunks}",
            audio_data=audio_chunk,
            timestamp=time.time(),
            sequence_number=self.total_chunks,
            sample_rate=self.sample_rate,
            channels=self.channels,
            final=final
        )
        self.audio_event_callback(audio_event)

    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        try:
            while not self.stop_event.is_set():
                audio_chunk = self.__read_audio_chunk()
                self.__publish_audio_event(audio_chunk)
            # Final frame, so consumers know we are done
            audio_chunk = self.__read_audio_chunk()
            self.__publish_audio_event(audio_chunk, final=True)
        except (OSError, IOError) as e:
            logger.error(f"Audio stream read failed: {e}")
            self.error = e
        finally:
            self._release_device()

    def _release_device(self) -> None:
        with self._release_lock:
            stream, self.stream = self.stream, None
            instance, self.pyaudio_instance = self.pyaudio_instance, None
        if stream:
            try:
                stream.stop_stream()
            finally:
                stream.close()
        if instance:
            instance.terminate()
            logger.debug("Microphone released")

    @staticmethod
    def _frame_peak(audio_chunk: bytes) -> float:
        usable = len(audio_chunk) - len(audio_chunk) % 2
        if usable <= 0:
            return 0.0
        samples = np.frombuffer(audio_chunk[:usable], dtype="<i2")
        return float(np.max(np.abs(samples.astype(np.int32)))) / 32768.0

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            buffer_size=0,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )

    def __del__(self):
        """Ensure resources are cleaned up on deletion."""
        if self.is_recording:
            self.stop_recording()
