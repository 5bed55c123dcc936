"""Fixed-duration chunk buffer for streaming transcription."""

import logging
import threading
from typing import List, Optional

import numpy as np

from ..models.audio import AudioChunk

logger = logging.getLogger(__name__)


class ChunkBuffer:
    """Accumulates float samples and cuts them into sequence-numbered chunks."""

    def __init__(self, duration_seconds: float, sample_rate: int = 16000, channels: int = 1):
        """Initialize chunk buffer.

        Args:
            duration_seconds: Chunk duration that triggers a flush
            sample_rate: Source sample rate; the threshold is measured at this rate
            channels: Number of audio channels in appended frames
        """
        if duration_seconds <= 0:
            raise ValueError(f"Chunk duration must be positive, got {duration_seconds}")

        self.duration_seconds = duration_seconds
        self.sample_rate = sample_rate
        self.channels = channels
        self.max_samples = int(round(sample_rate * duration_seconds))

        self.frames: List[np.ndarray] = []
        self.buffered_samples = 0
        self.next_sequence = 1
        self.lock = threading.Lock()

        logger.info(f"ChunkBuffer initialized: {duration_seconds}s chunks, "
                    f"{self.max_samples} samples @ {sample_rate}Hz")

    def append(self, samples: np.ndarray) -> List[AudioChunk]:
        """Add decoded samples; return any chunks that became full.

        A frame that straddles the threshold is split so every returned chunk
        holds exactly ``max_samples`` samples.
        """
        if samples.size == 0:
            return []

        flushed = []
        with self.lock:
            self.frames.append(samples)
            self.buffered_samples += len(samples)

            while self.buffered_samples >= self.max_samples:
                combined = np.concatenate(self.frames)
                chunk_samples = combined[:self.max_samples]
                remainder = combined[self.max_samples:]
                flushed.append(self._make_chunk(chunk_samples))

                self.frames = [remainder] if len(remainder) else []
                self.buffered_samples = len(remainder)

        for chunk in flushed:
            logger.debug(f"Flushed full chunk #{chunk.sequence_number}: {len(chunk.samples)} samples")
        return flushed

    def flush(self) -> Optional[AudioChunk]:
        """Flush the partial buffer as a final chunk, or None if empty."""
        with self.lock:
            if not self.buffered_samples:
                return None
            chunk = self._make_chunk(np.concatenate(self.frames))
            self.frames = []
            self.buffered_samples = 0

        logger.debug(f"Flushed partial chunk #{chunk.sequence_number}: "
                     f"{len(chunk.samples)} samples ({chunk.duration_seconds:.2f}s)")
        return chunk

    def _make_chunk(self, samples: np.ndarray) -> AudioChunk:
        # Caller holds the lock
        chunk = AudioChunk(
            samples=samples,
            sample_rate=self.sample_rate,
            sequence_number=self.next_sequence,
            channels=self.channels,
        )
        self.next_sequence += 1
        return chunk

    @property
    def buffered_seconds(self) -> float:
        return self.buffered_samples / self.sample_rate

    def clear(self) -> None:
        """Discard buffered samples and restart sequence numbering."""
        with self.lock:
            self.frames = []
            self.buffered_samples = 0
            self.next_sequence = 1
            logger.debug("Chunk buffer cleared")
