"""Unit tests for ChunkBuffer."""

import numpy as np
import pytest

from dictate2me.audio.buffer import ChunkBuffer


@pytest.mark.unit
class TestChunkBuffer:
    """Test cases for ChunkBuffer class."""

    def test_threshold_measured_at_source_rate(self):
        buffer = ChunkBuffer(duration_seconds=4.0, sample_rate=44100)

        assert buffer.max_samples == 176400

    def test_invalid_duration_raises(self):
        with pytest.raises(ValueError):
            ChunkBuffer(duration_seconds=0)

    def test_no_chunk_below_threshold(self):
        buffer = ChunkBuffer(duration_seconds=1.0, sample_rate=1000)

        assert buffer.append(np.ones(999, dtype=np.float32)) == []
        assert buffer.buffered_samples == 999
        assert buffer.buffered_seconds == pytest.approx(0.999)

    def test_straddling_frame_is_split_exactly(self):
        buffer = ChunkBuffer(duration_seconds=1.0, sample_rate=1000)
        buffer.append(np.zeros(600, dtype=np.float32))

        chunks = buffer.append(np.ones(700, dtype=np.float32))

        assert len(chunks) == 1
        assert len(chunks[0].samples) == 1000
        assert chunks[0].sequence_number == 1
        assert buffer.buffered_samples == 300
        # The remainder starts with the first sample past the threshold
        remainder = buffer.flush()
        np.testing.assert_array_equal(remainder.samples, np.ones(300, dtype=np.float32))

    def test_large_frame_produces_several_chunks(self):
        buffer = ChunkBuffer(duration_seconds=0.1, sample_rate=1000)

        chunks = buffer.append(np.arange(350, dtype=np.float32))

        assert [c.sequence_number for c in chunks] == [1, 2, 3]
        assert chunks[1].samples[0] == 100
        assert buffer.buffered_samples == 50

    def test_flush_partial_buffer(self):
        buffer = ChunkBuffer(duration_seconds=1.0, sample_rate=1000)
        buffer.append(np.ones(250, dtype=np.float32))

        chunk = buffer.flush()

        assert chunk is not None
        assert len(chunk.samples) == 250
        assert chunk.duration_seconds == pytest.approx(0.25)
        assert buffer.buffered_samples == 0

    def test_flush_empty_returns_none(self):
        buffer = ChunkBuffer(duration_seconds=1.0)

        assert buffer.flush() is None

    def test_clear_restarts_sequence(self):
        buffer = ChunkBuffer(duration_seconds=0.1, sample_rate=1000)
        buffer.append(np.ones(250, dtype=np.float32))

        buffer.clear()
        chunks = buffer.append(np.ones(100, dtype=np.float32))

        assert chunks[0].sequence_number == 1
        assert buffer.flush() is None

    def test_empty_frame_ignored(self):
        buffer = ChunkBuffer(duration_seconds=1.0)

        assert buffer.append(np.array([], dtype=np.float32)) == []
