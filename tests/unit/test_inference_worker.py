"""Unit tests for InferenceWorker."""

import queue

import numpy as np
import pytest

from dictate2me.models.events import (
    Complete,
    Configure,
    DownloadProgress,
    Ready,
    Transcribe,
    WorkerError,
    STAGE_CONFIGURE,
    STAGE_TRANSCRIBE,
)
from dictate2me.transcription.worker import InferenceWorker


def collect(events: "queue.Queue", count: int, timeout: float = 2.0):
    return [events.get(timeout=timeout) for _ in range(count)]


@pytest.fixture
def events():
    return queue.Queue()


@pytest.mark.unit
class TestInferenceWorker:
    """Test cases for InferenceWorker class."""

    def test_configure_emits_progress_then_ready(self, fake_engine, events):
        worker = InferenceWorker(fake_engine, events.put)
        worker.start()

        worker.post(Configure())
        received = collect(events, 4)

        assert [type(e) for e in received] == [DownloadProgress, DownloadProgress, DownloadProgress, Ready]
        assert received[0].file == "model.bin"
        assert fake_engine.load_calls == 1
        worker.terminate()

    def test_load_failure_becomes_worker_error(self, fake_engine_class, events):
        engine = fake_engine_class(load_error=RuntimeError("model file missing"))
        worker = InferenceWorker(engine, events.put)
        worker.start()

        worker.post(Configure())
        received = collect(events, 3)

        error = received[-1]
        assert isinstance(error, WorkerError)
        assert error.stage == STAGE_CONFIGURE
        assert error.reason == "model file missing"
        assert error.type == "error"
        worker.terminate()

    def test_transcribe_emits_complete(self, fake_engine_class, events):
        engine = fake_engine_class(outputs=[{"text": "hello there"}])
        worker = InferenceWorker(engine, events.put)
        worker.start()

        worker.post(Transcribe(sequence_number=7, samples=np.ones(160, dtype=np.float32), locale="en-GB"))
        (event,) = collect(events, 1)

        assert isinstance(event, Complete)
        assert event.sequence_number == 7
        assert event.output == {"text": "hello there"}
        assert event.processing_time >= 0
        assert engine.calls == [(160, "en-GB")]
        worker.terminate()

    def test_engine_exception_never_crosses_boundary(self, fake_engine_class, events):
        engine = fake_engine_class(fail_on=[0])
        worker = InferenceWorker(engine, events.put)
        worker.start()

        worker.post(Transcribe(sequence_number=1, samples=np.ones(10, dtype=np.float32), locale="en-US"))
        worker.post(Transcribe(sequence_number=2, samples=np.ones(10, dtype=np.float32), locale="en-US"))
        first, second = collect(events, 2)

        assert isinstance(first, WorkerError)
        assert first.stage == STAGE_TRANSCRIBE
        assert first.sequence_number == 1
        assert isinstance(second, Complete)
        assert second.sequence_number == 2
        worker.terminate()

    def test_empty_samples_rejected(self, fake_engine, events):
        worker = InferenceWorker(fake_engine, events.put)
        worker.start()

        worker.post(Transcribe(sequence_number=4, samples=np.array([], dtype=np.float32), locale="en-US"))
        (event,) = collect(events, 1)

        assert isinstance(event, WorkerError)
        assert event.reason == "No audio data provided"
        assert fake_engine.calls == []
        worker.terminate()

    def test_requests_processed_in_post_order(self, fake_engine_class, events):
        engine = fake_engine_class(delays=[0.05, 0.0, 0.0])
        worker = InferenceWorker(engine, events.put)
        worker.start()

        for n in (1, 2, 3):
            worker.post(Transcribe(sequence_number=n, samples=np.ones(10, dtype=np.float32), locale="en-US"))
        received = collect(events, 3)

        assert [e.sequence_number for e in received] == [1, 2, 3]
        worker.terminate()

    def test_terminate_is_idempotent_and_disposes(self, fake_engine, events):
        worker = InferenceWorker(fake_engine, events.put)
        worker.start()

        worker.terminate()
        worker.terminate()

        assert worker.is_alive is False
        assert fake_engine.dispose_calls == 1

    def test_post_after_terminate_dropped(self, fake_engine, events):
        worker = InferenceWorker(fake_engine, events.put)
        worker.start()
        worker.terminate()

        worker.post(Configure())

        assert events.empty()
        assert fake_engine.load_calls == 0

    def test_start_after_terminate_raises(self, fake_engine, events):
        worker = InferenceWorker(fake_engine, events.put)
        worker.terminate()

        with pytest.raises(RuntimeError):
            worker.start()
