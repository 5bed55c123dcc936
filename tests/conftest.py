"""Pytest configuration and fixtures for Dictate2Me tests."""

import pytest
import tempfile
import threading
import time
import logging
from pathlib import Path
from unittest.mock import Mock, patch
import numpy as np

from dictate2me.models.audio import AudioStats
from dictate2me.models.events import AudioEvent
from dictate2me.transcription.base import AbstractInferenceEngine


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware or network")
    config.addinivalue_line("markers", "integration: tests wiring several components together")
    config.addinivalue_line("markers", "slow: tests that take more than a second")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone")


def pytest_collection_modifyitems(config, items):
    # Hardware tests only run when explicitly selected with -m hardware
    if "hardware" in (config.getoption("-m") or ""):
        return
    skip_hardware = pytest.mark.skip(reason="needs a real microphone; run with -m hardware")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


class FakeEngine(AbstractInferenceEngine):
    """In-memory inference engine with scripted outputs, delays and failures."""

    service_name = "fake"

    def __init__(self, outputs=None, delays=None, fail_on=None, load_error=None, language="en-US"):
        super().__init__(language)
        self.outputs = list(outputs or [])
        self.delays = list(delays or [])
        self.fail_on = set(fail_on or [])
        self.load_error = load_error
        self.load_calls = 0
        self.dispose_calls = 0
        self.calls = []
        self.lock = threading.Lock()

    def load(self, progress_callback=None):
        self.load_calls += 1
        if progress_callback:
            progress_callback(40.0, "model.bin")
            progress_callback(20.0, "model.bin")
        if self.load_error is not None:
            raise self.load_error
        if progress_callback:
            progress_callback(100.0, "model.bin")

    def transcribe(self, samples, locale):
        with self.lock:
            index = len(self.calls)
            self.calls.append((len(samples), locale))
        if index < len(self.delays):
            time.sleep(self.delays[index])
        if index in self.fail_on:
            raise RuntimeError(f"inference failed on call {index}")
        if index < len(self.outputs):
            return self.outputs[index]
        return {"text": f"chunk {index + 1}"}

    def dispose(self):
        self.dispose_calls += 1


class FakeWorker:
    """Stands in for InferenceWorker; records posted requests without running them."""

    def __init__(self, engine, on_message):
        self.engine = engine
        self.on_message = on_message
        self.posted = []
        self.started = False
        self.terminate_calls = 0

    def start(self):
        self.started = True

    def post(self, message):
        self.posted.append(message)

    def terminate(self, timeout=5.0):
        self.terminate_calls += 1


class FakeCapture:
    """Microphone stand-in; the test pushes PCM frames through ``push``."""

    instances = []

    def __init__(self, callback, sample_rate=16000, chunk_size=1024, channels=1, fail_with=None):
        self.callback = callback
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.fail_with = fail_with
        self.started = False
        self.stopped = False
        FakeCapture.instances.append(self)

    def start_recording(self):
        if self.fail_with is not None:
            raise self.fail_with
        self.started = True

    def stop_recording(self):
        self.stopped = True

    def push(self, pcm: bytes):
        self.callback(AudioEvent(chunk_id="test", audio_data=pcm, timestamp=time.time(),
                                 sequence_number=0, sample_rate=self.sample_rate,
                                 channels=self.channels))

    def get_recording_stats(self):
        return AudioStats(is_recording=self.started and not self.stopped, duration_seconds=1.0,
                          buffer_size=0, sample_rate=self.sample_rate,
                          chunk_size=self.chunk_size, total_chunks=3, peak_level=0.4)


@pytest.fixture
def fake_capture_class():
    """The FakeCapture class with a fresh ``instances`` list."""
    FakeCapture.instances = []
    yield FakeCapture
    FakeCapture.instances = []


@pytest.fixture
def fake_engine_class():
    """The FakeEngine class, for tests that script their own engine."""
    return FakeEngine


@pytest.fixture
def fake_engine():
    """Engine that answers 'chunk N' for the Nth request."""
    return FakeEngine()


@pytest.fixture
def fake_worker_factory():
    """Worker factory that keeps every FakeWorker it builds in ``.workers``."""
    workers = []

    def factory(engine, on_message):
        worker = FakeWorker(engine, on_message)
        workers.append(worker)
        return worker

    factory.workers = workers
    return factory


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t) * 0.5

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        def read_silence(frames, exception_on_overflow=False):
            time.sleep(0.001)
            return b'\x00' * (frames * 2)

        mock_stream.read.side_effect = read_silence
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def audio_test_data():
    """Generate various audio test data patterns."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000, as_bytes=True):
        """Generate audio data for testing.

        Args:
            pattern: Type of audio pattern ('sine', 'noise', 'silence')
            duration_seconds: Duration of audio
            sample_rate: Sample rate in Hz
            as_bytes: Return 16-bit PCM bytes instead of float32 samples

        Returns:
            bytes or np.ndarray
        """
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            # Generate sine wave at half scale
            t = np.linspace(0, duration_seconds, samples, False)
            wave_data = 0.5 * np.sin(2 * np.pi * 440 * t)
        elif pattern == "noise":
            # Generate white noise
            wave_data = np.random.uniform(-0.5, 0.5, samples)
        elif pattern == "silence":
            # Generate silence
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        if not as_bytes:
            return wave_data.astype(np.float32)

        # Convert to 16-bit integers
        audio_data = (wave_data * 32767).astype(np.int16)
        return audio_data.tobytes()

    return generate_audio


@pytest.fixture
def config_file(temp_data_dir):
    """Write a YAML config into a temp dir and return its path."""
    def write(content: str) -> str:
        path = Path(temp_data_dir) / "dictate2me.yaml"
        path.write_text(content, encoding="utf-8")
        return str(path)

    return write

