"""Resampling and peak normalization of captured audio.

Resampling uses polyphase FIR filtering (``scipy.signal.resample_poly``), which
applies an anti-aliasing low-pass filter and yields ``ceil(n * up / down)``
output samples, i.e. ``ceil(duration_seconds * target_rate)``. Same-rate input
is passed through untouched.
"""

import logging
from math import gcd
from typing import Tuple

import numpy as np
from scipy import signal

from ..errors import DecodeError
from ..models.audio import NormalizedChunk

logger = logging.getLogger(__name__)

TARGET_SAMPLE_RATE = 16000
PEAK_CEILING = 0.95


def decode_pcm16(data: bytes, channels: int = 1) -> np.ndarray:
    """Decode little-endian 16-bit PCM bytes into float32 samples.

    Args:
        data: Raw PCM bytes as read from the microphone
        channels: Number of interleaved channels

    Returns:
        float32 array in [-1, 1); shape (frames,) for mono,
        (frames, channels) otherwise

    Raises:
        DecodeError: If the data is empty or not a whole number of frames
    """
    if not data:
        raise DecodeError("Zero-length audio data")

    frame_bytes = 2 * channels
    if len(data) % frame_bytes:
        raise DecodeError(
            f"Malformed PCM data: {len(data)} bytes is not a multiple of {frame_bytes}")

    try:
        samples = np.frombuffer(data, dtype="<i2").astype(np.float32) / 32768.0
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Failed to decode PCM data: {e}") from e

    if channels > 1:
        samples = samples.reshape(-1, channels)
    return samples


def to_mono(samples: np.ndarray) -> np.ndarray:
    """Average a (frames, channels) array down to one channel."""
    if samples.ndim == 1:
        return samples
    if samples.ndim == 2:
        return samples.mean(axis=1).astype(np.float32)
    raise DecodeError(f"Unsupported sample array shape: {samples.shape}")


def measure(samples: np.ndarray) -> Tuple[float, float]:
    """Return (peak, rms) of the samples."""
    if samples.size == 0:
        return 0.0, 0.0
    as64 = samples.astype(np.float64)
    peak = float(np.max(np.abs(as64)))
    rms = float(np.sqrt(np.mean(as64 * as64)))
    return peak, rms


def resample(samples: np.ndarray, source_rate: int, target_rate: int = TARGET_SAMPLE_RATE) -> np.ndarray:
    """Resample mono samples from source_rate to target_rate."""
    if source_rate <= 0 or target_rate <= 0:
        raise DecodeError(f"Invalid sample rates: {source_rate} -> {target_rate}")
    if source_rate == target_rate:
        return samples

    g = gcd(source_rate, target_rate)
    up = target_rate // g
    down = source_rate // g
    resampled = signal.resample_poly(samples, up, down)
    return resampled.astype(np.float32)


def normalize(samples,
              source_rate: int,
              target_rate: int = TARGET_SAMPLE_RATE,
              sequence_number: int = 0,
              ceiling: float = PEAK_CEILING) -> NormalizedChunk:
    """Resample to target_rate, downmix to mono and peak-normalize.

    Args:
        samples: Mono samples, or a (frames, channels) array
        source_rate: Sample rate of the input in Hz
        target_rate: Output sample rate in Hz
        sequence_number: Sequence number carried into the result
        ceiling: Peak amplitude after normalization

    Returns:
        NormalizedChunk; flagged silent (gain 1.0) when peak is zero or non-finite

    Raises:
        DecodeError: If the input is empty or cannot be interpreted as audio
    """
    try:
        data = np.asarray(samples, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Cannot interpret samples as audio: {e}", sequence_number) from e

    if data.size == 0:
        raise DecodeError("Zero-length audio chunk", sequence_number)

    mono = to_mono(data)
    resampled = resample(mono, source_rate, target_rate)
    peak, rms = measure(resampled)

    if peak == 0.0 or not np.isfinite(peak):
        logger.debug(f"Chunk {sequence_number} is silent (peak={peak}), skipping gain")
        return NormalizedChunk(
            samples=resampled,
            sample_rate=target_rate,
            sequence_number=sequence_number,
            peak=peak,
            rms=rms,
            gain=1.0,
            source_sample_rate=source_rate,
            is_silent=True,
        )

    gain = ceiling / peak
    normalized = np.clip(resampled * np.float32(gain), -ceiling, ceiling).astype(np.float32)

    logger.debug(f"Normalized chunk {sequence_number}: {len(mono)} samples @ {source_rate}Hz -> "
                 f"{len(normalized)} @ {target_rate}Hz, peak={peak:.4f}, rms={rms:.4f}, gain={gain:.3f}")

    return NormalizedChunk(
        samples=normalized,
        sample_rate=target_rate,
        sequence_number=sequence_number,
        peak=peak,
        rms=rms,
        gain=gain,
        source_sample_rate=source_rate,
    )
