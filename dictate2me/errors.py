"""Error taxonomy for Dictate2Me.

Every error carries a stable ``reason`` string so callers (and the pub/sub
error topic) can report it without depending on exception class names.
"""

from typing import Optional


class Dictate2MeError(Exception):
    """Base class for all Dictate2Me errors."""

    reason = "error"

    def __init__(self, message: str, sequence_number: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.sequence_number = sequence_number

    def __str__(self) -> str:
        return self.message


class PermissionDenied(Dictate2MeError):
    """Microphone access was refused or no input device is available."""

    reason = "permission_denied"


class DecodeError(Dictate2MeError):
    """Audio data was malformed or zero-length."""

    reason = "decode_error"


class EngineLoadError(Dictate2MeError):
    """The inference engine failed to initialize."""

    reason = "engine_load_error"


class EngineInferenceError(Dictate2MeError):
    """The inference engine failed on a single chunk."""

    reason = "engine_inference_error"


class InvalidSilentChunk(Dictate2MeError):
    """A chunk had zero (or non-finite) peak and was forwarded un-normalized."""

    reason = "invalid_silent_chunk"


class InvalidTransitionError(Dictate2MeError):
    """A lifecycle transition that the state machine does not allow."""

    reason = "invalid_transition"


class ChunkDeliveryError(Dictate2MeError):
    """The chunk consumer raised while handling a normalized chunk."""

    reason = "chunk_delivery_error"
