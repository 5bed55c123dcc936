"""Correction-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class ChangeType(Enum):
    """Category of a correction."""
    FILLER = "filler"
    SPACING = "spacing"
    CASING = "casing"
    BOUNDARY = "boundary"
    PUNCTUATION = "punctuation"
    ARTIFACT = "artifact"


@dataclass(frozen=True)
class Change:
    """A single correction applied to the text."""
    type: ChangeType
    description: str
    position: int  # Offset in the text the stage operated on


@dataclass(frozen=True)
class CorrectionResult:
    """Result of running the correction pass."""
    original: str
    corrected: str
    changes: Tuple[Change, ...] = field(default_factory=tuple)

    def changes_of(self, change_type: ChangeType) -> Tuple[Change, ...]:
        """Return only the changes of one category."""
        return tuple(c for c in self.changes if c.type == change_type)
