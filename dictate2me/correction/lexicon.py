"""Word lists driving the correction pass.

The lists are data, not logic: a ``correction`` section in the YAML config
can replace any of them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Regular expressions; matched case-insensitively with an optional trailing
# comma and the whitespace that follows
DEFAULT_FILLERS: Tuple[str, ...] = (
    r"\b(?:um+|uh+|er+|ah+)\b",
    r"\byou know\b",
    r"\bbasically\b",
    r"\bliterally\b",
    r"\bactually\b",
    r"\b(?:sort|kind) of\b",
    r"\bI mean\b",
)

# Discourse transitions that usually open a new sentence
DEFAULT_BOUNDARY_TRIGGERS: Tuple[str, ...] = (
    "however", "therefore", "moreover", "furthermore", "additionally",
    "consequently", "nevertheless", "meanwhile", "subsequently",
    "in addition", "as a result", "on the other hand", "in conclusion",
    "first", "second", "third", "finally", "next", "then", "also",
    "but", "and then", "so then", "after that",
)

DEFAULT_CONTRACTIONS: Tuple[Tuple[str, str], ...] = (
    ("gonna", "going to"),
    ("wanna", "want to"),
    ("gotta", "got to"),
)

DEFAULT_LONG_SEGMENT_THRESHOLD = 100


@dataclass(frozen=True)
class CorrectionLexicon:
    """Catalogues used by apply_corrections."""
    fillers: Tuple[str, ...] = DEFAULT_FILLERS
    boundary_triggers: Tuple[str, ...] = DEFAULT_BOUNDARY_TRIGGERS
    contractions: Tuple[Tuple[str, str], ...] = DEFAULT_CONTRACTIONS
    long_segment_threshold: int = DEFAULT_LONG_SEGMENT_THRESHOLD

    @classmethod
    def from_config(cls, section: Optional[Mapping[str, Any]]) -> "CorrectionLexicon":
        """Build a lexicon from the ``correction`` config section.

        Missing keys keep their defaults.

        Raises:
            ValueError: If a value has the wrong shape
        """
        if not section:
            return DEFAULT_LEXICON

        fillers = section.get("fillers", DEFAULT_FILLERS)
        triggers = section.get("boundary_triggers", DEFAULT_BOUNDARY_TRIGGERS)
        contractions = section.get("contractions", DEFAULT_CONTRACTIONS)
        threshold = section.get("long_segment_threshold", DEFAULT_LONG_SEGMENT_THRESHOLD)

        if isinstance(contractions, Mapping):
            contractions = tuple(contractions.items())
        try:
            lexicon = cls(
                fillers=tuple(str(f) for f in fillers),
                boundary_triggers=tuple(str(t).lower() for t in triggers),
                contractions=tuple((str(k), str(v)) for k, v in contractions),
                long_segment_threshold=int(threshold),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid correction lexicon in configuration: {e}") from e

        logger.debug(f"Loaded correction lexicon: {len(lexicon.fillers)} fillers, "
                     f"{len(lexicon.boundary_triggers)} triggers, "
                     f"{len(lexicon.contractions)} contractions")
        return lexicon


DEFAULT_LEXICON = CorrectionLexicon()
