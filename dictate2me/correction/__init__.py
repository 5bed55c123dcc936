"""Rule-based correction of dictated text."""

from .engine import apply_corrections, split_into_sentences
from .lexicon import CorrectionLexicon, DEFAULT_LEXICON

__all__ = [
    "apply_corrections",
    "split_into_sentences",
    "CorrectionLexicon",
    "DEFAULT_LEXICON",
]
