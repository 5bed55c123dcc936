"""Rule-based correction pass for raw dictation.

Stages run in a fixed order, each on the output of the previous one:

1. filler removal
2. whitespace collapse
3. sentence-boundary inference (plus an advisory long-segment check)
4. capitalization after periods
5. capitalization of the first letter
6. standalone "i" -> "I"
7. terminal punctuation
8. dictation artifacts (contractions, repeated words, spacing around , and .)

Each Change records the offset in the text its stage received. The pass is
not guaranteed to be idempotent: running it twice can change text again.
"""

import re
from functools import lru_cache
from typing import List, Pattern, Tuple

from .lexicon import CorrectionLexicon, DEFAULT_LEXICON
from ..models.correction import Change, ChangeType, CorrectionResult

_MULTI_SPACE = re.compile(r"\s{2,}")
_AFTER_PERIOD = re.compile(r"\.\s+([a-z])")
_LEADING_LOWER = re.compile(r"^[a-z]")
_PRONOUN_I = re.compile(r"\bi\b")
_TERMINAL = re.compile(r"[.!?]$")
_SEGMENT = re.compile(r"[^.!?]+")
_REPEATED_WORD = re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE)
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([,.])")
_SPACES_AFTER_PUNCT = re.compile(r"([,.])\s{2,}")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_CLAUSE_PUNCTUATION = ".!?,;:"


@lru_cache(maxsize=8)
def _compile(lexicon: CorrectionLexicon) -> Tuple[List[Pattern], Pattern, List[Tuple[Pattern, str]]]:
    fillers = [re.compile(rf"(?:{p}),?(?:\s+|$)", re.IGNORECASE) for p in lexicon.fillers]

    # Longest phrase first so "and then" wins over "then"
    triggers = sorted(set(lexicon.boundary_triggers), key=len, reverse=True)
    alternation = "|".join(re.escape(t).replace(r"\ ", r"\s+") for t in triggers)
    boundary = re.compile(rf"(\s)({alternation})\s", re.IGNORECASE) if triggers else None

    contractions = [(re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE), expansion)
                    for word, expansion in lexicon.contractions]
    return fillers, boundary, contractions


def apply_corrections(text: str, lexicon: CorrectionLexicon = DEFAULT_LEXICON) -> CorrectionResult:
    """Apply the rule-based correction pass to dictated text.

    Args:
        text: Raw transcript, possibly empty
        lexicon: Word lists to use

    Returns:
        CorrectionResult with the trimmed corrected text and the ordered changes
    """
    if not text or not text.strip():
        return CorrectionResult(original=text, corrected="", changes=())

    fillers, boundary, contractions = _compile(lexicon)
    changes: List[Change] = []

    result = _remove_fillers(text, fillers, changes)
    result = _collapse_whitespace(result, changes)
    result = _infer_sentence_boundaries(result, boundary, lexicon.long_segment_threshold, changes)
    result = _capitalize_after_periods(result, changes)
    result = _capitalize_first_letter(result, changes)
    result = _PRONOUN_I.sub("I", result)
    result = _ensure_terminal_punctuation(result, changes)
    result = _fix_artifacts(result, contractions, changes)

    return CorrectionResult(original=text, corrected=result.strip(), changes=tuple(changes))


def _remove_fillers(text: str, patterns: List[Pattern], changes: List[Change]) -> str:
    result = text
    for pattern in patterns:
        for match in pattern.finditer(result):
            changes.append(Change(ChangeType.FILLER,
                                  f'Removed filler: "{match.group(0).strip()}"',
                                  match.start()))
        result = pattern.sub("", result)
    return result


def _collapse_whitespace(text: str, changes: List[Change]) -> str:
    for match in _MULTI_SPACE.finditer(text):
        changes.append(Change(ChangeType.SPACING, "Fixed multiple spaces", match.start()))
    return _MULTI_SPACE.sub(" ", text)


def _infer_sentence_boundaries(text: str, boundary, threshold: int, changes: List[Change]) -> str:
    result = text
    if boundary is not None:
        def split(match) -> str:
            before = match.start() - 1
            if before < 0 or match.string[before] in _CLAUSE_PUNCTUATION:
                return match.group(0)
            word = match.group(2)
            changes.append(Change(ChangeType.BOUNDARY, f'Added period before "{word}"', match.start()))
            return f". {word[0].upper()}{word[1:]} "

        result = boundary.sub(split, result)

    # Advisory only
    for match in _SEGMENT.finditer(result):
        if len(match.group(0)) > threshold:
            changes.append(Change(ChangeType.BOUNDARY,
                                  "Long sentence detected - may need manual review",
                                  match.start()))
    return result


def _capitalize_after_periods(text: str, changes: List[Change]) -> str:
    def capitalize(match) -> str:
        changes.append(Change(ChangeType.CASING, "Capitalized after period", match.start()))
        return f". {match.group(1).upper()}"

    return _AFTER_PERIOD.sub(capitalize, text)


def _capitalize_first_letter(text: str, changes: List[Change]) -> str:
    if not _LEADING_LOWER.match(text):
        return text
    changes.append(Change(ChangeType.CASING, "Capitalized first letter", 0))
    return text[0].upper() + text[1:]


def _ensure_terminal_punctuation(text: str, changes: List[Change]) -> str:
    stripped = text.strip()
    if not stripped or _TERMINAL.search(stripped):
        return text
    changes.append(Change(ChangeType.PUNCTUATION, "Added ending period", len(text)))
    return stripped + "."


def _fix_artifacts(text: str, contractions: List[Tuple[Pattern, str]], changes: List[Change]) -> str:
    result = text

    for pattern, expansion in contractions:
        def expand(match, expansion=expansion) -> str:
            changes.append(Change(ChangeType.ARTIFACT,
                                  f'Expanded "{match.group(0)}" to "{expansion}"',
                                  match.start()))
            if match.group(0)[0].isupper():
                return expansion[0].upper() + expansion[1:]
            return expansion

        result = pattern.sub(expand, result)

    def dedupe(match) -> str:
        changes.append(Change(ChangeType.ARTIFACT, f'Removed repeated word "{match.group(1)}"', match.start()))
        return match.group(1)

    result = _REPEATED_WORD.sub(dedupe, result)

    def tighten(match) -> str:
        changes.append(Change(ChangeType.SPACING, "Removed space before punctuation", match.start()))
        return match.group(1)

    result = _SPACE_BEFORE_PUNCT.sub(tighten, result)

    def single_space(match) -> str:
        changes.append(Change(ChangeType.SPACING, "Collapsed spaces after punctuation", match.start()))
        return f"{match.group(1)} "

    return _SPACES_AFTER_PUNCT.sub(single_space, result)


def split_into_sentences(text: str) -> List[str]:
    """Split text after ., ! or ? followed by whitespace, dropping empty pieces."""
    return [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
