# Weighted lexical grading of free-text answers.
#
# Normalizes an answer once, checks required keywords, required phrases and
# optional keywords against it, and folds the three coverage ratios into a
# single 0-100 score using caller-supplied weights.

from __future__ import annotations

import re
import unicodedata
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable

# ---------------------------------------------------------------------------
# Hyperparameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Hyperparameters:
    """Tunable thresholds, pool sizes and scoring defaults."""

    chunk_threshold: int = 10_000
    chunk_size: int = 10_000
    max_workers: int = 4
    parallel_terms_min: int = 16

    weight_tolerance: float = 0.001
    default_required_keywords_weight: float = 0.4
    default_required_phrases_weight: float = 0.4
    default_optional_keywords_weight: float = 0.2

    score_min: float = 0.0
    score_max: float = 100.0
    score_decimals: int = 2


DEFAULT_HYPERPARAMETERS = Hyperparameters()


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class AnswerGraderError(Exception):
    """Base class for errors raised by the grader."""


class InvalidArgumentError(AnswerGraderError, ValueError):
    """A required input is missing, empty or out of range."""


class InvalidStateError(AnswerGraderError, RuntimeError):
    """The criteria are not in a scoreable state (weights do not sum to 1)."""


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class AnswerCriteria:
    """What an answer must (and may) contain, and how much each part counts.

    Built incrementally; nothing is checked until :meth:`validate_weights`
    runs, which :func:`score_answer` does on every call.
    """

    required_keywords: set[str] = field(default_factory=set)
    required_phrases: set[str] = field(default_factory=set)
    optional_keywords: set[str] = field(default_factory=set)
    required_keywords_weight: float = DEFAULT_HYPERPARAMETERS.default_required_keywords_weight
    required_phrases_weight: float = DEFAULT_HYPERPARAMETERS.default_required_phrases_weight
    optional_keywords_weight: float = DEFAULT_HYPERPARAMETERS.default_optional_keywords_weight

    @property
    def weight_sum(self) -> float:
        return self.required_keywords_weight + self.required_phrases_weight + self.optional_keywords_weight

    def validate_weights(self, tolerance: float = DEFAULT_HYPERPARAMETERS.weight_tolerance) -> None:
        total = self.weight_sum
        if abs(total - 1.0) > tolerance:
            raise InvalidStateError(f"Criteria weights must sum to 1.0, got {total:.3f}")


@dataclass(frozen=True)
class AnswerAnalysisResult:
    final_score: float
    required_keywords_score: float
    required_phrases_score: float
    optional_keywords_score: float
    found_required_keywords: frozenset[str]
    missing_required_keywords: frozenset[str]
    found_required_phrases: frozenset[str]
    missing_required_phrases: frozenset[str]
    found_optional_keywords: frozenset[str]
    total_words: int
    total_sentences: int

    def to_payload(self) -> dict[str, object]:
        return {
            "type": "AnswerAnalysisResult",
            "final_score": self.final_score,
            "required_keywords_score": self.required_keywords_score,
            "required_phrases_score": self.required_phrases_score,
            "optional_keywords_score": self.optional_keywords_score,
            "found_required_keywords": sorted(self.found_required_keywords),
            "missing_required_keywords": sorted(self.missing_required_keywords),
            "found_required_phrases": sorted(self.found_required_phrases),
            "missing_required_phrases": sorted(self.missing_required_phrases),
            "found_optional_keywords": sorted(self.found_optional_keywords),
            "total_words": self.total_words,
            "total_sentences": self.total_sentences,
        }


@dataclass(frozen=True)
class _GroupResult:
    found: frozenset[str]
    missing: frozenset[str]
    score: float


# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------

_WORD_RE = re.compile(r"\w+")
_SENTENCE_TERMINATOR_RUN_RE = re.compile(r"[.!?]+")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize(text: str) -> str:
    """Lowercase ``text`` and strip its diacritics.

    ``"Ação"`` becomes ``"acao"``. Idempotent, so normalizing twice is the
    same as normalizing once.

    Raises:
        InvalidArgumentError: If ``text`` is None.
    """
    if text is None:
        raise InvalidArgumentError("Cannot normalize None")
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def _count_words(text: str) -> int:
    return len(_WORD_RE.findall(text))


def _count_sentences(text: str) -> int:
    # Consecutive terminators ("?!", "...") close a single sentence.
    return len(_SENTENCE_TERMINATOR_RUN_RE.findall(text))


def _contains_token(normalized_answer: str, term: str) -> bool:
    pattern = r"(?<!\w)" + re.escape(normalize(term)) + r"(?!\w)"
    return re.search(pattern, normalized_answer) is not None


def _contains_substring(normalized_answer: str, term: str) -> bool:
    return normalize(term) in normalized_answer


def _partition(
    terms: Iterable[str],
    predicate: Callable[[str], bool],
    hp: Hyperparameters,
) -> tuple[frozenset[str], frozenset[str]]:
    """Split ``terms`` into (found, missing) by ``predicate``."""
    ordered = list(terms)
    if len(ordered) >= hp.parallel_terms_min and hp.max_workers > 1:
        with ThreadPoolExecutor(max_workers=min(hp.max_workers, len(ordered))) as pool:
            hits = list(pool.map(predicate, ordered))
    else:
        hits = [predicate(term) for term in ordered]
    found = frozenset(t for t, hit in zip(ordered, hits) if hit)
    missing = frozenset(t for t, hit in zip(ordered, hits) if not hit)
    return found, missing


def _score_group(
    terms: set[str],
    predicate: Callable[[str], bool],
    empty_score: float,
    hp: Hyperparameters,
) -> _GroupResult:
    # Blank terms would match at any word boundary.
    terms = {t for t in terms if t and t.strip()}
    if not terms:
        return _GroupResult(found=frozenset(), missing=frozenset(), score=empty_score)
    found, missing = _partition(terms, predicate, hp)
    return _GroupResult(found=found, missing=missing, score=len(found) * 100.0 / len(terms))


def _final_score(
    keywords: _GroupResult,
    phrases: _GroupResult,
    optional: _GroupResult,
    criteria: AnswerCriteria,
    hp: Hyperparameters,
) -> float:
    weighted = (
        keywords.score * criteria.required_keywords_weight
        + phrases.score * criteria.required_phrases_weight
        + optional.score * criteria.optional_keywords_weight
    )
    return max(hp.score_min, min(hp.score_max, round(weighted, hp.score_decimals)))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score_answer(
    answer: str,
    criteria: AnswerCriteria,
    hyperparameters: Hyperparameters | None = None,
) -> AnswerAnalysisResult:
    """Grade an answer against weighted lexical criteria.

    Keywords (required and optional) must match as whole tokens, so ``"sol"``
    does not match inside ``"isolado"``. Required phrases only need to appear
    as a substring. Matching is case- and accent-insensitive on both sides.

    Args:
        answer: The free-text answer to grade.
        criteria: Terms to look for and the weight of each group.
        hyperparameters: Optional tuning overrides. Uses sensible defaults if omitted.

    Returns:
        An immutable :class:`AnswerAnalysisResult`. Word and sentence counts
        are taken from the original, non-normalized answer.

    Raises:
        InvalidArgumentError: If ``answer`` is empty or whitespace, or
            ``criteria`` is None.
        InvalidStateError: If the criteria weights do not sum to 1.0.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    if answer is None or not answer.strip():
        raise InvalidArgumentError("Answer must not be empty")
    if criteria is None:
        raise InvalidArgumentError("Criteria must be provided")
    criteria.validate_weights(hp.weight_tolerance)

    normalized = normalize(answer)

    def has_token(term: str) -> bool:
        return _contains_token(normalized, term)

    def has_substring(term: str) -> bool:
        return _contains_substring(normalized, term)

    keywords = _score_group(criteria.required_keywords, has_token, hp.score_max, hp)
    phrases = _score_group(criteria.required_phrases, has_substring, hp.score_max, hp)
    optional = _score_group(criteria.optional_keywords, has_token, hp.score_min, hp)

    return AnswerAnalysisResult(
        final_score=_final_score(keywords, phrases, optional, criteria, hp),
        required_keywords_score=keywords.score,
        required_phrases_score=phrases.score,
        optional_keywords_score=optional.score,
        found_required_keywords=keywords.found,
        missing_required_keywords=keywords.missing,
        found_required_phrases=phrases.found,
        missing_required_phrases=phrases.missing,
        found_optional_keywords=optional.found,
        total_words=_count_words(answer),
        total_sentences=_count_sentences(answer),
    )
