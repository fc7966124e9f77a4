# Per-level text analysis with pluggable scoring functions.
#
# Maps text into words, phrases and paragraphs concurrently, scores every item
# with the functions registered for its level, and averages the valid scores.

from __future__ import annotations

import logging
import numbers
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Protocol, Sequence

from data_designer_answer_grader.core import DEFAULT_HYPERPARAMETERS, Hyperparameters, InvalidArgumentError
from data_designer_answer_grader.mapping import map_paragraphs, map_phrases, map_words

logger = logging.getLogger(__name__)

ScoreFn = Callable[[str], float]


class TextLevel(str, Enum):
    WORD = "word"
    PHRASE = "phrase"
    PARAGRAPH = "paragraph"


class ScoringFunction(Protocol):
    """Scores one item of a given decomposition level on a 0-100 scale."""

    level: TextLevel

    def analyze(self, text: str) -> float: ...


class WordLength:
    """Longer words score higher: ten points per character, capped at 100."""

    level = TextLevel.WORD

    def analyze(self, text: str) -> float:
        return min(len(text) * 10.0, 100.0)


class SentenceComplexity:
    """Five points per space-separated word in the sentence, capped at 100."""

    level = TextLevel.PHRASE

    def analyze(self, text: str) -> float:
        return min(len(text.split(" ")) * 5.0, 100.0)


@dataclass(frozen=True)
class TextAnalysisResult:
    word_score: float
    phrase_score: float
    paragraph_score: float
    final_score: float
    word_count: int
    phrase_count: int
    paragraph_count: int

    def to_payload(self) -> dict[str, object]:
        return {
            "type": "TextAnalysisResult",
            "word_score": self.word_score,
            "phrase_score": self.phrase_score,
            "paragraph_score": self.paragraph_score,
            "final_score": self.final_score,
            "word_count": self.word_count,
            "phrase_count": self.phrase_count,
            "paragraph_count": self.paragraph_count,
        }


def _name(fn: ScoreFn) -> str:
    return getattr(fn, "__qualname__", repr(fn))


def _safe_score(fn: ScoreFn, item: str, hp: Hyperparameters) -> float | None:
    # A misbehaving function only loses its own score for this item.
    try:
        raw = fn(item)
    except Exception as exc:
        logger.debug(f"{_name(fn)} failed on {item[:40]!r}: {exc!r}")
        return None
    if isinstance(raw, bool) or not isinstance(raw, numbers.Real):
        logger.debug(f"{_name(fn)} returned non-numeric score {raw!r} for {item[:40]!r}")
        return None
    score = float(raw)
    if not hp.score_min <= score <= hp.score_max:
        logger.debug(f"{_name(fn)} returned out-of-range score {score} for {item[:40]!r}")
        return None
    return score


def _submit_level(
    pool: ThreadPoolExecutor,
    items: Iterable[str],
    functions: Sequence[ScoreFn],
    hp: Hyperparameters,
) -> list[Future[float | None]]:
    if not functions:
        return []
    return [pool.submit(_safe_score, fn, item, hp) for item in items if item.strip() for fn in functions]


def _mean_of_valid(futures: list[Future[float | None]]) -> float:
    scores = [s for s in (f.result() for f in futures) if s is not None]
    return sum(scores) / len(scores) if scores else 0.0


def _check_callables(functions: Sequence[ScoreFn], level: TextLevel) -> None:
    for fn in functions:
        if not callable(fn):
            raise InvalidArgumentError(f"{level.value} scoring function {fn!r} is not callable")


def analyze_levels(
    text: str,
    word_functions: Sequence[ScoreFn] = (),
    phrase_functions: Sequence[ScoreFn] = (),
    paragraph_functions: Sequence[ScoreFn] = (),
    hyperparameters: Hyperparameters | None = None,
) -> TextAnalysisResult:
    """Decompose ``text`` and average scoring functions per level.

    The three mappers run concurrently, then every (item, function) pair is
    scored concurrently on the same per-call pool. Scores that raise, are not
    numbers, or fall outside ``[score_min, score_max]`` are dropped. A level
    with no valid scores contributes 0 to the final average.

    Args:
        text: Text to decompose.
        word_functions: Applied to each distinct lowercase word.
        phrase_functions: Applied to each sentence.
        paragraph_functions: Applied to each non-blank line.
        hyperparameters: Optional tuning overrides. Uses sensible defaults if omitted.

    Returns:
        Per-level averages, their unweighted mean, and item counts.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    if text is None:
        raise InvalidArgumentError("Text must not be None")
    _check_callables(word_functions, TextLevel.WORD)
    _check_callables(phrase_functions, TextLevel.PHRASE)
    _check_callables(paragraph_functions, TextLevel.PARAGRAPH)

    with ThreadPoolExecutor(max_workers=max(3, hp.max_workers)) as pool:
        words_future = pool.submit(map_words, text, hp)
        phrases_future = pool.submit(map_phrases, text)
        paragraphs_future = pool.submit(map_paragraphs, text, hp)
        words = words_future.result()
        phrases = phrases_future.result()
        paragraphs = paragraphs_future.result()
        logger.debug(f"Mapped {len(words)} distinct words, {len(phrases)} phrases, {len(paragraphs)} paragraphs")

        word_futures = _submit_level(pool, words.keys(), word_functions, hp)
        phrase_futures = _submit_level(pool, phrases, phrase_functions, hp)
        paragraph_futures = _submit_level(pool, paragraphs, paragraph_functions, hp)
        word_score = _mean_of_valid(word_futures)
        phrase_score = _mean_of_valid(phrase_futures)
        paragraph_score = _mean_of_valid(paragraph_futures)

    return TextAnalysisResult(
        word_score=word_score,
        phrase_score=phrase_score,
        paragraph_score=paragraph_score,
        final_score=(word_score + phrase_score + paragraph_score) / 3,
        word_count=sum(words.values()),
        phrase_count=len(phrases),
        paragraph_count=len(paragraphs),
    )


class TextAnalyzer:
    """Groups :class:`ScoringFunction` objects by level and runs them.

    Example:
        >>> analyzer = TextAnalyzer([WordLength(), SentenceComplexity()])
        >>> analyzer.analyze("Short text. Another sentence here.").phrase_count
        2
    """

    def __init__(self, functions: Iterable[ScoringFunction], hyperparameters: Hyperparameters | None = None) -> None:
        self._functions = list(functions)
        self._hp = hyperparameters or DEFAULT_HYPERPARAMETERS

    def functions_for(self, level: TextLevel) -> list[ScoreFn]:
        return [fn.analyze for fn in self._functions if fn.level == level]

    def analyze(self, text: str) -> TextAnalysisResult:
        return analyze_levels(
            text,
            word_functions=self.functions_for(TextLevel.WORD),
            phrase_functions=self.functions_for(TextLevel.PHRASE),
            paragraph_functions=self.functions_for(TextLevel.PARAGRAPH),
            hyperparameters=self._hp,
        )
