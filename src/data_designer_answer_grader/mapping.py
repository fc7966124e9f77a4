# Decompose text into words, phrases and paragraphs.
#
# Inputs longer than Hyperparameters.chunk_threshold are cut into
# separator-aligned chunks and mapped on a per-call thread pool. Chunk
# boundaries always land on a separator, so no token is divided between two
# chunks and merging the partial results matches a single sequential pass.

from __future__ import annotations

import logging
import operator
from collections import Counter
from collections.abc import Collection
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import reduce
from typing import Callable, TypeVar

from data_designer_answer_grader.core import DEFAULT_HYPERPARAMETERS, Hyperparameters, InvalidArgumentError

logger = logging.getLogger(__name__)

T = TypeVar("T")

WORD_SEPARATORS = frozenset(" \t\r\n.,!?;:-_()[]{}\"'")
SENTENCE_TERMINATORS = frozenset(".!?")
PARAGRAPH_SEPARATOR = "\n"


# ---------------------------------------------------------------------------
# Chunk splitting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Chunk:
    """A ``[start, end)`` window into a source string."""

    source: str = field(repr=False)
    start: int
    end: int

    @property
    def text(self) -> str:
        return self.source[self.start : self.end]

    def __len__(self) -> int:
        return self.end - self.start


def split_into_chunks(text: str, target_size: int, separators: str | Collection[str]) -> list[Chunk]:
    """Cut ``text`` into roughly ``target_size`` chunks that end on a separator.

    Each proposed end is walked back to the nearest separator. If a single
    token is longer than ``target_size`` the walk reaches the chunk start and
    the chunk is hard-cut at the proposed end instead. The separator run that
    follows a chunk is skipped, so chunks plus the skipped separators rebuild
    ``text`` exactly.

    Args:
        text: Source text.
        target_size: Upper bound on chunk length.
        separators: A single separator character (``"\\n"`` for paragraphs)
            or a collection of separator characters.

    Returns:
        Ordered, non-overlapping chunks. Empty for empty text.
    """
    if text is None:
        raise InvalidArgumentError("Cannot split None")
    if target_size <= 0:
        raise InvalidArgumentError(f"target_size must be positive, got {target_size}")
    seps = frozenset(separators)
    if not seps:
        raise InvalidArgumentError("At least one separator is required")

    chunks: list[Chunk] = []
    length = len(text)
    start = 0
    while start < length:
        proposed = min(start + target_size, length)
        end = proposed
        if end < length:
            while end > start and text[end] not in seps:
                end -= 1
            if end == start:
                end = proposed
        chunks.append(Chunk(text, start, end))
        start = end
        while start < length and text[start] in seps:
            start += 1
    return chunks


def _map_chunks(chunks: list[Chunk], fn: Callable[[str], T], hp: Hyperparameters) -> list[tuple[int, T]]:
    """Run ``fn`` over every chunk on a bounded pool, keyed by chunk start."""
    workers = max(1, min(hp.max_workers, len(chunks)))
    logger.debug(f"Mapping {len(chunks)} chunks on {workers} workers")
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(fn, chunk.text): chunk.start for chunk in chunks}
        return [(start, future.result()) for future, start in futures.items()]


def _require_text(text: str) -> None:
    if text is None:
        raise InvalidArgumentError("Text must not be None")


# ---------------------------------------------------------------------------
# Words
# ---------------------------------------------------------------------------


def _count_tokens(text: str) -> Counter[str]:
    counts: Counter[str] = Counter()
    start = 0
    for i, char in enumerate(text):
        if char in WORD_SEPARATORS:
            token = text[start:i].strip()
            if token:
                counts[token.lower()] += 1
            start = i + 1
    token = text[start:].strip()
    if token:
        counts[token.lower()] += 1
    return counts


def map_words(text: str, hyperparameters: Hyperparameters | None = None) -> Counter[str]:
    """Count case-insensitive word tokens in ``text``.

    Tokens are maximal runs between :data:`WORD_SEPARATORS`; keys are
    lowercased. Long inputs are counted per chunk and the partial counters
    summed, which is order-independent.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    _require_text(text)
    if not text.strip():
        return Counter()
    if len(text) <= hp.chunk_threshold:
        return _count_tokens(text)

    chunks = split_into_chunks(text, hp.chunk_size, WORD_SEPARATORS)
    partials = [counts for _, counts in _map_chunks(chunks, _count_tokens, hp)]
    return reduce(operator.add, partials, Counter())


# ---------------------------------------------------------------------------
# Phrases
# ---------------------------------------------------------------------------


def is_sentence_boundary(text: str, index: int) -> bool:
    """Whether the terminator at ``text[index]`` really ends a sentence.

    Rejects decimals (``3.14``), letter-dot-letter abbreviations (``e.g``)
    and any terminator not followed by whitespace or the end of text.
    """
    prev = text[index - 1] if index > 0 else ""
    nxt = text[index + 1] if index + 1 < len(text) else ""
    if prev.isdigit():
        return False
    if prev.isalpha() and nxt.isalpha():
        return False
    if nxt and not nxt.isspace():
        return False
    return True


def map_phrases(text: str) -> list[str]:
    """Split ``text`` into sentences, in source order."""
    _require_text(text)
    phrases: list[str] = []
    if not text.strip():
        return phrases

    length = len(text)
    start = 0
    for i, char in enumerate(text):
        if char not in SENTENCE_TERMINATORS or not is_sentence_boundary(text, i):
            continue
        phrase = text[start : i + 1].strip()
        if phrase:
            phrases.append(phrase)
        start = i + 1
        while start < length and text[start].isspace():
            start += 1

    remainder = text[start:].strip()
    if remainder:
        phrases.append(remainder)
    return phrases


# ---------------------------------------------------------------------------
# Paragraphs
# ---------------------------------------------------------------------------


def _split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.split(PARAGRAPH_SEPARATOR) if line.strip()]


def map_paragraphs(text: str, hyperparameters: Hyperparameters | None = None) -> list[str]:
    """Split ``text`` on single newlines, dropping blank lines.

    Chunked results are sorted by chunk offset before flattening, so the
    order always matches the source.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    _require_text(text)
    if not text.strip():
        return []
    if len(text) <= hp.chunk_threshold:
        return _split_lines(text)

    chunks = split_into_chunks(text, hp.chunk_size, PARAGRAPH_SEPARATOR)
    keyed = sorted(_map_chunks(chunks, _split_lines, hp), key=operator.itemgetter(0))
    return [paragraph for _, paragraphs in keyed for paragraph in paragraphs]
