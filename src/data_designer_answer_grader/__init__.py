# SPDX-License-Identifier: Apache-2.0
"""Answer Grader plugin for NeMo Data Designer.

Adds an ``answer-grader`` column type that scores free-text answers against
weighted required keywords, required phrases and optional keywords. Matching
is literal, case- and accent-insensitive, and word-bounded for keywords. The
package also exposes the text decomposition engine (words, phrases,
paragraphs) and a pluggable per-level text analyzer.

Usage::

    from data_designer_answer_grader import AnswerGraderColumnConfig

    builder.add_column(AnswerGraderColumnConfig(
        name="grade",
        target_columns=["answer"],
        required_keywords=["classe", "objetos"],
        required_phrases=["define atributos e metodos"],
        optional_keywords=["instancia"],
    ))
"""

from data_designer_answer_grader.analyzer import (
    SentenceComplexity,
    TextAnalysisResult,
    TextAnalyzer,
    TextLevel,
    WordLength,
    analyze_levels,
)
from data_designer_answer_grader.config import AnswerGraderColumnConfig
from data_designer_answer_grader.core import (
    AnswerAnalysisResult,
    AnswerCriteria,
    AnswerGraderError,
    Hyperparameters,
    InvalidArgumentError,
    InvalidStateError,
    normalize,
    score_answer,
)
from data_designer_answer_grader.mapping import map_paragraphs, map_phrases, map_words, split_into_chunks

__all__ = [
    "AnswerGraderColumnConfig",
    "AnswerAnalysisResult",
    "AnswerCriteria",
    "AnswerGraderError",
    "Hyperparameters",
    "InvalidArgumentError",
    "InvalidStateError",
    "SentenceComplexity",
    "TextAnalysisResult",
    "TextAnalyzer",
    "TextLevel",
    "WordLength",
    "analyze_levels",
    "map_paragraphs",
    "map_phrases",
    "map_words",
    "normalize",
    "score_answer",
    "split_into_chunks",
]
