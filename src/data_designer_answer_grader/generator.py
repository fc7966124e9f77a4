from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from data_designer.engine.column_generators.generators.base import ColumnGeneratorFullColumn

from data_designer_answer_grader.config import AnswerGraderColumnConfig
from data_designer_answer_grader.core import AnswerAnalysisResult, score_answer

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)


def _empty_output() -> dict:
    return {
        "is_valid": False,
        "answer_score": 0.0,
        "required_keywords_score": 0.0,
        "required_phrases_score": 0.0,
        "optional_keywords_score": 0.0,
        "word_count": 0,
        "sentence_count": 0,
    }


def _to_output(analysis: AnswerAnalysisResult, min_score: float, include_details: bool) -> dict:
    output: dict = {
        "is_valid": analysis.final_score >= min_score,
        "answer_score": analysis.final_score,
        "required_keywords_score": analysis.required_keywords_score,
        "required_phrases_score": analysis.required_phrases_score,
        "optional_keywords_score": analysis.optional_keywords_score,
        "word_count": analysis.total_words,
        "sentence_count": analysis.total_sentences,
    }
    if include_details:
        payload = analysis.to_payload()
        for key in (
            "found_required_keywords",
            "missing_required_keywords",
            "found_required_phrases",
            "missing_required_phrases",
            "found_optional_keywords",
        ):
            output[key] = payload[key]
    return output


class AnswerGraderColumnGenerator(ColumnGeneratorFullColumn[AnswerGraderColumnConfig]):
    """Column generator that grades answers against keyword and phrase criteria."""

    def generate(self, data: pd.DataFrame) -> pd.DataFrame:
        logger.info(f"\U0001f4dd Grading column {self.config.name!r} against answer criteria")
        logger.info(f"   target columns: {self.config.target_columns}")
        logger.info(f"   min_score: {self.config.min_score}")

        criteria = self.config.to_criteria()
        results = []
        for index, row in data[self.config.target_columns].iterrows():
            text = " ".join(str(v) for v in row.values if v is not None)
            if not text.strip():
                logger.warning(f"   row {index!r} has an empty answer, marking invalid")
                results.append(_empty_output())
                continue
            analysis = score_answer(text, criteria)
            results.append(_to_output(analysis, self.config.min_score, self.config.include_details))

        data = data.copy()
        data[self.config.name] = results
        return data
