from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from data_designer.config.column_configs import SingleColumnConfig

from data_designer_answer_grader.core import DEFAULT_HYPERPARAMETERS, AnswerCriteria, InvalidStateError

_HP = DEFAULT_HYPERPARAMETERS


def _terms(values: list[str]) -> set[str]:
    return {v.strip() for v in values if v.strip()}


class AnswerGraderColumnConfig(SingleColumnConfig):
    """Grade free-text answer columns against weighted keyword and phrase criteria.

    Each row's answer is normalized (lowercase, accents removed) and checked for
    required keywords (whole-token), required phrases (substring) and optional
    keywords. The three coverage ratios are combined with the configured weights
    into a 0-100 score.

    Attributes:
        target_columns: Columns whose text content will be concatenated and graded.
        required_keywords: Terms that must appear as whole tokens.
        required_phrases: Phrases that must appear anywhere in the answer.
        optional_keywords: Bonus terms; missing ones do not penalize.
        required_keywords_weight: Weight of the required-keyword sub-score.
        required_phrases_weight: Weight of the required-phrase sub-score.
        optional_keywords_weight: Weight of the optional-keyword sub-score.
        min_score: Minimum final score (0-100) for ``is_valid=True``. Defaults to 70.
        include_details: Include found/missing term lists in output.
    """

    target_columns: list[str]
    required_keywords: list[str] = Field(default_factory=list)
    required_phrases: list[str] = Field(default_factory=list)
    optional_keywords: list[str] = Field(default_factory=list)
    required_keywords_weight: float = Field(default=_HP.default_required_keywords_weight, ge=0.0, le=1.0)
    required_phrases_weight: float = Field(default=_HP.default_required_phrases_weight, ge=0.0, le=1.0)
    optional_keywords_weight: float = Field(default=_HP.default_optional_keywords_weight, ge=0.0, le=1.0)
    min_score: float = Field(default=70.0, ge=0.0, le=100.0, description="Minimum answer score for is_valid=True")
    include_details: bool = Field(default=False, description="Include found/missing term lists in output")
    column_type: Literal["answer-grader"] = "answer-grader"

    @model_validator(mode="after")
    def _check_weight_sum(self) -> AnswerGraderColumnConfig:
        try:
            self.to_criteria().validate_weights(_HP.weight_tolerance)
        except InvalidStateError as exc:
            raise ValueError(str(exc)) from exc
        return self

    @staticmethod
    def get_column_emoji() -> str:
        return "\U0001f4dd"

    @property
    def required_columns(self) -> list[str]:
        return self.target_columns

    @property
    def side_effect_columns(self) -> list[str]:
        return []

    def to_criteria(self) -> AnswerCriteria:
        return AnswerCriteria(
            required_keywords=_terms(self.required_keywords),
            required_phrases=_terms(self.required_phrases),
            optional_keywords=_terms(self.optional_keywords),
            required_keywords_weight=self.required_keywords_weight,
            required_phrases_weight=self.required_phrases_weight,
            optional_keywords_weight=self.optional_keywords_weight,
        )
