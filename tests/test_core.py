import pytest

from data_designer_answer_grader.core import (
    AnswerCriteria,
    Hyperparameters,
    InvalidArgumentError,
    InvalidStateError,
    normalize,
    score_answer,
)


CLASS_ANSWER = "Uma classe é um modelo para criar objetos."

HERANCA_ANSWER = (
    "Herança permite que uma classe derivada possa herdar comportamentos "
    "de uma classe base. A subclasse reaproveita código."
)


def keywords_only(*keywords: str) -> AnswerCriteria:
    return AnswerCriteria(
        required_keywords=set(keywords),
        required_keywords_weight=1.0,
        required_phrases_weight=0.0,
        optional_keywords_weight=0.0,
    )


class TestNormalize:
    @pytest.mark.parametrize("text", ["Ação É ÓTIMA", "İstanbul", "crème brûlée", "plain ascii", ""])
    def test_idempotent(self, text):
        assert normalize(normalize(text)) == normalize(text)

    def test_lowercases_and_strips_accents(self):
        assert normalize("Fotossíntese e OXIGÊNIO") == "fotossintese e oxigenio"

    def test_none_raises(self):
        with pytest.raises(InvalidArgumentError):
            normalize(None)


class TestScoreAnswer:
    def test_single_word_answer(self):
        result = score_answer("Sim.", keywords_only("sim"))
        assert result.final_score == 100.0
        assert result.total_words == 1
        assert result.total_sentences == 1

    def test_all_required_keywords_found(self):
        result = score_answer(CLASS_ANSWER, keywords_only("classe", "objetos"))
        assert result.final_score == 100.0
        assert len(result.found_required_keywords) == 2
        assert len(result.missing_required_keywords) == 0

    def test_missing_required_keywords_lower_score(self):
        result = score_answer(CLASS_ANSWER, keywords_only("classe", "objetos", "heranca", "polimorfismo"))
        assert result.required_keywords_score == 50.0
        assert result.missing_required_keywords == frozenset({"heranca", "polimorfismo"})

    def test_whole_token_matching(self):
        result = score_answer("O sistema está isolado do ambiente.", keywords_only("sol"))
        assert result.required_keywords_score == 0.0
        assert "sol" in result.missing_required_keywords

    def test_case_insensitive(self):
        result = score_answer("uma classe cria um objeto", keywords_only("Classe", "OBJETO"))
        assert result.required_keywords_score == 100.0

    def test_accent_insensitive(self):
        criteria = keywords_only("fotossíntese", "oxigenio")
        accented = score_answer("A fotossíntese produz oxigênio.", criteria)
        plain = score_answer("A fotossintese produz oxigenio.", criteria)
        assert accented.final_score == plain.final_score == 100.0

    def test_required_phrases_use_substring(self):
        criteria = AnswerCriteria(
            required_phrases={"energia luminosa", "dioxido de carbono"},
            required_keywords_weight=0.0,
            required_phrases_weight=1.0,
            optional_keywords_weight=0.0,
        )
        result = score_answer("A fotossíntese converte energia luminosa usando dióxido de carbono.", criteria)
        assert result.required_phrases_score == 100.0
        assert len(result.found_required_phrases) == 2
        assert result.missing_required_phrases == frozenset()

    def test_optional_keywords_add_bonus(self):
        criteria = AnswerCriteria(
            required_keywords={"classe"},
            optional_keywords={"metodos", "propriedades", "interface"},
            required_keywords_weight=0.7,
            required_phrases_weight=0.0,
            optional_keywords_weight=0.3,
        )
        result = score_answer("Uma classe tem métodos e propriedades. Pode implementar uma interface.", criteria)
        assert result.optional_keywords_score == 100.0
        assert len(result.found_optional_keywords) == 3
        assert result.final_score == 100.0

    def test_empty_groups_defaults(self):
        result = score_answer(CLASS_ANSWER, AnswerCriteria(required_keywords={"classe"}))
        assert result.required_keywords_score == 100.0
        assert result.required_phrases_score == 100.0
        assert result.optional_keywords_score == 0.0
        assert result.final_score == 80.0

    def test_empty_required_groups_are_vacuously_satisfied(self):
        result = score_answer("Qualquer coisa", AnswerCriteria(optional_keywords={"nada"}))
        assert result.required_keywords_score == 100
        assert result.required_phrases_score == 100

    def test_blank_terms_are_ignored(self):
        result = score_answer("Nada a ver com o assunto.", keywords_only("", "   ", "classe"))
        assert result.required_keywords_score == 0.0
        assert result.missing_required_keywords == frozenset({"classe"})
        assert result.found_required_keywords == frozenset()

    def test_only_blank_terms_behave_like_an_empty_group(self):
        criteria = AnswerCriteria(optional_keywords={" ", ""}, required_keywords={"\t"})
        result = score_answer("Qualquer coisa", criteria)
        assert result.required_keywords_score == 100.0
        assert result.optional_keywords_score == 0.0

    def test_final_score_is_clamped(self):
        criteria = AnswerCriteria(
            required_keywords={"sim"},
            required_keywords_weight=1.0005,
            required_phrases_weight=0.0,
            optional_keywords_weight=0.0,
        )
        assert score_answer("sim", criteria).final_score == 100.0

    def test_counts_words_and_sentences(self):
        result = score_answer("Este é um teste. Contém duas sentenças!", keywords_only("teste"))
        assert result.total_words == 7
        assert result.total_sentences == 2

    def test_consecutive_terminators_count_once(self):
        result = score_answer("Espere... o quê?!", keywords_only("espere"))
        assert result.total_sentences == 2

    def test_parallel_term_evaluation_matches_sequential(self):
        criteria = keywords_only("heranca", "classe", "derivada", "base", "subclasse", "polimorfismo", "codigo")
        sequential = score_answer(HERANCA_ANSWER, criteria)
        parallel = score_answer(HERANCA_ANSWER, criteria, hyperparameters=Hyperparameters(parallel_terms_min=2))
        assert parallel == sequential
        assert parallel.missing_required_keywords == frozenset({"polimorfismo"})

    def test_payload_is_sorted(self):
        payload = score_answer(CLASS_ANSWER, keywords_only("objetos", "classe", "modelo")).to_payload()
        assert payload["type"] == "AnswerAnalysisResult"
        assert payload["found_required_keywords"] == ["classe", "modelo", "objetos"]
        assert payload["missing_required_keywords"] == []


class TestValidation:
    def test_invalid_weights_raise(self):
        criteria = AnswerCriteria(
            required_keywords_weight=0.5,
            required_phrases_weight=0.3,
            optional_keywords_weight=0.3,
        )
        with pytest.raises(InvalidStateError):
            score_answer("test", criteria)

    def test_weights_within_tolerance_pass(self):
        criteria = AnswerCriteria(
            required_keywords_weight=0.3334,
            required_phrases_weight=0.3333,
            optional_keywords_weight=0.3333,
        )
        criteria.validate_weights()

    def test_construction_does_not_validate(self):
        criteria = AnswerCriteria(required_keywords_weight=5.0)
        criteria.required_keywords_weight = 0.4
        criteria.validate_weights()

    @pytest.mark.parametrize("answer", ["", "   ", "\n\t", None])
    def test_empty_answer_raises(self, answer):
        with pytest.raises(InvalidArgumentError):
            score_answer(answer, AnswerCriteria())

    def test_missing_criteria_raises(self):
        with pytest.raises(ValueError):
            score_answer("test", None)
