import pytest

from ai_gateway.errors import NormalizationError
from ai_gateway.schemas import SummarizationResult
from ai_gateway.orchestration.normalizer import (
    NestedPairs,
    PairList,
    ParallelArrays,
    SingleLabel,
    classification_normalizer,
    compression_ratio,
    degraded_classification,
    extract_answer_text,
    extract_summary_text,
    normalize_classification,
    normalize_ocr,
    parse_classification,
    summarization_normalizer,
)


def test_parse_classification_selects_one_arm_per_shape() -> None:
    assert isinstance(parse_classification([{"label": "a", "score": 0.5}]), PairList)
    assert isinstance(parse_classification({"labels": ["a"], "scores": [0.5]}), ParallelArrays)
    assert isinstance(parse_classification([[{"label": "a", "score": 0.5}]]), NestedPairs)
    assert isinstance(parse_classification({"label": "a", "score": 0.5}), SingleLabel)

    with pytest.raises(NormalizationError):
        parse_classification([])
    with pytest.raises(NormalizationError):
        parse_classification("positive")


def test_nested_pairs_map_emotion_labels_and_sort_descending() -> None:
    raw = [[{"label": "LABEL_0", "score": 0.09}, {"label": "LABEL_2", "score": 0.91}]]

    result = normalize_classification(raw, "emotion-detection")

    assert result.label == "anger"
    assert result.confidence == 91
    assert [(c.name, c.score) for c in result.categories] == [("anger", 91), ("admiration", 9)]


def test_parallel_arrays_for_topic_classification() -> None:
    raw = {"sequence": "text", "labels": ["business", "sports", "politics"], "scores": [0.2, 0.7, 0.1]}

    result = normalize_classification(raw, "topic-classification")

    assert result.label == "sports"
    assert result.confidence == 70
    assert [c.name for c in result.categories] == ["sports", "business", "politics"]


def test_pair_list_maps_sentiment_labels() -> None:
    raw = [
        {"label": "LABEL_0", "score": 0.1},
        {"label": "LABEL_1", "score": 0.25},
        {"label": "LABEL_2", "score": 0.65},
    ]

    result = normalize_classification(raw, "sentiment-analysis")

    assert result.label == "positive"
    assert result.confidence == 65
    assert result.categories[-1].name == "negative"


def test_single_label_rounds_half_up() -> None:
    result = normalize_classification({"label": "joy", "score": 0.875}, "emotion-detection")

    assert result.label == "joy"
    assert result.confidence == 88
    assert len(result.categories) == 1


def test_single_label_applies_task_label_map() -> None:
    result = normalize_classification({"label": "LABEL_2", "score": 0.91}, "emotion-detection")

    assert result.label == "anger"
    assert result.confidence == 91


def test_equal_scores_keep_provider_order() -> None:
    raw = [{"label": "first", "score": 0.5}, {"label": "second", "score": 0.5}]

    result = normalize_classification(raw, "topic-classification")

    assert [c.name for c in result.categories] == ["first", "second"]
    assert result.label == "first"


def test_missing_fields_default_to_unknown_and_zero() -> None:
    result = normalize_classification([{"class": "spam"}, {"score": 0.4}], "topic-classification")

    assert [(c.name, c.score) for c in result.categories] == [("unknown", 40), ("spam", 0)]


def test_degraded_extraction_defaults_confidence_to_50() -> None:
    result = degraded_classification({"label": "positive"}, "sentiment-analysis")

    assert result.label == "positive"
    assert result.confidence == 50


def test_degraded_extraction_uses_labels_list() -> None:
    result = degraded_classification({"labels": ["a", "b"], "scores": ["x"]}, "topic-classification")

    assert [(c.name, c.score) for c in result.categories] == [("a", 50), ("b", 50)]


def test_degraded_extraction_is_idempotent_on_normalized_results() -> None:
    normalize = classification_normalizer("emotion-detection")
    first = normalize([[{"label": "LABEL_2", "score": 0.91}, {"label": "LABEL_17", "score": 0.07}]])

    again = normalize(first.model_dump())

    assert again == first
    assert degraded_classification(first.model_dump(), "emotion-detection") == first


def test_unknown_shape_raises_after_degraded_attempt() -> None:
    normalize = classification_normalizer("sentiment-analysis")

    with pytest.raises(NormalizationError, match="Failed to parse classification result"):
        normalize(42)
    with pytest.raises(NormalizationError):
        normalize({"something": "else"})


def test_summary_text_extraction_and_compression_ratio() -> None:
    assert extract_summary_text([{"summary_text": "  Short summary. "}]) == "Short summary."
    assert extract_summary_text({"generated_text": "Generated."}) == "Generated."
    assert extract_summary_text("Plain text") == "Plain text"
    assert compression_ratio("one two three four", "one") == 75
    assert compression_ratio("", "one") == 0

    with pytest.raises(NormalizationError):
        extract_summary_text([{"unexpected": True}])


def test_ocr_normalization_fills_fixed_confidence_and_language() -> None:
    result = normalize_ocr([{"generated_text": " INVOICE 42 "}])

    assert result.text == "INVOICE 42"
    assert result.confidence == 95
    assert result.language == "en"

    with pytest.raises(NormalizationError):
        normalize_ocr([{"generated_text": ""}])


def test_empty_answer_is_a_normalization_failure() -> None:
    assert extract_answer_text(" Paris. ") == "Paris."
    with pytest.raises(NormalizationError):
        extract_answer_text("   ")


def test_summarization_normalizer_builds_result() -> None:
    original = "one two three four five six seven eight nine ten"
    normalize = summarization_normalizer(original)

    result = normalize([{"summary_text": "one two"}])

    assert isinstance(result, SummarizationResult)
    assert result.summary == "one two"
    assert result.word_count == 2
    assert result.compression_ratio == 80
    assert result.original_text == original
