"""Reshapes provider payloads into the fixed result schema of each capability.

Classification payloads are first parsed into a tagged union with one arm per
known provider shape, then reshaped by a single routine. A payload matching no
arm raises `NormalizationError`; callers may then try `degraded_classification`,
which pulls whatever label/score fields exist.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ai_gateway.errors import NormalizationError
from ai_gateway.schemas import (
    ClassificationCategory,
    ClassificationResult,
    OcrResult,
    SummarizationResult,
)

DEFAULT_CONFIDENCE = 50
OCR_CONFIDENCE = 95
OCR_LANGUAGE = "en"

LABEL_MAPPINGS: dict[str, dict[str, str]] = {
    "sentiment-analysis": {
        "LABEL_0": "negative",
        "LABEL_1": "neutral",
        "LABEL_2": "positive",
    },
    "emotion-detection": {
        f"LABEL_{index}": name
        for index, name in enumerate(
            (
                "admiration", "amusement", "anger", "annoyance", "approval", "caring",
                "confusion", "curiosity", "desire", "disappointment", "disapproval",
                "disgust", "embarrassment", "excitement", "fear", "gratitude", "grief",
                "joy", "love", "nervousness", "optimism", "pride", "realization",
                "relief", "remorse", "sadness", "surprise", "neutral",
            )
        )
    },
}


# --- Raw classification shapes ---


@dataclass(slots=True, frozen=True)
class PairList:
    """`[{"label": ..., "score": ...}, ...]`"""

    items: tuple[dict[str, Any], ...]


@dataclass(slots=True, frozen=True)
class ParallelArrays:
    """`{"labels": [...], "scores": [...]}` (zero-shot style)."""

    labels: tuple[Any, ...]
    scores: tuple[Any, ...]


@dataclass(slots=True, frozen=True)
class NestedPairs:
    """`[[{"label": ..., "score": ...}, ...]]` (text-classification pipelines)."""

    rows: tuple[tuple[dict[str, Any], ...], ...]


@dataclass(slots=True, frozen=True)
class SingleLabel:
    """`{"label": ..., "score": ...}` (prompted LLM replies)."""

    label: str
    score: float


RawClassification = PairList | ParallelArrays | NestedPairs | SingleLabel


def parse_classification(raw: Any) -> RawClassification:
    """Match a raw payload to exactly one known shape."""
    if isinstance(raw, list) and raw:
        if any(isinstance(item, list) for item in raw):
            rows: list[tuple[dict[str, Any], ...]] = []
            for row in raw:
                row_items = row if isinstance(row, list) else [row]
                if not all(isinstance(item, dict) for item in row_items):
                    raise NormalizationError("Nested classification rows must contain objects")
                rows.append(tuple(row_items))
            return NestedPairs(rows=tuple(rows))
        if all(isinstance(item, dict) for item in raw):
            return PairList(items=tuple(raw))
        raise NormalizationError("Classification list must contain label/score objects")

    if isinstance(raw, dict):
        labels, scores = raw.get("labels"), raw.get("scores")
        if isinstance(labels, list) and isinstance(scores, list):
            return ParallelArrays(labels=tuple(labels), scores=tuple(scores))
        label, score = raw.get("label"), raw.get("score")
        if isinstance(label, str) and label and _is_number(score):
            return SingleLabel(label=label, score=float(score))

    raise NormalizationError(f"Unable to parse classification result of type {type(raw).__name__}")


def normalize_classification(raw: Any, task: str) -> ClassificationResult:
    """Normalize one payload; raises `NormalizationError` on unknown shapes."""
    label_map = LABEL_MAPPINGS.get(task, {})
    shape = parse_classification(raw)

    if isinstance(shape, PairList):
        categories = [_category_from_item(item, label_map) for item in shape.items]
    elif isinstance(shape, NestedPairs):
        categories = [
            _category_from_item(item, label_map) for row in shape.rows for item in row
        ]
    elif isinstance(shape, ParallelArrays):
        categories = [
            ClassificationCategory(
                name=_map_label(str(label), label_map),
                score=_percent(shape.scores[index] if index < len(shape.scores) else 0),
            )
            for index, label in enumerate(shape.labels)
        ]
    else:
        categories = [
            ClassificationCategory(name=_map_label(shape.label, label_map), score=_percent(shape.score))
        ]

    return _finalize(categories)


def degraded_classification(raw: Any, task: str) -> ClassificationResult:
    """Best-effort extraction from any object carrying label-ish fields.

    Confidence defaults to 50 when no score is present. Already-normalized
    results pass through unchanged.
    """
    if not isinstance(raw, dict):
        raise NormalizationError("Invalid result structure for fallback extraction")
    label_map = LABEL_MAPPINGS.get(task, {})

    label = raw.get("label")
    labels = raw.get("labels")
    scores = raw.get("scores") if isinstance(raw.get("scores"), list) else []
    existing = raw.get("categories")

    if isinstance(label, str) and label:
        if isinstance(existing, list) and existing and all(isinstance(c, dict) for c in existing):
            categories = [
                ClassificationCategory(
                    name=_map_label(str(c.get("name") or c.get("label") or "unknown"), label_map),
                    score=_confidence_value(c.get("score")),
                )
                for c in existing
            ]
        else:
            score = raw.get("score")
            confidence = (
                _percent(score) if _is_number(score) else _confidence_value(raw.get("confidence"))
            )
            categories = [ClassificationCategory(name=_map_label(label, label_map), score=confidence)]
    elif isinstance(labels, list) and labels:
        categories = [
            ClassificationCategory(
                name=_map_label(str(item), label_map),
                score=_percent(scores[index]) if index < len(scores) and _is_number(scores[index]) else DEFAULT_CONFIDENCE,
            )
            for index, item in enumerate(labels)
        ]
    else:
        raise NormalizationError("No label or labels field found in classification result")

    return _finalize(categories)


def classification_normalizer(task: str) -> Callable[[Any], ClassificationResult]:
    """Full pipeline used by the orchestrator: exact shapes, then degraded extraction."""

    def _normalize(raw: Any) -> ClassificationResult:
        try:
            return normalize_classification(raw, task)
        except NormalizationError as parse_error:
            try:
                return degraded_classification(raw, task)
            except NormalizationError:
                raise NormalizationError(
                    f"Failed to parse classification result: {parse_error}"
                ) from parse_error

    return _normalize


# --- Summarization ---


def extract_summary_text(raw: Any) -> str:
    """Pull the summary string out of the known summarization payloads."""
    text: Any = None
    if isinstance(raw, str):
        text = raw
    elif isinstance(raw, list):
        for item in raw:
            if isinstance(item, str):
                text = item
            elif isinstance(item, dict):
                text = item.get("summary_text") or item.get("generated_text") or item.get("text")
            if text:
                break
    elif isinstance(raw, dict):
        text = raw.get("generated_text") or raw.get("summary_text")

    if not isinstance(text, str) or not text.strip():
        raise NormalizationError("Unexpected summarization response format")
    return text.strip()


def count_words(text: str) -> int:
    return len(text.split())


def compression_ratio(original: str, summary: str) -> int:
    original_words = count_words(original)
    if original_words == 0:
        return 0
    return _round_half_up((1 - count_words(summary) / original_words) * 100)


def summarization_normalizer(original_text: str) -> Callable[[Any], SummarizationResult]:
    def _normalize(raw: Any) -> SummarizationResult:
        summary = extract_summary_text(raw)
        return SummarizationResult(
            original_text=original_text,
            summary=summary,
            word_count=count_words(summary),
            compression_ratio=compression_ratio(original_text, summary),
        )

    return _normalize


# --- OCR ---


def normalize_ocr(raw: Any) -> OcrResult:
    text: Any = None
    if isinstance(raw, str):
        text = raw
    elif isinstance(raw, list) and raw and isinstance(raw[0], dict):
        text = raw[0].get("generated_text")
    elif isinstance(raw, dict):
        text = raw.get("generated_text") or raw.get("text")

    if not isinstance(text, str) or not text.strip():
        raise NormalizationError("Unexpected OCR response format")
    return OcrResult(text=text.strip(), confidence=OCR_CONFIDENCE, language=OCR_LANGUAGE)


# --- Answers ---


def extract_answer_text(raw: Any) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise NormalizationError("Provider returned an empty answer")
    return raw.strip()


# --- helpers ---


def _finalize(categories: list[ClassificationCategory]) -> ClassificationResult:
    if not categories:
        raise NormalizationError("Classification result contained no categories")
    ordered = sorted(categories, key=lambda category: category.score, reverse=True)
    top = ordered[0]
    return ClassificationResult(label=top.name, confidence=top.score, categories=ordered)


def _category_from_item(item: dict[str, Any], label_map: dict[str, str]) -> ClassificationCategory:
    label = item.get("label") or item.get("class") or "unknown"
    score = item.get("score") or item.get("confidence") or 0
    return ClassificationCategory(name=_map_label(str(label), label_map), score=_percent(score))


def _map_label(label: str, label_map: dict[str, str]) -> str:
    return label_map.get(label, label)


def _confidence_value(value: Any) -> int:
    """Interpret a `confidence` field: ints and values above 1 are percents."""
    if not _is_number(value):
        return DEFAULT_CONFIDENCE
    if isinstance(value, int) or value > 1:
        return max(0, min(100, _round_half_up(float(value))))
    return _percent(value)


def _percent(value: Any) -> int:
    if not _is_number(value):
        return 0
    return max(0, min(100, _round_half_up(float(value) * 100)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
