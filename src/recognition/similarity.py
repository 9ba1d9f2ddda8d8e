# ABOUTME: Compares preprocessed drawings against templates under strict or child-lenient rules.
# ABOUTME: Each mode is a named strategy resolved once per call, producing similarity and confidence.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from src.common.config import EngineConfig, FeatureConfig, LenientConfig, StrictConfig
from src.common.schemas import BoundingBox, CharacterTemplate, FeatureSet

from .features import PreprocessedDrawing, drawing_speed, smoothness

logger = logging.getLogger(__name__)

MODE_STRICT = "strict"
MODE_LENIENT = "lenient"
MODES = (MODE_STRICT, MODE_LENIENT)


@dataclass(frozen=True)
class SimilarityScore:
    similarity: float
    confidence: float
    details: Dict[str, Any] = field(default_factory=dict)


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def stroke_count_similarity(actual: int, expected: int) -> float:
    """1.0 on a match, decaying as ``expected / (expected + |difference|)``."""
    if expected == 0:
        return 1.0 if actual == 0 else 0.0
    return expected / (expected + abs(actual - expected))


def feature_similarity(actual: Optional[FeatureSet], expected: Optional[FeatureSet]) -> float:
    if actual is None or expected is None:
        return 0.0
    matches = sum(a == e for a, e in zip(actual.flags(), expected.flags()))
    return matches / 3.0


def complexity_similarity(actual: Any, expected: Any) -> float:
    if not (_is_number(actual) and _is_number(expected)):
        return 0.5
    return 1.0 - min(abs(actual - expected), 1.0)


def _position_offset(box: Optional[BoundingBox], canvas_size) -> Optional[float]:
    """Largest centre offset from the canvas centre as a fraction of the canvas side."""
    if box is None or not canvas_size:
        return None
    width, height = canvas_size
    if width <= 0 or height <= 0:
        return None
    return max(abs(box.center_x - width / 2) / width, abs(box.center_y - height / 2) / height)


class ScoringStrategy(Protocol):
    name: str

    def score(self, drawing: PreprocessedDrawing, template: CharacterTemplate) -> SimilarityScore:
        ...

    def fallback(self) -> SimilarityScore:
        ...


class StrictStrategy:
    name = MODE_STRICT

    def __init__(self, config: Optional[StrictConfig] = None) -> None:
        self.config = config or StrictConfig()

    def similarity(self, drawing: PreprocessedDrawing, template: CharacterTemplate) -> float:
        cfg = self.config
        return _clamp(
            cfg.stroke_weight * stroke_count_similarity(drawing.stroke_count, template.stroke_count)
            + cfg.feature_weight * feature_similarity(drawing.features, template.features)
            + cfg.complexity_weight * complexity_similarity(drawing.complexity, template.features.complexity)
        )

    def confidence(self, similarity: float, drawing: PreprocessedDrawing) -> float:
        cfg = self.config
        if drawing.stroke_count == 0:
            return 0.0
        confidence = similarity
        if drawing.total_points < cfg.min_points:
            confidence *= cfg.few_points_penalty
        elif drawing.total_points > cfg.max_points:
            confidence *= cfg.many_points_penalty

        box = drawing.bounding_box
        if box is not None:
            if box.area < cfg.min_area:
                confidence *= cfg.small_area_penalty
            elif box.area > cfg.max_area:
                confidence *= cfg.large_area_penalty
            aspect = box.aspect_ratio
            if aspect is not None and (aspect < cfg.min_aspect_ratio or aspect > cfg.max_aspect_ratio):
                confidence *= cfg.aspect_penalty

        offset = _position_offset(box, drawing.canvas_size)
        if offset is not None and offset > cfg.position_tolerance:
            confidence *= cfg.position_penalty
        return _clamp(confidence)

    def score(self, drawing: PreprocessedDrawing, template: CharacterTemplate) -> SimilarityScore:
        similarity = self.similarity(drawing, template)
        return SimilarityScore(similarity, self.confidence(similarity, drawing))

    def fallback(self) -> SimilarityScore:
        return SimilarityScore(0.0, 0.0, {"fallback": True})


def lenient_stroke_similarity(actual: int, expected: int, config: Optional[LenientConfig] = None) -> float:
    cfg = config or LenientConfig()
    if expected == 0:
        return 1.0 if actual == 0 else cfg.empty_template_credit
    difference = abs(actual - expected)
    if difference < len(cfg.stroke_difference_credit):
        return cfg.stroke_difference_credit[difference]
    if difference <= expected:
        return cfg.within_expected_credit
    return cfg.beyond_expected_credit


def lenient_feature_similarity(
    actual: Optional[FeatureSet],
    expected: Optional[FeatureSet],
    config: Optional[LenientConfig] = None,
) -> float:
    """Full matches plus partial credit for near misses, on top of a base credit."""
    cfg = config or LenientConfig()
    if actual is None or expected is None:
        return cfg.missing_features_credit
    matches = partial = 0
    for index, (a, e) in enumerate(zip(actual.flags(), expected.flags())):
        if a == e:
            matches += 1
        elif index < 2 and a:
            # Some line where a different line was expected.
            partial += 1
        elif index == 2:
            # Straight strokes where a curve was expected, or the reverse.
            partial += 1
    return min(1.0, matches / 3.0 + (partial / 3.0) * cfg.partial_feature_credit + cfg.feature_base_credit)


def lenient_complexity_similarity(actual: Any, expected: Any, config: Optional[LenientConfig] = None) -> float:
    cfg = config or LenientConfig()
    if not (_is_number(actual) and _is_number(expected)):
        return cfg.missing_complexity_credit
    difference = abs(actual - expected)
    for band, credit in zip(cfg.complexity_bands, cfg.complexity_band_credit):
        if difference < band:
            return credit
    return cfg.complexity_beyond_credit


def has_basic_shape_match(actual: FeatureSet, expected: FeatureSet) -> bool:
    return feature_similarity(actual, expected) >= 0.5


class LenientStrategy:
    """Child-friendly scoring: rewards visible effort and tolerates imprecise motor control."""

    name = MODE_LENIENT

    def __init__(
        self,
        config: Optional[LenientConfig] = None,
        strict: Optional[StrictStrategy] = None,
        features: Optional[FeatureConfig] = None,
    ) -> None:
        self.config = config or LenientConfig()
        self.strict = strict or StrictStrategy()
        self.features = features or FeatureConfig()

    def effort(self, drawing: PreprocessedDrawing) -> float:
        cfg = self.config
        return 0.5 * min(1.0, drawing.lenient_path_length / cfg.effort_path_length) + 0.5 * min(
            1.0, drawing.total_points / cfg.effort_point_count
        )

    def similarity(self, drawing: PreprocessedDrawing, template: CharacterTemplate) -> float:
        cfg = self.config
        return _clamp(
            cfg.stroke_weight * lenient_stroke_similarity(drawing.stroke_count, template.stroke_count, cfg)
            + cfg.feature_weight * lenient_feature_similarity(drawing.lenient_features, template.features, cfg)
            + cfg.complexity_weight * lenient_complexity_similarity(drawing.lenient_complexity, template.features.complexity, cfg)
            + cfg.effort_weight * self.effort(drawing)
        )

    def bonuses(self, drawing: PreprocessedDrawing, template: CharacterTemplate) -> Dict[str, float]:
        cfg = self.config
        bonuses: Dict[str, float] = {}
        if abs(drawing.lenient_complexity - template.features.complexity) < cfg.complexity_bonus_gap:
            bonuses["complexity"] = cfg.complexity_bonus
        if smoothness(drawing.lenient_strokes) > cfg.smoothness_threshold:
            bonuses["smoothness"] = cfg.smoothness_bonus
        speed = drawing_speed(drawing.lenient_strokes, self.features.reference_speed)
        low, high = cfg.pacing_range
        if speed is not None and low < speed < high:
            bonuses["pacing"] = cfg.pacing_bonus
        if drawing.stroke_count >= template.stroke_count * 0.5:
            bonuses["stroke_effort"] = cfg.stroke_effort_bonus
        if has_basic_shape_match(drawing.lenient_features, template.features):
            bonuses["shape_match"] = cfg.shape_match_bonus
        box = drawing.lenient_bounding_box
        min_area, max_area = cfg.reasonable_area
        if box is not None and min_area <= box.area <= max_area:
            bonuses["size"] = cfg.size_bonus
        return bonuses

    def confidence(self, similarity: float, drawing: PreprocessedDrawing, template: CharacterTemplate) -> float:
        cfg = self.config
        if drawing.stroke_count == 0:
            return 0.0
        confidence = max(similarity, cfg.confidence_floor)
        confidence += sum(self.bonuses(drawing, template).values())
        offset = _position_offset(drawing.bounding_box, drawing.canvas_size)
        if offset is not None and offset > cfg.position_tolerance:
            confidence *= cfg.position_penalty
        return _clamp(max(confidence, cfg.confidence_floor))

    def score(self, drawing: PreprocessedDrawing, template: CharacterTemplate) -> SimilarityScore:
        similarity = self.similarity(drawing, template)
        confidence = self.confidence(similarity, drawing, template)
        strict = self.strict.score(drawing, template)
        # Lenient mode never grades below strict mode for the same drawing.
        return SimilarityScore(
            similarity,
            max(confidence, strict.confidence),
            {"strict_confidence": strict.confidence, "effort": self.effort(drawing)},
        )

    def fallback(self) -> SimilarityScore:
        return SimilarityScore(0.0, self.config.fallback_confidence, {"fallback": True})


def resolve_strategy(mode: str, config: Optional[EngineConfig] = None) -> ScoringStrategy:
    config = config or EngineConfig()
    strict = StrictStrategy(config.strict)
    if mode == MODE_STRICT:
        return strict
    if mode == MODE_LENIENT:
        return LenientStrategy(config.lenient, strict, config.features)
    raise ValueError(f"Unsupported scoring mode: {mode!r}")


class SimilarityScorer:
    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()

    def score(self, drawing: Optional[PreprocessedDrawing], template: CharacterTemplate, mode: str = MODE_STRICT) -> SimilarityScore:
        strategy = resolve_strategy(mode, self.config)
        if drawing is None:
            return SimilarityScore(0.0, 0.0)
        try:
            return strategy.score(drawing, template)
        except (AttributeError, TypeError, ValueError, ZeroDivisionError):
            logger.exception("Scoring failed for %r in %s mode, using fallback", template.character, mode)
            return strategy.fallback()
