# ABOUTME: Maps recognition confidence into an excellent/fair/poor grade and a numeric score.
# ABOUTME: Short-circuits empty drawings and failed recognitions to a deterministic poor result.

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from src.common.config import GradingConfig
from src.common.schemas import (
    LEVEL_EXCELLENT,
    LEVEL_FAIR,
    LEVEL_POOR,
    DrawingData,
    RecognitionResult,
    ScoreResult,
)

logger = logging.getLogger(__name__)

REASON_NO_DRAWING = "no_drawing"
REASON_RECOGNITION_FAILED = "recognition_failed"


def drawing_quality(drawing: DrawingData, config: Optional[GradingConfig] = None) -> float:
    cfg = config or GradingConfig()
    quality = 1.0
    points = drawing.total_points
    if points < cfg.quality_min_points:
        quality *= cfg.few_points_quality
    elif points > cfg.quality_max_points:
        quality *= cfg.many_points_quality

    box = drawing.bounding_box
    if box is not None:
        if box.area < cfg.quality_min_area:
            quality *= cfg.small_area_quality
        elif box.area > cfg.quality_max_area:
            quality *= cfg.large_area_quality
        aspect = box.aspect_ratio
        if aspect is not None and (aspect < cfg.quality_min_aspect or aspect > cfg.quality_max_aspect):
            quality *= cfg.aspect_quality
    return min(max(quality, 0.0), 1.0)


def drawing_effort(drawing: DrawingData, config: Optional[GradingConfig] = None) -> float:
    """Base credit for trying plus increments for stroke count, point volume, and size."""
    if drawing.is_empty():
        return 0.0
    cfg = config or GradingConfig()
    effort = cfg.effort_base + min(cfg.effort_stroke_cap, drawing.stroke_count * cfg.effort_per_stroke)
    if drawing.total_points > cfg.effort_min_points:
        effort += cfg.effort_points_bonus
    box = drawing.bounding_box
    if box is not None and box.area > cfg.effort_min_area:
        effort += cfg.effort_area_bonus
    return min(effort, 1.0)


def shape_score(recognition: RecognitionResult, drawing: DrawingData, config: Optional[GradingConfig] = None) -> float:
    cfg = config or GradingConfig()
    score = 0.0
    factors = 0.0
    expected = recognition.details.get("expected_strokes")
    if isinstance(expected, int) and expected > 0:
        difference = abs(drawing.stroke_count - expected)
        score += max(0.0, 1.0 - difference * cfg.stroke_difference_penalty) * cfg.shape_stroke_weight
        factors += cfg.shape_stroke_weight
    similarity = recognition.details.get("similarity")
    if isinstance(similarity, (int, float)):
        score += similarity * cfg.shape_similarity_weight
        factors += cfg.shape_similarity_weight
    score += drawing_quality(drawing, cfg) * cfg.shape_quality_weight
    factors += cfg.shape_quality_weight
    return score / factors if factors else 0.0


class GradingEngine:
    def __init__(self, config: Optional[GradingConfig] = None) -> None:
        self.config = config or GradingConfig()

    def classify(self, confidence: float, stroke_difference: Optional[int], mode: str) -> str:
        """Inclusive lower bounds; excellent also needs the stroke count within tolerance."""
        thresholds = self.config.thresholds_for(mode)
        if confidence >= thresholds.excellent:
            if stroke_difference is None or stroke_difference <= thresholds.stroke_tolerance:
                return LEVEL_EXCELLENT
            return LEVEL_FAIR
        if confidence >= thresholds.fair:
            return LEVEL_FAIR
        return LEVEL_POOR

    def grade(
        self,
        recognition: RecognitionResult,
        target_character: str,
        drawing: Optional[DrawingData],
        mode: str = "strict",
    ) -> ScoreResult:
        if drawing is None or drawing.is_empty() or recognition.details.get("reason") == REASON_NO_DRAWING:
            return ScoreResult(LEVEL_POOR, 0.0, 0.0, {"reason": REASON_NO_DRAWING, "target": target_character})

        if not recognition.recognized:
            return ScoreResult(
                LEVEL_POOR,
                0.0,
                0.0,
                {
                    "reason": REASON_RECOGNITION_FAILED,
                    "target": target_character,
                    "stroke_count": drawing.stroke_count,
                    "expected_strokes": recognition.details.get("expected_strokes"),
                },
            )

        expected = recognition.details.get("expected_strokes")
        difference = abs(drawing.stroke_count - expected) if isinstance(expected, int) else None

        shape = shape_score(recognition, drawing, self.config)
        effort = drawing_effort(drawing, self.config)
        confidence = recognition.confidence
        cfg = self.config
        score = min(
            max(cfg.shape_weight * shape + cfg.confidence_weight * confidence + cfg.effort_weight * effort, 0.0),
            1.0,
        )
        level = self.classify(confidence, difference, mode)

        details: Dict[str, Any] = {
            "target": target_character,
            "mode": mode,
            "shape_score": shape,
            "confidence_score": confidence,
            "effort_score": effort,
            "quality_score": drawing_quality(drawing, self.config),
            "stroke_count": drawing.stroke_count,
            "expected_strokes": expected,
            "similarity": recognition.details.get("similarity", 0.0),
            "features": recognition.details.get("features"),
        }
        for key in ("encouragement_level", "template_missing", "fallback"):
            if key in recognition.details:
                details[key] = recognition.details[key]

        logger.debug("Graded %r as %s (score=%.3f, confidence=%.3f)", target_character, level, score, confidence)
        return ScoreResult(level, score, confidence, details)
