# ABOUTME: Turns a captured drawing into a RecognitionResult for a target character.
# ABOUTME: Preprocesses once, scores with the requested strategy, and never raises on bad input.

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from src.common.config import EngineConfig
from src.common.schemas import LEVEL_EXCELLENT, LEVEL_FAIR, LEVEL_POOR, DrawingData, RecognitionResult

from .features import PreprocessedDrawing, preprocess
from .similarity import MODE_LENIENT, MODE_STRICT, SimilarityScorer, resolve_strategy
from .templates import TemplateStore

logger = logging.getLogger(__name__)


def encouragement_level(confidence: float, config: Optional[EngineConfig] = None) -> str:
    thresholds = (config or EngineConfig()).grading.lenient
    if confidence >= thresholds.excellent:
        return LEVEL_EXCELLENT
    if confidence >= thresholds.fair:
        return LEVEL_FAIR
    return LEVEL_POOR


class Recognizer:
    def __init__(self, store: Optional[TemplateStore] = None, config: Optional[EngineConfig] = None) -> None:
        self.store = store or TemplateStore()
        self.config = config or EngineConfig()
        self.scorer = SimilarityScorer(self.config)

    def _is_recognized(self, confidence: float, mode: str) -> bool:
        if mode == MODE_LENIENT:
            return confidence >= self.config.lenient.recognition_threshold
        return confidence > self.config.strict.recognition_threshold

    def recognize(
        self,
        drawing: Optional[DrawingData],
        target_character: str,
        mode: str = MODE_STRICT,
        preprocessed: Optional[PreprocessedDrawing] = None,
    ) -> RecognitionResult:
        resolve_strategy(mode, self.config)
        try:
            prepared = preprocessed if preprocessed is not None else preprocess(drawing, self.config.features)
        except (AttributeError, TypeError, ValueError, KeyError):
            logger.exception("Malformed drawing for %r", target_character)
            return self.fallback_result(target_character, mode)

        if prepared is None:
            return RecognitionResult(None, 0.0, False, {"reason": "no_drawing", "mode": mode})

        template, missing = self.store.template_or_baseline(target_character)
        score = self.scorer.score(prepared, template, mode)
        if score.details.get("fallback"):
            return self.fallback_result(target_character, mode)

        details: Dict[str, Any] = {
            "similarity": score.similarity,
            "stroke_count": prepared.stroke_count,
            "expected_strokes": template.stroke_count,
            "total_points": prepared.total_points,
            "features": prepared.features,
            "mode": mode,
        }
        if missing:
            details["template_missing"] = True
        if mode == MODE_LENIENT:
            details["encouragement_level"] = encouragement_level(score.confidence, self.config)
            details["child_friendly_score"] = score.confidence
            details["strict_confidence"] = score.details.get("strict_confidence", 0.0)
            details["effort"] = score.details.get("effort", 0.0)

        recognized = self._is_recognized(score.confidence, mode)
        logger.debug(
            "Recognized %r (%s): similarity=%.3f confidence=%.3f recognized=%s",
            target_character,
            mode,
            score.similarity,
            score.confidence,
            recognized,
        )
        return RecognitionResult(target_character, score.confidence, recognized, details)

    def fallback_result(self, target_character: str, mode: str) -> RecognitionResult:
        if mode == MODE_LENIENT:
            confidence = self.config.lenient.fallback_confidence
            return RecognitionResult(
                target_character,
                confidence,
                True,
                {
                    "fallback": True,
                    "mode": mode,
                    "encouragement_level": LEVEL_FAIR,
                    "child_friendly_score": confidence,
                },
            )
        return RecognitionResult(target_character, 0.0, False, {"fallback": True, "mode": mode})
