# ABOUTME: Facade wiring recognition, grading, selection, and progress into three entry points.
# ABOUTME: Every public call returns a well-formed result; failures degrade instead of raising.

from __future__ import annotations

import logging
import math
import numbers
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from src.common.config import EngineConfig, load_engine_config
from src.common.progress import ProgressSource, ProgressTracker
from src.common.schemas import LEVEL_FAIR, LEVEL_POOR, Character, DrawingData, Feedback, ScoreResult
from src.common.storage import InMemoryStorage, StorageBackend
from src.grading.engine import GradingEngine
from src.grading.feedback import feedback_for
from src.recognition.recognizer import Recognizer
from src.recognition.similarity import MODE_LENIENT, MODE_STRICT, MODES
from src.recognition.templates import TemplateStore
from src.selection.selector import AdaptiveSelector

logger = logging.getLogger(__name__)

WEIGHTS_KEY = "selectionWeights"


class PracticeEngine:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        storage: Optional[StorageBackend] = None,
        progress: Optional[ProgressSource] = None,
        store: Optional[TemplateStore] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.storage = storage if storage is not None else InMemoryStorage()
        self.store = store or TemplateStore()
        self.progress = progress or ProgressTracker(
            self.store.characters(),
            storage=self.storage,
            mastery_threshold=self.config.selection.mastery_threshold,
            stale_after_days=self.config.selection.stale_after_days,
        )
        self.recognizer = Recognizer(self.store, self.config)
        self.grader = GradingEngine(self.config.grading)
        self.selector = AdaptiveSelector(self.store.characters(), self.config.selection, self.progress, seed=seed)
        self._restore_weights()

    @classmethod
    def from_config_file(cls, config_path: Optional[Path], **kwargs: Any) -> "PracticeEngine":
        return cls(config=load_engine_config(config_path), **kwargs)

    def _restore_weights(self) -> None:
        try:
            self.selector.load_weights(self.storage.load_data(WEIGHTS_KEY))
        except (OSError, TypeError, ValueError, AttributeError):
            logger.exception("Could not restore selection weights")

    def evaluate_attempt(self, drawing: Optional[DrawingData], target_character: str, mode: str = MODE_LENIENT) -> ScoreResult:
        if mode not in MODES:
            logger.warning("Unknown mode %r, falling back to %s", mode, MODE_STRICT)
            mode = MODE_STRICT
        try:
            recognition = self.recognizer.recognize(drawing, target_character, mode)
            return self.grader.grade(recognition, target_character, drawing, mode)
        except (AttributeError, TypeError, ValueError, KeyError, ZeroDivisionError):
            logger.exception("Evaluation failed for %r", target_character)
            if mode == MODE_LENIENT:
                confidence = self.config.lenient.fallback_confidence
                return ScoreResult(LEVEL_FAIR, confidence, confidence, {"fallback": True, "target": target_character})
            return ScoreResult(LEVEL_POOR, 0.0, 0.0, {"fallback": True, "target": target_character})

    def feedback_for(self, score_result: ScoreResult, target_character: str) -> Feedback:
        return feedback_for(score_result, target_character)

    def select_next_character(
        self,
        exclude_character: Optional[str] = None,
        options: Any = None,
    ) -> Character:
        return self.selector.select_next(exclude_character, options)

    def record_outcome(self, character: str, score: float, timestamp: Optional[datetime] = None) -> None:
        if isinstance(score, bool) or not isinstance(score, numbers.Real) or not math.isfinite(score):
            logger.warning("Ignoring outcome for %r with invalid score %r", character, score)
            return
        score = min(max(float(score), 0.0), 1.0)
        character_info = self.store.get_character(character)
        difficulty = character_info.difficulty if character_info else None
        self.selector.update_selection_weights(character, score, difficulty)
        try:
            self.progress.record_character_practice(character, score, timestamp)
        except (OSError, TypeError, ValueError):
            logger.exception("Progress collaborator rejected %r", character)
        try:
            self.storage.save_data(WEIGHTS_KEY, self.selector.to_dict())
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to persist selection weights")

    def recommended_difficulty(self) -> int:
        try:
            summary = self.progress.get_progress_by_difficulty()
        except (OSError, TypeError, ValueError, KeyError):
            logger.exception("Progress summary unavailable")
            summary = None
        return self.selector.get_recommended_difficulty(summary)

    @property
    def selection_weights(self):
        return self.selector.selection_weights
