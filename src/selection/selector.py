# ABOUTME: Adaptive practice selector drawing the next character by weighted random choice.
# ABOUTME: Weights grow after low scores, shrink after high ones, and are biased by practice history.

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.common.config import SelectionConfig
from src.common.progress import ProgressSource
from src.common.schemas import Character

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionOptions:
    difficulty_filter: Optional[int] = None
    category_filter: Optional[str] = None
    avoid_recent: bool = True
    use_progress_weighting: bool = True

    @classmethod
    def coerce(cls, options: Any) -> "SelectionOptions":
        """Accept an instance, a mapping of field names, or None."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = set(options) - known
            if unknown:
                logger.warning("Ignoring unknown selection options %s", sorted(map(str, unknown)))
            return cls(**{key: value for key, value in options.items() if key in known})
        logger.warning("Ignoring selection options of type %s", type(options).__name__)
        return cls()


class AdaptiveSelector:
    """
    Owns the per-character selection weights and the recently-shown history.

    Callers must pass each graded attempt to ``update_selection_weights`` before
    the next ``select_next`` that should reflect it.
    """

    def __init__(
        self,
        characters: Sequence[Character],
        config: Optional[SelectionConfig] = None,
        progress: Optional[ProgressSource] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ) -> None:
        if not characters:
            raise ValueError("AdaptiveSelector needs at least one character")
        self.characters = list(characters)
        self.config = config or SelectionConfig()
        self.progress = progress
        self.rng = rng or random.Random(seed)
        self._by_character = {c.character: c for c in self.characters}
        self.selection_weights: Dict[str, float] = {}
        self.recent: deque = deque(maxlen=self.config.recent_history)
        self.reset()

    def reset(self) -> None:
        self.selection_weights = {c.character: self.config.initial_weight for c in self.characters}
        self.recent.clear()

    def candidate_pool(self, options: Any = None) -> List[Character]:
        options = SelectionOptions.coerce(options)
        pool = self.characters
        if options.difficulty_filter is not None:
            pool = [c for c in pool if c.difficulty == options.difficulty_filter]
        if options.category_filter is not None:
            pool = [c for c in pool if c.category == options.category_filter]
        if not pool:
            logger.warning(
                "No characters match difficulty=%r category=%r, using the full set",
                options.difficulty_filter,
                options.category_filter,
            )
            return list(self.characters)
        return list(pool)

    def effective_weight(self, character: Character, use_progress_weighting: bool = True) -> float:
        """Stored weight adjusted by practice history; never below the minimum weight."""
        cfg = self.config
        weight = self.selection_weights.get(character.character, cfg.initial_weight)
        if use_progress_weighting and self.progress is not None:
            progress = self.progress.get_character_progress(character.character)
            if progress is None:
                weight *= cfg.unseen_multiplier
            else:
                if progress.attempt_count == 0:
                    weight *= cfg.unpracticed_multiplier
                elif progress.attempt_count < cfg.few_attempts:
                    weight *= cfg.few_attempts_multiplier

                if progress.average_score < cfg.struggling_score:
                    weight *= cfg.struggling_multiplier
                elif progress.average_score < cfg.shaky_score:
                    weight *= cfg.shaky_multiplier

                days = progress.days_since_last_practice()
                if days is not None:
                    if days > cfg.long_absence_days:
                        weight *= cfg.long_absence_multiplier
                    elif days > cfg.short_absence_days:
                        weight *= cfg.short_absence_multiplier
        return max(cfg.min_weight, weight)

    def select_next(
        self,
        exclude_character: Optional[str] = None,
        options: Any = None,
    ) -> Character:
        options = SelectionOptions.coerce(options)
        pool = self.candidate_pool(options)

        excluded = set()
        if exclude_character:
            excluded.add(exclude_character)
        if options.avoid_recent:
            excluded.update(self.recent)
        draw_pool = [c for c in pool if c.character not in excluded] or pool

        weights = [self.effective_weight(c, options.use_progress_weighting) for c in draw_pool]
        chosen = self.rng.choices(draw_pool, weights=weights, k=1)[0]
        self.recent.append(chosen.character)
        logger.debug("Selected %s from %d candidates", chosen.character, len(draw_pool))
        return chosen

    def update_selection_weights(self, character: str, score: float, difficulty: Optional[int] = None) -> None:
        if character not in self.selection_weights:
            logger.warning("Ignoring weight update for unknown character %r", character)
            return
        cfg = self.config
        weight = self.selection_weights[character]
        if score >= cfg.high_score:
            weight *= cfg.high_score_factor
        elif score < cfg.low_score:
            weight *= cfg.low_score_factor
        self.selection_weights[character] = min(max(weight, cfg.min_weight), cfg.max_weight)
        logger.debug("Weight for %s is now %.2f", character, self.selection_weights[character])

    def get_recommended_difficulty(self, progress_summary: Optional[Mapping[int, Mapping[str, float]]] = None) -> int:
        tiers = sorted({c.difficulty for c in self.characters})
        if progress_summary is None and self.progress is not None:
            progress_summary = self.progress.get_progress_by_difficulty()
        if not progress_summary:
            return tiers[0]
        for tier in tiers:
            stats = progress_summary.get(tier)
            if stats is None or stats.get("mastery_rate", 0.0) < self.config.mastery_threshold:
                return tier
        return tiers[-1]

    def statistics(self) -> Dict[str, Any]:
        weights = list(self.selection_weights.values())
        return {
            "total_characters": len(self.characters),
            "recent": list(self.recent),
            "average_weight": sum(weights) / len(weights),
            "min_weight": min(weights),
            "max_weight": max(weights),
        }

    def to_dict(self) -> Dict[str, float]:
        return dict(self.selection_weights)

    def load_weights(self, weights: Optional[Mapping[str, Any]]) -> None:
        """Restore persisted weights; unknown characters and non-numeric values are skipped."""
        if not weights:
            return
        cfg = self.config
        for character, value in weights.items():
            if character in self.selection_weights and isinstance(value, (int, float)):
                self.selection_weights[character] = min(max(float(value), cfg.min_weight), cfg.max_weight)
