# ABOUTME: Tracks per-character practice attempts and derives mastery and freshness statistics.
# ABOUTME: Serves as the progress collaborator read by the selector and difficulty recommendation.

from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from .mastery_aggregation import aggregate_difficulty_mastery, summary_to_dict
from .schemas import Character, PracticeAttempt
from .storage import StorageBackend

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 100
RECENT_WINDOW = 10
FULL_CONFIDENCE_ATTEMPTS = 5
PROGRESS_KEY = "characterProgress"


def days_since_last_practice(last_practiced: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    """
    Fractional days between the last attempt and ``now``.

    Returns None for characters that were never practiced. Naive datetimes are
    treated as UTC. This is the only place freshness is computed.
    """

    if last_practiced is None:
        return None
    now = now or datetime.now(timezone.utc)
    if last_practiced.tzinfo is None:
        last_practiced = last_practiced.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return max((now - last_practiced).total_seconds() / 86400.0, 0.0)


class ProgressSource(Protocol):
    def record_character_practice(self, character: str, score: float, timestamp: Optional[datetime] = None) -> None:
        ...

    def get_character_progress(self, character: str) -> Optional["CharacterProgress"]:
        ...

    def get_progress_by_difficulty(self) -> Dict[int, Dict[str, float]]:
        ...


@dataclass
class CharacterProgress:
    character: str
    attempts: List[PracticeAttempt] = field(default_factory=list)

    def add_attempt(self, score: float, timestamp: datetime, details: Optional[Mapping[str, Any]] = None) -> None:
        self.attempts.append(PracticeAttempt(self.character, float(score), timestamp, dict(details or {})))
        if len(self.attempts) > MAX_ATTEMPTS:
            del self.attempts[: len(self.attempts) - MAX_ATTEMPTS]

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def average_score(self) -> float:
        if not self.attempts:
            return 0.0
        return sum(a.score for a in self.attempts) / len(self.attempts)

    @property
    def best_score(self) -> float:
        return max((a.score for a in self.attempts), default=0.0)

    @property
    def last_practiced(self) -> Optional[datetime]:
        return self.attempts[-1].timestamp if self.attempts else None

    @property
    def mastery_level(self) -> float:
        """Recent average scaled by attempt volume and score consistency."""
        if not self.attempts:
            return 0.0
        recent = [a.score for a in self.attempts[-RECENT_WINDOW:]]
        recent_average = sum(recent) / len(recent)
        volume = min(1.0, len(self.attempts) / FULL_CONFIDENCE_ATTEMPTS)
        if len(recent) >= 3:
            consistency = max(0.0, 1.0 - 2.0 * statistics.pstdev(recent))
        else:
            consistency = 0.5
        return recent_average * volume * consistency

    def days_since_last_practice(self, now: Optional[datetime] = None) -> Optional[float]:
        return days_since_last_practice(self.last_practiced, now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "character": self.character,
            "attempts": [
                {"score": a.score, "timestamp": a.timestamp.isoformat(), "details": dict(a.details)}
                for a in self.attempts
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CharacterProgress":
        progress = cls(character=str(data["character"]))
        for raw in data.get("attempts", []):
            progress.attempts.append(
                PracticeAttempt(
                    progress.character,
                    float(raw["score"]),
                    datetime.fromisoformat(raw["timestamp"]),
                    dict(raw.get("details") or {}),
                )
            )
        return progress


class ProgressTracker:
    """In-process progress collaborator, optionally persisted through a storage backend."""

    def __init__(
        self,
        characters: Sequence[Character],
        storage: Optional[StorageBackend] = None,
        mastery_threshold: float = 0.7,
        stale_after_days: float = 30.0,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.characters = list(characters)
        self.storage = storage
        self.mastery_threshold = mastery_threshold
        self.stale_after_days = stale_after_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._progress: Dict[str, CharacterProgress] = {}
        self._load()

    def _load(self) -> None:
        if self.storage is None:
            return
        try:
            stored = self.storage.load_data(PROGRESS_KEY) or {}
            for character, raw in stored.items():
                self._progress[character] = CharacterProgress.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.exception("Ignoring unreadable stored progress")
            self._progress = {}

    def _save(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.save_data(PROGRESS_KEY, {c: p.to_dict() for c, p in self._progress.items()})
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to persist progress")

    def record_character_practice(
        self,
        character: str,
        score: float,
        timestamp: Optional[datetime] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        progress = self._progress.setdefault(character, CharacterProgress(character))
        progress.add_attempt(score, timestamp or self._clock(), details)
        logger.debug("Recorded %s score=%.3f (attempts=%d)", character, score, progress.attempt_count)
        self._save()

    def get_character_progress(self, character: str) -> Optional[CharacterProgress]:
        return self._progress.get(character)

    def progress_frame_rows(self) -> List[Dict[str, Any]]:
        now = self._clock()
        rows = []
        for progress in self._progress.values():
            rows.append(
                {
                    "character": progress.character,
                    "attempt_count": progress.attempt_count,
                    "average_score": progress.average_score,
                    "mastery": progress.mastery_level,
                    "days_since": progress.days_since_last_practice(now),
                }
            )
        return rows

    def get_progress_by_difficulty(self) -> Dict[int, Dict[str, float]]:
        summary = aggregate_difficulty_mastery(
            [{"character": c.character, "difficulty": c.difficulty} for c in self.characters],
            self.progress_frame_rows(),
            mastery_threshold=self.mastery_threshold,
            stale_after_days=self.stale_after_days,
        )
        return summary_to_dict(summary)

    def reset(self) -> None:
        self._progress.clear()
        self._save()
