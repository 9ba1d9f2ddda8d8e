# ABOUTME: Defines canonical data structures shared by recognition, grading, and selection.
# ABOUTME: Centralizes stroke, drawing, template, character, and result schema definitions.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

LEVEL_EXCELLENT = "excellent"
LEVEL_FAIR = "fair"
LEVEL_POOR = "poor"
LEVELS = (LEVEL_EXCELLENT, LEVEL_FAIR, LEVEL_POOR)


@dataclass(frozen=True)
class Point:
    """Single captured pen/touch sample."""

    x: float
    y: float
    timestamp_ms: int = 0


Stroke = List[Point]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box around every point of a drawing."""

    x: float
    y: float
    width: float
    height: float
    center_x: float
    center_y: float

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> Optional[float]:
        """Width over height; None when both sides are zero, inf when only height is."""
        if self.height == 0:
            return None if self.width == 0 else math.inf
        return self.width / self.height

    @classmethod
    def from_strokes(cls, strokes: Sequence[Sequence[Point]]) -> Optional["BoundingBox"]:
        xs = [p.x for stroke in strokes for p in stroke]
        ys = [p.y for stroke in strokes for p in stroke]
        if not xs:
            return None
        min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)
        return cls(
            x=min_x,
            y=min_y,
            width=max_x - min_x,
            height=max_y - min_y,
            center_x=(min_x + max_x) / 2,
            center_y=(min_y + max_y) / 2,
        )


@dataclass
class DrawingData:
    """Strokes captured for one attempt; the bounding box tracks every addition."""

    strokes: List[Stroke] = field(default_factory=list)
    device_type: str = "unknown"
    canvas_size: Optional[Tuple[float, float]] = None
    bounding_box: Optional[BoundingBox] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.strokes = [list(stroke) for stroke in self.strokes if stroke]
        self.bounding_box = BoundingBox.from_strokes(self.strokes)

    def add_stroke(self, points: Iterable[Point]) -> None:
        stroke = list(points)
        if not stroke:
            logger.warning("Ignoring empty stroke")
            return
        self.strokes.append(stroke)
        self.bounding_box = BoundingBox.from_strokes(self.strokes)

    def clear(self) -> None:
        self.strokes = []
        self.bounding_box = None

    def is_empty(self) -> bool:
        return self.total_points == 0

    @property
    def stroke_count(self) -> int:
        return len(self.strokes)

    @property
    def total_points(self) -> int:
        return sum(len(stroke) for stroke in self.strokes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strokes": [[{"x": p.x, "y": p.y, "timestamp_ms": p.timestamp_ms} for p in s] for s in self.strokes],
            "device_type": self.device_type,
            "canvas_size": list(self.canvas_size) if self.canvas_size else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DrawingData":
        """
        Rebuild a drawing from its serialized form.

        Points may be dicts (``x``, ``y``, ``timestamp_ms`` or ``timestamp``) or
        ``[x, y]`` / ``[x, y, t]`` lists.
        """

        strokes = [[_parse_point(raw) for raw in stroke] for stroke in data.get("strokes") or []]
        canvas = data.get("canvas_size")
        return cls(
            strokes=strokes,
            device_type=str(data.get("device_type", "unknown")),
            canvas_size=(float(canvas[0]), float(canvas[1])) if canvas else None,
        )


def _parse_point(raw: Any) -> Point:
    if isinstance(raw, Point):
        return raw
    if isinstance(raw, Mapping):
        timestamp = raw.get("timestamp_ms", raw.get("timestamp", 0))
        return Point(float(raw["x"]), float(raw["y"]), int(timestamp or 0))
    values = list(raw)
    timestamp = int(values[2]) if len(values) > 2 else 0
    return Point(float(values[0]), float(values[1]), timestamp)


@dataclass(frozen=True)
class FeatureSet:
    """Coarse geometric descriptor of a glyph."""

    has_horizontal_line: bool = False
    has_vertical_line: bool = False
    has_curve: bool = False
    complexity: float = 0.0

    def flags(self) -> Tuple[bool, bool, bool]:
        return (self.has_horizontal_line, self.has_vertical_line, self.has_curve)


@dataclass(frozen=True)
class CharacterTemplate:
    """Reference descriptor a drawing is compared against."""

    character: str
    stroke_count: int
    features: FeatureSet


@dataclass(frozen=True)
class Character:
    """A practicable hiragana character with its reference geometry."""

    character: str
    reading: str
    difficulty: int
    category: str
    stroke_count: int
    features: FeatureSet

    @property
    def template(self) -> CharacterTemplate:
        return CharacterTemplate(self.character, self.stroke_count, self.features)

    @property
    def stroke_complexity_level(self) -> str:
        if self.stroke_count <= 2:
            return "beginner"
        if self.stroke_count == 3:
            return "intermediate"
        return "advanced"

    @property
    def complexity_score(self) -> float:
        """Curve, intersection, and angle complexity combined (0.4 / 0.3 / 0.3)."""
        f = self.features
        curve = 0.4 if f.has_curve else 0.0
        if f.has_horizontal_line and f.has_vertical_line:
            intersection = 0.8
        elif f.has_horizontal_line or f.has_vertical_line:
            intersection = 0.4
        else:
            intersection = 0.0
        return min(max(curve + intersection * 0.3 + f.complexity * 0.3, 0.0), 1.0)


@dataclass(frozen=True)
class RecognitionResult:
    character: Optional[str]
    confidence: float
    recognized: bool
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ScoreResult:
    level: str
    score: float
    confidence: float
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Feedback:
    message: str
    encouragement: str
    suggestion: str
    encouraging_note: str
    icon: str
    show_example: bool


@dataclass(frozen=True)
class PracticeAttempt:
    """One graded attempt as recorded by the progress collaborator."""

    character: str
    score: float
    timestamp: datetime
    details: Mapping[str, Any] = field(default_factory=dict)
