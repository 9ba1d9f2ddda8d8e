# ABOUTME: Normalizes raw strokes and derives orientation, curvature, and complexity features.
# ABOUTME: Runs once per attempt and emits both the strict view and the child-normalized view.

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from src.common.config import FeatureConfig
from src.common.schemas import BoundingBox, DrawingData, FeatureSet, Point, Stroke

from .child_normalization import normalize_child_drawing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreprocessedDrawing:
    """Everything downstream scoring needs, computed in a single pass."""

    stroke_count: int
    total_points: int
    normalized_strokes: List[Stroke]
    features: FeatureSet
    bounding_box: Optional[BoundingBox]
    canvas_size: Optional[Tuple[float, float]]
    path_length: float
    lenient_strokes: List[Stroke]
    lenient_features: FeatureSet
    lenient_bounding_box: Optional[BoundingBox]
    lenient_path_length: float

    @property
    def complexity(self) -> float:
        return self.features.complexity

    @property
    def lenient_complexity(self) -> float:
        return self.lenient_features.complexity


def normalize_strokes(strokes: Sequence[Stroke], bounding_box: Optional[BoundingBox]) -> List[Stroke]:
    """Map points into the unit square; degenerate boxes leave coordinates untouched."""
    if bounding_box is None or bounding_box.width == 0 or bounding_box.height == 0:
        return [list(s) for s in strokes]
    return [
        [
            Point((p.x - bounding_box.x) / bounding_box.width, (p.y - bounding_box.y) / bounding_box.height, p.timestamp_ms)
            for p in stroke
        ]
        for stroke in strokes
    ]


def _has_straight_run(primary: Sequence[float], secondary: Sequence[float], extent: float, drift: float, min_points: int) -> bool:
    """
    True when some contiguous run of at least ``min_points`` spans more than ``extent``
    along ``primary`` while its spread along ``secondary`` stays below ``drift``.

    Sliding window with monotonic deques; the secondary constraint only loosens as the
    window shrinks, so each right edge keeps the widest admissible window.
    """

    n = len(primary)
    if n < min_points:
        return False

    p_max: deque = deque()
    p_min: deque = deque()
    s_max: deque = deque()
    s_min: deque = deque()
    left = 0
    for right in range(n):
        for dq, values, keep_max in ((p_max, primary, True), (p_min, primary, False), (s_max, secondary, True), (s_min, secondary, False)):
            while dq and ((values[dq[-1]] <= values[right]) if keep_max else (values[dq[-1]] >= values[right])):
                dq.pop()
            dq.append(right)

        while left < right and secondary[s_max[0]] - secondary[s_min[0]] >= drift:
            left += 1
            for dq in (p_max, p_min, s_max, s_min):
                while dq and dq[0] < left:
                    dq.popleft()

        if right - left + 1 >= min_points and secondary[s_max[0]] - secondary[s_min[0]] < drift:
            if primary[p_max[0]] - primary[p_min[0]] > extent:
                return True
    return False


def turning_angles(stroke: Sequence[Point]) -> List[float]:
    """Signed direction changes between consecutive non-zero segments, in (-pi, pi]."""
    headings = []
    for prev, curr in zip(stroke, stroke[1:]):
        dx, dy = curr.x - prev.x, curr.y - prev.y
        if dx == 0 and dy == 0:
            continue
        headings.append(math.atan2(dy, dx))

    turns = []
    for a, b in zip(headings, headings[1:]):
        turn = b - a
        while turn > math.pi:
            turn -= 2 * math.pi
        while turn <= -math.pi:
            turn += 2 * math.pi
        turns.append(turn)
    return turns


def path_length(strokes: Sequence[Stroke]) -> float:
    return sum(math.hypot(b.x - a.x, b.y - a.y) for stroke in strokes for a, b in zip(stroke, stroke[1:]))


def extract_features(normalized_strokes: Sequence[Stroke], config: Optional[FeatureConfig] = None) -> FeatureSet:
    config = config or FeatureConfig()
    has_horizontal = has_vertical = has_curve = False
    turn_magnitudes: List[float] = []

    for stroke in normalized_strokes:
        xs = [p.x for p in stroke]
        ys = [p.y for p in stroke]
        if not has_horizontal:
            has_horizontal = _has_straight_run(
                xs, ys, config.line_extent_threshold, config.line_drift_threshold, config.min_run_points
            )
        if not has_vertical:
            has_vertical = _has_straight_run(
                ys, xs, config.line_extent_threshold, config.line_drift_threshold, config.min_run_points
            )

        turns = turning_angles(stroke)
        turn_magnitudes.extend(abs(t) / math.pi for t in turns)
        if turns and not has_curve:
            # Sharp bends or gradual arcs both count.
            has_curve = (
                max(abs(t) for t in turns) > config.curve_angle_threshold
                or abs(sum(turns)) > config.curve_angle_threshold
            )

    if has_horizontal and has_vertical:
        intersection = config.intersection_both
    elif has_horizontal or has_vertical:
        intersection = config.intersection_single
    else:
        intersection = 0.0
    angle_complexity = sum(turn_magnitudes) / len(turn_magnitudes) if turn_magnitudes else 0.0

    complexity = (
        config.curve_weight * (1.0 if has_curve else 0.0)
        + config.intersection_weight * intersection
        + config.angle_weight * angle_complexity
    )
    return FeatureSet(
        has_horizontal_line=has_horizontal,
        has_vertical_line=has_vertical,
        has_curve=has_curve,
        complexity=min(max(complexity, 0.0), 1.0),
    )


def smoothness(strokes: Sequence[Stroke]) -> float:
    """Mean of ``1 - |turn| / pi`` per stroke, averaged over strokes with at least 3 points."""
    per_stroke = []
    for stroke in strokes:
        if len(stroke) < 3:
            continue
        turns = turning_angles(stroke)
        if turns:
            per_stroke.append(sum(1 - abs(t) / math.pi for t in turns) / len(turns))
    return sum(per_stroke) / len(per_stroke) if per_stroke else 0.0


def drawing_speed(strokes: Sequence[Stroke], reference_speed: float = 0.01) -> Optional[float]:
    """Distance per millisecond relative to ``reference_speed``, clamped to [0, 1]; None without timing."""
    distance = 0.0
    elapsed = 0
    for stroke in strokes:
        for prev, curr in zip(stroke, stroke[1:]):
            distance += math.hypot(curr.x - prev.x, curr.y - prev.y)
            if curr.timestamp_ms and prev.timestamp_ms:
                elapsed += curr.timestamp_ms - prev.timestamp_ms
    if elapsed <= 0:
        return None
    return min(max((distance / elapsed) / reference_speed, 0.0), 1.0)


def preprocess(drawing: Optional[DrawingData], config: Optional[FeatureConfig] = None) -> Optional[PreprocessedDrawing]:
    """
    Normalize a drawing and extract features for both scoring strategies.

    Returns None for a missing drawing or one without strokes.
    """

    if drawing is None or not drawing.strokes:
        return None
    config = config or FeatureConfig()

    strokes = [list(s) for s in drawing.strokes if s]
    if not strokes:
        return None
    bounding_box = BoundingBox.from_strokes(strokes)
    normalized = normalize_strokes(strokes, bounding_box)

    child_strokes = normalize_child_drawing(strokes, config)
    child_box = BoundingBox.from_strokes(child_strokes)
    child_normalized = normalize_strokes(child_strokes, child_box)

    result = PreprocessedDrawing(
        stroke_count=len(strokes),
        total_points=sum(len(s) for s in strokes),
        normalized_strokes=normalized,
        features=extract_features(normalized, config),
        bounding_box=bounding_box,
        canvas_size=drawing.canvas_size,
        path_length=path_length(normalized),
        lenient_strokes=child_normalized,
        lenient_features=extract_features(child_normalized, config),
        lenient_bounding_box=child_box,
        lenient_path_length=path_length(child_normalized),
    )
    logger.debug(
        "Preprocessed %d strokes / %d points, features=%s",
        result.stroke_count,
        result.total_points,
        result.features,
    )
    return result
