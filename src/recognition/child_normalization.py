# ABOUTME: Normalization passes that make imprecise child strokes comparable to templates.
# ABOUTME: Smooths tremor, bridges unintended pen lifts, and rescales tiny or huge drawings.

from __future__ import annotations

import math
from typing import List, Optional, Sequence

import numpy as np

from src.common.config import FeatureConfig
from src.common.schemas import BoundingBox, Point, Stroke


def _as_array(stroke: Sequence[Point]) -> np.ndarray:
    return np.array([(p.x, p.y) for p in stroke], dtype=float)


def smooth_tremor(strokes: Sequence[Stroke], jitter_px: float = 2.0) -> List[Stroke]:
    """
    Three-point moving average over interior points; endpoints are kept.

    A smoothed point that lands within ``jitter_px`` of its predecessor is pulled
    halfway back toward it, damping sub-pixel shaking further.
    """

    smoothed: List[Stroke] = []
    for stroke in strokes:
        if len(stroke) < 3:
            smoothed.append(list(stroke))
            continue
        coords = _as_array(stroke)
        averaged = (coords[:-2] + coords[1:-1] + coords[2:]) / 3.0
        prev = coords[:-2]
        close = np.hypot(averaged[:, 0] - prev[:, 0], averaged[:, 1] - prev[:, 1]) < jitter_px
        averaged[close] = (prev[close] + averaged[close]) / 2.0

        out = [stroke[0]]
        for (x, y), original in zip(averaged, stroke[1:-1]):
            out.append(Point(float(x), float(y), original.timestamp_ms))
        out.append(stroke[-1])
        smoothed.append(out)
    return smoothed


def interpolate_gaps(
    strokes: Sequence[Stroke],
    gap_distance_px: float = 20.0,
    gap_time_ms: int = 150,
    step_px: float = 10.0,
) -> List[Stroke]:
    """Insert evenly spaced points across spatial or temporal gaps between consecutive samples."""

    completed: List[Stroke] = []
    for stroke in strokes:
        if len(stroke) < 2:
            completed.append(list(stroke))
            continue
        out = [stroke[0]]
        for prev, curr in zip(stroke, stroke[1:]):
            distance = math.hypot(curr.x - prev.x, curr.y - prev.y)
            elapsed = curr.timestamp_ms - prev.timestamp_ms
            if distance > gap_distance_px or elapsed > gap_time_ms:
                steps = math.ceil(distance / step_px)
                for j in range(1, steps):
                    frac = j / steps
                    out.append(
                        Point(
                            prev.x + (curr.x - prev.x) * frac,
                            prev.y + (curr.y - prev.y) * frac,
                            int(prev.timestamp_ms + elapsed * frac),
                        )
                    )
            out.append(curr)
        completed.append(out)
    return completed


def normalize_size(
    strokes: Sequence[Stroke],
    bounding_box: Optional[BoundingBox],
    standard_size_px: float = 100.0,
    tolerance: float = 0.4,
) -> List[Stroke]:
    """Scale about the box centre so the longer side falls inside the standard size band."""

    if bounding_box is None or bounding_box.width == 0 or bounding_box.height == 0:
        return [list(s) for s in strokes]

    current = max(bounding_box.width, bounding_box.height)
    min_size = standard_size_px * (1 - tolerance)
    max_size = standard_size_px * (1 + tolerance)
    if current < min_size:
        scale = min_size / current
    elif current > max_size:
        scale = max_size / current
    else:
        return [list(s) for s in strokes]

    cx, cy = bounding_box.center_x, bounding_box.center_y
    return [
        [Point(cx + (p.x - cx) * scale, cy + (p.y - cy) * scale, p.timestamp_ms) for p in stroke]
        for stroke in strokes
    ]


def normalize_child_drawing(strokes: Sequence[Stroke], config: FeatureConfig) -> List[Stroke]:
    if not strokes:
        return []
    result = smooth_tremor(strokes, config.jitter_px)
    result = interpolate_gaps(result, config.gap_distance_px, config.gap_time_ms, config.gap_step_px)
    return normalize_size(
        result,
        BoundingBox.from_strokes(result),
        config.standard_size_px,
        config.size_tolerance,
    )
