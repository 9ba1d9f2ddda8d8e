# ABOUTME: Tests tremor smoothing, gap interpolation, and size normalization passes.
# ABOUTME: Uses tiny hand-built strokes so expected coordinates are easy to verify.

import pytest

from src.common.config import FeatureConfig
from src.common.schemas import BoundingBox, Point
from src.recognition.child_normalization import (
    interpolate_gaps,
    normalize_child_drawing,
    normalize_size,
    smooth_tremor,
)


def _zigzag(n=9, amplitude=4.0, step=10.0):
    return [Point(i * step, amplitude if i % 2 else -amplitude, i * 16) for i in range(n)]


def test_smooth_tremor_keeps_endpoints_and_length():
    stroke = _zigzag()
    smoothed = smooth_tremor([stroke])[0]
    assert len(smoothed) == len(stroke)
    assert smoothed[0] == stroke[0]
    assert smoothed[-1] == stroke[-1]


def test_smooth_tremor_reduces_zigzag_amplitude():
    stroke = _zigzag()
    smoothed = smooth_tremor([stroke])[0]
    original_spread = max(abs(p.y) for p in stroke[1:-1])
    smoothed_spread = max(abs(p.y) for p in smoothed[1:-1])
    assert smoothed_spread < original_spread


def test_short_strokes_are_not_smoothed():
    stroke = [Point(0, 0), Point(5, 5)]
    assert smooth_tremor([stroke]) == [stroke]


def test_interpolate_spatial_gap():
    completed = interpolate_gaps([[Point(0, 0, 0), Point(50, 0, 100)]])[0]
    assert len(completed) == 6
    assert [p.x for p in completed] == pytest.approx([0, 10, 20, 30, 40, 50])
    assert completed[1].timestamp_ms == 20


def test_interpolate_temporal_gap():
    completed = interpolate_gaps([[Point(0, 0, 0), Point(15, 0, 400)]])[0]
    assert len(completed) == 3
    assert completed[1].x == pytest.approx(7.5)
    assert completed[1].timestamp_ms == 200


def test_close_points_are_left_alone():
    stroke = [Point(0, 0, 0), Point(5, 0, 16), Point(10, 0, 32)]
    assert interpolate_gaps([stroke]) == [stroke]


def test_normalize_size_scales_small_drawing_up_about_center():
    stroke = [Point(0, 0), Point(10, 10)]
    box = BoundingBox.from_strokes([stroke])
    scaled = normalize_size([stroke], box)[0]
    scaled_box = BoundingBox.from_strokes([scaled])
    assert scaled_box.width == pytest.approx(60.0)
    assert scaled_box.center_x == pytest.approx(box.center_x)
    assert scaled_box.center_y == pytest.approx(box.center_y)


def test_normalize_size_scales_large_drawing_down():
    stroke = [Point(0, 0), Point(300, 150)]
    scaled = normalize_size([stroke], BoundingBox.from_strokes([stroke]))[0]
    assert BoundingBox.from_strokes([scaled]).width == pytest.approx(140.0)


def test_normalize_size_keeps_drawings_in_band():
    stroke = [Point(0, 0), Point(100, 80)]
    assert normalize_size([stroke], BoundingBox.from_strokes([stroke])) == [stroke]


def test_normalize_child_drawing_handles_empty_input():
    assert normalize_child_drawing([], FeatureConfig()) == []
