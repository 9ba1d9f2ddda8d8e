# ABOUTME: Tests strict and lenient similarity scoring against character templates.
# ABOUTME: Checks sub-score properties, confidence penalties, and the lenient-over-strict guarantee.

import itertools
import math
import random
from dataclasses import replace

import pytest

from src.common.config import LenientConfig
from src.common.schemas import CharacterTemplate, DrawingData, FeatureSet, Point
from src.recognition.features import preprocess
from src.recognition.similarity import (
    LenientStrategy,
    SimilarityScorer,
    StrictStrategy,
    complexity_similarity,
    feature_similarity,
    lenient_complexity_similarity,
    lenient_stroke_similarity,
    resolve_strategy,
    stroke_count_similarity,
)
from src.recognition.templates import TemplateStore


def _line(x0, y0, x1, y1, n=10, t0=0):
    return [
        Point(x0 + (x1 - x0) * i / (n - 1), y0 + (y1 - y0) * i / (n - 1), t0 + 16 * i)
        for i in range(n)
    ]


def _arc(cx, cy, r, start, end, n=10, t0=0):
    return [
        Point(cx + r * math.cos(start + (end - start) * i / (n - 1)), cy + r * math.sin(start + (end - start) * i / (n - 1)), t0 + 16 * i)
        for i in range(n)
    ]


def _a_like_drawing(canvas_size=None):
    return DrawingData(
        strokes=[
            _line(10, 30, 110, 30),
            _line(60, 10, 60, 110, t0=400),
            _arc(60, 80, 30, 0, math.pi, t0=800),
        ],
        canvas_size=canvas_size,
    )


def test_stroke_count_similarity_exact_match_and_zero_expected():
    assert stroke_count_similarity(3, 3) == 1.0
    assert stroke_count_similarity(1, 0) == 0.0
    assert stroke_count_similarity(0, 0) == 1.0


@pytest.mark.parametrize("expected", [1, 2, 3, 4])
def test_stroke_count_similarity_non_increasing_in_difference(expected):
    by_difference = {}
    for actual in range(0, 15):
        by_difference.setdefault(abs(actual - expected), []).append(stroke_count_similarity(actual, expected))
    differences = sorted(by_difference)
    for smaller, larger in zip(differences, differences[1:]):
        assert max(by_difference[larger]) <= min(by_difference[smaller])


def test_feature_similarity_is_reflexive():
    for flags in itertools.product([False, True], repeat=3):
        features = FeatureSet(*flags, complexity=0.4)
        assert feature_similarity(features, features) == 1.0


def test_feature_similarity_counts_agreeing_flags():
    a = FeatureSet(True, True, True, 0.7)
    b = FeatureSet(True, False, False, 0.7)
    assert feature_similarity(a, b) == pytest.approx(1 / 3)
    assert feature_similarity(None, b) == 0.0
    assert feature_similarity(a, None) == 0.0


def test_complexity_similarity():
    assert complexity_similarity(0.2, 0.5) == pytest.approx(0.7)
    assert complexity_similarity(0.0, 3.0) == 0.0
    assert complexity_similarity("high", 0.5) == 0.5
    assert complexity_similarity(None, 0.5) == 0.5


def test_lenient_stroke_table():
    assert [lenient_stroke_similarity(a, 3) for a in (3, 2, 1, 0, 7)] == [1.0, 0.8, 0.6, 0.4, 0.2]


def test_lenient_tables_follow_config():
    config = LenientConfig(stroke_difference_credit=(1.0, 0.9), within_expected_credit=0.5, complexity_bands=(0.1,), complexity_band_credit=(0.9,))
    assert [lenient_stroke_similarity(a, 3, config) for a in (3, 2, 1, 7)] == [1.0, 0.9, 0.5, 0.2]
    assert lenient_complexity_similarity(0.5, 0.55, config) == 0.9
    assert lenient_complexity_similarity(0.5, 0.65, config) == 0.4
    assert lenient_complexity_similarity(0.5, 0.65) == 1.0


def test_strict_confidence_high_for_matching_drawing():
    template = TemplateStore().get_template("あ")
    score = StrictStrategy().score(preprocess(_a_like_drawing()), template)
    assert score.similarity > 0.95
    assert score.confidence > 0.95


def test_strict_penalizes_too_few_points():
    prepared = preprocess(_a_like_drawing())
    strategy = StrictStrategy()
    assert strategy.confidence(0.8, prepared) == pytest.approx(0.8)
    assert strategy.confidence(0.8, replace(prepared, total_points=5)) == pytest.approx(0.4)
    assert strategy.confidence(0.8, replace(prepared, stroke_count=0)) == 0.0


def test_position_tolerance_is_wider_in_lenient_mode():
    template = TemplateStore().get_template("あ")
    centered = preprocess(_a_like_drawing(canvas_size=(120, 120)))
    corner = preprocess(_a_like_drawing(canvas_size=(400, 400)))
    strict = StrictStrategy()
    assert strict.confidence(0.8, corner) == pytest.approx(0.8 * 0.9)
    assert strict.confidence(0.8, centered) == pytest.approx(0.8)
    lenient = LenientStrategy()
    assert lenient.confidence(0.5, corner, template) == lenient.confidence(0.5, replace(corner, canvas_size=None), template)


def test_lenient_confidence_floor_for_single_point():
    template = TemplateStore().get_template("あ")
    prepared = preprocess(DrawingData(strokes=[[Point(50, 50, 0)]]))
    score = LenientStrategy().score(prepared, template)
    assert score.confidence >= 0.25
    assert score.confidence > StrictStrategy().score(prepared, template).confidence


def _sample_drawings():
    rng = random.Random(11)
    drawings = [
        _a_like_drawing(),
        DrawingData(strokes=[[Point(50, 50, 0)]]),
        DrawingData(strokes=[_line(0, 0, 100, 0)]),
        DrawingData(strokes=[_line(0, 0, 0, 80), _arc(40, 40, 20, 0, 2 * math.pi, n=20)]),
    ]
    for _ in range(8):
        drawings.append(
            DrawingData(
                strokes=[
                    [Point(rng.uniform(0, 250), rng.uniform(0, 250), 20 * i) for i in range(rng.randint(1, 30))]
                    for _ in range(rng.randint(1, 5))
                ],
                canvas_size=(300, 300),
            )
        )
    return drawings


def test_lenient_confidence_never_below_strict():
    scorer = SimilarityScorer()
    store = TemplateStore()
    for drawing in _sample_drawings():
        prepared = preprocess(drawing)
        for template in (store.get_template(c) for c in store.supported_characters()):
            strict = scorer.score(prepared, template, "strict")
            lenient = scorer.score(prepared, template, "lenient")
            assert lenient.confidence >= strict.confidence
            assert 0.0 <= strict.confidence <= 1.0
            assert 0.0 <= lenient.confidence <= 1.0


def test_missing_drawing_scores_zero():
    template = TemplateStore().get_template("あ")
    assert SimilarityScorer().score(None, template, "lenient").confidence == 0.0


def test_malformed_template_degrades_to_fallback():
    broken = CharacterTemplate("あ", 3, None)
    prepared = preprocess(_a_like_drawing())
    scorer = SimilarityScorer()
    assert scorer.score(prepared, broken, "strict").confidence == 0.0
    lenient = scorer.score(prepared, broken, "lenient")
    assert lenient.confidence == pytest.approx(0.25)
    assert lenient.details["fallback"] is True


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        resolve_strategy("gentle")
