# ABOUTME: Tests grade classification, short-circuit reasons, and score composition.
# ABOUTME: Exercises the grading engine both directly and through recognition.

import math
import unittest

from src.common.config import GradingConfig
from src.common.schemas import DrawingData, Point, RecognitionResult
from src.grading.engine import GradingEngine, drawing_effort, drawing_quality
from src.recognition.recognizer import Recognizer


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


class TestClassification(unittest.TestCase):
    def setUp(self):
        self.engine = GradingEngine()

    def test_strict_thresholds_are_inclusive(self):
        self.assertEqual(self.engine.classify(0.75, 0, "strict"), "excellent")
        self.assertEqual(self.engine.classify(0.7499, 0, "strict"), "fair")
        self.assertEqual(self.engine.classify(0.4, 0, "strict"), "fair")
        self.assertEqual(self.engine.classify(0.3999, 0, "strict"), "poor")

    def test_lenient_thresholds_are_inclusive(self):
        self.assertEqual(self.engine.classify(0.5, 0, "lenient"), "excellent")
        self.assertEqual(self.engine.classify(0.2, 0, "lenient"), "fair")
        self.assertEqual(self.engine.classify(0.19, 0, "lenient"), "poor")

    def test_miscounted_strokes_cap_excellent_at_fair(self):
        self.assertEqual(self.engine.classify(0.95, 1, "strict"), "fair")
        self.assertEqual(self.engine.classify(0.95, 1, "lenient"), "excellent")
        self.assertEqual(self.engine.classify(0.95, 2, "lenient"), "fair")


class TestGrade(unittest.TestCase):
    def setUp(self):
        self.engine = GradingEngine()
        self.drawing = DrawingData(
            strokes=[
                _line(10, 30, 110, 30),
                _line(60, 10, 60, 110, t0=400),
                _arc(60, 80, 30, 0, math.pi, t0=800),
            ]
        )

    def test_empty_drawing_is_no_drawing(self):
        recognition = RecognitionResult("あ", 0.9, True, {"expected_strokes": 3})
        for drawing in (None, DrawingData()):
            result = self.engine.grade(recognition, "あ", drawing)
            self.assertEqual(result.level, "poor")
            self.assertEqual(result.score, 0.0)
            self.assertEqual(result.confidence, 0.0)
            self.assertEqual(result.details["reason"], "no_drawing")

    def test_strokes_without_points_are_no_drawing(self):
        drawing = DrawingData()
        drawing.strokes = [[]]
        recognition = Recognizer().recognize(drawing, "あ", "strict")
        self.assertEqual(recognition.details["reason"], "no_drawing")
        result = self.engine.grade(recognition, "あ", drawing, "strict")
        self.assertEqual(result.level, "poor")
        self.assertEqual(result.details["reason"], "no_drawing")

    def test_recognizer_no_drawing_reason_short_circuits(self):
        recognition = RecognitionResult(None, 0.0, False, {"reason": "no_drawing"})
        result = self.engine.grade(recognition, "あ", self.drawing, "lenient")
        self.assertEqual(result.details["reason"], "no_drawing")
        self.assertEqual(result.score, 0.0)

    def test_failed_recognition_forces_poor(self):
        result = self.engine.grade(RecognitionResult("あ", 0.1, False, {}), "あ", self.drawing)
        self.assertEqual(result.level, "poor")
        self.assertEqual(result.score, 0.0)
        self.assertEqual(result.confidence, 0.0)
        self.assertEqual(result.details["reason"], "recognition_failed")

    def test_matching_drawing_grades_excellent_in_strict_mode(self):
        recognition = Recognizer().recognize(self.drawing, "あ", "strict")
        self.assertTrue(recognition.recognized)
        result = self.engine.grade(recognition, "あ", self.drawing, "strict")
        self.assertEqual(result.level, "excellent")
        self.assertGreater(result.score, 0.75)
        self.assertEqual(result.details["stroke_count"], 3)
        self.assertEqual(result.details["expected_strokes"], 3)

    def test_score_stays_in_unit_interval(self):
        recognition = RecognitionResult("あ", 1.0, True, {"expected_strokes": 1, "similarity": 1.0})
        result = self.engine.grade(recognition, "あ", self.drawing, "lenient")
        self.assertGreaterEqual(result.score, 0.0)
        self.assertLessEqual(result.score, 1.0)

    def test_effort_and_quality(self):
        self.assertEqual(drawing_effort(DrawingData()), 0.0)
        self.assertAlmostEqual(drawing_effort(self.drawing), 1.0)
        single = DrawingData(strokes=[[Point(5, 5)]])
        self.assertAlmostEqual(drawing_effort(single), 0.4)
        self.assertAlmostEqual(drawing_quality(single), 0.7 * 0.8)
        self.assertAlmostEqual(drawing_quality(self.drawing), 1.0)


if __name__ == "__main__":
    unittest.main()


class TestConfiguredGrading(unittest.TestCase):
    def test_effort_increments_follow_config(self):
        drawing = DrawingData(strokes=[_line(10, 10, 110, 110)])
        self.assertAlmostEqual(drawing_effort(drawing), 0.3 + 0.1 + 0.2 + 0.2)
        config = GradingConfig(effort_base=0.1, effort_area_bonus=0.0)
        self.assertAlmostEqual(drawing_effort(drawing, config), 0.1 + 0.1 + 0.2)

    def test_quality_penalties_follow_config(self):
        single = DrawingData(strokes=[[Point(5, 5, 0)]])
        config = GradingConfig(few_points_quality=0.5, small_area_quality=1.0)
        self.assertAlmostEqual(drawing_quality(single, config), 0.5)
