# ABOUTME: Grading of recognition results and child-facing feedback generation.

from .engine import GradingEngine
from .feedback import detailed_recommendations, feedback_for, generate_feedback, generate_suggestion

__all__ = [
    "GradingEngine",
    "detailed_recommendations",
    "feedback_for",
    "generate_feedback",
    "generate_suggestion",
]
