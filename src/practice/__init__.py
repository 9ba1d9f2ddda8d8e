# ABOUTME: Public entry points for evaluating attempts and choosing what to practice next.

from .engine import PracticeEngine

__all__ = ["PracticeEngine"]
