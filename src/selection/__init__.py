# ABOUTME: Adaptive weighted selection of the next practice character.

from .selector import AdaptiveSelector, SelectionOptions

__all__ = ["AdaptiveSelector", "SelectionOptions"]
