# ABOUTME: Makes the shared common package importable across engines.
# ABOUTME: Re-exports schema types and the config loader for convenience.

from .config import EngineConfig, load_engine_config
from .schemas import (
    BoundingBox,
    Character,
    CharacterTemplate,
    DrawingData,
    FeatureSet,
    Feedback,
    Point,
    RecognitionResult,
    ScoreResult,
)

__all__ = [
    "BoundingBox",
    "Character",
    "CharacterTemplate",
    "DrawingData",
    "EngineConfig",
    "FeatureSet",
    "Feedback",
    "Point",
    "RecognitionResult",
    "ScoreResult",
    "load_engine_config",
]
