# ABOUTME: Stroke feature extraction, templates, similarity scoring, and recognition.
# ABOUTME: Re-exports the entry points used by grading and the practice facade.

from .features import PreprocessedDrawing, extract_features, preprocess
from .recognizer import Recognizer
from .similarity import SimilarityScore, SimilarityScorer, resolve_strategy
from .templates import TemplateStore, load_hiragana_catalog

__all__ = [
    "PreprocessedDrawing",
    "Recognizer",
    "SimilarityScore",
    "SimilarityScorer",
    "TemplateStore",
    "extract_features",
    "load_hiragana_catalog",
    "preprocess",
    "resolve_strategy",
]
