# ABOUTME: Holds every tuning constant of the engine as frozen config dataclasses.
# ABOUTME: Loads overrides from YAML so thresholds can be adjusted without code changes.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass(frozen=True)
class FeatureConfig:
    """Geometry thresholds for orientation, curve, and complexity extraction."""

    line_extent_threshold: float = 0.1
    line_drift_threshold: float = 0.05
    min_run_points: int = 3
    curve_angle_threshold: float = math.pi / 4
    curve_weight: float = 0.4
    intersection_weight: float = 0.3
    angle_weight: float = 0.3
    intersection_both: float = 0.8
    intersection_single: float = 0.4
    # Child normalization passes (pixel space).
    jitter_px: float = 2.0
    gap_distance_px: float = 20.0
    gap_time_ms: int = 150
    gap_step_px: float = 10.0
    standard_size_px: float = 100.0
    size_tolerance: float = 0.4
    reference_speed: float = 0.01


@dataclass(frozen=True)
class StrictConfig:
    stroke_weight: float = 0.45
    feature_weight: float = 0.35
    complexity_weight: float = 0.20
    min_points: int = 10
    max_points: int = 1000
    few_points_penalty: float = 0.5
    many_points_penalty: float = 0.8
    min_area: float = 100.0
    max_area: float = 50000.0
    small_area_penalty: float = 0.7
    large_area_penalty: float = 0.8
    min_aspect_ratio: float = 0.2
    max_aspect_ratio: float = 5.0
    aspect_penalty: float = 0.9
    position_tolerance: float = 0.25
    position_penalty: float = 0.9
    recognition_threshold: float = 0.3


@dataclass(frozen=True)
class LenientConfig:
    stroke_weight: float = 0.2
    feature_weight: float = 0.4
    complexity_weight: float = 0.15
    effort_weight: float = 0.25
    confidence_floor: float = 0.25
    fallback_confidence: float = 0.25
    feature_base_credit: float = 0.2
    effort_path_length: float = 2.0
    effort_point_count: int = 30
    complexity_bonus: float = 0.1
    complexity_bonus_gap: float = 0.3
    smoothness_bonus: float = 0.05
    smoothness_threshold: float = 0.6
    pacing_bonus: float = 0.05
    pacing_range: tuple = (0.3, 0.8)
    stroke_effort_bonus: float = 0.1
    shape_match_bonus: float = 0.15
    size_bonus: float = 0.05
    reasonable_area: tuple = (500.0, 100000.0)
    # Stroke credit by miscount: exact, off by one, off by two.
    stroke_difference_credit: tuple = (1.0, 0.8, 0.6)
    within_expected_credit: float = 0.4
    beyond_expected_credit: float = 0.2
    empty_template_credit: float = 0.5
    missing_features_credit: float = 0.3
    partial_feature_credit: float = 0.5
    complexity_bands: tuple = (0.2, 0.4, 0.6)
    complexity_band_credit: tuple = (1.0, 0.8, 0.6)
    complexity_beyond_credit: float = 0.4
    missing_complexity_credit: float = 0.6
    position_tolerance: float = 0.5
    position_penalty: float = 0.9
    recognition_threshold: float = 0.2


@dataclass(frozen=True)
class GradeThresholds:
    excellent: float
    fair: float
    stroke_tolerance: int


@dataclass(frozen=True)
class GradingConfig:
    strict: GradeThresholds = field(default_factory=lambda: GradeThresholds(excellent=0.75, fair=0.4, stroke_tolerance=0))
    lenient: GradeThresholds = field(default_factory=lambda: GradeThresholds(excellent=0.5, fair=0.2, stroke_tolerance=1))
    shape_weight: float = 0.5
    confidence_weight: float = 0.3
    effort_weight: float = 0.2
    # Shape score mix.
    shape_stroke_weight: float = 0.3
    shape_similarity_weight: float = 0.5
    shape_quality_weight: float = 0.2
    stroke_difference_penalty: float = 0.3
    # Drawing quality multipliers.
    quality_min_points: int = 5
    quality_max_points: int = 1500
    few_points_quality: float = 0.7
    many_points_quality: float = 0.8
    quality_min_area: float = 50.0
    quality_max_area: float = 80000.0
    small_area_quality: float = 0.8
    large_area_quality: float = 0.9
    quality_min_aspect: float = 0.2
    quality_max_aspect: float = 5.0
    aspect_quality: float = 0.9
    # Effort credit.
    effort_base: float = 0.3
    effort_per_stroke: float = 0.1
    effort_stroke_cap: float = 0.3
    effort_min_points: int = 5
    effort_points_bonus: float = 0.2
    effort_min_area: float = 100.0
    effort_area_bonus: float = 0.2

    def thresholds_for(self, mode: str) -> GradeThresholds:
        return self.lenient if mode == "lenient" else self.strict


@dataclass(frozen=True)
class SelectionConfig:
    initial_weight: float = 1.0
    min_weight: float = 0.1
    max_weight: float = 3.0
    low_score: float = 0.5
    high_score: float = 0.8
    low_score_factor: float = 1.4
    high_score_factor: float = 0.8
    recent_history: int = 5
    mastery_threshold: float = 0.7
    stale_after_days: float = 30.0
    # Progress multipliers applied on top of the stored weight.
    unseen_multiplier: float = 2.5
    unpracticed_multiplier: float = 2.0
    few_attempts: int = 3
    few_attempts_multiplier: float = 1.5
    struggling_score: float = 0.5
    struggling_multiplier: float = 1.8
    shaky_score: float = 0.7
    shaky_multiplier: float = 1.3
    long_absence_days: float = 7.0
    long_absence_multiplier: float = 1.6
    short_absence_days: float = 3.0
    short_absence_multiplier: float = 1.3


@dataclass(frozen=True)
class EngineConfig:
    features: FeatureConfig = field(default_factory=FeatureConfig)
    strict: StrictConfig = field(default_factory=StrictConfig)
    lenient: LenientConfig = field(default_factory=LenientConfig)
    grading: GradingConfig = field(default_factory=GradingConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)


def load_engine_config(config_path: Optional[Path] = None) -> EngineConfig:
    """
    Build an EngineConfig from a YAML file; sections that are absent keep defaults.

    Unknown keys inside a section raise TypeError from the dataclass constructor.
    """

    if config_path is None:
        return EngineConfig()

    with open(config_path, encoding="utf-8") as f:
        cfg: Dict[str, Any] = yaml.safe_load(f) or {}

    grading_cfg = dict(cfg.get("grading", {}))
    for mode in ("strict", "lenient"):
        if mode in grading_cfg:
            grading_cfg[mode] = GradeThresholds(**grading_cfg[mode])

    lenient_cfg = dict(cfg.get("lenient", {}))
    for key in (
        "pacing_range",
        "reasonable_area",
        "stroke_difference_credit",
        "complexity_bands",
        "complexity_band_credit",
    ):
        if key in lenient_cfg:
            lenient_cfg[key] = tuple(lenient_cfg[key])

    return EngineConfig(
        features=FeatureConfig(**cfg.get("features", {})),
        strict=StrictConfig(**cfg.get("strict", {})),
        lenient=LenientConfig(**lenient_cfg),
        grading=GradingConfig(**grading_cfg),
        selection=SelectionConfig(**cfg.get("selection", {})),
    )
