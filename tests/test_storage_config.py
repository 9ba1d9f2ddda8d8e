# ABOUTME: Tests the key-value storage backends and YAML engine configuration loading.
# ABOUTME: Ensures defaults match the shipped YAML and overrides reach the dataclasses.

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from src.common.config import EngineConfig, GradeThresholds, load_engine_config
from src.common.progress import ProgressTracker
from src.common.storage import InMemoryStorage, JsonFileStorage
from src.recognition.templates import load_hiragana_catalog
from src.selection.selector import AdaptiveSelector

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_in_memory_storage_returns_copies():
    storage = InMemoryStorage()
    value = {"あ": 1.4}
    storage.save_data("selectionWeights", value)
    value["あ"] = 9.0
    assert storage.load_data("selectionWeights") == {"あ": 1.4}
    assert storage.load_data("missing") is None
    storage.remove_data("selectionWeights")
    assert storage.load_data("selectionWeights") is None


def test_json_file_storage_round_trip(tmp_path):
    storage = JsonFileStorage(tmp_path / "store")
    storage.save_data("selectionWeights", {"あ": 1.4, "い": 0.8})
    assert JsonFileStorage(tmp_path / "store").load_data("selectionWeights") == {"あ": 1.4, "い": 0.8}
    assert storage.load_data("missing") is None


def test_json_file_storage_ignores_corrupt_file(tmp_path):
    storage = JsonFileStorage(tmp_path)
    (tmp_path / "characterProgress.json").write_text("{not json", encoding="utf-8")
    assert storage.load_data("characterProgress") is None


def test_default_config_when_no_path():
    config = load_engine_config(None)
    assert config == EngineConfig()
    assert config.grading.thresholds_for("strict") == GradeThresholds(0.75, 0.4, 0)
    assert config.grading.thresholds_for("lenient") == GradeThresholds(0.5, 0.2, 1)


def test_shipped_yaml_matches_defaults():
    assert load_engine_config(REPO_ROOT / "configs" / "engine.yaml") == EngineConfig()


def test_yaml_overrides(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text(
        "grading:\n"
        "  strict:\n"
        "    excellent: 0.9\n"
        "    fair: 0.5\n"
        "    stroke_tolerance: 0\n"
        "lenient:\n"
        "  pacing_range: [0.2, 0.9]\n"
        "selection:\n"
        "  max_weight: 5.0\n",
        encoding="utf-8",
    )
    config = load_engine_config(path)
    assert config.grading.strict.excellent == 0.9
    assert config.grading.lenient == GradeThresholds(0.5, 0.2, 1)
    assert config.lenient.pacing_range == (0.2, 0.9)
    assert config.selection.max_weight == 5.0
    assert config.strict == EngineConfig().strict


def test_unknown_keys_are_rejected(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text("selection:\n  warp_factor: 9\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_engine_config(path)


def test_yaml_overrides_reach_progress_weighting(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text(
        "selection:\n"
        "  long_absence_multiplier: 3.0\n"
        "  few_attempts_multiplier: 1.0\n"
        "  struggling_multiplier: 1.0\n"
        "grading:\n"
        "  effort_base: 0.1\n"
        "lenient:\n"
        "  stroke_difference_credit: [1.0, 0.7]\n",
        encoding="utf-8",
    )
    config = load_engine_config(path)
    assert config.grading.effort_base == 0.1
    assert config.lenient.stroke_difference_credit == (1.0, 0.7)

    characters = load_hiragana_catalog()
    tracker = ProgressTracker(characters)
    tracker.record_character_practice("う", 0.2, datetime.now(timezone.utc) - timedelta(days=10))
    selector = AdaptiveSelector(characters, config.selection, tracker, seed=3)
    by_char = {c.character: c for c in characters}
    assert selector.effective_weight(by_char["う"]) == pytest.approx(3.0)
