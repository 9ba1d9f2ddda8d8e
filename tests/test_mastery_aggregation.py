# ABOUTME: Tests difficulty-level mastery aggregation logic.
# ABOUTME: Ensures untouched characters count toward totals and stale mastery is excluded.

import pytest

from src.common.mastery_aggregation import aggregate_difficulty_mastery, summary_to_dict


def _catalog():
    return [
        {"character": "あ", "difficulty": 1},
        {"character": "い", "difficulty": 1},
        {"character": "か", "difficulty": 2},
        {"character": "き", "difficulty": 2},
    ]


def test_aggregate_difficulty_mastery_by_tier():
    progress = [
        {"character": "あ", "attempt_count": 6, "average_score": 0.9, "mastery": 0.85, "days_since": 1.0},
        {"character": "い", "attempt_count": 2, "average_score": 0.5, "mastery": 0.1, "days_since": 0.5},
        {"character": "か", "attempt_count": 8, "average_score": 0.95, "mastery": 0.9, "days_since": 40.0},
    ]

    aggregated = aggregate_difficulty_mastery(_catalog(), progress)

    tier1 = aggregated[aggregated["difficulty"] == 1].iloc[0]
    assert tier1["total_characters"] == 2
    assert tier1["practiced_characters"] == 2
    assert tier1["mastered_characters"] == 1
    assert tier1["average_score"] == pytest.approx(0.7)
    assert tier1["mastery_rate"] == pytest.approx(0.5)

    # か is mastered on paper but has not been practiced for 40 days.
    tier2 = aggregated[aggregated["difficulty"] == 2].iloc[0]
    assert tier2["practiced_characters"] == 1
    assert tier2["mastered_characters"] == 0
    assert tier2["average_score"] == pytest.approx(0.95)
    assert tier2["completion_rate"] == pytest.approx(0.5)


def test_aggregate_without_progress_rows():
    aggregated = aggregate_difficulty_mastery(_catalog(), [])
    assert list(aggregated["difficulty"]) == [1, 2]
    assert list(aggregated["mastery_rate"]) == [0.0, 0.0]
    assert list(aggregated["average_score"]) == [0.0, 0.0]


def test_empty_catalog_returns_empty_frame():
    assert aggregate_difficulty_mastery([], []).empty


def test_summary_to_dict_uses_plain_types():
    summary = summary_to_dict(aggregate_difficulty_mastery(_catalog(), []))
    assert summary[1] == {
        "total_characters": 2,
        "practiced_characters": 0,
        "mastered_characters": 0,
        "average_score": 0.0,
        "completion_rate": 0.0,
        "mastery_rate": 0.0,
    }
