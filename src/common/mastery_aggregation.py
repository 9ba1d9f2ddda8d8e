# ABOUTME: Aggregates per-character mastery into per-difficulty-tier summaries.
# ABOUTME: Joins the character catalog with progress rows so untouched characters still count.

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

import pandas as pd

SUMMARY_COLUMNS = [
    "difficulty",
    "total_characters",
    "practiced_characters",
    "mastered_characters",
    "average_score",
    "completion_rate",
    "mastery_rate",
]


def aggregate_difficulty_mastery(
    catalog: Iterable[Mapping[str, Any]],
    progress_rows: Iterable[Mapping[str, Any]],
    mastery_threshold: float = 0.7,
    stale_after_days: float = 30.0,
) -> pd.DataFrame:
    """
    Aggregate per-character progress to per-difficulty summaries.

    Steps:
    - Left-join progress rows (character, attempt_count, average_score, mastery, days_since)
      onto the catalog (character, difficulty).
    - Mark a character practiced when it has attempts, mastered when its mastery clears the
      threshold and it was practiced within ``stale_after_days``.
    - Compute totals, average score over practiced characters, and completion/mastery rates.
    """

    catalog_df = pd.DataFrame(list(catalog), columns=["character", "difficulty"])
    if catalog_df.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    progress_df = pd.DataFrame(
        list(progress_rows),
        columns=["character", "attempt_count", "average_score", "mastery", "days_since"],
    )
    joined = catalog_df.merge(progress_df, on="character", how="left", validate="one_to_one")
    for column in ("attempt_count", "average_score", "mastery", "days_since"):
        joined[column] = pd.to_numeric(joined[column], errors="coerce").astype(float)
    joined["attempt_count"] = joined["attempt_count"].fillna(0.0)
    joined["mastery"] = joined["mastery"].fillna(0.0)

    joined["practiced"] = joined["attempt_count"] > 0
    fresh = joined["days_since"].le(stale_after_days)
    joined["mastered"] = joined["practiced"] & fresh & (joined["mastery"] >= mastery_threshold)
    # Only practiced characters contribute to the average.
    joined["practiced_score"] = joined["average_score"].where(joined["practiced"])

    grouped = (
        joined.groupby("difficulty")
        .agg(
            total_characters=("character", "count"),
            practiced_characters=("practiced", "sum"),
            mastered_characters=("mastered", "sum"),
            average_score=("practiced_score", "mean"),
        )
        .reset_index()
        .sort_values("difficulty", kind="mergesort")
    )

    grouped["average_score"] = grouped["average_score"].fillna(0.0)
    grouped["completion_rate"] = grouped["practiced_characters"] / grouped["total_characters"]
    grouped["mastery_rate"] = grouped["mastered_characters"] / grouped["total_characters"]
    return grouped[SUMMARY_COLUMNS].reset_index(drop=True)


def summary_to_dict(summary: pd.DataFrame) -> Dict[int, Dict[str, float]]:
    result: Dict[int, Dict[str, float]] = {}
    for row in summary.to_dict(orient="records"):
        difficulty = int(row.pop("difficulty"))
        result[difficulty] = {
            "total_characters": int(row["total_characters"]),
            "practiced_characters": int(row["practiced_characters"]),
            "mastered_characters": int(row["mastered_characters"]),
            "average_score": float(row["average_score"]),
            "completion_rate": float(row["completion_rate"]),
            "mastery_rate": float(row["mastery_rate"]),
        }
    return result
