# ABOUTME: Builds child-facing feedback text, icons, and suggestions from a graded attempt.
# ABOUTME: Message choice is a pure function of level and target so identical inputs repeat.

from __future__ import annotations

from typing import Dict, List, Sequence

from src.common.schemas import LEVEL_EXCELLENT, LEVEL_FAIR, LEVEL_POOR, Feedback, ScoreResult

MESSAGES: Dict[str, Sequence[str]] = {
    LEVEL_EXCELLENT: ("すごい！", "とてもじょうず！", "かんぺき！", "すばらしい！", "よくできました！", "とてもうまい！"),
    LEVEL_FAIR: ("いいかんじ！", "もうすこし！", "がんばってる！", "じょうずになってる！", "いいですね！", "できてきた！"),
    LEVEL_POOR: ("だいじょうぶ！", "れんしゅうしよう！", "つぎはできるよ！", "がんばろう！", "やってみよう！", "チャレンジしよう！"),
}

ENCOURAGEMENTS: Dict[str, Sequence[str]] = {
    LEVEL_EXCELLENT: (
        "この調子でがんばろう！",
        "とても上手に書けています！",
        "すごいですね！",
        "もっと練習してみましょう！",
        "つぎの文字もできそうですね！",
    ),
    LEVEL_FAIR: (
        "だんだん上手になっています！",
        "つぎはもっとじょうずになるよ！",
        "れんしゅうするとうまくなります！",
        "とてもがんばっていますね！",
        "この調子で続けましょう！",
    ),
    LEVEL_POOR: (
        "みんな最初は難しいんです",
        "ゆっくり書いてみましょう",
        "れんしゅうすればきっとできます！",
        "あきらめないでがんばろう！",
        "いっしょにれんしゅうしましょう！",
        "だんだんじょうずになりますよ！",
    ),
}

SUGGESTIONS: Dict[str, Sequence[str]] = {
    LEVEL_EXCELLENT: (
        "次の文字も練習してみましょう！",
        "とても上手です！この調子で続けましょう！",
        "すばらしい！他の文字にもチャレンジしてみませんか？",
        "かんぺきです！もっと練習して上達しましょう！",
    ),
    LEVEL_FAIR: (
        "いいかんじです！もう一度書いてみましょう",
        "だんだん上手になっています！ゆっくり書いてみましょう",
        "がんばっていますね！手本を見ながら練習しましょう",
        "もうすこしです！ストロークを意識してみましょう",
        "じょうずになってきました！この調子で続けましょう",
    ),
    LEVEL_POOR: (
        "だいじょうぶ！手本を見て、ゆっくり書いてみましょう",
        "みんな最初は難しいです。一画ずつ丁寧に書いてみましょう",
        "がんばって！大きく書いてみると書きやすいですよ",
        "れんしゅうすればきっとできます！ゆっくりやってみましょう",
        "あきらめないで！いっしょにがんばりましょう",
    ),
}

ICONS = {LEVEL_EXCELLENT: "🌟", LEVEL_FAIR: "😊", LEVEL_POOR: "🙂"}

NOTES = {
    LEVEL_EXCELLENT: "とてもすばらしい出来です！",
    LEVEL_FAIR: "がんばっている様子がよく分かります！",
    LEVEL_POOR: "チャレンジする心が大切です！",
}

NO_DRAWING_SUGGESTION = "だいじょうぶ！画面に指で文字を書いてみましょう。ゆっくりでいいですよ！"
RECOGNITION_FAILED_SUGGESTION = "がんばって書いてくれました！手本を見ながらもう一度やってみましょう！"


def _pick(options: Sequence[str], target: str, salt: int = 0) -> str:
    return options[(sum(ord(c) for c in target) + salt) % len(options)]


def generate_feedback(level: str, target_character: str) -> Feedback:
    """Deterministic feedback for a level; unknown levels are treated as poor."""
    if level not in MESSAGES:
        level = LEVEL_POOR
    return Feedback(
        message=_pick(MESSAGES[level], target_character),
        encouragement=_pick(ENCOURAGEMENTS[level], target_character, salt=1),
        suggestion=_pick(SUGGESTIONS[level], target_character),
        encouraging_note=NOTES[level],
        icon=ICONS[level],
        show_example=level in (LEVEL_FAIR, LEVEL_POOR),
    )


def generate_suggestion(score: ScoreResult, target_character: str = "") -> str:
    details = score.details or {}
    reason = details.get("reason")
    if reason == "no_drawing":
        return NO_DRAWING_SUGGESTION
    if reason == "recognition_failed":
        return RECOGNITION_FAILED_SUGGESTION

    actual = details.get("stroke_count")
    expected = details.get("expected_strokes")
    if isinstance(actual, int) and isinstance(expected, int) and actual != expected:
        direction = "多い" if actual > expected else "少ない"
        return f"線の数を確認しましょう（お手本: {expected}本、あなた: {actual}本、{direction}です）"

    level = score.level if score.level in SUGGESTIONS else LEVEL_FAIR
    return _pick(SUGGESTIONS[level], target_character)


def feedback_for(score: ScoreResult, target_character: str) -> Feedback:
    """Level feedback with the suggestion replaced by one tailored to the attempt."""
    base = generate_feedback(score.level, target_character)
    return Feedback(
        message=base.message,
        encouragement=base.encouragement,
        suggestion=generate_suggestion(score, target_character),
        encouraging_note=base.encouraging_note,
        icon=base.icon,
        show_example=base.show_example,
    )


def detailed_recommendations(score: ScoreResult) -> List[str]:
    recommendations = []
    if score.level == LEVEL_POOR:
        recommendations.append("基本的な文字の形を確認しましょう")
        recommendations.append("手本をよく見て練習しましょう")
    actual = score.details.get("stroke_count")
    expected = score.details.get("expected_strokes")
    if isinstance(actual, int) and isinstance(expected, int) and actual != expected:
        recommendations.append(f"ストローク数を確認しましょう（現在: {actual}, 期待: {expected}）")
    if score.confidence < 0.5:
        recommendations.append("文字の形をもう少しはっきりと書きましょう")
    return recommendations
