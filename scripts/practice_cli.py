# ABOUTME: Provides a CLI to grade saved drawings, draw practice characters, and inspect progress.
# ABOUTME: Wraps PracticeEngine so tuning and templates can be exercised without a UI.

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.common.schemas import DrawingData
from src.common.storage import JsonFileStorage
from src.grading.feedback import detailed_recommendations
from src.practice import PracticeEngine
from src.selection import SelectionOptions

console = Console()
app = typer.Typer(help="Evaluate hiragana drawings and pick what to practice next.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _build_engine(config: Optional[Path], storage_dir: Optional[Path], seed: Optional[int] = None) -> PracticeEngine:
    storage = JsonFileStorage(storage_dir) if storage_dir else None
    return PracticeEngine.from_config_file(config, storage=storage, seed=seed)


@app.command()
def evaluate(
    drawing_path: Path = typer.Argument(..., help="JSON file with a serialized drawing."),
    target: str = typer.Option(..., "--target", help="Character the learner was asked to write."),
    mode: str = typer.Option("lenient", "--mode", help="Scoring mode: strict or lenient."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine YAML config path."),
    storage_dir: Optional[Path] = typer.Option(None, "--storage-dir", help="Record the outcome into this directory."),
) -> None:
    """
    Grade a single drawing against a target character and print feedback.
    """
    if not drawing_path.exists():
        console.print(f"[red]Missing drawing file at {drawing_path}[/red]")
        raise typer.Exit(code=1)

    drawing = DrawingData.from_dict(json.loads(drawing_path.read_text(encoding="utf-8")))
    engine = _build_engine(config, storage_dir)
    result = engine.evaluate_attempt(drawing, target, mode)
    feedback = engine.feedback_for(result, target)

    console.rule(f"[bold blue]{target}[/bold blue] ({mode})")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Level")
    table.add_column("Score")
    table.add_column("Confidence")
    table.add_column("Strokes")
    table.add_row(
        result.level,
        f"{result.score:.2f}",
        f"{result.confidence:.2f}",
        f"{result.details.get('stroke_count', drawing.stroke_count)}/{result.details.get('expected_strokes', '?')}",
    )
    console.print(table)
    console.print(f"{feedback.icon} {feedback.message} {feedback.encouragement}")
    console.print(f"[bold]Suggestion:[/] {feedback.suggestion}")
    for line in detailed_recommendations(result):
        console.print(f"  - {line}")

    if storage_dir:
        engine.record_outcome(target, result.score)
        console.print(f"[green]Recorded outcome in {storage_dir}[/green]")


@app.command("next")
def next_characters(
    count: int = typer.Option(5, "--count", help="How many characters to draw."),
    difficulty: Optional[int] = typer.Option(None, "--difficulty", help="Restrict to a difficulty tier (1-4)."),
    category: Optional[str] = typer.Option(None, "--category", help="Restrict to a row, e.g. か行."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible draws."),
    storage_dir: Optional[Path] = typer.Option(None, "--storage-dir", help="Use stored weights and progress."),
) -> None:
    """
    Draw the next practice characters.
    """
    engine = _build_engine(None, storage_dir, seed=seed)
    options = SelectionOptions(difficulty_filter=difficulty, category_filter=category)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#")
    table.add_column("Character")
    table.add_column("Reading")
    table.add_column("Difficulty")
    previous = None
    for index in range(count):
        character = engine.select_next_character(previous, options)
        previous = character.character
        table.add_row(str(index + 1), character.character, character.reading, str(character.difficulty))
    console.print(table)


@app.command()
def templates(
    difficulty: Optional[int] = typer.Option(None, "--difficulty", help="Only list this difficulty tier."),
) -> None:
    """
    List supported characters and their reference geometry.
    """
    engine = PracticeEngine()
    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Character", "Reading", "Row", "Difficulty", "Strokes", "H/V/C", "Complexity"):
        table.add_column(column)
    for character in engine.store.characters():
        if difficulty is not None and character.difficulty != difficulty:
            continue
        flags = "/".join("y" if flag else "n" for flag in character.features.flags())
        table.add_row(
            character.character,
            character.reading,
            character.category,
            str(character.difficulty),
            str(character.stroke_count),
            flags,
            f"{character.features.complexity:.1f}",
        )
    console.print(table)


@app.command()
def progress(
    storage_dir: Path = typer.Option(Path("progress"), "--storage-dir", help="Directory holding stored progress."),
) -> None:
    """
    Summarize mastery per difficulty tier and recommend the next tier.
    """
    engine = _build_engine(None, storage_dir)
    summary = engine.progress.get_progress_by_difficulty()
    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Difficulty", "Practiced", "Mastered", "Avg score", "Mastery rate"):
        table.add_column(column)
    for tier, stats in sorted(summary.items()):
        table.add_row(
            str(tier),
            f"{stats['practiced_characters']}/{stats['total_characters']}",
            str(stats["mastered_characters"]),
            f"{stats['average_score']:.2f}",
            f"{stats['mastery_rate']:.0%}",
        )
    console.print(table)
    console.print(f"[bold]Recommended difficulty:[/] {engine.recommended_difficulty()}")


if __name__ == "__main__":
    app()
