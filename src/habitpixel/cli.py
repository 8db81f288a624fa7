"""Command line interface for HabitPixel."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path

import click

from .config import BaseConfig
from .domain.repositories import HabitRepository
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelHabitRepository
from .logging_config import setup_logging
from .models import Habit
from .services import stats
from .services.intervals import FrequencyKind
from .services.snapshot import export_widget_snapshots
from .services.streaks import HabitValidationError

_DATE = click.DateTime(formats=["%Y-%m-%d"])


class AppContext:
    """Objects shared by every command of one invocation."""

    def __init__(self, config: BaseConfig) -> None:
        self.config = config
        self.policy = config.interval_policy()
        _, session_factory = bootstrap_database(config)
        self.habits: HabitRepository = SQLModelHabitRepository(session_factory)


@click.group()
@click.option(
    "--database-url",
    envvar="HABITPIXEL_DATABASE_URL",
    default=None,
    help="SQLAlchemy URL overriding the configured database.",
)
@click.pass_context
def cli(ctx: click.Context, database_url: str | None) -> None:
    """Track habits, streaks and completion grids."""

    config = BaseConfig()
    if database_url:
        config.DATABASE_URL = database_url
    setup_logging(config)
    ctx.obj = AppContext(config)


@cli.command("init-db")
@click.pass_obj
def init_db(app: AppContext) -> None:
    """Create the database schema."""

    click.echo(f"Database ready: {app.config.DATABASE_URL}")


@cli.command("add-habit")
@click.argument("title")
@click.option("--goal", type=int, default=1, show_default=True)
@click.option(
    "--frequency",
    type=click.Choice([kind.value for kind in FrequencyKind], case_sensitive=False),
    default=FrequencyKind.DAILY.value,
    show_default=True,
)
@click.option("--icon", "icon_name", default="checkmark", show_default=True)
@click.option("--color", default="#0A84FF", show_default=True)
@click.option("--category", default="None", show_default=True)
@click.pass_obj
def add_habit(
    app: AppContext, title: str, goal: int, frequency: str, icon_name: str, color: str, category: str
) -> None:
    """Create a habit."""

    habit = Habit(
        title=title,
        goal=goal,
        frequency=frequency,
        icon_name=icon_name,
        color=color,
        category=category,
    )
    try:
        habit = app.habits.create(habit)
    except HabitValidationError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"Created habit {habit.id}: {habit.title}")


@cli.command("log")
@click.argument("habit_id", type=int)
@click.option("--on", "day", type=_DATE, default=None, help="Day to record (default: today).")
@click.option("--undo", is_flag=True, default=False, help="Remove one completion instead.")
@click.pass_obj
def log_completion(app: AppContext, habit_id: int, day: datetime | None, undo: bool) -> None:
    """Record (or undo) a completion."""

    if app.habits.get_by_id(habit_id) is None:
        raise click.ClickException(f"No habit with id {habit_id}")
    if undo:
        target = (day or datetime.now()).date()
        if not app.habits.remove_entry(habit_id, target):
            raise click.ClickException(f"No completion on {target.isoformat()}")
        click.echo(f"Removed completion on {target.isoformat()}")
        return
    entry = app.habits.add_entry(habit_id, day or datetime.now())
    click.echo(f"Logged completion on {entry.timestamp.date().isoformat()}")


@cli.command("status")
@click.option("--today", type=_DATE, default=None, help="Reference day (default: today).")
@click.pass_obj
def status(app: AppContext, today: datetime | None) -> None:
    """Show progress and streak per habit."""

    reference = (today or datetime.now()).date()
    progresses = app.habits.load_all_progress(app.policy)
    if not progresses:
        click.echo("No habits yet.")
        return
    for progress in progresses:
        config = progress.config
        click.echo(
            f"[{config.id}] {config.title} ({config.frequency.value}) "
            f"{progress.goal_progress(reference)} "
            f"remaining={progress.remaining_for_current_interval(reference)} "
            f"streak={progress.current_streak(reference)}"
        )


@cli.command("stats")
@click.option(
    "--frame",
    type=click.Choice([frame.name.lower() for frame in stats.TimeFrame], case_sensitive=False),
    default="week",
    show_default=True,
)
@click.option("--today", type=_DATE, default=None, help="Reference day (default: today).")
@click.pass_obj
def show_stats(app: AppContext, frame: str, today: datetime | None) -> None:
    """Aggregate completions, longest streak and completion rate."""

    reference = (today or datetime.now()).date()
    summary = stats.summarize(
        app.habits.load_all_progress(app.policy), stats.TimeFrame[frame.upper()], reference
    )
    click.echo(f"Time frame: {summary.frame.value}")
    click.echo(f"Total completions: {summary.total_completions_label}")
    click.echo(f"Longest streak: {summary.longest_streak}")
    click.echo(f"Completion rate: {summary.completion_rate:.1f}%")


@cli.command("grid")
@click.argument("habit_id", type=int)
@click.option("--today", type=_DATE, default=None, help="Reference day (default: today).")
@click.option("--workers", type=int, default=1, show_default=True, help="Threads for normalization.")
@click.pass_obj
def show_grid(app: AppContext, habit_id: int, today: datetime | None, workers: int) -> None:
    """Summarize the completion grid window of a habit."""

    progress = app.habits.load_progress(habit_id, app.policy)
    if progress is None:
        raise click.ClickException(f"No habit with id {habit_id}")
    reference = (today or datetime.now()).date()
    options = {
        "lookback_months": app.config.GRID_LOOKBACK_MONTHS,
        "batch_size": app.config.GRID_BATCH_SIZE,
    }
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            grid = progress.grid(reference, executor=pool, **options)
    else:
        grid = progress.grid(reference, **options)

    click.echo(f"Start: {grid.start_date.isoformat()}")
    click.echo(f"Weeks: {grid.number_of_weeks}")
    click.echo(f"Completed days shown: {len(grid.visible_completed_days())}")


@cli.command("export-widgets")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def export_widgets(app: AppContext, output: Path) -> None:
    """Write widget snapshots for every active habit as JSON."""

    path = export_widget_snapshots(
        habits=app.habits.load_all_progress(app.policy), output_path=output
    )
    click.echo(f"Export written: {path}")


def main() -> None:  # pragma: no cover - console script entry
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
