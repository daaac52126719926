"""CLI entry point for the PR Activity Dashboard.

Commands:
  analyze  - categorize PR comments across the configured repositories
  history  - show recent analysis runs
  sync     - copy PRs and categorized comments into the dashboard database
  serve    - run the dashboard API
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table

from pr_activity_dashboard import __version__
from pr_activity_dashboard.config import Settings, get_settings
from pr_activity_dashboard.exceptions import ConfigurationError, DashboardError
from pr_activity_dashboard.github.client import GitHubAPIClient
from pr_activity_dashboard.models import Category
from pr_activity_dashboard.services.analyzer import AnalysisSummary, PRCommentAnalyzer, ScopePreview
from pr_activity_dashboard.services.comment_cache import CommentCache
from pr_activity_dashboard.utils import Database, set_level, setup_file_logging

console = Console()


def _ask(message: str) -> str:
    return click.prompt(message, default="", show_default=False)


def _load_settings(require_github: bool = True) -> Settings:
    settings = get_settings()
    if require_github:
        try:
            settings.validate_required()
        except ConfigurationError as e:
            raise click.ClickException(str(e)) from e
    return settings


def _render_preview(owner: str, preview: ScopePreview) -> None:
    console.print("\n[bold]Pull Requests to be analyzed[/bold]")
    for repo, prs in preview.pull_requests.items():
        console.print(f"\n[cyan]{repo}[/cyan] ({len(prs)} PRs):")
        for pr in prs:
            title = pr.get("title") or ""
            console.print(f"  #{pr['number']}: {title[:60]}{'...' if len(title) > 60 else ''}")
    for failure in preview.failures:
        console.print(f"\n[red]{failure.repository}: {failure.error}[/red]")
    console.print(f"\nTotal PRs to analyze in {owner}: [bold]{preview.total}[/bold]")


def _render_summary(summary: AnalysisSummary) -> None:
    table = Table(title="Category Distribution", show_header=True, header_style="bold cyan")
    table.add_column("Category")
    for repo in summary.repository_counts:
        table.add_column(repo, justify="right")
    table.add_column("Total", justify="right", style="bold")
    table.add_column("Share", justify="right")

    for category in Category:
        table.add_row(
            category.value,
            *(str(counts[category]) for counts in summary.repository_counts.values()),
            str(summary.counts[category]),
            summary.percentages[category],
        )
    console.print(table)

    filters = summary.filters
    console.print("\n[bold]Analysis Summary[/bold]")
    console.print(f"- Total repositories processed: {summary.completed_repositories}")
    console.print(f"- Total comments analyzed: {summary.total}")
    console.print(f"- Time period: {filters.start_date} to {filters.end_date}")
    if filters.user:
        console.print(f"- Filtered by user: {filters.user}")
    if filters.label:
        console.print(f"- Filtered by label: {filters.label}")

    if summary.failures:
        console.print("\n[bold red]Failed repositories[/bold red]")
        for failure in summary.failures:
            console.print(f"- {failure.repository}: {failure.error}")

    _render_history(summary.history)


def _render_history(history: list[dict]) -> None:
    if not history:
        console.print("[yellow]No analysis runs recorded yet.[/yellow]")
        return

    table = Table(title="Recent Analysis History", show_header=True, header_style="bold cyan")
    table.add_column("Run", justify="right", width=5)
    table.add_column("When", width=20)
    table.add_column("Label")
    table.add_column("User")
    table.add_column("Period")
    table.add_column("Comments", justify="right")

    for run in history:
        table.add_row(
            str(run["id"]),
            run["timestamp"][:19].replace("T", " "),
            run["label"] or "no label",
            run["user"] or "no user",
            f"{run['start_date'][:10]} to {run['end_date'][:10]}",
            str(run["total_comments"]),
        )
    console.print(table)


@click.group()
@click.version_option(version=__version__, prog_name="pr-activity")
@click.option("--log-level", default=None, help="Override LOG_LEVEL for this invocation.")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Also write logs to a file.")
def main(log_level: str | None, log_file: Path | None):
    """GitHub pull request comment analysis and activity dashboard."""
    if log_level:
        set_level(log_level)
    if log_file:
        setup_file_logging(log_file, log_level)


@main.command("analyze")
@click.option("--label", default=None, help="Only PRs carrying this exact label.")
@click.option("--user", default=None, help="Only comments by this GitHub login.")
@click.option("--start-date", default=None, help="First day to include (YYYY-MM-DD).")
@click.option("--end-date", default=None, help="Last day to include (YYYY-MM-DD).")
@click.option("--defaults", "use_defaults", is_flag=True, help="Use configured defaults for unset filters without prompting.")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Skip the confirmation prompt.")
def analyze_cmd(label, user, start_date, end_date, use_defaults, assume_yes):
    """Categorize PR comments across the configured repositories."""
    settings = _load_settings()

    try:
        with Database(settings.database_url) as database:
            analyzer = PRCommentAnalyzer(settings, GitHubAPIClient(settings), CommentCache(database))

            if use_defaults or any(value is not None for value in (label, user, start_date, end_date)):
                filters = analyzer.build_filters(
                    start_date or settings.default_start_date,
                    end_date or settings.default_end_date,
                    user or settings.default_user or None,
                    label if label is not None else settings.default_label or None,
                )
            else:
                console.print("\nFetching available labels...")
                filters = analyzer.collect_filters(_ask)

            confirm = (lambda _message: "y") if assume_yes else _ask

            # Started on the first update so it never overlaps the confirmation prompt
            progress = Progress(
                TextColumn("Analyzing {task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeRemainingColumn(),
                console=console,
            )
            tasks = {}

            def on_progress(repo: str, done: int, total: int) -> None:
                if not tasks:
                    progress.start()
                if repo not in tasks:
                    tasks[repo] = progress.add_task(repo, total=total)
                progress.update(tasks[repo], completed=done)

            try:
                summary = analyzer.run(
                    filters,
                    confirm,
                    on_preview=lambda preview: _render_preview(settings.github_owner, preview),
                    on_progress=on_progress,
                )
            finally:
                progress.stop()
    except DashboardError as e:
        raise click.ClickException(str(e)) from e

    if summary is None:
        console.print("\n[yellow]Analysis cancelled by user.[/yellow]")
        return

    _render_summary(summary)
    console.print("\n[bold green]Analysis Complete![/bold green]")


@main.command("history")
@click.option("--limit", default=10, show_default=True, help="Maximum number of runs to show.")
def history_cmd(limit: int):
    """Show recent analysis runs."""
    settings = _load_settings(require_github=False)
    try:
        with Database(settings.database_url) as database:
            history = CommentCache(database).get_history(limit)
    except DashboardError as e:
        raise click.ClickException(str(e)) from e
    _render_history(history)


@main.command("sync")
def sync_cmd():
    """Copy PRs and categorized comments into the dashboard database."""
    from pr_activity_dashboard.services.activity import ActivitySync

    settings = _load_settings()
    try:
        with Database(settings.database_url) as database:
            result = ActivitySync(settings, GitHubAPIClient(settings), database).sync_all()
    except DashboardError as e:
        raise click.ClickException(str(e)) from e

    for repo, stats in result["repositories"].items():
        console.print(f"[green]{repo}[/green]: {stats['pull_requests']} PRs, {stats['comments']} comments")
    for error in result["errors"]:
        console.print(f"[red]{error['repository']}[/red]: {error['error']}")
    if result["errors"]:
        raise SystemExit(1)


@main.command("serve")
@click.option("--host", default=None, help="Bind address (defaults to HOST).")
@click.option("--port", type=int, default=None, help="Port (defaults to PORT).")
def serve_cmd(host: str | None, port: int | None):
    """Run the dashboard API."""
    from pr_activity_dashboard.main import serve

    settings = _load_settings(require_github=False)
    overrides = {key: value for key, value in (("host", host), ("port", port)) if value is not None}
    serve(settings.model_copy(update=overrides) if overrides else settings)


if __name__ == "__main__":
    main()
