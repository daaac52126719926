"""Persistent cache of categorized comments and append-only run history."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from pr_activity_dashboard.models import AnalysisResult, AnalysisRun, Category, Comment
from pr_activity_dashboard.utils import Database, day_end, day_start, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AnalysisFilters:
    """Filters chosen for one analysis run."""

    start_date: date
    end_date: date
    user: str | None = None
    label: str | None = None

    @property
    def start(self) -> datetime:
        return day_start(self.start_date)

    @property
    def end(self) -> datetime:
        return day_end(self.end_date)


class CommentCache:
    """Comment cache keyed by (repository, comment_id).

    Every write commits before returning. Failed writes are rolled back
    and raised as ``StorageError``.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    def get(
        self,
        repository: str,
        start: datetime,
        end: datetime,
        user: str | None = None,
    ) -> list[Comment]:
        """Get cached comments created within [start, end].

        Args:
        ----
            repository: Repository name
            start: Earliest creation time, inclusive
            end: Latest creation time, inclusive
            user: Only comments by this author login

        Returns:
        -------
            Detached Comment rows ordered by creation time

        """
        query = (
            select(Comment)
            .where(Comment.repository == repository)
            .where(Comment.created_at >= start)
            .where(Comment.created_at <= end)
        )
        if user:
            query = query.where(Comment.author_login == user)
        query = query.order_by(Comment.created_at, Comment.comment_id)

        with self.database.session_scope() as session:
            comments = list(session.scalars(query))
            session.expunge_all()
        return comments

    def put(
        self,
        repository: str,
        pull_request_number: int,
        comment_data: dict[str, Any],
        category: Category,
    ) -> None:
        """Create or update a cached comment; the latest category wins.

        Args:
        ----
            repository: Repository name
            pull_request_number: Number of the PR the comment belongs to
            comment_data: Comment data from the GitHub API
            category: Category assigned to the comment

        """
        with self.database.session_scope() as session:
            existing = session.scalars(
                select(Comment).where(
                    Comment.repository == repository,
                    Comment.comment_id == comment_data["id"],
                ),
            ).first()

            if existing:
                existing.update_from_github_data(comment_data, pull_request_number, category)
                logger.debug("Updated cached comment %s in %s", comment_data["id"], repository)
            else:
                session.add(Comment.from_github_data(comment_data, repository, pull_request_number, category))
                logger.debug("Cached comment %s in %s", comment_data["id"], repository)

    def save_run(self, filters: AnalysisFilters) -> int:
        """Record a new analysis run and return its id."""
        with self.database.session_scope() as session:
            run = AnalysisRun(
                start_date=filters.start,
                end_date=filters.end,
                user_filter=filters.user or None,
                label_filter=filters.label or None,
            )
            session.add(run)
            session.flush()
            run_id = run.id
        logger.info("Saved analysis run %d", run_id)
        return run_id

    def save_results(self, run_id: int, repository: str, counts: dict[Category, int]) -> None:
        """Record one result row per category for a repository of a run."""
        with self.database.session_scope() as session:
            for category, count in counts.items():
                session.add(AnalysisResult(run_id=run_id, repository=repository, category=category, count=count))

    def get_history(self, limit: int = 5) -> list[dict[str, Any]]:
        """Most recent runs first, with repositories and comment totals."""
        query = (
            select(AnalysisRun)
            .options(selectinload(AnalysisRun.results))
            .order_by(AnalysisRun.timestamp.desc(), AnalysisRun.id.desc())
            .limit(limit)
        )
        with self.database.session_scope() as session:
            return [run.to_dict() for run in session.scalars(query)]

    def get_run(self, run_id: int) -> dict[str, Any] | None:
        """A single run with its result rows, or None if it does not exist."""
        with self.database.session_scope() as session:
            run = session.get(AnalysisRun, run_id)
            return run.to_dict(include_results=True) if run else None
