"""Activity sync and query service for the dashboard API."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

from sqlalchemy import select

from pr_activity_dashboard.config import Settings
from pr_activity_dashboard.exceptions import GitHubAPIError, StorageError
from pr_activity_dashboard.github.client import GitHubAPIClient
from pr_activity_dashboard.models import Comment, PullRequest
from pr_activity_dashboard.services.classifier import CommentClassifier
from pr_activity_dashboard.services.comment_cache import CommentCache
from pr_activity_dashboard.utils import Database, LoggerMixin, day_end, day_start, parse_timestamp

ITEMS_PER_PAGE = 20

ActivityType = Literal["all", "pr", "comment"]
ActivityStatus = Literal["all", "open", "closed", "merged"]
SortField = Literal["date", "repository", "author"]
SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True)
class ActivityFilters:
    """Filters for the activity feed."""

    repository: str | None = None
    type: ActivityType = "all"
    status: ActivityStatus = "all"
    start_date: date | None = None
    end_date: date | None = None
    user: str | None = None
    category: str | None = None
    sort_by: SortField = "date"
    sort_order: SortOrder = "desc"


class ActivitySync(LoggerMixin):
    """Copy pull requests and categorized comments from GitHub into the database."""

    def __init__(
        self,
        settings: Settings,
        github_client: GitHubAPIClient,
        database: Database,
        classifier: CommentClassifier | None = None,
    ) -> None:
        self.settings = settings
        self.github_client = github_client
        self.database = database
        self.cache = CommentCache(database)
        self.classifier = classifier or CommentClassifier()

    def _keep_comment(self, comment: dict[str, Any]) -> bool:
        author = (comment.get("user") or {}).get("login")
        if not author or author in self.settings.excluded_user_list:
            return False
        body = comment.get("body") or ""
        if not self.settings.min_comment_length <= len(body) <= self.settings.max_comment_length:
            return False
        try:
            return parse_timestamp(comment.get("created_at")) is not None
        except (TypeError, ValueError):
            self.logger.warning("Skipping comment %s with invalid created_at", comment.get("id"))
            return False

    def _upsert_pull_request(self, repo: str, pr_data: dict[str, Any]) -> None:
        with self.database.session_scope() as session:
            existing = session.scalars(
                select(PullRequest).where(PullRequest.repository == repo, PullRequest.number == pr_data["number"]),
            ).first()
            if existing:
                existing.update_from_github_data(pr_data)
            else:
                session.add(PullRequest.from_github_data(pr_data, repo))

    def sync_repository(self, repo: str) -> dict[str, int]:
        """Sync one repository.

        Returns
        -------
            Counts of pull requests and comments stored

        Raises
        ------
            GitHubAPIError: If fetching fails
            StorageError: If a write fails

        """
        owner = self.settings.github_owner
        stats = {"pull_requests": 0, "comments": 0}

        for pr in self.github_client.list_pull_requests(owner, repo):
            self._upsert_pull_request(repo, pr)
            stats["pull_requests"] += 1

            for comment in self.github_client.list_comments(owner, repo, pr["number"]):
                if not self._keep_comment(comment):
                    continue
                self.cache.put(repo, pr["number"], comment, self.classifier.categorize(comment["body"]))
                stats["comments"] += 1

        self.logger.info("Synced %s: %d PRs, %d comments", repo, stats["pull_requests"], stats["comments"])
        return stats

    def sync_all(self) -> dict[str, Any]:
        """Sync every configured repository, collecting per-repository failures instead of raising."""
        synced = {}
        errors = []
        for repo in self.settings.repositories:
            try:
                synced[repo] = self.sync_repository(repo)
            except GitHubAPIError as e:
                e.repository = repo
                self.logger.error("Sync failed for %s: %s", repo, e.message)
                errors.append({"repository": repo, "error": e.message})
            except StorageError as e:
                self.logger.error("Sync failed for %s: %s", repo, e)
                errors.append({"repository": repo, "error": str(e)})
        return {"repositories": synced, "errors": errors}


class ActivityQuery:
    """Filtered, sorted and paginated reads of synced activity."""

    def __init__(self, database: Database) -> None:
        self.database = database

    @staticmethod
    def _sort_key(filters: ActivityFilters):
        if filters.sort_by == "author":
            return lambda item: (item["author_login"] or "").lower()
        if filters.sort_by == "repository":
            return lambda item: item["repository"]
        return lambda item: item["created_at"] or ""

    def _pull_requests(self, session, filters: ActivityFilters) -> list[dict[str, Any]]:
        query = select(PullRequest)
        if filters.repository:
            query = query.where(PullRequest.repository == filters.repository)
        if filters.status != "all":
            query = query.where(PullRequest.state == filters.status)
        if filters.start_date:
            query = query.where(PullRequest.created_at >= day_start(filters.start_date))
        if filters.end_date:
            query = query.where(PullRequest.created_at <= day_end(filters.end_date))
        if filters.user:
            query = query.where(PullRequest.author_login == filters.user)
        return [pr.to_dict() for pr in session.scalars(query)]

    def _comments(self, session, filters: ActivityFilters) -> list[dict[str, Any]]:
        query = select(Comment)
        if filters.repository:
            query = query.where(Comment.repository == filters.repository)
        if filters.start_date:
            query = query.where(Comment.created_at >= day_start(filters.start_date))
        if filters.end_date:
            query = query.where(Comment.created_at <= day_end(filters.end_date))
        if filters.user:
            query = query.where(Comment.author_login == filters.user)
        if filters.category:
            query = query.where(Comment.category == filters.category)
        return [comment.to_dict() for comment in session.scalars(query)]

    def fetch_activity(self, filters: ActivityFilters, page: int = 1) -> dict[str, Any]:
        """Return one page of activity items.

        The status filter applies to pull requests only and the category
        filter to comments only; on the mixed feed either one narrows it to
        the matching kind of item.
        """
        items = []
        with self.database.session_scope() as session:
            if filters.type == "pr" or (filters.type == "all" and not filters.category):
                items.extend(self._pull_requests(session, filters))
            if filters.type == "comment" or (filters.type == "all" and filters.status == "all"):
                items.extend(self._comments(session, filters))

        items.sort(key=self._sort_key(filters), reverse=filters.sort_order == "desc")

        offset = (page - 1) * ITEMS_PER_PAGE
        return {
            "items": items[offset:offset + ITEMS_PER_PAGE],
            "total": len(items),
            "page": page,
            "per_page": ITEMS_PER_PAGE,
        }
