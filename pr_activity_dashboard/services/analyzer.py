"""Analysis service: fetch, filter, categorize, aggregate and persist PR comments."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pr_activity_dashboard.config import Settings
from pr_activity_dashboard.exceptions import ConfigurationError, GitHubAPIError, StorageError
from pr_activity_dashboard.github.client import GitHubAPIClient
from pr_activity_dashboard.models import Category
from pr_activity_dashboard.services.classifier import CommentClassifier
from pr_activity_dashboard.services.comment_cache import AnalysisFilters, CommentCache
from pr_activity_dashboard.utils import get_logger, parse_date_input, parse_timestamp

logger = get_logger(__name__)

Ask = Callable[[str], str]
ProgressCallback = Callable[[str, int, int], None]

CONFIRM_ANSWERS = ("y", "yes")


@dataclass
class RepositoryFailure:
    """A repository that could not be analyzed in a run."""

    repository: str
    error: str


@dataclass
class ScopePreview:
    """Candidate pull requests per repository, shown before a run starts."""

    pull_requests: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    failures: list[RepositoryFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(prs) for prs in self.pull_requests.values())


@dataclass
class AnalysisSummary:
    """Outcome of a completed run."""

    run_id: int
    filters: AnalysisFilters
    counts: dict[Category, int]
    percentages: dict[Category, str]
    repository_counts: dict[str, dict[Category, int]]
    failures: list[RepositoryFailure]
    history: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def completed_repositories(self) -> int:
        return len(self.repository_counts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "date_range": {
                "start_date": self.filters.start_date.isoformat(),
                "end_date": self.filters.end_date.isoformat(),
            },
            "filters": {"user": self.filters.user, "label": self.filters.label},
            "counts": {category.value: count for category, count in self.counts.items()},
            "percentages": {category.value: value for category, value in self.percentages.items()},
            "repositories": {
                repo: {category.value: count for category, count in counts.items()}
                for repo, counts in self.repository_counts.items()
            },
            "failures": [{"repository": f.repository, "error": f.error} for f in self.failures],
            "total_comments": self.total,
        }


def calculate_percentages(counts: dict[Category, int]) -> dict[Category, str]:
    """Format each category's share of the total with one decimal.

    Every category is "0.0%" when there are no comments.
    """
    total = sum(counts.values())
    if total == 0:
        return {category: "0.0%" for category in counts}
    return {category: f"{count / total * 100:.1f}%" for category, count in counts.items()}


class PRCommentAnalyzer:
    """Drive one analysis run across the configured repositories.

    Steps run strictly in sequence: collect filters, confirm the scope,
    then per repository fetch, categorize and tally, and finally persist
    and summarize.
    """

    def __init__(
        self,
        settings: Settings,
        github_client: GitHubAPIClient,
        cache: CommentCache,
        classifier: CommentClassifier | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.github_client = github_client
        self.cache = cache
        self.classifier = classifier or CommentClassifier()
        self.sleep = sleep
        self.owner = settings.github_owner
        self.repositories = settings.repositories

    def get_all_labels(self) -> list[str]:
        """Sorted union of label names across all repositories."""
        labels = set()
        for repo in self.repositories:
            try:
                labels.update(self.github_client.list_labels(self.owner, repo))
            except GitHubAPIError as e:
                logger.error("Error fetching labels for %s/%s: %s", self.owner, repo, e)
        return sorted(labels)

    def collect_filters(self, ask: Ask) -> AnalysisFilters:
        """Ask for label, user and date range, falling back to configured defaults.

        Raises
        ------
            ConfigurationError: If a date is invalid or the start is after the end

        """
        settings = self.settings
        labels = self.get_all_labels()

        menu = "\n".join(
            f"{index}. {label}{' (default)' if label == settings.default_label else ''}"
            for index, label in enumerate(labels, start=1)
        )
        label_answer = ask(
            f"Available labels:\n{menu}\n"
            f"Select a label (1-{len(labels)}, or press Enter for default '{settings.default_label}')",
        ).strip()
        label = settings.default_label
        if label_answer.isdigit() and 1 <= int(label_answer) <= len(labels):
            label = labels[int(label_answer) - 1]

        user = ask("Enter GitHub username to filter by (press Enter for no user filter)").strip()
        start = ask(f"Enter start date (YYYY-MM-DD, press Enter for default '{settings.default_start_date}')").strip()
        end = ask(f"Enter end date (YYYY-MM-DD, press Enter for default '{settings.default_end_date}')").strip()

        return self.build_filters(
            start or settings.default_start_date,
            end or settings.default_end_date,
            user or settings.default_user or None,
            label or None,
        )

    @staticmethod
    def build_filters(start_date, end_date, user: str | None = None, label: str | None = None) -> AnalysisFilters:
        """Validate raw filter values.

        Raises
        ------
            ConfigurationError: If a date is invalid or the start is after the end

        """
        start = parse_date_input(start_date, "start date")
        end = parse_date_input(end_date, "end date")
        if start > end:
            raise ConfigurationError("Start date must be before end date.")
        return AnalysisFilters(start_date=start, end_date=end, user=user or None, label=label or None)

    def preview_scope(self, label: str | None) -> ScopePreview:
        """Fetch the candidate pull requests for every repository."""
        preview = ScopePreview()
        for repo in self.repositories:
            try:
                preview.pull_requests[repo] = self.github_client.list_pull_requests(self.owner, repo, label)
            except GitHubAPIError as e:
                e.repository = repo
                logger.error("Failed to list pull requests for %s: %s", repo, e.message)
                preview.failures.append(RepositoryFailure(repo, e.message))
        return preview

    def confirm_scope(
        self,
        filters: AnalysisFilters,
        ask: Ask,
        on_preview: Callable[[ScopePreview], None] | None = None,
    ) -> ScopePreview | None:
        """Show the candidate pull requests and ask whether to proceed.

        Returns
        -------
            The preview when confirmed, None when declined

        """
        preview = self.preview_scope(filters.label)
        if on_preview is not None:
            on_preview(preview)
        logger.info("Total PRs to analyze: %d", preview.total)

        answer = ask("Do you want to proceed with the analysis? (y/N)")
        if answer.strip().lower() not in CONFIRM_ANSWERS:
            logger.info("Analysis cancelled by user")
            return None
        return preview

    def is_eligible(self, comment: dict[str, Any], filters: AnalysisFilters) -> bool:
        """Apply author, length and date filters to a raw comment."""
        author = (comment.get("user") or {}).get("login")
        if not author or author in self.settings.excluded_user_list:
            return False
        if filters.user and author != filters.user:
            return False

        body = comment.get("body") or ""
        if not self.settings.min_comment_length <= len(body) <= self.settings.max_comment_length:
            return False

        try:
            created_at = parse_timestamp(comment.get("created_at"))
        except (TypeError, ValueError):
            logger.warning("Skipping comment %s with invalid created_at %r", comment.get("id"), comment.get("created_at"))
            return False
        if created_at is None:
            return False
        return filters.start <= created_at <= filters.end

    def analyze_repository(
        self,
        repo: str,
        filters: AnalysisFilters,
        pull_requests: list[dict[str, Any]] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> dict[Category, int]:
        """Tally comment categories for one repository.

        Cached comments for the same repository, date range and user are
        used as-is without any GitHub request.

        Args:
        ----
            repo: Repository name
            filters: Run filters
            pull_requests: Pull requests already fetched for the preview
            on_progress: Called with (repo, processed, total) after each PR

        Returns:
        -------
            Comment count per category

        Raises:
        ------
            GitHubAPIError: If fetching fails
            StorageError: If caching a comment fails

        """
        results = Category.empty_counts()

        cached = self.cache.get(repo, filters.start, filters.end, filters.user)
        if cached:
            logger.info("Found %d cached comments for %s", len(cached), repo)
            for comment in cached:
                results[comment.category_value] += 1
            return results

        try:
            if pull_requests is None:
                pull_requests = self.github_client.list_pull_requests(self.owner, repo, filters.label)
            total = len(pull_requests)
            self._tally_pull_requests(repo, filters, pull_requests, results, on_progress)
        except GitHubAPIError as e:
            e.repository = repo
            raise

        logger.info("Processed %d PRs in %s/%s: %s", total, self.owner, repo,
                    {category.value: count for category, count in results.items()})
        return results

    def _tally_pull_requests(
        self,
        repo: str,
        filters: AnalysisFilters,
        pull_requests: list[dict[str, Any]],
        results: dict[Category, int],
        on_progress: ProgressCallback | None,
    ) -> None:
        total = len(pull_requests)
        for processed, pr in enumerate(pull_requests, start=1):
            comments = self.github_client.list_comments(self.owner, repo, pr["number"])

            for comment in comments:
                if not self.is_eligible(comment, filters):
                    continue
                category = self.classifier.categorize(comment["body"])
                self.cache.put(repo, pr["number"], comment, category)
                results[category] += 1

            if on_progress is not None:
                on_progress(repo, processed, total)
            if self.settings.comment_fetch_delay:
                self.sleep(self.settings.comment_fetch_delay)

    def run(
        self,
        filters: AnalysisFilters,
        ask: Ask,
        on_preview: Callable[[ScopePreview], None] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> AnalysisSummary | None:
        """Run a full analysis.

        Returns
        -------
            Summary of the run, or None if the user declined to proceed

        """
        preview = self.confirm_scope(filters, ask, on_preview)
        if preview is None:
            return None

        started = datetime.now()
        failures = list(preview.failures)
        failed = {failure.repository for failure in failures}
        repository_counts: dict[str, dict[Category, int]] = {}

        logger.info("Starting analysis of %d repositories for %s", len(self.repositories), self.owner)

        for repo in self.repositories:
            if repo in failed:
                continue
            try:
                repository_counts[repo] = self.analyze_repository(
                    repo, filters, preview.pull_requests.get(repo), on_progress,
                )
            except (GitHubAPIError, StorageError) as e:
                logger.error("Failed to analyze %s: %s", repo, e)
                failures.append(RepositoryFailure(repo, getattr(e, "message", str(e))))
                continue
            logger.info("Progress: %d/%d repositories completed", len(repository_counts), len(self.repositories))

        counts = Category.empty_counts()
        for repo_counts in repository_counts.values():
            for category, count in repo_counts.items():
                counts[category] += count

        run_id = self.cache.save_run(filters)
        for repo, repo_counts in repository_counts.items():
            self.cache.save_results(run_id, repo, repo_counts)

        summary = AnalysisSummary(
            run_id=run_id,
            filters=filters,
            counts=counts,
            percentages=calculate_percentages(counts),
            repository_counts=repository_counts,
            failures=failures,
            history=self.cache.get_history(5),
        )
        logger.info("Analysis finished in %.1f seconds: %d comments, %d failed repositories",
                    (datetime.now() - started).total_seconds(), summary.total, len(failures))
        return summary
