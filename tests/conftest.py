"""Test configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from datetime import date
from typing import Any

import pytest

# Set environment variables immediately when this module is imported
# This ensures they're available before any other modules try to load Settings
test_env_vars = {
    "GITHUB_TOKEN": "test_github_token_123",
    "GITHUB_OWNER": "acme",
    "GITHUB_REPOS": "alpha,beta",
    "GITHUB_API_BASE_URL": "https://api.github.com",
    "DATABASE_URL": "sqlite:///:memory:",
    "RATE_LIMIT_DELAY": "0",
    "COMMENT_FETCH_DELAY": "0",
    "APP_NAME": "PR Activity Dashboard Test",
    "APP_VERSION": "1.0.0-test",
    "LOG_LEVEL": "DEBUG",
}

for key, value in test_env_vars.items():
    os.environ[key] = value

from pr_activity_dashboard.config import Settings  # noqa: E402
from pr_activity_dashboard.exceptions import GitHubAPIError, describe_http_error  # noqa: E402
from pr_activity_dashboard.services.comment_cache import CommentCache  # noqa: E402
from pr_activity_dashboard.utils import Database  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """Set up test environment variables."""
    yield

    for key in test_env_vars:
        os.environ.pop(key, None)


@pytest.fixture
def settings() -> Settings:
    """Settings with no pacing delays and an in-memory database."""
    return Settings(
        github_token="test_token",
        github_owner="acme",
        github_repos="alpha,beta",
        github_api_base_url="https://api.github.com",
        rate_limit_delay=0,
        comment_fetch_delay=0,
        min_comment_length=5,
        max_comment_length=5000,
        default_label="",
        default_user="",
        default_start_date=date(2025, 1, 1),
        default_end_date=date(2025, 1, 31),
        database_url="sqlite:///:memory:",
    )


@pytest.fixture
def database() -> Generator[Database, None, None]:
    """Open an in-memory database."""
    db = Database("sqlite:///:memory:").open()
    yield db
    db.close()


@pytest.fixture
def cache(database) -> CommentCache:
    return CommentCache(database)


@pytest.fixture
def make_comment() -> Callable[..., dict[str, Any]]:
    """Build a GitHub issue comment payload."""

    def _make(
        comment_id: int,
        body: str,
        login: str = "reviewer",
        created_at: str = "2025-01-15T10:00:00Z",
    ) -> dict[str, Any]:
        return {
            "id": comment_id,
            "body": body,
            "user": {"login": login, "avatar_url": f"https://avatars.example.com/{login}"},
            "created_at": created_at,
            "html_url": f"https://github.com/acme/repo/pull/1#issuecomment-{comment_id}",
        }

    return _make


@pytest.fixture
def make_pr() -> Callable[..., dict[str, Any]]:
    """Build a GitHub pull request payload."""

    def _make(
        number: int,
        labels: tuple[str, ...] = (),
        state: str = "open",
        login: str = "author",
        created_at: str = "2025-01-10T09:00:00Z",
        merged_at: str | None = None,
    ) -> dict[str, Any]:
        return {
            "id": 1000 + number,
            "number": number,
            "title": f"Pull request {number}",
            "state": state,
            "user": {"login": login, "avatar_url": f"https://avatars.example.com/{login}"},
            "labels": [{"name": name} for name in labels],
            "created_at": created_at,
            "merged_at": merged_at,
            "html_url": f"https://github.com/acme/repo/pull/{number}",
        }

    return _make


class FakeGitHubClient:
    """In-memory stand-in for GitHubAPIClient that counts calls."""

    def __init__(self) -> None:
        self.pull_requests: dict[str, list[dict]] = {}
        self.comments: dict[tuple[str, int], list[dict]] = {}
        self.labels: dict[str, list[str]] = {}
        self.failing: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []

    def _check(self, repo: str) -> None:
        if repo in self.failing:
            status = self.failing[repo]
            raise GitHubAPIError(describe_http_error(status, f"acme/{repo}"), status_code=status)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def list_pull_requests(self, owner: str, repo: str, label: str | None = None) -> list[dict]:
        self.calls.append(("list_pull_requests", repo))
        self._check(repo)
        prs = self.pull_requests.get(repo, [])
        if label:
            prs = [pr for pr in prs if any(item["name"] == label for item in pr["labels"])]
        return prs

    def list_comments(self, owner: str, repo: str, pr_number: int) -> list[dict]:
        self.calls.append(("list_comments", repo))
        self._check(repo)
        return self.comments.get((repo, pr_number), [])

    def list_labels(self, owner: str, repo: str) -> list[str]:
        self.calls.append(("list_labels", repo))
        self._check(repo)
        return self.labels.get(repo, [])


@pytest.fixture
def fake_github() -> FakeGitHubClient:
    return FakeGitHubClient()
