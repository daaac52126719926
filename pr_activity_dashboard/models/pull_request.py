"""Pull Request data model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, UniqueConstraint

from pr_activity_dashboard.utils.database import Base
from pr_activity_dashboard.utils.dates import parse_timestamp


def pull_request_state(github_data) -> str:
    """Return open, closed or merged for a GitHub pull request payload."""
    if github_data.get("merged_at"):
        return "merged"
    return github_data.get("state") or "open"


def label_names(github_data) -> list[str]:
    return [label["name"] for label in github_data.get("labels") or [] if label.get("name")]


class PullRequest(Base):
    """Pull Request model representing a GitHub pull request."""

    __tablename__ = "pull_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    repository = Column(String(255), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    title = Column(String(500), nullable=False)
    state = Column(String(20), nullable=False, index=True)
    author_login = Column(String(255), nullable=False, index=True)
    author_avatar_url = Column(Text)
    created_at = Column(DateTime)
    html_url = Column(Text)
    labels = Column(Text, default="")

    # Timestamps
    synced_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("repository", "number", name="uq_pull_requests_repository_number"),
        Index("idx_pull_requests_repository_date", "repository", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<PullRequest(repository='{self.repository}', number={self.number}, title='{self.title[:50]}')>"

    def to_dict(self):
        """Convert model to dictionary."""
        return {
            "type": "pr",
            "repository": self.repository,
            "number": self.number,
            "title": self.title,
            "state": self.state,
            "author_login": self.author_login,
            "author_avatar_url": self.author_avatar_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "html_url": self.html_url,
            "labels": self.label_list,
        }

    @classmethod
    def from_github_data(cls, github_data, repository):
        """Create instance from GitHub API data."""
        pull_request = cls(repository=repository, number=github_data["number"])
        pull_request.update_from_github_data(github_data)
        return pull_request

    def update_from_github_data(self, github_data) -> None:
        """Update instance from GitHub API data."""
        user = github_data.get("user") or {}
        self.title = github_data.get("title") or ""
        self.state = pull_request_state(github_data)
        self.author_login = user.get("login") or "ghost"
        self.author_avatar_url = user.get("avatar_url")
        self.created_at = parse_timestamp(github_data.get("created_at"))
        self.html_url = github_data.get("html_url")
        self.labels = ",".join(label_names(github_data))
        self.synced_at = datetime.utcnow()

    @property
    def label_list(self) -> list[str]:
        return [name for name in (self.labels or "").split(",") if name]

    @property
    def is_merged(self):
        """Check if PR is merged."""
        return self.state == "merged"
