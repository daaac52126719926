"""Cached comment data model."""

from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import validates

from pr_activity_dashboard.models.category import Category
from pr_activity_dashboard.utils.database import Base
from pr_activity_dashboard.utils.dates import parse_timestamp


class Comment(Base):
    """A categorized pull request comment, unique per (repository, comment_id)."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    repository = Column(String(255), nullable=False, index=True)
    pull_request_number = Column(Integer, nullable=False)
    comment_id = Column(BigInteger, nullable=False)
    author_login = Column(String(255), nullable=False, index=True)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)
    html_url = Column(Text)
    category = Column(String(32), nullable=False, default=Category.OTHER.value, index=True)
    cached_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("repository", "comment_id", name="uq_comments_repository_comment"),
        Index("idx_comments_repository_date", "repository", "created_at"),
    )

    @validates("category")
    def validate_category(self, key, value) -> str:
        """Only values from the closed category set are stored."""
        return Category(value).value

    def __repr__(self) -> str:
        return f"<Comment(repository='{self.repository}', comment_id={self.comment_id}, category='{self.category}')>"

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "type": "comment",
            "repository": self.repository,
            "pull_request_number": self.pull_request_number,
            "comment_id": self.comment_id,
            "author_login": self.author_login,
            "body": self.body,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "html_url": self.html_url,
            "category": self.category,
        }

    @classmethod
    def from_github_data(cls, github_data, repository, pull_request_number, category) -> "Comment":
        """Create instance from GitHub issue comment data."""
        return cls(
            repository=repository,
            pull_request_number=pull_request_number,
            comment_id=github_data["id"],
            author_login=github_data["user"]["login"],
            body=github_data.get("body") or "",
            created_at=parse_timestamp(github_data["created_at"]),
            html_url=github_data.get("html_url"),
            category=category,
        )

    def update_from_github_data(self, github_data, pull_request_number, category) -> None:
        """Update instance from GitHub issue comment data."""
        self.pull_request_number = pull_request_number
        self.author_login = github_data["user"]["login"]
        self.body = github_data.get("body") or ""
        self.created_at = parse_timestamp(github_data["created_at"])
        self.html_url = github_data.get("html_url")
        self.category = category
        self.cached_at = datetime.utcnow()

    @property
    def category_value(self) -> Category:
        return Category.coerce(self.category)
