"""Unit tests for data models."""

from collections.abc import Generator
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from pr_activity_dashboard.models import AnalysisResult, AnalysisRun, Category, Comment, PullRequest
from pr_activity_dashboard.utils.database import Base


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create a test database session."""
    engine = create_engine("sqlite:///:memory:")
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = session_local()
    yield session

    session.close()


class TestCategory:
    """Test Category values."""

    def test_empty_counts_in_declaration_order(self) -> None:
        counts = Category.empty_counts()
        assert list(counts) == [
            Category.QUESTION,
            Category.MISSED_FUNCTIONALITY,
            Category.NICE_TO_HAVE,
            Category.IMPROVEMENT,
            Category.OTHER,
        ]
        assert set(counts.values()) == {0}

    def test_coerce(self) -> None:
        assert Category.coerce("nice_to_have") is Category.NICE_TO_HAVE
        assert Category.coerce("bogus") is Category.OTHER
        assert Category.coerce(None) is Category.OTHER


class TestComment:
    """Test Comment model."""

    def test_from_github_data(self, db_session, make_comment) -> None:
        comment = Comment.from_github_data(
            make_comment(42, "this is missing", created_at="2025-01-15T10:00:00+02:00"),
            "alpha",
            7,
            Category.MISSED_FUNCTIONALITY,
        )
        db_session.add(comment)
        db_session.commit()

        assert comment.id is not None
        assert comment.comment_id == 42
        assert comment.author_login == "reviewer"
        assert comment.created_at == datetime(2025, 1, 15, 8, 0)
        assert comment.category == "missed_functionality"
        assert comment.category_value is Category.MISSED_FUNCTIONALITY
        assert comment.to_dict()["type"] == "comment"

    def test_invalid_category_rejected(self, make_comment) -> None:
        with pytest.raises(ValueError):
            Comment.from_github_data(make_comment(1, "hello there"), "alpha", 1, "praise")

    def test_unique_per_repository(self, db_session, make_comment) -> None:
        db_session.add(Comment.from_github_data(make_comment(1, "hello there"), "alpha", 1, Category.OTHER))
        db_session.add(Comment.from_github_data(make_comment(1, "hello there"), "beta", 1, Category.OTHER))
        db_session.commit()

        db_session.add(Comment.from_github_data(make_comment(1, "hello again"), "alpha", 1, Category.OTHER))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestPullRequest:
    """Test PullRequest model."""

    def test_from_github_data(self, db_session, make_pr) -> None:
        pr = PullRequest.from_github_data(make_pr(3, labels=("bug", "docs")), "alpha")
        db_session.add(pr)
        db_session.commit()

        assert pr.number == 3
        assert pr.state == "open"
        assert pr.label_list == ["bug", "docs"]
        assert pr.to_dict()["labels"] == ["bug", "docs"]
        assert not pr.is_merged

    def test_merged_state(self, make_pr) -> None:
        pr = PullRequest.from_github_data(make_pr(3, state="closed", merged_at="2025-01-11T00:00:00Z"), "alpha")
        assert pr.state == "merged"
        assert pr.is_merged

    def test_closed_state(self, make_pr) -> None:
        pr = PullRequest.from_github_data(make_pr(3, state="closed"), "alpha")
        assert pr.state == "closed"


class TestAnalysisRun:
    """Test AnalysisRun and AnalysisResult models."""

    def test_totals_and_repositories(self, db_session) -> None:
        run = AnalysisRun(start_date=datetime(2025, 1, 1), end_date=datetime(2025, 1, 31, 23, 59, 59))
        run.results = [
            AnalysisResult(repository="alpha", category=Category.QUESTION, count=2),
            AnalysisResult(repository="alpha", category=Category.OTHER, count=1),
            AnalysisResult(repository="beta", category=Category.QUESTION, count=4),
        ]
        db_session.add(run)
        db_session.commit()

        data = run.to_dict(include_results=True)
        assert data["total_comments"] == 7
        assert data["repositories"] == ["alpha", "beta"]
        assert data["user"] is None
        assert data["results"][0] == {"repository": "alpha", "category": "question", "count": 2}
        assert "results" not in run.to_dict()
