"""Analysis run history models."""

from datetime import datetime
from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship, validates

from pr_activity_dashboard.models.category import Category
from pr_activity_dashboard.utils.database import Base


class AnalysisRun(Base):
    """One execution of the analyzer. Rows are only ever appended."""

    __tablename__ = "analysis_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    user_filter = Column(String(255))
    label_filter = Column(String(255))
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    results = relationship("AnalysisResult", back_populates="run", cascade="all, delete-orphan", order_by="AnalysisResult.id")

    def __repr__(self) -> str:
        return f"<AnalysisRun(id={self.id}, start={self.start_date}, end={self.end_date})>"

    @property
    def total_comments(self) -> int:
        return sum(result.count for result in self.results)

    @property
    def repositories(self) -> list[str]:
        seen = []
        for result in self.results:
            if result.repository not in seen:
                seen.append(result.repository)
        return seen

    def to_dict(self, include_results: bool = False) -> dict[str, Any]:
        """Convert model to dictionary."""
        data = {
            "id": self.id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "user": self.user_filter,
            "label": self.label_filter,
            "timestamp": self.timestamp.isoformat(),
            "repositories": self.repositories,
            "total_comments": self.total_comments,
        }
        if include_results:
            data["results"] = [result.to_dict() for result in self.results]
        return data


class AnalysisResult(Base):
    """Count of comments in one category for one repository of a run."""

    __tablename__ = "analysis_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(Integer, ForeignKey("analysis_runs.id", ondelete="CASCADE"), nullable=False, index=True)
    repository = Column(String(255), nullable=False)
    category = Column(String(32), nullable=False)
    count = Column(Integer, nullable=False, default=0)

    run = relationship("AnalysisRun", back_populates="results")

    @validates("category")
    def validate_category(self, key, value) -> str:
        return Category(value).value

    def __repr__(self) -> str:
        return f"<AnalysisResult(run_id={self.run_id}, repository='{self.repository}', {self.category}={self.count})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.repository,
            "category": self.category,
            "count": self.count,
        }
