"""
Database models for the PR Activity Dashboard
"""

from .category import Category
from .comment import Comment
from .pull_request import PullRequest
from .analysis_run import AnalysisRun, AnalysisResult

__all__ = [
    "Category",
    "Comment",
    "PullRequest",
    "AnalysisRun",
    "AnalysisResult",
]
