"""FastAPI routes for the PR Activity Dashboard."""

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request

from pr_activity_dashboard.config import Settings
from pr_activity_dashboard.exceptions import GitHubAPIError, StorageError
from pr_activity_dashboard.github.client import GitHubAPIClient
from pr_activity_dashboard.models import Category
from pr_activity_dashboard.services.activity import ActivityFilters, ActivityQuery, ActivitySync
from pr_activity_dashboard.services.classifier import CommentClassifier
from pr_activity_dashboard.services.comment_cache import CommentCache
from pr_activity_dashboard.utils import Database, get_logger

logger = get_logger(__name__)
router = APIRouter()


# Dependencies resolved from application state set up in the lifespan
def get_app_settings(request: Request) -> Settings:
    """Get application settings."""
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """Get the open database handle."""
    return request.app.state.database


def get_github_client(request: Request) -> GitHubAPIClient:
    """Get the shared GitHub client."""
    return request.app.state.github_client


def get_classifier(request: Request) -> CommentClassifier:
    """Get the trained comment classifier."""
    return request.app.state.classifier


@router.get("/")
def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "message": "PR Activity Dashboard API",
        "version": "1.0.0",
        "endpoints": {
            "repositories": "/repositories",
            "labels": "/labels",
            "activity": "/activity",
            "sync": "/sync",
            "runs": "/runs",
        },
    }


@router.get("/repositories")
def get_repositories(settings: Annotated[Settings, Depends(get_app_settings)]) -> dict[str, Any]:
    """Get configured repositories."""
    return {
        "owner": settings.github_owner,
        "repositories": settings.repositories,
    }


@router.get("/labels")
def get_labels(
    settings: Annotated[Settings, Depends(get_app_settings)],
    github_client: Annotated[GitHubAPIClient, Depends(get_github_client)],
    repository: Annotated[str | None, Query()] = None,
) -> dict[str, Any]:
    """Get label names for one repository, or the union over all of them."""
    repositories = [repository] if repository else settings.repositories
    labels: set[str] = set()
    try:
        for repo in repositories:
            labels.update(github_client.list_labels(settings.github_owner, repo))
    except GitHubAPIError as e:
        logger.exception("Error fetching labels")
        raise HTTPException(status_code=502, detail=e.message) from e

    return {"labels": sorted(labels)}


@router.get("/activity")
def get_activity(
    database: Annotated[Database, Depends(get_database)],
    repository: Annotated[str | None, Query()] = None,
    type: Annotated[str, Query(pattern="^(all|pr|comment)$")] = "all",
    status: Annotated[str, Query(pattern="^(all|open|closed|merged)$")] = "all",
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
    user: Annotated[str | None, Query()] = None,
    category: Annotated[Category | None, Query()] = None,
    sort_by: Annotated[str, Query(pattern="^(date|repository|author)$")] = "date",
    sort_order: Annotated[str, Query(pattern="^(asc|desc)$")] = "desc",
    page: Annotated[int, Query(ge=1)] = 1,
) -> dict[str, Any]:
    """Get a page of pull request and comment activity."""
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="Start date must be before end date.")

    filters = ActivityFilters(
        repository=repository,
        type=type,
        status=status,
        start_date=start_date,
        end_date=end_date,
        user=user,
        category=category.value if category else None,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    try:
        return ActivityQuery(database).fetch_activity(filters, page)
    except StorageError as e:
        logger.exception("Error fetching activity")
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/sync")
def sync_activity(
    settings: Annotated[Settings, Depends(get_app_settings)],
    database: Annotated[Database, Depends(get_database)],
    github_client: Annotated[GitHubAPIClient, Depends(get_github_client)],
    classifier: Annotated[CommentClassifier, Depends(get_classifier)],
) -> dict[str, Any]:
    """Sync pull requests and comments for all configured repositories."""
    try:
        result = ActivitySync(settings, github_client, database, classifier).sync_all()
    except StorageError as e:
        logger.exception("Error syncing activity")
        raise HTTPException(status_code=500, detail="Internal server error") from e

    return {
        "message": "Sync completed" if not result["errors"] else "Sync completed with errors",
        **result,
    }


@router.get("/runs")
def get_runs(
    database: Annotated[Database, Depends(get_database)],
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, Any]:
    """Get recent analysis runs."""
    return {"runs": CommentCache(database).get_history(limit)}


@router.get("/runs/{run_id}")
def get_run(
    run_id: Annotated[int, Path(ge=1)],
    database: Annotated[Database, Depends(get_database)],
) -> dict[str, Any]:
    """Get an analysis run with its per-repository results."""
    run = CommentCache(database).get_run(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Analysis run not found")
    return run
