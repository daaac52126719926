"""Tests for main application setup."""

from fastapi.testclient import TestClient

from pr_activity_dashboard.main import create_app


def test_health_check(settings) -> None:
    """Test the health check endpoint."""
    with TestClient(create_app(settings)) as client:
        response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app"] == settings.app_name
    assert data["version"] == settings.app_version


def test_database_info(settings) -> None:
    """Test the database info endpoint."""
    with TestClient(create_app(settings)) as client:
        response = client.get("/database-info")
    assert response.status_code == 200
    data = response.json()
    assert data["database_url"] == "sqlite:///:memory:"
    assert data["driver"] == "pysqlite"
    assert data["connected"] == "true"


def test_api_docs(settings) -> None:
    """Test that API docs are accessible."""
    with TestClient(create_app(settings)) as client:
        response = client.get("/docs")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]


def test_database_closed_on_shutdown(settings) -> None:
    app = create_app(settings)
    with TestClient(app):
        database = app.state.database
        assert database.is_open
    assert not database.is_open
