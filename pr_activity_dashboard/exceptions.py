"""Exception hierarchy for the PR Activity Dashboard."""


class DashboardError(Exception):
    """Base class for all application errors."""


class ConfigurationError(DashboardError):
    """Missing or invalid configuration or filter input. Fatal for a run."""


class StorageError(DashboardError):
    """A database read or write failed."""


class GitHubAPIError(DashboardError):
    """A GitHub API request failed.

    Carries the HTTP status code when there was a response, and the
    repository the request was made for once the caller attaches it.
    """

    def __init__(self, message: str, status_code: int | None = None, repository: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.repository = repository

    def __str__(self) -> str:
        if self.repository:
            return f"{self.repository}: {self.message}"
        return self.message


class PaginationLimitError(GitHubAPIError):
    """Pagination ran past the configured page limit without an empty page."""


def describe_http_error(status_code: int | None, target: str, detail: str = "") -> str:
    """Return a user-facing message for a failed GitHub request.

    Args:
    ----
        status_code: HTTP status code, or None for transport failures
        target: What was being fetched, e.g. "owner/repo"
        detail: Original error text

    Returns:
    -------
        Message describing the failure

    """
    if status_code == 404:
        return f"Repository {target} not found"
    if status_code == 403:
        return "API rate limit exceeded or access forbidden. Please try again later."
    if status_code == 401:
        return "Invalid GitHub token. Please check your configuration."
    if status_code is not None and status_code >= 500:
        return "GitHub API is experiencing issues. Please try again later."
    return f"Failed to fetch {target}: {detail}" if detail else f"Failed to fetch {target}"
