"""GitHub API client for collecting pull requests, comments and labels."""

import time
from typing import Any
from urllib.parse import urljoin

import requests

from pr_activity_dashboard.config import Settings, get_github_headers
from pr_activity_dashboard.exceptions import GitHubAPIError, PaginationLimitError, describe_http_error
from pr_activity_dashboard.utils import get_logger

logger = get_logger(__name__)


class GitHubAPIClient:
    """GitHub API client with fixed-delay pacing and error translation."""

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        """Initialize GitHub API client.

        Args:
        ----
            settings: Application settings (token, base URL, paging and pacing)
            session: Optional preconfigured requests session

        """
        self.settings = settings
        self.base_url = settings.github_api_base_url.rstrip("/") + "/"
        self.per_page = settings.per_page
        self.max_pages = settings.max_pages
        self.page_delay = settings.rate_limit_delay
        self.timeout = settings.request_timeout
        self.session = session or requests.Session()

        if settings.github_token:
            self.session.headers.update(get_github_headers(settings))
        else:
            logger.warning("No GitHub token provided, using unauthenticated requests")

        # Updated from response headers
        self.rate_limit_remaining: int | None = None
        self.rate_limit_reset: int | None = None

    def _wait_for_rate_limit(self) -> None:
        """Sleep until the rate limit window resets when the API reported it exhausted."""
        if self.rate_limit_remaining is None or self.rate_limit_remaining > 0:
            return

        wait_time = (self.rate_limit_reset or 0) - time.time()
        if wait_time > 0:
            logger.info("Rate limit exhausted, waiting %.1f seconds", wait_time)
            time.sleep(wait_time + 1)
        self.rate_limit_remaining = None

    def _make_request(self, method: str, url: str, target: str, **kwargs: Any) -> requests.Response:  # noqa: ANN401
        """Make HTTP request and translate failures.

        Args:
        ----
            method: HTTP method (GET, POST, etc.)
            url: Request URL, absolute or relative to the API base
            target: Human-readable name of what is fetched, for error messages
            **kwargs: Additional request parameters

        Returns:
        -------
            requests.Response: Response object

        Raises:
        ------
            GitHubAPIError: If the request fails or returns an error status

        """
        self._wait_for_rate_limit()

        if not url.startswith(("http://", "https://")):
            url = urljoin(self.base_url, url.lstrip("/"))

        logger.debug("Making %s request to %s", method, url)
        kwargs.setdefault("timeout", self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", url, e)
            raise GitHubAPIError(describe_http_error(None, target, str(e))) from e

        if "X-RateLimit-Remaining" in response.headers:
            self.rate_limit_remaining = int(response.headers["X-RateLimit-Remaining"])
        if "X-RateLimit-Reset" in response.headers:
            self.rate_limit_reset = int(response.headers["X-RateLimit-Reset"])

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error("GitHub returned %d for %s", response.status_code, url)
            raise GitHubAPIError(
                describe_http_error(response.status_code, target, str(e)),
                status_code=response.status_code,
            ) from e

        return response

    def _get_paginated_results(self, url: str, target: str, params: dict | None = None, item_filter=None) -> list[dict]:
        """Get all results from a paginated endpoint.

        Pages are requested until one comes back empty, pausing
        ``rate_limit_delay`` seconds after each non-empty page.

        Args:
        ----
            url: API endpoint URL
            target: Human-readable name of what is fetched
            params: Query parameters
            item_filter: Optional predicate applied to each item of a page

        Returns:
        -------
            List of all results

        Raises:
        ------
            PaginationLimitError: If more than ``max_pages`` pages were non-empty

        """
        all_results = []
        page = 1

        while True:
            request_params = params.copy() if params else {}
            request_params.update({
                "page": page,
                "per_page": self.per_page,
            })

            response = self._make_request("GET", url, target, params=request_params)
            results = response.json()

            if not results:
                break

            if page > self.max_pages:
                msg = f"Stopped paginating {target} after {self.max_pages} pages"
                raise PaginationLimitError(msg)

            if item_filter is not None:
                results = [item for item in results if item_filter(item)]
            all_results.extend(results)

            page += 1
            if self.page_delay:
                time.sleep(self.page_delay)

        return all_results

    def list_pull_requests(self, owner: str, repo: str, label: str | None = None) -> list[dict]:
        """Get pull requests in any state, optionally only those with a label.

        Args:
        ----
            owner: Repository owner
            repo: Repository name
            label: Exact label name to keep, applied to each fetched page

        Returns:
        -------
            List of pull request dictionaries

        """
        url = f"/repos/{owner}/{repo}/pulls"
        item_filter = None
        if label:
            def item_filter(pr: dict) -> bool:
                return any(item.get("name") == label for item in pr.get("labels") or [])

        pull_requests = self._get_paginated_results(url, f"{owner}/{repo}", {"state": "all"}, item_filter)
        logger.info("Found %d pull requests in %s/%s", len(pull_requests), owner, repo)
        return pull_requests

    def list_comments(self, owner: str, repo: str, pr_number: int) -> list[dict]:
        """Get issue comments for a pull request.

        Args:
        ----
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
        -------
            List of issue comment dictionaries

        """
        url = f"/repos/{owner}/{repo}/issues/{pr_number}/comments"

        return self._get_paginated_results(url, f"{owner}/{repo}")

    def list_labels(self, owner: str, repo: str) -> list[str]:
        """Get label names defined on a repository.

        Args:
        ----
            owner: Repository owner
            repo: Repository name

        Returns:
        -------
            List of label names

        """
        url = f"/repos/{owner}/{repo}/labels"

        response = self._make_request("GET", url, f"{owner}/{repo}", params={"per_page": 100})
        return [label["name"] for label in response.json()]

