"""Unit tests for GitHub API client."""

from unittest.mock import patch

import pytest
import requests
import responses
from responses import matchers

from pr_activity_dashboard.exceptions import GitHubAPIError, PaginationLimitError
from pr_activity_dashboard.github.client import GitHubAPIClient

PULLS_URL = "https://api.github.com/repos/acme/alpha/pulls"


def _page(page: int, state: bool = True) -> list:
    params = {"page": str(page), "per_page": "100"}
    if state:
        params["state"] = "all"
    return [matchers.query_param_matcher(params)]


class TestGitHubAPIClient:
    """Test GitHub API client."""

    @pytest.fixture(autouse=True)
    def _client(self, settings) -> None:
        self.settings = settings
        self.client = GitHubAPIClient(settings)

    @responses.activate
    def test_list_pull_requests_paginates_until_empty_page(self, make_pr) -> None:
        responses.add(responses.GET, PULLS_URL, json=[make_pr(1), make_pr(2)], match=_page(1))
        responses.add(responses.GET, PULLS_URL, json=[make_pr(3)], match=_page(2))
        responses.add(responses.GET, PULLS_URL, json=[], match=_page(3))

        prs = self.client.list_pull_requests("acme", "alpha")

        assert [pr["number"] for pr in prs] == [1, 2, 3]
        assert len(responses.calls) == 3

    @responses.activate
    def test_short_page_does_not_stop_pagination(self, make_pr) -> None:
        responses.add(responses.GET, PULLS_URL, json=[make_pr(1)], match=_page(1))
        responses.add(responses.GET, PULLS_URL, json=[make_pr(2)], match=_page(2))
        responses.add(responses.GET, PULLS_URL, json=[], match=_page(3))

        prs = self.client.list_pull_requests("acme", "alpha")

        assert len(prs) == 2

    @responses.activate
    def test_label_filter_is_applied_client_side(self, make_pr) -> None:
        responses.add(
            responses.GET,
            PULLS_URL,
            json=[make_pr(1, labels=("bug",)), make_pr(2, labels=("bugfix",)), make_pr(3)],
            match=_page(1),
        )
        responses.add(responses.GET, PULLS_URL, json=[make_pr(4)], match=_page(2))
        responses.add(responses.GET, PULLS_URL, json=[make_pr(5, labels=("docs", "bug"))], match=_page(3))
        responses.add(responses.GET, PULLS_URL, json=[], match=_page(4))

        prs = self.client.list_pull_requests("acme", "alpha", label="bug")

        assert [pr["number"] for pr in prs] == [1, 5]
        assert all("labels" not in call.request.url for call in responses.calls)

    @responses.activate
    def test_list_comments(self, make_comment) -> None:
        url = "https://api.github.com/repos/acme/alpha/issues/7/comments"
        responses.add(responses.GET, url, json=[make_comment(1, "first comment")], match=_page(1, state=False))
        responses.add(responses.GET, url, json=[], match=_page(2, state=False))

        comments = self.client.list_comments("acme", "alpha", 7)

        assert [comment["id"] for comment in comments] == [1]

    @responses.activate
    def test_list_labels(self) -> None:
        responses.add(
            responses.GET,
            "https://api.github.com/repos/acme/alpha/labels",
            json=[{"name": "bug"}, {"name": "enhancement"}],
            status=200,
        )

        assert self.client.list_labels("acme", "alpha") == ["bug", "enhancement"]

    @responses.activate
    def test_not_found_raises_api_error(self) -> None:
        responses.add(responses.GET, PULLS_URL, json={"message": "Not Found"}, status=404)

        with pytest.raises(GitHubAPIError) as excinfo:
            self.client.list_pull_requests("acme", "alpha")

        assert excinfo.value.status_code == 404
        assert "not found" in excinfo.value.message.lower()

    @pytest.mark.parametrize(
        ("status", "fragment"),
        [(401, "token"), (403, "rate limit"), (500, "experiencing issues"), (502, "experiencing issues")],
    )
    @responses.activate
    def test_error_statuses_have_friendly_messages(self, status, fragment) -> None:
        responses.add(responses.GET, PULLS_URL, json={"message": "error"}, status=status)

        with pytest.raises(GitHubAPIError) as excinfo:
            self.client.list_pull_requests("acme", "alpha")

        assert excinfo.value.status_code == status
        assert fragment in excinfo.value.message.lower()

    @responses.activate
    def test_connection_error_raises_api_error(self) -> None:
        responses.add(responses.GET, PULLS_URL, body=requests.ConnectionError("connection refused"))

        with pytest.raises(GitHubAPIError) as excinfo:
            self.client.list_pull_requests("acme", "alpha")

        assert excinfo.value.status_code is None

    @responses.activate
    def test_pagination_limit(self, make_pr) -> None:
        client = GitHubAPIClient(self.settings.model_copy(update={"max_pages": 2}))
        responses.add(responses.GET, PULLS_URL, json=[make_pr(1)])

        with pytest.raises(PaginationLimitError):
            client.list_pull_requests("acme", "alpha")

        assert len(responses.calls) == 3

    @responses.activate
    def test_exactly_max_pages_is_within_limit(self, make_pr) -> None:
        client = GitHubAPIClient(self.settings.model_copy(update={"max_pages": 2}))
        responses.add(responses.GET, PULLS_URL, json=[make_pr(1)], match=_page(1))
        responses.add(responses.GET, PULLS_URL, json=[make_pr(2)], match=_page(2))
        responses.add(responses.GET, PULLS_URL, json=[], match=_page(3))

        pull_requests = client.list_pull_requests("acme", "alpha")

        assert [pr["number"] for pr in pull_requests] == [1, 2]
        assert len(responses.calls) == 3

    @responses.activate
    def test_pauses_after_each_non_empty_page(self, make_pr) -> None:
        client = GitHubAPIClient(self.settings.model_copy(update={"rate_limit_delay": 0.75}))
        responses.add(responses.GET, PULLS_URL, json=[make_pr(1)], match=_page(1))
        responses.add(responses.GET, PULLS_URL, json=[make_pr(2)], match=_page(2))
        responses.add(responses.GET, PULLS_URL, json=[], match=_page(3))

        with patch("pr_activity_dashboard.github.client.time.sleep") as mock_sleep:
            client.list_pull_requests("acme", "alpha")

        assert [call.args for call in mock_sleep.call_args_list] == [(0.75,), (0.75,)]

    @responses.activate
    def test_custom_base_url(self) -> None:
        client = GitHubAPIClient(
            self.settings.model_copy(update={"github_api_base_url": "https://github.example.com/api/v3"}),
        )
        responses.add(
            responses.GET,
            "https://github.example.com/api/v3/repos/acme/alpha/labels",
            json=[{"name": "bug"}],
        )

        assert client.list_labels("acme", "alpha") == ["bug"]

    def test_authorization_header(self) -> None:
        assert self.client.session.headers["Authorization"] == "Bearer test_token"

    def test_initialization_without_token(self) -> None:
        client = GitHubAPIClient(self.settings.model_copy(update={"github_token": ""}))
        assert "Authorization" not in client.session.headers
