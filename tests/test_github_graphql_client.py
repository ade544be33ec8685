import json
from dataclasses import dataclass, field
from typing import Any

import pytest
import requests

from projectmover import retry
from projectmover.errors import MutationFailedError
from projectmover.github_graphql import (
    DEFAULT_GRAPHQL_URL,
    GitHubAPIError,
    GitHubGraphQLClient,
    GraphQLError,
)
from projectmover.models import ProjectRef
from projectmover.project import ProjectBoard


@dataclass
class _DummyResponse:
    status_code: int
    payload: Any
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    @property
    def text(self) -> str:
        if isinstance(self.payload, (dict, list)):
            return json.dumps(self.payload)
        return str(self.payload)


class _DummySession:
    def __init__(self, responses: list[Any]):
        self._responses = responses
        self.request_log: list[tuple[str, dict[str, Any]]] = []
        self.headers: dict[str, str] = {}
        self.closed = False

    def post(
        self,
        url: str,
        *,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> _DummyResponse:
        self.request_log.append((url, {"json": json, "headers": headers, "timeout": timeout}))
        if not self._responses:
            raise AssertionError("No response queued for request")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    slept: list[float] = []
    monkeypatch.setattr(retry.time, "sleep", slept.append)
    return slept


def test_graphql_returns_data_and_sets_headers():
    session = _DummySession([_DummyResponse(200, {"data": {"viewer": {"login": "octocat"}}})])
    client = GitHubGraphQLClient(token="tkn", session=session)

    data = client.graphql("query { viewer { login } }", {"a": 1})

    assert data == {"viewer": {"login": "octocat"}}
    url, request = session.request_log[0]
    assert url == DEFAULT_GRAPHQL_URL
    assert request["json"] == {"query": "query { viewer { login } }", "variables": {"a": 1}}
    assert session.headers["Authorization"] == "Bearer tkn"
    assert request["timeout"] == 30


def test_graphql_url_can_be_overridden_from_environment(monkeypatch):
    monkeypatch.setenv("GITHUB_GRAPHQL_URL", "https://ghe.example.com/api/graphql")
    session = _DummySession([_DummyResponse(200, {"data": {}})])

    GitHubGraphQLClient(token="tkn", session=session).graphql("query { x }")

    assert session.request_log[0][0] == "https://ghe.example.com/api/graphql"


def test_graphql_errors_raise_with_types():
    session = _DummySession(
        [
            _DummyResponse(
                200,
                {
                    "data": {"organization": None},
                    "errors": [
                        {
                            "type": "NOT_FOUND",
                            "path": ["organization"],
                            "message": "Could not resolve to an Organization with the login of 'ghost'.",
                        }
                    ],
                },
            )
        ]
    )
    client = GitHubGraphQLClient(token="tkn", session=session)

    with pytest.raises(GraphQLError) as excinfo:
        client.graphql("query { organization(login: \"ghost\") { id } }")

    assert excinfo.value.is_not_found()
    assert excinfo.value.error_types == ["NOT_FOUND"]
    assert excinfo.value.data == {"organization": None}
    assert "Could not resolve" in str(excinfo.value)


def test_http_error_raises_api_error_without_retry():
    session = _DummySession([_DummyResponse(401, {"message": "Bad credentials"})])
    client = GitHubGraphQLClient(token="tkn", session=session)

    with pytest.raises(GitHubAPIError) as excinfo:
        client.graphql("query { x }")

    assert excinfo.value.status == 401
    assert excinfo.value.transient is False
    assert len(session.request_log) == 1


def test_transient_http_error_is_retried(monkeypatch, _no_sleep):
    monkeypatch.setenv("PROJECTMOVER_RETRY_BASE", "0.01")
    session = _DummySession(
        [
            _DummyResponse(502, "Bad Gateway", headers={"Retry-After": "2"}),
            _DummyResponse(200, {"data": {"ok": True}}),
        ]
    )
    client = GitHubGraphQLClient(token="tkn", session=session)

    assert client.graphql("query { ok }") == {"ok": True}
    assert len(session.request_log) == 2
    assert _no_sleep == [2.0]


def test_non_json_body_raises_api_error():
    session = _DummySession(
        [_DummyResponse(200, json.JSONDecodeError("Expecting value", "<html>", 0))]
    )
    client = GitHubGraphQLClient(token="tkn", session=session)

    with pytest.raises(GitHubAPIError, match="non-JSON body") as excinfo:
        client.graphql("query { x }")

    assert excinfo.value.status == 200
    assert excinfo.value.transient is False
    assert len(session.request_log) == 1


def test_non_json_body_on_mutation_is_a_mutation_failure():
    session = _DummySession([_DummyResponse(200, ValueError("<html>proxy error</html>"))])
    board = ProjectBoard(GitHubGraphQLClient(token="tkn", session=session))
    project = ProjectRef(id="PVT_1", number=1, owner="acme")

    with pytest.raises(MutationFailedError, match="non-JSON body") as excinfo:
        board.move_to_top(project, "PVTI_1")

    assert isinstance(excinfo.value.__cause__, GitHubAPIError)


def test_secondary_rate_limit_403_is_transient():
    err = GitHubAPIError(
        "forbidden", status=403, response_text="You have exceeded a secondary rate limit"
    )
    assert err.transient is True
    assert GitHubAPIError("forbidden", status=403, response_text="nope").transient is False


def test_connection_errors_exhaust_retries(monkeypatch):
    monkeypatch.setenv("PROJECTMOVER_RETRY_ATTEMPTS", "2")
    session = _DummySession([requests.ConnectionError("reset"), requests.ConnectionError("reset")])
    client = GitHubGraphQLClient(token="tkn", session=session)

    with pytest.raises(requests.ConnectionError):
        client.graphql("query { x }")

    assert len(session.request_log) == 2


def test_context_manager_closes_session():
    session = _DummySession([])
    with GitHubGraphQLClient(token="tkn", session=session):
        pass
    assert session.closed is True
