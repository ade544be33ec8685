from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import requests

from .retry import is_transient, run_with_retries

DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
USER_AGENT = "projectmover/0.2.0"
HTTP_ERROR_STATUS = 400
HTTP_FORBIDDEN = 403
TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})
REQUEST_TIMEOUT = 30


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub API answers with an HTTP error status."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text
        self.retry_after = retry_after

    @property
    def transient(self) -> bool:
        if self.status in TRANSIENT_STATUSES:
            return True
        # GitHub reports secondary rate limits as 403 with an explanatory body
        return self.status == HTTP_FORBIDDEN and is_transient(self.response_text or "")


class GraphQLError(RuntimeError):
    """Raised when a GraphQL response carries an ``errors`` array."""

    def __init__(self, errors: list[Mapping[str, Any]], *, data: Any = None):
        messages = [str(e.get("message", "")) for e in errors if isinstance(e, Mapping)]
        super().__init__(f"GraphQL query failed: {'; '.join(m for m in messages if m) or errors}")
        self.errors = errors
        self.data = data

    @property
    def error_types(self) -> list[str]:
        return [
            str(e["type"]) for e in self.errors if isinstance(e, Mapping) and e.get("type")
        ]

    @property
    def transient(self) -> bool:
        return "RATE_LIMITED" in self.error_types

    def has_type(self, error_type: str) -> bool:
        return error_type in self.error_types

    def is_not_found(self) -> bool:
        return self.has_type("NOT_FOUND")


def _parse_retry_after(response: requests.Response) -> float | None:
    raw = response.headers.get("Retry-After") if response.headers else None
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


@dataclass
class GitHubGraphQLClient:
    """Lightweight GraphQL client for the GitHub API."""

    token: str
    graphql_url: str = field(
        default_factory=lambda: os.environ.get("GITHUB_GRAPHQL_URL", DEFAULT_GRAPHQL_URL)
    )
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", f"Bearer {self.token}")
        self._session.headers.setdefault("Accept", "application/vnd.github+json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    def _post(self, payload: dict[str, Any]) -> Any:
        def _run() -> Any:
            response = self._session.post(
                self.graphql_url,
                json=payload,
                headers=self._session.headers,
                timeout=REQUEST_TIMEOUT,
            )
            if response.status_code >= HTTP_ERROR_STATUS:
                raise GitHubAPIError(
                    f"GitHub GraphQL request failed with HTTP {response.status_code}",
                    status=response.status_code,
                    response_text=response.text,
                    retry_after=_parse_retry_after(response),
                )
            try:
                body = response.json()
            except ValueError:
                raise GitHubAPIError(
                    "GitHub GraphQL endpoint returned a non-JSON body",
                    status=response.status_code,
                    response_text=response.text,
                ) from None
            if isinstance(body, dict) and body.get("errors"):
                raise GraphQLError(list(body["errors"]), data=body.get("data"))
            return body

        return run_with_retries(_run)

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute ``query`` and return its ``data`` mapping (empty when absent)."""
        body = self._post({"query": query, "variables": variables or {}})
        data = body.get("data") if isinstance(body, dict) else None
        return data if isinstance(data, dict) else {}

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> GitHubGraphQLClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "DEFAULT_GRAPHQL_URL",
    "GitHubAPIError",
    "GitHubGraphQLClient",
    "GraphQLError",
]
