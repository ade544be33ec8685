"""Pytest configuration for projectmover tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install, and isolates every test from the
GitHub Actions environment of the machine running the suite.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from projectmover.logging import configure_logging  # noqa: E402

_ENV_PREFIXES = ("GITHUB_", "INPUT_", "PROJECTMOVER_")
_TOKEN_VARS = ("GH_TOKEN", "GITHUB_ACCESS_TOKEN", "GH_ACCESS_TOKEN", "GITHUB_PAT")


def classify_query(query: str) -> str:
    """Name a GraphQL document by the operation it performs."""
    if "updateProjectV2ItemFieldValue" in query:
        return "set_status"
    if "updateProjectV2ItemPosition" in query:
        return "move_to_top"
    if "organization(login" in query:
        return "resolve_org"
    if "user(login" in query:
        return "resolve_user"
    if "projectItems" in query:
        return "locate_item"
    if "field(name" in query:
        return "resolve_status"
    return "unknown"


class RecordingClient:
    """Stand-in GraphQL client that replays queued responses in order."""

    def __init__(self, responses: list[Any] | None = None):
        self.responses: list[Any] = list(responses or [])
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def queue(self, *responses: Any) -> RecordingClient:
        self.responses.extend(responses)
        return self

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((query, dict(variables or {})))
        if not self.responses:
            raise AssertionError("No response queued for GraphQL call")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def kinds(self) -> list[str]:
        return [classify_query(query) for query, _ in self.calls]

    def __enter__(self) -> RecordingClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES) or name in _TOKEN_VARS:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    configure_logging(level="DEBUG")


@pytest.fixture
def graphql_client() -> RecordingClient:
    return RecordingClient()
