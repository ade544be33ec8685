"""Error taxonomy & redaction helpers.

Every fatal condition of a run surfaces as a :class:`MoverError` subclass so
the CLI can report it uniformly. Transport failures keep their own types
(:class:`~projectmover.github_graphql.GitHubAPIError` and
:class:`~projectmover.github_graphql.GraphQLError`) because the owner lookup
must inspect them before deciding whether to fall back.

Public API:
- MoverError and its subclasses
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import requests

from .github_graphql import GitHubAPIError, GraphQLError

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # GitHub classic tokens
    re.compile(r"ghs_[A-Za-z0-9]{20,40}"),  # Actions installation tokens
    re.compile(r"github_pat_\w{20,}"),  # GitHub fine-grained tokens
    re.compile(r"(?i)(authorization:\s*bearer\s+)\S+"),
]

_REDACTION_PLACEHOLDER = "<redacted>"

HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVER_ERROR = 500


class MoverError(RuntimeError):
    """Base class for every fatal condition of a run."""


class ConfigurationError(MoverError):
    """Invocation input is missing or malformed; raised before any remote call."""


class ProjectNotFoundError(MoverError):
    """Neither an organization nor a user exposes the requested project."""

    def __init__(self, owner: str, project_number: int):
        super().__init__(f"Project #{project_number} not found for {owner}")
        self.owner = owner
        self.project_number = project_number


class FieldNotFoundError(MoverError):
    """The project has no single-select field with the expected name."""


class OptionNotFoundError(MoverError):
    """The status field has no option matching the requested name."""


class MutationFailedError(MoverError):
    """The remote system rejected a write."""


class RunTimeoutError(MoverError):
    """The run exceeded its deadline between two steps."""


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Redact GitHub tokens and bearer headers in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        if pat.groups:
            redacted = pat.sub(lambda m: m.group(1) + _REDACTION_PLACEHOLDER, redacted)
        else:
            redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:  # noqa: PLR0911
    """Best-effort classification of an exception raised during a run.

    Typed errors are mapped by class first; transport errors by HTTP status or
    GraphQL error type; anything else falls back to message keywords.
    """
    msg = redact(str(exc) if exc else "")
    name = exc.__class__.__name__

    if isinstance(exc, ConfigurationError):
        return ErrorInfo("config", msg, name)
    if isinstance(exc, ProjectNotFoundError):
        return ErrorInfo(
            "not_found",
            msg,
            name,
            details={"owner": exc.owner, "project_number": exc.project_number},
        )
    if isinstance(exc, (FieldNotFoundError, OptionNotFoundError)):
        return ErrorInfo("schema", msg, name)
    if isinstance(exc, MutationFailedError):
        return ErrorInfo("mutation", msg, name)
    if isinstance(exc, RunTimeoutError):
        return ErrorInfo("timeout", msg, name)
    if isinstance(exc, GraphQLError):
        if exc.has_type("RATE_LIMITED"):
            return ErrorInfo("github.rate_limit", msg, name, transient=True)
        if exc.is_not_found():
            return ErrorInfo("not_found", msg, name, details={"types": exc.error_types})
        return ErrorInfo("github.graphql", msg, name, details={"types": exc.error_types})
    if isinstance(exc, GitHubAPIError):
        if exc.status == HTTP_TOO_MANY_REQUESTS or "rate limit" in msg.lower():
            return ErrorInfo("github.rate_limit", msg, name, transient=True)
        if exc.status is not None and exc.status >= HTTP_SERVER_ERROR:
            return ErrorInfo("network", msg, name, transient=True)
        return ErrorInfo("github.http", msg, name, details={"status": exc.status})
    if isinstance(exc, requests.Timeout):
        return ErrorInfo("network", msg, name, transient=True)
    if isinstance(exc, requests.ConnectionError):
        return ErrorInfo("network", msg, name, transient=True)

    low = msg.lower()
    if "rate limit" in low or "secondary rate" in low:
        return ErrorInfo("github.rate_limit", msg, name, transient=True)
    if any(k in low for k in ("timeout", "connection reset", "temporarily unavailable")):
        return ErrorInfo("network", msg, name, transient=True)
    return ErrorInfo("generic", msg, name)


__all__ = [
    "ConfigurationError",
    "ErrorInfo",
    "FieldNotFoundError",
    "MoverError",
    "MutationFailedError",
    "OptionNotFoundError",
    "ProjectNotFoundError",
    "RunTimeoutError",
    "classify_error",
    "redact",
]
