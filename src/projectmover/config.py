"""Invocation inputs and GitHub Actions event context.

Inputs are merged from, in order of precedence: explicit overrides (CLI
arguments), GitHub Actions ``INPUT_*`` variables, an optional YAML file, and
built-in defaults. Validation happens here so malformed input is rejected
before any remote call.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from .errors import ConfigurationError
from .models import IssueRef

CONFIG_DEFAULT = "projectmover.config.yaml"
DEFAULT_STATUS_NAME = "Done"


@dataclass
class ActionContext:
    """Subset of the GitHub Actions runtime a run depends on."""

    owner: str
    repo: str
    sha: str | None
    payload: dict[str, Any] = field(default_factory=dict)

    def issue(self) -> IssueRef:
        issue = self.payload.get("issue")
        issue_payload = cast(dict[str, Any], issue) if isinstance(issue, Mapping) else {}
        node_id = issue_payload.get("node_id")
        if not isinstance(node_id, str) or not node_id:
            raise ConfigurationError("Issue node ID is not available from the event context")
        number = issue_payload.get("number")
        return IssueRef(node_id=node_id, number=number if isinstance(number, int) else None)


@dataclass
class MoverInputs:
    organization: str
    project_number: int
    status_name: str = DEFAULT_STATUS_NAME
    token: str | None = None
    logging_json_enabled: bool = False
    logging_level: str = "INFO"


def _get_env(name: str, env: Mapping[str, str]) -> str:
    value = env.get(name)
    if not value:
        raise ConfigurationError(f"{name} is required")
    return value


def _action_input(name: str, env: Mapping[str, str]) -> str | None:
    """Read an Actions input the way the runner exports it (``INPUT_<NAME>``)."""
    value = env.get(f"INPUT_{name.replace(' ', '_').upper()}")
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_project_number(raw: Any) -> int:
    """Validate a project number as a positive integer."""
    if isinstance(raw, bool):
        raise ConfigurationError(f"project-number must be a positive integer, got: {raw}")
    if isinstance(raw, int):
        number = raw
    else:
        text = str(raw).strip() if raw is not None else ""
        try:
            number = int(text)
        except ValueError:
            try:
                as_float = float(text)
            except ValueError:
                raise ConfigurationError(
                    f"project-number must be a positive integer, got: {raw}"
                ) from None
            if not as_float.is_integer():
                raise ConfigurationError(
                    f"project-number must be a positive integer, got: {raw}"
                ) from None
            number = int(as_float)
    if number <= 0:
        raise ConfigurationError(f"project-number must be a positive integer, got: {raw}")
    return number


def load_context(env: Mapping[str, str] | None = None) -> ActionContext:
    """Build the Actions context from ``GITHUB_*`` variables and the event file."""
    env = os.environ if env is None else env
    repository = _get_env("GITHUB_REPOSITORY", env)
    owner, _, repo = repository.partition("/")
    if not owner:
        raise ConfigurationError("GITHUB_REPOSITORY must have an owner part")
    if not repo:
        raise ConfigurationError("GITHUB_REPOSITORY must have a repo part")
    event_path = Path(_get_env("GITHUB_EVENT_PATH", env))
    return ActionContext(
        owner=owner,
        repo=repo,
        sha=env.get("GITHUB_SHA"),
        payload=load_event_payload(event_path),
    )


def load_event_payload(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(f"Event payload file not found: {p}") from None
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Event payload {p} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Event payload {p} must be a JSON object")
    return raw


def load_config_file(path: str | Path | None) -> dict[str, Any]:
    """Load the optional YAML file; a missing default file is not an error."""
    if path is None:
        p = Path(CONFIG_DEFAULT)
        if not p.exists():
            return {}
    else:
        p = Path(path)
        if not p.exists():
            raise ConfigurationError(f"Configuration file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Configuration file {p} is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {p} must contain a mapping")
    return cast(dict[str, Any], raw)


def _config_section(raw: Mapping[str, Any], name: str, source: str | Path) -> dict[str, Any]:
    section = raw.get(name)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"'{name}' section of {source} must be a mapping")
    return dict(section)


def load_inputs(
    *,
    organization: str | None = None,
    project_number: Any = None,
    status_name: str | None = None,
    token: str | None = None,
    config_path: str | Path | None = None,
    default_owner: str | None = None,
    env: Mapping[str, str] | None = None,
) -> MoverInputs:
    env = os.environ if env is None else env
    raw = load_config_file(config_path)
    source = config_path if config_path is not None else CONFIG_DEFAULT
    project = _config_section(raw, "project", source)
    logging_config = _config_section(raw, "logging", source)

    resolved_number = (
        project_number
        if project_number is not None
        else _action_input("project-number", env) or project.get("number")
    )
    if resolved_number is None or resolved_number == "":
        raise ConfigurationError("project-number is required")

    owner = (
        organization
        or _action_input("organization", env)
        or project.get("owner")
        or default_owner
    )
    if not owner:
        raise ConfigurationError(
            "organization is required when GITHUB_REPOSITORY does not provide an owner"
        )

    return MoverInputs(
        organization=str(owner),
        project_number=parse_project_number(resolved_number),
        status_name=status_name
        or _action_input("status-name", env)
        or str(project.get("status") or DEFAULT_STATUS_NAME),
        token=token or _action_input("github-token", env),
        logging_json_enabled=bool(logging_config.get("json_enabled", False))
        or env.get("PROJECTMOVER_LOG_JSON") == "1",
        logging_level=str(
            env.get("PROJECTMOVER_LOG_LEVEL") or logging_config.get("level", "INFO")
        ),
    )


__all__ = [
    "CONFIG_DEFAULT",
    "DEFAULT_STATUS_NAME",
    "ActionContext",
    "MoverInputs",
    "load_config_file",
    "load_context",
    "load_event_payload",
    "load_inputs",
    "parse_project_number",
]
