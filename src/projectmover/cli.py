"""projectmover CLI.

Subcommands:
  move  -> set a closed issue's project Status and move it to the top of the board

Inputs fall back to GitHub Actions ``INPUT_*`` variables and the event payload
at ``GITHUB_EVENT_PATH`` so the command runs unchanged inside a workflow step.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import requests

from projectmover.config import (
    ActionContext,
    MoverInputs,
    load_context,
    load_event_payload,
    load_inputs,
)
from projectmover.env_auth import EnvAuthConfig, create_env_auth_manager
from projectmover.errors import ConfigurationError, MoverError, classify_error, redact
from projectmover.github_graphql import GitHubAPIError, GitHubGraphQLClient, GraphQLError
from projectmover.logging import configure_logging
from projectmover.models import IssueRef, MoveResult
from projectmover.orchestrator import run

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="projectmover",
        description="Move a closed issue to the top of a GitHub Projects column",
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational logging (env: PROJECTMOVER_QUIET=1)",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    mv = sub.add_parser("move", help="Set the issue's Status and move it to the top")
    mv.add_argument("--organization", help="Project owner login (defaults to repository owner)")
    mv.add_argument("--project-number", dest="project_number", help="Project (v2) number")
    mv.add_argument("--status-name", dest="status_name", help="Target Status option (default: Done)")
    mv.add_argument("--issue-id", dest="issue_id", help="Issue node ID (overrides event payload)")
    mv.add_argument("--issue-number", dest="issue_number", type=int, help="Issue number for logs")
    mv.add_argument(
        "--event-path",
        dest="event_path",
        type=Path,
        help="Webhook event JSON (defaults to GITHUB_EVENT_PATH)",
    )
    mv.add_argument("--config", help="Optional YAML configuration file")
    mv.add_argument("--token", help="GitHub token (defaults to github-token input / GITHUB_TOKEN)")
    mv.add_argument("--dry-run", action="store_true", help="Resolve everything but skip mutations")
    mv.add_argument("--timeout", type=float, help="Abort the run after this many seconds")
    mv.add_argument("--summary-json", dest="summary_json", type=Path, help="Write the run result")
    return p


def _report_failure(exc: BaseException) -> None:
    info = classify_error(exc)
    message = redact(str(exc))
    print(f"[projectmover] {info.category}: {message}", file=sys.stderr)
    if os.environ.get("GITHUB_ACTIONS") == "true":
        print(f"::error::{message}")


def _load_action_context(args: argparse.Namespace) -> ActionContext | None:
    repository = os.environ.get("GITHUB_REPOSITORY", "")
    if args.event_path is not None:
        owner, _, repo = repository.partition("/")
        return ActionContext(
            owner=owner,
            repo=repo,
            sha=os.environ.get("GITHUB_SHA"),
            payload=load_event_payload(args.event_path),
        )
    if os.environ.get("GITHUB_EVENT_PATH"):
        return load_context()
    return None


def _resolve_issue(args: argparse.Namespace, context: ActionContext | None) -> IssueRef:
    if args.issue_id:
        return IssueRef(node_id=args.issue_id, number=args.issue_number)
    if context is None:
        raise ConfigurationError("Issue node ID is not available from the event context")
    issue = context.issue()
    if args.issue_number is not None:
        return replace(issue, number=args.issue_number)
    return issue


def _write_summary(path: Path | None, result: MoveResult) -> None:
    if path is None:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")


def _prepare(args: argparse.Namespace) -> tuple[MoverInputs, ActionContext, IssueRef, str]:
    context = _load_action_context(args)
    inputs = load_inputs(
        organization=args.organization,
        project_number=args.project_number,
        status_name=args.status_name,
        token=args.token,
        config_path=args.config,
        default_owner=context.owner if context and context.owner else None,
    )
    configure_logging(
        json_logging=inputs.logging_json_enabled,
        level="WARNING" if args.quiet else inputs.logging_level,
    )
    issue = _resolve_issue(args, context)
    token = create_env_auth_manager(EnvAuthConfig()).get_github_token(inputs.token)
    if not token:
        raise ConfigurationError("GitHub token is required (github-token input or GITHUB_TOKEN)")
    return inputs, context or ActionContext(owner="", repo="", sha=None), issue, token


def _cmd_move(args: argparse.Namespace) -> int:
    inputs, context, issue, token = _prepare(args)
    with GitHubGraphQLClient(token=token) as client:
        result = run(
            inputs,
            client,
            context,
            issue=issue,
            dry_run=args.dry_run,
            timeout=args.timeout,
        )
    _write_summary(args.summary_json, result)
    if not args.quiet:
        print(
            f"[projectmover] {result.outcome}: issue={issue.label()} "
            f"project=#{result.project_number} status={result.target_status}"
            + (" [DRY]" if result.dry_run else ""),
            file=sys.stderr,
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.quiet and os.environ.get("PROJECTMOVER_QUIET") == "1":
        args.quiet = True
    handlers = {"move": lambda: _cmd_move(args)}
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    try:
        return handler()
    except (MoverError, GitHubAPIError, GraphQLError, requests.RequestException) as exc:
        _report_failure(exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
