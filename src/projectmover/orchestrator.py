"""Move a closed issue to the top of its target column.

Step order is fixed and strictly forward:

    resolve project -> locate item (stop if absent) -> compare status
    -> [resolve status option -> set status] -> move to top

The status mutation is only issued when the current value differs from the
target (exact, case-sensitive). Moving to the top is always the last call
whenever the issue is on the board. Nothing is retried here; transient
transport failures are handled by :mod:`projectmover.retry`.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from .config import ActionContext, MoverInputs
from .errors import RunTimeoutError
from .logging import get_logger
from .models import IssueRef, MoveResult
from .project import GraphQLClient, ProjectBoard


class _Deadline:
    def __init__(self, timeout: float | None, clock: Callable[[], float]):
        self._clock = clock
        self._expires = None if timeout is None else clock() + timeout
        self._timeout = timeout

    def check(self, step: str, issue: IssueRef) -> None:
        if self._expires is not None and self._clock() > self._expires:
            raise RunTimeoutError(
                f"Run for issue {issue.label()} exceeded {self._timeout:g}s before step '{step}'"
            )


def move_issue(
    board: ProjectBoard,
    issue: IssueRef,
    *,
    owner: str,
    project_number: int,
    status_name: str,
    dry_run: bool = False,
    timeout: float | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> MoveResult:
    logger = get_logger()
    deadline = _Deadline(timeout, clock)
    log_ctx = {
        "issue_number": issue.number,
        "project_number": project_number,
        "owner": owner,
        "status": status_name,
        "dry_run": dry_run,
    }
    result = MoveResult(
        outcome="skipped",
        issue_number=issue.number,
        project_number=project_number,
        owner=owner,
        target_status=status_name,
        dry_run=dry_run,
    )

    deadline.check("resolve_project", issue)
    with logger.timed_operation("resolve_project", **log_ctx):
        project = board.resolve_project(owner, project_number)
    result.project_id = project.id

    deadline.check("locate_item", issue)
    with logger.timed_operation("locate_item", **log_ctx):
        item = board.locate_item(issue.node_id, project)
    if item is None:
        logger.log_operation(
            "item_skipped", f"Issue {issue.label()} not in project, skipping", **log_ctx
        )
        return result
    result.item_id = item.id
    result.previous_status = item.status
    logger.log_operation(
        "item_located",
        f"Issue {issue.label()} found in project #{project_number}",
        item_id=item.id,
        current_status=item.status,
        **log_ctx,
    )

    if item.status != status_name:
        logger.info(f"Updating status: {item.status or 'none'} -> {status_name}", **log_ctx)
        deadline.check("resolve_status", issue)
        with logger.timed_operation("resolve_status", **log_ctx):
            status_ref = board.resolve_status(project, status_name)
        deadline.check("set_status", issue)
        if dry_run:
            logger.info(
                f"DRY: would set {status_ref.field_id}={status_ref.option_id} on item {item.id}",
                **log_ctx,
            )
        else:
            with logger.timed_operation("set_status", item_id=item.id, **log_ctx):
                board.set_status(project, item.id, status_ref.field_id, status_ref.option_id)
        result.status_changed = True
        result.outcome = "updated"
        logger.log_operation("status_updated", item_id=item.id, **log_ctx)
    else:
        result.outcome = "moved"

    deadline.check("move_to_top", issue)
    if dry_run:
        logger.info(f"DRY: would move item {item.id} to top", **log_ctx)
    else:
        with logger.timed_operation("move_to_top", item_id=item.id, **log_ctx):
            board.move_to_top(project, item.id)
    result.moved_to_top = True
    logger.log_operation(
        "item_moved",
        f"Issue {issue.label()} moved to top of {status_name} column",
        item_id=item.id,
        **log_ctx,
    )
    return result


def run(
    inputs: MoverInputs,
    client: GraphQLClient,
    context: ActionContext,
    *,
    issue: IssueRef | None = None,
    dry_run: bool = False,
    timeout: float | None = None,
) -> MoveResult:
    """Run the pipeline for the issue in ``context`` (or an explicit ``issue``)."""
    target = issue or context.issue()
    return move_issue(
        ProjectBoard(client),
        target,
        owner=inputs.organization,
        project_number=inputs.project_number,
        status_name=inputs.status_name,
        dry_run=dry_run,
        timeout=timeout,
    )


__all__ = ["move_issue", "run"]
