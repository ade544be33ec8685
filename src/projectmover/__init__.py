"""projectmover - file a closed issue at the top of its GitHub Projects column.

High-level public API:

from projectmover import GitHubGraphQLClient, IssueRef, ProjectBoard, move_issue

with GitHubGraphQLClient(token=token) as client:
    result = move_issue(
        ProjectBoard(client),
        IssueRef(node_id="I_kwDOABCDEF", number=1),
        owner="acme",
        project_number=1,
        status_name="Done",
    )
print(result.outcome)

The CLI (``projectmover move``) wraps the same call and reads its inputs from
GitHub Actions when they are not given on the command line.
"""

from __future__ import annotations

from .config import ActionContext, MoverInputs, load_context, load_inputs
from .errors import (
    ConfigurationError,
    FieldNotFoundError,
    MoverError,
    MutationFailedError,
    OptionNotFoundError,
    ProjectNotFoundError,
    RunTimeoutError,
)
from .github_graphql import GitHubGraphQLClient
from .models import IssueRef, MoveResult, ProjectItem, ProjectRef, StatusFieldRef
from .orchestrator import move_issue, run
from .project import ProjectBoard

__version__ = "0.2.0"

__all__ = [
    "ActionContext",
    "ConfigurationError",
    "FieldNotFoundError",
    "GitHubGraphQLClient",
    "IssueRef",
    "MoveResult",
    "MoverError",
    "MoverInputs",
    "MutationFailedError",
    "OptionNotFoundError",
    "ProjectBoard",
    "ProjectItem",
    "ProjectNotFoundError",
    "ProjectRef",
    "RunTimeoutError",
    "StatusFieldRef",
    "load_context",
    "load_inputs",
    "move_issue",
    "run",
    "__version__",
]
