"""GitHub Projects (v2) board operations used to file a closed issue.

The board exposes four independent lookups/writes, each wrapping one GraphQL
shape:

    * ``resolve_project`` - owner login + project number -> project node id,
      trying the organization namespace first and the user namespace second
    * ``locate_item``     - issue node id -> the issue's item on that board
    * ``resolve_status``  - "Status" field id + option id for a column name
    * ``set_status`` / ``move_to_top`` - the two item mutations

Owner resolution only falls back to the user namespace when the organization
lookup fails with a ``NOT_FOUND`` GraphQL error (or returns no project).
Authorization, rate limit and network failures propagate untouched.

Only the first ``PROJECT_ITEMS_PAGE_SIZE`` project memberships of an issue are
inspected; an issue linked to more boards than that may not be found.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Protocol

from .errors import (
    FieldNotFoundError,
    MutationFailedError,
    OptionNotFoundError,
    ProjectNotFoundError,
)
from .github_graphql import GitHubAPIError, GraphQLError
from .logging import get_logger
from .models import ProjectItem, ProjectRef, StatusFieldRef

STATUS_FIELD_NAME = "Status"
PROJECT_ITEMS_PAGE_SIZE = 10
OWNER_TYPES: tuple[Literal["organization", "user"], ...] = ("organization", "user")

_PROJECT_BY_OWNER_QUERY = """
query($owner: String!, $projectNumber: Int!) {{
  {root}(login: $owner) {{
    projectV2(number: $projectNumber) {{
      id
    }}
  }}
}}
"""

_ISSUE_PROJECT_ITEMS_QUERY = """
query($issueId: ID!, $first: Int!, $fieldName: String!) {
  node(id: $issueId) {
    ... on Issue {
      projectItems(first: $first) {
        nodes {
          id
          project {
            id
          }
          fieldValueByName(name: $fieldName) {
            ... on ProjectV2ItemFieldSingleSelectValue {
              name
            }
          }
        }
      }
    }
  }
}
"""

_STATUS_FIELD_QUERY = """
query($projectId: ID!, $fieldName: String!, $statusName: String!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      field(name: $fieldName) {
        ... on ProjectV2SingleSelectField {
          id
          name
          options(names: [$statusName]) {
            id
            name
          }
        }
      }
    }
  }
}
"""

_UPDATE_FIELD_VALUE_MUTATION = """
mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $optionId: String!) {
  updateProjectV2ItemFieldValue(
    input: {projectId: $projectId, itemId: $itemId, fieldId: $fieldId, value: {singleSelectOptionId: $optionId}}
  ) {
    projectV2Item { id }
  }
}
"""

_UPDATE_ITEM_POSITION_MUTATION = """
mutation($projectId: ID!, $itemId: ID!) {
  updateProjectV2ItemPosition(input: {projectId: $projectId, itemId: $itemId, afterId: null}) {
    items(first: 1) {
      nodes { id }
    }
  }
}
"""


class GraphQLClient(Protocol):  # pragma: no cover - interface only
    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]: ...


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


class ProjectBoard:
    def __init__(self, client: GraphQLClient):
        self.client = client
        self.logger = get_logger()

    # ---------------- owner resolver ----------------
    def _lookup_project_id(
        self, owner_type: Literal["organization", "user"], owner: str, project_number: int
    ) -> str | None:
        query = _PROJECT_BY_OWNER_QUERY.format(root=owner_type)
        try:
            data = self.client.graphql(query, {"owner": owner, "projectNumber": project_number})
        except GraphQLError as exc:
            if not exc.is_not_found():
                raise
            self.logger.debug(
                f"Project lookup as {owner_type} returned NOT_FOUND",
                owner=owner,
                project_number=project_number,
            )
            return None
        project_id = _mapping(_mapping(data.get(owner_type)).get("projectV2")).get("id")
        return project_id if isinstance(project_id, str) and project_id else None

    def resolve_project(self, owner: str, project_number: int) -> ProjectRef:
        for owner_type in OWNER_TYPES:
            project_id = self._lookup_project_id(owner_type, owner, project_number)
            if project_id:
                self.logger.log_operation(
                    "project_resolved",
                    f"Resolved project #{project_number} for {owner_type} {owner}",
                    owner=owner,
                    owner_type=owner_type,
                    project_number=project_number,
                    project_id=project_id,
                )
                return ProjectRef(
                    id=project_id, number=project_number, owner=owner, owner_type=owner_type
                )
        raise ProjectNotFoundError(owner, project_number)

    # ---------------- item locator ----------------
    def locate_item(self, issue_id: str, project: ProjectRef) -> ProjectItem | None:
        data = self.client.graphql(
            _ISSUE_PROJECT_ITEMS_QUERY,
            {
                "issueId": issue_id,
                "first": PROJECT_ITEMS_PAGE_SIZE,
                "fieldName": STATUS_FIELD_NAME,
            },
        )
        nodes = _mapping(_mapping(data.get("node")).get("projectItems")).get("nodes")
        if not isinstance(nodes, list):
            return None
        for node in nodes:
            if not isinstance(node, Mapping):
                continue
            item_id = node.get("id")
            project_id = _mapping(node.get("project")).get("id")
            if project_id != project.id or not isinstance(item_id, str):
                continue
            status = _mapping(node.get("fieldValueByName")).get("name")
            return ProjectItem(
                id=item_id,
                project_id=project_id,
                status=status if isinstance(status, str) else None,
            )
        return None

    # ---------------- status resolver ----------------
    def resolve_status(self, project: ProjectRef, status_name: str) -> StatusFieldRef:
        data = self.client.graphql(
            _STATUS_FIELD_QUERY,
            {
                "projectId": project.id,
                "fieldName": STATUS_FIELD_NAME,
                "statusName": status_name,
            },
        )
        field = _mapping(_mapping(data.get("node")).get("field"))
        field_id = field.get("id")
        if not isinstance(field_id, str) or not field_id:
            raise FieldNotFoundError(
                f"{STATUS_FIELD_NAME} field not found in project #{project.number} ({project.owner})"
            )
        options = field.get("options")
        for option in options if isinstance(options, list) else []:
            if not isinstance(option, Mapping):
                continue
            option_id = option.get("id")
            if option.get("name") == status_name and isinstance(option_id, str):
                return StatusFieldRef(field_id=field_id, option_id=option_id, option_name=status_name)
        raise OptionNotFoundError(
            f'Status option "{status_name}" not found in {STATUS_FIELD_NAME} field '
            f"of project #{project.number} ({project.owner})"
        )

    # ---------------- item mutator ----------------
    def _mutate(self, action: str, query: str, variables: dict[str, Any], root: str) -> None:
        try:
            data = self.client.graphql(query, variables)
        except (GraphQLError, GitHubAPIError) as exc:
            raise MutationFailedError(
                f"Failed to {action} for item {variables['itemId']} "
                f"in project {variables['projectId']}: {exc}"
            ) from exc
        if data.get(root) is None:
            raise MutationFailedError(
                f"Failed to {action} for item {variables['itemId']} "
                f"in project {variables['projectId']}: empty {root} payload"
            )

    def set_status(self, project: ProjectRef, item_id: str, field_id: str, option_id: str) -> None:
        self._mutate(
            f"update field '{STATUS_FIELD_NAME}'",
            _UPDATE_FIELD_VALUE_MUTATION,
            {
                "projectId": project.id,
                "itemId": item_id,
                "fieldId": field_id,
                "optionId": option_id,
            },
            "updateProjectV2ItemFieldValue",
        )

    def move_to_top(self, project: ProjectRef, item_id: str) -> None:
        self._mutate(
            "move item to top",
            _UPDATE_ITEM_POSITION_MUTATION,
            {"projectId": project.id, "itemId": item_id},
            "updateProjectV2ItemPosition",
        )


__all__ = [
    "OWNER_TYPES",
    "PROJECT_ITEMS_PAGE_SIZE",
    "STATUS_FIELD_NAME",
    "GraphQLClient",
    "ProjectBoard",
]
