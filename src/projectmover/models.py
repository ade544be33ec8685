from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

Outcome = Literal["skipped", "moved", "updated"]


@dataclass(frozen=True)
class ProjectRef:
    """A resolved GitHub Projects (v2) board, valid for a single run."""

    id: str
    number: int
    owner: str
    owner_type: Literal["organization", "user"] = "organization"


@dataclass(frozen=True)
class ProjectItem:
    """Membership of one issue in one project board.

    ``status`` is the name of the selected ``Status`` option, or ``None`` when
    the field was never set on this item.
    """

    id: str
    project_id: str
    status: str | None = None


@dataclass(frozen=True)
class StatusFieldRef:
    field_id: str
    option_id: str
    option_name: str


@dataclass(frozen=True)
class IssueRef:
    node_id: str
    number: int | None = None

    def label(self) -> str:
        return f"#{self.number}" if self.number is not None else self.node_id


@dataclass
class MoveResult:
    outcome: Outcome
    issue_number: int | None
    project_number: int
    owner: str
    target_status: str
    project_id: str | None = None
    item_id: str | None = None
    previous_status: str | None = None
    status_changed: bool = False
    moved_to_top: bool = False
    dry_run: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = ["IssueRef", "MoveResult", "Outcome", "ProjectItem", "ProjectRef", "StatusFieldRef"]
