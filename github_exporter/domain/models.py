from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from ..errors import DecodeError

CONCLUSIONS = (
    "action_required",
    "cancelled",
    "failure",
    "neutral",
    "skipped",
    "stale",
    "startup_failure",
    "success",
    "timed_out",
)


def _require(data: Mapping[str, Any], key: str, kind: str) -> Any:
    if not isinstance(data, Mapping):
        raise DecodeError(f"{kind} record is not an object")
    try:
        return data[key]
    except KeyError as exc:
        raise DecodeError(f"{kind} record is missing {key!r}") from exc


def _require_int(data: Mapping[str, Any], key: str, kind: str) -> int:
    value = _require(data, key, kind)
    if not isinstance(value, int) or isinstance(value, bool):
        raise DecodeError(f"{kind} field {key!r} is not an integer")
    return value


@dataclass(frozen=True)
class Repository:
    owner: str
    name: str
    full_name: str
    default_branch: str = "main"
    private: bool = False
    archived: bool = False

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Repository":
        owner = _require(data, "owner", "repository") or {}
        if not isinstance(owner, Mapping):
            raise DecodeError("repository field 'owner' is not an object")
        return cls(
            owner=owner.get("login") or "",
            name=_require(data, "name", "repository"),
            full_name=_require(data, "full_name", "repository"),
            default_branch=data.get("default_branch") or "",
            private=bool(data.get("private")),
            archived=bool(data.get("archived")),
        )

    @property
    def visibility(self) -> str:
        return "private" if self.private else "public"


@dataclass(frozen=True)
class WorkflowRun:
    workflow_id: int
    run_number: int
    conclusion: str = ""
    status: str = "completed"

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "WorkflowRun":
        return cls(
            workflow_id=_require_int(data, "workflow_id", "workflow run"),
            run_number=_require_int(data, "run_number", "workflow run"),
            conclusion=data.get("conclusion") or "",
            status=data.get("status") or "",
        )


@dataclass(frozen=True)
class Workflow:
    id: int
    name: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Workflow":
        return cls(
            id=_require_int(data, "id", "workflow"),
            name=data.get("name") or "",
        )


@dataclass(frozen=True)
class IssuePRCount:
    """Issue and pull request totals for one repository."""

    repo: str
    open_issues: int
    closed_issues: int
    open_pulls: int
    closed_pulls: int

    def samples(self) -> Dict[Tuple[str, str], int]:
        """Totals keyed by (type, state)."""
        return {
            ("issue", "open"): self.open_issues,
            ("issue", "closed"): self.closed_issues,
            ("pull", "open"): self.open_pulls,
            ("pull", "closed"): self.closed_pulls,
        }


@dataclass(frozen=True)
class NotificationSummary:
    unread: int


@dataclass(frozen=True)
class MetricSample:
    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    value: float = 0.0
