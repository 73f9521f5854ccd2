"""
Domain models for the webhook bridge.

These dataclasses are the normalized internal representation shared by the
reference parser, the reconciler and the Odoo client. Odoo records are
converted from their JSON-RPC shapes (many2one fields arrive as
``[id, display_name]`` or ``false``) by the ``from_record`` constructors.

Example:
    Building a reference by hand::

        ref = TaskReference(action=ReferenceAction.CLOSE, task_id=123)
        assert ref.key == "ODP-123"
"""

from dataclasses import dataclass, field
from typing import Any

from ghoodoo.enums import TASK_PREFIX, ReferenceAction


def task_key(task_id: int) -> str:
    """Render a task id the way it appears in commit text (ODP-123)."""
    return f"{TASK_PREFIX}-{task_id}"


def many2one_id(value: Any) -> int | None:
    """Extract the id from an Odoo many2one value ([id, name] or False)."""
    if isinstance(value, (list, tuple)) and value:
        return int(value[0])
    return None


def many2one_name(value: Any) -> str | None:
    """Extract the display name from an Odoo many2one value."""
    if isinstance(value, (list, tuple)) and len(value) > 1:
        return str(value[1])
    return None


@dataclass(frozen=True)
class TaskReference:
    """A task mention found in free text.

    Attributes:
        action: Whether the text asks to close the task or only mentions it
        task_id: Positive Odoo task id
    """

    action: ReferenceAction
    task_id: int

    @property
    def key(self) -> str:
        return task_key(self.task_id)

    @property
    def closes(self) -> bool:
        return self.action == ReferenceAction.CLOSE


@dataclass(frozen=True)
class CommitReference:
    """The commit a task was last referenced from within one push.

    Attributes:
        reference: The (possibly sticky-closed) task reference
        short_sha: First 7 characters of the commit id
        commit_url: Link to the commit on GitHub
        commit_title: First line of the commit message
        author_email: Commit author email, used to attribute the message
    """

    reference: TaskReference
    short_sha: str
    commit_url: str
    commit_title: str
    author_email: str | None = None


@dataclass
class ProcessResult:
    """Outcome of reconciling one inbound event.

    Attributes:
        processed: Number of references whose updates fully succeeded
        errors: Human-readable errors scoped as "<task-key>: <reason>"
    """

    processed: int = 0
    errors: list[str] = field(default_factory=list)

    def record_error(self, scope: str, reason: str) -> None:
        self.errors.append(f"{scope}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        return {"processed": self.processed, "errors": list(self.errors)}


@dataclass
class OdooTask:
    """A project.task record."""

    id: int
    name: str
    stage_id: int | None = None
    stage_name: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "OdooTask":
        stage = record.get("stage_id")
        return cls(
            id=int(record["id"]),
            name=record.get("name") or "",
            stage_id=many2one_id(stage),
            stage_name=many2one_name(stage),
        )


@dataclass
class OdooUser:
    """A res.users record, reduced to the fields needed for attribution."""

    id: int
    login: str
    name: str | None = None
    email: str | None = None
    partner_id: int | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "OdooUser":
        return cls(
            id=int(record["id"]),
            login=record.get("login") or "",
            name=record.get("name") or None,
            email=record.get("email") or None,
            partner_id=many2one_id(record.get("partner_id")),
        )
