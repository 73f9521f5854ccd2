"""Core models for the webhook bridge.

Key Models:
    - TaskReference: A task mention parsed from commit or PR text
    - CommitReference: The commit a task was referenced from within a push
    - ProcessResult: Per-event reconciliation summary
    - OdooTask / OdooUser: Normalized Odoo records
    - PushEvent / PullRequestEvent: Validated GitHub webhook payloads

Example:
    >>> from ghoodoo.models import ProcessResult
    >>> result = ProcessResult()
    >>> result.record_error("ODP-1", "Task not found")
"""

from ghoodoo.models.domain import (
    CommitReference,
    OdooTask,
    OdooUser,
    ProcessResult,
    TaskReference,
    task_key,
)
from ghoodoo.models.events import PullRequestEvent, PushEvent, parse_event

__all__ = [
    "CommitReference",
    "OdooTask",
    "OdooUser",
    "ProcessResult",
    "PullRequestEvent",
    "PushEvent",
    "TaskReference",
    "parse_event",
    "task_key",
]
