"""Event reconciliation engine."""

from ghoodoo.engine.reconciler import (
    fold_commit_references,
    handle_pull_request_event,
    handle_push_event,
    process_event,
    select_target_stage,
)

__all__ = [
    "fold_commit_references",
    "handle_pull_request_event",
    "handle_push_event",
    "process_event",
    "select_target_stage",
]
