"""Reconciliation of GitHub events into Odoo task updates.

Push events post a chatter message per referenced task and close tasks
referenced with a closing keyword. Pull request events post a message per
referenced task, move tasks through the configured stages according to the
PR lifecycle, and optionally leave a summary comment on the PR.

References are processed one at a time. A failure on one reference is
recorded in the ProcessResult and never stops the others; a message that
was already posted is not rolled back when the following stage change
fails.
"""

from collections.abc import Iterable

import structlog

from ghoodoo.config.settings import StageConfig, StageRef
from ghoodoo.enums import EventType, PullRequestAction, ReferenceAction
from ghoodoo.exceptions import GhoodooError
from ghoodoo.git.references import parse_references
from ghoodoo.models.domain import CommitReference, ProcessResult, TaskReference, task_key
from ghoodoo.models.events import Commit, PullRequestEvent, PushEvent, parse_event
from ghoodoo.providers.base import CommentNotifier, TaskClient
from ghoodoo.rendering.messages import commit_message, pull_request_message, summary_comment

log = structlog.get_logger(__name__)

HANDLED_PR_ACTIONS = frozenset(action.value for action in PullRequestAction)
TASK_NOT_FOUND = "Task not found"
COMMENT_FAILED_SCOPE = "GitHub comment failed"


def describe_error(error: BaseException) -> str:
    """Human-readable reason for a per-reference error."""
    if isinstance(error, GhoodooError):
        return error.message
    return str(error) or type(error).__name__


# ----------------------------------------------------------------------
# Push events
# ----------------------------------------------------------------------


def merge_commit_reference(
    existing: CommitReference | None,
    reference: TaskReference,
    commit: Commit,
) -> CommitReference:
    """Fold one commit's reference into the entry already held for its task.

    The newer commit always supplies the metadata; a closing action is
    kept once any commit in the push closed the task.
    """
    closes = reference.closes or (existing is not None and existing.reference.closes)
    action = ReferenceAction.CLOSE if closes else ReferenceAction.REF
    return CommitReference(
        reference=TaskReference(action=action, task_id=reference.task_id),
        short_sha=commit.short_sha,
        commit_url=commit.url,
        commit_title=commit.title,
        author_email=commit.author.email,
    )


def fold_commit_references(commits: Iterable[Commit]) -> dict[int, CommitReference]:
    """Collect one CommitReference per task id across all commits of a push.

    Returns:
        Mapping ordered by each task id's first appearance.
    """
    references: dict[int, CommitReference] = {}
    for commit in commits:
        for reference in parse_references(commit.message):
            references[reference.task_id] = merge_commit_reference(
                references.get(reference.task_id), reference, commit
            )
    return references


async def handle_push_event(event: PushEvent, tasks: TaskClient) -> ProcessResult:
    """Post commit references to Odoo and close tasks that commits close."""
    result = ProcessResult()
    references = fold_commit_references(event.commits)

    log.info("push_event_received", ref=event.ref, commits=len(event.commits), tasks=len(references))

    for task_id, commit_ref in references.items():
        key = task_key(task_id)
        try:
            task = await tasks.get_task(task_id)
            if task is None:
                result.record_error(key, TASK_NOT_FOUND)
                continue

            body = commit_message(commit_ref.short_sha, commit_ref.commit_url, commit_ref.commit_title)
            await tasks.add_message(task_id, body, commit_ref.author_email)

            if commit_ref.reference.closes:
                await tasks.set_stage(task_id)

            result.processed += 1
        except Exception as e:
            log.warning("push_reference_failed", task=key, error=describe_error(e), exc_info=True)
            result.record_error(key, describe_error(e))

    log.info("push_event_processed", processed=result.processed, errors=len(result.errors))
    return result


# ----------------------------------------------------------------------
# Pull request events
# ----------------------------------------------------------------------


def select_target_stage(
    action: str,
    merged: bool,
    reference: TaskReference,
    stages: StageConfig,
) -> StageRef | None:
    """Pick the stage a referenced task should move to, if any.

    Rules, first match wins:
        merged PR and closing reference   -> done
        PR closed without merge           -> canceled (if configured)
        PR opened or reopened             -> in_progress (if configured)
    """
    is_closed = action == PullRequestAction.CLOSED.value
    is_opened = action in (PullRequestAction.OPENED.value, PullRequestAction.REOPENED.value)

    if is_closed and merged and reference.closes:
        return stages.done
    if is_closed and not merged and stages.canceled is not None:
        return stages.canceled
    if is_opened and stages.in_progress is not None:
        return stages.in_progress
    return None


def describe_pr_action(action: str, merged: bool) -> str:
    """Word used in chatter messages: merged, closed or the raw action."""
    if action == PullRequestAction.CLOSED.value:
        return "merged" if merged else "closed"
    return action


async def handle_pull_request_event(
    event: PullRequestEvent,
    tasks: TaskClient,
    notifier: CommentNotifier | None = None,
) -> ProcessResult:
    """Post PR references to Odoo and apply lifecycle stage transitions."""
    result = ProcessResult()

    if event.action not in HANDLED_PR_ACTIONS:
        log.debug("pull_request_action_ignored", action=event.action)
        return result

    pr = event.pull_request
    references = parse_references(pr.searchable_text)
    if not references:
        return result

    log.info("pull_request_event_received", number=pr.number, action=event.action, tasks=len(references))

    body = pull_request_message(pr.number, pr.html_url, describe_pr_action(event.action, pr.merged))
    updated: list[str] = []

    for reference in references:
        key = reference.key
        try:
            task = await tasks.get_task(reference.task_id)
            if task is None:
                result.record_error(key, TASK_NOT_FOUND)
                continue

            await tasks.add_message(reference.task_id, body)

            target_stage = select_target_stage(event.action, pr.merged, reference, tasks.stages)
            if target_stage is not None:
                await tasks.set_stage(reference.task_id, target_stage)

            updated.append(key)
            result.processed += 1
        except Exception as e:
            log.warning("pull_request_reference_failed", task=key, error=describe_error(e), exc_info=True)
            result.record_error(key, describe_error(e))

    # Closed PRs never get a summary comment.
    if notifier is not None and updated and event.action != PullRequestAction.CLOSED.value:
        try:
            await notifier.post_pr_comment(
                event.repository.owner.login,
                event.repository.name,
                pr.number,
                summary_comment(updated),
            )
        except Exception as e:
            log.warning("pull_request_comment_failed", number=pr.number, error=describe_error(e))
            result.record_error(COMMENT_FAILED_SCOPE, describe_error(e))

    log.info("pull_request_event_processed", processed=result.processed, errors=len(result.errors))
    return result


async def process_event(
    event_type: str,
    payload: bytes | str | dict,
    tasks: TaskClient,
    notifier: CommentNotifier | None = None,
) -> ProcessResult:
    """Validate a push or pull_request payload and reconcile it.

    Raises:
        MalformedEventError: If the payload does not match the event shape
        ValueError: If event_type is neither push nor pull_request
    """
    event = parse_event(event_type, payload)
    if event_type == EventType.PUSH.value:
        return await handle_push_event(event, tasks)  # type: ignore[arg-type]
    return await handle_pull_request_event(event, tasks, notifier)  # type: ignore[arg-type]
