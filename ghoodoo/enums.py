"""Enumerations and fixed vocabulary for ghoodoo."""

from enum import Enum

TASK_PREFIX = "ODP"
"""Literal prefix of task identifiers in commit and PR text (ODP-123)."""


class ReferenceAction(str, Enum):
    """What a textual task reference asks for.

    CLOSE comes from closing keywords ("closes", "fixes", "resolves") and
    moves the task to the done stage once the change lands. REF is a plain
    mention and only posts a message.
    """

    CLOSE = "close"
    REF = "ref"

    def __str__(self) -> str:
        return self.value


class PullRequestAction(str, Enum):
    """Pull request webhook actions that trigger task updates."""

    OPENED = "opened"
    EDITED = "edited"
    CLOSED = "closed"
    REOPENED = "reopened"

    def __str__(self) -> str:
        return self.value


class EventType(str, Enum):
    """Values of the X-GitHub-Event header handled by the webhook server."""

    PUSH = "push"
    PULL_REQUEST = "pull_request"
    PING = "ping"

    def __str__(self) -> str:
        return self.value
