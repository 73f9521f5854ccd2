"""
GitHub webhook payload models.

Only the fields the reconciler reads are declared; everything else in the
payload is ignored. ``parse_event`` turns raw JSON into a validated model
and reports structural problems as MalformedEventError.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ghoodoo.enums import EventType
from ghoodoo.exceptions import MalformedEventError


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class CommitAuthor(_Payload):
    name: str = ""
    email: str | None = None
    username: str | None = None


class Commit(_Payload):
    id: str
    message: str
    url: str
    author: CommitAuthor = Field(default_factory=CommitAuthor)

    @property
    def short_sha(self) -> str:
        return self.id[:7]

    @property
    def title(self) -> str:
        return self.message.split("\n")[0]


class PushRepository(_Payload):
    full_name: str = ""
    html_url: str = ""


class PushEvent(_Payload):
    """Payload of a ``push`` delivery."""

    ref: str = ""
    repository: PushRepository = Field(default_factory=PushRepository)
    commits: list[Commit] = Field(default_factory=list)


class GitHubUser(_Payload):
    login: str


class PullRequest(_Payload):
    number: int
    title: str
    body: str | None = None
    html_url: str
    merged: bool = False
    user: GitHubUser

    @field_validator("merged", mode="before")
    @classmethod
    def null_is_not_merged(cls, value: Any) -> Any:
        return False if value is None else value

    @property
    def searchable_text(self) -> str:
        """Title and body joined the way references are searched."""
        return f"{self.title}\n{self.body or ''}"


class RepositoryOwner(_Payload):
    login: str


class PullRequestRepository(_Payload):
    owner: RepositoryOwner
    name: str
    full_name: str = ""


class PullRequestEvent(_Payload):
    """Payload of a ``pull_request`` delivery."""

    action: str
    pull_request: PullRequest
    repository: PullRequestRepository


EVENT_MODELS: dict[str, type[_Payload]] = {
    EventType.PUSH.value: PushEvent,
    EventType.PULL_REQUEST.value: PullRequestEvent,
}


def parse_event(event_type: str, payload: bytes | str | dict[str, Any]) -> PushEvent | PullRequestEvent:
    """Validate a webhook payload for a handled event type.

    Args:
        event_type: Value of the X-GitHub-Event header ("push" or "pull_request")
        payload: Raw request body or already-decoded JSON object

    Returns:
        The validated event model

    Raises:
        MalformedEventError: If the body is not JSON or does not match the event shape
        ValueError: If event_type has no payload model
    """
    model = EVENT_MODELS.get(event_type)
    if model is None:
        raise ValueError(f"No payload model for event type: {event_type}")

    if isinstance(payload, (bytes, str)):
        try:
            payload = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedEventError(f"Invalid JSON payload: {e}", event_type=event_type) from e

    if not isinstance(payload, dict):
        raise MalformedEventError("Payload must be a JSON object", event_type=event_type)

    try:
        return model.model_validate(payload)  # type: ignore[return-value]
    except ValidationError as e:
        raise MalformedEventError(
            f"Invalid {event_type} payload: {e.error_count()} validation error(s)",
            event_type=event_type,
        ) from e
