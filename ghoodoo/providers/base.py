"""
Abstract base classes for providers.

The reconciler talks to Odoo and GitHub only through these interfaces, so
it can run against in-memory fakes in tests and against OdooClient and
GitHubCommentNotifier in production.
"""

from abc import ABC, abstractmethod

from ghoodoo.config.settings import StageConfig, StageRef
from ghoodoo.models.domain import OdooTask


class TaskClient(ABC):
    """Capability interface of the task tracker.

    All methods are async. Implementations own any retry policy; callers
    see either a result or the final error.
    """

    @property
    @abstractmethod
    def stages(self) -> StageConfig:
        """Configured target stages."""
        pass

    @abstractmethod
    async def get_task(self, task_id: int) -> OdooTask | None:
        """Fetch a task by id.

        Returns:
            The task, or None if no task has that id.
        """
        pass

    @abstractmethod
    async def add_message(self, task_id: int, body: str, author_email: str | None = None) -> int:
        """Post an HTML message on the task's chatter.

        Args:
            task_id: Odoo task id
            body: HTML message body
            author_email: GitHub email of the author to attribute the
                message to; mapped and resolved by the implementation

        Returns:
            Id of the created message.
        """
        pass

    @abstractmethod
    async def resolve_stage(self, ref: StageRef) -> int | None:
        """Resolve a stage id or name to a stage id.

        Returns:
            The stage id, or None if no stage has that name.
        """
        pass

    @abstractmethod
    async def set_stage(self, task_id: int, stage_ref: StageRef | None = None) -> bool:
        """Move a task to a stage.

        Args:
            task_id: Odoo task id
            stage_ref: Target stage; defaults to ``stages.done``

        Raises:
            StageNotFoundError: If a stage name does not resolve.
        """
        pass


class CommentNotifier(ABC):
    """Posts comments back to the source-control platform."""

    @abstractmethod
    async def post_pr_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        """Post a plain-text comment on a pull request.

        Raises:
            ExternalServiceError: If the platform rejects the comment.
        """
        pass
