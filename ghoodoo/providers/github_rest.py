"""GitHub comment notifier using PyGithub."""

import asyncio
from collections.abc import Callable
from typing import TypeVar

import structlog
from github import Auth, Github, GithubException  # type: ignore[import-not-found]

from ghoodoo.exceptions import ExternalServiceError
from ghoodoo.providers.base import CommentNotifier

log = structlog.get_logger(__name__)

T = TypeVar("T")


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous PyGithub call in a thread pool."""
    return await asyncio.to_thread(func)


class GitHubCommentNotifier(CommentNotifier):
    """Posts summary comments on pull requests through the GitHub REST API."""

    def __init__(self, token: str, base_url: str = "https://api.github.com"):
        """Initialize GitHub notifier.

        Args:
            token: Token with permission to comment on the repository's PRs
            base_url: GitHub API base URL (for GitHub Enterprise)
        """
        self.token = token.strip() if token else token
        self.base_url = base_url.rstrip("/")
        self._client: Github | None = None

    def _get_client(self) -> Github:
        if self._client is None:
            self._client = Github(auth=Auth.Token(self.token), base_url=self.base_url)
        return self._client

    async def post_pr_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        log.info("post_pr_comment", owner=owner, repo=repo, number=number)

        def _post() -> None:
            # Pull request conversation comments live on the issue endpoint.
            gh_repo = self._get_client().get_repo(f"{owner}/{repo}")
            gh_repo.get_issue(number).create_comment(body)

        try:
            await _run_sync(_post)
        except GithubException as e:
            log.error("github_post_comment_failed", owner=owner, repo=repo, number=number, status=e.status)
            raise ExternalServiceError(
                f"GitHub API error: {e.status} {e.data}",
                status_code=e.status,
            ) from e

    async def close(self) -> None:
        """Close the PyGithub client."""
        if self._client:
            await _run_sync(self._client.close)
            self._client = None
