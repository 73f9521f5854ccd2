"""Task tracker and source-control providers.

- TaskClient / OdooClient: fetch tasks, post chatter messages, set stages
- CommentNotifier / GitHubCommentNotifier: post PR summary comments
"""

from ghoodoo.providers.base import CommentNotifier, TaskClient
from ghoodoo.providers.github_rest import GitHubCommentNotifier
from ghoodoo.providers.odoo_rpc import OdooClient

__all__ = ["CommentNotifier", "GitHubCommentNotifier", "OdooClient", "TaskClient"]
