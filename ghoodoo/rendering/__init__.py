"""Message rendering for Odoo chatter and GitHub comments."""

from ghoodoo.rendering.messages import commit_message, pull_request_message, summary_comment

__all__ = ["commit_message", "pull_request_message", "summary_comment"]
