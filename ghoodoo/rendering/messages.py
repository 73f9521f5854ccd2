"""Rendering of Odoo chatter messages and GitHub summary comments.

Templates run in Jinja2's SandboxedEnvironment with StrictUndefined.
HTML templates are autoescaped, so a commit title such as
``<script>`` reaches Odoo as text rather than markup.
"""

from collections.abc import Sequence

from jinja2 import DictLoader, StrictUndefined, select_autoescape
from jinja2.sandbox import SandboxedEnvironment
from markupsafe import Markup

# GitHub's fluidicon has a colored background that reads on light and dark themes.
GITHUB_ICON = Markup(
    '<img src="https://github.com/fluidicon.png" width="16" height="16" '
    'style="vertical-align: middle; margin-right: 4px; border-radius: 3px;">'
)

TEMPLATES = {
    "commit_reference.html": (
        '{{ icon }} Referenced in commit <a href="{{ commit_url }}">{{ short_sha }}</a>: {{ commit_title }}'
    ),
    "pull_request_reference.html": (
        '{{ icon }} Referenced in PR <a href="{{ pr_url }}">#{{ number }}</a> ({{ action }})'
    ),
    "pull_request_summary.txt": "Updated Odoo tasks: {{ task_keys | join(', ') }}",
}

_env = SandboxedEnvironment(
    loader=DictLoader(TEMPLATES),
    undefined=StrictUndefined,
    autoescape=select_autoescape(enabled_extensions=("html",), default=False),
)


def render(template_name: str, **context: object) -> str:
    """Render one of the built-in templates."""
    return _env.get_template(template_name).render(icon=GITHUB_ICON, **context)


def commit_message(short_sha: str, commit_url: str, commit_title: str) -> str:
    """Chatter body for a task referenced from a pushed commit."""
    return render(
        "commit_reference.html",
        short_sha=short_sha,
        commit_url=commit_url,
        commit_title=commit_title,
    )


def pull_request_message(number: int, pr_url: str, action: str) -> str:
    """Chatter body for a task referenced from a pull request.

    Args:
        number: Pull request number
        pr_url: Pull request HTML URL
        action: "merged", "closed" or the raw webhook action
    """
    return render("pull_request_reference.html", number=number, pr_url=pr_url, action=action)


def summary_comment(task_keys: Sequence[str]) -> str:
    """Plain-text PR comment listing the tasks that were updated."""
    return render("pull_request_summary.txt", task_keys=list(task_keys))
