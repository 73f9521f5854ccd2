"""Task reference parsing for commit messages and pull request text.

Finds ``ODP-<digits>`` mentions and classifies each one by the keyword
that precedes it on the same line:

    Closes ODP-12      -> close
    fixes odp-7        -> close
    Refs ODP-40        -> ref
    see ODP-41         -> ref (no keyword)

Key Exports:
    parse_references: Extract ordered, de-duplicated references from text.

Thread Safety:
    Parsing is pure and uses a module-level compiled pattern; it is safe
    for concurrent use.
"""

import re

from ghoodoo.enums import TASK_PREFIX, ReferenceAction
from ghoodoo.models.domain import TaskReference

CLOSE_KEYWORDS = ("closes", "fixes", "resolves")
REF_KEYWORDS = ("refs", "references")

# Keyword and identifier must share a line, so only horizontal whitespace separates them.
REFERENCE_PATTERN = re.compile(
    r"(?:\b(?P<keyword>{keywords})[^\S\r\n]+)?{prefix}-(?P<id>[0-9]+)".format(
        keywords="|".join(CLOSE_KEYWORDS + REF_KEYWORDS),
        prefix=re.escape(TASK_PREFIX),
    ),
    re.IGNORECASE,
)


def classify_keyword(keyword: str | None) -> ReferenceAction:
    """Map an optional keyword to the action it implies."""
    if keyword and keyword.lower() in CLOSE_KEYWORDS:
        return ReferenceAction.CLOSE
    return ReferenceAction.REF


def parse_references(text: str) -> list[TaskReference]:
    """Extract task references from free text.

    The first occurrence of a task id decides its action; later mentions of
    the same id are ignored even if they carry a closing keyword.

    Args:
        text: Commit message, PR title/body or any other text

    Returns:
        References in order of first occurrence, at most one per task id.
        Empty when nothing matches.

    Example:
        >>> parse_references("Fixes ODP-12, refs ODP-13 and ODP-12")
        [TaskReference(action=<ReferenceAction.CLOSE: 'close'>, task_id=12),
         TaskReference(action=<ReferenceAction.REF: 'ref'>, task_id=13)]
    """
    references: list[TaskReference] = []
    seen: set[int] = set()

    for match in REFERENCE_PATTERN.finditer(text or ""):
        task_id = int(match.group("id"), 10)
        if task_id <= 0 or task_id in seen:
            continue
        seen.add(task_id)
        references.append(TaskReference(action=classify_keyword(match.group("keyword")), task_id=task_id))

    return references
