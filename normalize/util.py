"""
Normalization utility helpers.
Strip comment-syntax decoration from blamed lines so only the message remains.
"""
import re
from typing import List, NamedTuple, Optional, Pattern


class CommentSyntax(NamedTuple):
    start: Pattern
    end: Optional[Pattern]
    marker: str


# Blame may return a line of code followed by a trailing comment, so the start
# patterns swallow everything up to the comment opener.
COMMENT_SYNTAXES: List[CommentSyntax] = [
    CommentSyntax(re.compile(r'^.*?//\s*'), None, '//'),
    CommentSyntax(re.compile(r'^.*?#\s*'), None, '#'),
    CommentSyntax(re.compile(r'^.*?/\*\s*'), re.compile(r'\s*\*[/}]\s*$'), '/*'),
    CommentSyntax(re.compile(r'^.*?\{\s*/\*\s*'), re.compile(r'\s*\*/\s*\}\s*$'), '{/*'),
]


def find_comment_syntax(text: str) -> Optional[CommentSyntax]:
    """Return the syntax whose opener occurs earliest in ``text``, or None if no opener is present."""
    applicable = None
    earliest = -1
    for syntax in COMMENT_SYNTAXES:
        position = text.find(syntax.marker)
        if position == -1:
            continue
        if earliest != -1 and position >= earliest:
            continue
        earliest = position
        applicable = syntax
    return applicable


def normalize_comment(content: Optional[str]) -> str:
    """Return the human-authored part of a comment line.

    Plain text without any comment opener is returned trimmed but otherwise unchanged.
    Only the first opener is stripped, so the result is stable under a second pass
    only when the message itself contains no opener: ``// see http://x`` gives
    ``see http://x``, which normalizes again to ``x``.
    """
    normalized = (content or '').strip()

    syntax = find_comment_syntax(normalized)
    if syntax is None:
        return normalized

    normalized = syntax.start.sub('', normalized, count=1)
    if syntax.end is not None:
        normalized = syntax.end.sub('', normalized, count=1)
    return normalized
