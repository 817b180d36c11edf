"""
Unified data models for scan hits and blame events.

Attribution events form a tagged union: every event carries a ``kind`` tag
("line" or "commit") and consumers dispatch on it.
"""

from dataclasses import dataclass
from typing import Optional, List

from errors import MalformedEvent

LINE = "line"
COMMIT = "commit"
ATTRIBUTION_KINDS = (LINE, COMMIT)


@dataclass(frozen=True)
class RawComment:
    """
    One marker hit reported by the scan: file path, 1-based line number and line text.
    """
    file: str
    line: int
    text: str

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.file:
            missing.append('file')
        if not isinstance(self.line, int) or self.line <= 0:
            missing.append('line')
        if self.text is None:
            missing.append('text')
        return missing

    def validate(self) -> "RawComment":
        missing = self.missing_fields()
        if missing:
            raise MalformedEvent(self, missing)
        return self


@dataclass(frozen=True)
class Author:
    """
    Commit author (or committer) identity. ``timestamp`` is seconds since the epoch.
    """
    name: str
    mail: Optional[str] = None
    timestamp: Optional[int] = None
    timezone: Optional[str] = None


@dataclass(frozen=True)
class LineAttribution:
    """
    Which commit last touched a line, and where the line sits in that commit.
    """
    commit_hash: str
    filename: Optional[str] = None
    final_line: Optional[int] = None
    original_line: Optional[int] = None
    summary: Optional[str] = None
    content: Optional[str] = None

    kind = LINE

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.commit_hash:
            missing.append('commit_hash')
        if self.final_line is None:
            missing.append('final_line')
        return missing

    def fields(self) -> dict:
        """Fields merged into a correlated comment; unset values are left out."""
        values = {
            'commit_hash': self.commit_hash,
            'filename': self.filename,
            'final_line': self.final_line,
            'original_line': self.original_line,
            'summary': self.summary,
            'content': self.content,
        }
        return {k: v for k, v in values.items() if v is not None}


@dataclass(frozen=True)
class CommitMetadata:
    """
    Authorship facts about the commit a line was attributed to.
    """
    commit_hash: str
    author: Optional[Author] = None
    committer: Optional[Author] = None
    summary: Optional[str] = None

    kind = COMMIT

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.commit_hash:
            missing.append('commit_hash')
        if self.author is None or not self.author.name:
            missing.append('author')
        return missing

    def fields(self) -> dict:
        values = {
            'commit_hash': self.commit_hash,
            'author': self.author,
            'committer': self.committer,
            'summary': self.summary,
        }
        return {k: v for k, v in values.items() if v is not None}


def validate_attribution(event) -> None:
    """Raise MalformedEvent when an attribution event lacks required fields or has an unknown tag."""
    kind = getattr(event, 'kind', None)
    if kind not in ATTRIBUTION_KINDS:
        raise MalformedEvent(event, ['kind'])
    missing = event.missing_fields()
    if missing:
        raise MalformedEvent(event, missing)
