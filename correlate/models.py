"""
Data models for correlated comments.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from normalize.models import Author

# (identity key, commit hash)
JoinKey = Tuple[str, str]


@dataclass(frozen=True)
class CorrelatedComment:
    """
    A scanned comment joined with the blame facts for one commit.
    Values are immutable; merge() returns an updated copy.
    """
    key: str
    commit_hash: str
    content: Optional[str] = None
    filename: Optional[str] = None
    final_line: Optional[int] = None
    original_line: Optional[int] = None
    summary: Optional[str] = None
    author: Optional[Author] = None
    committer: Optional[Author] = None

    @property
    def join_key(self) -> JoinKey:
        return (self.key, self.commit_hash)

    @property
    def short_hash(self) -> str:
        return (self.commit_hash or '')[:7]

    @property
    def author_name(self) -> str:
        return self.author.name if self.author and self.author.name else ''

    @property
    def timestamp(self) -> Optional[int]:
        return self.author.timestamp if self.author else None

    def merge(self, fields: dict) -> "CorrelatedComment":
        """Return a copy with ``fields`` applied, last write wins per field."""
        return replace(self, **fields)
