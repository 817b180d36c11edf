"""
Aggregate statistics over a correlated comment view: per-marker counts and the oldest comment.
"""
from typing import Mapping, Iterable, Dict, Optional, Any, NamedTuple

from correlate.models import CorrelatedComment


class CommentStats(NamedTuple):
    counts: Dict[str, int]
    total: int
    oldest: Optional[CorrelatedComment]


def count_by_marker(view: Mapping[Any, CorrelatedComment], markers: Iterable[str]) -> Dict[str, int]:
    """
    Count comments per marker, keyed by the lowercased marker.

    Classification is by substring, so a comment mentioning two markers counts toward both.
    Markers differing only by case share one counter.
    """
    counters: Dict[str, int] = {m.lower(): 0 for m in markers}
    for comment in view.values():
        content = (comment.content or '').lower()
        for marker in counters:
            if marker in content:
                counters[marker] += 1
    return counters


def oldest_comment(view: Mapping[Any, CorrelatedComment]) -> Optional[CorrelatedComment]:
    """Return the comment with the smallest author timestamp, or None for an empty view.

    The first visited comment seeds the search and is only replaced by a strictly older
    one, so untimestamped comments are returned only when no comment has a timestamp.
    """
    oldest = None
    for comment in view.values():
        if oldest is None:
            oldest = comment
            continue
        stamp = comment.timestamp
        if stamp is None:
            continue
        if oldest.timestamp is None or stamp < oldest.timestamp:
            oldest = comment
    return oldest


def summarize(view: Mapping[Any, CorrelatedComment], markers: Iterable[str]) -> CommentStats:
    return CommentStats(
        counts=count_by_marker(view, markers),
        total=len(view),
        oldest=oldest_comment(view),
    )
