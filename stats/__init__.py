"""
Stats package: filtering and aggregate counters over correlated comments.
"""

from .filters import filter_comments, has_filters
from .metrics import CommentStats, count_by_marker, oldest_comment, summarize

__all__ = ["filter_comments", "has_filters", "CommentStats", "count_by_marker", "oldest_comment", "summarize"]
