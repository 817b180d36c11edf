"""
Filters over a correlated comment view.
"""
from typing import Mapping, Optional, Dict, Any


def has_filters(type: Optional[str] = None, author: Optional[str] = None) -> bool:
    return bool(type) or bool(author)


def _comment_passes(comment, required_type: str, required_author: str) -> bool:
    content = (comment.content or '').upper()
    author_name = (comment.author_name or '').upper()
    if required_type and required_type not in content:
        return False
    if required_author and required_author not in author_name:
        return False
    return True


def filter_comments(view: Mapping[Any, Any], type: Optional[str] = None, author: Optional[str] = None) -> Mapping[Any, Any]:
    """
    Return the comments whose normalized content contains ``type`` and whose author name
    contains ``author``; both matches are case-insensitive substring matches.

    Without any criteria the view itself is returned.
    """
    if not has_filters(type, author):
        return view

    required_type = (type or '').upper()
    required_author = (author or '').upper()
    filtered: Dict[Any, Any] = {}
    for key, comment in view.items():
        if _comment_passes(comment, required_type, required_author):
            filtered[key] = comment
    return filtered
