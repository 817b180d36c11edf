"""
Normalize package: scan/blame event models and comment text normalization.
"""

from .models import RawComment, Author, LineAttribution, CommitMetadata
from .util import normalize_comment

__all__ = ["RawComment", "Author", "LineAttribution", "CommitMetadata", "normalize_comment"]
