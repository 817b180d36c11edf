"""
Ingest package: git clients producing scan and blame events.
"""

from .git import GitGrepScanner, GitBlameAttributor

__all__ = ["GitGrepScanner", "GitBlameAttributor"]
