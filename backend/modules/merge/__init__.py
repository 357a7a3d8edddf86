"""
Merge module.

Consolidates a duplicate account into a surviving one, rewriting every
reference to it in a single transaction.

Public API:
- IMergeService: Interface for account merges
"""

from .interfaces import IMergeService
from .exceptions import SelfMergeError

__all__ = [
    # Interface
    "IMergeService",
    # Exceptions
    "SelfMergeError",
]
