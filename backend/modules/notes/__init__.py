"""
Notes module.

Public API:
- Note: Note entity
- NoteRepository: Note store
"""

from .models import Note
from .repository import NoteRepository

__all__ = [
    # Models
    "Note",
    # Repository
    "NoteRepository",
]
