"""Document store access helpers."""

from .documents import Document
from .ids import is_valid_object_id, parse_object_id
from .repository import NEWEST_FIRST, Repository
from .updates import UpdateBuilder

__all__ = [
    "NEWEST_FIRST",
    "Document",
    "Repository",
    "UpdateBuilder",
    "is_valid_object_id",
    "parse_object_id",
]
