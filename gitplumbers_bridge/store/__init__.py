"""Document store seam and the repositories built on top of it."""

from .abc import DocumentStore
from .json_file import JsonFileDocumentStore
from .memory import InMemoryDocumentStore
from .repositories import TrackedIssueRepository, UserProfileRepository

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
    "TrackedIssueRepository",
    "UserProfileRepository",
]
