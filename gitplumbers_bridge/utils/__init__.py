"""Utility modules for shared functionality."""

from .constants import (
    COMMAND_PREFIX,
    GITHUB_ISSUES_COLLECTION,
    ISSUE_BODY_ORIGIN_SUFFIX,
    SUPPORT_REQUEST_LABELS,
    USER_AGENT,
    USERS_COLLECTION,
)
from .github import split_repository

__all__ = [
    "COMMAND_PREFIX",
    "GITHUB_ISSUES_COLLECTION",
    "ISSUE_BODY_ORIGIN_SUFFIX",
    "SUPPORT_REQUEST_LABELS",
    "USER_AGENT",
    "USERS_COLLECTION",
    "split_repository",
]
