"""Contains utility functions for GitHub interactions."""

from gitplumbers_bridge.exceptions import ValidationError


async def split_repository(repo: str | None) -> tuple[str, str]:
    """Splits a repository full name into owner and repository."""
    if not repo:
        raise ValidationError("Repository is required in 'owner/repo' format.")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValidationError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository


def repository_url(repo: str) -> str:
    """Return the browsable URL of a repository on github.com."""
    return f"https://github.com/{repo}"
