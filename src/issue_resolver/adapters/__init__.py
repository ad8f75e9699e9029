"""Concrete implementations of provider interfaces."""

from .vcs.github import GitHubAdapter

__all__ = [
    "GitHubAdapter",
]
