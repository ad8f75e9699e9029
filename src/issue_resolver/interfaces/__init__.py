"""Abstract interfaces for external service integrations."""

from .vcs import IssueTracker

__all__ = ["IssueTracker"]
