"""Scheduled deployment: HTTP trigger, health check and recurring runs."""

from .app import create_app
from .scheduler import Scheduler

__all__ = ["Scheduler", "create_app"]
