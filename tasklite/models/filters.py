"""Task list filter selection."""

from enum import Enum


class TaskFilter(str, Enum):
    """Closed set of list filters; UI state only, never persisted."""
    ALL = "all"
    ACTIVE = "active"
    DONE = "done"
    ASSIGNED_TO_ME = "assignedToMe"
    ASSIGNED_BY_ME = "assignedByMe"
