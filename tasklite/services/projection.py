"""Pure projections from the task cache to what the list renders."""

from datetime import datetime
from functools import lru_cache
from typing import Iterable, Optional, Sequence
from pydantic import BaseModel, ConfigDict

from tasklite.models.filters import TaskFilter
from tasklite.models.profile import Profile
from tasklite.models.task import Task
from tasklite.utils.dates import format_due, is_overdue


def matches_filter(task: Task, task_filter: TaskFilter, current_user_id: Optional[str]) -> bool:
    if task_filter == TaskFilter.ACTIVE:
        return not task.done
    if task_filter == TaskFilter.DONE:
        return task.done
    if task_filter == TaskFilter.ASSIGNED_TO_ME:
        return current_user_id is not None and task.assignee_id == current_user_id
    if task_filter == TaskFilter.ASSIGNED_BY_ME:
        return (
            current_user_id is not None
            and task.user_id == current_user_id
            and task.assignee_id is not None
            and task.assignee_id != current_user_id
        )
    return True


@lru_cache(maxsize=32)
def _project(tasks: tuple[Task, ...], task_filter: TaskFilter, current_user_id: Optional[str]) -> tuple[Task, ...]:
    return tuple(task for task in tasks if matches_filter(task, task_filter, current_user_id))


def project_tasks(
    tasks: Sequence[Task],
    task_filter: TaskFilter = TaskFilter.ALL,
    current_user_id: Optional[str] = None,
) -> tuple[Task, ...]:
    """
    Tasks to render for a filter, in cache order.

    Memoized on its inputs; never mutates or re-sorts ``tasks``.
    """
    return _project(tuple(tasks), TaskFilter(task_filter), current_user_id)


def remaining_count(tasks: Iterable[Task]) -> int:
    return sum(1 for task in tasks if not task.done)


def empty_message(task_filter: TaskFilter) -> str:
    task_filter = TaskFilter(task_filter)
    if task_filter == TaskFilter.ALL:
        return "No tasks yet."
    return f"No tasks in {task_filter.value}."


class ProfileDirectory:
    """Resolves user ids to human-readable labels."""

    def __init__(self, profiles: Iterable[Profile] = ()) -> None:
        self._by_id: dict[str, Profile] = {}
        self.replace(profiles)

    def replace(self, profiles: Iterable[Profile]) -> None:
        self._by_id = {profile.id: profile for profile in profiles}

    def __len__(self) -> int:
        return len(self._by_id)

    def label(self, user_id: Optional[str], current_user_id: Optional[str] = None) -> Optional[str]:
        if not user_id:
            return None
        if current_user_id is not None and user_id == current_user_id:
            return "me"
        profile = self._by_id.get(user_id)
        if profile and profile.email:
            return profile.email
        return f"User_{user_id[-8:]}"


class TaskRow(BaseModel):
    """Display-ready row."""
    model_config = ConfigDict(frozen=True)

    task: Task
    creator_label: Optional[str] = None
    assignee_label: Optional[str] = None
    due_label: Optional[str] = None
    overdue: bool = False
    has_attachment: bool = False


def build_rows(
    tasks: Sequence[Task],
    task_filter: TaskFilter,
    current_user_id: Optional[str],
    directory: ProfileDirectory,
    now: Optional[datetime] = None,
) -> list[TaskRow]:
    rows = []
    for task in project_tasks(tasks, task_filter, current_user_id):
        rows.append(TaskRow(
            task=task,
            creator_label=directory.label(task.user_id, current_user_id),
            assignee_label=directory.label(task.assignee_id, current_user_id),
            due_label=format_due(task.due_at, now),
            overdue=not task.done and is_overdue(task.due_at, now),
            has_attachment=task.file_url is not None,
        ))
    return rows
