"""Application state for one signed-in user: tasks, filter, comments, feeds."""

import asyncio
from datetime import datetime
from typing import Any, Optional
from pydantic import ValidationError

from tasklite.models.filters import TaskFilter
from tasklite.models.profile import Profile
from tasklite.models.session import SessionContext
from tasklite.models.task import Task, TaskDraft
from tasklite.services import auth
from tasklite.services import supabase_client as gateway
from tasklite.services.change_feed import ChangeFeedReconciler
from tasklite.services.comments import CommentDrawer, CommentThread
from tasklite.services.feedback import Notifier, StatusLine
from tasklite.services.projection import (
    ProfileDirectory,
    TaskRow,
    build_rows,
    empty_message,
    project_tasks,
    remaining_count,
)
from tasklite.services.task_store import TaskStore
from tasklite.utils.config import AppConfig
from tasklite.utils.errors import AuthenticationError, SupabaseError
from tasklite.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


class TaskBoard:
    """
    Everything a task list UI binds to.

    The session context lives here and is handed to the store and the
    comment drawer explicitly. ``start()`` resolves the identity, loads
    profiles and tasks, asks for notification permission and subscribes
    to the task table. Losing the identity (``sign_out()`` or a
    ``SIGNED_OUT`` auth event) tears both subscriptions down.
    """

    def __init__(self, notifier: Optional[Notifier] = None) -> None:
        self.status = StatusLine()
        self.notifier = notifier or Notifier()
        self.store = TaskStore(status=self.status, notifier=self.notifier)
        self.drawer = CommentDrawer(status=self.status, notifier=self.notifier)
        self.directory = ProfileDirectory()
        self.draft = TaskDraft()
        self.filter = TaskFilter.ALL
        self.session: Optional[SessionContext] = None
        self.feed: Optional[ChangeFeedReconciler] = None
        self._auth_subscription: Any = None
        self._teardown: Optional[asyncio.Future] = None

    # Session lifecycle
    @property
    def auth_ready(self) -> bool:
        return self.session is not None

    async def start(self) -> bool:
        try:
            user_id = await auth.ensure_session()
        except AuthenticationError as e:
            logger.error("Could not establish session", error=str(e))
            self.status.report(e)
            return False
        if self.session is not None:
            await self._end_session()
        await self._begin_session(user_id)
        return True

    async def sign_in_with_password(self, email: str, password: str) -> bool:
        try:
            user_id = await auth.sign_in_with_password(email, password)
        except AuthenticationError as e:
            self.status.report(e)
            return False
        if self.session is not None:
            await self._end_session()
        await self._begin_session(user_id)
        return True

    async def sign_out(self) -> None:
        await self._end_session()
        try:
            await auth.sign_out()
        except AuthenticationError as e:
            self.status.report(e)

    async def stop(self) -> None:
        await self._end_session()

    async def _begin_session(self, user_id: str) -> None:
        self.session = SessionContext(user_id=user_id)
        self.store.session = self.session
        logger.info("Session started", user_id=mask_user_id(user_id))

        await self.load_profiles()
        await self.store.load()
        self.notifier.request_permission()

        self.feed = ChangeFeedReconciler(
            channel_name="tasks-rt",
            table=AppConfig.TASKS_TABLE,
            reload=self.store.reload,
        )
        try:
            await self.feed.start()
        except SupabaseError as e:
            logger.error("Task subscription failed", error=str(e))
            self.status.report(e)
            self.feed = None

        try:
            self._auth_subscription = await auth.watch_auth_state(self._on_auth_change)
        except AuthenticationError as e:
            logger.warning("Auth state subscription failed", error=str(e))

    async def _end_session(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None
        await self.drawer.close()
        if self.feed is not None:
            await self.feed.stop()
            self.feed = None
        if self.session is not None:
            logger.info("Session ended", user_id=mask_user_id(self.session.user_id))
        self.session = None
        self.store.reset()
        self.draft.clear()

    def _on_auth_change(self, event: str, session: Any) -> None:
        if event == auth.SIGNED_OUT and self.session is not None:
            logger.info("Identity lost, tearing down subscriptions")
            self._teardown = asyncio.ensure_future(self._end_session())

    async def load_profiles(self) -> None:
        try:
            rows = await gateway.fetch_profiles()
            self.directory.replace(Profile.model_validate(row) for row in rows)
        except (SupabaseError, ValidationError) as e:
            # Labels fall back to short ids
            logger.warning("Profile lookup failed", error=str(e))

    # Task actions
    @property
    def can_submit(self) -> bool:
        return self.auth_ready and bool(self.draft.title.strip())

    async def submit(self) -> Optional[Task]:
        return await self.store.add_task(self.draft)

    async def toggle_done(self, task: Task) -> bool:
        return await self.store.toggle_done(task)

    async def assign(self, task: Task, assignee_id: Optional[str]) -> bool:
        return await self.store.assign(task, assignee_id)

    async def set_due(self, task: Task, due_at: Optional[datetime]) -> bool:
        return await self.store.set_due(task, due_at)

    async def remove(self, task: Task) -> bool:
        return await self.store.remove(task)

    async def clear_completed(self) -> bool:
        return await self.store.clear_completed()

    # View
    def set_filter(self, task_filter: TaskFilter) -> None:
        self.filter = TaskFilter(task_filter)

    @property
    def current_user_id(self) -> Optional[str]:
        return self.session.user_id if self.session else None

    @property
    def visible_tasks(self) -> tuple[Task, ...]:
        return project_tasks(self.store.tasks, self.filter, self.current_user_id)

    def visible_rows(self, now: Optional[datetime] = None) -> list[TaskRow]:
        return build_rows(self.store.tasks, self.filter, self.current_user_id, self.directory, now)

    @property
    def remaining(self) -> int:
        return remaining_count(self.store.tasks)

    @property
    def empty_message(self) -> str:
        return empty_message(self.filter)

    @property
    def error(self) -> Optional[str]:
        return self.status.error

    # Comments
    async def open_comments(self, task: Task) -> Optional[CommentThread]:
        if self.session is None:
            return None
        return await self.drawer.open(task, self.session)

    async def close_comments(self) -> None:
        await self.drawer.close()

    async def add_comment(self, text: str) -> bool:
        if self.drawer.thread is None:
            return False
        return await self.drawer.thread.add_comment(text) is not None
