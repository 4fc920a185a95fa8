"""Task collection with optimistic mutations reconciled against Supabase."""

import uuid
from datetime import datetime
from typing import Any, Callable, Optional
from pydantic import ValidationError

from tasklite.models.session import SessionContext
from tasklite.models.task import (
    IMMUTABLE_TASK_FIELDS,
    Task,
    TaskDraft,
    task_insert_row,
    task_update_payload,
)
from tasklite.services import supabase_client as gateway
from tasklite.services.entity_cache import EntityCache
from tasklite.services.feedback import Notifier, StatusLine
from tasklite.utils.dates import utc_now
from tasklite.utils.errors import SupabaseError
from tasklite.utils.logging import (
    correlation_context,
    get_structured_logger,
    log_timing,
    mask_user_id,
    sanitize_message_text,
)

logger = get_structured_logger(__name__)


def generate_temp_id() -> str:
    """Client-side id for an optimistic row; never matches a server id."""
    return str(uuid.uuid4())


class TaskStore:
    """
    Optimistic mutation engine for tasks.

    Every write changes the cache before the remote call is awaited.
    Inserts that fail remotely are corrected by a full reload; updates and
    deletes that fail are rolled back to their exact pre-image. Remote
    errors are reported on the status line and never raised to callers.
    """

    def __init__(
        self,
        status: Optional[StatusLine] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.cache: EntityCache[Task] = EntityCache()
        self.status = status or StatusLine()
        self.notifier = notifier or Notifier()
        self.session: Optional[SessionContext] = None
        self.loading = False

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self.cache.items

    async def load(self) -> None:
        """User-initiated or initial load; clears the message area first."""
        self.status.clear()
        await self.reload()

    async def reload(self) -> None:
        """Replace the cache with server truth; on failure leave it empty."""
        self.loading = True
        try:
            with log_timing("reload_tasks", logger=logger):
                rows = await gateway.fetch_tasks()
                tasks = [Task.model_validate(row) for row in rows]
        except (SupabaseError, ValidationError) as e:
            logger.error("Task reload failed", error=str(e))
            self.status.report(e)
            self.cache.clear()
        else:
            self.cache.replace_all(tasks)
            logger.debug("Tasks reloaded", task_count=len(tasks))
        finally:
            self.loading = False

    async def add_task(self, draft: TaskDraft) -> Optional[Task]:
        """
        Insert a task from the composer.

        Returns the temporary task that was prepended, or None when nothing
        was inserted (blank title, no session, failed upload).
        """
        title = draft.title.strip()
        if not title or self.session is None:
            return None

        user_id = self.session.user_id
        with correlation_context(prefix="ins"):
            file_url = None
            if draft.attachment is not None:
                try:
                    file_url = await gateway.upload_attachment(user_id, draft.attachment)
                except SupabaseError as e:
                    logger.error(
                        "Attachment upload failed, insert aborted",
                        user_id=mask_user_id(user_id),
                        filename=draft.attachment.filename,
                        error=str(e)
                    )
                    self.status.report(e)
                    return None

            temp = Task(
                id=generate_temp_id(),
                title=title,
                done=False,
                created_at=utc_now(),
                file_url=file_url,
                user_id=user_id,
                assignee_id=draft.assignee_id,
                due_at=draft.due_at,
            )
            self.cache.prepend(temp)
            draft.clear()

            try:
                await gateway.insert_task(task_insert_row(
                    title=title,
                    user_id=user_id,
                    file_url=file_url,
                    assignee_id=temp.assignee_id,
                    due_at=temp.due_at,
                ))
            except SupabaseError as e:
                logger.error(
                    "Task insert failed, resyncing",
                    temp_id=temp.id,
                    title=sanitize_message_text(title, max_length=100),
                    error=str(e)
                )
                self.status.report(e)
                await self.reload()
                return temp

            logger.info(
                "Task inserted",
                temp_id=temp.id,
                title=sanitize_message_text(title, max_length=100),
                has_attachment=file_url is not None
            )
            self.status.clear()
            self.notifier.notify("Task added")
            return temp

    async def update_task(self, task: Task, notification: str = "Task updated", **changes: Any) -> bool:
        """Apply field changes now; roll back exactly if the remote update fails."""
        unknown = set(changes) - set(Task.model_fields)
        if unknown:
            raise ValueError(f"Unknown task fields: {sorted(unknown)}")
        locked = IMMUTABLE_TASK_FIELDS.intersection(changes)
        if locked:
            raise ValueError(f"Cannot change immutable task fields: {sorted(locked)}")
        if "title" in changes:
            changes["title"] = (changes["title"] or "").strip()
            if not changes["title"]:
                return False
        if not changes:
            return False

        with correlation_context(prefix="upd"):
            pending = self.cache.apply(
                lambda items: [item.model_copy(update=changes) if item.id == task.id else item for item in items],
                label=f"update:{task.id}",
            )
            try:
                await gateway.update_task(task.id, task_update_payload(changes))
            except SupabaseError as e:
                self.cache.rollback(pending)
                logger.error(
                    "Task update failed, rolled back",
                    task_id=task.id,
                    fields=sorted(changes),
                    error=str(e)
                )
                self.status.report(e)
                return False

            self.cache.commit(pending)
            logger.info("Task updated", task_id=task.id, fields=sorted(changes))
            self.status.clear()
            self.notifier.notify(notification)
            return True

    async def toggle_done(self, task: Task) -> bool:
        next_done = not task.done
        return await self.update_task(
            task,
            notification="Task completed" if next_done else "Task re-opened",
            done=next_done,
        )

    async def assign(self, task: Task, assignee_id: Optional[str]) -> bool:
        return await self.update_task(task, notification="Task assigned", assignee_id=assignee_id)

    async def set_due(self, task: Task, due_at: Optional[datetime]) -> bool:
        return await self.update_task(task, notification="Due date updated", due_at=due_at)

    async def rename(self, task: Task, title: str) -> bool:
        return await self.update_task(task, title=title)

    async def remove(self, task: Task) -> bool:
        """Delete one task; roll back exactly if the remote delete fails."""
        return await self._delete([task.id], notification="Task deleted")

    async def bulk_delete(self, predicate: Callable[[Task], bool], notification: Optional[str] = None) -> bool:
        """Delete every cached task matching predicate with one batch request."""
        doomed = [task.id for task in self.cache if predicate(task)]
        if not doomed:
            return False
        return await self._delete(doomed, notification=notification)

    async def clear_completed(self) -> bool:
        count = sum(1 for task in self.cache if task.done)
        return await self.bulk_delete(lambda task: task.done, notification=f"Cleared {count} completed")

    async def _delete(self, doomed: list[str], notification: Optional[str]) -> bool:
        doomed_ids = set(doomed)
        with correlation_context(prefix="del"):
            pending = self.cache.apply(
                lambda items: [item for item in items if item.id not in doomed_ids],
                label=f"delete:{len(doomed)}",
            )
            try:
                await gateway.delete_tasks(doomed)
            except SupabaseError as e:
                self.cache.rollback(pending)
                logger.error(
                    "Task delete failed, rolled back",
                    task_ids=doomed,
                    error=str(e)
                )
                self.status.report(e)
                return False

            self.cache.commit(pending)
            logger.info("Tasks deleted", task_count=len(doomed))
            self.status.clear()
            if notification:
                self.notifier.notify(notification)
            return True

    def reset(self) -> None:
        """Forget everything held for the previous identity."""
        self.session = None
        self.cache.clear()
        self.status.clear()
