"""Per-task comment threads and the drawer that shows at most one of them."""

import uuid
from typing import Optional
from pydantic import ValidationError

from tasklite.models.comment import Comment
from tasklite.models.session import SessionContext
from tasklite.models.task import Task
from tasklite.services import supabase_client as gateway
from tasklite.services.change_feed import ChangeFeedReconciler
from tasklite.services.entity_cache import EntityCache
from tasklite.services.feedback import Notifier, StatusLine
from tasklite.utils.config import AppConfig
from tasklite.utils.dates import utc_now
from tasklite.utils.errors import SupabaseError
from tasklite.utils.logging import (
    correlation_context,
    get_structured_logger,
    log_timing,
    sanitize_message_text,
)

logger = get_structured_logger(__name__)


class CommentThread:
    """Comments of a single task, newest first. Append-only."""

    def __init__(
        self,
        task_id: str,
        session: SessionContext,
        status: Optional[StatusLine] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.task_id = task_id
        self.session = session
        self.status = status or StatusLine()
        self.notifier = notifier or Notifier()
        self.cache: EntityCache[Comment] = EntityCache()
        self.loading = False
        self.feed = ChangeFeedReconciler(
            channel_name=f"comments-rt-{task_id}",
            table=AppConfig.COMMENTS_TABLE,
            reload=self.reload,
            filter=f"task_id=eq.{task_id}",
        )

    @property
    def comments(self) -> tuple[Comment, ...]:
        return self.cache.items

    async def reload(self) -> None:
        self.loading = True
        try:
            with log_timing("reload_comments", logger=logger, task_id=self.task_id):
                rows = await gateway.fetch_comments(self.task_id)
                comments = [Comment.model_validate(row) for row in rows]
        except (SupabaseError, ValidationError) as e:
            logger.error("Comment reload failed", task_id=self.task_id, error=str(e))
            self.status.report(e)
            self.cache.clear()
        else:
            self.cache.replace_all(comments)
        finally:
            self.loading = False

    async def add_comment(self, text: str) -> Optional[Comment]:
        """Post a comment; blank text is ignored. Failed inserts resync."""
        content = (text or "").strip()
        if not content:
            return None

        with correlation_context(prefix="cmt"):
            temp = Comment(
                id=str(uuid.uuid4()),
                task_id=self.task_id,
                user_id=self.session.user_id,
                content=content,
                created_at=utc_now(),
            )
            self.cache.prepend(temp)

            try:
                await gateway.insert_comment({
                    "task_id": self.task_id,
                    "user_id": self.session.user_id,
                    "content": content,
                })
            except SupabaseError as e:
                logger.error(
                    "Comment insert failed, resyncing",
                    task_id=self.task_id,
                    content=sanitize_message_text(content, max_length=100),
                    error=str(e)
                )
                self.status.report(e)
                await self.reload()
                return temp

            logger.info("Comment added", task_id=self.task_id)
            self.status.clear()
            self.notifier.notify("Comment added")
            return temp


class CommentDrawer:
    """Holds the one open comment thread and its realtime subscription."""

    def __init__(self, status: Optional[StatusLine] = None, notifier: Optional[Notifier] = None) -> None:
        self.status = status or StatusLine()
        self.notifier = notifier or Notifier()
        self.thread: Optional[CommentThread] = None

    @property
    def task_id(self) -> Optional[str]:
        return self.thread.task_id if self.thread else None

    async def open(self, task: Task, session: SessionContext) -> CommentThread:
        if self.thread is not None and self.thread.task_id == task.id:
            return self.thread
        await self.close()

        thread = CommentThread(task.id, session, status=self.status, notifier=self.notifier)
        self.thread = thread
        await thread.reload()
        if self.thread is not thread:
            # A later open() or close() replaced this thread while it loaded
            logger.info("Comment drawer moved on before subscribing", task_id=task.id)
            return thread
        try:
            await thread.feed.start()
        except SupabaseError as e:
            logger.error("Comment subscription failed", task_id=task.id, error=str(e))
            self.status.report(e)
        return thread

    async def close(self) -> None:
        thread, self.thread = self.thread, None
        if thread is not None:
            await thread.feed.stop()
