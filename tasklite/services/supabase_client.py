"""Supabase client wrapper with async context manager support."""

import uuid
from typing import Any, Callable, Iterable, Optional
from supabase import acreate_client, AsyncClient, AsyncClientOptions

from tasklite.models.task import Attachment
from tasklite.utils.config import AppConfig
from tasklite.utils.errors import SupabaseError, StorageUploadError
from tasklite.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)

# Global client instance (singleton pattern)
_client: Optional[AsyncClient] = None


async def get_supabase_client() -> AsyncClient:
    """Get or create the async Supabase client singleton."""
    global _client

    if _client is None:
        url, key = AppConfig.gateway_credentials()

        # Session is kept in memory so realtime channels pick up the user's token
        options = AsyncClientOptions(
            auto_refresh_token=True,
            persist_session=True,
        )

        _client = await acreate_client(url, key, options)
        logger.info("Supabase client initialized", url=url)

    return _client


async def close_supabase_client() -> None:
    """Drop realtime channels and forget the client."""
    global _client
    if _client:
        try:
            await _client.remove_all_channels()
        except Exception as e:
            logger.warning("Failed to remove realtime channels on close", error=str(e))
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[AsyncClient] = None

    async def __aenter__(self) -> AsyncClient:
        self.client = await get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                type=exc_type.__name__
            )
        return False


# Tasks table operations
@timed("fetch_tasks")
async def fetch_tasks() -> list[dict]:
    """Fetch every visible task, newest first."""
    async with SupabaseClient() as client:
        try:
            result = await client.table(AppConfig.TASKS_TABLE).select("*").order("created_at", desc=True).execute()
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to fetch tasks: {e}")


@timed("insert_task")
async def insert_task(row: dict) -> None:
    """Insert one task row."""
    async with SupabaseClient() as client:
        try:
            await client.table(AppConfig.TASKS_TABLE).insert(row).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to insert task: {e}")


@timed("update_task")
async def update_task(task_id: str, updates: dict) -> None:
    """Update named columns on one task."""
    async with SupabaseClient() as client:
        try:
            await client.table(AppConfig.TASKS_TABLE).update(updates).eq("id", task_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update task {task_id}: {e}")


@timed("delete_tasks")
async def delete_tasks(task_ids: Iterable[str]) -> None:
    """Delete one or more tasks by id in a single request."""
    ids = list(task_ids)
    if not ids:
        return
    async with SupabaseClient() as client:
        try:
            query = client.table(AppConfig.TASKS_TABLE).delete()
            if len(ids) == 1:
                query = query.eq("id", ids[0])
            else:
                query = query.in_("id", ids)
            await query.execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete tasks: {e}")


# Comments table operations
@timed("fetch_comments")
async def fetch_comments(task_id: str) -> list[dict]:
    """Fetch the comments of one task, newest first."""
    async with SupabaseClient() as client:
        try:
            result = await (
                client.table(AppConfig.COMMENTS_TABLE)
                .select("*")
                .eq("task_id", task_id)
                .order("created_at", desc=True)
                .execute()
            )
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to fetch comments: {e}")


@timed("insert_comment")
async def insert_comment(row: dict) -> None:
    """Insert one comment row."""
    async with SupabaseClient() as client:
        try:
            await client.table(AppConfig.COMMENTS_TABLE).insert(row).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to insert comment: {e}")


# Profiles table (read-only)
@timed("fetch_profiles")
async def fetch_profiles() -> list[dict]:
    """Fetch the id -> email lookup table."""
    async with SupabaseClient() as client:
        try:
            result = await client.table(AppConfig.PROFILES_TABLE).select("id, email").execute()
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to fetch profiles: {e}")


# Object storage
def attachment_path(user_id: str, filename: str) -> str:
    """Storage path namespaced by user with a unique prefix."""
    return f"{user_id}/{uuid.uuid4()}-{filename}"


@timed("upload_attachment")
async def upload_attachment(user_id: str, attachment: Attachment) -> str:
    """Upload a file to the attachments bucket and return its public URL."""
    path = attachment_path(user_id, attachment.filename)
    async with SupabaseClient() as client:
        try:
            bucket = client.storage.from_(AppConfig.ATTACHMENTS_BUCKET)
            file_options = {"content-type": attachment.content_type} if attachment.content_type else None
            await bucket.upload(path, attachment.content, file_options)
            public_url = await bucket.get_public_url(path)
        except Exception as e:
            raise StorageUploadError(f"File upload failed: {e}")

    logger.info(
        "Attachment uploaded",
        user_id=mask_user_id(user_id),
        size_bytes=len(attachment.content)
    )
    return public_url


# Realtime change feed
async def subscribe_table(
    channel_name: str,
    table: str,
    callback: Callable[[Any], None],
    filter: Optional[str] = None,
) -> Any:
    """Register for every insert/update/delete on a table."""
    async with SupabaseClient() as client:
        try:
            channel = client.channel(channel_name)
            channel.on_postgres_changes(
                "*",
                callback=callback,
                schema=AppConfig.REALTIME_SCHEMA,
                table=table,
                filter=filter,
            )
            await channel.subscribe()
        except Exception as e:
            raise SupabaseError(f"Failed to subscribe to {table}: {e}")

    logger.info("Realtime channel subscribed", channel=channel_name, table=table, filter=filter)
    return channel


async def unsubscribe(channel: Any) -> None:
    """Tear down a realtime channel."""
    async with SupabaseClient() as client:
        try:
            await client.remove_channel(channel)
        except Exception as e:
            raise SupabaseError(f"Failed to remove realtime channel: {e}")
