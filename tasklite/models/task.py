"""Task models."""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tasklite.utils.dates import to_iso

# Columns the client may never change after insert
IMMUTABLE_TASK_FIELDS = frozenset({"id", "user_id", "created_at"})


class Task(BaseModel):
    """Task row as stored in the tasks table."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Task ID (uuid, server-assigned or temporary)")
    title: str = Field(..., min_length=1, description="Task title")
    done: bool = Field(default=False, description="Completion flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    file_url: Optional[str] = Field(None, description="Public URL of the attachment")
    user_id: str = Field(..., description="Creator user ID")
    assignee_id: Optional[str] = Field(None, description="Assigned user ID")
    due_at: Optional[datetime] = Field(None, description="Due timestamp")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


class Attachment(BaseModel):
    """File picked for upload alongside a new task."""
    filename: str = Field(..., min_length=1)
    content: bytes
    content_type: Optional[str] = None


class TaskDraft(BaseModel):
    """Composer state for a task that has not been submitted yet."""
    title: str = ""
    attachment: Optional[Attachment] = None
    assignee_id: Optional[str] = None
    due_at: Optional[datetime] = None

    def clear(self) -> None:
        """Reset every input field."""
        self.title = ""
        self.attachment = None
        self.assignee_id = None
        self.due_at = None


def task_insert_row(
    title: str,
    user_id: str,
    file_url: Optional[str] = None,
    assignee_id: Optional[str] = None,
    due_at: Optional[datetime] = None,
) -> dict:
    """Build the insert payload; id, created_at and done are left to the database."""
    return {
        "title": title,
        "file_url": file_url,
        "user_id": user_id,
        "assignee_id": assignee_id,
        "due_at": to_iso(due_at),
    }


def task_update_payload(changes: dict[str, Any]) -> dict[str, Any]:
    """Serialize field changes for an update call."""
    payload = {}
    for key, value in changes.items():
        payload[key] = to_iso(value) if isinstance(value, datetime) else value
    return payload
