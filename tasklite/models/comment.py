"""Comment model - append-only discussion attached to a task."""

from datetime import datetime
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Comment(BaseModel):
    """Comment row as stored in the comments table."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Comment ID")
    task_id: str = Field(..., description="Parent task ID (immutable)")
    user_id: str = Field(..., description="Author user ID")
    content: str = Field(..., min_length=1, description="Comment text")
    created_at: datetime = Field(..., description="Creation timestamp")

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value
