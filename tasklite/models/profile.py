"""Profile model - read-only lookup of user labels."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Profile(BaseModel):
    """Profile row; never written by this client."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="User ID")
    email: Optional[str] = Field(None, description="Display email")
