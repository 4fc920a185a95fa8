"""Session context passed explicitly to the services that need an identity."""

from pydantic import BaseModel, ConfigDict, Field


class SessionContext(BaseModel):
    """Identity of the signed-in user; replaced wholesale on sign-in/sign-out."""
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1, description="Current user ID")
