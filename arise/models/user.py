"""User data model for arise."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from arise.models.progress import Rank, UserProgress


class User(BaseModel):
    """User profile, including its embedded progression state."""

    id: str = Field(..., description="Unique user identifier (token subject)")
    email: Optional[str] = Field(None, description="User email address")
    name: Optional[str] = Field(None, description="User display name")
    rank: Rank = Field(Rank.E, description="Current rank")
    level: int = Field(1, ge=1, description="Current level")
    current_xp: int = Field(0, ge=0, description="XP towards the next level")
    required_xp: int = Field(100, gt=0, description="XP threshold of the current level")
    version: int = Field(0, ge=0, description="Progress version (compare-and-swap counter)")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")

    def progress(self) -> UserProgress:
        """Return the progression state of this user."""
        return UserProgress(
            level=self.level,
            current_xp=self.current_xp,
            required_xp=self.required_xp,
            rank=self.rank,
        )

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
