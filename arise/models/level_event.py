"""LevelEvent data model for arise."""

from datetime import datetime
from pydantic import BaseModel, Field

from arise.models.progress import Rank


class LevelEvent(BaseModel):
    """Level-up history entry, recorded once per XP award that levelled up."""

    id: str = Field(..., description="Unique level event identifier")
    user_id: str = Field(..., description="User ID this event belongs to")
    old_level: int = Field(..., description="Level before the award")
    new_level: int = Field(..., description="Level after the award")
    old_rank: Rank = Field(..., description="Rank before the award")
    new_rank: Rank = Field(..., description="Rank after the award")
    xp_gained: int = Field(..., description="XP awarded")
    timestamp: datetime = Field(..., description="Event timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
