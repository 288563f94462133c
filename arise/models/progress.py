"""User progression models (XP, level, rank) for arise."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Rank(str, Enum):
    """Rank enumeration, declared from lowest to highest."""
    E = "E"
    D = "D"
    C = "C"
    B = "B"
    A = "A"
    S = "S"
    SS = "SS"
    SSS = "SSS"


RANK_ORDER = list(Rank)


def next_rank(rank) -> Rank:
    """Return the rank one step above `rank`, or `rank` itself at the top."""
    current = Rank(rank)
    idx = RANK_ORDER.index(current)
    if idx + 1 >= len(RANK_ORDER):
        return current
    return RANK_ORDER[idx + 1]


class UserProgress(BaseModel):
    """A user's progression state.

    Invariant: 0 <= current_xp < required_xp (enforced by the progression engine).
    """

    level: int = Field(1, ge=1, description="Current level")
    current_xp: int = Field(0, ge=0, description="XP accumulated towards the next level")
    required_xp: int = Field(100, gt=0, description="XP threshold to complete the current level")
    rank: Rank = Field(Rank.E, description="Current rank")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class XPResult(BaseModel):
    """Outcome of applying an XP delta to a progression state."""

    new_state: UserProgress
    leveled_up: bool = False
    previous_rank: Optional[Rank] = Field(None, description="Rank before this update, if the rank changed")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
