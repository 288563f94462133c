"""Award XP to a user with an atomic read-modify-write against the profile store."""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from arise.database.user_repository import UserRepository
from arise.engine.progression import apply_xp
from arise.errors import ConcurrentUpdateError, NotFoundError
from arise.models.level_event import LevelEvent
from arise.models.progress import Rank, UserProgress

load_dotenv()

logger = logging.getLogger(__name__)

XP_UPDATE_MAX_RETRIES = int(os.getenv("XP_UPDATE_MAX_RETRIES", "3"))


class XPAward(BaseModel):
    """Result of awarding XP to a user."""

    xp_awarded: int
    leveled_up: bool = False
    previous_rank: Optional[Rank] = None
    stats: UserProgress
    level_event: Optional[LevelEvent] = Field(None, description="Recorded level-up event, if any")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


def award_xp(
    db: Session,
    *,
    user_id: str,
    xp_amount: int,
    now: Optional[datetime] = None,
    max_retries: Optional[int] = None,
) -> XPAward:
    """Add XP to a user's profile and record a level event on level-up.

    The profile is read, run through the progression engine, and written back
    with a compare-and-swap on its version. On a lost race the whole cycle is
    repeated against the fresh snapshot.

    Raises:
        NotFoundError: If the user has no profile
        ValidationError: If xp_amount is invalid
        ConcurrentUpdateError: If every attempt lost to a concurrent writer
    """
    users = UserRepository(db)
    attempts = 1 + (XP_UPDATE_MAX_RETRIES if max_retries is None else max_retries)

    for attempt in range(1, attempts + 1):
        user = users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        before = user.progress()
        result = apply_xp(before, xp_amount)

        if xp_amount == 0:
            return XPAward(xp_awarded=0, stats=before)

        event = None
        if result.leveled_up:
            event = LevelEvent(
                id=str(uuid.uuid4()),
                user_id=user_id,
                old_level=before.level,
                new_level=result.new_state.level,
                old_rank=before.rank,
                new_rank=result.new_state.rank,
                xp_gained=xp_amount,
                timestamp=now or datetime.utcnow(),
            )

        try:
            users.update_progress(user_id, result.new_state, expected_version=user.version, level_event=event)
        except ConcurrentUpdateError:
            logger.warning(f"XP award for user {user_id} lost a race (attempt {attempt}/{attempts})")
            if attempt == attempts:
                raise
            continue

        if event is not None:
            logger.info(
                f"User {user_id} levelled up: {before.level} -> {result.new_state.level} "
                f"(rank {before.rank} -> {result.new_state.rank})"
            )

        return XPAward(
            xp_awarded=xp_amount,
            leveled_up=result.leveled_up,
            previous_rank=result.previous_rank,
            stats=result.new_state,
            level_event=event,
        )

    # Unreachable: the loop either returns or re-raises on its last attempt.
    raise ConcurrentUpdateError(f"User {user_id} progress could not be updated")
