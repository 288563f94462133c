"""Repository for User (profile store) database operations."""

import logging
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.orm import Session

from arise.errors import ConcurrentUpdateError, NotFoundError
from arise.models.constants import (
    INITIAL_CURRENT_XP,
    INITIAL_LEVEL,
    INITIAL_RANK,
    INITIAL_REQUIRED_XP,
)
from arise.models.level_event import LevelEvent
from arise.models.progress import UserProgress
from arise.models.user import User
from arise.database.feed import progress_feed
from arise.database.models import LevelEventDB, UserDB, enum_to_value

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None

    def get_progress(self, user_id: str) -> UserProgress:
        """Get a user's progression state.

        Raises:
            NotFoundError: If the user has no profile
        """
        user = self.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user.progress()

    def create_or_update(self, user: User) -> User:
        """Create or update user profile fields (upsert).

        Progression fields are only written on create; use update_progress() afterwards.

        Args:
            user: User object to create or update

        Returns:
            Created or updated User object
        """
        user_db = self.db.query(UserDB).filter(UserDB.id == user.id).first()

        if user_db:
            user_db.email = user.email
            user_db.name = user.name
            user_db.updated_at = user.updated_at
            try:
                self.db.commit()
                self.db.refresh(user_db)
                logger.debug(f"Updated user {user.id}")
                return user_db.to_pydantic()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to update user {user.id}: {type(e).__name__}: {str(e)}")
                raise
        else:
            try:
                user_db = UserDB.from_pydantic(user)
                self.db.add(user_db)
                self.db.commit()
                self.db.refresh(user_db)
                logger.debug(f"Created user {user.id}")
                return user_db.to_pydantic()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to create user {user.id}: {type(e).__name__}: {str(e)}")
                raise

    def ensure_user(self, user_id: str, email: Optional[str] = None, name: Optional[str] = None) -> User:
        """Return the user's profile, provisioning one with initial progress on first sight."""
        existing = self.get(user_id)
        if existing is not None:
            return existing
        now = datetime.utcnow()
        return self.create_or_update(
            User(
                id=user_id,
                email=email,
                name=name,
                rank=INITIAL_RANK,
                level=INITIAL_LEVEL,
                current_xp=INITIAL_CURRENT_XP,
                required_xp=INITIAL_REQUIRED_XP,
                version=0,
                created_at=now,
                updated_at=now,
            )
        )

    def update_progress(
        self,
        user_id: str,
        progress: UserProgress,
        expected_version: int,
        level_event: Optional[LevelEvent] = None,
    ) -> User:
        """Write a new progression state if the stored version still matches.

        This is a compare-and-swap: the row is only updated when its version
        equals `expected_version`, and the version is bumped in the same statement.
        A `level_event` is inserted in the same commit, so history and progress
        are written together or not at all.

        Raises:
            NotFoundError: If the user has no profile
            ConcurrentUpdateError: If another writer updated the profile first
        """
        try:
            affected = (
                self.db.query(UserDB)
                .filter(UserDB.id == user_id, UserDB.version == expected_version)
                .update(
                    {
                        UserDB.level: progress.level,
                        UserDB.current_xp: progress.current_xp,
                        UserDB.required_xp: progress.required_xp,
                        UserDB.rank: enum_to_value(progress.rank),
                        UserDB.version: expected_version + 1,
                        UserDB.updated_at: datetime.utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            if affected and level_event is not None:
                self.db.add(LevelEventDB.from_pydantic(level_event))
            self.db.commit()
            # The bulk update bypassed the identity map; drop cached rows.
            self.db.expire_all()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update progress for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

        if not affected:
            if self.get(user_id) is None:
                raise NotFoundError(f"User {user_id} not found")
            raise ConcurrentUpdateError(f"User {user_id} progress changed (expected version {expected_version})")

        user = self.get(user_id)
        logger.debug(f"Updated progress for user {user_id}: level {progress.level}, rank {progress.rank}")
        progress_feed.publish(user_id, user.progress())
        return user

    def subscribe(self, user_id: str, callback: Callable[[UserProgress], None]) -> Callable[[], None]:
        """Receive the user's progression state after every committed progress write.

        Returns:
            A function that cancels the subscription
        """
        return progress_feed.subscribe(user_id, callback)
