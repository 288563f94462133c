"""Repository for LevelEvent database operations."""

import logging
from typing import List

from sqlalchemy.orm import Session

from arise.models.level_event import LevelEvent
from arise.database.models import LevelEventDB

logger = logging.getLogger(__name__)


class LevelEventRepository:
    def __init__(self, db: Session):
        self.db = db

    def record(self, event: LevelEvent) -> LevelEvent:
        row = LevelEventDB.from_pydantic(event)
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Recorded level event for user {event.user_id}: {event.old_level} -> {event.new_level}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record level event: {type(e).__name__}: {str(e)}")
            raise

    def list_for_user(self, user_id: str) -> List[LevelEvent]:
        rows = (
            self.db.query(LevelEventDB)
            .filter(LevelEventDB.user_id == user_id)
            .order_by(LevelEventDB.timestamp.desc())
            .all()
        )
        return [row.to_pydantic() for row in rows]
