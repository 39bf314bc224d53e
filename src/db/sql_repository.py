"""Implementation of GroupStateRepository using SQLAlchemy"""

from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError
from src.core.logger import get_logger
from src.core.models import GroupStateModel
from src.db.schema import DBGroupState

logger = get_logger(__name__)


class SQLGroupStateRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def load(self, group_id: str) -> Optional[GroupStateModel]:
        """Get the group's document, if a (valid) record exists."""
        try:
            record = self._fetch(group_id)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to read state of group {group_id}") from exc
        if record is None:
            return None
        try:
            return GroupStateModel.model_validate(record.document)
        except ValidationError as exc:
            logger.warning("Stored state of group %s is corrupt: %s", group_id, exc)
            return None

    def save(self, group_id: str, state: GroupStateModel) -> None:
        """Create or replace the record."""
        document = state.model_dump(mode="json")
        try:
            record = self._fetch(group_id)
            if record is None:
                self.db.add(DBGroupState(group_id=group_id, document=document))
            else:
                record.document = document
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RepositoryError(f"Failed to save state of group {group_id}") from exc

    def _fetch(self, group_id: str) -> Optional[DBGroupState]:
        query = select(DBGroupState).where(DBGroupState.group_id == group_id)
        return self.db.scalar(query)
