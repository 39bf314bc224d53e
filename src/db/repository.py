"""Protocol repository (implemented with SQLAlchemy and with plain JSON files)"""

from typing import Optional, Protocol

from src.core.models import GroupStateModel


class GroupStateRepository(Protocol):
    """Persistence of one JSON document per group. Both operations are all-or-nothing."""

    def load(self, group_id: str) -> Optional[GroupStateModel]:
        """Get the group's document, None if there is none (or it cannot be read back)."""
        ...

    def save(self, group_id: str, state: GroupStateModel) -> None:
        """Replace the group's document. Raises RepositoryError on failure."""
        ...
