"""Revision source interface: the storage boundary the comparison core reads from"""

from abc import ABC, abstractmethod


class RevisionSource(ABC):
    @abstractmethod
    def get_content(self, item_id: str, revision: int) -> str:
        """Raw document text of one revision. Raises RevisionNotFound."""
        raise NotImplementedError

    @abstractmethod
    def list_revisions(self, item_id: str) -> list[int]:
        """Revision numbers stored for item_id, ascending."""
        raise NotImplementedError

    @abstractmethod
    def save(self, item_id: str, content: str) -> int:
        """Store content as the item's next revision and return its number."""
        raise NotImplementedError
