"""SQLModel-backed revision store"""

from sqlalchemy import func
from sqlmodel import Session, select

from chandiff.core.errors import RevisionNotFound
from chandiff.core.utils.hashing import sha256
from chandiff.crud.models import Revision
from chandiff.crud.repo import RevisionSource


class SQLRepo(RevisionSource):
    """Revision store over an open session. Flushes but does not commit; caller controls the transaction."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, item_id: str, revision: int) -> Revision:
        row = self.session.exec(
            select(Revision)
            .where(Revision.item_id == item_id)
            .where(Revision.revision == revision)
        ).one_or_none()
        if row is None:
            raise RevisionNotFound(item_id, revision)
        return row

    def get_content(self, item_id: str, revision: int) -> str:
        return self._get(item_id, revision).content

    def list_revisions(self, item_id: str) -> list[int]:
        return list(
            self.session.exec(
                select(Revision.revision)
                .where(Revision.item_id == item_id)
                .order_by(Revision.revision.asc())
            ).all()
        )

    def get_revision(self, item_id: str, revision: int) -> Revision:
        """Full stored row (hash and timestamp included). Raises RevisionNotFound."""
        return self._get(item_id, revision)

    def save(self, item_id: str, content: str) -> int:
        """Snapshot content as a new revision numbered MAX(revision)+1 for this item."""
        latest = self.session.exec(
            select(func.max(Revision.revision))
            .where(Revision.item_id == item_id)
        ).one()

        row = Revision(item_id=item_id, revision=(latest or 0) + 1, content=content, hash=sha256(content))
        self.session.add(row)
        self.session.flush()
        return row.revision
