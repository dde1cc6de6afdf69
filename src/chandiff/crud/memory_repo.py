from dataclasses import dataclass, field

from chandiff.core.errors import RevisionNotFound
from chandiff.crud.repo import RevisionSource


@dataclass
class MemoryRepo(RevisionSource):
    _revisions: dict[str, dict[int, str]] = field(default_factory=dict)

    def save(self, item_id: str, content: str) -> int:
        stored = self._revisions.setdefault(item_id, {})
        revision = max(stored, default=0) + 1
        stored[revision] = content
        return revision

    def get_content(self, item_id: str, revision: int) -> str:
        try:
            return self._revisions[item_id][revision]
        except KeyError:
            raise RevisionNotFound(item_id, revision) from None

    def list_revisions(self, item_id: str) -> list[int]:
        return sorted(self._revisions.get(item_id, {}))
