"""Key-wise classification of components between two decomposed revisions"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Mapping

from chandiff.core.models import ChangeType, ComponentPath, DecompositionResult


logger = logging.getLogger(__name__)


def diff_components(old: DecompositionResult, new: DecompositionResult) -> dict[ComponentPath, ChangeType]:
    """Classify every key present in either revision; old order first, then keys only in new.

    Only content counts: a different display name or category alone is not a change.
    """
    changes: dict[ComponentPath, ChangeType] = {}
    for key, component in old.components.items():
        other = new.get(key)
        if other is None:
            changes[key] = ChangeType.left_only
        elif other.content == component.content:
            changes[key] = ChangeType.unchanged
        else:
            changes[key] = ChangeType.modified
    for key in new:
        if key not in changes:
            changes[key] = ChangeType.right_only
    return changes


@dataclass(frozen=True)
class ChangeSummary:
    """Per-type counts over one component classification."""
    total: int
    counts: Mapping[ChangeType, int] = field(default_factory=dict)

    @property
    def changed(self) -> int:
        return self.total - self.counts.get(ChangeType.unchanged, 0)

    def __str__(self) -> str:
        return f"{self.changed} of {self.total} components changed"


def summarize(changes: Mapping[ComponentPath, ChangeType]) -> ChangeSummary:
    counts = Counter(changes.values())
    summary = ChangeSummary(total=len(changes), counts={t: counts.get(t, 0) for t in ChangeType})
    logger.debug("%s (%s)", summary, ", ".join(f"{t.value}={n}" for t, n in summary.counts.items()))
    return summary
