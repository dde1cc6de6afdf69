"""Comparison orchestration: decompose both revisions, classify, roll up, select"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from chandiff.core.compare import ChangeSummary, diff_components, summarize
from chandiff.core.decompose import decompose
from chandiff.core.models import (
    ChangeType, Component, ComponentPath, DecompositionResult, Granularity, Row,
)
from chandiff.core.render import align_rows
from chandiff.core.rollup import TreeNode, build_tree, filter_changed, first_changed, rollup
from chandiff.crud.repo import RevisionSource


logger = logging.getLogger(__name__)


def _labels(old: DecompositionResult, new: DecompositionResult) -> dict[ComponentPath, str]:
    """Display labels for every tree node; the newer revision's names win."""
    labels: dict[ComponentPath, str] = {}
    for result in (old, new):
        labels.update(result.group_names)
        labels.update({key: c.display_name for key, c in result.components.items()})
    return labels


@dataclass(frozen=True)
class Comparison:
    """Immutable report for one old/new pair of revisions."""
    old: DecompositionResult
    new: DecompositionResult
    changes: Mapping[ComponentPath, ChangeType]
    groups: Mapping[ComponentPath, ChangeType]
    tree: TreeNode
    summary: ChangeSummary
    selected: Optional[ComponentPath]

    def component(self, key: ComponentPath) -> Component:
        """Newest available version of a component (old side for removed ones)."""
        if key not in self.changes:
            raise KeyError(f"Unknown component: {key}")
        return self.new.get(key) or self.old[key]

    def content_pair(self, key: ComponentPath) -> tuple[str, str]:
        """(old, new) content of a component; the missing side of an add/remove is ''."""
        if key not in self.changes:
            raise KeyError(f"Unknown component: {key}")
        old, new = self.old.get(key), self.new.get(key)
        return (old.content if old else "", new.content if new else "")

    def component_rows(self, key: ComponentPath, intraline: bool = True) -> list[Row]:
        """Side-by-side rows for one component."""
        return align_rows(*self.content_pair(key), intraline=intraline)

    def display_tree(self, changed_only: bool = False) -> Optional[TreeNode]:
        return filter_changed(self.tree) if changed_only else self.tree


def compare(old_text: str, new_text: str, granularity: Granularity = Granularity.step) -> Comparison:
    """Decompose both texts and build the full comparison report. Raises ParseError."""
    old = decompose(old_text, granularity)
    new = decompose(new_text, granularity)
    changes = diff_components(old, new)
    tree = build_tree(changes, _labels(old, new))
    summary = summarize(changes)
    selected = first_changed(tree)
    logger.debug("Compared revisions: %s; initial selection %s", summary, selected)
    return Comparison(
        old=old,
        new=new,
        changes=changes,
        groups=rollup(changes),
        tree=tree,
        summary=summary,
        selected=selected,
    )


def compare_revisions(
    source: RevisionSource,
    item_id: str,
    old_rev: int,
    new_rev: int,
    granularity: Granularity = Granularity.step,
    ) -> Comparison:
    """Fetch two stored revisions and compare them. Raises RevisionNotFound or ParseError."""
    return compare(source.get_content(item_id, old_rev), source.get_content(item_id, new_rev), granularity)
