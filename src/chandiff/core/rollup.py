"""Group hierarchy over component keys with bottom-up change rollup"""

from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, Mapping, Optional

from chandiff.core.models import ROOT, ChangeType, ComponentPath


def classify_group(children: Iterable[ChangeType]) -> ChangeType:
    """Roll up the classifications of a group's immediate children.

    No children, or all unchanged -> unchanged. All removed -> removed, all
    added -> added. Any other mix -> modified.
    """
    kinds = set(children)
    if not kinds or kinds == {ChangeType.unchanged}:
        return ChangeType.unchanged
    if kinds == {ChangeType.left_only}:
        return ChangeType.left_only
    if kinds == {ChangeType.right_only}:
        return ChangeType.right_only
    return ChangeType.modified


@dataclass
class TreeNode:
    path: ComponentPath
    label: str
    change: ChangeType = ChangeType.unchanged
    children: list["TreeNode"] = field(default_factory=list)
    is_component: bool = False

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def walk(self) -> Iterator["TreeNode"]:
        """Pre-order traversal (document order)."""
        yield self
        for child in self.children:
            yield from child.walk()


def _settle(node: TreeNode, own: Mapping[ComponentPath, ChangeType]) -> ChangeType:
    if node.children:
        kinds = [_settle(child, own) for child in node.children]
        if node.is_component:
            kinds.append(own[node.path])
        node.change = classify_group(kinds)
    elif node.is_component:
        node.change = own[node.path]
    return node.change


def build_tree(
    changes: Mapping[ComponentPath, ChangeType],
    labels: Optional[Mapping[ComponentPath, str]] = None,
    ) -> TreeNode:
    """Derive the group tree from segment-wise key prefixes, preserving first-seen order."""
    labels = labels or {}
    root = TreeNode(path=ROOT, label="")
    index: dict[ComponentPath, TreeNode] = {ROOT: root}

    for key in changes:
        parent = root
        for depth in range(1, len(key) + 1):
            path = ComponentPath(key[:depth])
            node = index.get(path)
            if node is None:
                node = TreeNode(path=path, label=labels.get(path, path.name))
                index[path] = node
                parent.children.append(node)
            parent = node
        parent.is_component = True

    _settle(root, changes)
    return root


def rollup(changes: Mapping[ComponentPath, ChangeType]) -> dict[ComponentPath, ChangeType]:
    """Classification of every group path, the root () included, in document order."""
    return {node.path: node.change for node in build_tree(changes).walk() if node.children}


def filter_changed(tree: TreeNode) -> Optional[TreeNode]:
    """Copy of tree without unchanged sub-trees; None when nothing changed."""
    if tree.change is ChangeType.unchanged:
        return None
    kept = [c for c in (filter_changed(child) for child in tree.children) if c is not None]
    return replace(tree, children=kept)


def first_changed(tree: TreeNode) -> Optional[ComponentPath]:
    """First changed component in document order, for the initial selection."""
    for node in tree.walk():
        if node.is_component and node.change is not ChangeType.unchanged:
            return node.path
    return None
