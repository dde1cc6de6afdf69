"""Hardened XML parsing, element lookup helpers, and canonical serialization"""

import copy
from pathlib import Path
from typing import Optional

from lxml import etree

from chandiff.core.errors import ParseError


INDENT = "  "


def _make_parser() -> etree.XMLParser:
    """Build an XMLParser that never resolves entities or touches the network."""
    return etree.XMLParser(
        encoding="utf-8",
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        remove_blank_text=True,
        huge_tree=False,
    )


def parse_document(text: str) -> etree._Element:
    """Parse document text into a fresh element tree owned by the caller.

    Raises ParseError for empty or malformed input and for any DOCTYPE declaration.
    """
    if not text or not text.strip():
        raise ParseError("Document is empty")
    try:
        root = etree.fromstring(text.encode("utf-8"), _make_parser())
    except etree.XMLSyntaxError as e:
        raise ParseError(f"Malformed XML: {e}") from e
    if root.getroottree().docinfo.doctype:
        raise ParseError("DOCTYPE declarations are not allowed")
    return root


def read_document(path: Path) -> str:
    """Read a document revision from disk as text."""
    return Path(path).read_text(encoding="utf-8")


def local_name(node: etree._Element) -> str:
    return etree.QName(node).localname


def element_children(node: etree._Element) -> list[etree._Element]:
    """Direct element children, skipping comments and processing instructions."""
    return [c for c in node if isinstance(c.tag, str)]


def child_element(parent: etree._Element, name: str) -> Optional[etree._Element]:
    """First direct child element with the given local name, or None."""
    for child in element_children(parent):
        if local_name(child) == name:
            return child
    return None


def text_content(node: etree._Element) -> str:
    """All descendant text of node, concatenated (CDATA included)."""
    return "".join(node.itertext())


def child_text(parent: etree._Element, name: str) -> Optional[str]:
    """Text content of a direct child element, or None when the child is absent."""
    child = child_element(parent, name)
    return text_content(child) if child is not None else None


def _carry_tail(clone: etree._Element, last: Optional[etree._Element], tail: Optional[str]) -> None:
    """Keep non-blank tail text of a skipped element on its preceding sibling or parent."""
    if not tail or not tail.strip():
        return
    if last is not None:
        last.tail = (last.tail or "") + tail
    else:
        clone.text = (clone.text or "") + tail


def pruned_copy(node: etree._Element, consumed: set) -> etree._Element:
    """Structural copy of node that leaves out every element in consumed.

    The source tree is never modified, so one parsed document can feed every
    extraction step and the residual.
    """
    clone = etree.Element(node.tag, dict(node.attrib), nsmap=node.nsmap)
    clone.text = node.text
    last = None
    for child in node:
        if child in consumed:
            _carry_tail(clone, last, child.tail)
            continue
        if isinstance(child.tag, str):
            copied = pruned_copy(child, consumed)
        else:
            copied = copy.copy(child)
        copied.tail = child.tail
        clone.append(copied)
        last = copied
    return clone


def serialize(node: etree._Element) -> str:
    """Canonical text for a (copied) element: two-space indent, no declaration, stripped."""
    etree.indent(node, space=INDENT)
    return etree.tostring(node, encoding="unicode").strip()


def serialize_pruned(node: etree._Element, consumed: set) -> str:
    return serialize(pruned_copy(node, consumed))


def serialize_residual(root: etree._Element, consumed: set) -> str:
    """Serialize the root's remainder, keeping comments/PIs that sit outside the root."""
    before = [copy.copy(n) for n in reversed(list(root.itersiblings(preceding=True)))]
    after = [copy.copy(n) for n in root.itersiblings()]
    parts = [etree.tostring(n, encoding="unicode").strip() for n in before]
    parts.append(serialize_pruned(root, consumed))
    parts.extend(etree.tostring(n, encoding="unicode").strip() for n in after)
    return "\n".join(parts)
