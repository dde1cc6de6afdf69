"""Line and character deltas for component content, plus whole-document fallback diffs"""

import difflib
from typing import Sequence

from diff_match_patch import diff_match_patch

from chandiff.core.models import Delta, DeltaType


SURROGATES = range(0xD800, 0xE000)


def _differ() -> diff_match_patch:
    """diff-match-patch with no time limit, so every diff is a minimal edit script."""
    dmp = diff_match_patch()
    dmp.Diff_Timeout = 0
    return dmp


def _diff_main(old: str, new: str) -> list[tuple[int, str]]:
    """Character diff of old against new; texts with no character in common are one replace."""
    if old and new and set(old).isdisjoint(new):
        return [(diff_match_patch.DIFF_DELETE, old), (diff_match_patch.DIFF_INSERT, new)]
    return _differ().diff_main(old, new, False)


def split_lines(text: str) -> list[str]:
    """Split on '\\n' keeping trailing empty lines; the empty string has no lines."""
    if text == "":
        return []
    return text.split("\n")


def _encode_lines(old: Sequence[str], new: Sequence[str]) -> tuple[str, str]:
    """Map each distinct line to one character so a char diff becomes a line diff."""
    codes: dict[str, str] = {}
    next_code = 0x100

    def encode(lines: Sequence[str]) -> str:
        nonlocal next_code
        chars = []
        for line in lines:
            if line not in codes:
                if next_code in SURROGATES:
                    next_code = SURROGATES.stop
                codes[line] = chr(next_code)
                next_code += 1
            chars.append(codes[line])
        return "".join(chars)

    return encode(old), encode(new)


def _to_deltas(diffs: list[tuple[int, str]]) -> list[Delta]:
    """Turn (op, text) runs into Delta ranges; a run of deletes and inserts is one replace."""
    deltas: list[Delta] = []
    i = j = 0
    deleted = inserted = 0

    def flush() -> None:
        nonlocal i, j, deleted, inserted
        if not (deleted or inserted):
            return
        if deleted and inserted:
            kind = DeltaType.replace
        else:
            kind = DeltaType.delete if deleted else DeltaType.insert
        deltas.append(Delta(kind, i, i + deleted, j, j + inserted))
        i, j = i + deleted, j + inserted
        deleted = inserted = 0

    for op, text in diffs:
        if not text:
            continue
        if op == diff_match_patch.DIFF_EQUAL:
            flush()
            deltas.append(Delta(DeltaType.equal, i, i + len(text), j, j + len(text)))
            i, j = i + len(text), j + len(text)
        elif op == diff_match_patch.DIFF_DELETE:
            deleted += len(text)
        else:
            inserted += len(text)
    flush()
    return deltas


def diff_sequences(old: Sequence[str], new: Sequence[str]) -> list[Delta]:
    """Minimal edit script between two line sequences as Delta runs."""
    old_chars, new_chars = _encode_lines(old, new)
    return _to_deltas(_diff_main(old_chars, new_chars))


def diff_lines(old_text: str, new_text: str) -> list[Delta]:
    """Line deltas between two texts; a delete directly followed by an insert is one replace."""
    return diff_sequences(split_lines(old_text), split_lines(new_text))


def diff_chars(old_line: str, new_line: str) -> tuple[list[bool], list[bool]]:
    """Per-character masks: True marks characters deleted from old_line / inserted into new_line."""
    old_mask = [False] * len(old_line)
    new_mask = [False] * len(new_line)
    for delta in _to_deltas(_diff_main(old_line, new_line)):
        if delta.type is DeltaType.equal:
            continue
        for i in delta.old_range:
            old_mask[i] = True
        for j in delta.new_range:
            new_mask[j] = True
    return old_mask, new_mask


def diff_summary(old: str, new: str) -> dict[str, int]:
    """Return added/deleted/unchanged line counts. Useful for compact change stats."""
    added = deleted = unchanged = 0

    for delta in diff_lines(old, new):
        if delta.type is DeltaType.equal:
            unchanged += delta.old_end - delta.old_start
        else:
            deleted += delta.old_end - delta.old_start
            added += delta.new_end - delta.new_start

    return {"added": added, "deleted": deleted, "unchanged": unchanged}


def unified_diff(
    old: str,
    new: str,
    from_label: str = "old",
    to_label: str = "new",
    context: int = 3,
    ) -> list[str]:
    """Return unified diff lines comparing old to new. Empty list if identical.

    Used for the whole-document view when a revision cannot be decomposed.
    Lines already include newlines; join with '' for display.
    """
    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    return list(
        difflib.unified_diff(old_lines, new_lines, fromfile=from_label, tofile=to_label, n=context)
    )
