"""Side-by-side row alignment for one component's old and new content"""

from chandiff.core.models import DeltaType, LineStyle, Row, SideLine
from chandiff.core.textdiff import diff_chars, diff_sequences, split_lines


PADDING = SideLine(text="", number=None, style=LineStyle.padding)


def _line(lines: list[str], index: int, style: LineStyle, highlights=None) -> SideLine:
    return SideLine(text=lines[index], number=index + 1, style=style, highlights=highlights)


def align_rows(old_text: str, new_text: str, intraline: bool = True) -> list[Row]:
    """Turn line deltas into aligned (left, right) rows.

    Equal lines appear unstyled on both sides. Deleted lines sit on the left
    against padding, inserted lines mirror that. Within a replace, lines at the
    same offset are paired as changed (with per-character masks when intraline
    is on); the longer side's extra lines are changed lines against padding.
    """
    old, new = split_lines(old_text), split_lines(new_text)
    rows: list[Row] = []

    for delta in diff_sequences(old, new):
        if delta.type is DeltaType.equal:
            for i, j in zip(delta.old_range, delta.new_range):
                rows.append(Row(_line(old, i, LineStyle.normal), _line(new, j, LineStyle.normal)))

        elif delta.type is DeltaType.delete:
            rows.extend(Row(_line(old, i, LineStyle.deleted), PADDING) for i in delta.old_range)

        elif delta.type is DeltaType.insert:
            rows.extend(Row(PADDING, _line(new, j, LineStyle.added)) for j in delta.new_range)

        else:
            old_count = delta.old_end - delta.old_start
            new_count = delta.new_end - delta.new_start
            for offset in range(max(old_count, new_count)):
                i, j = delta.old_start + offset, delta.new_start + offset
                if offset < old_count and offset < new_count:
                    left_mask = right_mask = None
                    if intraline:
                        left, right = diff_chars(old[i], new[j])
                        left_mask, right_mask = tuple(left), tuple(right)
                    rows.append(Row(
                        _line(old, i, LineStyle.changed, left_mask),
                        _line(new, j, LineStyle.changed, right_mask),
                    ))
                elif offset < old_count:
                    rows.append(Row(_line(old, i, LineStyle.changed), PADDING))
                else:
                    rows.append(Row(PADDING, _line(new, j, LineStyle.changed)))
    return rows
