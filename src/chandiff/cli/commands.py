"""CLI command implementations"""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session, SQLModel

from chandiff.config import Settings, load_config
from chandiff.core.decompose import decompose
from chandiff.core.errors import ParseError, RevisionNotFound
from chandiff.core.models import ChangeType, ComponentPath, Granularity, LineStyle, Row, SideLine
from chandiff.core.parse import read_document
from chandiff.core.pipeline import Comparison, compare, compare_revisions
from chandiff.core.rollup import TreeNode
from chandiff.core.textdiff import diff_summary, unified_diff
from chandiff.core.utils.hashing import short_hash
from chandiff.crud.database import init_db, make_engine
from chandiff.crud.sql_repo import SQLRepo
from chandiff.log import setup_logging


logger = logging.getLogger(__name__)

TREE_MARKERS = {
    ChangeType.unchanged: " ",
    ChangeType.modified: "~",
    ChangeType.left_only: "-",
    ChangeType.right_only: "+",
}
LINE_MARKERS = {
    LineStyle.normal: " ",
    LineStyle.deleted: "-",
    LineStyle.added: "+",
    LineStyle.changed: "~",
    LineStyle.padding: " ",
}


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    setup_logging(settings.log_level)
    return settings


def _read(path: str) -> str:
    try:
        return read_document(Path(path))
    except OSError as e:
        _fail(f"Cannot read {path}", e)


# --- rendering ---

def _echo_tree(node: TreeNode, depth: int = 0) -> None:
    """Print children of node as an indented change tree with +/-/~ markers."""
    for child in node.children:
        suffix = f" ({child.change.label})" if child.change.label else ""
        typer.echo(f"{'  ' * depth}{TREE_MARKERS[child.change]} {child.label}{suffix}")
        _echo_tree(child, depth + 1)


def _highlight(side: SideLine, open_mark: str, close_mark: str) -> str:
    """Wrap runs of highlighted characters in the given markers."""
    if not side.highlights:
        return side.text
    out, inside = [], False
    for ch, hot in zip(side.text, side.highlights):
        if hot != inside:
            out.append(open_mark if hot else close_mark)
            inside = hot
        out.append(ch)
    if inside:
        out.append(close_mark)
    return "".join(out)


def _cell(side: SideLine, text: str, width: int) -> str:
    number = f"{side.number:>4}" if side.number is not None else "    "
    return f"{number} {LINE_MARKERS[side.style]} {text[:width].ljust(width)}"


def _echo_rows(rows: list[Row], width: int) -> None:
    for row in rows:
        left = _cell(row.left, _highlight(row.left, "[-", "-]"), width)
        right = _cell(row.right, _highlight(row.right, "{+", "+}"), width)
        typer.echo(f"{left} | {right}".rstrip())


def _echo_fallback(error: ParseError, old_text: str, new_text: str, from_label: str, to_label: str) -> None:
    """Whole-document view for revisions that cannot be decomposed."""
    logger.warning("Falling back to whole-document diff: %s", error)
    typer.echo(f"Structured comparison unavailable: {error}")
    typer.echo("Showing whole-document diff instead.")
    lines = unified_diff(old_text, new_text, from_label, to_label)
    typer.echo("".join(lines).rstrip("\n") if lines else "No differences.")


def _echo_report(comparison: Comparison, settings: Settings, component: Optional[str]) -> None:
    """Print summary, change tree, and the side-by-side view of one component."""
    typer.echo(str(comparison.summary))
    tree = comparison.display_tree(settings.changed_only)
    if tree is None:
        typer.echo("No changes.")
    else:
        _echo_tree(tree)

    key = ComponentPath.parse(component) if component else comparison.selected
    if key is None:
        return
    if key not in comparison.changes:
        _fail(f"Unknown component: {component}")

    selected = comparison.component(key)
    stats = diff_summary(*comparison.content_pair(key))
    typer.echo("")
    typer.echo(f"== {key} ({selected.display_name}) ==")
    typer.echo(f"{stats['added']} line(s) added, {stats['deleted']} deleted")
    _echo_rows(comparison.component_rows(key, settings.intraline), settings.column_width)


def _view_overrides(changed_only: bool, no_intraline: bool, granularity, width) -> dict:
    return {
        "changed_only": True if changed_only else None,
        "intraline": False if no_intraline else None,
        "granularity": granularity,
        "column_width": width,
    }


# --- commands ---

def decompose_cmd(
    path: Annotated[str, typer.Argument(help="Channel document to decompose")],
    granularity: Annotated[Optional[Granularity], typer.Option("--granularity", help="step or block")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print components as JSON")] = False,
    ):
    """List the components a document decomposes into."""
    settings = _settings(overrides={"granularity": granularity})
    text = _read(path)
    try:
        result = decompose(text, settings.granularity)
    except ParseError as e:
        _fail(f"Cannot decompose {path}", e)

    if as_json:
        payload = [c.model_dump(mode="json") for c in result.components.values()]
        typer.echo(json.dumps(payload, indent=2))
        return
    for component in result.components.values():
        typer.echo(f"{str(component.key):<60} {component.category.value}")
    typer.echo(f"{len(result)} component(s)")


def diff_cmd(
    old: Annotated[str, typer.Argument(help="Older revision file")],
    new: Annotated[str, typer.Argument(help="Newer revision file")],
    changed_only: Annotated[bool, typer.Option("--changed-only", help="Hide unchanged components")] = False,
    component: Annotated[Optional[str], typer.Option("--component", help="Component key to show, e.g. 'Source Connector/Script'")] = None,
    no_intraline: Annotated[bool, typer.Option("--no-intraline", help="Disable character highlights")] = False,
    granularity: Annotated[Optional[Granularity], typer.Option("--granularity", help="step or block")] = None,
    width: Annotated[Optional[int], typer.Option("--width", help="Column width of the side-by-side view")] = None,
    ):
    """Compare two revision files component by component."""
    settings = _settings(overrides=_view_overrides(changed_only, no_intraline, granularity, width))
    old_text, new_text = _read(old), _read(new)
    try:
        comparison = compare(old_text, new_text, settings.granularity)
    except ParseError as e:
        _echo_fallback(e, old_text, new_text, old, new)
        return
    _echo_report(comparison, settings, component)


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize the revision store. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        SQLModel.metadata.drop_all(engine)
        typer.echo("Existing data cleared.")
    init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def save_cmd(
    item: Annotated[str, typer.Argument(help="Item (channel) id")],
    path: Annotated[str, typer.Argument(help="Document file to store as the next revision")],
    ):
    """Store a document as the item's next revision."""
    settings = _settings()
    text = _read(path)
    engine = make_engine(settings.db_url)
    init_db(engine)
    try:
        with Session(engine) as session:
            revision = SQLRepo(session).save(item, text)
            session.commit()
    except Exception as e:
        _fail("Save failed", e)
    typer.echo(f"Saved {item} revision {revision}")


def revisions_cmd(
    item: Annotated[str, typer.Argument(help="Item (channel) id")],
    ):
    """List stored revisions of an item."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    init_db(engine)
    with Session(engine) as session:
        repo = SQLRepo(session)
        rows = [repo.get_revision(item, n) for n in repo.list_revisions(item)]
    if not rows:
        typer.echo(f"No revisions found for {item}.")
        raise typer.Exit(1)
    for row in rows:
        typer.echo(f"{row.revision:>4}  {short_hash(row.hash)}  {row.created_at:%Y-%m-%d %H:%M:%S}")


def compare_cmd(
    item: Annotated[str, typer.Argument(help="Item (channel) id")],
    rev_a: Annotated[int, typer.Argument(help="Older revision number")],
    rev_b: Annotated[int, typer.Argument(help="Newer revision number")],
    changed_only: Annotated[bool, typer.Option("--changed-only", help="Hide unchanged components")] = False,
    component: Annotated[Optional[str], typer.Option("--component", help="Component key to show")] = None,
    no_intraline: Annotated[bool, typer.Option("--no-intraline", help="Disable character highlights")] = False,
    granularity: Annotated[Optional[Granularity], typer.Option("--granularity", help="step or block")] = None,
    width: Annotated[Optional[int], typer.Option("--width", help="Column width of the side-by-side view")] = None,
    ):
    """Compare two stored revisions of an item."""
    settings = _settings(overrides=_view_overrides(changed_only, no_intraline, granularity, width))
    engine = make_engine(settings.db_url)
    init_db(engine)
    with Session(engine) as session:
        repo = SQLRepo(session)
        try:
            comparison = compare_revisions(repo, item, rev_a, rev_b, settings.granularity)
        except RevisionNotFound as e:
            _fail(str(e))
        except ParseError as e:
            _echo_fallback(
                e, repo.get_content(item, rev_a), repo.get_content(item, rev_b),
                f"{item}@{rev_a}", f"{item}@{rev_b}",
            )
            return
    _echo_report(comparison, settings, component)
