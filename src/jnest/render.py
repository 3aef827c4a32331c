"""Rich text rendering for diff windows and layer headers."""

from __future__ import annotations

from rich.markup import escape
from rich.text import Text

from jnest.diff import DiffEdit, DiffTag, LineDiff, summary
from jnest.session import Layer, LayerMode, Relation

# diff 태그별 배경색 (side-by-side diff 에디터와 동일)
_DIFF_BG = {
    DiffTag.DELETE: "on #72261a",
    DiffTag.INSERT: "on #1e5c34",
    DiffTag.CONTEXT: "",
    DiffTag.SKIP: "dim",
}

_PREFIX = {
    DiffTag.DELETE: "- ",
    DiffTag.INSERT: "+ ",
    DiffTag.CONTEXT: "  ",
    DiffTag.SKIP: "",
}


def render_diff(rows: list[DiffEdit]) -> Text:
    """One line per row with +/- prefixes and diff backgrounds."""
    text = Text(no_wrap=True)
    for i, row in enumerate(rows):
        if i:
            text.append("\n")
        text.append(_PREFIX[row.tag] + row.line, style=_DIFF_BG[row.tag])
    return text


def render_summary(result: LineDiff, hunk_count: int | None = None) -> Text:
    if result.too_large:
        return Text(summary(result), style="bold red")
    if result.identical:
        return Text(summary(result), style="dim")
    text = Text.assemble(
        (f"+{result.add_count}", "green"),
        "  ",
        (f"-{result.del_count}", "red"),
    )
    if hunk_count is not None:
        text.append(f"  ({hunk_count} hunks)", style="dim")
    return text


def render_layer_header(layer: Layer | None) -> Text:
    """Header line: title, nesting level and a modified marker while editing."""
    if layer is None:
        return Text.from_markup("[b]Root[/b]")
    kind = "parsed" if layer.relation is Relation.REPARSE else "value"
    modified = " [+]" if layer.mode is LayerMode.EDITING else ""
    return Text.from_markup(
        f"[b]{escape(layer.title)}[/b] "
        f"[dim](level {layer.index + 1}, {kind}){escape(modified)}[/dim]"
    )
