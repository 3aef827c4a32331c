"""Document session: root value plus a stack of embedded-JSON layers.

A layer is opened either by reparsing a JSON string found in its parent
(``Relation.REPARSE``) or by isolating a sub-value for direct editing
(``Relation.VALUE``). Committing a layer writes its value back into the
parent slot it came from and repeats that step up to the root, re-encoding
to a compact JSON string wherever the relation is a reparse.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from jnest._fold import FoldMixin
from jnest._jsonpath import (
    MISSING,
    as_path,
    can_set_at_path,
    get_value_at_path,
    join_full_path,
    set_value_at_path,
)
from jnest.codec import (
    clipboard_text,
    copy_value,
    is_container,
    parse,
    stringify_compact,
    stringify_pretty,
)
from jnest.diff import DEFAULT_MAX_LINES, LineDiff, diff_text
from jnest.errors import CycleError, JsonError, JsonParseError, PathError

ROOT = -1


class LayerMode(Enum):
    VIEWING = auto()
    EDITING = auto()


class Relation(Enum):
    REPARSE = auto()  # parent slot holds a JSON string
    VALUE = auto()  # parent slot holds the value itself


class LayerStatus(Enum):
    OK = auto()
    NOT_PARSEABLE = auto()
    PARSE_ERROR = auto()
    CYCLE_ERROR = auto()
    STALE_PATH = auto()
    NO_OP = auto()


@dataclass
class LayerResult:
    status: LayerStatus
    layer: Layer | None = None
    error: JsonError | None = None

    @property
    def ok(self) -> bool:
        return self.status is LayerStatus.OK


class _Editable(FoldMixin):
    """View/edit cycle shared by the root panel and layers."""

    def __init__(self) -> None:
        self.mode: LayerMode = LayerMode.VIEWING
        self.pending_text: str | None = None
        self._collapsed = set()

    @property
    def editing(self) -> bool:
        return self.mode is LayerMode.EDITING

    def _begin_edit(self) -> None:
        self.pending_text = stringify_pretty(self._fold_value())
        self.mode = LayerMode.EDITING

    def _end_edit(self) -> None:
        self.mode = LayerMode.VIEWING
        self.pending_text = None


class RootPanel(_Editable):
    """The root document as shown in the main panel."""

    def __init__(self, session: DocumentSession) -> None:
        super().__init__()
        self._session = session

    def _fold_value(self) -> object:
        return self._session.root


class Layer(_Editable):
    """One open embedded-JSON view."""

    def __init__(
        self,
        index: int,
        parsed_value: object,
        parent: int,
        parent_path: tuple[str | int, ...],
        relation: Relation,
        full_path: str,
    ) -> None:
        super().__init__()
        self.index = index
        self.parsed_value = parsed_value
        self.parent = parent
        self.parent_path = parent_path
        self.relation = relation
        self.full_path = full_path

    def _fold_value(self) -> object:
        return self.parsed_value

    @property
    def title(self) -> str:
        verb = "parse" if self.relation is Relation.REPARSE else "edit"
        return f"Layer {self.index + 1} {verb} - {self.full_path or '$'}"

    def __repr__(self) -> str:
        return (
            f"Layer(index={self.index}, parent={self.parent}, "
            f"path={list(self.parent_path)!r}, relation={self.relation.name}, "
            f"mode={self.mode.name})"
        )


class DocumentSession:
    """Owns the root value, the root panel and the layer stack.

    Operations are synchronous and must not interleave; every mutating
    operation returns a :class:`LayerResult` instead of raising.
    """

    def __init__(self, root: object = None) -> None:
        self.root: object = root
        self.layers: list[Layer] = []
        self.panel = RootPanel(self)

    @classmethod
    def from_text(cls, text: str) -> DocumentSession:
        """Build a session from JSON text. Raises JsonParseError."""
        return cls(parse(text))

    # -- Helpers -----------------------------------------------------------

    @property
    def top(self) -> Layer | None:
        return self.layers[-1] if self.layers else None

    @property
    def source_text(self) -> str:
        """Pretty serialization of the root value.

        Raises :class:`CycleError` for a root that contains itself.
        """
        return stringify_pretty(self.root)

    def _layer(self, ref: int | Layer | None) -> Layer | None:
        """Resolve an index or Layer to a live layer on this stack."""
        if isinstance(ref, Layer):
            if 0 <= ref.index < len(self.layers) and self.layers[ref.index] is ref:
                return ref
            return None
        if isinstance(ref, int) and not isinstance(ref, bool):
            if 0 <= ref < len(self.layers):
                return self.layers[ref]
        return None

    def _parent_ref(self, parent: int | Layer) -> tuple[int, object, str] | None:
        """(index, current value, full path) of a parent, or None."""
        if parent == ROOT:
            return ROOT, self.root, ""
        layer = self._layer(parent)
        if layer is None:
            return None
        return layer.index, layer.parsed_value, layer.full_path

    def _parent_value(self, layer: Layer) -> object:
        if layer.parent == ROOT:
            return self.root
        return self.layers[layer.parent].parsed_value

    def _chain(self, layer: Layer) -> list[Layer]:
        """The layer followed by each ancestor layer up to the root."""
        chain = [layer]
        while chain[-1].parent != ROOT:
            chain.append(self.layers[chain[-1].parent])
        return chain

    def _truncate(self, index: int) -> None:
        del self.layers[index:]

    # -- Root document -----------------------------------------------------

    def load(self, text: str) -> LayerResult:
        """Replace the root with parsed text, closing every layer."""
        try:
            value = parse(text)
        except JsonParseError as exc:
            return LayerResult(LayerStatus.PARSE_ERROR, error=exc)
        self.root = value
        self.close_all()
        self.panel._end_edit()
        self.panel._unfold_all()
        return LayerResult(LayerStatus.OK)

    def edit_root(self) -> LayerResult:
        if self.panel.editing:
            return LayerResult(LayerStatus.NO_OP)
        try:
            self.panel._begin_edit()
        except CycleError as exc:
            return LayerResult(LayerStatus.CYCLE_ERROR, error=exc)
        return LayerResult(LayerStatus.OK)

    def set_root_pending_text(self, text: str) -> LayerResult:
        if not self.panel.editing:
            return LayerResult(LayerStatus.NO_OP)
        self.panel.pending_text = text
        return LayerResult(LayerStatus.OK)

    def cancel_root(self) -> LayerResult:
        if not self.panel.editing:
            return LayerResult(LayerStatus.NO_OP)
        self.panel._end_edit()
        return LayerResult(LayerStatus.OK)

    def commit_root(self, text: str | None = None) -> LayerResult:
        """Install the root panel's pending text as the new root.

        Every open layer is closed since their parent paths were resolved
        against the old root.
        """
        if not self.panel.editing:
            return LayerResult(LayerStatus.NO_OP)
        if text is not None:
            self.panel.pending_text = text
        try:
            value = parse(self.panel.pending_text)
        except JsonParseError as exc:
            return LayerResult(LayerStatus.PARSE_ERROR, error=exc)
        self.root = value
        self.close_all()
        self.panel._end_edit()
        return LayerResult(LayerStatus.OK)

    def toggle_root_collapse(self, path) -> LayerResult:
        try:
            toggled = self.panel._toggle_fold(path)
        except PathError as exc:
            return LayerResult(LayerStatus.NO_OP, error=exc)
        return LayerResult(LayerStatus.OK if toggled else LayerStatus.NO_OP)

    def preview_root(
        self, text: str | None = None, max_lines: int = DEFAULT_MAX_LINES
    ) -> LineDiff | None:
        """Diff the root's pretty form against pending or given text.

        None when the root cannot be serialized.
        """
        try:
            base = stringify_pretty(self.root)
        except CycleError:
            return None
        if text is None:
            text = self.panel.pending_text if self.panel.editing else base
        return diff_text(base, text, max_lines)

    # -- Layers ------------------------------------------------------------

    def open(self, parent: int | Layer, path) -> LayerResult:
        """Push a layer for the JSON string found at ``path`` in ``parent``.

        The string must parse into an object or array; otherwise nothing
        changes and NOT_PARSEABLE is returned.
        """
        ref = self._parent_ref(parent)
        if ref is None:
            return LayerResult(LayerStatus.NO_OP)
        parent_index, parent_value, parent_full_path = ref
        try:
            path = as_path(path)
        except PathError as exc:
            return LayerResult(LayerStatus.NO_OP, error=exc)

        raw = get_value_at_path(parent_value, path, MISSING)
        if not isinstance(raw, str):
            return LayerResult(LayerStatus.NOT_PARSEABLE)
        text = raw.strip()
        if not text or text[0] not in "{[":
            return LayerResult(LayerStatus.NOT_PARSEABLE)
        try:
            value = parse(text)
        except JsonParseError as exc:
            return LayerResult(LayerStatus.NOT_PARSEABLE, error=exc)
        if not is_container(value):
            return LayerResult(LayerStatus.NOT_PARSEABLE)

        layer = Layer(
            index=len(self.layers),
            parsed_value=value,
            parent=parent_index,
            parent_path=path,
            relation=Relation.REPARSE,
            full_path=join_full_path(parent_full_path, path),
        )
        self.layers.append(layer)
        return LayerResult(LayerStatus.OK, layer)

    def open_value_editor(self, parent: int | Layer, path) -> LayerResult:
        """Push an editing layer for the value at ``path``.

        An unresolved path edits ``null``.
        """
        ref = self._parent_ref(parent)
        if ref is None:
            return LayerResult(LayerStatus.NO_OP)
        parent_index, parent_value, parent_full_path = ref
        try:
            path = as_path(path)
        except PathError as exc:
            return LayerResult(LayerStatus.NO_OP, error=exc)

        value = get_value_at_path(parent_value, path, MISSING)
        if value is MISSING:
            value, text = None, "null"
        else:
            try:
                text = stringify_pretty(value)
            except CycleError as exc:
                return LayerResult(LayerStatus.CYCLE_ERROR, error=exc)
            value = copy_value(value)

        layer = Layer(
            index=len(self.layers),
            parsed_value=value,
            parent=parent_index,
            parent_path=path,
            relation=Relation.VALUE,
            full_path=join_full_path(parent_full_path, path),
        )
        layer.mode = LayerMode.EDITING
        layer.pending_text = text
        self.layers.append(layer)
        return LayerResult(LayerStatus.OK, layer)

    def edit(self, layer: int | Layer) -> LayerResult:
        current = self._layer(layer)
        if current is None or current.editing:
            return LayerResult(LayerStatus.NO_OP, current)
        try:
            current._begin_edit()
        except CycleError as exc:
            return LayerResult(LayerStatus.CYCLE_ERROR, current, exc)
        return LayerResult(LayerStatus.OK, current)

    def set_pending_text(self, layer: int | Layer, text: str) -> LayerResult:
        current = self._layer(layer)
        if current is None or not current.editing:
            return LayerResult(LayerStatus.NO_OP, current)
        current.pending_text = text
        return LayerResult(LayerStatus.OK, current)

    def cancel(self, layer: int | Layer) -> LayerResult:
        """Drop pending edits and return to viewing. No sync."""
        current = self._layer(layer)
        if current is None or not current.editing:
            return LayerResult(LayerStatus.NO_OP, current)
        current._end_edit()
        return LayerResult(LayerStatus.OK, current)

    def commit(self, layer: int | Layer, text: str | None = None) -> LayerResult:
        """Validate the pending text and propagate it up to the root.

        On a parse failure the layer stays in editing mode. On success the
        layer's value is replaced, each ancestor slot along the parent chain
        is overwritten, and every layer above the committed one is closed.
        """
        current = self._layer(layer)
        if current is None or not current.editing:
            return LayerResult(LayerStatus.NO_OP, current)
        if text is not None:
            current.pending_text = text
        try:
            value = parse(current.pending_text)
        except JsonParseError as exc:
            return LayerResult(LayerStatus.PARSE_ERROR, current, exc)

        # All slots are checked before anything is written.
        for step in self._chain(current):
            if not can_set_at_path(self._parent_value(step), step.parent_path):
                return LayerResult(
                    LayerStatus.STALE_PATH, current, PathError(step.parent_path)
                )

        current.parsed_value = value
        current._end_edit()
        self._sync_up(current)
        self._truncate(current.index + 1)
        self.panel._end_edit()
        return LayerResult(LayerStatus.OK, current)

    def _sync_up(self, layer: Layer) -> None:
        """Write each layer of the chain into its parent's slot, in order."""
        for step in self._chain(layer):
            if step.relation is Relation.REPARSE:
                encoded = stringify_compact(step.parsed_value)
            else:
                encoded = copy_value(step.parsed_value)
            if step.parent == ROOT:
                self.root = set_value_at_path(self.root, step.parent_path, encoded)
            else:
                parent = self.layers[step.parent]
                parent.parsed_value = set_value_at_path(
                    parent.parsed_value, step.parent_path, encoded
                )

    def close(self, layer: int | Layer) -> LayerResult:
        """Close the layer and every layer above it. Uncommitted edits are lost."""
        current = self._layer(layer)
        if current is None:
            return LayerResult(LayerStatus.NO_OP)
        self._truncate(current.index)
        return LayerResult(LayerStatus.OK, current)

    def close_top(self) -> LayerResult:
        if not self.layers:
            return LayerResult(LayerStatus.NO_OP)
        return self.close(self.layers[-1])

    def close_all(self) -> None:
        self._truncate(0)

    def toggle_collapse(self, layer: int | Layer, path) -> LayerResult:
        current = self._layer(layer)
        if current is None:
            return LayerResult(LayerStatus.NO_OP)
        try:
            toggled = current._toggle_fold(path)
        except PathError as exc:
            return LayerResult(LayerStatus.NO_OP, current, exc)
        return LayerResult(LayerStatus.OK if toggled else LayerStatus.NO_OP, current)

    def collapse_all(self, layer: int | Layer = ROOT) -> LayerResult:
        """Collapse every nested container of the root panel or a layer."""
        target = self.panel if layer == ROOT else self._layer(layer)
        if target is None:
            return LayerResult(LayerStatus.NO_OP)
        target._fold_all_nested()
        return LayerResult(LayerStatus.OK, None if layer == ROOT else target)

    def expand_all(self, layer: int | Layer = ROOT) -> LayerResult:
        target = self.panel if layer == ROOT else self._layer(layer)
        if target is None:
            return LayerResult(LayerStatus.NO_OP)
        target._unfold_all()
        return LayerResult(LayerStatus.OK, None if layer == ROOT else target)

    def preview(
        self,
        layer: int | Layer,
        text: str | None = None,
        max_lines: int = DEFAULT_MAX_LINES,
    ) -> LineDiff | None:
        """Diff a layer's committed pretty form against pending or given text.

        None for an unknown layer or a value that cannot be serialized.
        """
        current = self._layer(layer)
        if current is None:
            return None
        try:
            base = stringify_pretty(current.parsed_value)
        except CycleError:
            return None
        if text is None:
            text = current.pending_text if current.editing else base
        return diff_text(base, text, max_lines)

    # -- Copy --------------------------------------------------------------

    def copy_text(
        self, layer: int | Layer = ROOT, path=(), compact: bool = False
    ) -> str | None:
        """Text a copy action would produce, or None if it cannot be built.

        While the target is being edited its pending text is what gets copied.
        """
        if layer == ROOT:
            target: _Editable = self.panel
            value = self.root
        else:
            target = self._layer(layer)
            if target is None:
                return None
            value = target.parsed_value
        if target.editing:
            try:
                value = parse(target.pending_text)
            except JsonParseError:
                return None
        try:
            return clipboard_text(
                get_value_at_path(value, as_path(path), MISSING), compact=compact
            )
        except (CycleError, PathError):
            return None
