"""Exceptions raised by the codec and path helpers."""

from __future__ import annotations


class JsonError(ValueError):
    """Base class for jnest errors."""


class JsonParseError(JsonError):
    """Malformed JSON text.

    Mirrors ``json.JSONDecodeError``: carries the offending offset along with
    the 1-based line and column it maps to.
    """

    def __init__(self, msg: str, doc: str, pos: int) -> None:
        lineno = doc.count("\n", 0, pos) + 1
        colno = pos - doc.rfind("\n", 0, pos)
        super().__init__(f"{msg}: line {lineno} column {colno} (char {pos})")
        self.msg = msg
        self.doc = doc
        self.pos = pos
        self.lineno = lineno
        self.colno = colno

    def __reduce__(self):
        return self.__class__, (self.msg, self.doc, self.pos)


class CycleError(JsonError):
    """A container refers to itself and cannot be serialized."""


class PathError(JsonError, LookupError):
    """A path does not address a writable slot."""

    def __init__(self, path, msg: str = "path is not addressable") -> None:
        super().__init__(f"{msg}: {list(path)!r}")
        self.path = tuple(path)
