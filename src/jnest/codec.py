"""JSON codec that keeps integers beyond double precision exact.

Values map onto native Python types: ``None``, ``bool``, ``str``, ``float``
(JSON numbers), ``int`` (integers whose magnitude exceeds 2**53 - 1),
``list`` and ``dict``.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from decimal import Decimal

from jnest._jsonpath import MISSING
from jnest.errors import CycleError, JsonParseError

INDENT = "  "
MAX_SAFE_INTEGER = 2**53 - 1

_WS = " \t\n\r"
_NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(\.[0-9]+)?([eE][-+]?[0-9]+)?")
_STRING_CHUNK_RE = re.compile(r'[^"\\]*')
_HEX4_RE = re.compile(r"[0-9a-fA-F]{4}")
_LONE_SURROGATE_RE = re.compile("[\ud800-\udfff]")
_URI_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


@dataclass
class ParseResult:
    """Outcome of :func:`safe_parse`."""

    ok: bool
    value: object = None
    error: JsonParseError | None = None


# -- Parsing ---------------------------------------------------------------


class _Parser:
    """Single-pass parser driven by an explicit container stack."""

    def __init__(self, text: str) -> None:
        self.s = text
        self.n = len(text)

    def _error(self, msg: str, pos: int) -> JsonParseError:
        return JsonParseError(msg, self.s, pos)

    def _skip_ws(self, i: int) -> int:
        s, n = self.s, self.n
        while i < n and s[i] in _WS:
            i += 1
        return i

    def parse(self) -> object:
        s = self.s
        stack: list[list | dict] = []
        keys: list[str | None] = []
        i = 0
        while True:
            i = self._skip_ws(i)
            ch = s[i : i + 1]
            if ch == "{":
                i = self._skip_ws(i + 1)
                if s.startswith("}", i):
                    value: object = {}
                    i += 1
                else:
                    key, i = self._scan_key(i)
                    stack.append({})
                    keys.append(key)
                    continue
            elif ch == "[":
                i = self._skip_ws(i + 1)
                if s.startswith("]", i):
                    value = []
                    i += 1
                else:
                    stack.append([])
                    keys.append(None)
                    continue
            elif ch == '"':
                value, i = self._scan_string(i + 1)
            elif s.startswith("true", i):
                value, i = True, i + 4
            elif s.startswith("false", i):
                value, i = False, i + 5
            elif s.startswith("null", i):
                value, i = None, i + 4
            else:
                value, i = self._scan_number(i)

            # Attach the finished value, closing every container it completes.
            while True:
                if not stack:
                    end = self._skip_ws(i)
                    if end != self.n:
                        raise self._error("Extra data", end)
                    return value
                container = stack[-1]
                if isinstance(container, list):
                    container.append(value)
                    close = "]"
                else:
                    container[keys[-1]] = value
                    close = "}"
                i = self._skip_ws(i)
                ch = s[i : i + 1]
                if ch == ",":
                    i += 1
                    if close == "}":
                        keys[-1], i = self._scan_key(self._skip_ws(i))
                    break
                if ch == close:
                    i += 1
                    value = stack.pop()
                    keys.pop()
                    continue
                raise self._error("Expecting ',' delimiter", i)

    def _scan_key(self, i: int) -> tuple[str, int]:
        """Read ``"key" :`` and return the key plus the index after the colon."""
        if not self.s.startswith('"', i):
            raise self._error(
                "Expecting property name enclosed in double quotes", i
            )
        key, i = self._scan_string(i + 1)
        i = self._skip_ws(i)
        if not self.s.startswith(":", i):
            raise self._error("Expecting ':' delimiter", i)
        return key, i + 1

    def _scan_string(self, start: int) -> tuple[str, int]:
        """Decode a string body; ``start`` is just past the opening quote."""
        s, n = self.s, self.n
        chunks: list[str] = []
        i = start
        while True:
            m = _STRING_CHUNK_RE.match(s, i)
            chunks.append(m.group())
            i = m.end()
            if i >= n:
                raise self._error("Unterminated string starting at", start - 1)
            if s[i] == '"':
                return "".join(chunks), i + 1
            esc = s[i + 1 : i + 2]
            if not esc:
                raise self._error("Unterminated string starting at", start - 1)
            if esc in _ESCAPES:
                chunks.append(_ESCAPES[esc])
                i += 2
                continue
            if esc != "u":
                raise self._error("Invalid \\escape", i)
            unit = self._hex4(i + 2)
            if unit is None:
                raise self._error("Invalid \\uXXXX escape", i)
            i += 6
            # A high/low escape pair is one UTF-16 character; join it.
            if 0xD800 <= unit <= 0xDBFF and s.startswith("\\u", i):
                low = self._hex4(i + 2)
                if low is not None and 0xDC00 <= low <= 0xDFFF:
                    unit = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
                    i += 6
            chunks.append(chr(unit))

    def _hex4(self, i: int) -> int | None:
        m = _HEX4_RE.match(self.s, i)
        if m is None:
            return None
        return int(m.group(), 16)

    def _scan_number(self, i: int) -> tuple[object, int]:
        m = _NUMBER_RE.match(self.s, i)
        if m is None:
            raise self._error("Expecting value", i)
        raw = m.group()
        frac, exp = m.group(1), m.group(2)
        if frac or exp:
            return float(raw), m.end()
        if raw == "-0":
            return -0.0, m.end()
        try:
            number = int(raw)
        except ValueError:
            # Exceeds the interpreter's integer string conversion limit.
            raise self._error("Integer literal too long", i) from None
        if abs(number) <= MAX_SAFE_INTEGER:
            return float(number), m.end()
        return number, m.end()


def parse(text: str) -> object:
    """Parse JSON text. Raises :class:`JsonParseError` on malformed input."""
    return _Parser("" if text is None else str(text)).parse()


def safe_parse(text: str) -> ParseResult:
    """Parse without raising; failures come back as ``ok=False``."""
    try:
        return ParseResult(ok=True, value=parse(text))
    except JsonParseError as exc:
        return ParseResult(ok=False, error=exc)


# -- Serialization ---------------------------------------------------------


def format_number(value: float) -> str:
    """Shortest round-trip decimal text laid out like ``Number#toString``."""
    if not math.isfinite(value):
        return "null"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = list(digit_tuple)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    ds = "".join(map(str, digits))
    k = len(ds)
    n = exponent + k
    if k <= n <= 21:
        return sign + ds + "0" * (n - k)
    if 0 < n <= 21:
        return sign + ds[:n] + "." + ds[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + ds
    e = n - 1
    exp = ("+" if e >= 0 else "-") + str(abs(e))
    if k == 1:
        return f"{sign}{ds}e{exp}"
    return f"{sign}{ds[0]}.{ds[1:]}e{exp}"


def quote(text: str) -> str:
    """JSON string literal with lone surrogates escaped."""
    out = json.dumps(text, ensure_ascii=False)
    return _LONE_SURROGATE_RE.sub(lambda m: "\\u%04x" % ord(m.group()), out)


def _scalar_text(value: object) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, int):
        return str(value)
    return quote(str(value))


class _Frame:
    __slots__ = ("container", "items", "depth", "first", "close")

    def __init__(self, container, items, depth: int, close: str) -> None:
        self.container = container
        self.items = items
        self.depth = depth
        self.first = True
        self.close = close


_DONE = object()


def serialize(value: object, pretty: bool = True) -> str:
    """Serialize a JSON value.

    Pretty output indents by two spaces per level; compact output has no
    insignificant whitespace. Raises :class:`CycleError` when a container
    contains itself.
    """
    out: list[str] = []
    active: set[int] = set()  # ids of containers on the current path
    stack: list[_Frame] = []
    colon = ": " if pretty else ":"

    def emit(v: object, depth: int) -> None:
        if isinstance(v, dict):
            if not v:
                out.append("{}")
                return
            items, opener, close = iter(v.items()), "{", "}"
        elif isinstance(v, (list, tuple)):
            if not v:
                out.append("[]")
                return
            items, opener, close = iter(v), "[", "]"
        else:
            out.append(_scalar_text(v))
            return
        if id(v) in active:
            raise CycleError("Converting circular structure to JSON")
        active.add(id(v))
        out.append(opener)
        stack.append(_Frame(v, items, depth, close))

    emit(value, 0)
    while stack:
        frame = stack[-1]
        item = next(frame.items, _DONE)
        if item is _DONE:
            stack.pop()
            active.discard(id(frame.container))
            if pretty:
                out.append("\n" + INDENT * frame.depth)
            out.append(frame.close)
            continue
        if not frame.first:
            out.append(",")
        frame.first = False
        if pretty:
            out.append("\n" + INDENT * (frame.depth + 1))
        if frame.close == "}":
            key, item = item
            out.append(quote(key if isinstance(key, str) else str(key)))
            out.append(colon)
        emit(item, frame.depth + 1)
    return "".join(out)


def copy_value(value: object) -> object:
    """Deep copy of a JSON value without native recursion.

    Tuples come back as lists. A container reached twice is copied once, so
    shared references (and cycles) keep their shape.
    """
    copies: dict[int, object] = {}
    stack: list[tuple[object, object]] = []

    def shell(v: object) -> object:
        if not isinstance(v, (dict, list, tuple)):
            return v
        found = copies.get(id(v))
        if found is not None:
            return found
        new: object = {} if isinstance(v, dict) else []
        copies[id(v)] = new
        stack.append((v, new))
        return new

    root = shell(value)
    while stack:
        src, dst = stack.pop()
        if isinstance(src, dict):
            for key, child in src.items():
                dst[key] = shell(child)
        else:
            dst.extend(shell(child) for child in src)
    return root


def stringify_pretty(value: object) -> str:
    return serialize(value, pretty=True)


def stringify_compact(value: object) -> str:
    return serialize(value, pretty=False)


def clipboard_text(value: object, compact: bool = False) -> str:
    """Text for a "copy value" action.

    Strings come out unquoted, numbers and booleans as literals, null or a
    missing value as empty text, containers as JSON.
    """
    if value is None or value is MISSING:
        return ""
    if isinstance(value, (dict, list, tuple)):
        return serialize(value, pretty=not compact)
    if isinstance(value, str):
        return value
    return _scalar_text(value)


# -- Predicates ------------------------------------------------------------


def is_container(value: object) -> bool:
    return isinstance(value, (dict, list))


def is_json_string(value: object) -> bool:
    """True for strings holding a JSON object or array."""
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not text or text[0] not in "{[":
        return False
    result = safe_parse(text)
    return result.ok and is_container(result.value)


def is_uri_string(value: object) -> bool:
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not text or any(ch.isspace() for ch in text):
        return False
    return bool(_URI_RE.match(text))
