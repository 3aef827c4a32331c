"""Path utilities shared by the codec, collapse state and layer stack."""

from __future__ import annotations

import json
import re

from jnest.errors import PathError


class _Missing:
    """Marker for a path that does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def _is_index(key: object) -> bool:
    return isinstance(key, int) and not isinstance(key, bool)


def as_path(path) -> tuple[str | int, ...]:
    """Normalise a path to a hashable tuple, validating segment types."""
    segments = tuple(path)
    for seg in segments:
        if isinstance(seg, str):
            continue
        if not _is_index(seg) or seg < 0:
            raise PathError(segments, f"invalid path segment {seg!r}")
    return segments


def get_value_at_path(data: object, path, default: object = None) -> object:
    """Get the value at a given path in data, or ``default``."""
    current = data
    for key in path:
        if isinstance(current, dict) and isinstance(key, str) and key in current:
            current = current[key]
        elif isinstance(current, list) and _is_index(key):
            if 0 <= key < len(current):
                current = current[key]
            else:
                return default
        else:
            return default
    return current


def can_set_at_path(data: object, path) -> bool:
    """True when :func:`set_value_at_path` would succeed."""
    path = tuple(path)
    if not path:
        return True
    parent = get_value_at_path(data, path[:-1], MISSING)
    key = path[-1]
    if isinstance(parent, dict):
        return isinstance(key, str)
    if isinstance(parent, list):
        return _is_index(key) and 0 <= key <= len(parent)
    return False


def set_value_at_path(data: object, path, value: object) -> object:
    """Write ``value`` into the slot at ``path`` and return the new root.

    The slot's previous content is not inspected. An empty path replaces the
    whole value. An array index equal to the length appends.
    """
    path = tuple(path)
    if not path:
        return value
    if not can_set_at_path(data, path):
        raise PathError(path)
    parent = get_value_at_path(data, path[:-1])
    key = path[-1]
    if isinstance(parent, list) and key == len(parent):
        parent.append(value)
    else:
        parent[key] = value
    return data


def iter_container_paths(data: object, path: tuple = ()):
    """Yield the path of every non-empty container, parents first."""
    stack = [(path, data)]
    while stack:
        current_path, value = stack.pop()
        if isinstance(value, dict):
            children = list(value.items())
        elif isinstance(value, list):
            children = list(enumerate(value))
        else:
            continue
        if not children:
            continue
        yield current_path
        for key, child in reversed(children):
            stack.append((current_path + (key,), child))


def format_path(segments) -> str:
    """Render a path as ``a.b[0]["odd key"]``."""
    out = ""
    for seg in segments:
        if _is_index(seg):
            out += f"[{seg}]"
        elif not out and _IDENTIFIER_RE.match(seg):
            out += seg
        elif _IDENTIFIER_RE.match(seg):
            out += f".{seg}"
        else:
            out += f"[{json.dumps(seg, ensure_ascii=False)}]"
    return out


def join_full_path(parent_full_path: str, rel_segments) -> str:
    rel = format_path(rel_segments)
    if not parent_full_path:
        return rel
    if not rel:
        return parent_full_path
    if rel.startswith("["):
        return parent_full_path + rel
    return f"{parent_full_path}.{rel}"


def parse_path(text: str) -> tuple[str | int, ...]:
    """Parse ``$.a.b[0]``, ``a.b[0]`` or ``a["odd key"]`` into segments.

    Bracketed digits become array indices; quoted or bare names are keys.
    """
    path = text.strip()
    if path.startswith("$"):
        path = path[1:]
    segments: list[str | int] = []
    first = True
    while path:
        if path.startswith("."):
            path = path[1:]
        elif not first and not path.startswith("["):
            raise PathError(segments, f"unexpected character in path {text!r}")
        first = False
        seg, path = _next_segment(path)
        if seg is None:
            raise PathError(segments, f"malformed path {text!r}")
        segments.append(seg)
    return tuple(segments)


def _next_segment(path: str) -> tuple[str | int | None, str]:
    """Extract the next segment from path. Returns (segment, remaining)."""
    if not path:
        return None, ""

    if path.startswith("["):
        inner, end = _bracket_body(path)
        if inner is None:
            return None, path
        if inner.isdigit():
            return int(inner), path[end:]
        if len(inner) >= 2 and inner[0] == inner[-1] and inner[0] in "'\"":
            if inner[0] == '"':
                try:
                    return json.loads(inner), path[end:]
                except json.JSONDecodeError:
                    return inner[1:-1].replace('\\"', '"'), path[end:]
            return inner[1:-1], path[end:]
        return None, path

    if path.startswith("."):
        return None, path

    end = len(path)
    for i, ch in enumerate(path):
        if ch in ".[]":
            end = i
            break

    return path[:end], path[end:]


def _bracket_body(path: str) -> tuple[str | None, int]:
    """Return the text inside a leading ``[...]`` and the index after it."""
    quote = None
    i = 1
    while i < len(path):
        ch = path[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "]":
            return path[1:i], i + 1
        i += 1
    return None, len(path)
