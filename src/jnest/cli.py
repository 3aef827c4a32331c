"""Command-line entry points: ``jnest`` and ``jnest-diff``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console

from jnest._jsonpath import parse_path
from jnest.codec import safe_parse, serialize, stringify_pretty
from jnest.diff import (
    DEFAULT_CONTEXT_RADIUS,
    DEFAULT_MAX_LINES,
    compute_hunks,
    diff_text,
    window_edits,
)
from jnest.errors import PathError
from jnest.render import render_diff, render_layer_header, render_summary
from jnest.session import ROOT, DocumentSession, LayerStatus


def _fail(prog: str, message: str) -> None:
    Console(stderr=True).print(
        f"{prog}: {message}", markup=False, highlight=False, soft_wrap=True
    )
    sys.exit(1)


def _read(prog: str, file_path: str) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        _fail(prog, f"{file_path}: No such file")
    except OSError as exc:
        _fail(prog, str(exc))


def _print_diff(console: Console, base: str, new: str, context: int, max_lines: int) -> None:
    result = diff_text(base, new, max_lines)
    console.print(render_summary(result, len(compute_hunks(result.edits))))
    if result.edits and not result.identical:
        console.print(render_diff(window_edits(result.edits, context)), soft_wrap=True)


def _split_assignment(text: str) -> tuple[str, str]:
    """``path=json`` -> (path, json). The first ``=`` outside brackets splits."""
    depth = 0
    quote = None
    for i, ch in enumerate(text):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == "=" and depth == 0:
            return text[:i], text[i + 1 :]
    raise argparse.ArgumentTypeError(f"expected PATH=JSON, got {text!r}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="jnest",
        description="Drill into JSON strings embedded in a JSON document",
    )
    parser.add_argument("file", help="JSON file to open")
    parser.add_argument(
        "-o", "--open",
        dest="open_paths",
        action="append",
        default=[],
        metavar="PATH",
        help="open the embedded JSON string at PATH (relative to the previous layer)",
    )
    parser.add_argument(
        "-s", "--set",
        dest="assignments",
        action="append",
        default=[],
        type=_split_assignment,
        metavar="PATH=JSON",
        help="replace the value at PATH in the top layer and commit it to the root",
    )
    parser.add_argument(
        "-c", "--compact",
        action="store_true",
        default=False,
        help="print compact JSON",
    )
    parser.add_argument(
        "-w", "--write",
        action="store_true",
        default=False,
        help="write the updated document back to FILE",
    )
    parser.add_argument(
        "--context",
        type=int,
        default=DEFAULT_CONTEXT_RADIUS,
        help="context lines around changes",
    )
    args = parser.parse_args(argv)

    prog = parser.prog
    content = _read(prog, args.file)
    parsed = safe_parse(content)
    if not parsed.ok:
        _fail(prog, f"{args.file}: {parsed.error}")
    session = DocumentSession(parsed.value)
    console = Console()

    for raw_path in args.open_paths:
        try:
            path = parse_path(raw_path)
        except PathError as exc:
            _fail(prog, str(exc))
        parent = session.top if session.top is not None else ROOT
        result = session.open(parent, path)
        if result.status is LayerStatus.NOT_PARSEABLE:
            _fail(prog, f"{raw_path}: not a JSON object or array string")

    if not args.assignments:
        top = session.top
        value = top.parsed_value if top is not None else session.root
        console.print(render_layer_header(top))
        console.print(serialize(value, pretty=not args.compact), markup=False, highlight=False, soft_wrap=True)
        return

    before = session.source_text
    for raw_path, json_text in args.assignments:
        try:
            path = parse_path(raw_path)
        except PathError as exc:
            _fail(prog, str(exc))
        parent = session.top if session.top is not None else ROOT
        opened = session.open_value_editor(parent, path)
        if not opened.ok:
            _fail(prog, f"{raw_path}: {opened.status.name.lower()}")
        result = session.commit(opened.layer, json_text)
        if not result.ok:
            _fail(prog, f"{raw_path}: {result.error or result.status.name.lower()}")
        session.close(opened.layer)

    after = session.source_text
    _print_diff(console, before, after, args.context, DEFAULT_MAX_LINES)
    if args.write:
        try:
            Path(args.file).write_text(after + "\n", encoding="utf-8")
        except OSError as exc:
            _fail(prog, f"Save failed: {exc}")


def diff_main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="jnest-diff",
        description="Line diff of two JSON files",
    )
    parser.add_argument("file1", help="Base JSON file")
    parser.add_argument("file2", help="Changed JSON file")
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Don't reformat JSON before diffing",
    )
    parser.add_argument(
        "--context",
        type=int,
        default=DEFAULT_CONTEXT_RADIUS,
        help="Context lines around changes",
    )
    parser.add_argument(
        "--max-lines",
        type=int,
        default=DEFAULT_MAX_LINES,
        help="Skip diffs whose combined line count exceeds this",
    )
    args = parser.parse_args(argv)

    texts = []
    for f in (args.file1, args.file2):
        content = _read(parser.prog, f)
        if not args.raw:
            # 파싱 실패 시 원본 그대로 비교
            parsed = safe_parse(content)
            if parsed.ok:
                content = stringify_pretty(parsed.value)
        texts.append(content)

    _print_diff(Console(), texts[0], texts[1], args.context, args.max_lines)


if __name__ == "__main__":
    main()
