"""Line diff computation (Myers shortest edit script)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

DEFAULT_MAX_LINES = 20_000
DEFAULT_CONTEXT_RADIUS = 3
SKIP_MARKER = "..."


class DiffTag(Enum):
    CONTEXT = auto()  # 양쪽 동일
    INSERT = auto()  # next에만 존재
    DELETE = auto()  # base에만 존재
    SKIP = auto()  # 윈도우 처리에서 생략된 구간 (편집 스크립트에는 없음)


class DiffStatus(Enum):
    OK = auto()
    TOO_LARGE = auto()


@dataclass(frozen=True)
class DiffEdit:
    """편집 스크립트의 한 줄."""

    tag: DiffTag
    line: str


@dataclass
class DiffHunk:
    """연속된 변경 블록."""

    base_start: int  # base 라인 배열에서의 시작 (0-based)
    base_count: int
    next_start: int
    next_count: int


@dataclass
class LineDiff:
    """Diff 결과: 상태, 편집 스크립트, 추가/삭제 수."""

    status: DiffStatus = DiffStatus.OK
    edits: list[DiffEdit] = field(default_factory=list)
    add_count: int = 0
    del_count: int = 0

    @property
    def too_large(self) -> bool:
        return self.status is DiffStatus.TOO_LARGE

    @property
    def identical(self) -> bool:
        """두 입력이 라인 단위로 동일한지 여부."""
        return (
            self.status is DiffStatus.OK
            and self.add_count == 0
            and self.del_count == 0
        )


def split_lines(text: str | None) -> list[str]:
    """텍스트를 \\n 기준으로 분할. 빈 텍스트도 한 줄."""
    return ("" if text is None else str(text)).split("\n")


def _shortest_edit_trace(a: list[str], b: list[str]) -> list[dict[int, int]]:
    """d별로 각 대각선 k의 최대 도달 x를 기록."""
    n, m = len(a), len(b)
    v: dict[int, int] = {1: 0}
    trace: list[dict[int, int]] = []
    for d in range(n + m + 1):
        v_next: dict[int, int] = {}
        done = False
        for k in range(-d, d + 1, 2):
            down = k == -d or (k != d and v.get(k - 1, -1) < v.get(k + 1, -1))
            if down:
                x = v.get(k + 1, 0)
            else:
                x = v.get(k - 1, 0) + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            v_next[k] = x
            if x >= n and y >= m:
                done = True
                break
        trace.append(v_next)
        v = v_next
        if done:
            break
    return trace


def _backtrack(
    a: list[str], b: list[str], trace: list[dict[int, int]]
) -> list[DiffEdit]:
    """(n, m)에서 (0, 0)까지 역추적하여 편집 스크립트 복원."""
    x, y = len(a), len(b)
    edits: list[DiffEdit] = []
    for d in range(len(trace) - 1, 0, -1):
        v_prev = trace[d - 1]
        k = x - y
        down = k == -d or (
            k != d and v_prev.get(k - 1, -1) < v_prev.get(k + 1, -1)
        )
        prev_k = k + 1 if down else k - 1
        prev_x = v_prev.get(prev_k, 0)
        prev_y = prev_x - prev_k

        while x > prev_x and y > prev_y:
            edits.append(DiffEdit(DiffTag.CONTEXT, a[x - 1]))
            x -= 1
            y -= 1

        if x == prev_x:
            edits.append(DiffEdit(DiffTag.INSERT, b[y - 1]))
            y -= 1
        else:
            edits.append(DiffEdit(DiffTag.DELETE, a[x - 1]))
            x -= 1

    # d=0 구간: 공통 접두부
    while x > 0 and y > 0:
        edits.append(DiffEdit(DiffTag.CONTEXT, a[x - 1]))
        x -= 1
        y -= 1
    while x > 0:
        edits.append(DiffEdit(DiffTag.DELETE, a[x - 1]))
        x -= 1
    while y > 0:
        edits.append(DiffEdit(DiffTag.INSERT, b[y - 1]))
        y -= 1

    edits.reverse()
    return edits


def diff_lines(
    base_lines: list[str],
    next_lines: list[str],
    max_lines: int = DEFAULT_MAX_LINES,
) -> LineDiff:
    """두 라인 배열의 최소 편집 스크립트를 계산.

    합계 라인 수가 max_lines를 넘으면 계산하지 않고 TOO_LARGE를 반환.
    """
    a = list(base_lines)
    b = list(next_lines)
    if len(a) + len(b) > max_lines:
        return LineDiff(status=DiffStatus.TOO_LARGE)

    edits = _backtrack(a, b, _shortest_edit_trace(a, b))
    result = LineDiff(edits=edits)
    for e in edits:
        if e.tag is DiffTag.INSERT:
            result.add_count += 1
        elif e.tag is DiffTag.DELETE:
            result.del_count += 1
    return result


def diff_text(
    base_text: str,
    next_text: str,
    max_lines: int = DEFAULT_MAX_LINES,
) -> LineDiff:
    """두 텍스트의 라인 diff."""
    return diff_lines(split_lines(base_text), split_lines(next_text), max_lines)


def apply_edits(edits: list[DiffEdit]) -> list[str]:
    """편집 스크립트로 next 라인 배열 재구성 (DELETE 제외)."""
    return [
        e.line for e in edits if e.tag in (DiffTag.CONTEXT, DiffTag.INSERT)
    ]


def base_of(edits: list[DiffEdit]) -> list[str]:
    """편집 스크립트로 base 라인 배열 재구성 (INSERT 제외)."""
    return [
        e.line for e in edits if e.tag in (DiffTag.CONTEXT, DiffTag.DELETE)
    ]


def compute_hunks(edits: list[DiffEdit]) -> list[DiffHunk]:
    """연속된 INSERT/DELETE를 hunk로 묶는다."""
    hunks: list[DiffHunk] = []
    base_idx = next_idx = 0
    current: DiffHunk | None = None
    for e in edits:
        if e.tag is DiffTag.CONTEXT:
            current = None
            base_idx += 1
            next_idx += 1
            continue
        if current is None:
            current = DiffHunk(base_idx, 0, next_idx, 0)
            hunks.append(current)
        if e.tag is DiffTag.DELETE:
            current.base_count += 1
            base_idx += 1
        elif e.tag is DiffTag.INSERT:
            current.next_count += 1
            next_idx += 1
    return hunks


def window_edits(
    edits: list[DiffEdit], radius: int = DEFAULT_CONTEXT_RADIUS
) -> list[DiffEdit]:
    """변경 라인과 앞뒤 radius 라인만 남기고 나머지 구간은 SKIP 한 줄로 축약.

    편집 스크립트 자체는 변경하지 않는다.
    """
    keep = [False] * len(edits)
    for i, e in enumerate(edits):
        if e.tag is DiffTag.CONTEXT:
            continue
        start = max(0, i - radius)
        end = min(len(edits) - 1, i + radius)
        for j in range(start, end + 1):
            keep[j] = True

    rows: list[DiffEdit] = []
    skipped = False
    for i, e in enumerate(edits):
        if not keep[i]:
            if not skipped:
                rows.append(DiffEdit(DiffTag.SKIP, SKIP_MARKER))
                skipped = True
            continue
        skipped = False
        rows.append(e)
    return rows


def summary(result: LineDiff) -> str:
    """상태 표시용 요약 문자열."""
    if result.too_large:
        return "Too large to diff"
    if result.identical:
        return "No changes"
    return f"+{result.add_count}  -{result.del_count}"
