"""Tests for the Myers line diff and its windowed presentation."""

from jnest.diff import (
    SKIP_MARKER,
    DiffEdit,
    DiffHunk,
    DiffStatus,
    DiffTag,
    apply_edits,
    base_of,
    compute_hunks,
    diff_lines,
    diff_text,
    split_lines,
    summary,
    window_edits,
)


def _tags(result):
    return [e.tag for e in result.edits]


class TestDiffLines:
    """편집 스크립트 계산 테스트."""

    def test_single_replacement(self):
        result = diff_lines(["a", "b", "c"], ["a", "x", "c"])
        assert result.status is DiffStatus.OK
        assert result.edits == [
            DiffEdit(DiffTag.CONTEXT, "a"),
            DiffEdit(DiffTag.DELETE, "b"),
            DiffEdit(DiffTag.INSERT, "x"),
            DiffEdit(DiffTag.CONTEXT, "c"),
        ]
        assert result.add_count == 1
        assert result.del_count == 1

    def test_replay_reconstructs_both_sides(self):
        base = ["a", "b", "c"]
        new = ["a", "x", "c"]
        result = diff_lines(base, new)
        assert apply_edits(result.edits) == new
        assert base_of(result.edits) == base

    def test_identical_inputs(self):
        lines = ["{", '  "a": 1', "}"]
        result = diff_lines(lines, list(lines))
        assert all(t is DiffTag.CONTEXT for t in _tags(result))
        assert result.add_count == 0
        assert result.del_count == 0
        assert result.identical

    def test_both_empty(self):
        result = diff_lines([], [])
        assert result.edits == []
        assert result.identical

    def test_insert_only(self):
        result = diff_lines([], ["a", "b"])
        assert _tags(result) == [DiffTag.INSERT, DiffTag.INSERT]
        assert result.add_count == 2

    def test_delete_only(self):
        result = diff_lines(["a", "b"], [])
        assert _tags(result) == [DiffTag.DELETE, DiffTag.DELETE]
        assert result.del_count == 2

    def test_delete_comes_before_insert(self):
        result = diff_lines(["a"], ["b"])
        assert _tags(result) == [DiffTag.DELETE, DiffTag.INSERT]

    def test_minimal_edit_distance(self):
        """Myers 논문 예제: 최소 편집 거리 5."""
        base = list("abcabba")
        new = list("cbabac")
        result = diff_lines(base, new)
        assert result.add_count + result.del_count == 5
        assert apply_edits(result.edits) == new
        assert base_of(result.edits) == base

    def test_appended_lines(self):
        result = diff_lines(["a"], ["a", "b", "c"])
        assert _tags(result) == [DiffTag.CONTEXT, DiffTag.INSERT, DiffTag.INSERT]

    def test_exact_string_equality(self):
        result = diff_lines(["a "], ["a"])
        assert result.add_count == 1
        assert result.del_count == 1


class TestTooLarge:
    def test_default_ceiling(self):
        result = diff_lines(["x"] * 12500, ["y"] * 12500)
        assert result.status is DiffStatus.TOO_LARGE
        assert result.too_large
        assert result.edits == []
        assert not result.identical

    def test_at_ceiling_is_computed(self):
        result = diff_lines(["x"] * 5, ["x"] * 5, max_lines=10)
        assert result.status is DiffStatus.OK

    def test_custom_ceiling(self):
        result = diff_lines(["x"] * 6, ["x"] * 5, max_lines=10)
        assert result.status is DiffStatus.TOO_LARGE


class TestDiffText:
    def test_splits_on_newline(self):
        result = diff_text("a\nb", "a\nc")
        assert result.add_count == 1
        assert result.del_count == 1

    def test_split_lines(self):
        assert split_lines("") == [""]
        assert split_lines(None) == [""]
        assert split_lines("a\n") == ["a", ""]


class TestWindowEdits:
    """변경 주변 radius 라인만 남기는 윈도우 처리."""

    def _result(self):
        base = [f"l{i}" for i in range(20)]
        new = list(base)
        new[10] = "X"
        return diff_lines(base, new)

    def test_context_window(self):
        rows = window_edits(self._result().edits)
        assert rows == [
            DiffEdit(DiffTag.SKIP, SKIP_MARKER),
            DiffEdit(DiffTag.CONTEXT, "l7"),
            DiffEdit(DiffTag.CONTEXT, "l8"),
            DiffEdit(DiffTag.CONTEXT, "l9"),
            DiffEdit(DiffTag.DELETE, "l10"),
            DiffEdit(DiffTag.INSERT, "X"),
            DiffEdit(DiffTag.CONTEXT, "l11"),
            DiffEdit(DiffTag.CONTEXT, "l12"),
            DiffEdit(DiffTag.CONTEXT, "l13"),
            DiffEdit(DiffTag.SKIP, SKIP_MARKER),
        ]

    def test_zero_radius(self):
        rows = window_edits(self._result().edits, radius=0)
        assert [r.tag for r in rows] == [
            DiffTag.SKIP,
            DiffTag.DELETE,
            DiffTag.INSERT,
            DiffTag.SKIP,
        ]

    def test_does_not_alter_script(self):
        result = self._result()
        before = list(result.edits)
        window_edits(result.edits)
        assert result.edits == before

    def test_no_changes_collapses_to_one_marker(self):
        result = diff_lines(["a", "b"], ["a", "b"])
        assert window_edits(result.edits) == [DiffEdit(DiffTag.SKIP, SKIP_MARKER)]

    def test_empty(self):
        assert window_edits([]) == []

    def test_nearby_changes_share_window(self):
        base = ["a", "b", "c", "d", "e"]
        new = ["A", "b", "c", "d", "E"]
        rows = window_edits(diff_lines(base, new).edits, radius=3)
        assert all(r.tag is not DiffTag.SKIP for r in rows)


class TestHunksAndSummary:
    def test_single_hunk(self):
        result = diff_lines(["a", "b", "c"], ["a", "x", "c"])
        assert compute_hunks(result.edits) == [DiffHunk(1, 1, 1, 1)]

    def test_separate_hunks(self):
        result = diff_lines(["a", "b", "c", "d"], ["x", "b", "c", "y", "z"])
        hunks = compute_hunks(result.edits)
        assert len(hunks) == 2
        assert hunks[0].base_start == 0
        assert hunks[1].next_count == 2

    def test_no_hunks_when_identical(self):
        assert compute_hunks(diff_lines(["a"], ["a"]).edits) == []

    def test_summary(self):
        assert summary(diff_lines(["a"], ["a"])) == "No changes"
        assert summary(diff_lines(["a"], ["b", "c"])) == "+2  -1"
        assert summary(diff_lines(["a"] * 3, ["b"] * 3, max_lines=4)) == (
            "Too large to diff"
        )
