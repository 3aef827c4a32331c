"""Collapse (fold) state mixin for the root panel and layers."""

from __future__ import annotations

from jnest._jsonpath import MISSING, as_path, get_value_at_path, iter_container_paths


class FoldMixin:
    """경로 단위 접기 상태. 값 자체는 절대 변경하지 않는다.

    사용하는 쪽은 ``_collapsed`` 집합과 ``_fold_value()``를 제공해야 한다.
    """

    _collapsed: set[tuple[str | int, ...]]

    def _fold_value(self) -> object:
        raise NotImplementedError

    def _is_foldable(self, path: tuple) -> bool:
        """path 위치의 값이 컨테이너인지 확인."""
        value = get_value_at_path(self._fold_value(), path, MISSING)
        return isinstance(value, (dict, list))

    @property
    def collapsed(self) -> frozenset[tuple[str | int, ...]]:
        return frozenset(self._collapsed)

    def is_collapsed(self, path) -> bool:
        return as_path(path) in self._collapsed

    def _toggle_fold(self, path) -> bool:
        """접기 토글. 컨테이너가 아니면 아무것도 하지 않고 False."""
        key = as_path(path)
        if not self._is_foldable(key):
            return False
        if key in self._collapsed:
            self._collapsed.discard(key)
        else:
            self._collapsed.add(key)
        return True

    def _fold_all_nested(self) -> None:
        """루트를 제외한 모든 depth의 컨테이너를 접는다."""
        self._collapsed = {
            p for p in iter_container_paths(self._fold_value()) if p
        }

    def _unfold_all(self) -> None:
        self._collapsed.clear()
