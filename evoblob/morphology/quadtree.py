"""Array-backed quad tree addressed purely by index arithmetic."""

from __future__ import annotations

from typing import Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

from ..config.constants import MAX_TREE_DEPTH

T = TypeVar("T")

__all__ = ["QuadTree", "tree_capacity"]


def tree_capacity(max_depth: int) -> int:
    """Return the number of slots needed for every node up to ``max_depth``."""

    if max_depth < 0 or max_depth > MAX_TREE_DEPTH:
        raise ValueError(f"max_depth must be between 0 and {MAX_TREE_DEPTH}, got {max_depth}")
    return (4 ** (max_depth + 1) - 1) // 3


class QuadTree(Generic[T]):
    """Fixed-capacity tree with branching factor four.

    Node ``i`` keeps its children at ``4i+1 .. 4i+4`` (top, bottom, left,
    right) and its parent at ``(i-1) // 4``. Slots hold either ``None``
    (empty) or a payload. Child indices past the end of the slot list are
    legal to compute and always read as empty.
    """

    def __init__(self, max_depth: int) -> None:
        capacity = tree_capacity(max_depth)
        self.max_depth = max_depth
        self.nodes: List[Optional[T]] = [None] * capacity

    @property
    def capacity(self) -> int:
        return len(self.nodes)

    def get(self, index: int) -> Optional[T]:
        """Return the payload at ``index`` or ``None`` when empty or out of range."""

        if 0 <= index < len(self.nodes):
            return self.nodes[index]
        return None

    def parent(self, index: int) -> Optional[int]:
        if index <= 0:
            return None
        return (index - 1) // 4

    def children(self, index: int) -> Tuple[int, int, int, int]:
        base = 4 * index
        return (base + 1, base + 2, base + 3, base + 4)

    def depth(self, index: int) -> int:
        """Return ``floor(log4(index))``; the root counts as depth 0.

        This is coarser than the level a node sits on (index 4 is depth 1
        while 1..3 are depth 0) and is what ``branchable_nodes`` cuts on.
        """

        depth = 0
        bound = 4
        while index >= bound:
            depth += 1
            bound *= 4
        return depth

    def is_leaf(self, index: int) -> bool:
        return all(self.get(child) is None for child in self.children(index))

    def clean_subtree(self, index: int) -> None:
        """Empty ``index`` and every occupied descendant."""

        if 0 <= index < len(self.nodes):
            self.nodes[index] = None
        self.clean_subtree_without_self(index)

    def clean_subtree_without_self(self, index: int) -> None:
        for child in self.children(index):
            if self.get(child) is not None:
                self.clean_subtree(child)

    def branchable_nodes(self) -> List[int]:
        """Occupied nodes with ``depth < max_depth - 1`` and at least one empty child.

        Mutation uses these as candidates for growing a new limb.
        """

        result: List[int] = []
        for index, node in enumerate(self.nodes):
            if node is None or self.depth(index) >= self.max_depth - 1:
                continue
            if any(self.get(child) is None for child in self.children(index)):
                result.append(index)
        return result

    def iter_depth_first(
        self,
        start: int = 0,
        *,
        descend: Optional[Callable[[T], bool]] = None,
    ) -> Iterator[int]:
        """Yield occupied indices in pre-order starting at ``start``.

        ``descend`` can veto walking below a payload (e.g. marker nodes).
        """

        if self.get(start) is None:
            return
        stack: List[int] = [start]
        while stack:
            index = stack.pop()
            node = self.get(index)
            if node is None:
                continue
            yield index
            if descend is not None and not descend(node):
                continue
            stack.extend(reversed(self.children(index)))

    def format_tree(self) -> str:
        """Return an indented dump of the occupied nodes for debugging."""

        lines = ["QuadTree {"]

        def _print_node(index: int, indent: str) -> None:
            node = self.get(index)
            if node is None:
                return
            lines.append(f"{indent}- Node {index}: {node!r}")
            for child in self.children(index):
                _print_node(child, indent + "  ")

        _print_node(0, "  ")
        lines.append("}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return sum(1 for node in self.nodes if node is not None)

    def __repr__(self) -> str:
        return f"QuadTree(max_depth={self.max_depth}, occupied={len(self)}/{self.capacity})"
