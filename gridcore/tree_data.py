"""Tree data engine: flattens hierarchical rows into a display list.

Supports two input modes:
1. get_data_path: flat rows with path lists (e.g. ``["USA", "CA", "LA"]``)
2. child_field: nested rows carrying their children in a field

Produces a flat display list with level/expanded/children metadata
suitable for virtual scrolling.
"""

from __future__ import annotations

import dataclasses
import functools
import weakref

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .config import get_settings
from .exceptions import ConfigurationError
from .expansion import ExpansionState, ExpansionTracker
from .log import debug
from .models import Row


if TYPE_CHECKING:
    from .config import GridCoreSettings


@dataclass(eq=False)
class TreeNode:
    """A node in the display tree.

    ``leaf_count`` is 0 for leaves; ancestors sum ``child.leaf_count`` for
    children that have children and 1 for each leaf child.
    """

    data: Row
    id: str
    level: int
    expanded: bool = False
    children: list[TreeNode] = dataclasses.field(default_factory=list, repr=False)
    has_children: bool = False
    leaf_count: int = 0
    _parent: weakref.ReferenceType[TreeNode] | None = dataclasses.field(default=None, repr=False)

    @property
    def parent(self) -> TreeNode | None:
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, node: TreeNode | None) -> None:
        self._parent = weakref.ref(node) if node is not None else None


class TreeData:
    """Hierarchical rows with tri-state expand/collapse, filtering and sorting.

    Path mode is used when ``get_data_path`` is set, children mode otherwise.
    """

    def __init__(self, settings: GridCoreSettings | None = None) -> None:
        tree_settings = (settings or get_settings()).tree
        self._get_data_path: Callable[[Row], Sequence[str]] | None = None
        self._child_field = tree_settings.child_field
        self._row_key = tree_settings.row_key
        self._separator = tree_settings.path_separator
        self._label_field = tree_settings.label_field
        self._expansion = ExpansionTracker(tree_settings.default_expanded)
        self._root_nodes: list[TreeNode] = []
        self._flat_display_list: list[TreeNode] = []

    # --- Properties ---

    @property
    def root_nodes(self) -> list[TreeNode]:
        return self._root_nodes

    @property
    def display_list(self) -> list[TreeNode]:
        return self._flat_display_list

    def get_display_list(self) -> list[TreeNode]:
        return self._flat_display_list

    @property
    def default_expanded(self) -> int:
        return self._expansion.default_depth

    @default_expanded.setter
    def default_expanded(self, value: int) -> None:
        self._expansion.default_depth = value

    @property
    def get_data_path(self) -> Callable[[Row], Sequence[str]] | None:
        return self._get_data_path

    @get_data_path.setter
    def get_data_path(self, fn: Callable[[Row], Sequence[str]] | None) -> None:
        if fn is not None and not callable(fn):
            raise ConfigurationError(
                "get_data_path must be callable or None", option="get_data_path"
            )
        self._get_data_path = fn

    @property
    def child_field(self) -> str:
        return self._child_field

    @child_field.setter
    def child_field(self, field: str) -> None:
        self._child_field = field

    @property
    def row_key(self) -> str:
        return self._row_key

    @row_key.setter
    def row_key(self, key: str) -> None:
        self._row_key = key

    # --- Building ---

    def build_tree(self, rows: Sequence[Row]) -> list[TreeNode]:
        """Build the tree from rows and return the flattened display list."""
        if self._get_data_path is not None:
            self._root_nodes = self._build_from_paths(rows, self._get_data_path)
        else:
            self._root_nodes = self._build_from_children(rows, None, 0)
        self._flat_display_list = []
        self._flatten_tree(self._root_nodes, self._flat_display_list)
        debug(
            f"Built tree from {len(rows)} rows: {len(self._root_nodes)} roots, "
            f"{len(self._flat_display_list)} displayed"
        )
        return self._flat_display_list

    # --- Expand / collapse ---

    def expand_node(self, node_id: str) -> None:
        self._expansion.expand(node_id)
        self._rebuild_display_list()

    def collapse_node(self, node_id: str) -> None:
        """Collapse a node; descendants keep their own state but are hidden."""
        self._expansion.collapse(node_id)
        self._rebuild_display_list()

    def toggle_node(self, node_id: str) -> bool:
        """Toggle a node's effective expansion and return the new state."""
        if self.is_expanded(node_id):
            self.collapse_node(node_id)
            return False
        self.expand_node(node_id)
        return True

    def is_expanded(self, node_id: str) -> bool:
        state = self._expansion.state(node_id)
        if state is not ExpansionState.INHERITED:
            return state is ExpansionState.EXPANDED
        node = self.find_node(node_id)
        if node is None:
            return False
        return self._expansion.default_for(node.level)

    def expand_all(self, depth: int = -1) -> None:
        """Expand all nodes to a given depth (-1 = all)."""
        self._expansion.clear_collapsed()
        self._expand_all_in_tree(self._root_nodes, depth)
        self._rebuild_display_list()

    def collapse_all(self) -> None:
        self._expansion.clear_expanded()
        self._collapse_all_in_tree(self._root_nodes)
        self._rebuild_display_list()

    def find_node(self, node_id: str) -> TreeNode | None:
        return self._find_node(self._root_nodes, node_id)

    # --- Filtering / sorting ---

    def filter_tree(self, predicate: Callable[[Row], bool]) -> list[TreeNode]:
        """Show only matching nodes and the ancestors leading to them.

        Ancestors kept for a matching descendant are shown expanded. The
        stored tree is left untouched; only the display list changes.
        """
        filtered = self._filter_nodes(self._root_nodes, predicate)
        self._flat_display_list = []
        self._flatten_tree(filtered, self._flat_display_list)
        return self._flat_display_list

    def sort_tree(
        self,
        comparator: Callable[[Row, Row], int] | None = None,
        *,
        key: Callable[[Row], Any] | None = None,
        reverse: bool = False,
    ) -> None:
        """Sort children at every level in place, then rebuild the display list.

        Parameters
        ----------
        comparator : callable, optional
            ``(a, b) -> int`` comparing two rows.
        key : callable, optional
            Sort key taking a row; used when no comparator is given.
        reverse : bool
            Sort descending.
        """
        row_key: Callable[[Row], Any]
        if comparator is not None:
            row_key = functools.cmp_to_key(comparator)
        elif key is not None:
            row_key = key
        else:
            return

        self._sort_nodes(self._root_nodes, lambda node: row_key(node.data), reverse)
        self._rebuild_display_list()

    def clear(self) -> None:
        """Reset trees and expansion state."""
        self._root_nodes = []
        self._flat_display_list = []
        self._expansion.clear()

    # --- Path-based tree building ---

    def _build_from_paths(
        self, rows: Sequence[Row], get_path: Callable[[Row], Sequence[str]]
    ) -> list[TreeNode]:
        node_map: dict[str, TreeNode] = {}
        roots: list[TreeNode] = []

        for row in rows:
            path = [str(part) for part in get_path(row)]
            parent: TreeNode | None = None

            for i, segment in enumerate(path):
                path_key = self._separator.join(path[: i + 1])
                node = node_map.get(path_key)

                if node is None:
                    is_leaf = i == len(path) - 1
                    node = TreeNode(
                        data=row
                        if is_leaf
                        else {self._row_key: path_key, self._label_field: segment},
                        id=path_key,
                        level=i,
                    )
                    node.parent = parent
                    node_map[path_key] = node

                    if parent is not None:
                        parent.children.append(node)
                        parent.has_children = True
                    else:
                        roots.append(node)

                parent = node

        self._compute_leaf_counts(roots)
        self._apply_default_expand(roots)
        return roots

    # --- Children-based tree building ---

    def _build_from_children(
        self, rows: Sequence[Row], parent: TreeNode | None, level: int
    ) -> list[TreeNode]:
        nodes: list[TreeNode] = []

        for row in rows:
            row_id = row.get(self._row_key)
            child_rows = row.get(self._child_field)

            node = TreeNode(
                data=row,
                id=str(row_id) if row_id is not None else f"row-{level}-{len(nodes)}",
                level=level,
                has_children=isinstance(child_rows, (list, tuple)) and len(child_rows) > 0,
            )
            node.parent = parent

            if node.has_children:
                node.children = self._build_from_children(child_rows, node, level + 1)

            nodes.append(node)

        self._compute_leaf_counts(nodes)
        self._apply_default_expand(nodes)
        return nodes

    # --- Tree utilities ---

    def _compute_leaf_counts(self, nodes: list[TreeNode]) -> None:
        for node in nodes:
            if node.has_children:
                self._compute_leaf_counts(node.children)
                node.leaf_count = sum(c.leaf_count if c.has_children else 1 for c in node.children)
            else:
                node.leaf_count = 0

    def _apply_default_expand(self, nodes: list[TreeNode]) -> None:
        for node in nodes:
            if node.has_children:
                node.expanded = self._expansion.effective(node.id, node.level)
                self._apply_default_expand(node.children)

    def _flatten_tree(self, nodes: list[TreeNode], out: list[TreeNode]) -> None:
        for node in nodes:
            out.append(node)
            if node.has_children and node.expanded:
                self._flatten_tree(node.children, out)

    def _rebuild_display_list(self) -> None:
        self._apply_default_expand(self._root_nodes)
        self._flat_display_list = []
        self._flatten_tree(self._root_nodes, self._flat_display_list)

    def _find_node(self, nodes: list[TreeNode], node_id: str) -> TreeNode | None:
        for node in nodes:
            if node.id == node_id:
                return node
            if node.children:
                found = self._find_node(node.children, node_id)
                if found is not None:
                    return found
        return None

    def _expand_all_in_tree(self, nodes: list[TreeNode], depth: int) -> None:
        for node in nodes:
            if node.has_children:
                if depth == -1 or node.level < depth:
                    self._expansion.expand(node.id)
                self._expand_all_in_tree(node.children, depth)

    def _collapse_all_in_tree(self, nodes: list[TreeNode]) -> None:
        for node in nodes:
            if node.has_children:
                self._expansion.collapse(node.id)
                self._collapse_all_in_tree(node.children)

    def _filter_nodes(
        self, nodes: list[TreeNode], predicate: Callable[[Row], bool]
    ) -> list[TreeNode]:
        result: list[TreeNode] = []
        for node in nodes:
            if node.has_children:
                filtered_children = self._filter_nodes(node.children, predicate)
                if filtered_children:
                    # Kept for a matching descendant: show it open
                    result.append(
                        dataclasses.replace(node, children=filtered_children, expanded=True)
                    )
                elif predicate(node.data):
                    result.append(dataclasses.replace(node, children=[], expanded=False))
            elif predicate(node.data):
                result.append(node)
        return result

    def _sort_nodes(
        self, nodes: list[TreeNode], sort_key: Callable[[TreeNode], Any], reverse: bool
    ) -> None:
        nodes.sort(key=sort_key, reverse=reverse)
        for node in nodes:
            if node.has_children:
                self._sort_nodes(node.children, sort_key, reverse)
