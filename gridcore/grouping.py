"""Row grouping engine.

Groups flat rows into a multi-level tree keyed by one or more field values,
computes per-group aggregates, and flattens the tree into a display list
that honors per-group expand/collapse state.

Usage:
    from gridcore.grouping import RowGrouping

    rg = RowGrouping()
    rg.group_columns = ["dept", "role"]
    rg.set_agg_columns([AggColumn(field="salary", agg_func="sum")])
    display = rg.group(rows)
    rg.toggle_group("dept=Engineering")
"""

from __future__ import annotations

import dataclasses
import weakref

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .aggregation import apply_agg
from .config import get_settings
from .exceptions import AggregationError
from .expansion import ExpansionState, ExpansionTracker
from .log import debug
from .models import AggColumn, ColumnDef, Row


if TYPE_CHECKING:
    from .config import GridCoreSettings


@dataclass(eq=False)
class RowNode:
    """A display node: either a synthetic group row or a leaf wrapping a row.

    Attributes
    ----------
    data : Row
        The wrapped row for leaves; an empty dict for groups.
    id : str
        Key path for groups (``dept=Sales|role=Rep``), ``leaf-<n>`` for leaves.
    row_index : int
        Position among siblings.
    level : int
        Depth in the tree (0 for top-level nodes).
    group : bool
        True for group rows.
    expanded : bool
        Effective expansion, recomputed on every rebuild.
    key : str
        Bucket value for groups (``"(blank)"`` for missing values).
    field : str
        Field the group buckets on.
    agg_data : dict
        Aggregated values per aggregated field (groups only).
    """

    data: Row
    id: str
    row_index: int
    level: int
    group: bool = False
    expanded: bool = False
    children: list[RowNode] = dataclasses.field(default_factory=list, repr=False)
    all_leaf_children: list[RowNode] = dataclasses.field(default_factory=list, repr=False)
    key: str = ""
    field: str = ""
    agg_data: dict[str, Any] = dataclasses.field(default_factory=dict)
    _parent: weakref.ReferenceType[RowNode] | None = dataclasses.field(default=None, repr=False)

    @property
    def parent(self) -> RowNode | None:
        """The enclosing group, held weakly (the tree owns its nodes root to leaf)."""
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, node: RowNode | None) -> None:
        self._parent = weakref.ref(node) if node is not None else None


class RowGrouping:
    """Multi-level row grouping with aggregation and tri-state expansion.

    ``group_default_expanded``: ``-1`` expands every level, ``0`` leaves all
    groups collapsed, ``N`` expands levels ``< N``. Explicit collapse wins
    over explicit expand, which wins over the default depth.
    """

    def __init__(self, settings: GridCoreSettings | None = None) -> None:
        grouping_settings = (settings or get_settings()).grouping
        self._group_columns: list[str] = []
        self._blank_key = grouping_settings.blank_key
        self._expansion = ExpansionTracker(grouping_settings.default_expanded)
        self._custom_agg_funcs: dict[str, Callable[..., Any]] = {}
        self._agg_columns: list[AggColumn] = []
        self._root_nodes: list[RowNode] = []
        self._flat_display_list: list[RowNode] = []

    # --- Properties ---

    @property
    def group_columns(self) -> list[str]:
        return list(self._group_columns)

    @group_columns.setter
    def group_columns(self, value: Sequence[str]) -> None:
        self._group_columns = list(value)

    @property
    def group_default_expanded(self) -> int:
        return self._expansion.default_depth

    @group_default_expanded.setter
    def group_default_expanded(self, value: int) -> None:
        self._expansion.default_depth = value

    @property
    def expanded_groups(self) -> list[str]:
        return self._expansion.expanded_keys

    @property
    def collapsed_groups(self) -> list[str]:
        return self._expansion.collapsed_keys

    @property
    def root_nodes(self) -> list[RowNode]:
        return self._root_nodes

    @property
    def is_grouped(self) -> bool:
        return len(self._group_columns) > 0

    @property
    def agg_columns(self) -> list[AggColumn]:
        return list(self._agg_columns)

    # --- Aggregation configuration ---

    def set_agg_funcs(self, funcs: dict[str, Callable[..., Any]]) -> None:
        """Register named aggregation functions.

        Named lookups check this registry before the built-ins, so a custom
        ``"sum"`` shadows the built-in one.

        Raises
        ------
        AggregationError
            If any entry is not callable.
        """
        for name, fn in funcs.items():
            if not callable(fn):
                raise AggregationError(
                    "Aggregation function must be callable", name=name, got=type(fn).__name__
                )
        self._custom_agg_funcs = dict(funcs)

    def set_agg_columns(self, cols: Sequence[AggColumn | dict[str, Any]]) -> None:
        """Configure which fields group rows aggregate, and how."""
        self._agg_columns = [c if isinstance(c, AggColumn) else AggColumn(**c) for c in cols]

    def build_agg_columns_from_defs(self, columns: Sequence[ColumnDef]) -> None:
        """Derive the aggregated columns from ``ColumnDef.agg_func``."""
        self._agg_columns = [
            AggColumn(field=col.field, agg_func=col.agg_func) for col in columns if col.agg_func
        ]

    # --- Building ---

    def group(self, rows: Sequence[Row]) -> list[RowNode]:
        """Group rows and produce the flat display list.

        Returns
        -------
        list[RowNode]
            Group rows interleaved with the leaves of expanded groups.
        """
        if not self._group_columns:
            self._root_nodes = [self._create_leaf_node(row, i, None) for i, row in enumerate(rows)]
            self._flat_display_list = list(self._root_nodes)
            return self._flat_display_list

        self._root_nodes = self._build_group_tree(list(rows), 0, None, [])
        self._compute_aggregation(self._root_nodes)

        self._flat_display_list = []
        self._flatten_tree(self._root_nodes, self._flat_display_list)
        debug(
            f"Grouped {len(rows)} rows by {self._group_columns}: "
            f"{len(self._root_nodes)} top-level groups, {len(self._flat_display_list)} displayed"
        )
        return self._flat_display_list

    def get_display_list(self) -> list[RowNode]:
        """Get the flat display list (call after group())."""
        return self._flat_display_list

    @property
    def display_list(self) -> list[RowNode]:
        return self._flat_display_list

    # --- Expand / collapse ---

    def expand_group(self, key_path: str) -> None:
        """Expand a group by key path (e.g. ``"dept=Sales"`` or ``"dept=Sales|role=Rep"``)."""
        self._expansion.expand(key_path)
        self._rebuild_display_list()

    def collapse_group(self, key_path: str) -> None:
        """Collapse a group and every group beneath it.

        Descendants are force-collapsed even when they were explicitly or
        default-expanded, and explicit expansions under ``key_path`` are dropped.
        """
        self._expansion.collapse(key_path)
        node = self.find_node(key_path)
        if node is not None:
            self._collapse_all_nodes(node.children)
        prefix = key_path + "|"
        self._expansion.discard_expanded(lambda key: key.startswith(prefix))
        self._rebuild_display_list()

    def toggle_group(self, key_path: str) -> bool:
        """Toggle a group based on its effective expansion.

        Returns
        -------
        bool
            The new expansion state.
        """
        if self.is_expanded(key_path):
            self.collapse_group(key_path)
            return False
        self.expand_group(key_path)
        return True

    def expand_all(self, depth: int = -1) -> None:
        """Expand all groups to a given depth (-1 = all)."""
        self._expansion.clear_collapsed()
        self._expand_all_nodes(self._root_nodes, depth)
        self._rebuild_display_list()

    def collapse_all(self) -> None:
        """Collapse all groups."""
        self._expansion.clear_expanded()
        self._collapse_all_nodes(self._root_nodes)
        self._rebuild_display_list()

    def is_expanded(self, key_path: str) -> bool:
        """Check if a group key path is expanded.

        Unknown key paths without an explicit override are not expanded.
        """
        state = self._expansion.state(key_path)
        if state is not ExpansionState.INHERITED:
            return state is ExpansionState.EXPANDED
        node = self.find_node(key_path)
        if node is None:
            return False
        return self._expansion.default_for(node.level)

    def find_node(self, key_path: str) -> RowNode | None:
        """Find a node by id in the current tree."""
        return self._find_node(self._root_nodes, key_path)

    def clear(self) -> None:
        """Reset trees and expansion state."""
        self._root_nodes = []
        self._flat_display_list = []
        self._expansion.clear()

    # --- Tree building ---

    def _build_group_tree(
        self,
        rows: list[Row],
        level: int,
        parent: RowNode | None,
        path_parts: list[str],
    ) -> list[RowNode]:
        group_field = self._group_columns[level]
        buckets: dict[str, list[Row]] = {}

        for row in rows:
            value = row.get(group_field)
            key = self._blank_key if value is None else str(value)
            buckets.setdefault(key, []).append(row)

        nodes: list[RowNode] = []
        for row_index, (key, bucket_rows) in enumerate(buckets.items()):
            parts = [*path_parts, f"{group_field}={key}"]
            key_path = "|".join(parts)

            group_node = RowNode(
                data={},
                id=key_path,
                row_index=row_index,
                level=level,
                group=True,
                expanded=self._expansion.effective(key_path, level),
                key=key,
                field=group_field,
            )
            group_node.parent = parent

            if level + 1 < len(self._group_columns):
                group_node.children = self._build_group_tree(
                    bucket_rows, level + 1, group_node, parts
                )
                for child in group_node.children:
                    group_node.all_leaf_children.extend(child.all_leaf_children)
            else:
                group_node.children = [
                    self._create_leaf_node(row, i, group_node) for i, row in enumerate(bucket_rows)
                ]
                group_node.all_leaf_children = list(group_node.children)

            nodes.append(group_node)

        return nodes

    @staticmethod
    def _create_leaf_node(row: Row, index: int, parent: RowNode | None) -> RowNode:
        node = RowNode(
            data=row,
            id=f"leaf-{index}",
            row_index=index,
            level=parent.level + 1 if parent is not None else 0,
        )
        node.parent = parent
        return node

    def _find_node(self, nodes: list[RowNode], key_path: str) -> RowNode | None:
        for node in nodes:
            if node.id == key_path:
                return node
            if node.group and node.children:
                found = self._find_node(node.children, key_path)
                if found is not None:
                    return found
        return None

    def _collapse_all_nodes(self, nodes: list[RowNode]) -> None:
        for node in nodes:
            if node.group:
                self._expansion.collapse(node.id)
                self._collapse_all_nodes(node.children)

    def _expand_all_nodes(self, nodes: list[RowNode], depth: int) -> None:
        for node in nodes:
            if node.group:
                if depth == -1 or node.level < depth:
                    self._expansion.expand(node.id)
                self._expand_all_nodes(node.children, depth)

    # --- Aggregation ---

    def _compute_aggregation(self, nodes: list[RowNode]) -> None:
        """Aggregate every group bottom-up, always from its raw leaf rows."""
        if not self._agg_columns:
            return

        for node in nodes:
            if not node.group:
                continue

            self._compute_aggregation(node.children)

            leaf_rows = [leaf.data for leaf in node.all_leaf_children]
            for agg_col in self._agg_columns:
                values = [row.get(agg_col.field) for row in leaf_rows]
                node.agg_data[agg_col.field] = apply_agg(
                    agg_col.agg_func,
                    values,
                    leaf_rows,
                    custom=self._custom_agg_funcs,
                    field=agg_col.field,
                )

    # --- Flattening ---

    def _flatten_tree(self, nodes: list[RowNode], out: list[RowNode]) -> None:
        for node in nodes:
            out.append(node)
            if node.group and node.expanded and node.children:
                self._flatten_tree(node.children, out)

    def _rebuild_display_list(self) -> None:
        self._update_expand_state(self._root_nodes)
        self._flat_display_list = []
        self._flatten_tree(self._root_nodes, self._flat_display_list)

    def _update_expand_state(self, nodes: list[RowNode]) -> None:
        for node in nodes:
            if node.group:
                node.expanded = self._expansion.effective(node.id, node.level)
                self._update_expand_state(node.children)

