"""gridcore - headless data-grid engines.

This package provides the pure, synchronous core of an interactive data
grid: multi-level row grouping with aggregation, hierarchical tree data,
and Excel-like cell range selection with fill handle support.
"""

from .aggregation import BUILT_IN_AGG, apply_agg, to_number
from .cell_selection import CellSelection
from .config import (
    GridCoreSettings,
    GroupingSettings,
    LogSettings,
    SelectionSettings,
    TreeSettings,
    clear_settings,
    get_settings,
    reload_settings,
)
from .data import GridData, build_column_defs, normalize_rows
from .exceptions import AggregationError, ConfigurationError, GridCoreException
from .expansion import ExpansionState, ExpansionTracker
from .grouping import RowGrouping, RowNode
from .log import enable_debug
from .models import (
    AggColumn,
    CellRange,
    CellRangeParams,
    ColumnDef,
    DeleteChange,
    FillChange,
    FillResult,
    RangeAggregation,
    RowPosition,
)
from .tree_data import TreeData, TreeNode


__version__ = "0.1.0"

__all__ = [
    "BUILT_IN_AGG",
    "AggColumn",
    "AggregationError",
    "CellRange",
    "CellRangeParams",
    "CellSelection",
    "ColumnDef",
    "ConfigurationError",
    "DeleteChange",
    "ExpansionState",
    "ExpansionTracker",
    "FillChange",
    "FillResult",
    "GridCoreException",
    "GridCoreSettings",
    "GridData",
    "GroupingSettings",
    "LogSettings",
    "RangeAggregation",
    "RowGrouping",
    "RowNode",
    "RowPosition",
    "SelectionSettings",
    "TreeData",
    "TreeNode",
    "TreeSettings",
    "__version__",
    "apply_agg",
    "build_column_defs",
    "clear_settings",
    "enable_debug",
    "get_settings",
    "normalize_rows",
    "reload_settings",
    "to_number",
]
