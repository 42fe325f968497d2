"""Cell/range selection engine: Excel-like rectangular selections.

Supports click+drag rectangular ranges, Ctrl+click for multi-range,
Shift+click to extend, fill handle, and range aggregation.

Every operation is forgiving: unknown fields, stale row indices, a disabled
engine or an empty selection produce a no-op or an empty result.

Usage:
    sel = CellSelection()
    sel.configure(enabled=True)
    sel.set_columns(columns)
    sel.start_selection(0, "name")
    sel.update_selection(2, "age")
    sel.end_selection()
    stats = sel.get_aggregation(rows)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from .aggregation import to_number
from .config import get_settings
from .log import debug
from .models import (
    CellRange,
    CellRangeParams,
    ColumnDef,
    DeleteChange,
    FillChange,
    FillResult,
    RangeAggregation,
    Row,
    RowPosition,
)


if TYPE_CHECKING:
    from .config import GridCoreSettings


class CellSelection:
    """Tracks an ordered list of cell ranges; the last one is the active range."""

    def __init__(self, settings: GridCoreSettings | None = None) -> None:
        selection_settings = (settings or get_settings()).selection
        self._enabled = selection_settings.enabled
        self._fill_handle = selection_settings.fill_handle
        self._tolerance = selection_settings.sequence_tolerance
        self._ranges: list[CellRange] = []
        self._columns: list[ColumnDef] = []

        # Drag state
        self._dragging = False
        self._drag_start_row = -1
        self._drag_start_field: str | None = None

    # --- Properties ---

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value
        if not value:
            self._ranges = []
            self._dragging = False

    @property
    def fill_handle(self) -> bool:
        return self._fill_handle

    @fill_handle.setter
    def fill_handle(self, value: bool) -> None:
        self._fill_handle = value

    @property
    def ranges(self) -> list[CellRange]:
        return list(self._ranges)

    @property
    def range_count(self) -> int:
        return len(self._ranges)

    @property
    def columns(self) -> list[ColumnDef]:
        return list(self._columns)

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    def configure(self, enabled: bool | None = None, fill_handle: bool | None = None) -> None:
        """Bulk-set options; ``enabled=False`` clears all ranges."""
        if enabled is not None:
            self.enabled = enabled
        if fill_handle is not None:
            self._fill_handle = fill_handle

    def set_columns(self, columns: Sequence[ColumnDef | dict[str, Any]]) -> None:
        self._columns = [c if isinstance(c, ColumnDef) else ColumnDef(**c) for c in columns]

    # --- Selection gestures ---

    def start_selection(self, row_index: int, field: str, ctrl_key: bool = False) -> None:
        """Begin a drag at one cell.

        Without ``ctrl_key`` the new single-cell range replaces all ranges;
        with it the range is appended (multi-range selection).
        """
        if not self._enabled:
            return

        col_index = self._col_index(field)
        if col_index == -1:
            debug(f"start_selection ignored: unknown field '{field}'")
            return

        self._dragging = True
        self._drag_start_row = row_index
        self._drag_start_field = field

        col = self._columns[col_index]
        new_range = CellRange.span(row_index, row_index, [col])

        if ctrl_key:
            self._ranges.append(new_range)
        else:
            self._ranges = [new_range]

    def update_selection(self, row_index: int, field: str) -> None:
        """Stretch the active range between the drag anchor and this cell.

        Columns are the contiguous slice of the engine's column list between
        the anchor and target column indices.
        """
        if not self._enabled or not self._dragging or not self._ranges:
            return

        # Columns may be replaced mid-drag
        anchor_index = self._col_index(self._drag_start_field)
        col_index = self._col_index(field)
        if anchor_index == -1 or col_index == -1:
            return

        active = self._ranges[-1]
        min_col = min(anchor_index, col_index)
        max_col = max(anchor_index, col_index)

        active.start_row = RowPosition(index=min(self._drag_start_row, row_index))
        active.end_row = RowPosition(index=max(self._drag_start_row, row_index))
        active.columns = self._columns[min_col : max_col + 1]
        active.start_column = self._columns[anchor_index]

    def end_selection(self) -> None:
        """Finish the drag; ranges persist."""
        self._dragging = False

    def extend_selection(self, row_index: int, field: str) -> None:
        """Extend the active range to this cell (Shift+click).

        Uses the range's own anchor (``start_row`` / ``start_column``), not
        the drag state. With no ranges this starts a single-cell selection.
        """
        if not self._enabled:
            return

        if not self._ranges:
            self.start_selection(row_index, field)
            self.end_selection()
            return

        last = self._ranges[-1]
        anchor_row = last.start_row.index
        anchor_col = self._col_index(last.start_column.field)
        target_col = self._col_index(field)

        if anchor_col == -1 or target_col == -1:
            return

        min_col = min(anchor_col, target_col)
        max_col = max(anchor_col, target_col)

        last.start_row = RowPosition(index=min(anchor_row, row_index))
        last.end_row = RowPosition(index=max(anchor_row, row_index))
        last.columns = self._columns[min_col : max_col + 1]

    def select_range(self, params: CellRangeParams | dict[str, Any]) -> None:
        """Replace all ranges with one programmatic range.

        Fields keep the requested order; unknown ones are dropped. An empty
        result is a no-op.
        """
        if not self._enabled:
            return

        if isinstance(params, dict):
            params = CellRangeParams(**params)

        by_field = {c.field: c for c in reversed(self._columns)}
        cols = [by_field[f] for f in params.columns if f in by_field]
        if not cols:
            return

        self._ranges = [
            CellRange(
                start_row=RowPosition(index=params.row_start_index),
                end_row=RowPosition(index=params.row_end_index),
                columns=cols,
                start_column=cols[0],
            )
        ]

    def is_cell_selected(self, row_index: int, field: str) -> bool:
        """True if the cell lies in any range (row interval and column membership)."""
        return any(
            r.min_row <= row_index <= r.max_row and any(c.field == field for c in r.columns)
            for r in self._ranges
        )

    def clear_selections(self) -> None:
        self._ranges = []
        self._dragging = False

    # --- Range operations ---

    def get_aggregation(self, rows: Sequence[Row]) -> RangeAggregation:
        """Aggregate every selected cell across all ranges.

        ``count`` counts each visited cell; ``sum``, ``avg``, ``min``, ``max``
        and ``numeric_count`` only use non-null, number-coercible values.
        ``min``/``max`` are 0 when nothing numeric was found.
        """
        total: float | int = 0
        count = 0
        numeric_count = 0
        low: float | None = None
        high: float | None = None

        for row, col in self._iter_cells(self._ranges, rows):
            count += 1
            num = to_number(row.get(col.field))
            if num is None:
                continue
            total += num
            numeric_count += 1
            if low is None or num < low:
                low = num
            if high is None or num > high:
                high = num

        return RangeAggregation(
            sum=total,
            count=count,
            avg=total / numeric_count if numeric_count else 0,
            min=low if low is not None else 0,
            max=high if high is not None else 0,
            numeric_count=numeric_count,
        )

    def fill(self, rows: Sequence[Row], source_range: CellRange, target_end_row: int) -> FillResult:
        """Compute fill-handle changes from ``source_range`` out to ``target_end_row``.

        Fills downward when the target is past the source's last row,
        otherwise upward ahead of its first row. Each column extrapolates an
        arithmetic sequence when its source values form one, and otherwise
        repeats the source values cyclically. ``rows`` is not modified.
        """
        changes: list[FillChange] = []

        src_start = source_range.min_row
        src_end = source_range.max_row
        src_length = src_end - src_start + 1

        fill_down = target_end_row > src_end
        fill_start = src_end + 1 if fill_down else target_end_row
        fill_end = target_end_row if fill_down else src_start - 1

        if fill_start > fill_end:
            debug(f"fill ignored: target row {target_end_row} overlaps source range")
            return FillResult(changes=changes)

        for col in source_range.columns:
            source_values = [
                _row_at(rows, r).get(col.field) for r in range(src_start, src_end + 1)
            ]
            sequence = self._detect_sequence(source_values)

            if fill_down:
                for r in range(fill_start, fill_end + 1):
                    offset = r - src_start
                    if sequence is not None:
                        value = sequence[0] + sequence[1] * offset
                    else:
                        value = source_values[offset % src_length]
                    changes.append(FillChange(row_index=r, field=col.field, value=value))
            else:
                for r in range(fill_end, fill_start - 1, -1):
                    offset = src_end - r
                    if sequence is not None:
                        value = sequence[0] - sequence[1] * (src_start - r)
                    else:
                        value = source_values[(src_length - 1 - (offset % src_length)) % src_length]
                    changes.append(FillChange(row_index=r, field=col.field, value=value))

        return FillResult(changes=changes)

    def delete_range_values(self, rows: Sequence[Row]) -> list[DeleteChange]:
        """List every non-empty selected cell with its old value, for the caller to clear."""
        changes: list[DeleteChange] = []
        for row_index, row, col in self._iter_indexed_cells(self._ranges, rows):
            value = row.get(col.field)
            if value is not None and value != "":
                changes.append(DeleteChange(row_index=row_index, field=col.field, old_value=value))
        return changes

    def get_range_data(self, rows: Sequence[Row]) -> list[list[str]]:
        """Stringified cell values of the first range, for clipboard copy."""
        if not self._ranges:
            return []

        first = self._ranges[0]
        result: list[list[str]] = []
        for r in range(first.min_row, first.max_row + 1):
            row = _row_at(rows, r, None)
            if row is None:
                continue
            result.append(
                [_clipboard_text(row.get(c.field)) for c in first.columns]
            )
        return result

    def get_range_headers(self) -> list[str]:
        """Column headers of the first range."""
        if not self._ranges:
            return []
        return [c.label for c in self._ranges[0].columns]

    # --- Helpers ---

    def _col_index(self, field: str | None) -> int:
        for i, col in enumerate(self._columns):
            if col.field == field:
                return i
        return -1

    def _detect_sequence(self, values: list[Any]) -> tuple[float | int, float | int] | None:
        """Return ``(start, step)`` if values form an arithmetic sequence."""
        if len(values) < 2:
            return None

        nums = [to_number(v) for v in values]
        if any(n is None for n in nums):
            return None

        step = nums[1] - nums[0]
        for prev, cur in zip(nums[1:], nums[2:]):
            if abs(cur - prev - step) > self._tolerance:
                return None
        return nums[0], step

    @staticmethod
    def _iter_indexed_cells(ranges: Sequence[CellRange], rows: Sequence[Row]):
        for cell_range in ranges:
            for r in range(cell_range.min_row, cell_range.max_row + 1):
                row = _row_at(rows, r, None)
                if row is None:
                    continue
                for col in cell_range.columns:
                    yield r, row, col

    def _iter_cells(self, ranges: Sequence[CellRange], rows: Sequence[Row]):
        for _, row, col in self._iter_indexed_cells(ranges, rows):
            yield row, col


_EMPTY_ROW: Row = {}


def _row_at(rows: Sequence[Row], index: int, default: Row | None = _EMPTY_ROW) -> Row | None:
    """Row at ``index``, or ``default`` for stale/negative indices."""
    if 0 <= index < len(rows):
        return rows[index]
    return default


def _clipboard_text(value: Any) -> str:
    """Render a cell for copy: blank for None, lowercase bools, integral floats without ``.0``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
