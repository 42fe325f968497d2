"""Pydantic models shared by the grid engines.

Models mirror the grid host's JavaScript-facing API: Python code uses
snake_case, ``to_dict()`` serializes to camelCase for the host.

- ColumnDef: Column definition (host-owned, read-only to the engines)
- CellRange / CellRangeParams: Rectangular cell selections
- RangeAggregation: Status-bar style stats over selected cells
- FillChange / FillResult / DeleteChange: Change lists the host applies
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


Row = dict[str, Any]
"""An opaque host-owned record: field name -> value."""

ColumnType = Literal["text", "number", "date", "boolean", "badge", "custom"]

AggFunc = str | Callable[..., Any]
"""A registry name (``"sum"``, ``"avg"``, ...) or ``(values, rows) -> value``."""


class GridModel(BaseModel):
    """Base model with camelCase serialization."""

    model_config = ConfigDict(
        populate_by_name=True,  # Accept both snake_case and camelCase
    )

    def to_dict(self, exclude_none: bool = True) -> dict[str, Any]:
        """Convert to dict with camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=exclude_none)


class ColumnDef(GridModel):
    """Grid column definition.

    Only ``field``, ``header``, ``type`` and ``agg_func`` matter to the
    engines; renderer metadata rides along as extra fields.

    Example:
        ColumnDef(field="salary", header="Salary", type="number", agg_func="sum")
        # Serializes to: {"field": "salary", "header": "Salary", "type": "number", "aggFunc": "sum"}
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        arbitrary_types_allowed=True,
    )

    field: str
    header: str | None = None
    type: ColumnType | None = None  # Advisory, used for formatting only
    agg_func: AggFunc | None = Field(default=None, alias="aggFunc")

    @property
    def label(self) -> str:
        """Header text, falling back to the field name."""
        return self.header or self.field


class RowPosition(GridModel):
    """A row reference inside a cell range."""

    index: int


class CellRange(GridModel):
    """A rectangular selection: rows ``[min_row, max_row]`` x ``columns``.

    ``start_row`` / ``end_row`` are an unordered pair. ``start_column`` is the
    anchor column used when the range is extended with shift-click.
    """

    start_row: RowPosition = Field(alias="startRow")
    end_row: RowPosition = Field(alias="endRow")
    columns: list[ColumnDef] = Field(default_factory=list)
    start_column: ColumnDef = Field(alias="startColumn")

    @classmethod
    def span(cls, start: int, end: int, columns: Sequence[ColumnDef]) -> CellRange:
        """Build a range over rows ``start..end`` anchored at the first column."""
        cols = list(columns)
        return cls(
            start_row=RowPosition(index=start),
            end_row=RowPosition(index=end),
            columns=cols,
            start_column=cols[0],
        )

    @property
    def min_row(self) -> int:
        return min(self.start_row.index, self.end_row.index)

    @property
    def max_row(self) -> int:
        return max(self.start_row.index, self.end_row.index)

    @property
    def fields(self) -> list[str]:
        return [c.field for c in self.columns]


class CellRangeParams(GridModel):
    """Programmatic range request: row bounds plus an ordered field list."""

    row_start_index: int = Field(alias="rowStartIndex")
    row_end_index: int = Field(alias="rowEndIndex")
    columns: list[str] = Field(default_factory=list)


class RangeAggregation(GridModel):
    """Aggregate stats over every selected cell.

    ``count`` counts visited cells; the other stats only numeric cells.
    """

    sum: float = 0
    count: int = 0
    avg: float = 0
    min: float = 0
    max: float = 0
    numeric_count: int = Field(default=0, alias="numericCount")


class FillChange(GridModel):
    """A value the fill handle wants written to one cell."""

    row_index: int = Field(alias="rowIndex")
    field: str
    value: Any = None


class FillResult(GridModel):
    """Result of a fill-handle drag; the caller applies (and can undo) it."""

    changes: list[FillChange] = Field(default_factory=list)

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dict; ``None`` fill values are kept."""
        return self.model_dump(by_alias=True, exclude_none=exclude_none)


class DeleteChange(GridModel):
    """A cell cleared by a range delete, with the value needed to undo it."""

    row_index: int = Field(alias="rowIndex")
    field: str
    old_value: Any = Field(default=None, alias="oldValue")


class AggColumn(GridModel):
    """A column that group rows aggregate, and the function to use."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    field: str
    agg_func: AggFunc = Field(alias="aggFunc")
