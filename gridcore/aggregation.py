"""Aggregation functions for group rows.

Built-ins ignore values that are not number-coercible instead of failing:
``min``/``max`` yield ``None`` when nothing numeric was seen.
"""

from __future__ import annotations

import inspect
import math

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .log import debug, log_callback_error
from .models import AggFunc, Row


def to_number(value: Any) -> float | int | None:
    """Coerce a cell value to a number, or ``None`` if it is not numeric.

    - ``None`` and empty/blank strings are not numeric
    - ``bool``/``int``/``float`` pass through (NaN is not numeric)
    - integer strings become ``int``, other strings are parsed with ``float()``
    - anything else is tried with ``float()`` (numpy scalars, Decimal, ...)
    """
    if value is None:
        return None
    if isinstance(value, (bool, int)):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _numbers(values: Sequence[Any]) -> list[float | int]:
    return [n for n in (to_number(v) for v in values) if n is not None]


def agg_sum(values: Sequence[Any]) -> float | int:
    return sum(_numbers(values))


def agg_avg(values: Sequence[Any]) -> float:
    nums = _numbers(values)
    return sum(nums) / len(nums) if nums else 0


def agg_min(values: Sequence[Any]) -> float | int | None:
    nums = _numbers(values)
    return min(nums) if nums else None


def agg_max(values: Sequence[Any]) -> float | int | None:
    nums = _numbers(values)
    return max(nums) if nums else None


def agg_count(values: Sequence[Any]) -> int:
    return len(values)


def agg_first(values: Sequence[Any]) -> Any:
    return values[0] if values else None


def agg_last(values: Sequence[Any]) -> Any:
    return values[-1] if values else None


BUILT_IN_AGG: dict[str, Callable[[Sequence[Any]], Any]] = {
    "sum": agg_sum,
    "avg": agg_avg,
    "min": agg_min,
    "max": agg_max,
    "count": agg_count,
    "first": agg_first,
    "last": agg_last,
}


def resolve_agg_func(
    agg_func: AggFunc,
    custom: Mapping[str, Callable[..., Any]] | None = None,
) -> Callable[[list[Any], list[Row]], Any] | None:
    """Resolve an aggregation name or callable to a ``(values, rows) -> value`` callable.

    Named lookups check the custom registry before the built-ins.

    Returns
    -------
    callable or None
        None when the name is unknown.
    """
    if callable(agg_func):
        return agg_func
    custom_fn = (custom or {}).get(agg_func)
    if custom_fn is not None:
        return custom_fn
    built_in = BUILT_IN_AGG.get(agg_func)
    if built_in is not None:
        return lambda values, _rows: built_in(values)
    return None


def apply_agg(
    agg_func: AggFunc,
    values: list[Any],
    rows: list[Row],
    custom: Mapping[str, Callable[..., Any]] | None = None,
    field: str = "",
) -> Any:
    """Apply one aggregation over a group's leaf values.

    Unknown names and user callables that raise both produce ``None``.
    """
    fn = resolve_agg_func(agg_func, custom)
    if fn is None:
        debug(f"Unknown aggregation {agg_func!r} for field '{field}'")
        return None
    try:
        if _required_params(fn) == 1:
            return fn(values)
        return fn(values, rows)
    except Exception as e:  # pylint: disable=broad-exception-caught
        log_callback_error("aggregation", field, e)
        return None


def _required_params(fn: Callable[..., Any]) -> int:
    """Count required positional parameters; 2 when it cannot be inspected."""
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return 2
    return len(
        [
            p
            for p in sig.parameters.values()
            if p.default is inspect.Parameter.empty
            and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
        ]
    )
