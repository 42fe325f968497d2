"""Pytest configuration and fixtures."""

from __future__ import annotations

import os

from typing import TYPE_CHECKING, Any

import pytest

from gridcore.config import clear_settings
from gridcore.log import reset_logger
from gridcore.models import ColumnDef


if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def clean_environment(tmp_path, monkeypatch) -> Generator[None, None, None]:
    """Isolate every test from ambient configuration.

    Runs in an empty working directory (no pyproject.toml / gridcore.toml),
    with a fake home (no user config file) and no GRIDCORE_* variables.
    """
    for key in list(os.environ):
        if key.startswith("GRIDCORE_"):
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("APPDATA", str(home))
    monkeypatch.chdir(tmp_path)

    clear_settings()
    reset_logger()
    yield
    clear_settings()
    reset_logger()


@pytest.fixture
def employees() -> list[dict[str, Any]]:
    """Flat rows for grouping tests."""
    return [
        {"name": "Alice", "dept": "Engineering", "role": "Dev", "salary": 100},
        {"name": "Bob", "dept": "Engineering", "role": "QA", "salary": 80},
        {"name": "Carol", "dept": "Sales", "role": "Rep", "salary": 60},
        {"name": "Dan", "dept": "Engineering", "role": "Dev", "salary": 120},
        {"name": "Eve", "dept": None, "role": "Rep", "salary": 50},
    ]


@pytest.fixture
def path_rows() -> list[dict[str, Any]]:
    """Flat rows carrying a location path, for path-mode trees."""
    return [
        {"path": ["USA", "CA", "LA"], "pop": 4},
        {"path": ["USA", "CA", "SF"], "pop": 1},
        {"path": ["USA", "NY"], "pop": 8},
        {"path": ["Canada", "ON", "Toronto"], "pop": 3},
    ]


@pytest.fixture
def nested_rows() -> list[dict[str, Any]]:
    """Nested rows carrying their children, for children-mode trees."""
    return [
        {
            "id": "a",
            "name": "A",
            "children": [
                {"id": "a1", "name": "A1", "children": [{"id": "a1x", "name": "A1x"}]},
                {"id": "a2", "name": "A2"},
            ],
        },
        {"id": "b", "name": "B", "children": []},
    ]


@pytest.fixture
def grid_columns() -> list[ColumnDef]:
    return [
        ColumnDef(field="name", header="Name"),
        ColumnDef(field="qty", header="Quantity", type="number"),
        ColumnDef(field="price"),
        ColumnDef(field="note"),
    ]


@pytest.fixture
def grid_rows() -> list[dict[str, Any]]:
    """Rows for cell selection tests."""
    return [
        {"name": "a", "qty": 1, "price": 10.0, "note": "x"},
        {"name": "b", "qty": 2, "price": None, "note": ""},
        {"name": "c", "qty": 3, "price": "abc", "note": "z"},
        {"name": "d", "qty": 4, "price": 2.5, "note": None},
    ]
