"""Tri-state expand/collapse tracking shared by grouping and tree data.

Each node id is either explicitly expanded, explicitly collapsed, or
inherits the default-depth rule. Explicit collapse wins over explicit
expand, which wins over the default. Nodes do not own this state: trees
are rebuilt from scratch and re-read it.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum


class ExpansionState(str, Enum):
    """Explicit override recorded for a node id."""

    EXPANDED = "expanded"
    COLLAPSED = "collapsed"
    INHERITED = "inherited"


class ExpansionTracker:
    """Explicit expand/collapse overrides plus a default expansion depth.

    ``default_depth`` follows the grid convention: ``-1`` expands every
    level, ``0`` collapses everything, ``N`` expands levels ``< N``.
    """

    def __init__(self, default_depth: int = 0) -> None:
        self.default_depth = default_depth
        self._overrides: dict[str, ExpansionState] = {}

    def state(self, key: str) -> ExpansionState:
        return self._overrides.get(key, ExpansionState.INHERITED)

    def default_for(self, level: int) -> bool:
        """Whether a node at ``level`` is expanded when nothing overrides it."""
        if self.default_depth == -1:
            return True
        return level < self.default_depth

    def effective(self, key: str, level: int) -> bool:
        """Resolve the tri-state rule for one node."""
        state = self.state(key)
        if state is ExpansionState.COLLAPSED:
            return False
        if state is ExpansionState.EXPANDED:
            return True
        return self.default_for(level)

    def expand(self, key: str) -> None:
        self._overrides[key] = ExpansionState.EXPANDED

    def collapse(self, key: str) -> None:
        self._overrides[key] = ExpansionState.COLLAPSED

    def reset(self, key: str) -> None:
        """Return a node to the inherited default."""
        self._overrides.pop(key, None)

    def discard_expanded(self, predicate: Callable[[str], bool]) -> None:
        """Drop explicit-expanded entries whose key matches ``predicate``."""
        for key in [k for k, s in self._overrides.items() if s is ExpansionState.EXPANDED]:
            if predicate(key):
                del self._overrides[key]

    def clear_expanded(self) -> None:
        self.discard_expanded(lambda _key: True)

    def clear_collapsed(self) -> None:
        for key in [k for k, s in self._overrides.items() if s is ExpansionState.COLLAPSED]:
            del self._overrides[key]

    def clear(self) -> None:
        self._overrides.clear()

    @property
    def expanded_keys(self) -> list[str]:
        return [k for k, s in self._overrides.items() if s is ExpansionState.EXPANDED]

    @property
    def collapsed_keys(self) -> list[str]:
        return [k for k, s in self._overrides.items() if s is ExpansionState.COLLAPSED]
