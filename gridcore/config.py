"""Configuration system for gridcore using pydantic-settings.

Supports layered configuration:
1. Built-in defaults (lowest priority)
2. pyproject.toml [tool.gridcore] section (project-level)
3. ./gridcore.toml (project-level, explicit)
4. ~/.config/gridcore/config.toml (user-level, overrides project)
5. Environment variables (highest priority)

Environment variables use GRIDCORE_ prefix with nested delimiter __.
Example: GRIDCORE_GROUPING__DEFAULT_EXPANDED=-1, GRIDCORE_SELECTION__ENABLED=true
"""

from __future__ import annotations

import logging
import os
import sys

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib  # type: ignore[import-not-found]
    except ImportError:
        tomllib = None


def config_file_candidates() -> list[tuple[str, Path | None]]:
    """Return ``(label, path)`` for every config file location, lowest precedence first.

    ``path`` is None when ``GRIDCORE_CONFIG_FILE`` is unset.
    """
    if sys.platform == "win32":
        user_config = Path(os.environ.get("APPDATA", "~")) / "gridcore" / "config.toml"
    else:
        user_config = Path("~/.config/gridcore/config.toml")

    env_config = os.environ.get("GRIDCORE_CONFIG_FILE")
    return [
        ("pyproject.toml [tool.gridcore]", Path("pyproject.toml")),
        ("./gridcore.toml", Path("gridcore.toml")),
        ("user config", user_config.expanduser()),
        ("GRIDCORE_CONFIG_FILE", Path(env_config) if env_config else None),
    ]


def _find_config_files() -> list[Path]:
    """Find all configuration files in order of precedence (lowest first)."""
    return [path for _, path in config_file_candidates() if path is not None and path.exists()]


def read_config_file(config_file: Path) -> dict[str, Any] | None:
    """Read the gridcore table of one TOML file, or None if it cannot be read."""
    if tomllib is None:
        return None

    try:
        data = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        # gridcore.log reads settings, so log through the stdlib logger here
        logging.getLogger("gridcore").warning(f"Skipping config file {config_file}: {e}")
        return None

    if config_file.name == "pyproject.toml":
        data = data.get("tool", {}).get("gridcore", {})
    return data


def _load_toml_config() -> dict[str, Any]:
    """Load and merge all TOML configuration files."""
    merged: dict[str, Any] = {}

    for config_file in _find_config_files():
        data = read_config_file(config_file)
        if data is not None:
            merged = _deep_merge(merged, data)

    return merged


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class GroupingSettings(BaseSettings):
    """Row grouping defaults.

    Environment prefix: GRIDCORE_GROUPING__
    Example: GRIDCORE_GROUPING__DEFAULT_EXPANDED=-1
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDCORE_GROUPING__",
        extra="ignore",
    )

    # -1 = all expanded, 0 = collapsed, N = expand levels < N
    default_expanded: int = Field(default=0, ge=-1)
    blank_key: str = "(blank)"


class TreeSettings(BaseSettings):
    """Tree data defaults.

    Environment prefix: GRIDCORE_TREE__
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDCORE_TREE__",
        extra="ignore",
    )

    default_expanded: int = Field(default=0, ge=-1)
    child_field: str = "children"
    row_key: str = "id"
    path_separator: str = Field(default="/", min_length=1)
    label_field: str = "_treeLabel"


class SelectionSettings(BaseSettings):
    """Cell selection defaults.

    Environment prefix: GRIDCORE_SELECTION__
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDCORE_SELECTION__",
        extra="ignore",
    )

    enabled: bool = False
    fill_handle: bool = False
    sequence_tolerance: float = Field(default=1e-10, gt=0)


class LogSettings(BaseSettings):
    """Logging settings.

    Environment prefix: GRIDCORE_LOG__
    Example: GRIDCORE_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDCORE_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(name)s - %(levelname)s - %(message)s"


# (env segment, attribute) pairs in display order
_SECTIONS: list[tuple[str, str]] = [
    ("GROUPING", "grouping"),
    ("TREE", "tree"),
    ("SELECTION", "selection"),
    ("LOG", "log"),
]


class GridCoreSettings(BaseSettings):
    """Main settings aggregating all configuration sections.

    Environment prefix: GRIDCORE__

    Configuration sources (in order of precedence):
    1. Built-in defaults
    2. pyproject.toml [tool.gridcore] section
    3. ./gridcore.toml (project-level)
    4. ~/.config/gridcore/config.toml (user-level, overrides project)
    5. Environment variables (highest priority)
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDCORE__",
        env_nested_delimiter="__",
        extra="ignore",
    )

    grouping: GroupingSettings = Field(default_factory=GroupingSettings)
    tree: TreeSettings = Field(default_factory=TreeSettings)
    selection: SelectionSettings = Field(default_factory=SelectionSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    def __init__(self, **data: Any) -> None:
        toml_config = _load_toml_config()

        # Explicit keyword data wins over TOML. Section models are built here
        # so their own GRIDCORE_<SECTION>__ env vars still override TOML values.
        merged = _deep_merge(toml_config, data)
        section_classes = {
            "grouping": GroupingSettings,
            "tree": TreeSettings,
            "selection": SelectionSettings,
            "log": LogSettings,
        }
        for name, section_cls in section_classes.items():
            value = merged.get(name)
            if isinstance(value, dict):
                env_overrides = section_cls().model_dump(exclude_unset=True)
                merged[name] = section_cls(**{**value, **env_overrides})

        super().__init__(**merged)

    def to_toml(self) -> str:
        """Export settings as TOML string."""
        lines = ["# gridcore Configuration", "# Generated by: gridcore config --toml", ""]

        all_data = self.model_dump()
        for _, section_name in _SECTIONS:
            lines.append(f"[{section_name}]")
            for field_name, field_value in all_data[section_name].items():
                if isinstance(field_value, bool):
                    value_str = "true" if field_value else "false"
                elif isinstance(field_value, str):
                    value_str = f'"{field_value}"'
                else:
                    value_str = str(field_value)
                lines.append(f"{field_name} = {value_str}")
            lines.append("")

        return "\n".join(lines)

    def to_env(self) -> str:
        """Export settings as shell environment variables."""
        lines = [
            "# gridcore Environment Variables",
            "# Generated by: gridcore config --env",
            "",
        ]

        all_data = self.model_dump()
        for env_prefix, attr_name in _SECTIONS:
            for field_name, field_value in all_data[attr_name].items():
                env_name = f"GRIDCORE_{env_prefix}__{field_name.upper()}"
                if isinstance(field_value, bool):
                    value_str = "true" if field_value else "false"
                else:
                    value_str = str(field_value)
                lines.append(f'export {env_name}="{value_str}"')

        return "\n".join(lines)


@lru_cache(maxsize=1)
def get_settings() -> GridCoreSettings:
    """Get the global settings instance (cached).

    Call clear_settings() to reload configuration.
    """
    return GridCoreSettings()


def clear_settings() -> None:
    """Clear the cached settings to force reload."""
    get_settings.cache_clear()


def reload_settings() -> GridCoreSettings:
    """Reload settings from all sources."""
    clear_settings()
    return get_settings()
