"""Command-line interface for gridcore configuration management."""

from __future__ import annotations

import argparse
import os
import sys

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import _SECTIONS, config_file_candidates, read_config_file


if TYPE_CHECKING:
    from .config import GridCoreSettings


def main(argv: Sequence[str] | None = None) -> int:
    """Run the main CLI entry point.

    Parameters
    ----------
    argv : sequence of str, optional
        Arguments to parse instead of ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code.
    """
    parser = argparse.ArgumentParser(
        prog="gridcore",
        description="gridcore configuration tools",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show or export configuration",
    )
    config_group = config_parser.add_mutually_exclusive_group()
    config_group.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )
    config_group.add_argument(
        "--toml",
        action="store_true",
        help="Export configuration as TOML",
    )
    config_group.add_argument(
        "--env",
        action="store_true",
        help="Export configuration as environment variables",
    )
    config_group.add_argument(
        "--sources",
        action="store_true",
        help="Show configuration file sources",
    )
    config_parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file path (default: stdout)",
    )

    # init command
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a gridcore.toml configuration file",
    )
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Overwrite existing configuration file",
    )
    init_parser.add_argument(
        "--path",
        "-p",
        type=str,
        default="gridcore.toml",
        help="Path for configuration file (default: gridcore.toml)",
    )

    args = parser.parse_args(argv)

    if args.command == "config":
        return handle_config(args)
    if args.command == "init":
        return handle_init(args)
    parser.print_help()
    return 0


def handle_config(args: argparse.Namespace) -> int:
    """Handle the config command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments.

    Returns
    -------
    int
        Exit code.
    """
    from .config import GridCoreSettings  # pylint: disable=import-outside-toplevel

    if args.sources:
        return show_config_sources()

    settings = GridCoreSettings()

    if args.toml:
        output = settings.to_toml()
    elif args.env:
        output = settings.to_env()
    else:
        output = format_config_show(settings)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Configuration written to {args.output}")
    else:
        print(output)

    return 0


def handle_init(args: argparse.Namespace) -> int:
    """Handle the init command.

    Returns
    -------
    int
        Exit code; 1 when the file exists and ``--force`` was not given.
    """
    from .config import GridCoreSettings  # pylint: disable=import-outside-toplevel

    path = Path(args.path)

    if path.exists() and not args.force:
        print(f"Error: {path} already exists. Use --force to overwrite.", file=sys.stderr)
        return 1

    toml_content = GridCoreSettings().to_toml()

    header = """# gridcore Configuration File
#
# Environment variables can override any setting:
#   GRIDCORE_GROUPING__DEFAULT_EXPANDED=-1
#   GRIDCORE_TREE__CHILD_FIELD="items"
#   GRIDCORE_SELECTION__ENABLED=true
#   GRIDCORE_LOG__LEVEL="DEBUG"
#
# Use nested keys with __ (double underscore) delimiter.

"""
    path.write_text(header + toml_content, encoding="utf-8")
    print(f"Created {path}")

    return 0


def _section_names(data: dict[str, Any]) -> str:
    known = {name for _, name in _SECTIONS}
    return ", ".join(key for key in data if key in known)


def show_config_sources() -> int:
    """Show each configuration source, whether it applies and which sections it sets.

    Returns
    -------
    int
        Exit code.
    """
    rows = [("Built-in defaults", "✓ Active", "")]

    for label, path in config_file_candidates():
        if path is None:
            rows.append((label, "✗ Not set", ""))
        elif not path.exists():
            rows.append((label, "✗ Not found", str(path)))
        else:
            data = read_config_file(path)
            if data is None:
                rows.append((label, "✗ Unreadable", str(path)))
            else:
                rows.append((label, "✓ Found", _section_names(data) or str(path)))

    env_prefixes = dict(_SECTIONS)
    env_vars = [k for k in os.environ if k.startswith("GRIDCORE_") and k != "GRIDCORE_CONFIG_FILE"]
    env_sections = {
        env_prefixes[prefix]
        for prefix, _, _ in (k[len("GRIDCORE_") :].partition("__") for k in env_vars)
        if prefix in env_prefixes
    }
    if env_vars:
        detail = ", ".join(sorted(env_sections))
        rows.append(("Environment variables", f"✓ {len(env_vars)} vars", detail))
    else:
        rows.append(("Environment variables", "✗ No vars", ""))

    print("Configuration Sources (in order of precedence):\n")
    print(f"{'Source':<34} {'Status':<15} {'Sections / Path'}")
    print("-" * 80)
    for name, status, detail in rows:
        print(f"{name:<34} {status:<15} {detail}")

    print("\nNote: Later sources override earlier ones.")
    return 0


def format_config_show(settings: GridCoreSettings) -> str:
    """Format configuration for display, marking values that differ from the defaults."""
    lines = ["gridcore Configuration\n" + "=" * 40 + "\n"]

    for _, section_name in _SECTIONS:
        if lines[-1] != "":
            lines.append("")
        lines.append(f"[{section_name}]")
        section = getattr(settings, section_name)
        model_fields = type(section).model_fields
        for field, value in section.model_dump().items():
            marker = "  (overridden)" if value != model_fields[field].default else ""
            lines.append(f"  {field} = {value!r}{marker}")

    return "\n".join(lines)


if __name__ == "__main__":
    sys.exit(main())
