"""Tests for CLI module.

Tests the command-line interface for gridcore configuration management.
"""

from __future__ import annotations

import argparse
import contextlib

import pytest

from gridcore.cli import format_config_show, handle_config, handle_init, main, show_config_sources
from gridcore.config import GridCoreSettings, tomllib


def _config_args(**overrides) -> argparse.Namespace:
    values = {"show": False, "toml": False, "env": False, "sources": False, "output": None}
    values.update(overrides)
    return argparse.Namespace(**values)


class TestMainEntryPoint:
    """Tests for CLI main entry point."""

    def test_no_args_prints_help_text(self, capsys):
        """Running with no args prints help text with usage info."""
        result = main([])
        output = capsys.readouterr().out
        assert result == 0
        assert "usage:" in output.lower()
        assert "config" in output
        assert "init" in output

    def test_help_flag_shows_usage(self, capsys):
        """--help flag shows usage information."""
        with contextlib.suppress(SystemExit):
            main(["--help"])
        output = capsys.readouterr().out
        assert "usage:" in output.lower()
        assert "gridcore" in output

    def test_config_command_dispatches_to_handler(self, capsys):
        """config command prints the configuration."""
        assert main(["config", "--show"]) == 0
        assert "[grouping]" in capsys.readouterr().out

    def test_exclusive_config_flags(self):
        """--toml and --env cannot be combined."""
        with pytest.raises(SystemExit):
            main(["config", "--toml", "--env"])


class TestHandleConfig:
    """Tests for the config command."""

    def test_default_is_show(self, capsys):
        """Without flags the readable view is printed."""
        assert handle_config(_config_args()) == 0
        assert capsys.readouterr().out.startswith("gridcore Configuration")

    def test_toml_output(self, capsys):
        """--toml prints parseable TOML."""
        handle_config(_config_args(toml=True))
        data = tomllib.loads(capsys.readouterr().out)
        assert data["tree"]["child_field"] == "children"

    def test_env_output(self, capsys):
        """--env prints export lines."""
        handle_config(_config_args(env=True))
        assert 'export GRIDCORE_GROUPING__DEFAULT_EXPANDED="0"' in capsys.readouterr().out

    def test_output_file(self, tmp_path, capsys):
        """-o writes to a file instead of stdout."""
        target = tmp_path / "out.toml"
        handle_config(_config_args(toml=True, output=str(target)))
        assert "[selection]" in target.read_text(encoding="utf-8")
        assert "Configuration written to" in capsys.readouterr().out

    def test_reflects_environment(self, monkeypatch, capsys):
        """Shown values include environment overrides."""
        monkeypatch.setenv("GRIDCORE_SELECTION__ENABLED", "true")
        handle_config(_config_args(show=True))
        assert "enabled = True" in capsys.readouterr().out


class TestHandleInit:
    """Tests for the init command."""

    def test_creates_file(self, tmp_path, capsys):
        """init writes gridcore.toml with a header."""
        assert main(["init"]) == 0
        content = (tmp_path / "gridcore.toml").read_text(encoding="utf-8")
        assert content.startswith("# gridcore Configuration File")
        assert "[grouping]" in content
        assert "Created" in capsys.readouterr().out

    def test_refuses_to_overwrite(self, tmp_path, capsys):
        """An existing file is kept unless --force is given."""
        target = tmp_path / "gridcore.toml"
        target.write_text("# mine\n", encoding="utf-8")
        assert handle_init(argparse.Namespace(path=str(target), force=False)) == 1
        assert target.read_text(encoding="utf-8") == "# mine\n"
        assert "already exists" in capsys.readouterr().err

    def test_force_overwrites(self, tmp_path):
        """--force replaces the existing file."""
        target = tmp_path / "custom.toml"
        target.write_text("# mine\n", encoding="utf-8")
        assert main(["init", "--force", "--path", str(target)]) == 0
        assert "[tree]" in target.read_text(encoding="utf-8")

    def test_generated_file_is_loaded(self, tmp_path):
        """The generated gridcore.toml is a valid config file."""
        main(["init"])
        assert GridCoreSettings().grouping.blank_key == "(blank)"


class TestShowConfigSources:
    """Tests for show_config_sources()."""

    def test_lists_sources(self, capsys):
        """Every source is listed."""
        assert show_config_sources() == 0
        output = capsys.readouterr().out
        assert "pyproject.toml [tool.gridcore]" in output
        assert "./gridcore.toml" in output
        assert "✗ No vars" in output

    def test_counts_env_vars(self, monkeypatch, capsys):
        """GRIDCORE_* variables are counted."""
        monkeypatch.setenv("GRIDCORE_LOG__LEVEL", "DEBUG")
        show_config_sources()
        assert "✓ 1 vars" in capsys.readouterr().out

    def test_found_file(self, tmp_path, capsys):
        """Existing files are marked as found."""
        (tmp_path / "gridcore.toml").write_text("", encoding="utf-8")
        show_config_sources()
        lines = [line for line in capsys.readouterr().out.splitlines() if "./gridcore.toml" in line]
        assert "✓ Found" in lines[0]

    def test_found_file_lists_sections(self, tmp_path, capsys):
        """Found files show which settings sections they set."""
        (tmp_path / "gridcore.toml").write_text("[tree]\nrow_key = 'key'\n", encoding="utf-8")
        show_config_sources()
        lines = [line for line in capsys.readouterr().out.splitlines() if "./gridcore.toml" in line]
        assert lines[0].rstrip().endswith("tree")

    def test_pyproject_without_table_has_no_sections(self, tmp_path, capsys):
        """A pyproject.toml without [tool.gridcore] is found but sets nothing."""
        (tmp_path / "pyproject.toml").write_text("[project]\nname = 'x'\n", encoding="utf-8")
        show_config_sources()
        lines = [line for line in capsys.readouterr().out.splitlines() if "pyproject" in line]
        assert "✓ Found" in lines[0]
        assert "grouping" not in lines[0]

    def test_unreadable_file(self, tmp_path, capsys):
        """Invalid TOML is reported as unreadable."""
        (tmp_path / "gridcore.toml").write_text("[tree\n", encoding="utf-8")
        show_config_sources()
        assert "✗ Unreadable" in capsys.readouterr().out

    def test_config_file_env_unset(self, capsys):
        """GRIDCORE_CONFIG_FILE is reported as not set."""
        show_config_sources()
        lines = [line for line in capsys.readouterr().out.splitlines() if "CONFIG_FILE" in line]
        assert "✗ Not set" in lines[0]

    def test_env_var_sections(self, monkeypatch, capsys):
        """Environment variables are summarised by section."""
        monkeypatch.setenv("GRIDCORE_TREE__ROW_KEY", "key")
        monkeypatch.setenv("GRIDCORE_LOG__LEVEL", "DEBUG")
        show_config_sources()
        lines = [line for line in capsys.readouterr().out.splitlines() if "Environment" in line]
        assert "✓ 2 vars" in lines[0]
        assert lines[0].rstrip().endswith("log, tree")

    def test_sources_flag(self, capsys):
        """config --sources prints the source table."""
        assert main(["config", "--sources"]) == 0
        assert "Configuration Sources" in capsys.readouterr().out


class TestFormatConfigShow:
    """Tests for format_config_show()."""

    def test_all_sections(self):
        """Every settings section is rendered."""
        output = format_config_show(GridCoreSettings())
        for section in ("[grouping]", "[tree]", "[selection]", "[log]"):
            assert section in output
        assert "  blank_key = '(blank)'" in output

    def test_marks_overridden_values(self):
        """Values that differ from the defaults are marked."""
        output = format_config_show(GridCoreSettings(tree={"row_key": "key"}))
        assert "  row_key = 'key'  (overridden)" in output
        assert "  child_field = 'children'\n" in output
