"""Tests for CLI common utilities."""

import argparse

import pytest

from azfiles_backup_ng.cli.common import (
    add_side_arg,
    add_verbosity_args,
    get_log_level,
    load_config_for,
    selected_sides,
)


class TestAddVerbosityArgs:
    """Tests for add_verbosity_args function."""

    def test_adds_verbose(self):
        """Test that --verbose is added."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["--verbose"])
        assert args.verbose is True

    def test_adds_quiet(self):
        """Test that --quiet is added."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["--quiet"])
        assert args.quiet is True

    def test_adds_debug(self):
        """Test that --debug is added."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["--debug"])
        assert args.debug is True

    def test_short_verbose(self):
        """Test that -v works for verbose."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["-v"])
        assert args.verbose is True

    def test_short_quiet(self):
        """Test that -q works for quiet."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["-q"])
        assert args.quiet is True

    def test_defaults_are_false(self):
        """Test that defaults are False."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args([])
        assert args.verbose is False
        assert args.quiet is False
        assert args.debug is False


class TestGetLogLevel:
    """Tests for get_log_level function."""

    def test_debug_flag(self):
        """Test that debug flag returns DEBUG."""
        args = argparse.Namespace(debug=True, quiet=False, verbose=False)
        assert get_log_level(args) == "DEBUG"

    def test_quiet_flag(self):
        """Test that quiet flag returns WARNING."""
        args = argparse.Namespace(debug=False, quiet=True, verbose=False)
        assert get_log_level(args) == "WARNING"

    def test_verbose_flag(self):
        """Test that verbose flag returns DEBUG."""
        args = argparse.Namespace(debug=False, quiet=False, verbose=True)
        assert get_log_level(args) == "DEBUG"

    def test_no_flags(self):
        """Test that no flags returns INFO."""
        args = argparse.Namespace(debug=False, quiet=False, verbose=False)
        assert get_log_level(args) == "INFO"

    def test_debug_takes_precedence(self):
        """Test that debug takes precedence over other flags."""
        args = argparse.Namespace(debug=True, quiet=True, verbose=True)
        assert get_log_level(args) == "DEBUG"

    def test_missing_attributes(self):
        """Test handling of missing attributes."""
        args = argparse.Namespace()
        # Should default to INFO when attributes are missing
        assert get_log_level(args) == "INFO"

    def test_partial_attributes(self):
        """Test handling of partial attributes."""
        args = argparse.Namespace(debug=True)
        assert get_log_level(args) == "DEBUG"

        args = argparse.Namespace(quiet=True)
        assert get_log_level(args) == "WARNING"


class TestSides:
    """Tests for --side handling."""

    def test_default_both(self):
        parser = argparse.ArgumentParser()
        add_side_arg(parser)
        args = parser.parse_args([])
        assert selected_sides(args) == ("source", "target")

    def test_single_side(self):
        parser = argparse.ArgumentParser()
        add_side_arg(parser)
        args = parser.parse_args(["--side", "target"])
        assert selected_sides(args) == ("target",)

    def test_rejects_unknown_side(self):
        parser = argparse.ArgumentParser()
        add_side_arg(parser)
        with pytest.raises(SystemExit):
            parser.parse_args(["--side", "middle"])


class TestLoadConfigFor:
    """Tests for load_config_for."""

    def test_loads_explicit_file(self, minimal_config_file):
        args = argparse.Namespace(config=str(minimal_config_file))
        config = load_config_for(args)
        assert config is not None
        assert config.source.account_name == "src"

    def test_missing_explicit_file(self, tmp_path):
        args = argparse.Namespace(config=str(tmp_path / "missing.toml"))
        assert load_config_for(args) is None

    def test_invalid_file(self, tmp_config_dir):
        bad = tmp_config_dir / "bad.toml"
        bad.write_text("[source]\naccount_name = 'x'\n")
        args = argparse.Namespace(config=str(bad))
        assert load_config_for(args) is None
