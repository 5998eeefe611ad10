"""Tests for CLI common utilities."""

import argparse

import pytest

from backtor_restic.cli.common import (
    add_verbosity_args,
    get_log_level,
)


class TestAddVerbosityArgs:
    """Tests for add_verbosity_args function."""

    def test_adds_log_level(self):
        """Test that --log-level accepts level names case-insensitively."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["--log-level", "WARNING"])
        assert args.log_level == "warning"

    def test_rejects_unknown_log_level(self):
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        with pytest.raises(SystemExit):
            parser.parse_args(["--log-level", "chatty"])

    def test_short_flags(self):
        """Test that -v and -q work."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        assert parser.parse_args(["-v"]).verbose is True
        assert parser.parse_args(["-q"]).quiet is True

    def test_defaults(self):
        """Test that defaults are unset."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args([])
        assert args.log_level is None
        assert args.verbose is False
        assert args.quiet is False
        assert args.debug is False


class TestGetLogLevel:
    """Tests for get_log_level function."""

    def test_debug_flag(self):
        args = argparse.Namespace(debug=True, quiet=False, verbose=False, log_level=None)
        assert get_log_level(args) == "debug"

    def test_quiet_flag(self):
        args = argparse.Namespace(debug=False, quiet=True, verbose=False, log_level=None)
        assert get_log_level(args) == "warning"

    def test_verbose_flag(self):
        args = argparse.Namespace(debug=False, quiet=False, verbose=True, log_level=None)
        assert get_log_level(args) == "debug"

    def test_explicit_level(self):
        args = argparse.Namespace(debug=False, quiet=False, verbose=False, log_level="error")
        assert get_log_level(args) == "error"

    def test_flags_beat_explicit_level(self):
        """Test that --debug takes precedence over --log-level."""
        args = argparse.Namespace(debug=True, quiet=False, verbose=False, log_level="error")
        assert get_log_level(args) == "debug"

    def test_missing_attributes(self):
        """Test that nothing set on the command line yields None."""
        assert get_log_level(argparse.Namespace()) is None
