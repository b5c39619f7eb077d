"""
Script: tests/test_cli.py
What: Tests for the shared `release_tools` command dispatcher.
Doing: Checks command-map entries, parser behavior, command-run paths, and error exit codes.
Why: Makes sure workflow step names still point to the right modules.
Goal: Protect the main command entry surface used by workflow steps.
"""

from __future__ import annotations

import io
import unittest
from contextlib import redirect_stderr
from unittest import mock

from release_tools import cli
from release_tools.cli import build_parser, command_map, run_command
from release_tools.common import ConfigError


class CliTests(unittest.TestCase):
    def test_command_map_contains_expected_entries(self) -> None:
        commands = command_map()
        self.assertEqual(set(commands.keys()), {"publish", "permission-check", "merge-by"})

    def test_parser_accepts_known_command(self) -> None:
        parser = build_parser({"demo-command": lambda: None})
        args = parser.parse_args(["demo-command"])
        self.assertEqual(args.command, "demo-command")

    def test_parser_rejects_unknown_command(self) -> None:
        parser = build_parser({"publish": lambda: None})
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
            parser.parse_args(["deploy"])

    def test_run_command_calls_target_function(self) -> None:
        called = {"value": False}

        def _target() -> None:
            called["value"] = True

        run_command("demo", {"demo": _target})
        self.assertTrue(called["value"])

    def test_known_error_exits_with_status_one(self) -> None:
        def _failing() -> None:
            raise ConfigError("Package name and version must be set")

        stderr = io.StringIO()
        with mock.patch.object(cli, "command_map", return_value={"publish": _failing}):
            with redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
                cli.main(["publish"])

        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("ConfigError: Package name and version must be set", stderr.getvalue())

    def test_unexpected_error_propagates(self) -> None:
        def _failing() -> None:
            raise ValueError("boom")

        with mock.patch.object(cli, "command_map", return_value={"publish": _failing}):
            with self.assertRaises(ValueError):
                cli.main(["publish"])


if __name__ == "__main__":
    unittest.main()
