from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Mapping

from release_tools.common import ReleaseToolError


COMMAND_SUMMARIES = {
    "publish": "build the macro table and write the artifact upload spec",
    "permission-check": "require admin/write/maintain permission for the triggering user",
    "merge-by": "report review and merge-by status of open pull requests",
}


def command_map() -> dict[str, Callable[[], None]]:
    """
    Map workflow step names to helper `main()` functions.

    Each value is a `main()` that reads its own inputs from the environment.
    """
    from release_tools.merge_by import main as merge_by
    from release_tools.permission_check import main as permission_check
    from release_tools.publish import main as publish

    return {
        "publish": publish,
        "permission-check": permission_check,
        "merge-by": merge_by,
    }


def build_parser(commands: Mapping[str, Callable[[], None]]) -> argparse.ArgumentParser:
    """Build argument parser with one positional command choice."""
    epilog_lines = [
        f"  {name:<18} {COMMAND_SUMMARIES[name]}" for name in sorted(commands) if name in COMMAND_SUMMARIES
    ]
    parser = argparse.ArgumentParser(
        prog="python3 -m release_tools.cli",
        description="Run one release pipeline step. Inputs are read from environment variables.",
        epilog="commands:\n" + "\n".join(epilog_lines) if epilog_lines else None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", choices=sorted(commands.keys()))
    return parser


def run_command(command: str, commands: Mapping[str, Callable[[], None]]) -> None:
    commands[command]()


def main(argv: list[str] | None = None) -> None:
    commands = command_map()
    args = build_parser(commands).parse_args(argv)

    try:
        run_command(args.command, commands)
    except ReleaseToolError as exc:
        # Known failures print one readable line; anything else keeps its traceback.
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
