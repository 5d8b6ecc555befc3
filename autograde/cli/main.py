# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for autograde.

Every operation is a subcommand of `autograde`. The global options
(--config, --log-level, --dry-run) are inherited by every subcommand
through argparse's parent parser mechanism.

Usage:
    autograde run path/to/project
    autograde run path/to/project --solution alice --output-dir out/
    autograde check path/to/project --config other.yaml
"""

import argparse
import sys

from autograde.cli.commands import handle_check, handle_run
from autograde.cli.exit_codes import USER_ERROR


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False so the help text doesn't collide between the parent and
    the subcommand parsers.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the YAML config, relative to the project directory "
        "(default: config.yaml).",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level.",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Load and validate everything, but don't compile or run submissions.",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    """
    Register all subcommands with their handler functions.

    Each handler is attached via set_defaults(func=...), so `autograde run`
    ends up calling handle_run(args).
    """
    commands = [
        ("run", "Grade the submissions of a project.", handle_run),
        ("check", "Validate a project's config and list its submissions.", handle_check),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.add_argument(
            "project_dir",
            help="Project directory: config.yaml plus one sub-directory per submission.",
        )
        parser.set_defaults(func=handler)

    run_parser = subparsers.choices["run"]
    run_parser.add_argument(
        "--solution",
        type=str,
        default=None,
        help="Grade only this submission (a sub-directory name).",
    )
    run_parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        dest="output_dir",
        help="Write results.json and report.txt into this directory.",
    )
    run_parser.add_argument(
        "--jobs",
        type=_positive_int,
        default=None,
        help="Submissions graded in parallel (overrides `jobs` in the config).",
    )
    run_parser.add_argument(
        "--case-workers",
        type=_positive_int,
        default=1,
        dest="case_workers",
        help="Test cases of one test run in parallel.",
    )


def main(argv: list[str] | None = None) -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="autograde",
        description="autograde: compile, test and score C programming assignments.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args(argv)

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
