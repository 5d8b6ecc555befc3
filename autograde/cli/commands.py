# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the autograde CLI.

Each function here corresponds to one CLI subcommand and returns an exit
code from autograde.cli.exit_codes. Diagnostics go through the structured
logger (stderr); the only thing written to stdout is one `name: score`
line per graded submission, so the output can be piped straight into a
gradebook.
"""

import argparse
import logging
import sys
from pathlib import Path

from autograde.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR
from autograde.config.exceptions import ConfigError
from autograde.config.loader import load_config, resolve_config_path
from autograde.config.schema import ProjectConfig
from autograde.evaluation.exceptions import EngineError
from autograde.evaluation.suite.loader import build_test_suite
from autograde.evaluation.suite.models import TestSuite
from autograde.logging.logger import get_logger


def _load_project(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, ProjectConfig | None, TestSuite | None, logging.Logger]:
    """
    The shared setup every command needs: find the project, load its config
    and build the TestSuite.

    Returns (exit_code, config, suite, logger). If exit_code is not SUCCESS,
    the caller should return it immediately.
    """
    logger = get_logger(f"autograde.cli.{command_name}", log_level=args.log_level)

    project_dir = Path(args.project_dir)
    if not project_dir.is_dir():
        logger.error(
            "Project directory not found",
            extra={"command": command_name, "path": str(project_dir)},
        )
        return USER_ERROR, None, None, logger

    config_path = resolve_config_path(
        project_dir, Path(args.config) if args.config is not None else None
    )
    try:
        config = load_config(config_path)
        suite = build_test_suite(config, project_dir)
    except ConfigError as err:
        logger.error(
            "Configuration error",
            extra={"command": command_name, "config": str(config_path), "error": str(err)},
        )
        return CONFIG_ERROR, None, None, logger

    logger.debug(
        "Configuration loaded",
        extra={"command": command_name, "config": str(config_path)},
    )
    return SUCCESS, config, suite, logger


def handle_run(args: argparse.Namespace) -> int:
    """
    Grade the submissions of a project.

    Compiles, tests and analyses every submission (or just the one picked
    with --solution), prints each score to stdout and, with --output-dir,
    writes results.json and report.txt.
    """
    exit_code, config, suite, logger = _load_project(args, "run")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None and suite is not None

    from autograde.evaluation.reporting.writer import format_score_line, write_report
    from autograde.evaluation.runner.executor import evaluate_suite
    from autograde.evaluation.suite.discovery import discover_submissions

    project_dir = Path(args.project_dir)
    try:
        submissions = discover_submissions(
            project_dir,
            suite.source_file,
            exclude_dirs=config.solutions.exclude_dirs,
            only=args.solution,
        )
        if args.solution and not submissions:
            logger.error("Nothing to grade", extra={"solution": args.solution})
            return USER_ERROR

        jobs = args.jobs if args.jobs is not None else config.jobs
        logger.info(
            "Starting grading",
            extra={
                "command": "run",
                "project": str(project_dir),
                "submissions": len(submissions),
                "jobs": jobs,
                "dry_run": args.dry_run,
            },
        )

        if args.dry_run:
            logger.info(
                "Dry run, nothing graded",
                extra={"names": [s.name for s in submissions]},
            )
            return SUCCESS

        reports = evaluate_suite(
            submissions,
            suite,
            max_workers=jobs,
            case_workers=args.case_workers,
        )

        for report in reports:
            sys.stdout.write(format_score_line(report) + "\n")
        sys.stdout.flush()

        if args.output_dir is not None:
            write_report(reports, Path(args.output_dir))

        logger.info(
            "Grading complete",
            extra={
                "graded": len(reports),
                "max_score": sum(t.score for t in suite.tests),
            },
        )
        return SUCCESS

    except EngineError as err:
        logger.error("Grading aborted", extra={"error": str(err)})
        return RUNTIME_ERROR
    except OSError as err:
        logger.error("Grading failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_check(args: argparse.Namespace) -> int:
    """
    Validate a project without grading anything.

    Loads the config (including every `<file` reference), checks that the
    compiler is available and lists the submissions that would be graded.
    """
    exit_code, config, suite, logger = _load_project(args, "check")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None and suite is not None

    from autograde.evaluation.compiler.harness import ensure_toolchain
    from autograde.evaluation.suite.discovery import discover_submissions

    try:
        compiler = ensure_toolchain(suite.compiler)
    except EngineError as err:
        logger.error("Toolchain check failed", extra={"error": str(err)})
        return RUNTIME_ERROR

    submissions = discover_submissions(
        Path(args.project_dir),
        suite.source_file,
        exclude_dirs=config.solutions.exclude_dirs,
    )

    logger.info(
        "Project is valid",
        extra={
            "compiler": compiler,
            "tests": [t.name for t in suite.tests],
            "max_score": sum(t.score for t in suite.tests),
            "analysers": [a.kind.value for a in suite.analysers],
            "submissions": len(submissions),
        },
    )
    return SUCCESS
