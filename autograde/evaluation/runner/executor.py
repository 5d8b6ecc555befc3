# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Submission executor — the heart of the grading pipeline.

For each submission the executor:
  1. Compiles the source into a private build directory
  2. Runs every Test against the executable (if it compiled)
  3. Runs the source analysers (always, compiled or not)
  4. Runs any custom scripts
  5. Aggregates everything into one SolutionReport

Each submission is evaluated by a pure function of (submission, suite): no
state is shared between submissions, so a worker pool can grade them in
parallel without locks. Reports always come back in discovery order,
whatever order the workers finish in.

What a broken submission can and can't do: failing to compile, crashing,
hanging or printing garbage all end up as data in its own report. Only
EngineErrors (no compiler at all, unwritable filesystem, unkillable
process) stop the run, because then no submission can be graded fairly.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Sequence

from autograde.evaluation.analysis.pipeline import run_analysers
from autograde.evaluation.compiler.harness import compile_submission, ensure_toolchain
from autograde.evaluation.compiler.sandbox import BuildDirectory
from autograde.evaluation.exceptions import EngineError
from autograde.evaluation.runner.evaluator import evaluate_test
from autograde.evaluation.runner.scripts import run_scripts
from autograde.evaluation.scoring.aggregator import aggregate_score
from autograde.evaluation.suite.models import (
    CompileResult,
    ScriptResult,
    SolutionReport,
    Submission,
    TestOutcome,
    TestSuite,
)
from autograde.logging.logger import get_logger

logger = get_logger(__name__)


def _skipped_tests(suite: TestSuite) -> tuple[TestOutcome, ...]:
    """Outcomes for a submission that never got an executable: all zero."""
    return tuple(
        TestOutcome(
            name=test.name,
            score=test.score,
            awarded=0.0,
            passed=False,
            requirement=test.requirement,
        )
        for test in suite.tests
    )


def evaluate_submission(
    submission: Submission,
    suite: TestSuite,
    case_workers: int = 1,
    build_base_dir: Path | None = None,
) -> SolutionReport:
    """
    Grade one submission from scratch.

    Raises:
        EngineError: the environment is broken (see module docstring).
    """
    start = time.monotonic()

    # Analysers only need the source text, so they don't care how the build goes.
    analyses = run_analysers(submission.source, suite.analysers)

    scripts: tuple[ScriptResult, ...] = ()
    with BuildDirectory(submission.name, build_base_dir) as build_dir:
        compile_result = compile_submission(submission, suite.compiler, build_dir)

        if compile_result.success and compile_result.executable is not None:
            outcomes = tuple(
                evaluate_test(
                    test,
                    compile_result.executable,
                    timeout_seconds=suite.timeout_seconds,
                    cwd=submission.directory,
                    case_workers=case_workers,
                )
                for test in suite.tests
            )
        else:
            outcomes = _skipped_tests(suite)

        if suite.scripts:
            scripts = run_scripts(
                suite.scripts,
                submission,
                suite.compiler.timeout_seconds,
                executable=compile_result.executable if compile_result.success else None,
            )

    final, earned, penalties = aggregate_score(
        compile_result, outcomes, analyses, suite.scoring,
    )

    logger.info(
        "Submission evaluated",
        extra={
            "submission": submission.name,
            "compiled": compile_result.success,
            "tests_passed": sum(1 for o in outcomes if o.passed),
            "tests_total": len(outcomes),
            "penalty": round(penalties, 4),
            "score": round(final, 4),
            "elapsed_seconds": round(time.monotonic() - start, 3),
        },
    )

    return SolutionReport(
        submission=submission.name,
        compile_result=compile_result,
        tests=outcomes,
        analyses=analyses,
        tests_score=earned,
        penalty_total=penalties,
        score=final,
        scripts=scripts,
    )


def _evaluate_isolated(
    submission: Submission,
    suite: TestSuite,
    case_workers: int,
    build_base_dir: Path | None,
) -> SolutionReport:
    """
    evaluate_submission, with unexpected per-submission failures contained.

    An EngineError still propagates. Anything else is a bug or a one-off
    (say, a source file that vanished mid-run); it's logged with a traceback
    and the submission gets a zero-score report instead of taking its
    siblings down with it.
    """
    try:
        return evaluate_submission(submission, suite, case_workers, build_base_dir)
    except EngineError:
        raise
    except Exception as exc:
        logger.error(
            "Submission evaluation failed",
            extra={"submission": submission.name, "error": str(exc)},
            exc_info=True,
        )
        failed = CompileResult(success=False, diagnostics=f"internal error: {exc}")
        analyses = run_analysers(submission.source, suite.analysers)
        final, earned, penalties = aggregate_score(
            failed, (), analyses, suite.scoring,
        )
        return SolutionReport(
            submission=submission.name,
            compile_result=failed,
            tests=_skipped_tests(suite),
            analyses=analyses,
            tests_score=earned,
            penalty_total=penalties,
            score=final,
        )


def evaluate_suite(
    submissions: Sequence[Submission],
    suite: TestSuite,
    max_workers: int = 1,
    case_workers: int = 1,
    build_base_dir: Path | None = None,
) -> list[SolutionReport]:
    """
    Grade every submission, `max_workers` at a time.

    The compiler is checked once up front; without it there is nothing to
    grade. Reports are returned in the order of `submissions`.

    Raises:
        EngineError: the run was aborted. Pending submissions are cancelled.
    """
    ensure_toolchain(suite.compiler)

    logger.info(
        "Evaluation started",
        extra={
            "submissions": len(submissions),
            "tests": len(suite.tests),
            "analysers": len(suite.analysers),
            "max_workers": max_workers,
        },
    )

    if max_workers <= 1 or len(submissions) <= 1:
        return [
            _evaluate_isolated(s, suite, case_workers, build_base_dir)
            for s in submissions
        ]

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [
            pool.submit(_evaluate_isolated, s, suite, case_workers, build_base_dir)
            for s in submissions
        ]
        try:
            return [future.result() for future in futures]
        except EngineError:
            for future in futures:
                future.cancel()
            raise
