# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Test evaluation — runs every case of one Test and decides its score.

A case passes when the program ran to a normal exit (no timeout, no crash,
no launch failure) and every configured stream matched. Output captured
from a crashed or timed-out run is kept for the report but never matched:
half the right answer followed by a segfault is still a segfault.

The Test's score is then all or nothing:
  - requirement "all": every case must pass
  - requirement "any": at least one case must pass

Every case is always executed, even when the verdict is already decided,
so the report shows the full picture. With case_workers > 1 cases run
concurrently; each one still gets its own process and capture files, and
outcomes are reported in configuration order.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from autograde.evaluation.runner.matcher import stream_matches
from autograde.evaluation.runner.process import run_process
from autograde.evaluation.suite.models import (
    CaseOutcome,
    ExecutionResult,
    Requirement,
    Test,
    TestCase,
    TestOutcome,
)
from autograde.logging.logger import get_logger

logger = get_logger(__name__)


def judge_case(index: int, case: TestCase, execution: ExecutionResult) -> CaseOutcome:
    """Turn one execution of a case into a pass/fail verdict."""
    if not execution.completed:
        return CaseOutcome(
            index=index,
            execution=execution,
            stdout_matched=False,
            stderr_matched=False,
            passed=False,
        )

    stdout_ok = stream_matches(case.stdout, execution.stdout)
    stderr_ok = stream_matches(case.stderr, execution.stderr)
    return CaseOutcome(
        index=index,
        execution=execution,
        stdout_matched=stdout_ok,
        stderr_matched=stderr_ok,
        passed=stdout_ok and stderr_ok,
    )


def requirement_met(requirement: Requirement, passed: list[bool]) -> bool:
    if requirement is Requirement.ANY:
        return any(passed)
    return all(passed)


def evaluate_test(
    test: Test,
    executable: Path,
    timeout_seconds: float,
    cwd: Path | None = None,
    case_workers: int = 1,
) -> TestOutcome:
    """
    Evaluate one Test against a compiled submission.

    Raises:
        ProcessKillError: propagated from the runner; it's fatal for the run.
    """

    def _run(indexed: tuple[int, TestCase]) -> CaseOutcome:
        index, case = indexed
        execution = run_process(
            executable,
            args=case.args,
            stdin=case.stdin,
            timeout_seconds=timeout_seconds,
            cwd=cwd,
        )
        return judge_case(index, case, execution)

    indexed_cases = list(enumerate(test.cases))
    if case_workers > 1 and len(indexed_cases) > 1:
        with ThreadPoolExecutor(max_workers=min(case_workers, len(indexed_cases))) as pool:
            outcomes = list(pool.map(_run, indexed_cases))
    else:
        outcomes = [_run(item) for item in indexed_cases]

    passed = requirement_met(test.requirement, [o.passed for o in outcomes])
    awarded = test.score if passed else 0.0

    logger.debug(
        "Test evaluated",
        extra={
            "test": test.name,
            "requirement": test.requirement.value,
            "cases_passed": sum(1 for o in outcomes if o.passed),
            "cases_total": len(outcomes),
            "timeouts": sum(1 for o in outcomes if o.execution.timed_out),
            "awarded": awarded,
        },
    )

    return TestOutcome(
        name=test.name,
        score=test.score,
        awarded=awarded,
        passed=passed,
        requirement=test.requirement,
        cases=tuple(outcomes),
    )
