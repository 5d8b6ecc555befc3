# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for test-case judging and all/any test evaluation.

The program under test is an /bin/sh script that echoes its first argument
(and misbehaves on request), so each case can pick its own fate through
its arguments.
"""

import os
from pathlib import Path
from typing import Callable

import pytest

from autograde.evaluation.runner.evaluator import evaluate_test, judge_case, requirement_met
from autograde.evaluation.suite.models import ExecutionResult, Requirement, Test, TestCase

MakeScript = Callable[[str, str], Path]

posix_only = pytest.mark.skipif(os.name != "posix", reason="uses /bin/sh scripts")

_ECHO_PROGRAM = """\
    case "$1" in
      hang) while :; do :; done ;;
      crash) echo crash; kill -SEGV $$ ;;
      fail) echo "$1" >&2; exit 1 ;;
    esac
    echo "$1"
"""


@pytest.fixture()
def echo_program(make_script: MakeScript) -> Path:
    return make_script("echo.sh", _ECHO_PROGRAM)


def _case(arg: str, stdout: str | None = None, stderr: str | None = None) -> TestCase:
    return TestCase(args=(arg,), stdout=stdout if stdout is not None else f"{arg}\n", stderr=stderr)


class TestJudgeCase:
    def test_matching_completed_run_passes(self) -> None:
        outcome = judge_case(0, TestCase(stdout="hi\n"), ExecutionResult(exit_code=0, stdout=b"hi\n"))
        assert outcome.passed
        assert outcome.stdout_matched
        assert outcome.stderr_matched

    def test_non_zero_exit_code_alone_does_not_fail(self) -> None:
        outcome = judge_case(0, TestCase(stdout="hi\n"), ExecutionResult(exit_code=2, stdout=b"hi\n"))
        assert outcome.passed

    def test_both_streams_must_match(self) -> None:
        case = TestCase(stdout="out\n", stderr="err\n")
        outcome = judge_case(0, case, ExecutionResult(exit_code=0, stdout=b"out\n", stderr=b"nope\n"))
        assert outcome.stdout_matched
        assert not outcome.stderr_matched
        assert not outcome.passed

    def test_timeout_fails_even_with_right_output(self) -> None:
        outcome = judge_case(
            0, TestCase(stdout="hi\n"), ExecutionResult(timed_out=True, stdout=b"hi\n")
        )
        assert not outcome.passed
        assert not outcome.stdout_matched

    def test_crash_fails_even_with_right_output(self) -> None:
        outcome = judge_case(
            0, TestCase(stdout="*"), ExecutionResult(signaled=True, signal=11, stdout=b"hi\n")
        )
        assert not outcome.passed

    def test_launch_error_fails(self) -> None:
        outcome = judge_case(0, TestCase(), ExecutionResult(launch_error="no such file"))
        assert not outcome.passed


class TestRequirementMet:
    def test_all(self) -> None:
        assert requirement_met(Requirement.ALL, [True, True])
        assert not requirement_met(Requirement.ALL, [True, False])

    def test_any(self) -> None:
        assert requirement_met(Requirement.ANY, [False, True])
        assert not requirement_met(Requirement.ANY, [False, False])


@posix_only
class TestEvaluateTest:
    def test_all_cases_pass_awards_full_score(self, echo_program: Path) -> None:
        test = Test(name="echo", score=1.5, cases=(_case("a"), _case("b")))
        outcome = evaluate_test(test, echo_program, timeout_seconds=5)

        assert outcome.passed
        assert outcome.awarded == 1.5
        assert [c.index for c in outcome.cases] == [0, 1]

    @pytest.mark.parametrize("bad", ["hang", "crash", "mismatch"])
    def test_requirement_all_fails_on_any_bad_case(self, echo_program: Path, bad: str) -> None:
        broken = _case(bad, stdout="something else\n") if bad == "mismatch" else _case(bad)
        test = Test(name="echo", score=1.0, cases=(_case("a"), broken, _case("c")))
        outcome = evaluate_test(test, echo_program, timeout_seconds=0.5)

        assert not outcome.passed
        assert outcome.awarded == 0.0
        assert [c.passed for c in outcome.cases] == [True, False, True]

    def test_requirement_any_passes_with_one_good_case(self, echo_program: Path) -> None:
        test = Test(
            name="echo",
            score=2.0,
            cases=(_case("hang"), _case("b"), _case("x", stdout="y\n")),
            requirement=Requirement.ANY,
        )
        outcome = evaluate_test(test, echo_program, timeout_seconds=0.5)

        assert outcome.passed
        assert outcome.awarded == 2.0
        assert outcome.cases[0].execution.timed_out

    def test_requirement_any_fails_when_nothing_passes(self, echo_program: Path) -> None:
        test = Test(
            name="echo",
            score=2.0,
            cases=(_case("crash"), _case("x", stdout="y\n")),
            requirement=Requirement.ANY,
        )
        outcome = evaluate_test(test, echo_program, timeout_seconds=5)
        assert not outcome.passed
        assert outcome.awarded == 0.0

    def test_stderr_pattern_and_wildcard(self, echo_program: Path) -> None:
        test = Test(
            name="stderr",
            score=1.0,
            cases=(TestCase(args=("fail",), stdout="*", stderr="fail\n"),),
        )
        outcome = evaluate_test(test, echo_program, timeout_seconds=5)
        assert outcome.passed
        assert outcome.cases[0].execution.exit_code == 1

    def test_stdin_reaches_the_program(self, make_script: MakeScript) -> None:
        program = make_script("rev.sh", "read line\necho \"got $line\"\n")
        test = Test(name="stdin", score=1.0, cases=(TestCase(stdin="abc\n", stdout="got abc\n"),))
        assert evaluate_test(test, program, timeout_seconds=5).passed

    def test_parallel_cases_keep_config_order(self, echo_program: Path) -> None:
        cases = tuple(_case(str(i)) for i in range(6))
        test = Test(name="parallel", score=1.0, cases=cases)
        outcome = evaluate_test(test, echo_program, timeout_seconds=5, case_workers=3)

        assert outcome.passed
        assert [c.index for c in outcome.cases] == list(range(6))
        assert [c.execution.stdout for c in outcome.cases] == [f"{i}\n".encode() for i in range(6)]
