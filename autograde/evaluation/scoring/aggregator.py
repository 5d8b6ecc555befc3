# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Score aggregation.

    final = tests + penalties

where `tests` is the sum of awarded test scores (0 when the submission
didn't compile) and `penalties` is the sum of applied analyser penalties.
Whether penalties still count for a submission that didn't compile, and
whether the result is floored at zero, are ScoringPolicy switches; with the
defaults penalties always count and nothing is clamped, so the raw sum is
reported and presentation is left to the reporter.

Pure functions only: same inputs, same score, and terms are summed in
config order so float rounding is reproducible too.
"""

from typing import Iterable

from autograde.evaluation.suite.models import (
    AnalysisResult,
    CompileResult,
    ScoringPolicy,
    TestOutcome,
)


def tests_total(compile_result: CompileResult, outcomes: Iterable[TestOutcome]) -> float:
    if not compile_result.success:
        return 0.0
    return sum((o.awarded for o in outcomes), 0.0)


def penalty_total(
    compile_result: CompileResult,
    analyses: Iterable[AnalysisResult],
    policy: ScoringPolicy,
) -> float:
    if not compile_result.success and not policy.penalties_on_compile_failure:
        return 0.0
    return sum((a.penalty for a in analyses), 0.0)


def aggregate_score(
    compile_result: CompileResult,
    outcomes: Iterable[TestOutcome],
    analyses: Iterable[AnalysisResult],
    policy: ScoringPolicy = ScoringPolicy(),
) -> tuple[float, float, float]:
    """
    Combine everything into a final score.

    Returns (final, tests_total, penalty_total) so the report can show the
    breakdown without recomputing it.
    """
    earned = tests_total(compile_result, outcomes)
    penalties = penalty_total(compile_result, analyses, policy)
    final = earned + penalties
    if policy.clamp_at_zero:
        final = max(final, 0.0)
    return final, earned, penalties
