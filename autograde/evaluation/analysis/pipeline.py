# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Source analyser pipeline.

Tokenizes a submission once and runs every configured analyser over the
token stream, producing one AnalysisResult per AnalyserSpec, in config
order. This works on source text alone, so it runs whether or not the
submission compiled.
"""

from typing import Callable, Iterable

from autograde.evaluation.analysis.analysers import (
    allowed_global,
    find_forbidden_calls,
    find_forbidden_includes,
    find_global_variables,
)
from autograde.evaluation.analysis.lexer import Token, tokenize
from autograde.evaluation.suite.models import AnalyserKind, AnalyserSpec, AnalysisResult
from autograde.logging.logger import get_logger

logger = get_logger(__name__)


def _no_call(spec: AnalyserSpec, tokens: list[Token]) -> list[str]:
    return [f"call to {t.text}() on line {t.line}" for t in find_forbidden_calls(tokens, spec.funs)]


def _no_header(spec: AnalyserSpec, tokens: list[Token]) -> list[str]:
    if spec.header is None:
        return []
    return [
        f"#include of {spec.header} on line {t.line}"
        for t in find_forbidden_includes(tokens, spec.header)
    ]


def _no_globals(spec: AnalyserSpec, tokens: list[Token]) -> list[str]:
    return [
        f"global variable {t.text} on line {t.line}"
        for t in find_global_variables(tokens)
        if not allowed_global(t.text, spec.exceptions)
    ]


_ANALYSERS: dict[AnalyserKind, Callable[[AnalyserSpec, list[Token]], list[str]]] = {
    AnalyserKind.NO_CALL: _no_call,
    AnalyserKind.NO_HEADER: _no_header,
    AnalyserKind.NO_GLOBALS: _no_globals,
}


def run_analyser(spec: AnalyserSpec, tokens: list[Token]) -> AnalysisResult:
    """Run one analyser. A violated rule costs its penalty, otherwise 0."""
    findings = _ANALYSERS[spec.kind](spec, tokens)
    violated = bool(findings)
    return AnalysisResult(
        kind=spec.kind,
        violated=violated,
        penalty=spec.penalty if violated else 0.0,
        findings=tuple(findings),
    )


def run_analysers(source: str, specs: Iterable[AnalyserSpec]) -> tuple[AnalysisResult, ...]:
    """Tokenize `source` once and run every analyser over it."""
    tokens = tokenize(source)
    results = tuple(run_analyser(spec, tokens) for spec in specs)

    violated = [r.kind.value for r in results if r.violated]
    if violated:
        logger.debug("Analysers violated", extra={"analysers": violated})
    return results
