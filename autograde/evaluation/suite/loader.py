# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Turns a validated ProjectConfig into the engine's TestSuite.

The config schema speaks YAML (strings, milliseconds, hyphenated keys);
the engine speaks frozen dataclasses with seconds and tuples. This module is
the one place that translates between the two, and the one place that reads
`<file` references:

    stdin: <input      # contents of <project>/input are fed to the program
    stdout: <output    # contents of <project>/output are the expected output

Everything is resolved eagerly, so a missing input file is reported once at
startup instead of failing every submission separately.
"""

import shlex
from pathlib import Path

from autograde.config.exceptions import ConfigReferenceError
from autograde.config.schema import (
    NoCallAnalysisConfig,
    NoGlobalsAnalysisConfig,
    NoHeaderAnalysisConfig,
    ProjectConfig,
    TestCaseConfig,
    TestConfig,
)
from autograde.evaluation.suite.models import (
    AnalyserKind,
    AnalyserSpec,
    CompilerSettings,
    Requirement,
    ScoringPolicy,
    Test,
    TestCase,
    TestSuite,
)
from autograde.logging.logger import get_logger

logger = get_logger(__name__)

_FILE_REFERENCE_PREFIX = "<"


def _resolve_text(value: str | None, project_dir: Path, field: str, test_name: str) -> str | None:
    """Return `value` itself, or the contents of the file it references."""
    if value is None or not value.startswith(_FILE_REFERENCE_PREFIX):
        return value

    reference = value[len(_FILE_REFERENCE_PREFIX):].strip()
    if not reference:
        raise ConfigReferenceError(
            f"Test '{test_name}': field '{field}' has an empty file reference"
        )

    path = project_dir / reference
    try:
        # Non-UTF-8 bytes survive as surrogates; the matcher and runner encode them back.
        return path.read_bytes().decode("utf-8", errors="surrogateescape")
    except OSError as err:
        raise ConfigReferenceError(
            f"Test '{test_name}': cannot read '{field}' file {path}: {err}"
        ) from err


def _build_case(case: TestCaseConfig, project_dir: Path, test_name: str) -> TestCase:
    return TestCase(
        args=tuple(case.args),
        stdin=_resolve_text(case.stdin, project_dir, "stdin", test_name),
        stdout=_resolve_text(case.stdout, project_dir, "stdout", test_name),
        stderr=_resolve_text(case.stderr, project_dir, "stderr", test_name),
    )


def _build_test(test: TestConfig, project_dir: Path) -> Test:
    return Test(
        name=test.name,
        score=test.score,
        cases=tuple(_build_case(c, project_dir, test.name) for c in test.cases()),
        requirement=Requirement(test.requirement),
    )


def _build_analyser(analysis: object) -> AnalyserSpec:
    if isinstance(analysis, NoCallAnalysisConfig):
        return AnalyserSpec(
            kind=AnalyserKind.NO_CALL,
            penalty=analysis.penalty,
            funs=tuple(analysis.funs),
        )
    if isinstance(analysis, NoHeaderAnalysisConfig):
        return AnalyserSpec(
            kind=AnalyserKind.NO_HEADER,
            penalty=analysis.penalty,
            header=analysis.header,
        )
    if isinstance(analysis, NoGlobalsAnalysisConfig):
        return AnalyserSpec(
            kind=AnalyserKind.NO_GLOBALS,
            penalty=analysis.penalty,
            exceptions=tuple(analysis.exceptions),
        )
    # The schema's discriminated union makes this unreachable.
    raise TypeError(f"Unsupported analysis config: {type(analysis).__name__}")


def build_test_suite(config: ProjectConfig, project_dir: Path) -> TestSuite:
    """
    Build the engine-facing TestSuite for a project.

    Raises:
        ConfigReferenceError: a `<file` reference can't be read.
    """
    tests = tuple(_build_test(t, project_dir) for t in config.tests)
    analysers = tuple(_build_analyser(a) for a in config.analyses)

    suite = TestSuite(
        source_file=config.source,
        tests=tests,
        analysers=analysers,
        compiler=CompilerSettings(
            cc=config.compiler.cc,
            cflags=tuple(shlex.split(config.compiler.cflags)),
            ldflags=tuple(shlex.split(config.compiler.ldflags)),
            timeout_seconds=config.compiler.timeout_ms / 1000,
        ),
        timeout_seconds=config.timeout_ms / 1000,
        scoring=ScoringPolicy(
            penalties_on_compile_failure=config.scoring.penalties_on_compile_failure,
            clamp_at_zero=config.scoring.clamp_at_zero,
        ),
        scripts=tuple((project_dir / s).resolve() for s in config.scripts),
    )

    logger.debug(
        "Test suite built",
        extra={
            "tests": len(suite.tests),
            "cases": sum(len(t.cases) for t in suite.tests),
            "analysers": [a.kind.value for a in suite.analysers],
            "max_score": sum(t.score for t in suite.tests),
        },
    )
    return suite
