# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Data models for the grading engine.

These are the core types that everything in the evaluation pipeline passes
around. They're all frozen dataclasses: a test case loaded from config, an
execution result captured from a process, a report built for a submission —
none of them should ever change after creation. If something mutates them
mid-evaluation, that's a bug.
"""

import enum
from dataclasses import dataclass, field
from pathlib import Path

# Expected-output pattern meaning "anything goes, including nothing".
WILDCARD_PATTERN: str = "*"

DEFAULT_TIMEOUT_MS: int = 5000


class Requirement(str, enum.Enum):
    """How many cases of a Test must pass for its score to be awarded."""

    ALL = "all"
    ANY = "any"


class AnalyserKind(str, enum.Enum):
    NO_CALL = "no-call"
    NO_HEADER = "no-header"
    NO_GLOBALS = "no-globals"


@dataclass(frozen=True)
class TestCase:
    """
    One concrete invocation of the program.

    `stdout` / `stderr` are expected-output patterns: literal text, the
    wildcard "*", or None when the stream isn't checked at all.
    """

    __test__ = False

    args: tuple[str, ...] = ()
    stdin: str | None = None
    stdout: str | None = None
    stderr: str | None = None


@dataclass(frozen=True)
class Test:
    """
    A named, scored unit of evaluation.

    The score is awarded in full or not at all — there is no partial credit
    between the cases of one Test.
    """

    __test__ = False

    name: str
    score: float
    cases: tuple[TestCase, ...]
    requirement: Requirement = Requirement.ALL

    def __post_init__(self) -> None:
        if self.score < 0:
            raise ValueError(f"Test '{self.name}' has a negative score: {self.score}")
        if not self.cases:
            raise ValueError(f"Test '{self.name}' has no test cases")


@dataclass(frozen=True)
class AnalyserSpec:
    """A configured static check plus the penalty it costs when violated."""

    kind: AnalyserKind
    penalty: float
    funs: tuple[str, ...] = ()
    header: str | None = None
    exceptions: tuple[str, ...] = ()


@dataclass(frozen=True)
class CompilerSettings:
    cc: str = "gcc"
    cflags: tuple[str, ...] = ()
    ldflags: tuple[str, ...] = ()
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class ScoringPolicy:
    """
    Knobs for the two scoring questions the grading rules leave open.

    penalties_on_compile_failure: analyser penalties still count when the
        submission didn't compile.
    clamp_at_zero: the final score never goes below zero.
    """

    penalties_on_compile_failure: bool = True
    clamp_at_zero: bool = False


@dataclass(frozen=True)
class TestSuite:
    """Everything the engine needs to grade any submission of one project."""

    __test__ = False

    source_file: str
    tests: tuple[Test, ...] = ()
    analysers: tuple[AnalyserSpec, ...] = ()
    compiler: CompilerSettings = field(default_factory=CompilerSettings)
    timeout_seconds: float = DEFAULT_TIMEOUT_MS / 1000
    scoring: ScoringPolicy = field(default_factory=ScoringPolicy)
    scripts: tuple[Path, ...] = ()


@dataclass(frozen=True)
class Submission:
    """One student's program: a directory holding a single source file."""

    name: str
    directory: Path
    source_path: Path
    source: str


@dataclass(frozen=True)
class CompileResult:
    """What came back from trying to build a submission."""

    success: bool
    executable: Path | None = None
    diagnostics: str = ""
    exit_code: int | None = None
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class ExecutionResult:
    """
    What came back from running a program once.

    Exactly one of these describes how it ended: a normal exit (`exit_code`
    set), death by signal (`signaled`), the deadline (`timed_out`), or never
    starting at all (`launch_error`). Output captured up to that point is
    always kept.
    """

    exit_code: int | None = None
    signaled: bool = False
    signal: int | None = None
    timed_out: bool = False
    launch_error: str | None = None
    stdout: bytes = b""
    stderr: bytes = b""
    elapsed_seconds: float = 0.0

    @property
    def crashed(self) -> bool:
        return self.signaled

    @property
    def completed(self) -> bool:
        """True if the program ran and exited on its own."""
        return self.exit_code is not None and not self.timed_out


@dataclass(frozen=True)
class CaseOutcome:
    index: int
    execution: ExecutionResult
    stdout_matched: bool
    stderr_matched: bool
    passed: bool


@dataclass(frozen=True)
class TestOutcome:
    __test__ = False

    name: str
    score: float
    awarded: float
    passed: bool
    requirement: Requirement
    cases: tuple[CaseOutcome, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    kind: AnalyserKind
    violated: bool
    penalty: float
    findings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScriptResult:
    script: str
    execution: ExecutionResult


@dataclass(frozen=True)
class SolutionReport:
    """
    The complete grading outcome for one submission.

    This is the only thing the engine hands to the outside world. It has
    enough detail to render per-test results, analyser penalties and the
    final score without re-running anything.
    """

    submission: str
    compile_result: CompileResult
    tests: tuple[TestOutcome, ...]
    analyses: tuple[AnalysisResult, ...]
    tests_score: float
    penalty_total: float
    score: float
    scripts: tuple[ScriptResult, ...] = ()
