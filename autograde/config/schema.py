# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schema for a grading project.

A project is described by a single YAML file (conventionally config.yaml in
the project directory). Every section gets its own frozen pydantic model.
Frozen means once you create it, you cannot mutate it — grading rules that
change halfway through a run would make scores meaningless.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
  - populate_by_name=True: YAML uses the hyphenated / upper-case keys
    (`test-cases`, `CFLAGS`), Python code can use the field names
"""

import re
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_MODEL_CONFIG = ConfigDict(
    frozen=True, extra="forbid", validate_default=True, populate_by_name=True
)


def _coerce_text(value: object) -> object:
    """YAML turns `stdout: 42` into an int; expected output is always text."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _split_args(value: object) -> object:
    """Accept args either as one whitespace-separated string or as a YAML list."""
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (int, float)):
        return [str(value)]
    if isinstance(value, list):
        return [str(item) for item in value]
    return value


class SolutionsConfig(BaseModel):
    """Which sub-directories of the project are *not* submissions."""

    model_config = _MODEL_CONFIG

    exclude_dirs: list[str] = Field(
        default_factory=list,
        alias="exclude-dirs",
        description="Directory names to skip during submission discovery",
    )


class CompilerConfig(BaseModel):
    """How to turn a submission's source into an executable."""

    model_config = _MODEL_CONFIG

    cc: str = Field(default="gcc", alias="CC", description="Compiler executable")
    cflags: str = Field(default="", alias="CFLAGS", description="Compile flags")
    ldflags: str = Field(default="", alias="LDFLAGS", description="Link flags")
    timeout_ms: int = Field(
        default=30_000,
        ge=1,
        alias="timeout",
        description="Max milliseconds for one compiler invocation",
    )


class ScoringConfig(BaseModel):
    """The two scoring policy switches."""

    model_config = _MODEL_CONFIG

    penalties_on_compile_failure: bool = Field(
        default=True,
        alias="penalties-on-compile-failure",
        description="Apply analyser penalties even if the submission didn't compile",
    )
    clamp_at_zero: bool = Field(
        default=False,
        alias="clamp-at-zero",
        description="Never report a final score below zero",
    )


class TestCaseConfig(BaseModel):
    """One program invocation: arguments, stdin, and expected output."""

    __test__ = False

    model_config = _MODEL_CONFIG

    args: list[str] = Field(default_factory=list)
    stdin: Optional[str] = Field(default=None, description="Text or '<file'")
    stdout: Optional[str] = Field(default=None, description="Text, '*' or '<file'")
    stderr: Optional[str] = Field(default=None, description="Text, '*' or '<file'")

    @field_validator("args", mode="before")
    @classmethod
    def normalize_args(cls, value: object) -> object:
        return _split_args(value)

    @field_validator("stdin", "stdout", "stderr", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> object:
        return _coerce_text(value)


class TestConfig(BaseModel):
    """
    A scored test.

    Either the case fields (args / stdin / stdout / stderr) are given inline,
    making a test with exactly one case, or they're listed under
    `test-cases`. Mixing both is rejected — it's almost always a typo.
    """

    __test__ = False

    model_config = _MODEL_CONFIG

    name: str
    score: float = Field(ge=0)
    requirement: Literal["all", "any"] = Field(default="all")
    args: Optional[list[str]] = Field(default=None)
    stdin: Optional[str] = Field(default=None)
    stdout: Optional[str] = Field(default=None)
    stderr: Optional[str] = Field(default=None)
    test_cases: Optional[list[TestCaseConfig]] = Field(default=None, alias="test-cases")

    @field_validator("args", mode="before")
    @classmethod
    def normalize_args(cls, value: object) -> object:
        if value is None:
            return None
        return _split_args(value)

    @field_validator("stdin", "stdout", "stderr", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> object:
        return _coerce_text(value)

    @model_validator(mode="after")
    def check_case_layout(self) -> "TestConfig":
        inline = [
            name
            for name in ("args", "stdin", "stdout", "stderr")
            if getattr(self, name) is not None
        ]
        if self.test_cases is not None:
            if inline:
                raise ValueError(
                    f"test '{self.name}' mixes 'test-cases' with inline fields: {', '.join(inline)}"
                )
            if not self.test_cases:
                raise ValueError(f"test '{self.name}' has an empty 'test-cases' list")
        return self

    def cases(self) -> list[TestCaseConfig]:
        """The explicit case list, or the single case made of the inline fields."""
        if self.test_cases is not None:
            return list(self.test_cases)
        return [
            TestCaseConfig(
                args=self.args or [],
                stdin=self.stdin,
                stdout=self.stdout,
                stderr=self.stderr,
            )
        ]


class _AnalysisBase(BaseModel):
    model_config = _MODEL_CONFIG

    penalty: float = Field(le=0, description="Added to the score when the rule is violated")


class NoCallAnalysisConfig(_AnalysisBase):
    analyser: Literal["no-call"]
    funs: list[str] = Field(min_length=1, description="Forbidden function names")


class NoHeaderAnalysisConfig(_AnalysisBase):
    analyser: Literal["no-header"]
    header: str = Field(min_length=1, description="Forbidden header, e.g. string.h")


class NoGlobalsAnalysisConfig(_AnalysisBase):
    analyser: Literal["no-globals"]
    exceptions: list[str] = Field(
        default_factory=list,
        alias="except",
        description="Regular expressions for global names that are allowed",
    )

    @field_validator("exceptions")
    @classmethod
    def check_patterns(cls, value: list[str]) -> list[str]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as err:
                raise ValueError(f"invalid exception pattern '{pattern}': {err}") from err
        return value


AnalysisConfig = Annotated[
    Union[NoCallAnalysisConfig, NoHeaderAnalysisConfig, NoGlobalsAnalysisConfig],
    Field(discriminator="analyser"),
]


class ProjectConfig(BaseModel):
    """
    Top-level config container for one grading project.

    Only `source` is mandatory: a project with no tests and no analyses is
    valid (every submission scores 0), which is handy while drafting.
    """

    model_config = _MODEL_CONFIG

    source: str = Field(min_length=1, description="Source file name inside each submission")
    timeout_ms: int = Field(
        default=5000,
        ge=1,
        alias="timeout",
        description="Max milliseconds a single test case may run",
    )
    jobs: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Number of submissions evaluated in parallel",
    )
    solutions: SolutionsConfig = Field(default_factory=SolutionsConfig)
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    analyses: list[AnalysisConfig] = Field(default_factory=list)
    tests: list[TestConfig] = Field(default_factory=list)
    scripts: list[str] = Field(
        default_factory=list,
        description="Scripts run inside every submission directory, relative to the project",
    )
