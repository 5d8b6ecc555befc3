# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the compile harness and build directories.

The build-directory tests need nothing but a filesystem. The compile tests
use tiny C programs that either compile or don't, and are skipped when gcc
isn't installed; the missing-toolchain paths are tested with a compiler
name that can't exist.
"""

import shutil
from pathlib import Path

import pytest

from autograde.evaluation.compiler.harness import compile_submission, ensure_toolchain
from autograde.evaluation.compiler.sandbox import (
    BuildDirectory,
    cleanup_build_dir,
    create_build_dir,
)
from autograde.evaluation.exceptions import EngineError, SandboxError, ToolchainNotFoundError
from autograde.evaluation.suite.models import CompilerSettings, Submission

requires_gcc = pytest.mark.skipif(shutil.which("gcc") is None, reason="gcc is not installed")

MISSING_CC = "autograde-no-such-compiler"


def _submission(tmp_path: Path, source: str, name: str = "alice") -> Submission:
    directory = tmp_path / name
    directory.mkdir()
    source_path = directory / "proj.c"
    source_path.write_text(source, encoding="utf-8")
    return Submission(name=name, directory=directory, source_path=source_path, source=source)


class TestBuildDirectory:
    def test_creates_an_empty_directory(self, tmp_path: Path) -> None:
        build_dir = create_build_dir("alice", base_dir=tmp_path)
        try:
            assert build_dir.is_dir()
            assert build_dir.parent == tmp_path
            assert list(build_dir.iterdir()) == []
            assert "alice" in build_dir.name
        finally:
            cleanup_build_dir(build_dir)

    def test_unsafe_label_characters_are_replaced(self, tmp_path: Path) -> None:
        build_dir = create_build_dir("../../evil name", base_dir=tmp_path)
        try:
            assert build_dir.parent == tmp_path
            assert "/" not in build_dir.name
            assert " " not in build_dir.name
        finally:
            cleanup_build_dir(build_dir)

    def test_cleanup_removes_directory(self, tmp_path: Path) -> None:
        build_dir = create_build_dir("alice", base_dir=tmp_path)
        (build_dir / "proj.o").write_bytes(b"\x7fELF")
        cleanup_build_dir(build_dir)
        assert not build_dir.exists()

    def test_cleanup_nonexistent_is_safe(self, tmp_path: Path) -> None:
        cleanup_build_dir(tmp_path / "does_not_exist")

    def test_context_manager_cleans_up_on_error(self, tmp_path: Path) -> None:
        build_dir = None
        with pytest.raises(RuntimeError):
            with BuildDirectory("alice", base_dir=tmp_path) as d:
                build_dir = d
                raise RuntimeError("boom")

        assert build_dir is not None
        assert not build_dir.exists()

    def test_unusable_base_dir_raises_sandbox_error(self, tmp_path: Path) -> None:
        not_a_dir = tmp_path / "file"
        not_a_dir.write_text("x", encoding="utf-8")

        with pytest.raises(SandboxError):
            create_build_dir("alice", base_dir=not_a_dir)

    def test_sandbox_error_is_fatal(self) -> None:
        assert issubclass(SandboxError, EngineError)


class TestToolchain:
    def test_missing_compiler_raises(self) -> None:
        with pytest.raises(ToolchainNotFoundError, match=MISSING_CC):
            ensure_toolchain(CompilerSettings(cc=MISSING_CC))

    @requires_gcc
    def test_gcc_is_found(self) -> None:
        assert ensure_toolchain(CompilerSettings(cc="gcc"))

    def test_missing_compiler_is_a_failed_build_not_a_crash(self, tmp_path: Path) -> None:
        submission = _submission(tmp_path, "int main(void) { return 0; }\n")
        with BuildDirectory("alice", base_dir=tmp_path) as build_dir:
            result = compile_submission(submission, CompilerSettings(cc=MISSING_CC), build_dir)

        assert result.success is False
        assert result.executable is None
        assert result.exit_code is None
        assert MISSING_CC in result.diagnostics


@requires_gcc
class TestCompileSubmission:
    def test_valid_program_builds(self, tmp_path: Path) -> None:
        submission = _submission(tmp_path, "#include <stdio.h>\nint main(void) { puts(\"hi\"); return 0; }\n")
        with BuildDirectory("alice", base_dir=tmp_path) as build_dir:
            result = compile_submission(submission, CompilerSettings(), build_dir)

            assert result.success is True
            assert result.exit_code == 0
            assert result.executable == build_dir / "proj"
            assert result.executable.is_file()
            assert result.elapsed_seconds >= 0

        # Nothing is written next to the student's source.
        assert sorted(p.name for p in submission.directory.iterdir()) == ["proj.c"]

    def test_syntax_error_gives_diagnostics(self, tmp_path: Path) -> None:
        submission = _submission(tmp_path, "int main(void) { return 0 }\n")
        with BuildDirectory("alice", base_dir=tmp_path) as build_dir:
            result = compile_submission(submission, CompilerSettings(), build_dir)

        assert result.success is False
        assert result.executable is None
        assert result.exit_code not in (0, None)
        assert "error" in result.diagnostics

    def test_link_failure_is_a_compile_failure(self, tmp_path: Path) -> None:
        submission = _submission(tmp_path, "void missing(void);\nint main(void) { missing(); return 0; }\n")
        with BuildDirectory("alice", base_dir=tmp_path) as build_dir:
            result = compile_submission(submission, CompilerSettings(), build_dir)

        assert result.success is False
        assert "missing" in result.diagnostics

    def test_flags_are_passed(self, tmp_path: Path) -> None:
        submission = _submission(tmp_path, "int main(void) { int unused; return 0; }\n")
        settings = CompilerSettings(cflags=("-Wall", "-Werror"))
        with BuildDirectory("alice", base_dir=tmp_path) as build_dir:
            result = compile_submission(submission, settings, build_dir)

        assert result.success is False
        assert "unused" in result.diagnostics

    def test_local_headers_resolve_from_submission_dir(self, tmp_path: Path) -> None:
        submission = _submission(tmp_path, '#include "helper.h"\nint main(void) { return VALUE; }\n')
        (submission.directory / "helper.h").write_text("#define VALUE 0\n", encoding="utf-8")
        with BuildDirectory("alice", base_dir=tmp_path) as build_dir:
            result = compile_submission(submission, CompilerSettings(), build_dir)

        assert result.success is True
