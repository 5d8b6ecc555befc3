# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for autograde tests.

Fixtures here are available to every test file automatically.
We keep them minimal — just the stuff that multiple test modules need:
a minimal config file, a factory for tiny shell-script "programs", and a
factory for whole grading projects on disk.
"""

import stat
import textwrap
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """
    Create a minimal valid config YAML file in a temp directory.

    This is the smallest config that passes schema validation.
    Tests that need specific config values should write their own files.
    """
    config_file = tmp_path / "config.yaml"
    config_file.write_text("source: proj.c\n", encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """A config file that's valid YAML but fails schema validation (missing `source`)."""
    config_content = textwrap.dedent("""\
        timeout: 1000
        tests:
          - name: t
            score: 1
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file


@pytest.fixture()
def make_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """
    Factory for small executable /bin/sh scripts.

    The process runner and evaluator only care that something is executable,
    so a two-line shell script stands in for a compiled submission.
    """
    scripts_dir = tmp_path / "bin"
    scripts_dir.mkdir(exist_ok=True)

    def _make(name: str, body: str) -> Path:
        script = scripts_dir / name
        script.write_text("#!/bin/sh\n" + textwrap.dedent(body), encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture()
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory for a grading project on disk.

    make_project(config_yaml, {"alice": "int main(void) { ... }"}, files={"input": "..."})
    writes config.yaml, one sub-directory per submission holding proj.c, and
    any extra project files. Returns the project directory.
    """

    def _make(
        config: str,
        submissions: dict[str, str] | None = None,
        files: dict[str, str] | None = None,
        source_name: str = "proj.c",
    ) -> Path:
        project = tmp_path / "project"
        project.mkdir(exist_ok=True)
        (project / "config.yaml").write_text(textwrap.dedent(config), encoding="utf-8")
        for name, source in (submissions or {}).items():
            directory = project / name
            directory.mkdir()
            (directory / source_name).write_text(textwrap.dedent(source), encoding="utf-8")
        for name, content in (files or {}).items():
            (project / name).write_text(content, encoding="utf-8")
        return project

    return _make
