# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for submission discovery.
"""

from pathlib import Path

import pytest

from autograde.evaluation.suite.discovery import discover_submissions


def _submission(project: Path, name: str, source: str | None = "int main(void) { return 0; }\n") -> None:
    directory = project / name
    directory.mkdir()
    if source is not None:
        (directory / "proj.c").write_text(source, encoding="utf-8")


class TestDiscoverSubmissions:
    def test_finds_every_submission_sorted(self, tmp_path: Path) -> None:
        for name in ("carol", "alice", "bob"):
            _submission(tmp_path, name)

        submissions = discover_submissions(tmp_path, "proj.c")
        assert [s.name for s in submissions] == ["alice", "bob", "carol"]
        assert submissions[0].source_path == (tmp_path / "alice" / "proj.c").resolve()
        assert "main" in submissions[0].source

    def test_skips_hidden_excluded_and_plain_files(self, tmp_path: Path) -> None:
        _submission(tmp_path, "alice")
        _submission(tmp_path, ".git")
        _submission(tmp_path, "tests")
        (tmp_path / "config.yaml").write_text("source: proj.c\n", encoding="utf-8")

        submissions = discover_submissions(tmp_path, "proj.c", exclude_dirs=["tests"])
        assert [s.name for s in submissions] == ["alice"]

    def test_submission_without_source_is_skipped(self, tmp_path: Path) -> None:
        _submission(tmp_path, "alice")
        _submission(tmp_path, "empty", source=None)

        submissions = discover_submissions(tmp_path, "proj.c")
        assert [s.name for s in submissions] == ["alice"]

    def test_invalid_utf8_is_replaced_not_fatal(self, tmp_path: Path) -> None:
        directory = tmp_path / "alice"
        directory.mkdir()
        (directory / "proj.c").write_bytes(b"int x; /* caf\xe9 */\n")

        submissions = discover_submissions(tmp_path, "proj.c")
        assert "�" in submissions[0].source

    def test_only_selects_one_submission(self, tmp_path: Path) -> None:
        _submission(tmp_path, "alice")
        _submission(tmp_path, "bob")

        submissions = discover_submissions(tmp_path, "proj.c", only="bob")
        assert [s.name for s in submissions] == ["bob"]

    def test_only_with_unknown_name_returns_nothing(self, tmp_path: Path) -> None:
        _submission(tmp_path, "alice")
        assert discover_submissions(tmp_path, "proj.c", only="mallory") == []

    def test_missing_project_dir_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            discover_submissions(tmp_path / "nope", "proj.c")
