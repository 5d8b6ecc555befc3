# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Filesystem helpers for writing grading results.

Reports are written atomically: the content goes to a temporary file next to
the target, which is then renamed over it. Rename within one filesystem is
atomic on POSIX, so whoever reads results.json (a gradebook import, a CI
step) sees either the previous file or the complete new one, never half of
a report from a run that died mid-write.
"""

import os
import tempfile
from pathlib import Path

_TEMP_PREFIX = ".autograde_tmp_"


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write `content` to `target_path` atomically, creating parent dirs.

    Raises:
        OSError: If the write or rename fails. The target is left untouched.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    temp_file = tempfile.NamedTemporaryFile(
        mode="w",
        encoding=encoding,
        dir=str(target_path.parent),
        prefix=_TEMP_PREFIX,
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_file.name)

    try:
        with temp_file:
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_path, target_path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def read_text_lenient(file_path: Path) -> str:
    """
    Read a text file that may not be valid UTF-8.

    Student sources come from all sorts of editors;
    undecodable bytes become U+FFFD instead of failing the whole run.

    Raises:
        FileNotFoundError: If the path doesn't exist.
        IsADirectoryError: If the path is a directory.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise IsADirectoryError(f"Expected a file, got a directory: {file_path}")
    return file_path.read_text(encoding="utf-8", errors="replace")
