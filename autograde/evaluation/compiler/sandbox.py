# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Scoped build directories for submissions.

Every submission compiles into its own temporary directory. That keeps
parallel workers from clobbering each other's object files and keeps the
student's directory untouched — we only ever read their source. The
directory (and the executable inside it) disappears when the scope ends,
whether grading finished, a test blew up, or the run was interrupted.
"""

import re
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

from autograde.evaluation.exceptions import SandboxError
from autograde.logging.logger import get_logger

logger = get_logger(__name__)

_UNSAFE_PREFIX_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def create_build_dir(label: str, base_dir: Path | None = None) -> Path:
    """
    Create a fresh, empty build directory.

    `label` (usually the submission name) only shows up in the directory
    name to make leftovers easy to identify when debugging.

    Raises:
        SandboxError: the directory can't be created. That means the
            filesystem is unusable for every submission, not just this one.
    """
    prefix = f"autograde_{_UNSAFE_PREFIX_CHARS.sub('_', label)}_"
    try:
        build_dir = Path(tempfile.mkdtemp(
            prefix=prefix,
            dir=str(base_dir) if base_dir else None,
        ))
    except OSError as err:
        raise SandboxError(f"Cannot create build directory: {err}") from err

    logger.debug("Build directory created", extra={"path": str(build_dir), "label": label})
    return build_dir


def cleanup_build_dir(build_dir: Path) -> None:
    """Remove a build directory and everything inside it."""
    if build_dir.is_dir():
        shutil.rmtree(build_dir, ignore_errors=True)
        logger.debug("Build directory cleaned up", extra={"path": str(build_dir)})


class BuildDirectory:
    """
    Context manager that creates a build directory on enter and removes it on exit.

    Usage:
        with BuildDirectory(submission.name) as build_dir:
            result = compile_submission(submission, settings, build_dir)
            # run tests against result.executable here
        # directory and executable are gone here
    """

    def __init__(self, label: str, base_dir: Path | None = None) -> None:
        self._label = label
        self._base_dir = base_dir
        self._build_dir: Path | None = None

    def __enter__(self) -> Path:
        self._build_dir = create_build_dir(self._label, self._base_dir)
        return self._build_dir

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._build_dir is not None:
            cleanup_build_dir(self._build_dir)
