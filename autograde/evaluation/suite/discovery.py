# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Submission discovery.

A grading project is a directory laid out like this:

    project/
    ├── config.yaml
    ├── input              — optional files referenced by tests
    ├── alice/proj.c
    ├── bob/proj.c
    └── ...

Every sub-directory is one submission, except hidden ones and the ones listed
under `solutions.exclude-dirs`. Submissions come back sorted by name so the
run order (and therefore the report order) is always the same.
"""

from pathlib import Path

from autograde.evaluation.suite.models import Submission
from autograde.logging.logger import get_logger
from autograde.utils.filesystem import read_text_lenient

logger = get_logger(__name__)


def _load_submission(directory: Path, source_file: str) -> Submission | None:
    """Read one submission, or return None if it has no readable source."""
    source_path = directory / source_file
    if not source_path.is_file():
        logger.warning(
            "No source found, skipping submission",
            extra={"submission": directory.name, "source": source_file},
        )
        return None

    try:
        source = read_text_lenient(source_path)
    except OSError as exc:
        logger.warning(
            "Cannot read source, skipping submission",
            extra={"submission": directory.name, "error": str(exc)},
        )
        return None

    return Submission(
        name=directory.name,
        directory=directory.resolve(),
        source_path=source_path.resolve(),
        source=source,
    )


def discover_submissions(
    project_dir: Path,
    source_file: str,
    exclude_dirs: list[str] | tuple[str, ...] = (),
    only: str | None = None,
) -> list[Submission]:
    """
    Find every gradeable submission in the project directory.

    If `only` is given, just that one submission is returned (or nothing, with
    a warning, if it doesn't exist).

    Raises:
        FileNotFoundError: the project directory itself doesn't exist.
    """
    if not project_dir.is_dir():
        raise FileNotFoundError(f"Project directory not found: {project_dir}")

    if only:
        candidate = project_dir / only
        if not candidate.is_dir():
            logger.warning("Selected submission does not exist", extra={"submission": only})
            return []
        submission = _load_submission(candidate, source_file)
        return [submission] if submission is not None else []

    excluded = set(exclude_dirs)
    submissions: list[Submission] = []
    for entry in sorted(project_dir.iterdir()):
        if not entry.is_dir() or entry.name.startswith(".") or entry.name in excluded:
            continue
        submission = _load_submission(entry, source_file)
        if submission is not None:
            submissions.append(submission)

    logger.info(
        "Submissions discovered",
        extra={"project": str(project_dir), "count": len(submissions)},
    )
    return submissions
