# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Grading report writer.

Writes the results of one run to disk:

    <output-dir>/
    ├── results.json   — machine-readable, every detail of every submission
    └── report.txt     — human-readable summary

results.json is the authoritative output; report.txt is a convenience view
of the same data. Both are written atomically. The engine never calls this
module: reports are plain data, and how they get persisted is the caller's
business.
"""

import json
import signal as signal_module
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from autograde.evaluation.suite.models import (
    CaseOutcome,
    CompileResult,
    ExecutionResult,
    SolutionReport,
)
from autograde.logging.logger import get_logger
from autograde.utils.filesystem import atomic_write

logger = get_logger(__name__)

RESULTS_FILE = "results.json"
REPORT_FILE = "report.txt"

# Output past this many characters is cut from the JSON; it's for humans
# diagnosing a failure, not for archiving a runaway program's output.
_MAX_OUTPUT_CHARS = 4096


def _decode(data: bytes) -> str:
    text = data.decode("utf-8", errors="replace")
    if len(text) > _MAX_OUTPUT_CHARS:
        return text[:_MAX_OUTPUT_CHARS] + f"... [{len(text) - _MAX_OUTPUT_CHARS} more chars]"
    return text


def _signal_name(signum: int | None) -> str | None:
    if signum is None:
        return None
    try:
        return signal_module.Signals(signum).name
    except ValueError:
        return str(signum)


def describe_execution(execution: ExecutionResult) -> str:
    """One word (or so) on how a run ended."""
    if execution.launch_error:
        return "launch failed"
    if execution.timed_out:
        return "timeout"
    if execution.signaled:
        return f"killed by {_signal_name(execution.signal)}"
    return f"exit {execution.exit_code}"


def _execution_dict(execution: ExecutionResult) -> dict[str, Any]:
    return {
        "status": describe_execution(execution),
        "exit_code": execution.exit_code,
        "signal": _signal_name(execution.signal),
        "timed_out": execution.timed_out,
        "launch_error": execution.launch_error,
        "elapsed_seconds": round(execution.elapsed_seconds, 4),
        "stdout": _decode(execution.stdout),
        "stderr": _decode(execution.stderr),
    }


def _case_dict(case: CaseOutcome) -> dict[str, Any]:
    return {
        "index": case.index,
        "passed": case.passed,
        "stdout_matched": case.stdout_matched,
        "stderr_matched": case.stderr_matched,
        "execution": _execution_dict(case.execution),
    }


def _compile_dict(result: CompileResult) -> dict[str, Any]:
    return {
        "success": result.success,
        "exit_code": result.exit_code,
        "elapsed_seconds": round(result.elapsed_seconds, 4),
        "diagnostics": result.diagnostics,
    }


def report_to_dict(report: SolutionReport) -> dict[str, Any]:
    """Plain JSON-ready view of one SolutionReport."""
    return {
        "submission": report.submission,
        "score": round(report.score, 6),
        "tests_score": round(report.tests_score, 6),
        "penalty_total": round(report.penalty_total, 6),
        "compile": _compile_dict(report.compile_result),
        "tests": [
            {
                "name": t.name,
                "score": t.score,
                "awarded": t.awarded,
                "passed": t.passed,
                "requirement": t.requirement.value,
                "cases": [_case_dict(c) for c in t.cases],
            }
            for t in report.tests
        ],
        "analyses": [
            {
                "analyser": a.kind.value,
                "violated": a.violated,
                "penalty": a.penalty,
                "findings": list(a.findings),
            }
            for a in report.analyses
        ],
        "scripts": [
            {"script": s.script, "execution": _execution_dict(s.execution)}
            for s in report.scripts
        ],
    }


def format_score_line(report: SolutionReport) -> str:
    """`name: score`, rounded to two decimals — what the CLI prints per submission."""
    return f"{report.submission}: {report.score:.2f}"


def format_report_text(reports: Sequence[SolutionReport]) -> str:
    """
    Format a run into a human-readable text report.

    One block per submission: the score breakdown, every test (with the
    reason each failed case failed) and every violated analyser.
    """
    timestamp = datetime.now(tz=timezone.utc).isoformat()
    lines: list[str] = [
        "=" * 60,
        "AUTOGRADE REPORT",
        f"Generated: {timestamp}",
        f"Submissions: {len(reports)}",
        "=" * 60,
    ]

    for report in reports:
        lines.extend(
            [
                "",
                f"--- {report.submission} ---",
                f"Score: {report.score:.2f} "
                f"(tests {report.tests_score:.2f}, penalties {report.penalty_total:.2f})",
            ]
        )

        if not report.compile_result.success:
            lines.append("Compilation FAILED")
            diagnostics = report.compile_result.diagnostics.strip()
            if diagnostics:
                lines.extend(f"  | {line}" for line in diagnostics.splitlines())

        for test in report.tests:
            mark = "PASS" if test.passed else "FAIL"
            lines.append(f"  [{mark}] {test.name} ({test.awarded:.2f}/{test.score:.2f})")
            for case in test.cases:
                if case.passed:
                    continue
                reasons = [describe_execution(case.execution)]
                if case.execution.completed:
                    if not case.stdout_matched:
                        reasons.append("stdout differs")
                    if not case.stderr_matched:
                        reasons.append("stderr differs")
                lines.append(f"      case {case.index}: {', '.join(reasons)}")

        for analysis in report.analyses:
            if not analysis.violated:
                continue
            lines.append(f"  [{analysis.kind.value}] penalty {analysis.penalty:.2f}")
            lines.extend(f"      {finding}" for finding in analysis.findings)

        for script in report.scripts:
            lines.append(f"  [script] {script.script}: {describe_execution(script.execution)}")

    lines.extend(["", "=" * 60])
    return "\n".join(lines) + "\n"


def write_report(reports: Sequence[SolutionReport], output_dir: Path) -> Path:
    """
    Write results.json and report.txt into `output_dir` (created if needed).

    Returns the output directory.

    Raises:
        OSError: the directory or a file can't be written.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    results = {
        "submissions": [report_to_dict(r) for r in reports],
        "total": len(reports),
    }
    atomic_write(
        output_dir / RESULTS_FILE,
        json.dumps(results, indent=2, sort_keys=True, ensure_ascii=False) + "\n",
    )
    atomic_write(output_dir / REPORT_FILE, format_report_text(reports))

    logger.info(
        "Grading report written",
        extra={"output_dir": str(output_dir), "submissions": len(reports)},
    )
    return output_dir
