# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Fatal engine errors.

Everything that can go wrong with a single submission (it doesn't compile,
it crashes, it hangs, its output is wrong) is recorded as data in that
submission's report. The exceptions here are different: they mean the
environment itself is broken, so no submission can be graded fairly and the
whole run stops.
"""


class EngineError(Exception):
    """Base for errors that abort the whole evaluation run."""


class ToolchainNotFoundError(EngineError):
    """The configured compiler executable is not available at all."""


class SandboxError(EngineError):
    """A scoped build directory could not be created (filesystem unwritable?)."""


class ProcessKillError(EngineError):
    """A timed-out process survived SIGKILL and could not be reaped."""
