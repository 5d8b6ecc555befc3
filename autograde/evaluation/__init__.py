# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
autograde evaluation package: the execution and scoring engine.

Everything needed to turn one student source file into a score lives here,
and none of it knows about the CLI or report files:

Subsystems:
  - suite: data models, config-to-suite translation, submission discovery
  - compiler: scoped build directories and the two-step gcc build
  - runner: bounded process execution, output matching, test evaluation,
    and the executor that ties it all together
  - analysis: the C token lexer and the no-call / no-header / no-globals checks
  - scoring: combining test scores and penalties
  - reporting: results.json and report.txt
"""
