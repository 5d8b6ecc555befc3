# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
autograde: compile, test and score single-file C assignments.
"""

__version__ = "0.1.0"
