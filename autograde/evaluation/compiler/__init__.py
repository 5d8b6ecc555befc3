# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Building submissions: scoped build directories and the compiler harness.
"""
