# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Project configuration: YAML loading and pydantic schema.
"""
