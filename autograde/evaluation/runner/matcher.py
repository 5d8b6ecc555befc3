# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Output matching.

Expected output in a config is one of three things:
  - None: the stream isn't checked at all, so it always matches
  - "*" (exactly that one character): the wildcard, which matches anything
    including empty output. "*\\n" is literal text like any other.
  - literal text, which must match exactly

"Exactly" means byte-for-byte after line endings are normalized on both
sides: CRLF and lone CR become LF, so a Windows-edited expected-output file
still matches a program printing "\\n". Nothing else is forgiven — not
trailing spaces, not a missing final newline, not a single character.
"""

from autograde.evaluation.suite.models import WILDCARD_PATTERN


def normalize_newlines(data: bytes) -> bytes:
    """Canonical line endings: \\r\\n and lone \\r both become \\n."""
    return data.replace(b"\r\n", b"\n").replace(b"\r", b"\n")


def is_wildcard(pattern: str) -> bool:
    return pattern == WILDCARD_PATTERN


def stream_matches(expected: str | None, actual: bytes) -> bool:
    """Decide whether one captured stream satisfies its expected pattern."""
    if expected is None or is_wildcard(expected):
        return True
    expected_bytes = expected.encode("utf-8", errors="surrogateescape")
    return normalize_newlines(expected_bytes) == normalize_newlines(actual)
