# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
A small, forgiving C lexer for the source analysers.

This is not a compiler front end. It turns source text into a flat list of
tokens that is good enough for pattern matching:

  IDENT      identifiers and keywords (we don't distinguish them here)
  NUMBER     numeric literals, including suffixes and exponents
  STRING     "..." literals (with any prefix like L or u8)
  CHAR       '...' literals
  PUNCT      operators and punctuation, longest match first
  DIRECTIVE  a whole preprocessor line, continuations included

Comments are dropped. Because strings, character literals and comments are
consumed as units, nothing inside them can ever look like a call or a
declaration to the analysers.

Broken input never raises: an unterminated comment or literal just runs to
the end of the line (literals) or file (comments), and any character we
don't recognise becomes a one-character PUNCT token.
"""

import re
from dataclasses import dataclass

IDENT = "IDENT"
NUMBER = "NUMBER"
STRING = "STRING"
CHAR = "CHAR"
PUNCT = "PUNCT"
DIRECTIVE = "DIRECTIVE"


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    line: int


_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(r"\.?[0-9](?:[eEpP][+-]|[A-Za-z0-9_.])*")
_STRING_PREFIX_RE = re.compile(r"(?:u8|u|U|L)?(?=[\"'])")
_WHITESPACE = " \t\r\f\v"

# Longest first so that "<<=" wins over "<<" and "<".
_PUNCTUATORS: tuple[str, ...] = tuple(sorted(
    {
        "...", "<<=", ">>=", "->", "++", "--", "<<", ">>", "<=", ">=", "==", "!=",
        "&&", "||", "*=", "/=", "%=", "+=", "-=", "&=", "^=", "|=", "##",
        "[", "]", "(", ")", "{", "}", ".", "&", "*", "+", "-", "~", "!", "/",
        "%", "<", ">", "^", "|", "?", ":", ";", "=", ",", "#",
    },
    key=len,
    reverse=True,
))


def _skip_quoted(source: str, pos: int, quote: str) -> int:
    """Return the index just past the literal starting at `pos` (the opening quote)."""
    i = pos + 1
    length = len(source)
    while i < length:
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n":
            # Unterminated literal: stop at the end of the line.
            return i
        i += 1
    return length


def _directive_end(source: str, pos: int) -> int:
    """
    Find the end of a preprocessor directive starting at `pos`.

    Handles backslash-newline continuations. Comments on the directive's
    logical line belong to the directive: a block comment is skipped (even
    one spanning lines), a line comment runs to the end of the line.
    """
    i = pos
    length = len(source)
    while i < length:
        ch = source[i]
        if ch == "\\" and source.startswith("\n", i + 1):
            i += 2
            continue
        if ch == "\\" and source.startswith("\r\n", i + 1):
            i += 3
            continue
        if ch == "\n":
            return i
        if source.startswith("/*", i):
            end = source.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue
        if source.startswith("//", i):
            end = source.find("\n", i)
            return length if end == -1 else end
        if ch in "\"'":
            i = _skip_quoted(source, i, ch)
            continue
        i += 1
    return length


def tokenize(source: str) -> list[Token]:
    """Split C source text into a flat token list."""
    tokens: list[Token] = []
    i = 0
    line = 1
    length = len(source)
    # True while nothing but whitespace/comments precedes us on this line.
    at_line_start = True

    while i < length:
        ch = source[i]

        if ch == "\n":
            line += 1
            i += 1
            at_line_start = True
            continue

        if ch in _WHITESPACE:
            i += 1
            continue

        if ch == "\\" and source.startswith("\n", i + 1):
            i += 2
            line += 1
            continue

        if source.startswith("//", i):
            end = source.find("\n", i)
            i = length if end == -1 else end
            continue

        if source.startswith("/*", i):
            end = source.find("*/", i + 2)
            end = length if end == -1 else end + 2
            line += source.count("\n", i, end)
            i = end
            continue

        if ch == "#" and at_line_start:
            end = _directive_end(source, i)
            text = source[i:end]
            tokens.append(Token(DIRECTIVE, text, line))
            line += text.count("\n")
            i = end
            continue

        at_line_start = False

        prefix = _STRING_PREFIX_RE.match(source, i)
        if prefix is not None:
            quote_pos = prefix.end()
            quote = source[quote_pos]
            end = _skip_quoted(source, quote_pos, quote)
            tokens.append(Token(STRING if quote == '"' else CHAR, source[i:end], line))
            i = end
            continue

        match = _IDENT_RE.match(source, i)
        if match is not None:
            tokens.append(Token(IDENT, match.group(), line))
            i = match.end()
            continue

        match = _NUMBER_RE.match(source, i)
        if match is not None:
            tokens.append(Token(NUMBER, match.group(), line))
            i = match.end()
            continue

        for punct in _PUNCTUATORS:
            if source.startswith(punct, i):
                tokens.append(Token(PUNCT, punct, line))
                i += len(punct)
                break
        else:
            tokens.append(Token(PUNCT, ch, line))
            i += 1

    return tokens


def directive_name(token: Token) -> str:
    """`#  include <x.h>` -> "include". Empty string for a bare `#`."""
    match = _IDENT_RE.match(token.text.lstrip("#").lstrip())
    return match.group() if match else ""


def directive_body(token: Token) -> str:
    """Everything after the directive name, continuations joined."""
    text = token.text.lstrip("#").lstrip()
    name = directive_name(token)
    return text[len(name):].replace("\\\r\n", " ").replace("\\\n", " ")


def directive_tokens(token: Token) -> list[Token]:
    """
    Tokenize the body of a directive (a macro definition, say).

    Line numbers are those of the original file: a continuation line inside
    the directive counts as a line of its own.
    """
    text = token.text.lstrip("#").lstrip()
    body = text[len(directive_name(token)):]
    return [Token(t.kind, t.text, token.line + t.line - 1) for t in tokenize(body)]
