# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The three source checks: no-call, no-header and no-globals.

Each check takes the token stream from the lexer and returns the offending
tokens (empty list = rule respected). They work on tokens, never on raw
text, so `exitCode`, `"exit(1)"` and `/* exit(0) */` don't trip no-call.

All three lean towards false negatives. When a file-scope construct doesn't
look like anything we recognise (macro soup, unusual extensions, broken
syntax) it's simply not reported; docking points for our own parsing
limits would be worse than missing the odd violation.
"""

import re
from typing import Iterable

from autograde.evaluation.analysis.lexer import (
    DIRECTIVE,
    IDENT,
    PUNCT,
    STRING,
    Token,
    directive_body,
    directive_name,
    directive_tokens,
)

# Declaration specifiers: words that can precede a
# declared name but are never the name itself.
_DECL_KEYWORDS: frozenset[str] = frozenset({
    "auto", "char", "const", "double", "extern", "float", "inline", "int",
    "long", "register", "restrict", "short", "signed", "static", "unsigned",
    "void", "volatile", "bool", "_Bool", "_Complex", "_Imaginary", "_Atomic",
    "_Alignas", "_Noreturn", "_Thread_local", "__inline", "__inline__",
    "__restrict", "__restrict__", "__extension__", "__const", "__volatile__",
    "__thread", "thread_local",
})

_TAG_KEYWORDS: frozenset[str] = frozenset({"struct", "union", "enum"})

_OPENERS = {"(": ")", "[": "]", "{": "}"}

# Stands in for a skipped `{ ... }` block inside a file-scope declaration.
_BLOCK = "{...}"

_INCLUDE_TARGET_RE = re.compile(r"""\s*[<"]\s*([^>"]*?)\s*[>"]""")


def _is_punct(token: Token, text: str) -> bool:
    return token.kind == PUNCT and token.text == text


# --- no-call -----------------------------------------------------------------


def find_forbidden_calls(tokens: list[Token], funs: Iterable[str]) -> list[Token]:
    """
    Find calls to any of `funs`: the name immediately followed by `(`.

    Member access (`obj.exit(...)`, `p->exit(...)`) isn't a call to the
    library function and is ignored. Bodies of `#define` directives are
    checked too, since a macro is an easy way to hide a call.
    """
    forbidden = set(funs)
    hits: list[Token] = []

    for pos, token in enumerate(tokens):
        if token.kind == DIRECTIVE:
            if directive_name(token) == "define":
                hits.extend(find_forbidden_calls(directive_tokens(token), forbidden))
            continue

        if token.kind != IDENT or token.text not in forbidden:
            continue
        if pos + 1 >= len(tokens) or not _is_punct(tokens[pos + 1], "("):
            continue
        if pos > 0 and tokens[pos - 1].kind == PUNCT and tokens[pos - 1].text in (".", "->"):
            continue
        hits.append(token)

    return hits


# --- no-header ---------------------------------------------------------------


def included_header(token: Token) -> str | None:
    """The header named by an #include directive, or None for anything else."""
    if token.kind != DIRECTIVE or directive_name(token) != "include":
        return None
    match = _INCLUDE_TARGET_RE.match(directive_body(token))
    return match.group(1) if match else None


def find_forbidden_includes(tokens: list[Token], header: str) -> list[Token]:
    """Find `#include <header>` / `#include "header"` with exactly that name."""
    wanted = header.strip()
    return [t for t in tokens if included_header(t) == wanted]


# --- no-globals --------------------------------------------------------------


def _skip_block(tokens: list[Token], pos: int) -> int:
    """`tokens[pos]` is an opener; return the index just past its closer."""
    depth = 0
    while pos < len(tokens):
        token = tokens[pos]
        if token.kind == PUNCT and token.text in _OPENERS:
            depth += 1
        elif token.kind == PUNCT and token.text in (")", "]", "}"):
            depth -= 1
            if depth == 0:
                return pos + 1
        pos += 1
    return pos


def _has_top_level(stmt: list[Token], text: str) -> bool:
    depth = 0
    for token in stmt:
        if token.kind != PUNCT:
            continue
        if depth == 0 and token.text == text:
            return True
        if token.text in ("(", "["):
            depth += 1
        elif token.text in (")", "]"):
            depth -= 1
    return False


def _split_top_level(stmt: list[Token], separator: str) -> list[list[Token]]:
    parts: list[list[Token]] = [[]]
    depth = 0
    for token in stmt:
        if token.kind == PUNCT and token.text in ("(", "["):
            depth += 1
        elif token.kind == PUNCT and token.text in (")", "]"):
            depth -= 1
        elif depth == 0 and _is_punct(token, separator):
            parts.append([])
            continue
        parts[-1].append(token)
    return parts


def _declarator_name(segment: list[Token], needs_type: bool) -> Token | None:
    """
    The variable declared by one declarator, or None.

    None covers function prototypes (a name followed by a parameter list),
    tag-only declarations like `struct node;`, and anything too odd to call.
    """
    bracket_depth = 0
    for pos, token in enumerate(segment):
        if _is_punct(token, "["):
            bracket_depth += 1
            continue
        if _is_punct(token, "]"):
            bracket_depth -= 1
            continue
        if bracket_depth or not _is_punct(token, "("):
            continue
        # `(*name)(...)` / `(*name[4])(...)`: a function pointer variable.
        # `(*name(void))(int)` declares a function returning one instead.
        if pos + 1 < len(segment) and segment[pos + 1].kind == PUNCT and segment[pos + 1].text == "*":
            end = _skip_block(segment, pos)
            for offset, inner in enumerate(segment[pos + 1:end], start=pos + 1):
                if inner.kind == IDENT and inner.text not in _DECL_KEYWORDS:
                    if offset + 1 < end and _is_punct(segment[offset + 1], "("):
                        return None
                    return inner
            return None
        # Anything else with a top-level parameter list is a prototype or a macro.
        return None

    candidates: list[Token] = []
    type_seen = False
    skip_tag = False
    for token in segment:
        if _is_punct(token, "["):
            break
        if token.kind == PUNCT and token.text == _BLOCK:
            type_seen = True
            skip_tag = False
            continue
        if token.kind != IDENT:
            continue
        if skip_tag:
            skip_tag = False
            type_seen = True
            continue
        if token.text in _TAG_KEYWORDS:
            skip_tag = True
            type_seen = True
            continue
        if token.text in _DECL_KEYWORDS:
            type_seen = True
            continue
        candidates.append(token)

    if not candidates:
        return None
    name = candidates[-1]
    if needs_type and not type_seen and len(candidates) < 2:
        # A lone identifier (`FOO;`) is more likely a macro than a declaration.
        return None
    return name


def _declared_globals(stmt: list[Token]) -> list[Token]:
    """Variable names declared by one complete file-scope statement."""
    if not stmt:
        return []
    if any(t.kind == IDENT and t.text == "typedef" for t in stmt):
        return []

    names: list[Token] = []
    for index, declarator in enumerate(_split_top_level(stmt, ",")):
        before_init = _split_top_level(declarator, "=")[0]
        name = _declarator_name(before_init, needs_type=index == 0)
        if name is None and index == 0 and _has_top_level(before_init, "("):
            # `int f(void), g(void);` is all prototypes, stop here.
            return names
        if name is not None:
            names.append(name)
    return names


def _ends_with_tag(stmt: list[Token]) -> bool:
    """True for `... struct`, `... struct tag` (a tag body is about to open)."""
    if stmt and stmt[-1].kind == IDENT and stmt[-1].text in _TAG_KEYWORDS:
        return True
    return (
        len(stmt) >= 2
        and stmt[-2].kind == IDENT
        and stmt[-2].text in _TAG_KEYWORDS
        and stmt[-1].kind == IDENT
    )


def find_global_variables(tokens: list[Token]) -> list[Token]:
    """
    Find every file-scope variable declaration.

    We walk the tokens at brace depth zero, collecting statements up to each
    `;`. A `{` at file scope is one of:
      - a function body (the statement so far ends with `)`): skipped whole,
        and the statement is dropped — function definitions aren't globals,
        and nothing inside a body is at file scope
      - an initializer (`= {1, 2}`) or a struct/union/enum body: skipped and
        replaced by a placeholder, the statement continues to its `;`
      - `extern "C" {`: transparent
      - anything else: skipped and the statement dropped (ambiguous)
    """
    code = [t for t in tokens if t.kind != DIRECTIVE]
    found: list[Token] = []
    stmt: list[Token] = []
    pos = 0

    while pos < len(code):
        token = code[pos]

        if _is_punct(token, "{"):
            if stmt and _is_punct(stmt[-1], ")"):
                pos = _skip_block(code, pos)
                stmt = []
            elif _has_top_level(stmt, "=") or _ends_with_tag(stmt):
                stmt.append(Token(PUNCT, _BLOCK, token.line))
                pos = _skip_block(code, pos)
            elif (
                len(stmt) == 2
                and stmt[0].kind == IDENT
                and stmt[0].text == "extern"
                and stmt[1].kind == STRING
            ):
                stmt = []
                pos += 1
            else:
                pos = _skip_block(code, pos)
                stmt = []
            continue

        if _is_punct(token, ";"):
            found.extend(_declared_globals(stmt))
            stmt = []
        elif _is_punct(token, "}"):
            # Closing an `extern "C" {` (or stray): file scope continues.
            stmt = []
        else:
            stmt.append(token)
        pos += 1

    return found


def allowed_global(name: str, exceptions: Iterable[str]) -> bool:
    """A global is allowed if its name fully matches one exception pattern."""
    return any(re.fullmatch(pattern, name) for pattern in exceptions)
