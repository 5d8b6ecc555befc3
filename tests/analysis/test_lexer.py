# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the C token lexer used by the source analysers.
"""

from autograde.evaluation.analysis.lexer import (
    CHAR,
    DIRECTIVE,
    IDENT,
    NUMBER,
    PUNCT,
    STRING,
    directive_body,
    directive_name,
    directive_tokens,
    tokenize,
)


def _texts(source: str) -> list[str]:
    return [t.text for t in tokenize(source)]


class TestTokenKinds:
    def test_simple_statement(self) -> None:
        tokens = tokenize("int x = 42;")
        assert [(t.kind, t.text) for t in tokens] == [
            (IDENT, "int"),
            (IDENT, "x"),
            (PUNCT, "="),
            (NUMBER, "42"),
            (PUNCT, ";"),
        ]

    def test_longest_punctuator_wins(self) -> None:
        assert _texts("a <<= b->c ... d") == ["a", "<<=", "b", "->", "c", "...", "d"]

    def test_numbers_with_suffixes_and_exponents(self) -> None:
        tokens = tokenize("0x1Fu 1e-5 3.14f .5")
        assert [t.kind for t in tokens] == [NUMBER] * 4
        assert [t.text for t in tokens] == ["0x1Fu", "1e-5", "3.14f", ".5"]

    def test_string_and_char_literals_are_single_tokens(self) -> None:
        tokens = tokenize('printf("exit(1); \\"quoted\\"", \'x\', L"wide");')
        kinds = [t.kind for t in tokens]
        assert kinds.count(STRING) == 2
        assert kinds.count(CHAR) == 1
        assert "exit" not in [t.text for t in tokens]

    def test_identifier_starting_with_prefix_letter(self) -> None:
        assert _texts("unsigned Long u8x") == ["unsigned", "Long", "u8x"]


class TestComments:
    def test_line_and_block_comments_are_dropped(self) -> None:
        source = "a // exit(0)\n/* abort();\n */ b"
        assert _texts(source) == ["a", "b"]

    def test_line_numbers_survive_block_comments(self) -> None:
        tokens = tokenize("a\n/* one\ntwo\n*/\nb")
        assert [(t.text, t.line) for t in tokens] == [("a", 1), ("b", 5)]

    def test_unterminated_comment_runs_to_end_of_file(self) -> None:
        assert _texts("a /* never closed\nexit(1);") == ["a"]


class TestDirectives:
    def test_directive_is_one_token(self) -> None:
        tokens = tokenize("#include <string.h>\nint x;")
        assert tokens[0].kind == DIRECTIVE
        assert directive_name(tokens[0]) == "include"
        assert directive_body(tokens[0]).strip() == "<string.h>"
        assert tokens[1].text == "int"
        assert tokens[1].line == 2

    def test_spaced_directive_name(self) -> None:
        token = tokenize("  #  define  MAX 10\n")[0]
        assert token.kind == DIRECTIVE
        assert directive_name(token) == "define"

    def test_continuation_lines_are_joined(self) -> None:
        tokens = tokenize("#define CALL() \\\n    exit(1)\nint y;")
        assert tokens[0].kind == DIRECTIVE
        assert "exit(1)" in directive_body(tokens[0])
        assert (tokens[1].text, tokens[1].line) == ("int", 3)

    def test_directive_tokens_keep_file_line_numbers(self) -> None:
        tokens = tokenize("int x;\n#define CALL() \\\n    exit(1)\n")
        body = directive_tokens(tokens[3])
        assert [(t.text, t.line) for t in body][:3] == [("CALL", 2), ("(", 2), (")", 2)]
        assert ("exit", 3) in [(t.text, t.line) for t in body]

    def test_hash_in_the_middle_of_a_line_is_not_a_directive(self) -> None:
        tokens = tokenize("a # b")
        assert DIRECTIVE not in [t.kind for t in tokens]

    def test_line_comment_ends_with_the_directive(self) -> None:
        tokens = tokenize("#include <stdio.h> // exit(1)\nint x;")
        assert tokens[0].kind == DIRECTIVE
        assert [t.text for t in tokens[1:]] == ["int", "x", ";"]
        assert "exit" not in [t.text for t in directive_tokens(tokens[0])]

    def test_code_after_a_block_comment_stays_in_the_directive(self) -> None:
        tokens = tokenize("#define DIE(x) /* bail */ exit(x)\nint y;")
        assert tokens[0].kind == DIRECTIVE
        assert [(t.text, t.line) for t in tokens[1:]] == [("int", 2), ("y", 2), (";", 2)]
        body = [t.text for t in directive_tokens(tokens[0])]
        assert "exit" in body
        assert "bail" not in body

    def test_multiline_block_comment_inside_directive_keeps_line_numbers(self) -> None:
        tokens = tokenize("#define N 4 /* four\n   of them */\nint z;")
        assert tokens[0].kind == DIRECTIVE
        assert (tokens[1].text, tokens[1].line) == ("int", 3)


class TestBrokenInput:
    def test_unterminated_string_stops_at_end_of_line(self) -> None:
        tokens = tokenize('char *s = "oops;\nint x;')
        assert [t.text for t in tokens if t.line == 2] == ["int", "x", ";"]

    def test_unknown_characters_become_punct(self) -> None:
        tokens = tokenize("a @ b")
        assert tokens[1].kind == PUNCT
        assert tokens[1].text == "@"

    def test_empty_source(self) -> None:
        assert tokenize("") == []
