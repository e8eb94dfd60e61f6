import pytest

from mfl.lib.errors import ParseError, UnexpectedEOFError
from mfl.lib.parser import (
    Comma,
    IntLit,
    Keyword,
    LeftBracket,
    LeftParen,
    Name,
    Operator,
    RealLit,
    RightBracket,
    RightParen,
    Semicolon,
    StringLit,
    Token,
    tokenize,
)


class TestTokenizer:
    @pytest.mark.parametrize(
        "program, tokens",
        [
            ("1", [IntLit(1)]),
            ("123", [IntLit(123)]),
            ("2.5", [RealLit(2.5)]),
            ("-123", [Operator("-"), IntLit(123)]),
            ("1 + 2", [IntLit(1), Operator("+"), IntLit(2)]),
            ("1\n+\t2", [IntLit(1), Operator("+"), IntLit(2)]),
            ("(* 1 *) 2", [IntLit(2)]),
            ("(* multi\nline *)2", [IntLit(2)]),
            ('"hello"', [StringLit("hello")]),
            ('"hello world"', [StringLit("hello world")]),
            ('"a\\nb\\"c"', [StringLit('a\nb"c')]),
            ("[ ] ", [LeftBracket(), RightBracket()]),
            ("[ 1 , 2 ] ", [LeftBracket(), IntLit(1), Comma(), IntLit(2), RightBracket()]),
            ("(1, 2);", [LeftParen(), IntLit(1), Comma(), IntLit(2), RightParen(), Semicolon()]),
            ("abc_123 x'", [Name("abc_123"), Name("x'")]),
            ("val x := fn y -> y", [Keyword("val"), Name("x"), Operator(":="), Keyword("fn"), Name("y"), Operator("->"), Name("y")]),
            ("a ++ b", [Name("a"), Operator("++"), Name("b")]),
            ("a <= b != c", [Name("a"), Operator("<="), Name("b"), Operator("!="), Name("c")]),
            ("x |> f", [Name("x"), Operator("|>"), Name("f")]),
            ("| _ ->", [Operator("|"), Name("_"), Operator("->")]),
            ("f o g", [Name("f"), Keyword("o"), Name("g")]),
            ("f ∘ g", [Name("f"), Operator("∘"), Name("g")]),
            ("x mod 2", [Name("x"), Keyword("mod"), IntLit(2)]),
            ("foldl filter", [Keyword("foldl"), Keyword("filter")]),
            ("true false", [Keyword("true"), Keyword("false")]),
        ],
    )
    def test_tokenize(self, program: str, tokens: list[Token]) -> None:
        assert tokenize(program) == tokens

    def test_tokens_carry_line_numbers(self) -> None:
        tokens = tokenize("1\n2\n\n3")
        assert [token.lineno for token in tokens] == [1, 2, 4]

    def test_string_token_has_starting_line(self) -> None:
        tokens = tokenize('\n"a\nb"')
        assert tokens[0].lineno == 2

    @pytest.mark.parametrize(
        "program, error_type, message",
        [
            ('"abc', UnexpectedEOFError, "while reading string"),
            ("(* abc", UnexpectedEOFError, "while reading comment"),
            ("1.2.3", ParseError, "unexpected token '.'"),
            ("1.", ParseError, "expected digits after decimal point"),
            ("a ! b", ParseError, "unexpected token '!'"),
            ("a $ b", ParseError, "unexpected character '\\$'"),
            ('"\\q"', ParseError, "unknown escape sequence"),
        ],
    )
    def test_tokenize_error(self, program: str, error_type: type, message: str) -> None:
        with pytest.raises(error_type, match=message):
            tokenize(program)
