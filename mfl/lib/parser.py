from __future__ import annotations
import dataclasses
import logging
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from mfl.lib.errors import ParseError, UnexpectedEOFError
from mfl.lib.nodes import (
    Apply,
    Binop,
    BinopKind,
    Destruct,
    Explode,
    Fold,
    Head,
    If,
    IsEmpty,
    Lambda,
    Len,
    Let,
    ListLit,
    Literal,
    Map,
    Node,
    Program,
    Proj,
    StrCat,
    StrLen,
    Substr,
    Swap,
    Tail,
    TupleLit,
    Unop,
    UnopKind,
    Val,
    Var,
)
from mfl.lib.patterns import LiteralPattern, Match, MatchCase, Pattern, VarPattern, WildcardPattern
from mfl.lib.sugar import Compose, Filter, Pipe
from mfl.lib.values import FALSE, TRUE, Int, Real, String, Value

logger = logging.getLogger(__name__)


def is_identifier_char(c: str) -> bool:
    return c.isalnum() or c in ("_", "'")


@dataclass(eq=True)
class Token:
    lineno: int = dataclasses.field(default=-1, init=False, compare=False)


@dataclass(eq=True)
class IntLit(Token):
    value: int


@dataclass(eq=True)
class RealLit(Token):
    value: float


@dataclass(eq=True)
class StringLit(Token):
    value: str


@dataclass(eq=True)
class Operator(Token):
    value: str


@dataclass(eq=True)
class Name(Token):
    value: str


@dataclass(eq=True)
class Keyword(Token):
    value: str


@dataclass(eq=True)
class LeftParen(Token):
    # (
    pass


@dataclass(eq=True)
class RightParen(Token):
    # )
    pass


@dataclass(eq=True)
class LeftBracket(Token):
    # [
    pass


@dataclass(eq=True)
class RightBracket(Token):
    # ]
    pass


@dataclass(eq=True)
class Comma(Token):
    pass


@dataclass(eq=True)
class Semicolon(Token):
    pass


@dataclass(eq=True)
class EOF(Token):
    pass


OPERATORS = {"+", "-", "*", "/", "++", "=", "!=", "<", "<=", ">", ">=", ":=", "->", "|>", "|", "∘"}
OPER_CHARS = set("".join(OPERATORS))

# Built-in name -> number of arguments it takes.
BUILTINS = {
    "hd": 1,
    "tl": 1,
    "len": 1,
    "isempty": 1,
    "strlen": 1,
    "explode": 1,
    "swap": 1,
    "destruct": 1,
    "strcat": 2,
    "proj": 2,
    "map": 2,
    "filter": 2,
    "substr": 3,
    "foldl": 3,
    "foldr": 3,
}

KEYWORDS = {
    "val",
    "let",
    "in",
    "if",
    "then",
    "else",
    "match",
    "with",
    "fn",
    "true",
    "false",
    "and",
    "or",
    "not",
    "mod",
    "o",
} | set(BUILTINS)

ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}


class Lexer:
    def __init__(self, text: str):
        self.text: str = text
        self.idx: int = 0
        self.lineno: int = 1

    def has_input(self) -> bool:
        return self.idx < len(self.text)

    def read_char(self) -> str:
        c = self.peek_char()
        if c == "\n":
            self.lineno += 1
        self.idx += 1
        return c

    def peek_char(self) -> str:
        if not self.has_input():
            raise UnexpectedEOFError("while reading token", self.lineno)
        return self.text[self.idx]

    def make_token(self, cls: type, *args: Any) -> Token:
        result: Token = cls(*args)
        result.lineno = self.lineno
        return result

    def read_one(self) -> Token:
        while self.has_input():
            c = self.read_char()
            if not c.isspace():
                break
        else:
            return self.make_token(EOF)
        if c == '"':
            return self.read_string()
        if c == "(":
            if self.has_input() and self.peek_char() == "*":
                self.read_char()
                self.read_comment()
                return self.read_one()
            return self.make_token(LeftParen)
        if c in ")[];,":
            custom = {
                ")": RightParen,
                "[": LeftBracket,
                "]": RightBracket,
                ";": Semicolon,
                ",": Comma,
            }
            return self.make_token(custom[c])
        if c.isdigit():
            return self.read_number(c)
        if c in OPER_CHARS:
            return self.read_op(c)
        if c.isalpha() or c == "_":
            return self.read_var(c)
        raise ParseError(f"unexpected character {c!r}", self.lineno)

    def read_string(self) -> Token:
        start = self.lineno
        buf = ""
        while self.has_input():
            if (c := self.read_char()) == '"':
                break
            if c == "\\":
                if not self.has_input():
                    raise UnexpectedEOFError("while reading string", start)
                escaped = self.read_char()
                if escaped not in ESCAPES:
                    raise ParseError(f"unknown escape sequence \\{escaped}", self.lineno)
                c = ESCAPES[escaped]
            buf += c
        else:
            raise UnexpectedEOFError("while reading string", start)
        token = self.make_token(StringLit, buf)
        token.lineno = start
        return token

    def read_comment(self) -> None:
        start = self.lineno
        prev = ""
        while self.has_input():
            c = self.read_char()
            if prev == "*" and c == ")":
                return
            prev = c
        raise UnexpectedEOFError("while reading comment", start)

    def read_number(self, first_digit: str) -> Token:
        buf = first_digit
        has_decimal = False
        while self.has_input():
            c = self.peek_char()
            if c == ".":
                if has_decimal:
                    raise ParseError(f"unexpected token {c!r}", self.lineno)
                has_decimal = True
            elif not c.isdigit():
                break
            self.read_char()
            buf += c

        if has_decimal:
            if buf.endswith("."):
                raise ParseError(f"expected digits after decimal point in {buf!r}", self.lineno)
            return self.make_token(RealLit, float(buf))
        return self.make_token(IntLit, int(buf))

    def _starts_operator(self, buf: str) -> bool:
        return any(op.startswith(buf) for op in OPERATORS)

    def read_op(self, first_char: str) -> Token:
        buf = first_char
        while self.has_input():
            c = self.peek_char()
            if not self._starts_operator(buf + c):
                break
            self.read_char()
            buf += c
        if buf in OPERATORS:
            return self.make_token(Operator, buf)
        raise ParseError(f"unexpected token {buf!r}", self.lineno)

    def read_var(self, first_char: str) -> Token:
        buf = first_char
        while self.has_input() and is_identifier_char(c := self.peek_char()):
            self.read_char()
            buf += c
        if buf in KEYWORDS:
            return self.make_token(Keyword, buf)
        return self.make_token(Name, buf)


def tokenize(x: str) -> typing.List[Token]:
    lexer = Lexer(x)
    tokens = []
    while (token := lexer.read_one()) and not isinstance(token, EOF):
        tokens.append(token)
    return tokens


@dataclass(frozen=True)
class Prec:
    pl: float
    pr: float


def lp(n: float) -> Prec:
    # Left associative: the right operand must bind tighter.
    return Prec(n, n + 0.1)


PS = {
    "*": lp(7),
    "/": lp(7),
    "mod": lp(7),
    "++": lp(7),
    "+": lp(6),
    "-": lp(6),
    "=": lp(5),
    "!=": lp(5),
    "<": lp(5),
    ">": lp(5),
    "<=": lp(5),
    ">=": lp(5),
    "and": lp(4),
    "or": lp(4),
    "|>": lp(3),
    "o": lp(3),
    "∘": lp(3),
}

HIGHEST_PREC: float = max(max(p.pl, p.pr) for p in PS.values()) + 1

# `not a < b` negates the comparison, not just a.
NOT_PREC: float = PS["and"].pr


def line_of(tokens: typing.List[Token]) -> int:
    return tokens[0].lineno if tokens else -1


def peek(tokens: typing.List[Token]) -> Optional[Token]:
    return tokens[0] if tokens else None


def pop(tokens: typing.List[Token], what: str) -> Token:
    if not tokens:
        raise UnexpectedEOFError(f"unexpected end of input, expected {what}")
    return tokens.pop(0)


def expect(tokens: typing.List[Token], expected: Token, what: str) -> Token:
    token = pop(tokens, what)
    if token != expected:
        raise ParseError(f"expected {what}, got {describe(token)}", token.lineno)
    return token


def expect_name(tokens: typing.List[Token]) -> str:
    token = pop(tokens, "identifier")
    if not isinstance(token, Name):
        raise ParseError(f"expected identifier, got {describe(token)}", token.lineno)
    return token.value


def describe(token: Token) -> str:
    if isinstance(token, (Operator, Keyword, Name)):
        return repr(token.value)
    if isinstance(token, (IntLit, RealLit, StringLit)):
        return f"literal {token.value!r}"
    return {
        LeftParen: "'('",
        RightParen: "')'",
        LeftBracket: "'['",
        RightBracket: "']'",
        Comma: "','",
        Semicolon: "';'",
    }.get(type(token), type(token).__name__)


def infix_key(token: Token) -> Optional[str]:
    if isinstance(token, (Operator, Keyword)) and token.value in PS:
        return token.value
    return None


def make_infix(key: str, left: Node, right: Node, line: int) -> Node:
    if key == "|>":
        return Pipe(left, right, line=line)
    if key in ("o", "∘"):
        return Compose(left, right, line=line)
    return Binop(BinopKind.from_str(key), left, right, line=line)


def parse(tokens: typing.List[Token], p: float = 0) -> Node:
    if not tokens:
        raise UnexpectedEOFError("unexpected end of input")
    token = tokens[0]
    l = parse_prefix(tokens)
    # Only names, parenthesized expressions and calls can be called.
    callable_ = isinstance(token, (Name, LeftParen))

    while tokens:
        op = tokens[0]
        if isinstance(op, LeftParen) and callable_:
            tokens.pop(0)
            l = Apply(l, parse(tokens), line=op.lineno)
            # f(a, b) is f(a)(b).
            while peek(tokens) == Comma():
                tokens.pop(0)
                l = Apply(l, parse(tokens), line=op.lineno)
            expect(tokens, RightParen(), "')'")
            continue
        key = infix_key(op)
        if key is None:
            break
        prec = PS[key]
        if prec.pl < p:
            break
        tokens.pop(0)
        l = make_infix(key, l, parse(tokens, prec.pr), op.lineno)
        callable_ = False
    return l


def parse_prefix(tokens: typing.List[Token]) -> Node:
    token = pop(tokens, "expression")
    line = token.lineno
    if isinstance(token, IntLit):
        return Literal(Int(token.value), line=line)
    if isinstance(token, RealLit):
        return Literal(Real(token.value), line=line)
    if isinstance(token, StringLit):
        return Literal(String(token.value), line=line)
    if isinstance(token, Name):
        if peek(tokens) == Operator("->"):
            tokens.pop(0)
            return Lambda(token.value, parse(tokens), line=line)
        return Var(token.value, line=line)
    if isinstance(token, LeftParen):
        return parse_group(tokens, line)
    if isinstance(token, LeftBracket):
        return parse_list(tokens, line)
    if token == Operator("-"):
        return Unop(UnopKind.NEG, parse(tokens, HIGHEST_PREC), line=line)
    if isinstance(token, Keyword):
        handler = PREFIX_KEYWORDS.get(token.value)
        if handler is not None:
            return handler(tokens, line)
        if token.value in BUILTINS:
            return parse_builtin(token.value, tokens, line)
    raise ParseError(f"unexpected token {describe(token)}", line)


def parse_group(tokens: typing.List[Token], line: int) -> Node:
    if peek(tokens) == RightParen():
        raise ParseError("empty parentheses", line)
    first = parse(tokens)
    if peek(tokens) != Comma():
        expect(tokens, RightParen(), "')'")
        return first
    items = [first]
    while peek(tokens) == Comma():
        tokens.pop(0)
        items.append(parse(tokens))
    expect(tokens, RightParen(), "')'")
    return TupleLit(tuple(items), line=line)


def parse_list(tokens: typing.List[Token], line: int) -> Node:
    items = []
    if peek(tokens) == RightBracket():
        tokens.pop(0)
        return ListLit((), line=line)
    items.append(parse(tokens))
    while peek(tokens) == Comma():
        tokens.pop(0)
        items.append(parse(tokens))
    expect(tokens, RightBracket(), "']'")
    return ListLit(tuple(items), line=line)


def parse_fn(tokens: typing.List[Token], line: int) -> Node:
    params = [expect_name(tokens)]
    while isinstance(peek(tokens), Name):
        params.append(expect_name(tokens))
    expect(tokens, Operator("->"), "'->'")
    body = parse(tokens)
    for param in reversed(params):
        body = Lambda(param, body, line=line)
    return body


def parse_let(tokens: typing.List[Token], line: int) -> Node:
    name = expect_name(tokens)
    expect(tokens, Operator(":="), "':='")
    value = parse(tokens)
    expect(tokens, Keyword("in"), "'in'")
    return Let(name, value, parse(tokens), line=line)


def parse_if(tokens: typing.List[Token], line: int) -> Node:
    cond = parse(tokens)
    expect(tokens, Keyword("then"), "'then'")
    then = parse(tokens)
    expect(tokens, Keyword("else"), "'else'")
    return If(cond, then, parse(tokens), line=line)


def parse_match(tokens: typing.List[Token], line: int) -> Node:
    scrutinee = parse(tokens)
    expect(tokens, Keyword("with"), "'with'")
    cases = []
    while peek(tokens) == Operator("|"):
        tokens.pop(0)
        pattern = parse_pattern(tokens)
        expect(tokens, Operator("->"), "'->'")
        cases.append(MatchCase(pattern, parse(tokens)))
    if not cases:
        raise ParseError("match needs at least one case", line)
    return Match(scrutinee, tuple(cases), line=line)


def parse_pattern(tokens: typing.List[Token]) -> Pattern:
    token = pop(tokens, "pattern")
    if isinstance(token, Name):
        if token.value == "_":
            return WildcardPattern()
        return VarPattern(token.value)
    value: Optional[Value] = None
    if token == Operator("-"):
        number = pop(tokens, "number")
        if isinstance(number, IntLit):
            value = Int(-number.value)
        elif isinstance(number, RealLit):
            value = Real(-number.value)
    elif isinstance(token, IntLit):
        value = Int(token.value)
    elif isinstance(token, RealLit):
        value = Real(token.value)
    elif isinstance(token, StringLit):
        value = String(token.value)
    elif token == Keyword("true"):
        value = TRUE
    elif token == Keyword("false"):
        value = FALSE
    if value is None:
        raise ParseError(f"expected pattern, got {describe(token)}", token.lineno)
    return LiteralPattern(value)


def parse_not(tokens: typing.List[Token], line: int) -> Node:
    return Unop(UnopKind.NOT, parse(tokens, NOT_PREC), line=line)


PREFIX_KEYWORDS: Dict[str, Callable[[typing.List[Token], int], Node]] = {
    "true": lambda tokens, line: Literal(TRUE, line=line),
    "false": lambda tokens, line: Literal(FALSE, line=line),
    "fn": parse_fn,
    "let": parse_let,
    "if": parse_if,
    "match": parse_match,
    "not": parse_not,
}


def parse_builtin_args(name: str, tokens: typing.List[Token], line: int) -> typing.List[Node]:
    """Read the arguments of a built-in.

    Arguments are either all inside one pair of parentheses, separated by
    whitespace or commas, as in substr("hello" 1 3), or juxtaposed, as in
    foldl (fn a b -> a + b) 0 xs. In the juxtaposed form a parenthesized
    first argument is read like the first case and the rest follow it.
    """
    arity = BUILTINS[name]
    args: typing.List[Node] = []
    if peek(tokens) == LeftParen():
        open_line = tokens.pop(0).lineno
        if peek(tokens) == RightParen():
            raise ParseError(f"{name} expects {arity} argument(s), got 0", line)
        args.append(parse(tokens))
        if peek(tokens) == Comma():
            while peek(tokens) == Comma():
                tokens.pop(0)
                args.append(parse(tokens))
            if arity == 1:
                # swap (1, 2) passes a single tuple.
                args = [TupleLit(tuple(args), line=open_line)]
        while tokens and peek(tokens) != RightParen():
            args.append(parse(tokens))
        expect(tokens, RightParen(), "')'")
        if len(args) > 1 and len(args) != arity:
            raise ParseError(f"{name} expects {arity} argument(s), got {len(args)}", line)
    while len(args) < arity:
        args.append(parse(tokens, HIGHEST_PREC))
    if len(args) > arity:
        raise ParseError(f"{name} expects {arity} argument(s), got {len(args)}", line)
    return args


def parse_builtin(name: str, tokens: typing.List[Token], line: int) -> Node:
    args = parse_builtin_args(name, tokens, line)
    if name == "proj":
        index, tup = args
        if not (isinstance(index, Literal) and isinstance(index.value, Int)):
            raise ParseError("proj expects an integer literal index", line)
        return Proj(index.value.value, tup, line=line)
    if name == "foldl":
        return Fold(*args, left=True, line=line)
    if name == "foldr":
        return Fold(*args, left=False, line=line)
    cls = {
        "hd": Head,
        "tl": Tail,
        "len": Len,
        "isempty": IsEmpty,
        "strlen": StrLen,
        "explode": Explode,
        "swap": Swap,
        "destruct": Destruct,
        "strcat": StrCat,
        "map": Map,
        "filter": Filter,
        "substr": Substr,
    }[name]
    return cls(*args, line=line)


def parse_statement(tokens: typing.List[Token]) -> Node:
    if peek(tokens) == Keyword("val"):
        line = tokens.pop(0).lineno
        name = expect_name(tokens)
        expect(tokens, Operator(":="), "':='")
        return Val(name, parse(tokens), line=line)
    return parse(tokens)


def parse_program(source: str) -> Program:
    """Parse a sequence of `;`-terminated statements.

    The final semicolon may be left out.
    """
    tokens = tokenize(source)
    logger.debug("tokens: %s", tokens)
    statements = []
    while tokens:
        statements.append(parse_statement(tokens))
        if tokens:
            expect(tokens, Semicolon(), "';'")
    if not statements:
        raise ParseError("empty program", 1)
    return Program(tuple(statements), line=statements[0].line)


def parse_expression(source: str) -> Node:
    tokens = tokenize(source)
    result = parse(tokens)
    if tokens:
        raise ParseError(f"unexpected token {describe(tokens[0])}", tokens[0].lineno)
    return result
