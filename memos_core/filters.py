"""
Filter expressions evaluated by the memo store.

Callers pass boolean predicates in a small CEL subset, for example::

    content.contains("keyword")
    tags.exists(t, t == "work") && !pinned
    creator_id == 1 || visibility in ["PUBLIC", "PROTECTED"]

Each expression is parsed into a SQLAlchemy clause. Literal values are always
bound parameters; nothing from the expression text reaches SQL directly.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy import and_, false, not_, or_, select, true

from memos_core.errors import ValidationIssue
from memos_core.models import Memo, MemoTag

FILTER_FIELDS = ("content", "tags", "creator_id", "visibility", "pinned")
# Parentheses and negations together may not nest deeper than this
MAX_FILTER_DEPTH = 32

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<number>-?\d+)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<op>&&|\|\||==|!=|[!()\[\],.])
    """,
    re.VERBOSE,
)


class FilterSyntaxError(ValidationIssue):
    def __init__(self, message: str):
        super().__init__(f"invalid filter: {message}", field="filter", error_type="invalid_filter")


@dataclass(frozen=True)
class Token:
    kind: str
    value: Any
    pos: int


def _decode_string(raw: str, pos: int) -> str:
    if raw.startswith("'"):
        body = raw[1:-1].replace("\\'", "'").replace('"', '\\"')
        raw = f'"{body}"'
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise FilterSyntaxError(f"bad string literal at position {pos}") from exc


def tokenize(expression: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    while pos < len(expression):
        match = _TOKEN_PATTERN.match(expression, pos)
        if match is None:
            raise FilterSyntaxError(f"unexpected character {expression[pos]!r} at position {pos}")
        kind = match.lastgroup
        text = match.group()
        if kind == "string":
            tokens.append(Token("string", _decode_string(text, pos), pos))
        elif kind == "number":
            tokens.append(Token("number", int(text), pos))
        elif kind == "ident":
            tokens.append(Token("ident", text, pos))
        elif kind == "op":
            tokens.append(Token("op", text, pos))
        pos = match.end()
    tokens.append(Token("eof", None, len(expression)))
    return tokens


def _tag_clause(tag: str):
    return Memo.id.in_(select(MemoTag.memo_id).where(MemoTag.tag == tag))


class _Parser:
    def __init__(self, expression: str):
        self.tokens = tokenize(expression)
        self.index = 0
        self.depth = 0

    # -- token helpers -----------------------------------------------------

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _accept(self, kind: str, value: Any = None) -> bool:
        token = self.current
        if token.kind == kind and (value is None or token.value == value):
            self.index += 1
            return True
        return False

    def _expect(self, kind: str, value: Any = None) -> Token:
        token = self.current
        if token.kind != kind or (value is not None and token.value != value):
            wanted = value if value is not None else kind
            found = token.value if token.kind != "eof" else "end of expression"
            raise FilterSyntaxError(f"expected {wanted!r} at position {token.pos}, found {found!r}")
        return self._advance()

    # -- grammar -----------------------------------------------------------

    def parse(self):
        clause = self._or()
        if self.current.kind != "eof":
            raise FilterSyntaxError(f"unexpected {self.current.value!r} at position {self.current.pos}")
        return clause

    def _or(self):
        clauses = [self._and()]
        while self._accept("op", "||"):
            clauses.append(self._and())
        return clauses[0] if len(clauses) == 1 else or_(*clauses)

    def _and(self):
        clauses = [self._unary()]
        while self._accept("op", "&&"):
            clauses.append(self._unary())
        return clauses[0] if len(clauses) == 1 else and_(*clauses)

    def _nest(self, token: Token) -> None:
        self.depth += 1
        if self.depth > MAX_FILTER_DEPTH:
            raise FilterSyntaxError(
                f"expression nested deeper than {MAX_FILTER_DEPTH} levels at position {token.pos}"
            )

    def _unary(self):
        token = self.current
        if self._accept("op", "!"):
            self._nest(token)
            clause = not_(self._unary())
            self.depth -= 1
            return clause
        return self._primary()

    def _primary(self):
        token = self.current
        if self._accept("op", "("):
            self._nest(token)
            clause = self._or()
            self._expect("op", ")")
            self.depth -= 1
            return clause
        if token.kind == "string":
            self._advance()
            self._expect("ident", "in")
            self._expect("ident", "tags")
            return _tag_clause(token.value)
        if token.kind == "ident":
            if token.value == "true":
                self._advance()
                return true()
            if token.value == "false":
                self._advance()
                return false()
            return self._field_predicate()
        found = token.value if token.kind != "eof" else "end of expression"
        raise FilterSyntaxError(f"unexpected {found!r} at position {token.pos}")

    def _field_predicate(self):
        field_token = self._advance()
        field = field_token.value
        if field not in FILTER_FIELDS:
            raise FilterSyntaxError(f"unknown field {field!r}")

        if self._accept("op", "."):
            method = self._expect("ident").value
            if field == "content" and method == "contains":
                self._expect("op", "(")
                needle = self._expect("string").value
                self._expect("op", ")")
                return Memo.content.contains(needle, autoescape=True)
            if field == "tags" and method == "exists":
                return self._tags_exists()
            raise FilterSyntaxError(f"unsupported method {field}.{method}")

        if self._accept("op", "=="):
            return self._compare(field, self._value(), negate=False)
        if self._accept("op", "!="):
            return self._compare(field, self._value(), negate=True)
        if self._accept("ident", "in"):
            return self._membership(field, self._list())

        if field == "pinned":
            return Memo.pinned.is_(True)
        raise FilterSyntaxError(f"field {field!r} needs a comparison")

    def _tags_exists(self):
        self._expect("op", "(")
        var = self._expect("ident").value
        self._expect("op", ",")
        if self._expect("ident").value != var:
            raise FilterSyntaxError(f"tags.exists must compare {var!r}")
        self._expect("op", "==")
        tag = self._expect("string").value
        self._expect("op", ")")
        return _tag_clause(tag)

    def _value(self):
        token = self.current
        if token.kind in {"string", "number"}:
            self._advance()
            return token.value
        if token.kind == "ident" and token.value in {"true", "false"}:
            self._advance()
            return token.value == "true"
        found = token.value if token.kind != "eof" else "end of expression"
        raise FilterSyntaxError(f"expected a literal at position {token.pos}, found {found!r}")

    def _list(self) -> list:
        self._expect("op", "[")
        values = []
        if not self._accept("op", "]"):
            values.append(self._value())
            while self._accept("op", ","):
                values.append(self._value())
            self._expect("op", "]")
        return values

    def _compare(self, field: str, value, negate: bool):
        if field == "tags":
            raise FilterSyntaxError("use tags.exists(t, t == \"tag\") to match tags")
        column = self._column(field, value)
        return column != value if negate else column == value

    def _membership(self, field: str, values: list):
        if field == "tags":
            raise FilterSyntaxError("use tags.exists(t, t == \"tag\") to match tags")
        for value in values:
            self._column(field, value)
        column = getattr(Memo, field)
        return column.in_(values) if values else false()

    @staticmethod
    def _column(field: str, value):
        if field == "creator_id":
            if isinstance(value, bool) or not isinstance(value, int):
                raise FilterSyntaxError("creator_id must be compared with a number")
            return Memo.creator_id
        if field == "visibility":
            if not isinstance(value, str):
                raise FilterSyntaxError("visibility must be compared with a string")
            return Memo.visibility
        if field == "pinned":
            if not isinstance(value, bool):
                raise FilterSyntaxError("pinned must be compared with true or false")
            return Memo.pinned
        if field == "content":
            if not isinstance(value, str):
                raise FilterSyntaxError("content must be compared with a string")
            return Memo.content
        raise FilterSyntaxError(f"unknown field {field!r}")


def compile_filter(expression: str):
    """Parse one filter expression into a SQLAlchemy clause."""
    if not isinstance(expression, str) or not expression.strip():
        raise FilterSyntaxError("empty expression")
    return _Parser(expression).parse()


def compile_filters(expressions: Iterable[str]) -> list:
    """Compile several expressions; the store ANDs the resulting clauses."""
    return [compile_filter(expression) for expression in expressions]
