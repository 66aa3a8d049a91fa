"""Parser for textual conditions such as ``MyTestProp == 1``."""

from __future__ import annotations

from typing import Any

from gatekeep._condition import Condition
from gatekeep._errors import ConditionSyntaxError
from gatekeep._expression import Constant, Equal, FieldAccess, Node, PredicateRoot


class ConditionParser:
    """
    Parser for human-readable equality conditions.

    Grammar:
        condition = comparison EOF
        comparison = '(' comparison ')' | operand '==' operand
        operand    = IDENT | NUMBER | STRING | 'true' | 'false' | 'null'

    Identifiers become field accesses, everything else becomes a constant.
    Strings may use single or double quotes.

    Examples:
        MyTestProp == 1
        status == 'active'
        (enabled == true)
    """

    # Token types
    EQ = "EQ"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    IDENT = "IDENT"
    NUMBER = "NUMBER"
    STRING = "STRING"
    LITERAL = "LITERAL"  # true / false / null
    EOF = "EOF"

    _KEYWORDS = {"true": True, "false": False, "null": None, "none": None}

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.tokens: list[tuple[str, Any]] = []
        self.token_pos = 0
        self._tokenize()

    def _tokenize(self) -> None:
        """Convert text into tokens."""
        while self.pos < len(self.text):
            ch = self.text[self.pos]

            if ch in " \t\n\r":
                self.pos += 1
                continue

            if ch == "=":
                if self.text[self.pos : self.pos + 2] != "==":
                    raise ConditionSyntaxError(
                        f"Expected '==' at position {self.pos}"
                    )
                self.tokens.append((self.EQ, "=="))
                self.pos += 2
            elif ch == "(":
                self.tokens.append((self.LPAREN, "("))
                self.pos += 1
            elif ch == ")":
                self.tokens.append((self.RPAREN, ")"))
                self.pos += 1
            elif ch in "\"'":
                self.tokens.append((self.STRING, self._read_string(ch)))
            elif ch.isdigit() or (
                ch == "-"
                and self.pos + 1 < len(self.text)
                and self.text[self.pos + 1].isdigit()
            ):
                self.tokens.append((self.NUMBER, self._read_number()))
            elif ch.isalpha() or ch == "_":
                ident = self._read_ident()
                if ident.lower() in self._KEYWORDS:
                    self.tokens.append((self.LITERAL, self._KEYWORDS[ident.lower()]))
                else:
                    self.tokens.append((self.IDENT, ident))
            else:
                raise ConditionSyntaxError(
                    f"Unexpected character: {ch!r} at position {self.pos}"
                )

        self.tokens.append((self.EOF, None))

    def _read_string(self, quote: str) -> str:
        """Read a quoted string with escape sequence processing."""
        self.pos += 1  # skip opening quote
        result = []
        while self.pos < len(self.text) and self.text[self.pos] != quote:
            if self.text[self.pos] == "\\" and self.pos + 1 < len(self.text):
                next_ch = self.text[self.pos + 1]
                escape_map = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\"}
                result.append(escape_map.get(next_ch, next_ch))
                self.pos += 2
            else:
                result.append(self.text[self.pos])
                self.pos += 1
        if self.pos >= len(self.text):
            raise ConditionSyntaxError("Unterminated string literal")
        self.pos += 1  # skip closing quote
        return "".join(result)

    def _read_number(self) -> int | float:
        start = self.pos
        if self.text[self.pos] == "-":
            self.pos += 1
        while self.pos < len(self.text) and (
            self.text[self.pos].isdigit() or self.text[self.pos] == "."
        ):
            self.pos += 1
        text = self.text[start : self.pos]
        try:
            return float(text) if "." in text else int(text)
        except ValueError:
            raise ConditionSyntaxError(f"Invalid number: {text!r}") from None

    def _read_ident(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and (
            self.text[self.pos].isalnum() or self.text[self.pos] == "_"
        ):
            self.pos += 1
        return self.text[start : self.pos]

    def _peek(self) -> tuple[str, Any]:
        return self.tokens[self.token_pos]

    def _consume(self) -> tuple[str, Any]:
        token = self.tokens[self.token_pos]
        self.token_pos += 1
        return token

    def _expect(self, token_type: str) -> tuple[str, Any]:
        token = self._consume()
        if token[0] != token_type:
            raise ConditionSyntaxError(f"Expected {token_type}, got {token[0]}")
        return token

    def parse(self) -> PredicateRoot:
        """Parse the text and return the expression tree."""
        body = self._parse_comparison()
        if self._peek()[0] != self.EOF:
            raise ConditionSyntaxError(f"Unexpected token: {self._peek()}")
        return PredicateRoot(body)

    def _parse_comparison(self) -> Node:
        if self._peek()[0] == self.LPAREN:
            self._consume()
            node = self._parse_comparison()
            self._expect(self.RPAREN)
            return node
        left = self._parse_operand()
        self._expect(self.EQ)
        right = self._parse_operand()
        return Equal(left, right)

    def _parse_operand(self) -> Node:
        kind, value = self._consume()
        if kind == self.IDENT:
            return FieldAccess(value)
        if kind in (self.NUMBER, self.STRING, self.LITERAL):
            return Constant(value)
        raise ConditionSyntaxError(f"Expected a field or literal, got {kind}")


def parse_condition(text: str) -> Condition:
    """
    Parse a textual condition into a printable Condition.

    Example:
        >>> parse_condition("MyTestProp == 1").describe()
        'MyTestProp==1'
    """
    return Condition.from_expression(ConditionParser(text).parse())
