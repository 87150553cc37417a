from __future__ import annotations

import re
from typing import Any, List, Tuple

from .errors import ConditionError

ALWAYS = "always"
NEVER = "never"

Token = Tuple[str, Any]


class ConditionEvaluator:
    """Minimal boolean/comparison evaluator for rule gating expressions.

    Grammar:
      expr       := or_expr
      or_expr    := and_expr (("||" | "or") and_expr)*
      and_expr   := not_expr (("&&" | "and") not_expr)*
      not_expr   := ("!" | "not") not_expr | comparison
      comparison := operand (cmp_op operand)?
      operand    := NUMBER | "-" NUMBER | STRING | true | false | null | "(" expr ")"

    Strings take single or double quotes. There are no variables and no calls;
    anything else raises ConditionError.
    """

    _token_re = re.compile(
        r"""\s*(?:
            (?P<number>\d+\.\d*|\.\d+|\d+)
          | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
          | (?P<op>===|!==|==|!=|<>|<=|>=|&&|\|\||[<>!()\-])
          | (?P<word>[A-Za-z_][A-Za-z0-9_]*)
        )""",
        re.X,
    )
    _escape_re = re.compile(r"\\(.)")
    _keywords = {"true": True, "false": False, "null": None}
    _comparisons = {"==", "===", "!=", "!==", "<>", "<", "<=", ">", ">="}
    _max_digits = 4300

    def evaluate(self, expression: str) -> bool:
        expr = (expression or "").strip()
        if expr == ALWAYS:
            return True
        if expr == NEVER:
            return False
        if not expr:
            raise ConditionError("Empty condition")
        tokens = self._tokenize(expr)
        try:
            value, pos = self._or(tokens, 0)
        except RecursionError as exc:
            raise ConditionError(f"Condition nested too deeply: {expr[:40]}...") from exc
        if pos != len(tokens):
            raise ConditionError(f"Unexpected token {tokens[pos][1]!r} in condition: {expr}")
        return bool(value)

    def _tokenize(self, expr: str) -> List[Token]:
        tokens: List[Token] = []
        pos = 0
        while pos < len(expr):
            if expr[pos:].strip() == "":
                break
            m = self._token_re.match(expr, pos)
            if not m or m.end() == pos:
                raise ConditionError(f"Syntax error at offset {pos} in condition: {expr}")
            pos = m.end()
            if m.group("number") is not None:
                text = m.group("number")
                if len(text) > self._max_digits:
                    raise ConditionError(f"Number literal too long at offset {m.start('number')}")
                try:
                    tokens.append(("value", float(text) if "." in text else int(text)))
                except ValueError as exc:
                    raise ConditionError(f"Invalid number literal at offset {m.start('number')}") from exc
            elif m.group("string") is not None:
                tokens.append(("value", self._escape_re.sub(r"\1", m.group("string")[1:-1])))
            elif m.group("op") is not None:
                tokens.append(("op", m.group("op")))
            else:
                word = m.group("word").lower()
                if word in self._keywords:
                    tokens.append(("value", self._keywords[word]))
                elif word in {"and", "or", "not"}:
                    tokens.append(("op", {"and": "&&", "or": "||", "not": "!"}[word]))
                else:
                    raise ConditionError(f"Unknown identifier {m.group('word')!r} in condition: {expr}")
        return tokens

    @staticmethod
    def _peek(tokens: List[Token], pos: int) -> Any:
        if pos < len(tokens) and tokens[pos][0] == "op":
            return tokens[pos][1]
        return None

    def _or(self, tokens: List[Token], pos: int) -> Tuple[Any, int]:
        left, pos = self._and(tokens, pos)
        while self._peek(tokens, pos) == "||":
            right, pos = self._and(tokens, pos + 1)
            left = bool(left) or bool(right)
        return left, pos

    def _and(self, tokens: List[Token], pos: int) -> Tuple[Any, int]:
        left, pos = self._not(tokens, pos)
        while self._peek(tokens, pos) == "&&":
            right, pos = self._not(tokens, pos + 1)
            left = bool(left) and bool(right)
        return left, pos

    def _not(self, tokens: List[Token], pos: int) -> Tuple[Any, int]:
        if self._peek(tokens, pos) == "!":
            value, pos = self._not(tokens, pos + 1)
            return not value, pos
        return self._comparison(tokens, pos)

    def _comparison(self, tokens: List[Token], pos: int) -> Tuple[Any, int]:
        left, pos = self._operand(tokens, pos)
        op = self._peek(tokens, pos)
        if op not in self._comparisons:
            return left, pos
        right, pos = self._operand(tokens, pos + 1)
        return self._compare(op, left, right), pos

    def _operand(self, tokens: List[Token], pos: int) -> Tuple[Any, int]:
        if pos >= len(tokens):
            raise ConditionError("Unexpected end of condition")
        kind, value = tokens[pos]
        if kind == "value":
            return value, pos + 1
        if value == "(":
            inner, pos = self._or(tokens, pos + 1)
            if self._peek(tokens, pos) != ")":
                raise ConditionError("Missing closing parenthesis in condition")
            return inner, pos + 1
        if value == "-" and pos + 1 < len(tokens):
            kind, number = tokens[pos + 1]
            if kind == "value" and isinstance(number, (int, float)) and not isinstance(number, bool):
                return -number, pos + 2
        raise ConditionError(f"Unexpected token {value!r} in condition")

    @staticmethod
    def _compare(op: str, left: Any, right: Any) -> bool:
        if op in {"==", "==="}:
            return left == right
        if op in {"!=", "!==", "<>"}:
            return left != right
        try:
            if op == "<":
                return left < right
            if op == "<=":
                return left <= right
            if op == ">":
                return left > right
            return left >= right
        except TypeError as exc:
            raise ConditionError(f"Cannot compare {left!r} {op} {right!r}") from exc


def evaluate_condition(expression: str) -> bool:
    return ConditionEvaluator().evaluate(expression)
