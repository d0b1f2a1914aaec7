"""Calculated-column expression conversion.

Legacy calculated fields carry a formula in the designer's expression syntax
(``[Qty]*[UnitPrice]``, ``[First] & " " & [Last]``). A generated column needs
an equivalent, immutable PostgreSQL expression. Anything that cannot be
translated with confidence raises :class:`ExpressionConversionError`, which the
schema materializer turns into a plain nullable column plus a warning.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Collection
from dataclasses import dataclass

from polyaccess.core.collaborators.exceptions import ExpressionConversionError
from polyaccess.core.collaborators.registry import CollaboratorRegistry
from polyaccess.core.migration.identifiers import quote_ident, sanitize_name


class ExpressionConverter(ABC):
    """Abstract base class for calculated-column expression converters."""

    @abstractmethod
    def convert(self, expression: str, columns: Collection[str] | None = None) -> str:
        """Convert a legacy expression to a PostgreSQL expression.

        Args:
            expression: Formula in the legacy expression syntax.
            columns: Sanitized names the expression may reference. A generated
                column can only read stored, non-generated columns of its own
                table. None skips the check.

        Raises:
            ExpressionConversionError: If the expression cannot be converted.
        """
        pass


# =============================================================================
# Tokenizer
# =============================================================================


@dataclass
class _Token:
    kind: str  # "literal" | "field" | "word" | "op" | "(" | ")" | ","
    text: str


_NUMBER = re.compile(r"\d+(\.\d+)?")
_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_DATE_LITERAL = re.compile(r"#(\d{1,2})/(\d{1,2})/(\d{4})#")
_OPERATORS = ("<>", "<=", ">=", "=", "<", ">", "+", "-", "*", "/", "^", "&")


def _tokenize(expression: str) -> list[_Token]:
    tokens: list[_Token] = []
    i = 0
    n = len(expression)
    while i < n:
        ch = expression[i]
        if ch.isspace():
            i += 1
        elif ch == '"':
            end = i + 1
            chars: list[str] = []
            while True:
                if end >= n:
                    raise ExpressionConversionError("Unterminated string literal", expression)
                if expression[end] == '"':
                    if end + 1 < n and expression[end + 1] == '"':
                        chars.append('"')
                        end += 2
                        continue
                    break
                chars.append(expression[end])
                end += 1
            tokens.append(_Token("literal", "'" + "".join(chars).replace("'", "''") + "'"))
            i = end + 1
        elif ch == "[":
            end = expression.find("]", i)
            if end == -1:
                raise ExpressionConversionError("Unterminated field reference", expression)
            name = sanitize_name(expression[i + 1 : end])
            if not name:
                raise ExpressionConversionError("Empty field reference", expression)
            tokens.append(_Token("field", name))
            i = end + 1
        elif ch == "#":
            match = _DATE_LITERAL.match(expression, i)
            if match is None:
                raise ExpressionConversionError("Unsupported date literal", expression)
            month, day, year = match.groups()
            tokens.append(_Token("literal", f"'{year}-{int(month):02d}-{int(day):02d}'::date"))
            i = match.end()
        elif ch in "(),":
            tokens.append(_Token(ch, ch))
            i += 1
        elif (number := _NUMBER.match(expression, i)) is not None:
            tokens.append(_Token("literal", number.group(0)))
            i = number.end()
        elif (word := _WORD.match(expression, i)) is not None:
            tokens.append(_Token("word", word.group(0)))
            i = word.end()
        else:
            op = next((op for op in _OPERATORS if expression.startswith(op, i)), None)
            if op is None:
                raise ExpressionConversionError(f"Unexpected character {ch!r}", expression)
            tokens.append(_Token("op", op))
            i += len(op)
    return tokens


# =============================================================================
# Converter
# =============================================================================


def _iif(args: list[str]) -> str:
    if len(args) != 3:
        raise ExpressionConversionError("IIf expects 3 arguments")
    return f"CASE WHEN {args[0]} THEN {args[1]} ELSE {args[2]} END"


def _mid(args: list[str]) -> str:
    if len(args) not in (2, 3):
        raise ExpressionConversionError("Mid expects 2 or 3 arguments")
    return f"substr({', '.join(args)})"


def _int(args: list[str]) -> str:
    if len(args) != 1:
        raise ExpressionConversionError("Int expects 1 argument")
    return f"floor({args[0]})"


def _renamed(target: str, arity: tuple[int, ...]) -> Callable[[list[str]], str]:
    def render(args: list[str]) -> str:
        if len(args) not in arity:
            raise ExpressionConversionError(f"{target} called with {len(args)} arguments")
        return f"{target}({', '.join(args)})"

    return render


FUNCTION_MAP: dict[str, Callable[[list[str]], str]] = {
    "ucase": _renamed("upper", (1,)),
    "lcase": _renamed("lower", (1,)),
    "len": _renamed("length", (1,)),
    "trim": _renamed("btrim", (1,)),
    "ltrim": _renamed("ltrim", (1,)),
    "rtrim": _renamed("rtrim", (1,)),
    "left": _renamed("left", (2,)),
    "right": _renamed("right", (2,)),
    "mid": _mid,
    "nz": _renamed("coalesce", (1, 2)),
    "round": _renamed("round", (1, 2)),
    "abs": _renamed("abs", (1,)),
    "int": _int,
    "iif": _iif,
}

# Generated columns must be immutable; these depend on the clock.
VOLATILE_FUNCTIONS = {"date", "now", "time", "rnd"}

KEYWORDS = {
    "and": "AND",
    "or": "OR",
    "not": "NOT",
    "is": "IS",
    "null": "NULL",
    "like": "LIKE",
    "between": "BETWEEN",
    "true": "true",
    "false": "false",
    "mod": "%",
}


@CollaboratorRegistry.register(
    kind="expression_converter",
    name="basic",
    display_name="Built-in expression converter",
)
class BasicExpressionConverter(ExpressionConverter):
    """Converts field references, operators, literals and common functions."""

    def convert(self, expression: str, columns: Collection[str] | None = None) -> str:
        if not expression or not expression.strip():
            raise ExpressionConversionError("Empty expression", expression)
        tokens = _tokenize(expression.strip())
        try:
            return self._render(tokens, columns)
        except ExpressionConversionError as e:
            if e.expression is None:
                e.expression = expression
            raise

    def _render(self, tokens: list[_Token], columns: Collection[str] | None) -> str:
        parts: list[str] = []
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token.kind == "word":
                next_token = tokens[i + 1] if i + 1 < len(tokens) else None
                if next_token is not None and next_token.kind == "(":
                    close = self._matching_paren(tokens, i + 1)
                    parts.append(self._call(token.text, tokens[i + 2 : close], columns))
                    i = close + 1
                    continue
                keyword = KEYWORDS.get(token.text.lower())
                if keyword is None:
                    keyword = self._reference(sanitize_name(token.text), columns)
                parts.append(keyword)
            elif token.kind == "field":
                parts.append(self._reference(token.text, columns))
            elif token.kind == "op":
                parts.append("||" if token.text == "&" else token.text)
            elif token.kind == "(":
                close = self._matching_paren(tokens, i)
                parts.append(f"({self._render(tokens[i + 1 : close], columns)})")
                i = close + 1
                continue
            elif token.kind in (")", ","):
                raise ExpressionConversionError(f"Unexpected {token.text!r}")
            else:
                parts.append(token.text)
            i += 1
        return " ".join(parts)

    @staticmethod
    def _reference(name: str, columns: Collection[str] | None) -> str:
        if not name:
            raise ExpressionConversionError("Empty field reference")
        if columns is not None and name not in columns:
            raise ExpressionConversionError(
                f"References {name!r}, which is not a stored column of the table"
            )
        return quote_ident(name)

    def _call(
        self, name: str, arg_tokens: list[_Token], columns: Collection[str] | None
    ) -> str:
        key = name.lower()
        if key in VOLATILE_FUNCTIONS:
            raise ExpressionConversionError(
                f"{name}() is not allowed in a stored generated column"
            )
        render = FUNCTION_MAP.get(key)
        if render is None:
            raise ExpressionConversionError(f"Unsupported function {name}()")
        return render([self._render(arg, columns) for arg in self._split_args(arg_tokens)])

    @staticmethod
    def _matching_paren(tokens: list[_Token], open_index: int) -> int:
        depth = 0
        for j in range(open_index, len(tokens)):
            if tokens[j].kind == "(":
                depth += 1
            elif tokens[j].kind == ")":
                depth -= 1
                if depth == 0:
                    return j
        raise ExpressionConversionError("Unbalanced parentheses")

    @staticmethod
    def _split_args(tokens: list[_Token]) -> list[list[_Token]]:
        if not tokens:
            return []
        args: list[list[_Token]] = [[]]
        depth = 0
        for token in tokens:
            if token.kind == "(":
                depth += 1
            elif token.kind == ")":
                depth -= 1
            if token.kind == "," and depth == 0:
                args.append([])
            else:
                args[-1].append(token)
        if any(not arg for arg in args):
            raise ExpressionConversionError("Empty function argument")
        return args
