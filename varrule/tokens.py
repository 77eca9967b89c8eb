import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Mapping

from .errors import UnrecognizedOperandError
from .fields import FieldType


class OperatorKind(Enum):
    AND = "&"
    OR = "|"
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    NOT = "!"
    EQUAL = "="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"

    def __str__(self):
        return self.value


OPERATOR_CHARS = frozenset("!&|=><+-*/")
PAREN_CHARS = frozenset("()")


@dataclass(frozen=True)
class Operand:
    """A lexeme that has not been classified yet."""

    lexeme: str

    def __str__(self):
        return self.lexeme


@dataclass(frozen=True)
class Number:
    value: float

    def __str__(self):
        return f"{self.value:g}"


@dataclass(frozen=True)
class Text:
    value: str

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Boolean:
    value: bool

    def __str__(self):
        return str(self.value).lower()


@dataclass(frozen=True)
class BooleanVariable:
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class NumericVariable:
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class StringVariable:
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Operator:
    kind: OperatorKind

    def __str__(self):
        return str(self.kind)


Value = Number | Text | Boolean
Variable = BooleanVariable | NumericVariable | StringVariable
RuleToken = Operand | Value | Variable | Operator

_NUMBER = re.compile(r"(\d+\.?\d*|\.\d+)([eE]\d+)?")


def lex(spec: str) -> Iterator[tuple[int, Operand | Operator]]:
    """Split a filter spec into (position, token) pairs.

    Every operator or parenthesis character is a token on its own, whitespace only
    separates, and any other run of characters is an operand lexeme.
    """
    start = None
    for i, c in enumerate(spec):
        if c.isspace() or c in OPERATOR_CHARS or c in PAREN_CHARS:
            if start is not None:
                yield start, Operand(spec[start:i])
                start = None
            if not c.isspace():
                yield i, Operator(OperatorKind(c))
        elif start is None:
            start = i
    if start is not None:
        yield start, Operand(spec[start:])


def classify(
    operand: Operand,
    variables: Mapping[str, FieldType],
    literals: Iterable[str] = (),
) -> Variable | Number | Text | None:
    lexeme = operand.lexeme
    field_type = variables.get(lexeme)
    if field_type is not None:
        match field_type:
            case FieldType.BOOLEAN:
                return BooleanVariable(lexeme)
            case FieldType.FLOAT | FieldType.INTEGER:
                return NumericVariable(lexeme)
            case FieldType.STRING | FieldType.UNKNOWN:
                return StringVariable(lexeme)
    if _NUMBER.fullmatch(lexeme):
        return Number(float(lexeme))
    if lexeme in literals:
        return Text(lexeme)
    return None


def tokenize_filter_spec(
    spec: str,
    variables: Mapping[str, FieldType],
    literals: Iterable[str] = (),
) -> list[RuleToken]:
    literals = frozenset(literals)
    tokens: list[RuleToken] = []
    for position, token in lex(spec):
        if isinstance(token, Operand):
            classified = classify(token, variables, literals)
            if classified is None:
                raise UnrecognizedOperandError(spec, token.lexeme, position)
            tokens.append(classified)
        else:
            tokens.append(token)
    return tokens
