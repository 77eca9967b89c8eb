from typing import Sequence

from .errors import DivisionByZeroError, FilterTypeError, MalformedFilterError
from .tokens import (
    Boolean,
    BooleanVariable,
    Number,
    NumericVariable,
    Operand,
    Operator,
    OperatorKind,
    RuleToken,
    StringVariable,
    Text,
    Value,
)
from .variant import Variant


def resolve(
    token: RuleToken,
    variant: Variant,
    sample: str | None = None,
    allele: int | None = None,
    spec: str = "",
) -> Value:
    """Turn an operand token into a concrete value for this record/sample/allele."""
    match token:
        case BooleanVariable(name):
            return Boolean(variant.get_value_bool(name, sample, allele))
        case NumericVariable(name):
            return Number(variant.get_value_float(name, sample, allele))
        case StringVariable(name):
            return Text(variant.get_value_string(name, sample, allele))
        case Number() | Text() | Boolean():
            return token
        case Operand(lexeme):
            raise MalformedFilterError(spec, f"unclassified operand '{lexeme}'.")
        case _:
            raise MalformedFilterError(spec, f"'{token}' is not an operand.")


def apply_operator(kind: OperatorKind, left: Value, right: Value) -> Value:
    match kind, left, right:
        case OperatorKind.ADD, Number(a), Number(b):
            return Number(a + b)
        case OperatorKind.SUBTRACT, Number(a), Number(b):
            return Number(a - b)
        case OperatorKind.MULTIPLY, Number(a), Number(b):
            return Number(a * b)
        case OperatorKind.DIVIDE, Number(a), Number(b):
            if b == 0:
                raise DivisionByZeroError(a, b)
            return Number(a / b)
        case (OperatorKind.EQUAL, Number(a), Number(b)) | (
            OperatorKind.EQUAL,
            Text(a),
            Text(b),
        ):
            return Boolean(a == b)
        case (OperatorKind.GREATER_THAN, Number(a), Number(b)) | (
            OperatorKind.GREATER_THAN,
            Text(a),
            Text(b),
        ):
            return Boolean(a > b)
        case (OperatorKind.LESS_THAN, Number(a), Number(b)) | (
            OperatorKind.LESS_THAN,
            Text(a),
            Text(b),
        ):
            return Boolean(a < b)
        case OperatorKind.AND, Boolean(a), Boolean(b):
            return Boolean(a and b)
        case OperatorKind.OR, Boolean(a), Boolean(b):
            return Boolean(a or b)
        case _:
            raise FilterTypeError(str(kind), left, right)


def _pop(stack: list[Value], operator: Operator, spec: str) -> Value:
    if not stack:
        raise MalformedFilterError(
            spec, f"operator '{operator}' is missing an operand."
        )
    return stack.pop()


def evaluate(
    postfix: Sequence[RuleToken],
    variant: Variant,
    sample: str | None = None,
    allele: int | None = None,
    spec: str = "",
) -> bool:
    """
    Evaluate a postfix rule sequence against one record, optionally in the context
    of one sample and one alternate allele (0-based index into ALT).
    """
    stack: list[Value] = []
    for token in postfix:
        match token:
            case Operator(kind=OperatorKind.NOT):
                operand = _pop(stack, token, spec)
                match operand:
                    case Boolean(value):
                        stack.append(Boolean(not value))
                    case _:
                        raise FilterTypeError(str(token), operand)
            case Operator(kind=kind):
                right = _pop(stack, token, spec)
                left = _pop(stack, token, spec)
                stack.append(apply_operator(kind, left, right))
            case _:
                stack.append(resolve(token, variant, sample, allele, spec))

    if len(stack) != 1:
        raise MalformedFilterError(
            spec, f"{len(stack)} operands remain after evaluation."
        )
    match stack[0]:
        case Boolean(value):
            return value
        case result:
            raise MalformedFilterError(
                spec, f"evaluates to '{result}', which is not a boolean."
            )
