"""
Operator-precedence conversion of infix rule tokens into postfix order.

The output lists every operator after its operands, so that it can be evaluated in
a single pass with one operand stack (see ``varrule.evaluator``).
"""

from typing import Sequence

from .errors import MalformedFilterError, UnbalancedParenthesesError
from .tokens import Operator, OperatorKind, RuleToken

PRIORITY = {
    OperatorKind.MULTIPLY: 8,
    OperatorKind.DIVIDE: 8,
    OperatorKind.ADD: 7,
    OperatorKind.SUBTRACT: 7,
    OperatorKind.NOT: 6,
    OperatorKind.EQUAL: 5,
    OperatorKind.GREATER_THAN: 5,
    OperatorKind.LESS_THAN: 5,
    OperatorKind.AND: 4,
    OperatorKind.OR: 3,
    OperatorKind.LEFT_PAREN: 0,
    OperatorKind.RIGHT_PAREN: 0,
}

UNARY = frozenset({OperatorKind.NOT})
PARENTHESES = frozenset({OperatorKind.LEFT_PAREN, OperatorKind.RIGHT_PAREN})


def priority(token: Operator) -> int:
    return PRIORITY[token.kind]


def is_right_associative(token: Operator) -> bool:
    return token.kind in (OperatorKind.NOT, OperatorKind.LEFT_PAREN)


def _pops_before(top: Operator, token: Operator) -> bool:
    if top.kind in PARENTHESES:
        return False
    if priority(top) > priority(token):
        return True
    return priority(top) == priority(token) and not is_right_associative(token)


def to_postfix(tokens: Sequence[RuleToken], spec: str = "") -> list[RuleToken]:
    output: list[RuleToken] = []
    stack: list[Operator] = []

    for token in tokens:
        match token:
            case Operator(kind=OperatorKind.LEFT_PAREN):
                stack.append(token)
            case Operator(kind=OperatorKind.RIGHT_PAREN):
                while True:
                    if not stack:
                        raise UnbalancedParenthesesError(spec)
                    top = stack.pop()
                    if top.kind is OperatorKind.LEFT_PAREN:
                        break
                    output.append(top)
            case Operator():
                while stack and _pops_before(stack[-1], token):
                    output.append(stack.pop())
                stack.append(token)
            case _:
                output.append(token)

    while stack:
        top = stack.pop()
        if top.kind in PARENTHESES:
            raise UnbalancedParenthesesError(spec)
        output.append(top)
    return output


def check_arity(postfix: Sequence[RuleToken], spec: str = "") -> None:
    """Reject postfix sequences that cannot reduce to exactly one operand."""
    depth = 0
    for token in postfix:
        match token:
            case Operator(kind=kind):
                needed = 1 if kind in UNARY else 2
                if depth < needed:
                    raise MalformedFilterError(
                        spec, f"operator '{token}' is missing an operand."
                    )
                depth -= needed - 1
            case _:
                depth += 1
    if depth != 1:
        raise MalformedFilterError(
            spec, f"expected a single expression, found {depth} operands."
        )
