import functools
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from varrule.variant import Variant


class VarruleError(Exception):
    """Basic exception for errors raised by varrule"""

    def __str__(self) -> str:
        return self.args[0]


# lexical errors


class FilterSyntaxError(VarruleError):
    """Filter spec could not be tokenized or parsed"""

    def __init__(self, spec: str, reason: str, position: int | None = None) -> None:
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"The filter '{spec}' is invalid{where}. Reason: {reason}")
        self.spec = spec
        self.position = position


class UnrecognizedOperandError(FilterSyntaxError):
    def __init__(self, spec: str, lexeme: str, position: int) -> None:
        super().__init__(
            spec,
            f"'{lexeme}' is neither a known field nor a number.",
            position,
        )
        self.lexeme = lexeme


class UnbalancedParenthesesError(FilterSyntaxError):
    def __init__(self, spec: str, position: int | None = None) -> None:
        super().__init__(spec, "unbalanced parentheses.", position)


# structural and type errors


class MalformedFilterError(VarruleError):
    """The operand stack did not end in exactly one boolean"""

    def __init__(self, spec: str, reason: str) -> None:
        super().__init__(f"The filter '{spec}' is malformed. Reason: {reason}")
        self.spec = spec


class FilterTypeError(VarruleError):
    """Operator applied to operands of incompatible kinds"""

    def __init__(self, operator: str, *operands: Any) -> None:
        kinds = ", ".join(type(o).__name__ for o in operands)
        super().__init__(
            f"Operator '{operator}' cannot be applied to operands of kind ({kinds}): "
            + ", ".join(map(str, operands)),
        )
        self.operator = operator
        self.operands = operands


class DivisionByZeroError(VarruleError):
    def __init__(self, left: Any, right: Any) -> None:
        super().__init__(f"Division by zero: {left} / {right}")


class FilterKindError(VarruleError):
    """Filter applied with a call shape that does not fit its kind"""

    def __init__(self, kind: Any, reason: str) -> None:
        super().__init__(f"Cannot apply {kind} filter: {reason}")
        self.kind = kind


# data errors


class MalformedRecordError(VarruleError):
    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"Malformed record ({reason}):\n{line}")
        self.line = line


class CardinalityError(VarruleError):
    """Entry count of a multi-value field disagrees with its declared Number"""

    def __init__(
        self,
        field: str,
        expected: int,
        nvalues: int,
        number: str,
        sample: str | None = None,
    ) -> None:
        where = f"FORMAT field {field} of sample {sample}" if sample else field
        msg = (
            f"{where} has {nvalues} values, but declares `Number={number}` "
            f"which requires {expected} values here.\n"
            "To override the declared number, "
            f"use `--overwrite-number-[info|format] {field}=NUM`, "
            "where `NUM` is one of: \n"
            "- A: the field has one value per alternate allele\n"
            "- R: the field has one value for each possible allele, "
            "including the reference.\n"
            "- .: the number of possible values varies, is unknown or unbounded\n"
            "- G: the field has one value for each possible genotype\n"
            "- {number}: the field has exactly {NUMBER} values\n"
        )
        super().__init__(msg)
        self.field = field
        self.expected = expected
        self.nvalues = nvalues


class InvalidNumberError(VarruleError):
    def __init__(self, number: str) -> None:
        super().__init__(
            f"Invalid `Number={number}`: expected an integer or one of A, R, G, ."
        )
        self.number = number


class MalformedGenotypeError(VarruleError):
    def __init__(self, genotype: str) -> None:
        super().__init__(f"Malformed genotype: '{genotype}'")
        self.genotype = genotype


class UnknownSampleError(VarruleError, KeyError):
    """Unknown Sample"""

    def __init__(self, record: "Variant", sample: str) -> None:
        super().__init__(
            f"No sample with name '{sample}' in record:\n{str(record)}",
        )
        self.record = record
        self.field = sample


class UnknownFormatFieldError(VarruleError, KeyError):
    """Unknown FORMAT key"""

    def __init__(self, record: "Variant", field: str) -> None:
        super().__init__(
            f"No FORMAT field '{field}' declared for record:\n{str(record)}",
        )
        self.record = record
        self.field = field


class UnknownInfoFieldError(VarruleError):
    """Unknown INFO key"""

    def __init__(self, record: "Variant", field: str) -> None:
        super().__init__(
            f"No INFO field '{field}' declared for record:\n{str(record)}",
        )
        self.record = record
        self.field = field


class UnknownAlleleError(VarruleError):
    def __init__(self, record: "Variant", allele: str | int) -> None:
        super().__init__(
            f"No alternate allele '{allele}' in record:\n{str(record)}",
        )
        self.record = record
        self.allele = allele


class MissingValueError(VarruleError):
    """The field is declared but has no value in this record or sample"""

    def __init__(self, field: str, sample: str | None = None) -> None:
        where = f" for sample '{sample}'" if sample is not None else ""
        super().__init__(f"Missing value for field '{field}'{where}")
        self.field = field
        self.sample = sample


class ValueConversionError(VarruleError):
    def __init__(self, field: str, raw: str, kind: str) -> None:
        super().__init__(f"Cannot convert value '{raw}' of field '{field}' to {kind}")
        self.field = field
        self.raw = raw


# command line errors


class NoFilterGivenError(VarruleError):
    def __init__(self) -> None:
        super().__init__(
            "No filter given. Use --info-filter/-f and/or --genotype-filter/-g."
        )


class FilterTagNameInvalidError(VarruleError):
    def __init__(self, tag: str) -> None:
        super().__init__(
            f"Filter '{tag}' contains invalid characters (whitespace or semicolon) "
            f"or is '0'.",
        )


def handle_varrule_error(func):
    """
    Decorator to handle VarruleError exceptions and print a user-friendly message.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except VarruleError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    return wrapper
