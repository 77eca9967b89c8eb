from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping

from .errors import InvalidNumberError
from .genotype import genotype_count

if TYPE_CHECKING:
    from .backend.base import VCFHeader


class FieldType(Enum):
    FLOAT = 0
    INTEGER = 1
    BOOLEAN = 2
    STRING = 3
    UNKNOWN = 4

    def __str__(self):
        return self.name.lower()

    @staticmethod
    def from_vcf_type(s: str | None) -> FieldType:
        return _VCF_TYPES.get(s or "", FieldType.UNKNOWN)


_VCF_TYPES = {
    "Float": FieldType.FLOAT,
    "Integer": FieldType.INTEGER,
    "Flag": FieldType.BOOLEAN,
    "String": FieldType.STRING,
    "Character": FieldType.STRING,
}


@dataclass(frozen=True)
class Cardinality:
    """The `Number=` of a header line: a fixed count or one of A, R, G, '.'"""

    number: str

    PER_ALT = "A"
    PER_ALLELE = "R"
    PER_GENOTYPE = "G"
    UNBOUNDED = "."

    @classmethod
    def parse(cls, number: str | int | None) -> Cardinality:
        if number is None:
            return cls(cls.UNBOUNDED)
        number = str(number).strip()
        if number in (cls.PER_ALT, cls.PER_ALLELE, cls.PER_GENOTYPE, cls.UNBOUNDED):
            return cls(number)
        if number.isdigit():
            return cls(str(int(number)))
        raise InvalidNumberError(number)

    @property
    def is_fixed(self) -> bool:
        return self.number.isdigit()

    @property
    def count(self) -> int | None:
        return int(self.number) if self.is_fixed else None

    def expected(self, n_alt: int, ploidy: int = 2) -> int | None:
        """Number of entries a value must have, or None if unbounded."""
        if self.is_fixed:
            return int(self.number)
        if self.number == self.PER_ALT:
            return n_alt
        if self.number == self.PER_ALLELE:
            return n_alt + 1
        if self.number == self.PER_GENOTYPE:
            return genotype_count(n_alt + 1, ploidy)
        return None

    def __str__(self):
        return self.number


@dataclass(frozen=True)
class FieldSpec:
    type: FieldType
    cardinality: Cardinality = Cardinality(Cardinality.UNBOUNDED)

    @classmethod
    def from_meta(cls, meta: Mapping[str, str]) -> FieldSpec:
        return cls(
            FieldType.from_vcf_type(meta.get("Type")),
            Cardinality.parse(meta.get("Number")),
        )


# record fields that filters may reference regardless of the header
BUILTIN_FIELDS = {
    "QUAL": FieldType.FLOAT,
    "FILTER": FieldType.STRING,
}


@dataclass
class FieldRegistry:
    info: dict[str, FieldSpec] = field(default_factory=dict)
    format: dict[str, FieldSpec] = field(default_factory=dict)
    samples: list[str] = field(default_factory=list)
    filters: set[str] = field(default_factory=set)

    def __post_init__(self):
        self.filters = set(self.filters) | {"PASS"}

    @classmethod
    def from_header(cls, header: VCFHeader) -> FieldRegistry:
        return cls(
            info={key: FieldSpec.from_meta(m) for key, m in header.infos.items()},
            format={key: FieldSpec.from_meta(m) for key, m in header.formats.items()},
            samples=list(header.samples),
            filters=set(header.filters),
        )

    @classmethod
    def from_types(
        cls,
        info: Mapping[str, tuple[FieldType, str | int]] | None = None,
        format: Mapping[str, tuple[FieldType, str | int]] | None = None,
        samples: Iterable[str] = (),
        filters: Iterable[str] = (),
    ) -> FieldRegistry:
        """Shorthand taking (FieldType, Number) pairs instead of FieldSpecs."""

        def specs(d):
            return {
                key: FieldSpec(t, Cardinality.parse(number))
                for key, (t, number) in (d or {}).items()
            }

        return cls(specs(info), specs(format), list(samples), set(filters))

    def info_type(self, key: str) -> FieldType:
        spec = self.info.get(key)
        return spec.type if spec else FieldType.UNKNOWN

    def format_type(self, key: str) -> FieldType:
        spec = self.format.get(key)
        return spec.type if spec else FieldType.UNKNOWN

    def filter_variables(self, sample: bool = False) -> dict[str, FieldType]:
        """Key -> type map that a record (or sample) filter is compiled against."""
        fields = self.format if sample else self.info
        variables = {key: spec.type for key, spec in fields.items()}
        variables.update(BUILTIN_FIELDS)
        return variables
