from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from .errors import FilterKindError, UnknownAlleleError, UnknownSampleError
from .evaluator import evaluate
from .fields import FieldRegistry, FieldType
from .parser import check_arity, to_postfix
from .tokens import RuleToken, tokenize_filter_spec
from .variant import Variant


class FilterKind(Enum):
    SAMPLE = 0
    RECORD = 1

    def __str__(self):
        return self.name.lower()


@dataclass(frozen=True)
class VariantFilter:
    """
    A compiled filter: the spec it was built from, its infix tokens and the postfix
    rule sequence that is evaluated. Instances are immutable and can be applied to
    any number of records.
    """

    spec: str
    kind: FilterKind
    tokens: tuple[RuleToken, ...]
    rules: tuple[RuleToken, ...]

    @classmethod
    def compile(
        cls,
        spec: str,
        kind: FilterKind,
        variables: Mapping[str, FieldType],
        literals: Iterable[str] = (),
    ) -> VariantFilter:
        tokens = tokenize_filter_spec(spec, variables, literals)
        rules = to_postfix(tokens, spec)
        check_arity(rules, spec)
        return cls(spec, kind, tuple(tokens), tuple(rules))

    @classmethod
    def from_registry(
        cls, spec: str, kind: FilterKind, registry: FieldRegistry
    ) -> VariantFilter:
        return cls.compile(
            spec,
            kind,
            registry.filter_variables(sample=kind is FilterKind.SAMPLE),
            registry.filters,
        )

    def _evaluate(
        self, variant: Variant, sample: str | None = None, allele: int | None = None
    ) -> bool:
        return evaluate(self.rules, variant, sample, allele, self.spec)

    @staticmethod
    def _alt_index(variant: Variant, allele: int | str) -> int:
        if isinstance(allele, str):
            index = variant.get_allele_index(allele) - 1
        else:
            index = allele
        if not 0 <= index < len(variant.alt):
            raise UnknownAlleleError(variant, allele)
        return index

    def passes(
        self,
        variant: Variant,
        sample: str | None = None,
        allele: int | str | None = None,
    ) -> bool:
        """
        Record filters are evaluated once for the record. Sample filters need a
        sample; without an allele every alternate allele has to pass, otherwise only
        the given allele (0-based ALT index, or the allele string) is tested.
        """
        if self.kind is FilterKind.RECORD:
            if sample is not None or allele is not None:
                raise FilterKindError(
                    self.kind, "record filters take neither sample nor allele."
                )
            return self._evaluate(variant)

        if sample is None:
            raise FilterKindError(self.kind, "a sample name is required.")
        if sample not in variant.samples:
            raise UnknownSampleError(variant, sample)
        if allele is not None:
            return self._evaluate(variant, sample, self._alt_index(variant, allele))
        if not variant.alt:
            return self._evaluate(variant, sample)
        return all(
            self._evaluate(variant, sample, index) for index in range(len(variant.alt))
        )

    def remove_filtered_genotypes(self, variant: Variant) -> list[str]:
        if self.kind is not FilterKind.SAMPLE:
            raise FilterKindError(
                self.kind, "only sample filters can remove genotypes."
            )
        return variant.remove_filtered_genotypes(self)

    def __str__(self):
        return self.spec
