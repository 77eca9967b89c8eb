from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Sequence

from .errors import (
    CardinalityError,
    MalformedRecordError,
    MissingValueError,
    UnknownAlleleError,
    UnknownFormatFieldError,
    UnknownInfoFieldError,
    UnknownSampleError,
    ValueConversionError,
)
from .fields import BUILTIN_FIELDS, Cardinality, FieldRegistry, FieldSpec, FieldType
from .genotype import (
    MISSING,
    NULL_ALLELE,
    decompose,
    genotype_ordinal,
    is_null,
    null_genotype,
    ploidy,
)

if TYPE_CHECKING:
    from .variant_filter import VariantFilter

UNBOUNDED = Cardinality(Cardinality.UNBOUNDED)

_TRUE = frozenset({"1", "true"})
_FALSE = frozenset({"0", "false"})


def _to_float(key: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueConversionError(key, raw, "a number") from None


def _to_bool(key: str, raw: str) -> bool:
    value = raw.lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueConversionError(key, raw, "a boolean")


def _format_float(value: float) -> str:
    return str(int(value)) if value.is_integer() else repr(value)


class Variant:
    """
    One VCF record: identity columns, alleles, INFO values and per-sample FORMAT
    values, all kept as lists of raw strings. Typed accessors convert on demand,
    consulting the field registry the record is bound to.
    """

    def __init__(self, registry: FieldRegistry):
        self.registry = registry
        self.sequence_name = ""
        self.position = 0
        self.id = MISSING
        self._ref = ""
        self._alt: list[str] = []
        self._allele_index: dict[str, int] = {}
        self.quality: float | None = None
        self.filter = MISSING
        self.info: dict[str, list[str]] = {}
        self.info_flags: dict[str, bool] = {}
        self.format: list[str] = []
        self.samples: dict[str, dict[str, list[str]]] = {}
        self.sample_names: list[str] = list(registry.samples)
        self.output_sample_names: list[str] = list(registry.samples)

    @classmethod
    def from_line(cls, registry: FieldRegistry, line: str) -> Variant:
        variant = cls(registry)
        variant.parse(line)
        return variant

    # alleles

    @property
    def chrom(self) -> str:
        return self.sequence_name

    @property
    def ref(self) -> str:
        return self._ref

    @property
    def alt(self) -> tuple[str, ...]:
        return tuple(self._alt)

    @property
    def alleles(self) -> tuple[str, ...]:
        return self._ref, *self._alt

    def _assign_alleles(self, ref: str, alt: Sequence[str]):
        alleles = [ref, *alt]
        index = {allele: i for i, allele in enumerate(alleles)}
        if len(index) != len(alleles):
            raise MalformedRecordError(str(self), "duplicate alleles")
        self._ref = ref
        self._alt = list(alt)
        self._allele_index = index

    def set_alleles(self, ref: str, alt: Sequence[str]):
        """Replace the alleles; stored A/R/G values must still fit the new count."""
        previous = self._ref, self._alt, self._allele_index
        self._assign_alleles(ref, alt)
        try:
            self._validate()
        except CardinalityError:
            self._ref, self._alt, self._allele_index = previous
            raise

    def get_allele_index(self, allele: str) -> int:
        try:
            return self._allele_index[allele]
        except KeyError:
            raise UnknownAlleleError(self, allele) from None

    # parsing

    def parse(self, line: str):
        columns = line.rstrip("\r\n").split("\t")
        if len(columns) < 8:
            raise MalformedRecordError(
                line, f"expected at least 8 columns, found {len(columns)}"
            )
        chrom, pos, id_, ref, alt, qual, filter_, info = columns[:8]

        try:
            self.position = int(pos)
        except ValueError:
            raise MalformedRecordError(line, f"invalid position '{pos}'") from None
        try:
            self.quality = None if qual == MISSING else float(qual)
        except ValueError:
            raise MalformedRecordError(line, f"invalid quality '{qual}'") from None

        self.sequence_name = chrom
        self.id = id_
        self._assign_alleles(ref, [] if alt == MISSING else alt.split(","))
        self.filter = filter_

        self.info = {}
        self.info_flags = {}
        if info != MISSING:
            for entry in info.split(";"):
                if not entry:
                    continue
                key, sep, value = entry.partition("=")
                if sep:
                    self.info[key] = value.split(",")
                else:
                    self.info_flags[key] = True

        self.format = columns[8].split(":") if len(columns) > 8 else []
        self.samples = {name: {} for name in self.sample_names}
        sample_columns = columns[9:]
        if sample_columns and len(sample_columns) != len(self.sample_names):
            raise MalformedRecordError(
                line,
                f"{len(sample_columns)} sample columns "
                f"for {len(self.sample_names)} samples",
            )
        for name, column in zip(self.sample_names, sample_columns):
            values = column.split(":")
            if len(values) > len(self.format):
                raise MalformedRecordError(
                    line, f"sample {name} has more values than FORMAT keys"
                )
            # trailing keys may be dropped, these stay absent
            self.samples[name] = {
                key: value.split(",") for key, value in zip(self.format, values)
            }

        self._validate()

    def _validate(self):
        n_alt = len(self._alt)
        for key, values in self.info.items():
            spec = self.registry.info.get(key)
            if spec is not None:
                self._check_cardinality(key, values, spec.cardinality, n_alt)
        for name, data in self.samples.items():
            sample_ploidy = self._ploidy(data)
            for key, values in data.items():
                spec = self.registry.format.get(key)
                if spec is not None:
                    self._check_cardinality(
                        key, values, spec.cardinality, n_alt, sample_ploidy, name
                    )

    @staticmethod
    def _ploidy(data: dict[str, list[str]]) -> int:
        gt = data.get("GT")
        if not gt:
            return 2
        return ploidy(decompose(gt[0]))

    @staticmethod
    def _check_cardinality(
        key: str,
        values: list[str],
        cardinality: Cardinality,
        n_alt: int,
        sample_ploidy: int = 2,
        sample: str | None = None,
    ):
        if values == [MISSING]:
            return
        expected = cardinality.expected(n_alt, sample_ploidy)
        # Number=0 (flags) carries no values to count
        if expected and len(values) != expected:
            raise CardinalityError(
                key, expected, len(values), str(cardinality), sample
            )

    # typed access

    def info_type(self, key: str) -> FieldType:
        return self.registry.info_type(key)

    def format_type(self, key: str) -> FieldType:
        return self.registry.format_type(key)

    def _select(
        self,
        key: str,
        values: list[str],
        spec: FieldSpec | None,
        index: int | None,
        sample: str | None = None,
    ) -> str:
        if index is not None and not 0 <= index < len(self._alt):
            raise UnknownAlleleError(self, index)
        cardinality = spec.cardinality if spec is not None else UNBOUNDED

        position: int | None = None
        if index is not None and cardinality.number == Cardinality.PER_ALT:
            position = index
        elif index is not None and cardinality.number == Cardinality.PER_ALLELE:
            position = index + 1
        elif sample is not None and cardinality.number == Cardinality.PER_GENOTYPE:
            position = self._genotype_position(key, sample)
        elif cardinality.count == 1:
            position = 0

        if position is None:
            raw = ",".join(values)
        elif position < len(values):
            raw = values[position]
        else:
            raw = MISSING
        if raw == MISSING:
            raise MissingValueError(key, sample)
        return raw

    def _genotype_position(self, key: str, sample: str) -> int | None:
        """
        Entry of a Number=G value belonging to the sample's called genotype:
        the allele itself for haploid calls, the genotype ordinal for diploid
        calls. Other ploidies read the value whole.
        """
        gt = self._sample_data(sample).get("GT")
        genotype = decompose(gt[0]) if gt else {NULL_ALLELE: 1}
        if is_null(genotype):
            raise MissingValueError(key, sample)
        alleles = sorted(a for a, n in genotype.items() for _ in range(n))
        match alleles:
            case [k]:
                return k
            case [j, k]:
                return genotype_ordinal(j, k)
            case _:
                return None

    def _info_raw(self, key: str, index: int | None) -> str:
        spec = self.registry.info.get(key)
        try:
            values = self.info[key]
        except KeyError:
            if spec is None:
                raise UnknownInfoFieldError(self, key) from None
            raise MissingValueError(key) from None
        return self._select(key, values, spec, index)

    def _sample_data(self, sample: str) -> dict[str, list[str]]:
        try:
            return self.samples[sample]
        except KeyError:
            raise UnknownSampleError(self, sample) from None

    def _sample_raw(self, key: str, sample: str, index: int | None) -> str:
        data = self._sample_data(sample)
        spec = self.registry.format.get(key)
        try:
            values = data[key]
        except KeyError:
            if spec is None and key not in self.format:
                raise UnknownFormatFieldError(self, key) from None
            raise MissingValueError(key, sample) from None
        return self._select(key, values, spec, index, sample)

    def _builtin_raw(self, key: str) -> str:
        if key == "QUAL":
            if self.quality is None:
                raise MissingValueError(key)
            return _format_float(self.quality)
        return self.filter

    def get_info_value_string(self, key: str, index: int | None = None) -> str:
        return self._info_raw(key, index)

    def get_info_value_float(self, key: str, index: int | None = None) -> float:
        return _to_float(key, self._info_raw(key, index))

    def get_info_value_bool(self, key: str, index: int | None = None) -> bool:
        """Flags read as present/absent: a declared but absent key is False."""
        if self.info_flags.get(key):
            return True
        if key in self.info:
            return _to_bool(key, self._info_raw(key, index))
        if key in self.registry.info:
            return False
        raise UnknownInfoFieldError(self, key)

    def get_sample_value_string(
        self, key: str, sample: str, index: int | None = None
    ) -> str:
        return self._sample_raw(key, sample, index)

    def get_sample_value_float(
        self, key: str, sample: str, index: int | None = None
    ) -> float:
        return _to_float(key, self._sample_raw(key, sample, index))

    def get_sample_value_bool(
        self, key: str, sample: str, index: int | None = None
    ) -> bool:
        return _to_bool(key, self._sample_raw(key, sample, index))

    def get_value_string(
        self, key: str, sample: str | None = None, index: int | None = None
    ) -> str:
        if key in BUILTIN_FIELDS:
            return self._builtin_raw(key)
        if sample is None:
            return self.get_info_value_string(key, index)
        return self.get_sample_value_string(key, sample, index)

    def get_value_float(
        self, key: str, sample: str | None = None, index: int | None = None
    ) -> float:
        if key in BUILTIN_FIELDS:
            return _to_float(key, self._builtin_raw(key))
        if sample is None:
            return self.get_info_value_float(key, index)
        return self.get_sample_value_float(key, sample, index)

    def get_value_bool(
        self, key: str, sample: str | None = None, index: int | None = None
    ) -> bool:
        if key in BUILTIN_FIELDS:
            return _to_bool(key, self._builtin_raw(key))
        if sample is None:
            return self.get_info_value_bool(key, index)
        return self.get_sample_value_bool(key, sample, index)

    def genotype(self, sample: str) -> dict[int, int]:
        return decompose(self._sample_raw("GT", sample, None))

    # edits

    def add_filter(self, tag: str):
        if self.filter in (MISSING, "PASS", ""):
            self.filter = tag
        elif tag not in self.filter.split(";"):
            self.filter = f"{self.filter};{tag}"

    def add_format_field(self, key: str):
        if key not in self.format:
            self.format.append(key)

    def set_info(self, key: str, values: Sequence[str]):
        values = list(values)
        spec = self.registry.info.get(key)
        if spec is not None:
            self._check_cardinality(key, values, spec.cardinality, len(self._alt))
        self.info_flags.pop(key, None)
        self.info[key] = values

    def set_info_flag(self, key: str, present: bool = True):
        self.info.pop(key, None)
        if present:
            self.info_flags[key] = True
        else:
            self.info_flags.pop(key, None)

    def set_sample_value(self, sample: str, key: str, values: Sequence[str]):
        data = self._sample_data(sample)
        values = list(values)
        spec = self.registry.format.get(key)
        if spec is not None:
            sample_ploidy = self._ploidy(data)
            self._check_cardinality(
                key, values, spec.cardinality, len(self._alt), sample_ploidy, sample
            )
        self.add_format_field(key)
        data[key] = values

    def set_output_sample_names(self, names: Iterable[str]):
        names = list(names)
        for name in names:
            if name not in self.samples:
                raise UnknownSampleError(self, name)
        self.output_sample_names = names

    def remove_filtered_genotypes(self, variant_filter: VariantFilter) -> list[str]:
        """
        Set the genotype of every sample failing the sample filter to missing,
        keeping its ploidy and phasing separators. Other FORMAT values are left
        untouched. A sample lacking the values the filter reads counts as failing.
        Any other error propagates with no genotype rewritten.
        Returns the names of the samples whose genotype was rewritten.
        """
        removed = []
        for name in self.sample_names:
            if not self._sample_data(name).get("GT"):
                continue
            try:
                keep = variant_filter.passes(self, name)
            except MissingValueError:
                keep = False
            if not keep:
                removed.append(name)
        for name in removed:
            gt = self.samples[name]["GT"]
            self.samples[name]["GT"] = [null_genotype(gt[0])]
        return removed

    # rendering

    def _render_info(self) -> str:
        entries = [f"{key}={','.join(values)}" for key, values in self.info.items()]
        entries.extend(key for key, present in self.info_flags.items() if present)
        return ";".join(entries) or MISSING

    def __str__(self):
        columns = [
            self.sequence_name,
            str(self.position),
            self.id,
            self._ref,
            ",".join(self._alt) or MISSING,
            MISSING if self.quality is None else _format_float(self.quality),
            self.filter,
            self._render_info(),
        ]
        if self.format:
            columns.append(":".join(self.format))
            for name in self.output_sample_names:
                data = self.samples.get(name, {})
                columns.append(
                    ":".join(
                        ",".join(data[key]) if key in data else MISSING
                        for key in self.format
                    )
                )
        return "\t".join(columns)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}({self.sequence_name}:{self.position} "
            f"{self._ref}>{','.join(self._alt) or MISSING})"
        )
