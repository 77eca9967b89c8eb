import dataclasses

import pytest
from conftest import make_line

from varrule.errors import (
    FilterKindError,
    MalformedFilterError,
    UnbalancedParenthesesError,
    UnknownAlleleError,
    UnknownSampleError,
    UnrecognizedOperandError,
)
from varrule.fields import FieldType
from varrule.tokens import NumericVariable, Operator, OperatorKind
from varrule.variant import Variant
from varrule.variant_filter import FilterKind, VariantFilter


def record_filter(spec, registry):
    return VariantFilter.from_registry(spec, FilterKind.RECORD, registry)


def sample_filter(spec, registry):
    return VariantFilter.from_registry(spec, FilterKind.SAMPLE, registry)


def test_compile():
    f = VariantFilter.compile(
        "DP > 10", FilterKind.RECORD, {"DP": FieldType.INTEGER}
    )
    assert f.spec == "DP > 10"
    assert str(f) == "DP > 10"
    assert f.kind is FilterKind.RECORD
    assert f.rules[0] == NumericVariable("DP")
    assert f.rules[-1] == Operator(OperatorKind.GREATER_THAN)
    assert len(f.tokens) == len(f.rules) == 3


def test_filter_is_frozen(registry):
    f = record_filter("DP > 10", registry)
    with pytest.raises(dataclasses.FrozenInstanceError):
        f.spec = "DP > 20"


@pytest.mark.parametrize("info,expected", [("DP=15", True), ("DP=5", False)])
def test_record_depth(registry, info, expected):
    variant = Variant.from_line(registry, make_line(info=info))
    assert record_filter("DP > 10", registry).passes(variant) is expected


def test_unknown_field_is_rejected(registry):
    with pytest.raises(UnrecognizedOperandError) as e:
        record_filter("FOO > 3", registry)
    assert e.value.lexeme == "FOO"
    assert e.value.position == 0


def test_info_keys_are_not_visible_to_sample_filters(registry):
    with pytest.raises(UnrecognizedOperandError):
        sample_filter("DB", registry)
    with pytest.raises(UnrecognizedOperandError):
        record_filter("GQ > 10", registry)


@pytest.mark.parametrize("spec", ["(DP > 10", "DP > 10)", ")DP > 10(", "((DP > 10)"])
def test_unbalanced_parentheses(registry, spec):
    with pytest.raises(UnbalancedParenthesesError):
        record_filter(spec, registry)


@pytest.mark.parametrize("spec", ["DP >", "> 10", "DP 10", "DP > 10 &", "!"])
def test_malformed(registry, spec):
    with pytest.raises(MalformedFilterError):
        record_filter(spec, registry)


def test_non_boolean_result_fails_on_evaluation(registry, variant):
    f = record_filter("DP + 1", registry)
    with pytest.raises(MalformedFilterError):
        f.passes(variant)


def test_every_alternate_allele_has_to_pass(registry, variant):
    f = sample_filter("AF > 0.5", registry)
    # NA1 carries AF=0.4,0.6
    assert not f.passes(variant, "NA1")
    assert not f.passes(variant, "NA1", 0)
    assert f.passes(variant, "NA1", 1)
    assert f.passes(variant, "NA1", "G")
    assert not f.passes(variant, "NA1", "C")


def test_unknown_allele(registry, variant):
    f = sample_filter("AF > 0.5", registry)
    with pytest.raises(UnknownAlleleError):
        f.passes(variant, "NA1", 2)
    with pytest.raises(UnknownAlleleError):
        f.passes(variant, "NA1", "T")
    # the reference is not an alternate allele
    with pytest.raises(UnknownAlleleError):
        f.passes(variant, "NA1", "A")


def test_record_without_alternate_alleles(registry):
    line = "\t".join(
        ["1", "1", ".", "A", ".", ".", ".", ".", "GT:DP", "0/0:20", "0/0:3"]
    )
    variant = Variant.from_line(registry, line)
    f = sample_filter("DP > 10", registry)
    assert f.passes(variant, "NA1")
    assert not f.passes(variant, "NA2")


def test_sample_filter(registry, variant):
    f = sample_filter("DP > 10 & GQ > 20", registry)
    assert f.passes(variant, "NA1")
    assert not f.passes(variant, "NA2")
    with pytest.raises(UnknownSampleError):
        f.passes(variant, "NA3")


def test_kind_is_enforced(registry, variant):
    record = record_filter("DP > 10", registry)
    sample = sample_filter("DP > 10", registry)
    with pytest.raises(FilterKindError):
        record.passes(variant, "NA1")
    with pytest.raises(FilterKindError):
        record.passes(variant, allele=0)
    with pytest.raises(FilterKindError):
        sample.passes(variant)
    with pytest.raises(FilterKindError):
        record.remove_filtered_genotypes(variant)


def test_builtins_are_visible_to_both_kinds(registry, variant):
    assert record_filter("QUAL > 40", registry).passes(variant)
    assert sample_filter("QUAL > 40 & DP > 10", registry).passes(variant, "NA1")
    assert record_filter("FILTER = PASS", registry).passes(variant)


def test_filter_literals(registry):
    variant = Variant.from_line(registry, make_line(filter_="LowQual"))
    assert record_filter("FILTER = LowQual", registry).passes(variant)
    assert not record_filter("FILTER = PASS", registry).passes(variant)


def test_passes_is_pure(registry, variant):
    f = sample_filter("DP > 10", registry)
    before = str(variant)
    results = [f.passes(variant, name) for name in variant.sample_names]
    assert results == [f.passes(variant, name) for name in variant.sample_names]
    assert str(variant) == before


def test_remove_filtered_genotypes(registry, variant):
    f = sample_filter("GQ > 20", registry)
    assert f.remove_filtered_genotypes(variant) == ["NA2"]
    assert variant.get_sample_value_string("GT", "NA2") == "./."
    assert variant.get_sample_value_string("GT", "NA1") == "0/1"


def test_genotype_fields_read_the_called_genotype(registry, variant):
    # NA1 is 0/1 with PL 10, NA2 is 1/2 with PL 20
    assert sample_filter("PL > 5", registry).passes(variant, "NA1")
    f = sample_filter("PL > 15", registry)
    assert not f.passes(variant, "NA1")
    assert f.passes(variant, "NA2")
