import pytest

from varrule.errors import InvalidNumberError
from varrule.fields import Cardinality, FieldRegistry, FieldSpec, FieldType


@pytest.mark.parametrize(
    "vcf_type,expected",
    [
        ("Float", FieldType.FLOAT),
        ("Integer", FieldType.INTEGER),
        ("Flag", FieldType.BOOLEAN),
        ("String", FieldType.STRING),
        ("Character", FieldType.STRING),
        ("Blob", FieldType.UNKNOWN),
        (None, FieldType.UNKNOWN),
    ],
)
def test_vcf_types(vcf_type, expected):
    assert FieldType.from_vcf_type(vcf_type) == expected


@pytest.mark.parametrize(
    "number,n_alt,ploidy,expected",
    [
        ("1", 2, 2, 1),
        (3, 2, 2, 3),
        ("0", 2, 2, 0),
        ("A", 2, 2, 2),
        ("R", 2, 2, 3),
        ("G", 1, 2, 3),
        ("G", 2, 2, 6),
        ("G", 2, 1, 3),
        (".", 2, 2, None),
        (None, 2, 2, None),
    ],
)
def test_expected_counts(number, n_alt, ploidy, expected):
    assert Cardinality.parse(number).expected(n_alt, ploidy) == expected


@pytest.mark.parametrize("number", ["X", "-1", "1.5", ""])
def test_invalid_numbers(number):
    with pytest.raises(InvalidNumberError):
        Cardinality.parse(number)


def test_from_meta():
    spec = FieldSpec.from_meta({"ID": "AF", "Number": "A", "Type": "Float"})
    assert spec == FieldSpec(FieldType.FLOAT, Cardinality("A"))
    assert str(spec.cardinality) == "A"
    assert spec.cardinality.count is None
    depth = FieldSpec.from_meta({"Number": "1", "Type": "Integer"})
    assert depth.cardinality.count == 1


def test_filter_variables(registry):
    info = registry.filter_variables()
    fmt = registry.filter_variables(sample=True)
    assert info["DB"] == FieldType.BOOLEAN
    assert "GQ" not in info
    assert fmt["GQ"] == FieldType.INTEGER
    assert "DB" not in fmt
    for variables in (info, fmt):
        assert variables["QUAL"] == FieldType.FLOAT
        assert variables["FILTER"] == FieldType.STRING


def test_pass_is_always_declared():
    assert FieldRegistry().filters == {"PASS"}
    assert FieldRegistry.from_types(filters=["LowQual"]).filters == {"PASS", "LowQual"}
