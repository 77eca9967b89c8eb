import pytest

from varrule.fields import FieldRegistry, FieldType
from varrule.variant import Variant

INFO = {
    "DP": (FieldType.INTEGER, 1),
    "MQ": (FieldType.FLOAT, 1),
    "AF": (FieldType.FLOAT, "A"),
    "AD": (FieldType.INTEGER, "R"),
    "TYPE": (FieldType.STRING, "A"),
    "DB": (FieldType.BOOLEAN, 0),
    "SOMATIC": (FieldType.BOOLEAN, 0),
}

FORMAT = {
    "GT": (FieldType.STRING, 1),
    "DP": (FieldType.INTEGER, 1),
    "GQ": (FieldType.INTEGER, 1),
    "AD": (FieldType.INTEGER, "R"),
    "PL": (FieldType.INTEGER, "G"),
    "AF": (FieldType.FLOAT, "A"),
}

LINE = "\t".join(
    [
        "1",
        "100",
        "rs1",
        "A",
        "C,G",
        "50",
        "PASS",
        "DP=15;AF=0.1,0.9;AD=5,6,4;TYPE=snp,snp;DB",
        "GT:DP:GQ:AD:PL:AF",
        "0/1:12:30:5,7,0:0,10,100,20,200,300:0.4,0.6",
        "1/2:4:10:0,2,2:100,50,40,30,20,10:0.5,0.5",
    ]
)


@pytest.fixture
def registry() -> FieldRegistry:
    return FieldRegistry.from_types(
        info=INFO,
        format=FORMAT,
        samples=["NA1", "NA2"],
        filters=["LowQual"],
    )


@pytest.fixture
def variant(registry) -> Variant:
    return Variant.from_line(registry, LINE)


def make_line(info: str = ".", qual: str = "50", filter_: str = "PASS") -> str:
    return "\t".join(
        ["1", "100", ".", "A", "C,G", qual, filter_, info, "GT:DP", "0/1:12", "1/1:4"]
    )
