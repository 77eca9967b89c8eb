import os
import tempfile
from collections import defaultdict
from itertools import product, zip_longest
from pathlib import Path

import pytest
import yaml
from conftest import LINE, make_line

from varrule import __version__, errors
from varrule.backend.base import Backend
from varrule.cli import construct_parser
from varrule.common import create_reader
from varrule.modules import filter
from varrule.variant_filter import FilterKind

FILTER_CASES = Path(__file__).parent.joinpath("testcases/filter")


def test_version():
    assert __version__ != "unknown"


def idfn(val):
    if isinstance(val, os.PathLike):
        return "-".join(os.path.normpath(val).split(os.sep)[-2:])


def load_config(path: Path) -> dict:
    with open(path.joinpath("config.yaml")) as config_fp:
        return yaml.load(config_fp, Loader=yaml.FullLoader)


@pytest.mark.parametrize(
    "testcase,backend",
    product(
        (
            FILTER_CASES.joinpath(d)
            for d in sorted(os.listdir(FILTER_CASES))
            if not d.startswith(".")
        ),
        (Backend.pysam, Backend.cyvcf2),
    ),
    ids=idfn,
)
def test_command(testcase: Path, backend: Backend, capsys):
    vcf_path = testcase.joinpath("test.vcf")
    config = load_config(testcase)

    # emulate command-line command setup to use argparse afterwards
    command = parse_command_config(config, vcf_path)
    args = construct_parser().parse_args(command)
    args.backend = backend

    if "raises" in config:
        exception = getattr(errors, config["raises"])
        with pytest.raises(exception):
            filter.execute.__wrapped__(args)
        with pytest.raises(SystemExit) as e:
            filter.execute(args)
        assert e.value.code == 1
        assert capsys.readouterr().err.startswith("Error: ")
        return

    with tempfile.NamedTemporaryFile(mode="w+t", suffix=".vcf") as tmp_out:
        args.output = tmp_out.name
        filter.execute(args)

        expected = str(testcase.joinpath("expected.vcf"))
        with create_reader(tmp_out.name, backend=backend) as vcf_actual:
            with create_reader(expected, backend=backend) as vcf_expected:
                for r1, r2 in zip_longest(vcf_actual, vcf_expected):
                    assert r1 == r2

                assert vcf_actual.header.get_generic("varruleVersion") == __version__
                assert vcf_actual.header.contains_generic("varruleCmd")


def test_statistics():
    path = FILTER_CASES.joinpath("genotype")
    command = parse_command_config(load_config(path), path.joinpath("test.vcf"))
    args = construct_parser().parse_args(command + ["--info-filter", "DP > 10"])
    with (
        tempfile.NamedTemporaryFile(mode="w+t", suffix=".vcf") as tmp_out,
        tempfile.NamedTemporaryFile(mode="w+t", suffix=".yaml") as tmp_stats,
    ):
        args.output = tmp_out.name
        args.statistics = tmp_stats.name
        filter.execute(args)
        with open(tmp_stats.name) as f:
            stats = yaml.safe_load(f)
    # genotypes are only scrubbed in records that are written
    assert stats == {"pass": 2, "fail": 1, "removed_genotypes": 1}


def test_record_errors_are_reported_and_counted(registry, capsys):
    info_filters = filter.compile_filters(["AF > 0.5"], FilterKind.RECORD, registry)
    counter = defaultdict(int)
    lines = [make_line("AF=0.6,0.7"), make_line("AF=0.6"), "not a record"]
    kept = list(filter.filter_vcf(lines, registry, info_filters, counter=counter))
    assert kept == []
    assert counter == {"errors": 3, "fail": 1}
    assert capsys.readouterr().err.count("Warning") == 3


def test_tag_pass_keeps_every_record(registry):
    info_filters = filter.compile_filters(["DP > 10"], FilterKind.RECORD, registry)
    lines = [make_line("DP=15"), make_line("DP=5", filter_="LowQual")]
    kept = list(filter.filter_vcf(lines, registry, info_filters, tag_pass="DeepDP"))
    assert [v.filter for v in kept] == ["DeepDP", "LowQual"]


def test_invert_and_or(registry):
    info_filters = filter.compile_filters(
        ["DP > 10", "DB"], FilterKind.RECORD, registry
    )
    lines = [make_line("DP=15;DB"), make_line("DP=15"), make_line("DP=5")]

    def kept(**kwargs):
        records = filter.filter_vcf(lines, registry, info_filters, **kwargs)
        return [v.get_info_value_bool("DB") for v in records]

    assert kept() == [True]
    assert kept(use_or=True) == [True, False]
    assert kept(invert=True) == [False, False]
    assert kept(use_or=True, invert=True) == [False]


def test_missing_sample_values_fail_genotype_filters(registry, capsys):
    genotype_filters = filter.compile_filters(["GQ > 20"], FilterKind.SAMPLE, registry)
    counter = defaultdict(int)
    (variant,) = filter.filter_vcf(
        [make_line()], registry, [], genotype_filters, counter=counter
    )
    assert counter["removed_genotypes"] == 2
    assert str(variant).endswith("./.:12\t./.:4")
    assert capsys.readouterr().err == ""


def test_genotype_errors_leave_record_untouched(registry, capsys):
    genotype_filters = filter.compile_filters(["GT > 1"], FilterKind.SAMPLE, registry)
    counter = defaultdict(int)
    (variant,) = filter.filter_vcf(
        [make_line()], registry, [], genotype_filters, counter=counter
    )
    assert counter["genotype_errors"] == 1
    assert "removed_genotypes" not in counter
    assert str(variant) == make_line()
    assert "Warning" in capsys.readouterr().err


def test_full_record_passes_through_unchanged(registry):
    (variant,) = filter.filter_vcf([LINE], registry, [])
    assert str(variant) == LINE


@pytest.mark.parametrize("tag", ["0", "a b", "a;b", "a\tb"])
def test_invalid_tags(tag):
    with pytest.raises(errors.FilterTagNameInvalidError):
        filter.check_tag(tag)


def parse_command_config(config, vcf_path):
    command = [config["function"], str(vcf_path)]
    for key, value in config.items():
        if key in ("function", "raises"):
            continue
        if isinstance(value, bool):
            if value:
                command.append(config_key_to_arg(key))
        elif isinstance(value, dict):
            for k, v in value.items():
                command += [config_key_to_arg(key), f"{k}={v}"]
        elif isinstance(value, list):
            for argument in value:
                command += [config_key_to_arg(key), str(argument)]
        else:
            command += [config_key_to_arg(key), str(value)]
    return command


def config_key_to_arg(key: str) -> str:
    """Convert a config key to an argument name."""
    return f"--{key.replace('_', '-')}"
