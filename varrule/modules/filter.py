import re
import sys
from collections import defaultdict
from collections.abc import Iterable, Iterator

import yaml

from .. import __version__
from ..common import (
    HumanReadableDefaultsFormatter,
    add_common_arguments,
    create_reader,
    create_writer,
    normalize,
    smart_open,
)
from ..errors import (
    FilterTagNameInvalidError,
    NoFilterGivenError,
    VarruleError,
    handle_varrule_error,
)
from ..fields import FieldRegistry
from ..variant import Variant
from ..variant_filter import FilterKind, VariantFilter


def add_subcommand(subparsers):
    parser = subparsers.add_parser(
        "filter",
        help="Filter records and scrub genotypes with rule expressions.",
        formatter_class=HumanReadableDefaultsFormatter,
    )
    parser.add_argument(
        "vcf",
        help="The file containing the variants.",
        nargs="?",
        default="-",
    )
    parser.add_argument(
        "--info-filter",
        "-f",
        metavar="SPEC",
        action="append",
        default=[],
        help="Keep records for which the spec holds, evaluated on INFO fields, "
        "QUAL and FILTER. May be given multiple times. "
        "Example: `-f 'DP > 10 & AF < 0.5'`",
    )
    parser.add_argument(
        "--genotype-filter",
        "-g",
        metavar="SPEC",
        action="append",
        default=[],
        help="Set the genotype of every sample for which the spec does not hold "
        "(for all alternate alleles) to missing. Evaluated on FORMAT fields. "
        "May be given multiple times. Example: `-g 'GQ > 20'`",
    )
    parser.add_argument(
        "--or",
        dest="use_or",
        default=False,
        action="store_true",
        help="Keep records passing any of the info filters "
        "instead of all of them.",
    )
    parser.add_argument(
        "--invert",
        "-v",
        default=False,
        action="store_true",
        help="Keep the records that fail the info filters.",
    )
    parser.add_argument(
        "--tag-pass",
        "-t",
        metavar="TAG",
        default=None,
        help="Keep all records and add TAG to the FILTER column "
        "of those passing the info filters.",
    )
    parser.add_argument(
        "--tag-fail",
        "-F",
        metavar="TAG",
        default=None,
        help="Keep all records and add TAG to the FILTER column "
        "of those failing the info filters.",
    )
    parser.add_argument(
        "--output",
        "-o",
        default="-",
        help="Output file, if not specified, output is written to STDOUT.",
    )
    parser.add_argument(
        "--statistics",
        "-s",
        metavar="FILE",
        default=None,
        help="Write pass/fail counts to this file (YAML).",
    )
    add_common_arguments(parser)


def compile_filters(
    specs: list[str], kind: FilterKind, registry: FieldRegistry
) -> list[VariantFilter]:
    return [VariantFilter.from_registry(spec, kind, registry) for spec in specs]


def test_record(
    variant: Variant,
    info_filters: list[VariantFilter],
    use_or: bool = False,
) -> bool:
    if not info_filters:
        return True
    verdicts = (f.passes(variant) for f in info_filters)
    return any(verdicts) if use_or else all(verdicts)


def scrub_genotypes(
    idx: int,
    variant: Variant,
    genotype_filters: list[VariantFilter],
    counter: defaultdict[str, int],
):
    for genotype_filter in genotype_filters:
        try:
            removed = genotype_filter.remove_filtered_genotypes(variant)
        except VarruleError as e:
            print(
                f"Warning: could not apply genotype filter '{genotype_filter}' "
                f"to record {idx}, genotypes left as they are:\n{e}",
                file=sys.stderr,
            )
            counter["genotype_errors"] += 1
            continue
        counter["removed_genotypes"] += len(removed)


def filter_vcf(
    lines: Iterable[str],
    registry: FieldRegistry,
    info_filters: list[VariantFilter],
    genotype_filters: list[VariantFilter] | None = None,
    use_or: bool = False,
    invert: bool = False,
    tag_pass: str | None = None,
    tag_fail: str | None = None,
    counter: defaultdict[str, int] | None = None,
) -> Iterator[Variant]:
    if genotype_filters is None:
        genotype_filters = []
    if counter is None:
        counter = defaultdict(int)
    tagging = bool(tag_pass or tag_fail)

    for idx, line in enumerate(lines):
        try:
            variant = Variant.from_line(registry, line)
        except VarruleError as e:
            print(f"Warning: skipping malformed record {idx}:\n{e}", file=sys.stderr)
            counter["errors"] += 1
            continue

        try:
            keep = test_record(variant, info_filters, use_or) != invert
        except VarruleError as e:
            # a record that cannot be evaluated never passes, even when inverting
            print(
                f"Warning: could not evaluate record {idx}, "
                f"treating it as failing:\n{e}",
                file=sys.stderr,
            )
            counter["errors"] += 1
            keep = False
        counter["pass" if keep else "fail"] += 1

        if not (keep or tagging):
            continue
        scrub_genotypes(idx, variant, genotype_filters, counter)
        if keep and tag_pass:
            variant.add_filter(tag_pass)
        if not keep and tag_fail:
            variant.add_filter(tag_fail)
        yield variant


def check_tag(tag: str):
    if re.search(r"^0$|[\s;]", tag):
        raise FilterTagNameInvalidError(tag)


@handle_varrule_error
def execute(args) -> None:
    overwrite_number = {
        "INFO": dict(args.overwrite_number_info),
        "FORMAT": dict(args.overwrite_number_format),
    }
    if not args.info_filter and not args.genotype_filter:
        raise NoFilterGivenError()

    with create_reader(
        args.vcf,
        backend=args.backend,
        overwrite_number=overwrite_number,
    ) as reader:
        header = reader.header
        registry = header.registry()
        info_filters = compile_filters(args.info_filter, FilterKind.RECORD, registry)
        genotype_filters = compile_filters(
            args.genotype_filter, FilterKind.SAMPLE, registry
        )

        combined = (" | " if args.use_or else " & ").join(
            f"( {f} )" for f in info_filters
        )
        for tag, verdict in ((args.tag_pass, "pass"), (args.tag_fail, "fail")):
            if tag is None:
                continue
            check_tag(tag)
            if tag not in header.filters:
                header.add_filter(tag, f"Records that {verdict}: {combined}")

        header.add_generic("varruleVersion", __version__)
        header.add_generic(
            "varruleCmd",
            "varrule "
            + " ".join(normalize(arg) if " " in arg else arg for arg in sys.argv[1:]),
        )

        counter: defaultdict[str, int] = defaultdict(int)
        records = filter_vcf(
            reader,
            registry,
            info_filters,
            genotype_filters,
            use_or=args.use_or,
            invert=args.invert,
            tag_pass=args.tag_pass,
            tag_fail=args.tag_fail,
            counter=counter,
        )

        with create_writer(args.output, header) as writer:
            for record in records:
                writer.write(record)

    if args.statistics is not None:
        with smart_open(args.statistics, "w") as out:
            yaml.dump(dict(counter), out)
