import argparse

from . import __version__
from .common import HumanReadableDefaultsFormatter
from .modules import filter


def construct_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="varrule",
        description="Filter VCF records and genotypes "
        "with small arithmetic/boolean rule expressions.",
        formatter_class=HumanReadableDefaultsFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    subparsers = parser.add_subparsers(
        dest="command",
        description="valid subcommands",
        required=True,
    )
    filter.add_subcommand(subparsers)
    return parser


def main():
    parser = construct_parser()
    args = parser.parse_args()
    if args.command == "filter":
        filter.execute(args)
    else:
        raise ValueError(f"Unknown subcommand {args.command}")
