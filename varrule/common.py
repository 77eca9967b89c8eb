import argparse
import contextlib
import shlex
import sys

from .backend.backend_cyvcf2 import Cyvcf2Reader
from .backend.backend_pysam import PysamReader
from .backend.base import Backend, VCFHeader, VCFReader, VCFWriter


class HumanReadableDefaultsFormatter(argparse.HelpFormatter):
    """Append defaults to the help text, spelling out whitespace defaults."""

    def _get_help_string(self, action):
        help = action.help or ""
        if (
            "%(default)" in help
            or action.default is argparse.SUPPRESS
            or action.default in (None, False, {}, [])
            or not (action.option_strings or action.nargs in ("?", "*"))
        ):
            return help
        if isinstance(action.default, str):
            default = repr(action.default)
        else:
            default = "%(default)s"
        return f"{help} (default: {default})"


def add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--overwrite-number-info",
        nargs=1,
        action=AppendKeyValuePair,
        metavar="FIELD=NUMBER",
        default={},
        help="Overwrite the number specification for INFO fields "
        "given in the VCF header. "
        "Example: `--overwrite-number-info AF=.`",
    )
    parser.add_argument(
        "--overwrite-number-format",
        nargs=1,
        action=AppendKeyValuePair,
        metavar="FIELD=NUMBER",
        default={},
        help="Overwrite the number specification for FORMAT fields "
        "given in the VCF header. "
        "Example: `--overwrite-number-format AD=R`",
    )
    parser.add_argument(
        "--backend",
        "-b",
        default=Backend.pysam,
        type=Backend.from_string,
        choices=[Backend.pysam, Backend.cyvcf2],
        help="Set the backend library used to read the input.",
    )


def swap_quotes(s: str) -> str:
    return s.replace('"', '\\"').replace("'", '"').replace('\\"', "'")


def single_outer(s: str) -> bool:
    if '"' in s and "'" in s:
        return s.index('"') > s.index("'")
    elif '"' in s:
        return True
    elif "'" in s:
        return False
    return True


def normalize(s: str) -> str:
    return shlex.quote(swap_quotes(s) if not single_outer(s) else s)


class AppendKeyValuePair(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        assert len(values) == 1
        if not hasattr(namespace, self.dest) or getattr(namespace, self.dest) is None:
            setattr(namespace, self.dest, {})
        value = values[0].strip()
        if "=" not in value:
            parser.error(f"{option_string} expects KEY=VALUE, got '{value}'")
        key, value = value.split("=", 1)
        # copy, so that the shared default dict is never mutated
        pairs = dict(getattr(namespace, self.dest))
        pairs[key.strip()] = value.strip()
        setattr(namespace, self.dest, pairs)


def create_reader(
    filename: str,
    backend: Backend = Backend.pysam,
    overwrite_number=None,
) -> VCFReader:
    if backend == Backend.pysam:
        return PysamReader(filename, overwrite_number)
    elif backend == Backend.cyvcf2:
        return Cyvcf2Reader(filename, overwrite_number)
    else:
        raise ValueError(f"{backend} is not a known backend.")


def create_writer(filename: str, header: VCFHeader) -> VCFWriter:
    return VCFWriter(filename, header)


@contextlib.contextmanager
def smart_open(filename=None, *args, **kwargs):
    fh = open(filename, *args, **kwargs) if filename and filename != "-" else sys.stdout

    try:
        yield fh
    finally:
        if fh is not sys.stdout:
            fh.close()
