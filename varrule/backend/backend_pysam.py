from collections import OrderedDict, defaultdict
from pathlib import Path
from typing import Dict

import pysam
from pysam.libcbcf import VariantHeader

from .base import VCFHeader, VCFReader, overwrite_numbers


class PysamReader(VCFReader):
    __slots__ = (
        "filename",
        "_iter_file",
        "_header",
    )

    def __init__(
        self,
        filename: str | Path,
        overwrite_number: Dict[str, Dict[str, str]] | None = None,
    ):
        self.filename = filename
        self._file = pysam.VariantFile(str(self.filename))
        self._header = PysamHeader(self._file.header, overwrite_number)
        self._iter_file = None

    def __iter__(self):
        self._iter_file = self._file.__iter__()
        return self

    def __next__(self) -> str:
        if self._iter_file is None:
            self._iter_file = self._file.__iter__()
        return str(self._iter_file.__next__()).rstrip("\n")


class PysamHeader(VCFHeader):
    __slots__ = (
        "_raw_header",
        "_metadata_category",
        "_metadata_generic",
        "_samples",
    )

    def __init__(self, header: VariantHeader, overwrite_number=None):
        self._raw_header = header
        self._metadata_category: defaultdict[str, OrderedDict] = defaultdict(
            OrderedDict
        )
        self._metadata_generic = dict()
        self._samples = list(self._raw_header.samples)

        for r in self._raw_header.records:
            if r.type == "GENERIC":
                self._metadata_generic[r.key] = r.value
                continue
            d = dict(r)
            if "ID" in d:
                self._metadata_category[r.type][d["ID"]] = d

        overwrite_numbers(self._metadata_category, overwrite_number)

    def contains_generic(self, key: str) -> bool:
        return key in self._metadata_generic

    def get_generic(self, key: str) -> str:
        return self._metadata_generic[key]

    @property
    def infos(self):
        return self._metadata_category["INFO"]

    @property
    def formats(self):
        return self._metadata_category["FORMAT"]

    @property
    def filters(self):
        return self._metadata_category["FILTER"]

    @property
    def samples(self):
        return self._samples

    def add_generic(self, key: str, value: str):
        self._metadata_generic[key] = value
        self._raw_header.add_meta(key, value)

    def add_filter(self, id: str, description: str):
        self._metadata_category["FILTER"][id] = {"ID": id, "Description": description}
        self._raw_header.add_meta(
            key="FILTER",
            items=[("ID", id), ("Description", description)],
        )

    def __str__(self) -> str:
        return str(self._raw_header)
