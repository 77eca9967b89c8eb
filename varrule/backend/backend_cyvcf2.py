from collections import OrderedDict, defaultdict
from pathlib import Path
from typing import Dict

from cyvcf2.cyvcf2 import VCF  # type: ignore

from .base import VCFHeader, VCFReader, overwrite_numbers


class Cyvcf2Reader(VCFReader):
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
        self._file = VCF(str(self.filename))
        self._header = Cyvcf2Header(self, overwrite_number)
        self._iter_file = None

    def __iter__(self):
        self._iter_file = self._file.__iter__()
        return self

    def __next__(self) -> str:
        if self._iter_file is None:
            self._iter_file = self._file.__iter__()
        return str(self._iter_file.__next__()).rstrip("\n")


class Cyvcf2Header(VCFHeader):
    __slots__ = ("_reader", "_data_category", "_metadata_generic")

    def __init__(
        self,
        reader: Cyvcf2Reader,
        overwrite_number: Dict[str, Dict[str, str]] | None = None,
    ):
        self._reader = reader
        self._data_category: defaultdict[str, OrderedDict] = defaultdict(
            OrderedDict
        )
        self._metadata_generic = dict()

        for r in reader._file.header_iter():
            if r.type == "GENERIC":
                continue
            d = r.info()
            if "ID" in d:
                self._data_category[r.type][d["ID"]] = d

        specific_keys = {r.type for r in reader._file.header_iter()} | {"contig"}
        _generic_entries = [
            r.lstrip("#").split("=", 1)
            for r in reader._file.raw_header.split("\n")
            if r.startswith("##") and "=" in r
        ]
        for k, v in _generic_entries:
            if k not in specific_keys:
                self._metadata_generic[k] = v

        overwrite_numbers(self._data_category, overwrite_number)

    def contains_generic(self, key: str) -> bool:
        return key in self._metadata_generic

    def get_generic(self, key: str) -> str:
        return self._metadata_generic[key]

    @property
    def infos(self):
        return self._data_category["INFO"]

    @property
    def formats(self):
        return self._data_category["FORMAT"]

    @property
    def filters(self):
        return self._data_category["FILTER"]

    @property
    def samples(self):
        return list(self._reader._file.samples)

    def add_generic(self, key: str, value: str):
        self._metadata_generic[key] = value
        self._reader._file.add_to_header(f"##{key}={value}")

    def add_filter(self, id: str, description: str):
        self._data_category["FILTER"][id] = {"ID": id, "Description": description}
        self._reader._file.add_filter_to_header({"ID": id, "Description": description})

    def __str__(self) -> str:
        return self._reader._file.raw_header
