import sys
from abc import abstractmethod, abstractproperty
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from ..fields import FieldRegistry


class Backend(Enum):
    pysam = 0
    cyvcf2 = 1

    def __str__(self):
        return self.name.lower()

    def __repr__(self):
        return str(self)

    @staticmethod
    def from_string(s):
        try:
            return Backend[s]
        except KeyError:
            return s


class VCFHeader:
    """Header metadata, with INFO/FORMAT/FILTER lines as dicts keyed by ID."""

    @abstractproperty
    def samples(self) -> List[str]:
        raise NotImplementedError

    @abstractproperty
    def filters(self) -> Dict[str, Dict[str, str]]:
        raise NotImplementedError

    @abstractproperty
    def infos(self) -> Dict[str, Dict[str, str]]:
        raise NotImplementedError

    @abstractproperty
    def formats(self) -> Dict[str, Dict[str, str]]:
        raise NotImplementedError

    @abstractmethod
    def add_generic(self, key: str, value: str):
        raise NotImplementedError

    @abstractmethod
    def add_filter(self, id: str, description: str):
        raise NotImplementedError

    @abstractmethod
    def contains_generic(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_generic(self, key: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def __str__(self) -> str:
        """The full header text, ending with the #CHROM line."""
        raise NotImplementedError

    def registry(self) -> FieldRegistry:
        return FieldRegistry.from_header(self)


def overwrite_numbers(
    categories: Dict[str, Dict[str, Dict[str, str]]],
    overwrite_number: Optional[Dict[str, Dict[str, str]]],
):
    for category, items in (overwrite_number or {}).items():
        for key, value in items.items():
            if key in categories.get(category, {}):
                categories[category][key]["Number"] = value


class VCFReader:
    """Iterates the records of a VCF file as tab-delimited text lines."""

    __slots__ = ("_file",)

    @abstractmethod
    def __init__(self, filename: str):
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self._file.close()

    def __iter__(self):
        return self

    @abstractmethod
    def __next__(self) -> str:
        raise NotImplementedError

    @property
    def header(self) -> VCFHeader:
        return self._header


class VCFWriter:
    """Writes a header and rendered records as plain-text VCF."""

    __slots__ = ("filename", "_file", "_owned")

    def __init__(self, filename: str | Path, header: VCFHeader):
        self.filename = filename
        self._owned = bool(filename) and str(filename) != "-"
        self._file = open(filename, "w") if self._owned else sys.stdout
        self._file.write(str(header).rstrip("\n") + "\n")

    def write(self, record):
        self._file.write(f"{record}\n")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._owned:
            self._file.close()
        else:
            self._file.flush()
