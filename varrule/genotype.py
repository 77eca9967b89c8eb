"""
Genotype calls as allele-index multisets.

A call such as ``0/1`` or ``1|.`` is decomposed into a mapping from allele index
to the number of times it occurs; missing alleles (``.``) map to ``NULL_ALLELE``.
"""

import re
from collections import defaultdict
from math import comb

from .errors import MalformedGenotypeError

NULL_ALLELE = -1
MISSING = "."

_SEPARATORS = re.compile(r"[/|]")


def decompose(genotype: str) -> dict[int, int]:
    counts: defaultdict[int, int] = defaultdict(int)
    for allele in _SEPARATORS.split(genotype):
        if allele == MISSING:
            counts[NULL_ALLELE] += 1
        elif allele.isascii() and allele.isdigit():
            counts[int(allele)] += 1
        else:
            raise MalformedGenotypeError(genotype)
    return dict(counts)


def ploidy(genotype: dict[int, int]) -> int:
    return sum(genotype.values())


def is_het(genotype: dict[int, int]) -> bool:
    return len(genotype) > 1


def is_hom(genotype: dict[int, int]) -> bool:
    return len(genotype) == 1


def has_non_ref(genotype: dict[int, int]) -> bool:
    return any(allele not in (0, NULL_ALLELE) for allele in genotype)


def is_hom_ref(genotype: dict[int, int]) -> bool:
    return is_hom(genotype) and 0 in genotype


def is_hom_non_ref(genotype: dict[int, int]) -> bool:
    return is_hom(genotype) and has_non_ref(genotype)


def is_null(genotype: dict[int, int]) -> bool:
    return NULL_ALLELE in genotype


def genotype_ordinal(j: int, k: int) -> int:
    """Position of the unordered genotype j/k in Number=G fields."""
    if j > k:
        j, k = k, j
    return k * (k + 1) // 2 + j


def genotype_count(n_alleles: int, ploidy: int = 2) -> int:
    return comb(n_alleles + ploidy - 1, ploidy)


def null_genotype(genotype: str) -> str:
    # keeps separators (and thus phasing and ploidy) in place
    return re.sub(r"[^/|]+", MISSING, genotype)
