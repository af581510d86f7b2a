"""
Base composition of a single alignment column.

`SiteComposition` tallies the symbols observed at one position across a set of
sequences. Gaps and the ambiguity symbols N and X get their own buckets so
that missing data is never silently dropped.
"""

import enum
import logging
from typing import Iterable, Optional

import numpy as np

logger = logging.getLogger(__name__)

# Bucket order: A, C, G, T, gap, N, X
SYMBOLS = "ACGT-NX"
_INDEX = {s: i for i, s in enumerate(SYMBOLS)}
_GAP, _N, _X = 4, 5, 6


class SiteType(enum.IntFlag):
    """Relation between a population and an outgroup at one site."""

    INVALID = 0
    MONOMORPHIC = 0x1
    POLYMORPHIC_FIRST = 0x10
    POLYMORPHIC_SECOND = 0x100
    DIVERGENT = 0x1000


class SiteComposition:
    """Counts of A, C, G, T, gaps, N and X at one alignment column."""

    def __init__(self, bases: Optional[Iterable[str]] = None):
        self._counts = np.zeros(len(SYMBOLS), dtype=np.int64)
        if bases is not None:
            for base in bases:
                self.add_base(base)

    def __repr__(self) -> str:
        tally = ", ".join(
            f"{s}={int(n)}" for s, n in zip(SYMBOLS, self._counts) if n
        )
        return f"SiteComposition({tally})"

    def add_base(self, base: str) -> bool:
        """Count ``base``; returns False for symbols outside ACGT-NX."""
        idx = _INDEX.get(base.upper())
        if idx is None:
            return False
        self._counts[idx] += 1
        return True

    # --- Counts ---

    @property
    def base_counts(self) -> np.ndarray:
        """Counts of A, C, G and T."""
        return self._counts[:4].copy()

    def base_count(self, base: str) -> int:
        """Count for one symbol of ACGT-NX, -1 for anything else."""
        idx = _INDEX.get(base.upper())
        return int(self._counts[idx]) if idx is not None else -1

    @property
    def valid_bases_count(self) -> int:
        return int(self._counts[:4].sum())

    @property
    def total_bases_count(self) -> int:
        """Valid bases plus N and X; gaps are not bases."""
        return self.valid_bases_count + int(self._counts[_N] + self._counts[_X])

    @property
    def gaps_count(self) -> int:
        return int(self._counts[_GAP])

    @property
    def number_of_distinct_bases(self) -> int:
        return int(np.count_nonzero(self._counts[:4]))

    @property
    def number_of_polymorphisms(self) -> int:
        """Segregating changes at the site: distinct bases minus one."""
        return max(self.number_of_distinct_bases - 1, 0)

    def base_frequencies(
        self, use_all: bool = False, sample_size: Optional[int] = None
    ) -> Optional[np.ndarray]:
        """
        Relative base frequencies.

        Parameters
        ----------
        use_all : bool
            Also report N and X and divide by the total base count. Otherwise
            only A, C, G, T over the valid base count are returned.
        sample_size : int, optional
            Divide by this constant population size instead of the observed
            count.

        Returns
        -------
        numpy.ndarray or None
            Frequencies ordered A, C, G, T (, N, X); None when the
            denominator is zero.
        """
        if use_all:
            counts = self._counts[[0, 1, 2, 3, _N, _X]]
            total = self.total_bases_count
        else:
            counts = self._counts[:4]
            total = self.valid_bases_count
        if sample_size is not None:
            total = sample_size
        if total <= 0:
            return None
        return counts / float(total)

    def number_of_singletons(self, cutoff: float = 1.0) -> int:
        """
        Bases seen exactly once, or for ``cutoff < 0.5`` bases whose frequency
        is below ``cutoff``. Sites with fewer than two valid bases have none.
        """
        total = self.valid_bases_count
        if total < 2:
            return 0
        counts = self._counts[:4]
        if cutoff >= 0.5:
            return int(np.count_nonzero(counts == 1))
        return int(np.count_nonzero((counts > 0) & (counts / total < cutoff)))

    @property
    def number_of_transitions(self) -> float:
        """
        Expected transitions among the site's polymorphisms: with two bases 1
        if they are A/G or C/T, with three bases 1, with four bases 1.5.
        """
        present = self._counts[:4] > 0
        distinct = int(present.sum())
        if distinct == 2:
            a, c, g, t = present
            return 1.0 if (a and g) or (c and t) else 0.0
        if distinct == 3:
            return 1.0
        if distinct == 4:
            return 1.5
        return 0.0

    @property
    def number_of_transversions(self) -> float:
        return self.number_of_polymorphisms - self.number_of_transitions

    # --- Two-composition operations ---

    @staticmethod
    def site_type(
        first: Optional["SiteComposition"], second: Optional["SiteComposition"]
    ) -> SiteType:
        """
        Classify a site of a population (``first``) against an outgroup.

        The site is DIVERGENT when the two sides share no base. A base shared
        by both sides makes the site non-divergent even when one side carries
        extra bases; those only set the POLYMORPHIC flag of that side.
        """
        if (
            first is None
            or second is None
            or first.valid_bases_count == 0
            or second.valid_bases_count == 0
        ):
            return SiteType.INVALID
        result = SiteType.INVALID
        if first.number_of_polymorphisms > 0:
            result |= SiteType.POLYMORPHIC_FIRST
        if second.number_of_polymorphisms > 0:
            result |= SiteType.POLYMORPHIC_SECOND
        if int(np.dot(first._counts[:4], second._counts[:4])) == 0:
            result |= SiteType.DIVERGENT
        return result or SiteType.MONOMORPHIC

    @staticmethod
    def merge(first: "SiteComposition", second: "SiteComposition") -> "SiteComposition":
        merged = SiteComposition()
        merged._counts = first._counts + second._counts
        return merged
