"""
Sample-size strata of an alignment.

Missing data makes the number of usable sequences vary from column to column.
A block collects the columns that share one sample size so that estimators
depending on ``n`` (theta, Tajima's D) are computed per stratum and then
pooled.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from genalyzer.codons.tables import CodonTable
from genalyzer.statistics import basic
from genalyzer.statistics.codon_composition import CodonComposition
from genalyzer.statistics.composition import SiteComposition

logger = logging.getLogger(__name__)


class SitesBlock:
    """Non-coding or single-position sites observed in exactly ``n_strains``."""

    def __init__(
        self,
        n_strains: int,
        jc_pi: bool = False,
        jc_theta: bool = False,
        cutoff: float = 1.0,
    ):
        self.strains_count = n_strains
        self.jc_pi = jc_pi
        self.jc_theta = jc_theta
        self.cutoff = cutoff
        self._pi = 0.0
        self.sites_count = 0.0
        self.polymorphisms_count = 0
        self.singletons_count = 0
        self.transitions_count = 0.0

    def __repr__(self) -> str:
        return (
            f"SitesBlock(n={self.strains_count}, sites={self.sites_count}, "
            f"polymorphisms={self.polymorphisms_count})"
        )

    def add_site(self, composition: SiteComposition) -> bool:
        """Add a site; rejected unless its valid base count equals the block's n."""
        if composition.valid_bases_count != self.strains_count:
            return False
        self._pi += basic.calculate_pi(composition)
        self.polymorphisms_count += composition.number_of_polymorphisms
        self.singletons_count += composition.number_of_singletons(self.cutoff)
        self.transitions_count += composition.number_of_transitions
        self.sites_count += 1
        return True

    @property
    def pi(self) -> float:
        value = self._pi / self.sites_count if self.sites_count > 0 else 0.0
        return basic.jukes_cantor(value) if self.jc_pi else value

    @property
    def theta(self) -> float:
        value = basic.calculate_theta(
            self.polymorphisms_count, self.sites_count, self.strains_count
        )
        return basic.jukes_cantor(value) if self.jc_theta else value

    # --- Pooled over strata ---

    @staticmethod
    def aggregate_pi(blocks: Sequence["SitesBlock"], jc: bool = False) -> float:
        sites = SitesBlock.total_sites(blocks)
        if sites == 0:
            return 0.0
        value = sum(b._pi for b in blocks) / sites
        return basic.jukes_cantor(value) if jc else value

    @staticmethod
    def aggregate_theta(blocks: Sequence["SitesBlock"], jc: bool = False) -> float:
        """Site-weighted mean of the per-stratum thetas."""
        sites = SitesBlock.total_sites(blocks)
        if sites == 0:
            return 0.0
        total = 0.0
        for block in blocks:
            value = basic.calculate_theta(
                block.polymorphisms_count, block.sites_count, block.strains_count
            )
            if jc:
                value = basic.jukes_cantor(value)
            total += value * block.sites_count
        return total / sites

    @staticmethod
    def total_sites(blocks: Sequence["SitesBlock"]) -> float:
        return float(sum(b.sites_count for b in blocks))

    @staticmethod
    def total_polymorphisms(blocks: Sequence["SitesBlock"]) -> int:
        return sum(b.polymorphisms_count for b in blocks)

    @staticmethod
    def total_singletons(blocks: Sequence["SitesBlock"]) -> int:
        return sum(b.singletons_count for b in blocks)

    @staticmethod
    def total_transitions(blocks: Sequence["SitesBlock"]) -> float:
        return float(sum(b.transitions_count for b in blocks))


def make_sites_blocks(
    n_max: int, jc_pi: bool = False, jc_theta: bool = False, cutoff: float = 1.0
) -> List[SitesBlock]:
    """One block per sample size ``1..n_max``; index ``n - 1`` holds size ``n``."""
    return [SitesBlock(n, jc_pi, jc_theta, cutoff) for n in range(1, n_max + 1)]


class CodonsBlock:
    """
    Codon columns observed in exactly ``n_strains`` valid codons.

    Every quantity is a ``(synonymous, nonsynonymous)`` pair.
    """

    def __init__(
        self,
        n_strains: int,
        table: CodonTable,
        jc_pi: bool = False,
        jc_theta: bool = False,
        cutoff: float = 1.0,
        use_terminal: bool = False,
    ):
        self.strains_count = n_strains
        self.table = table
        self.jc_pi = jc_pi
        self.jc_theta = jc_theta
        self.cutoff = cutoff
        self.use_terminal = use_terminal
        self._pi = np.zeros(2)
        self._sites = np.zeros(2)
        self._polymorphisms = np.zeros(2, dtype=int)
        self._singletons = np.zeros(2, dtype=int)
        self._transitions = np.zeros(2, dtype=int)
        self._transversions = np.zeros(2, dtype=int)

    def __repr__(self) -> str:
        return (
            f"CodonsBlock(n={self.strains_count}, "
            f"polymorphisms={self.polymorphisms_count})"
        )

    def add_codon(self, composition: CodonComposition) -> bool:
        if composition.valid_codons_count != self.strains_count:
            return False
        sites = np.array(composition.site_counts())
        pis = np.array(
            basic.calculate_codon_pi(composition, self.table, self.use_terminal)
        )
        self._pi += pis * sites
        self._sites += sites
        self._polymorphisms += composition.polymorphisms()
        self._singletons += composition.singletons(self.cutoff)
        syn_ts, syn_tv, non_ts, non_tv = composition.substitutions_count()
        self._transitions += (syn_ts, non_ts)
        self._transversions += (syn_tv, non_tv)
        return True

    @property
    def sites_count(self) -> Tuple[float, float]:
        return float(self._sites[0]), float(self._sites[1])

    @property
    def polymorphisms_count(self) -> Tuple[int, int]:
        return int(self._polymorphisms[0]), int(self._polymorphisms[1])

    @property
    def singletons_count(self) -> Tuple[int, int]:
        return int(self._singletons[0]), int(self._singletons[1])

    @property
    def transitions_count(self) -> Tuple[int, int]:
        return int(self._transitions[0]), int(self._transitions[1])

    @property
    def transversions_count(self) -> Tuple[int, int]:
        return int(self._transversions[0]), int(self._transversions[1])

    @property
    def pi(self) -> Tuple[float, float]:
        values = [p / s if s > 0 else 0.0 for p, s in zip(self._pi, self._sites)]
        if self.jc_pi:
            values = [basic.jukes_cantor(v) for v in values]
        return float(values[0]), float(values[1])

    @property
    def theta(self) -> Tuple[float, float]:
        values = [
            basic.calculate_theta(int(p), s, self.strains_count)
            for p, s in zip(self._polymorphisms, self._sites)
        ]
        if self.jc_theta:
            values = [basic.jukes_cantor(v) for v in values]
        return float(values[0]), float(values[1])

    # --- Pooled over strata ---

    @staticmethod
    def aggregate_pi(
        blocks: Sequence["CodonsBlock"], jc: bool = False
    ) -> Tuple[float, float]:
        pi = np.zeros(2)
        sites = np.zeros(2)
        for block in blocks:
            pi += block._pi
            sites += block._sites
        values = [p / s if s > 0 else 0.0 for p, s in zip(pi, sites)]
        if jc:
            values = [basic.jukes_cantor(v) for v in values]
        return float(values[0]), float(values[1])

    @staticmethod
    def aggregate_theta(
        blocks: Sequence["CodonsBlock"], jc: bool = False
    ) -> Tuple[float, float]:
        """Per-stratum thetas averaged with polymorphism counts as weights."""
        totals = np.zeros(2)
        weights = np.zeros(2)
        for block in blocks:
            for i in range(2):
                n_p = int(block._polymorphisms[i])
                value = basic.calculate_theta(
                    n_p, block._sites[i], block.strains_count
                )
                if jc:
                    value = basic.jukes_cantor(value)
                totals[i] += value * n_p
                weights[i] += n_p
        values = [t / w if w > 0 else 0.0 for t, w in zip(totals, weights)]
        return float(values[0]), float(values[1])

    @staticmethod
    def total_sites(blocks: Sequence["CodonsBlock"]) -> Tuple[float, float]:
        return _sum_pairs(b.sites_count for b in blocks)

    @staticmethod
    def total_polymorphisms(blocks: Sequence["CodonsBlock"]) -> Tuple[int, int]:
        return _sum_pairs(b.polymorphisms_count for b in blocks)

    @staticmethod
    def total_singletons(blocks: Sequence["CodonsBlock"]) -> Tuple[int, int]:
        return _sum_pairs(b.singletons_count for b in blocks)

    @staticmethod
    def total_transitions(blocks: Sequence["CodonsBlock"]) -> Tuple[int, int]:
        return _sum_pairs(b.transitions_count for b in blocks)

    @staticmethod
    def total_transversions(blocks: Sequence["CodonsBlock"]) -> Tuple[int, int]:
        return _sum_pairs(b.transversions_count for b in blocks)


def make_codons_blocks(
    n_max: int,
    table: CodonTable,
    jc_pi: bool = False,
    jc_theta: bool = False,
    cutoff: float = 1.0,
    use_terminal: bool = False,
) -> List[CodonsBlock]:
    return [
        CodonsBlock(n, table, jc_pi, jc_theta, cutoff, use_terminal)
        for n in range(1, n_max + 1)
    ]


def _sum_pairs(pairs):
    syn = 0
    non = 0
    for s, n in pairs:
        syn += s
        non += n
    return syn, non
