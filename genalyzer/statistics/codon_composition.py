"""Codon composition of one coding triplet column."""

import logging
import re
from typing import List, Optional, Sequence, Tuple

import numpy as np

from genalyzer.codons.graph import Codon, get_codon
from genalyzer.codons.path import Path, find_best_path
from genalyzer.codons.tables import BASES, CodonTable
from genalyzer.statistics.composition import SiteComposition, SiteType

logger = logging.getLogger(__name__)

_CODON_RE = re.compile(r"^[ACGTNX-]{3}$")


class CodonComposition:
    """
    The codons observed at one triplet column of a coding alignment.

    Only codons over A, C, G, T enter the evolutionary path and the site
    counts; codons with gaps, N or X are tallied separately. The evolutionary
    path is computed on first use and discarded whenever a codon is added.
    """

    def __init__(self, table: CodonTable, use_terminal: bool = False):
        self.table = table
        self.use_terminal = use_terminal
        self._codons: List[Codon] = []
        self._sites = [SiteComposition() for _ in range(3)]
        self._gaps = 0
        self._n = 0
        self._x = 0
        self._total = 0
        self._path: Optional[Path] = None

    def __repr__(self) -> str:
        codons = ",".join(c.sequence for c in self._codons)
        return f"CodonComposition([{codons}], gaps={self._gaps})"

    def add_codon(self, sequence: Optional[str]) -> bool:
        """Add one observed codon; False for anything but ``[ACGTNX-]{3}``."""
        if sequence is None:
            return False
        sequence = sequence.upper()
        if not _CODON_RE.match(sequence):
            return False
        self._total += 1
        for i, base in enumerate(sequence):
            self._sites[i].add_base(base)
        codon = get_codon(sequence)
        if codon is not None:
            self._path = None
            self._codons.append(codon)
        elif "-" in sequence:
            self._gaps += 1
        else:
            if "N" in sequence:
                self._n += 1
            if "X" in sequence:
                self._x += 1
        return True

    # --- Counts ---

    def site_composition(self, site: int) -> Optional[SiteComposition]:
        if 0 <= site <= 2:
            return self._sites[site]
        return None

    @property
    def valid_codons(self) -> Tuple[Codon, ...]:
        return tuple(self._codons)

    @property
    def valid_codons_count(self) -> int:
        return len(self._codons)

    @property
    def total_codons_count(self) -> int:
        return self._total

    @property
    def gaps_count(self) -> int:
        return self._gaps

    @property
    def n_count(self) -> int:
        return self._n

    @property
    def x_count(self) -> int:
        return self._x

    def site_counts(self) -> Optional[Tuple[float, float]]:
        """Mean Nei synonymous and nonsynonymous sites over the valid codons."""
        if not self._codons:
            return None
        counts = np.array(
            [c.site_counts(self.table, self.use_terminal) for c in self._codons]
        )
        syn, nonsyn = counts.mean(axis=0)
        return float(syn), float(nonsyn)

    def base_frequencies(self) -> Optional[np.ndarray]:
        """
        Synonymous / nonsynonymous base frequency vector.

        Element 0 is the mean number of synonymous sites, elements 1-4 the
        synonymous share contributed by positions carrying A, C, G, T;
        element 5 is the mean number of nonsynonymous sites and elements 6-9
        the nonsynonymous shares by base.
        """
        if not self._codons:
            return None
        res = np.zeros(10)
        for codon in self._codons:
            syn, nonsyn = codon.site_counts(self.table, self.use_terminal)
            res[0] += syn
            res[5] += nonsyn
            seq = codon.sequence
            for pos, ref in enumerate(seq):
                n_syn = 0
                n_total = 0
                for base in BASES:
                    if base == ref:
                        continue
                    mutant = seq[:pos] + base + seq[pos + 1 :]
                    if not self.use_terminal and self.table.is_terminal(mutant):
                        continue
                    n_total += 1
                    if self.table.are_synonymous(seq, mutant):
                        n_syn += 1
                if n_total == 0:
                    continue
                fs = n_syn / n_total
                idx = BASES.index(ref)
                res[1 + idx] += fs
                res[6 + idx] += 1.0 - fs
        return res / len(self._codons)

    # --- Path based statistics ---

    def evolutionary_path(self) -> Path:
        if self._path is None:
            self._path = find_best_path(self._codons, self.table, self.use_terminal)
            if self._path is None:
                self._path = Path(self.table)
        return self._path

    def polymorphisms(self) -> Tuple[int, int]:
        """Synonymous and nonsynonymous changes along the evolutionary path."""
        return self.evolutionary_path().polymorphisms_count()

    def substitutions_count(self) -> Tuple[int, int, int, int]:
        return self.evolutionary_path().substitutions_count()

    def singleton_codons(self, cutoff: float = 1.0) -> List[Codon]:
        """
        Codons carrying a singleton base at any position.

        For ``cutoff >= 0.5`` a singleton base occurs exactly once at its
        position; below that, any base with frequency up to ``cutoff``.
        """
        if len(self._codons) < 2:
            return []
        n = len(self._codons)
        result: List[Codon] = []
        for pos in range(3):
            column = SiteComposition(c.sequence[pos] for c in self._codons)
            for base in BASES:
                count = column.base_count(base)
                if cutoff >= 0.5:
                    is_singleton = count == 1
                else:
                    is_singleton = count > 0 and count / n <= cutoff
                if not is_singleton:
                    continue
                for codon in self._codons:
                    if codon.sequence[pos] == base and codon not in result:
                        result.append(codon)
        return result

    def singletons(self, cutoff: float = 1.0) -> Tuple[int, int]:
        """Singleton codons split by the effect of their step on the path."""
        codons = self.singleton_codons(cutoff)
        if not codons:
            return 0, 0
        path = self.evolutionary_path()
        syn = sum(1 for c in codons if path.is_substitution_synonymous(c))
        return syn, len(codons) - syn

    # --- Two-composition operations ---

    @staticmethod
    def site_type(
        first: Optional["CodonComposition"], second: Optional["CodonComposition"]
    ) -> SiteType:
        """
        Codon-level analogue of `SiteComposition.site_type`.

        DIVERGENT when no codon on the first evolutionary path encodes the
        same amino acid as a codon on the second one, so a synonymous fixed
        difference does not make a site divergent. Use `share_codons` to test
        for identical codons instead.
        """
        if (
            first is None
            or second is None
            or first.valid_codons_count == 0
            or second.valid_codons_count == 0
        ):
            return SiteType.INVALID
        result = SiteType.INVALID
        if any(first.polymorphisms()):
            result |= SiteType.POLYMORPHIC_FIRST
        if any(second.polymorphisms()):
            result |= SiteType.POLYMORPHIC_SECOND
        table = first.table
        amino_acids = {
            table.amino_acid(c.sequence) for c in second.evolutionary_path().codons
        }
        if not any(
            table.amino_acid(c.sequence) in amino_acids
            for c in first.evolutionary_path().codons
        ):
            result |= SiteType.DIVERGENT
        return result or SiteType.MONOMORPHIC

    @staticmethod
    def share_codons(first: "CodonComposition", second: "CodonComposition") -> bool:
        """
        Whether the two evolutionary paths have a codon in common.

        Empty paths share nothing.
        """
        other = set(second.evolutionary_path().codons)
        return any(c in other for c in first.evolutionary_path().codons)

    @staticmethod
    def merge(
        first: "CodonComposition", second: "CodonComposition"
    ) -> Optional["CodonComposition"]:
        """Pool two compositions; None when table or terminal flag differ."""
        if first.table is not second.table or first.use_terminal != second.use_terminal:
            return None
        merged = CodonComposition(first.table, first.use_terminal)
        merged._codons = first._codons + second._codons
        merged._sites = [
            SiteComposition.merge(a, b) for a, b in zip(first._sites, second._sites)
        ]
        merged._gaps = first._gaps + second._gaps
        merged._n = first._n + second._n
        merged._x = first._x + second._x
        merged._total = first._total + second._total
        return merged


def codon_composition_for_column(
    sequences: Sequence[str],
    pos: int,
    table: CodonTable,
    use_terminal: bool = False,
    exclude_terminal: bool = False,
) -> Optional[CodonComposition]:
    """
    Composition of the codon starting at ``pos`` in every sequence.

    Returns None when the column has to be skipped: no sequences, a gap in
    any codon, or, with ``exclude_terminal``, a terminal codon in the last
    complete codon of the sequences.
    """
    if not sequences:
        return None
    composition = CodonComposition(table, use_terminal)
    last_codon = pos == len(sequences[0]) - 3
    for seq in sequences:
        codon = seq[pos : pos + 3]
        if "-" in codon:
            return None
        if exclude_terminal and last_codon and table.is_terminal(codon):
            return None
        composition.add_codon(codon)
    return composition
