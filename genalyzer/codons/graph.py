"""
The codon graph.

The 64 codons are singletons built once at import. Each codon is connected to
the 9 codons differing from it at exactly one position. Nei-Gojobori site
counts are memoized per (codon, table signature, include-terminal flag)
in a module-level cache, so equally named tables with different assignments
never share entries; writes to the cache are serialized with a lock.
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple

from genalyzer.codons.tables import ALL_CODONS, BASES, CodonTable, is_valid_codon

logger = logging.getLogger(__name__)

NEIGHBORS_COUNT = 9

_SITE_COUNTS_CACHE: Dict[Tuple[str, str, bool], Tuple[float, float]] = {}
_SITE_COUNTS_LOCK = threading.Lock()


class Codon:
    """A node of the codon graph. Use `get_codon` instead of instantiating."""

    __slots__ = ("sequence", "_neighbors")

    def __init__(self, sequence: str):
        self.sequence = sequence
        self._neighbors: Tuple["Codon", ...] = ()

    def __repr__(self) -> str:
        return f"Codon({self.sequence})"

    def __str__(self) -> str:
        return self.sequence

    @property
    def neighbors(self) -> Tuple["Codon", ...]:
        """
        The 9 one-step neighbors, ordered by position (0, 1, 2) and then by
        the substituted base (A, C, G, T).
        """
        return self._neighbors

    def neighbor(self, index: int) -> Optional["Codon"]:
        if 0 <= index < NEIGHBORS_COUNT:
            return self._neighbors[index]
        return None

    def differences(self, other: "Codon") -> int:
        """Hamming distance to ``other``."""
        return sum(a != b for a, b in zip(self.sequence, other.sequence))

    def site_counts(
        self, table: CodonTable, include_terminal: bool = False
    ) -> Tuple[float, float]:
        """
        Nei-Gojobori numbers of synonymous and nonsynonymous sites.

        For every position, the fraction of the alternative bases giving a
        synonymous codon is added to the synonymous count. Substitutions
        producing a terminal codon are left out of the position's denominator
        unless ``include_terminal`` is set.

        Returns
        -------
        tuple of float
            ``(syn_sites, nonsyn_sites)`` with ``syn_sites + nonsyn_sites == 3``.
        """
        key = (self.sequence, table.signature, include_terminal)
        cached = _SITE_COUNTS_CACHE.get(key)
        if cached is not None:
            return cached
        with _SITE_COUNTS_LOCK:
            cached = _SITE_COUNTS_CACHE.get(key)
            if cached is None:
                syn = _synonymous_sites(self.sequence, table, include_terminal)
                cached = (syn, 3.0 - syn)
                _SITE_COUNTS_CACHE[key] = cached
        return cached


def _synonymous_sites(codon: str, table: CodonTable, include_terminal: bool) -> float:
    syn = 0.0
    for pos in range(3):
        matches = 0
        total = 0
        for base in BASES:
            if base == codon[pos]:
                continue
            mutant = codon[:pos] + base + codon[pos + 1 :]
            if table.is_terminal(mutant) and not include_terminal:
                continue
            total += 1
            if table.are_synonymous(mutant, codon):
                matches += 1
        if total:
            syn += matches / total
    return syn


def _build_graph() -> Dict[str, Codon]:
    nodes = {seq: Codon(seq) for seq in ALL_CODONS}
    for seq, node in nodes.items():
        neighbors: List[Codon] = []
        for pos in range(3):
            for base in BASES:
                if base != seq[pos]:
                    neighbors.append(nodes[seq[:pos] + base + seq[pos + 1 :]])
        node._neighbors = tuple(neighbors)
    return nodes


_CODONS = _build_graph()


def get_codon(sequence: Optional[str]) -> Optional[Codon]:
    """The graph node for ``sequence``, or None for anything but ``[ACGT]{3}``."""
    if not is_valid_codon(sequence):
        return None
    return _CODONS[sequence.upper()]


def all_codons() -> List[Codon]:
    return [_CODONS[seq] for seq in ALL_CODONS]


def site_counts_for(
    sequence: Optional[str], table: CodonTable, include_terminal: bool = False
) -> Optional[Tuple[float, float]]:
    """
    Site counts for a raw codon string.

    Returns None ("no estimate") for gapped or otherwise invalid codons so
    that callers can tell a missing value from a count of zero.
    """
    codon = get_codon(sequence)
    if codon is None:
        return None
    return codon.site_counts(table, include_terminal)


def clear_site_counts_cache() -> None:
    with _SITE_COUNTS_LOCK:
        _SITE_COUNTS_CACHE.clear()
    logger.debug("Cleared codon site counts cache.")
