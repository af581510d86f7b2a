"""
Evolutionary paths through the codon graph.

A `Path` is a chain of codons in which consecutive codons differ at exactly
one position. Codons observed in the data are flagged as such; the others are
transient intermediates introduced to connect them.

Best path policy
----------------
`find_best_path` enumerates every walk of minimal length that starts at an
observed codon and visits all observed codons, then picks:

1. the walk with the fewest nonsynonymous steps,
2. on a tie, the shorter walk,
3. on a further tie, the first walk in enumeration order (observed codons in
   input order, neighbors in graph order).

Walks whose transient codons include a terminal codon are discarded unless
``use_terminal`` is set. The same inputs always give the same path.
"""

import enum
import logging
from typing import List, NamedTuple, Optional, Sequence, Set, Tuple

from genalyzer.codons.graph import Codon
from genalyzer.codons.tables import CodonTable

logger = logging.getLogger(__name__)

# Upper bound on the number of steps tried while looking for a walk.
MAX_STEPS = 64

VALID_BASES = "ACGT"


class BasePair(enum.Enum):
    """Unordered nucleotide pair of a single substitution."""

    AC = "AC"
    AG = "AG"
    AT = "AT"
    CG = "CG"
    CT = "CT"
    GT = "GT"

    @property
    def is_transition(self) -> bool:
        return self in (BasePair.AG, BasePair.CT)

    @classmethod
    def of(cls, base1: str, base2: str) -> Optional["BasePair"]:
        """Pair for two different valid bases, otherwise None."""
        b1, b2 = base1.upper(), base2.upper()
        if b1 == b2 or b1 not in VALID_BASES or b2 not in VALID_BASES:
            return None
        return cls("".join(sorted(b1 + b2)))


class SubstitutionType(NamedTuple):
    """Classification of one base change along a path."""

    synonymous: bool
    transition: bool
    pair: BasePair
    other_base: str


class Path:
    """An ordered chain of codons with their observed flags."""

    def __init__(self, table: CodonTable):
        self.table = table
        self._codons: List[Codon] = []
        self._observed: List[bool] = []

    def __len__(self) -> int:
        return len(self._codons)

    def __str__(self) -> str:
        if not self._codons:
            return ""
        parts = [self._codons[0].sequence]
        for codon, observed in zip(self._codons[1:], self._observed[1:]):
            parts.append("->" if observed else "=>")
            parts.append(codon.sequence)
        return "".join(parts)

    def __repr__(self) -> str:
        return f"Path({str(self)!r})"

    @property
    def codons(self) -> Tuple[Codon, ...]:
        return tuple(self._codons)

    @property
    def observed(self) -> Tuple[bool, ...]:
        return tuple(self._observed)

    def add_codon(self, codon: Optional[Codon], observed: bool) -> bool:
        if codon is None:
            return False
        self._codons.append(codon)
        self._observed.append(observed)
        return True

    def index(self, codon: Codon) -> int:
        """Position of ``codon`` in the path, -1 when absent."""
        for i, c in enumerate(self._codons):
            if c is codon:
                return i
        return -1

    def contains_all(self, codons: Sequence[Codon]) -> bool:
        return all(self.index(c) > -1 for c in codons)

    def contains_terminal_codons(self) -> bool:
        return any(self.table.is_terminal(c.sequence) for c in self._codons)

    def contains_transient_terminal_codons(self) -> bool:
        return any(
            self.table.is_terminal(c.sequence) and not observed
            for c, observed in zip(self._codons, self._observed)
        )

    def _steps(self):
        return zip(self._codons, self._codons[1:])

    def polymorphisms_count(self) -> Tuple[int, int]:
        """Number of synonymous and nonsynonymous steps."""
        if not self._codons:
            return 0, 0
        syn = sum(
            1
            for prev, cur in self._steps()
            if self.table.are_synonymous(prev.sequence, cur.sequence)
        )
        return syn, len(self._codons) - 1 - syn

    def substitutions(self) -> List[Tuple[BasePair, bool]]:
        """Base pair and synonymy of every step, in path order."""
        result = []
        for prev, cur in self._steps():
            synonymous = self.table.are_synonymous(prev.sequence, cur.sequence)
            for b1, b2 in zip(prev.sequence, cur.sequence):
                pair = BasePair.of(b1, b2)
                if pair is not None:
                    result.append((pair, synonymous))
                    break
        return result

    def substitutions_count(self) -> Tuple[int, int, int, int]:
        """
        Steps split by effect and base pair class.

        Returns
        -------
        tuple of int
            ``(syn_transitions, syn_transversions, nonsyn_transitions,
            nonsyn_transversions)``.
        """
        counts = [0, 0, 0, 0]
        for pair, synonymous in self.substitutions():
            offset = 0 if synonymous else 2
            counts[offset if pair.is_transition else offset + 1] += 1
        return tuple(counts)

    def is_substitution_synonymous(self, codon: Optional[Codon]) -> bool:
        """
        Whether the step leading into or out of ``codon`` is synonymous.

        A codon inside the path counts as synonymous if either adjacent step
        is synonymous.
        """
        if codon is None or len(self._codons) < 2:
            return False
        idx = self.index(codon)
        if idx == -1:
            return False
        adjacent = []
        if idx > 0:
            adjacent.append(self._codons[idx - 1])
        if idx < len(self._codons) - 1:
            adjacent.append(self._codons[idx + 1])
        return any(
            self.table.are_synonymous(codon.sequence, other.sequence)
            for other in adjacent
        )

    def substitution_type(self, base: str, site: int) -> Optional[SubstitutionType]:
        """
        Classify the change of ``base`` at codon position ``site``.

        The codons carrying ``base`` at ``site`` form one stretch of the path;
        the steps entering and leaving that stretch are inspected. A
        synonymous step wins over a nonsynonymous one.

        Returns None when the path has fewer than two codons, ``base`` is not
        a valid nucleotide or never occurs at ``site``, or every codon of the
        path carries it (no change).
        """
        n = len(self._codons)
        base = base.upper()
        if n < 2 or base not in VALID_BASES:
            return None
        carriers = [i for i, c in enumerate(self._codons) if c.sequence[site] == base]
        if not carriers:
            return None
        first, last = carriers[0], carriers[-1]
        if first == 0 and last == n - 1:
            return None

        steps = []
        if first > 0:
            steps.append((first, first - 1))
        if last < n - 1:
            steps.append((last, last + 1))

        result = None
        for inside, outside in steps:
            c_in = self._codons[inside].sequence
            c_out = self._codons[outside].sequence
            other = c_out[site]
            pair = BasePair.of(base, other)
            if pair is None:
                continue
            synonymous = self.table.are_synonymous(c_in, c_out)
            result = SubstitutionType(synonymous, pair.is_transition, pair, other)
            if synonymous:
                return result
        return result

    def copy(self) -> "Path":
        path = Path(self.table)
        path._codons = list(self._codons)
        path._observed = list(self._observed)
        return path


# --- Path enumeration ---


def _mutations_count(codons: Sequence[Codon]) -> int:
    """Lower bound on the steps needed: sum over positions of (distinct - 1)."""
    total = 0
    for pos in range(3):
        distinct = {c.sequence[pos] for c in codons}
        total += max(len(distinct) - 1, 0)
    return total


def _extend(
    walk: List[Codon],
    visited: Set[Codon],
    targets: Sequence[Codon],
    remaining: int,
    found: List[List[Codon]],
) -> None:
    missing = [t for t in targets if t not in visited]
    if not missing:
        if remaining == 0:
            found.append(list(walk))
        return
    last = walk[-1]
    # Every step reaches at most one new codon and fixes at most one position.
    if remaining < len(missing) or remaining < max(last.differences(m) for m in missing):
        return
    for neighbor in last.neighbors:
        if neighbor in visited:
            continue
        walk.append(neighbor)
        visited.add(neighbor)
        _extend(walk, visited, targets, remaining - 1, found)
        visited.remove(neighbor)
        walk.pop()


def generate_all_paths(codons: Sequence[Codon], table: CodonTable) -> List[Path]:
    """
    All shortest walks starting at an observed codon and visiting every one.

    The step budget starts at the per-position number of distinct bases minus
    one, summed, and grows until at least one walk exists. Shared site-wise
    substitutions can make the first budget too small, e.g. for CGG, AAG,
    CGA and CAA.
    """
    targets = list(dict.fromkeys(codons))
    if not targets:
        return []
    steps = _mutations_count(targets)
    found: List[List[Codon]] = []
    while not found and steps <= MAX_STEPS:
        for start in targets:
            _extend([start], {start}, targets, steps, found)
        if not found:
            logger.debug(f"No walk with {steps} steps for {len(targets)} codons.")
        steps += 1

    observed = set(targets)
    paths = []
    for walk in found:
        path = Path(table)
        for codon in walk:
            path.add_codon(codon, codon in observed)
        paths.append(path)
    return paths


def find_best_path(
    codons: Optional[Sequence[Codon]],
    table: Optional[CodonTable],
    use_terminal: bool = False,
) -> Optional[Path]:
    """
    The best walk through ``codons`` under the module's path policy.

    Returns None for a missing table or an empty codon list, and an empty
    `Path` when no walk qualifies.
    """
    if not codons or table is None:
        return None
    best = None
    best_key = None
    for path in generate_all_paths(codons, table):
        if not use_terminal and path.contains_transient_terminal_codons():
            continue
        key = (path.polymorphisms_count()[1], len(path))
        if best is None or key < best_key:
            best, best_key = path, key
    return best if best is not None else Path(table)


def find_best_path_to_any(
    codon: Optional[Codon],
    codons: Optional[Sequence[Codon]],
    table: Optional[CodonTable],
    use_terminal: bool = False,
) -> Optional[Path]:
    """
    The best two-codon path from ``codon`` to any of ``codons``.

    Fewest nonsynonymous steps wins; ties go to the shorter path, then to the
    earlier candidate.
    """
    if codon is None or not codons or table is None:
        return None
    best = None
    best_key = None
    for candidate in codons:
        path = find_best_path([codon, candidate], table, use_terminal)
        if not path:
            continue
        key = (path.polymorphisms_count()[1], len(path))
        if best is None or key < best_key:
            best, best_key = path, key
    return best if best is not None else Path(table)
