"""
Basic population-genetics estimators.

Pure functions over `SiteComposition`, `CodonComposition` and stratified
blocks (`SitesBlock`, `CodonsBlock`). Undefined results are reported as
``numpy.nan``, never raised.

Function Categories:
- Corrections: jukes_cantor
- Diversity: calculate_theta, calculate_pi, calculate_codon_pi
- Neutrality tests: tajima_d, tajima_d_blocks, tajima_d_codon_blocks,
  tajima_d_prime, tajima_d_prime_blocks, tajima_d_prime_codon_blocks
- Divergence: calculate_k, calculate_codon_k
- Helpers: substitution_type, harmonic_numbers
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from genalyzer.codons.graph import Codon
from genalyzer.codons.path import find_best_path
from genalyzer.codons.tables import CodonTable
from genalyzer.statistics.codon_composition import CodonComposition
from genalyzer.statistics.composition import SiteComposition

logger = logging.getLogger(__name__)

_TRANSITIONS = {("A", "G"), ("G", "A"), ("C", "T"), ("T", "C")}


def jukes_cantor(d: float) -> float:
    """
    Jukes-Cantor multiple-hit correction ``-3/4 * ln(1 - 4d/3)``.

    Parameters
    ----------
    d : float
        Observed proportion of differing sites.

    Returns
    -------
    float
        The corrected distance. ``numpy.inf`` for ``d >= 0.75`` (saturation),
        ``numpy.nan`` for negative or NaN input.
    """
    if np.isnan(d) or d < 0:
        return np.nan
    if d >= 0.75:
        return np.inf
    return float(-0.75 * np.log(1.0 - 4.0 * d / 3.0))


def harmonic_numbers(n_seqs: int) -> Tuple[float, float]:
    """``a1 = sum(1/i)`` and ``a2 = sum(1/i^2)`` for ``i`` in ``1..n_seqs-1``."""
    i = np.arange(1, max(n_seqs, 1), dtype=float)
    return float(np.sum(1.0 / i)), float(np.sum(1.0 / i**2))


def _tajima_coefficients(n_seqs: int) -> Tuple[float, float]:
    """The ``e1`` and ``e2`` terms of the variance of Tajima's D."""
    a1, a2 = harmonic_numbers(n_seqs)
    b1 = (n_seqs + 1) / (3.0 * (n_seqs - 1))
    b2 = 2.0 * (n_seqs * n_seqs + n_seqs + 3) / (9.0 * n_seqs * (n_seqs - 1))
    c1 = b1 - 1.0 / a1
    c2 = b2 - (n_seqs + 2) / (n_seqs * a1) + a2 / (a1 * a1)
    return c1 / a1, c2 / (a1 * a1 + a2)


def calculate_theta(n_p: int, sites: float, n_seqs: int) -> float:
    """
    Watterson's theta per site.

    Returns 0 for fewer than two sequences, no polymorphisms or no sites.
    """
    if n_seqs < 2 or n_p == 0 or sites <= 0:
        return 0.0
    a1, _ = harmonic_numbers(n_seqs)
    return (n_p / sites) / a1


def tajima_d(pi: float, theta: float, sites: float, n_p: int, n_seqs: int) -> float:
    """
    Tajima's D for a single sample.

    Parameters
    ----------
    pi, theta : float
        Per-site nucleotide diversity and Watterson's theta.
    sites : float
        Number of sites both were computed over.
    n_p : int
        Number of polymorphisms.
    n_seqs : int
        Sample size.

    Returns
    -------
    float
        NaN for fewer than 4 sequences, no polymorphisms or a non-positive
        variance term.
    """
    if n_seqs < 4 or n_p == 0:
        return np.nan
    e1, e2 = _tajima_coefficients(n_seqs)
    variance = e1 * n_p + e2 * n_p * (n_p - 1)
    if variance <= 0:
        return np.nan
    return sites * (pi - theta) / np.sqrt(variance)


def tajima_d_blocks(blocks: Sequence) -> float:
    """
    Tajima's D pooled over sample-size strata.

    Strata with fewer than 4 strains are skipped. Returns NaN when no
    polymorphism remains or the pooled variance is not positive.
    """
    numerator = 0.0
    variance = 0.0
    n_p_total = 0
    for block in blocks:
        n_seqs = block.strains_count
        if n_seqs < 4:
            continue
        n_p = block.polymorphisms_count
        numerator += block.sites_count * (block.pi - block.theta)
        e1, e2 = _tajima_coefficients(n_seqs)
        variance += e1 * n_p + e2 * n_p * (n_p - 1)
        n_p_total += n_p
    if n_p_total == 0 or variance <= 0:
        return np.nan
    return numerator / np.sqrt(variance)


def tajima_d_codon_blocks(blocks: Sequence) -> Tuple[float, float]:
    """Synonymous and nonsynonymous Tajima's D over codon strata."""
    numerators = np.zeros(2)
    variances = np.zeros(2)
    n_p_totals = np.zeros(2)
    for block in blocks:
        n_seqs = block.strains_count
        if n_seqs < 4:
            continue
        sites = np.array(block.sites_count)
        pis = np.array(block.pi)
        thetas = np.array(block.theta)
        n_p = np.array(block.polymorphisms_count, dtype=float)
        numerators += sites * (pis - thetas)
        e1, e2 = _tajima_coefficients(n_seqs)
        variances += e1 * n_p + e2 * n_p * (n_p - 1)
        n_p_totals += n_p
    result = []
    for num, var, n_p in zip(numerators, variances, n_p_totals):
        result.append(np.nan if n_p == 0 or var <= 0 else num / np.sqrt(var))
    return result[0], result[1]


def tajima_d_prime(
    pi: float, theta: float, sites: float, n_p: int, n_seqs: int
) -> float:
    """
    Tajima's D normalized by its minimum, ``(pi - theta) / (pi_min - theta)``
    with ``pi_min = (2 / n) * n_p / sites``.
    """
    if n_seqs < 2 or n_p == 0 or sites <= 0:
        return np.nan
    pi_min = (2.0 / n_seqs) * n_p / sites
    denominator = pi_min - theta
    if denominator == 0:
        return np.nan
    return (pi - theta) / denominator


def tajima_d_prime_blocks(blocks: Sequence) -> float:
    numerator = 0.0
    denominator = 0.0
    for block in blocks:
        n_seqs = block.strains_count
        n_p = block.polymorphisms_count
        if n_seqs < 4 or n_p == 0:
            continue
        theta = block.theta
        numerator += block.pi - theta
        denominator += (2.0 / n_seqs) * n_p / block.sites_count - theta
    if denominator == 0:
        return np.nan
    return numerator / denominator


def tajima_d_prime_codon_blocks(blocks: Sequence) -> Tuple[float, float]:
    numerators = [0.0, 0.0]
    denominators = [0.0, 0.0]
    for block in blocks:
        n_seqs = block.strains_count
        if n_seqs < 4:
            continue
        n_p = block.polymorphisms_count
        pis = block.pi
        thetas = block.theta
        sites = block.sites_count
        for i in range(2):
            if sites[i] > 0:
                numerators[i] += pis[i] - thetas[i]
                denominators[i] += (2.0 / n_seqs) * n_p[i] / sites[i] - thetas[i]
    result = [
        np.nan if den == 0 else num / den
        for num, den in zip(numerators, denominators)
    ]
    return result[0], result[1]


def calculate_pi(composition: SiteComposition) -> float:
    """
    Nucleotide diversity at one site, ``(N^2 - sum(n_i^2)) / (N (N - 1))``.

    Sites with fewer than two valid bases contribute 0.
    """
    n_total = composition.valid_bases_count
    if n_total < 2:
        return 0.0
    counts = composition.base_counts
    diffs = n_total * n_total - int(np.sum(counts * counts))
    return diffs / (n_total * (n_total - 1))


def calculate_codon_pi(
    composition: CodonComposition, table: CodonTable, use_terminal: bool = False
) -> Tuple[float, float]:
    """
    Synonymous and nonsynonymous diversity at one codon column.

    Differences are counted on the best path of every codon pair and divided
    by the mean number of synonymous / nonsynonymous sites.
    """
    codons = composition.valid_codons
    if len(codons) < 2:
        return 0.0, 0.0
    n_syn = 0
    n_non = 0
    syn_sites = 0.0
    non_sites = 0.0
    for i, c1 in enumerate(codons):
        syn, non = c1.site_counts(table, use_terminal)
        syn_sites += syn
        non_sites += non
        for c2 in codons[i + 1 :]:
            if c1 is c2:
                continue
            path = find_best_path([c1, c2], table, use_terminal)
            s, n = path.polymorphisms_count() if path is not None else (0, 0)
            n_syn += s
            n_non += n
    n_pairs = len(codons) * (len(codons) - 1) / 2
    size = len(codons)
    ps = (n_syn / n_pairs) / (syn_sites / size) if syn_sites > 0 else 0.0
    pn = (n_non / n_pairs) / (non_sites / size) if non_sites > 0 else 0.0
    return ps, pn


def calculate_k(pop: SiteComposition, out: SiteComposition) -> float:
    """
    Average proportion of differences between population and outgroup bases.

    0 when all pairs are identical, 1 when the two sides share no base and
    fractional for shared polymorphisms. NaN when either side is empty.
    """
    n_pop = pop.valid_bases_count
    n_out = out.valid_bases_count
    if n_pop == 0 or n_out == 0:
        return np.nan
    diffs = out.base_counts * (n_pop - pop.base_counts)
    return float(np.sum(diffs)) / (n_pop * n_out)


def calculate_codon_k(
    pop: Sequence[Codon],
    out: Sequence[Codon],
    table: CodonTable,
    use_terminal: bool = False,
) -> Tuple[float, float]:
    """Synonymous and nonsynonymous divergence between two codon samples."""
    if not pop or not out:
        return 0.0, 0.0
    n_syn = 0
    n_non = 0
    syn_sites = 0.0
    non_sites = 0.0
    for codon in list(pop) + list(out):
        syn, non = codon.site_counts(table, use_terminal)
        syn_sites += syn
        non_sites += non
    for c1 in pop:
        for c2 in out:
            if c1 is c2:
                continue
            path = find_best_path([c1, c2], table, use_terminal)
            s, n = path.polymorphisms_count() if path is not None else (0, 0)
            n_syn += s
            n_non += n
    n_pairs = len(pop) * len(out)
    size = len(pop) + len(out)
    ks = (n_syn / n_pairs) / (syn_sites / size) if syn_sites > 0 else 0.0
    kn = (n_non / n_pairs) / (non_sites / size) if non_sites > 0 else 0.0
    return ks, kn


def substitution_type(base1: str, base2: str) -> int:
    """-1 for an invalid base, 0 for equal bases, 1 transition, 2 transversion."""
    b1, b2 = base1.upper(), base2.upper()
    if b1 not in "ACGT" or b2 not in "ACGT" or len(b1) != 1 or len(b2) != 1:
        return -1
    if b1 == b2:
        return 0
    return 1 if (b1, b2) in _TRANSITIONS else 2
