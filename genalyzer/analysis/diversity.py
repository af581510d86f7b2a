"""
Nucleotide diversity and divergence per gene.

Two site sets are supported:

- every alignment column of the selected region (non-coding mode), and
- third positions of four-fold degenerate codons (FFD mode, ``options.ffd``).

Each usable site is filed into a `SitesBlock` by its valid sample size, once
for the population alone and once more when the outgroup has data at the
site. Divergence K is averaged over the latter.
"""

import logging
import time
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from genalyzer.codons.tables import CodonTable, load_codon_table
from genalyzer.config import AnalysisOptions
from genalyzer.model.dataset import Dataset
from genalyzer.statistics.basic import (
    calculate_k,
    jukes_cantor,
    tajima_d_blocks,
    tajima_d_prime_blocks,
)
from genalyzer.statistics.blocks import SitesBlock, make_sites_blocks
from genalyzer.statistics.composition import SiteComposition
from genalyzer.utilities.utilities import is_aligned, population_sequences

logger = logging.getLogger(__name__)

BLOCK_STATISTICS = [
    "sites",
    "pi",
    "theta",
    "tajima_d",
    "tajima_d_prime",
    "polymorphisms",
    "singletons",
    "transitions",
    "transversions",
]

COLUMNS = (
    ["gene", "strains"]
    + [f"pop_{s}" for s in BLOCK_STATISTICS]
    + [f"paired_{s}" for s in BLOCK_STATISTICS]
    + [
        "k",
        "polymorphic_sites",
        "polymorphic_transitions",
        "polymorphic_transversions",
        "divergent_sites",
        "divergent_transitions",
        "divergent_transversions",
    ]
)


def column_composition(sequences: Sequence[str], pos: int) -> Optional[SiteComposition]:
    """Composition of column ``pos``; None when any sequence has a gap there."""
    if not sequences:
        return None
    composition = SiteComposition()
    for seq in sequences:
        base = seq[pos]
        if base == "-":
            return None
        composition.add_base(base)
    return composition


def ffd_composition(
    sequences: Sequence[str], pos: int, table: CodonTable, options: AnalysisOptions
) -> Optional[SiteComposition]:
    """
    Third-position composition of the codon column starting at ``pos``.

    Only four-fold degenerate codons (and fully unknown ``XXX`` codons)
    contribute. Returns None when the site is rejected by one of the
    ``ffd_exclude_*`` options or no sequence has a four-fold codon here.
    """
    if not sequences:
        return None
    composition = SiteComposition()
    reference = sequences[0][pos : pos + 3]
    has_ffd = False
    for seq in sequences:
        codon = seq[pos : pos + 3]
        if "-" in codon:
            if options.ffd_exclude_gaps:
                return None
            continue
        if codon != "XXX":
            if table.fold_family(codon) != 4:
                if options.ffd_exclude_nonffd:
                    return None
                continue
            if options.ffd_exclude_nonsyn and not table.are_synonymous(codon, reference):
                return None
            has_ffd = True
        composition.add_base(codon[2])
    return composition if has_ffd else None


def _summarize_blocks(blocks: List[SitesBlock], options: AnalysisOptions) -> list:
    n_p = SitesBlock.total_polymorphisms(blocks)
    sites = int(SitesBlock.total_sites(blocks))
    if n_p == 0:
        return [sites, 0.0, 0.0, np.nan, np.nan, 0, 0, 0.0, 0.0]
    transitions = SitesBlock.total_transitions(blocks)
    return [
        sites,
        SitesBlock.aggregate_pi(blocks, options.jc_pi),
        SitesBlock.aggregate_theta(blocks, options.jc_theta),
        tajima_d_blocks(blocks),
        tajima_d_prime_blocks(blocks),
        n_p,
        SitesBlock.total_singletons(blocks),
        transitions,
        n_p - transitions,
    ]


def gene_diversity(
    pop: Sequence[str],
    out: Sequence[str],
    options: AnalysisOptions,
    table: CodonTable,
) -> Optional[list]:
    """
    Statistics of one gene, ordered as `COLUMNS` without the gene name.

    Columns with fewer than 2 valid population bases are not sites: they
    enter no block and no divergence count. The outgroup needs one valid base
    for a column to be paired.

    Returns None when the population sequences are too short to analyse.
    """
    length = len(pop[0])
    step = 1
    if options.ffd:
        length = (length // 3) * 3
        step = 3
        if length < 3:
            return None
    if length == 0:
        return None

    single = make_sites_blocks(
        len(pop), options.jc_pi, options.jc_theta, options.singleton_cutoff
    )
    paired = make_sites_blocks(
        len(pop), options.jc_pi, options.jc_theta, options.singleton_cutoff
    )
    k = 0.0
    n_poly = 0
    ts_poly = 0.0
    n_div = 0
    ts_div = 0.0
    for pos in range(0, length, step):
        if options.ffd:
            scp = ffd_composition(pop, pos, table, options)
        else:
            scp = column_composition(pop, pos)
        if scp is None:
            continue
        nvb = scp.valid_bases_count
        if nvb < 2 or (nvb < 4 and options.exclude_small_blocks):
            continue
        single[nvb - 1].add_site(scp)

        if not out:
            continue
        if options.ffd:
            if options.ffd_exclude_nonsyn and not table.are_synonymous(
                pop[0][pos : pos + 3], out[0][pos : pos + 3]
            ):
                continue
            sco = ffd_composition(out, pos, table, options)
        else:
            sco = column_composition(out, pos)
        if sco is None or sco.valid_bases_count == 0:
            continue
        paired[nvb - 1].add_site(scp)
        combined = SiteComposition.merge(scp, sco)
        f = calculate_k(scp, sco)
        if f >= 1.0:
            ts_div += combined.number_of_transitions
            n_div += 1
        elif f > 0.0:
            ts_poly += combined.number_of_transitions
            n_poly += 1
        k += f

    paired_sites = SitesBlock.total_sites(paired)
    if paired_sites > 0:
        k /= paired_sites
        if options.jc_k:
            k = jukes_cantor(k)
    else:
        k = np.nan

    return (
        [len(pop)]
        + _summarize_blocks(single, options)
        + _summarize_blocks(paired, options)
        + [k, n_poly, ts_poly, n_poly - ts_poly, n_div, ts_div, n_div - ts_div]
    )


def diversity_analysis(
    dataset: Dataset,
    options: AnalysisOptions,
    table: Optional[CodonTable] = None,
) -> pd.DataFrame:
    """
    Run the diversity analysis over every gene of ``dataset``.

    Parameters
    ----------
    dataset : Dataset
        Genes with population-tagged strains.
    options : AnalysisOptions
        Population, outgroup and estimator switches.
    table : CodonTable, optional
        Used in FFD mode; defaults to ``options.codon_table`` or the
        universal code.

    Returns
    -------
    pandas.DataFrame
        One row per analysed gene with the columns in `COLUMNS`. Genes with
        fewer than two population strains or unaligned sequences are skipped.
    """
    if table is None:
        table = load_codon_table(options.codon_table)
    start_time = time.time()
    records = []
    for gene in tqdm(dataset, desc="Computing diversity", total=len(dataset)):
        pop, out = population_sequences(
            gene, options.population, options.outgroup, options.region,
            options.max_strains,
        )
        if len(pop) < 2:
            logger.debug(f"Skipping {gene.common_name}: fewer than 2 strains")
            continue
        if not is_aligned(list(pop) + list(out)):
            logger.warning(f"Skipping {gene.common_name}: sequences are not aligned")
            continue
        values = gene_diversity(pop, out, options, table)
        if values is None:
            logger.warning(f"Skipping {gene.common_name}: sequence too short")
            continue
        records.append([gene.common_name] + values)

    logger.info(
        f"Diversity computed for {len(records):,} genes in "
        f"{time.time() - start_time:.2f} seconds"
    )
    return pd.DataFrame(records, columns=COLUMNS)
