"""
Derived allele frequencies.

At every polymorphic site the ancestral base is inferred from the outgroup:
among the bases the outgroup carries, the one most frequent in the population
of interest. Every other population base at the site is a derived allele.
"""

import logging
import time
from typing import List, NamedTuple, Optional, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from genalyzer.analysis.diversity import column_composition, ffd_composition
from genalyzer.codons.tables import BASES, CodonTable, load_codon_table
from genalyzer.config import AnalysisOptions
from genalyzer.model.dataset import Dataset
from genalyzer.statistics.composition import SiteComposition
from genalyzer.utilities.utilities import is_aligned, population_sequences

logger = logging.getLogger(__name__)

COLUMNS = ["gene", "position", "ancestral", "derived", "count", "frequency"]


class DerivedAllele(NamedTuple):
    ancestral: str
    derived: str
    count: int


def find_derived_alleles(
    pop: SiteComposition, out: SiteComposition
) -> Optional[List[DerivedAllele]]:
    """
    Derived alleles at one site.

    Returns None for a monomorphic population site or when the outgroup
    shares no base with the population (no ancestral base can be assigned).
    """
    if pop.number_of_polymorphisms == 0:
        return None
    ancestral = None
    n_ancestral = 0
    for base in BASES:
        if out.base_count(base) > 0:
            n = pop.base_count(base)
            if n > n_ancestral:
                ancestral, n_ancestral = base, n
    if ancestral is None:
        return None
    return [
        DerivedAllele(ancestral, base, pop.base_count(base))
        for base in BASES
        if base != ancestral and pop.base_count(base) > 0
    ]


def gene_derived_alleles(
    pop: Sequence[str],
    out: Sequence[str],
    options: AnalysisOptions,
    table: CodonTable,
):
    """
    Derived alleles of one gene.

    Returns
    -------
    tuple
        ``(sites, records)`` where ``sites`` is the number of analysed sites
        and ``records`` a list of ``(position, ancestral, derived, count,
        frequency)`` with 1-based alignment positions.
    """
    length = len(pop[0])
    step = 1
    if options.ffd:
        length = (length // 3) * 3
        step = 3

    n_sites = 0
    records = []
    for pos in range(0, length, step):
        if options.ffd:
            scp = ffd_composition(pop, pos, table, options)
        else:
            scp = column_composition(pop, pos)
        if scp is None or scp.valid_bases_count < 2:
            continue
        if options.ffd:
            if options.ffd_exclude_nonsyn and not table.are_synonymous(
                pop[0][pos : pos + 3], out[0][pos : pos + 3]
            ):
                continue
            sco = ffd_composition(out, pos, table, options)
        else:
            sco = column_composition(out, pos)
        if sco is None:
            continue
        n_sites += 1
        alleles = find_derived_alleles(scp, sco)
        if alleles is None:
            continue
        denominator = len(pop) if options.constant_size else scp.total_bases_count
        # The variable site is the third codon position in FFD mode.
        position = pos + 3 if options.ffd else pos + 1
        for allele in alleles:
            records.append(
                (
                    position,
                    allele.ancestral,
                    allele.derived,
                    allele.count,
                    allele.count / denominator,
                )
            )
    return n_sites, records


def daf_analysis(
    dataset: Dataset,
    options: AnalysisOptions,
    table: Optional[CodonTable] = None,
) -> pd.DataFrame:
    """
    Derived allele frequencies of every gene, one row per derived allele.

    Genes need at least two population strains and one outgroup strain.
    The number of analysed sites per gene is kept in
    ``frame.attrs["sites"]`` (gene name -> count).
    """
    if not options.outgroup:
        logger.error("The derived allele frequency analysis needs an outgroup")
        raise ValueError("The derived allele frequency analysis needs an outgroup")
    if table is None:
        table = load_codon_table(options.codon_table)

    start_time = time.time()
    rows = []
    sites = {}
    for gene in tqdm(dataset, desc="Computing derived allele frequencies", total=len(dataset)):
        pop, out = population_sequences(
            gene, options.population, options.outgroup, options.region,
            options.max_strains,
        )
        if len(pop) < 2 or not out:
            logger.debug(f"Skipping {gene.common_name}: not enough strains")
            continue
        if not is_aligned(list(pop) + list(out)):
            logger.warning(f"Skipping {gene.common_name}: sequences are not aligned")
            continue
        n_sites, records = gene_derived_alleles(pop, out, options, table)
        sites[gene.common_name] = n_sites
        rows.extend((gene.common_name,) + record for record in records)

    frame = pd.DataFrame(rows, columns=COLUMNS)
    frame.attrs["sites"] = sites
    logger.info(
        f"Found {len(frame):,} derived alleles in {len(sites):,} genes in "
        f"{time.time() - start_time:.2f} seconds"
    )
    return frame


def frequency_spectrum(frame: pd.DataFrame, bins: int = 10) -> pd.DataFrame:
    """
    Histogram of derived allele frequencies over ``bins`` equal bins of [0, 1].

    Returns a DataFrame with ``lower``, ``upper`` and ``count`` columns.
    """
    edges = np.linspace(0.0, 1.0, bins + 1)
    counts, _ = np.histogram(frame["frequency"].to_numpy(dtype=float), bins=edges)
    return pd.DataFrame({"lower": edges[:-1], "upper": edges[1:], "count": counts})
