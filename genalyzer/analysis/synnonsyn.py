"""
Synonymous and nonsynonymous diversity, divergence and fixed differences.

The coding sequence is walked codon by codon. Each column yields a
`CodonComposition`; columns are stratified into `CodonsBlock`s by the number
of valid population codons. Columns where the outgroup also has codons feed
the divergence estimates (Ks, Ka) and the McDonald-Kreitman style counts of
fixed (Ds, Dn) and polymorphic (Ps, Pn) changes.
"""

import logging
import time
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from tqdm import tqdm

from genalyzer.codons.path import find_best_path_to_any
from genalyzer.codons.tables import CodonTable, load_codon_table
from genalyzer.config import AnalysisOptions
from genalyzer.model.dataset import Dataset
from genalyzer.statistics.basic import (
    calculate_codon_k,
    jukes_cantor,
    tajima_d_codon_blocks,
    tajima_d_prime_codon_blocks,
)
from genalyzer.statistics.blocks import CodonsBlock, make_codons_blocks
from genalyzer.statistics.codon_composition import (
    CodonComposition,
    codon_composition_for_column,
)
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

DIVERGENCE_STATISTICS = [
    "sites",
    "k",
    "polymorphisms",
    "poly_transitions",
    "poly_transversions",
    "fixed",
    "fixed_transitions",
    "fixed_transversions",
]


def _columns() -> List[str]:
    columns = ["gene", "strains"]
    for group in ("pop", "paired"):
        for kind in ("syn", "nonsyn"):
            columns += [f"{group}_{s}_{kind}" for s in BLOCK_STATISTICS]
    for kind in ("syn", "nonsyn"):
        columns += [f"div_{s}_{kind}" for s in DIVERGENCE_STATISTICS]
    return columns + ["Ps", "Pn", "Ds", "Dn"]


COLUMNS = _columns()


def count_fixed_substitutions(
    pop: CodonComposition, out: CodonComposition
) -> Tuple[int, int, int, int, int, int]:
    """
    Fixed substitutions at a divergent codon column.

    Every codon position whose population and outgroup bases do not overlap
    carries one fixed change. It is synonymous when some population codon
    with a private base reaches the outgroup path through a synonymous step,
    and nonsynonymous otherwise.

    Returns
    -------
    tuple
        ``(Ds, Ds_ts, Ds_tv, Dn, Dn_ts, Dn_tv)``.
    """
    result = [0, 0, 0, 0, 0, 0]
    pop_codons = pop.evolutionary_path().codons
    out_codons = out.evolutionary_path().codons
    for site in range(3):
        scp = pop.site_composition(site)
        sco = out.site_composition(site)
        if int(np.dot(scp.base_counts, sco.base_counts)) != 0:
            continue
        synonymous = False
        transition = False
        for codon in pop_codons:
            base = codon.sequence[site]
            if scp.base_count(base) <= 0 or sco.base_count(base) != 0:
                continue
            path = find_best_path_to_any(codon, out_codons, pop.table, pop.use_terminal)
            change = path.substitution_type(base, site) if path else None
            if change is None:
                continue
            transition = change.transition
            if change.synonymous:
                synonymous = True
                break
        offset = 0 if synonymous else 3
        result[offset] += 1
        result[offset + (1 if transition else 2)] += 1
    return tuple(result)


def _is_divergent(pop: CodonComposition, out: CodonComposition) -> bool:
    if not pop.evolutionary_path() or not out.evolutionary_path():
        return False
    return not CodonComposition.share_codons(pop, out)


def _summarize_blocks(blocks: List[CodonsBlock], options: AnalysisOptions) -> list:
    sites = CodonsBlock.total_sites(blocks)
    pis = CodonsBlock.aggregate_pi(blocks, options.jc_pi)
    thetas = CodonsBlock.aggregate_theta(blocks, options.jc_theta)
    tds = tajima_d_codon_blocks(blocks)
    tdps = tajima_d_prime_codon_blocks(blocks)
    poly = CodonsBlock.total_polymorphisms(blocks)
    singletons = CodonsBlock.total_singletons(blocks)
    transitions = CodonsBlock.total_transitions(blocks)
    transversions = CodonsBlock.total_transversions(blocks)
    values = []
    for i in range(2):
        values += [
            sites[i],
            pis[i],
            thetas[i],
            tds[i],
            tdps[i],
            poly[i],
            singletons[i],
            transitions[i],
            transversions[i],
        ]
    return values


def gene_synnonsyn(
    pop: Sequence[str],
    out: Sequence[str],
    options: AnalysisOptions,
    table: CodonTable,
) -> Optional[list]:
    """
    Statistics of one gene, ordered as `COLUMNS` without the gene name.

    Codon columns with fewer than 2 valid population codons are skipped
    entirely; a single outgroup codon is enough to pair a column.
    """
    # Only complete codons are analysed.
    length = (len(pop[0]) // 3) * 3
    if length < 3:
        return None

    single = make_codons_blocks(
        len(pop), table, options.jc_pi, options.jc_theta,
        options.singleton_cutoff, options.use_terminal,
    )
    paired = make_codons_blocks(
        len(pop), table, options.jc_pi, options.jc_theta,
        options.singleton_cutoff, options.use_terminal,
    )
    ks = np.zeros(2)
    sites = np.zeros(2)
    poly = np.zeros(2, dtype=int)
    ts_poly = np.zeros(2, dtype=int)
    tv_poly = np.zeros(2, dtype=int)
    fixed = np.zeros(2, dtype=int)
    ts_fixed = np.zeros(2, dtype=int)
    tv_fixed = np.zeros(2, dtype=int)

    for pos in range(0, length, 3):
        ccp = codon_composition_for_column(
            pop, pos, table, options.use_terminal, options.exclude_terminal
        )
        if ccp is None:
            continue
        nvc = ccp.valid_codons_count
        if nvc < 2 or (nvc < 4 and options.exclude_small_blocks):
            continue
        single[nvc - 1].add_codon(ccp)

        cco = codon_composition_for_column(
            out, pos, table, options.use_terminal, options.exclude_terminal
        )
        if cco is None or cco.valid_codons_count == 0:
            continue
        paired[nvc - 1].add_codon(ccp)

        k_syn, k_non = calculate_codon_k(
            ccp.valid_codons, cco.valid_codons, table, options.use_terminal
        )
        combined = CodonComposition.merge(ccp, cco)
        syn_sites, non_sites = combined.site_counts()
        sites += (syn_sites, non_sites)
        ks += (k_syn * syn_sites, k_non * non_sites)

        if _is_divergent(ccp, cco):
            ds, ds_ts, ds_tv, dn, dn_ts, dn_tv = count_fixed_substitutions(ccp, cco)
            fixed += (ds, dn)
            ts_fixed += (ds_ts, dn_ts)
            tv_fixed += (ds_tv, dn_tv)

        poly += np.array(ccp.polymorphisms()) + np.array(cco.polymorphisms())
        sp = ccp.substitutions_count()
        so = cco.substitutions_count()
        ts_poly += (sp[0] + so[0], sp[2] + so[2])
        tv_poly += (sp[1] + so[1], sp[3] + so[3])

    k_values = []
    for i in range(2):
        value = ks[i] / sites[i] if sites[i] > 0 else np.nan
        if options.jc_k and not np.isnan(value):
            value = jukes_cantor(value)
        k_values.append(float(value))

    divergence = []
    for i in range(2):
        divergence += [
            float(sites[i]),
            k_values[i],
            int(poly[i]),
            int(ts_poly[i]),
            int(tv_poly[i]),
            int(fixed[i]),
            int(ts_fixed[i]),
            int(tv_fixed[i]),
        ]
    return (
        [len(pop)]
        + _summarize_blocks(single, options)
        + _summarize_blocks(paired, options)
        + divergence
        + [int(poly[0]), int(poly[1]), int(fixed[0]), int(fixed[1])]
    )


def synnonsyn_analysis(
    dataset: Dataset,
    options: AnalysisOptions,
    table: Optional[CodonTable] = None,
) -> pd.DataFrame:
    """
    Run the synonymous / nonsynonymous analysis over every gene.

    Returns a DataFrame with one row per analysed gene and the columns in
    `COLUMNS`. Genes with fewer than two population strains, unaligned
    sequences or no complete codon are skipped.
    """
    if table is None:
        table = load_codon_table(options.codon_table)
    start_time = time.time()
    records = []
    for gene in tqdm(dataset, desc="Computing syn/nonsyn statistics", total=len(dataset)):
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
        values = gene_synnonsyn(pop, out, options, table)
        if values is None:
            logger.warning(f"Skipping {gene.common_name}: no complete codon")
            continue
        records.append([gene.common_name] + values)

    logger.info(
        f"Syn/nonsyn statistics computed for {len(records):,} genes in "
        f"{time.time() - start_time:.2f} seconds"
    )
    return pd.DataFrame(records, columns=COLUMNS)
