"""
Substitution spectra: counts of the six unordered base pairs per gene.

Three categories are tallied for every gene:

- ``population``: changes within the population of interest,
- ``paired``: the same changes restricted to columns where the outgroup has
  data and is monomorphic and not divergent, and
- ``divergent``: fixed differences against a monomorphic outgroup.

In site mode (every column, or four-fold degenerate third positions with
``options.ffd``) a site with more than one polymorphism cannot be resolved
into a single pair and counts as ``unknown``. In coding mode the changes are
the steps of the evolutionary path of each codon column, split into
synonymous and nonsynonymous ones.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from tqdm import tqdm

from genalyzer.analysis.diversity import column_composition, ffd_composition
from genalyzer.codons.path import BasePair, find_best_path_to_any
from genalyzer.codons.tables import BASES, CodonTable, load_codon_table
from genalyzer.config import AnalysisOptions
from genalyzer.model.dataset import Dataset
from genalyzer.statistics.codon_composition import (
    CodonComposition,
    codon_composition_for_column,
)
from genalyzer.statistics.composition import SiteComposition, SiteType
from genalyzer.utilities.utilities import is_aligned, population_sequences

logger = logging.getLogger(__name__)

POPULATION = "population"
PAIRED = "paired"
DIVERGENT = "divergent"
CATEGORIES = [POPULATION, PAIRED, DIVERGENT]

PAIRS = [pair.value for pair in BasePair]

SITE_COLUMNS = (
    ["gene", "category", "sites"]
    + list(BASES)
    + PAIRS
    + ["transitions", "transversions", "unknown"]
)


def _codon_columns() -> List[str]:
    columns = ["gene", "category", "sites_syn", "sites_nonsyn"]
    for kind in ("syn", "nonsyn"):
        columns += [f"{kind}_{base}" for base in BASES]
    for kind in ("syn", "nonsyn"):
        columns += [f"{kind}_{pair}" for pair in PAIRS]
        columns += [f"{kind}_transitions", f"{kind}_transversions"]
    return columns


CODON_COLUMNS = _codon_columns()


def _pair_values(pairs: Dict[BasePair, int]) -> list:
    transitions = sum(n for pair, n in pairs.items() if pair.is_transition)
    return [pairs[pair] for pair in BasePair] + [
        transitions,
        sum(pairs.values()) - transitions,
    ]


class SiteSubstitutions:
    """Base pair counts over single sites."""

    def __init__(self):
        self.sites = 0
        self.bases = np.zeros(4)
        self.pairs = dict.fromkeys(BasePair, 0)
        self.unknown = 0

    def add(self, pop: SiteComposition, out: Optional[SiteComposition] = None):
        """
        Count one site of the population, or with ``out`` its difference to
        the outgroup. Both sides must be monomorphic to pair them.
        """
        if pop.number_of_polymorphisms > 1:
            self.unknown += 1
            return
        if out is not None and (
            pop.number_of_polymorphisms > 0 or out.number_of_polymorphisms > 0
        ):
            self.unknown += 1
            return
        self.sites += 1
        self.bases += pop.base_frequencies()
        present = [b for b in BASES if pop.base_count(b) > 0]
        if out is not None:
            present += [b for b in BASES if out.base_count(b) > 0]
        pair = BasePair.of(present[0], present[-1])
        if pair is not None:
            self.pairs[pair] += 1

    def values(self) -> list:
        return (
            [self.sites]
            + [float(x) for x in self.bases]
            + _pair_values(self.pairs)
            + [self.unknown]
        )


def fixed_base_changes(
    pop: CodonComposition, out: CodonComposition
) -> List[Tuple[BasePair, bool]]:
    """
    Pair and synonymy of the fixed change at each divergent codon position.

    The change is read off the best path from the first population codon
    carrying a base the outgroup lacks to any outgroup codon.
    """
    result = []
    out_codons = out.evolutionary_path().codons
    for site in range(3):
        scp = pop.site_composition(site)
        sco = out.site_composition(site)
        if int(np.dot(scp.base_counts, sco.base_counts)) != 0:
            continue
        for codon in pop.evolutionary_path().codons:
            base = codon.sequence[site]
            if scp.base_count(base) <= 0 or sco.base_count(base) != 0:
                continue
            path = find_best_path_to_any(codon, out_codons, pop.table, pop.use_terminal)
            change = path.substitution_type(base, site) if path else None
            if change is not None:
                result.append((change.pair, change.synonymous))
            break
    return result


class CodonSubstitutions:
    """Base pair counts over codon columns, split by synonymy."""

    def __init__(self):
        self.sites = np.zeros(2)
        self.bases = np.zeros((2, 4))
        self.pairs = {True: dict.fromkeys(BasePair, 0), False: dict.fromkeys(BasePair, 0)}

    def add(self, pop: CodonComposition, out: Optional[CodonComposition] = None):
        freqs = pop.base_frequencies()
        self.sites += (freqs[0], freqs[5])
        self.bases[0] += freqs[1:5]
        self.bases[1] += freqs[6:10]
        if out is None:
            changes = pop.evolutionary_path().substitutions()
        else:
            changes = fixed_base_changes(pop, out)
        for pair, synonymous in changes:
            self.pairs[synonymous][pair] += 1

    def values(self) -> list:
        return (
            [float(self.sites[0]), float(self.sites[1])]
            + [float(x) for x in self.bases[0]]
            + [float(x) for x in self.bases[1]]
            + _pair_values(self.pairs[True])
            + _pair_values(self.pairs[False])
        )


def _add_paired(counters: dict, site_type: SiteType, pop, out):
    if site_type in (SiteType.MONOMORPHIC, SiteType.POLYMORPHIC_FIRST):
        counters[PAIRED].add(pop)
    if site_type in (SiteType.MONOMORPHIC, SiteType.DIVERGENT):
        counters[DIVERGENT].add(pop, out)


def gene_site_substitutions(
    pop: Sequence[str],
    out: Sequence[str],
    options: AnalysisOptions,
    table: CodonTable,
) -> Optional[Dict[str, SiteSubstitutions]]:
    """Site mode counters of one gene; None when it is too short."""
    length = len(pop[0])
    step = 1
    if options.ffd:
        length = (length // 3) * 3
        step = 3
    if length == 0:
        return None

    counters = {category: SiteSubstitutions() for category in CATEGORIES}
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
        counters[POPULATION].add(scp)

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
        _add_paired(counters, SiteComposition.site_type(scp, sco), scp, sco)
    return counters


def gene_codon_substitutions(
    pop: Sequence[str],
    out: Sequence[str],
    options: AnalysisOptions,
    table: CodonTable,
) -> Optional[Dict[str, CodonSubstitutions]]:
    """
    Coding mode counters of one gene; None without a complete codon.

    Codon columns are paired and classified with `CodonComposition.site_type`,
    so a synonymous fixed difference lands in the divergent category of a
    column that is monomorphic at the amino acid level.
    """
    length = (len(pop[0]) // 3) * 3
    if length < 3:
        return None

    counters = {category: CodonSubstitutions() for category in CATEGORIES}
    for pos in range(0, length, 3):
        ccp = codon_composition_for_column(
            pop, pos, table, options.use_terminal, options.exclude_terminal
        )
        if ccp is None:
            continue
        nvc = ccp.valid_codons_count
        if nvc < 2 or (nvc < 4 and options.exclude_small_blocks):
            continue
        counters[POPULATION].add(ccp)

        cco = codon_composition_for_column(
            out, pos, table, options.use_terminal, options.exclude_terminal
        )
        if cco is None or cco.valid_codons_count == 0:
            continue
        _add_paired(counters, CodonComposition.site_type(ccp, cco), ccp, cco)
    return counters


def subst_analysis(
    dataset: Dataset,
    options: AnalysisOptions,
    table: Optional[CodonTable] = None,
    coding: bool = False,
) -> pd.DataFrame:
    """
    Tabulate substitution spectra over every gene.

    Returns a DataFrame with one row per analysed gene and category, with the
    columns in `CODON_COLUMNS` when ``coding`` is set and `SITE_COLUMNS`
    otherwise.
    """
    if table is None:
        table = load_codon_table(options.codon_table)
    gene_counters = gene_codon_substitutions if coding else gene_site_substitutions
    columns = CODON_COLUMNS if coding else SITE_COLUMNS
    start_time = time.time()
    records = []
    for gene in tqdm(dataset, desc="Counting substitutions", total=len(dataset)):
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
        counters = gene_counters(pop, out, options, table)
        if counters is None:
            logger.warning(f"Skipping {gene.common_name}: sequence too short")
            continue
        for category in CATEGORIES:
            records.append([gene.common_name, category] + counters[category].values())

    logger.info(
        f"Substitutions counted for {len(records) // len(CATEGORIES):,} genes in "
        f"{time.time() - start_time:.2f} seconds"
    )
    return pd.DataFrame(records, columns=columns)
