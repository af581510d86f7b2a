#!/usr/bin/env python
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd
from Bio import SeqIO

from genalyzer.model.dataset import Dataset
from genalyzer.model.gene import GeneEntry
from genalyzer.model.region import EXON, GeneRegion
from genalyzer.model.strain import StrainEntry

# Set up logger for this module
logger = logging.getLogger(__name__)

ID_SEPARATOR = "|"


def read_alignment(fasta_file, gene_name: Optional[str] = None) -> Dataset:
    """
    Import an aligned FASTA file into a `Dataset`.

    Each record becomes one strain whose single ``Exon`` region spans the
    whole aligned sequence.

    Parameters
    ----------
    fasta_file : str or Path
        Aligned FASTA. Record IDs are ``gene|strain``; when ``gene_name`` is
        given they are plain strain names and every record belongs to that
        gene.
    gene_name : str, optional
        Gene to file all records under.

    Returns
    -------
    Dataset
        Genes in file order.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If a record ID cannot be split into gene and strain, or the file holds
        no records.
    """
    path = Path(fasta_file)
    if not path.exists():
        logger.error(f"Alignment file not found: {path}")
        raise FileNotFoundError(f"Alignment file not found: {path}")

    logger.info(f"Reading alignment from: {path}")
    dataset = Dataset()
    n_records = 0
    for record in SeqIO.parse(str(path), "fasta"):
        gene_id, strain_id = split_record_id(record.id, gene_name)
        sequence = str(record.seq).upper()

        strain = StrainEntry(strain=strain_id)
        strain.add_region(GeneRegion(EXON, sequence, 1, len(sequence)))

        gene = dataset.find_gene(gene_id)
        if gene is None:
            gene = GeneEntry(gene_id)
            dataset.add_gene(gene)
        gene.add_strain(strain)
        n_records += 1

    if n_records == 0:
        logger.error(f"No FASTA records found in {path}")
        raise ValueError(f"No FASTA records found in {path}")

    logger.info(f"Loaded {n_records:,} sequences for {len(dataset):,} genes")
    return dataset


def split_record_id(record_id: str, gene_name: Optional[str] = None):
    """Split a ``gene|strain`` record ID; ``gene_name`` makes the ID a strain name."""
    if gene_name:
        return gene_name, record_id
    gene_id, sep, strain_id = record_id.partition(ID_SEPARATOR)
    if not sep or not gene_id or not strain_id:
        logger.error(f"Record ID '{record_id}' is not of the form gene|strain")
        raise ValueError(
            f"Record ID '{record_id}' is not of the form gene{ID_SEPARATOR}strain. "
            "Use --gene for single-gene alignments."
        )
    return gene_id, strain_id


def load_population_table(population_file) -> Dict[str, List[str]]:
    """
    Load a strain-to-population table.

    Parameters
    ----------
    population_file : str or Path
        Tab-separated file with columns ``strain`` and ``population``. A strain
        listed on several rows belongs to several populations.

    Returns
    -------
    dict
        strain name -> list of population names.

    Raises
    ------
    ValueError
        If required columns are missing.
    """
    logger.info(f"Loading population table from: {population_file}")
    df = pd.read_csv(population_file, sep="\t", dtype=str)

    required_columns = {"strain", "population"}
    missing_columns = required_columns - set(df.columns)
    if missing_columns:
        logger.error(f"Missing columns in population table: {missing_columns}")
        raise ValueError(
            f"Missing columns in population table: {missing_columns}. "
            f"Required columns are: {required_columns}"
        )

    df = df.dropna(subset=["strain", "population"])
    grouped = df.groupby("strain", sort=False)["population"].agg(list).to_dict()
    mapping = {strain: list(dict.fromkeys(pops)) for strain, pops in grouped.items()}
    logger.info(
        f"Loaded {len(mapping):,} strains in {df['population'].nunique():,} populations"
    )
    return mapping


def assign_populations(dataset: Dataset, mapping: Dict[str, List[str]]) -> int:
    """
    Tag every strain of the dataset with its populations.

    Strain names are matched exactly. Returns the number of strain entries
    that received at least one population.
    """
    assigned = 0
    unmatched = set()
    for gene in dataset:
        for strain in gene.strains:
            populations = mapping.get(strain.strain)
            if not populations:
                unmatched.add(strain.strain)
                continue
            new = [p for p in populations if p not in strain.populations]
            strain.add_populations(*new)
            assigned += 1
    if unmatched:
        logger.warning(
            f"{len(unmatched):,} strains have no population: "
            f"{', '.join(sorted(unmatched)[:5])}"
            + (" ..." if len(unmatched) > 5 else "")
        )
    return assigned


def select_strains(
    gene: GeneEntry, population: Optional[str], max_strains: Optional[int] = None
) -> List[StrainEntry]:
    """Strains of ``gene`` in ``population``, in gene order, at most ``max_strains``."""
    strains = [s for s in gene.strains if s.belongs_to_population(population)]
    if max_strains is not None:
        strains = strains[:max_strains]
    return strains


def region_sequences(strains: Sequence[StrainEntry], region_type: str = EXON) -> List[str]:
    """Concatenated ``region_type`` sequence of each strain."""
    return [s.sequence(region_type) for s in strains]


def is_aligned(sequences: Sequence[str]) -> bool:
    """True when all sequences have the same length."""
    return len({len(s) for s in sequences}) <= 1


def population_sequences(
    gene: GeneEntry,
    population: str,
    outgroup: Optional[str] = None,
    region_type: str = EXON,
    max_strains: Optional[int] = None,
):
    """
    Region sequences of the population of interest and of the outgroup.

    An empty ``outgroup`` selects no strains. Returns two lists of strings,
    empty when the gene has no region of ``region_type``.
    """
    strains = gene.strains
    if not strains or strains[0].regions_count(region_type) == 0:
        return [], []
    pop = region_sequences(select_strains(gene, population, max_strains), region_type)
    out = []
    if outgroup:
        out = region_sequences(
            select_strains(gene, outgroup, max_strains), region_type
        )
    return pop, out
