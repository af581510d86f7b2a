"""Codon tables, the codon graph and evolutionary paths."""

from genalyzer.codons.graph import Codon, all_codons, get_codon, site_counts_for
from genalyzer.codons.path import (
    BasePair,
    Path,
    SubstitutionType,
    find_best_path,
    find_best_path_to_any,
)
from genalyzer.codons.tables import (
    AminoAcidNameType,
    CodonRecord,
    CodonTable,
    CodonTableError,
    CustomCodonTable,
    UniversalCodonTable,
    load_codon_table,
    universal_table,
)

__all__ = [
    "AminoAcidNameType",
    "BasePair",
    "Codon",
    "CodonRecord",
    "CodonTable",
    "CodonTableError",
    "CustomCodonTable",
    "Path",
    "SubstitutionType",
    "UniversalCodonTable",
    "all_codons",
    "find_best_path",
    "find_best_path_to_any",
    "get_codon",
    "load_codon_table",
    "site_counts_for",
    "universal_table",
]
