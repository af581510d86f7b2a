"""
Codon tables: amino acid identity, terminal/start flags and degeneracy.

Two implementations share the `CodonTable` interface:

- `UniversalCodonTable`, built once from the NCBI standard code shipped with
  Biopython (``Bio.Data.CodonTable.unambiguous_dna_by_id[1]``).
- `CustomCodonTable`, user supplied, validated to define exactly the 64
  codons over ``[ACGT]{3}`` and persisted as YAML.

All lookups are case-insensitive. Codons outside a table never raise: amino
acid lookups return None, flags and synonymy are False and the fold family is
0.
"""

import abc
import enum
import itertools
import logging
import re
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

import yaml
from Bio.Data import CodonTable as BioCodonTable
from Bio.Data.IUPACData import protein_letters_1to3

logger = logging.getLogger(__name__)

BASES = "ACGT"

# All 64 codons in A, C, G, T order (AAA, AAC, ..., TTT).
ALL_CODONS = tuple("".join(c) for c in itertools.product(BASES, repeat=3))

_CODON_RE = re.compile(r"^[ACGT]{3}$")

UNNAMED_TABLE = "Unnamed"

TERMINAL_NAME = "Terminal"
TERMINAL_TLC = "Ter"
TERMINAL_OLC = "*"

AMINO_ACID_NAMES = {
    "A": "Alanine",
    "C": "Cysteine",
    "D": "Aspartic acid",
    "E": "Glutamic acid",
    "F": "Phenylalanine",
    "G": "Glycine",
    "H": "Histidine",
    "I": "Isoleucine",
    "K": "Lysine",
    "L": "Leucine",
    "M": "Methionine",
    "N": "Asparagine",
    "P": "Proline",
    "Q": "Glutamine",
    "R": "Arginine",
    "S": "Serine",
    "T": "Threonine",
    "V": "Valine",
    "W": "Tryptophan",
    "Y": "Tyrosine",
}


class CodonTableError(ValueError):
    """Raised when a codon table cannot be built, loaded or saved."""


class AminoAcidNameType(enum.Enum):
    FULL = "full"
    THREE_LETTER = "three_letter"
    ONE_LETTER = "one_letter"


@dataclass(frozen=True)
class CodonRecord:
    """One row of a codon table."""

    sequence: str
    aminoacid: str
    tlc: str
    olc: str
    terminal: bool = False
    start: bool = False


def is_valid_codon(codon: Optional[str]) -> bool:
    """True for a three-letter string over A, C, G, T (any case)."""
    return codon is not None and bool(_CODON_RE.match(codon.upper()))


class CodonTable(abc.ABC):
    """Common interface and shared logic of all codon tables."""

    def __init__(self, name: str, records: Iterable[CodonRecord]):
        self._name = name or UNNAMED_TABLE
        self._records: Dict[str, CodonRecord] = {r.sequence: r for r in records}
        self._folds = {codon: self._compute_fold(codon) for codon in self._records}
        # Everything synonymy and terminal checks depend on, in codon order.
        self._signature = ",".join(
            f"{codon}:{record.olc}:{int(record.terminal)}"
            for codon, record in sorted(self._records.items())
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def signature(self) -> str:
        """Identity of the codon assignments, independent of the table name."""
        return self._signature

    def codons(self) -> List[str]:
        return list(self._records)

    def record(self, codon: Optional[str]) -> Optional[CodonRecord]:
        if codon is None:
            return None
        return self._records.get(codon.upper())

    def is_terminal(self, codon: Optional[str]) -> bool:
        record = self.record(codon)
        return record is not None and record.terminal

    def is_start(self, codon: Optional[str]) -> bool:
        record = self.record(codon)
        return record is not None and record.start

    def amino_acid(
        self,
        codon: Optional[str],
        name_type: AminoAcidNameType = AminoAcidNameType.ONE_LETTER,
    ) -> Optional[str]:
        record = self.record(codon)
        if record is None:
            return None
        if name_type is AminoAcidNameType.FULL:
            return record.aminoacid
        if name_type is AminoAcidNameType.THREE_LETTER:
            return record.tlc
        return record.olc

    def are_synonymous(self, codon1: Optional[str], codon2: Optional[str]) -> bool:
        """True when both codons encode the same one-letter amino acid."""
        aa1 = self.amino_acid(codon1)
        aa2 = self.amino_acid(codon2)
        if aa1 is None or aa2 is None:
            return False
        return aa1 == aa2

    def fold_family(self, codon: Optional[str]) -> int:
        """
        Number of third-position bases (the codon's own included) that keep
        the encoded amino acid; 0 for codons outside the table.
        """
        if codon is None:
            return 0
        return self._folds.get(codon.upper(), 0)

    def _compute_fold(self, codon: str) -> int:
        return sum(
            1 for base in BASES if self.are_synonymous(codon, codon[:2] + base)
        )

    @abc.abstractmethod
    def is_builtin(self) -> bool:
        """Whether the table ships with the package."""


class UniversalCodonTable(CodonTable):
    """The standard genetic code, ATG as the only start codon."""

    NAME = "Universal genetic code"

    def __init__(self):
        super().__init__(self.NAME, _standard_code_records())

    def is_builtin(self) -> bool:
        return True


def _standard_code_records() -> List[CodonRecord]:
    ncbi = BioCodonTable.unambiguous_dna_by_id[1]
    records = []
    for codon in ALL_CODONS:
        if codon in ncbi.stop_codons:
            records.append(
                CodonRecord(codon, TERMINAL_NAME, TERMINAL_TLC, TERMINAL_OLC, True)
            )
            continue
        olc = ncbi.forward_table[codon]
        records.append(
            CodonRecord(
                codon,
                AMINO_ACID_NAMES[olc],
                protein_letters_1to3[olc],
                olc,
                start=codon == "ATG",
            )
        )
    return records


class CustomCodonTable(CodonTable):
    """A user-defined table covering all 64 codons."""

    def is_builtin(self) -> bool:
        return False

    @classmethod
    def create(
        cls, records: Iterable[CodonRecord], name: Optional[str] = None
    ) -> "CustomCodonTable":
        """
        Build a table from exactly 64 unique, valid codon records.

        Raises
        ------
        CodonTableError
            If a codon is malformed, duplicated, or the table does not hold
            exactly 64 codons.
        """
        normalized = []
        seen = set()
        for record in records:
            codon = (record.sequence or "").upper()
            if not _CODON_RE.match(codon):
                raise CodonTableError(f"Invalid codon '{record.sequence}'.")
            if codon in seen:
                raise CodonTableError(f"Codon '{codon}' is defined more than once.")
            seen.add(codon)
            normalized.append(
                CodonRecord(
                    codon,
                    record.aminoacid,
                    record.tlc,
                    record.olc,
                    bool(record.terminal),
                    bool(record.start),
                )
            )
        if len(normalized) != len(ALL_CODONS):
            raise CodonTableError(
                f"A codon table must define 64 codons, got {len(normalized)}."
            )
        return cls(name or UNNAMED_TABLE, normalized)

    @classmethod
    def from_table(
        cls, table: CodonTable, name: Optional[str] = None
    ) -> "CustomCodonTable":
        """Copy of another table, e.g. to use the universal code as a template."""
        return cls.create(
            (table.record(c) for c in table.codons()), name or table.name
        )

    @classmethod
    def from_dict(cls, data: Mapping) -> "CustomCodonTable":
        if not isinstance(data, Mapping) or "codons" not in data:
            raise CodonTableError("Codon table document has no 'codons' section.")
        rows = data["codons"]
        if not isinstance(rows, list):
            raise CodonTableError("'codons' must be a list of codon records.")
        records = []
        for row in rows:
            try:
                records.append(
                    CodonRecord(
                        sequence=str(row["sequence"]),
                        aminoacid=str(row["aminoacid"]),
                        tlc=str(row["tlc"]),
                        olc=str(row["olc"]),
                        terminal=bool(row.get("terminal", False)),
                        start=bool(row.get("start", False)),
                    )
                )
            except (KeyError, TypeError, AttributeError) as e:
                raise CodonTableError(f"Malformed codon record {row!r}: {e}") from e
        return cls.create(records, data.get("name"))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "codons": [asdict(self._records[c]) for c in self.codons()],
        }

    @classmethod
    def load(cls, path: Union[str, Path]) -> "CustomCodonTable":
        """
        Load a table from a YAML file.

        Raises
        ------
        CodonTableError
            If the file cannot be read or does not describe a valid table.
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Could not read codon table {path}: {e}")
            raise CodonTableError(f"Could not read codon table {path}: {e}") from e
        table = cls.from_dict(data)
        logger.info(f"Loaded codon table '{table.name}' from {path}")
        return table

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        try:
            with open(path, "w") as f:
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        except OSError as e:
            logger.error(f"Could not write codon table {path}: {e}")
            raise CodonTableError(f"Could not write codon table {path}: {e}") from e


def load_codon_table(path: Optional[Union[str, Path]] = None) -> CodonTable:
    """Custom table from ``path`` or the universal table when no path is given."""
    if path is None:
        return universal_table()
    return CustomCodonTable.load(path)


_UNIVERSAL: Optional[UniversalCodonTable] = None
_UNIVERSAL_LOCK = threading.Lock()


def universal_table() -> UniversalCodonTable:
    """Shared instance of the universal table."""
    global _UNIVERSAL
    if _UNIVERSAL is None:
        with _UNIVERSAL_LOCK:
            if _UNIVERSAL is None:
                _UNIVERSAL = UniversalCodonTable()
    return _UNIVERSAL
