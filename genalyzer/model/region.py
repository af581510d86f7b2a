"""
Annotated gene regions.

A `GeneRegion` is a typed stretch (exon, intron, UTR, ...) of one strain's
sequence. Coordinates are 1-based and inclusive; ``start == 0`` means unset.
"""

from typing import Optional

from genalyzer.model.annotations import Annotations
from genalyzer.sequence.buffer import SequenceBuffer

CDS = "CDS"
EXON = "Exon"
INTRON = "Intron"
UTR5 = "5'UTR"
UTR3 = "3'UTR"
INTERGENIC = "Intergenic"
MRNA = "mRNA"
UNNAMED = "Unnamed"

REGION_TYPES = (CDS, EXON, INTRON, UTR5, UTR3, INTERGENIC, MRNA, UNNAMED)


class GeneRegion:
    """
    One annotated region with its own sequence.

    Editing methods keep ``end`` consistent with the sequence length. Regions
    located downstream in the same strain are not shifted; callers re-index
    them when needed.
    """

    def __init__(
        self,
        region_type: Optional[str] = None,
        sequence: str = "",
        start: int = 0,
        end: int = 0,
    ):
        self.type = region_type or UNNAMED
        self.annotations = Annotations()
        self._start = 0
        self._end = 0
        self._sequence = SequenceBuffer()
        self.sequence = sequence
        self.start = start
        self.end = end

    def __repr__(self) -> str:
        return f"GeneRegion({self.type!r}, start={self._start}, end={self._end})"

    # Natural ordering is by start position only; equal starts are ties.
    def __lt__(self, other: "GeneRegion") -> bool:
        return self._start < other._start

    def __gt__(self, other: "GeneRegion") -> bool:
        return self._start > other._start

    # --- Coordinates ---

    @property
    def start(self) -> int:
        return self._start

    @start.setter
    def start(self, value: int) -> None:
        self._start = value if value > 0 else 0

    @property
    def end(self) -> int:
        return self._end

    @end.setter
    def end(self, value: int) -> None:
        self._end = value if value >= self._start else 0

    # --- Sequence ---

    @property
    def sequence(self) -> str:
        return str(self._sequence)

    @sequence.setter
    def sequence(self, value: Optional[str]) -> None:
        self._sequence = SequenceBuffer((value or "").replace("\n", "")).uppercase()

    def __len__(self) -> int:
        return len(self._sequence)

    def has_type(self, region_type: Optional[str]) -> bool:
        if not region_type:
            return False
        return self.type.lower() == region_type.lower()

    # --- Editing ---

    def replace_base(self, site: int, base: str) -> bool:
        if 0 <= site < len(self._sequence):
            self._sequence.set_base_at(site, base.upper())
            return True
        return False

    def insert_base(self, site: int, base: str) -> bool:
        if 0 <= site <= len(self._sequence):
            self._sequence.insert_base(site, base)
            self._end += 1
            return True
        return False

    def remove_base(self, site: int) -> bool:
        if 0 <= site < len(self._sequence):
            self._sequence.remove_base(site)
            self._end -= 1
            return True
        return False

    def remove_bases(self, start: int, count: int) -> int:
        if start < 0 or start >= len(self._sequence) or count < 1:
            return 0
        removed = self._sequence.remove_bases(start, count)
        self._end -= removed
        return removed
