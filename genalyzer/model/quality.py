"""
Low-level annotation and sequence quality checks.

Every checked entity gets ``annotations.quality_level`` (0 best, 5 worst) and
``annotations.quality_description``, a ``;``-separated list of the problems
found (empty when there are none).

Quality levels:

- 0: no errors
- 1: minor annotation problems (missing names, start or stop codon, ...)
- 2: invalid ORF
- 3: premature terminal codon
- 4: overlapping or misplaced regions, length mismatches, no populations
- 5: fatal problems (no strains, no regions, missing sequence, ...)
"""

import enum
import logging
import re
from typing import List

from genalyzer.codons.tables import CodonTable
from genalyzer.model.dataset import Dataset
from genalyzer.model.gene import GeneEntry
from genalyzer.model.region import EXON, INTRON, GeneRegion
from genalyzer.model.strain import StrainEntry

logger = logging.getLogger(__name__)

_SEQUENCE_RE = re.compile(r"^[ACGTNX-]+$")


class QualityLevel(enum.IntEnum):
    OK = 0
    MINOR = 1
    INVALID_ORF = 2
    PREMATURE_TERMINAL = 3
    SEVERE = 4
    FATAL = 5


class QualityChecker:
    """Assigns quality levels to genes, strains and regions."""

    def __init__(self, table: CodonTable):
        self.table = table

    def validate_dataset(self, dataset: Dataset) -> None:
        for gene in dataset:
            self.validate_gene(gene)

    def validate_gene(self, gene: GeneEntry) -> int:
        quality = QualityLevel.OK
        problems: List[str] = []
        if not gene.common_name:
            problems.append("Missing gene name")
            quality = QualityLevel.MINOR

        strains = gene.strains
        if not strains:
            problems.append("No strains specified")
            quality = QualityLevel.FATAL
        for i, strain in enumerate(strains):
            quality = max(quality, self.validate_strain(strain))
            if i == 0:
                continue
            # All strains of a gene must share the region layout.
            prev = strains[i - 1]
            if strain.regions_count() != prev.regions_count():
                quality = QualityLevel.FATAL
                problems.append(
                    f"Strains {prev.strain} and {strain.strain} have different "
                    "number of regions"
                )
                continue
            for n, (rc, rp) in enumerate(zip(strain.regions, prev.regions), start=1):
                if (
                    not rc.has_type(rp.type)
                    or rc.start != rp.start
                    or rc.end != rp.end
                ):
                    quality = QualityLevel.FATAL
                    problems.append(
                        f"Region #{n} differs in {prev.strain} and {strain.strain}"
                    )

        return _assign(gene, quality, problems)

    def validate_strain(self, strain: StrainEntry) -> int:
        quality = QualityLevel.OK
        problems: List[str] = []
        for value, label in (
            (strain.species, "species name"),
            (strain.strain, "strain name"),
            (strain.chromosome, "chromosomal location"),
        ):
            if not value:
                problems.append(f"Missing {label}")
                quality = QualityLevel.MINOR
        if not strain.populations:
            problems.append("No populations assigned")
            quality = QualityLevel.SEVERE

        regions = strain.regions
        if not regions:
            problems.append("No gene regions specified")
            return _assign(strain, QualityLevel.FATAL, problems)

        quality = max(quality, self._check_coding_sequence(strain, problems))

        if regions[0].start > 1:
            problems.append(
                f"The first region ({regions[0].type}) does not begin at sequence start"
            )
            quality = max(quality, QualityLevel.SEVERE)
        last_end = regions[0].end
        quality = max(quality, self.validate_region(regions[0]))
        for i in range(1, len(regions)):
            region = regions[i]
            quality = max(quality, self.validate_region(region))
            label = (
                f"regions {i} ({regions[i - 1].type}) and {i + 1} ({region.type})"
            )
            if region.start > last_end + 1:
                problems.append(f"Gap between {label}")
                quality = max(quality, QualityLevel.SEVERE)
            if region.start <= last_end:
                problems.append(f"Overlap between {label}")
                quality = max(quality, QualityLevel.SEVERE)
            last_end = region.end

        return _assign(strain, quality, problems)

    def _check_coding_sequence(self, strain: StrainEntry, problems: List[str]) -> int:
        quality = QualityLevel.OK
        cds = strain.coding_sequence()
        if len(cds) % 3:
            # Only an ORF cut by a trailing non-coding region is invalid.
            last = strain.get_region(strain.regions_count() - 1)
            if not last.has_type(EXON) and not last.has_type(INTRON):
                problems.append(f"Invalid ORF ({len(cds)} bp)")
                quality = max(quality, QualityLevel.INVALID_ORF)
            else:
                problems.append(f"Incomplete ORF ({len(cds)} bp)")
                quality = max(quality, QualityLevel.MINOR)

        length = (len(cds) // 3) * 3
        has_stop = False
        for pos in range(0, length, 3):
            if not self.table.is_terminal(cds[pos : pos + 3]):
                continue
            if pos < len(cds) - 3:
                problems.append(
                    f"A premature terminal codon found at position {pos + 1} "
                    "of the coding sequence"
                )
                quality = max(quality, QualityLevel.PREMATURE_TERMINAL)
            else:
                has_stop = True
        if not has_stop:
            problems.append("Stop codon missing")
            quality = max(quality, QualityLevel.MINOR)
        if length > 2 and not self.table.is_start(cds[:3]):
            problems.append("Start codon missing")
            quality = max(quality, QualityLevel.MINOR)
        return quality

    def validate_region(self, region: GeneRegion) -> int:
        quality = QualityLevel.OK
        problems: List[str] = []
        if not region.type:
            problems.append("Region type missing")
            quality = QualityLevel.SEVERE
        if region.start < 1 or region.end < region.start:
            problems.append("Invalid start/end position")
            quality = QualityLevel.SEVERE
        if not region.sequence:
            problems.append("Missing sequence")
            quality = QualityLevel.FATAL
        elif not _SEQUENCE_RE.match(region.sequence):
            problems.append("Sequence contains invalid characters")
            quality = QualityLevel.FATAL
        if len(region) != region.end - region.start + 1:
            problems.append(
                "Actual sequence length differs from the one given by the start/end"
            )
            quality = max(quality, QualityLevel.SEVERE)
        return _assign(region, quality, problems)


def _assign(entity, quality: int, problems: List[str]) -> int:
    entity.annotations.quality_level = int(quality)
    entity.annotations.quality_description = ";".join(problems)
    if problems:
        logger.debug(f"{entity!r}: quality level {int(quality)} ({problems[0]}...)")
    return int(quality)
