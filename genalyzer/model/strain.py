"""Strain entries: one strain's annotated sequence of a gene."""

from operator import attrgetter
from typing import Iterable, List, Optional

from genalyzer.model.annotations import Annotations
from genalyzer.model.region import EXON, GeneRegion


class StrainEntry:
    """
    Species/strain identity, population tags and an ordered region list.

    Regions are kept sorted by start position after every insertion.
    Overlapping regions are allowed; nothing is de-duplicated.
    """

    def __init__(
        self,
        species: Optional[str] = "",
        strain: Optional[str] = "",
        chromosome: Optional[str] = "",
    ):
        self.species = species or ""
        self.strain = strain or ""
        self.chromosome = chromosome or ""
        self.annotations = Annotations()
        self._populations: List[str] = []
        self._regions: List[GeneRegion] = []

    def __repr__(self) -> str:
        return (
            f"StrainEntry({self.species!r}, {self.strain!r}, "
            f"regions={len(self._regions)})"
        )

    def same_identity(self, other: "StrainEntry") -> bool:
        """True when species and strain names match case-insensitively."""
        return (
            self.species.lower() == other.species.lower()
            and self.strain.lower() == other.strain.lower()
        )

    # --- Populations ---

    def add_populations(self, *populations: Optional[str]) -> None:
        for population in populations:
            if population is not None:
                self._populations.append(population)

    def remove_populations(self, *populations: str) -> None:
        for population in populations:
            if population in self._populations:
                self._populations.remove(population)

    @property
    def populations(self) -> List[str]:
        return list(self._populations)

    def belongs_to_population(self, population: Optional[str]) -> bool:
        # An empty query matches every strain.
        if not population:
            return True
        wanted = population.lower()
        return any(p.lower() == wanted for p in self._populations)

    # --- Regions ---

    @property
    def regions(self) -> List[GeneRegion]:
        return list(self._regions)

    def regions_count(self, region_type: Optional[str] = None) -> int:
        if region_type is None:
            return len(self._regions)
        return sum(1 for r in self._regions if r.has_type(region_type))

    def get_region(self, index: int) -> Optional[GeneRegion]:
        if 0 <= index < len(self._regions):
            return self._regions[index]
        return None

    def region_at_site(self, site: int) -> Optional[GeneRegion]:
        """First region covering the 1-based position ``site``."""
        if site < 1:
            return None
        for region in self._regions:
            if region.start <= site <= region.end:
                return region
        return None

    def add_region(self, region: Optional[GeneRegion]) -> None:
        if region is None:
            return
        self._regions.append(region)
        self._regions.sort(key=attrgetter("start"))

    def remove_region(self, index: int) -> None:
        if 0 <= index < len(self._regions):
            del self._regions[index]

    def list_region_names(self) -> List[str]:
        return [r.type for r in self._regions]

    # --- Derived sequences ---

    def complete_sequence(self) -> str:
        return "".join(r.sequence for r in self._regions)

    def coding_sequence(self) -> str:
        """Concatenated exon sequences in positional order."""
        return self.sequence(EXON)

    def sequence(self, *region_types: str) -> str:
        return "".join(
            r.sequence for r in self._regions if _has_any_type(r, region_types)
        )


def _has_any_type(region: GeneRegion, region_types: Iterable[str]) -> bool:
    return any(region.has_type(t) for t in region_types)
