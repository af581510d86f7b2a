"""Gene entries and the strain upsert rule."""

import enum
import logging
from typing import List, Optional

from genalyzer.model.annotations import Annotations
from genalyzer.model.strain import StrainEntry

logger = logging.getLogger(__name__)


class UpsertResult(enum.Enum):
    """Outcome of adding an entity that may already be present."""

    INSERTED = "inserted"
    MERGED = "merged"
    UNCHANGED = "unchanged"


class GeneEntry:
    """
    A gene identified by its common name, holding one entry per strain.

    Strains are unique by (species, strain) compared case-insensitively.
    Adding a strain that matches an existing one appends its regions to the
    existing strain instead of creating a duplicate.
    """

    def __init__(self, common_name: Optional[str] = "", alias: Optional[str] = ""):
        self._common_name = common_name or ""
        self.alias = alias or ""
        self.annotations = Annotations()
        self._strains: List[StrainEntry] = []

    def __repr__(self) -> str:
        return f"GeneEntry({self.common_name!r}, strains={len(self._strains)})"

    def __len__(self) -> int:
        return len(self._strains)

    @property
    def common_name(self) -> str:
        """Read-only, since a `Dataset` indexes genes by it."""
        return self._common_name

    @property
    def key(self) -> str:
        """Normalized identity used for de-duplication."""
        return self.common_name.casefold()

    @property
    def strains(self) -> List[StrainEntry]:
        return list(self._strains)

    def add_strain(self, strain: Optional[StrainEntry]) -> UpsertResult:
        """
        Insert ``strain`` or merge its regions into a matching entry.

        Returns
        -------
        UpsertResult
            INSERTED for a new strain, MERGED when regions were folded into an
            existing strain, UNCHANGED for ``None`` or an already-held object.
        """
        if strain is None:
            return UpsertResult.UNCHANGED
        for existing in self._strains:
            if existing is strain:
                return UpsertResult.UNCHANGED
            if existing.same_identity(strain):
                for region in strain.regions:
                    existing.add_region(region)
                logger.debug(
                    f"Merged strain '{strain.strain}' into gene '{self.common_name}'."
                )
                return UpsertResult.MERGED
        self._strains.append(strain)
        return UpsertResult.INSERTED

    def remove_strain(self, index: int) -> None:
        if 0 <= index < len(self._strains):
            del self._strains[index]

    def has_strain(self, strain_name: str) -> bool:
        wanted = strain_name.lower()
        return any(s.strain.lower() == wanted for s in self._strains)

    def get_strain(self, index: int) -> Optional[StrainEntry]:
        if 0 <= index < len(self._strains):
            return self._strains[index]
        return None

    def list_populations(self) -> List[str]:
        """Population tags of all strains, first occurrence order."""
        return list(dict.fromkeys(p for s in self._strains for p in s.populations))

    def list_region_names(self) -> List[str]:
        return list(
            dict.fromkeys(n for s in self._strains for n in s.list_region_names())
        )
