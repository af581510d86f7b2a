"""The top-level container of gene entries."""

import logging
from typing import Dict, Iterator, List, Optional

from genalyzer.model.annotations import Annotations
from genalyzer.model.gene import GeneEntry, UpsertResult

logger = logging.getLogger(__name__)


class Dataset:
    """
    Ordered collection of genes, unique by case-folded common name.

    Adding a gene whose name is already present merges its strains into the
    existing entry using the strain upsert rule of `GeneEntry.add_strain`.
    """

    def __init__(self):
        self.annotations = Annotations()
        self._genes: List[GeneEntry] = []
        self._index: Dict[str, GeneEntry] = {}

    def __len__(self) -> int:
        return len(self._genes)

    def __iter__(self) -> Iterator[GeneEntry]:
        return iter(list(self._genes))

    def __repr__(self) -> str:
        return f"Dataset(genes={len(self._genes)})"

    @property
    def genes(self) -> List[GeneEntry]:
        return list(self._genes)

    def add_gene(self, gene: Optional[GeneEntry]) -> UpsertResult:
        """Insert ``gene`` or fold its strains into the entry with the same name."""
        if gene is None:
            return UpsertResult.UNCHANGED
        existing = self._index.get(gene.key)
        if existing is gene:
            return UpsertResult.UNCHANGED
        if existing is not None:
            for strain in gene.strains:
                existing.add_strain(strain)
            logger.debug(f"Merged gene '{gene.common_name}' into existing entry.")
            return UpsertResult.MERGED
        self._genes.append(gene)
        self._index[gene.key] = gene
        return UpsertResult.INSERTED

    def get_gene(self, index: int) -> Optional[GeneEntry]:
        if 0 <= index < len(self._genes):
            return self._genes[index]
        return None

    def find_gene(self, name: str) -> Optional[GeneEntry]:
        return self._index.get(name.casefold())

    def has_gene(self, name: str) -> bool:
        return name.casefold() in self._index

    def remove_gene(self, index: int) -> None:
        if 0 <= index < len(self._genes):
            gene = self._genes.pop(index)
            self._index.pop(gene.key, None)

    def list_populations(self) -> List[str]:
        """Sorted, de-duplicated population names across all genes."""
        return sorted({p for g in self._genes for p in g.list_populations()})

    def list_region_names(self) -> List[str]:
        """De-duplicated region type names in order of first appearance."""
        return list(
            dict.fromkeys(n for g in self._genes for n in g.list_region_names())
        )

    def merge(self, other: Optional["Dataset"]) -> None:
        if other is None:
            return
        for gene in other.genes:
            self.add_gene(gene)

    def sort(self) -> None:
        """Sort genes by common name."""
        self._genes.sort(key=lambda g: g.common_name)

    def sort_by_quality(self) -> None:
        """
        Sort genes by annotated quality level, best (0) first.

        Genes without a quality level go last.
        """
        self._genes.sort(
            key=lambda g: (
                g.annotations.quality_level is None,
                g.annotations.quality_level or 0,
            )
        )
