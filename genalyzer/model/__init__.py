"""Annotated sequence data model: datasets, genes, strains and regions."""

from genalyzer.model.annotations import Annotations
from genalyzer.model.dataset import Dataset
from genalyzer.model.gene import GeneEntry, UpsertResult
from genalyzer.model.region import GeneRegion
from genalyzer.model.strain import StrainEntry

__all__ = [
    "Annotations",
    "Dataset",
    "GeneEntry",
    "GeneRegion",
    "StrainEntry",
    "UpsertResult",
]
