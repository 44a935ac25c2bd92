"""Genotype trees and the mapping from genotype to body."""

from .builder import GenotypeBodyMapper
from .genotype import (
    PARENT_SENTINEL,
    BlobGenotype,
    GenotypeInvariantError,
    LimbGene,
    OccupancyMap,
    ParentSentinel,
)
from .mutation import MutationError, mutate_genotype
from .quadtree import QuadTree, tree_capacity

__all__ = [
    "BlobGenotype",
    "GenotypeBodyMapper",
    "GenotypeInvariantError",
    "LimbGene",
    "MutationError",
    "OccupancyMap",
    "PARENT_SENTINEL",
    "ParentSentinel",
    "QuadTree",
    "mutate_genotype",
    "tree_capacity",
]
