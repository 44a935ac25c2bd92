from __future__ import annotations

from typing import List

from evoblob.morphology.genotype import PARENT_SENTINEL, BlobGenotype, LimbGene, ParentSentinel


def build_genotype() -> BlobGenotype:
    """Return a small hand-laid genotype used across tests.

    Layout (max depth 2)::

        0 root   centre (0, 0)     half (50, 50)
        1 top    centre (0, 75)    half (25, 25)
        2 bottom parent marker
        4 right  centre (100, 0)   half (50, 50)
        5 top of 1, centre (0, 125) half (25, 25)
        6 bottom of 1, parent marker
    """

    genotype = BlobGenotype(max_depth=2)
    nodes = genotype.tree.nodes
    nodes[0] = LimbGene(half_extent=(50.0, 50.0), center=(0.0, 0.0))
    nodes[1] = LimbGene(joint_limits=(-1.0, 1.2), half_extent=(25.0, 25.0), center=(0.0, 75.0))
    nodes[2] = PARENT_SENTINEL
    nodes[4] = LimbGene(joint_limits=(-0.5, 0.5), half_extent=(50.0, 50.0), center=(100.0, 0.0))
    nodes[5] = LimbGene(joint_limits=(-0.3, 0.4), half_extent=(25.0, 25.0), center=(0.0, 125.0))
    nodes[6] = PARENT_SENTINEL
    return genotype


def sentinel_violations(genotype: BlobGenotype) -> List[int]:
    """Indices whose occupied children do not hold exactly one parent marker."""

    tree = genotype.tree
    bad: List[int] = []
    for index in range(tree.capacity):
        children = tree.children(index)
        if children[-1] >= tree.capacity:
            continue
        occupied = [tree.get(child) for child in children if tree.get(child) is not None]
        if not occupied:
            continue
        markers = sum(1 for node in occupied if isinstance(node, ParentSentinel))
        if markers != 1:
            bad.append(index)
    return bad
