"""Mutation helpers that derive new :class:`BlobGenotype` trees from old ones."""

from __future__ import annotations

import logging
import math
import random
from typing import List, Optional, Tuple

from ..systems import telemetry
from .genotype import PARENT_SENTINEL, BlobGenotype, LimbGene, sample_limb

__all__ = [
    "MutationError",
    "mutate_genotype",
    "mutate_lose_limb",
    "mutate_gain_limb",
    "mutate_joint_limits",
    "mutate_limb_size",
]

logger = logging.getLogger("evoblob.morphology")

_JOINT_STEP = 0.2
_SIZE_STEP = 0.2
_MIN_HALF_EXTENT = 1.0


class MutationError(RuntimeError):
    """Raised when a mutation cannot be applied or violates constraints."""


def mutate_genotype(
    genotype: BlobGenotype, *, rng: Optional[random.Random] = None
) -> Tuple[BlobGenotype, str]:
    """Apply a random mutation and return a new genotype and a description."""

    rng = rng or random
    operations = [
        mutate_lose_limb,
        mutate_gain_limb,
        mutate_joint_limits,
        mutate_limb_size,
    ]
    rng.shuffle(operations)
    for operation in operations:
        try:
            mutated, description = operation(genotype, rng=rng)
        except MutationError as exc:
            logger.debug("%s not applicable: %s", operation.__name__, exc)
            continue
        telemetry.log_event("mutation", operation.__name__, details={"description": description})
        return mutated, description
    raise MutationError("No mutation could be applied")


def mutate_lose_limb(
    genotype: BlobGenotype,
    *,
    rng: Optional[random.Random] = None,
    target: Optional[int] = None,
) -> Tuple[BlobGenotype, str]:
    """Remove a leaf limb together with whatever hangs below it."""

    rng = rng or random
    leaves = genotype.leaf_nodes()
    if not leaves:
        raise MutationError("Genotype has no removable limbs")
    if target is not None:
        if target not in leaves:
            raise MutationError(f"Node {target} is not a leaf limb")
        victim = target
    else:
        victim = rng.choice(leaves)

    mutated = genotype.copy()
    mutated.tree.clean_subtree(victim)
    return mutated, f"Removed limb {victim}"


def mutate_gain_limb(
    genotype: BlobGenotype,
    *,
    rng: Optional[random.Random] = None,
    target: Optional[int] = None,
) -> Tuple[BlobGenotype, str]:
    """Grow a random limb into a free slot of a branchable limb."""

    rng = rng or random
    candidates = genotype.branchable_limbs()
    if not candidates:
        raise MutationError("Genotype has no free limb slots")
    if target is not None:
        if target not in candidates:
            raise MutationError(f"Node {target} cannot grow another limb")
        parent_index = target
    else:
        parent_index = rng.choice(candidates)

    mutated = genotype.copy()
    tree = mutated.tree
    parent = mutated.limb_at(parent_index)
    children = tree.children(parent_index)
    free = [child for child in children if tree.get(child) is None]
    slot = rng.choice(free)
    direction = mutated.direction_of(slot)
    if parent is None or direction is None:
        raise MutationError(f"Node {parent_index} is not a limb")

    if len(free) == len(children):
        # First child of this limb: reserve the parent marker too
        others = [child for child in free if child != slot]
        tree.nodes[rng.choice(others)] = PARENT_SENTINEL

    tree.nodes[slot] = sample_limb(parent, direction, rng)
    if not mutated.is_valid():
        raise MutationError(f"New {direction.value} limb on node {parent_index} overlaps the body")
    return mutated, f"Added {direction.value} limb to node {parent_index}"


def mutate_joint_limits(
    genotype: BlobGenotype,
    *,
    rng: Optional[random.Random] = None,
    target: Optional[int] = None,
) -> Tuple[BlobGenotype, str]:
    """Nudge the hinge range of one limb."""

    rng = rng or random
    index = _select_limb(_jointed_limbs(genotype), rng=rng, target=target)

    mutated = genotype.copy()
    limb = mutated.limb_at(index)
    if limb is None:
        raise MutationError(f"Node {index} is not a limb")
    lower, upper = limb.joint_limits
    lower = min(0.0, max(-math.pi, lower + rng.uniform(-_JOINT_STEP, _JOINT_STEP)))
    upper = min(math.pi, max(0.0, upper + rng.uniform(-_JOINT_STEP, _JOINT_STEP)))
    limb.joint_limits = (lower, upper)
    return mutated, f"Adjusted joint limits of node {index} to {lower:.2f}/{upper:.2f}"


def mutate_limb_size(
    genotype: BlobGenotype,
    *,
    rng: Optional[random.Random] = None,
    target: Optional[int] = None,
) -> Tuple[BlobGenotype, str]:
    """Rescale a leaf limb and keep it flush against its parent."""

    rng = rng or random
    index = _select_limb(genotype.leaf_nodes(), rng=rng, target=target)

    mutated = genotype.copy()
    tree = mutated.tree
    limb = mutated.limb_at(index)
    parent_index = tree.parent(index)
    parent = mutated.limb_at(parent_index) if parent_index is not None else None
    direction = mutated.direction_of(index)
    if limb is None or parent is None or direction is None:
        raise MutationError(f"Node {index} has no parent limb")

    delta = rng.uniform(-_SIZE_STEP, _SIZE_STEP)
    half_extent = (
        max(_MIN_HALF_EXTENT, limb.half_extent[0] * (1.0 + delta)),
        max(_MIN_HALF_EXTENT, limb.half_extent[1] * (1.0 + delta)),
    )
    step_x, step_y = direction.unit
    center = (
        parent.center[0] + step_x * (parent.half_extent[0] + half_extent[0]),
        parent.center[1] + step_y * (parent.half_extent[1] + half_extent[1]),
    )
    tree.nodes[index] = LimbGene(
        joint_limits=limb.joint_limits,
        half_extent=half_extent,
        center=center,
        control_id=limb.control_id,
    )
    if not mutated.is_valid():
        raise MutationError(f"Resized limb {index} overlaps the body")
    return mutated, f"Scaled limb {index} by {delta:+.2f}"


def _jointed_limbs(genotype: BlobGenotype) -> List[int]:
    return [index for index, _ in genotype.limbs() if index != 0]


def _select_limb(
    candidates: List[int],
    *,
    rng: random.Random,
    target: Optional[int],
) -> int:
    if not candidates:
        raise MutationError("Genotype has no suitable limbs")
    if target is not None:
        if target not in candidates:
            raise MutationError(f"Node {target} is not a suitable limb")
        return target
    return rng.choice(candidates)
