"""Turn a :class:`BlobGenotype` into engine segments through an assembler."""

from __future__ import annotations

import logging
from typing import Sequence

from pygame.math import Vector2

from ..body.assembler import BodyAssembler
from ..body.attachment import DIRECTIONS
from ..body.segment import SegmentSpec
from ..systems import telemetry
from .genotype import BlobGenotype, GenotypeInvariantError, LimbGene

__all__ = ["GenotypeBodyMapper"]

logger = logging.getLogger("evoblob.morphology")


class GenotypeBodyMapper:
    """Walk a genotype depth first and mirror it with the assembler cursor.

    Control ids handed out by the engine are written back into the genotype
    the first time a limb is built, so rebuilding the same genotype keeps the
    ids it was given before.
    """

    def __init__(self, assembler: BodyAssembler) -> None:
        self.assembler = assembler

    def build(self, genotype: BlobGenotype, origin: Sequence[float] = (0.0, 0.0)) -> None:
        root = genotype.root()
        if root is None:
            raise GenotypeInvariantError("Genotype root is not a limb")

        self.assembler.clear()
        spec = SegmentSpec(center=Vector2(origin), half_extent=Vector2(root.half_extent))
        root_id = self.assembler.create_first(spec)
        genotype.assign_control_id_to_root(root_id)

        self._build_node(genotype, 0)

        self.assembler.attach_group_data(genotype=genotype.copy())
        info = self.assembler.info
        logger.debug(
            "Built blob group %s with %d segments (%.1f x %.1f)",
            self.assembler.group,
            len(self.assembler),
            info.width,
            info.height,
        )
        telemetry.build_sample(
            group=self.assembler.group,
            segments=len(self.assembler),
            joints=max(0, len(self.assembler) - 1),
            root_control_id=root.control_id,
            width=info.width,
            height=info.height,
        )

    def _build_node(self, genotype: BlobGenotype, index: int) -> None:
        tree = genotype.tree
        for direction, child_index in zip(DIRECTIONS, tree.children(index)):
            child = tree.get(child_index)
            if not isinstance(child, LimbGene):
                continue
            built_before = len(self.assembler)
            physical_id = self.assembler.attach_in_direction(
                direction,
                child.half_extent[0],
                child.half_extent[1],
                None,
                child.joint_limits,
            )
            if len(self.assembler) == built_before:
                # The side points back at an existing segment; nothing to walk into.
                logger.warning("Skipping limb %d: %s side is already taken", child_index, direction.value)
                continue
            if child.control_id is None and physical_id is not None:
                child.control_id = physical_id
            self._build_node(genotype, child_index)
            self.assembler.move(direction.opposite)
