"""Quad-tree genotypes describing the limb layout of a blob."""

from __future__ import annotations

import json
import logging
import math
import random
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..body.attachment import DIRECTIONS, Direction
from ..config import settings
from .quadtree import QuadTree

__all__ = [
    "GenotypeInvariantError",
    "ParentSentinel",
    "PARENT_SENTINEL",
    "LimbGene",
    "OccupancyMap",
    "BlobGenotype",
    "sample_limb",
]

logger = logging.getLogger("evoblob.morphology")

Box = Tuple[float, float, float, float]


class GenotypeInvariantError(RuntimeError):
    """Raised when a genotype is asked to do something its shape forbids."""


@dataclass(frozen=True)
class ParentSentinel:
    """Marks the child slot that points back at the parent."""

    def to_dict(self) -> Dict[str, object]:
        return {"kind": "parent"}


PARENT_SENTINEL = ParentSentinel()


def _pair(values: Sequence[float], name: str) -> Tuple[float, float]:
    first, second = values
    pair = (float(first), float(second))
    if not all(math.isfinite(value) for value in pair):
        raise ValueError(f"{name} must be finite, got {pair}")
    return pair


@dataclass
class LimbGene:
    """Geometry, hinge range and control handle of one limb."""

    joint_limits: Tuple[float, float] = (-math.pi, math.pi)
    half_extent: Tuple[float, float] = field(
        default_factory=lambda: (float(settings.BLOCK_HALF_WIDTH), float(settings.BLOCK_HALF_HEIGHT))
    )
    center: Tuple[float, float] = (0.0, 0.0)
    control_id: Optional[int] = None

    def __post_init__(self) -> None:
        self.joint_limits = _pair(self.joint_limits, "joint_limits")
        self.half_extent = _pair(self.half_extent, "half_extent")
        self.center = _pair(self.center, "center")
        if self.half_extent[0] < 0.0 or self.half_extent[1] < 0.0:
            raise ValueError(f"half_extent must be non-negative, got {self.half_extent}")

    def box(self) -> Box:
        """Return ``(x_min, x_max, y_min, y_max)`` of the limb."""

        (cx, cy), (dx, dy) = self.center, self.half_extent
        return (cx - dx, cx + dx, cy - dy, cy + dy)

    def to_dict(self) -> Dict[str, object]:
        return {
            "kind": "limb",
            "joint_limits": list(self.joint_limits),
            "half_extent": list(self.half_extent),
            "center": list(self.center),
            "control_id": self.control_id,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "LimbGene":
        control_id = data.get("control_id")
        return cls(
            joint_limits=tuple(data.get("joint_limits", (-math.pi, math.pi))),  # type: ignore[arg-type]
            half_extent=tuple(
                data.get("half_extent", (settings.BLOCK_HALF_WIDTH, settings.BLOCK_HALF_HEIGHT))  # type: ignore[arg-type]
            ),
            center=tuple(data.get("center", (0.0, 0.0))),  # type: ignore[arg-type]
            control_id=None if control_id is None else int(control_id),  # type: ignore[arg-type]
        )


GenoNode = Union[ParentSentinel, LimbGene]


class OccupancyMap:
    """Flat list of claimed boxes, checked in insertion order.

    Without a tolerance the overlap test is inclusive, so boxes that merely
    touch collide; ``slack`` widens that test so edges that miss each other
    by rounding error still count as touching. With a tolerance each
    comparison is shrunk by that amount and flush neighbours pass.
    """

    def __init__(self, tolerance: Optional[float] = None, slack: float = 0.0) -> None:
        self.tolerance = tolerance
        self.slack = slack
        self.boxes: List[Box] = []

    def overlaps(self, box: Box) -> bool:
        x_min, x_max, y_min, y_max = box
        eps = self.tolerance
        slack = self.slack
        for other in self.boxes:
            if eps is None:
                x_hit = x_min <= other[1] + slack and x_max + slack >= other[0]
                y_hit = y_min <= other[3] + slack and y_max + slack >= other[2]
            else:
                x_hit = x_min < other[1] - eps and x_max - eps > other[0]
                y_hit = y_min < other[3] - eps and y_max - eps > other[2]
            if x_hit and y_hit:
                return True
        return False

    def claim(self, box: Box) -> bool:
        """Record ``box`` unless it overlaps; return whether it was accepted."""

        if self.overlaps(box):
            return False
        self.boxes.append(box)
        return True

    def __len__(self) -> int:
        return len(self.boxes)


def sample_limb(
    parent: LimbGene,
    direction: Direction,
    rng: Optional[random.Random] = None,
) -> LimbGene:
    """Draw a random limb sitting flush against ``parent`` on ``direction``."""

    rng = rng or random
    width = float(settings.BLOCK_HALF_WIDTH)
    height = float(settings.BLOCK_HALF_HEIGHT)
    low, high = float(settings.SIZE_SCALE_MIN), float(settings.SIZE_SCALE_MAX)
    if not all(math.isfinite(value) for value in (width, height, low, high)):
        raise ValueError("Block size settings must be finite")

    reach = float(settings.JOINT_LIMIT_SCALE) * math.pi
    joint_limits = (rng.uniform(-reach, 0.0), rng.uniform(0.0, reach))

    parent_w, parent_h = parent.half_extent
    if direction.is_vertical:
        half_extent = (rng.uniform(low * width, parent_w), rng.uniform(low * height, high * height))
    else:
        half_extent = (rng.uniform(low * width, high * width), rng.uniform(low * height, parent_h))

    step_x, step_y = direction.unit
    center = (
        parent.center[0] + step_x * (parent_w + half_extent[0]),
        parent.center[1] + step_y * (parent_h + half_extent[1]),
    )
    return LimbGene(joint_limits=joint_limits, half_extent=half_extent, center=center)


class BlobGenotype:
    """Declarative limb tree of a blob.

    Slot 0 holds the root limb. Every node that has children keeps exactly
    one :data:`PARENT_SENTINEL` among them, so a limb branches at most three
    ways.
    """

    def __init__(self, max_depth: Optional[int] = None) -> None:
        depth = settings.GENO_MAX_DEPTH if max_depth is None else max_depth
        self.tree: QuadTree[GenoNode] = QuadTree(int(depth))

    # ------------------------------------------------------------------
    # Construction

    @classmethod
    def random(
        cls,
        rng: Optional[random.Random] = None,
        max_depth: Optional[int] = None,
    ) -> "BlobGenotype":
        """Grow a random, overlap-free genotype."""

        rng = rng or random
        genotype = cls(max_depth)
        genotype.tree.nodes[0] = LimbGene()
        _grow(genotype.tree, 0, OccupancyMap(slack=settings.POSITION_EPSILON), rng)
        logger.debug(
            "Generated genotype with %d limbs (max depth %d)",
            len(genotype.limbs()),
            genotype.max_depth,
        )
        return genotype

    @property
    def max_depth(self) -> int:
        return self.tree.max_depth

    # ------------------------------------------------------------------
    # Queries

    def root(self) -> Optional[LimbGene]:
        return self.limb_at(0)

    def limb_at(self, index: int) -> Optional[LimbGene]:
        node = self.tree.get(index)
        return node if isinstance(node, LimbGene) else None

    def limbs(self) -> List[Tuple[int, LimbGene]]:
        return [
            (index, node) for index, node in enumerate(self.tree.nodes) if isinstance(node, LimbGene)
        ]

    def control_ids(self) -> Dict[int, int]:
        return {index: limb.control_id for index, limb in self.limbs() if limb.control_id is not None}

    def is_valid(self) -> bool:
        """Return ``False`` when any two limbs overlap by more than a hair."""

        occupancy = OccupancyMap(tolerance=settings.POSITION_EPSILON)

        def _check(index: int) -> bool:
            node = self.tree.get(index)
            if not isinstance(node, LimbGene):
                return True
            if not occupancy.claim(node.box()):
                logger.debug("Limb %d overlaps an earlier limb", index)
                return False
            return all(_check(child) for child in self.tree.children(index))

        return _check(0)

    def leaf_nodes(self) -> List[int]:
        """Non-root limb slots whose children are all empty or the parent marker."""

        result: List[int] = []
        for index in range(1, self.tree.capacity):
            node = self.tree.nodes[index]
            if node is None or isinstance(node, ParentSentinel):
                continue
            if all(
                self.tree.get(child) is None or isinstance(self.tree.get(child), ParentSentinel)
                for child in self.tree.children(index)
            ):
                result.append(index)
        return result

    def branchable_nodes(self) -> List[int]:
        return self.tree.branchable_nodes()

    def branchable_limbs(self) -> List[int]:
        return [index for index in self.tree.branchable_nodes() if isinstance(self.tree.nodes[index], LimbGene)]

    def direction_of(self, index: int) -> Optional[Direction]:
        """Side of its parent that the node at ``index`` grows from."""

        if index <= 0:
            return None
        return DIRECTIONS[(index - 1) % 4]

    # ------------------------------------------------------------------
    # Mutation of control ids

    def assign_control_id_to_root(self, control_id: int) -> None:
        root = self.tree.get(0)
        if not isinstance(root, LimbGene):
            raise GenotypeInvariantError("Genotype root is not a limb")
        if root.control_id is None:
            root.control_id = control_id

    # ------------------------------------------------------------------
    # Serialization

    def to_dict(self) -> Dict[str, object]:
        return {
            "max_depth": self.max_depth,
            "nodes": [None if node is None else node.to_dict() for node in self.tree.nodes],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "BlobGenotype":
        genotype = cls(int(data.get("max_depth", settings.GENO_MAX_DEPTH)))  # type: ignore[arg-type]
        raw_nodes = list(data.get("nodes", []))  # type: ignore[call-overload]
        capacity = genotype.tree.capacity
        if len(raw_nodes) > capacity:
            raise ValueError(
                f"Genotype has {len(raw_nodes)} nodes but max depth {genotype.max_depth} holds {capacity}"
            )
        for index, raw in enumerate(raw_nodes):
            genotype.tree.nodes[index] = _node_from_dict(raw)
        return genotype

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, payload: str) -> "BlobGenotype":
        return cls.from_dict(json.loads(payload))

    def copy(self) -> "BlobGenotype":
        clone = BlobGenotype(self.max_depth)
        clone.tree.nodes = [replace(node) if isinstance(node, LimbGene) else node for node in self.tree.nodes]
        return clone

    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[int]:
        return self.tree.iter_depth_first(0, descend=lambda node: isinstance(node, LimbGene))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BlobGenotype):
            return NotImplemented
        return self.max_depth == other.max_depth and self.tree.nodes == other.tree.nodes

    def describe(self) -> str:
        return self.tree.format_tree()

    def __repr__(self) -> str:
        return f"BlobGenotype(max_depth={self.max_depth}, limbs={len(self.limbs())})"


def _node_from_dict(raw: object) -> Optional[GenoNode]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise ValueError(f"Genotype node must be a mapping or null, got {raw!r}")
    kind = raw.get("kind")
    if kind == "parent":
        return PARENT_SENTINEL
    if kind == "limb":
        return LimbGene.from_mapping(raw)
    raise ValueError(f"Unknown genotype node kind: {kind!r}")


def _grow(
    tree: QuadTree[GenoNode],
    index: int,
    occupancy: OccupancyMap,
    rng: random.Random,
) -> None:
    children = tree.children(index)
    if children[-1] >= tree.capacity:
        return
    parent = tree.nodes[index]
    if not isinstance(parent, LimbGene):
        return

    for direction, child in zip(DIRECTIONS, children):
        tree.nodes[child] = None
        if rng.random() < settings.SPAWN_CHANCE:
            candidate = sample_limb(parent, direction, rng)
            if occupancy.claim(candidate.box()):
                tree.nodes[child] = candidate

    tree.nodes[rng.choice(children)] = PARENT_SENTINEL

    for child in children:
        if isinstance(tree.nodes[child], LimbGene):
            _grow(tree, child, occupancy, rng)
