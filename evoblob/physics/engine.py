"""Interface to the physics/rendering engine plus an in-memory sandbox.

The assembler only talks to the engine through :class:`BodyEngine`. The
:class:`SandboxEngine` records every command so bodies can be built and
inspected headlessly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from ..body.attachment import HingeJoint
from ..body.segment import BlobInfo, SegmentSpec
from ..config import settings

__all__ = [
    "BodyEngine",
    "SandboxEngine",
    "SegmentRecord",
    "JointRecord",
    "GroupRecord",
    "setup_gravity",
]

logger = logging.getLogger("evoblob.physics")


class BodyEngine(Protocol):
    """Commands the assembler issues to the engine that owns the bodies."""

    def spawn_group(self, info: BlobInfo) -> int:
        ...

    def spawn_segment(self, spec: SegmentSpec, group: int, extras: Mapping[str, Any]) -> int:
        ...

    def spawn_hinge(self, parent: int, child: int, joint: HingeJoint) -> int:
        ...

    def attach_group_data(self, group: int, data: Mapping[str, Any]) -> None:
        ...

    def set_gravity(self, gravity: Tuple[float, float]) -> None:
        ...


@dataclass
class SegmentRecord:
    entity_id: int
    spec: SegmentSpec
    group: int
    components: Dict[str, Any] = field(default_factory=dict)


@dataclass
class JointRecord:
    entity_id: int
    parent: int
    child: int
    joint: HingeJoint


@dataclass
class GroupRecord:
    entity_id: int
    info: BlobInfo
    members: List[int] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)


class SandboxEngine:
    """Headless engine that hands out sequential entity ids.

    Not thread-safe: one assembler at a time should issue commands.
    """

    def __init__(self) -> None:
        self._next_id = 0
        self.gravity: Tuple[float, float] = (0.0, -9.81)
        self.segments: Dict[int, SegmentRecord] = {}
        self.joints: Dict[int, JointRecord] = {}
        self.groups: Dict[int, GroupRecord] = {}

    def _allocate(self) -> int:
        entity_id = self._next_id
        self._next_id += 1
        return entity_id

    def spawn_group(self, info: BlobInfo) -> int:
        entity_id = self._allocate()
        self.groups[entity_id] = GroupRecord(entity_id=entity_id, info=info)
        return entity_id

    def spawn_segment(self, spec: SegmentSpec, group: int, extras: Mapping[str, Any]) -> int:
        group_record = self.groups.get(group)
        if group_record is None:
            raise KeyError(f"Group '{group}' does not exist")
        entity_id = self._allocate()
        self.segments[entity_id] = SegmentRecord(
            entity_id=entity_id,
            spec=spec,
            group=group,
            components=dict(extras),
        )
        group_record.members.append(entity_id)
        return entity_id

    def spawn_hinge(self, parent: int, child: int, joint: HingeJoint) -> int:
        for entity in (parent, child):
            if entity not in self.segments:
                raise KeyError(f"Segment '{entity}' does not exist")
        entity_id = self._allocate()
        self.joints[entity_id] = JointRecord(entity_id=entity_id, parent=parent, child=child, joint=joint)
        return entity_id

    def attach_group_data(self, group: int, data: Mapping[str, Any]) -> None:
        group_record = self.groups.get(group)
        if group_record is None:
            raise KeyError(f"Group '{group}' does not exist")
        group_record.data.update(data)

    def set_gravity(self, gravity: Tuple[float, float]) -> None:
        self.gravity = (float(gravity[0]), float(gravity[1]))

    # ------------------------------------------------------------------
    # Queries

    def segments_in_group(self, group: int) -> List[SegmentRecord]:
        record = self.groups.get(group)
        if record is None:
            return []
        return [self.segments[entity_id] for entity_id in record.members]

    def joints_in_group(self, group: int) -> List[JointRecord]:
        members = set(self.groups[group].members) if group in self.groups else set()
        return [
            joint
            for joint in self.joints.values()
            if joint.parent in members or joint.child in members
        ]

    def group_of(self, segment: int) -> Optional[int]:
        record = self.segments.get(segment)
        return record.group if record is not None else None


def setup_gravity(engine: BodyEngine) -> Tuple[float, float]:
    """Apply the configured world gravity (zero by default) to ``engine``."""

    gravity = (float(settings.GRAVITY_X), float(settings.GRAVITY_Y))
    engine.set_gravity(gravity)
    logger.debug("World gravity set to %s", gravity)
    return gravity
