from __future__ import annotations

import json
import random

import pytest
from pygame.math import Vector2

from evoblob.body.assembler import BodyAssembler
from evoblob.morphology.builder import GenotypeBodyMapper
from evoblob.morphology.genotype import PARENT_SENTINEL, BlobGenotype, GenotypeInvariantError, LimbGene
from evoblob.physics.engine import SandboxEngine
from evoblob.systems import telemetry

from .genotype_helpers import build_genotype


@pytest.fixture()
def engine() -> SandboxEngine:
    return SandboxEngine()


@pytest.fixture()
def mapper(engine: SandboxEngine) -> GenotypeBodyMapper:
    return GenotypeBodyMapper(BodyAssembler(engine))


def test_build_spawns_every_limb_flush(mapper: GenotypeBodyMapper, engine: SandboxEngine) -> None:
    genotype = build_genotype()

    mapper.build(genotype)

    group = mapper.assembler.group
    centres = [record.spec.center for record in engine.segments_in_group(group)]
    assert centres == [Vector2(0, 0), Vector2(0, 75), Vector2(0, 125), Vector2(100, 0)]
    assert len(engine.joints_in_group(group)) == 3
    assert mapper.assembler.info.xbound == [-50.0, 150.0]
    assert mapper.assembler.info.ybound == [-50.0, 150.0]


def test_build_writes_control_ids_back(mapper: GenotypeBodyMapper, engine: SandboxEngine) -> None:
    genotype = build_genotype()

    mapper.build(genotype)

    ids = genotype.control_ids()
    assert sorted(ids) == [0, 1, 4, 5]
    built = {segment.physical_id for segment in mapper.assembler.segments}
    assert set(ids.values()) == built
    assert ids[0] == mapper.assembler.segments[0].physical_id


def test_joints_carry_limb_limits(mapper: GenotypeBodyMapper, engine: SandboxEngine) -> None:
    genotype = build_genotype()

    mapper.build(genotype)

    by_child = {record.child: record.joint for record in engine.joints.values()}
    top = by_child[genotype.limb_at(1).control_id]
    assert top.limits == (-1.0, 1.2)
    assert top.parent_anchor == Vector2(0, 50)
    assert top.child_anchor == Vector2(0, -25)
    assert top.stiffness == 0.0


def test_cursor_ends_back_on_root(mapper: GenotypeBodyMapper) -> None:
    mapper.build(build_genotype())

    assert mapper.assembler.cursor == 0


def test_rebuild_keeps_control_ids(mapper: GenotypeBodyMapper) -> None:
    genotype = build_genotype()
    mapper.build(genotype)
    first_ids = genotype.control_ids()

    mapper.build(genotype)

    assert genotype.control_ids() == first_ids
    assert len(mapper.assembler) == 4
    assert mapper.assembler.segments[0].physical_id != first_ids[0]


def test_build_respects_origin(mapper: GenotypeBodyMapper, engine: SandboxEngine) -> None:
    mapper.build(build_genotype(), origin=(300.0, -20.0))

    right = mapper.assembler.segments[-1]
    assert right.translation == Vector2(400.0, -20.0)


def test_group_receives_genotype_snapshot(mapper: GenotypeBodyMapper, engine: SandboxEngine) -> None:
    genotype = build_genotype()

    mapper.build(genotype)

    snapshot = engine.groups[mapper.assembler.group].data["genotype"]
    assert snapshot == genotype
    assert snapshot is not genotype


def test_random_genotypes_build_one_segment_per_limb(engine: SandboxEngine) -> None:
    for seed in range(10):
        mapper = GenotypeBodyMapper(BodyAssembler(engine))
        genotype = BlobGenotype.random(rng=random.Random(seed))

        mapper.build(genotype)

        assert len(mapper.assembler) == len(genotype.limbs())
        assert len(genotype.control_ids()) == len(genotype.limbs())


def test_build_requires_limb_root(mapper: GenotypeBodyMapper) -> None:
    genotype = BlobGenotype(max_depth=1)

    with pytest.raises(GenotypeInvariantError):
        mapper.build(genotype)


def test_limb_pointing_back_at_parent_is_skipped(mapper: GenotypeBodyMapper, caplog) -> None:
    genotype = build_genotype()
    # Bottom of the top limb is where the root already sits
    genotype.tree.nodes[6] = LimbGene(half_extent=(10.0, 10.0), center=(0.0, 40.0))

    mapper.build(genotype)

    assert len(mapper.assembler) == 4
    assert genotype.limb_at(6).control_id is None
    assert mapper.assembler.cursor == 0
    assert "already taken" in caplog.text


def test_build_emits_telemetry_sample(mapper: GenotypeBodyMapper, tmp_path) -> None:
    telemetry.enable_telemetry("builds", directory=tmp_path)
    try:
        mapper.build(build_genotype())
        telemetry.flush_all()
    finally:
        telemetry.disable_telemetry()

    (path,) = tmp_path.glob("builds_*.jsonl")
    rows = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert len(rows) == 1
    assert rows[0]["segments"] == 4
    assert rows[0]["joints"] == 3
    assert rows[0]["width"] == pytest.approx(200.0)


def _three_limb_genotype(half: float) -> BlobGenotype:
    genotype = BlobGenotype(max_depth=1)
    nodes = genotype.tree.nodes
    reach = 50.0 + half
    nodes[0] = LimbGene(half_extent=(50.0, 50.0), center=(0.0, 0.0))
    nodes[1] = LimbGene(half_extent=(half, half), center=(0.0, reach))
    nodes[2] = PARENT_SENTINEL
    nodes[3] = LimbGene(half_extent=(half, half), center=(-reach, 0.0))
    nodes[4] = LimbGene(half_extent=(half, half), center=(reach, 0.0))
    return genotype


@pytest.mark.parametrize("half, reach", [(25.0, 75.0), (50.0, 100.0)])
def test_three_limb_body_builds_flush(engine: SandboxEngine, half: float, reach: float) -> None:
    mapper = GenotypeBodyMapper(BodyAssembler(engine))
    genotype = _three_limb_genotype(half)
    assert genotype.is_valid()

    mapper.build(genotype, origin=(0.0, 0.0))

    group = mapper.assembler.group
    centres = [record.spec.center for record in engine.segments_in_group(group)]
    assert len(centres) == 4
    assert len(engine.joints_in_group(group)) == 3
    assert centres[1:] == [Vector2(0, reach), Vector2(-reach, 0), Vector2(reach, 0)]
    assert sorted(genotype.control_ids()) == [0, 1, 3, 4]


@pytest.mark.parametrize("seed", range(10))
def test_built_random_genotype_survives_json(engine: SandboxEngine, seed: int) -> None:
    genotype = BlobGenotype.random(rng=random.Random(seed))
    GenotypeBodyMapper(BodyAssembler(engine)).build(genotype)

    restored = BlobGenotype.from_json(genotype.to_json())

    assert restored == genotype
    assert restored.is_valid() == genotype.is_valid()
    assert restored.control_ids() == genotype.control_ids()
    assert len(restored.control_ids()) == len(genotype.limbs())


def test_first_build_uses_the_assembler_group(engine: SandboxEngine) -> None:
    assembler = BodyAssembler(engine)
    group = assembler.group

    GenotypeBodyMapper(assembler).build(build_genotype())

    assert assembler.group == group
    assert list(engine.groups) == [group]
    assert all(record.group == group for record in engine.segments.values())
