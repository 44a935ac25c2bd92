from __future__ import annotations

import json
import random

import pytest

from evoblob.config import settings
from evoblob.morphology import storage
from evoblob.morphology.genotype import BlobGenotype

from .genotype_helpers import build_genotype


def test_save_and_load_keep_the_tree(tmp_path) -> None:
    genotype = build_genotype()
    genotype.assign_control_id_to_root(4)

    path = storage.save_genotype("Wobbly One", genotype, directory=tmp_path)
    loaded = storage.load_genotype("Wobbly One", directory=tmp_path)

    assert path == tmp_path / "wobbly_one.json"
    assert loaded == genotype
    assert loaded.root().control_id == 4
    assert json.loads(path.read_text(encoding="utf-8"))["max_depth"] == 2


def test_list_and_delete(tmp_path) -> None:
    rng = random.Random(1)
    storage.save_genotype("beta", BlobGenotype.random(rng=rng), directory=tmp_path)
    storage.save_genotype("alpha", BlobGenotype.random(rng=rng), directory=tmp_path)

    assert storage.list_genotypes(directory=tmp_path) == ["alpha", "beta"]

    storage.delete_genotype("alpha", directory=tmp_path)
    assert storage.list_genotypes(directory=tmp_path) == ["beta"]


def test_missing_genotypes_raise(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        storage.load_genotype("ghost", directory=tmp_path)
    with pytest.raises(FileNotFoundError):
        storage.delete_genotype("ghost", directory=tmp_path)


def test_slug_falls_back_for_symbol_names(tmp_path) -> None:
    assert storage.genotype_path("!!!", directory=tmp_path).name == "genotype.json"


def test_default_directory_comes_from_settings(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(settings, "GENOTYPE_DIRECTORY", tmp_path / "store")

    storage.save_genotype("solo", build_genotype())

    assert (tmp_path / "store" / "solo.json").exists()


def test_import_genotypes_uses_file_stem(tmp_path) -> None:
    source = tmp_path / "Imported.json"
    source.write_text(build_genotype().to_json(), encoding="utf-8")

    (saved,) = storage.import_genotypes([source], directory=tmp_path / "store")

    assert saved.name == "imported.json"
    assert storage.load_genotype("imported", directory=tmp_path / "store") == build_genotype()
