"""Persistence helpers for blob genotypes."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

from ..config import settings
from .genotype import BlobGenotype

__all__ = [
    "genotype_path",
    "list_genotypes",
    "save_genotype",
    "load_genotype",
    "import_genotypes",
    "delete_genotype",
]

logger = logging.getLogger("evoblob.morphology")

_SLUG_PATTERN = re.compile(r"[^a-z0-9_]+")


def _ensure_dir(directory: Optional[Path] = None) -> Path:
    target = Path(directory) if directory is not None else Path(settings.GENOTYPE_DIRECTORY)
    target.mkdir(parents=True, exist_ok=True)
    return target


def _slugify(name: str) -> str:
    base = name.strip().lower().replace(" ", "_")
    slug = _SLUG_PATTERN.sub("", base)
    return slug or "genotype"


def genotype_path(name: str, *, directory: Optional[Path] = None) -> Path:
    folder = _ensure_dir(directory)
    slug = _slugify(name)
    return folder / f"{slug}.json"


def list_genotypes(*, directory: Optional[Path] = None) -> List[str]:
    folder = _ensure_dir(directory)
    return sorted(path.stem for path in folder.glob("*.json"))


def save_genotype(name: str, genotype: BlobGenotype, *, directory: Optional[Path] = None) -> Path:
    path = genotype_path(name, directory=directory)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(genotype.to_dict(), handle, indent=2)
    logger.debug("Saved genotype '%s' to %s", name, path)
    return path


def load_genotype(name: str, *, directory: Optional[Path] = None) -> BlobGenotype:
    path = genotype_path(name, directory=directory)
    if not path.exists():
        raise FileNotFoundError(f"Genotype '{name}' not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    return BlobGenotype.from_dict(data)


def import_genotypes(files: Iterable[Path], *, directory: Optional[Path] = None) -> List[Path]:
    """Copy genotype files into the store, keyed by their file stem."""

    saved: List[Path] = []
    for file_path in files:
        file_path = Path(file_path)
        with file_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        genotype = BlobGenotype.from_dict(data)
        saved.append(save_genotype(file_path.stem, genotype, directory=directory))
    return saved


def delete_genotype(name: str, *, directory: Optional[Path] = None) -> None:
    path = genotype_path(name, directory=directory)
    if not path.exists():
        raise FileNotFoundError(f"Genotype '{name}' not found at {path}")
    path.unlink()
