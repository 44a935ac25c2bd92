"""Constant values for blob morphology generation and assembly."""

from __future__ import annotations

# Deepest genotype tree accepted by ``QuadTree``; a depth-10 tree already
# needs (4 ** 11 - 1) // 3 = 1_398_101 slots.
MAX_TREE_DEPTH = 10

DEFAULTS = {
    "GENO_MAX_DEPTH": 2,
    "BLOCK_HALF_WIDTH": 50.0,
    "BLOCK_HALF_HEIGHT": 50.0,
}
