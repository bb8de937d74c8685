"""Helpers for building nested byte grids."""

from __future__ import annotations

from voxelsprite.geometry import Point


def make_3d_bytes(size: Point) -> list[list[bytearray]]:
    """Return a zero-filled grid indexed as grid[x][y][z]."""
    return [[bytearray(size.z) for _ in range(size.y)] for _ in range(size.x)]