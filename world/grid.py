"""
GeoCoin — world/grid.py
Coordinate Mapper: latitude/longitude <-> integer cell indices.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True, order=True)
class CellIndex:
    i: int
    j: int

    def offset(self, di: int, dj: int) -> "CellIndex":
        return CellIndex(self.i + di, self.j + dj)

    def __str__(self) -> str:
        return f"{self.i}:{self.j}"


class GridMapper:
    """
    Maps continuous positions onto a square grid of tile_size degrees.
    Uses floor (toward negative infinity) so cells straddling the equator or
    the prime meridian stay one tile wide.
    """
    def __init__(self, tile_size: float):
        if tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {tile_size}")
        self.tile_size = tile_size

    def to_cell_index(self, lat: float, lng: float) -> CellIndex:
        return CellIndex(
            math.floor(lat / self.tile_size),
            math.floor(lng / self.tile_size),
        )

    def cell_bounds(self, i: int, j: int) -> Tuple[float, float, float, float]:
        """Returns (lat_min, lng_min, lat_max, lng_max) for cell (i, j)."""
        t = self.tile_size
        return (i * t, j * t, (i + 1) * t, (j + 1) * t)

    def cell_center(self, i: int, j: int) -> Tuple[float, float]:
        t = self.tile_size
        return ((i + 0.5) * t, (j + 0.5) * t)


def neighborhood(center: CellIndex, radius: int) -> List[CellIndex]:
    """All indices within a square of the given radius, row-major."""
    return [
        CellIndex(center.i + di, center.j + dj)
        for di in range(-radius, radius + 1)
        for dj in range(-radius, radius + 1)
    ]
