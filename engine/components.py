"""
GeoCoin — engine/components.py
ECS components carried by the player entity (python-tcod-ecs).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Tuple

from world.cells import Coin

@dataclass
class PlayerIdentity:
    name: str = "Player"
    is_player: bool = True

@dataclass
class GeoPosition:
    lat: float
    lng: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)

@dataclass
class MovementTrail:
    points: List[Tuple[float, float]] = field(default_factory=list)  # oldest first

@dataclass
class Inventory:
    coins: List[Coin] = field(default_factory=list)  # last element = most recently collected

    def __len__(self) -> int:
        return len(self.coins)
