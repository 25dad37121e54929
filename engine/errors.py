"""
GeoCoin — engine/errors.py
Error hierarchy shared by the world and engine layers.
======================================================

Player-facing (recoverable, no state change):
  EmptyCache       — collect on a cache with no coins
  EmptyInventory   — deposit with nothing carried
  NoCacheHere      — collect/deposit aimed at a cell that holds no cache

Faults:
  UnknownCellKind  — generation/render request for a kind outside CellKind
  ConfigError      — unreadable or invalid TOML configuration
  CorruptSave      — persisted payload cannot be decoded (session falls back
                     to a fresh default)

Undo with nothing saved is not an error: SnapshotManager.undo() returns False.
"""

from __future__ import annotations


class GeoCoinError(Exception):
    """Base class for every error raised by the engine."""


class LedgerError(GeoCoinError):
    """A coin transfer was refused before any state changed."""


class EmptyCache(LedgerError):
    def __init__(self, i: int, j: int):
        super().__init__(f"Cache at {i}:{j} has no coins")
        self.i = i
        self.j = j


class EmptyInventory(LedgerError):
    def __init__(self) -> None:
        super().__init__("Inventory is empty")


class NoCacheHere(LedgerError):
    def __init__(self, i: int, j: int):
        super().__init__(f"No cache at {i}:{j}")
        self.i = i
        self.j = j


class UnknownCellKind(GeoCoinError):
    pass


class ConfigError(GeoCoinError):
    pass


class CorruptSave(GeoCoinError):
    pass
