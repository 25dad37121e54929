"""
GeoCoin — engine/events.py
Event bus linking the core to its render collaborator.
======================================================
Stack:       Python 3.11+ | Pydantic v2 | bespoke pub-sub

Architecture notes
------------------
- Every event is a GameEvent envelope; data stays flat and JSON-serializable.
- The core never calls the renderer directly. It emits, the renderer subscribes.
- Wildcard key "*" receives every emitted event.
- A failing handler is logged and emission continues to the remaining handlers.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# ============================================================
# CANONICAL EVENT KEYS
# Never use raw strings. Add new keys here only.
# ============================================================

EVT_COIN_COLLECTED   = "cache.coin_collected"
EVT_COIN_DEPOSITED   = "cache.coin_deposited"
EVT_PLAYER_MOVED     = "player.moved"
EVT_SNAPSHOT_SAVED   = "world.snapshot_saved"
EVT_WORLD_RESTORED   = "world.restored"
EVT_GAME_SAVED       = "session.saved"
EVT_GAME_LOADED      = "session.loaded"
EVT_GAME_RESET       = "session.reset"


class GameEvent(BaseModel):
    """Base envelope."""
    event_key: str
    source: str = "core"
    target: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


HandlerFn = Callable[[GameEvent], None]


class EventBus:
    """
    Bespoke pub-sub. Pass instance at construction — no global singleton.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[HandlerFn]] = {}

    def subscribe(self, event_key: str, handler: HandlerFn) -> None:
        self._subscribers.setdefault(event_key, []).append(handler)

    def unsubscribe(self, event_key: str, handler: HandlerFn) -> None:
        if event_key in self._subscribers:
            self._subscribers[event_key] = [
                h for h in self._subscribers[event_key] if h is not handler
            ]

    def emit(self, event: GameEvent) -> None:
        targets = (
            self._subscribers.get(event.event_key, [])
            + self._subscribers.get("*", [])
        )
        for handler in targets:
            try:
                handler(event)
            except Exception:  # noqa: BLE001
                logger.exception("Handler error on '%s'", event.event_key)
