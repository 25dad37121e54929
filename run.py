"""
GeoCoin — run.py
Line-oriented driver for the GeoCoin engine. Stands in for the map UI:
prints nearby caches and maps typed commands onto session calls.
"""

import argparse
import logging
import sys
from pathlib import Path

# Ensure we can import geocoin packages
project_root = Path(__file__).parent.resolve()
sys.path.insert(0, str(project_root))

from engine.config import load_config
from engine.errors import LedgerError
from engine.events import EVT_WORLD_RESTORED
from engine.session import GameSession
from engine.setup_logging import setup_logging

HELP = "commands: n s e w | collect | deposit | snap | undo | save | reset | look | quit"

MOVES = {"n": (1, 0), "s": (-1, 0), "e": (0, 1), "w": (0, -1)}


def describe(session: GameSession) -> None:
    cell = session.player_cell
    lat, lng = session.position
    print(f"At {lat:.6f}, {lng:.6f} (cell {cell})")
    print(f"Inventory: {', '.join(c.label for c in session.inventory.coins) or 'empty'}")
    here = session.store.get(cell.i, cell.j)
    if here is not None and here.has_cache:
        print(f"Cache here holds {len(here.coins)} coin(s)")
    nearby = session.visible_caches()
    print(f"{len(nearby)} cache(s) nearby")


def handle(session: GameSession, command: str) -> bool:
    if command in MOVES:
        session.move(*MOVES[command])
        describe(session)
    elif command in ("collect", "deposit"):
        cell = session.player_cell
        action = session.collect_at if command == "collect" else session.deposit_at
        try:
            coin = action(cell.i, cell.j)
        except LedgerError as exc:
            print(exc)
        else:
            print(f"{command.capitalize()}ed coin {coin.label}")
    elif command == "snap":
        session.save_snapshot()
        print(f"Snapshot saved ({session.snapshots.depth} on stack)")
    elif command == "undo":
        if not session.undo():
            print("Nothing to undo")
    elif command == "save":
        session.save()
        print("Game saved")
    elif command == "reset":
        session.reset()
        describe(session)
    elif command == "look":
        describe(session)
    elif command in ("quit", "q"):
        return False
    else:
        print(HELP)
    return True


def main():
    parser = argparse.ArgumentParser(description="Play GeoCoin in the terminal.")
    parser.add_argument("--config", type=Path, default=None, help="path to a geocoin.toml")
    parser.add_argument("--verbose", action="store_true", help="log at DEBUG level")
    args = parser.parse_args()

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    session = GameSession(config=load_config(args.config))
    session.bus.subscribe(EVT_WORLD_RESTORED, lambda event: describe(session))
    if session.load():
        print("Save restored.")
    describe(session)
    print(HELP)

    for line in sys.stdin:
        if not handle(session, line.strip().lower()):
            break
    session.save()


if __name__ == "__main__":
    main()
