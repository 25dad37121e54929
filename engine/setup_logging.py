"""
GeoCoin — engine/setup_logging.py
Logging setup for the run.py driver.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


def setup_logging(level: int = logging.INFO, log_dir: Optional[Path] = None) -> None:
    """
    Configures the root logger for the GeoCoin driver.
    - Console output goes to stderr so it never mixes with game text on stdout.
    - When log_dir is given, the same records also go to <log_dir>/geocoin.log.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "geocoin.log", mode="w", encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s:%(lineno)d | %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,  # drop handlers from earlier calls
    )

    # generation is chatty at DEBUG
    logging.getLogger("world").setLevel(max(level, logging.INFO))
