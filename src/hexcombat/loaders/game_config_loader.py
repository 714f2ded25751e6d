"""Game configuration: loads tunable rule constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then passed to the engine wherever a rule number is needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


@dataclass
class GameConfig:
    """All tunable combat constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so the engine runs without the file.
    """

    # -- Weapons -----------------------------------------------------
    default_arc_width: int = 60

    # -- Impact status effects (d6 + excess force) -------------------
    impact_downed_threshold: int = 10
    impact_dazed_threshold: int = 7

    # -- Ballistic penetration (2d6 per excess point) ----------------
    penetration_effect_threshold: int = 10

    # -- Special moves -----------------------------------------------
    special_move_force: int = 3
    special_move_penetration: int = 2
    special_move_difficulty: int = 1
    area_move_force: int = 2
    area_move_penetration: int = 1
    heal_amount: int = 5

    # -- Battlefield -------------------------------------------------
    default_map_radius: int = 6
    enforce_map_bounds: bool = False

    # -- Unit factory ------------------------------------------------
    mecha_base_durability: int = 240
    kaiju_base_durability: int = 300

    # -- Randomness --------------------------------------------------
    rng_seed: Optional[int] = None


def load_game_config(path: str = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s, using defaults", p)
        return GameConfig()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    log.info("Loaded game config from %s (%d keys)", p, len(raw))

    unknown = sorted(k for k in raw if k not in GameConfig.__dataclass_fields__)
    if unknown:
        log.warning("Ignoring unknown game config keys: %s", ", ".join(unknown))

    return GameConfig(**{
        k: v for k, v in raw.items()
        if k in GameConfig.__dataclass_fields__
    })
