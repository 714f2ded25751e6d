"""Game constants: facings, named moves, snapshot versioning.

Tunable combat numbers live in ``config/game.yaml`` (see GameConfig);
the values here are fixed parts of the rules.
"""

# -- Facing --------------------------------------------------------------

FACINGS: tuple[int, ...] = (0, 60, 120, 180, 240, 300)
"""Legal unit facings in degrees, clockwise from the top of the board."""

FACING_STEP: int = 60

FACING_DELTAS: dict[int, tuple[int, int]] = {
    0: (0, -1),
    60: (1, -1),
    120: (1, 0),
    180: (0, 1),
    240: (-1, 1),
    300: (-1, 0),
}
"""Axial (dq, dr) of one step forward for each facing."""

# -- Weapons -------------------------------------------------------------

MELEE: str = "melee"
"""Weapon range marker for same-tile attacks."""

# -- Named special moves -------------------------------------------------

TAKE_AIM: str = "Take Aim"
ROAR: str = "Roar"
FOCUS: str = "Focus"
GET_UP: str = "Get Up!"
GRAPPLE_ENEMY: str = "Grapple Enemy"

# -- Snapshot ------------------------------------------------------------

SNAPSHOT_VERSION: int = 1
"""Schema version written into saved and exported snapshots."""
