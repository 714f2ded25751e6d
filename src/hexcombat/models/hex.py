"""Axial board coordinate.

A unit's ``Position(x, y, facing)`` maps to ``HexCoord(q=x, r=y)``; the
third cube axis is ``s = -q - r``. Terrain is stored per tile under the
``"q,r"`` key.
"""

from __future__ import annotations

from dataclasses import dataclass

from hexcombat.util.constants import FACING_DELTAS


@dataclass(frozen=True)
class HexCoord:
    """Immutable board tile.

    Attributes:
        q: Axial column; ``Position.x``.
        r: Axial row; ``Position.y``.
    """

    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def distance_to(self, other: HexCoord) -> int:
        """Steps between two tiles: the largest cube-axis difference."""
        return max(abs(self.q - other.q), abs(self.r - other.r), abs(self.s - other.s))

    def step(self, facing: int, count: int = 1) -> HexCoord:
        """Tile ``count`` steps along ``facing`` (negative walks backwards)."""
        dq, dr = FACING_DELTAS[facing]
        return HexCoord(self.q + count * dq, self.r + count * dr)

    def disk(self, radius: int) -> set[HexCoord]:
        """Every tile within ``radius`` steps, this one included."""
        tiles = set()
        for dq in range(-radius, radius + 1):
            low = max(-radius, -dq - radius)
            high = min(radius, radius - dq)
            tiles.update(HexCoord(self.q + dq, self.r + dr) for dr in range(low, high + 1))
        return tiles

    @property
    def key(self) -> str:
        return f"{self.q},{self.r}"

    @classmethod
    def from_key(cls, key: str) -> HexCoord:
        q, r = key.split(",")
        return cls(int(q), int(r))

    def __repr__(self) -> str:
        return f"HexCoord({self.q},{self.r})"
