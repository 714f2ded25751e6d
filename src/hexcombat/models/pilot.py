"""Pilot model: the person in the cockpit of a mecha.

A pilot is linked to at most one unit; the link lives on ``Unit.pilot_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Optional

from hexcombat.models.unit import SpecialMove


@dataclass
class PilotStatus:
    stressed: bool = False
    injured: bool = False
    panicked: bool = False

    @classmethod
    def flag_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


@dataclass
class Pilot:
    """A pilot on the roster.

    Attributes:
        aggression: Caps the piloted unit's precision; adds to move attacks.
        preservation: Caps the piloted unit's agility; adds to move defense.
        psyche: Sanity stat.
        sync: Mecha interface ability, starts at 0.
    """

    id: str
    name: str
    aggression: int = 0
    preservation: int = 0
    psyche: int = 0
    sync: int = 0
    special_moves: list[SpecialMove] = field(default_factory=list)
    portrait: Optional[str] = None
    status: PilotStatus = field(default_factory=PilotStatus)

    def find_move(self, move_id: Optional[str]) -> Optional[SpecialMove]:
        return next((m for m in self.special_moves if m.id == move_id), None)
