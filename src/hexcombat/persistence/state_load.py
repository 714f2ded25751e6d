"""State load: restores a game snapshot written by state_save.

Units, pilots and maps are restored one by one; a broken entry is logged
and skipped so one bad record does not lose the whole save.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from hexcombat.models.state import GameState
from hexcombat.persistence.snapshot import (
    check_version,
    map_from_dict,
    pilot_from_dict,
    repair_pilot_links,
    state_from_dict,
    unit_from_dict,
)
from hexcombat.persistence.state_save import DEFAULT_STATE_PATH

log = logging.getLogger(__name__)


# ===================================================================
# Public API
# ===================================================================

async def load_state(path: str = DEFAULT_STATE_PATH) -> Optional[GameState]:
    """Load game state from a YAML file.

    Returns None if the file does not exist or cannot be parsed.
    """
    state_file = Path(path)
    if not state_file.exists():
        log.info("No state file found at %s", path)
        return None

    try:
        raw = yaml.safe_load(state_file.read_text(encoding="utf-8"))
    except Exception:
        log.exception("Failed to parse state file %s", path)
        return None
    return restore(raw, path)


async def import_state(path: str) -> Optional[GameState]:
    """Load a JSON export. Returns None if the file is missing or invalid."""
    source = Path(path)
    if not source.exists():
        log.info("No export file found at %s", path)
        return None

    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except Exception:
        log.exception("Failed to parse export file %s", path)
        return None
    return restore(raw, path)


# ===================================================================
# Document restore
# ===================================================================

def restore(raw: Any, source: str = "<memory>") -> Optional[GameState]:
    """Rebuild a GameState from a loaded document.

    Accepts the ``{"meta": ..., "state": ...}`` envelope or a bare state
    dict.
    """
    if not isinstance(raw, dict):
        log.warning("State document %s has unexpected format (not a dict)", source)
        return None

    meta = raw.get("meta") or {}
    check_version(meta, source)
    body = raw.get("state", raw)
    if not isinstance(body, dict):
        log.warning("State document %s has no state mapping", source)
        return None

    log.info("Restoring state from %s (saved at %s, version %s)",
             source, meta.get("saved_at", "?"), meta.get("version", "?"))

    try:
        state = state_from_dict({**body, "units": [], "pilots": [], "maps": []})
    except Exception:
        log.exception("Failed to restore game state header from %s", source)
        return None

    state.units = _restore_each(body.get("units"), unit_from_dict, "unit")
    state.pilots = _restore_each(body.get("pilots"), pilot_from_dict, "pilot")
    state.maps = _restore_each(body.get("maps"), map_from_dict, "map")
    repair_pilot_links(state)

    log.info("Restored %d units, %d pilots, %d maps",
             len(state.units), len(state.pilots), len(state.maps))
    return state


def _restore_each(items: Any, convert: Callable[[dict[str, Any]], Any], kind: str) -> list[Any]:
    restored = []
    for item in items or []:
        try:
            restored.append(convert(item))
        except Exception:
            ident = item.get("id", "?") if isinstance(item, dict) else "?"
            log.exception("Failed to restore %s: %s", kind, ident)
    return restored
