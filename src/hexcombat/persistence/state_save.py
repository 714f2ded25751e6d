"""State save: writes a game snapshot to disk.

``save_state`` writes YAML for local saves; ``export_state`` writes JSON
for file exchange. Both write atomically (temp file, then replace) and
wrap the snapshot with a ``meta`` block carrying the schema version.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from hexcombat.models.state import GameState
from hexcombat.persistence.snapshot import meta, state_to_dict

log = logging.getLogger(__name__)

# Default path for the save file (relative to working directory)
DEFAULT_STATE_PATH = "state.yaml"


def build_document(state: GameState) -> dict[str, Any]:
    return {"meta": meta(), "state": state_to_dict(state)}


def _write_atomic(out: Path, text: str, what: str) -> None:
    tmp = out.with_suffix(out.suffix + ".tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(out)
    except Exception:
        log.exception("Failed to %s game state to %s", what, out)
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise


async def save_state(state: GameState, path: str = DEFAULT_STATE_PATH) -> None:
    """Serialize the game state to a YAML file.

    Args:
        state: The state to save; it is not modified.
        path: Output file path.
    """
    text = yaml.safe_dump(build_document(state), default_flow_style=False,
                          allow_unicode=True, sort_keys=False)
    _write_atomic(Path(path), text, "save")
    log.info("Game state saved to %s (%d units, %d pilots, %d maps, turn %d)",
             path, len(state.units), len(state.pilots), len(state.maps), state.turn)


async def export_state(state: GameState, path: str) -> None:
    """Write the game state as JSON for sharing between installations."""
    text = json.dumps(build_document(state), indent=2, ensure_ascii=False)
    _write_atomic(Path(path), text, "export")
    log.info("Game state exported to %s", path)
