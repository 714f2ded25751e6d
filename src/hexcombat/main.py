"""Replay driver: runs a scripted battle through the engine.

Steps:
1. Load configuration (game rules, equipment catalog)
2. Restore a saved state, or start a new game
3. Spawn catalog units listed in the script
4. Reduce every scripted action
5. Save the result and print the narrative log

Usage:
    python -m hexcombat.main --actions script.yaml
    # or via entry point:
    hexcombat --state in.yaml --actions script.yaml --out out.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import yaml

from hexcombat.engine.reducer import GameEngine
from hexcombat.loaders.catalog_loader import DEFAULT_CATALOG_PATH, create_default_unit, load_catalog
from hexcombat.loaders.game_config_loader import DEFAULT_GAME_CONFIG_PATH, load_game_config
from hexcombat.models.actions import AddUnit
from hexcombat.models.state import GameState, new_game_state
from hexcombat.models.unit import UnitType
from hexcombat.persistence.state_load import load_state
from hexcombat.persistence.state_save import save_state

log = logging.getLogger(__name__)


def load_script(path: str) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Read a battle script: ``(units to spawn, actions)``.

    The file is either a plain list of actions or a mapping with
    ``units`` and ``actions`` keys.
    """
    with Path(path).open(encoding="utf-8") as f:
        raw = yaml.safe_load(f) or []
    if isinstance(raw, list):
        return [], raw
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: script must be a list or a mapping")
    return list(raw.get("units") or []), list(raw.get("actions") or [])


async def run(
    actions_path: Optional[str] = None,
    state_path: Optional[str] = None,
    out_path: Optional[str] = None,
    config_path: str = DEFAULT_GAME_CONFIG_PATH,
    catalog_path: str = DEFAULT_CATALOG_PATH,
    seed: Optional[int] = None,
) -> GameState:
    """Replay a script and return the final state."""
    config = load_game_config(config_path)
    if seed is not None:
        config.rng_seed = seed
    engine = GameEngine(config)

    state = await load_state(state_path) if state_path else None
    if state is None:
        state = new_game_state(config.default_map_radius)
        log.info("Starting a new game")
    first_entry = len(state.log)

    spawns, actions = load_script(actions_path) if actions_path else ([], [])
    if spawns:
        catalog = load_catalog(catalog_path)
        for entry in spawns:
            unit = create_default_unit(str(entry["id"]), entry.get("name", str(entry["id"])),
                                       UnitType(entry.get("type", "mecha")), catalog, config)
            state = engine.reduce(state, AddUnit(unit=unit))

    for raw in actions:
        state = engine.reduce(state, raw)
    log.info("Replayed %d actions, turn %d", len(actions), state.turn)

    if out_path:
        await save_state(state, out_path)

    for entry in state.log[first_entry:]:
        print(f"[{entry.turn}] {entry.type.value:<8} {entry.message}")
    return state


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the replay driver."""
    parser = argparse.ArgumentParser(prog="hexcombat", description="Replay a hex combat script.")
    parser.add_argument("--actions", help="YAML battle script")
    parser.add_argument("--state", help="saved state to start from (default: new game)")
    parser.add_argument("--out", help="where to save the final state")
    parser.add_argument("--config", default=DEFAULT_GAME_CONFIG_PATH, help="game rules YAML")
    parser.add_argument("--catalog", default=DEFAULT_CATALOG_PATH, help="equipment catalog YAML")
    parser.add_argument("--seed", type=int, help="dice seed (overrides the config)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    asyncio.run(run(
        actions_path=args.actions,
        state_path=args.state,
        out_path=args.out,
        config_path=args.config,
        catalog_path=args.catalog,
        seed=args.seed,
    ))


if __name__ == "__main__":
    main()
