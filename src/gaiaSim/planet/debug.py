"""Per-cycle tile diagnostics."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import numpy as np

from ..utils import Coords
from .defs import AnimalSize

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import Planet


class DebugContext:
    """Collects log lines for one target tile during a single cycle.

    Passes call `tile_log` with a callable so that formatting only happens
    for the watched tile.
    """

    def __init__(self, target: Optional[Coords] = None) -> None:
        self.target = target
        self.logs: Dict[str, List[str]] = {}

    def clear(self) -> None:
        self.logs = {}

    def tile_log(self, p: Coords, name: str, fn: Callable[[], Any]) -> None:
        if self.target is None or p != self.target:
            return
        self.logs.setdefault(name, []).append(str(fn()))

    def log_tile_values(self, planet: Planet, name: str, **layers: np.ndarray) -> None:
        if self.target is None:
            return
        x, y = self.target
        for key, arr in layers.items():
            self.tile_log(self.target, name, lambda key=key, arr=arr: f"{key}={float(arr[y, x]):.6g}")


def tile_debug_info(planet: Planet, sim: Sim, params: Params, p: Coords) -> Dict[str, Any]:
    """Tile and scratch values at ``p`` for inspection."""
    tm = planet.map
    x, y = p
    info: Dict[str, Any] = {
        "biome": tm.biome_at(p).name.lower(),
        "height": float(tm.height[y, x]),
        "height_above_sea_level": planet.height_above_sea_level(p),
        "biomass": float(tm.biomass[y, x]),
        "fertility": float(tm.fertility[y, x]),
        "temp": float(tm.temp[y, x]),
        "sea_temp": float(tm.sea_temp[y, x]),
        "rainfall": float(tm.rainfall[y, x]),
        "vapor": float(tm.vapor[y, x]),
        "ice": float(tm.ice[y, x]),
        "buried_carbon": float(tm.buried_carbon[y, x]),
        "albedo": float(sim.albedo[y, x]),
        "settlement_cr": float(sim.settlement_cr[y, x]),
        "energy_eff": float(sim.energy_eff[y, x]),
        "diff_biomass": float(sim.diff_biomass[y, x]),
        "structure": repr(tm.get_structure(p)),
        "tile_events": [repr(ev) for ev in tm.events_at(p)],
    }
    for size in AnimalSize:
        animal = tm.animal_at(p, size)
        if animal is not None:
            info[f"animal_{size.name.lower()}"] = {"id": params.animals[animal[0]].id, "n": animal[1]}
    return info


__all__ = ["DebugContext", "tile_debug_info"]
