"""One-cycle orchestration of every planet pass."""

from __future__ import annotations

import math
from typing import Optional

from . import heat_transfer
from .animal import sim_animal
from .atmo import sim_atmosphere
from .biome import sim_biome
from .buildings import apply_building_effects, update_buildings
from .civ import sim_civs
from .debug import DebugContext
from .events import advance_events, cause_continent_events
from .exodus import cause_exodus
from .geological import sim_geological
from .monitoring import monitor
from .params import Params
from .sim import Sim
from .stat import record_stats
from .state import Planet
from .water import sim_water


def update(planet: Planet, sim: Sim, params: Params) -> None:
    """Refresh derived values without advancing the cycle."""
    planet.res.reset_flows()
    update_buildings(planet, sim, params)
    planet.state.solar_power = planet.basics.solar_constant * planet.state.solar_power_multiplier
    planet.res.diff_gene_point = math.sqrt(max(planet.stat.sum_biomass, 0.0) / params.sim.gene_point_income_coef)


def advance(planet: Planet, sim: Sim, params: Params, debug: Optional[DebugContext] = None) -> None:
    """Advance one synchronous planet cycle."""
    if debug is not None:
        debug.clear()
    update(planet, sim, params)
    planet.cycles += 1
    planet.res.apply_diff(params.sim.max_material)

    sim_atmosphere(planet, params)
    apply_building_effects(planet, sim, params)
    heat_transfer.advance(planet, sim, params, debug)
    sim_water(planet, sim, params, debug)
    sim_biome(planet, sim, params, debug)
    sim_animal(planet, sim, params)
    sim_civs(planet, sim, params)
    cause_continent_events(planet, sim, params)
    advance_events(planet, sim, params)
    sim_geological(planet, sim, params)
    cause_exodus(planet, sim, params)
    monitor(planet, params)
    record_stats(planet, params)


def advance_n(planet: Planet, sim: Sim, params: Params, n: int) -> None:
    for _ in range(n):
        advance(planet, sim, params)


__all__ = ["advance", "advance_n", "update"]
