"""Volcanic eruptions."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Optional

from ..utils import CHEBYSHEV_DISTANCE_1_COORDS, Coords, convert_p_cyclic
from .biome import burn_biomass
from .buildings import remove_structure
from .defs import SEA_BIOMES, Biome, GasKind, TileEventKind
from .report import VolcanicEruptionStarted
from .state import VolcanicEruption

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import Planet

logger = logging.getLogger(__name__)


def eruption_probability(planet: Planet, params: Params) -> float:
    ep = params.event
    ratio = planet.basics.geothermal_power / ep.reference_geothermal_power
    if ratio <= 0.0:
        return 0.0
    return ep.base_volcanic_eruption_prob * max(1.0 + math.log(ratio), 0.0)


def cause_volcanic_eruption(
    planet: Planet,
    sim: Sim,
    params: Params,
    p: Coords,
    power: Optional[float] = None,
    cycles: Optional[int] = None,
) -> None:
    """Start an eruption at ``p`` and apply its first effect immediately."""
    ep = params.event
    if power is None:
        power = float(sim.rng.uniform(*ep.volcanic_eruption_power))
    if cycles is None:
        lo, hi = ep.volcanic_eruption_cycles
        cycles = int(sim.rng.integers(lo, hi + 1))
    planet.map.insert_tile_event(p, VolcanicEruption(remaining_cycles=cycles, power=power))
    planet.reports.append(planet.cycles, VolcanicEruptionStarted(pos=p))
    logger.info("volcanic eruption at %s with power %.3g (cycle %d)", p, power, planet.cycles)
    eruption_effect(planet, sim, params, p, power)


def eruption_effect(planet: Planet, sim: Sim, params: Params, p: Coords, power: float) -> None:
    tm = planet.map
    ep = params.event
    for d in ((0, 0),) + tuple(CHEBYSHEV_DISTANCE_1_COORDS):
        q = convert_p_cyclic((p[0] + d[0], p[1] + d[1]), sim.size)
        if q is None:
            continue
        x, y = q
        if tm.get_structure(q) is not None:
            remove_structure(planet, q)
        tm.clear_animals(q)
        biome = int(tm.biome[y, x])
        if biome not in SEA_BIOMES and biome != int(Biome.DESERT):
            tm.biome[y, x] = int(Biome.ROCK)
        if sim.rng.random() < power:
            burn_biomass(planet, sim, q, ep.volcanic_eruption_burn_ratio, ep.volcanic_eruption_burn_release_ratio)

        uplift = float(sim.rng.uniform(*ep.volcanic_eruption_uplift)) * power
        if d == (0, 0):
            uplift *= 2.0
        if planet.height_above_sea_level(q) >= ep.volcanic_eruption_uplift_limit:
            uplift *= 0.01
        tm.height[y, x] += uplift

    planet.atmo.aerosol += ep.volcanic_eruption_aerosol * power
    planet.atmo.add(GasKind.CARBON_DIOXIDE, ep.volcanic_eruption_co2 * power)


def advance_volcanic_eruptions(planet: Planet, sim: Sim, params: Params) -> None:
    tm = planet.map
    for p, ev in tm.tile_events_of(TileEventKind.VOLCANIC_ERUPTION):
        ev.remaining_cycles -= 1
        if ev.remaining_cycles <= 0:
            tm.remove_tile_event(p, TileEventKind.VOLCANIC_ERUPTION)
            continue
        eruption_effect(planet, sim, params, p, ev.power)


def sim_geological(planet: Planet, sim: Sim, params: Params) -> None:
    advance_volcanic_eruptions(planet, sim, params)
    if sim.rng.random() < eruption_probability(planet, params):
        w, h = sim.size
        p = (int(sim.rng.integers(0, w)), int(sim.rng.integers(0, h)))
        cause_volcanic_eruption(planet, sim, params, p)


__all__ = [
    "advance_volcanic_eruptions",
    "cause_volcanic_eruption",
    "eruption_effect",
    "eruption_probability",
    "sim_geological",
]
