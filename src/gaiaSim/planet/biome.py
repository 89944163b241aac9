"""Fertility, biomass and biome transitions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

from ..utils import FOUR_NEIGHBORS, Coords, neighbor_view
from .defs import N_BIOMES, SEA_BIOMES, Biome, GasKind

if TYPE_CHECKING:
    from .debug import DebugContext
    from .params import Params
    from .sim import Sim
    from .state import Planet


def update_fertility(planet: Planet, sim: Sim, params: Params) -> None:
    tm = planet.map
    sp = params.sim
    f = tm.fertility
    temp_factor = sp.fertility_temp_table(tm.temp)
    rain_factor = sp.fertility_rainfall_table(tm.rainfall)
    favorable = (temp_factor >= 0.0) & (rain_factor >= 0.0)

    out = f.copy()

    # Building effects count once per tile regardless of overlapping ranges.
    inc = sim.fertilize_increment
    cap = sim.fertilize_max
    boosted = (inc > 0.0) & (out < cap)
    out[boosted] = np.minimum(out[boosted] + inc[boosted], cap[boosted])

    inflow = np.zeros_like(f)
    for dx, dy in FOUR_NEIGHBORS:
        inflow += np.maximum(neighbor_view(f, dx, dy) - f, 0.0)
    inflow *= sp.fertility_adjacent_factor
    growth = inflow + sp.fertility_biomass_growth_table(tm.biomass)
    ceiling = 100.0 * temp_factor * rain_factor
    grow = favorable & (out < ceiling)
    out[grow] = np.minimum(out[grow] + growth[grow], ceiling[grow])

    worse = np.minimum(temp_factor, rain_factor)
    decay = ~favorable
    out[decay] += sp.fertility_base_decrement * worse[decay]

    np.clip(out, 0.0, 100.0, out=f)


def update_biomass(planet: Planet, sim: Sim, params: Params) -> None:
    """Grow or decay biomass, exchanging carbon with the atmosphere."""
    tm = planet.map
    sp = params.sim
    atmo = planet.atmo
    sea = np.isin(tm.biome, SEA_BIOMES)

    max_biomass = sp.max_biomass_fertility_table(tm.fertility)
    max_biomass[sea] *= sp.sea_biomass_factor
    speed = (
        sp.base_biomass_increase_speed
        * sp.biomass_co2_factor_table(atmo.partial_pressure(GasKind.CARBON_DIOXIDE))
        * sp.biomass_pressure_factor_table(atmo.atm())
    )

    b = tm.biomass
    below = b < max_biomass
    growth = np.where(below, np.minimum(max_biomass - b, speed), 0.0)
    decay = np.where(below, 0.0, (b - max_biomass) * sp.base_biomass_decrease_speed)

    mass_per_density = sim.tile_area * 1.0e-9
    wanted = float(growth.sum()) * mass_per_density
    if wanted > 0.0:
        fixed = atmo.remove_carbon(wanted)
        growth *= fixed / wanted

    decayed = float(decay.sum()) * mass_per_density
    tm.buried_carbon += decay * sp.biomass_burial_ratio * mass_per_density
    atmo.release_carbon(decayed * (1.0 - sp.biomass_burial_ratio))

    diff = growth - decay
    b += diff
    sim.diff_biomass[...] = diff


def burn_biomass(planet: Planet, sim: Sim, p: Coords, ratio: float, release_ratio: float = 1.0) -> float:
    """Burn ``ratio`` of the biomass on ``p``; returns the carbon burnt in Mt.

    ``release_ratio`` of the carbon goes to the atmosphere, the rest is buried.
    """
    x, y = p
    burnt = float(planet.map.biomass[y, x]) * ratio
    planet.map.biomass[y, x] -= burnt
    carbon = burnt * sim.tile_area * 1.0e-9
    planet.atmo.release_carbon(carbon * release_ratio)
    planet.map.buried_carbon[y, x] += carbon * (1.0 - release_ratio)
    return carbon


def requirement_mask(planet: Planet, params: Params) -> np.ndarray:
    """``(N_BIOMES, H, W)`` mask of tiles satisfying each biome's ranges."""
    tm = planet.map
    bt = params.biome_table
    t = tm.temp[None]
    r = tm.rainfall[None]
    f = tm.fertility[None]
    b = tm.biomass[None]
    ok = (
        (t >= bt.temp_min[:, None, None])
        & (t <= bt.temp_max[:, None, None])
        & (r >= bt.rainfall_min[:, None, None])
        & (r <= bt.rainfall_max[:, None, None])
        & (f >= bt.fertility_min[:, None, None])
        & (b >= bt.biomass_min[:, None, None])
    )
    ok[int(Biome.ICE_FIELD)] &= tm.ice >= params.sim.ice_thickness_of_ice_field
    return ok


def transition_biomes(planet: Planet, sim: Sim, params: Params) -> None:
    tm = planet.map
    bt = params.biome_table
    biome = tm.biome.astype(np.int64)
    h, w = biome.shape

    ok = requirement_mask(planet, params)
    yy, xx = np.indices((h, w))
    current_ok = ok[biome, yy, xx]
    best_priority = np.where(current_ok, bt.priority[biome], 0)
    best = np.full((h, w), -1, dtype=np.int64)
    for i in range(N_BIOMES):
        if i in SEA_BIOMES or i == int(Biome.ICE_FIELD):
            continue
        cand = ok[i] & (bt.priority[i] > best_priority) & (biome != i)
        best[cand] = i
        best_priority[cand] = bt.priority[i]

    roll = sim.rng.random((h, w))
    if sim.before_start:
        prob = np.full((h, w), params.sim.before_start_biome_transition_probability)
    else:
        prob = bt.transition_prob[np.maximum(best, 0)]

    land = ~np.isin(biome, SEA_BIOMES)
    change = land & (best >= 0) & (roll < prob)
    new = np.where(change, best, biome)

    iced = land & ok[int(Biome.ICE_FIELD)]
    new[iced] = int(Biome.ICE_FIELD)

    # Sea freezes and thaws by temperature only.
    sea_ice_max = params.biomes[Biome.SEA_ICE].temp[1]
    freeze_prob = bt.transition_prob[int(Biome.SEA_ICE)]
    thaw_prob = bt.transition_prob[int(Biome.OCEAN)]
    freeze = (biome == int(Biome.OCEAN)) & (tm.temp <= sea_ice_max) & (roll < freeze_prob)
    thaw = (biome == int(Biome.SEA_ICE)) & (tm.temp > sea_ice_max) & (roll < thaw_prob)
    new[freeze] = int(Biome.SEA_ICE)
    new[thaw] = int(Biome.OCEAN)

    tm.biome[...] = new.astype(tm.biome.dtype)


def sim_biome(planet: Planet, sim: Sim, params: Params, debug: Optional[DebugContext] = None) -> None:
    update_fertility(planet, sim, params)
    update_biomass(planet, sim, params)
    transition_biomes(planet, sim, params)
    if debug is not None:
        debug.log_tile_values(
            planet,
            "biome",
            fertility=planet.map.fertility,
            biomass=planet.map.biomass,
            diff_biomass=sim.diff_biomass,
        )


__all__ = [
    "burn_biomass",
    "requirement_mask",
    "sim_biome",
    "transition_biomes",
    "update_biomass",
    "update_fertility",
]
