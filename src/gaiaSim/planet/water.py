"""Hydrology: sea level, vapor transport, rainfall and ice."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from ..utils import FOUR_NEIGHBORS, bisection, neighbor_view
from .defs import SEA_BIOMES, Biome

if TYPE_CHECKING:
    from .debug import DebugContext
    from .params import Params
    from .sim import Sim
    from .state import Planet


@dataclass
class Water:
    """Water volume in m^3; sea level in m above height 0."""

    water_volume: float = 0.0
    sea_level: float = 0.0
    ice_volume: float = 0.0

    def sea_water_volume(self) -> float:
        return max(self.water_volume - self.ice_volume, 0.0)


def flooded_volume(heights: np.ndarray, level: float, tile_area: float) -> float:
    return float(np.clip(level - heights, 0.0, None).sum()) * tile_area


def solve_sea_level(
    heights: np.ndarray,
    volume: float,
    tile_area: float,
    *,
    n_iterations: int,
    tolerance: float,
) -> float:
    """Bisect for the level whose flooded volume matches ``volume``.

    The result is approximate: the search stops after ``n_iterations`` or
    once the volume residual is below ``tolerance``.
    """
    if volume <= 0.0:
        return 0.0
    lo = min(0.0, float(heights.min()))
    hi = float(heights.max()) + volume / (heights.size * tile_area)
    return bisection(
        lambda level: flooded_volume(heights, level, tile_area) - volume,
        lo,
        hi,
        n_iterations,
        tolerance,
    )


def update_sea_level(planet: Planet, sim: Sim, params: Params) -> None:
    """Solve the sea level and flip tiles that crossed it."""
    tm = planet.map
    water = planet.water
    sp = params.sim
    water.ice_volume = float(tm.ice.sum()) * sim.tile_area
    water.sea_level = solve_sea_level(
        tm.height,
        water.sea_water_volume(),
        sim.tile_area,
        n_iterations=sp.sea_level_bisection_iterations,
        tolerance=sp.sea_level_volume_tolerance,
    )

    # Without sea water nothing floods, even below height 0.
    if water.sea_water_volume() > 0.0:
        below = tm.height < water.sea_level
    else:
        below = np.zeros(tm.height.shape, dtype=bool)
    is_sea = np.isin(tm.biome, SEA_BIOMES)
    to_ocean = below & ~is_sea
    to_land = ~below & is_sea
    tm.biome[to_ocean] = int(Biome.OCEAN)
    tm.ice[below] = 0.0
    tm.biome[to_land] = int(Biome.ROCK)
    tm.fertility[to_land] *= sp.sea_to_land_fertility_factor


def sim_vapor(planet: Planet, sim: Sim, params: Params) -> None:
    """Diffuse vapor with double buffering and derive rainfall."""
    tm = planet.map
    sp = params.sim
    ocean = tm.biome == int(Biome.OCEAN)
    ocean_vapor = sp.ocean_vaporization_table(tm.temp)
    revap = params.biome_table.revaporization_ratio[tm.biome]
    loss = sp.vapor_loss_ratio * (1.0 - revap)

    surface = np.maximum(tm.height, planet.water.sea_level)
    rates = [
        sp.vapor_diffusion_factor
        * np.clip(1.0 - np.abs(neighbor_view(surface, dx, dy) - surface) * sp.vapor_height_penalty, 0.0, 1.0)
        for dx, dy in FOUR_NEIGHBORS
    ]

    sim.vapor[...] = tm.vapor
    for _ in range(sp.n_loop_vapor_calc):
        v = sim.vapor
        new = sim.vapor_new
        new[...] = v * (1.0 - loss)
        for (dx, dy), rate in zip(FOUR_NEIGHBORS, rates):
            new += rate * (neighbor_view(v, dx, dy) - v)
        new[ocean] = ocean_vapor[ocean]
        new += sim.vapor_source
        np.clip(new, 0.0, None, out=new)
        sim.vapor, sim.vapor_new = sim.vapor_new, sim.vapor

    tm.vapor[...] = sim.vapor
    tm.rainfall[...] = sim.vapor * sp.rainfall_duration


def sim_ice(planet: Planet, params: Params) -> None:
    """Melt or accumulate land ice."""
    tm = planet.map
    sp = params.sim
    land = ~np.isin(tm.biome, SEA_BIOMES)
    melt = land & (tm.temp > sp.melting_temp)
    freeze = land & ~melt

    tm.ice[melt] = np.maximum(tm.ice[melt] - (tm.temp[melt] - sp.melting_temp) * sp.ice_melting_rate_per_degree, 0.0)

    limit = tm.rainfall * sp.ice_limit_temp_table(tm.temp)
    grow = freeze & (tm.ice < limit)
    tm.ice[grow] = np.minimum(limit[grow], tm.ice[grow] + tm.rainfall[grow] * sp.snow_accumulation_rate)


def sim_water(planet: Planet, sim: Sim, params: Params, debug: Optional[DebugContext] = None) -> None:
    update_sea_level(planet, sim, params)
    sim_vapor(planet, sim, params)
    sim_ice(planet, params)
    if debug is not None:
        debug.log_tile_values(
            planet,
            "water",
            vapor=planet.map.vapor,
            rainfall=planet.map.rainfall,
            ice=planet.map.ice,
        )


__all__ = [
    "Water",
    "flooded_volume",
    "sim_ice",
    "sim_vapor",
    "sim_water",
    "solve_sea_level",
    "update_sea_level",
]
