"""Radiative balance and diffusive heat exchange between tiles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

from ..utils import neighbor_laplacian
from .defs import MT, SEA_BIOMES, STEFAN_BOLTZMANN_CONSTANT, Biome, GasKind, TileEventKind

if TYPE_CHECKING:
    from .debug import DebugContext
    from .params import Params
    from .sim import Sim
    from .state import Planet


def calc_albedo(planet: Planet, sim: Sim, params: Params) -> None:
    """Fill ``sim.albedo`` from biome, ice cover, black dust and aerosol."""
    tm = planet.map
    sp = params.sim
    table = params.biome_table
    albedo = table.albedo[tm.biome]
    iced = tm.ice >= sp.ice_thickness_of_ice_field
    albedo = np.where(iced, np.maximum(albedo, table.albedo[int(Biome.ICE_FIELD)]), albedo)
    for (x, y), _ in tm.tile_events_of(TileEventKind.BLACK_DUST):
        albedo[y, x] = max(albedo[y, x] - sp.black_dust_albedo_decrease, 0.0)
    reflect = sp.aerosol_albedo_table(planet.atmo.aerosol)
    sim.albedo[...] = albedo + (1.0 - albedo) * reflect


def calc_greenhouse(planet: Planet, params: Params) -> np.ndarray:
    """Fraction of outgoing radiation retained per tile."""
    sp = params.sim
    co2 = planet.atmo.partial_pressure(GasKind.CARBON_DIOXIDE)
    base = sp.greenhouse_co2_table(co2) * sp.greenhouse_pressure_table(planet.atmo.atm())
    altitude = np.maximum(planet.map.height - planet.water.sea_level, 0.0)
    effect = base * np.clip(1.0 - altitude * sp.greenhouse_altitude_attenuation, 0.0, 1.0)
    return np.clip(effect, 0.0, sp.max_greenhouse_effect)


def heat_capacity(planet: Planet, sim: Sim, params: Params) -> float:
    """Heat capacity of one tile column in J/K."""
    sp = params.sim
    atmo_mass_per_tile = planet.atmo.total_mass() / sim.n_tiles
    return atmo_mass_per_tile * sp.air_heat_cap * MT + sp.surface_heat_cap * sim.tile_area


def advance(planet: Planet, sim: Sim, params: Params, debug: Optional[DebugContext] = None) -> None:
    """Integrate air temperature over ``n_loop_atmo_heat_calc`` sub-steps."""
    tm = planet.map
    sp = params.sim
    tile_area = sim.tile_area

    calc_albedo(planet, sim, params)
    greenhouse = calc_greenhouse(planet, params)
    cap = heat_capacity(planet, sim, params)

    insolation = (
        planet.state.solar_power
        * sim.cos_lat[:, None]
        * (1.0 - sim.albedo)
        * sp.insolation_day_factor
        * tile_area
    )
    inflow = insolation + planet.basics.geothermal_power / sim.n_tiles + sim.heater_power
    emission = STEFAN_BOLTZMANN_CONSTANT * (1.0 - greenhouse) * tile_area
    dt = sp.secs_per_day

    sim.atemp[...] = tm.temp
    for _ in range(sp.n_loop_atmo_heat_calc):
        t = sim.atemp
        new = sim.atemp_new
        new[...] = t + (inflow - emission * t ** 4) * dt / cap
        new += sp.air_diffusion_factor * neighbor_laplacian(t)
        sim.atemp, sim.atemp_new = sim.atemp_new, sim.atemp

    tm.temp[...] = sim.atemp
    sea = np.isin(tm.biome, SEA_BIOMES)
    tm.sea_temp[sea] += (tm.temp[sea] - tm.sea_temp[sea]) * sp.sea_heat_exchange_rate
    tm.sea_temp[~sea] = tm.temp[~sea]
    planet.stat.average_air_temp = float(tm.temp.mean())

    if debug is not None:
        debug.log_tile_values(planet, "heat", temp=tm.temp, albedo=sim.albedo, greenhouse=greenhouse)


__all__ = ["advance", "calc_albedo", "calc_greenhouse", "heat_capacity"]
