"""Energy supply, allocation and biomass consumption of settlements."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import numpy as np

from ..utils import CHEBYSHEV_DISTANCE_1_COORDS, Coords, convert_p_cyclic
from .defs import ENERGY_PRIORITY, N_ENERGY_SOURCES, CivilizationAge, EnergySource

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import Planet, Settlement


def update_energy_supply(planet: Planet, sim: Sim, params: Params) -> None:
    """Fill the per-tile renewable supply arrays."""
    tm = planet.map
    sp = params.sim
    sim.energy_wind_solar[...] = sp.solar_wind_energy_table(planet.state.solar_power * sim.cos_lat)[:, None]
    above_sea = tm.height - planet.water.sea_level
    geothermal = np.where(above_sea > -sp.geothermal_max_depth, sp.geothermal_energy_per_tile, 0.0)
    sim.energy_hydro_geothermal[...] = sp.hydro_energy_table(tm.rainfall) + geothermal


def _surrounding(planet: Planet, sim: Sim, p: Coords) -> List[Coords]:
    """Neighbouring tiles without a settlement."""
    out = []
    for d in CHEBYSHEV_DISTANCE_1_COORDS:
        q = convert_p_cyclic((p[0] + d[0], p[1] + d[1]), sim.size)
        if q is not None and planet.map.settlement_at(q) is None:
            out.append(q)
    return out


def _nuclear_ratio(settlement: Settlement, params: Params) -> float:
    if settlement.age is CivilizationAge.EARLY_SPACE:
        return 1.0
    if settlement.age is CivilizationAge.ATOMIC:
        ratio = params.sim.base_nuclear_ratio + params.sim.nuclear_tech_factor * settlement.tech_exp
        return float(np.clip(ratio, 0.0, 1.0))
    return 0.0


def _richest(layer: np.ndarray, p: Coords, size: Coords) -> Coords:
    """Tile with the largest value in the 3x3 block around ``p``."""
    best = p
    best_v = float(layer[p[1], p[0]])
    for d in CHEBYSHEV_DISTANCE_1_COORDS:
        q = convert_p_cyclic((p[0] + d[0], p[1] + d[1]), size)
        if q is None:
            continue
        v = float(layer[q[1], q[0]])
        if v > best_v:
            best, best_v = q, v
    return best


def process_settlement_energy(planet: Planet, sim: Sim, params: Params, p: Coords, settlement: Settlement) -> float:
    """Allocate energy for one settlement and consume fuel.

    Returns the resource availability multiplier in ``[0, 1]``; values below
    one are squared so that shortages throttle growth sharply.
    """
    tm = planet.map
    sp = params.sim
    x, y = p
    age = int(settlement.age)
    demand = settlement.pop * sp.energy_demand_per_pop[age]
    cr = float(sim.settlement_cr[y, x])
    civ = planet.civs.get(settlement.id)
    weights = civ.civ_control.energy_weight if civ is not None else [50] * N_ENERGY_SOURCES

    around = _surrounding(planet, sim, p)
    wind_solar = sum(float(sim.energy_wind_solar[q[1], q[0]]) for q in around) * (1.0 - cr)
    hydro = sum(float(sim.energy_hydro_geothermal[q[1], q[0]]) for q in around) * (1.0 - cr)

    fossil_tile = _richest(tm.buried_carbon, p, sim.size)
    fossil_mass = float(tm.buried_carbon[fossil_tile[1], fossil_tile[0]]) * sp.fossil_fuel_extract_ratio

    supply = [0.0] * N_ENERGY_SOURCES
    supply[EnergySource.SOLAR_WIND] = wind_solar + float(sim.energy_wind_solar[y, x])
    supply[EnergySource.HYDRO_GEOTHERMAL] = hydro + float(sim.energy_hydro_geothermal[y, x])
    supply[EnergySource.FOSSIL_FUEL] = fossil_mass * sp.fossil_fuel_energy_per_mt
    supply[EnergySource.NUCLEAR] = demand * _nuclear_ratio(settlement, params)
    supply[EnergySource.GIFT] = float(sim.gift_energy[y, x])

    consume = [0.0] * N_ENERGY_SOURCES
    remaining = demand
    for src in ENERGY_PRIORITY:
        limit = demand * sp.energy_source_limit_by_age[age][src] * weights[src] / 50.0
        e = max(min(limit, supply[src], remaining), 0.0)
        consume[src] = e
        remaining -= e
    consume[EnergySource.BIOMASS] = max(remaining, 0.0)

    for src in EnergySource:
        floor = demand * sp.energy_source_min_by_age[age][src]
        if consume[src] >= floor:
            continue
        if src is EnergySource.BIOMASS:
            consume[src] = floor
        else:
            consume[src] = max(min(floor, supply[src]), consume[src])

    sum_eff = sum(consume[src] / sp.energy_efficiency[src] for src in EnergySource if sp.energy_efficiency[src] > 0.0)
    total = sum(consume)
    sim.energy_eff[y, x] = total / sum_eff if sum_eff > 0.0 else 1.0

    civ_sum = sim.civ_sum_of(settlement.id)
    for src in EnergySource:
        civ_sum.total_energy_consumption[src] += consume[src]

    fossil_used = 0.0
    if sp.fossil_fuel_energy_per_mt > 0.0:
        fossil_used = consume[EnergySource.FOSSIL_FUEL] / sp.fossil_fuel_energy_per_mt
    if fossil_used > 0.0:
        fx, fy = fossil_tile
        fossil_used = min(fossil_used, float(tm.buried_carbon[fy, fx]))
        tm.buried_carbon[fy, fx] -= fossil_used
        planet.atmo.release_carbon(fossil_used)

    return consume_biomass(planet, sim, params, p, settlement, consume[EnergySource.BIOMASS])


def consume_biomass(
    planet: Planet,
    sim: Sim,
    params: Params,
    p: Coords,
    settlement: Settlement,
    energy: float,
) -> float:
    tm = planet.map
    sp = params.sim
    needed = energy * sp.biomass_energy_factor
    if needed <= 0.0:
        settlement.biomass_shortage_cycles = 0
        return 1.0

    qx, qy = _richest(tm.biomass, p, sim.size)
    available = float(tm.biomass[qy, qx])
    taken = min(available, needed)
    tm.biomass[qy, qx] = available - taken

    carbon = taken * sim.tile_area * 1.0e-9
    released = carbon * sp.biomass_consumption_release_ratio
    planet.atmo.release_carbon(released)
    tm.buried_carbon[qy, qx] += carbon - released

    if needed > available * sp.settlement_deserted_biomass_factor:
        settlement.biomass_shortage_cycles += 1
    else:
        settlement.biomass_shortage_cycles = 0

    availability = min(1.0, available / needed)
    if availability < 1.0:
        availability *= availability
    return availability


__all__ = ["consume_biomass", "process_settlement_energy", "update_energy_supply"]
