"""Building footprints, the working-building census and building effects."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import numpy as np

from ..utils import CHEBYSHEV_DISTANCE_1_COORDS, Coords, convert_p_cyclic
from .civ import remove_settlement
from .defs import SEA_BIOMES, SpaceBuildingKind, StructureKind, StructureSize
from .params import AdjustSolarPower, Fertilize, Heater, RemoveAtmo, SprayToAtmo, SupplyEnergy, Vapor
from .state import AlwaysEnabled, EnabledNumber, Facility, IncreaseRate, Occupied, Settlement

if TYPE_CHECKING:
    from .params import Params, StructureAttrs
    from .sim import Sim
    from .state import BuildingControl, Planet


def footprint(p: Coords, size: StructureSize, map_size: Coords) -> Optional[List[Coords]]:
    """Tiles covered by a structure with origin ``p``; None if it leaves the map."""
    if size is StructureSize.SMALL:
        return [p]
    tiles = [p]
    for d in CHEBYSHEV_DISTANCE_1_COORDS:
        q = convert_p_cyclic((p[0] + d[0], p[1] + d[1]), map_size)
        if q is None:
            return None
        tiles.append(q)
    return tiles


def placement_problem(planet: Planet, params: Params, p: Coords, kind: StructureKind) -> Optional[str]:
    """Reason why ``kind`` cannot be placed at ``p``, or None."""
    tm = planet.map
    tiles = footprint(p, params.structures[kind].size, tm.size)
    if tiles is None:
        return "structure does not fit on the map"
    for q in tiles:
        if tm.get_structure(q) is not None:
            return "tile is already occupied"
        if int(tm.biome[q[1], q[0]]) in SEA_BIOMES:
            return "structures cannot be placed on the sea"
    return None


def place_structure(planet: Planet, params: Params, p: Coords, kind: StructureKind) -> None:
    tm = planet.map
    tiles = footprint(p, params.structures[kind].size, tm.size)
    if tiles is None:
        raise ValueError(f"{kind.value} does not fit at {p}")
    tm.set_structure(p, Facility(kind=kind))
    for q in tiles[1:]:
        tm.set_structure(q, Occupied(by=p))


def structure_origin(planet: Planet, p: Coords) -> Coords:
    s = planet.map.get_structure(p)
    return s.by if isinstance(s, Occupied) else p


def remove_structure(planet: Planet, p: Coords) -> None:
    """Remove whatever structure covers ``p``, including a whole footprint."""
    tm = planet.map
    origin = structure_origin(planet, p)
    s = tm.get_structure(origin)
    if isinstance(s, Settlement):
        remove_settlement(planet, origin)
        return
    for d in CHEBYSHEV_DISTANCE_1_COORDS:
        q = convert_p_cyclic((origin[0] + d[0], origin[1] + d[1]), tm.size)
        if q is None:
            continue
        other = tm.get_structure(q)
        if isinstance(other, Occupied) and other.by == origin:
            tm.set_structure(q, None)
    tm.set_structure(origin, None)
    if origin != p and isinstance(tm.get_structure(p), Occupied):
        tm.set_structure(p, None)


def initial_control(attrs: StructureAttrs) -> BuildingControl:
    """Control value set when the first unit of a space building is built."""
    if attrs.control == "enabled_number":
        return EnabledNumber(n=1)
    if attrs.control == "increase_rate":
        return IncreaseRate(rate=0)
    return AlwaysEnabled()


def _facilities(planet: Planet) -> List[tuple[Coords, Facility]]:
    items = [(p, s) for p, s in planet.map.structure.items() if isinstance(s, Facility)]
    items.sort(key=lambda item: (item[0][1], item[0][0]))
    return items


def _apply_tile_effect(planet: Planet, sim: Sim, p: Coords, attrs: StructureAttrs) -> None:
    effect = attrs.effect
    x, y = p
    if isinstance(effect, Heater):
        sim.heater_power[y, x] += effect.power
    elif isinstance(effect, Vapor):
        sim.vapor_source[y, x] += effect.value
    elif isinstance(effect, (Fertilize, SupplyEnergy)):
        r = effect.range
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                q = convert_p_cyclic((x + dx, y + dy), sim.size)
                if q is None:
                    continue
                qx, qy = q
                if isinstance(effect, Fertilize):
                    sim.fertilize_increment[qy, qx] = max(sim.fertilize_increment[qy, qx], effect.increment)
                    sim.fertilize_max[qy, qx] = max(sim.fertilize_max[qy, qx], effect.max)
                else:
                    sim.gift_energy[qy, qx] = max(sim.gift_energy[qy, qx], effect.value)


def update_buildings(planet: Planet, sim: Sim, params: Params) -> None:
    """Recount working buildings and fill energy, material and effect scratch.

    Energy producers are counted first; consumers then run in row-major
    order while the surplus covers their upkeep.
    """
    res = planet.res
    for arr in (sim.heater_power, sim.vapor_source, sim.fertilize_increment, sim.fertilize_max, sim.gift_energy):
        arr[...] = 0.0
    sim.working_buildings = {}
    sim.working_space_buildings = {}
    sim.working_tiles = set()

    facilities = [(p, f) for p, f in _facilities(planet) if not f.disabled]
    for p, f in facilities:
        attrs = params.structures[f.kind]
        if attrs.produces_energy > 0.0 and attrs.upkeep_energy <= 0.0:
            res.energy += attrs.produces_energy
            sim.working_buildings[f.kind] = sim.working_buildings.get(f.kind, 0) + 1
            sim.working_tiles.add(p)

    space = sorted(planet.space_buildings.items(), key=lambda item: item[0].value)
    for kind, building in space:
        attrs = params.space_buildings[kind]
        if attrs.produces_energy > 0.0 and attrs.upkeep_energy <= 0.0:
            n = building.enabled()
            res.energy += attrs.produces_energy * n
            if n > 0:
                sim.working_space_buildings[kind] = n

    for p, f in facilities:
        attrs = params.structures[f.kind]
        if attrs.produces_energy > 0.0 and attrs.upkeep_energy <= 0.0:
            continue
        if res.surplus_energy() < attrs.upkeep_energy:
            continue
        res.used_energy += attrs.upkeep_energy
        res.energy += attrs.produces_energy
        res.diff_material += attrs.produces_material
        sim.working_buildings[f.kind] = sim.working_buildings.get(f.kind, 0) + 1
        sim.working_tiles.add(p)
        _apply_tile_effect(planet, sim, p, attrs)

    for kind, building in space:
        attrs = params.space_buildings[kind]
        if attrs.produces_energy > 0.0 and attrs.upkeep_energy <= 0.0:
            continue
        n = building.enabled()
        if attrs.upkeep_energy > 0.0:
            n = min(n, int(max(res.surplus_energy(), 0.0) // attrs.upkeep_energy))
        if n <= 0:
            continue
        res.used_energy += attrs.upkeep_energy * n
        res.diff_material += attrs.produces_material * n
        sim.working_space_buildings[kind] = n

    planet.state.solar_power_multiplier = solar_power_multiplier(planet, sim, params)


def solar_power_multiplier(planet: Planet, sim: Sim, params: Params) -> float:
    multiplier = 1.0
    for kind, n in sim.working_space_buildings.items():
        effect = params.space_buildings[kind].effect
        if not isinstance(effect, AdjustSolarPower):
            continue
        control = planet.space_buildings[kind].control
        rate = control.rate if isinstance(control, IncreaseRate) else 100
        multiplier += effect.max_ratio * n * rate / 100.0
    return max(multiplier, 0.0)


def _atmo_effect(planet: Planet, effect, n: int) -> None:
    atmo = planet.atmo
    if isinstance(effect, SprayToAtmo):
        atmo.add(effect.gas, effect.mass * n)
    elif isinstance(effect, RemoveAtmo):
        efficiency = float(np.clip(effect.efficiency_table(atmo.partial_pressure(effect.gas)), 0.0, 1.0))
        atmo.add(effect.gas, -min(effect.mass * n * efficiency, atmo.get(effect.gas)))


def apply_building_effects(planet: Planet, sim: Sim, params: Params) -> None:
    """Apply atmosphere effects of the working buildings counted this cycle."""
    for kind in StructureKind:
        n = sim.working_buildings.get(kind, 0)
        if n > 0:
            _atmo_effect(planet, params.structures[kind].effect, n)
    for kind in SpaceBuildingKind:
        n = sim.working_space_buildings.get(kind, 0)
        if n > 0:
            _atmo_effect(planet, params.space_buildings[kind].effect, n)


__all__ = [
    "apply_building_effects",
    "footprint",
    "initial_control",
    "place_structure",
    "placement_problem",
    "remove_structure",
    "solar_power_multiplier",
    "structure_origin",
    "update_buildings",
]
