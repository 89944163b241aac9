"""Vehicles carrying colonists away from advanced settlements."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Tuple

from ..utils import CHEBYSHEV_DISTANCE_1_COORDS, Coords, convert_p_cyclic
from .civ import can_found_settlement
from .defs import TileEventKind
from .state import Settlement, Vehicle

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import Planet


def spawn_vehicles(planet: Planet, sim: Sim, params: Params) -> None:
    tm = planet.map
    ep = params.event
    for p, settlement in tm.settlements():
        if settlement.age < ep.vehicle_min_age or tm.has_tile_event(p, TileEventKind.VEHICLE):
            continue
        if sim.rng.random() >= ep.vehicle_spawn_prob:
            continue
        d = CHEBYSHEV_DISTANCE_1_COORDS[int(sim.rng.integers(0, len(CHEBYSHEV_DISTANCE_1_COORDS)))]
        tm.insert_tile_event(
            p,
            Vehicle(id=settlement.id, age=settlement.age, direction=d, remaining_cycles=ep.vehicle_max_cycles),
        )


def advance_vehicles(planet: Planet, sim: Sim, params: Params) -> None:
    """Move every vehicle one tile; settle on the first suitable tile."""
    tm = planet.map
    sp = params.sim
    moved: List[Tuple[Coords, Vehicle]] = []
    for p, vehicle in tm.tile_events_of(TileEventKind.VEHICLE):
        tm.remove_tile_event(p, TileEventKind.VEHICLE)
        if vehicle.id not in planet.civs:
            continue
        q = convert_p_cyclic((p[0] + vehicle.direction[0], p[1] + vehicle.direction[1]), sim.size)
        if q is None:
            continue
        attr = params.animal(vehicle.id)
        if can_found_settlement(planet, sim, attr, q, params):
            pop = sp.settlement_init_pop[vehicle.age]
            tm.set_structure(q, Settlement(id=vehicle.id, age=vehicle.age, pop=pop))
            continue
        vehicle.remaining_cycles -= 1
        if vehicle.remaining_cycles > 0:
            moved.append((q, vehicle))

    for q, vehicle in moved:
        if not tm.has_tile_event(q, TileEventKind.VEHICLE):
            tm.insert_tile_event(q, vehicle)


__all__ = ["advance_vehicles", "spawn_vehicles"]
