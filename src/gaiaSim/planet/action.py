"""Player and debug commands that mutate a planet between cycles.

Every command validates first and raises `ActionError` without touching the
planet when it cannot be applied. Commands that change buildings or
resources re-run `update` so that derived values are current before the
next cycle.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..utils import Coords
from .buildings import initial_control, place_structure, placement_problem, remove_structure
from .civ import can_civilize, civilize_animal, habitat_match
from .decadence import cause_decadence
from .defs import CAUSABLE_TILE_EVENTS, Biome, CivilizationAge, SpaceBuildingKind, StructureKind, TileEventKind
from .geological import cause_volcanic_eruption
from .params import Params
from .sim import Sim
from .state import (
    AlwaysEnabled,
    BuildingControl,
    Civilization,
    EnabledNumber,
    Facility,
    IncreaseRate,
    Occupied,
    Planet,
    Settlement,
)
from .stepper import update
from .tile_event import cause_tile_event as _cause_tile_event
from .war import start_civil_war

logger = logging.getLogger(__name__)

# Initial normalized population of a spawned animal.
SPAWNED_ANIMAL_N = 0.1


class ActionError(ValueError):
    """A command that cannot be applied to the current planet."""


def _check_in_range(planet: Planet, p: Coords) -> None:
    w, h = planet.size
    if not (0 <= p[0] < w and 0 <= p[1] < h):
        raise ActionError(f"coordinates {p} are outside the map")


# Structures


def place(planet: Planet, sim: Sim, params: Params, p: Coords, kind: StructureKind) -> None:
    _check_in_range(planet, p)
    attrs = params.structures[kind]
    problem = placement_problem(planet, params, p, kind)
    if problem is not None:
        raise ActionError(problem)
    if attrs.cost > planet.res.material:
        raise ActionError("lack of material")
    if planet.res.surplus_energy() < attrs.upkeep_energy - attrs.produces_energy:
        raise ActionError("lack of energy")
    place_structure(planet, params, p, kind)
    planet.res.material -= attrs.cost
    update(planet, sim, params)


def demolish(planet: Planet, sim: Sim, params: Params, p: Coords) -> None:
    _check_in_range(planet, p)
    s = planet.map.get_structure(p)
    if not isinstance(s, (Facility, Occupied)):
        raise ActionError("no building to demolish")
    remove_structure(planet, p)
    update(planet, sim, params)


def set_structure_disabled(planet: Planet, sim: Sim, params: Params, p: Coords, disabled: bool) -> None:
    s = planet.map.get_structure(p)
    if isinstance(s, Occupied):
        s = planet.map.get_structure(s.by)
    if not isinstance(s, Facility):
        raise ActionError("no building at the tile")
    s.disabled = disabled
    update(planet, sim, params)


# Space buildings


def build_space_building(planet: Planet, sim: Sim, params: Params, kind: SpaceBuildingKind) -> None:
    attrs = params.space_buildings[kind]
    if attrs.cost > planet.res.material:
        raise ActionError("lack of material")
    if planet.res.surplus_energy() < attrs.upkeep_energy - attrs.produces_energy:
        raise ActionError("lack of energy")
    planet.res.material -= attrs.cost
    building = planet.space_buildings[kind]
    building.n += 1
    if isinstance(building.control, EnabledNumber):
        building.control = EnabledNumber(n=building.control.n + 1)
    elif building.n == 1:
        building.control = initial_control(attrs)
    update(planet, sim, params)


def demolish_space_building(planet: Planet, sim: Sim, params: Params, kind: SpaceBuildingKind) -> None:
    building = planet.space_buildings[kind]
    if building.n <= 0:
        raise ActionError(f"no {kind.value} to demolish")
    building.n -= 1
    if isinstance(building.control, EnabledNumber):
        building.control = EnabledNumber(n=min(building.control.n, building.n))
    update(planet, sim, params)


def set_building_control(
    planet: Planet,
    sim: Sim,
    params: Params,
    kind: SpaceBuildingKind,
    control: BuildingControl,
) -> None:
    expected = params.space_buildings[kind].control
    allowed = {
        "always_enabled": AlwaysEnabled,
        "enabled_number": EnabledNumber,
        "increase_rate": IncreaseRate,
    }[expected]
    if not isinstance(control, allowed):
        raise ActionError(f"{kind.value} is controlled by {expected}")
    if isinstance(control, EnabledNumber) and not (0 <= control.n <= planet.space_buildings[kind].n):
        raise ActionError("enabled number must be between 0 and the number built")
    if isinstance(control, IncreaseRate) and not (-100 <= control.rate <= 100):
        raise ActionError("rate must be in [-100, 100]")
    planet.space_buildings[kind].control = control
    update(planet, sim, params)


# Animals and civilizations


def spawn_animal(planet: Planet, params: Params, p: Coords, animal_id: str) -> None:
    _check_in_range(planet, p)
    attr = params.animal(animal_id)
    if planet.map.animal_at(p, attr.size) is not None:
        raise ActionError("tile is already inhabited")
    if not habitat_match(planet.map, attr, p):
        raise ActionError("habitat does not match")
    if attr.cost > planet.res.gene_point:
        raise ActionError("lack of gene points")
    planet.res.gene_point -= attr.cost
    planet.map.set_animal(p, attr.size, params.animal_index(animal_id), SPAWNED_ANIMAL_N)


def civilize(planet: Planet, sim: Sim, params: Params, animal_id: str) -> Coords:
    reason = can_civilize(planet, params, animal_id)
    if reason is not None:
        raise ActionError(reason)
    p = civilize_animal(planet, sim, params, animal_id)
    if p is None:
        raise ActionError("no tile to found a settlement")
    planet.res.gene_point -= params.animal(animal_id).civ.civilize_cost
    update(planet, sim, params)
    return p


def place_settlement(
    planet: Planet,
    params: Params,
    p: Coords,
    animal_id: str,
    age: CivilizationAge = CivilizationAge.STONE,
    pop: Optional[float] = None,
) -> Settlement:
    _check_in_range(planet, p)
    params.animal(animal_id)
    if planet.map.get_structure(p) is not None:
        raise ActionError("tile is already occupied")
    if pop is None:
        pop = params.sim.settlement_init_pop[age]
    if pop <= 0.0:
        raise ActionError("pop must be > 0")
    settlement = Settlement(id=animal_id, age=age, pop=pop)
    planet.map.set_structure(p, settlement)
    planet.civs.setdefault(animal_id, Civilization(most_advanced_age=age))
    return settlement


# Terrain


def edit_biome(planet: Planet, p: Coords, biome: Biome) -> None:
    _check_in_range(planet, p)
    planet.map.biome[p[1], p[0]] = int(biome)


def edit_height(planet: Planet, p: Coords, height: float) -> None:
    _check_in_range(planet, p)
    planet.map.height[p[1], p[0]] = height


# Events


def cause_tile_event(planet: Planet, sim: Sim, params: Params, p: Coords, kind: TileEventKind) -> None:
    """Trigger ``kind`` at ``p``, paying its material cost."""
    _check_in_range(planet, p)
    if kind not in CAUSABLE_TILE_EVENTS:
        raise ActionError(f"{kind.value} cannot be caused")
    cost = params.event.tile_event_costs.get(kind, 0.0)
    if cost > planet.res.material:
        raise ActionError("lack of material")
    if kind is TileEventKind.PLAGUE and planet.map.settlement_at(p) is None:
        raise ActionError("plague needs a settlement")
    _cause_tile_event(planet, sim, params, p, kind)
    planet.res.material -= cost
    logger.debug("caused %s at %s (cycle %d)", kind.value, p, planet.cycles)
    update(planet, sim, params)


def debug_cause_decadence(planet: Planet, sim: Sim, params: Params, p: Coords) -> None:
    if not cause_decadence(planet, sim, params, p):
        raise ActionError("no settlement at the tile")


def debug_cause_civil_war(planet: Planet, sim: Sim, params: Params, p: Coords) -> int:
    i = start_civil_war(planet, sim, params, p)
    if i is None:
        raise ActionError("no settlement at the tile")
    return i


def debug_cause_nuclear_explosion(planet: Planet, sim: Sim, params: Params, p: Coords) -> None:
    _check_in_range(planet, p)
    _cause_tile_event(planet, sim, params, p, TileEventKind.NUCLEAR_EXPLOSION)
    update(planet, sim, params)


def debug_cause_volcanic_eruption(
    planet: Planet,
    sim: Sim,
    params: Params,
    p: Coords,
    power: Optional[float] = None,
    cycles: Optional[int] = None,
) -> None:
    _check_in_range(planet, p)
    cause_volcanic_eruption(planet, sim, params, p, power=power, cycles=cycles)
    update(planet, sim, params)


__all__ = [
    "ActionError",
    "build_space_building",
    "cause_tile_event",
    "civilize",
    "debug_cause_civil_war",
    "debug_cause_decadence",
    "debug_cause_nuclear_explosion",
    "debug_cause_volcanic_eruption",
    "demolish",
    "demolish_space_building",
    "edit_biome",
    "edit_height",
    "place",
    "place_settlement",
    "set_building_control",
    "set_structure_disabled",
    "spawn_animal",
]
