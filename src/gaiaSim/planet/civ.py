"""Settlement lifecycle, spreading and per-species aggregation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import numpy as np

from ..utils import (
    CHEBYSHEV_DISTANCE_2_COORDS,
    Coords,
    congestion_rate,
    convert_p_cyclic,
    iter_spiral,
    livability_trapezoid,
    weighted_index,
)
from .civ_energy import process_settlement_energy, update_energy_supply
from .defs import N_AGES, SEA_BIOMES, AnimalHabitat, CivilizationAge, SettlementState, TileEventKind
from .report import CivilizationAdvanced, CivilizationExtinct, CivilizationFounded
from .state import SETTLEMENT_TILE_EVENTS, Civilization, Plague, Settlement

if TYPE_CHECKING:
    from .params import AnimalAttr, Params
    from .sim import Sim
    from .state import Planet, TileMap

logger = logging.getLogger(__name__)

# Search radius used when the most populous tile is already built on.
CIVILIZE_SPIRAL_RADIUS = 7


def habitat_match(tm: TileMap, attr: AnimalAttr, p: Coords) -> bool:
    sea = int(tm.biome[p[1], p[0]]) in SEA_BIOMES
    return sea if attr.habitat is AnimalHabitat.SEA else not sea


def cap_by_temp(planet: Planet, params: Params, attr: AnimalAttr, p: Coords) -> float:
    bonus = params.sim.civ_temp_bonus
    temp = float(planet.map.temp[p[1], p[0]])
    return livability_trapezoid(attr.temp[0] - bonus, attr.temp[1] + bonus, params.sim.animal_temp_margin, temp)


def growth_blocked(tm: TileMap, p: Coords) -> bool:
    for ev in tm.events_at(p):
        if ev.kind in (TileEventKind.FIRE, TileEventKind.BLACK_DUST, TileEventKind.WAR):
            return True
        if isinstance(ev, Plague) and not ev.cured:
            return True
    return False


def remove_settlement(planet: Planet, p: Coords) -> None:
    """Drop the settlement at ``p`` together with its settlement-level events."""
    tm = planet.map
    tm.set_structure(p, None)
    for kind in SETTLEMENT_TILE_EVENTS:
        tm.remove_tile_event(p, kind)


def set_settlement_pop(planet: Planet, params: Params, p: Coords, settlement: Settlement, pop: float) -> bool:
    """Assign ``pop``; remove the settlement if it fell below extinction.

    Returns False when the settlement was removed.
    """
    settlement.pop = pop
    if pop < params.sim.settlement_extinction_threshold:
        remove_settlement(planet, p)
        return False
    return True


def can_found_settlement(planet: Planet, sim: Sim, attr: AnimalAttr, p: Coords, params: Params) -> bool:
    tm = planet.map
    if tm.get_structure(p) is not None or not habitat_match(tm, attr, p):
        return False
    return float(sim.settlement_cr[p[1], p[0]]) < params.sim.base_settlement_spreading_threshold


def update_tech(settlement: Settlement, params: Params, tech_development: int = 50) -> bool:
    """Advance tech experience; return True when the age changed."""
    sp = params.sim
    age = int(settlement.age)
    if settlement.state in (SettlementState.GROWING, SettlementState.STABLE):
        normalized_pop = settlement.pop / sp.settlement_init_pop[age]
        settlement.tech_exp += (normalized_pop - 0.5) * sp.base_tech_exp * tech_development / 50.0
    else:
        settlement.tech_exp -= sp.tech_exp_decline_rate

    if age < N_AGES - 1 and settlement.tech_exp > sp.tech_exp_evolution[age]:
        settlement.age = CivilizationAge(age + 1)
        settlement.tech_exp = 0.0
        settlement.change_state(SettlementState.GROWING)
        return True
    if age > 0 and settlement.tech_exp < sp.tech_exp_declination[age]:
        settlement.age = CivilizationAge(age - 1)
        settlement.tech_exp = 0.0
        return True
    return False


def update_population(
    planet: Planet,
    sim: Sim,
    params: Params,
    p: Coords,
    settlement: Settlement,
    availability: float,
) -> None:
    sp = params.sim
    attr = params.animal(settlement.id)
    age = int(settlement.age)
    cap = sp.settlement_max_pop[age] * cap_by_temp(planet, params, attr, p) * availability
    blocked = growth_blocked(planet.map, p)

    if settlement.state is SettlementState.STABLE:
        lo, hi = sp.settlement_stable_pop_band
        fluct = sp.settlement_stable_fluctuation * (2.0 * sim.rng.random() - 1.0)
        pop = float(np.clip(settlement.pop * (1.0 + fluct), lo * cap, hi * cap))
        settlement.pop = min(pop, settlement.pop) if blocked else pop
        return

    if settlement.state in (SettlementState.DECLINING, SettlementState.DESERTED):
        cap = min(cap, settlement.pop * sp.settlement_shrink_factor[settlement.state])

    civ = planet.civs.get(settlement.id)
    pop_growth = civ.civ_control.pop_growth if civ is not None else 0
    speed = sp.base_pop_growth_speed * (1.0 + pop_growth / 100.0)
    ratio = settlement.pop / max(cap, 1.0e-10)
    dn = speed * ratio * (1.0 - ratio)
    if dn > 0.0 and blocked:
        dn = 0.0
    settlement.pop = max(settlement.pop + dn, 0.0)


def update_strength(sim: Sim, params: Params, p: Coords, settlement: Settlement) -> None:
    base = settlement.pop * float(sim.energy_eff[p[1], p[0]]) * 0.01
    if settlement.strength < base:
        settlement.strength = min(settlement.strength + base * params.sim.settlement_str_supply_ratio, base)
    else:
        settlement.strength = base


def update_state(planet: Planet, sim: Sim, params: Params, p: Coords, settlement: Settlement) -> None:
    """Run the Growing/Stable/Declining/Deserted state machine one step."""
    sp = params.sim
    settlement.since_state_changed += 1

    if (
        settlement.state is not SettlementState.DESERTED
        and settlement.biomass_shortage_cycles >= sp.settlement_state_changeable_cycles
    ):
        settlement.change_state(SettlementState.DESERTED)
        return

    if (
        settlement.state is SettlementState.GROWING
        and sim.diff_biomass[p[1], p[0]] < sp.settlement_stall_biomass_delta
        and sim.rng.random() < sp.settlement_stall_prob
    ):
        settlement.change_state(SettlementState.STABLE)
        return

    if settlement.since_state_changed >= sp.settlement_state_changeable_cycles:
        weights = sp.settlement_state_transition_weights[settlement.state]
        nxt = SettlementState(weighted_index(sim.rng, weights))
        if nxt is not settlement.state:
            settlement.change_state(nxt)


def spread_settlement(
    planet: Planet, sim: Sim, params: Params, p: Coords, settlement: Settlement
) -> Optional[Settlement]:
    """Maybe found a settlement nearby; returns it if one was placed."""
    sp = params.sim
    tm = planet.map
    attr = params.animal(settlement.id)
    age = int(settlement.age)
    normalized_pop = min(settlement.pop / sp.settlement_spread_pop[age], 2.0)
    prob = float(np.clip(sp.base_settlement_spreading_prob * normalized_pop, 0.0, 1.0))
    if sim.rng.random() >= prob:
        return None

    cap = cap_by_temp(planet, params, attr, p)
    targets = []
    for d in CHEBYSHEV_DISTANCE_2_COORDS:
        q = convert_p_cyclic((p[0] + d[0], p[1] + d[1]), sim.size)
        if q is None or not habitat_match(tm, attr, q):
            continue
        other = tm.get_structure(q)
        if other is None:
            limit = sp.base_settlement_spreading_threshold * (tm.fertility[q[1], q[0]] / 100.0) * cap
            if sim.settlement_cr[q[1], q[0]] < limit:
                targets.append(q)
        elif (
            isinstance(other, Settlement)
            and other.id == settlement.id
            and other.age < settlement.age
            and sim.rng.random() < sp.technology_propagation_prob
        ):
            other.age = settlement.age
            other.tech_exp = 0.0

    if not targets:
        return None
    q = targets[int(sim.rng.integers(0, len(targets)))]
    new = Settlement(id=settlement.id, age=settlement.age, pop=sp.settlement_init_pop[age])
    tm.set_structure(q, new)
    return new


def sim_civs(planet: Planet, sim: Sim, params: Params) -> None:
    """Advance every settlement once, then refresh the per-species totals."""
    tm = planet.map
    sp = params.sim
    sim.reset_civ_sum()
    update_energy_supply(planet, sim, params)

    occupied = np.zeros(tm.biome.shape, dtype=bool)
    for (x, y), _ in tm.settlements():
        occupied[y, x] = True
    sim.settlement_cr[...] = congestion_rate(occupied)

    for p, settlement in tm.settlements():
        if tm.settlement_at(p) is not settlement:
            continue
        attr = params.animal(settlement.id)
        if not habitat_match(tm, attr, p):
            remove_settlement(planet, p)
            continue

        availability = process_settlement_energy(planet, sim, params, p, settlement)
        tm.fertility[p[1], p[0]] *= 1.0 - sp.soil_erosion[settlement.age]

        if planet.cycles % sp.advance_tech_interval_cycles == 0:
            civ = planet.civs.get(settlement.id)
            update_tech(settlement, params, civ.civ_control.tech_development if civ is not None else 50)

        update_population(planet, sim, params, p, settlement, availability)
        if not set_settlement_pop(planet, params, p, settlement, settlement.pop):
            continue
        update_strength(sim, params, p, settlement)

        if planet.cycles % sp.settlement_spread_interval_cycles == 0:
            new = spread_settlement(planet, sim, params, p, settlement)
            if new is not None:
                # not visited until next cycle, counted now
                new_sum = sim.civ_sum_of(new.id)
                new_sum.total_settlement[new.age] += 1
                new_sum.total_pop += new.pop

        update_state(planet, sim, params, p, settlement)

        civ_sum = sim.civ_sum_of(settlement.id)
        civ_sum.total_settlement[settlement.age] += 1
        civ_sum.total_pop += settlement.pop

    aggregate_civs(planet, sim, params)


def units_in_transit(planet: Planet, civ_id: str) -> int:
    n = 0
    for kind in (TileEventKind.VEHICLE, TileEventKind.TROOP):
        n += sum(1 for _, ev in planet.map.tile_events_of(kind) if ev.id == civ_id)
    return n


def aggregate_civs(planet: Planet, sim: Sim, params: Params) -> None:
    """Copy accumulated sums into `planet.civs`; delete emptied species."""
    for civ_id in sorted(set(planet.civs) | set(sim.civ_sum)):
        civ_sum = sim.civ_sum.get(civ_id)
        if civ_sum is None or sum(civ_sum.total_settlement) == 0:
            if units_in_transit(planet, civ_id) == 0:
                delete_civ(planet, civ_id)
            continue
        civ = planet.civs.setdefault(civ_id, Civilization())
        civ.total_pop = civ_sum.total_pop
        civ.total_settlement = list(civ_sum.total_settlement)
        civ.total_energy_consumption = list(civ_sum.total_energy_consumption)
        age = max(i for i, n in enumerate(civ_sum.total_settlement) if n > 0)
        if age > civ.most_advanced_age:
            planet.reports.append(planet.cycles, CivilizationAdvanced(id=civ_id, age=CivilizationAge(age)))
        civ.most_advanced_age = CivilizationAge(age)


def delete_civ(planet: Planet, civ_id: str) -> None:
    """Remove a species' settlements and units; forget its civilization."""
    tm = planet.map
    for p, settlement in tm.settlements():
        if settlement.id == civ_id:
            remove_settlement(planet, p)
    for kind in (TileEventKind.VEHICLE, TileEventKind.TROOP):
        for p, ev in tm.tile_events_of(kind):
            if ev.id == civ_id:
                tm.remove_tile_event(p, kind)
    if planet.civs.pop(civ_id, None) is not None:
        planet.reports.append(planet.cycles, CivilizationExtinct(id=civ_id))
        logger.info("civilization %s extinct at cycle %d", civ_id, planet.cycles)


def can_civilize(planet: Planet, params: Params, animal_id: str) -> Optional[str]:
    """Reason why ``animal_id`` cannot be civilized now, or None."""
    attr = params.animal(animal_id)
    if attr.civ is None:
        return "animal cannot be civilized"
    if animal_id in planet.civs:
        return "animal is already civilized"
    idx = params.animal_index(animal_id)
    n = float(planet.map.animal_n[attr.size][planet.map.animal[attr.size] == idx].sum())
    if n < params.sim.n_animal_to_civilize:
        return "animal population is insufficient"
    if planet.res.gene_point < attr.civ.civilize_cost:
        return "lack of gene points"
    return None


def civilize_animal(planet: Planet, sim: Sim, params: Params, animal_id: str) -> Optional[Coords]:
    """Turn the most populous tile of ``animal_id`` into a Stone-age settlement.

    Returns the position of the founding settlement, or None if the species
    has no population or no free tile was found nearby.
    """
    tm = planet.map
    attr = params.animal(animal_id)
    idx = params.animal_index(animal_id)
    size = attr.size

    p_max: Optional[Coords] = None
    n_max = 0.0
    for p in tm.iter_coords():
        animal = tm.animal_at(p, size)
        if animal is not None and animal[0] == idx and animal[1] > n_max:
            n_max = animal[1]
            p_max = p
    if p_max is None:
        return None
    tm.clear_animal(p_max, size)

    init_pop = params.sim.settlement_init_pop[CivilizationAge.STONE]
    p_center: Optional[Coords] = None
    for q in iter_spiral(p_max, tm.size, CIVILIZE_SPIRAL_RADIUS):
        if tm.get_structure(q) is None and habitat_match(tm, attr, q):
            tm.set_structure(q, Settlement(id=animal_id, age=CivilizationAge.STONE, pop=init_pop))
            p_center = q
            break
    if p_center is None:
        return None

    for _ in range(2):
        d = CHEBYSHEV_DISTANCE_2_COORDS[int(sim.rng.integers(0, len(CHEBYSHEV_DISTANCE_2_COORDS)))]
        q = convert_p_cyclic((p_center[0] + d[0], p_center[1] + d[1]), sim.size)
        if q is not None and tm.get_structure(q) is None and habitat_match(tm, attr, q):
            tm.set_structure(q, Settlement(id=animal_id, age=CivilizationAge.STONE, pop=init_pop))

    planet.civs.setdefault(animal_id, Civilization())
    planet.reports.append(planet.cycles, CivilizationFounded(id=animal_id, pos=p_center))
    logger.info("civilization %s founded at %s (cycle %d)", animal_id, p_center, planet.cycles)
    return p_center


__all__ = [
    "aggregate_civs",
    "can_civilize",
    "can_found_settlement",
    "civilize_animal",
    "delete_civ",
    "growth_blocked",
    "habitat_match",
    "remove_settlement",
    "set_settlement_pop",
    "sim_civs",
    "spread_settlement",
    "update_population",
    "update_state",
    "update_tech",
]
