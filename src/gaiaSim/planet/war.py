"""Civil and inter-species wars, troops and nuclear strikes."""

from __future__ import annotations

import logging
import math
from itertools import combinations
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from ..utils import CHEBYSHEV_DISTANCE_1_COORDS, CHEBYSHEV_DISTANCE_2_COORDS, Coords, convert_p_cyclic
from .civ import set_settlement_pop
from .defs import CivilizationAge, TileEventKind, WarKind
from .report import CivilWarStarted, InterSpeciesWarCeased, InterSpeciesWarStarted
from .state import NuclearExplosion, Troop, War, WarEvent

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import Planet, Settlement

logger = logging.getLogger(__name__)


def settlement_power(sim: Sim, p: Coords, settlement: Settlement) -> float:
    return settlement.pop * float(sim.energy_eff[p[1], p[0]]) * 0.01


def cyclic_distance(a: Coords, b: Coords, size: Coords) -> int:
    """Chebyshev distance with the x axis wrapped."""
    dx = abs(a[0] - b[0])
    dx = min(dx, size[0] - dx)
    return max(dx, abs(a[1] - b[1]))


def step_toward(p: Coords, dest: Coords, size: Coords) -> Coords:
    w = size[0]
    dx = (dest[0] - p[0]) % w
    if dx > w // 2:
        dx -= w
    sx = (dx > 0) - (dx < 0)
    dy = dest[1] - p[1]
    sy = (dy > 0) - (dy < 0)
    return ((p[0] + sx) % w, p[1] + sy)


# Combat


def exec_combat(war: War, speed: float) -> Tuple[float, bool]:
    """One round of attrition; returns the defence loss and whether it ended."""
    d_defence = war.offence_power * speed
    d_offence = war.defence_power * speed
    war.defence_power = max(war.defence_power - d_defence, 0.0)
    war.offence_power = max(war.offence_power - d_offence, 0.0)
    return d_defence, war.defence_power <= 0.0 or war.offence_power <= 0.0


def exec_combat_until_finish(a: float, b: float) -> Tuple[float, float]:
    """Fight to the end; the stronger side keeps ``sqrt(a**2 - b**2)``."""
    if a >= b:
        return math.sqrt(a * a - b * b), 0.0
    return 0.0, math.sqrt(b * b - a * a)


def sim_war_tiles(planet: Planet, sim: Sim, params: Params) -> None:
    """Resolve every War marker and count ongoing combats per war id."""
    tm = planet.map
    ep = params.event
    sim.war_counter = {}
    for p, ev in tm.tile_events_of(TileEventKind.WAR):
        settlement = tm.settlement_at(p)
        if settlement is None:
            tm.remove_tile_event(p, TileEventKind.WAR)
            continue
        defence_before = ev.defence_power
        d_defence, finished = exec_combat(ev, ep.base_combat_speed)
        if finished:
            tm.remove_tile_event(p, TileEventKind.WAR)
        else:
            sim.war_counter[ev.i] = sim.war_counter.get(ev.i, 0) + 1
        if defence_before > 0.0:
            loss = min(d_defence / defence_before, 1.0) * ep.war_pop_damage_ratio
            set_settlement_pop(planet, params, p, settlement, settlement.pop * (1.0 - loss))


# Civil war


def start_civil_war(planet: Planet, sim: Sim, params: Params, p: Coords) -> Optional[int]:
    """Start a civil war around the settlement on ``p``; returns the war id."""
    tm = planet.map
    settlement = tm.settlement_at(p)
    if settlement is None:
        return None
    i = planet.events.new_id(WarEvent)
    planet.events.start_event(WarEvent(i=i, war_kind=WarKind.CIVIL, start_pos=p, ids=(settlement.id,)))

    region = [(0, 0)]
    if settlement.age >= CivilizationAge.IRON:
        region.extend(CHEBYSHEV_DISTANCE_1_COORDS)
    if settlement.age >= CivilizationAge.INDUSTRIAL and sim.rng.random() < 0.5:
        region.extend(CHEBYSHEV_DISTANCE_2_COORDS)

    offence_power = settlement_power(sim, p, settlement) * params.event.civil_war_offence_factor
    for d in region:
        q = convert_p_cyclic((p[0] + d[0], p[1] + d[1]), sim.size)
        if q is None:
            continue
        target = tm.settlement_at(q)
        if target is None or target.id != settlement.id or tm.has_tile_event(q, TileEventKind.WAR):
            continue
        tm.insert_tile_event(
            q,
            War(
                i=i,
                offence=settlement.id,
                offence_power=offence_power,
                defence_power=settlement_power(sim, q, target),
            ),
        )

    planet.reports.append(planet.cycles, CivilWarStarted(id=settlement.id, pos=p))
    logger.info("civil war %d of %s started at %s (cycle %d)", i, settlement.id, p, planet.cycles)
    return i


def cause_civil_war_random(planet: Planet, sim: Sim, params: Params) -> None:
    ep = params.event
    max_pop = params.sim.settlement_max_pop
    for p, settlement in planet.map.settlements():
        if planet.map.has_tile_event(p, TileEventKind.WAR):
            continue
        if settlement.pop < ep.civil_war_pop_threshold * max_pop[settlement.age]:
            continue
        if sim.rng.random() < ep.base_civil_war_prob:
            start_civil_war(planet, sim, params, p)


def is_civil_war_over(sim: Sim, event: WarEvent) -> bool:
    return sim.war_counter.get(event.i, 0) == 0


# Inter-species war


def active_wars(planet: Planet) -> List[WarEvent]:
    return [e for e in planet.events.of_type(WarEvent) if e.war_kind is not WarKind.CIVIL and not e.ceased]


def war_between(planet: Planet, a: str, b: str) -> Optional[WarEvent]:
    for e in active_wars(planet):
        if a in e.ids and b in e.ids:
            return e
    return None


def enemies(planet: Planet) -> Dict[str, Dict[str, int]]:
    """For each civilization, its enemies mapped to the war id."""
    out: Dict[str, Dict[str, int]] = {}
    for e in active_wars(planet):
        a, b = e.ids
        out.setdefault(a, {})[b] = e.i
        out.setdefault(b, {})[a] = e.i
    return out


def border_position(planet: Planet, a: str, b: str) -> Optional[Coords]:
    """A settlement of ``a`` within two tiles of a settlement of ``b``."""
    tm = planet.map
    size = tm.size
    others = [q for q, s in tm.settlements() if s.id == b]
    for p, s in tm.settlements():
        if s.id != a:
            continue
        if any(cyclic_distance(p, q, size) <= 2 for q in others):
            return p
    return None


def start_inter_species_war(planet: Planet, params: Params, a: str, b: str, nuclear: bool = False) -> Optional[int]:
    p = border_position(planet, a, b)
    if p is None:
        return None
    i = planet.events.new_id(WarEvent)
    kind = WarKind.NUCLEAR if nuclear else WarKind.INTER_SPECIES
    planet.events.start_event(
        WarEvent(i=i, war_kind=kind, start_pos=p, ids=(a, b)),
        duration=params.event.inter_species_war_duration_cycles,
    )
    planet.reports.append(planet.cycles, InterSpeciesWarStarted(ids=(a, b), nuclear=nuclear))
    logger.info("%s war %d between %s and %s started (cycle %d)", kind.value, i, a, b, planet.cycles)
    return i


def cause_inter_species_war_random(planet: Planet, sim: Sim, params: Params) -> None:
    ep = params.event
    for a, b in combinations(sorted(planet.civs), 2):
        age_a = planet.civs[a].most_advanced_age
        age_b = planet.civs[b].most_advanced_age
        if min(age_a, age_b) < ep.inter_species_war_min_age:
            continue
        if sim.rng.random() >= ep.base_inter_species_war_prob:
            continue
        if war_between(planet, a, b) is not None:
            continue
        nuclear = min(age_a, age_b) >= CivilizationAge.ATOMIC and sim.rng.random() < ep.nuclear_war_prob
        start_inter_species_war(planet, params, a, b, nuclear)


def cease_war(planet: Planet, event: WarEvent) -> None:
    """Mark ``event`` ceased and clear its markers and troops."""
    tm = planet.map
    if not event.ceased and all(i in planet.civs for i in event.ids):
        planet.reports.append(planet.cycles, InterSpeciesWarCeased(ids=(event.ids[0], event.ids[1])))
        logger.info("war %d between %s ceased (cycle %d)", event.i, " and ".join(event.ids), planet.cycles)
    event.ceased = True
    for kind in (TileEventKind.WAR, TileEventKind.TROOP):
        for p, ev in tm.tile_events_of(kind):
            if ev.i == event.i:
                tm.remove_tile_event(p, kind)


def _nearest_enemy(planet: Planet, p: Coords, foes: Dict[str, int]) -> Optional[Tuple[Coords, int]]:
    best: Optional[Tuple[Coords, int]] = None
    best_d = None
    size = planet.map.size
    for q, s in planet.map.settlements():
        if s.id not in foes:
            continue
        d = cyclic_distance(p, q, size)
        if best_d is None or d < best_d:
            best, best_d = (q, foes[s.id]), d
    return best


def spawn_troops(planet: Planet, sim: Sim, params: Params) -> None:
    tm = planet.map
    ep = params.event
    foes_of = enemies(planet)
    if not foes_of:
        return
    for p, settlement in tm.settlements():
        foes = foes_of.get(settlement.id)
        if not foes or settlement.strength < ep.troop_min_str:
            continue
        if tm.has_tile_event(p, TileEventKind.TROOP) or sim.rng.random() >= ep.troop_spawn_prob:
            continue
        target = _nearest_enemy(planet, p, foes)
        if target is None:
            continue
        strength = settlement.strength * ep.troop_str_ratio
        settlement.strength -= strength
        tm.insert_tile_event(p, Troop(id=settlement.id, i=target[1], dest=target[0], strength=strength))


def _attack(planet: Planet, q: Coords, troop: Troop, sim: Sim) -> None:
    tm = planet.map
    war = tm.tile_event(q, TileEventKind.WAR)
    if war is None:
        settlement = tm.settlement_at(q)
        defence = max(settlement.strength, settlement_power(sim, q, settlement))
        tm.insert_tile_event(
            q, War(i=troop.i, offence=troop.id, offence_power=troop.strength, defence_power=defence)
        )
    elif war.offence == troop.id:
        war.offence_power += troop.strength


def advance_troops(planet: Planet, sim: Sim, params: Params) -> None:
    tm = planet.map
    ep = params.event
    foes_of = enemies(planet)
    moved: List[Tuple[Coords, Troop]] = []

    for p, troop in tm.tile_events_of(TileEventKind.TROOP):
        tm.remove_tile_event(p, TileEventKind.TROOP)
        strength = troop.strength * ep.troop_str_decay
        foes = foes_of.get(troop.id)
        if strength < ep.troop_min_str or not foes:
            continue
        dest = troop.dest
        i = troop.i
        target = tm.settlement_at(dest)
        if target is None or target.id not in foes:
            found = _nearest_enemy(planet, p, foes)
            if found is None:
                continue
            dest, i = found
        q = step_toward(p, dest, tm.size)
        moved.append((q, Troop(id=troop.id, i=i, dest=dest, strength=strength)))

    for q, troop in moved:
        settlement = tm.settlement_at(q)
        if settlement is not None and settlement.id in foes_of.get(troop.id, {}):
            _attack(planet, q, troop, sim)
            continue
        other = tm.tile_event(q, TileEventKind.TROOP)
        if other is None:
            tm.insert_tile_event(q, troop)
        elif other.id == troop.id:
            other.strength += troop.strength
        elif other.id in foes_of.get(troop.id, {}):
            rest_other, rest_troop = exec_combat_until_finish(other.strength, troop.strength)
            if rest_troop > 0.0:
                troop.strength = rest_troop
                tm.insert_tile_event(q, troop)
            else:
                other.strength = rest_other
        elif troop.strength > other.strength:
            tm.insert_tile_event(q, troop)


def drop_nuclear_bombs(planet: Planet, sim: Sim, params: Params, event: WarEvent) -> None:
    tm = planet.map
    ep = params.event
    for p, settlement in tm.settlements():
        if settlement.id not in event.ids or settlement.age < CivilizationAge.INDUSTRIAL:
            continue
        if sim.rng.random() < ep.nuclear_bomb_prob:
            tm.insert_tile_event(p, NuclearExplosion(remaining_cycles=ep.nuclear_explosion_cycles))


def sim_inter_species_war(planet: Planet, sim: Sim, params: Params) -> None:
    for event in active_wars(planet):
        if any(i not in planet.civs for i in event.ids):
            cease_war(planet, event)
            continue
        if event.war_kind is WarKind.NUCLEAR:
            drop_nuclear_bombs(planet, sim, params, event)
    spawn_troops(planet, sim, params)
    advance_troops(planet, sim, params)


def cause_war_random(planet: Planet, sim: Sim, params: Params) -> None:
    cause_civil_war_random(planet, sim, params)
    cause_inter_species_war_random(planet, sim, params)


__all__ = [
    "active_wars",
    "advance_troops",
    "cause_civil_war_random",
    "cause_inter_species_war_random",
    "cause_war_random",
    "cease_war",
    "cyclic_distance",
    "exec_combat",
    "exec_combat_until_finish",
    "is_civil_war_over",
    "settlement_power",
    "sim_inter_species_war",
    "sim_war_tiles",
    "spawn_troops",
    "start_civil_war",
    "start_inter_species_war",
    "step_toward",
    "war_between",
]
