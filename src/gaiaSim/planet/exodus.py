"""Exodus: an early-space civilization leaves the planet."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict

from .civ import delete_civ, remove_settlement
from .defs import CivilizationAge, EnergySource, TileEventKind
from .report import ExodusStarted
from .state import DecadenceEvent, Exodus, ExodusEvent, PlagueEvent, WarEvent

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import Planet

logger = logging.getLogger(__name__)

_BLOCKING_EVENTS = (DecadenceEvent, WarEvent, PlagueEvent, ExodusEvent)


def exodus_probability(planet: Planet, params: Params, civ_id: str, tech_sum: float, n: int) -> float:
    ep = params.event
    civ = planet.civs[civ_id]
    control = civ.civ_control
    nuclear = control.energy_weight[EnergySource.NUCLEAR] / 100.0
    atomic_weight = 0.0 if nuclear < 0.5 else nuclear * nuclear
    td = control.tech_development / 100.0
    tech = tech_sum / n / ep.exodus_tech_level_threshold
    pop = civ.total_pop / ep.exodus_pop_threshold
    prob = ep.base_exodus_prob * td * td * atomic_weight * tech * pop
    return min(max(prob, 0.0), 1.0)


def cause_exodus(planet: Planet, sim: Sim, params: Params) -> None:
    if planet.cycles % params.event.exodus_check_interval != 0:
        return
    if not any(civ.most_advanced_age >= CivilizationAge.EARLY_SPACE for civ in planet.civs.values()):
        return
    if any(planet.events.has(kind) for kind in _BLOCKING_EVENTS):
        return

    tech: Dict[str, float] = {}
    count: Dict[str, int] = {}
    for _, settlement in planet.map.settlements():
        if settlement.age is CivilizationAge.EARLY_SPACE:
            tech[settlement.id] = tech.get(settlement.id, 0.0) + settlement.tech_exp
            count[settlement.id] = count.get(settlement.id, 0) + 1

    ep = params.event
    for civ_id in sorted(count):
        civ = planet.civs.get(civ_id)
        if civ is None:
            continue
        if tech[civ_id] / count[civ_id] < ep.exodus_tech_level_threshold or civ.total_pop < ep.exodus_pop_threshold:
            continue
        prob = exodus_probability(planet, params, civ_id, tech[civ_id], count[civ_id])
        if sim.rng.random() < prob:
            start_exodus(planet, civ_id)
            break


def start_exodus(planet: Planet, civ_id: str) -> None:
    planet.events.start_event(ExodusEvent(id=civ_id))
    planet.reports.append(planet.cycles, ExodusStarted(id=civ_id))
    logger.info("exodus of %s started (cycle %d)", civ_id, planet.cycles)


def sim_exodus(planet: Planet, sim: Sim, params: Params, event: ExodusEvent) -> bool:
    """Evacuate settlements one by one; True once the species is gone."""
    tm = planet.map
    ep = params.event
    remaining = 0
    for p, settlement in tm.settlements():
        if settlement.id != event.id:
            continue
        remaining += 1
        ev = tm.tile_event(p, TileEventKind.EXODUS)
        if ev is None:
            if sim.rng.random() >= ep.settlement_exodus_prob:
                continue
            lo, hi = ep.settlement_exodus_cycles
            ev = Exodus(remaining_cycles=int(sim.rng.integers(lo, hi + 1)))
            tm.insert_tile_event(p, ev)
        ev.remaining_cycles -= 1
        if ev.remaining_cycles <= 0:
            remove_settlement(planet, p)

    if remaining == 0:
        delete_civ(planet, event.id)
        logger.info("exodus of %s completed (cycle %d)", event.id, planet.cycles)
        return True
    return False


__all__ = ["cause_exodus", "exodus_probability", "sim_exodus", "start_exodus"]
