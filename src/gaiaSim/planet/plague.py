"""Plague outbreaks spreading between settlements."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..utils import CHEBYSHEV_DISTANCE_1_COORDS, Coords, convert_p_cyclic
from .civ import set_settlement_pop
from .defs import CivilizationAge, SettlementState, TileEventKind
from .report import PlagueOutbreak
from .state import Plague, PlagueEvent

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import Planet

logger = logging.getLogger(__name__)


def _current_plague(planet: Planet) -> Optional[PlagueEvent]:
    for e in planet.events.of_type(PlagueEvent):
        if not e.ended:
            return e
    return None


def cause_plague(planet: Planet, sim: Sim, params: Params, p: Coords, plague_kind: Optional[int] = None) -> bool:
    """Infect the settlement at ``p``, starting an outbreak if none is active."""
    tm = planet.map
    settlement = tm.settlement_at(p)
    if settlement is None:
        return False
    event = _current_plague(planet)
    if event is None:
        if plague_kind is None:
            plague_kind = int(sim.rng.integers(0, len(params.event.plague_list)))
        event = PlagueEvent(i=planet.events.new_id(PlagueEvent), plague_kind=plague_kind, start_pos=p)
        planet.events.start_event(event)
        planet.reports.append(planet.cycles, PlagueOutbreak(id=settlement.id, pos=p))
        logger.info("plague %d broke out at %s (cycle %d)", event.plague_kind, p, planet.cycles)
    lethality = params.event.plague_list[event.plague_kind].lethality
    tm.insert_tile_event(p, Plague(i=event.i, cured=False, target_pop=settlement.pop * (1.0 - lethality)))
    return True


def cause_plague_random(planet: Planet, sim: Sim, params: Params) -> None:
    if _current_plague(planet) is not None:
        return
    candidates = [p for p, s in planet.map.settlements() if s.pop >= params.event.plague_pop_threshold]
    if not candidates:
        return
    if sim.rng.random() < params.event.base_plague_prob:
        p = candidates[int(sim.rng.integers(0, len(candidates)))]
        cause_plague(planet, sim, params, p)


def sim_plague(planet: Planet, sim: Sim, params: Params, event: PlagueEvent, elapsed_cycles: int) -> bool:
    """Advance one outbreak; return True once no settlement is infected."""
    tm = planet.map
    ep = params.event
    pp = ep.plague_list[event.plague_kind]
    infection_enabled = elapsed_cycles <= pp.infection_limit_cycles
    count_infected = 0
    pop_max_uninfected = 0.0
    p_max_uninfected: Optional[Coords] = None

    for p, _ in tm.tile_events_of(TileEventKind.PLAGUE):
        if tm.settlement_at(p) is None:
            tm.remove_tile_event(p, TileEventKind.PLAGUE)

    for p, settlement in tm.settlements():
        if tm.settlement_at(p) is not settlement:
            continue
        ev = tm.tile_event(p, TileEventKind.PLAGUE)
        if ev is None:
            if settlement.age >= CivilizationAge.INDUSTRIAL and settlement.pop > pop_max_uninfected:
                pop_max_uninfected = settlement.pop
                p_max_uninfected = p
            continue
        if ev.i != event.i or ev.cured:
            continue

        count_infected += 1
        pop = settlement.pop - (settlement.pop - ev.target_pop / 2.0) * ep.plague_base_lethality_speed
        if not set_settlement_pop(planet, params, p, settlement, pop):
            continue
        if settlement.pop < ev.target_pop:
            ev.cured = True
            if settlement.state in (SettlementState.GROWING, SettlementState.STABLE):
                settlement.change_state(SettlementState.DECLINING)
            continue

        if infection_enabled and sim.rng.random() < min(ep.plague_spread_base_prob * pp.infectivity, 1.0):
            targets = []
            for d in CHEBYSHEV_DISTANCE_1_COORDS:
                q = convert_p_cyclic((p[0] + d[0], p[1] + d[1]), sim.size)
                if q is not None and tm.settlement_at(q) is not None:
                    targets.append(q)
            if targets:
                q = targets[int(sim.rng.integers(0, len(targets)))]
                if not tm.has_tile_event(q, TileEventKind.PLAGUE):
                    target_pop = tm.settlement_at(q).pop * (1.0 - pp.lethality)
                    tm.insert_tile_event(q, Plague(i=event.i, cured=False, target_pop=target_pop))

    if count_infected == 0:
        for p, _ in tm.tile_events_of(TileEventKind.PLAGUE):
            tm.remove_tile_event(p, TileEventKind.PLAGUE)
        event.ended = True
        return True

    if (
        infection_enabled
        and p_max_uninfected is not None
        and sim.rng.random() < min(ep.plague_spread_base_prob * pp.distant_infectivity, 1.0)
    ):
        target_pop = pop_max_uninfected * (1.0 - pp.lethality)
        tm.insert_tile_event(p_max_uninfected, Plague(i=event.i, cured=False, target_pop=target_pop))
    return False


__all__ = ["cause_plague", "cause_plague_random", "sim_plague"]
