"""Decadence of stagnant, overpopulated civilizations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict

from ..utils import CHEBYSHEV_DISTANCE_1_COORDS, Coords, convert_p_cyclic
from .defs import SettlementState, TileEventKind
from .report import DecadenceStarted
from .state import SETTLEMENT_TILE_EVENTS, Decadence, DecadenceEvent

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import Planet

logger = logging.getLogger(__name__)


def cause_decadence_random(planet: Planet, sim: Sim, params: Params) -> None:
    ep = params.event
    sp = params.sim
    active = {e.id for e in planet.events.of_type(DecadenceEvent)}

    for p, settlement in planet.map.settlements():
        if settlement.id in active:
            continue
        civ = planet.civs.get(settlement.id)
        if civ is None or civ.most_advanced_age < ep.decadence_min_age:
            continue
        civ_age = civ.most_advanced_age
        if (
            settlement.age == civ_age
            and settlement.state in (SettlementState.GROWING, SettlementState.STABLE)
            and settlement.since_state_changed > sp.settlement_state_changeable_cycles
            and settlement.pop > sp.settlement_max_pop[civ_age] * ep.decadence_pop_threshold
            and sim.rng.random() < ep.decadence_prob
        ):
            cause_decadence(planet, sim, params, p)
            active.add(settlement.id)


def cause_decadence(planet: Planet, sim: Sim, params: Params, p: Coords) -> bool:
    """Start decadence at the settlement on ``p``; False if there is none."""
    settlement = planet.map.settlement_at(p)
    if settlement is None:
        return False
    ep = params.event
    planet.map.insert_tile_event(p, Decadence(cured=False))
    lo, hi = ep.decadence_cycles
    remaining = int(sim.rng.integers(lo, hi + 1))
    planet.events.start_event(
        DecadenceEvent(id=settlement.id, start_pos=p, age=settlement.age, remaining_cycles=remaining),
        duration=remaining + ep.decadence_interval_cycles,
    )
    planet.reports.append(planet.cycles, DecadenceStarted(id=settlement.id, pos=p))
    logger.info("decadence of %s started at %s (cycle %d)", settlement.id, p, planet.cycles)
    return True


def sim_decadence(planet: Planet, sim: Sim, params: Params) -> None:
    tm = planet.map
    events: Dict[str, DecadenceEvent] = {}
    for e in planet.events.of_type(DecadenceEvent):
        e.remaining_cycles -= 1
        events[e.id] = e

    for p, ev in tm.tile_events_of(TileEventKind.DECADENCE):
        if ev.cured:
            continue
        settlement = tm.settlement_at(p)
        if settlement is None:
            tm.remove_tile_event(p, TileEventKind.DECADENCE)
            continue
        event = events.get(settlement.id)
        if event is None or event.remaining_cycles <= 0:
            tm.remove_tile_event(p, TileEventKind.DECADENCE)
            continue
        if settlement.age > event.age:
            ev.cured = True
            continue
        if settlement.state in (SettlementState.GROWING, SettlementState.STABLE):
            settlement.change_state(SettlementState.DECLINING)

        if sim.rng.random() < params.event.decadence_infectivity:
            targets = []
            for d in CHEBYSHEV_DISTANCE_1_COORDS:
                q = convert_p_cyclic((p[0] + d[0], p[1] + d[1]), sim.size)
                if q is None:
                    continue
                other = tm.settlement_at(q)
                if (
                    other is not None
                    and other.id == settlement.id
                    and other.age == settlement.age
                    and not any(tm.has_tile_event(q, kind) for kind in SETTLEMENT_TILE_EVENTS)
                ):
                    targets.append(q)
            if targets:
                q = targets[int(sim.rng.integers(0, len(targets)))]
                tm.insert_tile_event(q, Decadence(cured=False))


def clear_decadence(planet: Planet, civ_id: str) -> None:
    """Drop decadence markers of ``civ_id`` once its event has retired."""
    tm = planet.map
    for p, _ in tm.tile_events_of(TileEventKind.DECADENCE):
        settlement = tm.settlement_at(p)
        if settlement is None or settlement.id == civ_id:
            tm.remove_tile_event(p, TileEventKind.DECADENCE)


__all__ = ["cause_decadence", "cause_decadence_random", "clear_decadence", "sim_decadence"]
