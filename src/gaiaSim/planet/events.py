"""Planet-level event scheduling: random triggers, per-cycle advance, retirement."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .decadence import cause_decadence_random, clear_decadence, sim_decadence
from .defs import WarKind
from .exodus import sim_exodus
from .plague import cause_plague_random, sim_plague
from .state import DecadenceEvent, ExodusEvent, PlagueEvent, WarEvent
from .tile_event import advance_tile_events
from .vehicle import advance_vehicles, spawn_vehicles
from .war import cause_war_random, cease_war, is_civil_war_over, sim_inter_species_war, sim_war_tiles

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import EventInProgress, Planet

logger = logging.getLogger(__name__)


def cause_continent_events(planet: Planet, sim: Sim, params: Params) -> None:
    """Random settlement events, selected by the cycle remainder."""
    r = planet.cycles % params.sim.settlement_random_event_interval_cycles
    if r == 1:
        spawn_vehicles(planet, sim, params)
    elif r == 2:
        cause_plague_random(planet, sim, params)
    elif r == 3:
        cause_war_random(planet, sim, params)


def _completed(sim: Sim, entry: EventInProgress) -> bool:
    if entry.duration is not None and entry.progress >= entry.duration:
        return True
    event = entry.event
    if isinstance(event, PlagueEvent):
        return event.ended
    if isinstance(event, WarEvent):
        if event.war_kind is WarKind.CIVIL:
            return is_civil_war_over(sim, event)
        return event.ceased
    return False


def _retire(planet: Planet, entry: EventInProgress) -> None:
    event = entry.event
    if isinstance(event, DecadenceEvent):
        clear_decadence(planet, event.id)
    elif isinstance(event, WarEvent) and event.war_kind is not WarKind.CIVIL:
        cease_war(planet, event)
    logger.debug("%s retired after %d cycles (cycle %d)", type(event).__name__, entry.progress, planet.cycles)


def advance_events(planet: Planet, sim: Sim, params: Params) -> None:
    cause_decadence_random(planet, sim, params)
    sim_decadence(planet, sim, params)
    sim_war_tiles(planet, sim, params)
    sim_inter_species_war(planet, sim, params)
    advance_vehicles(planet, sim, params)
    advance_tile_events(planet, sim, params)

    for entry in list(planet.events.in_progress):
        event = entry.event
        if isinstance(event, PlagueEvent) and not event.ended:
            sim_plague(planet, sim, params, event, entry.progress)
        elif isinstance(event, ExodusEvent):
            if sim_exodus(planet, sim, params, event):
                entry.duration = entry.progress

    kept = []
    for entry in planet.events.in_progress:
        entry.progress += 1
        if _completed(sim, entry):
            _retire(planet, entry)
        else:
            kept.append(entry)
    planet.events.in_progress = kept


__all__ = ["advance_events", "cause_continent_events"]
