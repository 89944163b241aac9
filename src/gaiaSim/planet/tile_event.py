"""Countdown tile events and the single entry point for causing one."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..utils import Coords
from .biome import burn_biomass
from .buildings import remove_structure
from .defs import TileEventKind
from .geological import cause_volcanic_eruption
from .plague import cause_plague
from .state import AerosolInjection, BlackDust, Fire, NuclearExplosion

if TYPE_CHECKING:
    from .params import Params
    from .sim import Sim
    from .state import Planet


def nuclear_explosion_effect(planet: Planet, sim: Sim, params: Params, p: Coords) -> None:
    if planet.map.get_structure(p) is not None:
        remove_structure(planet, p)
    planet.map.clear_animals(p)
    burn_biomass(planet, sim, p, params.event.nuclear_explosion_burn_ratio)


def cause_tile_event(planet: Planet, sim: Sim, params: Params, p: Coords, kind: TileEventKind) -> bool:
    """Start ``kind`` on ``p``; False if the tile cannot host it."""
    ep = params.event
    tm = planet.map
    if kind is TileEventKind.FIRE:
        tm.insert_tile_event(p, Fire(remaining_cycles=ep.fire_cycles))
    elif kind is TileEventKind.BLACK_DUST:
        tm.insert_tile_event(p, BlackDust(remaining_cycles=ep.black_dust_cycles))
    elif kind is TileEventKind.AEROSOL_INJECTION:
        tm.insert_tile_event(p, AerosolInjection(remaining_cycles=ep.aerosol_injection_cycles))
    elif kind is TileEventKind.PLAGUE:
        return cause_plague(planet, sim, params, p)
    elif kind is TileEventKind.NUCLEAR_EXPLOSION:
        tm.insert_tile_event(p, NuclearExplosion(remaining_cycles=ep.nuclear_explosion_cycles))
        nuclear_explosion_effect(planet, sim, params, p)
    elif kind is TileEventKind.VOLCANIC_ERUPTION:
        cause_volcanic_eruption(planet, sim, params, p)
    else:
        raise ValueError(f"tile event {kind.value} cannot be caused directly")
    return True


def _countdown(planet: Planet, p: Coords, ev) -> None:
    ev.remaining_cycles -= 1
    if ev.remaining_cycles <= 0:
        planet.map.remove_tile_event(p, ev.kind)


def advance_tile_events(planet: Planet, sim: Sim, params: Params) -> None:
    tm = planet.map
    ep = params.event
    for p, ev in tm.tile_events_of(TileEventKind.FIRE):
        burn_biomass(planet, sim, p, ep.fire_burn_ratio)
        _countdown(planet, p, ev)
    for p, ev in tm.tile_events_of(TileEventKind.BLACK_DUST):
        _countdown(planet, p, ev)
    for p, ev in tm.tile_events_of(TileEventKind.AEROSOL_INJECTION):
        planet.atmo.aerosol += ep.aerosol_injection_amount
        _countdown(planet, p, ev)
    for p, ev in tm.tile_events_of(TileEventKind.NUCLEAR_EXPLOSION):
        nuclear_explosion_effect(planet, sim, params, p)
        _countdown(planet, p, ev)


__all__ = ["advance_tile_events", "cause_tile_event", "nuclear_explosion_effect"]
