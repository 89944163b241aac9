"""Planet data model: tile grid, structures, events and civilizations."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import ClassVar, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from ..utils import Coords
from .atmo import Atmosphere
from .defs import (
    N_AGES,
    N_ENERGY_SOURCES,
    AnimalSize,
    Biome,
    CivilizationAge,
    SettlementState,
    SpaceBuildingKind,
    StructureKind,
    TileEventKind,
    WarKind,
)
from .report import Reports
from .resources import Resources
from .stat import Stat
from .water import Water

# Structures


@dataclass
class Occupied:
    """Tile covered by a larger structure whose origin is ``by``."""

    by: Coords


@dataclass
class Settlement:
    id: str
    age: CivilizationAge
    pop: float
    tech_exp: float = 0.0
    state: SettlementState = SettlementState.GROWING
    since_state_changed: int = 0
    strength: float = 0.0
    biomass_shortage_cycles: int = 0

    def change_state(self, state: SettlementState) -> None:
        self.state = state
        self.since_state_changed = 0


@dataclass
class Facility:
    kind: StructureKind
    disabled: bool = False


Structure = Union[Occupied, Settlement, Facility]


# Building control of space buildings


@dataclass(frozen=True)
class AlwaysEnabled:
    pass


@dataclass(frozen=True)
class EnabledNumber:
    n: int


@dataclass(frozen=True)
class IncreaseRate:
    rate: int


BuildingControl = Union[AlwaysEnabled, EnabledNumber, IncreaseRate]


@dataclass
class Building:
    n: int = 0
    control: BuildingControl = field(default_factory=AlwaysEnabled)

    def enabled(self) -> int:
        if isinstance(self.control, EnabledNumber):
            return max(min(self.control.n, self.n), 0)
        return self.n


# Tile events


@dataclass
class Fire:
    kind: ClassVar[TileEventKind] = TileEventKind.FIRE
    remaining_cycles: int


@dataclass
class BlackDust:
    kind: ClassVar[TileEventKind] = TileEventKind.BLACK_DUST
    remaining_cycles: int


@dataclass
class AerosolInjection:
    kind: ClassVar[TileEventKind] = TileEventKind.AEROSOL_INJECTION
    remaining_cycles: int


@dataclass
class Plague:
    kind: ClassVar[TileEventKind] = TileEventKind.PLAGUE
    i: int
    cured: bool
    target_pop: float


@dataclass
class Vehicle:
    kind: ClassVar[TileEventKind] = TileEventKind.VEHICLE
    id: str
    age: CivilizationAge
    direction: Coords
    remaining_cycles: int


@dataclass
class Troop:
    kind: ClassVar[TileEventKind] = TileEventKind.TROOP
    id: str
    i: int
    dest: Coords
    strength: float


@dataclass
class Decadence:
    kind: ClassVar[TileEventKind] = TileEventKind.DECADENCE
    cured: bool


@dataclass
class War:
    kind: ClassVar[TileEventKind] = TileEventKind.WAR
    i: int
    offence: str
    offence_power: float
    defence_power: float


@dataclass
class NuclearExplosion:
    kind: ClassVar[TileEventKind] = TileEventKind.NUCLEAR_EXPLOSION
    remaining_cycles: int


@dataclass
class Exodus:
    kind: ClassVar[TileEventKind] = TileEventKind.EXODUS
    remaining_cycles: int


@dataclass
class VolcanicEruption:
    kind: ClassVar[TileEventKind] = TileEventKind.VOLCANIC_ERUPTION
    remaining_cycles: int
    power: float


TileEvent = Union[
    Fire,
    BlackDust,
    AerosolInjection,
    Plague,
    Vehicle,
    Troop,
    Decadence,
    War,
    NuclearExplosion,
    Exodus,
    VolcanicEruption,
]

# Events that block settlement growth while present.
ADVERSE_TILE_EVENTS = (TileEventKind.FIRE, TileEventKind.BLACK_DUST, TileEventKind.WAR)
# Events that already claim a settlement; at most one of these spreads onto it.
SETTLEMENT_TILE_EVENTS = (
    TileEventKind.PLAGUE,
    TileEventKind.DECADENCE,
    TileEventKind.WAR,
    TileEventKind.EXODUS,
)


@dataclass
class TileEvents:
    """At most one event per kind, in insertion order."""

    items: List[TileEvent] = field(default_factory=list)

    def get(self, kind: TileEventKind) -> Optional[TileEvent]:
        for ev in self.items:
            if ev.kind is kind:
                return ev
        return None

    def contains(self, kind: TileEventKind) -> bool:
        return self.get(kind) is not None

    def insert(self, ev: TileEvent) -> None:
        self.remove(ev.kind)
        self.items.append(ev)

    def remove(self, kind: TileEventKind) -> Optional[TileEvent]:
        for idx, ev in enumerate(self.items):
            if ev.kind is kind:
                return self.items.pop(idx)
        return None

    def is_empty(self) -> bool:
        return not self.items

    def __iter__(self) -> Iterator[TileEvent]:
        return iter(list(self.items))


# Planet events


@dataclass
class DecadenceEvent:
    id: str
    start_pos: Coords
    age: CivilizationAge
    remaining_cycles: int


@dataclass
class WarEvent:
    i: int
    war_kind: WarKind
    start_pos: Coords
    ids: Tuple[str, ...] = ()
    ceased: bool = False


@dataclass
class PlagueEvent:
    i: int
    plague_kind: int
    start_pos: Coords
    ended: bool = False


@dataclass
class ExodusEvent:
    id: str


PlanetEvent = Union[DecadenceEvent, WarEvent, PlagueEvent, ExodusEvent]


@dataclass
class EventInProgress:
    event: PlanetEvent
    progress: int = 0
    duration: Optional[int] = None


@dataclass
class Events:
    in_progress: List[EventInProgress] = field(default_factory=list)

    def start_event(self, event: PlanetEvent, duration: Optional[int] = None) -> None:
        self.in_progress.append(EventInProgress(event=event, duration=duration))

    def of_type(self, kind: type) -> List[PlanetEvent]:
        return [e.event for e in self.in_progress if isinstance(e.event, kind)]

    def has(self, kind: type) -> bool:
        return any(isinstance(e.event, kind) for e in self.in_progress)

    def new_id(self, kind: type) -> int:
        """Smallest id unused by in-progress events of ``kind``."""
        used = {e.i for e in self.of_type(kind)}
        i = 0
        while i in used:
            i += 1
        return i


# Civilizations


@dataclass
class CivControl:
    """Sliders: 0 means no change for pop_growth, 50 is neutral for the rest."""

    pop_growth: int = 0
    tech_development: int = 50
    energy_weight: List[int] = field(default_factory=lambda: [50] * N_ENERGY_SOURCES)


@dataclass
class Civilization:
    total_pop: float = 0.0
    total_settlement: List[int] = field(default_factory=lambda: [0] * N_AGES)
    total_energy_consumption: List[float] = field(default_factory=lambda: [0.0] * N_ENERGY_SOURCES)
    most_advanced_age: CivilizationAge = CivilizationAge.STONE
    civ_control: CivControl = field(default_factory=CivControl)

    def n_settlements(self) -> int:
        return int(sum(self.total_settlement))


# Grid


@dataclass
class TileMap:
    """Tile grid with arrays indexed ``[y, x]`` and sparse per-tile objects.

    Attributes:
        biome: ``(H, W)`` `Biome` codes.
        height .. buried_carbon: ``(H, W)`` float layers.
        animal: ``(3, H, W)`` species index per size class, ``-1`` for empty.
        animal_n: ``(3, H, W)`` normalized population per size class.
        structure: Coordinates to structure; absent tiles have none.
        tile_events: Coordinates to the events active on that tile.
    """

    biome: np.ndarray
    height: np.ndarray
    biomass: np.ndarray
    fertility: np.ndarray
    temp: np.ndarray
    sea_temp: np.ndarray
    rainfall: np.ndarray
    vapor: np.ndarray
    ice: np.ndarray
    buried_carbon: np.ndarray
    animal: np.ndarray
    animal_n: np.ndarray
    structure: Dict[Coords, Structure] = field(default_factory=dict)
    tile_events: Dict[Coords, TileEvents] = field(default_factory=dict)

    @property
    def size(self) -> Coords:
        h, w = self.biome.shape
        return (w, h)

    def iter_coords(self) -> Iterator[Coords]:
        w, h = self.size
        for y in range(h):
            for x in range(w):
                yield (x, y)

    def biome_at(self, p: Coords) -> Biome:
        return Biome(int(self.biome[p[1], p[0]]))

    # Structures

    def get_structure(self, p: Coords) -> Optional[Structure]:
        return self.structure.get(p)

    def set_structure(self, p: Coords, s: Optional[Structure]) -> None:
        if s is None:
            self.structure.pop(p, None)
        else:
            self.structure[p] = s

    def settlement_at(self, p: Coords) -> Optional[Settlement]:
        s = self.structure.get(p)
        return s if isinstance(s, Settlement) else None

    def settlements(self) -> List[Tuple[Coords, Settlement]]:
        """Settlements in row-major order."""
        items = [(p, s) for p, s in self.structure.items() if isinstance(s, Settlement)]
        items.sort(key=lambda item: (item[0][1], item[0][0]))
        return items

    # Tile events

    def events_at(self, p: Coords) -> TileEvents:
        return self.tile_events.get(p, _EMPTY_TILE_EVENTS)

    def tile_event(self, p: Coords, kind: TileEventKind) -> Optional[TileEvent]:
        evs = self.tile_events.get(p)
        return None if evs is None else evs.get(kind)

    def has_tile_event(self, p: Coords, kind: TileEventKind) -> bool:
        return self.tile_event(p, kind) is not None

    def insert_tile_event(self, p: Coords, ev: TileEvent) -> None:
        self.tile_events.setdefault(p, TileEvents()).insert(ev)

    def remove_tile_event(self, p: Coords, kind: TileEventKind) -> Optional[TileEvent]:
        evs = self.tile_events.get(p)
        if evs is None:
            return None
        ev = evs.remove(kind)
        if evs.is_empty():
            del self.tile_events[p]
        return ev

    def tile_events_of(self, kind: TileEventKind) -> List[Tuple[Coords, TileEvent]]:
        """Events of ``kind`` in row-major order."""
        out = []
        for p, evs in self.tile_events.items():
            ev = evs.get(kind)
            if ev is not None:
                out.append((p, ev))
        out.sort(key=lambda item: (item[0][1], item[0][0]))
        return out

    # Animals

    def animal_at(self, p: Coords, size: AnimalSize) -> Optional[Tuple[int, float]]:
        idx = int(self.animal[size, p[1], p[0]])
        if idx < 0:
            return None
        return idx, float(self.animal_n[size, p[1], p[0]])

    def set_animal(self, p: Coords, size: AnimalSize, idx: int, n: float) -> None:
        self.animal[size, p[1], p[0]] = idx
        self.animal_n[size, p[1], p[0]] = n

    def clear_animal(self, p: Coords, size: AnimalSize) -> None:
        self.animal[size, p[1], p[0]] = -1
        self.animal_n[size, p[1], p[0]] = 0.0

    def clear_animals(self, p: Coords) -> None:
        self.animal[:, p[1], p[0]] = -1
        self.animal_n[:, p[1], p[0]] = 0.0


_EMPTY_TILE_EVENTS = TileEvents()


def make_empty_map(*, width: int, height: int, biome: Biome = Biome.ROCK, temp: float = 288.15) -> TileMap:
    """Allocate a flat map with every float layer zeroed."""
    shape = (height, width)
    return TileMap(
        biome=np.full(shape, int(biome), dtype=np.int8),
        height=np.zeros(shape, dtype=np.float64),
        biomass=np.zeros(shape, dtype=np.float64),
        fertility=np.zeros(shape, dtype=np.float64),
        temp=np.full(shape, temp, dtype=np.float64),
        sea_temp=np.full(shape, temp, dtype=np.float64),
        rainfall=np.zeros(shape, dtype=np.float64),
        vapor=np.zeros(shape, dtype=np.float64),
        ice=np.zeros(shape, dtype=np.float64),
        buried_carbon=np.zeros(shape, dtype=np.float64),
        animal=np.full((len(AnimalSize),) + shape, -1, dtype=np.int16),
        animal_n=np.zeros((len(AnimalSize),) + shape, dtype=np.float64),
    )


# Planet


@dataclass
class Basics:
    name: str
    radius: float
    solar_constant: float
    geothermal_power: float


@dataclass
class PlanetState:
    solar_power_multiplier: float = 1.0
    solar_power: float = 0.0


@dataclass
class Planet:
    cycles: int
    basics: Basics
    state: PlanetState
    map: TileMap
    atmo: Atmosphere
    water: Water
    space_buildings: Dict[SpaceBuildingKind, Building]
    events: Events
    civs: Dict[str, Civilization]
    stat: Stat
    reports: Reports
    res: Resources

    @property
    def size(self) -> Coords:
        return self.map.size

    @property
    def n_tiles(self) -> int:
        w, h = self.size
        return w * h

    @property
    def tile_area(self) -> float:
        return 4.0 * math.pi * self.basics.radius ** 2 / self.n_tiles

    def latitude(self, y: int) -> float:
        h = self.size[1]
        return math.asin(((2 * y + 1) / (2 * h)) * 2.0 - 1.0)

    def latitudes(self) -> np.ndarray:
        h = self.size[1]
        y = np.arange(h, dtype=np.float64)
        return np.arcsin(((2.0 * y + 1.0) / (2.0 * h)) * 2.0 - 1.0)

    def height_above_sea_level(self, p: Coords) -> float:
        return float(self.map.height[p[1], p[0]]) - self.water.sea_level

    def civ_ids(self) -> List[str]:
        return list(self.civs)


def make_planet(
    *,
    name: str,
    width: int,
    height: int,
    radius: float,
    solar_constant: float,
    geothermal_power: float,
    atmo: Atmosphere,
    water_volume: float = 0.0,
    temp: float = 288.15,
) -> Planet:
    """Assemble a planet with a flat rock map."""
    return Planet(
        cycles=0,
        basics=Basics(
            name=name,
            radius=radius,
            solar_constant=solar_constant,
            geothermal_power=geothermal_power,
        ),
        state=PlanetState(solar_power=solar_constant),
        map=make_empty_map(width=width, height=height, temp=temp),
        atmo=atmo,
        water=Water(water_volume=water_volume),
        space_buildings={kind: Building() for kind in SpaceBuildingKind},
        events=Events(),
        civs={},
        stat=Stat(),
        reports=Reports(),
        res=Resources(),
    )


__all__ = [
    "ADVERSE_TILE_EVENTS",
    "AerosolInjection",
    "AlwaysEnabled",
    "Basics",
    "BlackDust",
    "Building",
    "BuildingControl",
    "CivControl",
    "Civilization",
    "Decadence",
    "DecadenceEvent",
    "EnabledNumber",
    "EventInProgress",
    "Events",
    "Exodus",
    "ExodusEvent",
    "Facility",
    "Fire",
    "IncreaseRate",
    "NuclearExplosion",
    "Occupied",
    "Plague",
    "PlagueEvent",
    "Planet",
    "PlanetEvent",
    "PlanetState",
    "SETTLEMENT_TILE_EVENTS",
    "Settlement",
    "Structure",
    "TileEvent",
    "TileEvents",
    "TileMap",
    "Troop",
    "Vehicle",
    "VolcanicEruption",
    "War",
    "WarEvent",
    "make_empty_map",
    "make_planet",
]
