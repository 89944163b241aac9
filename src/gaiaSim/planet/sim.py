"""Per-simulation scratch state and the random stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import numpy as np

from ..utils import Coords
from .defs import N_AGES, N_ENERGY_SOURCES, SpaceBuildingKind, StructureKind
from .state import Planet


@dataclass
class CivSum:
    """Per-species accumulator filled while iterating settlements."""

    total_pop: float = 0.0
    total_settlement: List[int] = field(default_factory=lambda: [0] * N_AGES)
    total_energy_consumption: List[float] = field(default_factory=lambda: [0.0] * N_ENERGY_SOURCES)


@dataclass
class Sim:
    """Ephemeral arrays recomputed from the planet; never persisted.

    The generator ``rng`` is the only source of randomness for every pass.
    """

    size: Coords
    tile_area: float
    rng: np.random.Generator
    cos_lat: np.ndarray
    before_start: bool = False
    atemp: np.ndarray = field(init=False, repr=False)
    atemp_new: np.ndarray = field(init=False, repr=False)
    albedo: np.ndarray = field(init=False, repr=False)
    vapor: np.ndarray = field(init=False, repr=False)
    vapor_new: np.ndarray = field(init=False, repr=False)
    heater_power: np.ndarray = field(init=False, repr=False)
    vapor_source: np.ndarray = field(init=False, repr=False)
    fertilize_increment: np.ndarray = field(init=False, repr=False)
    fertilize_max: np.ndarray = field(init=False, repr=False)
    gift_energy: np.ndarray = field(init=False, repr=False)
    diff_biomass: np.ndarray = field(init=False, repr=False)
    settlement_cr: np.ndarray = field(init=False, repr=False)
    energy_eff: np.ndarray = field(init=False, repr=False)
    energy_wind_solar: np.ndarray = field(init=False, repr=False)
    energy_hydro_geothermal: np.ndarray = field(init=False, repr=False)
    working_buildings: Dict[StructureKind, int] = field(default_factory=dict)
    working_space_buildings: Dict[SpaceBuildingKind, int] = field(default_factory=dict)
    working_tiles: Set[Coords] = field(default_factory=set)
    civ_sum: Dict[str, CivSum] = field(default_factory=dict)
    war_counter: Dict[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        w, h = self.size
        for name in (
            "atemp",
            "atemp_new",
            "albedo",
            "vapor",
            "vapor_new",
            "heater_power",
            "vapor_source",
            "fertilize_increment",
            "fertilize_max",
            "gift_energy",
            "diff_biomass",
            "settlement_cr",
            "energy_eff",
            "energy_wind_solar",
            "energy_hydro_geothermal",
        ):
            setattr(self, name, np.zeros((h, w), dtype=np.float64))
        self.energy_eff[...] = 1.0

    @property
    def n_tiles(self) -> int:
        return self.size[0] * self.size[1]

    def reset_civ_sum(self) -> None:
        self.civ_sum = {}

    def civ_sum_of(self, civ_id: str) -> CivSum:
        return self.civ_sum.setdefault(civ_id, CivSum())


def make_sim(
    planet: Planet,
    *,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> Sim:
    """Create the scratch state for ``planet``.

    Exactly one of ``seed`` or ``rng`` is normally given; without either the
    stream is seeded with 0.
    """
    if rng is None:
        rng = np.random.default_rng(0 if seed is None else seed)
    return Sim(
        size=planet.size,
        tile_area=planet.tile_area,
        rng=rng,
        cos_lat=np.cos(planet.latitudes()),
    )


__all__ = ["CivSum", "Sim", "make_sim"]
