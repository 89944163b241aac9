"""Rolling planet statistics and their bounded history."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List

import numpy as np

from .defs import N_BIOMES, GasKind

if TYPE_CHECKING:
    from .params import Params
    from .state import Planet


@dataclass
class Record:
    """Snapshot of aggregate statistics at one cycle."""

    cycles: int
    average_air_temp: float
    average_sea_temp: float
    average_rainfall: float
    average_fertility: float
    sum_biomass: float
    sea_level: float
    partial_pressure: Dict[str, float]
    pop: Dict[str, float]
    n_settlements: int
    n_animal_tiles: Dict[str, int]


@dataclass
class Stat:
    average_air_temp: float = 0.0
    average_sea_temp: float = 0.0
    average_rainfall: float = 0.0
    average_fertility: float = 0.0
    sum_biomass: float = 0.0
    sum_buried_carbon: float = 0.0
    biome_count: List[int] = field(default_factory=lambda: [0] * N_BIOMES)
    records: List[Record] = field(default_factory=list)

    def history(self) -> List[Record]:
        """Records oldest first."""
        return list(self.records)

    def clear_history(self) -> None:
        self.records.clear()

    def push(self, record: Record, max_history: int) -> None:
        self.records.append(record)
        if len(self.records) > max_history:
            del self.records[: len(self.records) - max_history]

    def to_dict(self) -> Dict[str, Any]:
        """Convert the history to a JSON-serialisable dictionary."""
        return {"history": [asdict(r) for r in self.records]}

    def save_json(self, path: str | Path) -> None:
        """Save the history to a JSON file."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with p.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


def update_stat(planet: Planet, params: Params) -> None:
    """Recompute aggregates that are not owned by a specific pass."""
    tm = planet.map
    stat = planet.stat
    mass_per_tile = planet.tile_area * 1.0e-9
    stat.average_rainfall = float(tm.rainfall.mean())
    stat.average_fertility = float(tm.fertility.mean())
    stat.sum_biomass = float(tm.biomass.sum() * mass_per_tile)
    stat.sum_buried_carbon = float(tm.buried_carbon.sum())
    stat.biome_count = np.bincount(tm.biome.reshape(-1).astype(np.int64), minlength=N_BIOMES).tolist()
    sea = np.isin(tm.biome, (0, 1))
    stat.average_sea_temp = float(tm.sea_temp[sea].mean()) if sea.any() else 0.0


def record_stats(planet: Planet, params: Params) -> None:
    update_stat(planet, params)
    if planet.cycles % params.monitoring.record_stats_interval != 0:
        return
    stat = planet.stat
    n_animal_tiles: Dict[str, int] = {}
    counts = np.bincount(planet.map.animal[planet.map.animal >= 0].astype(np.int64), minlength=len(params.animals))
    for i, attr in enumerate(params.animals):
        n_animal_tiles[attr.id] = int(counts[i])
    record = Record(
        cycles=planet.cycles,
        average_air_temp=stat.average_air_temp,
        average_sea_temp=stat.average_sea_temp,
        average_rainfall=stat.average_rainfall,
        average_fertility=stat.average_fertility,
        sum_biomass=stat.sum_biomass,
        sea_level=planet.water.sea_level,
        partial_pressure={kind.value: planet.atmo.partial_pressure(kind) for kind in GasKind},
        pop={civ_id: civ.total_pop for civ_id, civ in planet.civs.items()},
        n_settlements=sum(civ.n_settlements() for civ in planet.civs.values()),
        n_animal_tiles=n_animal_tiles,
    )
    stat.push(record, params.monitoring.max_history)


__all__ = ["Record", "Stat", "record_stats", "update_stat"]
