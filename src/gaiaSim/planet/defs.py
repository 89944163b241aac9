"""Enumerations and physical constants shared by the planet passes."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Final

STEFAN_BOLTZMANN_CONSTANT: Final[float] = 5.670374e-8
# Molar mass ratios between CO2 and its constituents.
CO2_CARBON_RATIO: Final[float] = 44.0 / 12.0
OXYGEN_CARBON_RATIO: Final[float] = 32.0 / 12.0
# Kilograms per Mt.
MT: Final[float] = 1.0e9

REPORT_SPAN: Final[int] = 1000


class Biome(IntEnum):
    OCEAN = 0
    SEA_ICE = 1
    ROCK = 2
    DESERT = 3
    ICE_FIELD = 4
    TUNDRA = 5
    GRASSLAND = 6
    BOREAL_FOREST = 7
    TEMPERATE_FOREST = 8
    TROPICAL_RAINFOREST = 9

    @property
    def is_sea(self) -> bool:
        return self in (Biome.OCEAN, Biome.SEA_ICE)

    @property
    def is_land(self) -> bool:
        return not self.is_sea


N_BIOMES: Final[int] = len(Biome)
SEA_BIOMES: Final[tuple[int, ...]] = (int(Biome.OCEAN), int(Biome.SEA_ICE))


class AnimalSize(IntEnum):
    SMALL = 0
    MEDIUM = 1
    LARGE = 2


class AnimalHabitat(Enum):
    LAND = "land"
    SEA = "sea"


class CivilizationAge(IntEnum):
    STONE = 0
    BRONZE = 1
    IRON = 2
    INDUSTRIAL = 3
    ATOMIC = 4
    EARLY_SPACE = 5


N_AGES: Final[int] = len(CivilizationAge)


class SettlementState(IntEnum):
    GROWING = 0
    STABLE = 1
    DECLINING = 2
    DESERTED = 3


class EnergySource(IntEnum):
    BIOMASS = 0
    SOLAR_WIND = 1
    HYDRO_GEOTHERMAL = 2
    FOSSIL_FUEL = 3
    NUCLEAR = 4
    GIFT = 5


N_ENERGY_SOURCES: Final[int] = len(EnergySource)

# Strict allocation order; biomass covers whatever remains.
ENERGY_PRIORITY: Final[tuple[EnergySource, ...]] = (
    EnergySource.GIFT,
    EnergySource.HYDRO_GEOTHERMAL,
    EnergySource.NUCLEAR,
    EnergySource.SOLAR_WIND,
    EnergySource.FOSSIL_FUEL,
)


class GasKind(Enum):
    NITROGEN = "nitrogen"
    OXYGEN = "oxygen"
    CARBON_DIOXIDE = "carbon_dioxide"
    ARGON = "argon"


class StructureKind(Enum):
    OXYGEN_GENERATOR = "oxygen_generator"
    CARBON_CAPTURER = "carbon_capturer"
    FERTILIZATION_PLANT = "fertilization_plant"
    RAINMAKER = "rainmaker"
    HEATER = "heater"
    POWER_PLANT = "power_plant"
    FACTORY = "factory"
    GIFT_TOWER = "gift_tower"


class SpaceBuildingKind(Enum):
    ORBITAL_MIRROR = "orbital_mirror"
    SOLAR_POWER_SATELLITE = "solar_power_satellite"
    NITROGEN_SPRAYER = "nitrogen_sprayer"


class StructureSize(Enum):
    SMALL = "small"
    MIDDLE = "middle"


class TileEventKind(Enum):
    FIRE = "fire"
    BLACK_DUST = "black_dust"
    AEROSOL_INJECTION = "aerosol_injection"
    PLAGUE = "plague"
    VEHICLE = "vehicle"
    TROOP = "troop"
    DECADENCE = "decadence"
    WAR = "war"
    NUCLEAR_EXPLOSION = "nuclear_explosion"
    EXODUS = "exodus"
    VOLCANIC_ERUPTION = "volcanic_eruption"


# Tile events a player (or debug command) can trigger directly.
CAUSABLE_TILE_EVENTS: Final[tuple[TileEventKind, ...]] = (
    TileEventKind.FIRE,
    TileEventKind.BLACK_DUST,
    TileEventKind.AEROSOL_INJECTION,
    TileEventKind.PLAGUE,
    TileEventKind.NUCLEAR_EXPLOSION,
    TileEventKind.VOLCANIC_ERUPTION,
)


class WarKind(Enum):
    CIVIL = "civil"
    INTER_SPECIES = "inter_species"
    NUCLEAR = "nuclear"


__all__ = [
    "AnimalHabitat",
    "AnimalSize",
    "Biome",
    "CAUSABLE_TILE_EVENTS",
    "CO2_CARBON_RATIO",
    "CivilizationAge",
    "ENERGY_PRIORITY",
    "EnergySource",
    "GasKind",
    "MT",
    "N_AGES",
    "N_BIOMES",
    "N_ENERGY_SOURCES",
    "OXYGEN_CARBON_RATIO",
    "REPORT_SPAN",
    "SEA_BIOMES",
    "STEFAN_BOLTZMANN_CONSTANT",
    "SettlementState",
    "SpaceBuildingKind",
    "StructureKind",
    "StructureSize",
    "TileEventKind",
    "WarKind",
]
