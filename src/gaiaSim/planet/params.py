"""Configuration parsing for the planet simulation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np

from ..utils import InterpTable
from .defaults import DEFAULT_CONFIG
from .defs import (
    N_AGES,
    N_BIOMES,
    N_ENERGY_SOURCES,
    AnimalHabitat,
    AnimalSize,
    Biome,
    CivilizationAge,
    GasKind,
    SettlementState,
    SpaceBuildingKind,
    StructureKind,
    StructureSize,
    TileEventKind,
)


@dataclass(frozen=True)
class BiomeAttrs:
    """Requirements and physical attributes of one biome."""

    priority: int
    mean_transition_time: float
    albedo: float
    revaporization_ratio: float
    temp: tuple[float, float]
    rainfall: tuple[float, float]
    fertility: float
    biomass: float


@dataclass(frozen=True)
class BiomeTable:
    """Per-biome attributes packed into arrays indexed by `Biome`."""

    priority: np.ndarray
    transition_prob: np.ndarray
    albedo: np.ndarray
    revaporization_ratio: np.ndarray
    temp_min: np.ndarray
    temp_max: np.ndarray
    rainfall_min: np.ndarray
    rainfall_max: np.ndarray
    fertility_min: np.ndarray
    biomass_min: np.ndarray


@dataclass(frozen=True)
class AnimalCivAttrs:
    civ_prob: float
    civilize_cost: float


@dataclass(frozen=True)
class AnimalAttr:
    id: str
    size: AnimalSize
    habitat: AnimalHabitat
    temp: tuple[float, float]
    cost: float
    civ: Optional[AnimalCivAttrs]


# Building effects


@dataclass(frozen=True)
class SprayToAtmo:
    gas: GasKind
    mass: float


@dataclass(frozen=True)
class RemoveAtmo:
    gas: GasKind
    mass: float
    efficiency_table: InterpTable


@dataclass(frozen=True)
class Heater:
    power: float


@dataclass(frozen=True)
class Fertilize:
    increment: float
    max: float
    range: int


@dataclass(frozen=True)
class Vapor:
    value: float


@dataclass(frozen=True)
class SupplyEnergy:
    value: float
    range: int


@dataclass(frozen=True)
class AdjustSolarPower:
    max_ratio: float


BuildingEffect = Union[SprayToAtmo, RemoveAtmo, Heater, Fertilize, Vapor, SupplyEnergy, AdjustSolarPower]


@dataclass(frozen=True)
class StructureAttrs:
    size: StructureSize
    cost: float
    upkeep_energy: float
    produces_energy: float
    produces_material: float
    effect: Optional[BuildingEffect]
    control: str = "always_enabled"


@dataclass(frozen=True)
class PlagueParams:
    lethality: float
    infectivity: float
    distant_infectivity: float
    infection_limit_cycles: int


@dataclass(frozen=True)
class SimParams:
    """Physical, ecological and civilization parameters."""

    total_mass_per_atm: float
    air_heat_cap: float
    surface_heat_cap: float
    secs_per_day: float
    n_loop_atmo_heat_calc: int
    insolation_day_factor: float
    air_diffusion_factor: float
    greenhouse_co2_table: InterpTable
    greenhouse_pressure_table: InterpTable
    greenhouse_altitude_attenuation: float
    max_greenhouse_effect: float
    aerosol_remaining_rate: float
    aerosol_albedo_table: InterpTable
    black_dust_albedo_decrease: float
    sea_heat_exchange_rate: float
    sea_level_bisection_iterations: int
    sea_level_volume_tolerance: float
    sea_to_land_fertility_factor: float
    n_loop_vapor_calc: int
    ocean_vaporization_table: InterpTable
    vapor_diffusion_factor: float
    vapor_height_penalty: float
    vapor_loss_ratio: float
    rainfall_duration: float
    melting_temp: float
    ice_melting_rate_per_degree: float
    snow_accumulation_rate: float
    ice_limit_temp_table: InterpTable
    ice_thickness_of_ice_field: float
    fertility_temp_table: InterpTable
    fertility_rainfall_table: InterpTable
    fertility_adjacent_factor: float
    fertility_base_decrement: float
    fertility_biomass_growth_table: InterpTable
    max_biomass_fertility_table: InterpTable
    sea_biomass_factor: float
    biomass_co2_factor_table: InterpTable
    biomass_pressure_factor_table: InterpTable
    base_biomass_increase_speed: float
    base_biomass_decrease_speed: float
    biomass_burial_ratio: float
    before_start_biome_transition_probability: float
    animal_sim_interval: int
    animal_growth_speed: tuple[float, ...]
    animal_max_dn: float
    animal_extinction_threshold: float
    animal_cap_max_biomass: float
    animal_cap_max_fertility: float
    animal_temp_margin: float
    animal_move_weight: float
    animal_fission_prob: float
    animal_fission_threshold: float
    animal_fission_cr_limit: float
    animal_fission_n: float
    n_animal_to_civilize: float
    base_civilize_prob: float
    settlement_init_pop: tuple[float, ...]
    settlement_max_pop: tuple[float, ...]
    settlement_extinction_threshold: float
    base_pop_growth_speed: float
    civ_temp_bonus: float
    soil_erosion: tuple[float, ...]
    advance_tech_interval_cycles: int
    base_tech_exp: float
    tech_exp_evolution: tuple[float, ...]
    tech_exp_declination: tuple[float, ...]
    tech_exp_decline_rate: float
    settlement_state_changeable_cycles: int
    settlement_state_transition_weights: tuple[tuple[float, ...], ...]
    settlement_stable_pop_band: tuple[float, ...]
    settlement_stable_fluctuation: float
    settlement_shrink_factor: tuple[float, ...]
    settlement_stall_biomass_delta: float
    settlement_stall_prob: float
    settlement_deserted_biomass_factor: float
    settlement_spread_interval_cycles: int
    base_settlement_spreading_prob: float
    settlement_spread_pop: tuple[float, ...]
    base_settlement_spreading_threshold: float
    technology_propagation_prob: float
    settlement_random_event_interval_cycles: int
    settlement_str_supply_ratio: float
    energy_demand_per_pop: tuple[float, ...]
    energy_source_limit_by_age: tuple[tuple[float, ...], ...]
    energy_source_min_by_age: tuple[tuple[float, ...], ...]
    energy_efficiency: tuple[float, ...]
    solar_wind_energy_table: InterpTable
    hydro_energy_table: InterpTable
    geothermal_energy_per_tile: float
    geothermal_max_depth: float
    fossil_fuel_extract_ratio: float
    fossil_fuel_energy_per_mt: float
    base_nuclear_ratio: float
    nuclear_tech_factor: float
    biomass_energy_factor: float
    biomass_consumption_release_ratio: float
    max_material: float
    gene_point_income_coef: float


@dataclass(frozen=True)
class EventParams:
    """Parameters of planet-level and tile-level events."""

    decadence_prob: float
    decadence_pop_threshold: float
    decadence_cycles: tuple[int, int]
    decadence_interval_cycles: int
    decadence_infectivity: float
    decadence_min_age: CivilizationAge
    base_civil_war_prob: float
    civil_war_pop_threshold: float
    civil_war_offence_factor: float
    base_combat_speed: float
    war_pop_damage_ratio: float
    base_inter_species_war_prob: float
    inter_species_war_min_age: CivilizationAge
    inter_species_war_duration_cycles: int
    troop_spawn_prob: float
    troop_str_ratio: float
    troop_str_decay: float
    troop_min_str: float
    nuclear_war_prob: float
    nuclear_bomb_prob: float
    plague_list: tuple[PlagueParams, ...]
    plague_spread_base_prob: float
    plague_base_lethality_speed: float
    base_plague_prob: float
    plague_pop_threshold: float
    vehicle_spawn_prob: float
    vehicle_max_cycles: int
    vehicle_min_age: CivilizationAge
    base_exodus_prob: float
    exodus_tech_level_threshold: float
    exodus_pop_threshold: float
    settlement_exodus_prob: float
    settlement_exodus_cycles: tuple[int, int]
    exodus_check_interval: int
    base_volcanic_eruption_prob: float
    reference_geothermal_power: float
    volcanic_eruption_cycles: tuple[int, int]
    volcanic_eruption_power: tuple[float, float]
    volcanic_eruption_burn_ratio: float
    volcanic_eruption_burn_release_ratio: float
    volcanic_eruption_uplift: tuple[float, float]
    volcanic_eruption_uplift_limit: float
    volcanic_eruption_aerosol: float
    volcanic_eruption_co2: float
    fire_cycles: int
    fire_burn_ratio: float
    black_dust_cycles: int
    aerosol_injection_cycles: int
    aerosol_injection_amount: float
    nuclear_explosion_cycles: int
    nuclear_explosion_burn_ratio: float
    tile_event_costs: Mapping[TileEventKind, float]


@dataclass(frozen=True)
class MonitoringParams:
    interval_cycles: int
    warn_high_temp: float
    warn_low_temp: float
    warn_low_oxygen: float
    warn_low_carbon_dioxide: float
    record_stats_interval: int
    max_history: int
    report_span: int


@dataclass(frozen=True)
class BuriedCarbonParams:
    n_spot: tuple[int, int]
    mass: tuple[float, float]
    radius: tuple[int, int]


@dataclass(frozen=True)
class Snowball:
    """Initial condition covering the planet with ice."""

    thickness: float
    temp: float


InitialCondition = Snowball


@dataclass
class StartParams:
    """Inputs of `new_planet`."""

    size: tuple[int, int] = (64, 32)
    radius: float = 6.371e6
    solar_constant: float = 1361.0
    geothermal_power: float = 4.7e13
    difference_in_elevation: float = 10000.0
    water_volume: float = 1.4e18
    atmo: Mapping[GasKind, float] = field(default_factory=dict)
    target_sea_level: Optional[float] = None
    target_sea_area: Optional[float] = None
    height_map: Optional[np.ndarray] = None
    height_table: Optional[InterpTable] = None
    noise_octaves: int = 5
    noise_persistence: float = 0.5
    cycles_before_start: int = 40
    initial_buried_carbon: BuriedCarbonParams = field(
        default_factory=lambda: BuriedCarbonParams(n_spot=(3, 6), mass=(1.0e3, 1.0e5), radius=(1, 3))
    )
    material: float = 1000.0
    gene_point: float = 0.0
    space_buildings: Mapping[SpaceBuildingKind, int] = field(default_factory=dict)
    initial_conditions: tuple[InitialCondition, ...] = ()
    initial_temp: float = 288.15

    def __post_init__(self) -> None:
        w, h = (int(v) for v in self.size)
        if w < 2 or h < 2:
            raise ValueError("size must be at least [2, 2]")
        self.size = (w, h)
        if self.radius <= 0.0:
            raise ValueError("radius must be > 0")
        if self.solar_constant < 0.0:
            raise ValueError("solar_constant must be >= 0")
        if self.water_volume < 0.0:
            raise ValueError("water_volume must be >= 0")
        if self.target_sea_area is not None and not (0.0 <= self.target_sea_area <= 1.0):
            raise ValueError("target_sea_area must be in [0, 1]")
        if self.target_sea_level is not None and self.target_sea_area is not None:
            raise ValueError("target_sea_level and target_sea_area are mutually exclusive")
        if self.cycles_before_start < 0:
            raise ValueError("cycles_before_start must be >= 0")
        if self.height_map is not None:
            hm = np.asarray(self.height_map, dtype=np.float64)
            if hm.shape != (h, w):
                raise ValueError("height_map must have shape (size[1], size[0])")
            self.height_map = hm


@dataclass(frozen=True)
class Params:
    """Validated, immutable simulation parameters."""

    biomes: Mapping[Biome, BiomeAttrs]
    biome_table: BiomeTable
    animals: tuple[AnimalAttr, ...]
    structures: Mapping[StructureKind, StructureAttrs]
    space_buildings: Mapping[SpaceBuildingKind, StructureAttrs]
    sim: SimParams
    event: EventParams
    monitoring: MonitoringParams
    start: StartParams

    def animal_index(self, animal_id: str) -> int:
        for i, attr in enumerate(self.animals):
            if attr.id == animal_id:
                return i
        raise KeyError(f"unknown animal id {animal_id!r}")

    def animal(self, animal_id: str) -> AnimalAttr:
        return self.animals[self.animal_index(animal_id)]


# Mappings replaced as a whole instead of merged key by key.
_WHOLE_VALUE_KEYS = {"event.tile_event_costs", "start.space_buildings", "start.atmo"}
# Keys with one value per civilization age (or per age transition).
_PER_AGE_KEYS = {
    "settlement_init_pop",
    "settlement_max_pop",
    "soil_erosion",
    "tech_exp_declination",
    "settlement_spread_pop",
    "energy_demand_per_pop",
    "energy_source_limit_by_age",
    "energy_source_min_by_age",
}
_PER_AGE_TRANSITION_KEYS = {"tech_exp_evolution"}
_PER_SOURCE_KEYS = {"energy_efficiency"}
_PER_STATE_KEYS = {"settlement_shrink_factor", "settlement_state_transition_weights"}
_AGE_KEYS = {"decadence_min_age", "inter_species_war_min_age", "vehicle_min_age"}
_INT_PAIR_KEYS = {"decadence_cycles", "settlement_exodus_cycles", "volcanic_eruption_cycles"}
_FLOAT_PAIR_KEYS = {"volcanic_eruption_power", "volcanic_eruption_uplift", "settlement_stable_pop_band"}


def _merge(base: Mapping[str, Any], override: Mapping[str, Any], *, path: str) -> dict:
    out = dict(base)
    for key, value in override.items():
        if key not in base:
            raise ValueError(f"unknown config key {path}{key}")
        if (
            isinstance(base[key], Mapping)
            and isinstance(value, Mapping)
            and f"{path}{key}" not in _WHOLE_VALUE_KEYS
        ):
            out[key] = _merge(base[key], value, path=f"{path}{key}.")
        else:
            out[key] = value
    return out


def _coerce(key: str, value: Any, default: Any) -> Any:
    if key.endswith("_table"):
        return InterpTable.from_points(value, key=key)
    if key in _AGE_KEYS:
        return _read_enum(CivilizationAge, value, key=key)
    if key in _INT_PAIR_KEYS:
        pair = tuple(int(v) for v in value)
        if len(pair) != 2 or pair[0] > pair[1]:
            raise ValueError(f"{key} must be an increasing [min, max] pair")
        return pair
    if key in _FLOAT_PAIR_KEYS:
        pair = tuple(float(v) for v in value)
        if len(pair) != 2 or pair[0] > pair[1]:
            raise ValueError(f"{key} must be an increasing [min, max] pair")
        return pair
    if isinstance(default, bool):
        return bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    if isinstance(default, (list, tuple)):
        if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
            raise ValueError(f"{key} must be a sequence")
        if default and isinstance(default[0], (list, tuple)):
            return tuple(tuple(float(v) for v in row) for row in value)
        return tuple(float(v) for v in value)
    return value


def _check_length(key: str, value: Sequence[Any], n: int, what: str) -> None:
    if len(value) != n:
        raise ValueError(f"{key} must have one entry per {what} ({n})")


def _read_enum(enum_cls, value: Any, *, key: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls[str(value).upper()]
    except KeyError:
        raise ValueError(f"{key} has unknown value {value!r}") from None


def _validate_section(name: str, values: Mapping[str, Any]) -> None:
    for key, value in values.items():
        if key in _PER_AGE_KEYS:
            _check_length(key, value, N_AGES, "civilization age")
            if isinstance(value[0], tuple):
                for row in value:
                    _check_length(key, row, N_ENERGY_SOURCES, "energy source")
        elif key in _PER_AGE_TRANSITION_KEYS:
            _check_length(key, value, N_AGES - 1, "age transition")
        elif key in _PER_SOURCE_KEYS:
            _check_length(key, value, N_ENERGY_SOURCES, "energy source")
        elif key in _PER_STATE_KEYS:
            _check_length(key, value, len(SettlementState), "settlement state")
        if key.endswith("_prob") and not (0.0 <= float(value) <= 1.0):
            raise ValueError(f"{name}.{key} must be in [0, 1]")
        if key.endswith("interval_cycles") or key.endswith("_interval"):
            if int(value) < 1:
                raise ValueError(f"{name}.{key} must be >= 1")
    weights = values.get("settlement_state_transition_weights")
    if weights is not None:
        for row in weights:
            _check_length("settlement_state_transition_weights", row, len(SettlementState), "settlement state")
            if sum(row) <= 0.0 or min(row) < 0.0:
                raise ValueError("settlement_state_transition_weights rows must be non-negative with positive sum")
    if values.get("animal_growth_speed") is not None:
        _check_length("animal_growth_speed", values["animal_growth_speed"], len(AnimalSize), "animal size")
    interval = values.get("settlement_random_event_interval_cycles")
    if interval is not None and interval < 4:
        raise ValueError("settlement_random_event_interval_cycles must be >= 4")


def _read_section(name: str, cfg: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict:
    values = {key: _coerce(key, cfg[key], defaults[key]) for key in defaults}
    _validate_section(name, values)
    return values


def _read_biomes(cfg: Mapping[str, Any]) -> dict[Biome, BiomeAttrs]:
    out: dict[Biome, BiomeAttrs] = {}
    for biome in Biome:
        raw = cfg.get(biome.name.lower())
        if raw is None:
            raise ValueError(f"biomes.{biome.name.lower()} is missing")
        attrs = BiomeAttrs(
            priority=int(raw["priority"]),
            mean_transition_time=float(raw["mean_transition_time"]),
            albedo=float(raw["albedo"]),
            revaporization_ratio=float(raw["revaporization_ratio"]),
            temp=(float(raw["temp"][0]), float(raw["temp"][1])),
            rainfall=(float(raw["rainfall"][0]), float(raw["rainfall"][1])),
            fertility=float(raw["fertility"]),
            biomass=float(raw["biomass"]),
        )
        if attrs.mean_transition_time <= 0.0:
            raise ValueError(f"biomes.{biome.name.lower()}.mean_transition_time must be > 0")
        if not (0.0 <= attrs.albedo <= 1.0):
            raise ValueError(f"biomes.{biome.name.lower()}.albedo must be in [0, 1]")
        out[biome] = attrs
    return out


def _make_biome_table(biomes: Mapping[Biome, BiomeAttrs]) -> BiomeTable:
    def arr(fn) -> np.ndarray:
        return np.array([fn(biomes[Biome(i)]) for i in range(N_BIOMES)], dtype=np.float64)

    return BiomeTable(
        priority=arr(lambda b: b.priority).astype(np.int16),
        transition_prob=arr(lambda b: 1.0 / b.mean_transition_time),
        albedo=arr(lambda b: b.albedo),
        revaporization_ratio=arr(lambda b: b.revaporization_ratio),
        temp_min=arr(lambda b: b.temp[0]),
        temp_max=arr(lambda b: b.temp[1]),
        rainfall_min=arr(lambda b: b.rainfall[0]),
        rainfall_max=arr(lambda b: b.rainfall[1]),
        fertility_min=arr(lambda b: b.fertility),
        biomass_min=arr(lambda b: b.biomass),
    )


def _read_animals(raw: Sequence[Mapping[str, Any]]) -> tuple[AnimalAttr, ...]:
    out: list[AnimalAttr] = []
    seen: set[str] = set()
    for entry in raw:
        animal_id = str(entry["id"])
        if animal_id in seen:
            raise ValueError(f"duplicate animal id {animal_id!r}")
        seen.add(animal_id)
        civ_raw = entry.get("civ")
        civ = None
        if civ_raw is not None:
            civ = AnimalCivAttrs(
                civ_prob=float(civ_raw["civ_prob"]),
                civilize_cost=float(civ_raw["civilize_cost"]),
            )
        temp = (float(entry["temp"][0]), float(entry["temp"][1]))
        if temp[0] > temp[1]:
            raise ValueError(f"animal {animal_id!r} temp must be an increasing pair")
        out.append(
            AnimalAttr(
                id=animal_id,
                size=_read_enum(AnimalSize, entry["size"], key=f"animals.{animal_id}.size"),
                habitat=AnimalHabitat(str(entry["habitat"]).lower()),
                temp=temp,
                cost=float(entry["cost"]),
                civ=civ,
            )
        )
    return tuple(out)


def _read_effect(raw: Mapping[str, Any] | None, *, key: str) -> Optional[BuildingEffect]:
    if raw is None:
        return None
    kind = str(raw.get("type", ""))
    if kind == "spray_to_atmo":
        return SprayToAtmo(gas=_read_enum(GasKind, raw["gas"], key=key), mass=float(raw["mass"]))
    if kind == "remove_atmo":
        return RemoveAtmo(
            gas=_read_enum(GasKind, raw["gas"], key=key),
            mass=float(raw["mass"]),
            efficiency_table=InterpTable.from_points(raw["efficiency_table"], key=f"{key}.efficiency_table"),
        )
    if kind == "heater":
        return Heater(power=float(raw["power"]))
    if kind == "fertilize":
        return Fertilize(increment=float(raw["increment"]), max=float(raw["max"]), range=int(raw["range"]))
    if kind == "vapor":
        return Vapor(value=float(raw["value"]))
    if kind == "supply_energy":
        return SupplyEnergy(value=float(raw["value"]), range=int(raw["range"]))
    if kind == "adjust_solar_power":
        return AdjustSolarPower(max_ratio=float(raw["max_ratio"]))
    raise ValueError(f"{key} has unknown effect type {kind!r}")


def _read_structure(raw: Mapping[str, Any], *, key: str) -> StructureAttrs:
    control = str(raw.get("control", "always_enabled"))
    if control not in ("always_enabled", "enabled_number", "increase_rate"):
        raise ValueError(f"{key}.control has unknown value {control!r}")
    return StructureAttrs(
        size=StructureSize(str(raw["size"])),
        cost=float(raw["cost"]),
        upkeep_energy=float(raw["upkeep_energy"]),
        produces_energy=float(raw["produces_energy"]),
        produces_material=float(raw["produces_material"]),
        effect=_read_effect(raw.get("effect"), key=f"{key}.effect"),
        control=control,
    )


def _read_start(cfg: Mapping[str, Any]) -> StartParams:
    atmo = {_read_enum(GasKind, k, key="start.atmo"): float(v) for k, v in dict(cfg["atmo"]).items()}
    space_buildings = {
        _read_enum(SpaceBuildingKind, k, key="start.space_buildings"): int(v)
        for k, v in dict(cfg["space_buildings"]).items()
    }
    conditions: list[InitialCondition] = []
    for entry in cfg["initial_conditions"]:
        if str(entry.get("type")) != "snowball":
            raise ValueError(f"start.initial_conditions has unknown type {entry.get('type')!r}")
        conditions.append(Snowball(thickness=float(entry["thickness"]), temp=float(entry["temp"])))
    carbon = cfg["initial_buried_carbon"]
    height_table = cfg["height_table"]
    return StartParams(
        size=(int(cfg["size"][0]), int(cfg["size"][1])),
        radius=float(cfg["radius"]),
        solar_constant=float(cfg["solar_constant"]),
        geothermal_power=float(cfg["geothermal_power"]),
        difference_in_elevation=float(cfg["difference_in_elevation"]),
        water_volume=float(cfg["water_volume"]),
        atmo=atmo,
        target_sea_level=None if cfg["target_sea_level"] is None else float(cfg["target_sea_level"]),
        target_sea_area=None if cfg["target_sea_area"] is None else float(cfg["target_sea_area"]),
        height_map=None if cfg["height_map"] is None else np.asarray(cfg["height_map"], dtype=np.float64),
        height_table=None if height_table is None else InterpTable.from_points(height_table, key="start.height_table"),
        noise_octaves=int(cfg["noise_octaves"]),
        noise_persistence=float(cfg["noise_persistence"]),
        cycles_before_start=int(cfg["cycles_before_start"]),
        initial_buried_carbon=BuriedCarbonParams(
            n_spot=(int(carbon["n_spot"][0]), int(carbon["n_spot"][1])),
            mass=(float(carbon["mass"][0]), float(carbon["mass"][1])),
            radius=(int(carbon["radius"][0]), int(carbon["radius"][1])),
        ),
        material=float(cfg["material"]),
        gene_point=float(cfg["gene_point"]),
        space_buildings=space_buildings,
        initial_conditions=tuple(conditions),
        initial_temp=float(cfg["initial_temp"]),
    )


def _read_event(cfg: Mapping[str, Any]) -> EventParams:
    defaults = DEFAULT_CONFIG["event"]
    plain = {k: v for k, v in defaults.items() if k not in ("plague_list", "tile_event_costs")}
    values = _read_section("event", cfg, plain)
    plagues = tuple(
        PlagueParams(
            lethality=float(p["lethality"]),
            infectivity=float(p["infectivity"]),
            distant_infectivity=float(p["distant_infectivity"]),
            infection_limit_cycles=int(p["infection_limit_cycles"]),
        )
        for p in cfg["plague_list"]
    )
    if not plagues:
        raise ValueError("event.plague_list must not be empty")
    for p in plagues:
        if not (0.0 <= p.lethality <= 1.0):
            raise ValueError("plague lethality must be in [0, 1]")
    costs = {
        _read_enum(TileEventKind, k, key="event.tile_event_costs"): float(v)
        for k, v in dict(cfg["tile_event_costs"]).items()
    }
    return EventParams(plague_list=plagues, tile_event_costs=costs, **values)


def load_params(config: Mapping[str, Any] | None = None) -> Params:
    """Parse a (partial) config mapping into immutable `Params`.

    Values from ``config`` are merged over `DEFAULT_CONFIG`. Any unknown key
    or malformed value raises ``ValueError``.
    """
    cfg = _merge(DEFAULT_CONFIG, dict(config or {}), path="")

    biomes = _read_biomes(cfg["biomes"])
    animals = _read_animals(cfg["animals"])
    structures = {
        _read_enum(StructureKind, k, key="structures"): _read_structure(v, key=f"structures.{k}")
        for k, v in cfg["structures"].items()
    }
    space_buildings = {
        _read_enum(SpaceBuildingKind, k, key="space_buildings"): _read_structure(v, key=f"space_buildings.{k}")
        for k, v in cfg["space_buildings"].items()
    }
    for kind in StructureKind:
        if kind not in structures:
            raise ValueError(f"structures.{kind.value} is missing")
    for kind in SpaceBuildingKind:
        if kind not in space_buildings:
            raise ValueError(f"space_buildings.{kind.value} is missing")

    sim_values = _read_section("sim", cfg["sim"], DEFAULT_CONFIG["sim"])
    monitoring_values = _read_section("monitoring", cfg["monitoring"], DEFAULT_CONFIG["monitoring"])

    return Params(
        biomes=biomes,
        biome_table=_make_biome_table(biomes),
        animals=animals,
        structures=structures,
        space_buildings=space_buildings,
        sim=SimParams(**sim_values),
        event=_read_event(cfg["event"]),
        monitoring=MonitoringParams(**monitoring_values),
        start=_read_start(cfg["start"]),
    )


def load_params_json(path: str | Path) -> Params:
    """Load a JSON config file and parse it with `load_params`."""
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        return load_params(json.load(f))


__all__ = [
    "AdjustSolarPower",
    "AnimalAttr",
    "AnimalCivAttrs",
    "BiomeAttrs",
    "BiomeTable",
    "BuildingEffect",
    "BuriedCarbonParams",
    "EventParams",
    "Fertilize",
    "Heater",
    "InitialCondition",
    "MonitoringParams",
    "Params",
    "PlagueParams",
    "RemoveAtmo",
    "SimParams",
    "Snowball",
    "SprayToAtmo",
    "StartParams",
    "StructureAttrs",
    "SupplyEnergy",
    "Vapor",
    "load_params",
    "load_params_json",
]
