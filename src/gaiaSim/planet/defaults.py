"""Built-in default configuration consumed by `load_params`.

Every key that `load_params` accepts appears here; user configs are merged
over this mapping, so a key missing from both is impossible and an unknown
user key is rejected.
"""

from __future__ import annotations

import copy
from typing import Any, Dict

# Per-age rows are ordered stone, bronze, iron, industrial, atomic, early_space.
# Per-source columns are ordered biomass, solar_wind, hydro_geothermal,
# fossil_fuel, nuclear, gift.

_BIOMES: Dict[str, Dict[str, Any]] = {
    "ocean": {
        "priority": 0,
        "mean_transition_time": 5.0,
        "albedo": 0.06,
        "revaporization_ratio": 0.0,
        "temp": [0.0, 10000.0],
        "rainfall": [0.0, 1.0e9],
        "fertility": 0.0,
        "biomass": 0.0,
    },
    "sea_ice": {
        "priority": 0,
        "mean_transition_time": 5.0,
        "albedo": 0.6,
        "revaporization_ratio": 0.0,
        "temp": [0.0, 271.15],
        "rainfall": [0.0, 1.0e9],
        "fertility": 0.0,
        "biomass": 0.0,
    },
    "rock": {
        "priority": 1,
        "mean_transition_time": 10.0,
        "albedo": 0.3,
        "revaporization_ratio": 0.1,
        "temp": [0.0, 10000.0],
        "rainfall": [0.0, 1.0e9],
        "fertility": 0.0,
        "biomass": 0.0,
    },
    "desert": {
        "priority": 2,
        "mean_transition_time": 10.0,
        "albedo": 0.35,
        "revaporization_ratio": 0.05,
        "temp": [243.15, 353.15],
        "rainfall": [0.0, 1.0e9],
        "fertility": 3.0,
        "biomass": 0.0,
    },
    "ice_field": {
        "priority": 0,
        "mean_transition_time": 10.0,
        "albedo": 0.7,
        "revaporization_ratio": 0.2,
        "temp": [0.0, 278.15],
        "rainfall": [0.0, 1.0e9],
        "fertility": 0.0,
        "biomass": 0.0,
    },
    "tundra": {
        "priority": 3,
        "mean_transition_time": 20.0,
        "albedo": 0.25,
        "revaporization_ratio": 0.3,
        "temp": [243.15, 288.15],
        "rainfall": [150.0, 1.0e9],
        "fertility": 8.0,
        "biomass": 0.05,
    },
    "grassland": {
        "priority": 4,
        "mean_transition_time": 20.0,
        "albedo": 0.2,
        "revaporization_ratio": 0.4,
        "temp": [263.15, 318.15],
        "rainfall": [300.0, 1.0e9],
        "fertility": 15.0,
        "biomass": 0.3,
    },
    "boreal_forest": {
        "priority": 5,
        "mean_transition_time": 30.0,
        "albedo": 0.12,
        "revaporization_ratio": 0.6,
        "temp": [253.15, 290.15],
        "rainfall": [400.0, 1.0e9],
        "fertility": 25.0,
        "biomass": 1.0,
    },
    "temperate_forest": {
        "priority": 6,
        "mean_transition_time": 30.0,
        "albedo": 0.13,
        "revaporization_ratio": 0.6,
        "temp": [270.15, 303.15],
        "rainfall": [700.0, 1.0e9],
        "fertility": 35.0,
        "biomass": 1.5,
    },
    "tropical_rainforest": {
        "priority": 7,
        "mean_transition_time": 40.0,
        "albedo": 0.12,
        "revaporization_ratio": 0.7,
        "temp": [290.15, 323.15],
        "rainfall": [1400.0, 1.0e9],
        "fertility": 45.0,
        "biomass": 2.5,
    },
}

_ANIMALS: list[Dict[str, Any]] = [
    {"id": "ant", "size": "small", "habitat": "land", "temp": [263.15, 313.15], "cost": 20.0, "civ": None},
    {"id": "fish", "size": "small", "habitat": "sea", "temp": [271.15, 303.15], "cost": 20.0, "civ": None},
    {
        "id": "primate",
        "size": "medium",
        "habitat": "land",
        "temp": [273.15, 313.15],
        "cost": 60.0,
        "civ": {"civ_prob": 1.0, "civilize_cost": 300.0},
    },
    {"id": "deer", "size": "medium", "habitat": "land", "temp": [253.15, 303.15], "cost": 50.0, "civ": None},
    {
        "id": "cephalopod",
        "size": "medium",
        "habitat": "sea",
        "temp": [271.15, 303.15],
        "cost": 60.0,
        "civ": {"civ_prob": 0.5, "civilize_cost": 400.0},
    },
    {"id": "bear", "size": "large", "habitat": "land", "temp": [243.15, 293.15], "cost": 80.0, "civ": None},
]

_STRUCTURES: Dict[str, Dict[str, Any]] = {
    "oxygen_generator": {
        "size": "small",
        "cost": 100.0,
        "upkeep_energy": 20.0,
        "produces_energy": 0.0,
        "produces_material": 0.0,
        "effect": {"type": "spray_to_atmo", "gas": "oxygen", "mass": 2000.0},
    },
    "carbon_capturer": {
        "size": "small",
        "cost": 150.0,
        "upkeep_energy": 30.0,
        "produces_energy": 0.0,
        "produces_material": 0.0,
        "effect": {
            "type": "remove_atmo",
            "gas": "carbon_dioxide",
            "mass": 2000.0,
            "efficiency_table": [[0.0, 0.0], [0.0001, 0.2], [0.001, 1.0]],
        },
    },
    "fertilization_plant": {
        "size": "small",
        "cost": 100.0,
        "upkeep_energy": 10.0,
        "produces_energy": 0.0,
        "produces_material": 0.0,
        "effect": {"type": "fertilize", "increment": 1.0, "max": 60.0, "range": 2},
    },
    "rainmaker": {
        "size": "small",
        "cost": 120.0,
        "upkeep_energy": 15.0,
        "produces_energy": 0.0,
        "produces_material": 0.0,
        "effect": {"type": "vapor", "value": 0.5},
    },
    "heater": {
        "size": "small",
        "cost": 100.0,
        "upkeep_energy": 25.0,
        "produces_energy": 0.0,
        "produces_material": 0.0,
        "effect": {"type": "heater", "power": 5.0e12},
    },
    "power_plant": {
        "size": "small",
        "cost": 80.0,
        "upkeep_energy": 0.0,
        "produces_energy": 100.0,
        "produces_material": 0.0,
        "effect": None,
    },
    "factory": {
        "size": "small",
        "cost": 100.0,
        "upkeep_energy": 30.0,
        "produces_energy": 0.0,
        "produces_material": 10.0,
        "effect": None,
    },
    "gift_tower": {
        "size": "middle",
        "cost": 300.0,
        "upkeep_energy": 50.0,
        "produces_energy": 0.0,
        "produces_material": 0.0,
        "effect": {"type": "supply_energy", "value": 20.0, "range": 3},
    },
}

_SPACE_BUILDINGS: Dict[str, Dict[str, Any]] = {
    "orbital_mirror": {
        "size": "small",
        "cost": 500.0,
        "upkeep_energy": 0.0,
        "produces_energy": 0.0,
        "produces_material": 0.0,
        "control": "increase_rate",
        "effect": {"type": "adjust_solar_power", "max_ratio": 0.01},
    },
    "solar_power_satellite": {
        "size": "small",
        "cost": 400.0,
        "upkeep_energy": 0.0,
        "produces_energy": 200.0,
        "produces_material": 0.0,
        "control": "enabled_number",
        "effect": None,
    },
    "nitrogen_sprayer": {
        "size": "small",
        "cost": 400.0,
        "upkeep_energy": 60.0,
        "produces_energy": 0.0,
        "produces_material": 0.0,
        "control": "enabled_number",
        "effect": {"type": "spray_to_atmo", "gas": "nitrogen", "mass": 1.0e5},
    },
}

_SIM: Dict[str, Any] = {
    # Atmosphere and heat transfer
    "total_mass_per_atm": 5.15e9,
    "air_heat_cap": 1004.0,
    "surface_heat_cap": 3.0e6,
    "secs_per_day": 86400.0,
    "n_loop_atmo_heat_calc": 10,
    "insolation_day_factor": 0.318,
    "air_diffusion_factor": 0.05,
    "greenhouse_co2_table": [
        [0.0, 0.15],
        [0.0004, 0.32],
        [0.01, 0.45],
        [0.1, 0.6],
        [1.0, 0.75],
        [10.0, 0.9],
    ],
    "greenhouse_pressure_table": [[0.0, 0.0], [0.1, 0.5], [1.0, 1.0], [10.0, 1.2]],
    "greenhouse_altitude_attenuation": 5.0e-5,
    "max_greenhouse_effect": 0.95,
    "aerosol_remaining_rate": 0.9,
    "aerosol_albedo_table": [[0.0, 0.0], [1.0, 0.05], [10.0, 0.3]],
    "black_dust_albedo_decrease": 0.2,
    "sea_heat_exchange_rate": 0.1,
    # Water
    "sea_level_bisection_iterations": 20,
    "sea_level_volume_tolerance": 1.0e9,
    "sea_to_land_fertility_factor": 0.5,
    "n_loop_vapor_calc": 5,
    "ocean_vaporization_table": [
        [253.15, 0.0],
        [273.15, 0.3],
        [288.15, 1.0],
        [303.15, 2.0],
        [323.15, 4.0],
    ],
    "vapor_diffusion_factor": 0.1,
    "vapor_height_penalty": 1.0e-4,
    "vapor_loss_ratio": 0.1,
    "rainfall_duration": 1000.0,
    "melting_temp": 273.15,
    "ice_melting_rate_per_degree": 0.05,
    "snow_accumulation_rate": 1.0e-4,
    "ice_limit_temp_table": [[223.15, 0.005], [263.15, 0.002], [273.15, 0.0]],
    "ice_thickness_of_ice_field": 1.0,
    # Biome and fertility
    "fertility_temp_table": [
        [223.15, -1.0],
        [253.15, -0.2],
        [268.15, 0.3],
        [288.15, 1.0],
        [308.15, 1.0],
        [323.15, -0.2],
        [343.15, -1.0],
    ],
    "fertility_rainfall_table": [[0.0, -0.5], [100.0, 0.0], [400.0, 0.6], [1000.0, 1.0]],
    "fertility_adjacent_factor": 0.02,
    "fertility_base_decrement": 0.5,
    "fertility_biomass_growth_table": [[0.0, 0.05], [1.0, 0.2], [5.0, 0.4]],
    "max_biomass_fertility_table": [[0.0, 0.0], [10.0, 0.3], [50.0, 2.0], [100.0, 5.0]],
    "sea_biomass_factor": 0.2,
    "biomass_co2_factor_table": [[0.0, 0.0], [0.0001, 0.5], [0.0004, 1.0]],
    "biomass_pressure_factor_table": [[0.0, 0.0], [0.2, 1.0]],
    "base_biomass_increase_speed": 0.05,
    "base_biomass_decrease_speed": 0.1,
    "biomass_burial_ratio": 0.05,
    "before_start_biome_transition_probability": 0.3,
    # Animals
    "animal_sim_interval": 1,
    "animal_growth_speed": [0.3, 0.2, 0.1],
    "animal_max_dn": 0.1,
    "animal_extinction_threshold": 0.02,
    "animal_cap_max_biomass": 1.5,
    "animal_cap_max_fertility": 40.0,
    "animal_temp_margin": 5.0,
    "animal_move_weight": 0.1,
    "animal_fission_prob": 0.1,
    "animal_fission_threshold": 0.5,
    "animal_fission_cr_limit": 0.4,
    "animal_fission_n": 0.05,
    "n_animal_to_civilize": 0.8,
    "base_civilize_prob": 0.0002,
    # Civilization
    "settlement_init_pop": [1.0, 2.0, 3.0, 5.0, 8.0, 10.0],
    "settlement_max_pop": [6.0, 12.0, 20.0, 50.0, 80.0, 100.0],
    "settlement_extinction_threshold": 0.1,
    "base_pop_growth_speed": 0.2,
    "civ_temp_bonus": 7.0,
    "soil_erosion": [0.0, 0.0005, 0.001, 0.002, 0.003, 0.003],
    "advance_tech_interval_cycles": 5,
    "base_tech_exp": 5.0,
    "tech_exp_evolution": [30.0, 60.0, 100.0, 150.0, 200.0],
    "tech_exp_declination": [-100.0, -100.0, -100.0, -100.0, -100.0, -100.0],
    "tech_exp_decline_rate": 2.0,
    "settlement_state_changeable_cycles": 10,
    "settlement_state_transition_weights": [
        [0.97, 0.03, 0.0, 0.0],
        [0.0, 0.98, 0.02, 0.0],
        [0.0, 0.05, 0.94, 0.01],
        [0.0, 0.0, 0.0, 1.0],
    ],
    "settlement_stable_pop_band": [0.8, 1.0],
    "settlement_stable_fluctuation": 0.02,
    "settlement_shrink_factor": [1.0, 1.0, 0.95, 0.8],
    "settlement_stall_biomass_delta": 0.0,
    "settlement_stall_prob": 0.02,
    "settlement_deserted_biomass_factor": 2.0,
    "settlement_spread_interval_cycles": 3,
    "base_settlement_spreading_prob": 0.2,
    "settlement_spread_pop": [1.0, 2.0, 3.0, 5.0, 8.0, 10.0],
    "base_settlement_spreading_threshold": 0.3,
    "technology_propagation_prob": 0.02,
    "settlement_random_event_interval_cycles": 8,
    "settlement_str_supply_ratio": 0.05,
    # Energy
    "energy_demand_per_pop": [1.0, 1.5, 2.0, 5.0, 10.0, 15.0],
    "energy_source_limit_by_age": [
        [1.0, 0.0, 0.0, 0.0, 0.0, 1.0],
        [1.0, 0.0, 0.1, 0.0, 0.0, 1.0],
        [1.0, 0.05, 0.2, 0.1, 0.0, 1.0],
        [1.0, 0.1, 0.3, 0.8, 0.0, 1.0],
        [1.0, 0.3, 0.3, 0.6, 0.5, 1.0],
        [1.0, 0.6, 0.4, 0.4, 0.8, 1.0],
    ],
    "energy_source_min_by_age": [
        [0.5, 0.0, 0.0, 0.0, 0.0, 0.0],
        [0.4, 0.0, 0.0, 0.0, 0.0, 0.0],
        [0.3, 0.0, 0.0, 0.0, 0.0, 0.0],
        [0.1, 0.0, 0.0, 0.1, 0.0, 0.0],
        [0.05, 0.0, 0.0, 0.05, 0.0, 0.0],
        [0.02, 0.0, 0.0, 0.0, 0.0, 0.0],
    ],
    "energy_efficiency": [0.3, 0.9, 0.9, 0.5, 0.8, 1.0],
    "solar_wind_energy_table": [[0.0, 0.0], [1361.0, 2.0], [3000.0, 4.0]],
    "hydro_energy_table": [[0.0, 0.0], [1000.0, 3.0], [3000.0, 6.0]],
    "geothermal_energy_per_tile": 1.0,
    "geothermal_max_depth": 1000.0,
    "fossil_fuel_extract_ratio": 0.01,
    "fossil_fuel_energy_per_mt": 0.01,
    "base_nuclear_ratio": 0.2,
    "nuclear_tech_factor": 0.005,
    "biomass_energy_factor": 0.002,
    "biomass_consumption_release_ratio": 0.8,
    # Resources
    "max_material": 1.0e6,
    "gene_point_income_coef": 1.0e3,
}

_EVENT: Dict[str, Any] = {
    # Decadence
    "decadence_prob": 0.002,
    "decadence_pop_threshold": 0.8,
    "decadence_cycles": [50, 100],
    "decadence_interval_cycles": 50,
    "decadence_infectivity": 0.05,
    "decadence_min_age": "iron",
    # Civil war
    "base_civil_war_prob": 0.01,
    "civil_war_pop_threshold": 0.5,
    "civil_war_offence_factor": 1.2,
    "base_combat_speed": 0.1,
    "war_pop_damage_ratio": 0.5,
    # Inter-species and nuclear war
    "base_inter_species_war_prob": 0.002,
    "inter_species_war_min_age": "iron",
    "inter_species_war_duration_cycles": 100,
    "troop_spawn_prob": 0.1,
    "troop_str_ratio": 0.3,
    "troop_str_decay": 0.98,
    "troop_min_str": 0.05,
    "nuclear_war_prob": 0.1,
    "nuclear_bomb_prob": 0.05,
    # Plague
    "plague_list": [
        {"lethality": 0.4, "infectivity": 0.5, "distant_infectivity": 0.05, "infection_limit_cycles": 40},
        {"lethality": 0.7, "infectivity": 0.3, "distant_infectivity": 0.02, "infection_limit_cycles": 30},
    ],
    "plague_spread_base_prob": 0.3,
    "plague_base_lethality_speed": 0.1,
    "base_plague_prob": 0.01,
    "plague_pop_threshold": 3.0,
    # Vehicles
    "vehicle_spawn_prob": 0.1,
    "vehicle_max_cycles": 8,
    "vehicle_min_age": "iron",
    # Exodus
    "base_exodus_prob": 0.02,
    "exodus_tech_level_threshold": 50.0,
    "exodus_pop_threshold": 100.0,
    "settlement_exodus_prob": 0.2,
    "settlement_exodus_cycles": [3, 10],
    "exodus_check_interval": 4,
    # Geological
    "base_volcanic_eruption_prob": 0.001,
    "reference_geothermal_power": 4.7e13,
    "volcanic_eruption_cycles": [5, 20],
    "volcanic_eruption_power": [0.5, 1.5],
    "volcanic_eruption_burn_ratio": 0.5,
    "volcanic_eruption_burn_release_ratio": 0.7,
    "volcanic_eruption_uplift": [20.0, 100.0],
    "volcanic_eruption_uplift_limit": 10000.0,
    "volcanic_eruption_aerosol": 0.5,
    "volcanic_eruption_co2": 100.0,
    # Tile events
    "fire_cycles": 5,
    "fire_burn_ratio": 0.3,
    "black_dust_cycles": 20,
    "aerosol_injection_cycles": 20,
    "aerosol_injection_amount": 0.2,
    "nuclear_explosion_cycles": 3,
    "nuclear_explosion_burn_ratio": 0.8,
    "tile_event_costs": {
        "fire": 100.0,
        "black_dust": 100.0,
        "aerosol_injection": 200.0,
        "plague": 500.0,
        "nuclear_explosion": 1000.0,
        "volcanic_eruption": 1000.0,
    },
}

_MONITORING: Dict[str, Any] = {
    "interval_cycles": 10,
    "warn_high_temp": 313.15,
    "warn_low_temp": 253.15,
    "warn_low_oxygen": 0.05,
    "warn_low_carbon_dioxide": 0.0001,
    "record_stats_interval": 10,
    "max_history": 1000,
    "report_span": 1000,
}

_START: Dict[str, Any] = {
    "size": [64, 32],
    "radius": 6.371e6,
    "solar_constant": 1361.0,
    "geothermal_power": 4.7e13,
    "difference_in_elevation": 10000.0,
    "water_volume": 1.4e18,
    "atmo": {"nitrogen": 0.78, "oxygen": 0.21, "carbon_dioxide": 0.0004, "argon": 0.009},
    "target_sea_level": None,
    "target_sea_area": 0.6,
    "height_map": None,
    "height_table": None,
    "noise_octaves": 5,
    "noise_persistence": 0.5,
    "cycles_before_start": 40,
    "initial_buried_carbon": {"n_spot": [3, 6], "mass": [1.0e3, 1.0e5], "radius": [1, 3]},
    "material": 1000.0,
    "gene_point": 0.0,
    "space_buildings": {},
    "initial_conditions": [],
    "initial_temp": 288.15,
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "biomes": _BIOMES,
    "animals": _ANIMALS,
    "structures": _STRUCTURES,
    "space_buildings": _SPACE_BUILDINGS,
    "sim": _SIM,
    "event": _EVENT,
    "monitoring": _MONITORING,
    "start": _START,
}


def default_config() -> Dict[str, Any]:
    """Return a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


__all__ = ["DEFAULT_CONFIG", "default_config"]
