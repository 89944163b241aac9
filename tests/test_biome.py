from __future__ import annotations

import numpy as np
import pytest

from gaiaSim.planet.atmo import Atmosphere
from gaiaSim.planet.biome import burn_biomass, transition_biomes, update_biomass, update_fertility
from gaiaSim.planet.defs import CO2_CARBON_RATIO, Biome, GasKind
from gaiaSim.planet.params import load_params
from gaiaSim.planet.sim import make_sim
from gaiaSim.planet.state import make_planet


def _planet(params, w: int = 8, h: int = 6):
    atmo = Atmosphere.from_atm(params.start.atmo, params.sim.total_mass_per_atm)
    planet = make_planet(
        name="test",
        width=w,
        height=h,
        radius=1.0e6,
        solar_constant=1361.0,
        geothermal_power=4.7e13,
        atmo=atmo,
    )
    return planet, make_sim(planet, seed=0)


def test_warm_wet_fertile_rock_becomes_rainforest_before_start() -> None:
    params = load_params({"sim": {"before_start_biome_transition_probability": 1.0}})
    planet, sim = _planet(params)
    tm = planet.map
    tm.temp[...] = 295.0
    tm.rainfall[...] = 2000.0
    tm.fertility[...] = 50.0
    tm.biomass[...] = 3.0
    sim.before_start = True
    transition_biomes(planet, sim, params)
    np.testing.assert_array_equal(tm.biome, int(Biome.TROPICAL_RAINFOREST))


def test_barren_rock_stays_rock() -> None:
    params = load_params({"sim": {"before_start_biome_transition_probability": 1.0}})
    planet, sim = _planet(params)
    sim.before_start = True
    transition_biomes(planet, sim, params)
    np.testing.assert_array_equal(planet.map.biome, int(Biome.ROCK))


def test_thick_ice_turns_land_into_ice_field() -> None:
    params = load_params()
    planet, sim = _planet(params)
    planet.map.temp[...] = 260.0
    planet.map.ice[...] = params.sim.ice_thickness_of_ice_field
    transition_biomes(planet, sim, params)
    np.testing.assert_array_equal(planet.map.biome, int(Biome.ICE_FIELD))


def test_cold_ocean_freezes_only_by_temperature() -> None:
    params = load_params({"biomes": {"sea_ice": {"mean_transition_time": 1.0}}})
    planet, sim = _planet(params)
    planet.map.biome[...] = int(Biome.OCEAN)
    planet.map.temp[...] = 250.0
    planet.map.temp[:, 4:] = 290.0
    transition_biomes(planet, sim, params)
    np.testing.assert_array_equal(planet.map.biome[:, :4], int(Biome.SEA_ICE))
    np.testing.assert_array_equal(planet.map.biome[:, 4:], int(Biome.OCEAN))


def test_fertility_grows_under_favorable_conditions_and_decays_otherwise() -> None:
    params = load_params()
    planet, sim = _planet(params)
    tm = planet.map
    tm.fertility[...] = 10.0
    tm.rainfall[:, :4] = 1000.0
    tm.rainfall[:, 4:] = 0.0
    update_fertility(planet, sim, params)
    assert np.all(tm.fertility[:, 1:3] > 10.0)
    assert np.all(tm.fertility[:, 5:7] < 10.0)
    assert np.all((tm.fertility >= 0.0) & (tm.fertility <= 100.0))


def test_fertilize_effect_raises_fertility_up_to_its_max() -> None:
    params = load_params()
    planet, sim = _planet(params)
    tm = planet.map
    tm.temp[...] = 200.0
    sim.fertilize_increment[0, 0] = 5.0
    sim.fertilize_max[0, 0] = 12.0
    tm.fertility[0, 0] = 10.0
    update_fertility(planet, sim, params)
    decrement = params.sim.fertility_base_decrement * min(
        params.sim.fertility_temp_table(200.0), params.sim.fertility_rainfall_table(0.0)
    )
    assert tm.fertility[0, 0] == pytest.approx(12.0 + decrement)


def test_biomass_growth_consumes_carbon_dioxide() -> None:
    params = load_params()
    planet, sim = _planet(params)
    planet.map.fertility[...] = 50.0
    co2_before = planet.atmo.get(GasKind.CARBON_DIOXIDE)
    o2_before = planet.atmo.get(GasKind.OXYGEN)
    update_biomass(planet, sim, params)
    assert np.all(planet.map.biomass > 0.0)
    assert planet.atmo.get(GasKind.CARBON_DIOXIDE) < co2_before
    assert planet.atmo.get(GasKind.OXYGEN) > o2_before
    fixed = float(planet.map.biomass.sum()) * sim.tile_area * 1.0e-9
    assert co2_before - planet.atmo.get(GasKind.CARBON_DIOXIDE) == pytest.approx(fixed * CO2_CARBON_RATIO)


def test_excess_biomass_decays_and_buries_carbon() -> None:
    params = load_params()
    planet, sim = _planet(params)
    planet.map.biomass[...] = 1.0
    co2_before = planet.atmo.get(GasKind.CARBON_DIOXIDE)
    update_biomass(planet, sim, params)
    assert np.all(planet.map.biomass < 1.0)
    assert np.all(planet.map.buried_carbon > 0.0)
    assert planet.atmo.get(GasKind.CARBON_DIOXIDE) > co2_before
    np.testing.assert_allclose(sim.diff_biomass, -params.sim.base_biomass_decrease_speed)


def test_burn_biomass_splits_release_and_burial() -> None:
    params = load_params()
    planet, sim = _planet(params)
    planet.map.biomass[1, 2] = 2.0
    carbon = burn_biomass(planet, sim, (2, 1), 0.5, release_ratio=0.25)
    assert planet.map.biomass[1, 2] == pytest.approx(1.0)
    assert carbon == pytest.approx(1.0 * sim.tile_area * 1.0e-9)
    assert planet.map.buried_carbon[1, 2] == pytest.approx(carbon * 0.75)
