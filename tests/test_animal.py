from __future__ import annotations

import numpy as np
import pytest

from gaiaSim.planet.animal import capacity, growth_step, sim_animal
from gaiaSim.planet.atmo import Atmosphere
from gaiaSim.planet.defs import AnimalSize, Biome
from gaiaSim.planet.params import load_params
from gaiaSim.planet.sim import make_sim
from gaiaSim.planet.state import make_planet


class _FixedRng:
    """Generator stand-in whose draws are always the same."""

    def __init__(self, value: float, index: int = 0) -> None:
        self.value = value
        self.index = index

    def random(self) -> float:
        return self.value

    def integers(self, low, high=None) -> int:
        return self.index


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


def test_growth_step_is_logistic_and_clamped() -> None:
    assert growth_step(0.5, 1.0, 0.3, 0.1) == pytest.approx(0.5 + 0.3 * 0.25)
    assert growth_step(0.5, 1.0, 10.0, 0.1) == pytest.approx(0.6)
    assert growth_step(0.5, 0.0, 0.3, 0.1) == pytest.approx(0.4)
    assert growth_step(0.99, 0.5, 0.3, 0.1) == pytest.approx(0.89)
    assert growth_step(1.0, 100.0, 0.3, 0.1) == 1.0


def test_capacity_depends_on_habitat_biomass_and_temperature() -> None:
    params = load_params()
    planet, _ = _planet(params)
    tm = planet.map
    tm.biomass[...] = params.sim.animal_cap_max_biomass
    tm.biome[0, :] = int(Biome.OCEAN)
    tm.temp[5, :] = 100.0
    cap = capacity(planet, params, params.animal("deer"))
    np.testing.assert_allclose(cap[0], 0.0)
    np.testing.assert_allclose(cap[5], 0.0)
    np.testing.assert_allclose(cap[2], 1.0)
    fish = capacity(planet, params, params.animal("fish"))
    np.testing.assert_allclose(fish[1:], 0.0)


def test_population_without_food_goes_extinct() -> None:
    params = load_params()
    planet, sim = _planet(params)
    idx = params.animal_index("deer")
    planet.map.set_animal((3, 2), AnimalSize.MEDIUM, idx, 0.05)
    sim_animal(planet, sim, params)
    assert planet.map.animal_at((3, 2), AnimalSize.MEDIUM) is None
    assert not np.any(planet.map.animal >= 0)


def test_population_grows_toward_capacity() -> None:
    params = load_params({"sim": {"animal_move_weight": 0.0, "animal_fission_prob": 0.0}})
    planet, sim = _planet(params)
    planet.map.biomass[...] = 10.0
    idx = params.animal_index("deer")
    planet.map.set_animal((3, 2), AnimalSize.MEDIUM, idx, 0.1)
    for _ in range(10):
        sim_animal(planet, sim, params)
    animal = planet.map.animal_at((3, 2), AnimalSize.MEDIUM)
    assert animal is not None
    assert animal[0] == idx
    assert 0.1 < animal[1] <= 1.0


def test_fission_places_offspring_next_to_parent() -> None:
    params = load_params({"sim": {"animal_move_weight": 0.0, "animal_fission_prob": 1.0}})
    planet, sim = _planet(params)
    planet.map.biomass[...] = 10.0
    idx = params.animal_index("deer")
    planet.map.set_animal((3, 2), AnimalSize.MEDIUM, idx, 0.9)
    sim_animal(planet, sim, params)
    occupied = np.argwhere(planet.map.animal[AnimalSize.MEDIUM] == idx)
    assert len(occupied) == 2
    for y, x in occupied:
        assert abs(int(x) - 3) <= 1 and abs(int(y) - 2) <= 1


def _walk(draw: float):
    params = load_params({"sim": {"animal_move_weight": 1.0, "animal_fission_prob": 0.0}})
    planet, sim = _planet(params)
    tm = planet.map
    tm.biomass[...] = params.sim.animal_cap_max_biomass
    tm.biomass[2, 4] = 0.5 * params.sim.animal_cap_max_biomass
    idx = params.animal_index("deer")
    tm.set_animal((3, 2), AnimalSize.MEDIUM, idx, 0.5)
    # neighbour index 4 is one step east
    sim.rng = _FixedRng(draw, index=4)
    sim_animal(planet, sim, params)
    return tm, idx


def test_walk_into_poorer_tile_is_accepted_by_capacity_ratio() -> None:
    tm, idx = _walk(0.45)
    assert tm.animal_at((3, 2), AnimalSize.MEDIUM) is None
    assert tm.animal_at((4, 2), AnimalSize.MEDIUM)[0] == idx


def test_walk_into_poorer_tile_is_rejected_above_the_ratio() -> None:
    tm, idx = _walk(0.55)
    assert tm.animal_at((4, 2), AnimalSize.MEDIUM) is None
    assert tm.animal_at((3, 2), AnimalSize.MEDIUM)[0] == idx
