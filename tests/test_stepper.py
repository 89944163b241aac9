from __future__ import annotations

import numpy as np
import pytest

from gaiaSim.planet.debug import DebugContext, tile_debug_info
from gaiaSim.planet.defs import SEA_BIOMES, AnimalSize
from gaiaSim.planet.new import new_planet
from gaiaSim.planet.params import load_params
from gaiaSim.planet.serialize import planet_digest
from gaiaSim.planet.stepper import advance, advance_n, update

CONFIG = {
    "start": {"size": [16, 8], "cycles_before_start": 4},
    "event": {"base_volcanic_eruption_prob": 0.0},
}


def test_advance_keeps_the_sea_and_settlement_invariants() -> None:
    params = load_params(CONFIG)
    planet, sim = new_planet(params, seed=2)
    land = [p for p in planet.map.iter_coords() if int(planet.map.biome[p[1], p[0]]) not in SEA_BIOMES]
    planet.map.set_animal(land[0], AnimalSize.MEDIUM, params.animal_index("primate"), 0.5)

    for _ in range(12):
        advance(planet, sim, params)
        tm = planet.map
        sea = np.isin(tm.biome, SEA_BIOMES)
        np.testing.assert_array_equal(sea, tm.height < planet.water.sea_level)
        for _, s in tm.settlements():
            assert s.pop > 0.0
    assert planet.cycles == 12


def test_update_does_not_advance_the_cycle() -> None:
    params = load_params(CONFIG)
    planet, sim = new_planet(params, seed=2)
    planet.res.material = 500.0
    planet.stat.sum_biomass = 4000.0
    update(planet, sim, params)
    assert planet.cycles == 0
    assert planet.res.material == 500.0
    assert planet.res.diff_gene_point == pytest.approx(2.0)


def test_resource_deltas_are_applied_next_cycle() -> None:
    params = load_params(CONFIG)
    planet, sim = new_planet(params, seed=2)
    planet.res.gene_point = 0.0
    planet.map.biomass[...] = 5.0
    planet.stat.sum_biomass = 100.0
    advance(planet, sim, params)
    after_first = planet.res.gene_point
    advance(planet, sim, params)
    assert after_first > 0.0
    assert planet.res.gene_point > after_first


def test_debug_context_watches_one_tile() -> None:
    params = load_params(CONFIG)
    planet, sim = new_planet(params, seed=2)
    debug = DebugContext(target=(3, 4))
    advance(planet, sim, params, debug)

    assert any(line.startswith("temp=") for line in debug.logs["heat"])
    assert any(line.startswith("rainfall=") for line in debug.logs["water"])
    debug.tile_log((0, 0), "other", lambda: "ignored")
    assert "other" not in debug.logs

    info = tile_debug_info(planet, sim, params, (3, 4))
    assert info["temp"] == float(planet.map.temp[4, 3])
    assert isinstance(info["biome"], str)

    advance(planet, sim, params, DebugContext())


def test_advance_n_matches_repeated_advance() -> None:
    params = load_params(CONFIG)
    a, sim_a = new_planet(params, seed=4)
    b, sim_b = new_planet(params, seed=4)
    advance_n(a, sim_a, params, 3)
    for _ in range(3):
        advance(b, sim_b, params)
    assert a.cycles == 3
    assert planet_digest(a) == planet_digest(b)
