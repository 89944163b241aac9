from __future__ import annotations

import pytest

from gaiaSim.planet.atmo import Atmosphere
from gaiaSim.planet.civ import (
    aggregate_civs,
    can_civilize,
    civilize_animal,
    delete_civ,
    set_settlement_pop,
    sim_civs,
    update_population,
    update_state,
    update_tech,
)
from gaiaSim.planet.civ_energy import consume_biomass, process_settlement_energy
from gaiaSim.planet.defs import AnimalSize, Biome, CivilizationAge, EnergySource, SettlementState, TileEventKind
from gaiaSim.planet.params import load_params
from gaiaSim.planet.report import CivilizationAdvanced, CivilizationExtinct, CivilizationFounded
from gaiaSim.planet.sim import make_sim
from gaiaSim.planet.state import Civilization, Fire, Plague, Settlement, Vehicle, make_planet


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


def test_update_tech_promotes_and_resets() -> None:
    params = load_params()
    s = Settlement(id="primate", age=CivilizationAge.STONE, pop=1.0, tech_exp=params.sim.tech_exp_evolution[0])
    s.state = SettlementState.STABLE
    assert update_tech(s, params)
    assert s.age is CivilizationAge.BRONZE
    assert s.tech_exp == 0.0
    assert s.state is SettlementState.GROWING
    assert s.since_state_changed == 0


def test_update_tech_declines_when_not_growing() -> None:
    params = load_params()
    s = Settlement(id="primate", age=CivilizationAge.IRON, pop=1.0, tech_exp=-99.0, state=SettlementState.DECLINING)
    assert update_tech(s, params)
    assert s.age is CivilizationAge.BRONZE
    assert s.tech_exp == 0.0


def test_update_tech_never_passes_last_age() -> None:
    params = load_params()
    s = Settlement(id="primate", age=CivilizationAge.EARLY_SPACE, pop=100.0, tech_exp=1.0e9)
    assert not update_tech(s, params)
    assert s.age is CivilizationAge.EARLY_SPACE


def test_sim_civs_promotes_stone_settlement_and_reports() -> None:
    params = load_params()
    planet, sim = _planet(params)
    planet.map.biomass[...] = 10.0
    planet.cycles = params.sim.advance_tech_interval_cycles
    p = (3, 2)
    planet.map.set_structure(
        p, Settlement(id="primate", age=CivilizationAge.STONE, pop=1.0, tech_exp=params.sim.tech_exp_evolution[0] + 1e-9)
    )
    planet.civs["primate"] = Civilization()

    sim_civs(planet, sim, params)

    s = planet.map.settlement_at(p)
    assert s is not None
    assert s.age is CivilizationAge.BRONZE
    assert s.tech_exp == 0.0
    assert s.state is SettlementState.GROWING
    civ = planet.civs["primate"]
    assert civ.most_advanced_age is CivilizationAge.BRONZE
    assert civ.total_settlement[CivilizationAge.BRONZE] == 1
    assert civ.total_pop == pytest.approx(s.pop)
    assert any(
        isinstance(r.content, CivilizationAdvanced) and r.content.age is CivilizationAge.BRONZE
        for r in planet.reports
    )


def test_population_grows_with_food() -> None:
    params = load_params()
    planet, sim = _planet(params)
    planet.map.biomass[...] = 10.0
    planet.cycles = 1
    planet.map.set_structure((3, 2), Settlement(id="primate", age=CivilizationAge.STONE, pop=1.0))
    sim_civs(planet, sim, params)
    assert planet.map.settlement_at((3, 2)).pop > 1.0


def test_fire_blocks_growth() -> None:
    params = load_params()
    planet, sim = _planet(params)
    planet.map.biomass[...] = 10.0
    planet.cycles = 1
    planet.map.set_structure((3, 2), Settlement(id="primate", age=CivilizationAge.STONE, pop=1.0))
    planet.map.insert_tile_event((3, 2), Fire(remaining_cycles=3))
    sim_civs(planet, sim, params)
    assert planet.map.settlement_at((3, 2)).pop == pytest.approx(1.0)


def test_settlement_on_wrong_habitat_is_removed() -> None:
    params = load_params()
    planet, sim = _planet(params)
    planet.cycles = 1
    planet.map.set_structure((3, 2), Settlement(id="primate", age=CivilizationAge.STONE, pop=1.0))
    planet.map.biome[2, 3] = int(Biome.OCEAN)
    planet.civs["primate"] = Civilization()
    sim_civs(planet, sim, params)
    assert planet.map.get_structure((3, 2)) is None
    assert "primate" not in planet.civs
    assert isinstance(planet.reports.notices[0].content, CivilizationExtinct)


def test_set_settlement_pop_removes_below_threshold() -> None:
    params = load_params()
    planet, _ = _planet(params)
    s = Settlement(id="primate", age=CivilizationAge.STONE, pop=1.0)
    planet.map.set_structure((1, 1), s)
    planet.map.insert_tile_event((1, 1), Plague(i=0, cured=False, target_pop=0.5))
    assert set_settlement_pop(planet, params, (1, 1), s, 0.5)
    assert not set_settlement_pop(planet, params, (1, 1), s, params.sim.settlement_extinction_threshold / 2)
    assert planet.map.get_structure((1, 1)) is None
    assert not planet.map.has_tile_event((1, 1), TileEventKind.PLAGUE)


def test_biomass_shortage_throttles_and_counts() -> None:
    params = load_params()
    planet, sim = _planet(params)
    s = Settlement(id="primate", age=CivilizationAge.STONE, pop=1.0)
    planet.map.set_structure((3, 2), s)
    planet.map.biomass[2, 3] = 0.0005
    needed = 1.0 * params.sim.biomass_energy_factor
    availability = consume_biomass(planet, sim, params, (3, 2), s, 1.0)
    assert availability == pytest.approx((0.0005 / needed) ** 2)
    assert s.biomass_shortage_cycles == 1
    assert planet.map.biomass[2, 3] == pytest.approx(0.0)


def test_civilize_animal_founds_stone_settlements() -> None:
    params = load_params()
    planet, sim = _planet(params)
    idx = params.animal_index("primate")
    planet.map.set_animal((2, 2), AnimalSize.MEDIUM, idx, 0.5)
    planet.map.set_animal((5, 3), AnimalSize.MEDIUM, idx, 0.9)
    p = civilize_animal(planet, sim, params, "primate")
    assert p == (5, 3)
    assert planet.map.animal_at((5, 3), AnimalSize.MEDIUM) is None
    s = planet.map.settlement_at(p)
    assert s.age is CivilizationAge.STONE
    assert s.pop == params.sim.settlement_init_pop[0]
    assert 1 <= len(planet.map.settlements()) <= 3
    assert "primate" in planet.civs
    assert isinstance(planet.reports.notices[0].content, CivilizationFounded)


def test_can_civilize_reasons() -> None:
    params = load_params()
    planet, _ = _planet(params)
    assert can_civilize(planet, params, "deer") == "animal cannot be civilized"
    assert can_civilize(planet, params, "primate") == "animal population is insufficient"
    idx = params.animal_index("primate")
    planet.map.set_animal((2, 2), AnimalSize.MEDIUM, idx, 0.9)
    assert can_civilize(planet, params, "primate") == "lack of gene points"
    planet.res.gene_point = 1.0e4
    assert can_civilize(planet, params, "primate") is None
    planet.civs["primate"] = Civilization()
    assert can_civilize(planet, params, "primate") == "animal is already civilized"


def test_civ_with_units_in_transit_survives() -> None:
    params = load_params()
    planet, sim = _planet(params)
    planet.civs["primate"] = Civilization()
    planet.map.insert_tile_event(
        (1, 1), Vehicle(id="primate", age=CivilizationAge.IRON, direction=(1, 0), remaining_cycles=3)
    )
    sim.reset_civ_sum()
    aggregate_civs(planet, sim, params)
    assert "primate" in planet.civs
    delete_civ(planet, "primate")
    assert "primate" not in planet.civs
    assert not planet.map.has_tile_event((1, 1), TileEventKind.VEHICLE)


def test_spreading_creates_new_settlement_nearby() -> None:
    params = load_params({"sim": {"base_settlement_spreading_prob": 1.0}})
    planet, sim = _planet(params, w=12, h=8)
    planet.map.biomass[...] = 10.0
    planet.map.fertility[...] = 100.0
    planet.cycles = params.sim.settlement_spread_interval_cycles
    planet.map.set_structure((6, 4), Settlement(id="primate", age=CivilizationAge.STONE, pop=5.0))
    sim_civs(planet, sim, params)
    positions = [p for p, _ in planet.map.settlements()]
    assert len(positions) == 2
    other = next(p for p in positions if p != (6, 4))
    assert max(abs(other[0] - 6), abs(other[1] - 4)) == 2
    civ = planet.civs["primate"]
    init_pop = params.sim.settlement_init_pop[CivilizationAge.STONE]
    assert civ.total_settlement[CivilizationAge.STONE] == 2
    assert civ.total_pop == pytest.approx(planet.map.settlement_at((6, 4)).pop + init_pop)


def test_population_follows_logistic_growth() -> None:
    params = load_params()
    planet, sim = _planet(params)
    s = Settlement(id="primate", age=CivilizationAge.INDUSTRIAL, pop=25.0)
    planet.map.set_structure((3, 2), s)
    update_population(planet, sim, params, (3, 2), s, 1.0)
    assert s.pop == pytest.approx(25.05)


def test_declining_population_shrinks_slowly() -> None:
    params = load_params()
    planet, sim = _planet(params)
    s = Settlement(id="primate", age=CivilizationAge.INDUSTRIAL, pop=25.0, state=SettlementState.DECLINING)
    planet.map.set_structure((3, 2), s)
    update_population(planet, sim, params, (3, 2), s, 1.0)
    ratio = 1.0 / params.sim.settlement_shrink_factor[SettlementState.DECLINING]
    assert s.pop == pytest.approx(25.0 + 0.2 * ratio * (1.0 - ratio))


def test_population_without_resources_collapses() -> None:
    params = load_params()
    planet, sim = _planet(params)
    s = Settlement(id="primate", age=CivilizationAge.INDUSTRIAL, pop=25.0)
    planet.map.set_structure((3, 2), s)
    update_population(planet, sim, params, (3, 2), s, 0.0)
    assert s.pop == 0.0


def test_biomass_shortage_forces_deserted() -> None:
    params = load_params()
    planet, sim = _planet(params)
    s = Settlement(id="primate", age=CivilizationAge.IRON, pop=5.0)
    s.biomass_shortage_cycles = params.sim.settlement_state_changeable_cycles
    update_state(planet, sim, params, (3, 2), s)
    assert s.state is SettlementState.DESERTED
    assert s.since_state_changed == 0


def test_growing_settlement_stalls_when_biomass_drops() -> None:
    params = load_params()
    planet, sim = _planet(params)
    sim.rng = _FixedRng(0.0)
    s = Settlement(id="primate", age=CivilizationAge.IRON, pop=5.0)
    update_state(planet, sim, params, (3, 2), s)
    assert s.state is SettlementState.GROWING

    sim.diff_biomass[2, 3] = -1.0
    update_state(planet, sim, params, (3, 2), s)
    assert s.state is SettlementState.STABLE


def test_state_transition_waits_for_dwell_time() -> None:
    params = load_params()
    planet, sim = _planet(params)
    # lands in the Stable -> Declining share of the weights
    sim.rng = _FixedRng(0.99)
    s = Settlement(id="primate", age=CivilizationAge.IRON, pop=5.0, state=SettlementState.STABLE)
    s.since_state_changed = params.sim.settlement_state_changeable_cycles - 2
    update_state(planet, sim, params, (3, 2), s)
    assert s.state is SettlementState.STABLE
    update_state(planet, sim, params, (3, 2), s)
    assert s.state is SettlementState.DECLINING
    assert s.since_state_changed == 0


def _energy_planet(params):
    planet, sim = _planet(params)
    planet.map.biomass[...] = 10.0
    planet.map.buried_carbon[...] = 1.0e6
    sim.energy_wind_solar[...] = 100.0
    sim.energy_hydro_geothermal[...] = 100.0
    sim.reset_civ_sum()
    return planet, sim


def _consumption(planet, sim, params, age, pop=10.0):
    s = Settlement(id="primate", age=age, pop=pop)
    planet.map.set_structure((3, 2), s)
    availability = process_settlement_energy(planet, sim, params, (3, 2), s)
    assert availability == 1.0
    return sim.civ_sum_of("primate").total_energy_consumption


def test_energy_sources_fill_demand_in_priority_order() -> None:
    params = load_params()
    planet, sim = _energy_planet(params)
    # demand 50: hydro 15, solar 5, fossil fills the rest, biomass floor 5
    used = _consumption(planet, sim, params, CivilizationAge.INDUSTRIAL)
    assert used == pytest.approx([5.0, 5.0, 15.0, 30.0, 0.0, 0.0])
    assert planet.map.buried_carbon[2, 3] == pytest.approx(1.0e6 - 3000.0, abs=1.0)


def test_nuclear_comes_before_wind_and_fossil() -> None:
    params = load_params()
    planet, sim = _energy_planet(params)
    used = _consumption(planet, sim, params, CivilizationAge.ATOMIC)
    assert used == pytest.approx([5.0, 30.0, 30.0, 20.0, 20.0, 0.0])


def test_gift_energy_covers_demand_first() -> None:
    params = load_params()
    planet, sim = _energy_planet(params)
    sim.gift_energy[2, 3] = 100.0
    used = _consumption(planet, sim, params, CivilizationAge.INDUSTRIAL)
    assert used[EnergySource.GIFT] == pytest.approx(50.0)
    assert used[EnergySource.HYDRO_GEOTHERMAL] == 0.0
    # minimum shares are kept even when the demand is already met
    assert used[EnergySource.BIOMASS] == pytest.approx(5.0)
    assert used[EnergySource.FOSSIL_FUEL] == pytest.approx(5.0)


def test_stone_age_lives_on_biomass() -> None:
    params = load_params()
    planet, sim = _energy_planet(params)
    used = _consumption(planet, sim, params, CivilizationAge.STONE, pop=1.0)
    assert used == pytest.approx([1.0, 0.0, 0.0, 0.0, 0.0, 0.0])


def test_energy_weight_slider_raises_source_limit() -> None:
    params = load_params()
    planet, sim = _energy_planet(params)
    civ = planet.civs.setdefault("primate", Civilization())
    civ.civ_control.energy_weight[EnergySource.HYDRO_GEOTHERMAL] = 100
    used = _consumption(planet, sim, params, CivilizationAge.INDUSTRIAL)
    assert used == pytest.approx([5.0, 5.0, 30.0, 15.0, 0.0, 0.0])
