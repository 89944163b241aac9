from __future__ import annotations

import pytest

from gaiaSim.planet.atmo import Atmosphere
from gaiaSim.planet.decadence import cause_decadence, sim_decadence
from gaiaSim.planet.defs import (
    AnimalSize,
    CivilizationAge,
    EnergySource,
    SettlementState,
    StructureKind,
    TileEventKind,
    WarKind,
)
from gaiaSim.planet.events import advance_events
from gaiaSim.planet.exodus import cause_exodus, exodus_probability, start_exodus
from gaiaSim.planet.params import load_params
from gaiaSim.planet.plague import cause_plague, sim_plague
from gaiaSim.planet.report import CivilWarStarted, DecadenceStarted, ExodusStarted, PlagueOutbreak
from gaiaSim.planet.sim import make_sim
from gaiaSim.planet.state import (
    Civilization,
    DecadenceEvent,
    ExodusEvent,
    Facility,
    PlagueEvent,
    Settlement,
    WarEvent,
    make_planet,
)
from gaiaSim.planet.tile_event import advance_tile_events, cause_tile_event
from gaiaSim.planet.vehicle import advance_vehicles, spawn_vehicles
from gaiaSim.planet.war import (
    advance_troops,
    exec_combat_until_finish,
    spawn_troops,
    start_civil_war,
    start_inter_species_war,
    step_toward,
)

# Random triggers off so that only the events under test run.
QUIET_EVENTS = {
    "decadence_prob": 0.0,
    "base_civil_war_prob": 0.0,
    "base_inter_species_war_prob": 0.0,
    "base_plague_prob": 0.0,
    "vehicle_spawn_prob": 0.0,
    "base_exodus_prob": 0.0,
    "base_volcanic_eruption_prob": 0.0,
}


def _params(**event):
    return load_params({"event": {**QUIET_EVENTS, **event}})


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
    planet.map.biomass[...] = 10.0
    return planet, make_sim(planet, seed=0)


def _settle(planet, p, civ_id="primate", age=CivilizationAge.IRON, pop=10.0) -> Settlement:
    s = Settlement(id=civ_id, age=age, pop=pop)
    planet.map.set_structure(p, s)
    civ = planet.civs.setdefault(civ_id, Civilization())
    civ.most_advanced_age = max(civ.most_advanced_age, age)
    return s


def test_civil_war_runs_until_markers_are_gone() -> None:
    params = _params()
    planet, sim = _planet(params)
    _settle(planet, (3, 2))
    _settle(planet, (4, 2))

    i = start_civil_war(planet, sim, params, (3, 2))
    assert i == 0
    assert planet.map.has_tile_event((3, 2), TileEventKind.WAR)
    assert planet.map.has_tile_event((4, 2), TileEventKind.WAR)
    assert isinstance(planet.reports.notices[0].content, CivilWarStarted)

    for _ in range(200):
        advance_events(planet, sim, params)
        if not planet.events.has(WarEvent):
            break
    assert not planet.events.has(WarEvent)
    assert not planet.map.tile_events_of(TileEventKind.WAR)
    for _, s in planet.map.settlements():
        assert s.pop < 10.0


def test_stone_age_civil_war_stays_on_one_tile() -> None:
    params = _params()
    planet, sim = _planet(params)
    _settle(planet, (3, 2), age=CivilizationAge.STONE)
    _settle(planet, (4, 2), age=CivilizationAge.STONE)
    start_civil_war(planet, sim, params, (3, 2))
    assert [p for p, _ in planet.map.tile_events_of(TileEventKind.WAR)] == [(3, 2)]


def test_plague_is_cured_then_ends() -> None:
    params = _params()
    planet, sim = _planet(params)
    s = _settle(planet, (3, 2), pop=5.0)
    assert cause_plague(planet, sim, params, (3, 2), plague_kind=0)
    event = planet.events.of_type(PlagueEvent)[0]
    marker = planet.map.tile_event((3, 2), TileEventKind.PLAGUE)
    assert marker.target_pop == pytest.approx(5.0 * (1.0 - params.event.plague_list[0].lethality))
    assert isinstance(planet.reports.notices[0].content, PlagueOutbreak)

    elapsed = 0
    while not marker.cured:
        assert not sim_plague(planet, sim, params, event, elapsed)
        elapsed += 1
        assert elapsed < 100
    assert s.pop < marker.target_pop
    assert s.state is SettlementState.DECLINING

    assert sim_plague(planet, sim, params, event, elapsed)
    assert event.ended
    assert not planet.map.tile_events_of(TileEventKind.PLAGUE)
    advance_events(planet, sim, params)
    assert not planet.events.has(PlagueEvent)


def test_second_plague_joins_the_active_outbreak() -> None:
    params = _params()
    planet, sim = _planet(params)
    _settle(planet, (1, 1), pop=5.0)
    _settle(planet, (5, 4), pop=5.0)
    cause_plague(planet, sim, params, (1, 1), plague_kind=1)
    cause_plague(planet, sim, params, (5, 4))
    assert len(planet.events.of_type(PlagueEvent)) == 1
    assert planet.map.tile_event((5, 4), TileEventKind.PLAGUE).i == planet.map.tile_event((1, 1), TileEventKind.PLAGUE).i


def test_decadence_declines_until_cured_and_retires() -> None:
    params = _params(decadence_infectivity=0.0)
    planet, sim = _planet(params)
    s = _settle(planet, (3, 2))
    assert cause_decadence(planet, sim, params, (3, 2))
    assert planet.map.has_tile_event((3, 2), TileEventKind.DECADENCE)
    assert isinstance(planet.reports.notices[0].content, DecadenceStarted)

    sim_decadence(planet, sim, params)
    assert s.state is SettlementState.DECLINING

    s.age = CivilizationAge.INDUSTRIAL
    sim_decadence(planet, sim, params)
    assert planet.map.tile_event((3, 2), TileEventKind.DECADENCE).cured

    entry = planet.events.in_progress[0]
    assert isinstance(entry.event, DecadenceEvent)
    entry.progress = entry.duration - 1
    advance_events(planet, sim, params)
    assert not planet.events.has(DecadenceEvent)
    assert not planet.map.tile_events_of(TileEventKind.DECADENCE)


def test_decadence_needs_a_settlement() -> None:
    params = _params()
    planet, sim = _planet(params)
    assert not cause_decadence(planet, sim, params, (0, 0))
    assert not planet.events.in_progress


def test_exodus_evacuates_the_species() -> None:
    params = _params(settlement_exodus_prob=1.0, settlement_exodus_cycles=[1, 1])
    planet, sim = _planet(params)
    _settle(planet, (2, 2), age=CivilizationAge.EARLY_SPACE)
    _settle(planet, (5, 3), civ_id="cephalopod", age=CivilizationAge.STONE)
    planet.map.biome[3, 5] = 0
    start_exodus(planet, "primate")
    assert isinstance(planet.reports.notices[0].content, ExodusStarted)

    advance_events(planet, sim, params)
    assert planet.map.get_structure((2, 2)) is None
    assert planet.events.has(ExodusEvent)
    advance_events(planet, sim, params)
    assert "primate" not in planet.civs
    assert "cephalopod" in planet.civs
    assert not planet.events.has(ExodusEvent)


def test_vehicle_founds_a_settlement_on_the_next_tile() -> None:
    params = _params(vehicle_spawn_prob=1.0)
    planet, sim = _planet(params)
    _settle(planet, (3, 2))
    spawn_vehicles(planet, sim, params)
    (p, vehicle), = planet.map.tile_events_of(TileEventKind.VEHICLE)
    assert p == (3, 2)
    assert vehicle.remaining_cycles == params.event.vehicle_max_cycles

    advance_vehicles(planet, sim, params)
    q = (3 + vehicle.direction[0], 2 + vehicle.direction[1])
    new = planet.map.settlement_at(q)
    assert new is not None
    assert new.age is CivilizationAge.IRON
    assert new.pop == params.sim.settlement_init_pop[CivilizationAge.IRON]
    assert not planet.map.tile_events_of(TileEventKind.VEHICLE)


def test_stone_settlements_do_not_spawn_vehicles() -> None:
    params = _params(vehicle_spawn_prob=1.0)
    planet, sim = _planet(params)
    _settle(planet, (3, 2), age=CivilizationAge.STONE)
    spawn_vehicles(planet, sim, params)
    assert not planet.map.tile_events_of(TileEventKind.VEHICLE)


def test_fire_burns_biomass_and_expires() -> None:
    params = _params()
    planet, sim = _planet(params)
    cause_tile_event(planet, sim, params, (1, 1), TileEventKind.FIRE)
    for _ in range(params.event.fire_cycles):
        assert planet.map.has_tile_event((1, 1), TileEventKind.FIRE)
        advance_tile_events(planet, sim, params)
    assert not planet.map.has_tile_event((1, 1), TileEventKind.FIRE)
    expected = 10.0 * (1.0 - params.event.fire_burn_ratio) ** params.event.fire_cycles
    assert planet.map.biomass[1, 1] == pytest.approx(expected)
    assert planet.map.biomass[1, 2] == 10.0


def test_aerosol_injection_adds_aerosol_each_cycle() -> None:
    params = _params()
    planet, sim = _planet(params)
    cause_tile_event(planet, sim, params, (1, 1), TileEventKind.AEROSOL_INJECTION)
    advance_tile_events(planet, sim, params)
    advance_tile_events(planet, sim, params)
    assert planet.atmo.aerosol == pytest.approx(2 * params.event.aerosol_injection_amount)


def test_nuclear_explosion_destroys_structures_and_animals() -> None:
    params = _params()
    planet, sim = _planet(params)
    planet.map.set_structure((2, 2), Facility(kind=StructureKind.FACTORY))
    planet.map.set_animal((2, 2), AnimalSize.SMALL, 0, 0.5)
    cause_tile_event(planet, sim, params, (2, 2), TileEventKind.NUCLEAR_EXPLOSION)
    assert planet.map.get_structure((2, 2)) is None
    assert planet.map.animal_at((2, 2), AnimalSize.SMALL) is None
    assert planet.map.biomass[2, 2] < 10.0
    assert planet.map.has_tile_event((2, 2), TileEventKind.NUCLEAR_EXPLOSION)


def test_non_causable_event_is_rejected() -> None:
    params = _params()
    planet, sim = _planet(params)
    with pytest.raises(ValueError, match="cannot be caused"):
        cause_tile_event(planet, sim, params, (1, 1), TileEventKind.TROOP)


def test_troops_march_and_attack_enemy_settlement() -> None:
    params = _params(troop_spawn_prob=1.0)
    planet, sim = _planet(params)
    a = _settle(planet, (2, 2), civ_id="primate")
    _settle(planet, (4, 2), civ_id="cephalopod")
    a.strength = 1.0
    i = start_inter_species_war(planet, params, "primate", "cephalopod")
    assert i is not None
    event = planet.events.of_type(WarEvent)[0]
    assert event.war_kind is WarKind.INTER_SPECIES
    assert planet.events.in_progress[0].duration == params.event.inter_species_war_duration_cycles

    spawn_troops(planet, sim, params)
    troop = planet.map.tile_event((2, 2), TileEventKind.TROOP)
    assert troop is not None
    assert troop.dest == (4, 2)
    assert a.strength == pytest.approx(1.0 - troop.strength)

    advance_troops(planet, sim, params)
    assert planet.map.has_tile_event((3, 2), TileEventKind.TROOP)
    advance_troops(planet, sim, params)
    war = planet.map.tile_event((4, 2), TileEventKind.WAR)
    assert war is not None
    assert war.offence == "primate"
    assert war.i == i


def test_war_ceases_when_a_side_disappears() -> None:
    params = _params()
    planet, sim = _planet(params)
    _settle(planet, (2, 2), civ_id="primate")
    _settle(planet, (4, 2), civ_id="cephalopod")
    start_inter_species_war(planet, params, "primate", "cephalopod")
    del planet.civs["cephalopod"]
    advance_events(planet, sim, params)
    assert not planet.events.has(WarEvent)


def test_distant_civilizations_cannot_start_a_war() -> None:
    params = _params()
    planet, _ = _planet(params, w=12)
    _settle(planet, (0, 2), civ_id="primate")
    _settle(planet, (6, 2), civ_id="cephalopod")
    assert start_inter_species_war(planet, params, "primate", "cephalopod") is None


def test_combat_helpers() -> None:
    assert exec_combat_until_finish(5.0, 3.0) == pytest.approx((4.0, 0.0))
    assert exec_combat_until_finish(3.0, 5.0) == pytest.approx((0.0, 4.0))
    assert step_toward((0, 0), (7, 2), (8, 6)) == (7, 1)
    assert step_toward((3, 3), (3, 3), (8, 6)) == (3, 3)


def _space_civ(planet, tech_exp: float, total_pop: float) -> Civilization:
    s = _settle(planet, (3, 2), age=CivilizationAge.EARLY_SPACE)
    s.tech_exp = tech_exp
    civ = planet.civs["primate"]
    civ.total_pop = total_pop
    civ.civ_control.tech_development = 100
    civ.civ_control.energy_weight[EnergySource.NUCLEAR] = 100
    return civ


def test_exodus_needs_tech_and_population_thresholds() -> None:
    params = _params(base_exodus_prob=1.0)
    for tech_exp, total_pop in ((40.0, 90.0), (40.0, 200.0), (80.0, 90.0)):
        planet, sim = _planet(params)
        _space_civ(planet, tech_exp, total_pop)
        planet.cycles = params.event.exodus_check_interval
        cause_exodus(planet, sim, params)
        assert not planet.events.has(ExodusEvent)


def test_eligible_civilization_starts_an_exodus() -> None:
    params = _params(base_exodus_prob=1.0)
    planet, sim = _planet(params)
    _space_civ(planet, 60.0, 120.0)
    planet.cycles = params.event.exodus_check_interval
    cause_exodus(planet, sim, params)
    assert planet.events.has(ExodusEvent)
    assert isinstance(planet.reports.notices[0].content, ExodusStarted)


def test_exodus_is_only_checked_on_its_interval() -> None:
    params = _params(base_exodus_prob=1.0)
    planet, sim = _planet(params)
    _space_civ(planet, 60.0, 120.0)
    planet.cycles = params.event.exodus_check_interval + 1
    cause_exodus(planet, sim, params)
    assert not planet.events.has(ExodusEvent)


def test_exodus_probability_weights_and_clamp() -> None:
    params = _params(base_exodus_prob=0.5)
    planet, _ = _planet(params)
    civ = _space_civ(planet, 50.0, 100.0)
    assert exodus_probability(planet, params, "primate", 50.0, 1) == pytest.approx(0.5)
    civ.total_pop = 1000.0
    assert exodus_probability(planet, params, "primate", 100.0, 1) == 1.0
    civ.civ_control.tech_development = 50
    civ.civ_control.energy_weight[EnergySource.NUCLEAR] = 50
    civ.total_pop = 100.0
    assert exodus_probability(planet, params, "primate", 50.0, 1) == pytest.approx(0.5 * 0.25 * 0.25)
    civ.civ_control.energy_weight[EnergySource.NUCLEAR] = 40
    assert exodus_probability(planet, params, "primate", 50.0, 1) == 0.0
