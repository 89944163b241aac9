from __future__ import annotations

import struct

import pytest

from gaiaSim.planet.defs import CivilizationAge, SpaceBuildingKind, StructureKind, TileEventKind
from gaiaSim.planet.new import new_planet
from gaiaSim.planet.params import load_params
from gaiaSim.planet.report import ExodusStarted
from gaiaSim.planet.serialize import planet_digest, planet_from_bytes, planet_to_bytes
from gaiaSim.planet.sim import make_sim
from gaiaSim.planet.state import Civilization, Facility, IncreaseRate, Occupied, Settlement
from gaiaSim.planet.stepper import advance
from gaiaSim.planet.tile_event import cause_tile_event
from gaiaSim.saveload import (
    SaveDecodeError,
    SaveNotFoundError,
    decode_save,
    encode_save,
    load_planet,
    read_save_header,
    save_planet,
)

SMALL_START = {"start": {"size": [16, 8], "cycles_before_start": 2}}


def _busy_planet():
    params = load_params(SMALL_START)
    planet, sim = new_planet(params, seed=11)
    tm = planet.map
    tm.set_structure((2, 3), Settlement(id="primate", age=CivilizationAge.IRON, pop=4.5))
    planet.civs["primate"] = Civilization(most_advanced_age=CivilizationAge.IRON)
    tm.set_structure((6, 4), Facility(kind=StructureKind.GIFT_TOWER))
    tm.set_structure((7, 4), Occupied(by=(6, 4)))
    planet.space_buildings[SpaceBuildingKind.ORBITAL_MIRROR].n = 2
    planet.space_buildings[SpaceBuildingKind.ORBITAL_MIRROR].control = IncreaseRate(rate=-40)
    cause_tile_event(planet, sim, params, (10, 5), TileEventKind.FIRE)
    planet.reports.append(planet.cycles, ExodusStarted(id="primate"))
    return planet, sim, params


def test_planet_bytes_round_trip() -> None:
    planet, _, _ = _busy_planet()
    data = planet_to_bytes(planet)
    restored = planet_from_bytes(data)

    assert planet_to_bytes(restored) == data
    assert planet_digest(restored) == planet_digest(planet)
    assert restored.map.settlement_at((2, 3)) == Settlement(id="primate", age=CivilizationAge.IRON, pop=4.5)
    assert restored.map.get_structure((7, 4)) == Occupied(by=(6, 4))
    assert restored.space_buildings[SpaceBuildingKind.ORBITAL_MIRROR].control == IncreaseRate(rate=-40)
    assert restored.map.has_tile_event((10, 5), TileEventKind.FIRE)
    assert restored.map.biome.dtype == planet.map.biome.dtype


def test_restored_planet_evolves_like_the_original() -> None:
    planet, _, params = _busy_planet()
    restored = planet_from_bytes(planet_to_bytes(planet))
    sim_a = make_sim(planet, seed=5)
    sim_b = make_sim(restored, seed=5)
    for _ in range(3):
        advance(planet, sim_a, params)
        advance(restored, sim_b, params)
    assert planet_digest(planet) == planet_digest(restored)


def test_malformed_payloads_are_rejected() -> None:
    planet, _, _ = _busy_planet()
    data = planet_to_bytes(planet)

    with pytest.raises(ValueError, match="truncated"):
        planet_from_bytes(data[:2])
    with pytest.raises(ValueError, match="truncated"):
        planet_from_bytes(data[:-1])
    with pytest.raises(ValueError, match="trailing"):
        planet_from_bytes(data + b"\x00")

    header = b'{"version":99,"planet":null,"arrays":[]}'
    with pytest.raises(ValueError, match="version"):
        planet_from_bytes(struct.pack("<I", len(header)) + header)
    header = b'{"version":1,"planet":[],"arrays":[]}'
    with pytest.raises(ValueError, match="does not contain a planet"):
        planet_from_bytes(struct.pack("<I", len(header)) + header)


def test_save_and_load(tmp_path) -> None:
    planet, _, _ = _busy_planet()
    path = save_planet(tmp_path / "saves" / "a.gaia", planet, metadata={"seed": 11})

    header = read_save_header(path)
    assert header.name == planet.basics.name
    assert header.metadata == {"seed": 11}

    header, loaded = load_planet(path)
    assert planet_digest(loaded) == planet_digest(planet)


def test_saving_twice_gives_the_same_bytes() -> None:
    planet, _, _ = _busy_planet()
    a = encode_save(planet, "a", timestamp="2000-01-01T00:00:00+00:00")
    b = encode_save(planet, "a", timestamp="2000-01-01T00:00:00+00:00")
    assert a == b


def test_load_errors(tmp_path) -> None:
    with pytest.raises(SaveNotFoundError):
        load_planet(tmp_path / "missing.gaia")

    planet, _, _ = _busy_planet()
    data = encode_save(planet, "a", timestamp="t")
    with pytest.raises(SaveDecodeError, match="truncated"):
        decode_save(data[:10])
    with pytest.raises(SaveDecodeError, match="gzip"):
        decode_save(data[:-20])

    bad = struct.pack("<I", 3) + b"old" + data[struct.calcsize("<I") + len(b"gaiasim-save-1") :]
    with pytest.raises(SaveDecodeError, match="unsupported save version"):
        decode_save(bad)
