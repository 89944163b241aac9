"""Planet creation: terrain, water calibration, initial conditions and warm-up."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from tqdm import tqdm

from ..utils import bisection, convert_p_cyclic
from .atmo import Atmosphere
from .defs import SEA_BIOMES, Biome
from .params import Params, Snowball, StartParams
from .sim import Sim, make_sim
from .stat import record_stats
from .state import Planet, make_planet
from .stepper import advance
from .water import update_sea_level

logger = logging.getLogger(__name__)

SEA_LEVEL_CALIBRATION_ITERATIONS = 20


def spectral_noise(rng: np.random.Generator, size: tuple[int, int], octaves: int, persistence: float) -> np.ndarray:
    """Random field in ``[0, 1]`` that wraps in X but not in Y.

    The spectrum is filled with Gaussian noise whose amplitude falls by
    ``persistence`` per octave of wavenumber. The field is synthesized on a
    grid twice as tall and cropped so that the poles do not connect.
    """
    w, h = size
    ky = np.fft.fftfreq(2 * h) * (2 * h)
    kx = np.fft.rfftfreq(w) * w
    k = np.hypot(ky[:, None], kx[None, :])
    amp = np.zeros_like(k)
    band = (k >= 1.0) & (k <= 2.0 ** octaves)
    amp[band] = persistence ** np.log2(k[band])
    spectrum = amp * (rng.normal(size=k.shape) + 1j * rng.normal(size=k.shape))
    field = np.fft.irfft2(spectrum, s=(2 * h, w))[:h]
    lo = float(field.min())
    hi = float(field.max())
    if hi - lo <= 0.0:
        return np.zeros((h, w), dtype=np.float64)
    return (field - lo) / (hi - lo)


def generate_height_map(start: StartParams, rng: np.random.Generator) -> np.ndarray:
    if start.height_map is not None:
        return np.array(start.height_map, dtype=np.float64)
    h = spectral_noise(rng, start.size, start.noise_octaves, start.noise_persistence)
    if start.height_table is not None:
        h = start.height_table(h)
    return h * start.difference_in_elevation


def locate_initial_buried_carbon(planet: Planet, start: StartParams, rng: np.random.Generator) -> None:
    conf = start.initial_buried_carbon
    size = planet.size
    n_spot = int(rng.integers(conf.n_spot[0], conf.n_spot[1] + 1))
    for _ in range(n_spot):
        mass = 10.0 ** rng.uniform(np.log10(conf.mass[0]), np.log10(conf.mass[1]))
        radius = int(rng.integers(conf.radius[0], conf.radius[1] + 1))
        center = (int(rng.integers(0, size[0])), int(rng.integers(0, size[1])))
        tiles = []
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                if dx * dx + dy * dy > radius * radius:
                    continue
                q = convert_p_cyclic((center[0] + dx, center[1] + dy), size)
                if q is not None:
                    tiles.append(q)
        for x, y in tiles:
            planet.map.buried_carbon[y, x] += mass / len(tiles)


def calibrate_water_volume(planet: Planet, sim: Sim, params: Params, start: StartParams) -> None:
    """Bisect the water volume that gives the requested sea level or sea area."""
    if start.target_sea_level is not None:
        target = start.target_sea_level * start.difference_in_elevation
        target_diff = 50.0
    else:
        target = start.target_sea_area
        target_diff = 0.02

    def residual(volume: float) -> float:
        planet.water.water_volume = volume
        update_sea_level(planet, sim, params)
        if start.target_sea_level is not None:
            return planet.water.sea_level - target
        return float(np.isin(planet.map.biome, SEA_BIOMES).mean()) - target

    upper = max(start.water_volume * 10.0, start.difference_in_elevation * sim.tile_area * sim.n_tiles)
    volume = bisection(residual, 0.0, upper, SEA_LEVEL_CALIBRATION_ITERATIONS, target_diff)
    planet.water.water_volume = volume
    update_sea_level(planet, sim, params)
    logger.info("water volume calibrated to %.4g m^3 (sea level %.1f m)", volume, planet.water.sea_level)


def apply_initial_condition(planet: Planet, condition: Snowball) -> None:
    tm = planet.map
    sea = np.isin(tm.biome, SEA_BIOMES)
    tm.biome[~sea] = int(Biome.ICE_FIELD)
    tm.biome[sea] = int(Biome.SEA_ICE)
    tm.sea_temp[sea] = condition.temp
    tm.ice[...] = condition.thickness
    tm.temp[...] = condition.temp
    tm.vapor[...] = 0.0


def new_planet(
    params: Params,
    start: Optional[StartParams] = None,
    *,
    name: str = "planet",
    seed: Optional[int] = None,
    progress: bool = False,
) -> tuple[Planet, Sim]:
    """Create a planet from ``start`` and run the warm-up cycles.

    Half of ``cycles_before_start`` run without water so that the land
    settles first; the rest run with the full water volume. Afterwards the
    cycle counter and statistics history are cleared and the resource
    stocks are restored to their start values.

    Returns the planet and the simulation state whose random stream was used
    to build it.
    """
    start = params.start if start is None else start
    w, h = start.size
    rng = np.random.default_rng(seed)
    atmo = Atmosphere.from_atm(start.atmo, params.sim.total_mass_per_atm)
    planet = make_planet(
        name=name,
        width=w,
        height=h,
        radius=start.radius,
        solar_constant=start.solar_constant,
        geothermal_power=start.geothermal_power,
        atmo=atmo,
        water_volume=start.water_volume,
        temp=start.initial_temp,
    )
    sim = make_sim(planet, rng=rng)

    planet.map.height[...] = generate_height_map(start, rng)
    for kind, n in start.space_buildings.items():
        planet.space_buildings[kind].n = n
    locate_initial_buried_carbon(planet, start, rng)

    if start.target_sea_level is not None or start.target_sea_area is not None:
        calibrate_water_volume(planet, sim, params, start)

    advance(planet, sim, params)
    for condition in start.initial_conditions:
        apply_initial_condition(planet, condition)

    sim.before_start = True
    water_volume = planet.water.water_volume
    n_dry = start.cycles_before_start // 2
    planet.water.water_volume = 0.0
    for i in tqdm(range(start.cycles_before_start), desc="warm-up", disable=not progress):
        if i == n_dry:
            planet.water.water_volume = water_volume
        advance(planet, sim, params)
    planet.water.water_volume = water_volume
    sim.before_start = False

    planet.cycles = 0
    planet.stat.clear_history()
    planet.res.material = start.material
    planet.res.gene_point = start.gene_point
    planet.reports.notices.clear()
    record_stats(planet, params)
    logger.info("created planet %r of size %dx%d", name, w, h)
    return planet, sim


__all__ = [
    "apply_initial_condition",
    "calibrate_water_volume",
    "generate_height_map",
    "locate_initial_buried_carbon",
    "new_planet",
    "spectral_noise",
]
