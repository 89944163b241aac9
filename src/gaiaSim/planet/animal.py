"""Animal populations: logistic growth, fission and random walk."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import numpy as np

from ..utils import CHEBYSHEV_DISTANCE_1_COORDS, Coords, convert_p_cyclic, livability_trapezoid, tile_congestion_rate
from .defs import SEA_BIOMES, AnimalHabitat, AnimalSize

if TYPE_CHECKING:
    from .params import AnimalAttr, Params
    from .sim import Sim
    from .state import Planet


def habitat_mask(planet: Planet, attr: AnimalAttr) -> np.ndarray:
    sea = np.isin(planet.map.biome, SEA_BIOMES)
    return sea if attr.habitat is AnimalHabitat.SEA else ~sea


def capacity(planet: Planet, params: Params, attr: AnimalAttr) -> np.ndarray:
    """Carrying capacity of every tile for one species, in ``[0, 1]``."""
    tm = planet.map
    sp = params.sim
    if attr.habitat is AnimalHabitat.SEA:
        saturation = np.clip(tm.fertility / sp.animal_cap_max_fertility, 0.0, 1.0)
    else:
        saturation = np.clip(tm.biomass / sp.animal_cap_max_biomass, 0.0, 1.0)
    livability = livability_trapezoid(attr.temp[0], attr.temp[1], sp.animal_temp_margin, tm.temp)
    return habitat_mask(planet, attr) * saturation * livability


def growth_step(n: float, cap: float, speed: float, max_dn: float) -> float:
    """Logistic step toward ``cap``, clamped to ``max_dn`` and capped at 1."""
    if cap <= 0.0:
        dn = -max_dn
    else:
        ratio = n / cap
        dn = float(np.clip(speed * ratio * (1.0 - ratio), -max_dn, max_dn))
    return min(n + dn, 1.0)


def sim_animal(planet: Planet, sim: Sim, params: Params) -> None:
    sp = params.sim
    if planet.cycles % sp.animal_sim_interval != 0:
        return
    tm = planet.map
    rng = sim.rng
    size_xy = tm.size
    caps: List[np.ndarray] = [capacity(planet, params, attr) for attr in params.animals]
    civilize: List[str] = []

    for size in AnimalSize:
        occupied = tm.animal[size]
        processed = np.zeros(occupied.shape, dtype=bool)
        speed = sp.animal_growth_speed[size]
        for p in tm.iter_coords():
            x, y = p
            idx = int(occupied[y, x])
            if idx < 0 or processed[y, x]:
                continue
            processed[y, x] = True
            attr = params.animals[idx]
            cap = float(caps[idx][y, x])
            n = growth_step(float(tm.animal_n[size, y, x]), cap, speed, sp.animal_max_dn)
            if n < sp.animal_extinction_threshold:
                tm.clear_animal(p, size)
                continue
            tm.animal_n[size, y, x] = n

            cr = tile_congestion_rate(lambda q: occupied[q[1], q[0]] >= 0, p, size_xy)
            if n > sp.animal_fission_threshold and cr < sp.animal_fission_cr_limit:
                if rng.random() < sp.animal_fission_prob:
                    q = _random_neighbor(rng, p, size_xy)
                    if q is not None and occupied[q[1], q[0]] < 0 and caps[idx][q[1], q[0]] > 0.0:
                        tm.set_animal(q, size, idx, sp.animal_fission_n)
                        processed[q[1], q[0]] = True

            if rng.random() < sp.animal_move_weight:
                q = _random_neighbor(rng, p, size_xy)
                if q is not None and occupied[q[1], q[0]] < 0:
                    accept = float(np.clip(caps[idx][q[1], q[0]] / (cap + 0.001), 0.0, 1.0))
                    if rng.random() < accept:
                        tm.clear_animal(p, size)
                        tm.set_animal(q, size, idx, n)
                        processed[q[1], q[0]] = True

            if (
                attr.civ is not None
                and n >= sp.n_animal_to_civilize
                and attr.id not in planet.civs
                and attr.id not in civilize
                and rng.random() < sp.base_civilize_prob * attr.civ.civ_prob
            ):
                civilize.append(attr.id)

    if civilize:
        from .civ import civilize_animal

        for animal_id in civilize:
            civilize_animal(planet, sim, params, animal_id)


def _random_neighbor(rng: np.random.Generator, p: Coords, size: Coords) -> Coords | None:
    d = CHEBYSHEV_DISTANCE_1_COORDS[int(rng.integers(0, len(CHEBYSHEV_DISTANCE_1_COORDS)))]
    return convert_p_cyclic((p[0] + d[0], p[1] + d[1]), size)


__all__ = ["capacity", "growth_step", "habitat_mask", "sim_animal"]
