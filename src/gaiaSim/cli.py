from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import matplotlib.pyplot as plt
from tqdm import tqdm

from .planet.action import SPAWNED_ANIMAL_N
from .planet.civ import habitat_match
from .planet.new import new_planet
from .planet.params import Params, load_params, load_params_json
from .planet.sim import Sim
from .planet.state import Planet
from .planet.stepper import advance
from .plot_utils import HISTORY_KEYS, LAYERS, make_biome_gif, plot_history, plot_layer
from .saveload import load_planet, save_planet

logger = logging.getLogger(__name__)


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--log_level", type=str, default="WARNING", help="Logging level (DEBUG, INFO, ...)")


def _add_planet_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, default=None, help="JSON file merged over the default parameters")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--name", type=str, default="planet")
    parser.add_argument("--cycles", type=int, default=100)
    parser.add_argument(
        "--spawn",
        type=str,
        action="append",
        default=[],
        help="Animal id to place on the map before running (repeatable)",
    )
    parser.add_argument("--spawn_tiles", type=int, default=5, help="Tiles per spawned species")
    parser.add_argument(
        "--progress",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Show a progress bar",
    )


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING), format="%(levelname)s %(name)s: %(message)s")


def _load_params(config: Optional[str]) -> Params:
    return load_params() if config is None else load_params_json(config)


def spawn_animals(planet: Planet, sim: Sim, params: Params, animal_id: str, n_tiles: int) -> List[tuple[int, int]]:
    """Place ``animal_id`` on up to ``n_tiles`` random habitable free tiles."""
    attr = params.animal(animal_id)
    idx = params.animal_index(animal_id)
    tm = planet.map
    candidates = [
        p
        for p in tm.iter_coords()
        if tm.animal_at(p, attr.size) is None and habitat_match(tm, attr, p)
    ]
    if not candidates:
        logger.warning("no habitable tile for %s", animal_id)
        return []
    n = min(n_tiles, len(candidates))
    picked = sim.rng.choice(len(candidates), size=n, replace=False)
    placed = []
    for i in sorted(int(v) for v in picked):
        p = candidates[i]
        tm.set_animal(p, attr.size, idx, SPAWNED_ANIMAL_N)
        placed.append(p)
    logger.info("spawned %s on %d tiles", animal_id, len(placed))
    return placed


def _prepare(args: argparse.Namespace) -> tuple[Planet, Sim, Params]:
    params = _load_params(args.config)
    planet, sim = new_planet(params, name=args.name, seed=args.seed, progress=args.progress)
    for animal_id in args.spawn:
        spawn_animals(planet, sim, params, animal_id, args.spawn_tiles)
    return planet, sim, params


def summary_lines(planet: Planet) -> List[str]:
    stat = planet.stat
    lines = [
        f"planet:            {planet.basics.name}",
        f"cycle:             {planet.cycles}",
        f"air temperature:   {stat.average_air_temp - 273.15:.2f} C",
        f"sea level:         {planet.water.sea_level:.1f} m",
        f"total biomass:     {stat.sum_biomass:.4g} Mt",
        f"atmosphere:        {planet.atmo.atm():.3f} atm",
    ]
    for civ_id, civ in sorted(planet.civs.items()):
        lines.append(
            f"civilization {civ_id}: pop={civ.total_pop:.1f} settlements={civ.n_settlements()} age={civ.most_advanced_age.name}"
        )
    for report in planet.reports:
        lines.append(f"[{report.cycles}] {type(report.content).__name__}")
    return lines


def main_run(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Create a planet and advance it")
    _add_planet_args(parser)
    _add_common_args(parser)
    parser.add_argument("--save", type=str, default=None, help="Write the planet container here")
    parser.add_argument("--history_json", type=str, default=None, help="Write the statistics history here")
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    planet, sim, params = _prepare(args)
    for _ in tqdm(range(args.cycles), desc="cycles", disable=not args.progress):
        advance(planet, sim, params)

    print("\n".join(summary_lines(planet)))
    if args.save:
        save_planet(args.save, planet, metadata={"seed": args.seed, "cycles": planet.cycles})
    if args.history_json:
        planet.stat.save_json(args.history_json)


def main_plot(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Plot the history and a map layer of a saved planet")
    parser.add_argument("save", type=str, help="Saved planet container")
    parser.add_argument("--layer", type=str, default="biome", choices=LAYERS)
    parser.add_argument("--keys", type=str, nargs="+", default=list(HISTORY_KEYS[:2]))
    parser.add_argument("--out_dir", type=str, default=None, help="Save PNGs here instead of showing them")
    _add_common_args(parser)
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    header, planet = load_planet(args.save)
    show = args.out_dir is None
    axes = plot_history(planet.stat.history(), args.keys, title=header.name, show=show)
    ax = plot_layer(planet, args.layer, show=show)
    if args.out_dir is not None:
        out_dir = Path(args.out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        axes[0].figure.savefig(out_dir / "history.png", dpi=150)
        ax.figure.savefig(out_dir / f"{args.layer}.png", dpi=150)
        plt.close("all")
        print(f"Saved figures to {out_dir}")


def main_gif(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run a planet and write a biome time-lapse GIF")
    _add_planet_args(parser)
    _add_common_args(parser)
    parser.add_argument("--every", type=int, default=10, help="Cycles between frames")
    parser.add_argument("--out", type=str, default="Figs/biome.gif")
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    if args.every < 1:
        parser.error("--every must be >= 1")

    planet, sim, params = _prepare(args)
    frames = [planet.map.biome.copy()]
    for i in tqdm(range(1, args.cycles + 1), desc="cycles", disable=not args.progress):
        advance(planet, sim, params)
        if i % args.every == 0:
            frames.append(planet.map.biome.copy())

    output_path = make_biome_gif(frames, args.out)
    print(f"Saved GIF to {output_path}")
