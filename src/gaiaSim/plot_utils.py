from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence

import imageio.v2 as imageio
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.colors import ListedColormap

from .planet.defs import Biome
from .planet.stat import Record
from .planet.state import Planet


DEFAULT_BG_COLOR = "#f7f3ea"
DEFAULT_LINE_COLOR = "#21b0ff"

BIOME_COLORS = {
    Biome.OCEAN: "#1f4e9c",
    Biome.SEA_ICE: "#c9e3f5",
    Biome.ROCK: "#8c8577",
    Biome.DESERT: "#e3c98d",
    Biome.ICE_FIELD: "#f4f8fb",
    Biome.TUNDRA: "#9fae95",
    Biome.GRASSLAND: "#a6c95a",
    Biome.BOREAL_FOREST: "#3f6b4a",
    Biome.TEMPERATE_FOREST: "#3c8f3a",
    Biome.TROPICAL_RAINFOREST: "#17602a",
}

LAYERS = (
    "biome",
    "height",
    "biomass",
    "fertility",
    "temp",
    "sea_temp",
    "rainfall",
    "vapor",
    "ice",
    "buried_carbon",
)

HISTORY_KEYS = (
    "average_air_temp",
    "average_sea_temp",
    "average_rainfall",
    "average_fertility",
    "sum_biomass",
    "sea_level",
    "n_settlements",
)


def plot_history(
    records: Sequence[Record],
    keys: Iterable[str] = ("average_air_temp", "sum_biomass"),
    title: str = "",
    *,
    line_color: str = DEFAULT_LINE_COLOR,
    background_color: str = DEFAULT_BG_COLOR,
    show: bool = True,
) -> list[plt.Axes]:
    """Plot one panel per statistic against the cycle counter.

    Keys may name a `Record` field or a nested entry with a dot, e.g.
    ``partial_pressure.oxygen`` or ``pop.cat``.
    """
    keys = list(keys)
    if not keys:
        raise ValueError("keys must not be empty")
    cycles = np.array([r.cycles for r in records])
    fig, axes = plt.subplots(nrows=len(keys), ncols=1, figsize=(8, 2.4 * len(keys)), sharex=True, squeeze=False)
    axes = list(axes[:, 0])
    for ax, key in zip(axes, keys):
        values = np.array([_record_value(r, key) for r in records], dtype=np.float64)
        ax.set_facecolor(background_color)
        ax.plot(cycles, values, color=line_color)
        ax.set_ylabel(key)
    axes[-1].set_xlabel("cycle")
    if title:
        axes[0].set_title(title)
    fig.tight_layout()
    if show:
        plt.show()
    return axes


def plot_layer(
    planet: Planet,
    layer: str = "biome",
    title: str = "",
    *,
    cmap: Optional[str] = None,
    ax: Optional[plt.Axes] = None,
    show: bool = True,
) -> plt.Axes:
    """Show one map layer of ``planet`` with north at the top."""
    if layer not in LAYERS:
        raise ValueError(f"layer must be one of {', '.join(LAYERS)}")
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 5))
    data = getattr(planet.map, layer)
    if layer == "biome":
        im = ax.imshow(data, cmap=_biome_cmap(), vmin=-0.5, vmax=len(Biome) - 0.5, origin="lower", interpolation="nearest")
    else:
        im = ax.imshow(data, cmap=cmap or "viridis", origin="lower", interpolation="nearest")
        plt.colorbar(im, ax=ax, fraction=0.025)
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_title(title or f"{layer} (cycle {planet.cycles})")
    if show:
        plt.show()
    return ax


def make_biome_gif(
    frames: Sequence[np.ndarray],
    path: str | Path,
    *,
    duration_ms: int = 100,
    cell_size: int = 4,
    loop: int = 0,
) -> Path:
    """Write a time-lapse GIF of biome maps (one ``(H, W)`` array per frame)."""
    if not frames:
        raise ValueError("frames must not be empty")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    images = [_biome_to_rgb(f, cell_size=cell_size) for f in frames]
    imageio.mimsave(str(path), images, duration=duration_ms / 1000.0, loop=loop)
    return path


def _record_value(record: Record, key: str) -> float:
    head, _, tail = key.partition(".")
    value = getattr(record, head)
    if tail:
        value = value.get(tail, 0.0)
    return float(value)


def _biome_cmap() -> ListedColormap:
    return ListedColormap([BIOME_COLORS[b] for b in Biome])


def _hex_to_rgb(color: str) -> np.ndarray:
    color = color.lstrip("#")
    return np.array([int(color[i : i + 2], 16) for i in (0, 2, 4)], dtype=np.uint8)


def _biome_to_rgb(biome: np.ndarray, *, cell_size: int) -> np.ndarray:
    palette = np.stack([_hex_to_rgb(BIOME_COLORS[b]) for b in Biome])
    rgb = palette[np.asarray(biome, dtype=np.int64)]
    # Row 0 is the south pole; flip so north is at the top of the image.
    rgb = rgb[::-1]
    if cell_size > 1:
        rgb = np.repeat(np.repeat(rgb, cell_size, axis=0), cell_size, axis=1)
    return rgb
