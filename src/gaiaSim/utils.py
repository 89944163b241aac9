"""Shared numerical and grid helpers for the planet simulation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Sequence, Tuple

import numpy as np

Coords = Tuple[int, int]

FOUR_NEIGHBORS: tuple[Coords, ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))

CHEBYSHEV_DISTANCE_1_COORDS: tuple[Coords, ...] = tuple(
    (dx, dy)
    for dy in (-1, 0, 1)
    for dx in (-1, 0, 1)
    if (dx, dy) != (0, 0)
)

CHEBYSHEV_DISTANCE_2_COORDS: tuple[Coords, ...] = tuple(
    (dx, dy)
    for dy in range(-2, 3)
    for dx in range(-2, 3)
    if max(abs(dx), abs(dy)) == 2
)


@dataclass(frozen=True)
class InterpTable:
    """Piecewise-linear lookup table.

    Values below the first point or above the last one are clamped to the
    corresponding end value.
    """

    xs: np.ndarray
    ys: np.ndarray

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]], *, key: str = "table") -> "InterpTable":
        arr = np.asarray(points, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] != 2 or arr.shape[0] < 1:
            raise ValueError(f"{key} must be a non-empty list of [x, y] pairs")
        if arr.shape[0] > 1 and np.any(np.diff(arr[:, 0]) <= 0.0):
            raise ValueError(f"{key} x values must be strictly increasing")
        return cls(xs=arr[:, 0].copy(), ys=arr[:, 1].copy())

    def __call__(self, x):
        if np.isscalar(x):
            return linear_interpolation(self, float(x))
        return np.interp(np.asarray(x, dtype=np.float64), self.xs, self.ys)

    def to_points(self) -> list[list[float]]:
        return [[float(a), float(b)] for a, b in zip(self.xs, self.ys)]


def linear_interpolation(table: InterpTable, x: float) -> float:
    """Evaluate ``table`` at ``x`` with end-point clamping."""
    xs = table.xs
    ys = table.ys
    if x <= xs[0]:
        return float(ys[0])
    if x >= xs[-1]:
        return float(ys[-1])
    i = int(np.searchsorted(xs, x, side="right"))
    x0, x1 = xs[i - 1], xs[i]
    y0, y1 = ys[i - 1], ys[i]
    return float(y0 + (y1 - y0) * (x - x0) / (x1 - x0))


def bisection(
    f: Callable[[float], float],
    a: float,
    b: float,
    n_max: int,
    target_diff: float,
) -> float:
    """Approximate a root of ``f`` in ``[a, b]`` with a fixed iteration budget.

    Stops early when ``|f(c)| < target_diff``. The residual error is accepted
    rather than reported.
    """
    c = 0.5 * (a + b)
    for _ in range(int(n_max)):
        c = 0.5 * (a + b)
        y = f(c)
        if abs(y) < target_diff:
            break
        if y < 0.0:
            a = c
        else:
            b = c
    return c


def livability_trapezoid(lo: float, hi: float, margin: float, x):
    """1 inside ``[lo, hi]``, falling linearly to 0 over ``margin`` outside."""
    x = np.asarray(x, dtype=np.float64)
    if margin <= 0.0:
        out = ((x >= lo) & (x <= hi)).astype(np.float64)
    else:
        rise = (x - (lo - margin)) / margin
        fall = ((hi + margin) - x) / margin
        out = np.clip(np.minimum(rise, fall), 0.0, 1.0)
    if out.ndim == 0:
        return float(out)
    return out


def convert_p_cyclic(p: Coords, size: Coords) -> Coords | None:
    """Wrap ``p`` in X; return None when it falls off the map in Y."""
    w, h = size
    x, y = p
    if y < 0 or y >= h:
        return None
    return (x % w, y)


def neighbor_view(arr: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """Array whose ``[y, x]`` holds ``arr[y + dy, x + dx]``.

    X wraps around; rows past the top or bottom edge repeat the edge row so
    that differences across the edge are zero.
    """
    out = np.roll(arr, -dx, axis=-1) if dx else arr
    if dy == 0:
        return out
    if dy > 0:
        return np.concatenate([out[..., dy:, :], np.repeat(out[..., -1:, :], dy, axis=-2)], axis=-2)
    return np.concatenate([np.repeat(out[..., :1, :], -dy, axis=-2), out[..., :dy, :]], axis=-2)


def neighbor_laplacian(arr: np.ndarray) -> np.ndarray:
    """Sum over the four neighbours of ``neighbor - center``."""
    total = np.zeros_like(arr, dtype=np.float64)
    for dx, dy in FOUR_NEIGHBORS:
        total += neighbor_view(arr, dx, dy) - arr
    return total


def congestion_rate(mask: np.ndarray) -> np.ndarray:
    """Fraction of occupied tiles within Chebyshev distance 2 of each tile."""
    h, w = mask.shape
    occ = mask.astype(np.float64)
    count = np.zeros((h, w), dtype=np.float64)
    n_valid = np.zeros((h, w), dtype=np.float64)
    rows = np.arange(h)
    for dy in range(-2, 3):
        valid_row = ((rows + dy) >= 0) & ((rows + dy) < h)
        shifted = np.zeros((h, w), dtype=np.float64)
        src = np.clip(rows + dy, 0, h - 1)
        shifted[valid_row] = occ[src[valid_row]]
        for dx in range(-2, 3):
            if dx == 0 and dy == 0:
                continue
            count += np.roll(shifted, -dx, axis=1)
            n_valid += valid_row[:, None]
    return np.divide(count, n_valid, out=np.zeros_like(count), where=n_valid > 0)


def tile_congestion_rate(occupied: Callable[[Coords], bool], p: Coords, size: Coords) -> float:
    n = 0
    total = 0
    for d in CHEBYSHEV_DISTANCE_1_COORDS + CHEBYSHEV_DISTANCE_2_COORDS:
        q = convert_p_cyclic((p[0] + d[0], p[1] + d[1]), size)
        if q is None:
            continue
        total += 1
        if occupied(q):
            n += 1
    return n / total if total else 0.0


def iter_spiral(p: Coords, size: Coords, max_radius: int) -> Iterator[Coords]:
    """Yield tiles around ``p`` ring by ring, starting with ``p`` itself."""
    yield p
    for r in range(1, max_radius + 1):
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                if max(abs(dx), abs(dy)) != r:
                    continue
                q = convert_p_cyclic((p[0] + dx, p[1] + dy), size)
                if q is not None:
                    yield q


def weighted_index(rng: np.random.Generator, weights: Sequence[float]) -> int:
    w = np.asarray(weights, dtype=np.float64)
    total = float(w.sum())
    if total <= 0.0:
        raise ValueError("weights must have a positive sum")
    r = float(rng.random()) * total
    acc = 0.0
    for i, x in enumerate(w.tolist()):
        acc += x
        if r < acc:
            return i
    return int(np.flatnonzero(w > 0)[-1])


__all__ = [
    "CHEBYSHEV_DISTANCE_1_COORDS",
    "CHEBYSHEV_DISTANCE_2_COORDS",
    "Coords",
    "FOUR_NEIGHBORS",
    "InterpTable",
    "bisection",
    "congestion_rate",
    "convert_p_cyclic",
    "iter_spiral",
    "linear_interpolation",
    "livability_trapezoid",
    "neighbor_laplacian",
    "neighbor_view",
    "tile_congestion_rate",
    "weighted_index",
]
