from __future__ import annotations

import numpy as np
import pytest

from gaiaSim.utils import (
    InterpTable,
    bisection,
    congestion_rate,
    convert_p_cyclic,
    iter_spiral,
    livability_trapezoid,
    neighbor_laplacian,
    neighbor_view,
    tile_congestion_rate,
    weighted_index,
)


def test_convert_p_cyclic_wraps_x_only() -> None:
    size = (8, 4)
    assert convert_p_cyclic((-1, 0), size) == (7, 0)
    assert convert_p_cyclic((8, 3), size) == (0, 3)
    assert convert_p_cyclic((3, -1), size) is None
    assert convert_p_cyclic((3, 4), size) is None


def test_interp_table_clamps_and_interpolates() -> None:
    table = InterpTable.from_points([[0.0, 0.0], [10.0, 1.0]])
    assert table(-5.0) == 0.0
    assert table(5.0) == pytest.approx(0.5)
    assert table(20.0) == 1.0
    np.testing.assert_allclose(table(np.array([2.5, 7.5])), [0.25, 0.75])
    assert table.to_points() == [[0.0, 0.0], [10.0, 1.0]]


def test_interp_table_rejects_bad_shape() -> None:
    with pytest.raises(ValueError, match="pairs"):
        InterpTable.from_points([1.0, 2.0])


def test_bisection_finds_root_within_budget() -> None:
    root = bisection(lambda x: x * x - 2.0, 0.0, 2.0, 60, 1e-12)
    assert root == pytest.approx(np.sqrt(2.0), abs=1e-9)


def test_bisection_stops_at_budget() -> None:
    calls = []

    def f(x: float) -> float:
        calls.append(x)
        return x - 0.3

    bisection(f, 0.0, 1.0, 3, 1e-12)
    assert len(calls) == 3


def test_livability_trapezoid() -> None:
    assert livability_trapezoid(10.0, 20.0, 5.0, 15.0) == 1.0
    assert livability_trapezoid(10.0, 20.0, 5.0, 7.5) == pytest.approx(0.5)
    assert livability_trapezoid(10.0, 20.0, 5.0, 30.0) == 0.0
    np.testing.assert_allclose(livability_trapezoid(10.0, 20.0, 0.0, np.array([9.0, 10.0, 21.0])), [0.0, 1.0, 0.0])


def test_neighbor_view_wraps_x_and_clamps_y() -> None:
    arr = np.arange(12, dtype=np.float64).reshape(3, 4)
    east = neighbor_view(arr, 1, 0)
    assert east[0, 3] == arr[0, 0]
    north = neighbor_view(arr, 0, 1)
    np.testing.assert_array_equal(north[0], arr[1])
    np.testing.assert_array_equal(north[2], arr[2])
    south = neighbor_view(arr, 0, -1)
    np.testing.assert_array_equal(south[0], arr[0])


def test_laplacian_of_constant_is_zero() -> None:
    np.testing.assert_allclose(neighbor_laplacian(np.full((4, 5), 3.0)), 0.0)


def test_congestion_rate_matches_tile_version() -> None:
    mask = np.zeros((5, 6), dtype=bool)
    mask[2, 3] = True
    mask[0, 0] = True
    grid = congestion_rate(mask)
    size = (6, 5)
    for y in range(5):
        for x in range(6):
            expected = tile_congestion_rate(lambda q: bool(mask[q[1], q[0]]), (x, y), size)
            assert grid[y, x] == pytest.approx(expected)


def test_iter_spiral_starts_at_center_and_skips_off_map() -> None:
    tiles = list(iter_spiral((0, 0), (10, 10), 1))
    assert tiles[0] == (0, 0)
    assert len(tiles) == 6
    assert (9, 1) in tiles
    assert len(set(tiles)) == len(tiles)


def test_weighted_index() -> None:
    rng = np.random.default_rng(0)
    picks = [weighted_index(rng, [0.0, 1.0, 0.0]) for _ in range(20)]
    assert set(picks) == {1}
    with pytest.raises(ValueError):
        weighted_index(rng, [0.0, 0.0])
