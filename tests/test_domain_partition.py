import numpy as np
import pytest

from apsp_errors import ConfigurationError
from domain_partition import ProcessGrid, Region, partition


def test_partition_gives_remainder_to_low_indices():
    assert [partition(10, 3, k) for k in range(3)] == [(0, 4), (4, 3), (7, 3)]
    assert [partition(8, 4, k) for k in range(4)] == [(0, 2), (2, 2), (4, 2), (6, 2)]


def test_partition_more_processes_than_indices():
    assert [partition(2, 3, k) for k in range(3)] == [(0, 1), (1, 1), (2, 0)]


@pytest.mark.parametrize("n", [0, 1, 7, 13, 100])
@pytest.mark.parametrize("procs", [1, 2, 3, 5, 8])
def test_partition_blocks_are_contiguous_and_complete(n, procs):
    blocks = [partition(n, procs, k) for k in range(procs)]

    offset = 0
    for start, count in blocks:
        assert start == offset
        assert count in (n // procs, n // procs + 1)
        offset += count
    assert offset == n


@pytest.mark.parametrize("axis_procs, axis_index, n", [(0, 0, 4), (-1, 0, 4), (2, 2, 4), (2, -1, 4), (2, 0, -1)])
def test_partition_rejects_bad_configuration(axis_procs, axis_index, n):
    with pytest.raises(ConfigurationError):
        partition(n, axis_procs, axis_index)


@pytest.mark.parametrize("n", [1, 5, 12, 17])
@pytest.mark.parametrize("npx, npy", [(1, 1), (2, 2), (1, 4), (3, 1), (3, 2), (4, 5)])
def test_regions_cover_matrix_exactly_once(n, npx, npy):
    grid = ProcessGrid(npx, npy)
    owners = np.zeros((n, n), dtype=int)

    for region in grid.regions(n):
        owners[region.rows, region.cols] += 1

    assert (owners == 1).all()


def test_region_axes_sum_to_n():
    n = 11
    grid = ProcessGrid(3, 4)
    assert sum(grid.region(n, (i, 0)).imax - grid.region(n, (i, 0)).imin for i in range(3)) == n
    assert sum(grid.region(n, (0, j)).jmax - grid.region(n, (0, j)).jmin for j in range(4)) == n


def test_region_helpers():
    region = Region(2, 5, 1, 3)
    assert region.rows == slice(2, 5)
    assert region.cols == slice(1, 3)
    assert region.size == 6
    assert not region.is_empty()
    assert Region(2, 2, 0, 3).is_empty()


def test_grid_coords_are_row_major():
    grid = ProcessGrid(2, 3)
    assert [grid.coords(rank) for rank in range(6)] == [
        (0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]
    with pytest.raises(ConfigurationError):
        grid.coords(6)


def test_grid_region_for_coordinates():
    grid = ProcessGrid(2, 3)
    assert grid.region(7, (1, 2)) == Region(4, 7, 5, 7)


def test_grid_validate_against_launched_processes():
    grid = ProcessGrid(2, 2)
    grid.validate(4)
    with pytest.raises(ConfigurationError, match="4 procs requested"):
        grid.validate(3)


@pytest.mark.parametrize("npx, npy", [(0, 1), (1, -2), (None, 1), (1.5, 2), (True, 1)])
def test_grid_rejects_bad_shape(npx, npy):
    with pytest.raises(ConfigurationError):
        ProcessGrid(npx, npy)


def test_grid_equality():
    assert ProcessGrid(2, 3) == ProcessGrid(2, 3)
    assert ProcessGrid(2, 3) != ProcessGrid(3, 2)
    assert ProcessGrid(2, 3).dims == [2, 3]
    assert ProcessGrid(2, 3).size == 6
