import numpy as np
import pytest

import distance_matrix

MPI = pytest.importorskip("mpi4py.MPI")

from apsp_errors import CommunicationFault, ConfigurationError, ResourceExhaustion
from conftest import directed_cycle
from distributed_memory_model import (MPICollective, broadcast_matrix, create_cartesian_grid,
                                      distributed_shortest_paths)
from domain_partition import ProcessGrid
from random_graph import gen_graph
from sequential_shortest_paths import floyd_warshall


class BrokenComm:

    def Allreduce(self, *args, **kwargs):
        raise MPI.Exception(MPI.ERR_OTHER)

    def allreduce(self, *args, **kwargs):
        raise MPI.Exception(MPI.ERR_OTHER)


def test_single_process_run_matches_reference():
    l = gen_graph(15, 0.1, seed=9)
    distances, rounds = distributed_shortest_paths(l, ProcessGrid(1, 1), MPI.COMM_SELF)

    assert np.array_equal(distances, floyd_warshall(l))
    assert rounds >= 1


def test_cycle_reference_on_comm_self():
    distances, _ = distributed_shortest_paths(directed_cycle(4), ProcessGrid(1, 1), MPI.COMM_SELF)
    assert np.array_equal(distances, [[(j - i + 4) % 4 for j in range(4)] for i in range(4)])


def test_grid_mismatch_fails_before_communication():
    with pytest.raises(ConfigurationError):
        create_cartesian_grid(MPI.COMM_SELF, ProcessGrid(2, 1))


def test_cartesian_grid_coordinates():
    cart_comm, coords = create_cartesian_grid(MPI.COMM_SELF, ProcessGrid(1, 1))
    assert coords == (0, 0)
    cart_comm.Free()


def test_broadcast_matrix_single_process():
    l = np.arange(9).reshape(3, 3)
    out = broadcast_matrix(MPI.COMM_SELF, l)
    assert np.array_equal(out, l)


def test_broadcast_matrix_reports_exhaustion(monkeypatch):
    def no_memory(*args, **kwargs):
        raise MemoryError()

    l = np.zeros((5, 5), dtype=int)
    monkeypatch.setattr(distance_matrix.np, "full", no_memory)
    with pytest.raises(ResourceExhaustion, match="5x5"):
        broadcast_matrix(MPI.COMM_SELF, l)


def test_collective_min_on_comm_self():
    collective = MPICollective(MPI.COMM_SELF)
    send = np.array([[3, 1], [2, 0]], dtype=np.int32)
    recv = np.zeros_like(send)

    collective.merge_min(send, recv)
    assert np.array_equal(recv, send)
    assert collective.all_done(True) is True
    assert collective.all_done(False) is False


def test_collective_failures_become_communication_faults():
    collective = MPICollective(BrokenComm())
    buf = np.zeros((2, 2), dtype=np.int32)

    with pytest.raises(CommunicationFault):
        collective.merge_min(buf, buf.copy())
    with pytest.raises(CommunicationFault):
        collective.all_done(True)


def test_world_grids_agree():
    # Exercises real reductions when run under mpiexec -n P python -m pytest
    comm = MPI.COMM_WORLD
    size = comm.Get_size()
    l = gen_graph(13, 0.12, seed=21)
    reference = floyd_warshall(l)

    grids = [ProcessGrid(size, 1), ProcessGrid(1, size)]
    if size % 2 == 0:
        grids.append(ProcessGrid(2, size // 2))

    for grid in grids:
        distances, _ = distributed_shortest_paths(l, grid, comm)
        assert np.array_equal(distances, reference)
