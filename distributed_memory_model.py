from mpi4py import MPI

from apsp_errors import CommunicationFault
from convergence_protocol import Collective, ShortestPaths
from distance_matrix import allocate


class MPICollective(Collective):
    """
    Collective reductions over an MPI communicator.
    Any MPI failure is fatal to the whole run and surfaces as CommunicationFault.
    """

    def __init__(self, comm):
        self.comm = comm

    def merge_min(self, sendbuf, recvbuf):
        try:
            self.comm.Allreduce([sendbuf, MPI.INT], [recvbuf, MPI.INT], op=MPI.MIN)
        except MPI.Exception as exc:
            raise CommunicationFault(f"Allreduce(MIN) of distance matrix failed: {exc}") from exc

    def all_done(self, done):
        try:
            return bool(self.comm.allreduce(int(done), op=MPI.MIN))
        except MPI.Exception as exc:
            raise CommunicationFault(f"Allreduce(MIN) of done flags failed: {exc}") from exc


def create_cartesian_grid(comm, grid):
    """
    Arrange the processes of comm as grid.
    Checks the grid against comm's size before any communication, so a bad
    shape fails on every rank instead of leaving some blocked.
    Returns: (cart_comm, coords of this rank)
    """
    grid.validate(comm.Get_size())

    cart_comm = comm.Create_cart(dims=grid.dims, periods=[False, False], reorder=True)
    coords = cart_comm.Get_coords(cart_comm.Get_rank())
    return cart_comm, tuple(coords)


def broadcast_matrix(comm, l, root=0):
    """
    Broadcast an n x n matrix from root to every process.
    l: matrix at root, ignored elsewhere
    Returns: the matrix on every process
    """
    rank = comm.Get_rank()

    # Broadcast matrix dimension
    n = l.shape[0] if rank == root else None
    n = comm.bcast(n, root=root)

    l_full = allocate(n)
    if rank == root:
        l_full[...] = l

    try:
        comm.Bcast([l_full, MPI.INT], root=root)
    except MPI.Exception as exc:
        raise CommunicationFault(f"Bcast of adjacency matrix failed: {exc}") from exc
    return l_full


def distributed_shortest_paths(adjacency, grid, comm=None, num_processes=None):
    """
    All-pairs shortest paths with the matrix split over an MPI process grid.
    adjacency: n x n adjacency matrix, identical on every process
    grid: ProcessGrid whose size equals the number of processes in comm
    comm: MPI communicator (default MPI.COMM_WORLD)
    num_processes: optional pool size for each process's own region
    Returns: (distances, rounds) on every process, 0 where unreachable
    """
    if comm is None:
        comm = MPI.COMM_WORLD

    cart_comm, coords = create_cartesian_grid(comm, grid)
    n = adjacency.shape[0]
    region = grid.region(n, coords)

    # Each proc computes on its own rectangle
    paths = ShortestPaths(n, region, MPICollective(cart_comm), num_processes)
    distances = paths.run(adjacency)

    # Not reached after a CommunicationFault; the caller aborts instead
    cart_comm.Free()
    return distances, paths.rounds
