from collections import namedtuple
import numbers

from apsp_errors import ConfigurationError


class Region(namedtuple('Region', ['imin', 'imax', 'jmin', 'jmax'])):
    """
    Rectangle of matrix indices [imin, imax) x [jmin, jmax) that one
    process is authoritative for.
    """
    __slots__ = ()

    @property
    def rows(self):
        return slice(self.imin, self.imax)

    @property
    def cols(self):
        return slice(self.jmin, self.jmax)

    @property
    def size(self):
        return (self.imax - self.imin) * (self.jmax - self.jmin)

    def is_empty(self):
        return self.size == 0


def partition(n, axis_procs, axis_index):
    """
    Split n indices into axis_procs contiguous, near-equal blocks.
    The first n % axis_procs processes get one extra index.
    n: global length of the axis
    axis_procs: number of processes along the axis
    axis_index: 0-based coordinate of this process along the axis
    Returns: (start, count) of this process's block
    """
    if axis_procs <= 0:
        raise ConfigurationError(f"Process count along an axis must be positive, got {axis_procs}")
    if not 0 <= axis_index < axis_procs:
        raise ConfigurationError(f"Process index {axis_index} outside [0, {axis_procs})")
    if n < 0:
        raise ConfigurationError(f"Axis length must be non-negative, got {n}")

    # Calculate indices per process
    per_process = n // axis_procs
    remainder = n % axis_procs

    # Determine start and size of this block
    if axis_index < remainder:
        start = axis_index * (per_process + 1)
        count = per_process + 1
    else:
        start = axis_index * per_process + remainder
        count = per_process

    return start, count


class ProcessGrid:
    """
    Shape of the npx x npy process rectangle. Rows of the matrix are split
    along the first grid axis, columns along the second. Ranks map to
    coordinates in row-major order, as in an MPI Cartesian topology.
    """

    def __init__(self, npx, npy):
        for name, value in (('npx', npx), ('npy', npy)):
            if (isinstance(value, bool) or not isinstance(value, numbers.Integral)
                    or value <= 0):
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        self.npx = int(npx)
        self.npy = int(npy)

    @property
    def size(self):
        return self.npx * self.npy

    @property
    def dims(self):
        return [self.npx, self.npy]

    def validate(self, nprocs):
        """Fail unless the grid uses exactly the nprocs launched processes."""
        if self.size != nprocs:
            raise ConfigurationError(
                f"{self.size} procs requested ({self.npx}x{self.npy}) "
                f"while only {nprocs} procs available")

    def coords(self, rank):
        if not 0 <= rank < self.size:
            raise ConfigurationError(f"Rank {rank} outside a grid of {self.size} processes")
        return divmod(rank, self.npy)

    def region(self, n, coords):
        """Ownership region of the process at grid coordinates coords."""
        iproc, jproc = coords
        imin, nx = partition(n, self.npx, iproc)
        jmin, ny = partition(n, self.npy, jproc)
        return Region(imin, imin + nx, jmin, jmin + ny)

    def regions(self, n):
        """Regions of every rank, in rank order."""
        return [self.region(n, self.coords(rank)) for rank in range(self.size)]

    def __eq__(self, other):
        if not isinstance(other, ProcessGrid):
            return NotImplemented
        return (self.npx, self.npy) == (other.npx, other.npy)

    def __hash__(self):
        return hash((self.npx, self.npy))

    def __repr__(self):
        return f"ProcessGrid(npx={self.npx}, npy={self.npy})"
