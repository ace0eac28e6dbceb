import numpy as np

from apsp_errors import ResourceExhaustion

# Same width as MPI.INT so buffers go to Allreduce without conversion
DTYPE = np.int32


def allocate(n, fill=0):
    """
    Allocate an n x n distance buffer.
    n: number of nodes
    fill: initial value of every entry
    Returns: C-ordered DTYPE array
    """
    try:
        return np.full((n, n), fill, dtype=DTYPE)
    except MemoryError as exc:
        raise ResourceExhaustion(
            f"Could not allocate a {n}x{n} distance matrix") from exc


def unreachable(n):
    """Internal stand-in for "no path": longer than any path in an n-node graph."""
    return n + 1


def to_internal(adjacency):
    """
    Convert an adjacency matrix (0 = no edge) to distances at step 0.
    Off-diagonal zeros become n+1; the diagonal is forced to 0.
    Returns: new DTYPE matrix, the input is not modified
    """
    adjacency = np.asarray(adjacency)
    if adjacency.ndim != 2 or adjacency.shape[0] != adjacency.shape[1]:
        raise ValueError("Distance matrix must be square")

    n = adjacency.shape[0]
    l = allocate(n)
    l[...] = adjacency
    l[l == 0] = unreachable(n)
    np.fill_diagonal(l, 0)
    return l


def to_external(l):
    """
    Convert internal distances back to the zero-for-unreachable convention.
    Returns: new DTYPE matrix, the input is not modified
    """
    l = np.asarray(l)
    n = l.shape[0]
    out = allocate(n)
    out[...] = l
    out[out == unreachable(n)] = 0
    return out


# Entries summed per numpy pass; keeps the running sums well inside int64
FLETCHER_CHUNK = 1 << 16


def fletcher16(data):
    """
    Fletcher-16 checksum over the row-major flattening of data.
    Order-sensitive, so a transposed result gives a different value.
    """
    flat = np.ravel(np.asarray(data, dtype=np.int64), order='C')
    sum1 = 0
    sum2 = 0
    for start in range(0, flat.size, FLETCHER_CHUNK):
        chunk = flat[start:start + FLETCHER_CHUNK] % 255
        # sum1 after every entry of the chunk, before reduction mod 255
        prefix = sum1 + np.cumsum(chunk)
        sum1 = int(prefix[-1] % 255)
        sum2 = int((sum2 + prefix.sum()) % 255)
    return (sum2 << 8) | sum1


def write_matrix(fname, a):
    """Write a as text, one line per row i, column j in position j."""
    np.savetxt(fname, np.asarray(a), fmt='%d', delimiter=' ')


def read_matrix(fname):
    """Read a matrix written by write_matrix."""
    a = np.loadtxt(fname, dtype=np.int64, ndmin=2)
    if a.shape[0] != a.shape[1]:
        raise ValueError(f"Matrix in {fname} is {a.shape[0]}x{a.shape[1]}, expected square")
    return a.astype(DTYPE)
