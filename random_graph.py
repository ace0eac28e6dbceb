import numpy as np

from apsp_errors import ConfigurationError
from distance_matrix import DTYPE

DEFAULT_SEED = 10302011


def gen_graph(n, p, seed=DEFAULT_SEED):
    """
    G(n, p) random directed graph: every ordered pair (i, j) is an edge
    with probability p, drawn from a Mersenne Twister stream.
    n: number of nodes
    p: edge probability
    seed: generator seed, the same seed always gives the same graph
    Returns: n x n adjacency matrix, 1 for edge i -> j, 0 otherwise
    """
    if n < 1:
        raise ConfigurationError(f"Number of nodes must be positive, got {n}")
    if not 0.0 <= p <= 1.0:
        raise ConfigurationError(f"Edge probability must be in [0, 1], got {p}")

    state = np.random.RandomState(seed)
    l = (state.random_sample((n, n)) < p).astype(DTYPE)
    np.fill_diagonal(l, 0)
    return l
