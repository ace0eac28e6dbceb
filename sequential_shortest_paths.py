import time

import numpy as np

from distance_matrix import to_external, to_internal
from random_graph import gen_graph


def min_plus_square(l):
    """
    Sequential min-plus square.
    l: n x n distances (list of lists or array), n+1 for unreachable
    Returns: (l2, changed) where l2[i][j] = min(l[i][j], min_k l[i][k] + l[k][j])
    """
    n = len(l)
    l2 = [[l[i][j] for j in range(n)] for i in range(n)]
    changed = False

    for i in range(n):
        for j in range(n):
            for k in range(n):
                if l[i][k] + l[k][j] < l2[i][j]:
                    l2[i][j] = l[i][k] + l[k][j]
                    changed = True

    return l2, changed


def sequential_shortest_paths(adjacency):
    """
    Repeated squaring on one process, without any numpy vectorization.
    Returns: n x n shortest path lengths, 0 where unreachable
    """
    l = to_internal(adjacency).tolist()

    changed = True
    while changed:
        l, changed = min_plus_square(l)

    return to_external(np.array(l))


def floyd_warshall(adjacency):
    """
    Independent reference: Floyd-Warshall on the same conventions.
    Returns: n x n shortest path lengths, 0 where unreachable
    """
    dist = to_internal(adjacency)
    n = dist.shape[0]

    for k in range(n):
        dist = np.minimum(dist, dist[:, k, np.newaxis] + dist[np.newaxis, k, :])

    return to_external(dist)


def test_sequential(sizes, p=0.05):
    """
    Time the sequential algorithm on random graphs of several sizes.
    """
    times = []

    for size in sizes:
        l = gen_graph(size, p)

        # Measure execution time
        start_time = time.time()
        distances = sequential_shortest_paths(l)
        end_time = time.time()

        # Verify correctness with Floyd-Warshall
        assert np.array_equal(distances, floyd_warshall(l)), f"Result incorrect for size {size}"

        elapsed_time = end_time - start_time
        times.append(elapsed_time)
        print(f"Graph size: {size} nodes, Sequential time: {elapsed_time:.4f} seconds")

    return times


if __name__ == "__main__":
    sizes = [20, 50, 100]
    sequential_times = test_sequential(sizes)
