import numpy as np
import pytest

from random_graph import gen_graph


def directed_cycle(n):
    l = np.zeros((n, n), dtype=int)
    for i in range(n):
        l[i, (i + 1) % n] = 1
    return l


@pytest.fixture
def cycle4():
    return directed_cycle(4)


@pytest.fixture(params=[(9, 0.15, 1), (16, 0.1, 2), (23, 0.05, 3)], ids=lambda p: f"n{p[0]}")
def random_graph(request):
    n, p, seed = request.param
    return gen_graph(n, p, seed=seed)
