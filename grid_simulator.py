import time

import numpy as np

from convergence_protocol import Collective, ShortestPaths, State


class _SimulatedRank(Collective):
    """
    Collective seen by one simulated process. Only the upfront merge goes
    through it; rounds are reduced by GridSimulator itself.
    """

    def merge_min(self, sendbuf, recvbuf):
        # Every rank starts from the same adjacency matrix
        np.copyto(recvbuf, sendbuf)

    def all_done(self, done):
        raise RuntimeError("Rounds are reduced by GridSimulator")


class GridSimulator:
    """
    Run every process of a grid inside one interpreter, in lockstep.
    Each round stages all ranks, reduces their buffers with an element-wise
    minimum and their done flags with a minimum, then promotes every rank.
    """

    def __init__(self, grid, num_processes=None):
        self.grid = grid
        self.num_processes = num_processes
        self.ranks = []

    def start(self, adjacency):
        n = np.asarray(adjacency).shape[0]
        collective = _SimulatedRank()
        self.ranks = [ShortestPaths(n, region, collective, self.num_processes)
                      for region in self.grid.regions(n)]
        for paths in self.ranks:
            paths.start(adjacency)

    @property
    def state(self):
        return self.ranks[0].state

    @property
    def rounds(self):
        return self.ranks[0].rounds

    def step(self):
        """One lockstep round over all ranks."""
        staged = [paths.stage() for paths in self.ranks]

        # Simulate the two Allreduce(MIN) calls
        merged = np.minimum.reduce([lnew for lnew, _ in staged])
        all_done = min(done for _, done in staged)

        for paths in self.ranks:
            paths.promote(merged, all_done)
        return self.state

    def run(self, adjacency):
        """
        Returns: n x n shortest path lengths, 0 where unreachable
        """
        self.start(adjacency)
        while self.state is State.RUNNING:
            self.step()
        return self.ranks[0].result()

    def timed_run(self, adjacency):
        """Returns: (distances, elapsed seconds)"""
        start_time = time.time()
        distances = self.run(adjacency)
        return distances, time.time() - start_time
