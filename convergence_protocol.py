"""
Round-based merge and convergence protocol for repeated squaring.

Every process holds a full copy of the distance matrix. In each round a
process relaxes only its own region into a staging buffer, then all
processes take the element-wise minimum of their staging buffers and the
minimum of their "done" flags. The run is over once no process changed
anything in a round.

Once 2^s >= n every shortest path fits in the hop budget, so at most
ceil(lg n) squarings plus one confirming round are needed; the loop does
not count on that and stops on the done flags alone.
"""
import enum
import logging
import math

import numpy as np

from distance_matrix import allocate, to_external, to_internal, unreachable
from squaring_kernel import square, square_shared_memory

logger = logging.getLogger(__name__)


class State(enum.Enum):
    RUNNING = 'running'
    CONVERGED = 'converged'


def round_bound(n):
    """Most rounds a run on n nodes can take, counting the confirming round."""
    if n <= 1:
        return 1
    return math.ceil(math.log2(n)) + 1


class Collective:
    """
    Reductions the protocol needs from the communication substrate.
    Every process must call them in the same order.
    """

    def merge_min(self, sendbuf, recvbuf):
        """Element-wise minimum of every process's sendbuf, into recvbuf."""
        raise NotImplementedError

    def all_done(self, done):
        """True only if every process passed done=True."""
        raise NotImplementedError


class LocalCollective(Collective):
    """A single process is its own reduction."""

    def merge_min(self, sendbuf, recvbuf):
        if recvbuf is not sendbuf:
            np.copyto(recvbuf, sendbuf)

    def all_done(self, done):
        return bool(done)


class ShortestPaths:
    """
    One process's side of the protocol.
    n: number of nodes
    region: Region this process owns
    collective: Collective shared with the other processes
    num_processes: if set, relax the region on a pool of this size
    """

    def __init__(self, n, region, collective, num_processes=None):
        self.n = n
        self.region = region
        self.collective = collective
        self.num_processes = num_processes
        self.state = None
        self.rounds = 0
        self.current = None
        self.lnew = None

    def start(self, adjacency):
        """
        Build l^0 from the adjacency matrix and agree on it globally.
        Every process contributes its full matrix to the first merge.
        """
        adjacency = np.asarray(adjacency)
        if adjacency.shape != (self.n, self.n):
            raise ValueError(
                f"Expected a {self.n}x{self.n} adjacency matrix, got shape {adjacency.shape}")

        self.current = allocate(self.n)
        self.lnew = allocate(self.n)
        self.collective.merge_min(to_internal(adjacency), self.current)
        self.rounds = 0
        self.state = State.RUNNING

    def stage(self):
        """
        Relax this process's region into lnew.
        Outside the region lnew holds n+1, which loses every minimum.
        Returns: (lnew, done) where done means the region did not change
        """
        region = self.region
        self.lnew.fill(unreachable(self.n))
        self.lnew[region.rows, region.cols] = self.current[region.rows, region.cols]

        if self.num_processes is None:
            changed = square(region, self.n, self.current, self.lnew)
        else:
            changed = square_shared_memory(region, self.n, self.current, self.lnew,
                                           self.num_processes)
        return self.lnew, not changed

    def promote(self, merged, all_done):
        """Make the merged matrix current and apply the global verdict."""
        if merged is not self.current:
            np.copyto(self.current, merged)
        self.rounds += 1
        logger.debug("round %d: globally done=%s", self.rounds, all_done)

        if all_done:
            self.state = State.CONVERGED
            logger.info("converged after %d rounds (n=%d)", self.rounds, self.n)

    def step(self):
        """Run one full round. All processes must call this together."""
        if self.state is not State.RUNNING:
            raise RuntimeError(f"Cannot run a round in state {self.state}")

        lnew, done = self.stage()
        logger.debug("round %d: local done=%s", self.rounds + 1, done)
        all_done = self.collective.all_done(done)
        self.collective.merge_min(lnew, self.current)
        self.promote(self.current, all_done)
        return self.state

    def result(self):
        """Current distances in the zero-for-unreachable convention."""
        if self.current is None:
            raise RuntimeError("Protocol has not been started")
        return to_external(self.current)

    def run(self, adjacency):
        """
        Square until converged.
        Returns: n x n shortest path lengths, 0 where unreachable
        """
        self.start(adjacency)
        while self.state is State.RUNNING:
            self.step()
        return self.result()
