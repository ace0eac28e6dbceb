"""
One step of the min-plus recurrence restricted to an ownership region.

If l^s[i, j] is the shortest path from i to j using at most 2^s hops, then

    l^(s+1)[i, j] = min_k (l^s[i, k] + l^s[k, j])

which is a matrix square with (min, +) in place of (+, *).
"""
import multiprocessing as mp
from multiprocessing import Pool

import numpy as np

from domain_partition import Region, partition


# Intermediate nodes k relaxed per numpy pass. Each pass builds a
# K_BLOCK x width temporary instead of n x width.
K_BLOCK = 256


def _square_block(current, n, imin, imax, cols, block):
    """
    Relax block, the (imax - imin) x width window of lnew starting at row
    imin and spanning cols, against current. Writes into block in place.
    Returns: True if any entry of block decreased
    """
    changed = False
    for i in range(imin, imax):
        row = block[i - imin]
        for k0 in range(0, n, K_BLOCK):
            k1 = min(n, k0 + K_BLOCK)
            # candidates[j] = min_k current[i, k] + current[k, j] over this block of k
            candidates = (current[i, k0:k1, np.newaxis] + current[k0:k1, cols]).min(axis=0)
            improved = candidates < row
            if improved.any():
                row[improved] = candidates[improved]
                changed = True
    return changed


def square(region, n, current, lnew):
    """
    Compute step s+1 of the recurrence on region.
    region: Region this process owns
    n: number of nodes
    current: n x n distances at step s, read only
    lnew: n x n buffer for step s+1, seeded with an upper bound (at least
          current) inside region; only entries inside region are written
    Returns: True if any entry in region improved
    """
    if region.is_empty():
        return False
    block = lnew[region.rows, region.cols]
    return _square_block(current, n, region.imin, region.imax, region.cols, block)


def _square_rows(args):
    """Helper for shared memory parallelization"""
    current, n, imin, imax, jmin, jmax, block = args
    changed = _square_block(current, n, imin, imax, slice(jmin, jmax), block)
    return imin, imax, block, changed


def square_shared_memory(region, n, current, lnew, num_processes=None):
    """
    Same result as square, with the rows of region split across a process pool.
    num_processes: pool size (default is number of CPU cores)
    Returns: True if any entry in region improved
    """
    if region.is_empty():
        return False

    if num_processes is None:
        num_processes = mp.cpu_count()
    height = region.imax - region.imin
    num_processes = max(1, min(num_processes, height))

    # Create one task per row chunk, each carrying its own copy of the block
    tasks = []
    for chunk in range(num_processes):
        start, count = partition(height, num_processes, chunk)
        imin = region.imin + start
        imax = imin + count
        block = lnew[imin:imax, region.cols].copy()
        tasks.append((current, n, imin, imax, region.jmin, region.jmax, block))

    changed = False
    with Pool(processes=num_processes) as pool:
        results = pool.map(_square_rows, tasks)

        # Assemble results back into lnew
        for imin, imax, block, chunk_changed in results:
            lnew[imin:imax, region.cols] = block
            changed = changed or chunk_changed

    return changed


def full_region(n):
    """Region covering the whole matrix, as owned by a 1x1 grid."""
    return Region(0, n, 0, n)
