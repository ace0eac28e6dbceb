"""
path_mpi.py -- Parallel all-pairs shortest path on a random graph

Run with: mpiexec -n <npx*npy> python path_mpi.py -x <npx> -y <npy> [-n 200] [-p 0.05]
"""
import argparse
import logging
import sys

from mpi4py import MPI

from apsp_errors import CommunicationFault, ConfigurationError, ResourceExhaustion
from distance_matrix import fletcher16, write_matrix
from distributed_memory_model import broadcast_matrix, distributed_shortest_paths
from domain_partition import ProcessGrid
from random_graph import DEFAULT_SEED, gen_graph

logger = logging.getLogger(__name__)


def get_parser():
    parser = argparse.ArgumentParser(
        prog="path_mpi.py",
        description="Parallel all-pairs shortest path on a random graph")
    parser.add_argument("-n", type=int, default=200, help="number of nodes")
    parser.add_argument("-p", type=float, default=0.05, help="probability of including edges")
    parser.add_argument("-i", dest="ifname", type=str,
                        help="file name where adjacency matrix should be stored")
    parser.add_argument("-o", dest="ofname", type=str,
                        help="file name where output matrix should be stored")
    parser.add_argument("-x", dest="npx", type=int, required=True,
                        help="number of processors in i-direction")
    parser.add_argument("-y", dest="npy", type=int, required=True,
                        help="number of processors in j-direction")
    parser.add_argument("-s", "--seed", type=int, default=DEFAULT_SEED,
                        help="random graph seed")
    parser.add_argument("-t", "--threads", type=int, default=None,
                        help="worker pool size inside each process (default: serial)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every round")
    return parser


def validate_args(args):
    """Checks that need no communication, done identically on every rank."""
    if args.n < 1:
        raise ConfigurationError(f"-n must be at least 1, got {args.n}")
    if not 0.0 <= args.p <= 1.0:
        raise ConfigurationError(f"-p must be in [0, 1], got {args.p}")
    if args.threads is not None and args.threads < 1:
        raise ConfigurationError(f"--threads must be at least 1, got {args.threads}")
    return ProcessGrid(args.npx, args.npy)


def main(argv=None, comm=None):
    args = get_parser().parse_args(argv)
    if comm is None:
        comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
    world_size = comm.Get_size()
    iroot = 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=f"[rank {rank}] %(levelname)s %(name)s: %(message)s")

    # Every rank reaches the same verdict, so nobody is left waiting
    try:
        grid = validate_args(args)
        grid.validate(world_size)
    except ConfigurationError as exc:
        if rank == iroot:
            print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    # Graph generation + output
    if rank == iroot:
        l = gen_graph(args.n, args.p, args.seed)
        if args.ifname:
            try:
                write_matrix(args.ifname, l)
            except OSError as exc:
                print(f"Could not open output file: {args.ifname} ({exc})", file=sys.stderr)
                comm.Abort(1)
    else:
        l = None

    try:
        l = broadcast_matrix(comm, l, root=iroot)

        # Time the shortest paths code
        comm.Barrier()
        t0 = MPI.Wtime()
        distances, rounds = distributed_shortest_paths(l, grid, comm, args.threads)
        t1 = MPI.Wtime()
    except (CommunicationFault, ResourceExhaustion, MPI.Exception) as exc:
        # Peers may already be inside a collective; only Abort releases them
        logger.error("aborting run: %s", exc)
        comm.Abort(1)
        return 1

    # Only root process prints results
    if rank == iroot:
        print(f"== MPI with {world_size} processes ({grid.npx}x{grid.npy})")
        print(f"n:      {args.n}")
        print(f"p:      {args.p:g}")
        print(f"Rounds: {rounds}")
        print(f"Time:   {t1 - t0:g}")
        print(f"Check:  {fletcher16(distances):X}")

        if args.ofname:
            try:
                write_matrix(args.ofname, distances)
            except OSError as exc:
                print(f"Could not open output file: {args.ofname} ({exc})", file=sys.stderr)
                return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
