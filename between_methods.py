"""
Compare sequential, simulated-grid and shared-memory shortest path runs.

The MPI runs themselves need mpiexec (see path_mpi.py); here every grid
shape is run through GridSimulator so the methods can be timed side by side.
"""
import os
import time

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.ticker import ScalarFormatter
import numpy as np
import pandas as pd
import seaborn as sns

from domain_partition import ProcessGrid
from grid_simulator import GridSimulator
from random_graph import gen_graph
from sequential_shortest_paths import floyd_warshall, sequential_shortest_paths

DEFAULT_GRIDS = [(1, 1), (2, 1), (2, 2)]


def verify_results(l, grids=DEFAULT_GRIDS):
    """Verify that every method produces the same distances as Floyd-Warshall"""
    reference = floyd_warshall(l)

    ok = np.array_equal(sequential_shortest_paths(l), reference)
    for npx, npy in grids:
        distances = GridSimulator(ProcessGrid(npx, npy)).run(l)
        ok = ok and np.array_equal(distances, reference)

    shared = GridSimulator(ProcessGrid(1, 1), num_processes=2).run(l)
    return ok and np.array_equal(shared, reference)


def benchmark_single_run(size, p=0.05, grids=DEFAULT_GRIDS, num_processes_list=[2, 4],
                         include_sequential=True):
    """Benchmark all methods for a single graph size"""
    l = gen_graph(size, p)
    results = {'Size': size}

    # Vectorized 1x1 run is the baseline
    _, base_time = GridSimulator(ProcessGrid(1, 1)).timed_run(l)
    results['Baseline'] = base_time

    if include_sequential:
        start_time = time.time()
        sequential_shortest_paths(l)
        results['Sequential'] = time.time() - start_time

    for npx, npy in grids:
        if (npx, npy) == (1, 1):
            continue
        _, grid_time = GridSimulator(ProcessGrid(npx, npy)).timed_run(l)
        results[f'Grid-{npx}x{npy}'] = grid_time

    # Shared memory with different pool sizes
    for num_proc in num_processes_list:
        if num_proc <= os.cpu_count():
            _, shared_time = GridSimulator(ProcessGrid(1, 1), num_processes=num_proc).timed_run(l)
            results[f'Shared-{num_proc}'] = shared_time

    return results


def run_benchmarks(sizes=[10, 50, 100], **kwargs):
    """Run benchmarks for all graph sizes"""
    all_results = []

    for size in sizes:
        print(f"\nBenchmarking graphs with {size} nodes")
        result = benchmark_single_run(size, **kwargs)
        all_results.append(result)

        print(f"Baseline: {result['Baseline']:.4f} seconds")
        for k, v in result.items():
            if k not in ('Size', 'Baseline'):
                print(f"{k}: {v:.4f} seconds (Speedup: {result['Baseline'] / v:.2f}x)")

    return pd.DataFrame(all_results)


def calculate_speedup(results_df):
    """Calculate speedup relative to the baseline run"""
    speedup_df = pd.DataFrame({'Size': results_df['Size']})

    for column in results_df.columns:
        if column not in ('Size', 'Baseline'):
            speedup_df[column] = results_df['Baseline'] / results_df[column]

    return speedup_df


def process_count(column):
    """Number of workers encoded in a column name: Shared-4 -> 4, Grid-2x3 -> 6"""
    label = column.split('-', 1)[1]
    if 'x' in label:
        npx, npy = label.split('x')
        return int(npx) * int(npy)
    return int(label)


def calculate_efficiency(speedup_df):
    """Efficiency = speedup / number of workers"""
    efficiency_df = pd.DataFrame({'Size': speedup_df['Size']})

    for column in speedup_df.columns:
        if column.startswith('Shared-') or column.startswith('Grid-'):
            efficiency_df[column] = speedup_df[column] / process_count(column)

    return efficiency_df


def _plot(df, value_name, title, ylabel, filename, log_y=False, baseline=None):
    plot_df = pd.melt(df, id_vars=['Size'], var_name='Method', value_name=value_name)

    plt.figure(figsize=(12, 8))
    sns.lineplot(data=plot_df, x='Size', y=value_name,
                 hue='Method', marker='o', linewidth=2.5)

    plt.xscale('log')
    if log_y:
        plt.yscale('log')
    plt.grid(True, which="both", ls="--", alpha=0.7)
    if baseline is not None:
        plt.axhline(y=baseline, color='r', linestyle='--', alpha=0.7)

    plt.title(title, fontsize=16)
    plt.xlabel('Graph Size (nodes)', fontsize=14)
    plt.ylabel(ylabel, fontsize=14)
    plt.gca().xaxis.set_major_formatter(ScalarFormatter())

    plt.legend(title='Method', bbox_to_anchor=(1.05, 1), loc='upper left')
    plt.tight_layout()
    plt.savefig(filename, dpi=150)
    plt.close()
    return filename


def plot_execution_times(results_df, filename='apsp_time_comparison.png'):
    return _plot(results_df, 'Time (seconds)', 'Shortest Path Performance Comparison',
                 'Execution Time (seconds)', filename, log_y=True)


def plot_speedup(speedup_df, filename='apsp_speedup_comparison.png'):
    return _plot(speedup_df, 'Speedup', 'Speedup over the 1x1 Baseline',
                 'Speedup', filename, baseline=1)


def plot_efficiency(speedup_df, filename='apsp_efficiency_comparison.png'):
    return _plot(calculate_efficiency(speedup_df), 'Efficiency', 'Parallel Efficiency',
                 'Speedup / # Workers', filename, baseline=1)


def create_comparison_table(results_df, speedup_df):
    """Create a comparison table with execution times and speedups"""
    table_df = pd.DataFrame({'Size': results_df['Size']})
    table_df['Baseline (s)'] = results_df['Baseline']

    for column in results_df.columns:
        if column not in ('Size', 'Baseline'):
            table_df[f'{column} (s)'] = results_df[column]
            table_df[f'{column} Speedup'] = speedup_df[column]

    return table_df


def main():
    print("Verifying method correctness...")
    if verify_results(gen_graph(12, 0.2)):
        print("All methods produce identical distances.\n")
    else:
        print("Warning: Method discrepancies detected!\n")

    results_df = run_benchmarks(sizes=[10, 50, 100])
    speedup_df = calculate_speedup(results_df)

    print("\nCreating visualizations...")
    plot_execution_times(results_df)
    plot_speedup(speedup_df)
    plot_efficiency(speedup_df)

    table_df = create_comparison_table(results_df, speedup_df)
    print("\nPerformance Comparison Table:")
    print(table_df.to_string(index=False))
    table_df.to_csv('apsp_results.csv', index=False)

    print("\nAnalysis complete. Visualization files saved.")


if __name__ == "__main__":
    main()
