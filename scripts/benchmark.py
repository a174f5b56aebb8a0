#!/usr/bin/env python3
"""
StreamStore Performance Benchmarks

Measures how fast stores bind, how many channel invocations per second they
fold, and what the output channel and dependency re-evaluation cost. Each
benchmark grows its workload until one run takes longer than the time limit.

Usage:
    python scripts/benchmark.py            # Run all benchmarks
    python scripts/benchmark.py --config   # Show current benchmark configuration
    python scripts/benchmark.py --quiet    # Only print the results table

Configuration:
    Adjust the constants at the top of the file to change benchmark parameters.
"""

import argparse
import sys
import time
from typing import Any, Callable, Dict

sys.path.insert(0, ".")

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from reactivex import operators as ops

from streamstore import Binding, Owner, channel, make_store

# Configuration constants - adjust these to change benchmark behavior
TIME_LIMIT_SECONDS = 1.0  # Maximum time allowed per operation
STARTING_N = 10  # Starting workload size
SCALE_FACTOR = 1.5  # How much to multiply N by each iteration
CHANNEL_COUNT = 8  # Channels declared by the wide-store benchmark


def _counter_store(output: bool = False):
    return make_store(
        {"count": 0, "label": ""},
        {"increment": channel(lambda: lambda s: {**s, "count": s["count"] + 1})},
        output_channel=(
            (
                lambda states: states.pipe(
                    ops.map(lambda s: lambda latest: {**latest, "label": f"#{s['count']}"})
                )
            )
            if output
            else None
        ),
    )


def _wide_store(width: int):
    channels = {
        f"set_{i}": channel(lambda value, i=i: lambda s: {**s, i: value})
        for i in range(width)
    }
    return make_store({}, channels)


def _dependency_store():
    return make_store(
        {"id": None},
        {},
        dependency_channel=lambda deps: deps.pipe(
            ops.map(lambda d: lambda s: {**s, "id": d[0]})
        ),
    )


class StreamStoreBenchmark:
    """Rich-formatted runner for the StreamStore benchmarks."""

    def __init__(self, quiet: bool = False):
        self.console = Console()
        self.quiet = quiet
        self.results: Dict[str, Dict[str, Any]] = {}

    def run_benchmarks(self):
        start_time = time.time()
        self._display_header()

        self._run("binding", "Bind and Release", self._bind_operation)
        self._run("invocation", "Channel Invocations", self._invocation_operation)
        self._run("output", "Invocations with Output Channel", self._output_operation)
        self._run("wide", f"Invocations across {CHANNEL_COUNT} Channels", self._wide_operation)
        self._run("dependencies", "Dependency Re-evaluation", self._dependency_operation)
        self._run("owner", "Owner Re-evaluation", self._owner_operation)

        self._display_final_results(start_time)

    # -- operations: each returns the number of operations it performed --

    @staticmethod
    def _bind_operation(n: int) -> int:
        store = _counter_store()
        for _ in range(n):
            Binding(store).bind().release()
        return n

    @staticmethod
    def _invocation_operation(n: int) -> int:
        with Binding(_counter_store()) as binding:
            increment = binding.actions.increment
            for _ in range(n):
                increment()
            assert binding.snapshot["count"] == n
        return n

    @staticmethod
    def _output_operation(n: int) -> int:
        with Binding(_counter_store(output=True)) as binding:
            increment = binding.actions.increment
            for _ in range(n):
                increment()
            assert binding.snapshot["label"] == f"#{n}"
        return n

    @staticmethod
    def _wide_operation(n: int) -> int:
        with Binding(_wide_store(CHANNEL_COUNT)) as binding:
            callbacks = list(binding.actions.values())
            for i in range(n):
                callbacks[i % CHANNEL_COUNT](i)
        return n

    @staticmethod
    def _dependency_operation(n: int) -> int:
        with Binding(_dependency_store(), [0]) as binding:
            for i in range(n):
                binding.re_evaluate([i])
        return n

    @staticmethod
    def _owner_operation(n: int) -> int:
        store = _dependency_store()
        with Owner() as owner:
            for i in range(n):
                owner.use_store(store, [i // 2])
        return n

    # -- driver --

    def _run(self, key: str, name: str, operation: Callable[[int], int]):
        if not self.quiet:
            self.console.print(f"[yellow]Running {name}...[/yellow]")
        result = self._run_adaptive_benchmark(operation)
        result["name"] = name
        self.results[key] = result
        if not self.quiet:
            self.console.print(
                f"[green]✓[/green] {name}: "
                f"{result['operations_per_second']:,.0f} ops/sec ({result['max_n']} items)"
            )

    def _run_adaptive_benchmark(self, operation: Callable[[int], int]) -> Dict[str, Any]:
        """Scale the workload until a single run reaches the time limit."""
        n = STARTING_N
        while True:
            start_time = time.perf_counter()
            performed = operation(n)
            operation_time = time.perf_counter() - start_time

            result = {
                "max_n": n,
                "operation_time": operation_time,
                "operations_per_second": performed / operation_time
                if operation_time > 0
                else float("inf"),
            }
            if operation_time >= TIME_LIMIT_SECONDS:
                return result
            n = max(n + 1, int(n * SCALE_FACTOR))

    # -- display --

    def _display_header(self):
        header = Panel(
            Align.center("StreamStore Performance Benchmark Suite"),
            title="StreamStore Benchmarks",
            border_style="blue",
        )
        self.console.print(header)
        self.console.print()

    def _display_final_results(self, start_time: float):
        elapsed = time.time() - start_time

        table = Table(title="Benchmark Results")
        table.add_column("Benchmark", style="cyan", no_wrap=True)
        table.add_column("Max Workload", style="magenta", justify="right")
        table.add_column("Performance", style="green", justify="right")
        table.add_column("Per Operation", style="yellow", justify="right")

        for result in self.results.values():
            ops_k = result["operations_per_second"] / 1000
            latency_us = result["operation_time"] / max(result["max_n"], 1) * 1e6
            table.add_row(
                result["name"],
                f"{result['max_n']:,}",
                f"{ops_k:.1f}K ops/sec",
                f"{latency_us:.2f}μs",
            )

        self.console.print()
        self.console.print(table)
        self.console.print()
        self.console.print(f"[dim]Benchmark completed in {elapsed:.2f} seconds[/dim]")


def print_config():
    """Print the current benchmark configuration."""
    print("StreamStore Benchmark Configuration:")
    print(f"  TIME_LIMIT_SECONDS: {TIME_LIMIT_SECONDS}")
    print(f"  STARTING_N: {STARTING_N}")
    print(f"  SCALE_FACTOR: {SCALE_FACTOR}")
    print(f"  CHANNEL_COUNT: {CHANNEL_COUNT}")


def main():
    """Main entry point for the benchmark script."""
    parser = argparse.ArgumentParser(description="StreamStore Performance Benchmarks")
    parser.add_argument(
        "--config", action="store_true", help="Show current benchmark configuration"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output, show only final results",
    )
    args = parser.parse_args()

    if args.config:
        print_config()
        return

    if not args.quiet:
        print_config()
        print()

    StreamStoreBenchmark(quiet=args.quiet).run_benchmarks()


if __name__ == "__main__":
    main()
