from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .gantt import build_rich_gantt
from .metrics import summarize_process_metrics
from .models import Process, ProcessObserver, ScheduleResult
from .scheduler import SchedulerListener
from .simulation import ALGORITHMS, simulate
from .workload_io import load_workload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tick-scheduler",
        description="Tick-by-tick CPU scheduling simulator (FIFO, SJF, RR, EDF).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every scheduler transition at DEBUG level.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Algorithm to use (fifo, sjf, rr, edf).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    _add_timing_arguments(run_parser)
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Print every scheduler and process event as it happens.",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run several algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help="Algorithms to compare (default: fifo sjf rr edf).",
    )
    _add_timing_arguments(compare_parser)

    return parser


def _add_timing_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=2,
        help="Time slice for RR / EDF (ignored by FIFO and SJF, default: 2).",
    )
    parser.add_argument(
        "--overload",
        "-o",
        type=int,
        default=0,
        help="Idle penalty ticks after each RR / EDF preemption (default: 0).",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=None,
        help="Stop the simulation after this many ticks.",
    )


def _label(process: Process) -> str:
    return escape(str(process.id))


class StepTracer(ProcessObserver, SchedulerListener):
    """
    Prints the event stream of a run, one line per notification.
    """

    def __init__(self, console: Console) -> None:
        self.console = console

    def on_enter_ready_queue(self, process: Process) -> None:
        self.console.print(f"  [cyan]{_label(process)}[/cyan] enters ready queue")

    def on_enter_execution(self, process: Process) -> None:
        self.console.print(f"  [green]{_label(process)}[/green] enters execution")

    def on_leave_execution(self, process: Process) -> None:
        state = "finished" if process.is_finished() else "preempted"
        self.console.print(f"  [yellow]{_label(process)}[/yellow] leaves execution ({state})")

    def on_start(self, process: Process) -> None:
        self.console.print(f"  [bold]{_label(process)}[/bold] starts")

    def on_tick(self, process: Process) -> None:
        bar = "█" * process.elapsed + "·" * process.remaining
        self.console.print(f"  {_label(process)} [green]{bar}[/green] {process.elapsed}/{process.duration}")

    def on_finish(self, process: Process) -> None:
        self.console.print(f"  [bold]{_label(process)}[/bold] finishes")


def _print_result(result: ScheduleResult, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}  [bold]Overload:[/bold] {result.overload}")

    console.print()

    panel, time_marks = build_rich_gantt(result.timeline)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = [
        "ID",
        "Arrive",
        "Burst",
        "Deadline",
        "Start",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
        "Preempted",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h == "ID" else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        deadline = f"[red]{p.deadline}[/red]" if p.missed_deadline else str(p.deadline)
        proc_table.add_row(
            escape(p.pid),
            str(p.arrival_time),
            str(p.burst_time),
            deadline,
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
            str(p.preemptions),
        )

    console.print(proc_table)
    console.print()

    if result.unfinished:
        console.print(f"[yellow]Unfinished:[/yellow] {escape(', '.join(result.unfinished))}")

    summary = summarize_process_metrics(result.processes)
    if result.system:
        sys = result.system
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Avg waiting", f"{summary['avg_waiting']:.2f}")
        sys_table.add_row("Avg turnaround", f"{summary['avg_turnaround']:.2f}")
        sys_table.add_row("Avg response", f"{summary['avg_response']:.2f}")
        sys_table.add_row("Throughput (proc/tick)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")
        sys_table.add_row("Overload ticks", str(sys.overload_time))
        sys_table.add_row("Deadline misses", str(sys.deadline_misses))
        sys_table.add_row("Starvation count", str(sys.starvation_count))

        console.print(sys_table)


def _run(args: argparse.Namespace, processes: List[Process], console: Console) -> None:
    tracer = StepTracer(console) if args.step else None
    result = simulate(
        processes,
        args.algorithm,
        quantum=args.quantum,
        overload=args.overload,
        max_ticks=args.max_ticks,
        observer=tracer,
        listener=tracer,
    )
    _print_result(result, console)


def _compare(args: argparse.Namespace, processes: List[Process], console: Console) -> None:
    summary_table = Table(title=f"Algorithm comparison: {args.workload}", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("Deadline misses", justify="right")

    for alg in args.algorithms:
        result = simulate(
            processes,
            alg,
            quantum=args.quantum,
            overload=args.overload,
            max_ticks=args.max_ticks,
        )
        summary = summarize_process_metrics(result.processes)
        summary_table.add_row(
            result.algorithm,
            "" if result.quantum is None else str(result.quantum),
            f"{summary['avg_waiting']:.2f}",
            f"{summary['avg_turnaround']:.2f}",
            f"{summary['avg_response']:.2f}",
            str(result.system.deadline_misses if result.system else 0),
        )

    console.print(summary_table)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )

    try:
        processes = load_workload(Path(args.workload))
        if args.command == "run":
            _run(args, processes, console)
        elif args.command == "compare":
            _compare(args, processes, console)
        else:
            parser.error(f"Unknown command: {args.command}")
    except (OSError, ValueError) as exc:
        logger.debug("command failed", exc_info=True)
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 2

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
