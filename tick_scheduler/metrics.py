from __future__ import annotations

from typing import List

from .models import OVERLOAD, RUN, ProcessMetrics, ScheduleResult, SystemMetrics


def compute_system_metrics(result: ScheduleResult) -> SystemMetrics:
    """
    Compute throughput, CPU utilization and deadline statistics from the
    per-process metrics and timeline slices of a finished run.
    """
    makespan = max(s.end_time for s in result.timeline) if result.timeline else 0
    cpu_busy_time = sum(s.end_time - s.start_time for s in result.timeline if s.kind == RUN)
    overload_time = sum(s.end_time - s.start_time for s in result.timeline if s.kind == OVERLOAD)

    throughput = len(result.processes) / makespan if makespan > 0 else 0.0
    cpu_utilization = cpu_busy_time / makespan if makespan > 0 else 0.0

    # Starvation: waiting time more than twice the average.
    starvation_count = 0
    if result.processes:
        avg_wait = sum(p.waiting_time for p in result.processes) / len(result.processes)
        starvation_count = sum(1 for p in result.processes if p.waiting_time > 2 * avg_wait)

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
        overload_time=overload_time,
        deadline_misses=sum(1 for p in result.processes if p.missed_deadline),
        starvation_count=starvation_count,
    )
    result.system = system
    return system


def summarize_process_metrics(processes: List[ProcessMetrics]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_response": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting_time for p in processes) / n,
        "avg_turnaround": sum(p.turnaround_time for p in processes) / n,
        "avg_response": sum(p.response_time for p in processes) / n,
    }
