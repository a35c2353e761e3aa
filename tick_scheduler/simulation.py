from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Iterable, List, Optional

from .metrics import compute_system_metrics
from .models import (
    OVERLOAD,
    RUN,
    Process,
    ProcessMetrics,
    ProcessObserver,
    ScheduledSlice,
    ScheduleResult,
)
from .policies import Algorithm
from .scheduler import Scheduler, SchedulerListener

logger = logging.getLogger(__name__)


class ScheduleRecorder(SchedulerListener):
    """
    Collects the tick-by-tick history of a run.

    Tick T is drawn as the interval [T-1, T). Consecutive ticks given to the
    same process (or to the overload window) are merged into one slice.
    """

    def __init__(self, forward: Optional[SchedulerListener] = None) -> None:
        self.forward = forward if forward is not None else SchedulerListener()
        self.timeline: List[ScheduledSlice] = []
        self.first_run: Dict[int, int] = {}
        self.completion: Dict[int, int] = {}
        self.preemptions: Dict[int, int] = {}
        self._last_key: Optional[int] = None

    def on_enter_ready_queue(self, process: Process) -> None:
        self.forward.on_enter_ready_queue(process)

    def on_enter_execution(self, process: Process) -> None:
        self.forward.on_enter_execution(process)

    def on_leave_execution(self, process: Process) -> None:
        if not process.is_finished():
            key = id(process)
            self.preemptions[key] = self.preemptions.get(key, 0) + 1
        self.forward.on_leave_execution(process)

    def record_tick(self, clock: int, ran: Optional[Process], overloaded: bool) -> None:
        if ran is not None:
            key = id(ran)
            self.first_run.setdefault(key, clock)
            if ran.is_finished():
                self.completion[key] = clock
            self._extend(key, str(ran.id), clock, RUN)
        elif overloaded:
            self._extend(None, "", clock, OVERLOAD)

    def _extend(self, key: Optional[int], pid: str, clock: int, kind: str) -> None:
        # Slices merge per process object, not per displayed id.
        last = self.timeline[-1] if self.timeline else None
        if (
            last is not None
            and self._last_key == key
            and last.kind == kind
            and last.end_time == clock - 1
        ):
            last.end_time = clock
        else:
            self.timeline.append(ScheduledSlice(pid=pid, start_time=clock - 1, end_time=clock, kind=kind))
        self._last_key = key

    def process_metrics(self, process: Process) -> ProcessMetrics:
        key = id(process)
        # Instants on the Gantt axis: tick T spans [T-1, T).
        arrival = max(process.start, 1) - 1
        first_run = self.first_run[key] - 1
        completion = self.completion[key]
        turnaround = completion - arrival
        return ProcessMetrics(
            pid=str(process.id),
            arrival_time=arrival,
            burst_time=process.duration,
            deadline=process.deadline,
            start_time=first_run,
            completion_time=completion,
            waiting_time=turnaround - process.duration,
            turnaround_time=turnaround,
            response_time=first_run - arrival,
            preemptions=self.preemptions.get(key, 0),
        )


def simulate(
    processes: Iterable[Process],
    algorithm: str | Algorithm,
    quantum: int = 1,
    overload: int = 0,
    max_ticks: Optional[int] = None,
    observer: Optional[ProcessObserver] = None,
    listener: Optional[SchedulerListener] = None,
) -> ScheduleResult:
    """
    Run a workload to completion and collect its schedule.

    Fresh copies of the processes are submitted at clock 0, so the caller's
    objects are never advanced and a workload can be replayed under several
    algorithms. Stops early after `max_ticks` ticks; processes that did not
    finish by then are listed in `ScheduleResult.unfinished`.
    """
    recorder = ScheduleRecorder(forward=listener)
    scheduler = Scheduler(algorithm, quantum=quantum, overload=overload, listener=recorder)

    copies = [
        dataclasses.replace(p, observer=observer) if observer is not None else dataclasses.replace(p)
        for p in processes
    ]
    scheduler.submit(*copies)

    while not scheduler.is_idle():
        if max_ticks is not None and scheduler.clock >= max_ticks:
            logger.warning("Stopped after %d ticks with work left", scheduler.clock)
            break
        overloaded = scheduler.current_overload > 0
        ran = scheduler.tick()
        recorder.record_tick(scheduler.clock, ran, overloaded)

    finished = [p for p in copies if p.is_finished()]
    metrics = [recorder.process_metrics(p) for p in finished]
    metrics.sort(key=lambda m: (m.completion_time, m.pid))

    algo = scheduler.algorithm
    result = ScheduleResult(
        algorithm=algo.label,
        quantum=quantum if algo.preemptive else None,
        overload=overload if algo.preemptive else None,
        processes=metrics,
        timeline=recorder.timeline,
        unfinished=[str(p.id) for p in copies if not p.is_finished()],
    )
    compute_system_metrics(result)
    return result


ALGORITHMS = [algo.value.lower() for algo in Algorithm]


def run_algorithm(
    name: str,
    processes: List[Process],
    quantum: Optional[int] = None,
    overload: int = 0,
    max_ticks: Optional[int] = None,
) -> ScheduleResult:
    """
    Dispatch to the requested algorithm by name. A missing quantum defaults
    to 1 for the preemptive algorithms and is ignored by the others.
    """
    algo = Algorithm.parse(name)
    return simulate(
        processes,
        algo,
        quantum=quantum if quantum is not None else 1,
        overload=overload,
        max_ticks=max_ticks,
    )
