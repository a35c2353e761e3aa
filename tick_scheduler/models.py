from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


class ProcessValidationError(ValueError):
    """Raised when a Process is built with inconsistent timing parameters."""


class ProcessObserver:
    """
    Lifecycle hooks fired by Process.advance().

    The base class ignores every event; subclass it and override only the
    hooks you care about.
    """

    def on_start(self, process: Process) -> None:
        pass

    def on_tick(self, process: Process) -> None:
        pass

    def on_finish(self, process: Process) -> None:
        pass


NULL_OBSERVER = ProcessObserver()


@dataclass(eq=False)
class Process:
    """
    A unit of scheduled work.

    `start` is the tick at which the process becomes eligible, `duration`
    the number of ticks of work it needs and `deadline` the tick by which it
    should be done. Only the Scheduler advances `elapsed`.
    """

    id: Any
    start: int
    duration: int
    deadline: int
    observer: ProcessObserver = field(default=NULL_OBSERVER, repr=False)
    elapsed: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ProcessValidationError("'start' has to be greater than or equal to 0")
        if self.duration <= 0:
            raise ProcessValidationError("'duration' has to be greater than 0")
        if self.deadline <= 0:
            raise ProcessValidationError("'deadline' has to be greater than 0")
        if self.deadline <= self.start:
            raise ProcessValidationError("'deadline' has to be greater than 'start'")

    def advance(self) -> None:
        """
        Perform one tick of work, firing start/tick/finish notifications.
        """
        if self.elapsed == 0:
            self.observer.on_start(self)
        self.elapsed += 1
        self.observer.on_tick(self)
        if self.elapsed == self.duration:
            self.observer.on_finish(self)

    def is_started(self) -> bool:
        return self.elapsed > 0

    def is_finished(self) -> bool:
        return self.elapsed >= self.duration

    @property
    def remaining(self) -> int:
        return max(0, self.duration - self.elapsed)


RUN = "run"
OVERLOAD = "overload"


@dataclass
class ScheduledSlice:
    """
    One contiguous stretch of ticks in the Gantt chart.

    `kind` is RUN for a process holding the CPU and OVERLOAD for the penalty
    window that follows a preemption (pid is empty then).
    """

    pid: str
    start_time: int
    end_time: int
    kind: str = RUN


@dataclass
class ProcessMetrics:
    pid: str
    arrival_time: int
    burst_time: int
    deadline: int
    start_time: int
    completion_time: int
    waiting_time: int
    turnaround_time: int
    response_time: int
    preemptions: int = 0

    @property
    def missed_deadline(self) -> bool:
        return self.completion_time > self.deadline


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float
    overload_time: int = 0
    deadline_misses: int = 0
    starvation_count: int = 0


@dataclass
class ScheduleResult:
    algorithm: str
    quantum: Optional[int]
    overload: Optional[int] = None
    processes: List[ProcessMetrics] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    system: Optional[SystemMetrics] = None
    unfinished: List[str] = field(default_factory=list)
