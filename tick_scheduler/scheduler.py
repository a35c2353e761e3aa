"""
Tick-driven scheduling engine.

The Scheduler owns three containers (pending jobs, the ready queue and the
single execution slot) and moves processes between them one logical tick at
a time. Observers follow along through SchedulerListener and the per-process
ProcessObserver hooks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .models import Process
from .policies import Algorithm, PendingJobs

logger = logging.getLogger(__name__)


class SchedulerListener:
    """
    Scheduler-level notifications. The base class ignores every event.
    """

    def on_enter_ready_queue(self, process: Process) -> None:
        pass

    def on_enter_execution(self, process: Process) -> None:
        pass

    def on_leave_execution(self, process: Process) -> None:
        pass


@dataclass(frozen=True)
class SchedulerConfig:
    """
    Immutable scheduler settings.

    `quantum` and `overload` only matter for the preemptive algorithms (RR
    and EDF) but are validated for every algorithm.
    """

    algorithm: Algorithm
    quantum: int = 1
    overload: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "algorithm", Algorithm.parse(self.algorithm))
        if isinstance(self.quantum, bool) or not isinstance(self.quantum, int) or self.quantum <= 0:
            raise ValueError(f"quantum must be a positive integer, got {self.quantum!r}")
        if isinstance(self.overload, bool) or not isinstance(self.overload, int) or self.overload < 0:
            raise ValueError(f"overload must be a non-negative integer, got {self.overload!r}")


class Scheduler:
    """
    Single-CPU scheduling engine driven by explicit tick() calls.

    `quantum` defaults to 1 and `overload` to 0; both only take effect under
    RR and EDF. The listener defaults to the no-op SchedulerListener.
    """

    def __init__(
        self,
        algorithm: str | Algorithm,
        quantum: int = 1,
        overload: int = 0,
        listener: Optional[SchedulerListener] = None,
    ) -> None:
        self.config = SchedulerConfig(algorithm=algorithm, quantum=quantum, overload=overload)
        self.listener = listener if listener is not None else SchedulerListener()

        self._clock = 0
        self._current_quantum = self.config.quantum
        self._current_overload = 0
        self._executing: Optional[Process] = None
        self._pending = PendingJobs()
        self._ready = self.config.algorithm.ready_queue()

    @property
    def algorithm(self) -> Algorithm:
        return self.config.algorithm

    @property
    def clock(self) -> int:
        return self._clock

    @property
    def current_quantum(self) -> int:
        return self._current_quantum

    @property
    def current_overload(self) -> int:
        return self._current_overload

    @property
    def executing(self) -> Optional[Process]:
        return self._executing

    @property
    def pending(self) -> List[Process]:
        """Not yet eligible processes, earliest start first."""
        return list(self._pending)

    @property
    def ready(self) -> List[Process]:
        """Ready processes in the order they would be dispatched."""
        return list(self._ready)

    def is_idle(self) -> bool:
        return self._executing is None and not self._ready and not self._pending

    def submit(self, *processes: Process) -> None:
        """
        Hand processes to the scheduler. Anything already eligible is
        admitted and may be dispatched right away, before the next tick.
        """
        for process in processes:
            logger.debug("t=%d submit %s (start=%d)", self._clock, process.id, process.start)
            self._pending.add(process)
        self._sync_queues()
        self._sync_execution()

    def tick(self) -> Optional[Process]:
        """
        Advance the logical clock by one unit.

        Returns the process that received this tick of work, or None when the
        CPU was idle or frozen by the overload window.
        """
        self._clock += 1
        self._sync_queues()
        self._sync_execution()

        ran = self._executing
        if ran is not None:
            ran.advance()
            if self.algorithm.preemptive and self._current_quantum > 0:
                self._current_quantum -= 1
        if self._current_overload > 0:
            self._current_overload -= 1

        self._sync_execution()
        return ran

    def _sync_queues(self) -> None:
        for process in self._pending.pop_eligible(self._clock):
            self._admit(process)

    def _admit(self, process: Process) -> None:
        self._ready.push(process)
        logger.debug("t=%d %s enters ready queue", self._clock, process.id)
        self.listener.on_enter_ready_queue(process)

    def _sync_execution(self) -> None:
        # Dispatch is frozen while an overload window is open; admission is not.
        while self._current_overload == 0:
            if self._executing is None:
                if self._ready:
                    self._dispatch()
                return
            if not self._release():
                return

    def _dispatch(self) -> None:
        process = self._ready.pop()
        self._executing = process
        logger.debug("t=%d dispatch %s", self._clock, process.id)
        self.listener.on_enter_execution(process)

    def _release(self) -> bool:
        """
        Vacate the slot if the running process is done or, for the
        preemptive algorithms, has used up its quantum. Returns True when
        the slot was emptied.
        """
        process = self._executing
        if process.is_finished():
            logger.debug("t=%d %s finished", self._clock, process.id)
            self.listener.on_leave_execution(process)
            self._executing = None
            if self.algorithm.preemptive:
                self._current_quantum = self.config.quantum
            return True

        if self.algorithm.preemptive and self._current_quantum == 0:
            logger.debug(
                "t=%d preempt %s (%d/%d done), overload %d",
                self._clock,
                process.id,
                process.elapsed,
                process.duration,
                self.config.overload,
            )
            self.listener.on_leave_execution(process)
            self._executing = None
            self._admit(process)
            self._current_overload = self.config.overload
            self._current_quantum = self.config.quantum
            return True

        return False
