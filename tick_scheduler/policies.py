"""
Ready-queue policies for the four scheduling disciplines.

Each Algorithm member carries its own behaviour: whether a running process
can be preempted by the quantum and which ready structure orders the
processes waiting for the CPU.
"""

from __future__ import annotations

import heapq
import itertools
from collections import deque
from enum import Enum
from typing import Callable, Deque, Iterator, List, Tuple

from .models import Process


class ReadyQueue:
    """
    Eligible processes waiting for the execution slot.
    """

    def push(self, process: Process) -> None:
        raise NotImplementedError

    def pop(self) -> Process:
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError

    def __iter__(self) -> Iterator[Process]:
        """Iterate in selection order (next to run first)."""
        raise NotImplementedError


class ArrivalQueue(ReadyQueue):
    """Plain arrival order: FIFO hands out in admission order, RR rotates."""

    def __init__(self) -> None:
        self._queue: Deque[Process] = deque()

    def push(self, process: Process) -> None:
        self._queue.append(process)

    def pop(self) -> Process:
        return self._queue.popleft()

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator[Process]:
        return iter(self._queue)


class KeyedQueue(ReadyQueue):
    """
    Min-heap on a process attribute.

    Equal keys are served in the order the processes entered the queue; a
    process coming back from preemption queues behind its equals.
    """

    def __init__(self, key: Callable[[Process], int]) -> None:
        self._key = key
        self._heap: List[Tuple[int, int, Process]] = []
        self._tickets = itertools.count()

    def push(self, process: Process) -> None:
        heapq.heappush(self._heap, (self._key(process), next(self._tickets), process))

    def pop(self) -> Process:
        return heapq.heappop(self._heap)[2]

    def __len__(self) -> int:
        return len(self._heap)

    def __iter__(self) -> Iterator[Process]:
        return (entry[2] for entry in sorted(self._heap, key=lambda e: (e[0], e[1])))


class PendingJobs:
    """
    Submitted processes that are not eligible yet, ordered by start tick and
    then by submission order.
    """

    def __init__(self) -> None:
        self._heap: List[Tuple[int, int, Process]] = []
        self._seq = itertools.count()

    def add(self, process: Process) -> None:
        heapq.heappush(self._heap, (process.start, next(self._seq), process))

    def pop_eligible(self, clock: int) -> Iterator[Process]:
        while self._heap and self._heap[0][0] <= clock:
            yield heapq.heappop(self._heap)[2]

    def __len__(self) -> int:
        return len(self._heap)

    def __iter__(self) -> Iterator[Process]:
        return (entry[2] for entry in sorted(self._heap, key=lambda e: (e[0], e[1])))


class Algorithm(Enum):
    FIFO = "FIFO"
    SJF = "SJF"
    RR = "RR"
    EDF = "EDF"

    @property
    def preemptive(self) -> bool:
        return self in (Algorithm.RR, Algorithm.EDF)

    @property
    def label(self) -> str:
        return _LABELS[self]

    def ready_queue(self) -> ReadyQueue:
        return _READY_QUEUES[self]()

    @classmethod
    def parse(cls, name: str | Algorithm) -> Algorithm:
        if isinstance(name, Algorithm):
            return name
        key = str(name).strip().upper()
        key = _ALIASES.get(key, key)
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown algorithm '{name}' (use fifo, sjf, rr or edf)") from None


_ALIASES = {"FCFS": "FIFO"}

_LABELS = {
    Algorithm.FIFO: "FIFO (non-preemptive)",
    Algorithm.SJF: "SJF (non-preemptive)",
    Algorithm.RR: "Round Robin",
    Algorithm.EDF: "EDF (quantum-preemptive)",
}

_READY_QUEUES: dict[Algorithm, Callable[[], ReadyQueue]] = {
    Algorithm.FIFO: ArrivalQueue,
    Algorithm.SJF: lambda: KeyedQueue(lambda p: p.duration),
    Algorithm.RR: ArrivalQueue,
    Algorithm.EDF: lambda: KeyedQueue(lambda p: p.deadline),
}
