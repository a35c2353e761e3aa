"""
Tick scheduler package.

A discrete-time CPU scheduling engine (FIFO, SJF, Round-Robin and EDF) that
advances one logical tick at a time and reports process state changes to
observers, plus a small command-line driver for replaying workloads.
"""

from .models import Process, ProcessObserver, ProcessValidationError
from .policies import Algorithm
from .scheduler import Scheduler, SchedulerConfig, SchedulerListener
from .simulation import run_algorithm, simulate

__all__ = [
    "Algorithm",
    "Process",
    "ProcessObserver",
    "ProcessValidationError",
    "Scheduler",
    "SchedulerConfig",
    "SchedulerListener",
    "run_algorithm",
    "simulate",
]
