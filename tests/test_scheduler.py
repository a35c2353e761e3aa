import pytest

from tick_scheduler.models import Process, ProcessObserver
from tick_scheduler.policies import Algorithm
from tick_scheduler.scheduler import Scheduler, SchedulerListener


class Trace(ProcessObserver, SchedulerListener):
    """Records every notification together with the scheduler clock."""

    def __init__(self):
        self.scheduler = None
        self.events = []

    def _log(self, name, process):
        self.events.append((self.scheduler.clock, name, process.id))

    def on_start(self, process):
        self._log("start", process)

    def on_tick(self, process):
        self._log("tick", process)

    def on_finish(self, process):
        self._log("finish", process)

    def on_enter_ready_queue(self, process):
        self._log("ready", process)

    def on_enter_execution(self, process):
        self._log("enter", process)

    def on_leave_execution(self, process):
        self._log("leave", process)


def _scheduler(algorithm, quantum=1, overload=0):
    trace = Trace()
    scheduler = Scheduler(algorithm, quantum=quantum, overload=overload, listener=trace)
    trace.scheduler = scheduler
    return scheduler, trace


def _run(scheduler, ticks):
    ran = []
    for _ in range(ticks):
        p = scheduler.tick()
        ran.append(None if p is None else p.id)
    return ran


def test_single_fifo_process():
    scheduler, trace = _scheduler("FIFO", quantum=7)
    p = Process(1, start=0, duration=3, deadline=5, observer=trace)
    scheduler.submit(p)

    assert scheduler.executing is p
    assert _run(scheduler, 3) == [1, 1, 1]
    assert p.elapsed == 3
    assert [e for e in trace.events if e[1] == "tick"] == [(1, "tick", 1), (2, "tick", 1), (3, "tick", 1)]
    assert [e for e in trace.events if e[1] in ("start", "finish")] == [(1, "start", 1), (3, "finish", 1)]
    assert trace.events[-1] == (3, "leave", 1)
    assert scheduler.is_idle()


def test_round_robin_rotation():
    scheduler, trace = _scheduler("RR", quantum=2, overload=0)
    p1 = Process(1, start=0, duration=3, deadline=10, observer=trace)
    p2 = Process(2, start=0, duration=3, deadline=10, observer=trace)
    scheduler.submit(p1, p2)

    assert _run(scheduler, 6) == [1, 1, 2, 2, 1, 2]
    assert [e for e in trace.events if e[1] == "finish"] == [(5, "finish", 1), (6, "finish", 2)]
    assert scheduler.is_idle()


def test_future_process_stays_pending():
    scheduler, trace = _scheduler("FIFO")
    p = Process("late", start=5, duration=1, deadline=9, observer=trace)
    scheduler.submit(p)

    _run(scheduler, 4)
    assert trace.events == []
    assert scheduler.pending == [p]
    assert scheduler.ready == []

    assert scheduler.tick() is p
    assert trace.events == [
        (5, "ready", "late"),
        (5, "enter", "late"),
        (5, "start", "late"),
        (5, "tick", "late"),
        (5, "finish", "late"),
        (5, "leave", "late"),
    ]


def test_overload_freezes_slot_after_preemption():
    scheduler, trace = _scheduler("RR", quantum=2, overload=2)
    scheduler.submit(
        Process(1, start=0, duration=3, deadline=10),
        Process(2, start=0, duration=2, deadline=10),
    )

    assert _run(scheduler, 7) == [1, 1, None, None, 2, 2, 1]
    assert scheduler.is_idle()


def test_preemption_applies_to_lone_process():
    scheduler, trace = _scheduler("RR", quantum=3, overload=1)
    scheduler.submit(Process("P", start=0, duration=7, deadline=20))

    assert _run(scheduler, 9) == ["P", "P", "P", None, "P", "P", "P", None, "P"]
    leaves = [e[0] for e in trace.events if e[1] == "leave"]
    assert leaves == [3, 7, 9]


def test_admission_continues_during_overload():
    scheduler, trace = _scheduler("RR", quantum=1, overload=3)
    p1 = Process(1, start=0, duration=2, deadline=10)
    p2 = Process(2, start=2, duration=1, deadline=10)
    scheduler.submit(p1, p2)

    scheduler.tick()
    assert scheduler.executing is None
    assert scheduler.current_overload == 3

    scheduler.tick()
    assert scheduler.executing is None
    assert scheduler.ready == [p1, p2]
    assert (2, "ready", 2) in trace.events


def test_fifo_never_preempts():
    scheduler, trace = _scheduler("FIFO", quantum=1)
    scheduler.submit(
        Process(1, start=0, duration=4, deadline=10),
        Process(2, start=1, duration=1, deadline=3),
    )

    assert _run(scheduler, 5) == [1, 1, 1, 1, 2]
    leaves = [e for e in trace.events if e[1] == "leave"]
    assert leaves == [(4, "leave", 1), (5, "leave", 2)]


def test_sjf_picks_shortest_ready_job():
    scheduler, _ = _scheduler("SJF")
    scheduler.submit(
        Process(1, start=0, duration=5, deadline=30),
        Process(2, start=1, duration=4, deadline=30),
        Process(3, start=1, duration=2, deadline=30),
    )

    assert _run(scheduler, 11) == [1] * 5 + [3] * 2 + [2] * 4


def test_sjf_ties_follow_admission_order():
    scheduler, _ = _scheduler("SJF")
    scheduler.submit(
        Process(1, start=0, duration=1, deadline=30),
        Process(2, start=1, duration=2, deadline=30),
        Process(3, start=1, duration=2, deadline=30),
    )

    assert _run(scheduler, 5) == [1, 2, 2, 3, 3]


def test_edf_picks_earliest_deadline_at_quantum_boundary():
    scheduler, _ = _scheduler("EDF", quantum=2)
    scheduler.submit(
        Process(1, start=0, duration=3, deadline=20),
        Process(2, start=1, duration=2, deadline=5),
    )

    assert _run(scheduler, 5) == [1, 1, 2, 2, 1]


def test_edf_equal_deadlines_rotate():
    scheduler, _ = _scheduler("EDF", quantum=1)
    scheduler.submit(
        Process(1, start=0, duration=2, deadline=10),
        Process(2, start=0, duration=2, deadline=10),
    )

    assert _run(scheduler, 4) == [1, 2, 1, 2]


def test_submit_between_ticks_is_admitted_immediately():
    scheduler, trace = _scheduler("FIFO")
    p1 = Process(1, start=0, duration=3, deadline=10)
    scheduler.submit(p1)
    _run(scheduler, 2)

    p2 = Process(2, start=0, duration=1, deadline=10)
    scheduler.submit(p2)
    assert (2, "ready", 2) in trace.events
    assert scheduler.ready == [p2]
    assert _run(scheduler, 2) == [1, 2]


def test_tick_on_empty_scheduler():
    scheduler = Scheduler(Algorithm.RR, quantum=2)
    assert scheduler.tick() is None
    assert scheduler.clock == 1
    assert scheduler.is_idle()


@pytest.mark.parametrize("algorithm", ["FIFO", "SJF", "RR", "EDF"])
def test_every_process_in_exactly_one_place(algorithm):
    processes = [
        Process("A", start=0, duration=4, deadline=9),
        Process("B", start=1, duration=2, deadline=4),
        Process("C", start=1, duration=3, deadline=15),
        Process("D", start=6, duration=1, deadline=8),
    ]
    scheduler = Scheduler(algorithm, quantum=2, overload=1)
    scheduler.submit(*processes)
    last_elapsed = {p.id: 0 for p in processes}

    for _ in range(40):
        scheduler.tick()
        pending = [p.id for p in scheduler.pending]
        ready = [p.id for p in scheduler.ready]
        running = [scheduler.executing.id] if scheduler.executing else []
        finished = [p.id for p in processes if p.is_finished()]
        places = pending + ready + running + finished
        assert sorted(places) == ["A", "B", "C", "D"]

        for p in processes:
            assert last_elapsed[p.id] <= p.elapsed <= p.duration
            last_elapsed[p.id] = p.elapsed

    assert scheduler.is_idle()


@pytest.mark.parametrize("algorithm", ["FIFO", "SJF"])
def test_non_preemptive_runs_to_completion(algorithm):
    scheduler, trace = _scheduler(algorithm, quantum=1)
    scheduler.submit(
        Process("A", start=0, duration=3, deadline=9),
        Process("B", start=0, duration=2, deadline=9),
        Process("C", start=2, duration=1, deadline=9),
    )
    _run(scheduler, 6)

    running = None
    for _, name, pid in trace.events:
        if name == "enter":
            assert running is None
            running = pid
        elif name == "leave":
            assert pid == running
            running = None
    assert scheduler.is_idle()


def test_invalid_configuration():
    with pytest.raises(ValueError):
        Scheduler("RR", quantum=0)
    with pytest.raises(ValueError):
        Scheduler("EDF", quantum=2, overload=-1)
    with pytest.raises(ValueError):
        Scheduler("lottery")


def test_algorithm_parse():
    assert Algorithm.parse("fcfs") is Algorithm.FIFO
    assert Algorithm.parse("rr") is Algorithm.RR
    assert Algorithm.parse(Algorithm.EDF) is Algorithm.EDF
    assert Algorithm.RR.preemptive and Algorithm.EDF.preemptive
    assert not Algorithm.FIFO.preemptive and not Algorithm.SJF.preemptive


def test_configuration_defaults():
    scheduler = Scheduler("RR")
    assert scheduler.config.quantum == 1
    assert scheduler.config.overload == 0
    assert type(scheduler.listener) is SchedulerListener
