"""A hashed timing wheel that runs jobs after a delay."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

from godis import logger

Job = Callable[[], None]
Delay = Union[float, timedelta]


@dataclass(eq=False)
class _Task:
    key: str
    job: Job
    circle: int


def _seconds(delay: Delay) -> float:
    if isinstance(delay, timedelta):
        return delay.total_seconds()
    return float(delay)


def _run_job(job: Job) -> None:
    try:
        job()
    except Exception as exc:
        logger.error(exc)


class TimeWheel:
    """Runs jobs after a delay, with a resolution of one interval (seconds)."""

    def __init__(self, interval: float, slot_num: int) -> None:
        if interval <= 0 or slot_num <= 0:
            raise ValueError("interval and slot_num must be positive")
        self._interval = float(interval)
        self._slots: list[list[_Task]] = [[] for _ in range(slot_num)]
        self._timer: dict[str, tuple[int, _Task]] = {}
        self._pos = 0
        self._lock = threading.Lock()
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start ticking in a background thread; a running wheel is left alone."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stopping.clear()
            self._thread = threading.Thread(
                target=self._run, name="timewheel", daemon=True
            )
            self._thread.start()

    def stop(self) -> None:
        """Stop ticking; pending jobs stay in the wheel."""
        self._stopping.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def add_job(self, delay: Delay, key: str, job: Job) -> None:
        """Schedule job after delay; a job with the same non-empty key is replaced.

        A negative delay is ignored.
        """
        seconds = _seconds(delay)
        if seconds < 0:
            return
        steps = int(seconds / self._interval)
        slot_num = len(self._slots)
        with self._lock:
            pos = (self._pos + steps) % slot_num
            task = _Task(key=key, job=job, circle=steps // slot_num)
            if key:
                self._remove(key)
                self._timer[key] = (pos, task)
            self._slots[pos].append(task)

    def remove_job(self, key: str) -> None:
        """Drop a pending job; nothing happens if it is done or unknown."""
        if not key:
            return
        with self._lock:
            self._remove(key)

    def _remove(self, key: str) -> None:
        location = self._timer.pop(key, None)
        if location is None:
            return
        pos, task = location
        self._slots[pos].remove(task)

    def _run(self) -> None:
        while not self._stopping.wait(self._interval):
            self._tick()

    def _tick(self) -> None:
        due: list[_Task] = []
        with self._lock:
            slot = self._slots[self._pos]
            self._pos = (self._pos + 1) % len(self._slots)
            remaining: list[_Task] = []
            for task in slot:
                if task.circle > 0:
                    task.circle -= 1
                    remaining.append(task)
                    continue
                due.append(task)
                if task.key and self._timer.get(task.key, (None, None))[1] is task:
                    del self._timer[task.key]
            slot[:] = remaining
        for task in due:
            threading.Thread(target=_run_job, args=(task.job,), daemon=True).start()


_default_wheel = TimeWheel(1.0, 3600)


def delay(duration: Delay, key: str, job: Job) -> None:
    """Run job after waiting the given duration."""
    _default_wheel.start()
    _default_wheel.add_job(duration, key, job)


def at(when: datetime, key: str, job: Job) -> None:
    """Run job at the given time."""
    _default_wheel.start()
    _default_wheel.add_job(when - datetime.now(when.tzinfo), key, job)


def cancel(key: str) -> None:
    """Stop a pending job."""
    _default_wheel.remove_job(key)