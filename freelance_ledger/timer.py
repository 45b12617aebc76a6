"""Live work timer.

A Timer measures active working time for one project. It moves through
``idle -> running <-> paused -> stopped``; paused intervals are not counted.
While running, a daemon ticker thread reports the elapsed seconds to an
optional callback so a UI can refresh its display.

Stopping a timer yields a TimeEntryDraft that is confirmed through the
time-entry form before anything is persisted.

Example:
    with Timer(project_id=3, on_tick=print_elapsed) as timer:
        timer.start()
        ...
        draft = timer.stop("Website Redesign")
"""

import datetime as dt
import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Hashable, Optional, Tuple

from freelance_ledger.calculators.time_utils import seconds_to_decimal_hours
from freelance_ledger.exceptions import TimerStateError
from freelance_ledger.utils.converters import format_time

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 1.0

Clock = Callable[[], dt.datetime]
TickCallback = Callable[[float], None]


class TimerState(str, Enum):
    """Lifecycle state of a timer."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True)
class TimeEntryDraft:
    """Pre-filled time entry produced by stopping a timer.

    Attributes:
        date: Date the timer was started
        start_time: Start of the tracked period
        end_time: End of the tracked period
        duration: Active hours (pauses excluded), rounded to 2 decimals
        description: Default description, ``"Work on {project}"``
        project_id: Project the time belongs to, if known
    """

    date: dt.date
    start_time: dt.time
    end_time: dt.time
    duration: Decimal
    description: str
    project_id: Optional[int] = None

    def to_form_data(self) -> dict:
        """Render the draft as time-entry form input."""
        return {
            "date": self.date.isoformat(),
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
            "duration": self.duration,
            "description": self.description,
            "project_id": self.project_id,
        }


class Timer:
    """Start/pause/resume/stop work timer with a background ticker.

    The clock is injectable for tests; it must return wall-clock datetimes.
    ``cancel()`` stops the ticker and may be called any number of times.
    Used as a context manager, the ticker is cancelled however the block
    exits.
    """

    def __init__(
        self,
        project_id: Optional[int] = None,
        on_tick: Optional[TickCallback] = None,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
        clock: Optional[Clock] = None,
    ):
        if tick_seconds <= 0:
            raise ValueError(f"tick_seconds must be positive, got {tick_seconds}")
        self.project_id = project_id
        self.on_tick = on_tick
        self.tick_seconds = tick_seconds
        self._clock: Clock = clock or dt.datetime.now

        self._lock = threading.RLock()
        self._state = TimerState.IDLE
        self._started_at: Optional[dt.datetime] = None
        self._resumed_at: Optional[dt.datetime] = None
        self._accumulated = 0.0

        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_active(self) -> bool:
        """Whether the timer is running or paused."""
        return self._state in (TimerState.RUNNING, TimerState.PAUSED)

    @property
    def started_at(self) -> Optional[dt.datetime]:
        return self._started_at

    @property
    def elapsed_seconds(self) -> float:
        """Active seconds so far, excluding paused intervals."""
        with self._lock:
            elapsed = self._accumulated
            if self._state == TimerState.RUNNING and self._resumed_at is not None:
                elapsed += (self._clock() - self._resumed_at).total_seconds()
            return max(elapsed, 0.0)

    def start(self) -> None:
        """Start timing.

        Raises:
            TimerStateError: If the timer is already running or paused
        """
        with self._lock:
            if self.is_active:
                raise TimerStateError(f"Timer is already {self._state.value}")
            now = self._clock()
            self._started_at = now
            self._resumed_at = now
            self._accumulated = 0.0
            self._state = TimerState.RUNNING
            self._start_ticker()
        logger.debug(f"Timer started for project {self.project_id} at {now:%H:%M:%S}")

    def pause(self) -> None:
        """Freeze the elapsed counter and stop ticking.

        Raises:
            TimerStateError: If the timer is not running
        """
        with self._lock:
            if self._state != TimerState.RUNNING:
                raise TimerStateError(
                    f"Cannot pause a timer that is {self._state.value}"
                )
            self._accumulated = self.elapsed_seconds
            self._resumed_at = None
            self._state = TimerState.PAUSED
            ticker = self._detach_ticker()
        self._halt_ticker(*ticker)
        logger.debug(f"Timer paused after {self._accumulated:.0f}s")

    def resume(self) -> None:
        """Continue timing after a pause.

        Raises:
            TimerStateError: If the timer is not paused
        """
        with self._lock:
            if self._state != TimerState.PAUSED:
                raise TimerStateError(
                    f"Cannot resume a timer that is {self._state.value}"
                )
            self._resumed_at = self._clock()
            self._state = TimerState.RUNNING
            self._start_ticker()
        logger.debug("Timer resumed")

    def stop(self, project_name: str) -> TimeEntryDraft:
        """Stop timing and build a time entry draft.

        The elapsed counter is reset; the draft keeps the measured duration.

        Args:
            project_name: Used for the default description

        Returns:
            TimeEntryDraft for the tracked period

        Raises:
            TimerStateError: If the timer was never started or already stopped
        """
        with self._lock:
            if not self.is_active:
                raise TimerStateError(
                    f"Cannot stop a timer that is {self._state.value}"
                )
            end = self._clock()
            active_seconds = self.elapsed_seconds
            start = self._started_at
            self._state = TimerState.STOPPED
            self._accumulated = 0.0
            self._resumed_at = None
            ticker = self._detach_ticker()
        self._halt_ticker(*ticker)

        draft = TimeEntryDraft(
            date=start.date(),
            start_time=start.time().replace(second=0, microsecond=0),
            end_time=end.time().replace(second=0, microsecond=0),
            duration=seconds_to_decimal_hours(active_seconds),
            description=f"Work on {project_name}",
            project_id=self.project_id,
        )
        logger.info(
            f"Timer stopped for project {self.project_id}: {draft.duration}h "
            f"({format_time(draft.start_time)}-{format_time(draft.end_time)})"
        )
        return draft

    def cancel(self) -> None:
        """Stop the ticker and discard an active measurement. Idempotent."""
        with self._lock:
            if self.is_active:
                logger.debug("Timer cancelled before stop; discarding elapsed time")
                self._state = TimerState.IDLE
                self._accumulated = 0.0
                self._resumed_at = None
            ticker = self._detach_ticker()
        self._halt_ticker(*ticker)

    def __enter__(self) -> "Timer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cancel()

    def _start_ticker(self) -> None:
        if self.on_tick is None:
            return
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._tick_loop,
            args=(stop_event,),
            name=f"timer-tick-{self.project_id}",
            daemon=True,
        )
        self._stop_event = stop_event
        self._thread = thread
        thread.start()

    def _detach_ticker(
        self,
    ) -> Tuple[Optional[threading.Event], Optional[threading.Thread]]:
        """Take ownership of the current ticker; the caller holds the lock."""
        ticker = (self._stop_event, self._thread)
        self._stop_event = None
        self._thread = None
        return ticker

    def _halt_ticker(
        self,
        stop_event: Optional[threading.Event],
        thread: Optional[threading.Thread],
    ) -> None:
        # Called without the lock so the tick callback can still read state
        if stop_event is None:
            return
        stop_event.set()
        # The tick callback itself may pause or stop the timer
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.tick_seconds * 2)

    def _tick_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.tick_seconds):
            try:
                self.on_tick(self.elapsed_seconds)
            except Exception as e:
                logger.error(f"Timer tick callback failed: {type(e).__name__}: {e}")
                stop_event.set()


class TimerRegistry:
    """Keeps at most one active timer per key (normally the project id).

    Example:
        >>> registry = TimerRegistry()
        >>> timer = registry.start(3)
        >>> registry.start(3)
        Traceback (most recent call last):
        ...
        freelance_ledger.exceptions.TimerStateError: A timer is already active for 3
    """

    def __init__(self, timer_factory: Callable[..., Timer] = Timer):
        self._timer_factory = timer_factory
        self._timers: Dict[Hashable, Timer] = {}
        self._lock = threading.Lock()

    def start(self, key: Hashable, **timer_kwargs) -> Timer:
        """Create and start a timer for a key.

        Raises:
            TimerStateError: If the key already has an active timer
        """
        with self._lock:
            existing = self._timers.get(key)
            if existing is not None and existing.is_active:
                raise TimerStateError(f"A timer is already active for {key}")
            timer_kwargs.setdefault("project_id", key if isinstance(key, int) else None)
            timer = self._timer_factory(**timer_kwargs)
            self._timers[key] = timer
        timer.start()
        return timer

    def get(self, key: Hashable) -> Optional[Timer]:
        return self._timers.get(key)

    def active_keys(self) -> list:
        with self._lock:
            return [key for key, timer in self._timers.items() if timer.is_active]

    def stop(self, key: Hashable, project_name: str) -> TimeEntryDraft:
        """Stop the timer for a key and forget it.

        Raises:
            TimerStateError: If no timer is active for the key
        """
        with self._lock:
            timer = self._timers.pop(key, None)
        if timer is None:
            raise TimerStateError(f"No timer is active for {key}")
        return timer.stop(project_name)

    def cancel_all(self) -> None:
        """Cancel every timer (used on shutdown)."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
