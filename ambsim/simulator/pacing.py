"""
Real-time pacing: maps elapsed wall-clock time to simulated time and drives
the engine from a background thread.
"""

import logging
import math
import threading
import time
from typing import Callable, Optional

from ambsim.simulator.errors import SimulatorError
from ambsim.simulator.simulator import AmbulanceSimulator

logger = logging.getLogger(__name__)


def target_sim_time(elapsed_seconds: float, speed: int) -> int:
    """Simulated time reached after ``elapsed_seconds`` of wall-clock time."""
    return math.floor(max(elapsed_seconds, 0.0)) * speed


class PacingLoop:
    """
    Runs ``engine.advance_to`` every ``tick_seconds`` on a daemon thread.

    ``lock`` is held for the whole of each tick, so anything reading the
    engine under the same lock sees state between events, never mid-event.
    """

    def __init__(
        self,
        engine: AmbulanceSimulator,
        lock: threading.RLock,
        *,
        speed: int = 1,
        tick_seconds: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.lock = lock
        self.speed = speed
        self.tick_seconds = tick_seconds
        self.clock = clock

        self.start_instant = 0.0
        self.last_error: Optional[BaseException] = None
        self._running = threading.Event()
        self._stop_requested = threading.Event()
        self._lifecycle = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def tick(self, elapsed_seconds: float) -> int:
        """Advance the engine to the simulated time matching ``elapsed_seconds``."""
        target = target_sim_time(elapsed_seconds, self.speed)
        with self.lock:
            self.engine.advance_to(target)
        return target

    def start(self) -> bool:
        """Launch the loop. Returns False if it was already running."""
        with self._lifecycle:
            if self._running.is_set():
                return False
            with self.lock:
                self.engine.current_time = 0
            self.start_instant = self.clock()
            self.last_error = None
            self._stop_requested.clear()
            self._running.set()
            self._thread = threading.Thread(target=self._run, name="ambsim-pacing", daemon=True)
            self._thread.start()
        logger.info("Pacing loop started (speed=%d, tick=%.3fs)", self.speed, self.tick_seconds)
        return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Stop the loop and wait for its thread. Returns False if it was not running."""
        with self._lifecycle:
            thread = self._thread
            if not self._running.is_set() and thread is None:
                return False
            self._stop_requested.set()
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("Pacing loop stopped at t=%d", self.engine.current_time)
        return True

    def _run(self) -> None:
        try:
            while not self._stop_requested.is_set():
                self.tick(self.clock() - self.start_instant)
                self._stop_requested.wait(self.tick_seconds)
        except SimulatorError as exc:
            self.last_error = exc
            logger.exception("Simulation halted at t=%d", self.engine.current_time)
        finally:
            self._running.clear()
