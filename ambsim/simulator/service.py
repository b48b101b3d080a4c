"""
Lifecycle owner for one simulation: ``init`` / ``start`` / ``stop`` /
``status`` / ``summary``.

Construct one ``SimulationService`` and hand it to whatever serves requests.
All engine state sits behind a single re-entrant lock shared by the pacing
loop (the only writer) and the status reporter (readers).
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Mapping, Optional

from ambsim.simulator.errors import SimulatorError
from ambsim.simulator.pacing import PacingLoop
from ambsim.simulator.simulator import AmbulanceSimulator
from ambsim.simulator.status import StatusReporter
from ambsim.utils.config import SimulationConfig, load_config
from ambsim.utils.logging import log_call

logger = logging.getLogger(__name__)


class SimulationService:
    def __init__(self, *, clock: Callable[[], float] = time.monotonic, verbose: bool = False) -> None:
        self.clock = clock
        self.verbose = verbose
        self.lock = threading.RLock()
        self._lifecycle = threading.Lock()

        self.config: Optional[SimulationConfig] = None
        self.engine: Optional[AmbulanceSimulator] = None
        self.loop: Optional[PacingLoop] = None
        self.reporter: Optional[StatusReporter] = None

    @property
    def running(self) -> bool:
        return self.loop is not None and self.loop.running

    @property
    def last_error(self) -> Optional[BaseException]:
        return self.loop.last_error if self.loop is not None else None

    @log_call
    def init(self, overrides: Optional[Mapping[str, Any]] = None) -> SimulationConfig:
        """Discard any previous run and build a fresh one.

        The configuration is validated and the new engine built before
        anything is torn down, so a bad request leaves the current
        simulation untouched.
        """
        cfg = load_config(overrides)
        engine = AmbulanceSimulator.from_config(cfg, verbose=self.verbose)
        with self._lifecycle:
            if self.loop is not None:
                self.loop.stop()
            with self.lock:
                self.config = cfg
                self.engine = engine
                self.loop = PacingLoop(engine, self.lock, speed=cfg.speed,
                                       tick_seconds=cfg.tick_seconds, clock=self.clock)
                self.reporter = StatusReporter(engine, self.lock)
        logger.info("Simulation initialised: %d hospitals, %d ambulances",
                    cfg.hospital_count, cfg.ambulance_count)
        return cfg

    @log_call
    def start(self) -> bool:
        with self._lifecycle:
            if self.loop is None:
                raise SimulatorError("Simulation is not initialised; call init() first")
            return self.loop.start()

    @log_call
    def stop(self) -> bool:
        with self._lifecycle:
            if self.loop is None:
                return False
            return self.loop.stop()

    @log_call
    def restart(self, overrides: Optional[Mapping[str, Any]] = None) -> SimulationConfig:
        cfg = self.init(overrides)
        self.start()
        return cfg

    def status(self) -> Dict[str, Any]:
        reporter = self.reporter
        if reporter is None:
            return {"time": 0, "ambulances": [], "patients": [], "hospitals": []}
        return reporter.status()

    def summary(self) -> Dict[str, Any]:
        reporter = self.reporter
        if reporter is None:
            return {"completed": 0, "avgTime": 0}
        return reporter.summary()
