"""Exceptions raised by the dispatch simulator."""


class SimulatorError(Exception):
    """Base class for simulator failures."""


class UnreachableError(SimulatorError):
    """A travel time was requested between two disconnected nodes."""

    def __init__(self, source: int, target: int) -> None:
        super().__init__(f"No route from node {source} to node {target}")
        self.source = source
        self.target = target


class SimulationInvariantError(SimulatorError):
    """Internal state broke an invariant (e.g. an ambulance without a home)."""
