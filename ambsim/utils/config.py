"""
Simulation configuration.

User settings arrive as a plain mapping (from JSON bodies or the command line)
using either camelCase or snake_case keys. They are merged onto the
``SimulationConfig`` schema with OmegaConf, which rejects values of the wrong
type, and then range-checked by ``validate_config``.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from ambsim.utils.logging import log_call


class ConfigError(ValueError):
    """Raised for configuration that cannot drive a simulation."""


@dataclass
class SimulationConfig:
    hospital_count: int = 2
    ambulance_count: int = 4
    edge_weight: int = 5
    speed: int = 1  # simulated units per wall-clock second
    first_call_time: int = 5
    call_interval: int = 5
    tick_seconds: float = 0.2
    seed: Optional[int] = None
    retry_unassigned: bool = True
    max_completed_patients: Optional[int] = None  # None keeps every patient

    @property
    def num_nodes(self) -> int:
        return max(2 * self.hospital_count, 6)


# Accepted spellings for each field
ALIASES = {
    "hospitals": "hospital_count",
    "hospitalCount": "hospital_count",
    "ambulances": "ambulance_count",
    "ambulanceCount": "ambulance_count",
    "edgeWeight": "edge_weight",
    "firstCallTime": "first_call_time",
    "callInterval": "call_interval",
    "tickSeconds": "tick_seconds",
    "retryUnassigned": "retry_unassigned",
    "maxCompletedPatients": "max_completed_patients",
}


def _normalise_keys(overrides: Mapping[str, Any]) -> dict:
    normalised = {}
    for key, value in overrides.items():
        name = ALIASES.get(key, key)
        if name in normalised:
            raise ConfigError(f"Option '{name}' given more than once (as '{key}')")
        normalised[name] = value
    return normalised


@log_call
def load_config(overrides: Optional[Mapping[str, Any]] = None) -> SimulationConfig:
    """Build a validated ``SimulationConfig`` from user overrides."""
    schema = OmegaConf.structured(SimulationConfig)
    try:
        merged = OmegaConf.merge(schema, _normalise_keys(overrides or {}))
        cfg = OmegaConf.to_object(merged)
    except OmegaConfBaseException as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    validate_config(cfg)
    return cfg


@log_call
def validate_config(cfg: SimulationConfig) -> None:
    """Range checks OmegaConf's type checks do not cover."""

    if cfg.hospital_count <= 0:
        raise ConfigError("hospital_count must be positive")
    if cfg.ambulance_count <= 0:
        raise ConfigError("ambulance_count must be positive")
    if cfg.edge_weight <= 0:
        raise ConfigError("edge_weight must be positive")
    if cfg.speed <= 0:
        raise ConfigError("speed must be positive")
    if cfg.first_call_time < 0:
        raise ConfigError("first_call_time must not be negative")
    if cfg.call_interval <= 0:
        raise ConfigError("call_interval must be positive")
    if cfg.tick_seconds <= 0:
        raise ConfigError("tick_seconds must be positive")
    if cfg.seed is not None and cfg.seed < 0:
        raise ConfigError("seed must not be negative")
    if cfg.max_completed_patients is not None and cfg.max_completed_patients < 0:
        raise ConfigError("max_completed_patients must not be negative")
