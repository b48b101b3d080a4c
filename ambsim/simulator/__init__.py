"""
Ambulance Dispatch Simulator Package

This package models emergency medical services in a small city: patients call
in over time, the nearest idle ambulance is dispatched, carries the patient to
the nearest hospital and returns to its home base.

Main Components:
- CityMap: Weighted city graph and shortest distances
- EventQueue: Time-ordered events with a stable tie-break
- AmbulanceSimulator: Core dispatch engine
- PacingLoop: Drives the engine in (scaled) real time
- SimulationService: init/start/stop/status/summary for a single run
"""

from ambsim.simulator.ambulance import Ambulance, AmbulanceStatus
from ambsim.simulator.city_map import UNREACHABLE, CityMap
from ambsim.simulator.errors import SimulationInvariantError, SimulatorError, UnreachableError
from ambsim.simulator.events import Event, EventQueue, EventType
from ambsim.simulator.pacing import PacingLoop, target_sim_time
from ambsim.simulator.patient import Hospital, Patient, PatientStatus
from ambsim.simulator.policies import NearestDispatchPolicy
from ambsim.simulator.service import SimulationService
from ambsim.simulator.simulator import AmbulanceSimulator, build_fleet
from ambsim.simulator.status import StatusReporter

# This allows "from ambsim.simulator import *" to import the main classes
__all__ = [
    'AmbulanceSimulator',
    'Ambulance',
    'AmbulanceStatus',
    'CityMap',
    'Event',
    'EventQueue',
    'EventType',
    'Hospital',
    'NearestDispatchPolicy',
    'PacingLoop',
    'Patient',
    'PatientStatus',
    'SimulationInvariantError',
    'SimulationService',
    'SimulatorError',
    'StatusReporter',
    'UNREACHABLE',
    'UnreachableError',
    'build_fleet',
    'target_sim_time',
]
