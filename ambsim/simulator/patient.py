"""Patients and hospitals."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ambsim.simulator.errors import SimulationInvariantError


class PatientStatus(Enum):
    WAITING = 0
    PICKED_UP = 1
    ARRIVED = 2

    @property
    def label(self) -> str:
        return _PATIENT_LABELS[self]


_PATIENT_LABELS = {
    PatientStatus.WAITING: "Waiting for rescue",
    PatientStatus.PICKED_UP: "Picked up",
    PatientStatus.ARRIVED: "Arrived at hospital",
}


@dataclass
class Patient:
    """A caller waiting for, riding in, or delivered by an ambulance."""

    id: int
    call_time: int
    location: int
    destination: Optional[int] = None  # hospital node, set at pickup
    status: PatientStatus = PatientStatus.WAITING
    ambulance_id: Optional[int] = None
    pickup_time: Optional[int] = None
    arrive_time: Optional[int] = None

    @property
    def total_time(self) -> Optional[int]:
        """Call-to-delivery time; only defined once the patient has arrived."""
        if self.status != PatientStatus.ARRIVED:
            return None
        return self.arrive_time - self.call_time

    @property
    def is_unassigned(self) -> bool:
        return self.status == PatientStatus.WAITING and self.ambulance_id is None

    def pick_up(self, current_time: int, destination: int) -> None:
        if self.status != PatientStatus.WAITING:
            raise SimulationInvariantError(f"Patient {self.id} picked up while {self.status.name}")
        self.status = PatientStatus.PICKED_UP
        self.pickup_time = current_time
        self.destination = destination

    def deliver(self, current_time: int) -> None:
        if self.status != PatientStatus.PICKED_UP:
            raise SimulationInvariantError(f"Patient {self.id} delivered while {self.status.name}")
        self.status = PatientStatus.ARRIVED
        self.arrive_time = current_time


@dataclass
class Hospital:
    id: int
    location: int
    # Bookkeeping only; dispatch scans the whole fleet
    idle_ambulance_ids: List[int] = field(default_factory=list)

    def park(self, amb_id: int) -> None:
        if amb_id not in self.idle_ambulance_ids:
            self.idle_ambulance_ids.append(amb_id)

    def release(self, amb_id: int) -> None:
        if amb_id in self.idle_ambulance_ids:
            self.idle_ambulance_ids.remove(amb_id)
