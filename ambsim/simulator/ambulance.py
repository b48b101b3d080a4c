from collections import deque
from enum import Enum
from typing import Deque, Optional

from ambsim.simulator.errors import SimulationInvariantError

HISTORY_LENGTH = 32


class AmbulanceStatus(Enum):
    """ Enum representing all possible states of an ambulance. """
    IDLE = 0  # Parked at its home hospital, available for dispatch
    TO_PATIENT = 1  # En‑route to a waiting patient
    TO_HOSPITAL = 2  # Carrying the patient to the nearest hospital
    RETURNING = 3  # Driving back to its home hospital

    @property
    def label(self) -> str:
        return _AMBULANCE_LABELS[self]


_AMBULANCE_LABELS = {
    AmbulanceStatus.IDLE: "Idle",
    AmbulanceStatus.TO_PATIENT: "En route to patient",
    AmbulanceStatus.TO_HOSPITAL: "Transporting to hospital",
    AmbulanceStatus.RETURNING: "Returning to base",
}


class Ambulance:
    """
    Represents an ambulance unit with its current state and properties.

    ``patient_id`` is set exactly while the ambulance is ``TO_PATIENT`` or
    ``TO_HOSPITAL``; the transition methods below keep it that way.
    """
    def __init__(self, amb_id: int, location: int, home_hospital_id: int) -> None:
        self.id = amb_id
        self.location = location
        self.home_hospital_id = home_hospital_id
        self.status = AmbulanceStatus.IDLE
        self.patient_id: Optional[int] = None

        # Most recent statuses entered, oldest first
        self.history: Deque[AmbulanceStatus] = deque([AmbulanceStatus.IDLE], maxlen=HISTORY_LENGTH)

        # Statistics
        self.trips_completed = 0

    # ---------------------------------------------------------------------
    # State transitions (DISPATCH CYCLE)
    # ---------------------------------------------------------------------

    def dispatch_to_patient(self, patient_id: int) -> None:
        """Move from IDLE → TO_PATIENT."""
        self._expect(AmbulanceStatus.IDLE)
        self.patient_id = patient_id
        self._enter(AmbulanceStatus.TO_PATIENT)

    def arrive_at_patient(self, patient_location: int) -> None:
        """Move from TO_PATIENT → TO_HOSPITAL."""
        self._expect(AmbulanceStatus.TO_PATIENT)
        self.location = patient_location
        self._enter(AmbulanceStatus.TO_HOSPITAL)

    def arrive_at_hospital(self, hospital_location: int) -> None:
        """Move from TO_HOSPITAL → RETURNING. The patient is handed over here."""
        self._expect(AmbulanceStatus.TO_HOSPITAL)
        self.location = hospital_location
        self.patient_id = None
        self._enter(AmbulanceStatus.RETURNING)

    def return_to_base(self, home_location: int) -> None:
        """Move from RETURNING → IDLE."""
        self._expect(AmbulanceStatus.RETURNING)
        self.location = home_location
        self.trips_completed += 1
        self._enter(AmbulanceStatus.IDLE)

    # ------------------------------------------------------------------
    # Helper functions
    # ------------------------------------------------------------------
    def is_available(self) -> bool:
        return self.status == AmbulanceStatus.IDLE

    def reset(self, home_location: int) -> None:
        """Hard reset between simulation runs."""
        self.location = home_location
        self.status = AmbulanceStatus.IDLE
        self.patient_id = None
        self.history = deque([AmbulanceStatus.IDLE], maxlen=HISTORY_LENGTH)
        self.trips_completed = 0

    def _expect(self, status: AmbulanceStatus) -> None:
        if self.status != status:
            raise SimulationInvariantError(
                f"Ambulance {self.id} is {self.status.name}, expected {status.name}"
            )

    def _enter(self, status: AmbulanceStatus) -> None:
        self.status = status
        self.history.append(status)

    def __repr__(self) -> str:
        return (f"Ambulance(id={self.id}, location={self.location}, "
                f"status={self.status.name}, patient_id={self.patient_id})")
