"""Read-only snapshots of a running simulation."""

import threading
from typing import Any, Dict

import numpy as np
import pandas as pd

from ambsim.simulator.simulator import AmbulanceSimulator

PATIENT_COLUMNS = [
    "id", "call_time", "location", "destination", "state", "ambulance_id",
    "pickup_time", "arrive_time", "total_time",
]


class StatusReporter:
    """Builds plain dict/DataFrame views of the engine under its lock."""

    def __init__(self, engine: AmbulanceSimulator, lock: threading.RLock) -> None:
        self.engine = engine
        self.lock = lock

    def status(self) -> Dict[str, Any]:
        """Current time plus every ambulance, patient and hospital."""
        with self.lock:
            engine = self.engine
            return {
                "time": engine.current_time,
                "ambulances": [
                    {
                        "id": amb.id,
                        "location": amb.location,
                        "state": amb.status.name,
                        "stateDesc": amb.status.label,
                        "hospitalId": amb.home_hospital_id,
                        "patientId": amb.patient_id,
                        "trips": amb.trips_completed,
                    }
                    for amb in engine.ambulances
                ],
                "patients": [
                    {
                        "id": p.id,
                        "location": p.location,
                        "state": p.status.name,
                        "stateDesc": p.status.label,
                        "callTime": p.call_time,
                        "assignedAmbulance": p.ambulance_id,
                        "totalTime": p.total_time,
                    }
                    for p in engine.patients.values()
                ],
                "hospitals": [
                    {
                        "id": h.id,
                        "location": h.location,
                        "idleAmbulances": list(h.idle_ambulance_ids),
                    }
                    for h in engine.hospitals
                ],
            }

    def summary(self) -> Dict[str, Any]:
        """Number of delivered patients and their mean call-to-delivery time."""
        with self.lock:
            engine = self.engine
            times = [p.total_time for p in engine.completed_patients()]
            completed = len(times) + engine.archived_completed
            if completed == 0:
                return {"completed": 0, "avgTime": 0}
            if engine.archived_completed:
                avg = (sum(times) + engine.archived_total_time) / completed
            else:
                avg = float(np.mean(times))
            return {"completed": completed, "avgTime": avg}

    def patients_frame(self) -> pd.DataFrame:
        """One row per retained patient, in call order."""
        with self.lock:
            rows = [
                {
                    "id": p.id,
                    "call_time": p.call_time,
                    "location": p.location,
                    "destination": p.destination,
                    "state": p.status.name,
                    "ambulance_id": p.ambulance_id,
                    "pickup_time": p.pickup_time,
                    "arrive_time": p.arrive_time,
                    "total_time": p.total_time,
                }
                for p in self.engine.patients.values()
            ]
        return pd.DataFrame(rows, columns=PATIENT_COLUMNS)
