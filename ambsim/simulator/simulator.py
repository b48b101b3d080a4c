"""
Event‑driven ambulance dispatch engine.
"""

import logging
from collections import deque
from typing import Callable, Deque, Dict, List, Optional

import numpy as np

from ambsim.simulator.ambulance import Ambulance
from ambsim.simulator.city_map import CityMap
from ambsim.simulator.errors import SimulationInvariantError
from ambsim.simulator.events import Event, EventQueue, EventType
from ambsim.simulator.patient import Hospital, Patient, PatientStatus
from ambsim.simulator.policies import NearestDispatchPolicy
from ambsim.utils.config import SimulationConfig

logger = logging.getLogger(__name__)


def build_fleet(hospitals: List[Hospital], total: int) -> List[Ambulance]:
    """Spread ``total`` ambulances evenly; the remainder goes to the first hospital."""
    per_hospital, remaining = divmod(total, len(hospitals))
    homes = [h for h in hospitals for _ in range(per_hospital)]
    homes += [hospitals[0]] * remaining
    return [Ambulance(amb_id=i, location=h.location, home_hospital_id=h.id)
            for i, h in enumerate(homes)]


class AmbulanceSimulator:
    """
    Owns the city, the fleet, the patients and the event queue.

    Time only moves forward through ``step()`` and ``advance_to()``. The
    engine itself is not thread-safe; ``SimulationService`` serialises access.
    """

    def __init__(
        self,
        city_map: CityMap,
        hospitals: List[Hospital],
        ambulances: List[Ambulance],
        *,
        dispatch_policy: Optional[NearestDispatchPolicy] = None,
        first_call_time: Optional[int] = None,
        call_interval: int = 5,
        seed: Optional[int] = None,
        retry_unassigned: bool = True,
        max_completed_patients: Optional[int] = None,
        verbose: bool = False,
    ) -> None:
        if not hospitals:
            raise SimulationInvariantError("A simulation needs at least one hospital")

        # Static inputs
        self.city_map = city_map
        self.hospitals = hospitals
        self.hospitals_by_id = {h.id: h for h in hospitals}
        self.ambulances = ambulances
        self.dispatch_policy = dispatch_policy or NearestDispatchPolicy(city_map)
        self.first_call_time = first_call_time
        self.call_interval = call_interval
        self.seed = seed
        self.retry_unassigned = retry_unassigned
        self.max_completed_patients = max_completed_patients
        self._level = logging.INFO if verbose else logging.DEBUG

        for amb in ambulances:
            self._home(amb)

        self._handlers: Dict[EventType, Callable[[Event], None]] = {
            EventType.CALL: self._ev_call,
            EventType.ARRIVE_PATIENT: self._ev_arrive_patient,
            EventType.ARRIVE_HOSPITAL: self._ev_arrive_hospital,
            EventType.RETURN_BASE: self._ev_return_base,
            EventType.NEW_PATIENTS_TRIGGER: self._ev_new_patients,
        }
        missing = set(EventType) - set(self._handlers)
        if missing:
            raise SimulationInvariantError(f"No handler for event types {sorted(m.name for m in missing)}")

        # Runtime state (initialised in .initialize())
        self.current_time = 0
        self.event_queue = EventQueue()
        self.patients: Dict[int, Patient] = {}
        self.unassigned: Dict[int, None] = {}  # insertion-ordered set of patient ids
        self.events_processed = 0
        self.archived_completed = 0
        self.archived_total_time = 0
        self._completed_ids: Deque[int] = deque()
        self._next_patient_id = 0
        self.rng = np.random.default_rng(seed)

        self.initialize()

    @classmethod
    def from_config(cls, cfg: SimulationConfig, *, verbose: bool = False) -> "AmbulanceSimulator":
        """Chain-shaped city with hospital ``i`` at node ``2i``."""
        city_map = CityMap.chain(cfg.num_nodes, cfg.edge_weight)
        hospitals = [Hospital(id=i, location=2 * i) for i in range(cfg.hospital_count)]
        return cls(
            city_map,
            hospitals,
            build_fleet(hospitals, cfg.ambulance_count),
            first_call_time=cfg.first_call_time,
            call_interval=cfg.call_interval,
            seed=cfg.seed,
            retry_unassigned=cfg.retry_unassigned,
            max_completed_patients=cfg.max_completed_patients,
            verbose=verbose,
        )

    def initialize(self) -> None:
        """Prepare simulator for a fresh run."""
        self.current_time = 0
        self.event_queue.clear()
        self.patients.clear()
        self.unassigned.clear()
        self.events_processed = 0
        self.archived_completed = 0
        self.archived_total_time = 0
        self._completed_ids.clear()
        self._next_patient_id = 0
        self.rng = np.random.default_rng(self.seed)

        for hospital in self.hospitals:
            hospital.idle_ambulance_ids.clear()
        for amb in self.ambulances:
            home = self._home(amb)
            amb.reset(home.location)
            home.park(amb.id)

        if self.first_call_time is not None:
            self._push_event(self.first_call_time, EventType.NEW_PATIENTS_TRIGGER)

        logger.log(self._level, "Initialised %d hospitals, %d ambulances, %d city nodes",
                   len(self.hospitals), len(self.ambulances), self.city_map.num_nodes)

    # ------------------------------------------------------------------
    # Driving the clock
    # ------------------------------------------------------------------

    def add_patient_call(self, call_time: int, location: int) -> Patient:
        """Register a new patient and schedule their call."""
        if location not in self.city_map.graph:
            raise ValueError(f"Patient location {location} is not a city node")
        patient = Patient(id=self._next_patient_id, call_time=call_time, location=location)
        self._next_patient_id += 1
        self.patients[patient.id] = patient
        self._push_event(call_time, EventType.CALL, patient_id=patient.id)
        return patient

    def step(self) -> Optional[Event]:
        """Process the next event regardless of its time."""
        if not self.event_queue:
            return None
        event = self.event_queue.pop()
        self._handle(event)
        return event

    def advance_to(self, target_time: int) -> int:
        """Process every event due at or before ``target_time``.

        Returns the number of events handled.
        """
        handled = 0
        for event in self.event_queue.pop_due(target_time):
            self._handle(event)
            handled += 1
        self.current_time = max(self.current_time, target_time)
        return handled

    def _handle(self, event: Event) -> None:
        self.current_time = event.time
        self._handlers[event.kind](event)
        self.events_processed += 1

    def _push_event(self, time: int, kind: EventType, patient_id: Optional[int] = None,
                    ambulance_id: Optional[int] = None) -> Event:
        if time < self.current_time:
            raise SimulationInvariantError(
                f"Cannot schedule {kind.name} at {time}, current time is {self.current_time}"
            )
        return self.event_queue.push(time, kind, patient_id, ambulance_id)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _ev_new_patients(self, event: Event) -> None:
        location = int(self.rng.integers(self.city_map.num_nodes))
        self.add_patient_call(event.time, location)
        self._push_event(event.time + self.call_interval, EventType.NEW_PATIENTS_TRIGGER)

    def _ev_call(self, event: Event) -> None:
        patient = self._patient(event.patient_id)
        logger.log(self._level, "📞 Call from patient %d at t=%d (node %d)",
                   patient.id, self.current_time, patient.location)
        if not self._dispatch_ambulance(patient):
            self.unassigned[patient.id] = None
            logger.log(self._level, "⚠️  No idle ambulance can reach patient %d, waiting", patient.id)

    def _dispatch_ambulance(self, patient: Patient) -> bool:
        available_units = [amb for amb in self.ambulances if amb.is_available()]
        if not available_units:
            return False

        choice = self.dispatch_policy.select_ambulance(available_units, patient.location)
        if choice is None:
            return False
        amb, distance = choice

        amb.dispatch_to_patient(patient.id)
        patient.ambulance_id = amb.id
        self._home(amb).release(amb.id)
        self.unassigned.pop(patient.id, None)

        self._push_event(self.current_time + distance, EventType.ARRIVE_PATIENT,
                         patient_id=patient.id, ambulance_id=amb.id)
        logger.log(self._level, "Dispatched ambulance %d to patient %d (distance %d)",
                   amb.id, patient.id, distance)
        return True

    def _dispatch_waiting(self) -> None:
        """Offer idle ambulances to stranded patients, oldest call first."""
        waiting = sorted((self.patients[pid] for pid in self.unassigned),
                         key=lambda p: (p.call_time, p.id))
        for patient in waiting:
            if not any(amb.is_available() for amb in self.ambulances):
                break
            if not patient.is_unassigned:
                self.unassigned.pop(patient.id, None)
                continue
            self._dispatch_ambulance(patient)

    def _ev_arrive_patient(self, event: Event) -> None:
        amb, patient = self._assignment(event)

        choice = self.dispatch_policy.select_hospital(self.hospitals, patient.location)
        if choice is None:
            raise SimulationInvariantError(f"No hospital reachable from node {patient.location}")
        hospital, distance = choice

        amb.arrive_at_patient(patient.location)
        patient.pick_up(self.current_time, hospital.location)
        self._push_event(self.current_time + distance, EventType.ARRIVE_HOSPITAL,
                         patient_id=patient.id, ambulance_id=amb.id)
        logger.log(self._level, "🚑 Ambulance %d picked up patient %d, heading to hospital %d",
                   amb.id, patient.id, hospital.id)

    def _ev_arrive_hospital(self, event: Event) -> None:
        amb, patient = self._assignment(event)
        home = self._home(amb)
        back_at = self.city_map.travel_time(self.current_time, patient.destination, home.location)

        amb.arrive_at_hospital(patient.destination)
        patient.deliver(self.current_time)
        self._archive_completed(patient)

        self._push_event(back_at, EventType.RETURN_BASE, ambulance_id=amb.id)
        logger.log(self._level, "🏥 Patient %d delivered at t=%d (total %d)",
                   patient.id, self.current_time, patient.total_time)

    def _ev_return_base(self, event: Event) -> None:
        amb = self._ambulance(event.ambulance_id)
        home = self._home(amb)
        amb.return_to_base(home.location)
        home.park(amb.id)
        logger.log(self._level, "Ambulance %d back at hospital %d (t=%d)",
                   amb.id, home.id, self.current_time)
        if self.retry_unassigned and self.unassigned:
            self._dispatch_waiting()

    # ------------------------------------------------------------------
    # Helper functions
    # ------------------------------------------------------------------

    def _archive_completed(self, patient: Patient) -> None:
        if self.max_completed_patients is None:
            return
        self._completed_ids.append(patient.id)
        while len(self._completed_ids) > self.max_completed_patients:
            old = self.patients.pop(self._completed_ids.popleft())
            self.archived_completed += 1
            self.archived_total_time += old.total_time

    def _patient(self, patient_id: Optional[int]) -> Patient:
        try:
            return self.patients[patient_id]
        except KeyError:
            raise SimulationInvariantError(f"Unknown patient {patient_id}") from None

    def _ambulance(self, amb_id: Optional[int]) -> Ambulance:
        if amb_id is None or not 0 <= amb_id < len(self.ambulances):
            raise SimulationInvariantError(f"Unknown ambulance {amb_id}")
        return self.ambulances[amb_id]

    def _assignment(self, event: Event):
        amb = self._ambulance(event.ambulance_id)
        patient = self._patient(event.patient_id)
        if amb.patient_id != patient.id or patient.ambulance_id != amb.id:
            raise SimulationInvariantError(
                f"Ambulance {amb.id} and patient {patient.id} are not assigned to each other"
            )
        return amb, patient

    def _home(self, amb: Ambulance) -> Hospital:
        home = self.hospitals_by_id.get(amb.home_hospital_id)
        if home is None:
            raise SimulationInvariantError(
                f"Ambulance {amb.id} has no home hospital (id {amb.home_hospital_id})"
            )
        return home

    def completed_patients(self) -> List[Patient]:
        return [p for p in self.patients.values() if p.status == PatientStatus.ARRIVED]
