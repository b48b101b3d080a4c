"""
Tests for the dispatch engine: assignment, the ambulance cycle and
patient generation.
"""
from collections import Counter

import pytest

from conftest import make_engine

from ambsim.simulator.ambulance import Ambulance, AmbulanceStatus
from ambsim.simulator.city_map import CityMap
from ambsim.simulator.errors import SimulationInvariantError
from ambsim.simulator.events import EventType
from ambsim.simulator.patient import Hospital, PatientStatus
from ambsim.simulator.simulator import AmbulanceSimulator, build_fleet
from ambsim.utils.config import load_config


def test_fleet_split_puts_remainder_on_first_hospital():
    hospitals = [Hospital(id=i, location=2 * i) for i in range(3)]
    fleet = build_fleet(hospitals, 10)
    assert Counter(a.home_hospital_id for a in fleet) == {0: 4, 1: 3, 2: 3}
    assert [a.id for a in fleet] == list(range(10))
    assert all(a.location == hospitals[a.home_hospital_id].location for a in fleet)


def test_from_config_builds_chain_city():
    engine = AmbulanceSimulator.from_config(load_config({"hospitals": 4, "ambulances": 5}))
    assert engine.city_map.num_nodes == 8
    assert [h.location for h in engine.hospitals] == [0, 2, 4, 6]
    assert engine.hospitals[0].idle_ambulance_ids == [0, 4]
    assert engine.city_map.shortest_distance(0, 7) == 35


def test_end_to_end_delivery(chain_engine):
    engine = chain_engine
    patient = engine.add_patient_call(5, 4)

    engine.advance_to(5)
    amb = engine.ambulances[2]  # first ambulance of the hospital at node 2
    assert patient.ambulance_id == 2
    assert amb.status == AmbulanceStatus.TO_PATIENT
    assert amb.patient_id == patient.id
    head = engine.event_queue.peek()
    assert (head.time, head.kind) == (15, EventType.ARRIVE_PATIENT)
    assert engine.hospitals[1].idle_ambulance_ids == [3]

    engine.advance_to(15)
    assert amb.status == AmbulanceStatus.TO_HOSPITAL
    assert amb.location == 4
    assert patient.status == PatientStatus.PICKED_UP
    assert patient.pickup_time == 15
    assert patient.destination == 2
    head = engine.event_queue.peek()
    assert (head.time, head.kind) == (25, EventType.ARRIVE_HOSPITAL)

    engine.advance_to(25)
    assert patient.status == PatientStatus.ARRIVED
    assert patient.arrive_time == 25
    assert patient.total_time == 20
    assert amb.status == AmbulanceStatus.IDLE
    assert amb.location == 2
    assert amb.patient_id is None
    assert engine.hospitals[1].idle_ambulance_ids == [3, 2]
    assert len(engine.event_queue) == 0
    assert engine.current_time == 25
    assert list(amb.history) == [
        AmbulanceStatus.IDLE,
        AmbulanceStatus.TO_PATIENT,
        AmbulanceStatus.TO_HOSPITAL,
        AmbulanceStatus.RETURNING,
        AmbulanceStatus.IDLE,
    ]


def test_call_schedules_arrival_after_travel_distance():
    engine = make_engine(hospital_nodes=(0,), ambulances=1)
    engine.advance_to(3)
    engine.add_patient_call(7, 3)

    engine.advance_to(7)
    head = engine.event_queue.peek()
    assert head.kind == EventType.ARRIVE_PATIENT
    assert head.time == 7 + 15


def test_patient_waits_when_no_ambulance_is_idle_and_retry_disabled():
    engine = make_engine(hospital_nodes=(0,), ambulances=1, retry_unassigned=False)
    first = engine.add_patient_call(5, 1)
    second = engine.add_patient_call(5, 2)

    engine.advance_to(100)
    assert first.status == PatientStatus.ARRIVED
    assert second.status == PatientStatus.WAITING
    assert second.ambulance_id is None
    assert list(engine.unassigned) == [second.id]
    assert len(engine.event_queue) == 0


def test_waiting_patient_is_served_when_an_ambulance_returns():
    engine = make_engine(hospital_nodes=(0,), ambulances=1)
    first = engine.add_patient_call(5, 1)
    second = engine.add_patient_call(5, 2)

    engine.advance_to(15)
    assert first.total_time == 10
    assert second.ambulance_id == 0

    engine.advance_to(100)
    assert second.status == PatientStatus.ARRIVED
    assert second.pickup_time == 25
    assert second.total_time == 30
    assert not engine.unassigned


def test_unreachable_patient_is_not_assigned():
    city = CityMap(4)
    city.add_edge(0, 1, 5)
    hospitals = [Hospital(id=0, location=0)]
    engine = AmbulanceSimulator(city, hospitals, build_fleet(hospitals, 1))

    patient = engine.add_patient_call(2, 3)
    engine.advance_to(10)
    assert patient.status == PatientStatus.WAITING
    assert patient.ambulance_id is None
    assert engine.ambulances[0].status == AmbulanceStatus.IDLE


def test_nearest_idle_ambulance_wins_and_ties_go_to_fleet_order(chain_engine):
    engine = chain_engine
    near_first = engine.add_patient_call(5, 1)  # ambulances 0,1 at distance 5; 2,3 at 5
    engine.advance_to(5)
    assert near_first.ambulance_id == 0

    busy_elsewhere = engine.add_patient_call(6, 5)  # node 2 is closest
    engine.advance_to(6)
    assert busy_elsewhere.ambulance_id == 2


def test_same_time_calls_are_processed_in_a_fixed_order():
    def run_once():
        engine = make_engine(hospital_nodes=(0,), ambulances=1)
        engine.add_patient_call(5, 5)
        engine.add_patient_call(5, 1)
        engine.advance_to(5)
        return {pid: p.ambulance_id for pid, p in engine.patients.items()}

    results = [run_once() for _ in range(5)]
    assert results[0] == {0: 0, 1: None}
    assert all(r == results[0] for r in results)


def test_generated_calls_catch_up_with_their_own_timestamps():
    engine = AmbulanceSimulator.from_config(load_config({"seed": 7}))
    engine.advance_to(17)

    assert [p.call_time for p in engine.patients.values()] == [5, 10, 15]
    assert all(0 <= p.location < engine.city_map.num_nodes for p in engine.patients.values())
    triggers = [e for e in engine.event_queue if e.kind == EventType.NEW_PATIENTS_TRIGGER]
    assert [e.time for e in triggers] == [20]
    assert engine.current_time == 17


def test_seeded_runs_are_reproducible():
    def locations():
        engine = AmbulanceSimulator.from_config(load_config({"seed": 11}))
        engine.advance_to(200)
        return [p.location for p in engine.patients.values()]

    assert locations() == locations()


def test_every_event_type_has_a_handler(chain_engine):
    assert set(chain_engine._handlers) == set(EventType)


def test_ambulance_without_home_is_rejected():
    city = CityMap.chain(6, 5)
    with pytest.raises(SimulationInvariantError):
        AmbulanceSimulator(city, [Hospital(id=0, location=0)],
                           [Ambulance(amb_id=0, location=0, home_hospital_id=9)])


def test_missing_home_hospital_mid_trip_is_an_error(chain_engine):
    engine = chain_engine
    engine.add_patient_call(5, 4)
    engine.advance_to(15)
    del engine.hospitals_by_id[1]
    with pytest.raises(SimulationInvariantError):
        engine.advance_to(25)


def test_event_for_unknown_patient_is_an_error(chain_engine):
    chain_engine.event_queue.push(3, EventType.CALL, patient_id=42)
    with pytest.raises(SimulationInvariantError):
        chain_engine.advance_to(3)


def test_completed_patients_beyond_cap_are_archived():
    engine = make_engine(hospital_nodes=(0,), ambulances=1, max_completed_patients=1)
    engine.add_patient_call(5, 1)
    engine.add_patient_call(5, 2)
    engine.advance_to(100)

    assert list(engine.patients) == [1]
    assert engine.archived_completed == 1
    assert engine.archived_total_time == 10


def test_initialize_resets_run(chain_engine):
    engine = chain_engine
    engine.add_patient_call(5, 4)
    engine.advance_to(10)
    engine.initialize()

    assert engine.current_time == 0
    assert not engine.patients
    assert len(engine.event_queue) == 0
    assert all(a.status == AmbulanceStatus.IDLE for a in engine.ambulances)
    assert engine.hospitals[1].idle_ambulance_ids == [2, 3]


def test_step_processes_one_event(chain_engine):
    engine = chain_engine
    engine.add_patient_call(5, 4)
    event = engine.step()
    assert event.kind == EventType.CALL
    assert engine.current_time == 5
    assert engine.events_processed == 1


def test_retry_skips_patients_already_picked_up_elsewhere():
    engine = make_engine(hospital_nodes=(0,), ambulances=1)
    stranded = engine.add_patient_call(5, 3)
    engine.advance_to(5)
    engine.add_patient_call(6, 1)
    engine.advance_to(6)

    # A stale entry for an assigned patient must not trigger a second dispatch
    engine.unassigned[stranded.id] = None
    engine.advance_to(200)
    assert stranded.status == PatientStatus.ARRIVED
    assert all(p.status == PatientStatus.ARRIVED for p in engine.patients.values())
    assert not engine.unassigned
