"""Event kinds and the time-ordered event queue."""

import heapq
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


class EventType(str, Enum):
    CALL = "call"
    ARRIVE_PATIENT = "arrive_patient"
    ARRIVE_HOSPITAL = "arrive_hospital"
    RETURN_BASE = "return_base"
    NEW_PATIENTS_TRIGGER = "new_patients_trigger"


@dataclass(order=True)
class Event:
    """A scheduled state change. Ordered by (time, seq)."""

    time: int
    seq: int
    kind: EventType = field(compare=False)
    patient_id: Optional[int] = field(compare=False, default=None)
    ambulance_id: Optional[int] = field(compare=False, default=None)


class EventQueue:
    """
    Min-heap of events.

    Events with equal times come out in the order they were pushed, so a run
    with identical inputs always processes them identically.
    """

    def __init__(self) -> None:
        self._heap: List[Event] = []
        self._counter = 0

    def push(
        self,
        time: int,
        kind: EventType,
        patient_id: Optional[int] = None,
        ambulance_id: Optional[int] = None,
    ) -> Event:
        event = Event(time, self._counter, kind, patient_id, ambulance_id)
        self._counter += 1
        heapq.heappush(self._heap, event)
        return event

    def peek(self) -> Optional[Event]:
        return self._heap[0] if self._heap else None

    def pop(self) -> Event:
        return heapq.heappop(self._heap)

    def pop_due(self, target_time: int) -> Iterator[Event]:
        """Pop events while the head is due at or before ``target_time``.

        Events pushed while iterating are picked up if they are also due.
        """
        while self._heap and self._heap[0].time <= target_time:
            yield heapq.heappop(self._heap)

    def clear(self) -> None:
        self._heap.clear()
        self._counter = 0

    def __len__(self) -> int:
        return len(self._heap)

    def __iter__(self) -> Iterator[Event]:
        return iter(sorted(self._heap))
