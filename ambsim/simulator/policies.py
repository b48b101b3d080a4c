from typing import Iterable, Optional, Tuple, TypeVar

from ambsim.simulator.ambulance import Ambulance
from ambsim.simulator.city_map import UNREACHABLE, CityMap
from ambsim.simulator.patient import Hospital

T = TypeVar("T")

# ---------------------------------------------------------------------------
#  Baseline Policies
# ---------------------------------------------------------------------------

class NearestDispatchPolicy:
    """Picks whatever is closest by shortest road distance.

    Ties go to the candidate that comes first in iteration order, and
    unreachable candidates are never picked.
    """

    def __init__(self, city_map: CityMap):
        self.city_map = city_map

    def _nearest(self, origin: int, candidates: Iterable[T], location_of) -> Optional[Tuple[T, int]]:
        best = None
        best_distance = None
        for candidate in candidates:
            distance = self.city_map.shortest_distance(location_of(candidate), origin)
            if distance is UNREACHABLE:
                continue
            if best_distance is None or distance < best_distance:
                best, best_distance = candidate, distance
        if best is None:
            return None
        return best, best_distance

    def select_ambulance(self, available_ambulances: Iterable[Ambulance],
                         patient_location: int) -> Optional[Tuple[Ambulance, int]]:
        """Select the nearest available ambulance to the patient."""
        return self._nearest(patient_location, available_ambulances, lambda amb: amb.location)

    def select_hospital(self, hospitals: Iterable[Hospital],
                        patient_location: int) -> Optional[Tuple[Hospital, int]]:
        """Select the hospital closest to where the patient was picked up."""
        return self._nearest(patient_location, hospitals, lambda h: h.location)
