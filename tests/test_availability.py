from datetime import date

from roster.domain.snapshots import UnavailabilityWindow
from roster.services.availability import AvailabilityIndex, find_unavailability, is_unavailable

def _w(vid, start, end, reason=None):
    return UnavailabilityWindow(volunteer_id=vid, start_date=start, end_date=end, reason=reason)

def test_window_bounds_are_inclusive():
    windows = [_w("v1", date(2025, 10, 1), date(2025, 10, 5))]
    assert is_unavailable("v1", date(2025, 10, 1), windows)
    assert is_unavailable("v1", date(2025, 10, 5), windows)
    assert not is_unavailable("v1", date(2025, 10, 6), windows)
    assert not is_unavailable("v2", date(2025, 10, 3), windows)

def test_overlapping_windows_pick_earliest_start():
    later = _w("v1", date(2025, 10, 3), date(2025, 10, 10), "viagem")
    earlier = _w("v1", date(2025, 10, 1), date(2025, 10, 4), "plantão")
    assert find_unavailability("v1", date(2025, 10, 3), [later, earlier]) is earlier

def test_index_matches_linear_scan():
    windows = [
        _w("v1", date(2025, 10, 1), date(2025, 10, 2)),
        _w("v2", date(2025, 10, 5), date(2025, 10, 5)),
    ]
    index = AvailabilityIndex(windows)
    assert index.is_unavailable("v2", date(2025, 10, 5))
    assert not index.is_unavailable("v1", date(2025, 10, 5))
    assert index.blocking_window("v3", date(2025, 10, 5)) is None
