import random
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from villa_availability import occupancy
from villa_availability.dates import add_days, days_diff, iter_days
from villa_availability.occupancy import (
    build_occupancy,
    is_date_bookable,
    is_night_free,
    is_range_bookable,
)


def test_empty_input():
    occ = build_occupancy([], [])
    assert occ.occupied == frozenset()
    assert occ.free_first_days == frozenset()
    assert occ.periods == ()

    occ = build_occupancy(None, None)
    assert occ.occupied == frozenset()


def test_blocked_record_shapes():
    records = [
        "2025-06-10",
        {"blocked_date": "2025-06-11T00:00:00.000Z"},
        {"date": "2025-06-12"},
        {"blocked_date": None, "date": "2025-06-13"},
        SimpleNamespace(blocked_date="2025-06-14"),
        SimpleNamespace(date="2025-06-15"),
        date(2025, 6, 16),
        datetime(2025, 6, 17, 9, 30),
    ]
    assert occupancy.normalize_blocked_dates(records) == {
        "2025-06-10",
        "2025-06-11",
        "2025-06-12",
        "2025-06-13",
        "2025-06-14",
        "2025-06-15",
        "2025-06-16",
        "2025-06-17",
    }


def test_malformed_blocked_records_are_skipped():
    records = [None, 42, {"reason": "owner"}, "soon", "2025-02-30", "2025-06-10"]
    assert occupancy.normalize_blocked_dates(records) == {"2025-06-10"}


def test_booking_record_shapes():
    records = [
        {"check_in": "2025-07-01", "check_out": "2025-07-05"},
        {"check_in_date": "2025-08-01T00:00:00Z", "check_out_date": "2025-08-03T00:00:00Z"},
    ]
    bookings = occupancy.normalize_bookings(records)
    assert [(b.check_in, b.check_out) for b in bookings] == [
        ("2025-07-01", "2025-07-05"),
        ("2025-08-01", "2025-08-03"),
    ]


def test_incomplete_or_inverted_bookings_are_skipped():
    records = [
        {"check_in": "2025-07-01"},
        {"check_out": "2025-07-05"},
        {"check_in": "2025-07-10", "check_out": "2025-07-08"},
        {"check_in": "2025-07-10", "check_out": "2025-07-10"},
        "2025-07-01",
    ]
    occ = build_occupancy([], records)
    assert occ.bookings == ()
    assert occ.occupied == frozenset()


def test_scenario_a_single_blocked_day():
    occ = build_occupancy(["2025-06-10"], [])
    assert is_date_bookable("2025-06-10", occ) is False
    assert is_date_bookable("2025-06-09", occ) is True
    assert is_date_bookable("2025-06-11", occ) is True


def test_scenario_b_single_booking():
    occ = build_occupancy([], [{"check_in": "2025-07-01", "check_out": "2025-07-05"}])
    assert occ.occupied == {"2025-07-01", "2025-07-02", "2025-07-03", "2025-07-04", "2025-07-05"}
    assert len(occ.periods) == 1
    assert occ.periods[0].first_day == "2025-07-01"
    assert occ.periods[0].last_day == "2025-07-05"
    assert occ.free_first_days == {"2025-07-01"}

    # the departure day is bookable through the exclusive end
    assert is_date_bookable("2025-07-05", occ) is True
    assert is_date_bookable("2025-07-03", occ) is False


def test_free_first_day_overrides_booking():
    occ = build_occupancy(
        [],
        [
            {"check_in": "2025-07-01", "check_out": "2025-07-05"},
            {"check_in": "2025-07-10", "check_out": "2025-07-12"},
        ],
    )
    assert occ.free_first_days == {"2025-07-01", "2025-07-10"}
    assert is_date_bookable("2025-07-10", occ) is True
    assert is_date_bookable("2025-07-11", occ) is False


def test_back_to_back_bookings_form_one_period():
    occ = build_occupancy(
        [],
        [
            {"check_in": "2025-07-01", "check_out": "2025-07-05"},
            {"check_in": "2025-07-05", "check_out": "2025-07-08"},
        ],
    )
    assert len(occ.periods) == 1
    assert occ.free_first_days == {"2025-07-01"}
    assert is_date_bookable("2025-07-05", occ) is False
    assert is_date_bookable("2025-07-08", occ) is True


def test_blocked_dates_extend_booking_periods():
    occ = build_occupancy(["2025-07-06", "2025-07-20"], [{"check_in": "2025-07-01", "check_out": "2025-07-05"}])
    assert [(p.first_day, p.last_day) for p in occ.periods] == [
        ("2025-07-01", "2025-07-06"),
        ("2025-07-20", "2025-07-20"),
    ]
    assert occ.free_first_days == {"2025-07-01", "2025-07-20"}
    assert is_date_bookable("2025-07-20", occ) is False


def test_range_bookable_exclusive_end():
    occ = build_occupancy([], [{"check_in": "2025-07-10", "check_out": "2025-07-15"}])
    assert is_range_bookable("2025-07-05", "2025-07-10", occ) is True
    assert is_range_bookable("2025-07-15", "2025-07-20", occ) is True
    assert is_range_bookable("2025-07-05", "2025-07-12", occ) is False


def test_is_night_free_is_strict():
    occ = build_occupancy([], [{"check_in": "2025-07-10", "check_out": "2025-07-15"}])
    assert is_date_bookable("2025-07-10", occ) is True
    assert is_night_free("2025-07-10", occ) is False
    assert is_night_free("2025-07-15", occ) is True


def test_predicate_rejects_non_dates():
    occ = build_occupancy([], [])
    with pytest.raises(ValueError):
        is_date_bookable(None, occ)


def test_occupancy_from_property_payload():
    occ = occupancy.occupancy_from_property(
        {
            "blockedDates": [{"blocked_date": "2025-06-10"}],
            "bookings": [{"check_in_date": "2025-06-20", "check_out_date": "2025-06-22"}],
        }
    )
    assert occ.blocked_days == {"2025-06-10"}
    assert occ.booked_nights == {"2025-06-20", "2025-06-21"}

    occ = occupancy.occupancy_from_property({"blocked_dates": ["2025-06-11"]})
    assert occ.blocked_days == {"2025-06-11"}


def _random_inputs(seed):
    rng = random.Random(seed)
    base = "2025-01-01"
    blocked = [add_days(base, rng.randrange(90)) for _ in range(rng.randrange(15))]
    bookings = []
    for _ in range(rng.randrange(6)):
        start = add_days(base, rng.randrange(90))
        bookings.append({"check_in": start, "check_out": add_days(start, rng.randrange(1, 8))})
    return blocked, bookings


@pytest.mark.parametrize("seed", range(25))
def test_periods_are_maximal_and_cover_union(seed):
    blocked, bookings = _random_inputs(seed)
    occ = build_occupancy(blocked, bookings)

    covered = [day for period in occ.periods for day in period.days]
    assert sorted(covered) == sorted(occ.occupied)
    assert len(covered) == len(set(covered))

    for period in occ.periods:
        assert all(days_diff(a, b) == 1 for a, b in zip(period.days, period.days[1:]))
    for earlier, later in zip(occ.periods, occ.periods[1:]):
        assert days_diff(earlier.last_day, later.first_day) > 1

    assert occ.free_first_days <= occ.occupied
    assert occ.free_first_days == {period.first_day for period in occ.periods}


@pytest.mark.parametrize("seed", range(25))
def test_range_bookable_matches_single_days(seed):
    blocked, bookings = _random_inputs(seed)
    occ = build_occupancy(blocked, bookings)
    rng = random.Random(seed)
    for _ in range(10):
        start = add_days("2025-01-01", rng.randrange(90))
        end = add_days(start, rng.randrange(1, 10))
        expected = all(is_date_bookable(day, occ) for day in iter_days(start, end))
        assert is_range_bookable(start, end, occ) is expected


@pytest.mark.parametrize("seed", range(10))
def test_free_first_days_bookable_unless_explicitly_blocked(seed):
    blocked, bookings = _random_inputs(seed)
    occ = build_occupancy(blocked, bookings)
    for day in occ.free_first_days - occ.blocked_days:
        assert is_date_bookable(day, occ) is True


def test_build_occupancy_is_idempotent():
    blocked, bookings = _random_inputs(7)
    assert build_occupancy(blocked, bookings) == build_occupancy(blocked, bookings)
