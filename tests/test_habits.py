import json
from datetime import datetime

import pytest

from pomodorohabits.habits import (
    add_habit,
    decode_snapshot,
    delete_habit,
    encode_snapshot,
    new_habit,
    refresh_streaks,
    toggle_habit,
)
from pomodorohabits.results import InvalidInputError, PersistenceReadError

ANCHOR = "2024-01-03"


@pytest.fixture()
def habits():
    read = new_habit("Read", habit_id="read", created_at="2024-01-01T08:00:00+00:00").value
    walk = new_habit("Walk", habit_id="walk", created_at="2024-01-01T08:00:00+00:00", period="weekly", target=3).value
    return (read, walk)


def test_new_habit_starts_empty():
    habit = new_habit("  Meditate  ").value
    assert habit.name == "Meditate"
    assert habit.completed_dates == ()
    assert habit.current_streak == habit.longest_streak == 0
    assert habit.id
    assert habit.created_at


def test_new_habit_validation():
    assert isinstance(new_habit("   ").error, InvalidInputError)
    assert isinstance(new_habit("Run", target=0).error, InvalidInputError)
    assert isinstance(new_habit("Run", period="hourly").error, InvalidInputError)


def test_add_rejects_duplicate_id(habits):
    again = new_habit("Read again", habit_id="read").value
    assert not add_habit(habits, again).ok


def test_toggle_updates_only_that_habit(habits):
    updated = toggle_habit(habits, "read", "2024-01-03", anchor=ANCHOR).value
    read, walk = updated
    assert read.completed_dates == ("2024-01-03",)
    assert read.current_streak == 1
    assert walk is habits[1]
    assert habits[0].completed_dates == ()


def test_toggle_unknown_habit(habits):
    assert isinstance(toggle_habit(habits, "nope", ANCHOR, anchor=ANCHOR).error, InvalidInputError)


def test_toggle_bad_date_is_a_no_op(habits):
    result = toggle_habit(habits, "read", "Jan 3", anchor=ANCHOR)
    assert not result.ok


def test_delete(habits):
    remaining = delete_habit(habits, "read").value
    assert [h.id for h in remaining] == ["walk"]
    assert not delete_habit(remaining, "read").ok


def test_refresh_streaks_moves_with_anchor(habits):
    updated = toggle_habit(habits, "read", "2024-01-03", anchor=ANCHOR).value
    later = refresh_streaks(updated, "2024-01-10").value
    assert later[0].current_streak == 0
    assert later[0].longest_streak == 1


def test_refresh_streaks_rejects_bad_anchor(habits):
    assert isinstance(refresh_streaks(habits, "Jan 10").error, InvalidInputError)


def test_toggle_with_datetime_survives_a_reload(habits):
    updated = toggle_habit(habits, "read", datetime(2024, 1, 3, 9, 30), anchor=ANCHOR).value
    assert updated[0].completed_dates == ("2024-01-03",)
    assert updated[0].is_completed_on(datetime(2024, 1, 3, 22, 0))
    reloaded = decode_snapshot(encode_snapshot(updated), anchor=ANCHOR).value
    assert reloaded[0].completed_dates == ("2024-01-03",)


def test_snapshot_has_expected_fields(habits):
    updated = toggle_habit(habits, "read", "2024-01-03", anchor=ANCHOR).value
    records = json.loads(encode_snapshot(updated))
    assert records[0] == {
        "id": "read",
        "name": "Read",
        "createdAt": "2024-01-01T08:00:00+00:00",
        "completedDates": ["2024-01-03"],
        "currentStreak": 1,
        "longestStreak": 1,
        "description": "",
        "target": 1,
        "period": "daily",
        "color": "#6366f1",
    }


def test_decode_rejects_bad_anchor():
    assert isinstance(decode_snapshot(b"[]", anchor="03/01/2024").error, InvalidInputError)


def test_decode_recomputes_tampered_streaks():
    data = json.dumps(
        [
            {
                "id": "read",
                "name": "Read",
                "createdAt": "2024-01-01T08:00:00+00:00",
                "completedDates": ["2024-01-02", "2024-01-01", "2024-01-02"],
                "currentStreak": 99,
                "longestStreak": 99,
            }
        ]
    ).encode("utf-8")
    (habit,) = decode_snapshot(data, anchor=ANCHOR).value
    assert habit.completed_dates == ("2024-01-01", "2024-01-02")
    assert habit.current_streak == 2
    assert habit.longest_streak == 2
    assert habit.period == "daily"


@pytest.mark.parametrize(
    "payload",
    [
        b"not json {{",
        b'{"habits": []}',
        b'[{"id": "x", "name": "X"}]',
        b'[{"id": "x", "name": "X", "createdAt": "t", "completedDates": ["01/02/2024"]}]',
        b'[{"id": "x", "name": "X", "createdAt": "t"}, {"id": "x", "name": "Y", "createdAt": "t"}]',
        b"\xff\xfe",
    ],
)
def test_decode_rejects_malformed_snapshots(payload):
    result = decode_snapshot(payload, anchor=ANCHOR)
    assert isinstance(result.error, PersistenceReadError)
