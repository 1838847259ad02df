from datetime import UTC, date, datetime, time, timedelta

import pytest

from forum.errors import NotFoundError

DAY = date(2025, 11, 12)
NOW = datetime(2025, 11, 10, 8, 0, tzinfo=UTC)


def _at(hour, minute=0):
    return datetime.combine(DAY, time(hour, minute), tzinfo=UTC)


def _event_row(event_id=1):
    return (
        event_id, "Forum 2025", DAY, "Main hall", True,
        "manual", 1, None, None, None, None,
        3, 6, 20, 5, 2, NOW, NOW,
    )


def _stored_row(slot_id, company_id, start, confirmed=0, total=None, active=True):
    total = confirmed if total is None else total
    return (slot_id, company_id, start, start + timedelta(minutes=20), 2, active, confirmed, total)


@pytest.fixture(autouse=True)
def utc_booking_settings(monkeypatch):
    from forum.config import clear_settings_cache

    monkeypatch.setenv("BOOKING_TIMEZONE", "UTC")
    monkeypatch.delenv("BOOKING_REQUIRE_FULL_INTERVIEW_IN_RANGE", raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestRegenerateEventSlots:

    @pytest.mark.asyncio
    async def test_fresh_event_inserts_grid_for_each_company(self, mock_db):
        conn = mock_db([
            [_event_row()],
            [(1, DAY, time(9, 0), time(10, 0))],
            [(7,), (8,)],
            [],
            [],
        ])

        from forum.db import regenerate_event_slots

        result = await regenerate_event_slots(1)

        assert result["success"] is True
        assert result["slots_created"] == 6
        assert result["companies_processed"] == 2
        assert result["time_ranges_processed"] == 1
        assert "FOR UPDATE" in conn.executed[0][0]

        (_, params), = conn.statements("INSERT INTO event_slots")
        assert len(params) == 6
        assert (1, 7, _at(9, 0), _at(9, 20), 2) in params
        assert (1, 8, _at(9, 50), _at(10, 10), 2) in params

    @pytest.mark.asyncio
    async def test_no_time_ranges_reports_why(self, mock_db):
        conn = mock_db([[_event_row()], [], [(7,)], [], []])

        from forum.db import regenerate_event_slots
        from forum.db.slots import NO_SLOTS_MESSAGE

        result = await regenerate_event_slots(1)

        assert result["success"] is True
        assert result["slots_created"] == 0
        assert result["message"] == NO_SLOTS_MESSAGE
        assert conn.statements("INSERT INTO event_slots") == []

    @pytest.mark.asyncio
    async def test_removed_range_deactivates_booked_slot(self, mock_db):
        # The 09:00-09:30 range was deleted; slot 11 holds a confirmed booking.
        conn = mock_db([
            [_event_row()],
            [(2, DAY, time(14, 0), time(14, 30))],
            [(7,)],
            [],
            [
                _stored_row(10, 7, _at(9, 0)),
                _stored_row(11, 7, _at(9, 25), confirmed=1),
                _stored_row(12, 7, _at(14, 0)),
            ],
        ])

        from forum.db import regenerate_event_slots

        result = await regenerate_event_slots(1)

        assert result["slots_removed"] == 1
        assert result["slots_deactivated"] == 1
        assert result["slots_created"] == 1

        (_, delete_params), = conn.statements("DELETE FROM event_slots")
        assert delete_params == ([10],)
        (_, deactivate_params), = conn.statements("SET is_active = FALSE")
        assert deactivate_params == ([11],)
        (_, insert_params), = conn.statements("INSERT INTO event_slots")
        assert insert_params == [(1, 7, _at(14, 25), _at(14, 45), 2)]

    @pytest.mark.asyncio
    async def test_unchanged_configuration_writes_nothing(self, mock_db):
        conn = mock_db([
            [_event_row()],
            [(1, DAY, time(9, 0), time(9, 30))],
            [(7,)],
            [],
            [_stored_row(10, 7, _at(9, 0)), _stored_row(11, 7, _at(9, 25), confirmed=2)],
        ])

        from forum.db import regenerate_event_slots

        result = await regenerate_event_slots(1)

        assert result["slots_created"] == 0
        assert result["slots_removed"] == 0
        assert len(conn.executed) == 5

    @pytest.mark.asyncio
    async def test_unknown_event_raises(self, mock_db):
        mock_db([[]])

        from forum.db import regenerate_event_slots

        with pytest.raises(NotFoundError):
            await regenerate_event_slots(999)


class TestListAvailableSlots:

    @pytest.mark.asyncio
    async def test_maps_rows_with_remaining_capacity(self, mock_db):
        conn = mock_db([[
            (10, _at(9, 0), _at(9, 20), 2, 1, "Forum 2025", DAY),
            (11, _at(9, 25), _at(9, 45), 2, 0, "Forum 2025", DAY),
        ]])

        from forum.db import list_available_slots

        slots = await list_available_slots(50, now=NOW)

        assert [s["slot_id"] for s in slots] == [10, 11]
        assert slots[0]["available_count"] == 1
        assert slots[1]["available_count"] == 2
        assert slots[0]["event_name"] == "Forum 2025"
        assert conn.executed[0][1] == (50, NOW)
