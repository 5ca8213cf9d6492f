import uuid
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

EVENT_ID = "6f1c1a52-4f3e-4d7e-9a34-3f3b9c1d2e10"
NOW = datetime(2024, 5, 1, tzinfo=UTC)


class MockAsyncCursor:

    def __init__(self, rows=None, rowcount=0):
        self.rows = rows or []
        self.rowcount = rowcount
        self._index = 0

    async def fetchone(self):
        if self.rows:
            return self.rows[0]
        return None

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._index >= len(self.rows):
            raise StopAsyncIteration
        row = self.rows[self._index]
        self._index += 1
        return row


class MockTransaction:

    def __init__(self, conn):
        self.conn = conn

    async def __aenter__(self):
        self.conn.in_transaction = True
        return self

    async def __aexit__(self, *args):
        self.conn.in_transaction = False


class MockAsyncConnection:
    """Replays one cursor per ``execute`` call and records what ran."""

    def __init__(self, cursor_results=None):
        self.cursor_results = cursor_results or []
        self.executed = []
        self.in_transaction = False
        self._call_index = 0

    async def execute(self, sql, params=None):
        self.executed.append((sql, params, self.in_transaction))
        if self._call_index < len(self.cursor_results):
            result = self.cursor_results[self._call_index]
            self._call_index += 1
            if isinstance(result, int):
                return MockAsyncCursor(rowcount=result)
            return MockAsyncCursor(result)
        return MockAsyncCursor([])

    def transaction(self):
        return MockTransaction(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


@pytest.fixture
def mock_psycopg():
    with patch("calendarly.db.core.psycopg.AsyncConnection") as mock:
        yield mock


def use_connection(mock_psycopg, cursor_results=None) -> MockAsyncConnection:
    conn = MockAsyncConnection(cursor_results)

    async def connect(*args, **kwargs):
        return conn

    mock_psycopg.connect = connect
    return conn


def _event_row(event_id=EVENT_ID, name="Intro call", is_active=True):
    return (uuid.UUID(event_id), name, None, 30, is_active, "user_123", NOW, NOW)


class TestEvents:
    @pytest.mark.asyncio
    async def test_list_for_user_scoped_and_newest_first(self, mock_psycopg):
        conn = use_connection(mock_psycopg, [[_event_row(), _event_row(name="Second")]])

        from calendarly.db import events_list_for_user

        events = await events_list_for_user("user_123")

        assert [e["name"] for e in events] == ["Intro call", "Second"]
        assert events[0]["id"] == EVENT_ID
        sql, params, _ = conn.executed[0]
        assert "WHERE clerk_user_id = %s" in sql
        assert "ORDER BY created_at DESC" in sql
        assert "is_active" not in sql.split("WHERE")[1]
        assert params == ("user_123",)

    @pytest.mark.asyncio
    async def test_list_active_only(self, mock_psycopg):
        conn = use_connection(mock_psycopg, [[]])

        from calendarly.db import events_list_for_user

        assert await events_list_for_user("user_123", active_only=True) == []
        assert "AND is_active" in conn.executed[0][0]

    @pytest.mark.asyncio
    async def test_get_requires_owner(self, mock_psycopg):
        conn = use_connection(mock_psycopg, [[_event_row()]])

        from calendarly.db import events_get

        event = await events_get(EVENT_ID, "user_123")

        assert event["duration_in_minutes"] == 30
        assert conn.executed[0][1] == (EVENT_ID, "user_123")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, mock_psycopg):
        use_connection(mock_psycopg, [[]])

        from calendarly.db import events_get

        assert await events_get(EVENT_ID, "someone_else") is None

    @pytest.mark.asyncio
    async def test_create_inserts_one_row(self, mock_psycopg):
        conn = use_connection(mock_psycopg)

        from calendarly.db import events_create

        event = await events_create(clerk_user_id="user_123", name="Intro call", duration_in_minutes=45)

        assert len(conn.executed) == 1
        sql, params, _ = conn.executed[0]
        assert sql.lstrip().startswith("INSERT INTO events")
        assert params[0] == event["id"]
        assert params[1:6] == ("Intro call", None, 45, True, "user_123")
        uuid.UUID(event["id"])

    @pytest.mark.asyncio
    async def test_update_reports_affected_rows(self, mock_psycopg):
        conn = use_connection(mock_psycopg, [0])

        from calendarly.db import events_update

        affected = await events_update(EVENT_ID, "someone_else", name="x", duration_in_minutes=10)

        assert affected == 0
        sql, params, _ = conn.executed[0]
        assert "WHERE id = %s AND clerk_user_id = %s" in sql
        assert params[-2:] == (EVENT_ID, "someone_else")

    @pytest.mark.asyncio
    async def test_delete_reports_affected_rows(self, mock_psycopg):
        conn = use_connection(mock_psycopg, [1])

        from calendarly.db import events_delete

        assert await events_delete(EVENT_ID, "user_123") == 1
        assert conn.executed[0][1] == (EVENT_ID, "user_123")


class TestSchedules:
    @pytest.mark.asyncio
    async def test_get_for_user_with_availabilities(self, mock_psycopg):
        schedule_id = uuid.uuid4()
        use_connection(mock_psycopg, [
            [(schedule_id, "Europe/Berlin", "user_123", NOW, NOW)],
            [("monday", "9:00", "12:00"), ("friday", "13:00", "17:00")],
        ])

        from calendarly.db import schedule_get_for_user

        schedule = await schedule_get_for_user("user_123")

        assert schedule["id"] == str(schedule_id)
        assert schedule["timezone"] == "Europe/Berlin"
        assert schedule["availabilities"] == [
            {"day_of_week": "monday", "start_time": "9:00", "end_time": "12:00"},
            {"day_of_week": "friday", "start_time": "13:00", "end_time": "17:00"},
        ]

    @pytest.mark.asyncio
    async def test_get_for_user_without_schedule(self, mock_psycopg):
        conn = use_connection(mock_psycopg, [[]])

        from calendarly.db import schedule_get_for_user

        assert await schedule_get_for_user("user_123") is None
        assert len(conn.executed) == 1

    @pytest.mark.asyncio
    async def test_save_upserts_and_replaces_in_one_transaction(self, mock_psycopg):
        schedule_id = uuid.uuid4()
        conn = use_connection(mock_psycopg, [[(schedule_id,)]])

        from calendarly.db import schedule_save

        result = await schedule_save(
            clerk_user_id="user_123",
            timezone="UTC",
            availabilities=[
                {"day_of_week": "monday", "start_time": "9:00", "end_time": "12:00"},
                {"day_of_week": "tuesday", "start_time": "9:00", "end_time": "12:00"},
            ],
        )

        assert result == str(schedule_id)
        statements = [sql for sql, _, _ in conn.executed]
        assert "ON CONFLICT (clerk_user_id)" in statements[0]
        assert statements[1].startswith("DELETE FROM schedule_availabilities")
        assert conn.executed[1][1] == (str(schedule_id),)
        inserts = conn.executed[2:]
        assert len(inserts) == 2
        assert [params[2] for _, params, _ in inserts] == ["monday", "tuesday"]
        assert all(in_tx for _, _, in_tx in conn.executed)

    @pytest.mark.asyncio
    async def test_save_empty_schedule_clears_availabilities(self, mock_psycopg):
        conn = use_connection(mock_psycopg, [[(uuid.uuid4(),)]])

        from calendarly.db import schedule_save

        await schedule_save(clerk_user_id="user_123", timezone="UTC", availabilities=[])

        assert len(conn.executed) == 2
        assert conn.executed[1][0].startswith("DELETE")
