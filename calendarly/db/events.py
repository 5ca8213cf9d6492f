import uuid
from datetime import UTC, datetime
from typing import Any

from calendarly.db.core import _get_connection

_EVENT_COLUMNS = (
    "id, name, description, duration_in_minutes, is_active, clerk_user_id, created_at, updated_at"
)


def _row_to_event(row) -> dict[str, Any]:
    return {
        "id": str(row[0]),
        "name": row[1],
        "description": row[2],
        "duration_in_minutes": row[3],
        "is_active": row[4],
        "clerk_user_id": row[5],
        "created_at": row[6],
        "updated_at": row[7],
    }


async def events_list_for_user(clerk_user_id: str, active_only: bool = False) -> list[dict[str, Any]]:
    """Events owned by ``clerk_user_id``, newest first."""
    sql = f"SELECT {_EVENT_COLUMNS} FROM events WHERE clerk_user_id = %s"
    if active_only:
        sql += " AND is_active"
    sql += " ORDER BY created_at DESC"
    async with _get_connection() as conn:
        rows = await conn.execute(sql, (clerk_user_id,))
        result = []
        async for row in rows:
            result.append(_row_to_event(row))
        return result


async def events_get(event_id: str, clerk_user_id: str, active_only: bool = False) -> dict[str, Any] | None:
    sql = f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = %s AND clerk_user_id = %s"
    if active_only:
        sql += " AND is_active"
    async with _get_connection() as conn:
        row = await (await conn.execute(sql, (event_id, clerk_user_id))).fetchone()
        if not row:
            return None
        return _row_to_event(row)


async def events_create(
    clerk_user_id: str,
    name: str,
    duration_in_minutes: int,
    description: str | None = None,
    is_active: bool = True,
) -> dict[str, Any]:
    now = datetime.now(UTC)
    event_id = str(uuid.uuid4())
    async with _get_connection() as conn:
        await conn.execute(
            """INSERT INTO events (id, name, description, duration_in_minutes, is_active, clerk_user_id, created_at, updated_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s, %s)""",
            (event_id, name, description, duration_in_minutes, is_active, clerk_user_id, now, now),
        )
    return {
        "id": event_id,
        "name": name,
        "description": description,
        "duration_in_minutes": duration_in_minutes,
        "is_active": is_active,
        "clerk_user_id": clerk_user_id,
        "created_at": now,
        "updated_at": now,
    }


async def events_update(
    event_id: str,
    clerk_user_id: str,
    name: str,
    duration_in_minutes: int,
    description: str | None = None,
    is_active: bool = True,
) -> int:
    """Update an owned event. Returns the number of rows affected (0 or 1)."""
    now = datetime.now(UTC)
    async with _get_connection() as conn:
        cur = await conn.execute(
            """UPDATE events
               SET name = %s, description = %s, duration_in_minutes = %s, is_active = %s, updated_at = %s
               WHERE id = %s AND clerk_user_id = %s""",
            (name, description, duration_in_minutes, is_active, now, event_id, clerk_user_id),
        )
        return cur.rowcount


async def events_delete(event_id: str, clerk_user_id: str) -> int:
    """Delete an owned event. Returns the number of rows affected (0 or 1)."""
    async with _get_connection() as conn:
        cur = await conn.execute(
            "DELETE FROM events WHERE id = %s AND clerk_user_id = %s",
            (event_id, clerk_user_id),
        )
        return cur.rowcount
