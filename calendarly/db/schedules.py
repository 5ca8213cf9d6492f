import uuid
from datetime import UTC, datetime
from typing import Any

from calendarly.db.core import _get_connection


async def schedule_get_for_user(clerk_user_id: str) -> dict[str, Any] | None:
    """The user's schedule with its availabilities, or None if never saved."""
    async with _get_connection() as conn:
        row = await (
            await conn.execute(
                "SELECT id, timezone, clerk_user_id, created_at, updated_at FROM schedules WHERE clerk_user_id = %s",
                (clerk_user_id,),
            )
        ).fetchone()
        if not row:
            return None
        schedule_id = row[0]
        rows = await conn.execute(
            "SELECT day_of_week, start_time, end_time FROM schedule_availabilities WHERE schedule_id = %s",
            (schedule_id,),
        )
        availabilities = []
        async for a in rows:
            availabilities.append({"day_of_week": a[0], "start_time": a[1], "end_time": a[2]})
        return {
            "id": str(schedule_id),
            "timezone": row[1],
            "clerk_user_id": row[2],
            "created_at": row[3],
            "updated_at": row[4],
            "availabilities": availabilities,
        }


async def schedule_save(
    clerk_user_id: str,
    timezone: str,
    availabilities: list[dict[str, str]],
) -> str:
    """Upsert the user's schedule and replace all of its availabilities.

    Runs in one transaction. Returns the schedule id.
    """
    now = datetime.now(UTC)
    async with _get_connection() as conn:
        async with conn.transaction():
            row = await (
                await conn.execute(
                    """INSERT INTO schedules (id, timezone, clerk_user_id, created_at, updated_at)
                       VALUES (%s, %s, %s, %s, %s)
                       ON CONFLICT (clerk_user_id) DO UPDATE SET timezone = EXCLUDED.timezone, updated_at = EXCLUDED.updated_at
                       RETURNING id""",
                    (str(uuid.uuid4()), timezone, clerk_user_id, now, now),
                )
            ).fetchone()
            schedule_id = str(row[0])
            await conn.execute(
                "DELETE FROM schedule_availabilities WHERE schedule_id = %s",
                (schedule_id,),
            )
            for a in availabilities:
                await conn.execute(
                    """INSERT INTO schedule_availabilities (id, schedule_id, day_of_week, start_time, end_time)
                       VALUES (%s, %s, %s, %s, %s)""",
                    (str(uuid.uuid4()), schedule_id, a["day_of_week"], a["start_time"], a["end_time"]),
                )
    return schedule_id
