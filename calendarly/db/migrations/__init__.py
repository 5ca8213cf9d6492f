"""SQL migrations.

Files in this directory are named ``NNN_description.sql`` and applied in
version order. Each one runs in its own transaction together with its row in
``schema_migrations``, so a failed migration leaves no trace.
"""

import logging
from pathlib import Path
from typing import Any

from calendarly.db.core import _get_connection

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_CREATE_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    description TEXT
);
"""


async def get_current_version() -> int:
    """Highest applied migration, 0 on a fresh database."""
    async with _get_connection() as conn:
        await conn.execute(_CREATE_MIGRATIONS_TABLE)
        cur = await conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
        row = await cur.fetchone()
        return int(row[0]) if row and row[0] else 0


async def apply_migration(version: int, sql: str, description: str = "") -> bool:
    """Run ``sql`` as migration ``version``; False if it was applied before."""
    if version <= await get_current_version():
        logger.debug("Skipping migration %03d, already applied", version)
        return False

    async with _get_connection() as conn:
        try:
            async with conn.transaction():
                await conn.execute(sql)
                await conn.execute(
                    "INSERT INTO schema_migrations (version, description) VALUES (%s, %s)",
                    (version, description),
                )
        except Exception:
            logger.exception("Migration %03d (%s) failed", version, description)
            raise

    logger.info("Applied migration %03d: %s", version, description)
    return True


def _parse_filename(path: Path) -> tuple[int, str] | None:
    prefix, _, rest = path.stem.partition("_")
    if not prefix.isdigit():
        return None
    return int(prefix), rest


async def get_pending_migrations() -> list[dict[str, Any]]:
    """Migration files newer than the database, oldest first."""
    current = await get_current_version()
    pending = []
    for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
        parsed = _parse_filename(path)
        if parsed is None or parsed[0] <= current:
            continue
        version, description = parsed
        pending.append({"version": version, "filename": path.name, "description": description, "path": path})
    return pending


async def run_migrations() -> int:
    """Apply every pending migration and return how many ran."""
    applied = 0
    for migration in await get_pending_migrations():
        if await apply_migration(migration["version"], migration["path"].read_text(), migration["description"]):
            applied += 1
    if applied:
        logger.info("Applied %d migration(s)", applied)
    else:
        logger.debug("No pending migrations")
    return applied
