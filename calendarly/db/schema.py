import logging

from calendarly.db.migrations import get_current_version, run_migrations

logger = logging.getLogger(__name__)


async def _ensure_schema() -> None:
    """Bring the database up to the newest migration; safe to call on every start."""
    before = await get_current_version()
    if await run_migrations():
        logger.info("Schema migrated from version %d to %d", before, await get_current_version())
    else:
        logger.info("Schema up to date at version %d", before)
