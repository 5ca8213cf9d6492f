"""Database access layer.

Controllers import this package as ``from calendarly import db`` and call the
query functions re-exported here.
"""

from calendarly.db.core import close_pool, get_pool_stats, init_pool
from calendarly.db.events import (
    events_create,
    events_delete,
    events_get,
    events_list_for_user,
    events_update,
)
from calendarly.db.schedules import schedule_get_for_user, schedule_save

__all__ = [
    "close_pool",
    "events_create",
    "events_delete",
    "events_get",
    "events_list_for_user",
    "events_update",
    "get_pool_stats",
    "init_pool",
    "schedule_get_for_user",
    "schedule_save",
]
