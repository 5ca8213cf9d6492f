from typing import Optional
import redis.asyncio as redis

# Global runtime state initialized in lifespan.setup_resources
redis_client: Optional[redis.Redis] = None
db_ready: bool = False
