from typing import Optional

import redis.asyncio as redis

from forum.bus import EventBus

# Global runtime state initialized in main.lifespan
redis_client: Optional[redis.Redis] = None
event_bus: Optional[EventBus] = None
