import json
from datetime import datetime
import logging
import redis.asyncio as redis_async
from tenacity import retry, stop_after_attempt, wait_exponential
from pixelshelf.core.config import settings
from pixelshelf.metrics.prometheus import track_redis_operation
log = logging.getLogger(__name__)
_redis_pool_async = None
DEFAULT_CACHE_EXPIRY = 60 * 5

@retry(stop=stop_after_attempt(5), wait=wait_exponential(multiplier=1, min=1, max=10))
async def get_redis_pool():
    global _redis_pool_async
    if _redis_pool_async is None:
        redis_url = settings.REDIS_URL
        try:
            _redis_pool_async = redis_async.ConnectionPool.from_url(redis_url, max_connections=10, decode_responses=True, health_check_interval=5, socket_connect_timeout=5, socket_keepalive=True, retry_on_timeout=True)
            log.info(f'Created async Redis connection pool with URL: {redis_url}')
        except Exception as e:
            log.error(f'Error creating async Redis connection pool: {e}')
            raise
    return redis_async.Redis(connection_pool=_redis_pool_async)

@retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=5))
async def get_redis():
    try:
        redis_client = await get_redis_pool()
        return redis_client
    except Exception as e:
        log.error(f'Error getting Redis client: {e}')
        raise

async def close_redis():
    global _redis_pool_async
    if _redis_pool_async is not None:
        await _redis_pool_async.disconnect()
        _redis_pool_async = None

async def ping():
    redis_client = await get_redis()
    return await redis_client.ping()

def generate_cache_key(prefix, *args):
    key_parts = [prefix] + [str(arg) for arg in args if arg]
    return ':'.join(key_parts)

def _json_serialize(obj):

    def _default(value):
        if isinstance(value, datetime):
            return value.isoformat()
        if hasattr(value, 'model_dump'):
            return value.model_dump(by_alias=True, mode='json')
        return str(value)

    return json.dumps(obj, default=_default)


def _json_deserialize(data):
    return json.loads(data)

async def cache_set(key, value, expire=DEFAULT_CACHE_EXPIRY):
    redis_client = await get_redis()
    serialized = _json_serialize(value)
    try:
        await redis_client.set(key, serialized, ex=expire)
        track_redis_operation('set', True)
        log.debug(f'Cached data at key: {key}, expires in {expire}s')
        return True
    except Exception as e:
        track_redis_operation('set', False)
        log.error(f'Error caching data at key {key}: {e}')
        return False

async def cache_get(key):
    redis_client = await get_redis()
    try:
        data = await redis_client.get(key)
        track_redis_operation('get', True)
        if not data:
            return None
        log.debug(f'Cache hit for key: {key}')
        return _json_deserialize(data)
    except Exception as e:
        track_redis_operation('get', False)
        log.error(f'Error retrieving cache for key {key}: {e}')
        return None

async def cache_invalidate_pattern(pattern):
    redis_client = await get_redis()
    try:
        keys = [key async for key in redis_client.scan_iter(match=pattern)]
        if not keys:
            return 0
        count = await redis_client.delete(*keys)
        log.debug(f'Invalidated {count} keys matching pattern: {pattern}')
        return count
    except Exception as e:
        log.error(f'Error invalidating keys with pattern {pattern}: {e}')
        return 0
