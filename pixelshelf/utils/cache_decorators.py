import hashlib
import json
import logging
from functools import wraps
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pixelshelf.core.config import settings
from pixelshelf.integrations.redis_client import cache_get, cache_invalidate_pattern, cache_set
from pixelshelf.metrics.prometheus import track_cache_access

log = logging.getLogger(__name__)

TRENDING_PREFIX = "api:cache:trending"


def generate_cache_key(prefix, request):
    path = request.url.path
    query_params = sorted(request.query_params.items())
    key_parts = [prefix, path]
    if query_params:
        query_str = "&".join([f"{k}={v}" for k, v in query_params])
        key_parts.append(query_str)
    return ":".join(key_parts)


def generate_etag(content):
    content_str = json.dumps(content, sort_keys=True)
    hash_obj = hashlib.md5(content_str.encode())
    return f'"{hash_obj.hexdigest()}"'


def _find_request(args, kwargs):
    for arg in args:
        if isinstance(arg, Request):
            return arg
    return kwargs.get('request')


def cache_response(ttl=300, key_prefix="api:cache", include_etag=True):
    """Serve JSON responses from Redis; a no-op unless ``ENABLE_REDIS_CACHE`` is set."""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            request = _find_request(args, kwargs)
            if not settings.ENABLE_REDIS_CACHE or not request:
                return await func(*args, **kwargs)
            cache_key = generate_cache_key(key_prefix, request)
            cached_data = await cache_get(cache_key)
            track_cache_access(key_prefix, bool(cached_data))
            if cached_data:
                etag = cached_data.get('etag')
                if include_etag and etag and request.headers.get('if-none-match') == etag:
                    return Response(status_code=304, headers={'etag': etag})
                log.debug(f"Cache hit for key: {cache_key}")
                headers = {'x-cache': 'HIT'}
                if include_etag and etag:
                    headers['etag'] = etag
                return JSONResponse(content=cached_data.get('content'), headers=headers)
            log.debug(f"Cache miss for key: {cache_key}")
            result = await func(*args, **kwargs)
            if isinstance(result, dict):
                content = result
            elif hasattr(result, 'model_dump'):
                content = result.model_dump(by_alias=True, mode='json')
            else:
                return result
            etag = generate_etag(content) if include_etag else None
            await cache_set(cache_key, {'content': content, 'etag': etag}, expire=ttl)
            headers = {'x-cache': 'MISS'}
            if etag:
                headers['etag'] = etag
            return JSONResponse(content=content, headers=headers)
        return wrapper
    return decorator


async def invalidate_pattern(pattern):
    if not settings.ENABLE_REDIS_CACHE:
        return 0
    try:
        count = await cache_invalidate_pattern(pattern)
        log.info(f"Invalidated {count} cache entries matching pattern: {pattern}")
        return count
    except Exception as exc:
        log.error(f"Failed to invalidate cache pattern {pattern}: {exc}")
        return 0


def invalidate_cache_pattern(pattern):
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)
            await invalidate_pattern(pattern)
            return result
        return wrapper
    return decorator
