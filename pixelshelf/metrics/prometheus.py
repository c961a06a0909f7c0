import gc
import logging
import time
from contextlib import contextmanager

import psutil
from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

log = logging.getLogger(__name__)
request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)
request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)
cache_hits = Counter(
    'cache_hits_total',
    'Total cache hits',
    ['cache_type']
)
cache_misses = Counter(
    'cache_misses_total',
    'Total cache misses',
    ['cache_type']
)
redis_operations = Counter(
    'redis_operations_total',
    'Total Redis operations',
    ['operation', 'status']
)
celery_tasks_total = Counter(
    'celery_tasks_total',
    'Total Celery tasks',
    ['task_name', 'status']
)
celery_task_duration = Histogram(
    'celery_task_duration_seconds',
    'Celery task duration in seconds',
    ['task_name']
)
memory_usage_bytes = Gauge(
    'memory_usage_bytes',
    'Current memory usage in bytes',
    ['type']
)
gc_objects_tracked = Gauge(
    'gc_objects_tracked',
    'Objects pending collection per GC generation',
    ['generation']
)
notifications_created = Counter(
    'notifications_created_total',
    'Total notifications persisted',
    ['type']
)
notification_streams = Gauge(
    'notification_streams_open',
    'Open server-sent event notification streams'
)
follows_total = Counter(
    'follows_total',
    'Follow graph changes',
    ['action']
)
billing_requests = Counter(
    'billing_requests_total',
    'Total billing provider requests',
    ['endpoint', 'status']
)
search_requests = Counter(
    'search_requests_total',
    'Total search requests',
    ['search_type']
)
search_duration = Histogram(
    'search_duration_seconds',
    'Search request duration',
    ['search_type']
)


@contextmanager
def track_duration(histogram, labels=None):
    start_time = time.time()
    try:
        yield
    finally:
        duration = time.time() - start_time
        if labels:
            histogram.labels(**labels).observe(duration)
        else:
            histogram.observe(duration)


def track_request(method, endpoint, status_code, duration):
    request_count.labels(method=method, endpoint=endpoint, status=str(status_code)).inc()
    request_duration.labels(method=method, endpoint=endpoint).observe(duration)


def track_cache_access(cache_type, hit):
    if hit:
        cache_hits.labels(cache_type=cache_type).inc()
    else:
        cache_misses.labels(cache_type=cache_type).inc()


def track_redis_operation(operation, success):
    status = 'success' if success else 'error'
    redis_operations.labels(operation=operation, status=status).inc()


def track_celery_task(task_name, status, duration=None):
    celery_tasks_total.labels(task_name=task_name, status=status).inc()
    if duration is not None:
        celery_task_duration.labels(task_name=task_name).observe(duration)


def track_notification(notification_type):
    notifications_created.labels(type=str(getattr(notification_type, 'value', notification_type))).inc()


def track_follow(action):
    follows_total.labels(action=action).inc()


def track_billing_request(endpoint, status_code):
    status = 'success' if 200 <= status_code < 300 else 'error'
    billing_requests.labels(endpoint=endpoint, status=status).inc()


def update_memory_metrics():
    try:
        process = psutil.Process()
        memory_info = process.memory_info()
        memory_usage_bytes.labels(type='rss').set(memory_info.rss)
        memory_usage_bytes.labels(type='vms').set(memory_info.vms)
        for i, count in enumerate(gc.get_count()):
            gc_objects_tracked.labels(generation=str(i)).set(count)
    except Exception as exc:
        log.error(f"Failed to update memory metrics: {exc}")


def get_metrics():
    update_memory_metrics()
    return generate_latest()


async def metrics_endpoint():
    metrics = get_metrics()
    return Response(content=metrics, media_type=CONTENT_TYPE_LATEST)
