import gc
import logging
import time

import psutil
from fastapi import Response
from starlette.middleware.base import BaseHTTPMiddleware

from pixelshelf.metrics.prometheus import memory_usage_bytes, track_request

log = logging.getLogger(__name__)


def _route_label(request):
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class MemoryProfilerMiddleware(BaseHTTPMiddleware):
    """Per-request memory accounting and request metrics.

    Requests are refused with 503 while the process stays above
    ``memory_limit_mb`` after a collection.
    """

    def __init__(self, app, memory_limit_mb=500, gc_threshold_mb=300, log_requests=False):
        super().__init__(app)
        self.memory_limit_mb = memory_limit_mb
        self.gc_threshold_mb = gc_threshold_mb
        self.log_requests = log_requests
        self.process = psutil.Process()

    def get_memory_usage(self):
        return self.process.memory_info().rss / 1024 / 1024

    async def dispatch(self, request, call_next):
        start_time = time.time()
        start_memory = self.get_memory_usage()
        if start_memory > self.memory_limit_mb:
            log.error(f"Memory limit exceeded: {start_memory:.2f}MB > {self.memory_limit_mb}MB")
            gc.collect()
            current_memory = self.get_memory_usage()
            if current_memory > self.memory_limit_mb:
                track_request(request.method, request.url.path, 503, time.time() - start_time)
                return Response(
                    content="Service temporarily unavailable due to high memory usage",
                    status_code=503,
                    headers={
                        'X-Memory-Usage-MB': str(current_memory),
                        'X-Memory-Limit-MB': str(self.memory_limit_mb)
                    }
                )
        if start_memory > self.gc_threshold_mb:
            log.info(f"Triggering GC due to memory usage: {start_memory:.2f}MB")
            gc.collect()
            start_memory = self.get_memory_usage()
        response = await call_next(request)
        end_memory = self.get_memory_usage()
        memory_delta = end_memory - start_memory
        process_time = time.time() - start_time
        track_request(request.method, _route_label(request), response.status_code, process_time)
        memory_usage_bytes.labels(type="rss").set(end_memory * 1024 * 1024)
        response.headers['X-Memory-Usage-MB'] = f"{end_memory:.2f}"
        response.headers['X-Process-Time'] = f"{process_time:.3f}"
        if self.log_requests or abs(memory_delta) > 10:
            log.info(
                f"{request.method} {request.url.path} {response.status_code} - "
                f"Memory: {end_memory:.2f}MB ({memory_delta:+.2f}MB) - "
                f"Time: {process_time:.3f}s"
            )
        if end_memory > self.gc_threshold_mb:
            log.warning(f"High memory usage after request: {end_memory:.2f}MB")
        return response
