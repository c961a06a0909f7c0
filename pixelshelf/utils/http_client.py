import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

# Retries transport failures only; HTTP error statuses are raised immediately.
# Only idempotent client reads use this
transport_retry = retry(
    retry=retry_if_exception_type(httpx.TransportError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)
