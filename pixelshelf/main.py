import logging
import json
import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from pixelshelf.api import api_router
from pixelshelf.core.config import settings
from pixelshelf.core.exceptions import BillingProviderError, WebhookSignatureError
from pixelshelf.db import create_all
from pixelshelf.integrations.redis_client import close_redis
from pixelshelf.metrics.prometheus import metrics_endpoint
from pixelshelf.middleware.memory_profiler import MemoryProfilerMiddleware
from pixelshelf.services.billing import close_billing_http_client


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {'level': record.levelname, 'time': self.formatTime(record, self.datefmt), 'name': record.name, 'message': record.getMessage()}
        if record.exc_info:
            log_record['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(log_record)


handler = logging.StreamHandler()
handler.setFormatter(JsonFormatter())
logging.basicConfig(level=settings.log_level.upper(), handlers=[handler])
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Startup
    logger.info("Starting application...")
    if settings.auto_create_tables:
        await create_all()
        logger.info("Database tables ensured")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await close_billing_http_client()
    await close_redis()
    logger.info("Closed HTTP and Redis clients")


app = FastAPI(title='PixelShelf API', lifespan=lifespan)
app.add_middleware(
    MemoryProfilerMiddleware,
    memory_limit_mb=1000,
    gc_threshold_mb=500,
    log_requests=False
)
app.add_middleware(CORSMiddleware, allow_origins=settings.CORS_ORIGINS, allow_credentials=True, allow_methods=['*'], allow_headers=['*'])
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.include_router(api_router, prefix='/api')
app.add_api_route('/metrics', metrics_endpoint, methods=['GET'], include_in_schema=False)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': 'Invalid request data', 'errors': jsonable_encoder(exc.errors())},
    )


@app.exception_handler(WebhookSignatureError)
async def webhook_signature_handler(request: Request, exc: WebhookSignatureError):
    logger.warning(f"Rejected webhook: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'detail': str(exc)})


@app.exception_handler(BillingProviderError)
async def billing_provider_handler(request: Request, exc: BillingProviderError):
    logger.error(f"Billing provider error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={'detail': str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={'detail': 'Internal server error'})


@app.get('/')
async def root():
    return {'message': 'Welcome to the PixelShelf API'}


if __name__ == '__main__':
    uvicorn.run('pixelshelf.main:app', host='0.0.0.0', port=8000, reload=True)
