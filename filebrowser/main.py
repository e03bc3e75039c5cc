from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .routers import download, files
from .services.confinement import canonical_root
from .services.file_ops import FileOps

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    _setup_logging()

    root = canonical_root(settings.root_directory)
    app.state.file_ops = FileOps(root)
    logger.info('Serving directory: %s', root)
    try:
        yield
    finally:
        app.state.file_ops = None


app = FastAPI(title=settings.app_name, lifespan=lifespan)


def _parse_cors_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(',') if origin.strip()]


cors_origins = _parse_cors_origins(settings.cors_origins) if settings.is_production else ['*']
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=['GET', 'OPTIONS'],
        allow_headers=['Range'],
        expose_headers=['Accept-Ranges', 'Content-Range', 'Content-Length', 'Content-Disposition'],
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({'error': exc.detail}, status_code=exc.status_code, headers=getattr(exc, 'headers', None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({'error': 'Invalid request'}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error('Unhandled error on %s %s', request.method, request.url.path, exc_info=exc)
    return JSONResponse({'error': 'Internal server error'}, status_code=500)


@app.get('/healthz')
def healthz():
    return {'ok': True}


app.include_router(files.router)
app.include_router(download.router)
