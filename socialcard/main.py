import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load env from socialcard/.env
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

from socialcard.core.config import settings, validate_config
from socialcard.core.logging import configure_logging
from socialcard.core.middleware.request_id import RequestIdMiddleware
from socialcard.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    validation_error_handler,
    unhandled_exception_handler,
)
from socialcard.api import cards, health
from socialcard.features.cards.registry import build_card_services, build_http_client

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("socialcard")
    logger.info("Starting social card service...")
    http_client = build_http_client(settings)
    app.state.card_services = build_card_services(http_client, cfg=settings)
    try:
        yield
    finally:
        await http_client.aclose()
        logging.getLogger("socialcard").info("Stopping social card service...")


app = FastAPI(title="Social Cards", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "HEAD"],
    allow_headers=["*"],
    expose_headers=["x-amz-meta-last-modified", "x-amz-meta-location", "x-amz-meta-needs-update", "x-request-id"],
)

app.include_router(cards.router, prefix="/v1", tags=["cards"])
app.include_router(health.root_router, tags=["health"])
