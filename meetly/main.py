from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meetly.api.dependencies import domain_error_handler
from meetly.api.events import router as events_router
from meetly.api.health import router as health_router
from meetly.api.metrics_endpoint import router as metrics_router
from meetly.api.organizations import router as organizations_router
from meetly.api.packages import router as packages_router
from meetly.api.purchases import router as purchases_router
from meetly.api.users import router as users_router
from meetly.api.webhooks import router as webhooks_router
from meetly.core.config import SETTINGS
from meetly.core.logging import setup_logging
from meetly.db.engine import lifespan_db
from meetly.db.redis import lifespan_redis
from meetly.middleware.metrics import MetricsMiddleware
from meetly.middleware.request_context import RequestContextMiddleware
from meetly.providers.http import lifespan_http
from meetly.services import token_service
from meetly.services.errors import DomainError

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)

if SETTINGS.signing_key_pem:
    token_service.load_signing_key(SETTINGS.signing_key_pem.encode())
elif SETTINGS.is_prod:
    logger.warning("SIGNING_KEY_PEM not set; tokens will not survive a restart")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Torn down in reverse order.
    async with lifespan_db():
        async with lifespan_redis():
            async with lifespan_http():
                yield


app = FastAPI(
    title="meetly",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[SETTINGS.app_base_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first: RequestContext -> Metrics -> CORS -> route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(events_router)
app.include_router(packages_router)
app.include_router(purchases_router)
app.include_router(organizations_router)
app.include_router(users_router)
app.include_router(webhooks_router)

logger.info(
    "meetly started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
