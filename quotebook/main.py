# quotebook/main.py
import time

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from quotebook import __version__
from quotebook import models  # noqa: F401  (registreert SQLAlchemy modellen)
from quotebook.core.errors import register_exception_handlers
from quotebook.core.logging_config import logger, setup_logging
from quotebook.core.rate_limit import exempt, limiter
from quotebook.core.settings import settings
from quotebook.db import Base, engine
from quotebook.middleware.request_id import RequestIdMiddleware
from quotebook.middleware.security_headers import SecurityHeadersMiddleware
from quotebook.observability.metrics import latency_hist
from quotebook.observability.metrics import router as metrics_router
from quotebook.routers import (
    admin,
    auth,
    clients,
    dashboard,
    master_items,
    notifications,
    projects,
    quote_templates,
    quotes,
    suppliers,
    transactions,
)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[FastApiIntegration()],
        environment=settings.APP_ENV,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        send_default_pii=False,
    )

# ----------------------------------------------------
# App init
# ----------------------------------------------------
app = FastAPI(title=settings.APP_NAME, version=__version__)

setup_logging()
logger.info("startup", service="quotebook-api", env=settings.APP_ENV)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
@exempt
def health(request: Request) -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()

    request_id = getattr(request.state, "request_id", None) or request.headers.get(
        "X-Request-ID", "unknown"
    )
    client_ip = request.client.host if request.client else "unknown"

    bound_logger = logger.bind(
        request_id=request_id,
        ip=client_ip,
        endpoint=str(request.url.path),
        method=request.method,
    )

    bound_logger.info("request_started")
    response = await call_next(request)
    elapsed = time.time() - start
    latency_ms = round(elapsed * 1000, 2)

    route = request.scope.get("route")
    latency_hist.labels(route=getattr(route, "path", "unmatched")).observe(elapsed)

    bound_logger.bind(
        status_code=response.status_code,
        latency_ms=latency_ms,
        user_id=getattr(request.state, "user_id", None),
    ).info("request_finished")
    return response


# ----------------------------------------------------
# Middleware
# ----------------------------------------------------
app.add_middleware(RequestIdMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RateLimitExceeded)
def ratelimit_handler(request: Request, exc: RateLimitExceeded):
    return PlainTextResponse(str(exc), status_code=429)


register_exception_handlers(app)

# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(clients.router)
app.include_router(suppliers.router)
app.include_router(master_items.router)
app.include_router(quotes.router)
app.include_router(quote_templates.router)
app.include_router(projects.router)
app.include_router(transactions.router)
app.include_router(notifications.router)
app.include_router(dashboard.router)
app.include_router(metrics_router)  # /metrics


# ----------------------------------------------------
# Startup
# ----------------------------------------------------
@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
