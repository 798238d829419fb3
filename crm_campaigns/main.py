# crm_campaigns/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from crm_campaigns.api.v1.api import api_router
from crm_campaigns.api.v1.endpoints import tracking
from crm_campaigns.core.config import settings
from crm_campaigns.core.exceptions import MailTransportError
from crm_campaigns.core.limiter import limiter
from crm_campaigns.db.base_class import Base
from crm_campaigns.db.session import engine
import crm_campaigns.models  # noqa: F401  registers every table on Base.metadata

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables checked and created if necessary.")
    yield
    logger.info("Application shutting down...")


app = FastAPI(
    title="CRM Campaign Service",
    version="1.0.0",
    description="""
        **CRM Campaign Service**

        Clients, campaigns and the tracked email send pipeline.

        ## Features

        * **Clients**: Contacts with tags and per-channel subscriptions
        * **Campaigns**: Draft, audience resolution, send or schedule, cancel
        * **Send pipeline**: Bounded batches with live suppression and per-recipient outcomes
        * **Tracking**: Open pixel, click redirects and one-click unsubscribe

        ## Public Endpoints

        `/tracking/*` and `/unsubscribe/*` are reached from inside delivered emails and need no prefix.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(MailTransportError)
async def mail_transport_error_handler(request: Request, exc: MailTransportError):
    # Only reached when the transport itself cannot be built; per-recipient
    # failures are recorded on the job instead.
    logger.error(f"Mail transport unavailable: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": exc.message, "error_code": exc.error_code},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")
app.include_router(tracking.router)


@app.get("/")
def read_root():
    return {"status": "CRM Campaign Service is running"}
