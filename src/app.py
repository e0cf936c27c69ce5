"""Back-office FastAPI application.

Processes order review and fulfillment commands synchronously via HTTP.
Every request under ``/shop-orders`` runs inside the back-office domain
context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
from backoffice.domain import backoffice  # noqa: E402
from backoffice.utils.logging import clear_context
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

backoffice.init()

_DOMAIN_PREFIX = "/shop-orders"

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Back Office API",
    description="Shop order review, regional fulfillment and staff leaderboards",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the back-office domain context for order routes."""
    clear_context()
    if request.url.path.startswith(_DOMAIN_PREFIX):
        with backoffice.domain_context():
            return await call_next(request)
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from backoffice.api.errors import register_error_handlers  # noqa: E402
from backoffice.api.routes import router as backoffice_router  # noqa: E402

app.include_router(backoffice_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": backoffice.name})
