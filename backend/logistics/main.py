"""
# `logistics/main.py`: Application entry point

## Routers
**Public / signed in:**
- `/auth`, `/session`
- `/fiscal-years`, `/postal-codes`
- `/users`, `/products`, `/deliveries`, `/activities`

**Admin (prefix `/admin`):**
- `/fiscal-years`, `/companies`, `/users`

Role checks happen inside each router through `require_workspace`.

## Scheduler
APScheduler (`AsyncIOScheduler`) runs `sweep_idle_sessions` every
`settings.session_sweep_minutes` minutes; cached workspaces untouched for
`settings.session_idle_minutes` are dropped and get resolved again on the
next request.
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from logistics.config import settings
from logistics.core.session import sweep_idle_sessions
from logistics.routers import activities, auth, companies, deliveries, fiscal_years, products, session, users

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

app = FastAPI(
    title="Logistics Workspace API",
    description="Session bootstrap, company workspaces and delivery operations.",
    version="1.0.0",
    redirect_slashes=False,
)

allow_origins = [origin.strip() for origin in settings.allowed_origins.split(',')] if settings.allowed_origins else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(session.router)
app.include_router(fiscal_years.router)
app.include_router(companies.postal_router)
app.include_router(users.router)
app.include_router(products.router)
app.include_router(deliveries.router)
app.include_router(activities.router)

app.include_router(fiscal_years.admin_router, prefix="/admin")
app.include_router(companies.admin_router, prefix="/admin")
app.include_router(users.admin_router, prefix="/admin")


@app.on_event("startup")
async def _startup_scheduler():
    if not scheduler.running:
        scheduler.start()
    scheduler.add_job(
        sweep_idle_sessions,
        "interval",
        minutes=settings.session_sweep_minutes,
        id="session-sweep",
        replace_existing=True,
    )
    logger.info("Session sweep every %d min", settings.session_sweep_minutes)


@app.on_event("shutdown")
async def _shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("logistics.main:app", host="0.0.0.0", port=8000, reload=True)
