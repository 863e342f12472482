# foodrescue/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.logging import StructlogMiddleware, configure_logging, get_logger
from .deps import get_dispatcher, get_repo
from .errors import Conflict, EngineError, NotFound, StorageError, ValidationError
from .routers import donations as donations_router
from .routers import matches as matches_router
from .routers import shelters as shelters_router
from .routers import stats as stats_router
from .services.seed import seed_demo

log = get_logger(__name__)

STATUS_BY_ERROR = {
    ValidationError: 422,
    NotFound: 404,
    Conflict: 409,
    StorageError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    settings = get_settings()
    repo = get_repo()
    await repo.ensure_indexes()
    if settings.seed_demo_data:
        await seed_demo(repo)
    log.info("app.started", store=settings.store_backend, sms=settings.sms_configured)

    yield

    # pending SMS tasks are abandoned, never awaited past shutdown
    await get_dispatcher().aclose()
    await repo.close()
    log.info("app.stopped")


app = FastAPI(lifespan=lifespan, title="FoodRescue API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(StructlogMiddleware)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    code = STATUS_BY_ERROR.get(type(exc), 500)
    if code >= 500:
        log.error("request.failed", error=exc.code, detail=exc.message)
    return JSONResponse({"error": exc.code, "detail": exc.message}, status_code=code)


# ---------------- Include routers ----------------
app.include_router(donations_router.router)     # /api/donations
app.include_router(shelters_router.router)      # /api/shelters, /api/leaderboard
app.include_router(matches_router.router)       # /api/claim, /api/matches
app.include_router(stats_router.router)         # /api/stats


# Health
@app.get("/health")
def health():
    return {"ok": True}
