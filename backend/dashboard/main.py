import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError

from dashboard.config import settings
from dashboard.database import engine, Base, SessionLocal, migrate
from dashboard.routers import auth, admin, categories, materials, segments
from dashboard.seed import seed_database
from dashboard.services.errors import DashboardError

# Import all models so Base knows about them
from dashboard import models  # noqa

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create tables
Base.metadata.create_all(bind=engine)
# Add missing columns to existing tables (lightweight migration)
migrate(engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Seed the database on startup."""
    db = SessionLocal()
    try:
        seed_database(db)
    finally:
        db.close()
    yield


app = FastAPI(
    title="Content Classification Dashboard",
    description="Split materials into page-referenced segments and classify them in a six-level category tree",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def store_unavailable_handler(request: Request, exc: Exception):
    logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Database unavailable, try again later", "kind": "infrastructure"},
    )


# Routers
app.include_router(auth.router, prefix="/api")
app.include_router(admin.router, prefix="/api")
app.include_router(categories.router, prefix="/api")
app.include_router(materials.router, prefix="/api")
app.include_router(segments.router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
