from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.routers import admin, properties
from app.core.logging import setup_logging
from fastapi_limiter import FastAPILimiter
from redis.asyncio import Redis
from app.config import settings
from sqlalchemy import text
from app.database import create_engine_from_settings, create_session_factory
from app.services.geocoding import GeocodingClient
from app.services.query_cache import build_query_cache
from structlog import get_logger

logger = get_logger(__name__)

app = FastAPI(title="Student Accommodation Listings")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "https://*.vercel.app",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(properties.router)
app.include_router(admin.router)

@app.on_event("startup")
async def startup_event():
    setup_logging()
    app.state.engine = create_engine_from_settings(settings)
    app.state.session_factory = create_session_factory(app.state.engine)
    app.state.cache = build_query_cache(settings)
    app.state.geocoder = GeocodingClient(settings.GOOGLE_MAPS_API_KEY)
    # Initialize rate limiter only if Redis is available; writes go unlimited otherwise
    try:
        if settings.REDIS_URL:
            redis = Redis.from_url(settings.REDIS_URL)
            await FastAPILimiter.init(redis)
    except Exception as e:
        logger.warning("Running without rate limiter", error=str(e))
    logger.info("Startup complete", cache_backend=settings.CACHE_BACKEND)


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.geocoder.close()
    await app.state.cache.close()
    await app.state.engine.dispose()
    if FastAPILimiter.redis is not None:
        await FastAPILimiter.close()


@app.get("/health", tags=["health"])
async def health():
    details = {"status": "ok"}
    # Check DB connectivity
    try:
        async with app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
        details["database"] = "up"
    except Exception as e:
        details["status"] = "degraded"
        details["database"] = f"down: {str(e)}"
    # Config presence checks (no secrets exposed)
    details["config"] = {
        "db_url_set": bool(settings.DATABASE_URL),
        "redis_url_set": bool(settings.REDIS_URL),
        "cache_backend": settings.CACHE_BACKEND,
        "google_maps_key_set": settings.GOOGLE_MAPS_API_KEY not in (None, "", "your_google_maps_key"),
    }
    # Visible listings count
    try:
        async with app.state.session_factory() as session:
            result = await session.execute(text(
                "SELECT COUNT(1) FROM properties p "
                "JOIN managers m ON m.cognito_id = p.manager_cognito_id "
                "LEFT JOIN disabled_properties dp ON dp.property_id = p.id "
                "WHERE m.status = 'Active' AND dp.property_id IS NULL"
            ))
            count = result.scalar() or 0
        details["visible_properties_count"] = int(count)
    except Exception as e:
        details["visible_properties_count"] = f"error: {str(e)}"
    return details
