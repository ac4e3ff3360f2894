"""
FILE: main.py
NexusChain Supply-Chain Tracking API Entry Point
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from nexuschain.core.config import settings
from nexuschain.core.database import build_engine, check_database_connection, close_db, init_db
from nexuschain.notifications.manager import ConnectionManager
from nexuschain.notifications.relay import NotificationRelay
from nexuschain.auth.router import router as auth_router
from nexuschain.users.router import router as users_router
from nexuschain.products.router import router as products_router
from nexuschain.checkpoints.router import router as checkpoints_router
from nexuschain.notifications.router import router as realtime_router
import logging
import os

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("=" * 60)
    logger.info(f"🚚 {settings.APP_NAME}")
    logger.info(f"📐 Status derivation policy: {settings.STATUS_DERIVATION_POLICY.value}")
    logger.info("=" * 60)
    try:
        init_db(app.state.engine)
        logger.info("✅ Database initialized")
    except Exception as e:
        logger.error(f"❌ Failed to initialize database: {e}")
        if settings.ENVIRONMENT == "development":
            raise
    logger.info("✅ Application ready!")
    yield
    logger.info("🛑 Shutting down")
    try:
        close_db(app.state.engine)
        logger.info("✅ DB connections closed")
    except Exception as e:
        logger.error(f"❌ Error closing connections: {e}")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Product provenance, checkpoint ledger and real-time tracking",
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
)

app.state.engine = build_engine(settings)
app.state.connections = ConnectionManager()
app.state.relay = NotificationRelay(app.state.connections)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health")
async def health_check():
    db_ok = check_database_connection(app.state.engine)
    return {
        "status": "healthy" if db_ok else "degraded",
        "version": settings.APP_VERSION,
        "database": "connected" if db_ok else "unavailable",
        "websocketConnections": app.state.connections.connection_count,
    }


for name, router in (
    ("Auth", auth_router),
    ("Users", users_router),
    ("Products", products_router),
    ("Checkpoints", checkpoints_router),
):
    app.include_router(router, prefix=settings.API_V1_PREFIX)
    logger.info(f"✅ {name} router registered")

app.include_router(realtime_router)
logger.info("✅ Realtime router registered")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", settings.PORT))
    uvicorn.run("main:app", host=settings.HOST, port=port, reload=settings.RELOAD)
