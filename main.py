from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi_cache import FastAPICache
from fastapi_cache.backends.inmemory import InMemoryBackend
from contextlib import asynccontextmanager
import uvicorn
import logging

# Import database
from db.connection import engine, check_database_connection
from db import models

# Import routes
from routes.Dashboard import dashboard
from routes.Leaderboard import leaderboard
from routes.Reports import report

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting CRM Analytics...")

    try:
        # 1) Init cache
        FastAPICache.init(InMemoryBackend(), prefix="fastapi-cache")
        logger.info("✅ Cache initialized")

        # 2) DB check + tables
        if not check_database_connection():
            raise Exception("Database connection failed")
        logger.info("✅ Database connection verified")
        models.Base.metadata.create_all(engine)
        logger.info("✅ Database tables created/verified")

        logger.info("🎉 Application startup completed successfully!")

    except Exception as e:
        logger.error(f"❌ Application startup failed: {e}")
        raise

    # Hand control back to FastAPI
    yield

    logger.info("🛑 Shutting down CRM Analytics...")


def create_app() -> FastAPI:
    app = FastAPI(
        title="CRM Analytics API",
        description="Dashboard, leaderboard and performance report aggregation",
        version="1.0.0",
        lifespan=lifespan
    )

    # Add CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint
    @app.get("/health")
    def health_check():
        db_status = check_database_connection()
        if not db_status:
            raise HTTPException(status_code=503, detail="Service unhealthy")
        return {
            "status": "healthy",
            "database": "connected",
            "version": "1.0.0"
        }

    app.include_router(dashboard.router, prefix="/api/v1")
    app.include_router(leaderboard.router, prefix="/api/v1")
    app.include_router(report.router, prefix="/api/v1")
    logger.info("✅ Analytics routes registered")

    return app


app = create_app()


# Run the application
if __name__ == "__main__":
    logger.info("🚀 Starting server with Uvicorn...")
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
