"""Main FastAPI application for the Today's Todos replica service."""
import logging

from fastapi import FastAPI

from todays import __version__
from todays.db.init import init_db
from todays.middleware.cors import add_cors_middleware
from todays.routers import auth, user_data, ws

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Today's Todos Replica API",
    description="Stores one snapshot document per user and notifies other devices of changes",
    version=__version__,
)

add_cors_middleware(app)


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    try:
        init_db()
    except Exception as e:
        logger.warning(f"Database initialization failed: {str(e)}")
        logger.warning("Server will continue but database operations may fail.")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/")
async def root():
    return {
        "title": "Today's Todos Replica API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


app.include_router(auth.router, prefix="/auth")
app.include_router(user_data.router, prefix="/api")
app.include_router(ws.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "todays.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
