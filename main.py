from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from app.core.config import settings
from app.core.logging_config import setup_logging
from app.middleware.logging import LoggingMiddleware
from app.api.v1.api import api_router

setup_logging()

# Create FastAPI app
app_config = {
    "title": "Clinic Inventory Service",
    "description": "Pharmacy and optical stock catalogs backed by an append-only stock movement ledger",
    "version": "1.0.0",
    "docs_url": "/api/docs",
    "redoc_url": "/api/redoc",
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# Include routers
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {
        "message": "Clinic Inventory Service",
        "status": "active",
        "version": app_config["version"],
        "docs": "/api/docs"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

def run_http():
    """Run HTTP server on port 9106"""
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=9106,
        reload=settings.DEBUG,
    )

if __name__ == "__main__":
    run_http()
