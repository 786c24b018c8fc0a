"""TraceCast Vectorize API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.routers import health, vectorize
from logging_config import setup_logging

logger = setup_logging("tracecast", level=settings.LOG_LEVEL)

app = FastAPI(
    title="TraceCast Vectorize API",
    description="Digitizes photographed craft patterns into calibrated vector geometry",
    version="0.1.0"
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health.router)
app.include_router(vectorize.router)
