import time

from fastapi import APIRouter

from app.config import Config

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "UP",
        "timestamp": int(time.time() * 1000),
        "service": Config.SERVICE_NAME,
        "version": Config.VERSION,
    }


@router.get("/")
async def root():
    return {"message": f"{Config.SERVICE_NAME} is running!", "status": "OK"}
