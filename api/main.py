"""
FastAPI application entrypoint.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from api import routes
from api.routes import router

logging.basicConfig(level=routes.settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    routes.detector.start()
    yield
    routes.detector.shutdown()


app = FastAPI(title="Live Face Detector API", version="1.0.0", lifespan=lifespan)
app.include_router(router)

@app.get("/health")
def health() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Simple status payload.
    """
    return {"status": "ok"}
