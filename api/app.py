"""
FastAPI Application

Main application entry point with router registration and startup events.
"""

import logging
import os
import time

from fastapi import FastAPI

from api.config import LOG_LEVEL, device
from api.routes import (
    health_router,
    recognition_router,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Furniture Recognition API",
    description="Furniture image validation, recognition, classification and moderation",
    version="1.0.0",
)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(recognition_router, tags=["Recognition"])


@app.on_event("startup")
async def startup_event():
    """Load the classifier once and share the pipeline across requests"""
    start_time = time.time()
    logger.info(f"Starting recognition pipeline initialization on {device}")

    try:
        from ai.config import Config
        from ai.pipeline import RecognitionPipeline
        from api.routes.recognition import set_recognition_pipeline

        Config.check_dependencies()
        set_recognition_pipeline(RecognitionPipeline.from_config())
        elapsed = time.time() - start_time
        logger.info(f"Recognition pipeline initialized in {elapsed:.2f}s")
    except Exception as e:
        elapsed = time.time() - start_time
        logger.error(f"Recognition pipeline initialization failed in {elapsed:.2f}s: {e}", exc_info=True)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", 8000)), log_level=LOG_LEVEL.lower())
