"""
Health Check Routes

/health, /pipeline-status endpoints
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.config import device
from ai.config import Config

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "device": str(device),
        "thresholds": Config.as_dict(),
    }


@router.get("/pipeline-status")
async def pipeline_status():
    """
    Recognition pipeline status.

    Returns:
        {
            "initialized": bool,
            "tensors": {"encoded": int, "released": int, "live": int}
        }
    """
    from api.routes import recognition

    pipeline = recognition._recognition_pipeline
    if pipeline is None:
        return JSONResponse({"initialized": False, "tensors": None})

    return JSONResponse({
        "initialized": True,
        "tensors": pipeline.orchestrator.encoder.get_stats(),
    })
