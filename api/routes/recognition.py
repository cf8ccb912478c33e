"""
Furniture Recognition Routes

/recognize, /moderate, /analyze-upload
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse

from api.config import MAX_UPLOAD_BYTES
from api.models import (
    ApiResponse,
    ErrorPayload,
    ModerationPayload,
    RecognizeData,
)
from ai.errors import InvalidImage, InvalidImageReason, PipelineError

logger = logging.getLogger(__name__)

router = APIRouter()

# Shared pipeline (classifier handle loaded once at startup)
_recognition_pipeline = None


def set_recognition_pipeline(pipeline) -> None:
    """Install the pipeline built at startup."""
    global _recognition_pipeline
    _recognition_pipeline = pipeline


def get_recognition_pipeline():
    """
    Get the shared recognition pipeline, building it from Config if startup did not.
    """
    global _recognition_pipeline

    if _recognition_pipeline is None:
        from ai.pipeline import RecognitionPipeline

        _recognition_pipeline = RecognitionPipeline.from_config()
        logger.info("Recognition pipeline initialized [fallback]")

    return _recognition_pipeline


# ============================================================================
# Response Helpers
# ============================================================================

def error_response(error: PipelineError, fallback_message: str) -> JSONResponse:
    """
    Map a pipeline error to an HTTP response.

    Client-correctable errors (InvalidImage, PreprocessingFailed) -> 400 with details.
    Everything else -> 500 with a generic message; details stay in the logs.
    """
    if error.client_error:
        status_code = 400
        payload = ErrorPayload(**error.to_dict())
        message = error.message
    else:
        status_code = 500
        payload = ErrorPayload(kind=error.kind, message=fallback_message)
        message = fallback_message

    body = ApiResponse(success=False, status=status_code, message=message, error=payload)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def success_response(message: str, data) -> JSONResponse:
    body = ApiResponse(success=True, status=200, message=message, data=data)
    return JSONResponse(status_code=200, content=body.model_dump())


async def read_upload(image: UploadFile) -> bytes:
    """Read at most MAX_UPLOAD_BYTES + 1 so oversized uploads are rejected without buffering them whole."""
    data = await image.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise InvalidImage(
            InvalidImageReason.SIZE_EXCEEDED,
            "Image size exceeds maximum allowed size",
            {"max_size": MAX_UPLOAD_BYTES}
        )
    return data


def _content_type(image: UploadFile) -> Optional[str]:
    return image.content_type or None


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/recognize")
async def recognize_furniture(image: UploadFile = File(...)):
    """
    Recognize and classify furniture in a single uploaded image.

    Returns:
        200 {"success": true, "data": {"recognition": {...}, "classification": {...}}}
        400 on InvalidImage / PreprocessingFailed
        500 on InferenceError
    """
    try:
        data = await read_upload(image)
        logger.info(f"Processing recognition request (size={len(data)}, type={image.content_type})")

        pipeline = get_recognition_pipeline()
        outcome, classification = await pipeline.analyze(data, _content_type(image))
    except PipelineError as e:
        logger.error(f"Recognition request failed: {e.kind} {e.message}")
        return error_response(e, "Internal server error during recognition")

    if not outcome.is_success:
        return error_response(outcome.error, "Internal server error during recognition")

    # degradations carry internal causes; only the flag is returned
    payload = RecognizeData(**pipeline.to_json_response(outcome, classification))
    return success_response("Furniture recognition completed successfully", payload.model_dump())


@router.post("/moderate")
async def moderate_image(image: UploadFile = File(...)):
    """
    Decide whether an uploaded image may be published.

    Returns:
        200 {"success": true, "data": {"is_approved": bool, "flags": [...], "reason": str}}
        400 on InvalidImage
    """
    try:
        data = await read_upload(image)
        logger.info(f"Processing moderation request (size={len(data)}, type={image.content_type})")

        pipeline = get_recognition_pipeline()
        outcome = await pipeline.moderate(data, _content_type(image))
    except PipelineError as e:
        logger.error(f"Moderation request failed: {e.kind} {e.message}")
        return error_response(e, "Internal server error during moderation")

    if not outcome.is_success:
        return error_response(outcome.error, "Internal server error during moderation")

    payload = ModerationPayload(**outcome.result.to_dict(), degraded=outcome.degraded)
    return success_response("Content moderation completed successfully", payload.model_dump())


@router.post("/analyze-upload")
async def analyze_upload(image: UploadFile = File(...)):
    """
    Moderate and recognize in parallel; classification is only returned for approved images.
    """
    try:
        data = await read_upload(image)
        pipeline = get_recognition_pipeline()
        analysis = await pipeline.process_upload(data, _content_type(image))
    except PipelineError as e:
        logger.error(f"Upload analysis failed: {e.kind} {e.message}")
        return error_response(e, "Internal server error during upload analysis")

    if not analysis.moderation.is_success:
        return error_response(analysis.moderation.error, "Internal server error during upload analysis")

    result = {
        "moderation": analysis.moderation.result.to_dict(),
        "published": analysis.is_published,
    }
    if analysis.is_published:
        result["recognition"] = analysis.recognition.result.to_dict()
        result["classification"] = analysis.classification.to_dict()
    elif analysis.recognition is not None and analysis.recognition.error is not None:
        error = analysis.recognition.error
        if error.client_error:
            result["recognition_error"] = error.to_dict()
        elif analysis.moderation.result.is_approved:
            return error_response(error, "Internal server error during upload analysis")
        else:
            # moderation verdict already rejects the upload; recognition details stay in the logs
            logger.error(f"Upload recognition failed after moderation rejection: {error.kind} {error.message}")
            result["recognition_error"] = ErrorPayload(
                kind=error.kind,
                message="Internal server error during recognition"
            ).model_dump()

    return success_response("Upload analysis completed successfully", result)
