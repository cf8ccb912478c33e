"""
Pydantic Response Models
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel


# ============================================================================
# Recognition Models
# ============================================================================

class RecognitionPayload(BaseModel):
    """Recognition result"""
    primary_category_guess: str
    confidence_score: float  # 0-100
    labels: List[str]
    recognized_at: str  # ISO-8601 UTC


class FurnitureMetadataPayload(BaseModel):
    color: str
    material: str
    style: str


class ClassificationPayload(BaseModel):
    """Rule-based furniture attributes"""
    category: str
    condition: str
    metadata: FurnitureMetadataPayload


class RecognizeData(BaseModel):
    recognition: RecognitionPayload
    classification: ClassificationPayload
    degraded: bool = False


# ============================================================================
# Moderation Models
# ============================================================================

class QualityPayload(BaseModel):
    brightness: float
    sharpness: float


class ModerationPayload(BaseModel):
    is_approved: bool
    flags: List[str]
    reason: str
    quality: QualityPayload
    degraded: bool = False


# ============================================================================
# Envelope
# ============================================================================

class ErrorPayload(BaseModel):
    """Machine-readable error (kind: InvalidImage | PreprocessingFailed | InferenceError ...)"""
    kind: str
    message: str
    reason: Optional[str] = None
    details: Dict[str, Any] = {}


class ApiResponse(BaseModel):
    """Response envelope shared by all upload endpoints"""
    success: bool
    status: int
    message: str
    data: Optional[Any] = None
    error: Optional[ErrorPayload] = None
