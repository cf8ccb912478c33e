"""
Pipeline Result Types

인식/분류/검수 결과와 태그드 결과(Outcome) 타입 정의.
모든 결과 객체는 생성 후 불변입니다.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from ai.errors import ExternalServiceDegraded, PipelineError


class PipelineStatus(str, Enum):
    """최종 결과 태그"""
    COMPLETED = "completed"
    REJECTED = "rejected"      # 클라이언트 입력 오류
    FAILED = "failed"          # 인프라/추론 오류


class PipelineState(str, Enum):
    """이미지 1건의 처리 상태"""
    RECEIVED = "received"
    VALIDATED = "validated"
    PREPROCESSED = "preprocessed"
    LOCALLY_CLASSIFIED = "locally_classified"
    CROSS_VALIDATED = "cross_validated"
    CROSS_VALIDATION_SKIPPED = "cross_validation_skipped"
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class RecognitionResult:
    """인식 결과"""
    primary_category_guess: str
    confidence_score: float                 # 0~100 (로컬 분류 최대 확률 x 100)
    labels: Tuple[str, ...]                 # 중복 제거, 로컬 추정 라벨이 첫 번째
    recognized_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary_category_guess": self.primary_category_guess,
            "confidence_score": self.confidence_score,
            "labels": list(self.labels),
            "recognized_at": self.recognized_at.isoformat(),
        }


@dataclass(frozen=True)
class FurnitureMetadata:
    color: str
    material: str
    style: str

    def to_dict(self) -> Dict[str, str]:
        return {"color": self.color, "material": self.material, "style": self.style}


@dataclass(frozen=True)
class ClassificationResult:
    """규칙 기반 가구 속성 (모든 필드는 기본값으로 채워짐, None 없음)"""
    category: str
    condition: str
    metadata: FurnitureMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "condition": self.condition,
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class QualityScores:
    """이미지 품질 점수 (0~100)"""
    brightness: float
    sharpness: float

    def meets(self, min_score: float) -> bool:
        return self.brightness >= min_score and self.sharpness >= min_score


# 검수 서비스 장애 시 승인하지 않기 위한 플래그
MODERATION_UNAVAILABLE_FLAG = "ModerationUnavailable"

REASON_INAPPROPRIATE = "Image contains inappropriate content"
REASON_UNVERIFIED = "Image could not be verified by content moderation"
REASON_LOW_QUALITY = "Image quality does not meet minimum requirements"
REASON_APPROVED = "Image approved"


@dataclass(frozen=True)
class ModerationResult:
    """
    검수 결과

    is_approved와 reason은 flags/quality에서 매번 계산됩니다 (별도 저장 안 함).
    """
    flags: FrozenSet[str]
    quality: QualityScores
    min_quality_score: float

    @property
    def quality_acceptable(self) -> bool:
        return self.quality.meets(self.min_quality_score)

    @property
    def is_approved(self) -> bool:
        return not self.flags and self.quality_acceptable

    @property
    def reason(self) -> str:
        # 부적절 콘텐츠 사유가 품질 사유보다 우선
        if self.flags:
            if self.flags == {MODERATION_UNAVAILABLE_FLAG}:
                return REASON_UNVERIFIED
            return REASON_INAPPROPRIATE
        if not self.quality_acceptable:
            return REASON_LOW_QUALITY
        return REASON_APPROVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_approved": self.is_approved,
            "flags": sorted(self.flags),
            "reason": self.reason,
            "quality": {
                "brightness": self.quality.brightness,
                "sharpness": self.quality.sharpness,
            },
        }


@dataclass
class _Outcome:
    status: PipelineStatus
    state: PipelineState
    history: List[PipelineState] = field(default_factory=list)
    error: Optional[PipelineError] = None
    degradations: List[ExternalServiceDegraded] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.status == PipelineStatus.COMPLETED

    @property
    def degraded(self) -> bool:
        return bool(self.degradations)

    def _base_dict(self) -> Dict[str, Any]:
        data = {
            "status": self.status.value,
            "state": self.state.value,
            "degraded": self.degraded,
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        if self.degradations:
            data["degradations"] = [d.to_dict() for d in self.degradations]
        return data


@dataclass
class RecognitionOutcome(_Outcome):
    """
    recognize() 결과 (태그드 variant)

    status가 COMPLETED면 result가, 아니면 error가 채워집니다.
    """
    result: Optional[RecognitionResult] = None

    def unwrap(self) -> RecognitionResult:
        """성공 결과 반환, 실패면 원래 예외를 raise"""
        if self.result is None:
            raise self.error or PipelineError("Recognition produced no result")
        return self.result

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        if self.result is not None:
            data["recognition"] = self.result.to_dict()
        return data


@dataclass
class ModerationOutcome(_Outcome):
    result: Optional[ModerationResult] = None

    def unwrap(self) -> ModerationResult:
        if self.result is None:
            raise self.error or PipelineError("Moderation produced no result")
        return self.result

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        if self.result is not None:
            data["moderation"] = self.result.to_dict()
        return data
