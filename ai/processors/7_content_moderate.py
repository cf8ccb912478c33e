"""
Stage 7: 콘텐츠 검수 (게시 승인/거부)

분류 결과와 독립적으로 동작합니다:
1. ImageValidator로 원본 바이트 검증 (재사용)
2. 외부 검수 서비스: 부적절 콘텐츠 플래그 조회
3. 외부 품질 평가: brightness / sharpness 점수 조회
   (2, 3은 서로 독립이므로 동시에 호출)

is_approved = flags 없음 AND brightness >= 기준 AND sharpness >= 기준

검수 호출 순서(검수 거부 이미지는 분류 단계로 보내지 않음)는
호출자가 보장합니다.
"""

import asyncio
import base64
import logging
from typing import Dict, List, Optional

import aiohttp

from ai.config import Config
from ai.errors import ExternalServiceDegraded, InvalidImage
from ai.results import (
    MODERATION_UNAVAILABLE_FLAG,
    ModerationOutcome,
    ModerationResult,
    PipelineState,
    PipelineStatus,
    QualityScores,
)
from ai.utils.image_ops import ImageUtils

logger = logging.getLogger(__name__)

MODERATION_SERVICE = "content-moderation"
QUALITY_SERVICE = "quality-assessment"


def parse_moderation_response(payload: Dict, min_confidence: float) -> List[str]:
    """
    {"flags": ["Violence", ...]} 또는
    {"ModerationLabels": [{"Name": ..., "Confidence": ...}]} 형식 파싱
    """
    if "flags" in payload:
        return [str(flag) for flag in payload["flags"] if flag]

    flags = []
    for item in payload.get("ModerationLabels", []):
        name = item.get("Name")
        if name and float(item.get("Confidence", 100.0)) >= min_confidence:
            flags.append(str(name))
    return flags


class ModerationServiceClient:
    """
    외부 검수/품질 서비스 HTTP 클라이언트

    POST {base_url}/detect-moderation-labels  → {"flags": [...]}
    POST {base_url}/assess-quality            → {"brightness": float, "sharpness": float}
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        min_confidence: Optional[float] = None
    ):
        self.base_url = (base_url or Config.MODERATION_SERVICE_URL).rstrip('/')
        self.timeout = Config.MODERATION_TIMEOUT_SECONDS if timeout is None else timeout
        self.min_confidence = Config.MIN_MODERATION_CONFIDENCE if min_confidence is None else min_confidence

    async def _post(self, path: str, body: Dict) -> Dict:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self.base_url}{path}",
                json=body,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if response.status != 200:
                    raise RuntimeError(f"{path} returned HTTP {response.status}")
                return await response.json()

    async def detect_moderation_labels(self, image_bytes: bytes) -> List[str]:
        payload = await self._post(
            "/detect-moderation-labels",
            {
                "image": base64.b64encode(image_bytes).decode('utf-8'),
                "min_confidence": self.min_confidence
            }
        )
        return parse_moderation_response(payload, self.min_confidence)

    async def assess_quality(self, image_bytes: bytes) -> QualityScores:
        payload = await self._post(
            "/assess-quality",
            {"image": base64.b64encode(image_bytes).decode('utf-8')}
        )
        return QualityScores(
            brightness=float(payload["brightness"]),
            sharpness=float(payload["sharpness"])
        )


class LocalQualityAssessor:
    """
    OpenCV 기반 로컬 품질 평가기

    외부 품질 서비스 장애 시 대체 경로로 사용됩니다.
    - brightness: 그레이스케일 평균 밝기 (0~100)
    - sharpness: Laplacian 분산 (0~100로 스케일)
    """

    def measure(self, image_bytes: bytes) -> QualityScores:
        pil_image = ImageUtils.flatten_alpha(ImageUtils.load_image_bytes(image_bytes), Config.PAD_COLOR)
        cv2_image = ImageUtils.pil_to_cv2(pil_image)
        return QualityScores(
            brightness=ImageUtils.measure_brightness(cv2_image),
            sharpness=ImageUtils.measure_sharpness(cv2_image)
        )

    async def assess_quality(self, image_bytes: bytes) -> QualityScores:
        return await asyncio.to_thread(self.measure, image_bytes)


class ModerationEngine:
    """
    콘텐츠 검수 엔진

    AI Logic Step 7: 원본 바이트 → ModerationOutcome

    외부 호출 실패는 치명적이지 않으며 degradations에 기록됩니다:
    - 검수 라벨 실패: ModerationUnavailable 플래그 (승인 안 함)
    - 품질 평가 실패: LocalQualityAssessor로 대체
    """

    def __init__(
        self,
        validator,
        moderation_service,
        quality_assessor=None,
        fallback_quality_assessor: Optional[LocalQualityAssessor] = None,
        min_quality_score: Optional[float] = None,
        timeout: Optional[float] = None
    ):
        """
        Args:
            validator: ImageValidator
            moderation_service: detect_moderation_labels(bytes) 코루틴 제공 객체
            quality_assessor: assess_quality(bytes) 코루틴 제공 객체 (None이면 moderation_service)
            fallback_quality_assessor: 품질 평가 장애 시 대체 평가기
            min_quality_score: brightness/sharpness 최소 점수
            timeout: 외부 호출 대기 상한 (초)
        """
        self.validator = validator
        self.moderation_service = moderation_service
        self.quality_assessor = quality_assessor or moderation_service
        self.fallback_quality_assessor = fallback_quality_assessor or LocalQualityAssessor()
        self.min_quality_score = Config.MIN_QUALITY_SCORE if min_quality_score is None else min_quality_score
        self.timeout = Config.MODERATION_TIMEOUT_SECONDS if timeout is None else timeout

    async def moderate(self, image_bytes: bytes, content_type: Optional[str] = None) -> ModerationOutcome:
        history = [PipelineState.RECEIVED]

        try:
            validated = self.validator.validate_bytes(image_bytes, content_type)
        except InvalidImage as e:
            history.append(PipelineState.REJECTED)
            return ModerationOutcome(
                status=PipelineStatus.REJECTED,
                state=PipelineState.REJECTED,
                history=history,
                error=e
            )
        history.append(PipelineState.VALIDATED)

        degradations: List[ExternalServiceDegraded] = []
        flags, quality = await asyncio.gather(
            self._detect_flags(validated.data, degradations),
            self._assess_quality(validated.data, degradations)
        )

        result = ModerationResult(
            flags=frozenset(flags),
            quality=quality,
            min_quality_score=self.min_quality_score
        )
        history.append(PipelineState.COMPLETED)

        logger.info(
            f"[ModerationEngine] approved={result.is_approved} flags={sorted(result.flags)} "
            f"brightness={quality.brightness:.1f} sharpness={quality.sharpness:.1f}"
        )
        return ModerationOutcome(
            status=PipelineStatus.COMPLETED,
            state=PipelineState.COMPLETED,
            history=history,
            degradations=degradations,
            result=result
        )

    async def _detect_flags(
        self,
        image_bytes: bytes,
        degradations: List[ExternalServiceDegraded]
    ) -> List[str]:
        try:
            return list(await asyncio.wait_for(
                self.moderation_service.detect_moderation_labels(image_bytes),
                timeout=self.timeout
            ))
        except Exception as e:
            logger.warning(f"[ModerationEngine] Moderation labels unavailable: {e!r}")
            degradations.append(
                ExternalServiceDegraded(MODERATION_SERVICE, "Moderation service unavailable", e)
            )
            return [MODERATION_UNAVAILABLE_FLAG]

    async def _assess_quality(
        self,
        image_bytes: bytes,
        degradations: List[ExternalServiceDegraded]
    ) -> QualityScores:
        try:
            return await asyncio.wait_for(
                self.quality_assessor.assess_quality(image_bytes),
                timeout=self.timeout
            )
        except Exception as e:
            logger.warning(f"[ModerationEngine] Quality service unavailable, using local assessor: {e!r}")
            degradations.append(
                ExternalServiceDegraded(QUALITY_SERVICE, "Quality service unavailable", e)
            )

        try:
            return await self.fallback_quality_assessor.assess_quality(image_bytes)
        except Exception as e:
            logger.error(f"[ModerationEngine] Local quality assessment failed: {e}", exc_info=True)
            return QualityScores(brightness=0.0, sharpness=0.0)
