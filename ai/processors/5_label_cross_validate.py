"""
Stage 5: 외부 라벨 서비스 교차 검증

외부 비전 라벨링 서비스에서 (label, confidence) 순위 목록을 받아
최소 신뢰도 이상인 라벨만 채택합니다.

best-effort 호출입니다: 타임아웃/오류는 ExternalServiceDegraded로 변환되며
오케스트레이터는 로컬 분류 결과만으로 계속 진행합니다.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import aiohttp

from ai.config import Config
from ai.errors import ExternalServiceDegraded

logger = logging.getLogger(__name__)

SERVICE_NAME = "label-cross-validation"


@dataclass(frozen=True)
class LabelScore:
    """외부 서비스 라벨 (confidence: 0~100)"""
    name: str
    confidence: float


def parse_label_response(payload: Dict) -> List[LabelScore]:
    """
    라벨 서비스 응답을 파싱합니다.

    {"labels": [{"name": "Chair", "confidence": 98.5}, ...]} 형식과
    {"Labels": [{"Name": "Chair", "Confidence": 98.5}, ...]} 형식을 모두 받습니다.
    """
    raw_labels = payload.get("labels")
    if raw_labels is None:
        raw_labels = payload.get("Labels", [])

    labels = []
    for item in raw_labels:
        name = item.get("name", item.get("Name"))
        confidence = item.get("confidence", item.get("Confidence"))
        if not name or confidence is None:
            continue
        labels.append(LabelScore(name=str(name), confidence=float(confidence)))
    return labels


class LabelServiceClient:
    """
    외부 라벨 서비스 HTTP 클라이언트

    POST {base_url}/detect-labels
        {"image": base64, "max_labels": int, "min_confidence": float}
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_labels: Optional[int] = None,
        min_confidence: Optional[float] = None
    ):
        self.base_url = (base_url or Config.LABEL_SERVICE_URL).rstrip('/')
        self.timeout = Config.CROSS_VALIDATION_TIMEOUT_SECONDS if timeout is None else timeout
        self.max_labels = max_labels or Config.MAX_LABELS
        self.min_confidence = Config.MIN_LABEL_CONFIDENCE if min_confidence is None else min_confidence

    async def detect_labels(self, image_bytes: bytes) -> List[LabelScore]:
        """
        Returns:
            순위순 LabelScore 리스트

        Raises:
            aiohttp.ClientError / asyncio.TimeoutError / RuntimeError (non-200)
        """
        image_b64 = base64.b64encode(image_bytes).decode('utf-8')

        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self.base_url}/detect-labels",
                json={
                    "image": image_b64,
                    "max_labels": self.max_labels,
                    "min_confidence": self.min_confidence
                },
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if response.status != 200:
                    raise RuntimeError(f"label service returned HTTP {response.status}")

                payload = await response.json()
                return parse_label_response(payload)


class LabelCrossValidator:
    """
    라벨 교차 검증기

    AI Logic Step 5: 원본 바이트 → 최소 신뢰도 이상 라벨명 리스트

    텐서가 아닌 검증된 원본 이미지 바이트를 전달합니다.
    """

    def __init__(
        self,
        service,
        min_confidence: Optional[float] = None,
        timeout: Optional[float] = None
    ):
        """
        Args:
            service: detect_labels(image_bytes) 코루틴을 제공하는 객체
            min_confidence: 채택 최소 신뢰도 (0~100)
            timeout: 대기 상한 (초)
        """
        self.service = service
        self.min_confidence = Config.MIN_LABEL_CONFIDENCE if min_confidence is None else min_confidence
        self.timeout = Config.CROSS_VALIDATION_TIMEOUT_SECONDS if timeout is None else timeout

    def filter_labels(self, scores: List[LabelScore]) -> List[str]:
        """최소 신뢰도 이상인 라벨명만 순위 순서대로 반환"""
        return [score.name for score in scores if score.confidence >= self.min_confidence]

    async def cross_validate(self, image_bytes: bytes) -> List[str]:
        """
        Returns:
            채택된 라벨명 리스트

        Raises:
            ExternalServiceDegraded: 타임아웃 또는 서비스 오류
        """
        try:
            scores = await asyncio.wait_for(
                self.service.detect_labels(image_bytes),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"[LabelCrossValidator] Timed out after {self.timeout}s")
            raise ExternalServiceDegraded(SERVICE_NAME, "Label service timed out", e) from e
        except Exception as e:
            logger.warning(f"[LabelCrossValidator] Label service error: {e}")
            raise ExternalServiceDegraded(SERVICE_NAME, "Label service unavailable", e) from e

        labels = self.filter_labels(scores)
        logger.debug(f"[LabelCrossValidator] Accepted {len(labels)}/{len(scores)} labels")
        return labels
