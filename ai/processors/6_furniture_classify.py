"""
Stage 6: 가구 속성 분류

RecognitionResult의 라벨을 Knowledge Base 규칙 테이블과 대조하여
카테고리 / 상태 / 색상 / 재질 / 스타일을 결정합니다.

순수 함수입니다: 같은 입력은 항상 같은 결과를 반환합니다.
"""

import logging

from ai.data.knowledge_base import (
    COLOR_KEYWORDS,
    MATERIAL_KEYWORDS,
    STYLE_KEYWORDS,
    DEFAULT_CONDITION,
    DEFAULT_COLOR,
    DEFAULT_MATERIAL,
    DEFAULT_STYLE,
    normalize_labels,
    find_category,
    find_condition,
    find_keyword,
)
from ai.results import ClassificationResult, FurnitureMetadata, RecognitionResult

logger = logging.getLogger(__name__)


class ClassificationEngine:
    """
    규칙 기반 가구 분류기

    AI Logic Step 6: RecognitionResult → ClassificationResult

    - 카테고리: chair → table → sofa → bed → storage 순서, 미매칭 시 로컬 추정값
    - 상태: excellent → good → fair → poor 순서, 미매칭 시 good
    - 메타데이터: 색상/재질/스타일 각각 독립적으로 기본값 적용
    """

    def classify(self, result: RecognitionResult) -> ClassificationResult:
        labels = normalize_labels(list(result.labels))

        category = find_category(labels) or result.primary_category_guess
        condition = find_condition(labels) or DEFAULT_CONDITION
        metadata = self.extract_metadata(labels)

        classification = ClassificationResult(
            category=category,
            condition=condition,
            metadata=metadata
        )
        logger.debug(f"[ClassificationEngine] {list(result.labels)} -> {classification}")
        return classification

    @staticmethod
    def extract_metadata(labels) -> FurnitureMetadata:
        """
        Args:
            labels: 소문자 라벨 리스트
        """
        return FurnitureMetadata(
            color=find_keyword(labels, COLOR_KEYWORDS) or DEFAULT_COLOR,
            material=find_keyword(labels, MATERIAL_KEYWORDS) or DEFAULT_MATERIAL,
            style=find_keyword(labels, STYLE_KEYWORDS) or DEFAULT_STYLE,
        )
