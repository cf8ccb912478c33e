"""
AI Furniture Recognition Pipeline

검증 → 전처리 → 인코딩 → 로컬 분류 + 교차 검증 → 병합 → 속성 분류
검수(ModerationEngine)는 인식과 독립적으로 실행
"""

from .recognition_pipeline import (
    RecognitionOrchestrator,
    RecognitionPipeline,
    PipelineTrace,
    UploadAnalysis,
    merge_labels,
)

__all__ = [
    'RecognitionOrchestrator',
    'RecognitionPipeline',
    'PipelineTrace',
    'UploadAnalysis',
    'merge_labels',
]
