# AI - Furniture Image Recognition and Moderation Module
"""
AI (Artificial Intelligence) Module

중고 가구 마켓 업로드 이미지 인식 및 검수 시스템

Pipeline Processors:
    1. 원본 바이트 검증 (1_image_validate.py)
    2. 전처리 - 패딩 리사이즈, sRGB, 명암 정규화 (2_image_preprocess.py)
    3. 텐서 인코딩 - 스코프 해제 (3_tensor_encode.py)
    4. 로컬 분류 모델 추론 (4_local_classify.py)
    5. 외부 라벨 교차 검증 (5_label_cross_validate.py)
    6. 규칙 기반 속성 분류 (6_furniture_classify.py)
    7. 콘텐츠 검수 (7_content_moderate.py)

Directory Structure:
    ai/
    ├── pipeline/           # 오케스트레이터 + 통합 파이프라인
    ├── processors/         # AI Logic 단계별 모듈
    ├── data/               # Knowledge Base (키워드 규칙 테이블)
    ├── utils/              # 유틸리티 (이미지 처리)
    ├── errors.py           # 예외 분류
    ├── results.py          # 결과 타입
    └── config.py           # 설정

Usage:
    from ai.pipeline import RecognitionPipeline

    pipeline = RecognitionPipeline.from_config()
    outcome, classification = await pipeline.analyze(image_bytes)
"""

__version__ = "1.0.0"

# 주요 클래스 노출
from .pipeline import RecognitionOrchestrator, RecognitionPipeline
from .results import (
    RecognitionResult,
    ClassificationResult,
    ModerationResult,
    RecognitionOutcome,
    ModerationOutcome,
    PipelineStatus,
    PipelineState,
)
from .processors import (
    ImageValidator,
    ImagePreprocessor,
    TensorEncoder,
    LocalClassifier,
    LabelCrossValidator,
    ClassificationEngine,
    ModerationEngine,
)

__all__ = [
    # Pipeline
    'RecognitionOrchestrator',
    'RecognitionPipeline',
    # Results
    'RecognitionResult',
    'ClassificationResult',
    'ModerationResult',
    'RecognitionOutcome',
    'ModerationOutcome',
    'PipelineStatus',
    'PipelineState',
    # Processors
    'ImageValidator',
    'ImagePreprocessor',
    'TensorEncoder',
    'LocalClassifier',
    'LabelCrossValidator',
    'ClassificationEngine',
    'ModerationEngine',
]
