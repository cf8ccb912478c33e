"""
AI Pipeline Processors

AI Logic 단계별 모듈:
1. 원본 바이트 검증 (크기/포맷/해상도)
2. 전처리 (리사이즈+패딩, sRGB, 명암 정규화, JPEG 재인코딩)
3. 텐서 인코딩 (스코프 해제 보장)
4. 로컬 분류 모델 추론
5. 외부 라벨 서비스 교차 검증
6. 규칙 기반 가구 속성 분류
7. 콘텐츠 검수 (분류와 독립)
"""

import importlib

# 숫자/하이픈이 포함된 파일명을 위한 동적 import
_stage1 = importlib.import_module('.1_image_validate', package='ai.processors')
_stage2 = importlib.import_module('.2_image_preprocess', package='ai.processors')
_stage3 = importlib.import_module('.3_tensor_encode', package='ai.processors')
_stage4 = importlib.import_module('.4_local_classify', package='ai.processors')
_stage5 = importlib.import_module('.5_label_cross_validate', package='ai.processors')
_stage6 = importlib.import_module('.6_furniture_classify', package='ai.processors')
_stage7 = importlib.import_module('.7_content_moderate', package='ai.processors')

# 클래스 노출
ImageBuffer = _stage1.ImageBuffer
ValidatedImage = _stage1.ValidatedImage
ImageValidator = _stage1.ImageValidator
NormalizedImage = _stage2.NormalizedImage
ImagePreprocessor = _stage2.ImagePreprocessor
TensorHandle = _stage3.TensorHandle
TensorEncoder = _stage3.TensorEncoder
LocalClassifier = _stage4.LocalClassifier
LabelScore = _stage5.LabelScore
LabelServiceClient = _stage5.LabelServiceClient
LabelCrossValidator = _stage5.LabelCrossValidator
ClassificationEngine = _stage6.ClassificationEngine
ModerationServiceClient = _stage7.ModerationServiceClient
LocalQualityAssessor = _stage7.LocalQualityAssessor
ModerationEngine = _stage7.ModerationEngine

__all__ = [
    # Step 1-3: Input
    'ImageBuffer',
    'ValidatedImage',
    'ImageValidator',
    'NormalizedImage',
    'ImagePreprocessor',
    'TensorHandle',
    'TensorEncoder',
    # Step 4-5: Inference
    'LocalClassifier',
    'LabelScore',
    'LabelServiceClient',
    'LabelCrossValidator',
    # Step 6: Attributes
    'ClassificationEngine',
    # Step 7: Moderation
    'ModerationServiceClient',
    'LocalQualityAssessor',
    'ModerationEngine',
]
