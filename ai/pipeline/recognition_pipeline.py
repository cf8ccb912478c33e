"""
Furniture Recognition Pipeline

가구 이미지 인식/검수 파이프라인 오케스트레이터:

[인식 흐름]
1. ImageValidator - 크기/포맷/해상도 검증
2. ImagePreprocessor - 224x224 패딩 리사이즈, sRGB, 명암 정규화
3. TensorEncoder - [1, H, W, 3] 텐서 (스코프 해제)
4. LocalClassifier - 확률 벡터 → arg-max 추정 (필수)
5. LabelCrossValidator - 외부 라벨 (best-effort, 4와 동시 실행)
6. 라벨 병합 → RecognitionResult
7. ClassificationEngine - 카테고리/상태/메타데이터

[검수 흐름]
ModerationEngine - 인식과 독립적으로 같은 원본 바이트를 검사

상태 전이:
    RECEIVED → VALIDATED → PREPROCESSED → LOCALLY_CLASSIFIED
      → (CROSS_VALIDATED | CROSS_VALIDATION_SKIPPED) → COMPLETED
    RECEIVED/VALIDATED → REJECTED (입력 오류)
    PREPROCESSED/LOCALLY_CLASSIFIED → FAILED (추론/인프라 오류)
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from ai.config import Config
from ai.errors import (
    EncodingFailed,
    ExternalServiceDegraded,
    InferenceError,
    PipelineError,
    ValidationError,
)
from ai.processors import (
    ImageValidator,
    ImagePreprocessor,
    TensorEncoder,
    LocalClassifier,
    LabelServiceClient,
    LabelCrossValidator,
    ClassificationEngine,
    ModerationServiceClient,
    ModerationEngine,
)
from ai.results import (
    ClassificationResult,
    ModerationOutcome,
    PipelineState,
    PipelineStatus,
    RecognitionOutcome,
    RecognitionResult,
)

logger = logging.getLogger(__name__)


class PipelineTrace:
    """
    이미지 1건의 상태 전이 기록

    허용되지 않은 전이(재진입 포함)는 RuntimeError를 발생시킵니다.
    """

    TRANSITIONS = {
        PipelineState.RECEIVED: {PipelineState.VALIDATED, PipelineState.REJECTED},
        PipelineState.VALIDATED: {PipelineState.PREPROCESSED, PipelineState.REJECTED},
        PipelineState.PREPROCESSED: {PipelineState.LOCALLY_CLASSIFIED, PipelineState.FAILED},
        PipelineState.LOCALLY_CLASSIFIED: {
            PipelineState.CROSS_VALIDATED,
            PipelineState.CROSS_VALIDATION_SKIPPED,
            PipelineState.FAILED,
        },
        PipelineState.CROSS_VALIDATED: {PipelineState.COMPLETED},
        PipelineState.CROSS_VALIDATION_SKIPPED: {PipelineState.COMPLETED},
    }

    def __init__(self):
        self.history: List[PipelineState] = [PipelineState.RECEIVED]

    @property
    def state(self) -> PipelineState:
        return self.history[-1]

    def advance(self, next_state: PipelineState) -> None:
        allowed = self.TRANSITIONS.get(self.state, set())
        if next_state not in allowed:
            raise RuntimeError(f"Illegal pipeline transition {self.state.value} -> {next_state.value}")
        self.history.append(next_state)


def merge_labels(primary: str, cross_labels: Sequence[str]) -> List[str]:
    """
    로컬 추정 라벨 + 교차 검증 라벨 병합 (정확히 같은 문자열만 중복 제거, 순서 유지)
    """
    return list(dict.fromkeys([primary, *cross_labels]))


def _discard_task(task: Optional[asyncio.Task]) -> None:
    """대기하지 않을 태스크 정리 (진행 중이면 취소, 완료됐으면 예외 회수)"""
    if task is None:
        return
    if not task.done():
        task.cancel()
    elif not task.cancelled():
        task.exception()


class RecognitionOrchestrator:
    """
    인식 오케스트레이터

    검증 → 전처리 → 인코딩 → (로컬 분류 || 교차 검증) → 병합

    결과는 예외 대신 RecognitionOutcome(태그드 variant)으로 반환합니다.
    텐서는 모든 경로(성공/검증 실패/추론 실패/취소)에서 정확히 한 번 해제됩니다.
    """

    def __init__(
        self,
        classifier: LocalClassifier,
        cross_validator: Optional[LabelCrossValidator] = None,
        validator: Optional[ImageValidator] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        encoder: Optional[TensorEncoder] = None
    ):
        """
        Args:
            classifier: 사전 로드된 로컬 분류기 (공유, 읽기 전용)
            cross_validator: 외부 라벨 교차 검증기 (None이면 교차 검증 생략)
            validator: 이미지 검증기
            preprocessor: 전처리기
            encoder: 텐서 인코더
        """
        self.classifier = classifier
        self.cross_validator = cross_validator
        self.validator = validator or ImageValidator()
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.encoder = encoder or TensorEncoder()

    async def recognize(self, image_bytes: bytes, content_type: Optional[str] = None) -> RecognitionOutcome:
        """
        Args:
            image_bytes: 업로드 원본 바이트
            content_type: 선언된 MIME 타입 (기록용)

        Returns:
            RecognitionOutcome (COMPLETED | REJECTED | FAILED)
        """
        trace = PipelineTrace()
        degradations: List[ExternalServiceDegraded] = []

        # Stage 1-2: 검증 + 전처리 (클라이언트 수정 가능 오류)
        try:
            validated = self.validator.validate_bytes(image_bytes, content_type)
            trace.advance(PipelineState.VALIDATED)
            normalized = await asyncio.to_thread(self.preprocessor.preprocess, validated)
            trace.advance(PipelineState.PREPROCESSED)
        except ValidationError as e:
            trace.advance(PipelineState.REJECTED)
            return self._finish(trace, PipelineStatus.REJECTED, error=e)

        # Stage 3: 인코딩
        try:
            handle = self.encoder.encode(normalized)
        except EncodingFailed as e:
            trace.advance(PipelineState.FAILED)
            return self._finish(trace, PipelineStatus.FAILED, error=e)

        # Stage 4-5: 로컬 분류와 교차 검증은 독립적이므로 동시에 시작
        cross_task = None
        try:
            if self.cross_validator is not None:
                cross_task = asyncio.create_task(self.cross_validator.cross_validate(validated.data))

            try:
                with handle:
                    probabilities = await asyncio.to_thread(self.classifier.predict, handle.tensor)
                primary, probability = self.classifier.best(probabilities)
            except InferenceError as e:
                logger.error(f"[RecognitionOrchestrator] Local classification failed: {e.details}")
                trace.advance(PipelineState.FAILED)
                return self._finish(trace, PipelineStatus.FAILED, error=e)
            trace.advance(PipelineState.LOCALLY_CLASSIFIED)

            cross_labels: List[str] = []
            if cross_task is None:
                trace.advance(PipelineState.CROSS_VALIDATION_SKIPPED)
            else:
                try:
                    cross_labels = await cross_task
                    trace.advance(PipelineState.CROSS_VALIDATED)
                except ExternalServiceDegraded as e:
                    degradations.append(e)
                    trace.advance(PipelineState.CROSS_VALIDATION_SKIPPED)
        finally:
            # 취소/예외 경로 포함 - 텐서 해제 및 진행 중 외부 호출 중단
            handle.release()
            _discard_task(cross_task)

        # Stage 6: 병합
        result = RecognitionResult(
            primary_category_guess=primary,
            confidence_score=self._to_confidence_score(probability),
            labels=tuple(merge_labels(primary, cross_labels)),
            recognized_at=datetime.now(timezone.utc)
        )
        trace.advance(PipelineState.COMPLETED)

        logger.info(
            f"[RecognitionOrchestrator] {result.primary_category_guess} "
            f"({result.confidence_score:.2f}) labels={list(result.labels)} degraded={bool(degradations)}"
        )
        return self._finish(trace, PipelineStatus.COMPLETED, result=result, degradations=degradations)

    @staticmethod
    def _to_confidence_score(probability: float) -> float:
        # float32 출력 오차 보정을 위해 소수점 4자리 반올림
        return round(min(100.0, max(0.0, probability * 100.0)), 4)

    @staticmethod
    def _finish(
        trace: PipelineTrace,
        status: PipelineStatus,
        result: Optional[RecognitionResult] = None,
        error: Optional[PipelineError] = None,
        degradations: Optional[List[ExternalServiceDegraded]] = None
    ) -> RecognitionOutcome:
        if status == PipelineStatus.REJECTED:
            logger.info(f"[RecognitionOrchestrator] Rejected: {error.kind} {error.message}")
        return RecognitionOutcome(
            status=status,
            state=trace.state,
            history=list(trace.history),
            error=error,
            degradations=list(degradations or []),
            result=result
        )


@dataclass
class UploadAnalysis:
    """업로드 1건의 검수 + 인식 + 분류 결과"""
    moderation: ModerationOutcome
    recognition: Optional[RecognitionOutcome] = None
    classification: Optional[ClassificationResult] = None

    @property
    def is_published(self) -> bool:
        return self.classification is not None


class RecognitionPipeline:
    """
    가구 인식/검수 통합 파이프라인

    Usage:
        pipeline = RecognitionPipeline.from_config()
        outcome, classification = await pipeline.analyze(image_bytes)
    """

    def __init__(
        self,
        orchestrator: RecognitionOrchestrator,
        moderation_engine: ModerationEngine,
        classification_engine: Optional[ClassificationEngine] = None
    ):
        self.orchestrator = orchestrator
        self.moderation_engine = moderation_engine
        self.classification_engine = classification_engine or ClassificationEngine()

    @classmethod
    def from_config(
        cls,
        classifier: Optional[LocalClassifier] = None,
        label_service=None,
        moderation_service=None,
        device_id: Optional[int] = None
    ) -> "RecognitionPipeline":
        """
        Config 기반 파이프라인 생성 (서버 시작 시 1회)

        classifier를 넘기지 않으면 CLASSIFIER_MODEL_PATH에서 로드합니다.
        """
        classifier = classifier or LocalClassifier.from_config(device_id=device_id)
        validator = ImageValidator()

        orchestrator = RecognitionOrchestrator(
            classifier=classifier,
            cross_validator=LabelCrossValidator(label_service or LabelServiceClient()),
            validator=validator,
            preprocessor=ImagePreprocessor(),
            encoder=TensorEncoder(device_id=device_id)
        )
        moderation_engine = ModerationEngine(
            validator=validator,
            moderation_service=moderation_service or ModerationServiceClient()
        )

        logger.info(f"[RecognitionPipeline] Initialized on {Config.get_device(device_id)}")
        return cls(orchestrator, moderation_engine)

    async def recognize(self, image_bytes: bytes, content_type: Optional[str] = None) -> RecognitionOutcome:
        return await self.orchestrator.recognize(image_bytes, content_type)

    def classify(self, result: RecognitionResult) -> ClassificationResult:
        return self.classification_engine.classify(result)

    async def moderate(self, image_bytes: bytes, content_type: Optional[str] = None) -> ModerationOutcome:
        return await self.moderation_engine.moderate(image_bytes, content_type)

    async def analyze(self, image_bytes: bytes, content_type: Optional[str] = None):
        """
        인식 + 분류

        Returns:
            (RecognitionOutcome, ClassificationResult | None) - 분류는 인식 성공 시에만
        """
        outcome = await self.recognize(image_bytes, content_type)
        if not outcome.is_success:
            return outcome, None
        return outcome, self.classify(outcome.result)

    async def process_upload(self, image_bytes: bytes, content_type: Optional[str] = None) -> UploadAnalysis:
        """
        검수와 인식을 동시에 실행하고, 승인된 이미지만 분류합니다.
        """
        moderation, recognition = await asyncio.gather(
            self.moderate(image_bytes, content_type),
            self.recognize(image_bytes, content_type)
        )

        analysis = UploadAnalysis(moderation=moderation, recognition=recognition)
        if moderation.is_success and moderation.result.is_approved and recognition.is_success:
            analysis.classification = self.classify(recognition.result)
        return analysis

    @staticmethod
    def to_json_response(
        outcome: RecognitionOutcome,
        classification: Optional[ClassificationResult] = None
    ) -> Dict:
        """
        HTTP 응답 포맷으로 변환

        성공: {"recognition": {...}, "classification": {...}, "degraded": bool}
        실패: {"error": {"kind": ..., "message": ...}}
        """
        if not outcome.is_success:
            return {
                "status": outcome.status.value,
                "error": outcome.error.to_dict() if outcome.error else None,
            }

        response = {
            "recognition": outcome.result.to_dict(),
            "classification": classification.to_dict() if classification else None,
            "degraded": outcome.degraded,
        }
        if outcome.degraded:
            response["degradations"] = [d.to_dict() for d in outcome.degradations]
        return response
