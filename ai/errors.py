"""
Recognition Pipeline Errors

파이프라인 단계별 예외 정의:
- ValidationError 계열: 클라이언트가 수정 가능한 입력 오류 (HTTP 4xx)
- InferenceError / EncodingFailed: 서버 측 오류 (HTTP 5xx)
- ExternalServiceDegraded: 호출자에게 raise되지 않고 결과에 기록만 됨
"""

from enum import Enum
from typing import Any, Dict, Optional


class InvalidImageReason(str, Enum):
    """이미지 검증 실패 사유"""
    SIZE_EXCEEDED = "SizeExceeded"
    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    TOO_SMALL = "TooSmall"
    TOO_LARGE = "TooLarge"
    CORRUPT = "Corrupt"


class PipelineError(Exception):
    """파이프라인 예외 기본 클래스"""

    kind = "PipelineError"
    client_error = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(PipelineError):
    kind = "ValidationError"
    client_error = True


class InvalidImage(ValidationError):
    """ImageValidator 거부 (크기/포맷/해상도)"""

    kind = "InvalidImage"

    def __init__(
        self,
        reason: InvalidImageReason,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason.value
        return data


class PreprocessingFailed(ValidationError):
    """시그니처 검사는 통과했지만 디코딩/리사이즈에 실패한 경우"""

    kind = "PreprocessingFailed"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        details = {"cause": repr(cause)} if cause is not None else {}
        super().__init__(message, details)
        self.cause = cause


class EncodingFailed(PipelineError):
    kind = "EncodingFailed"


class InferenceError(PipelineError):
    """로컬 분류 모델 사용 불가/실패 - 해당 요청은 실패 처리"""

    kind = "InferenceError"


class ExternalServiceDegraded(PipelineError):
    """외부 서비스 타임아웃/오류 (치명적이지 않음, 결과에 기록)"""

    kind = "ExternalServiceDegraded"

    def __init__(self, service: str, message: str, cause: Optional[BaseException] = None):
        details = {"service": service}
        if cause is not None:
            details["cause"] = repr(cause)
        super().__init__(message, details)
        self.service = service
        self.cause = cause
