import torch
import os
from typing import List, Optional, Dict, Tuple


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, default))


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # 그래픽 사용 유무
    DEVICE = "cuda" if torch.cuda.is_available() else "cpu"

    # 단일 GPU 작업 시 기본 GPU ID
    DEFAULT_GPU_ID: int = 0

    @staticmethod
    def get_device(gpu_id: Optional[int] = None) -> str:
        """
        지정된 GPU ID에 대한 디바이스 문자열을 반환합니다.

        Args:
            gpu_id: GPU ID (None이면 DEFAULT_GPU_ID 사용)

        Returns:
            디바이스 문자열 (예: "cuda:0", "cuda:1", "cpu")
        """
        if not torch.cuda.is_available():
            return "cpu"

        if gpu_id is None:
            gpu_id = Config.DEFAULT_GPU_ID

        return f"cuda:{gpu_id}"

    # --- Image Validation ---
    # 업로드 최대 크기 (10 MiB)
    MAX_IMAGE_BYTES: int = _env_int("MAX_IMAGE_BYTES", 10 * 1024 * 1024)
    MIN_IMAGE_DIMENSION: int = _env_int("MIN_IMAGE_DIMENSION", 224)
    MAX_IMAGE_DIMENSION: int = _env_int("MAX_IMAGE_DIMENSION", 4096)

    # --- Preprocessing ---
    # 분류 모델 입력 크기 (정사각형)
    TARGET_SIZE: int = _env_int("TARGET_SIZE", 224)
    # 비율 유지 리사이즈 후 남는 영역 채움 색상 (흰색)
    PAD_COLOR: Tuple[int, int, int] = (255, 255, 255)
    JPEG_QUALITY: int = _env_int("JPEG_QUALITY", 90)

    # 저조도/저대비 사진용 CLAHE. 기본 autocontrast 정규화는 항상 수행됨
    USE_CLAHE_ENHANCEMENT: bool = _env_bool("USE_CLAHE_ENHANCEMENT", False)

    # 가장자리 여백 자동 크롭 (엣지 기반)
    CROP_TO_CONTENT: bool = _env_bool("CROP_TO_CONTENT", False)

    # --- Local Classifier ---
    CLASSIFIER_MODEL_PATH: str = os.environ.get("CLASSIFIER_MODEL_PATH", "models/furniture_classifier.pt")
    # 모델 출력 벡터 순서와 반드시 일치해야 함
    CLASSIFIER_CLASSES: List[str] = ["chair", "table", "sofa", "bed", "storage"]

    # --- Label Cross-Validation ---
    LABEL_SERVICE_URL: str = os.environ.get("LABEL_SERVICE_URL", "http://localhost:8100")
    # 외부 라벨 채택 최소 신뢰도 (0~100)
    MIN_LABEL_CONFIDENCE: float = _env_float("MIN_LABEL_CONFIDENCE", 70.0)
    MAX_LABELS: int = _env_int("MAX_LABELS", 10)
    CROSS_VALIDATION_TIMEOUT_SECONDS: float = _env_float("CROSS_VALIDATION_TIMEOUT_SECONDS", 5.0)

    # --- Moderation ---
    MODERATION_SERVICE_URL: str = os.environ.get("MODERATION_SERVICE_URL", "http://localhost:8100")
    MIN_MODERATION_CONFIDENCE: float = _env_float("MIN_MODERATION_CONFIDENCE", 60.0)
    # brightness / sharpness 공통 최소 점수 (0~100)
    MIN_QUALITY_SCORE: float = _env_float("MIN_QUALITY_SCORE", 80.0)
    MODERATION_TIMEOUT_SECONDS: float = _env_float("MODERATION_TIMEOUT_SECONDS", 5.0)

    @staticmethod
    def as_dict() -> Dict:
        """현재 적용 중인 임계값 반환 (health 응답용)"""
        return {
            "max_image_bytes": Config.MAX_IMAGE_BYTES,
            "min_image_dimension": Config.MIN_IMAGE_DIMENSION,
            "max_image_dimension": Config.MAX_IMAGE_DIMENSION,
            "target_size": Config.TARGET_SIZE,
            "min_label_confidence": Config.MIN_LABEL_CONFIDENCE,
            "min_quality_score": Config.MIN_QUALITY_SCORE,
            "cross_validation_timeout_seconds": Config.CROSS_VALIDATION_TIMEOUT_SECONDS,
            "classifier_classes": list(Config.CLASSIFIER_CLASSES),
        }

    @staticmethod
    def check_dependencies():
        if not os.path.exists(Config.CLASSIFIER_MODEL_PATH):
            print(f"[Warn] Classifier model not found at {Config.CLASSIFIER_MODEL_PATH}. Recognition will fail until it is provided.")
