"""
Stage 4: 로컬 분류 모델 추론

사전 로드된 TorchScript 분류 모델로 클래스별 확률을 계산합니다.

모델 핸들은 프로세스 시작 시 한 번 로드되어 읽기 전용으로 공유되며,
오케스트레이터에 주입됩니다 (lazy singleton 사용 안 함).
"""

import logging
import os
from typing import Callable, List, Optional, Sequence, Tuple

import torch

from ai.config import Config
from ai.errors import InferenceError

logger = logging.getLogger(__name__)


class LocalClassifier:
    """
    로컬 가구 분류기

    AI Logic Step 4: 텐서 [1, H, W, 3] → 확률 벡터 (CLASSIFIER_CLASSES 순서)

    Features:
    - torch.inference_mode()로 그래디언트 비활성화
    - 출력 길이 검증 (클래스 목록과 불일치 시 InferenceError)
    - apply_softmax=True면 로짓 출력 모델도 사용 가능
    """

    def __init__(
        self,
        model: Callable[[torch.Tensor], torch.Tensor],
        class_names: Optional[Sequence[str]] = None,
        apply_softmax: bool = False
    ):
        """
        Args:
            model: 로드된 모델 (torch.nn.Module 또는 텐서를 받는 callable)
            class_names: 출력 벡터 순서의 클래스명 (None이면 Config 값)
            apply_softmax: 모델 출력이 로짓이면 True
        """
        self.model = model
        self.class_names: List[str] = list(class_names or Config.CLASSIFIER_CLASSES)
        self.apply_softmax = apply_softmax

        if hasattr(self.model, "eval"):
            self.model.eval()

    @classmethod
    def from_config(
        cls,
        model_path: Optional[str] = None,
        device_id: Optional[int] = None,
        apply_softmax: bool = False
    ) -> "LocalClassifier":
        """
        TorchScript 모델을 로드합니다 (서버 시작 시 1회).

        Raises:
            InferenceError: 모델 파일이 없거나 로드 실패
        """
        path = model_path or Config.CLASSIFIER_MODEL_PATH
        device = Config.get_device(device_id)

        if not os.path.exists(path):
            raise InferenceError("Classifier model not found", {"model_path": path})

        try:
            model = torch.jit.load(path, map_location=device)
        except Exception as e:
            raise InferenceError("Classifier model failed to load", {"model_path": path, "error": str(e)}) from e

        logger.info(f"[LocalClassifier] Loaded {path} on {device}")
        return cls(model, apply_softmax=apply_softmax)

    def predict(self, tensor: torch.Tensor) -> List[float]:
        """
        Args:
            tensor: [1, H, W, 3] 입력 텐서

        Returns:
            클래스별 확률 리스트 (class_names 순서)

        Raises:
            InferenceError: 모델 실행 실패 또는 출력 형태 불일치
        """
        try:
            with torch.inference_mode():
                output = self.model(tensor)
                if not isinstance(output, torch.Tensor):
                    output = torch.as_tensor(output)
                output = output.detach().float().reshape(-1)
                if self.apply_softmax:
                    output = torch.softmax(output, dim=0)
                probabilities = output.cpu().tolist()
        except Exception as e:
            logger.error(f"[LocalClassifier] Inference failed: {e}", exc_info=True)
            raise InferenceError("Local classifier inference failed", {"error": str(e)}) from e

        if len(probabilities) != len(self.class_names):
            raise InferenceError(
                "Classifier output does not match class list",
                {"expected": len(self.class_names), "actual": len(probabilities)}
            )

        return probabilities

    def best(self, probabilities: Sequence[float]) -> Tuple[str, float]:
        """
        arg-max 클래스와 확률을 반환합니다. 동률이면 앞선 클래스가 우선입니다.
        """
        if not probabilities:
            raise InferenceError("Classifier returned no probabilities")

        max_index = 0
        for idx, value in enumerate(probabilities):
            if value > probabilities[max_index]:
                max_index = idx
        return self.class_names[max_index], float(probabilities[max_index])
