"""
Stage 3: 텐서 인코딩

NormalizedImage를 분류 모델 입력 텐서 [1, H, W, 3] (float32, 0~1)로 변환합니다.

텐서 수명 관리:
    TensorHandle은 스코프 리소스입니다. 생성한 쪽이 반드시 해제해야 하며
    with 블록을 사용하면 성공/예외/취소 모든 경로에서 정확히 한 번 해제됩니다.

Usage:
    with encoder.encode(normalized) as handle:
        probabilities = classifier.predict(handle.tensor)
"""

import logging
import threading
from typing import Callable, Dict, Optional

import numpy as np
import torch

from ai.config import Config
from ai.errors import EncodingFailed

logger = logging.getLogger(__name__)


class TensorHandle:
    """
    텐서 소유권 핸들

    release()는 멱등(idempotent)입니다: 첫 호출만 실제로 해제하고
    이후 호출은 아무것도 하지 않습니다.
    """

    def __init__(
        self,
        tensor: torch.Tensor,
        on_release: Optional[Callable[["TensorHandle"], None]] = None
    ):
        self._tensor: Optional[torch.Tensor] = tensor
        self._on_release = on_release
        self._lock = threading.Lock()
        self.shape = tuple(tensor.shape)
        self.release_count = 0

    @property
    def released(self) -> bool:
        return self._tensor is None

    @property
    def tensor(self) -> torch.Tensor:
        tensor = self._tensor
        if tensor is None:
            raise RuntimeError("Tensor has already been released")
        return tensor

    def release(self) -> bool:
        """
        텐서를 해제합니다.

        Returns:
            이번 호출에서 실제로 해제했으면 True, 이미 해제된 상태면 False
        """
        with self._lock:
            if self._tensor is None:
                return False
            on_cuda = self._tensor.is_cuda
            self._tensor = None
            self.release_count += 1

        if on_cuda:
            torch.cuda.empty_cache()
        if self._on_release is not None:
            self._on_release(self)
        return True

    def __enter__(self) -> "TensorHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class TensorEncoder:
    """
    텐서 인코더

    AI Logic Step 3: NormalizedImage → TensorHandle

    여러 요청이 공유하는 인스턴스이므로 카운터만 lock으로 보호합니다.
    live_handles가 0이 아니면 해제 누락(leak)입니다.
    """

    def __init__(self, device_id: Optional[int] = None):
        """
        Args:
            device_id: GPU 디바이스 ID (None이면 기본값 사용)
        """
        self._device = Config.get_device(device_id)
        self._lock = threading.Lock()
        self.encoded_count = 0
        self.released_count = 0

    @property
    def live_handles(self) -> int:
        with self._lock:
            return self.encoded_count - self.released_count

    def encode(self, normalized) -> TensorHandle:
        """
        Args:
            normalized: NormalizedImage (pixels: H x W x 3 uint8)

        Returns:
            TensorHandle (shape [1, H, W, 3], float32, 0~1)

        Raises:
            EncodingFailed: 배열 형태가 잘못되었거나 변환 실패
        """
        try:
            pixels = np.asarray(normalized.pixels)
            if pixels.ndim != 3 or pixels.shape[2] != 3:
                raise ValueError(f"expected H x W x 3 pixels, got shape {pixels.shape}")

            array = pixels.astype(np.float32) / 255.0
            tensor = torch.from_numpy(array).unsqueeze(0).to(self._device)
        except Exception as e:
            logger.error(f"[TensorEncoder] Tensor conversion failed: {e}")
            raise EncodingFailed("Tensor conversion failed", {"error": str(e)}) from e

        with self._lock:
            self.encoded_count += 1
        return TensorHandle(tensor, on_release=self._on_release)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "encoded": self.encoded_count,
                "released": self.released_count,
                "live": self.encoded_count - self.released_count,
            }

    def _on_release(self, handle: TensorHandle) -> None:
        with self._lock:
            self.released_count += 1
