"""
Stage 1: 이미지 검증

업로드된 원본 바이트를 비싼 작업(디코딩, 추론) 전에 검사합니다:
- 바이트 크기 상한
- 매직 넘버 기반 포맷 판별 (JPEG / PNG)
- 헤더에서 읽은 해상도 하한/상한

선언된 MIME 타입은 기록만 하고 판별에는 사용하지 않습니다.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image

from ai.config import Config
from ai.errors import InvalidImage, InvalidImageReason
from ai.utils.image_ops import ImageUtils

logger = logging.getLogger(__name__)

# 시그니처 판별 결과 → 표준 MIME 타입
FORMAT_MIME_TYPES = {
    "jpeg": "image/jpeg",
    "png": "image/png",
}


@dataclass(frozen=True)
class ImageBuffer:
    """업로드 원본 (불변)"""
    data: bytes
    content_type: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ValidatedImage:
    """검증을 통과한 이미지 - ImageValidator만 생성"""
    buffer: ImageBuffer
    format: str
    width: int
    height: int

    @property
    def data(self) -> bytes:
        return self.buffer.data

    @property
    def mime_type(self) -> str:
        return FORMAT_MIME_TYPES[self.format]


class ImageValidator:
    """
    이미지 검증기

    AI Logic Step 1: 크기 → 포맷 → 해상도 순서로 검사

    부작용 없는 순수 함수이며, 실패 시 InvalidImage를 raise합니다.
    """

    def __init__(
        self,
        max_bytes: Optional[int] = None,
        min_dimension: Optional[int] = None,
        max_dimension: Optional[int] = None
    ):
        """
        Args:
            max_bytes: 최대 바이트 크기 (None이면 Config 값)
            min_dimension: 최소 가로/세로 픽셀
            max_dimension: 최대 가로/세로 픽셀
        """
        self.max_bytes = max_bytes if max_bytes is not None else Config.MAX_IMAGE_BYTES
        self.min_dimension = min_dimension if min_dimension is not None else Config.MIN_IMAGE_DIMENSION
        self.max_dimension = max_dimension if max_dimension is not None else Config.MAX_IMAGE_DIMENSION

    def validate(self, buffer: ImageBuffer) -> ValidatedImage:
        """
        원본 버퍼를 검증합니다.

        Args:
            buffer: ImageBuffer

        Returns:
            ValidatedImage

        Raises:
            InvalidImage: SizeExceeded / UnsupportedFormat / Corrupt / TooSmall / TooLarge
        """
        size = buffer.size_bytes
        if size > self.max_bytes:
            raise self._reject(
                InvalidImageReason.SIZE_EXCEEDED,
                "Image size exceeds maximum allowed size",
                {"max_size": self.max_bytes, "actual_size": size}
            )

        image_format = ImageUtils.detect_format(buffer.data)
        if image_format is None:
            raise self._reject(
                InvalidImageReason.UNSUPPORTED_FORMAT,
                "Unsupported image format",
                {"supported_formats": sorted(FORMAT_MIME_TYPES.values())}
            )

        declared = (buffer.content_type or "").lower()
        if declared and declared != FORMAT_MIME_TYPES[image_format]:
            logger.info(
                f"[ImageValidator] Declared type {declared} differs from detected {image_format}"
            )

        try:
            width, height = ImageUtils.read_dimensions(buffer.data)
        except Image.DecompressionBombError as e:
            # Pillow 픽셀 한도 초과 헤더는 한 변이 상한을 훨씬 넘음
            raise self._reject(
                InvalidImageReason.TOO_LARGE,
                "Image dimensions too large",
                {"max_dimension": self.max_dimension, "error": str(e)}
            )
        except ValueError as e:
            raise self._reject(
                InvalidImageReason.CORRUPT,
                "Invalid image format or corrupted file",
                {"error": str(e)}
            )

        if width < self.min_dimension or height < self.min_dimension:
            raise self._reject(
                InvalidImageReason.TOO_SMALL,
                "Image dimensions too small",
                {"min_dimension": self.min_dimension, "actual_width": width, "actual_height": height}
            )

        if width > self.max_dimension or height > self.max_dimension:
            raise self._reject(
                InvalidImageReason.TOO_LARGE,
                "Image dimensions too large",
                {"max_dimension": self.max_dimension, "actual_width": width, "actual_height": height}
            )

        return ValidatedImage(buffer=buffer, format=image_format, width=width, height=height)

    def validate_bytes(self, data: bytes, content_type: Optional[str] = None) -> ValidatedImage:
        """bytes를 직접 받는 편의 메서드"""
        return self.validate(ImageBuffer(data=data, content_type=content_type))

    @staticmethod
    def _reject(reason: InvalidImageReason, message: str, details: dict) -> InvalidImage:
        logger.info(f"[ImageValidator] Rejected ({reason.value}): {message} {details}")
        return InvalidImage(reason, message, details)
