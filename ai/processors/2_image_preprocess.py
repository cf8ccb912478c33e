"""
Stage 2: 이미지 전처리

검증된 이미지를 분류 모델 입력용 고정 크기 버퍼로 정규화합니다:
1. 디코딩 + EXIF 회전 보정
2. 알파 채널 제거 (배경색 합성), sRGB 변환
3. (옵션) 엣지 기반 여백 크롭
4. 비율 유지 리사이즈 + 패딩 (TARGET_SIZE x TARGET_SIZE)
5. 명암 정규화 (autocontrast, 옵션으로 CLAHE)
6. 외부 서비스용 JPEG 재인코딩
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageCms, ImageOps

from ai.config import Config
from ai.errors import PreprocessingFailed
from ai.utils.image_ops import ImageUtils

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedImage:
    """전처리 결과 (H x W x 3, uint8, sRGB)"""
    pixels: np.ndarray
    encoded: bytes
    size: Tuple[int, int]
    encoded_format: str = "JPEG"


class ImagePreprocessor:
    """
    이미지 전처리기

    AI Logic Step 2: ValidatedImage → NormalizedImage

    디코딩/리사이즈 실패는 원인을 첨부한 PreprocessingFailed로 전달합니다.
    """

    def __init__(
        self,
        target_size: Optional[int] = None,
        pad_color: Optional[Tuple[int, int, int]] = None,
        jpeg_quality: Optional[int] = None,
        use_clahe: Optional[bool] = None,
        crop_to_content: Optional[bool] = None
    ):
        """
        Args:
            target_size: 출력 정사각형 한 변 길이
            pad_color: 패딩 색상 (RGB)
            jpeg_quality: 재인코딩 JPEG 품질
            use_clahe: CLAHE 대비 강화 사용 여부
            crop_to_content: 엣지 기반 여백 크롭 사용 여부
        """
        self.target_size = target_size or Config.TARGET_SIZE
        self.pad_color = pad_color or Config.PAD_COLOR
        self.jpeg_quality = jpeg_quality or Config.JPEG_QUALITY
        self.use_clahe = Config.USE_CLAHE_ENHANCEMENT if use_clahe is None else use_clahe
        self.crop_to_content_enabled = Config.CROP_TO_CONTENT if crop_to_content is None else crop_to_content

    def preprocess(self, image) -> NormalizedImage:
        """
        Args:
            image: ValidatedImage

        Returns:
            NormalizedImage

        Raises:
            PreprocessingFailed: 시그니처는 정상이지만 데이터가 손상된 경우 등
        """
        try:
            pil_image = ImageUtils.load_image_bytes(image.data)
            pil_image = self._to_srgb(pil_image)
            pil_image = ImageUtils.flatten_alpha(pil_image, self.pad_color)

            if self.crop_to_content_enabled:
                pil_image = self.crop_to_content(pil_image)

            pil_image = ImageOps.pad(
                pil_image,
                (self.target_size, self.target_size),
                method=Image.Resampling.LANCZOS,
                color=self.pad_color
            )
            pil_image = self._normalize_contrast(pil_image)

            encoded = ImageUtils.encode_jpeg(pil_image, self.jpeg_quality)
            pixels = np.asarray(pil_image, dtype=np.uint8).copy()
            pixels.flags.writeable = False
        except Exception as e:
            logger.warning(f"[ImagePreprocessor] Preprocessing failed: {e}")
            raise PreprocessingFailed("Image preprocessing failed", cause=e) from e

        return NormalizedImage(
            pixels=pixels,
            encoded=encoded,
            size=(self.target_size, self.target_size)
        )

    def crop_to_content(self, pil_image: Image.Image) -> Image.Image:
        """
        단색 여백을 잘라 가구 영역에 집중합니다.

        엣지가 없으면 원본을 그대로 반환합니다.
        """
        bbox = ImageUtils.find_content_bbox(ImageUtils.pil_to_cv2(pil_image))
        if bbox is None:
            return pil_image

        x1, y1, x2, y2 = bbox
        if (x2 - x1) < 2 or (y2 - y1) < 2:
            return pil_image
        return pil_image.crop((x1, y1, x2, y2))

    def _normalize_contrast(self, pil_image: Image.Image) -> Image.Image:
        # 히스토그램 양 끝을 0/255로 늘리는 선형 정규화
        pil_image = ImageOps.autocontrast(pil_image)
        if self.use_clahe:
            enhanced = ImageUtils.apply_clahe(ImageUtils.pil_to_cv2(pil_image))
            pil_image = ImageUtils.cv2_to_pil(enhanced)
        return pil_image

    @staticmethod
    def _to_srgb(pil_image: Image.Image) -> Image.Image:
        """임베디드 ICC 프로파일이 있으면 sRGB로 변환"""
        icc_profile = pil_image.info.get("icc_profile")
        if not icc_profile or pil_image.mode not in ("RGB", "RGBA"):
            return pil_image

        try:
            source = ImageCms.ImageCmsProfile(io.BytesIO(icc_profile))
            target = ImageCms.createProfile("sRGB")
            return ImageCms.profileToProfile(pil_image, source, target, outputMode=pil_image.mode)
        except (ImageCms.PyCMSError, OSError, ValueError) as e:
            logger.warning(f"[ImagePreprocessor] Ignoring unreadable ICC profile: {e}")
            return pil_image
