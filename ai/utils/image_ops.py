import io
from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image, ImageOps

# 파일 시그니처 (매직 넘버)
JPEG_SIGNATURE = b"\xff\xd8"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# Laplacian 분산이 이 값 이상이면 선명도 100점
SHARPNESS_VARIANCE_REFERENCE = 300.0


class ImageUtils:
    @staticmethod
    def detect_format(data: bytes) -> Optional[str]:
        """바이트 시그니처로 포맷 판별 ("jpeg" | "png" | None)"""
        if data[:len(PNG_SIGNATURE)] == PNG_SIGNATURE:
            return "png"
        if data[:len(JPEG_SIGNATURE)] == JPEG_SIGNATURE:
            return "jpeg"
        return None

    @staticmethod
    def read_dimensions(data: bytes) -> Tuple[int, int]:
        """
        헤더만 읽어 (width, height)를 반환합니다. 픽셀 디코딩은 하지 않습니다.
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                return img.size
        except Image.DecompressionBombError:
            raise
        except Exception as e:
            raise ValueError(f"Image Header Error: {e}")

    @staticmethod
    def load_image_bytes(data: bytes):
        try:
            original_pil = Image.open(io.BytesIO(data))
            original_pil.load()
            original_pil = ImageOps.exif_transpose(original_pil)
            return original_pil
        except Exception as e:
            raise ValueError(f"Image Load Error: {e}")

    @staticmethod
    def flatten_alpha(pil_image, background: Tuple[int, int, int]):
        """알파 채널을 배경색 위에 합성하여 RGB로 변환"""
        if pil_image.mode in ("RGBA", "LA") or (pil_image.mode == "P" and "transparency" in pil_image.info):
            rgba = pil_image.convert("RGBA")
            canvas = Image.new("RGB", rgba.size, background)
            canvas.paste(rgba, mask=rgba.split()[-1])
            return canvas
        return pil_image.convert("RGB")

    @staticmethod
    def pil_to_cv2(pil_image):
        return cv2.cvtColor(np.array(pil_image), cv2.COLOR_RGB2BGR)

    @staticmethod
    def cv2_to_pil(cv2_image):
        return Image.fromarray(cv2.cvtColor(cv2_image, cv2.COLOR_BGR2RGB))

    @staticmethod
    def apply_clahe(cv2_image):
        """
        저조도/저대비(흰 벽+흰 가구) 환경 개선을 위한 CLAHE 적용
        """
        # Lab 색공간으로 변환 (L: Lightness 채널만 조절하기 위함)
        lab = cv2.cvtColor(cv2_image, cv2.COLOR_BGR2LAB)
        l, a, b = cv2.split(lab)

        clahe = cv2.createCLAHE(clipLimit=3.0, tileGridSize=(8, 8))
        cl = clahe.apply(l)

        limg = cv2.merge((cl, a, b))
        return cv2.cvtColor(limg, cv2.COLOR_LAB2BGR)

    @staticmethod
    def encode_jpeg(pil_image, quality: int) -> bytes:
        buffer = io.BytesIO()
        pil_image.save(buffer, format="JPEG", quality=quality)
        return buffer.getvalue()

    @staticmethod
    def measure_brightness(cv2_image) -> float:
        """평균 밝기를 0~100 스케일로 반환"""
        gray = cv2.cvtColor(cv2_image, cv2.COLOR_BGR2GRAY)
        return float(gray.mean()) / 255.0 * 100.0

    @staticmethod
    def measure_sharpness(cv2_image) -> float:
        """
        Laplacian 분산 기반 선명도 (0~100)

        흐린 사진일수록 엣지 응답이 약해 분산이 작아집니다.
        """
        gray = cv2.cvtColor(cv2_image, cv2.COLOR_BGR2GRAY)
        variance = float(cv2.Laplacian(gray, cv2.CV_64F).var())
        return min(100.0, variance / SHARPNESS_VARIANCE_REFERENCE * 100.0)

    @staticmethod
    def find_content_bbox(
        cv2_image,
        threshold: int = 30,
        padding: int = 20
    ) -> Optional[Tuple[int, int, int, int]]:
        """
        엣지 맵으로 콘텐츠 영역을 찾습니다.

        Returns:
            (x1, y1, x2, y2) 또는 None (엣지가 없는 단색 이미지)
        """
        gray = cv2.cvtColor(cv2_image, cv2.COLOR_BGR2GRAY)
        edges = np.abs(cv2.Laplacian(gray, cv2.CV_64F))
        ys, xs = np.nonzero(edges > threshold)
        if len(xs) == 0:
            return None

        h, w = gray.shape
        x1 = max(0, int(xs.min()) - padding)
        y1 = max(0, int(ys.min()) - padding)
        x2 = min(w, int(xs.max()) + 1 + padding)
        y2 = min(h, int(ys.max()) + 1 + padding)
        return x1, y1, x2, y2
