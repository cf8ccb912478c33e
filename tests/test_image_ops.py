"""
Tests for ai/utils/image_ops.py

ImageUtils 클래스의 단위 테스트:
- 시그니처 기반 포맷 판별
- 헤더 해상도 읽기 / 이미지 로드
- 알파 채널 합성
- PIL ↔ OpenCV 변환, CLAHE
- 밝기/선명도 측정
- 콘텐츠 영역 탐지
"""

import io

import pytest
import numpy as np
from PIL import Image, ImageDraw


def _encode(img, fmt):
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


class TestDetectFormat:
    """detect_format 함수 테스트"""

    def test_detects_jpeg(self):
        from ai.utils.image_ops import ImageUtils
        data = _encode(Image.new('RGB', (10, 10)), "JPEG")
        assert ImageUtils.detect_format(data) == "jpeg"

    def test_detects_png(self):
        from ai.utils.image_ops import ImageUtils
        data = _encode(Image.new('RGB', (10, 10)), "PNG")
        assert ImageUtils.detect_format(data) == "png"

    def test_rejects_gif(self):
        from ai.utils.image_ops import ImageUtils
        data = _encode(Image.new('RGB', (10, 10)), "GIF")
        assert ImageUtils.detect_format(data) is None

    def test_rejects_empty_and_text(self):
        from ai.utils.image_ops import ImageUtils
        assert ImageUtils.detect_format(b"") is None
        assert ImageUtils.detect_format(b"hello world") is None


class TestReadDimensions:
    """read_dimensions 함수 테스트"""

    def test_reads_size(self):
        from ai.utils.image_ops import ImageUtils
        data = _encode(Image.new('RGB', (320, 240)), "PNG")
        assert ImageUtils.read_dimensions(data) == (320, 240)

    def test_header_only_png(self, png_header_bytes):
        """픽셀 데이터 없이 헤더만으로 해상도 판별"""
        from ai.utils.image_ops import ImageUtils
        assert ImageUtils.read_dimensions(png_header_bytes(8000, 6000)) == (8000, 6000)

    def test_pixel_limit_error_propagates(self, png_header_bytes):
        from ai.utils.image_ops import ImageUtils
        with pytest.raises(Image.DecompressionBombError):
            ImageUtils.read_dimensions(png_header_bytes(20000, 20000))

    def test_truncated_header_raises(self):
        from ai.utils.image_ops import ImageUtils
        with pytest.raises(ValueError) as exc_info:
            ImageUtils.read_dimensions(b"\x89PNG\r\n\x1a\n" + b"\x00\x00")
        assert "Image Header Error" in str(exc_info.value)


class TestLoadImageBytes:
    """load_image_bytes 함수 테스트"""

    def test_load_valid_image(self):
        from ai.utils.image_ops import ImageUtils
        data = _encode(Image.new('RGB', (100, 50), color='red'), "PNG")
        result = ImageUtils.load_image_bytes(data)
        assert isinstance(result, Image.Image)
        assert result.size == (100, 50)

    def test_load_invalid_bytes_raises(self):
        from ai.utils.image_ops import ImageUtils
        with pytest.raises(ValueError) as exc_info:
            ImageUtils.load_image_bytes(b"not an image")
        assert "Image Load Error" in str(exc_info.value)

    def test_exif_rotation_applied(self):
        """EXIF Orientation=6 (90도 회전) 이미지는 가로/세로가 바뀜"""
        from ai.utils.image_ops import ImageUtils
        img = Image.new('RGB', (200, 100), color='blue')
        exif = Image.Exif()
        exif[0x0112] = 6
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", exif=exif.tobytes())

        result = ImageUtils.load_image_bytes(buffer.getvalue())
        assert result.size == (100, 200)


class TestFlattenAlpha:
    """flatten_alpha 함수 테스트"""

    def test_transparent_pixels_become_background(self):
        from ai.utils.image_ops import ImageUtils
        img = Image.new('RGBA', (10, 10), (0, 0, 0, 0))
        result = ImageUtils.flatten_alpha(img, (255, 255, 255))
        assert result.mode == "RGB"
        assert result.getpixel((5, 5)) == (255, 255, 255)

    def test_opaque_pixels_kept(self):
        from ai.utils.image_ops import ImageUtils
        img = Image.new('RGBA', (10, 10), (10, 20, 30, 255))
        result = ImageUtils.flatten_alpha(img, (255, 255, 255))
        assert result.getpixel((0, 0)) == (10, 20, 30)

    def test_grayscale_converted_to_rgb(self):
        from ai.utils.image_ops import ImageUtils
        img = Image.new('L', (10, 10), 128)
        result = ImageUtils.flatten_alpha(img, (255, 255, 255))
        assert result.mode == "RGB"
        assert result.getpixel((0, 0)) == (128, 128, 128)


class TestImageUtilsConversion:
    """PIL ↔ OpenCV 변환 테스트"""

    def test_pil_to_cv2_swaps_channels(self):
        from ai.utils.image_ops import ImageUtils
        pil = Image.new('RGB', (4, 4), (255, 0, 0))
        cv2_image = ImageUtils.pil_to_cv2(pil)
        assert cv2_image.shape == (4, 4, 3)
        assert tuple(cv2_image[0, 0]) == (0, 0, 255)

    def test_round_trip(self):
        from ai.utils.image_ops import ImageUtils
        pil = Image.new('RGB', (4, 4), (12, 34, 56))
        result = ImageUtils.cv2_to_pil(ImageUtils.pil_to_cv2(pil))
        assert result.getpixel((1, 1)) == (12, 34, 56)

    def test_apply_clahe_keeps_shape(self):
        from ai.utils.image_ops import ImageUtils
        array = np.random.randint(0, 255, (64, 64, 3), dtype=np.uint8)
        result = ImageUtils.apply_clahe(array)
        assert result.shape == array.shape
        assert result.dtype == np.uint8


class TestEncodeJpeg:

    def test_encode_jpeg_signature(self):
        from ai.utils.image_ops import ImageUtils
        data = ImageUtils.encode_jpeg(Image.new('RGB', (16, 16)), 90)
        assert data[:2] == b"\xff\xd8"


class TestQualityMeasures:
    """밝기/선명도 측정 테스트"""

    def test_brightness_white_and_black(self):
        from ai.utils.image_ops import ImageUtils
        white = np.full((32, 32, 3), 255, dtype=np.uint8)
        black = np.zeros((32, 32, 3), dtype=np.uint8)
        assert ImageUtils.measure_brightness(white) == pytest.approx(100.0)
        assert ImageUtils.measure_brightness(black) == pytest.approx(0.0)

    def test_sharpness_flat_image_is_zero(self):
        from ai.utils.image_ops import ImageUtils
        flat = np.full((64, 64, 3), 128, dtype=np.uint8)
        assert ImageUtils.measure_sharpness(flat) == pytest.approx(0.0)

    def test_sharpness_high_contrast_edges_capped(self):
        from ai.utils.image_ops import ImageUtils
        stripes = np.zeros((64, 64, 3), dtype=np.uint8)
        stripes[:, ::2] = 255
        assert ImageUtils.measure_sharpness(stripes) == pytest.approx(100.0)


class TestFindContentBbox:
    """find_content_bbox 함수 테스트"""

    def test_solid_image_returns_none(self):
        from ai.utils.image_ops import ImageUtils
        flat = np.full((100, 100, 3), 255, dtype=np.uint8)
        assert ImageUtils.find_content_bbox(flat) is None

    def test_bbox_surrounds_object(self):
        from ai.utils.image_ops import ImageUtils
        pil = Image.new('RGB', (300, 300), (255, 255, 255))
        ImageDraw.Draw(pil).rectangle([100, 120, 199, 219], fill=(0, 0, 0))

        x1, y1, x2, y2 = ImageUtils.find_content_bbox(ImageUtils.pil_to_cv2(pil), padding=10)
        assert 60 <= x1 <= 100
        assert 80 <= y1 <= 120
        assert 200 <= x2 <= 240
        assert 220 <= y2 <= 260
