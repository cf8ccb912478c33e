"""
pytest configuration for async tests

공용 fixture:
- 테스트 이미지 바이트 생성기 (PIL, 메모리 내 생성)
- 헤더만 있는 PNG (초대형 해상도 테스트용)
- 가짜 분류 모델 / 외부 서비스 스텁
"""
import asyncio
import io
import struct
import zlib

import pytest
import torch
from PIL import Image, ImageDraw


# pytest-asyncio mode 설정
pytest_plugins = ('pytest_asyncio',)


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "asyncio: marks tests as async")


# =============================================================================
# Images
# =============================================================================

def _image_bytes(fmt="JPEG", size=(300, 300), color=(150, 100, 60), mode="RGB", pattern=True):
    img = Image.new(mode, size, color)
    if pattern:
        # 선명도/엣지 테스트용 체크 패턴
        draw = ImageDraw.Draw(img)
        step = max(4, min(size) // 10)
        fill = (20, 20, 20, 255) if mode == "RGBA" else (20, 20, 20)
        for x in range(0, size[0], step * 2):
            draw.rectangle([x, 0, x + step - 1, size[1] - 1], fill=fill)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def _png_header(width, height):
    def chunk(chunk_type, data):
        crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
        return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")


@pytest.fixture
def make_image_bytes():
    """make_image_bytes(fmt, size, color, mode, pattern) -> bytes"""
    return _image_bytes


@pytest.fixture
def png_header_bytes():
    """png_header_bytes(width, height) -> 픽셀 데이터 없는 PNG 헤더"""
    return _png_header


@pytest.fixture
def chair_jpeg():
    """300x300 JPEG"""
    return _image_bytes("JPEG", (300, 300))


# =============================================================================
# Classifier
# =============================================================================

class FakeModel:
    """고정 확률을 반환하는 모델 (호출 횟수 기록)"""

    def __init__(self, probabilities=None, error=None):
        self.probabilities = probabilities or [0.9, 0.05, 0.02, 0.02, 0.01]
        self.error = error
        self.calls = 0
        self.last_shape = None

    def __call__(self, tensor):
        self.calls += 1
        self.last_shape = tuple(tensor.shape)
        if self.error is not None:
            raise self.error
        return torch.tensor([self.probabilities])


@pytest.fixture
def fake_model():
    return FakeModel


# =============================================================================
# External services
# =============================================================================

class StubLabelService:
    """detect_labels 스텁 (지연/오류/취소 기록 지원)"""

    def __init__(self, labels=None, error=None, delay=0.0):
        self.labels = labels if labels is not None else []
        self.error = error
        self.delay = delay
        self.calls = 0
        self.received = []
        self.started = asyncio.Event()
        self.cancelled = asyncio.Event()

    async def detect_labels(self, image_bytes):
        self.calls += 1
        self.received.append(image_bytes)
        self.started.set()
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled.set()
            raise
        if self.error is not None:
            raise self.error
        return list(self.labels)


class StubModerationService:
    """detect_moderation_labels / assess_quality 스텁"""

    def __init__(self, flags=None, quality=(90.0, 85.0), flag_error=None, quality_error=None, delay=0.0):
        self.flags = flags or []
        self.quality = quality
        self.flag_error = flag_error
        self.quality_error = quality_error
        self.delay = delay
        self.flag_calls = 0
        self.quality_calls = 0

    async def detect_moderation_labels(self, image_bytes):
        self.flag_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.flag_error is not None:
            raise self.flag_error
        return list(self.flags)

    async def assess_quality(self, image_bytes):
        from ai.results import QualityScores

        self.quality_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.quality_error is not None:
            raise self.quality_error
        return QualityScores(brightness=self.quality[0], sharpness=self.quality[1])


@pytest.fixture
def label_service_factory():
    return StubLabelService


@pytest.fixture
def moderation_service_factory():
    return StubModerationService
