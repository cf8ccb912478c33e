"""
API Configuration

환경변수 설정 및 디바이스 구성
CRITICAL: 이 모듈은 torch import 전에 로드되어야 함
"""

import os

# ============================================================================
# CRITICAL: Set thread limits BEFORE importing torch
# ============================================================================
os.environ["OMP_NUM_THREADS"] = os.environ.get("OMP_NUM_THREADS", "4")
os.environ["OPENBLAS_NUM_THREADS"] = os.environ.get("OPENBLAS_NUM_THREADS", "4")
os.environ["MKL_NUM_THREADS"] = os.environ.get("MKL_NUM_THREADS", "4")

# macOS MPS fallback
os.environ["PYTORCH_ENABLE_MPS_FALLBACK"] = "1"

import torch

torch.set_num_threads(int(os.environ["OMP_NUM_THREADS"]))


def get_device() -> torch.device:
    """Get the best available device"""
    if torch.cuda.is_available():
        device = torch.device("cuda")
    elif torch.backends.mps.is_available():
        device = torch.device("mps")
    else:
        device = torch.device("cpu")
    return device


# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Upload limit enforced before the pipeline sees the bytes (pipeline re-checks)
MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", 10 * 1024 * 1024))

# Device
device = get_device()
