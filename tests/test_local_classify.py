"""
Tests for ai/processors/4_local_classify.py

LocalClassifier 단위 테스트:
- 확률 벡터 반환
- 출력 길이 검증
- 모델 오류 → InferenceError
- arg-max (동률 시 앞선 클래스)
- 모델 로드 실패
"""

import importlib
from unittest.mock import patch, MagicMock

import pytest
import torch

from ai.errors import InferenceError

_classify_module = importlib.import_module('ai.processors.4_local_classify')
LocalClassifier = _classify_module.LocalClassifier


@pytest.fixture
def input_tensor():
    return torch.zeros(1, 224, 224, 3)


class TestLocalClassifierPredict:
    """predict 테스트"""

    def test_returns_probabilities(self, fake_model, input_tensor):
        model = fake_model()
        classifier = LocalClassifier(model)

        probabilities = classifier.predict(input_tensor)

        assert probabilities == pytest.approx([0.9, 0.05, 0.02, 0.02, 0.01])
        assert model.calls == 1
        assert model.last_shape == (1, 224, 224, 3)

    def test_default_class_names(self, fake_model):
        classifier = LocalClassifier(fake_model())
        assert classifier.class_names == ["chair", "table", "sofa", "bed", "storage"]

    def test_output_length_mismatch(self, fake_model, input_tensor):
        classifier = LocalClassifier(fake_model(probabilities=[0.5, 0.5]))
        with pytest.raises(InferenceError) as exc_info:
            classifier.predict(input_tensor)
        assert exc_info.value.details == {"expected": 5, "actual": 2}

    def test_model_error_wrapped(self, fake_model, input_tensor):
        classifier = LocalClassifier(fake_model(error=RuntimeError("CUDA out of memory")))
        with pytest.raises(InferenceError) as exc_info:
            classifier.predict(input_tensor)

        assert exc_info.value.client_error is False
        assert "CUDA out of memory" in exc_info.value.details["error"]

    def test_softmax_applied_to_logits(self, fake_model, input_tensor):
        classifier = LocalClassifier(
            fake_model(probabilities=[2.0, 1.0, 0.0, 0.0, 0.0]),
            apply_softmax=True
        )
        probabilities = classifier.predict(input_tensor)

        assert sum(probabilities) == pytest.approx(1.0, abs=1e-5)
        assert probabilities[0] > probabilities[1] > probabilities[2]

    def test_eval_called_on_module(self):
        model = MagicMock()
        LocalClassifier(model)
        model.eval.assert_called_once()

    def test_custom_class_names(self, fake_model, input_tensor):
        classifier = LocalClassifier(fake_model(probabilities=[0.2, 0.8]), class_names=["lamp", "rug"])
        assert classifier.best(classifier.predict(input_tensor))[0] == "rug"


class TestLocalClassifierBest:
    """arg-max 테스트"""

    def test_best_returns_name_and_probability(self, fake_model):
        classifier = LocalClassifier(fake_model())
        name, probability = classifier.best([0.9, 0.05, 0.02, 0.02, 0.01])
        assert name == "chair"
        assert probability == 0.9

    def test_tie_prefers_first(self, fake_model):
        classifier = LocalClassifier(fake_model())
        assert classifier.best([0.1, 0.4, 0.4, 0.05, 0.05])[0] == "table"

    def test_empty_raises(self, fake_model):
        classifier = LocalClassifier(fake_model())
        with pytest.raises(InferenceError):
            classifier.best([])


class TestLocalClassifierFromConfig:
    """from_config 테스트"""

    def test_missing_model_file(self, tmp_path):
        with pytest.raises(InferenceError) as exc_info:
            LocalClassifier.from_config(model_path=str(tmp_path / "missing.pt"))
        assert exc_info.value.message == "Classifier model not found"

    def test_load_failure(self, tmp_path):
        model_path = tmp_path / "broken.pt"
        model_path.write_bytes(b"not a torchscript archive")

        with pytest.raises(InferenceError) as exc_info:
            LocalClassifier.from_config(model_path=str(model_path))
        assert exc_info.value.message == "Classifier model failed to load"

    def test_load_success(self, tmp_path, fake_model):
        model_path = tmp_path / "model.pt"
        model_path.write_bytes(b"stub")

        with patch('torch.jit.load', return_value=fake_model()) as mock_load:
            classifier = LocalClassifier.from_config(model_path=str(model_path), apply_softmax=True)

        mock_load.assert_called_once()
        assert classifier.apply_softmax is True
