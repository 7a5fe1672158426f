import copy
from pathlib import Path

import cbor2
import pytest

from feemodel import ModelData

from .reference import reference_model_doc

FIXTURES = Path(__file__).parent / "fixtures"

# Three inputs, 3 -> 2 -> 2 -> 1, values chosen so every step is exact in float32.
SMALL_MODEL = {
    "norm": {
        "mean": {"a": 1.0, "b": 2.0, "c": 0.0},
        "std": {"a": 2.0, "b": 4.0, "c": 1.0},
    },
    "weights": {
        "dense/bias:0": [0.5, -1.0],
        "dense/kernel:0": [[1.0, -1.0], [0.5, 0.5], [2.0, 1.0]],
        "dense_1/bias:0": [0.0, 0.5],
        "dense_1/kernel:0": [[2.0, 0.0], [1.0, -1.0]],
        "dense_2/bias:0": [0.25],
        "dense_2/kernel:0": [[3.0], [2.0]],
    },
    "fields": ["a", "b", "c"],
    "alpha": 0.25,
}


@pytest.fixture
def model_doc():
    return copy.deepcopy(SMALL_MODEL)


@pytest.fixture
def model_bytes(model_doc):
    return cbor2.dumps(model_doc)


@pytest.fixture
def model(model_bytes):
    return ModelData.from_bytes(model_bytes)


@pytest.fixture
def model_file(tmp_path, model_bytes):
    path = tmp_path / "model.cbor"
    path.write_bytes(model_bytes)
    return path


@pytest.fixture
def trained_model():
    path = FIXTURES / "test_model.cbor"
    if path.exists():
        return ModelData.load(path)
    return ModelData.from_bytes(cbor2.dumps(reference_model_doc()))
