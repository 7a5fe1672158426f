from .encoder import FIELDS, encode_features
from .errors import (
    DecodeError,
    DimensionMismatch,
    InvalidFeature,
    MissingFeature,
    MissingStatistic,
    ModelError,
)
from .matrix import Matrix
from .model import FieldsDescribe, Layer, ModelData, Weights

__all__ = [
    "DecodeError",
    "DimensionMismatch",
    "FIELDS",
    "FieldsDescribe",
    "InvalidFeature",
    "Layer",
    "Matrix",
    "MissingFeature",
    "MissingStatistic",
    "ModelData",
    "ModelError",
    "Weights",
    "encode_features",
]
