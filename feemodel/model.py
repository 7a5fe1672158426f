import io
import logging
from dataclasses import dataclass
from types import MappingProxyType

import cbor2
import numpy as np

from .errors import DecodeError, DimensionMismatch, InvalidFeature, MissingFeature, MissingStatistic
from .matrix import Matrix

logger = logging.getLogger(__name__)

# Keras layer names, in evaluation order
LAYER_NAMES = ("dense", "dense_1", "dense_2")


@dataclass(frozen=True, eq=False)
class FieldsDescribe:
    """Per-field mean and standard deviation recorded at training time."""

    mean: MappingProxyType
    std: MappingProxyType

    @classmethod
    def from_dicts(cls, mean, std):
        return cls(
            MappingProxyType({k: np.float32(v) for k, v in mean.items()}),
            MappingProxyType({k: np.float32(v) for k, v in std.items()}),
        )


@dataclass(frozen=True, eq=False)
class Layer:
    kernel: Matrix
    bias: np.ndarray

    @classmethod
    def from_lists(cls, kernel, bias):
        b = np.asarray(bias, dtype=np.float32).reshape(-1)
        b.flags.writeable = False
        return cls(kernel if isinstance(kernel, Matrix) else Matrix(kernel), b)

    def forward(self, x):
        return x.dot(self.kernel).add(self.bias)


@dataclass(frozen=True, eq=False)
class Weights:
    layers: tuple

    def __post_init__(self):
        if not self.layers:
            raise ValueError("weights need at least one layer")
        object.__setattr__(self, "layers", tuple(self.layers))

    def __len__(self):
        return len(self.layers)

    def __getitem__(self, i):
        return self.layers[i]


@dataclass(frozen=True, eq=False)
class ModelData:
    norm: FieldsDescribe
    weights: Weights
    fields: tuple
    alpha: float

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "alpha", float(np.float32(self.alpha)))

    @property
    def input_width(self):
        return len(self.fields)

    # -------------------------
    # Loading
    # -------------------------
    @classmethod
    def from_reader(cls, reader):
        try:
            doc = cbor2.load(reader)
        except cbor2.CBORDecodeError as e:
            raise DecodeError(f"can't decode model document: {e}") from e
        if reader.read(1):
            raise DecodeError("trailing data after model document")
        return cls.from_document(doc)

    @classmethod
    def from_bytes(cls, data):
        return cls.from_reader(io.BytesIO(data))

    @classmethod
    def load(cls, path):
        with open(path, "rb") as f:
            model = cls.from_reader(f)
        logger.info(
            "Loaded model from %s: %d fields, layers %s",
            path, model.input_width,
            ", ".join(f"{l.kernel.rows}x{l.kernel.cols}" for l in model.weights.layers),
        )
        return model

    @classmethod
    def from_document(cls, doc):
        """Build a model from an already decoded document."""
        _expect(doc, dict, "model document")
        norm = _require(doc, "norm", dict, "")
        weights = _require(doc, "weights", dict, "")
        fields = _require(doc, "fields", list, "")
        alpha = _number(_require(doc, "alpha", (int, float), ""), "alpha")

        for i, name in enumerate(fields):
            _expect(name, str, f"fields[{i}]")
        if not fields:
            raise DecodeError("fields must not be empty")

        stats = {}
        for key in ("mean", "std"):
            table = _require(norm, key, dict, "norm.")
            for name, value in table.items():
                _expect(name, str, f"norm.{key} key")
                _number(value, f"norm.{key}[{name!r}]")
            stats[key] = table

        layers = []
        for name in LAYER_NAMES:
            bias_key, kernel_key = f"{name}/bias:0", f"{name}/kernel:0"
            bias = _numbers(_require(weights, bias_key, list, "weights."), bias_key)
            rows = _require(weights, kernel_key, list, "weights.")
            kernel = [_numbers(_expect(row, list, f"{kernel_key}[{i}]"), f"{kernel_key}[{i}]")
                      for i, row in enumerate(rows)]
            try:
                layers.append(Layer.from_lists(Matrix(kernel), bias))
            except ValueError as e:
                raise DecodeError(f"bad tensor {kernel_key}: {e}") from e

        return cls(
            FieldsDescribe.from_dicts(stats["mean"], stats["std"]),
            Weights(tuple(layers)),
            tuple(fields),
            alpha,
        )

    # -------------------------
    # Saving
    # -------------------------
    def to_document(self):
        weights = {}
        for name, layer in zip(LAYER_NAMES, self.weights.layers):
            weights[f"{name}/bias:0"] = layer.bias.tolist()
            weights[f"{name}/kernel:0"] = layer.kernel.tolist()
        return {
            "norm": {
                "mean": {k: float(v) for k, v in self.norm.mean.items()},
                "std": {k: float(v) for k, v in self.norm.std.items()},
            },
            "weights": weights,
            "fields": list(self.fields),
            "alpha": self.alpha,
        }

    def to_bytes(self):
        return cbor2.dumps(self.to_document())

    def dump(self, writer):
        cbor2.dump(self.to_document(), writer)

    # -------------------------
    # Evaluation
    # -------------------------
    def normalize(self, inputs, strict=False):
        """Standardize ``inputs`` into a row vector ordered like ``fields``.

        Fields missing from ``inputs`` count as 0.0 unless ``strict`` is set,
        in which case they raise ``MissingFeature``.
        """
        values = np.empty(len(self.fields), dtype=np.float32)
        for i, field in enumerate(self.fields):
            if field in inputs:
                x = _feature_value(field, inputs[field])
            elif strict:
                raise MissingFeature(field)
            else:
                x = np.float32(0.0)

            std = self.norm.std.get(field)
            if std is None:
                raise MissingStatistic(field, "std")
            mean = self.norm.mean.get(field)
            if mean is None:
                raise MissingStatistic(field, "mean")

            # a zero std gives inf/nan like any IEEE division
            with np.errstate(divide="ignore", invalid="ignore"):
                values[i] = (x - mean) / std
        return Matrix.from_array(values)

    def predict(self, row):
        if not isinstance(row, Matrix):
            row = Matrix(row) if np.ndim(row) == 2 else Matrix.from_array(row)
        if row.rows != 1:
            raise DimensionMismatch("predict", 1, row.rows,
                                    left=row.size(), right=self.weights[0].kernel.size())

        x = row
        last = len(self.weights) - 1
        for i, layer in enumerate(self.weights.layers):
            x = layer.forward(x)
            if i < last:
                x = x.relu(self.alpha)
            logger.debug("layer %d output: %s", i, x)
        return x[0][0]

    def normalize_then_predict(self, inputs, strict=False):
        return self.predict(self.normalize(inputs, strict=strict))


def _feature_value(field, value):
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise InvalidFeature(field, value)
    return np.float32(value)


def _expect(value, types, where):
    if not isinstance(value, types) or isinstance(value, bool):
        raise DecodeError(f"{where}: expected {_type_names(types)}, got {type(value).__name__}")
    return value


def _require(mapping, key, types, prefix):
    if key not in mapping:
        raise DecodeError(f"missing required key {prefix}{key}")
    return _expect(mapping[key], types, f"{prefix}{key}")


def _number(value, where):
    return float(_expect(value, (int, float), where))


def _numbers(values, where):
    return [_number(v, f"{where}[{i}]") for i, v in enumerate(values)]


def _type_names(types):
    if isinstance(types, tuple):
        return " or ".join(t.__name__ for t in types)
    return types.__name__
