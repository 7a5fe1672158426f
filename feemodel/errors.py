"""Exceptions raised while loading and evaluating a model."""


class ModelError(Exception):
    """Base exception for model loading and evaluation errors."""

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DecodeError(ModelError):
    """Raised when a model document can't be decoded into the expected layout."""
    pass


class DimensionMismatch(ModelError):
    """Raised when the operands of a matrix operation have incompatible shapes."""

    def __init__(self, operation, expected, actual, left=None, right=None):
        self.operation = operation
        self.expected = expected
        self.actual = actual
        self.left = left
        self.right = right
        message = f"{operation}: expected {expected}, got {actual}"
        if left is not None and right is not None:
            message += f" (left {_shape_str(left)}, right {_shape_str(right)})"
        super().__init__(
            message,
            {"operation": operation, "expected": expected, "actual": actual,
             "left": left, "right": right},
        )


class MissingStatistic(ModelError):
    """Raised when the normalization statistics lack an entry for a field."""

    def __init__(self, field, statistic):
        self.field = field
        self.statistic = statistic
        super().__init__(
            f"missing {statistic} data for field {field!r}",
            {"field": field, "statistic": statistic},
        )


class MissingFeature(ModelError):
    """Raised in strict normalization when an input omits a model field."""

    def __init__(self, field):
        self.field = field
        super().__init__(f"input has no value for field {field!r}", {"field": field})


class InvalidFeature(ModelError):
    """Raised when an input feature value is not a real number."""

    def __init__(self, field, value):
        self.field = field
        self.value = value
        super().__init__(
            f"field {field!r} must be a number, got {type(value).__name__}",
            {"field": field, "value": repr(value)},
        )

def _shape_str(shape):
    if isinstance(shape, tuple):
        return "x".join(str(n) for n in shape)
    return str(shape)
