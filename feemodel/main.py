import argparse
import json
import logging
import os
import sys
import threading

from .errors import ModelError
from .model import ModelData

logger = logging.getLogger(__name__)

DEFAULT_MODEL_PATH = "models/model.cbor"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def model_path():
    return os.environ.get("FEEMODEL_PATH", DEFAULT_MODEL_PATH)


# -------------------------
# Load the trained model
# -------------------------
model = None
_model_path = None
_model_lock = threading.Lock()


def get_model(path=None):
    """Return the shared model, loading it on first use."""
    global model, _model_path
    if model is None:
        with _model_lock:
            if model is None:
                path = str(path or model_path())
                logger.info("Loading model from %s...", path)
                model = ModelData.load(path)
                _model_path = path
                return model
    if path is not None and str(path) != _model_path:
        logger.warning("Model already loaded from %s, ignoring %s", _model_path, path)
    return model


def reset_model():
    global model, _model_path
    with _model_lock:
        model = None
        _model_path = None


# ================================
# Command line
# ================================
def build_parser():
    parser = argparse.ArgumentParser(
        prog="feemodel",
        description="Evaluate a feed-forward model on one set of features.",
    )
    parser.add_argument("input", nargs="?", default="-",
                        help="JSON file with the features, or - for stdin (default)")
    parser.add_argument("--model", default=None,
                        help="model document (default: $FEEMODEL_PATH or %s)" % DEFAULT_MODEL_PATH)
    parser.add_argument("--raw", action="store_true",
                        help="input is a JSON list of already normalized values")
    parser.add_argument("--strict", action="store_true",
                        help="fail when a model field is missing from the input")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS,
                        default=os.environ.get("FEEMODEL_LOG_LEVEL", "WARNING").upper(),
                        help="logging level (default: $FEEMODEL_LOG_LEVEL or WARNING)")
    return parser


def read_input(source):
    if source == "-":
        return json.load(sys.stdin)
    with open(source, encoding="utf-8") as f:
        return json.load(f)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    # choices are not applied to defaults taken from the environment
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid FEEMODEL_LOG_LEVEL {args.log_level!r}")
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        m = ModelData.load(args.model or model_path())
        data = read_input(args.input)
        if args.raw:
            if not isinstance(data, list):
                raise ValueError("--raw input must be a JSON list")
            result = m.predict(data)
        else:
            if not isinstance(data, dict):
                raise ValueError("input must be a JSON object of feature values")
            result = m.normalize_then_predict(data, strict=args.strict)
    except (ModelError, OSError, ValueError) as e:
        logger.error("%s", e)
        return 1

    print(result)
    return 0
