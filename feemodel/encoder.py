BUCKET_COUNT = 16

# Input vector order the shipped models were trained with
FIELDS = (
    ("confirms_in",)
    + tuple(f"b{i}" for i in range(BUCKET_COUNT))
    + ("delta_last", "day_of_week", "hour")
)


def encode_features(confirms_in, buckets, delta_last, when=None, day_of_week=None, hour=None):
    """Build the named-feature map a model normalizes.

    ``when`` fills in ``day_of_week`` (Monday is 0) and ``hour`` unless they
    are passed explicitly.
    """
    buckets = list(buckets)
    if len(buckets) != BUCKET_COUNT:
        raise ValueError(f"expected {BUCKET_COUNT} buckets, got {len(buckets)}")

    if when is not None:
        if day_of_week is None:
            day_of_week = when.weekday()
        if hour is None:
            hour = when.hour
    if day_of_week is None or hour is None:
        raise ValueError("day_of_week and hour are required when `when` is not given")

    features = {"confirms_in": float(confirms_in)}
    for i, count in enumerate(buckets):
        features[f"b{i}"] = float(count)
    features["delta_last"] = float(delta_last)
    features["day_of_week"] = float(day_of_week)
    features["hour"] = float(hour)
    return features
