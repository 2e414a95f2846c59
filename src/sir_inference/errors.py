# src/sir_inference/errors.py


class InvalidParameterError(ValueError):
    """Raised for malformed model input: negative counts, N <= 0,
    probabilities outside [0, 1], non-positive shape/rate, or observed
    sequences of mismatched length.
    """
