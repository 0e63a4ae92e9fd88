import numpy as np


def compute_ranges(X: np.ndarray) -> np.ndarray:
    """
    Per-column (min, max) of a 2D array.

    Returns:
        np.ndarray of shape (n_columns, 2).
    """
    X = np.atleast_2d(np.asarray(X, dtype=float))
    if X.shape[0] == 0:
        return np.zeros((X.shape[1], 2))
    return np.column_stack([X.min(axis=0), X.max(axis=0)])


def scale(values, ranges: np.ndarray, target_min: float = 0.0, target_max: float = 1.0) -> np.ndarray:
    """
    Linearly map values from ranges[:, 0]..ranges[:, 1] onto target_min..target_max.

    Works on a single vector or on a 2D array of row vectors. Columns whose
    source range is zero map to target_min.
    """
    values = np.asarray(values, dtype=float)
    ranges = np.asarray(ranges, dtype=float)
    lo, hi = ranges[:, 0], ranges[:, 1]
    span = hi - lo
    safe_span = np.where(span == 0, 1.0, span)
    scaled = (values - lo) / safe_span * (target_max - target_min) + target_min
    return np.where(span == 0, target_min, scaled)


def unscale(values, ranges: np.ndarray, source_min: float = 0.0, source_max: float = 1.0) -> np.ndarray:
    """Inverse of scale(): map values from source_min..source_max back onto ranges."""
    values = np.asarray(values, dtype=float)
    ranges = np.asarray(ranges, dtype=float)
    lo, hi = ranges[:, 0], ranges[:, 1]
    return (values - source_min) / (source_max - source_min) * (hi - lo) + lo
