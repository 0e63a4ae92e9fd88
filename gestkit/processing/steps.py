from __future__ import annotations
from collections import deque
from typing import Optional

import numpy as np

from gestkit.interfaces.processing_step import ProcessingStep


class DeadZone(ProcessingStep):
    """
    Zeroes values inside [lower_limit, upper_limit] and shifts values
    outside the band towards zero by the nearest limit.
    """

    def __init__(self, lower_limit: float = -0.1, upper_limit: float = 0.1, num_dimensions: Optional[int] = None):
        if lower_limit > upper_limit:
            raise ValueError(f"lower_limit ({lower_limit}) must not be greater than upper_limit ({upper_limit})")
        super().__init__(num_dimensions)
        self.lower_limit = lower_limit
        self.upper_limit = upper_limit

    def _do_process(self, x: np.ndarray) -> np.ndarray:
        return np.where(x > self.upper_limit, x - self.upper_limit,
                        np.where(x < self.lower_limit, x - self.lower_limit, 0.0))

    def get_params(self) -> dict:
        return {"lower_limit": self.lower_limit, "upper_limit": self.upper_limit}

    def __str__(self) -> str:
        return f"DeadZone(lower_limit={self.lower_limit}, upper_limit={self.upper_limit})"


class MovingAverageFilter(ProcessingStep):
    """
    Per-dimension mean of the last filter_size vectors. Until the buffer is
    full the mean is taken over the vectors seen so far.
    """

    def __init__(self, filter_size: int = 5, num_dimensions: Optional[int] = None):
        if filter_size < 1:
            raise ValueError(f"filter_size must be at least 1, got {filter_size}")
        super().__init__(num_dimensions)
        self.filter_size = filter_size
        self._buffer = deque(maxlen=filter_size)

    def _do_process(self, x: np.ndarray) -> np.ndarray:
        self._buffer.append(x)
        return np.mean(np.vstack(self._buffer), axis=0)

    def reset(self) -> None:
        super().reset()
        self._buffer.clear()

    def get_params(self) -> dict:
        return {"filter_size": self.filter_size}

    def __str__(self) -> str:
        return f"MovingAverageFilter(filter_size={self.filter_size})"


class LowPassFilter(ProcessingStep):
    """
    First order low pass filter: y[t] = (1 - filter_factor) * y[t-1] + filter_factor * x[t].

    The first vector after a reset passes through unchanged.
    """

    def __init__(self, filter_factor: float = 0.1, num_dimensions: Optional[int] = None):
        if not 0.0 < filter_factor <= 1.0:
            raise ValueError(f"filter_factor must be in (0, 1], got {filter_factor}")
        super().__init__(num_dimensions)
        self.filter_factor = filter_factor
        self._last_output: Optional[np.ndarray] = None

    def _do_process(self, x: np.ndarray) -> np.ndarray:
        if self._last_output is None:
            self._last_output = x.copy()
        else:
            self._last_output = (1.0 - self.filter_factor) * self._last_output + self.filter_factor * x
        return self._last_output.copy()

    def reset(self) -> None:
        super().reset()
        self._last_output = None

    def get_params(self) -> dict:
        return {"filter_factor": self.filter_factor}

    def __str__(self) -> str:
        return f"LowPassFilter(filter_factor={self.filter_factor})"
