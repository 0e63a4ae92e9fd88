import numpy as np
from abc import ABC, abstractmethod
from typing import Optional

from gestkit.exceptions import DimensionMismatchError


class ProcessingStep(ABC):
    """
    Abstract base class for pre-processing steps applied to input vectors
    before they reach a classifier or regression module.

    Steps may keep state between calls (filters do); reset() returns them to
    their initial state. The dimensionality is fixed by the first vector a
    step processes, or up front via num_dimensions.
    """

    def __init__(self, num_dimensions: Optional[int] = None):
        self._declared_num_dimensions = num_dimensions
        self.num_dimensions = num_dimensions

    def process(self, vector) -> np.ndarray:
        """
        Template method that enforces a constant input dimensionality.

        Args:
            vector: The input vector.

        Returns:
            The processed vector (a new array, the input is not modified).
        """
        x = np.asarray(vector, dtype=float).ravel()
        if self.num_dimensions is None:
            self.num_dimensions = len(x)
        if len(x) != self.num_dimensions:
            raise DimensionMismatchError(
                f"{self} expects {self.num_dimensions} dimensions, got {len(x)}"
            )
        return self._do_process(x)

    @abstractmethod
    def _do_process(self, x: np.ndarray) -> np.ndarray:
        """
        Actual processing logic - implement this method in subclasses.
        """
        pass

    def reset(self) -> None:
        """
        Forget any state accumulated from previous vectors, including a
        dimensionality learned from the first vector.
        """
        self.num_dimensions = self._declared_num_dimensions

    @abstractmethod
    def get_params(self) -> dict:
        """Constructor arguments that rebuild this step."""
        pass

    def to_config(self) -> dict:
        """The {"StepName": {params}} entry used by pipeline configs."""
        return {self.__class__.__name__: self.get_params()}

    def __str__(self) -> str:
        """Return a string representation of the processing step."""
        return f"{self.__class__.__name__}"
