import copy
import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from gestkit.exceptions import DatasetError, DimensionMismatchError, ModelFileError, ModelNotTrainedError
from gestkit.objects.regression_data import RegressionData
from gestkit.utils import model_io, scaling
from gestkit.utils.json_logging import get_training_logger

logger = logging.getLogger(__name__)
training_logger = get_training_logger()

REGRESSIFIER_MODULES = ["gestkit.regression"]


class Regressifier(ABC):
    """
    Abstract base class for regression modules.

    train() and predict() are template methods. When scaling is enabled the
    inputs and targets are mapped onto [0, 1] before _train() sees them, and
    _predict() outputs are mapped back onto the target ranges, so subclasses
    only ever work in one space.
    """

    model_format = "GESTKIT_REGRESSIFIER_MODEL"

    def __init__(self, use_scaling: bool = False):
        self.use_scaling = use_scaling
        self.clear()

    def enable_scaling(self, use_scaling: bool) -> None:
        self.use_scaling = bool(use_scaling)

    def train(self, data: RegressionData) -> None:
        """
        Fit the model to data. Any previous model is discarded.

        Raises:
            DatasetError: If the data is empty or of the wrong type.
        """
        if not isinstance(data, RegressionData):
            raise DatasetError(f"{self.name} must be trained on RegressionData, got {type(data).__name__}")
        if data.num_samples == 0:
            raise DatasetError("Training data is empty")
        self._validate_training_data(data)

        self.clear()
        X, Y = data.get_data_as_matrices()
        self.num_input_dimensions = data.num_input_dimensions
        self.num_output_dimensions = data.num_target_dimensions

        X_fit, Y_fit = X, Y
        if self.use_scaling:
            self.input_ranges = scaling.compute_ranges(X)
            self.target_ranges = scaling.compute_ranges(Y)
            X_fit = scaling.scale(X, self.input_ranges)
            Y_fit = scaling.scale(Y, self.target_ranges)

        training_logger.info(
            "Training %s on %d samples (%d inputs -> %d targets)", self.name, data.num_samples,
            self.num_input_dimensions, self.num_output_dimensions,
            extra={"model": self.name, "num_samples": data.num_samples},
        )
        self._train(X_fit, Y_fit)
        self.trained = True

        predictions = np.vstack([self.predict(x) for x in X])
        self.total_squared_training_error = float(np.sum((predictions - Y) ** 2))
        self.root_mean_squared_training_error = float(np.sqrt(self.total_squared_training_error / data.num_samples))
        training_logger.info(
            "%s training complete. RMS training error: %f", self.name, self.root_mean_squared_training_error,
            extra={"model": self.name, "error": self.root_mean_squared_training_error},
        )
        self.reset()

    def predict(self, input_vector) -> np.ndarray:
        """
        Map input_vector to an output vector.

        Raises:
            ModelNotTrainedError: If the model has not been trained.
            DimensionMismatchError: If the vector length differs from the training data.
        """
        if not self.trained:
            raise ModelNotTrainedError(f"{self.name} has not been trained")
        x = np.asarray(input_vector, dtype=float).ravel()
        if len(x) != self.num_input_dimensions:
            raise DimensionMismatchError(
                f"Input vector has {len(x)} dimensions, the model expects {self.num_input_dimensions}"
            )
        if self.use_scaling:
            x = scaling.scale(x, self.input_ranges)
        y = np.asarray(self._predict(x), dtype=float).ravel()
        if self.use_scaling:
            y = scaling.unscale(y, self.target_ranges)
        self.regression_data = y
        return y.copy()

    def _validate_training_data(self, data: RegressionData) -> None:
        """Hook for subclasses that only support some data shapes."""
        pass

    @abstractmethod
    def _train(self, X: np.ndarray, Y: np.ndarray) -> None:
        pass

    @abstractmethod
    def _predict(self, x: np.ndarray) -> np.ndarray:
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def reset(self) -> None:
        self.regression_data = np.zeros(self.num_output_dimensions)

    def clear(self) -> None:
        self.trained = False
        self.num_input_dimensions = 0
        self.num_output_dimensions = 0
        self.input_ranges: Optional[np.ndarray] = None
        self.target_ranges: Optional[np.ndarray] = None
        self.total_squared_training_error = 0.0
        self.root_mean_squared_training_error = 0.0
        self.reset()

    def deep_copy(self) -> "Regressifier":
        return copy.deepcopy(self)

    # ----- persistence -----------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "regressifier": self.name,
            "use_scaling": self.use_scaling,
            "options": self._options_to_dict(),
            "trained": self.trained,
            "num_input_dimensions": self.num_input_dimensions,
            "num_output_dimensions": self.num_output_dimensions,
            "input_ranges": None if self.input_ranges is None else self.input_ranges.tolist(),
            "target_ranges": None if self.target_ranges is None else self.target_ranges.tolist(),
            "total_squared_training_error": self.total_squared_training_error,
            "root_mean_squared_training_error": self.root_mean_squared_training_error,
            "model": self._model_to_dict() if self.trained else {},
        }

    def load_dict(self, payload: dict) -> None:
        model_io.require_keys(
            payload,
            ["regressifier", "use_scaling", "options", "trained", "num_input_dimensions",
             "num_output_dimensions", "input_ranges", "target_ranges", "model"],
            f"{self.name} model",
        )
        if payload["regressifier"] != self.name:
            raise ModelFileError(f"Cannot load a {payload['regressifier']} model into {self.name}")
        self.clear()
        self.use_scaling = bool(payload["use_scaling"])
        self._options_from_dict(payload["options"])
        if payload["trained"]:
            self.num_input_dimensions = int(payload["num_input_dimensions"])
            self.num_output_dimensions = int(payload["num_output_dimensions"])
            if payload["input_ranges"] is not None:
                self.input_ranges = np.array(payload["input_ranges"], dtype=float)
            if payload["target_ranges"] is not None:
                self.target_ranges = np.array(payload["target_ranges"], dtype=float)
            self.total_squared_training_error = float(payload.get("total_squared_training_error", 0.0))
            self.root_mean_squared_training_error = float(payload.get("root_mean_squared_training_error", 0.0))
            self._model_from_dict(payload["model"])
            self.trained = True
        self.reset()

    @classmethod
    def from_dict(cls, payload: dict) -> "Regressifier":
        """Build the regressifier named in payload["regressifier"]."""
        if "regressifier" not in payload:
            raise ModelFileError("Regressifier payload is missing the 'regressifier' field")
        try:
            regressifier_class = model_io.find_subclass(Regressifier, payload["regressifier"], REGRESSIFIER_MODULES)
        except ValueError as e:
            raise ModelFileError(str(e)) from e
        regressifier = regressifier_class()
        regressifier.load_dict(payload)
        return regressifier

    def _options_to_dict(self) -> dict:
        return {}

    def _options_from_dict(self, options: dict) -> None:
        pass

    @abstractmethod
    def _model_to_dict(self) -> dict:
        pass

    @abstractmethod
    def _model_from_dict(self, model: dict) -> None:
        pass

    def save_model_to_file(self, path) -> None:
        model_io.write_model_file(path, self.model_format, self.to_dict())
        logger.info("Saved %s model to %s", self.name, path)

    def load_model_from_file(self, path) -> None:
        """
        Raises:
            FileNotFoundError: If path does not exist.
            ModelFileError: If the file does not hold a model of this type.
        """
        self.load_dict(model_io.read_model_file(path, self.model_format))
        logger.info("Loaded %s model from %s", self.name, path)

    def __str__(self) -> str:
        return self.name
