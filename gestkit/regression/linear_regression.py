import logging

import numpy as np

from gestkit.exceptions import DimensionMismatchError, ModelFileError
from gestkit.interfaces.regressifier import Regressifier, training_logger
from gestkit.objects.regression_data import RegressionData
from gestkit.utils import model_io

logger = logging.getLogger(__name__)


class LinearRegression(Regressifier):
    """
    Fits y = w0 + w1*x1 + ... + wN*xN to a single target dimension.

    Solved with least squares by default. With use_gradient_descent=True the
    weights are found by batch gradient descent instead, stopping after
    max_num_epochs or when the mean squared error changes by less than
    min_change between epochs.

    For more than one target dimension wrap it in MultidimensionalRegression.
    """

    model_format = "GESTKIT_LINEAR_REGRESSION_MODEL"

    def __init__(self, use_scaling: bool = False, use_gradient_descent: bool = False,
                 learning_rate: float = 0.01, max_num_epochs: int = 500, min_change: float = 1.0e-5):
        if learning_rate <= 0:
            raise ValueError(f"learning_rate must be greater than 0, got {learning_rate}")
        if max_num_epochs < 1:
            raise ValueError(f"max_num_epochs must be at least 1, got {max_num_epochs}")
        self.use_gradient_descent = use_gradient_descent
        self.learning_rate = learning_rate
        self.max_num_epochs = max_num_epochs
        self.min_change = min_change
        self.weights = np.zeros(0)
        self.num_epochs_trained = 0
        super().__init__(use_scaling)

    def _validate_training_data(self, data: RegressionData) -> None:
        if data.num_target_dimensions != 1:
            raise DimensionMismatchError(
                f"LinearRegression supports one target dimension, the data has {data.num_target_dimensions}. "
                f"Use MultidimensionalRegression for more."
            )

    def _train(self, X: np.ndarray, Y: np.ndarray) -> None:
        A = np.column_stack([np.ones(len(X)), X])
        y = Y[:, 0]
        if self.use_gradient_descent:
            self.weights = self._gradient_descent(A, y)
        else:
            self.weights, *_ = np.linalg.lstsq(A, y, rcond=None)
            self.num_epochs_trained = 0

    def _gradient_descent(self, A: np.ndarray, y: np.ndarray) -> np.ndarray:
        n_samples = len(y)
        theta = np.zeros(A.shape[1])
        last_error = np.inf

        for epoch in range(1, self.max_num_epochs + 1):
            residual = A @ theta - y
            error = float(np.mean(residual ** 2))
            theta = theta - self.learning_rate * (A.T @ residual) / n_samples
            delta = abs(last_error - error)
            training_logger.info(
                "Epoch: %d Error: %f Delta: %f", epoch, error, delta,
                extra={"model": self.name, "epoch": epoch, "error": error},
            )
            self.num_epochs_trained = epoch
            if not np.isfinite(error):
                logger.warning("Gradient descent diverged at epoch %d, try a smaller learning_rate", epoch)
                break
            if delta <= self.min_change:
                break
            last_error = error

        return theta

    def _predict(self, x: np.ndarray) -> np.ndarray:
        return np.array([self.weights[0] + np.dot(self.weights[1:], x)])

    def clear(self) -> None:
        super().clear()
        self.weights = np.zeros(0)
        self.num_epochs_trained = 0

    def _options_to_dict(self) -> dict:
        return {
            "use_gradient_descent": self.use_gradient_descent,
            "learning_rate": self.learning_rate,
            "max_num_epochs": self.max_num_epochs,
            "min_change": self.min_change,
        }

    def _options_from_dict(self, options: dict) -> None:
        self.use_gradient_descent = bool(options.get("use_gradient_descent", self.use_gradient_descent))
        self.learning_rate = float(options.get("learning_rate", self.learning_rate))
        self.max_num_epochs = int(options.get("max_num_epochs", self.max_num_epochs))
        self.min_change = float(options.get("min_change", self.min_change))

    def _model_to_dict(self) -> dict:
        return {"weights": self.weights.tolist(), "num_epochs_trained": self.num_epochs_trained}

    def _model_from_dict(self, model: dict) -> None:
        model_io.require_keys(model, ["weights"], "LinearRegression model")
        weights = np.array(model["weights"], dtype=float)
        if len(weights) != self.num_input_dimensions + 1:
            raise ModelFileError(
                f"LinearRegression model has {len(weights)} weights, expected {self.num_input_dimensions + 1}"
            )
        self.weights = weights
        self.num_epochs_trained = int(model.get("num_epochs_trained", 0))
