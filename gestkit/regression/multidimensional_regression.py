import logging
from typing import List, Optional

import numpy as np

from gestkit.exceptions import ModelFileError, ModelStateError
from gestkit.interfaces.regressifier import Regressifier, training_logger
from gestkit.objects.regression_data import RegressionData
from gestkit.utils import model_io

logger = logging.getLogger(__name__)


class MultidimensionalRegression(Regressifier):
    """
    Maps an N-dimensional input onto a T-dimensional output by training T
    independent copies of a one-dimensional regression module, one per
    target dimension, each seeing all N inputs.

    Scaling (if enabled) is done once here; the per-dimension modules are
    always trained with scaling off.

    Example:
        regression = MultidimensionalRegression(LinearRegression(), use_scaling=True)
        regression.train(training_data)
        output_vector = regression.predict(input_vector)
    """

    model_format = "GESTKIT_MULTIDIMENSIONAL_REGRESSION_MODEL"

    def __init__(self, regressifier: Optional[Regressifier] = None, use_scaling: bool = False):
        self.regressifier = regressifier.deep_copy() if regressifier is not None else None
        self.regressifiers: List[Regressifier] = []
        super().__init__(use_scaling)

    def set_regressifier(self, regressifier: Regressifier) -> None:
        """Set the template regression module. Discards any trained model."""
        self.clear()
        self.regressifier = regressifier.deep_copy()

    def _validate_training_data(self, data: RegressionData) -> None:
        if self.regressifier is None:
            raise ModelStateError("MultidimensionalRegression has no regression module, call set_regressifier() first")

    def _train(self, X: np.ndarray, Y: np.ndarray) -> None:
        regressifiers = []
        for j in range(Y.shape[1]):
            training_logger.info(
                "Training regression module %d of %d", j + 1, Y.shape[1],
                extra={"model": self.name, "target_dimension": j},
            )
            single_target = RegressionData(X.shape[1], 1)
            for x, y in zip(X, Y[:, j]):
                single_target.add_sample(x, [y])

            regressifier = self.regressifier.deep_copy()
            regressifier.enable_scaling(False)
            regressifier.train(single_target)
            regressifiers.append(regressifier)

        self.regressifiers = regressifiers

    def _predict(self, x: np.ndarray) -> np.ndarray:
        return np.concatenate([regressifier.predict(x) for regressifier in self.regressifiers])

    def clear(self) -> None:
        super().clear()
        self.regressifiers = []

    def _options_to_dict(self) -> dict:
        return {"regressifier": None if self.regressifier is None else self.regressifier.to_dict()}

    def _options_from_dict(self, options: dict) -> None:
        template = options.get("regressifier")
        self.regressifier = None if template is None else Regressifier.from_dict(template)

    def _model_to_dict(self) -> dict:
        return {"regressifiers": [regressifier.to_dict() for regressifier in self.regressifiers]}

    def _model_from_dict(self, model: dict) -> None:
        model_io.require_keys(model, ["regressifiers"], "MultidimensionalRegression model")
        regressifiers = [Regressifier.from_dict(payload) for payload in model["regressifiers"]]
        if len(regressifiers) != self.num_output_dimensions:
            raise ModelFileError(
                f"MultidimensionalRegression model has {len(regressifiers)} regression modules, "
                f"expected {self.num_output_dimensions}"
            )
        self.regressifiers = regressifiers
