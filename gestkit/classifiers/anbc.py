"""
Adaptive Naive Bayes Classifier (ANBC).

Each class is modelled by one independent Gaussian per input dimension. A
sample's score for a class is its weighted log-likelihood under that class
model; the best-scoring class wins. With null rejection enabled, a sample is
assigned the null class label when its best score falls below that class's
rejection threshold, which is derived from the spread of the log-likelihoods
of the class's own training samples:

    threshold_k = mean(train_ll_k) - null_rejection_coeff * std(train_ll_k)
"""
from dataclasses import dataclass
import logging
from typing import Dict, Optional

import numpy as np
from scipy.special import logsumexp

from gestkit.exceptions import DatasetError, DimensionMismatchError, ModelFileError
from gestkit.interfaces.classifier import Classifier, training_logger
from gestkit.objects.classification_data import ClassificationData, NULL_CLASS_LABEL
from gestkit.utils import model_io

logger = logging.getLogger(__name__)

#: Standard deviation used for dimensions that are constant within a class.
MIN_SIGMA = 0.01

_LOG_SQRT_2PI = 0.5 * np.log(2.0 * np.pi)


@dataclass
class ANBCModel:
    """Gaussian model of a single class."""
    class_label: int
    mu: np.ndarray
    sigma: np.ndarray
    weights: np.ndarray
    training_mu: float = 0.0
    training_sigma: float = 0.0
    threshold: float = 0.0

    @classmethod
    def fit(cls, class_label: int, X: np.ndarray, weights: np.ndarray, gamma: float) -> "ANBCModel":
        """
        Fit the per-dimension Gaussians to the rows of X.

        Args:
            X: Training samples of this class, shape (n_samples, n_dimensions).
            weights: Per-dimension weights; dimensions with weight 0 are ignored.
            gamma: The null rejection coefficient.
        """
        mu = X.mean(axis=0)
        sigma = X.std(axis=0, ddof=1)
        sigma = np.where(sigma > 0, sigma, MIN_SIGMA)
        model = cls(class_label=class_label, mu=mu, sigma=sigma, weights=np.asarray(weights, dtype=float))

        training_ll = np.array([model.log_likelihood(x) for x in X])
        model.training_mu = float(training_ll.mean())
        model.training_sigma = float(training_ll.std(ddof=1))
        model.recompute_threshold(gamma)
        return model

    def log_likelihood(self, x: np.ndarray) -> float:
        active = self.weights > 0
        z = (x[active] - self.mu[active]) / self.sigma[active]
        log_pdf = -0.5 * z ** 2 - np.log(self.sigma[active]) - _LOG_SQRT_2PI
        return float(np.sum(self.weights[active] * log_pdf))

    def recompute_threshold(self, gamma: float) -> float:
        self.threshold = self.training_mu - self.training_sigma * gamma
        return self.threshold

    def to_dict(self) -> dict:
        return {
            "class_label": self.class_label,
            "mu": self.mu.tolist(),
            "sigma": self.sigma.tolist(),
            "weights": self.weights.tolist(),
            "training_mu": self.training_mu,
            "training_sigma": self.training_sigma,
            "threshold": self.threshold,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "ANBCModel":
        model_io.require_keys(
            payload, ["class_label", "mu", "sigma", "weights", "training_mu", "training_sigma", "threshold"],
            "ANBC class model",
        )
        return cls(
            class_label=int(payload["class_label"]),
            mu=np.array(payload["mu"], dtype=float),
            sigma=np.array(payload["sigma"], dtype=float),
            weights=np.array(payload["weights"], dtype=float),
            training_mu=float(payload["training_mu"]),
            training_sigma=float(payload["training_sigma"]),
            threshold=float(payload["threshold"]),
        )


class ANBC(Classifier):
    """
    Adaptive Naive Bayes Classifier.

    Example:
        anbc = ANBC()
        anbc.set_null_rejection_coeff(10)
        anbc.enable_scaling(True)
        anbc.enable_null_rejection(True)
        anbc.train(training_data)
        label = anbc.predict(sample)
    """

    model_format = "GESTKIT_ANBC_MODEL"

    def __init__(self, use_scaling: bool = False, use_null_rejection: bool = False,
                 null_rejection_coeff: Optional[float] = None):
        self.weights: Dict[int, np.ndarray] = {}
        self.models: Dict[int, ANBCModel] = {}
        super().__init__(use_scaling, use_null_rejection, null_rejection_coeff)

    def set_weights(self, weights_data: ClassificationData) -> None:
        """
        Set per-dimension weights for some or all classes.

        Each sample in weights_data holds the weight vector of the class given
        by its class label. Classes without a weight vector use all ones.
        Takes effect on the next call to train().
        """
        self.weights = {}
        for sample in weights_data:
            if np.any(sample.sample < 0):
                raise ValueError(f"Weights must be non-negative, got {sample.sample} for class {sample.class_label}")
            self.weights[sample.class_label] = sample.sample.copy()

    def clear_weights(self) -> None:
        self.weights = {}

    def _validate_training_data(self, data: ClassificationData) -> None:
        for class_label, n_class in data.class_tracker.items():
            if n_class < 2:
                raise DatasetError(f"ANBC needs at least 2 samples per class, class {class_label} has {n_class}")
            weights = self.weights.get(class_label)
            if weights is not None and len(weights) != data.num_dimensions:
                raise DimensionMismatchError(
                    f"Weights for class {class_label} have {len(weights)} dimensions, "
                    f"the training data has {data.num_dimensions}"
                )

    def _train(self, X: np.ndarray, y: np.ndarray) -> None:
        models = {}
        for class_label in self.class_labels:
            weights = self.weights.get(class_label, np.ones(self.num_input_dimensions))
            models[class_label] = ANBCModel.fit(class_label, X[y == class_label], weights, self.null_rejection_coeff)
            training_logger.info(
                "Trained class %d: threshold %.4f", class_label, models[class_label].threshold,
                extra={"model": self.name, "class_label": class_label},
            )

        self.models = models
        self.null_rejection_thresholds = np.array([models[k].threshold for k in self.class_labels])

    def _predict(self, x: np.ndarray) -> None:
        distances = np.array([self.models[k].log_likelihood(x) for k in self.class_labels])
        likelihoods = np.exp(distances - logsumexp(distances))
        best = int(np.argmax(distances))

        self.class_distances = distances
        self.class_likelihoods = likelihoods
        self.max_likelihood = float(likelihoods[best])
        self.predicted_class_label = self.class_labels[best]

        if self.use_null_rejection and distances[best] < self.null_rejection_thresholds[best]:
            self.predicted_class_label = NULL_CLASS_LABEL
            logger.debug("Rejected sample: best log-likelihood %f below threshold %f",
                         distances[best], self.null_rejection_thresholds[best])

    def _recompute_null_rejection_thresholds(self) -> None:
        for model in self.models.values():
            model.recompute_threshold(self.null_rejection_coeff)
        self.null_rejection_thresholds = np.array([self.models[k].threshold for k in self.class_labels])

    def clear(self) -> None:
        super().clear()
        self.models = {}

    def _options_to_dict(self) -> dict:
        # JSON object keys are strings
        return {"weights": {str(label): weights.tolist() for label, weights in self.weights.items()}}

    def _options_from_dict(self, options: dict) -> None:
        self.weights = {
            int(label): np.array(weights, dtype=float)
            for label, weights in options.get("weights", {}).items()
        }

    def _model_to_dict(self) -> dict:
        return {"models": [self.models[k].to_dict() for k in self.class_labels]}

    def _model_from_dict(self, model: dict) -> None:
        model_io.require_keys(model, ["models"], "ANBC model")
        models = {}
        for payload in model["models"]:
            class_model = ANBCModel.from_dict(payload)
            models[class_model.class_label] = class_model
        if sorted(models) != sorted(self.class_labels):
            raise ModelFileError(
                f"ANBC class models {sorted(models)} do not match the class labels {self.class_labels}"
            )
        self.models = models
