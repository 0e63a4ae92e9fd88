import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from gestkit.exceptions import DatasetError, DimensionMismatchError, ModelFileError, ModelNotTrainedError
from gestkit.objects.classification_data import ClassificationData, NULL_CLASS_LABEL
from gestkit.utils import model_io, scaling
from gestkit.utils.json_logging import get_training_logger

logger = logging.getLogger(__name__)
training_logger = get_training_logger()

CLASSIFIER_MODULES = ["gestkit.classifiers"]


class Classifier(ABC):
    """
    Abstract base class for classifiers.

    Options (scaling, null rejection) are set before training. train() and
    predict() are template methods: they validate the data, handle input
    scaling and then hand over to _train() / _predict(), which implement the
    actual algorithm.

    After predict(), the result can be read from predicted_class_label,
    max_likelihood, class_likelihoods and class_distances.
    """

    #: Header written to model files; subclasses override it.
    model_format = "GESTKIT_CLASSIFIER_MODEL"

    def __init__(self, use_scaling: bool = False, use_null_rejection: bool = False,
                 null_rejection_coeff: Optional[float] = None):
        if null_rejection_coeff is None:
            from gestkit.config import settings
            null_rejection_coeff = settings.default_null_rejection_coeff
        self.use_scaling = use_scaling
        self.use_null_rejection = use_null_rejection
        self._check_null_rejection_coeff(null_rejection_coeff)
        self.null_rejection_coeff = float(null_rejection_coeff)
        self.clear()

    # ----- options ---------------------------------------------------------

    def enable_scaling(self, use_scaling: bool) -> None:
        self.use_scaling = bool(use_scaling)

    def enable_null_rejection(self, use_null_rejection: bool) -> None:
        self.use_null_rejection = bool(use_null_rejection)

    def set_null_rejection_coeff(self, null_rejection_coeff: float) -> None:
        """Set the coefficient; a trained model recomputes its thresholds."""
        self._check_null_rejection_coeff(null_rejection_coeff)
        self.null_rejection_coeff = float(null_rejection_coeff)
        if self.trained:
            self._recompute_null_rejection_thresholds()

    @staticmethod
    def _check_null_rejection_coeff(null_rejection_coeff: float) -> None:
        if null_rejection_coeff <= 0:
            raise ValueError(f"null_rejection_coeff must be greater than 0, got {null_rejection_coeff}")

    # ----- training & prediction ------------------------------------------

    def train(self, data: ClassificationData) -> None:
        """
        Fit the classifier to data. Any previous model is discarded.

        Raises:
            DatasetError: If the data is empty or holds null class samples.
        """
        if not isinstance(data, ClassificationData):
            raise DatasetError(f"{self.name} must be trained on ClassificationData, got {type(data).__name__}")
        if data.num_samples == 0:
            raise DatasetError("Training data is empty")
        if NULL_CLASS_LABEL in data.class_tracker:
            raise DatasetError(
                f"Training data contains samples with the null class label {NULL_CLASS_LABEL}"
            )
        self._validate_training_data(data)

        self.clear()
        X, y = data.get_data_as_matrix()
        self.num_input_dimensions = data.num_dimensions
        self.class_labels = data.class_labels

        if self.use_scaling:
            self.ranges = scaling.compute_ranges(X)
            X = scaling.scale(X, self.ranges)

        training_logger.info(
            "Training %s on %d samples from %d classes", self.name, data.num_samples, data.num_classes,
            extra={"model": self.name, "num_samples": data.num_samples},
        )
        self._train(X, y)
        self.trained = True
        self.reset()

    def predict(self, input_vector) -> int:
        """
        Predict the class label of input_vector.

        Returns:
            The predicted class label, or the null class label when null
            rejection is enabled and the sample is rejected.

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
            x = scaling.scale(x, self.ranges)
        self._predict(x)
        return self.predicted_class_label

    def _validate_training_data(self, data: ClassificationData) -> None:
        """Hook for subclasses with extra requirements; runs before the old model is discarded."""
        pass

    @abstractmethod
    def _train(self, X: np.ndarray, y: np.ndarray) -> None:
        """
        Fit the model. X is already scaled when scaling is enabled.

        Must leave null_rejection_thresholds populated, one per class label.
        """
        pass

    @abstractmethod
    def _predict(self, x: np.ndarray) -> None:
        """
        Populate predicted_class_label, max_likelihood, class_likelihoods and
        class_distances for a single (scaled) input vector.
        """
        pass

    def _recompute_null_rejection_thresholds(self) -> None:
        """Recompute the thresholds after null_rejection_coeff changes."""
        pass

    # ----- state -----------------------------------------------------------

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def num_classes(self) -> int:
        return len(self.class_labels)

    def reset(self) -> None:
        """Clear the last prediction but keep the trained model."""
        self.predicted_class_label = NULL_CLASS_LABEL
        self.max_likelihood = 0.0
        self.class_likelihoods = np.zeros(self.num_classes)
        self.class_distances = np.zeros(self.num_classes)

    def clear(self) -> None:
        """Discard the trained model."""
        self.trained = False
        self.num_input_dimensions = 0
        self.class_labels: List[int] = []
        self.ranges: Optional[np.ndarray] = None
        self.null_rejection_thresholds = np.zeros(0)
        self.reset()

    # ----- persistence -----------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "classifier": self.name,
            "use_scaling": self.use_scaling,
            "use_null_rejection": self.use_null_rejection,
            "null_rejection_coeff": self.null_rejection_coeff,
            "options": self._options_to_dict(),
            "trained": self.trained,
            "num_input_dimensions": self.num_input_dimensions,
            "class_labels": list(self.class_labels),
            "ranges": None if self.ranges is None else self.ranges.tolist(),
            "null_rejection_thresholds": self.null_rejection_thresholds.tolist(),
            "model": self._model_to_dict() if self.trained else {},
        }

    def load_dict(self, payload: dict) -> None:
        """Restore options and fitted state from a dictionary made by to_dict()."""
        model_io.require_keys(
            payload,
            ["classifier", "use_scaling", "use_null_rejection", "null_rejection_coeff", "options", "trained",
             "num_input_dimensions", "class_labels", "ranges", "null_rejection_thresholds", "model"],
            f"{self.name} model",
        )
        if payload["classifier"] != self.name:
            raise ModelFileError(f"Cannot load a {payload['classifier']} model into {self.name}")
        self.clear()
        self.use_scaling = bool(payload["use_scaling"])
        self.use_null_rejection = bool(payload["use_null_rejection"])
        self.null_rejection_coeff = float(payload["null_rejection_coeff"])
        self._options_from_dict(payload["options"])
        if payload["trained"]:
            self.num_input_dimensions = int(payload["num_input_dimensions"])
            self.class_labels = [int(label) for label in payload["class_labels"]]
            self.ranges = None if payload["ranges"] is None else np.array(payload["ranges"], dtype=float)
            self.null_rejection_thresholds = np.array(payload["null_rejection_thresholds"], dtype=float)
            self._model_from_dict(payload["model"])
            self.trained = True
        self.reset()

    @classmethod
    def from_dict(cls, payload: dict) -> "Classifier":
        """Build the classifier named in payload["classifier"]."""
        if "classifier" not in payload:
            raise ModelFileError("Classifier payload is missing the 'classifier' field")
        try:
            classifier_class = model_io.find_subclass(Classifier, payload["classifier"], CLASSIFIER_MODULES)
        except ValueError as e:
            raise ModelFileError(str(e)) from e
        classifier = classifier_class()
        classifier.load_dict(payload)
        return classifier

    def _options_to_dict(self) -> dict:
        """Subclass options that must survive a save/load, trained or not."""
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
