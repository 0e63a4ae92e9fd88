import copy
import logging
from typing import List, Optional, Union

import numpy as np
from tqdm import tqdm

from gestkit.exceptions import (
    DatasetError,
    DimensionMismatchError,
    ModelFileError,
    ModelNotTrainedError,
    PipelineStateError,
)
from gestkit.interfaces.classifier import Classifier
from gestkit.interfaces.processing_step import ProcessingStep
from gestkit.interfaces.regressifier import Regressifier
from gestkit.ml.evaluation import (
    ClassificationTestResults,
    RegressionTestResults,
    evaluate_classification,
    evaluate_regression,
)
from gestkit.objects.classification_data import ClassificationData, NULL_CLASS_LABEL
from gestkit.objects.regression_data import RegressionData
from gestkit.utils import model_io

logger = logging.getLogger(__name__)

PIPELINE_FORMAT = "GESTKIT_PIPELINE"


class GestureRecognitionPipeline:
    """
    Chains pre-processing steps with a single classifier or regression module.

    The pipeline owns at most one model; setting a classifier removes the
    regressifier and the other way round. train(), test() and predict()
    push every input vector through the pre-processing steps, in order,
    before it reaches the model.
    """

    def __init__(self, config: Optional[List[dict]] = None):
        """
        Initialize the pipeline, optionally with pre-processing steps.

        Args:
            config: List of {step class name: parameter dict} entries.
                   If None, creates a pipeline without pre-processing.

        Example:
            config = [
                {"LowPassFilter": {"filter_factor": 0.2}},
                {"DeadZone": {"lower_limit": -0.05, "upper_limit": 0.05}},
            ]
        """
        self.pre_processing_modules: List[ProcessingStep] = []
        self.classifier: Optional[Classifier] = None
        self.regressifier: Optional[Regressifier] = None
        self.clear()

        if config is not None:
            self._configure_from_list(config)

    # ----- building --------------------------------------------------------

    def set_classifier(self, classifier: Classifier) -> None:
        """Use an untrained copy of classifier as the pipeline's model."""
        self.classifier = copy.deepcopy(classifier)
        self.regressifier = None
        self.clear()

    def set_regressifier(self, regressifier: Regressifier) -> None:
        """Use an untrained copy of regressifier as the pipeline's model."""
        self.regressifier = regressifier.deep_copy()
        self.classifier = None
        self.clear()

    def add_pre_processing_module(self, step: ProcessingStep) -> None:
        self.pre_processing_modules.append(step)
        self.clear()

    def remove_all_pre_processing_modules(self) -> None:
        self.pre_processing_modules = []
        self.clear()

    @property
    def is_classifier(self) -> bool:
        return self.classifier is not None

    @property
    def is_regressifier(self) -> bool:
        return self.regressifier is not None

    @property
    def model(self) -> Optional[Union[Classifier, Regressifier]]:
        return self.classifier if self.classifier is not None else self.regressifier

    @property
    def trained(self) -> bool:
        return self.model is not None and self.model.trained

    # ----- training, testing & prediction ---------------------------------

    def train(self, data: Union[ClassificationData, RegressionData]) -> None:
        """
        Train the model on data after running it through the pre-processing steps.

        Raises:
            PipelineStateError: If no model is set or the data type does not match it.
        """
        self._check_data_type(data)
        if data.num_samples == 0:
            raise DatasetError("Training data is empty")

        self.clear()
        processed = self._pre_process_dataset(data, desc="Pre-processing training data")
        self.model.train(processed)

        if self.is_classifier:
            self.num_input_dimensions = data.num_dimensions
            self.num_output_dimensions = self.classifier.num_classes
        else:
            self.num_input_dimensions = data.num_input_dimensions
            self.num_output_dimensions = data.num_target_dimensions
        self.reset()
        logger.info("Trained pipeline with %s on %d samples", self.model, data.num_samples)

    def test(self, data: Union[ClassificationData, RegressionData]) -> Union[ClassificationTestResults, RegressionTestResults]:
        """
        Predict every sample in data and compute test metrics.

        Classification: accuracy, per-class precision/recall/F-measure and the
        confusion matrix. Regression: total squared error and RMS error.

        Raises:
            ModelNotTrainedError: If the pipeline has not been trained.
            DimensionMismatchError: If data does not match the trained dimensionality.
        """
        self._check_data_type(data)
        if not self.trained:
            raise ModelNotTrainedError("The pipeline has not been trained")
        self._check_test_dimensions(data)
        if data.num_samples == 0:
            raise DatasetError("Test data is empty")

        self.reset()
        if self.is_classifier:
            predictions = [
                self.predict(sample.sample)
                for sample in tqdm(data, desc="Testing", total=data.num_samples, disable=None)
            ]
            y_true = [sample.class_label for sample in data]
            self.test_results = evaluate_classification(
                y_true, predictions, self.classifier.class_labels,
                include_null_class=self.classifier.use_null_rejection,
            )
            logger.info("Test accuracy: %.4f", self.test_results.accuracy)
        else:
            outputs = np.vstack([
                self.predict(sample.input_vector)
                for sample in tqdm(data, desc="Testing", total=data.num_samples, disable=None)
            ])
            _, targets = data.get_data_as_matrices()
            self.test_results = evaluate_regression(outputs, targets)
            logger.info("Test RMS error: %f", self.test_results.rms_error)
        self.reset()
        return self.test_results

    def predict(self, input_vector) -> Union[int, np.ndarray]:
        """
        Run input_vector through the pre-processing steps and the model.

        Returns:
            The predicted class label (classifier) or output vector (regressifier).
        """
        if not self.trained:
            raise ModelNotTrainedError("The pipeline has not been trained")
        x = np.asarray(input_vector, dtype=float).ravel()
        if len(x) != self.num_input_dimensions:
            raise DimensionMismatchError(
                f"Input vector has {len(x)} dimensions, the pipeline expects {self.num_input_dimensions}"
            )
        return self.model.predict(self._apply_steps(x))

    # ----- results ---------------------------------------------------------

    @property
    def predicted_class_label(self) -> int:
        return self.classifier.predicted_class_label if self.is_classifier else NULL_CLASS_LABEL

    @property
    def max_likelihood(self) -> float:
        return self.classifier.max_likelihood if self.is_classifier else 0.0

    @property
    def class_likelihoods(self) -> np.ndarray:
        return self.classifier.class_likelihoods if self.is_classifier else np.zeros(0)

    @property
    def class_distances(self) -> np.ndarray:
        return self.classifier.class_distances if self.is_classifier else np.zeros(0)

    @property
    def regression_data(self) -> np.ndarray:
        return self.regressifier.regression_data if self.is_regressifier else np.zeros(0)

    @property
    def test_accuracy(self) -> float:
        return self._classification_results().accuracy

    @property
    def test_confusion_matrix(self) -> np.ndarray:
        return self._classification_results().confusion_matrix

    @property
    def test_rms_error(self) -> float:
        return self._regression_results().rms_error

    @property
    def test_sse(self) -> float:
        return self._regression_results().total_squared_error

    def _classification_results(self) -> ClassificationTestResults:
        if not isinstance(self.test_results, ClassificationTestResults):
            raise PipelineStateError("No classification test results, run test() on ClassificationData first")
        return self.test_results

    def _regression_results(self) -> RegressionTestResults:
        if not isinstance(self.test_results, RegressionTestResults):
            raise PipelineStateError("No regression test results, run test() on RegressionData first")
        return self.test_results

    # ----- state -----------------------------------------------------------

    def reset(self) -> None:
        """Reset the pre-processing state and the last prediction, keep the trained model."""
        for step in self.pre_processing_modules:
            step.reset()
        if self.model is not None:
            self.model.reset()

    def clear(self) -> None:
        """Discard the trained model and any test results."""
        if self.model is not None:
            self.model.clear()
        for step in self.pre_processing_modules:
            step.reset()
        self.num_input_dimensions = 0
        self.num_output_dimensions = 0
        self.test_results: Optional[Union[ClassificationTestResults, RegressionTestResults]] = None

    # ----- persistence -----------------------------------------------------

    def save_pipeline_to_file(self, path) -> None:
        """Write the pre-processing config and the model to a single file."""
        payload = {
            "pre_processing": [step.to_config() for step in self.pre_processing_modules],
            "classifier": self.classifier.to_dict() if self.is_classifier else None,
            "regressifier": self.regressifier.to_dict() if self.is_regressifier else None,
            "num_input_dimensions": self.num_input_dimensions,
            "num_output_dimensions": self.num_output_dimensions,
        }
        model_io.write_model_file(path, PIPELINE_FORMAT, payload)
        logger.info("Saved pipeline to %s", path)

    def load_pipeline_from_file(self, path) -> None:
        """
        Replace this pipeline with the one stored in path.

        Filter state is not stored; loaded steps start from their reset state.

        Raises:
            FileNotFoundError: If path does not exist.
            ModelFileError: If the file is not a valid pipeline file.
        """
        payload = model_io.read_model_file(path, PIPELINE_FORMAT)
        model_io.require_keys(
            payload,
            ["pre_processing", "classifier", "regressifier", "num_input_dimensions", "num_output_dimensions"],
            "Pipeline file",
        )
        if payload["classifier"] is not None and payload["regressifier"] is not None:
            raise ModelFileError(f"Pipeline file {path} holds both a classifier and a regressifier")

        try:
            steps = [self._build_step(entry) for entry in payload["pre_processing"]]
        except (ValueError, TypeError) as e:
            raise ModelFileError(f"Invalid pre-processing config in {path}: {e}") from e

        self.pre_processing_modules = steps
        self.classifier = None if payload["classifier"] is None else Classifier.from_dict(payload["classifier"])
        self.regressifier = None if payload["regressifier"] is None else Regressifier.from_dict(payload["regressifier"])
        self.num_input_dimensions = int(payload["num_input_dimensions"])
        self.num_output_dimensions = int(payload["num_output_dimensions"])
        self.test_results = None
        self.reset()
        logger.info("Loaded pipeline from %s", path)

    # ----- helpers ---------------------------------------------------------

    def _check_data_type(self, data) -> None:
        if self.model is None:
            raise PipelineStateError("The pipeline has no classifier or regressifier")
        if self.is_classifier and not isinstance(data, ClassificationData):
            raise PipelineStateError(f"A classification pipeline needs ClassificationData, got {type(data).__name__}")
        if self.is_regressifier and not isinstance(data, RegressionData):
            raise PipelineStateError(f"A regression pipeline needs RegressionData, got {type(data).__name__}")

    def _check_test_dimensions(self, data) -> None:
        if self.is_classifier:
            if data.num_dimensions != self.num_input_dimensions:
                raise DimensionMismatchError(
                    f"The test data has {data.num_dimensions} dimensions, "
                    f"the pipeline was trained with {self.num_input_dimensions}"
                )
        else:
            if data.num_input_dimensions != self.num_input_dimensions:
                raise DimensionMismatchError(
                    f"The test data has {data.num_input_dimensions} input dimensions, "
                    f"the pipeline was trained with {self.num_input_dimensions}"
                )
            if data.num_target_dimensions != self.num_output_dimensions:
                raise DimensionMismatchError(
                    f"The test data has {data.num_target_dimensions} target dimensions, "
                    f"the pipeline was trained with {self.num_output_dimensions}"
                )

    def _pre_process_dataset(self, data, desc: str):
        """Return data after the pre-processing steps, or data itself when there are none."""
        if not self.pre_processing_modules:
            return data
        for step in self.pre_processing_modules:
            step.reset()

        if isinstance(data, ClassificationData):
            processed = ClassificationData(0, data.dataset_name, data.info_text)
            for sample in tqdm(data, desc=desc, total=data.num_samples, disable=None):
                processed.add_sample(sample.class_label, self._apply_steps(sample.sample))
        else:
            processed = RegressionData(0, 0, data.dataset_name, data.info_text)
            for sample in tqdm(data, desc=desc, total=data.num_samples, disable=None):
                processed.add_sample(self._apply_steps(sample.input_vector), sample.target_vector)
        return processed

    def _apply_steps(self, x: np.ndarray) -> np.ndarray:
        for step in self.pre_processing_modules:
            x = step.process(x)
        return x

    def _configure_from_list(self, config: List[dict]) -> None:
        """
        Configure the pre-processing steps from a list of single-entry dicts.

        Args:
            config: List of {step class name: parameter dict} entries
        """
        self.pre_processing_modules = [self._build_step(entry) for entry in config]

    def _build_step(self, entry: dict) -> ProcessingStep:
        if not isinstance(entry, dict) or len(entry) != 1:
            raise ValueError(f"Each pre-processing entry must be a single {{name: params}} dict, got {entry}")
        (step_name, step_params), = entry.items()
        step_class = self._get_processing_step_class(step_name)
        return step_class(**(step_params or {}))

    def _get_processing_step_class(self, step_name: str):
        """
        Get a ProcessingStep subclass by name.

        Raises:
            ValueError: If the processing step is unknown or if there are duplicate names
        """
        return model_io.find_subclass(ProcessingStep, step_name, ["gestkit.processing.steps"])

