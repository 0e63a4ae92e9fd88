"""
gestkit: dataset containers, classifiers, regression modules and a
recognition pipeline for real-valued feature vectors.
"""

from gestkit.classifiers import ANBC
from gestkit.exceptions import (
    DatasetError,
    DimensionMismatchError,
    GestkitError,
    ModelFileError,
    ModelNotTrainedError,
    ModelStateError,
    PipelineStateError,
)
from gestkit.objects import (
    NULL_CLASS_LABEL,
    ClassificationData,
    ClassificationSample,
    RegressionData,
    RegressionSample,
)
from gestkit.processing.pipeline import GestureRecognitionPipeline
from gestkit.processing.steps import DeadZone, LowPassFilter, MovingAverageFilter
from gestkit.regression import LinearRegression, MultidimensionalRegression
from gestkit.utils.json_logging import enable_training_log, setup_logging

__version__ = "0.1.0"

__all__ = [
    "ANBC",
    "ClassificationData",
    "ClassificationSample",
    "DatasetError",
    "DeadZone",
    "DimensionMismatchError",
    "GestkitError",
    "GestureRecognitionPipeline",
    "LinearRegression",
    "LowPassFilter",
    "ModelFileError",
    "ModelNotTrainedError",
    "ModelStateError",
    "MovingAverageFilter",
    "MultidimensionalRegression",
    "NULL_CLASS_LABEL",
    "PipelineStateError",
    "RegressionData",
    "RegressionSample",
    "enable_training_log",
    "setup_logging",
]
