"""
Custom errors raised by the gestkit toolkit.
"""


class GestkitError(Exception):
    """Base class for every error raised by gestkit."""
    pass


class DatasetError(GestkitError):
    """Raised when a dataset is empty, malformed or used with invalid arguments."""
    pass


class DimensionMismatchError(DatasetError):
    """Raised when a vector or dataset does not have the expected dimensionality."""
    pass


class ModelNotTrainedError(GestkitError):
    """Raised when a model is used for prediction, testing or saving before it has been trained."""
    pass


class ModelFileError(GestkitError):
    """Raised when a model or pipeline file cannot be parsed."""
    pass


class PipelineStateError(GestkitError):
    """Raised when the pipeline is in a state which does not allow the requested operation"""
    pass


class ModelStateError(GestkitError):
    """Raised when a model is not configured for the requested operation"""
    pass
