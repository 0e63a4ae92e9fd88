"""
Interfaces package for gestkit.

This package contains abstract base classes that define the core interfaces
of the toolkit. These interfaces establish contracts that concrete
classifiers, regression modules and pre-processing steps must follow.
"""

from gestkit.interfaces.classifier import Classifier
from gestkit.interfaces.processing_step import ProcessingStep
from gestkit.interfaces.regressifier import Regressifier

__all__ = ['Classifier', 'ProcessingStep', 'Regressifier']
