"""
We import objects here so that elsewhere in the code we can do:
from gestkit.objects import ClassificationData

rather than:
from gestkit.objects.classification_data import ClassificationData
"""

from gestkit.objects.classification_data import ClassificationData, ClassificationSample, NULL_CLASS_LABEL
from gestkit.objects.regression_data import RegressionData, RegressionSample


# doing from gestkit.objects import * is equivalent to import this:
__all__ = [
    "ClassificationData",
    "ClassificationSample",
    "NULL_CLASS_LABEL",
    "RegressionData",
    "RegressionSample",
]
