import logging

import pytest

from gestkit.utils.json_logging import TRAINING_LOGGER_NAME
from testing_utils import make_classification_data, make_regression_data, make_single_target_data


@pytest.fixture
def classification_data():
    return make_classification_data()


@pytest.fixture
def regression_data():
    return make_regression_data()


@pytest.fixture
def single_target_data():
    return make_single_target_data()


@pytest.fixture(autouse=True)
def restore_training_log_level():
    logger = logging.getLogger(TRAINING_LOGGER_NAME)
    level = logger.level
    yield
    logger.setLevel(level)
