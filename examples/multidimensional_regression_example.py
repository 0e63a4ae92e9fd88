"""
Demo of MultidimensionalRegression in a pipeline: learn a mapping from a
3D input to a 2D output with one LinearRegression per output dimension,
save and reload the pipeline, test it and write the predictions to a
results file.

Data, pipeline and results go to GESTKIT_DATA_DIR/examples when it is set,
otherwise to a temporary directory.
"""
import logging
import sys
import tempfile
from pathlib import Path

import numpy as np

from gestkit import (
    GestkitError,
    GestureRecognitionPipeline,
    LinearRegression,
    MultidimensionalRegression,
    RegressionData,
    enable_training_log,
    setup_logging,
)
from gestkit.exceptions import DimensionMismatchError
from gestkit.utils.paths import gestkit_data_dir
from gestkit.utils.results import write_regression_results

logger = logging.getLogger("multidimensional_regression_example")

WEIGHTS = np.array([[0.5, -1.0, 2.0], [1.5, 0.0, -0.5]])
BIAS = np.array([0.1, -0.3])


def example_dir() -> Path:
    try:
        return gestkit_data_dir() / "examples"
    except RuntimeError:
        return Path(tempfile.mkdtemp(prefix="gestkit_"))


def write_dataset(path: Path, num_samples: int, seed: int) -> None:
    rng = np.random.default_rng(seed)
    data = RegressionData(3, 2, "MultidimensionalRegressionExampleData", "Noisy linear mapping from 3D to 2D")
    for _ in range(num_samples):
        x = rng.uniform(-1.0, 1.0, size=3)
        data.add_sample(x, WEIGHTS @ x + BIAS + rng.normal(0.0, 0.01, size=2))
    data.save_dataset_to_file(path)


def main() -> int:
    setup_logging()
    enable_training_log(True)
    out_dir = example_dir()
    training_path = out_dir / "MultidimensionalRegressionTrainingData.txt"
    test_path = out_dir / "MultidimensionalRegressionTestData.txt"
    pipeline_path = out_dir / "MultidimensionalRegressionPipeline.json"
    results_path = out_dir / "MultidimensionalRegressionResultsData.txt"
    write_dataset(training_path, 500, seed=0)
    write_dataset(test_path, 100, seed=1)

    # Load the training and test data
    training_data = RegressionData()
    training_data.load_dataset_from_file(training_path)
    test_data = RegressionData()
    test_data.load_dataset_from_file(test_path)

    if test_data.num_input_dimensions != training_data.num_input_dimensions:
        raise DimensionMismatchError("The number of input dimensions in the training data does not match the test data")
    if test_data.num_target_dimensions != training_data.num_target_dimensions:
        raise DimensionMismatchError("The number of target dimensions in the training data does not match the test data")

    logger.info("Training data:")
    training_data.print_stats()
    logger.info("Test data:")
    test_data.print_stats()

    # Train one LinearRegression per output dimension, with scaling
    pipeline = GestureRecognitionPipeline()
    pipeline.set_regressifier(MultidimensionalRegression(LinearRegression(), use_scaling=True))
    pipeline.train(training_data)
    pipeline.save_pipeline_to_file(pipeline_path)
    pipeline.load_pipeline_from_file(pipeline_path)

    # Test the reloaded pipeline and write every prediction next to its target
    pipeline.test(test_data)
    logger.info("Test RMS error: %f", pipeline.test_rms_error)

    outputs, targets = [], []
    for sample in test_data:
        outputs.append(pipeline.predict(sample.input_vector))
        targets.append(sample.target_vector)
    write_regression_results(results_path, outputs, targets)
    logger.info("Wrote %d predictions to %s", len(outputs), results_path)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except (GestkitError, OSError):
        logger.exception("Multidimensional regression example failed")
        sys.exit(1)
