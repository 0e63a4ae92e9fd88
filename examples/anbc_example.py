"""
Demo of the ANBC classifier: train on part of a labelled dataset, save and
reload the model, then classify the held-out samples.

Data and models are written to GESTKIT_DATA_DIR/examples when it is set,
otherwise to a temporary directory.
"""
import logging
import sys
import tempfile
from pathlib import Path

import numpy as np

from gestkit import ANBC, ClassificationData, GestkitError, setup_logging
from gestkit.utils.paths import gestkit_data_dir

logger = logging.getLogger("anbc_example")


def example_dir() -> Path:
    try:
        return gestkit_data_dir() / "examples"
    except RuntimeError:
        return Path(tempfile.mkdtemp(prefix="gestkit_"))


def write_training_data(path: Path, samples_per_class: int = 100, seed: int = 0) -> None:
    """Three classes of 3D vectors around different centres."""
    rng = np.random.default_rng(seed)
    data = ClassificationData(3, "ANBCExampleData", "Three gaussian classes in 3D")
    centres = {1: [0.2, 0.2, 0.2], 2: [0.8, 0.2, 0.5], 3: [0.5, 0.8, 0.8]}
    for label, centre in centres.items():
        for _ in range(samples_per_class):
            data.add_sample(label, rng.normal(centre, 0.08))
    data.save_dataset_to_file(path)


def main() -> int:
    setup_logging()
    out_dir = example_dir()
    data_path = out_dir / "ANBCTrainingData.txt"
    model_path = out_dir / "ANBCModel.json"
    write_training_data(data_path)

    # Load the training data and keep 80% of it for training
    training_data = ClassificationData()
    training_data.load_dataset_from_file(data_path)
    test_data = training_data.partition(80)
    logger.info("Training samples: %d, test samples: %d", training_data.num_samples, test_data.num_samples)

    # Train, save and reload the classifier
    anbc = ANBC()
    anbc.set_null_rejection_coeff(10)
    anbc.enable_scaling(True)
    anbc.enable_null_rejection(True)
    anbc.train(training_data)
    anbc.save_model_to_file(model_path)
    anbc.load_model_from_file(model_path)

    # Classify the held-out samples
    num_correct = 0
    for i, sample in enumerate(test_data):
        predicted_class_label = anbc.predict(sample.sample)
        if predicted_class_label == sample.class_label:
            num_correct += 1
        logger.info(
            "TestSample: %d ClassLabel: %d PredictedClassLabel: %d Likelihoods: %s Distances: %s",
            i, sample.class_label, predicted_class_label,
            np.round(anbc.class_likelihoods, 4).tolist(), np.round(anbc.class_distances, 4).tolist(),
        )

    accuracy = num_correct / test_data.num_samples * 100.0
    logger.info("Test Accuracy: %.2f%%", accuracy)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except (GestkitError, OSError):
        logger.exception("ANBC example failed")
        sys.exit(1)
