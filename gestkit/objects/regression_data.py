from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union
import logging

import numpy as np

from gestkit.exceptions import DatasetError, DimensionMismatchError
from gestkit.objects import data_io
from gestkit.utils import scaling
from gestkit.utils.paths import check_file_exists, ensure_parent_dir

logger = logging.getLogger(__name__)

FILE_FORMAT = "GESTKIT_REGRESSION_DATA_FILE_V1.0"


@dataclass
class RegressionSample:
    """An input vector paired with the target vector it should map to."""
    input_vector: np.ndarray
    target_vector: np.ndarray

    def __post_init__(self):
        self.input_vector = np.array(self.input_vector, dtype=float).ravel()
        self.target_vector = np.array(self.target_vector, dtype=float).ravel()

    @property
    def num_input_dimensions(self) -> int:
        return len(self.input_vector)

    @property
    def num_target_dimensions(self) -> int:
        return len(self.target_vector)


class RegressionData:
    """
    An ordered collection of (input, target) pairs. All samples share the
    same input and target dimensionality; when both are 0 the first sample
    added fixes them.
    """

    def __init__(self, num_input_dimensions: int = 0, num_target_dimensions: int = 0,
                 dataset_name: str = "NOT_SET", info_text: str = ""):
        self.num_input_dimensions = num_input_dimensions
        self.num_target_dimensions = num_target_dimensions
        self.dataset_name = dataset_name
        self.info_text = info_text
        self.samples: List[RegressionSample] = []

    def add_sample(self, input_vector: Sequence[float], target_vector: Sequence[float]) -> None:
        new_sample = RegressionSample(input_vector, target_vector)
        if self.num_samples == 0 and self.num_input_dimensions == 0 and self.num_target_dimensions == 0:
            self.num_input_dimensions = new_sample.num_input_dimensions
            self.num_target_dimensions = new_sample.num_target_dimensions
        if new_sample.num_input_dimensions != self.num_input_dimensions:
            raise DimensionMismatchError(
                f"Input vector has {new_sample.num_input_dimensions} dimensions, "
                f"dataset expects {self.num_input_dimensions}"
            )
        if new_sample.num_target_dimensions != self.num_target_dimensions:
            raise DimensionMismatchError(
                f"Target vector has {new_sample.num_target_dimensions} dimensions, "
                f"dataset expects {self.num_target_dimensions}"
            )
        self.samples.append(new_sample)

    def remove_sample(self, index: int) -> RegressionSample:
        return self.samples.pop(index)

    def clear(self) -> None:
        self.samples = []

    @property
    def num_samples(self) -> int:
        return len(self.samples)

    def __len__(self) -> int:
        return self.num_samples

    def __iter__(self) -> Iterator[RegressionSample]:
        return iter(self.samples)

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return self.subset(range(*index.indices(self.num_samples)))
        return self.samples[index]

    def subset(self, indices) -> "RegressionData":
        subset = RegressionData(self.num_input_dimensions, self.num_target_dimensions,
                                self.dataset_name, self.info_text)
        subset.samples = [
            RegressionSample(self.samples[int(i)].input_vector, self.samples[int(i)].target_vector)
            for i in indices
        ]
        return subset

    def get_data_as_matrices(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Returns:
            (X, Y) with shapes (num_samples, num_input_dimensions) and
            (num_samples, num_target_dimensions).
        """
        if self.num_samples == 0:
            return np.empty((0, self.num_input_dimensions)), np.empty((0, self.num_target_dimensions))
        X = np.vstack([s.input_vector for s in self.samples])
        Y = np.vstack([s.target_vector for s in self.samples])
        return X, Y

    def get_input_ranges(self) -> np.ndarray:
        X, _ = self.get_data_as_matrices()
        return scaling.compute_ranges(X.reshape(-1, self.num_input_dimensions))

    def get_target_ranges(self) -> np.ndarray:
        _, Y = self.get_data_as_matrices()
        return scaling.compute_ranges(Y.reshape(-1, self.num_target_dimensions))

    def scale(self, min_target: float = 0.0, max_target: float = 1.0,
              input_ranges: Optional[np.ndarray] = None, target_ranges: Optional[np.ndarray] = None) -> None:
        """Rescale inputs and targets in place onto [min_target, max_target]."""
        if self.num_samples == 0:
            return
        if input_ranges is None:
            input_ranges = self.get_input_ranges()
        if target_ranges is None:
            target_ranges = self.get_target_ranges()
        for sample in self.samples:
            sample.input_vector = scaling.scale(sample.input_vector, input_ranges, min_target, max_target)
            sample.target_vector = scaling.scale(sample.target_vector, target_ranges, min_target, max_target)

    def merge(self, other: "RegressionData") -> None:
        if other.num_samples == 0:
            return
        if self.num_samples > 0 and (
                other.num_input_dimensions != self.num_input_dimensions or
                other.num_target_dimensions != self.num_target_dimensions):
            raise DimensionMismatchError(
                f"Cannot merge a {other.num_input_dimensions}->{other.num_target_dimensions} dataset into a "
                f"{self.num_input_dimensions}->{self.num_target_dimensions} dataset"
            )
        for sample in other:
            self.add_sample(sample.input_vector, sample.target_vector)

    def partition(self, training_size_percentage: float, seed: Optional[int] = None) -> "RegressionData":
        """
        Randomly split the dataset in two. This dataset keeps
        training_size_percentage % of the samples and the rest is returned.
        """
        from gestkit.config import settings
        from gestkit.ml.splitting_strategies import RandomSplitter

        ratio = data_io.check_percentage(training_size_percentage)
        if seed is None:
            seed = settings.random_seed
        split = RandomSplitter(train_ratio=ratio, seed=seed).split(self)
        self.samples = split.train.samples
        return split.test

    def stats(self) -> dict:
        return {
            "dataset_name": self.dataset_name,
            "info_text": self.info_text,
            "num_samples": self.num_samples,
            "num_input_dimensions": self.num_input_dimensions,
            "num_target_dimensions": self.num_target_dimensions,
            "input_ranges": data_io.split_ranges_text(self.get_input_ranges()),
            "target_ranges": data_io.split_ranges_text(self.get_target_ranges()),
        }

    def print_stats(self) -> None:
        stats = self.stats()
        logger.info("DatasetName: %s", stats["dataset_name"])
        logger.info("DatasetInfo: %s", stats["info_text"])
        logger.info("Number of Samples: %d", stats["num_samples"])
        logger.info("Number of Input Dimensions: %d", stats["num_input_dimensions"])
        logger.info("Number of Target Dimensions: %d", stats["num_target_dimensions"])
        for j, (lo, hi) in enumerate(stats["input_ranges"]):
            logger.info("Input Dimension: %d Min: %s Max: %s", j, lo, hi)
        for j, (lo, hi) in enumerate(stats["target_ranges"]):
            logger.info("Target Dimension: %d Min: %s Max: %s", j, lo, hi)

    def save_dataset_to_file(self, path) -> None:
        if Path(path).suffix.lower() == ".csv":
            return self.save_dataset_to_csv_file(path)
        path = ensure_parent_dir(path)
        with open(path, "w") as f:
            f.write(f"{FILE_FORMAT}\n")
            f.write(f"DatasetName: {self.dataset_name}\n")
            f.write(f"InfoText: {self.info_text}\n")
            f.write(f"NumInputDimensions: {self.num_input_dimensions}\n")
            f.write(f"NumTargetDimensions: {self.num_target_dimensions}\n")
            f.write(f"TotalNumTrainingExamples: {self.num_samples}\n")
            f.write("RegressionData:\n")
            for sample in self.samples:
                f.write(f"{data_io.format_row(np.concatenate([sample.input_vector, sample.target_vector]))}\n")

    def load_dataset_from_file(self, path, num_input_dimensions: Optional[int] = None,
                               num_target_dimensions: Optional[int] = None) -> None:
        """
        Replace the contents of this dataset with the samples in path.

        CSV files (suffix .csv) carry no header, so the input and target
        dimensionality must be given for them.

        Raises:
            FileNotFoundError: If path does not exist.
            DatasetError: If the file content is malformed.
        """
        check_file_exists(path)
        if Path(path).suffix.lower() == ".csv":
            if num_input_dimensions is None or num_target_dimensions is None:
                raise DatasetError("Loading a CSV regression file needs num_input_dimensions and num_target_dimensions")
            return self.load_dataset_from_csv_file(path, num_input_dimensions, num_target_dimensions)

        lines = data_io.read_lines(path)
        data_io.expect_format(lines, FILE_FORMAT, path)
        dataset_name = data_io.header_value(lines, 1, "DatasetName", path)
        info_text = data_io.header_value(lines, 2, "InfoText", path)
        n_inputs = data_io.header_int(lines, 3, "NumInputDimensions", path)
        n_targets = data_io.header_int(lines, 4, "NumTargetDimensions", path)
        num_samples = data_io.header_int(lines, 5, "TotalNumTrainingExamples", path)
        data_io.header_value(lines, 6, "RegressionData", path)

        data_lines = lines[7:]
        if len(data_lines) != num_samples:
            raise DatasetError(
                f"{path} declares {num_samples} samples but contains {len(data_lines)} data lines"
            )

        loaded = RegressionData(n_inputs, n_targets, dataset_name, info_text)
        for line_number, line in data_lines:
            row = data_io.parse_row(line, n_inputs + n_targets, line_number, path)
            loaded.add_sample(row[:n_inputs], row[n_inputs:])

        self._replace_with(loaded)
        logger.debug("Loaded %d samples from %s", self.num_samples, path)

    def save_dataset_to_csv_file(self, path) -> None:
        """Write one line per sample: input values then target values."""
        path = ensure_parent_dir(path)
        with open(path, "w") as f:
            for sample in self.samples:
                values = np.concatenate([sample.input_vector, sample.target_vector])
                f.write(",".join(repr(float(v)) for v in values) + "\n")

    def load_dataset_from_csv_file(self, path, num_input_dimensions: int, num_target_dimensions: int) -> None:
        check_file_exists(path)
        matrix = data_io.load_csv_matrix(path)
        if matrix.shape[0] > 0 and matrix.shape[1] != num_input_dimensions + num_target_dimensions:
            raise DimensionMismatchError(
                f"{path} has {matrix.shape[1]} columns, expected "
                f"{num_input_dimensions} inputs + {num_target_dimensions} targets"
            )
        loaded = RegressionData(num_input_dimensions, num_target_dimensions, Path(path).stem, self.info_text)
        for row in matrix:
            loaded.add_sample(row[:num_input_dimensions], row[num_input_dimensions:])
        self._replace_with(loaded)

    def _replace_with(self, other: "RegressionData") -> None:
        self.num_input_dimensions = other.num_input_dimensions
        self.num_target_dimensions = other.num_target_dimensions
        self.dataset_name = other.dataset_name
        self.info_text = other.info_text
        self.samples = other.samples

    def __repr__(self) -> str:
        return (f"RegressionData(name={self.dataset_name!r}, samples={self.num_samples}, "
                f"inputs={self.num_input_dimensions}, targets={self.num_target_dimensions})")
