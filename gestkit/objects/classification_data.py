from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union
import logging

import numpy as np

from gestkit.exceptions import DatasetError, DimensionMismatchError
from gestkit.objects import data_io
from gestkit.utils import scaling
from gestkit.utils.paths import check_file_exists, ensure_parent_dir

logger = logging.getLogger(__name__)

FILE_FORMAT = "GESTKIT_CLASSIFICATION_DATA_FILE_V1.0"

#: Class label reserved for "no class", returned by classifiers that reject a sample.
NULL_CLASS_LABEL = 0


@dataclass
class ClassificationSample:
    """
    A single labelled sample.

    Attributes:
        class_label (int): Non-negative class label. 0 is the null class label.
        sample (np.ndarray): The feature vector.
    """
    class_label: int
    sample: np.ndarray

    def __post_init__(self):
        if int(self.class_label) != self.class_label or self.class_label < 0:
            raise DatasetError(f"Class labels must be non-negative integers, got {self.class_label}")
        self.class_label = int(self.class_label)
        self.sample = np.array(self.sample, dtype=float).ravel()

    @property
    def num_dimensions(self) -> int:
        return len(self.sample)


class ClassificationData:
    """
    An ordered collection of labelled samples that all share the same number
    of dimensions.

    The first sample added to a dataset created with num_dimensions=0 fixes
    the dimensionality.
    """

    def __init__(self, num_dimensions: int = 0, dataset_name: str = "NOT_SET", info_text: str = ""):
        self.num_dimensions = num_dimensions
        self.dataset_name = dataset_name
        self.info_text = info_text
        self.samples: List[ClassificationSample] = []

    # ----- sample access ---------------------------------------------------

    def add_sample(self, class_label: int, sample: Sequence[float]) -> None:
        new_sample = ClassificationSample(class_label, sample)
        if self.num_samples == 0 and self.num_dimensions == 0:
            self.num_dimensions = new_sample.num_dimensions
        if new_sample.num_dimensions != self.num_dimensions:
            raise DimensionMismatchError(
                f"Sample has {new_sample.num_dimensions} dimensions, dataset expects {self.num_dimensions}"
            )
        self.samples.append(new_sample)

    def remove_sample(self, index: int) -> ClassificationSample:
        return self.samples.pop(index)

    def clear(self) -> None:
        self.samples = []

    @property
    def num_samples(self) -> int:
        return len(self.samples)

    @property
    def class_tracker(self) -> Dict[int, int]:
        """Map of class label to number of samples, ordered by label."""
        counts: Dict[int, int] = {}
        for sample in self.samples:
            counts[sample.class_label] = counts.get(sample.class_label, 0) + 1
        return dict(sorted(counts.items()))

    @property
    def class_labels(self) -> List[int]:
        return list(self.class_tracker.keys())

    @property
    def num_classes(self) -> int:
        return len(self.class_tracker)

    def __len__(self) -> int:
        return self.num_samples

    def __iter__(self) -> Iterator[ClassificationSample]:
        return iter(self.samples)

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return self.subset(range(*index.indices(self.num_samples)))
        return self.samples[index]

    def subset(self, indices) -> "ClassificationData":
        """New dataset holding the samples at the given indices, in that order."""
        subset = self._empty_like()
        subset.samples = [
            ClassificationSample(self.samples[int(i)].class_label, self.samples[int(i)].sample)
            for i in indices
        ]
        return subset

    def _empty_like(self) -> "ClassificationData":
        return ClassificationData(self.num_dimensions, self.dataset_name, self.info_text)

    def get_class_data(self, class_label: int) -> "ClassificationData":
        indices = [i for i, s in enumerate(self.samples) if s.class_label == class_label]
        return self.subset(indices)

    def get_data_as_matrix(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Returns:
            (X, y): X has shape (num_samples, num_dimensions), y holds the labels.
        """
        if self.num_samples == 0:
            return np.empty((0, self.num_dimensions)), np.empty((0,), dtype=int)
        X = np.vstack([s.sample for s in self.samples])
        y = np.array([s.class_label for s in self.samples], dtype=int)
        return X, y

    # ----- transforms ------------------------------------------------------

    def get_ranges(self) -> np.ndarray:
        """Per-dimension (min, max), shape (num_dimensions, 2)."""
        X, _ = self.get_data_as_matrix()
        return scaling.compute_ranges(X.reshape(-1, self.num_dimensions))

    def scale(self, min_target: float = 0.0, max_target: float = 1.0, ranges: Optional[np.ndarray] = None) -> None:
        """
        Rescale every feature in place onto [min_target, max_target].

        Args:
            ranges: Source ranges to use. Defaults to the dataset's own ranges.
        """
        if self.num_samples == 0:
            return
        if ranges is None:
            ranges = self.get_ranges()
        for sample in self.samples:
            sample.sample = scaling.scale(sample.sample, ranges, min_target, max_target)

    def merge(self, other: "ClassificationData") -> None:
        """Append every sample of other to this dataset."""
        if other.num_samples == 0:
            return
        if self.num_samples > 0 and other.num_dimensions != self.num_dimensions:
            raise DimensionMismatchError(
                f"Cannot merge a dataset with {other.num_dimensions} dimensions into one with {self.num_dimensions}"
            )
        for sample in other:
            self.add_sample(sample.class_label, sample.sample)

    def partition(self, training_size_percentage: float, use_stratified_sampling: bool = False,
                  seed: Optional[int] = None) -> "ClassificationData":
        """
        Randomly split the dataset in two.

        This dataset keeps training_size_percentage % of the samples; the
        remaining samples are returned as a new dataset.

        Args:
            training_size_percentage: Percentage of samples to keep, in [0, 100].
            use_stratified_sampling: Keep every class's proportion in both parts.
            seed: Shuffle seed. Defaults to settings.random_seed.

        Returns:
            ClassificationData: The partitioned-off (test) samples.
        """
        from gestkit.config import settings
        from gestkit.ml.splitting_strategies import RandomSplitter, StratifiedSplitter

        ratio = data_io.check_percentage(training_size_percentage)
        if seed is None:
            seed = settings.random_seed
        splitter_class = StratifiedSplitter if use_stratified_sampling else RandomSplitter
        split = splitter_class(train_ratio=ratio, seed=seed).split(self)
        self.samples = split.train.samples
        return split.test

    # ----- statistics ------------------------------------------------------

    def stats(self) -> dict:
        return {
            "dataset_name": self.dataset_name,
            "info_text": self.info_text,
            "num_samples": self.num_samples,
            "num_dimensions": self.num_dimensions,
            "num_classes": self.num_classes,
            "class_tracker": self.class_tracker,
            "ranges": data_io.split_ranges_text(self.get_ranges()),
        }

    def print_stats(self) -> None:
        stats = self.stats()
        logger.info("DatasetName: %s", stats["dataset_name"])
        logger.info("DatasetInfo: %s", stats["info_text"])
        logger.info("Number of Dimensions: %d", stats["num_dimensions"])
        logger.info("Number of Samples: %d", stats["num_samples"])
        logger.info("Number of Classes: %d", stats["num_classes"])
        for label, count in stats["class_tracker"].items():
            logger.info("ClassLabel: %d Number of Samples: %d", label, count)
        for j, (lo, hi) in enumerate(stats["ranges"]):
            logger.info("Dimension: %d Min: %s Max: %s", j, lo, hi)

    # ----- file io ---------------------------------------------------------

    def save_dataset_to_file(self, path) -> None:
        """Save to the native text format, or to CSV when the suffix is .csv."""
        if Path(path).suffix.lower() == ".csv":
            return self.save_dataset_to_csv_file(path)
        path = ensure_parent_dir(path)
        tracker = self.class_tracker
        with open(path, "w") as f:
            f.write(f"{FILE_FORMAT}\n")
            f.write(f"DatasetName: {self.dataset_name}\n")
            f.write(f"InfoText: {self.info_text}\n")
            f.write(f"NumDimensions: {self.num_dimensions}\n")
            f.write(f"TotalNumTrainingExamples: {self.num_samples}\n")
            f.write(f"NumberOfClasses: {len(tracker)}\n")
            f.write("ClassIDsAndCounters:\n")
            for label, count in tracker.items():
                f.write(f"{label}\t{count}\n")
            f.write("LabelledTrainingData:\n")
            for sample in self.samples:
                f.write(f"{sample.class_label}\t{data_io.format_row(sample.sample)}\n")

    def load_dataset_from_file(self, path) -> None:
        """
        Replace the contents of this dataset with the samples in path.

        Files ending in .csv are read with load_dataset_from_csv_file.

        Raises:
            FileNotFoundError: If path does not exist.
            DatasetError: If the file content is malformed.
        """
        check_file_exists(path)
        if Path(path).suffix.lower() == ".csv":
            return self.load_dataset_from_csv_file(path)

        lines = data_io.read_lines(path)
        data_io.expect_format(lines, FILE_FORMAT, path)
        dataset_name = data_io.header_value(lines, 1, "DatasetName", path)
        info_text = data_io.header_value(lines, 2, "InfoText", path)
        num_dimensions = data_io.header_int(lines, 3, "NumDimensions", path)
        num_samples = data_io.header_int(lines, 4, "TotalNumTrainingExamples", path)
        num_classes = data_io.header_int(lines, 5, "NumberOfClasses", path)
        data_io.header_value(lines, 6, "ClassIDsAndCounters", path)

        # class counters are recomputed from the samples
        i = 7 + num_classes
        data_io.header_value(lines, i, "LabelledTrainingData", path)
        i += 1

        data_lines = lines[i:]
        if len(data_lines) != num_samples:
            raise DatasetError(
                f"{path} declares {num_samples} samples but contains {len(data_lines)} data lines"
            )

        loaded = ClassificationData(num_dimensions, dataset_name, info_text)
        for line_number, line in data_lines:
            row = data_io.parse_row(line, num_dimensions + 1, line_number, path)
            loaded.add_sample(int(row[0]), row[1:])

        self._replace_with(loaded)
        logger.debug("Loaded %d samples from %s", self.num_samples, path)

    def save_dataset_to_csv_file(self, path) -> None:
        """Write one line per sample: class label first, then the features."""
        path = ensure_parent_dir(path)
        with open(path, "w") as f:
            for sample in self.samples:
                values = ",".join(repr(float(v)) for v in sample.sample)
                f.write(f"{sample.class_label},{values}\n")

    def load_dataset_from_csv_file(self, path) -> None:
        """Load a CSV file with the class label in the first column."""
        check_file_exists(path)
        matrix = data_io.load_csv_matrix(path)
        if matrix.shape[0] > 0 and matrix.shape[1] < 2:
            raise DatasetError(f"{path} needs a class label column and at least one feature column")

        loaded = ClassificationData(max(matrix.shape[1] - 1, 0), Path(path).stem, self.info_text)
        for row in matrix:
            loaded.add_sample(row[0], row[1:])
        self._replace_with(loaded)

    def _replace_with(self, other: "ClassificationData") -> None:
        self.num_dimensions = other.num_dimensions
        self.dataset_name = other.dataset_name
        self.info_text = other.info_text
        self.samples = other.samples

    def __repr__(self) -> str:
        return (f"ClassificationData(name={self.dataset_name!r}, samples={self.num_samples}, "
                f"dimensions={self.num_dimensions}, classes={self.num_classes})")
