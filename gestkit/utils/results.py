from typing import Sequence

import numpy as np

from gestkit.exceptions import DimensionMismatchError
from gestkit.utils.paths import ensure_parent_dir


def write_regression_results(path, outputs: Sequence[Sequence[float]], targets: Sequence[Sequence[float]]):
    """
    Write one line per sample: the predicted output values followed by the
    target values, each value followed by a tab.
    """
    if len(outputs) != len(targets):
        raise DimensionMismatchError(
            f"Got {len(outputs)} output vectors but {len(targets)} target vectors"
        )
    path = ensure_parent_dir(path)
    with open(path, "w") as file:
        for output_vector, target_vector in zip(outputs, targets):
            values = np.concatenate([np.ravel(output_vector), np.ravel(target_vector)])
            file.write("".join(f"{value!r}\t" for value in values.tolist()))
            file.write("\n")
    return path


def read_regression_results(path, num_output_dimensions: int):
    """Read a file written by write_regression_results back into (outputs, targets) arrays."""
    rows = []
    with open(path, "r") as file:
        for line in file:
            if line.strip():
                rows.append([float(value) for value in line.split()])
    data = np.array(rows, dtype=float)
    if data.size == 0:
        return np.empty((0, num_output_dimensions)), np.empty((0, 0))
    return data[:, :num_output_dimensions], data[:, num_output_dimensions:]
