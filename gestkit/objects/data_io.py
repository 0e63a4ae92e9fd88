"""
Helpers shared by the dataset file readers.

Dataset files are plain text: a format line, a block of "Key: value" header
lines, a section marker and then one whitespace-delimited row per sample.
Blank lines are skipped; error messages report line numbers in the file as
written.
"""
from typing import List, Tuple

import numpy as np

from gestkit.exceptions import DatasetError

#: (line number in the file, line text) pairs for the non-blank lines.
NumberedLines = List[Tuple[int, str]]


def read_lines(path) -> NumberedLines:
    with open(path, "r") as f:
        return [(number, ln.rstrip("\n")) for number, ln in enumerate(f, start=1) if ln.strip()]


def expect_format(lines: NumberedLines, file_format: str, path) -> None:
    if not lines or lines[0][1].strip() != file_format:
        found = lines[0][1].strip() if lines else "<empty file>"
        raise DatasetError(f"{path} is not a {file_format} file (found '{found}')")


def header_value(lines: NumberedLines, i: int, key: str, path) -> str:
    """Return the value of the 'key: value' header expected on the i-th non-blank line."""
    if i >= len(lines):
        raise DatasetError(f"Unexpected end of file in {path}, expected '{key}:'")
    line_number, line = lines[i][0], lines[i][1].strip()
    if not line.startswith(f"{key}:"):
        raise DatasetError(f"Expected '{key}:' at line {line_number} of {path}, found '{line}'")
    return line[len(key) + 1:].strip()


def header_int(lines: NumberedLines, i: int, key: str, path) -> int:
    value = header_value(lines, i, key, path)
    try:
        return int(value)
    except ValueError:
        raise DatasetError(f"Expected an integer for '{key}' at line {lines[i][0]} of {path}, found '{value}'")


def parse_row(line: str, expected_length: int, line_number: int, path) -> np.ndarray:
    parts = line.split()
    if len(parts) != expected_length:
        raise DatasetError(
            f"Malformed data line at {line_number} of {path}: expected {expected_length} values, got {len(parts)}"
        )
    try:
        return np.array([float(p) for p in parts])
    except ValueError:
        raise DatasetError(f"Non-numeric value at line {line_number} of {path}: '{line}'")


def load_csv_matrix(path) -> np.ndarray:
    """Load a comma separated numeric file as a 2D array (0 rows for an empty file)."""
    rows = []
    with open(path, "r") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                rows.append([float(v) for v in line.strip().split(",")])
            except ValueError:
                raise DatasetError(f"Non-numeric value at line {line_number} of {path}: '{line.strip()}'")
    if not rows:
        return np.empty((0, 0))
    widths = {len(row) for row in rows}
    if len(widths) != 1:
        raise DatasetError(f"Rows in {path} have different numbers of columns: {sorted(widths)}")
    return np.array(rows)


def format_row(values) -> str:
    return "\t".join(repr(float(v)) for v in values)


def check_percentage(training_size_percentage) -> float:
    if not 0 <= training_size_percentage <= 100:
        raise DatasetError(f"training_size_percentage must be in [0, 100], got {training_size_percentage}")
    return training_size_percentage / 100.0


def split_ranges_text(ranges: np.ndarray) -> List[Tuple[float, float]]:
    return [(float(lo), float(hi)) for lo, hi in ranges]
