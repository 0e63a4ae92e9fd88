"""
Reading and writing model and pipeline files.

Every file is a JSON document with a "format" key naming what it holds and a
"version" key; the rest of the document is the payload produced by the
object's to_dict().
"""
import importlib
import inspect
import json
import logging
from pathlib import Path
from typing import List

from gestkit.exceptions import ModelFileError
from gestkit.utils.paths import check_file_exists, ensure_parent_dir

logger = logging.getLogger(__name__)

FILE_VERSION = "1.0"


def write_model_file(path, file_format: str, payload: dict) -> Path:
    """
    Write payload to path under the given format header.

    Args:
        path: Destination file; parent directories are created.
        file_format: Header identifying the content, e.g. "GESTKIT_ANBC_MODEL".
        payload: JSON-serialisable dictionary.

    Returns:
        The path that was written.
    """
    path = ensure_parent_dir(path)
    document = {"format": file_format, "version": FILE_VERSION, **payload}
    with open(path, "w") as f:
        json.dump(document, f, indent=2)
    logger.debug("Wrote %s to %s", file_format, path)
    return path


def read_model_file(path, expected_format: str) -> dict:
    """
    Read a file written by write_model_file and check its header.

    Raises:
        FileNotFoundError: If path does not exist.
        ModelFileError: If the file is not JSON or holds a different format.
    """
    check_file_exists(path)
    with open(path, "r") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise ModelFileError(f"Could not parse model file {path}: {e}") from e

    if not isinstance(document, dict):
        raise ModelFileError(f"Model file {path} does not contain a JSON object")
    file_format = document.pop("format", None)
    if file_format != expected_format:
        raise ModelFileError(f"Expected a {expected_format} file, but {path} holds {file_format}")
    version = document.pop("version", None)
    if version != FILE_VERSION:
        raise ModelFileError(f"Unsupported file version {version} in {path}")
    return document


def require_keys(payload: dict, keys: List[str], what: str) -> None:
    missing = [key for key in keys if key not in payload]
    if missing:
        raise ModelFileError(f"{what} is missing required fields: {missing}")


def find_subclass(base: type, name: str, module_names: List[str]) -> type:
    """
    Get a concrete subclass of base by class name.

    Args:
        base: The abstract base class.
        name: Name of the subclass.
        module_names: Modules to search for subclasses.

    Raises:
        ValueError: If the name is unknown or if there are duplicate names
    """
    available = available_subclasses(base, module_names)
    matching_classes = [cls for cls in available if cls.__name__ == name]

    if len(matching_classes) == 0:
        available_names = sorted(cls.__name__ for cls in available)
        raise ValueError(f"Unknown {base.__name__}: '{name}'. Available: {available_names}")
    elif len(matching_classes) > 1:
        raise ValueError(f"Multiple {base.__name__} classes found with name '{name}': {matching_classes}")
    return matching_classes[0]


def available_subclasses(base: type, module_names: List[str]) -> List[type]:
    """All concrete subclasses of base defined or imported in the given modules."""
    found = []
    for module_name in module_names:
        module = importlib.import_module(module_name)
        for _, obj in inspect.getmembers(module):
            if (inspect.isclass(obj) and
                    issubclass(obj, base) and
                    obj is not base and
                    not inspect.isabstract(obj) and
                    obj not in found):
                found.append(obj)
    return found
