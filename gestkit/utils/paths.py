import os
from pathlib import Path


def gestkit_data_dir() -> Path:
    """
    Directory holding example datasets, models and results.

    Resolved from GESTKIT_DATA_DIR (through the toolkit settings).
    """
    from gestkit.config import settings
    if settings.data_dir is not None:
        return Path(settings.data_dir)
    try:
        dirs = os.environ['GESTKIT_DATA_DIR']
    except KeyError:
        msg = """ Please make sure GESTKIT_DATA_DIR is in your system environment:
            add: 'export GESTKIT_DATA_DIR=/path/ to your bashrc and source it.'"""
        raise RuntimeError(msg)
    return Path(dirs)


def check_file_exists(path) -> None:
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")


def ensure_parent_dir(path) -> Path:
    """Create the parent directory of path if needed and return path as a Path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path
