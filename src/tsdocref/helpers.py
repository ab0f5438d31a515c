import json
import os
from pathlib import Path
from typing import Any, Union


def file_mtime_ns(path: Union[str, Path]) -> int:
    """Return the POSIX mtime of *path* in nanoseconds (``st_mtime_ns``)."""
    return os.stat(path).st_mtime_ns


def read_json_file(path: Union[str, Path]) -> Any:
    """
    Load the JSON document at *path*.
    Missing files raise ``FileNotFoundError``; malformed documents raise
    ``json.JSONDecodeError``.
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
