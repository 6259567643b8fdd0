"""
Locate and read task documents on disk.
"""

from pathlib import Path
from typing import Optional

from mdtask.errors import TaskFileError
from mdtask.models import Task
from mdtask.parser import parse_tasks


def find_task_file(filename: str = "README.md", start: Optional[Path] = None) -> Path:
    """
    Search `start` and each of its parents for `filename`.

    Args:
        filename: File name to look for
        start: Directory to start from (default: current directory)

    Returns:
        Path to the first match

    Raises:
        FileNotFoundError: If no directory up to the root contains the file
    """
    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    raise FileNotFoundError(f"Task file not found: {filename} (searched from {start} upwards)")


def load_tasks(path: Path, heading: str = "Tasks") -> list[Task]:
    """
    Read and parse a task document.

    Raises:
        FileNotFoundError: If the file doesn't exist
        TaskFileError: If the file can't be read or isn't valid UTF-8
        TaskParseError: If the document is invalid
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_tasks(f, heading)
    except FileNotFoundError:
        raise FileNotFoundError(f"Task file not found: {path}")
    except UnicodeDecodeError as e:
        raise TaskFileError(f"Task file is not valid UTF-8: {path} ({e.reason} at byte {e.start})", path=path) from e
    except OSError as e:
        raise TaskFileError(f"Cannot read task file: {path} ({e.strerror or e})", path=path) from e
