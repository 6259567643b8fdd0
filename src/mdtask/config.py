"""
Settings loaded from the environment (and a local .env file, if present).

CLI options take precedence over anything read here.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_FILE = "README.md"
DEFAULT_HEADING = "Tasks"


class Settings(BaseModel):
    """Resolved runtime settings."""

    file: str = DEFAULT_FILE  # File name searched for from cwd upwards
    heading: str = DEFAULT_HEADING
    log_dir: Optional[Path] = None  # No file logging when unset
    json_logs: bool = False
    verbose: bool = False


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("true", "1", "yes")


def load_settings() -> Settings:
    """
    Read MDTASK_* variables.

    Returns:
        Settings with defaults for anything unset or empty
    """
    load_dotenv()

    log_dir = os.getenv("MDTASK_LOG_DIR")
    return Settings(
        file=os.getenv("MDTASK_FILE") or DEFAULT_FILE,
        heading=os.getenv("MDTASK_HEADING") or DEFAULT_HEADING,
        log_dir=Path(log_dir) if log_dir else None,
        json_logs=_env_flag("MDTASK_JSON_LOGS"),
        verbose=_env_flag("MDTASK_VERBOSE"),
    )
