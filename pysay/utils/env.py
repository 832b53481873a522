from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv as dotenv_load_dotenv


def load_env_file(env_file: str | None) -> bool:
    """Load PYSAY_* settings from a dotenv file.

    Values already present in the environment win. Returns False when no
    file was given or it does not exist.
    """

    if not env_file or not Path(env_file).is_file():
        return False

    return dotenv_load_dotenv(env_file, override=False)
