import os
from logging import Logger
from typing import Optional


def validate_mbox_file(filename: str, logger: Optional[Logger] = None) -> None:
    if not os.path.exists(filename):
        raise FileNotFoundError(f"MBOX file not found at: {filename}")
    if not os.path.isfile(filename):
        raise IsADirectoryError(f"The path specified is not a file: {filename}")
    if not os.access(filename, os.R_OK):
        raise PermissionError(f"The MBOX file is not readable: {filename}")

    if logger:
        logger.info(f"Found MBOX file {os.path.abspath(filename)}!")


def file_size_mb(filename: str) -> int:
    return os.path.getsize(filename) // (1024 * 1024)
