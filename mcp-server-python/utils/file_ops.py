"""
Report file targets and atomic writes for CSV exports.

A report is written to a temporary file in the target directory and then
renamed over the destination, so a reader never sees a half-written CSV.
"""

import os
import tempfile
from pathlib import Path
from typing import Union


def atomic_write(file_path: Union[str, Path], content: str, encoding: str = "utf-8") -> Path:
    """
    Write content to file atomically using temporary file + rename.

    Args:
        file_path: Target file path (string or Path object)
        content: Text to write
        encoding: Text encoding (``utf-8-sig`` adds a BOM for spreadsheet apps)

    Returns:
        The target path

    Raises:
        OSError: If directory creation, file write, or rename fails
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd = None
    temp_path = None

    try:
        temp_fd, temp_path = tempfile.mkstemp(
            dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
        )
        os.write(temp_fd, content.encode(encoding))
        os.fsync(temp_fd)
        os.close(temp_fd)
        temp_fd = None

        # os.replace is atomic on both Unix and Windows
        os.replace(temp_path, file_path)
        return file_path

    except Exception:
        if temp_fd is not None:
            try:
                os.close(temp_fd)
            except OSError:
                pass

        if temp_path is not None and os.path.exists(temp_path):
            try:
                os.unlink(temp_path)
            except OSError:
                pass

        raise


def resolve_report_target(output_path: Union[str, Path], filename: str) -> Path:
    """
    Pick the file an export is written to.

    An existing directory, or a path ending in a separator, receives the
    suggested report filename; anything else is used as the file itself.
    """
    raw = str(output_path)
    target = Path(output_path)
    if target.is_dir() or raw.endswith(("/", os.sep)):
        return target / filename
    return target
