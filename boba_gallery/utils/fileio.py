"""Atomic file writes shared by the image cache and the publisher."""

import os
import tempfile
from pathlib import Path
from typing import Union


def atomic_write_text(path: Union[str, Path], content: str, encoding: str = "utf-8") -> None:
    """
    Write ``content`` to ``path`` so readers never observe a partial file.

    The data goes to a temporary file in the destination directory, which is
    then moved over the destination with ``os.replace``.

    Raises:
        OSError: If the directory cannot be created or the write fails.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding) as tmp_file:
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
