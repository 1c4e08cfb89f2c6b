"""Reading files and replacing them safely."""

import logging
import os

logger = logging.getLogger(__name__)


def file_read_all(path: str | os.PathLike) -> bytes:
    """Read the whole file at ``path``."""
    with open(path, "rb") as fh:
        return fh.read()


def _ensure_dir(path: str) -> None:
    if not os.path.exists(path):
        os.makedirs(path, mode=0o755, exist_ok=True)
        return
    if not os.path.isdir(path):
        raise NotADirectoryError(f"{path} is a file")


def write_to_file(path: str | os.PathLike, data: bytes) -> None:
    """Write ``data`` to ``path`` via a temporary file, keeping the old content in ``.bak``."""
    path = os.fspath(path)
    _ensure_dir(os.path.dirname(path) or ".")

    tmp_path = path + ".tmp"
    with open(tmp_path, "wb") as tmp:
        tmp.write(data)

    try:
        previous = file_read_all(path)
    except OSError:
        previous = None
    if previous is not None:
        with open(path + ".bak", "wb") as bak:
            bak.write(previous)

    if os.path.exists(path):
        try:
            os.remove(path)
        except OSError as exc:
            logger.error("remove %s: %s", path, exc)
    os.replace(tmp_path, path)