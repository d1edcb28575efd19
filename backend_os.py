"""Disk backend — expose a directory of the real filesystem through Backend.

Native I/O does the work; only "does not exist" and file/directory type
mismatches are translated into the backend error taxonomy.
"""

import logging
import os
import stat as stat_mod

from backend import (
    Backend, DirEntry, Exhausted, FileInfo, Handle, NotADirError,
    NotAFileError, NotFoundError, WriteHandle, split_path,
)

logger = logging.getLogger(__name__)


def _scan(real: str, path: str) -> list[DirEntry]:
    try:
        with os.scandir(real) as it:
            entries = [DirEntry(e.name, e.is_dir()) for e in it]
    except FileNotFoundError as e:
        raise NotFoundError(f"Not found: {path}") from e
    except NotADirectoryError as e:
        if os.path.isfile(real):
            raise NotADirError(f"Not a directory: {path}") from e
        # a file earlier in the path: the target does not exist
        raise NotFoundError(f"Not found: {path}") from e
    return sorted(entries, key=lambda e: e.name)


class OsFile(Handle):
    """Reader over a native binary file."""

    def __init__(self, path: str, f):
        self._path = path
        self._f = f

    def read(self, size: int = -1) -> bytes:
        return self._f.read(size)

    def readinto(self, buffer) -> int:
        return self._f.readinto(buffer)

    def read_dir(self, n: int = -1) -> list[DirEntry]:
        raise NotADirError(f"Cannot list '{self._path}': path is a file")

    def close(self) -> None:
        self._f.close()


class OsDir(Handle):
    """Paginated listing over a directory scan taken on the first read_dir()."""

    def __init__(self, path: str, real: str):
        self._path = path
        self._real = real
        self._entries: list[DirEntry] | None = None
        self._pos = 0

    def read(self, size: int = -1) -> bytes:
        raise NotAFileError(f"Cannot read '{self._path}': path is a directory")

    def readinto(self, buffer) -> int:
        return len(self.read(len(buffer)))

    def read_dir(self, n: int = -1) -> list[DirEntry]:
        if self._entries is None:
            self._entries = _scan(self._real, self._path)

        if n < 0:
            page = self._entries[self._pos:]
        else:
            if self._pos >= len(self._entries):
                raise Exhausted(f"No more entries in '{self._path}'")
            page = self._entries[self._pos:self._pos + n]
        self._pos += len(page)
        return page


class OsBackend(Backend):
    """Backend rooted at a directory on disk."""

    def __init__(self, root: str):
        self._root = root

    def _real(self, path: str) -> str:
        """Map path beneath the root. Climbing above the root is NotFoundError."""
        segments = split_path(path)
        depth = 0
        for name in segments:
            if name == "..":
                depth -= 1
                if depth < 0:
                    raise NotFoundError(f"Not found: {path}")
            elif name != ".":
                depth += 1
        return os.path.join(self._root, *segments)

    def _open_write(self, path: str, mode: str) -> WriteHandle:
        real = self._real(path)
        try:
            os.makedirs(os.path.dirname(real), exist_ok=True)
            logger.debug("Opening %s with mode %s", real, mode)
            return open(real, mode)
        except FileExistsError as e:
            # makedirs hit a file where a directory is needed
            raise NotADirError(f"Not a directory: {path}") from e
        except NotADirectoryError as e:
            raise NotADirError(f"Not a directory: {path}") from e
        except IsADirectoryError as e:
            raise NotAFileError(f"Cannot write '{path}': path is a directory") from e

    def open(self, path: str) -> Handle:
        real = self._real(path)
        try:
            return OsFile(path, open(real, "rb"))
        except IsADirectoryError:
            return OsDir(path, real)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(f"Not found: {path}") from e

    def read_dir(self, path: str) -> list[DirEntry]:
        return _scan(self._real(path), path)

    def list_files(self, path: str) -> list[str]:
        return [e.name for e in _scan(self._real(path), path) if not e.is_dir]

    def stat(self, path: str) -> FileInfo:
        real = self._real(path)
        try:
            st = os.stat(real)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(f"Not found: {path}") from e
        is_dir = stat_mod.S_ISDIR(st.st_mode)
        name = os.path.basename(real.rstrip(os.sep))
        return FileInfo(name, 0 if is_dir else st.st_size, is_dir)

    def create(self, path: str) -> WriteHandle:
        return self._open_write(path, "wb")

    def append(self, path: str) -> WriteHandle:
        return self._open_write(path, "ab")
