"""Base backend interface shared by the in-memory and disk filesystems."""

from dataclasses import dataclass

SEP = "/"


@dataclass(frozen=True)
class DirEntry:
    """Detached snapshot of one directory child."""
    name: str
    is_dir: bool

    def __str__(self) -> str:
        if self.is_dir:
            return f"dir({self.name})"
        return f"file({self.name})"


@dataclass(frozen=True)
class FileInfo:
    """Metadata about a resource (file or directory)."""
    name: str
    size: int
    is_dir: bool


class BackendError(Exception):
    """Base error for backend operations."""
    pass


class NotFoundError(BackendError):
    """Resource does not exist."""
    pass


class NotADirError(BackendError):
    """A directory operation was invoked on a file."""
    pass


class NotAFileError(BackendError):
    """A content operation was invoked on a directory."""
    pass


class Exhausted(EOFError):
    """No entries remain for a bounded Handle.read_dir() call.

    This marks the normal end of a paginated listing and is deliberately
    not a BackendError.
    """
    pass


def split_path(path: str) -> list[str]:
    """Split a path into segments, dropping empty ones.

    '.' and '..' are kept; resolving them is up to the backend.
    """
    return [p for p in path.split(SEP) if p]


class Handle:
    """An open file or directory.

    File handles support read() and readinto(); directory handles support
    read_dir(). The unsupported half raises NotADirError / NotAFileError.
    """

    def read(self, size: int = -1) -> bytes:
        raise NotImplementedError

    def readinto(self, buffer) -> int:
        data = self.read(len(buffer))
        buffer[:len(data)] = data
        return len(data)

    def read_dir(self, n: int = -1) -> list[DirEntry]:
        """Return up to n entries, or all remaining ones if n < 0.

        Raises Exhausted when n >= 0 and nothing is left.
        """
        raise NotImplementedError

    def iter_dir(self, page_size: int = 64):
        """Yield the remaining entries, fetching page_size at a time."""
        while True:
            try:
                page = self.read_dir(page_size)
            except Exhausted:
                return
            yield from page

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class WriteHandle:
    """Buffered writer. Native binary file objects satisfy the same protocol."""

    closed = False

    def write(self, data: bytes) -> int:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class Backend:
    """Abstract path-addressed filesystem.

    Paths are '/'-separated and relative to the backend's root; '' and '/'
    both name the root, which is always a directory.
    """

    def open(self, path: str) -> Handle:
        """Open a file or directory. Raises NotFoundError if absent."""
        raise NotImplementedError

    def read_dir(self, path: str) -> list[DirEntry]:
        """Return the sorted entries of a directory."""
        raise NotImplementedError

    def create(self, path: str) -> WriteHandle:
        """Return a writer whose bytes replace the file's content."""
        raise NotImplementedError

    def append(self, path: str) -> WriteHandle:
        """Return a writer whose bytes extend the file's content."""
        raise NotImplementedError

    def list_files(self, path: str) -> list[str]:
        """Return the sorted names of the direct file children of a directory."""
        raise NotImplementedError

    def stat(self, path: str) -> FileInfo:
        raise NotImplementedError

    # Helpers below are built on the primitives and work with any backend.

    def has_file(self, path: str) -> bool:
        try:
            return not self.stat(path).is_dir
        except NotFoundError:
            return False

    def set_bytes(self, path: str, data: bytes) -> None:
        with self.create(path) as w:
            w.write(data)

    def try_get_bytes(self, path: str) -> tuple[bytes | None, bool]:
        try:
            with self.open(path) as f:
                return f.read(), True
        except NotFoundError:
            return None, False

    def get_bytes(self, path: str) -> bytes | None:
        data, _ = self.try_get_bytes(path)
        return data

    def set_string(self, path: str, s: str) -> None:
        self.set_bytes(path, s.encode("utf-8"))

    def get_string(self, path: str) -> str:
        data = self.get_bytes(path)
        if data is None:
            return ""
        return data.decode("utf-8")

    def set_bytes_map(self, files: dict[str, bytes]) -> None:
        for path, data in files.items():
            self.set_bytes(path, data)

    def set_strings_map(self, files: dict[str, str]) -> None:
        for path, s in files.items():
            self.set_string(path, s)
