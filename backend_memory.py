"""In-memory backend — a hierarchical filesystem that never touches disk.

Structure:
    DirNode     -> owns a dict of uniquely named children
    FileNode    -> owns an immutable bytes content
    parent link -> weak reference, used for '..' and path reconstruction

Writers buffer privately and publish on close; readers work on snapshots.
The whole tree is guarded by one readers-writer lock.
"""

import functools
import io
import logging
import threading
import weakref
from contextlib import contextmanager

from backend import (
    SEP, Backend, DirEntry, Exhausted, FileInfo, Handle, NotADirError,
    NotAFileError, NotFoundError, WriteHandle, split_path,
)

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Shared/exclusive lock. Waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if not self._readers:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class Node:
    __slots__ = ("name", "_parent", "__weakref__")

    is_dir = False

    def __init__(self, name: str, parent: "DirNode | None" = None):
        self.name = name
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def parent(self) -> "DirNode | None":
        if self._parent is None:
            return None
        return self._parent()

    @property
    def path(self) -> str:
        """Full path from the root, rebuilt by walking parent links."""
        names = []
        node = self
        while node.parent is not None:
            names.append(node.name)
            node = node.parent
        return SEP.join(reversed(names))


class FileNode(Node):
    __slots__ = ("content",)

    def __init__(self, name: str, parent: "DirNode", content: bytes = b""):
        super().__init__(name, parent)
        self.content = content


class DirNode(Node):
    __slots__ = ("children",)

    is_dir = True

    def __init__(self, name: str, parent: "DirNode | None" = None):
        super().__init__(name, parent)
        self.children: dict[str, Node] = {}

    def add(self, node: Node) -> Node:
        self.children[node.name] = node
        return node

    def entries(self) -> list[DirEntry]:
        """Sorted, detached snapshot of the direct children."""
        return [DirEntry(name, self.children[name].is_dir) for name in sorted(self.children)]


def _step(node: DirNode, name: str) -> Node | None:
    if name == ".":
        return node
    if name == "..":
        return node.parent
    return node.children.get(name)


def resolve(root: DirNode, segments: list[str]) -> Node:
    """Walk the tree to find the node at segments. Never creates nodes."""
    node = root
    for name in segments:
        if not node.is_dir:
            raise NotFoundError(f"Not found: {SEP.join(segments)}")
        node = _step(node, name)
        if node is None:
            raise NotFoundError(f"Not found: {SEP.join(segments)}")
    return node


def get_or_create_file(root: DirNode, segments: list[str]) -> FileNode:
    """Walk the tree, creating missing directories and the final file.

    An existing file is returned untouched. On failure every node created
    by this call is detached again, so the tree is left as it was.
    """
    created: list[Node] = []
    try:
        node = root
        last = len(segments) - 1
        for i, name in enumerate(segments):
            if not node.is_dir:
                raise NotADirError(f"Not a directory: {node.path}")
            child = _step(node, name)
            if child is None:
                if name == "..":
                    raise NotFoundError(f"Not found: {SEP.join(segments)}")
                if i == last:
                    child = node.add(FileNode(name, node))
                else:
                    child = node.add(DirNode(name, node))
                created.append(child)
            node = child
        if node.is_dir:
            raise NotAFileError(f"Cannot write '{SEP.join(segments)}': path is a directory")
    except Exception:
        for orphan in reversed(created):
            del orphan.parent.children[orphan.name]
        raise
    for new in created:
        if new.is_dir:
            logger.debug("Created directory %s", new.path)
    return node


def _walk_files(node: DirNode):
    """Yield every file node, depth first, children in name order."""
    for name in sorted(node.children):
        child = node.children[name]
        if child.is_dir:
            yield from _walk_files(child)
        else:
            yield child


class MemoryWriter(WriteHandle):
    """Private buffer published into the tree exactly once, on close."""

    def __init__(self, commit):
        self._buf = io.BytesIO()
        self._commit = commit

    @property
    def closed(self) -> bool:
        return self._buf.closed

    def write(self, data: bytes) -> int:
        return self._buf.write(data)

    def close(self) -> None:
        if self._buf.closed:
            return
        data = self._buf.getvalue()
        self._buf.close()
        self._commit(data)


class MemoryFile(Handle):
    """Sequential reader over the content a file had when it was opened."""

    def __init__(self, path: str, content: bytes):
        self._path = path
        self._reader = io.BytesIO(content)

    def read(self, size: int = -1) -> bytes:
        return self._reader.read(size)

    def readinto(self, buffer) -> int:
        return self._reader.readinto(buffer)

    def read_dir(self, n: int = -1) -> list[DirEntry]:
        raise NotADirError(f"Cannot list '{self._path}': path is a file")

    def close(self) -> None:
        self._reader.close()


class MemoryDir(Handle):
    """Paginated listing over a snapshot taken on the first read_dir()."""

    def __init__(self, path: str, node: DirNode, lock: ReadWriteLock):
        self._path = path
        self._node = node
        self._lock = lock
        self._entries: list[DirEntry] | None = None
        self._pos = 0

    def read(self, size: int = -1) -> bytes:
        raise NotAFileError(f"Cannot read '{self._path}': path is a directory")

    def readinto(self, buffer) -> int:
        return len(self.read(len(buffer)))

    def read_dir(self, n: int = -1) -> list[DirEntry]:
        if self._entries is None:
            with self._lock.read_locked():
                self._entries = self._node.entries()

        if n < 0:
            page = self._entries[self._pos:]
        else:
            if self._pos >= len(self._entries):
                raise Exhausted(f"No more entries in '{self._path}'")
            page = self._entries[self._pos:self._pos + n]
        self._pos += len(page)
        return page


class MemoryBackend(Backend):
    """In-memory backend backed by an explicit node tree.

    Example:
        fs = MemoryBackend()
        with fs.create("docs/readme.txt") as w:
            w.write(b"Hello")
        fs.read_dir("docs")  # [DirEntry(name='readme.txt', is_dir=False)]
    """

    def __init__(self):
        self._root = DirNode("")
        self._lock = ReadWriteLock()

    def _dir(self, path: str) -> DirNode:
        node = resolve(self._root, split_path(path))
        if not node.is_dir:
            raise NotADirError(f"Not a directory: {path}")
        return node

    def _commit(self, segments: list[str], prefix: bytes, data: bytes) -> None:
        with self._lock.write_locked():
            node = get_or_create_file(self._root, segments)
            node.content = prefix + data
        logger.debug("Committed %d bytes to %s", len(prefix) + len(data), SEP.join(segments))

    def open(self, path: str) -> Handle:
        with self._lock.read_locked():
            node = resolve(self._root, split_path(path))
            if node.is_dir:
                return MemoryDir(path, node, self._lock)
            return MemoryFile(path, node.content)

    def read_dir(self, path: str) -> list[DirEntry]:
        with self._lock.read_locked():
            return self._dir(path).entries()

    def list_files(self, path: str) -> list[str]:
        with self._lock.read_locked():
            node = self._dir(path)
            return sorted(name for name, child in node.children.items() if not child.is_dir)

    def stat(self, path: str) -> FileInfo:
        with self._lock.read_locked():
            node = resolve(self._root, split_path(path))
            if node.is_dir:
                return FileInfo(node.name, 0, True)
            return FileInfo(node.name, len(node.content), False)

    def create(self, path: str) -> WriteHandle:
        """Return a writer for path. No node exists at path until the writer is closed."""
        return MemoryWriter(functools.partial(self._commit, split_path(path), b""))

    def append(self, path: str) -> WriteHandle:
        segments = split_path(path)
        prefix = b""
        with self._lock.read_locked():
            try:
                node = resolve(self._root, segments)
            except NotFoundError:
                node = None
            if node is not None and not node.is_dir:
                prefix = node.content
        return MemoryWriter(functools.partial(self._commit, segments, prefix))

    def size(self) -> int:
        """Total number of bytes held by all files."""
        with self._lock.read_locked():
            return sum(len(f.content) for f in _walk_files(self._root))

    def top(self) -> tuple[str, bytes] | None:
        """Return (path, content) of the largest file, or None if all are empty."""
        with self._lock.read_locked():
            best = None
            for f in _walk_files(self._root):
                if len(f.content) > (len(best.content) if best else 0):
                    best = f
            if best is None:
                return None
            return best.path, best.content
