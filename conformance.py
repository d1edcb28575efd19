"""Conformance battery — run one fixed set of scenarios against any Backend.

Every backend must pass the battery identically when started empty:

    failures = run_conformance(MemoryBackend())
    for f in failures:
        print(f)

A failing scenario is recorded as a Failure and the remaining scenarios
still run.
"""

import logging
from dataclasses import dataclass

from backend import Backend, DirEntry, NotADirError, NotFoundError

logger = logging.getLogger(__name__)

PAGE_SIZES = [-1, 1, 2, 3, 4, 5]


@dataclass(frozen=True)
class Failure:
    """A failed scenario: its '/'-joined name path and what went wrong."""
    path: str
    message: str

    def __str__(self) -> str:
        return f"'{self.path}': {self.message}"


class ScenarioFailed(Exception):
    """Aborts the scenario currently running under a Runner."""
    pass


class Runner:
    """Runs named, possibly nested scenarios and collects their failures."""

    def __init__(self):
        self.path: list[str] = []
        self.failures: list[Failure] = []

    def run(self, name: str, fn) -> bool:
        """Run fn as scenario name. Returns True if it passed."""
        self.path.append(name)
        before = len(self.failures)
        try:
            fn()
        except ScenarioFailed as e:
            self._record(str(e))
        except Exception as e:
            self._record(f"unexpected {type(e).__name__}: {e}")
        finally:
            self.path.pop()
        return len(self.failures) == before

    def fatal(self, message: str):
        raise ScenarioFailed(message)

    def _record(self, message: str) -> None:
        failure = Failure("/".join(self.path), message)
        logger.debug("Scenario failed: %s", failure)
        self.failures.append(failure)


@dataclass
class _File:
    name: str
    contents: bytes = b""


def _entries_equal(got: list[DirEntry], want: list[DirEntry]) -> bool:
    return [(e.name, e.is_dir) for e in got] == [(e.name, e.is_dir) for e in want]


def _fmt(entries: list[DirEntry]) -> str:
    return "[" + ", ".join(str(e) for e in entries) + "]"


def run_conformance(fs: Backend) -> list[Failure]:
    """Run the whole battery against an empty backend and return its failures."""
    t = Runner()

    def read_all(name: str) -> bytes:
        with fs.open(name) as r:
            chunks = []
            while True:
                chunk = r.read(2)
                if not chunk:
                    return b"".join(chunks)
                chunks.append(chunk)

    def assert_contents(*files: _File):
        for f in files:
            try:
                data = read_all(f.name)
            except NotFoundError as e:
                t.fatal(f"open({f.name}) error: {e}")
            if data != f.contents:
                t.fatal(f"{f.name}: wrong file contents: {list(data)}")

    def write(name: str, contents: bytes, append: bool = False):
        w = fs.append(name) if append else fs.create(name)
        if contents:
            w.write(contents)
        w.close()

    def open_missing():
        try:
            r = fs.open("file.txt")
        except NotFoundError:
            return
        r.close()
        t.fatal("open() of a missing file returned a handle")

    t.run("Opening non-existent file", open_missing)

    file1 = _File("file1", bytes([11, 12, 13]))

    def create_file():
        write(file1.name, file1.contents)
        assert_contents(file1)

    t.run("Create file", create_file)

    file1.contents = bytes([12, 13, 14])

    def overwrite_file():
        write(file1.name, file1.contents)
        assert_contents(file1)

    t.run("Overwrite file", overwrite_file)

    file2 = _File("file2", bytes([21, 22, 23]))

    def create_another():
        write(file2.name, file2.contents)
        assert_contents(file1, file2)

    t.run("Create another file", create_another)

    extra = bytes([15, 16])
    file1.contents += extra

    def append_existing():
        write(file1.name, extra, append=True)
        assert_contents(file1, file2)

    t.run("Append to existing file", append_existing)

    file3 = _File("file3", bytes([31, 32, 33]))

    def append_missing():
        write(file3.name, file3.contents, append=True)
        assert_contents(file1, file2, file3)

    t.run("Append to non-existing file", append_missing)

    def create_empty():
        f = _File("empty")
        write(f.name, f.contents)
        assert_contents(f)

    t.run("Create empty file", create_empty)

    def dir_(name):
        return DirEntry(name, True)

    def file_(name):
        return DirEntry(name, False)

    listings = {
        "dir1": [file_("file1A"), file_("file1B")],
        "dir2": [dir_("dir3"), file_("file2A"), file_("file2B")],
        "dir2/dir3": [file_("file3A"), file_("file3B")],
        # no direct files, only a subdirectory
        "dir4": [dir_("dir5")],
    }

    def expect_not_a_dir(call, what: str):
        try:
            call()
        except NotADirError:
            return
        t.fatal(f"{what} did not raise NotADirError")

    def handle_read_dir():
        for n in PAGE_SIZES:
            for name, want in listings.items():
                got: list[DirEntry] = []
                with fs.open(name) as d:
                    if n < 0:
                        got = d.read_dir(n)
                    else:
                        got = list(d.iter_dir(n))
                if not _entries_equal(got, want):
                    t.fatal(f"open({name}).read_dir({n}) returned {_fmt(got)}, want {_fmt(want)}")

        def on_file():
            with fs.open(file1.name) as f:
                expect_not_a_dir(lambda: f.read_dir(-1), f"open({file1.name}).read_dir(-1)")

        t.run("On file", on_file)

    def backend_read_dir():
        for name, want in listings.items():
            got = fs.read_dir(name)
            if not _entries_equal(got, want):
                t.fatal(f"read_dir({name}) returned {_fmt(got)}, want {_fmt(want)}")

        def on_file():
            expect_not_a_dir(lambda: fs.read_dir(file1.name), f"read_dir({file1.name})")

        def on_missing():
            try:
                fs.read_dir("non-existent-dir")
            except NotFoundError:
                return
            t.fatal("read_dir(non-existent-dir) did not raise NotFoundError")

        t.run("On file", on_file)
        t.run("On non-existent directory", on_missing)

    def list_files():
        want = {"dir1": ["file1A", "file1B"], "dir2": ["file2A", "file2B"], "dir4": []}
        for name, names in want.items():
            got = fs.list_files(name)
            if got != names:
                t.fatal(f"list_files({name}) returned {got}, want {names}")

        def on_file():
            expect_not_a_dir(lambda: fs.list_files(file1.name), f"list_files({file1.name})")

        t.run("On file", on_file)

    def read_dir():
        for name in [
            "dir1/file1A",
            "dir1/file1B",
            "dir2/file2A",
            "dir2/file2B",
            "dir2/dir3/file3A",
            "dir2/dir3/file3B",
            "dir4/dir5/file",
        ]:
            write(name, b"")

        t.run("Handle.read_dir", handle_read_dir)
        t.run("Backend.read_dir", backend_read_dir)
        t.run("Backend.list_files", list_files)

    t.run("ReadDir", read_dir)

    return t.failures
