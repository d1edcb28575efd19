"""Tests for the conformance battery."""

import tempfile
import unittest

from backend_memory import MemoryBackend
from backend_os import OsBackend
from conformance import Failure, Runner, run_conformance


class BrokenAppendBackend(MemoryBackend):
    """Append behaves like create, so appending to an existing file loses data."""

    def append(self, path):
        return self.create(path)


class UnsortedBackend(MemoryBackend):
    def read_dir(self, path):
        return list(reversed(super().read_dir(path)))


class TestRunner(unittest.TestCase):
    def test_records_and_continues(self):
        t = Runner()
        ran = []

        t.run("first", lambda: t.fatal("boom"))
        t.run("second", lambda: ran.append("second"))

        self.assertEqual(t.failures, [Failure("first", "boom")])
        self.assertEqual(ran, ["second"])

    def test_nested_path(self):
        t = Runner()

        def outer():
            t.run("inner", lambda: t.fatal("bad"))
            t.run("sibling", lambda: None)

        passed = t.run("outer", outer)

        self.assertFalse(passed)
        self.assertEqual(t.failures, [Failure("outer/inner", "bad")])
        self.assertEqual(str(t.failures[0]), "'outer/inner': bad")

    def test_unexpected_exception_recorded(self):
        t = Runner()

        def explode():
            raise KeyError("x")

        self.assertFalse(t.run("explode", explode))
        self.assertEqual(t.failures[0].path, "explode")
        self.assertIn("KeyError", t.failures[0].message)
        self.assertEqual(t.path, [])


class TestConformance(unittest.TestCase):
    def test_memory_backend_passes(self):
        self.assertEqual(run_conformance(MemoryBackend()), [])

    def test_os_backend_passes(self):
        with tempfile.TemporaryDirectory() as root:
            self.assertEqual(run_conformance(OsBackend(root)), [])

    def test_broken_append_reported(self):
        failures = run_conformance(BrokenAppendBackend())
        paths = [f.path for f in failures]
        self.assertIn("Append to existing file", paths)
        self.assertNotIn("Create empty file", paths)
        self.assertFalse(any(p.startswith("ReadDir") for p in paths))

    def test_unsorted_listing_reported(self):
        failures = run_conformance(UnsortedBackend())
        paths = [f.path for f in failures]
        self.assertEqual(paths, ["ReadDir/Backend.read_dir"])
        self.assertIn("want", failures[0].message)


if __name__ == "__main__":
    unittest.main()
