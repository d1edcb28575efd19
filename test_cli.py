"""Tests for the simplefs command line."""

import contextlib
import io
import os
import tempfile
import unittest

from simplefs import main


def _run(argv) -> tuple[int, str, str]:
    out, err = io.StringIO(), io.StringIO()
    with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
        code = main(argv)
    return code, out.getvalue(), err.getvalue()


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def _make(self, rel: str, data: bytes):
        path = os.path.join(self.root, *rel.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)

    def test_no_command(self):
        code, out, _ = _run([])
        self.assertEqual(code, 1)
        self.assertIn("usage", out)

    def test_check_memory(self):
        code, out, _ = _run(["check"])
        self.assertEqual(code, 0)
        self.assertIn("memory: all scenarios passed", out)

    def test_check_dir(self):
        target = os.path.join(self.root, "fs")
        code, out, _ = _run(["check", "--dir", target])
        self.assertEqual(code, 0)
        self.assertIn("all scenarios passed", out)

    def test_check_non_empty_dir(self):
        self._make("existing", b"x")
        code, _, err = _run(["check", "--dir", self.root])
        self.assertEqual(code, 1)
        self.assertIn("not empty", err)

    def test_ls(self):
        self._make("d/b.txt", b"")
        self._make("d/a/inner", b"")
        code, out, _ = _run(["ls", self.root, "d"])
        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["dir(a)", "file(b.txt)"])

    def test_ls_files(self):
        self._make("d/b.txt", b"")
        self._make("d/a/inner", b"")
        code, out, _ = _run(["ls", "--files", self.root, "d"])
        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["b.txt"])

    def test_ls_missing(self):
        code, _, err = _run(["ls", self.root, "missing"])
        self.assertEqual(code, 1)
        self.assertIn("Not found", err)

    def test_cat(self):
        self._make("f.txt", b"hello")
        buf = io.BytesIO()
        out = io.TextIOWrapper(buf)
        with contextlib.redirect_stdout(out):
            code = main(["cat", self.root, "f.txt"])
        self.assertEqual(code, 0)
        self.assertEqual(buf.getvalue(), b"hello")

    def test_cat_directory(self):
        os.mkdir(os.path.join(self.root, "d"))
        code, _, err = _run(["cat", self.root, "d"])
        self.assertEqual(code, 1)
        self.assertIn("directory", err)


if __name__ == "__main__":
    unittest.main()
