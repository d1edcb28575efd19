"""CLI entry point for simplefs — inspect a directory or run the conformance battery."""

import argparse
import logging
import os
import sys

from backend import Backend, BackendError
from backend_memory import MemoryBackend
from backend_os import OsBackend
from conformance import run_conformance


def cmd_check(args) -> int:
    if args.dir:
        if os.path.isdir(args.dir) and os.listdir(args.dir):
            print(f"Error: {args.dir} is not empty", file=sys.stderr)
            return 1
        backend: Backend = OsBackend(args.dir)
        label = args.dir
    else:
        backend = MemoryBackend()
        label = "memory"

    failures = run_conformance(backend)
    for failure in failures:
        print(f"FAIL {failure}")
    if failures:
        print(f"{label}: {len(failures)} scenario(s) failed")
        return 1
    print(f"{label}: all scenarios passed")
    return 0


def cmd_ls(args) -> int:
    backend = OsBackend(args.root)
    if args.files:
        for name in backend.list_files(args.path):
            print(name)
    else:
        for entry in backend.read_dir(args.path):
            print(entry)
    return 0


def cmd_cat(args) -> int:
    backend = OsBackend(args.root)
    with backend.open(args.path) as f:
        data = f.read()
    sys.stdout.buffer.write(data)
    sys.stdout.flush()
    return 0


COMMANDS = {
    "check": cmd_check,
    "ls": cmd_ls,
    "cat": cmd_cat,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="simplefs — uniform filesystem interface over memory and disk"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("check", help="Run the conformance battery")
    p.add_argument("--dir", help="Run against an empty directory on disk instead of memory")

    p = sub.add_parser("ls", help="List a directory")
    p.add_argument("root", help="Root directory of the filesystem")
    p.add_argument("path", nargs="?", default="", help="Directory relative to root")
    p.add_argument("--files", action="store_true", help="Only print file names")

    p = sub.add_parser("cat", help="Print a file")
    p.add_argument("root", help="Root directory of the filesystem")
    p.add_argument("path", help="File relative to root")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return COMMANDS[args.command](args)
    except (BackendError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
