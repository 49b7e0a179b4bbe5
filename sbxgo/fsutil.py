"""Filesystem access, with a real and an in-memory implementation."""

from __future__ import annotations

import os
import shutil
import stat
from dataclasses import dataclass, field
from typing import Protocol

from sbxgo.errors import SbxgoError


class FileSystemError(SbxgoError):
    """A filesystem operation failed."""


class FileSystem(Protocol):
    """Filesystem operations used by the sandbox flows."""

    def read_file(self, path: str) -> bytes:
        """Return the contents of a file."""

    def write_file(self, path: str, data: bytes, mode: int) -> None:
        """Write data to a file, creating it with ``mode`` if needed."""

    def exists(self, path: str) -> bool:
        """Report whether a path exists."""

    def mkdir_all(self, path: str, mode: int) -> None:
        """Create a directory and any missing parents."""

    def copy_dir(self, src: str, dst: str) -> None:
        """Copy the contents of ``src`` into ``dst``."""

    def walk_files(self, root: str) -> list[str]:
        """Return sorted, forward-slash relative paths of regular files under ``root``.

        A missing root yields an empty list.
        """


class RealFileSystem:
    """Filesystem operations against the operating system."""

    def read_file(self, path: str) -> bytes:
        try:
            with open(path, "rb") as fh:
                return fh.read()
        except OSError as exc:
            raise FileSystemError(f'reading file "{path}"', exc) from exc

    def write_file(self, path: str, data: bytes, mode: int) -> None:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            raise FileSystemError(f'writing file "{path}"', exc) from exc

    def exists(self, path: str) -> bool:
        try:
            os.stat(path)
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise FileSystemError(f'checking existence of "{path}"', exc) from exc
        return True

    def mkdir_all(self, path: str, mode: int) -> None:
        try:
            os.makedirs(path, mode, exist_ok=True)
        except OSError as exc:
            raise FileSystemError(f'creating directory "{path}"', exc) from exc

    def copy_dir(self, src: str, dst: str) -> None:
        """Copy ``src`` into ``dst``; existing files in ``dst`` are never overwritten."""
        try:
            os.makedirs(dst, 0o755, exist_ok=True)
        except OSError as exc:
            raise FileSystemError(f'creating destination "{dst}"', exc) from exc

        try:
            shutil.copytree(src, dst, dirs_exist_ok=True, copy_function=_copy_new)
        except OSError as exc:
            raise FileSystemError(f'copying "{src}" to "{dst}"', exc) from exc

    def walk_files(self, root: str) -> list[str]:
        try:
            info = os.stat(root)
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise FileSystemError(f'stat "{root}"', exc) from exc

        if not stat.S_ISDIR(info.st_mode):
            return []

        files: list[str] = []
        walk_errors: list[OSError] = []
        try:
            for dirpath, _dirnames, filenames in os.walk(root, onerror=walk_errors.append):
                for filename in filenames:
                    full = os.path.join(dirpath, filename)
                    if stat.S_ISREG(os.lstat(full).st_mode):
                        files.append(os.path.relpath(full, root).replace(os.sep, "/"))
        except OSError as exc:
            raise FileSystemError(f'walking "{root}"', exc) from exc

        if walk_errors:
            first = walk_errors[0]
            raise FileSystemError(f'walking "{root}"', first) from first

        return sorted(files)


def _copy_new(src: str, dst: str) -> str:
    if os.path.lexists(dst):
        raise FileExistsError(f'file exists: "{dst}"')
    return shutil.copy2(src, dst)


@dataclass
class CopyDirCall:
    """A recorded call to ``copy_dir``."""

    src: str
    dst: str


@dataclass
class FakeFileSystem:
    """An in-memory filesystem that records directory operations."""

    files: dict[str, bytes] = field(default_factory=dict)
    dirs: list[str] = field(default_factory=list)
    copy_dir_calls: list[CopyDirCall] = field(default_factory=list)
    write_error: Exception | None = None
    read_error: Exception | None = None

    def read_file(self, path: str) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        try:
            return self.files[path]
        except KeyError:
            raise FileSystemError(f'fake: file not found: "{path}"') from None

    def write_file(self, path: str, data: bytes, mode: int) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.files[path] = data

    def exists(self, path: str) -> bool:
        return path in self.files

    def mkdir_all(self, path: str, mode: int) -> None:
        self.dirs.append(path)

    def copy_dir(self, src: str, dst: str) -> None:
        self.copy_dir_calls.append(CopyDirCall(src, dst))

    def walk_files(self, root: str) -> list[str]:
        prefix = root.rstrip("/") + "/"
        return sorted(path.removeprefix(prefix) for path in self.files if path.startswith(prefix))