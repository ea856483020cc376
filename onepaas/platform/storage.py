"""Filesystem-like storage capability.

Workspaces and the source fetcher only talk to a `Storage`, never to the OS
directly, so the backing store can be swapped: `LocalStorage` for a real
disk, `MemoryStorage` for tests.

Paths are POSIX-style and relative to the storage root. `chroot` returns a
storage scoped to a subdirectory; `..` can never climb above the root of a
storage (it is clamped, as in a real chroot).

Errors are reported the way pathlib reports them (`FileNotFoundError`,
`IsADirectoryError`, ...): callers translate `OSError` into step errors.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

__all__ = ["LocalStorage", "MemoryStorage", "Storage"]


def _parts(path: str) -> tuple[str, ...]:
    """Normalize a storage path into its components, clamped at the root."""
    norm = posixpath.normpath("/" + path.replace("\\", "/"))
    return tuple(p for p in norm.split("/") if p)


class Storage(Protocol):
    """Capability required by the workspace allocator and the source fetcher."""

    def location(self, path: str = "") -> str:
        """Human-readable absolute location of `path` (used as repository path)."""
        ...

    def local_path(self, path: str = "") -> Path | None:
        """OS path of `path`, or None when the storage is not disk-backed."""
        ...

    def chroot(self, path: str) -> Storage:
        """Storage scoped to `path`."""
        ...

    def makedirs(self, path: str = "") -> None: ...

    def write_bytes(self, path: str, data: bytes) -> None:
        """Write a file, creating missing parent directories."""
        ...

    def read_bytes(self, path: str) -> bytes: ...

    def exists(self, path: str = "") -> bool: ...

    def listdir(self, path: str = "") -> list[str]:
        """Sorted names of the entries directly under `path`."""
        ...


class LocalStorage:
    """Storage rooted at a directory on disk."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _full(self, path: str) -> Path:
        return self.root.joinpath(*_parts(path))

    def location(self, path: str = "") -> str:
        return str(self._full(path))

    def local_path(self, path: str = "") -> Path | None:
        return self._full(path)

    def chroot(self, path: str) -> LocalStorage:
        return LocalStorage(self._full(path))

    def makedirs(self, path: str = "") -> None:
        self._full(path).mkdir(parents=True, exist_ok=True)

    def write_bytes(self, path: str, data: bytes) -> None:
        target = self._full(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def read_bytes(self, path: str) -> bytes:
        return self._full(path).read_bytes()

    def exists(self, path: str = "") -> bool:
        return self._full(path).exists()

    def listdir(self, path: str = "") -> list[str]:
        return sorted(p.name for p in self._full(path).iterdir())

    def __repr__(self) -> str:
        return f"LocalStorage({str(self.root)!r})"


@dataclass
class _MemoryTree:
    files: dict[tuple[str, ...], bytes] = field(default_factory=dict)
    dirs: set[tuple[str, ...]] = field(default_factory=lambda: {()})


class MemoryStorage:
    """In-memory storage. Chroots share the same tree."""

    def __init__(self, *, _tree: _MemoryTree | None = None, _prefix: tuple[str, ...] = ()) -> None:
        self._tree = _tree if _tree is not None else _MemoryTree()
        self._prefix = _prefix

    def _full(self, path: str) -> tuple[str, ...]:
        return self._prefix + _parts(path)

    def location(self, path: str = "") -> str:
        return "memory:///" + "/".join(self._full(path))

    def local_path(self, path: str = "") -> Path | None:
        return None

    def chroot(self, path: str) -> MemoryStorage:
        return MemoryStorage(_tree=self._tree, _prefix=self._full(path))

    def _add_dirs(self, key: tuple[str, ...]) -> None:
        for i in range(len(key) + 1):
            prefix = key[:i]
            if prefix in self._tree.files:
                raise NotADirectoryError("/".join(prefix))
            self._tree.dirs.add(prefix)

    def makedirs(self, path: str = "") -> None:
        self._add_dirs(self._full(path))

    def write_bytes(self, path: str, data: bytes) -> None:
        key = self._full(path)
        if key in self._tree.dirs:
            raise IsADirectoryError(self.location(path))
        self._add_dirs(key[:-1])
        self._tree.files[key] = bytes(data)

    def read_bytes(self, path: str) -> bytes:
        key = self._full(path)
        if key in self._tree.dirs:
            raise IsADirectoryError(self.location(path))
        try:
            return self._tree.files[key]
        except KeyError:
            raise FileNotFoundError(self.location(path)) from None

    def exists(self, path: str = "") -> bool:
        key = self._full(path)
        return key in self._tree.files or key in self._tree.dirs

    def listdir(self, path: str = "") -> list[str]:
        key = self._full(path)
        if key not in self._tree.dirs:
            raise FileNotFoundError(self.location(path))
        depth = len(key) + 1
        names = {
            entry[-1]
            for entry in (*self._tree.files, *self._tree.dirs)
            if len(entry) == depth and entry[:-1] == key
        }
        return sorted(names)

    def __repr__(self) -> str:
        return f"MemoryStorage({self.location()!r})"
