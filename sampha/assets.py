"""Read-only, in-memory snapshot of the static asset tree.

The store is populated once at startup (from the packaged ``static``
directory or ``settings.STATIC_DIR``) and never mutated afterwards, so it
can be shared by every request without locking.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Union

logger = logging.getLogger(__name__)


class AssetNotFound(LookupError):
    """Raised when a path names neither a file nor a directory in the store."""


@dataclass(frozen=True)
class AssetInfo:
    name: str
    is_dir: bool
    size: int = 0


def clean_path(path: str) -> str:
    """
    Normalize a request path into a store-relative candidate.

    Segments are resolved against a virtual root: empty and ``.`` segments
    are dropped, ``..`` pops the previous segment and is clamped at the
    root. The result therefore never escapes the store root.

        >>> clean_path("/assets/../index.html")
        'index.html'
        >>> clean_path("/../../etc/passwd")
        'etc/passwd'
        >>> clean_path("/")
        ''
    """
    parts: List[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
            continue
        parts.append(segment)
    return "/".join(parts)


class AssetStore:
    """Immutable mapping of relative POSIX paths to file bytes."""

    def __init__(self, files: Mapping[str, bytes]):
        normalized: Dict[str, bytes] = {}
        dirs = set()
        for name, data in files.items():
            key = clean_path(name)
            if not key:
                raise ValueError(f"invalid asset name: {name!r}")
            normalized[key] = bytes(data)
            parent = key.rpartition("/")[0]
            while parent:
                dirs.add(parent)
                parent = parent.rpartition("/")[0]
        self._files = MappingProxyType(normalized)
        self._dirs = frozenset(dirs)

    @classmethod
    def from_directory(cls, root: Union[str, Path]) -> "AssetStore":
        """Snapshot every regular file under ``root`` (dotfiles included)."""
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"static directory not found: {root}")

        files: Dict[str, bytes] = {}
        for dirpath, _dirnames, filenames in os.walk(root):
            for filename in filenames:
                full = Path(dirpath) / filename
                if not full.is_file():
                    continue
                files[full.relative_to(root).as_posix()] = full.read_bytes()

        store = cls(files)
        logger.info(f"Loaded {len(store)} static files from {root}")
        return store

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: str) -> bool:
        return path in self._files or path in self._dirs

    def stat(self, path: str) -> AssetInfo:
        if path in self._files:
            return AssetInfo(name=path, is_dir=False, size=len(self._files[path]))
        if path in self._dirs:
            return AssetInfo(name=path, is_dir=True)
        raise AssetNotFound(path)

    def open(self, path: str) -> bytes:
        """Return the bytes of a stored file. Directories are not openable."""
        try:
            return self._files[path]
        except KeyError:
            raise AssetNotFound(path) from None

    def listdir(self, path: str) -> List[str]:
        """Sorted immediate children of a directory; sub-directories end in '/'."""
        if path not in self._dirs:
            raise AssetNotFound(path)
        prefix = path + "/"
        children = set()
        for name in list(self._files) + list(self._dirs):
            if not name.startswith(prefix):
                continue
            rest = name[len(prefix):]
            head, sep, _ = rest.partition("/")
            if sep or name in self._dirs:
                children.add(head + "/")
            else:
                children.add(head)
        return sorted(children)
