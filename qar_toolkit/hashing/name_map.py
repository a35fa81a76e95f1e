"""Reverse lookup from stored entry hashes to file names.

Archives only store hashes, so names are recovered by hashing a list of
known candidate paths and extensions and matching the results against the
name part (low 50 bits) and the extension part (top 13 bits) of an entry
hash independently.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from .text_hash import hash_path, split_extension

LOG = logging.getLogger(__name__)

FILE_NAME_MASK = 0x3FFFFFFFFFFFF
EXTENSION_MASK = 0x1FFF
EXTENSION_SHIFT = 51


def hash_file_name(name: str) -> int:
    return hash_path(name) & FILE_NAME_MASK


def hash_extension(extension: str) -> int:
    return hash_path(extension) & EXTENSION_MASK


def entry_hash(path: str) -> int:
    """Return the entry hash ``path`` is stored under (meta flag excluded)."""
    stem, extension = split_extension(path)
    return hash_file_name(stem) | (hash_extension(extension) << EXTENSION_SHIFT)


class EntryNameMap:
    """Hash-to-name dictionary for file names and extensions."""

    def __init__(self):
        self._file_names: Dict[int, str] = {}
        self._extensions: Dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._file_names)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "EntryNameMap":
        """Load a dictionary file with one path per line."""
        name_map = cls()
        with open(path, "r", encoding="utf-8") as handle:
            name_map.load(handle)
        LOG.debug("Loaded %d names from %s", len(name_map), path)
        return name_map

    def load(self, lines: Iterable[str]) -> None:
        """Register every path in ``lines``, skipping blanks and # comments."""
        for line in lines:
            line = line.strip()
            if line and not line.startswith("#"):
                self.add_path(line)

    def add_path(self, path: str) -> None:
        """Register a full path: its extension-less name and its extension."""
        stem, extension = split_extension(path)
        self.add_file_name(stem)
        if extension:
            self.add_extension(extension)

    def add_file_name(self, name: str) -> None:
        self._file_names.setdefault(hash_file_name(name), name)

    def add_extension(self, extension: str) -> None:
        self._extensions.setdefault(hash_extension(extension), extension)

    def lookup_file_name(self, value: int) -> Optional[str]:
        return self._file_names.get(value & FILE_NAME_MASK)

    def lookup_extension(self, value: int) -> Optional[str]:
        return self._extensions.get(value >> EXTENSION_SHIFT)

    def resolve(self, value: int) -> str:
        """Return ``name.ext`` for an entry hash, hex for the unknown parts."""
        name = self.lookup_file_name(value)
        if name is None:
            name = f"{value & FILE_NAME_MASK:x}"
        extension = self.lookup_extension(value)
        if extension is None:
            extension = f"{value >> EXTENSION_SHIFT:x}"
        return f"{name}.{extension}"


# Shared map used by archives that are not given one explicitly.
DEFAULT_NAME_MAP = EntryNameMap()
