"""Hash functions used to identify QAR entries."""

from .cityhash import city_hash64, hash64
from .name_map import DEFAULT_NAME_MAP, EntryNameMap, entry_hash
from .text_hash import hash_path, hash_path_without_extension

__all__ = [
    "city_hash64",
    "hash64",
    "hash_path",
    "hash_path_without_extension",
    "entry_hash",
    "EntryNameMap",
    "DEFAULT_NAME_MAP",
]
