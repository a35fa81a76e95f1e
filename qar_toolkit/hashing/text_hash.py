"""Path hashing rules for QAR entry identifiers.

An entry is stored under a 64-bit identity rather than its name. The low
50 bits hold the hash of the path, bit 50 is the "meta" flag separating
the two naming namespaces, and the top 13 bits hold the hash of the
extension (see :mod:`qar_toolkit.hashing.name_map`).
"""

from typing import Tuple

from .cityhash import hash64

ASSETS_PREFIX = "/Assets/"
META_PREFIX = "/Assets/tpptest"

SEED0 = 0x9AE16A3B2F90404F
HASH_MASK = 0x3FFFFFFFFFFFF
META_FLAG = 0x4000000000000


def string_seed(value: str) -> int:
    """Derive the per-string seed from the last 8 characters, reversed."""
    seed = bytearray(8)
    for i, char in enumerate(reversed(value[-8:])):
        seed[i] = ord(char) & 0xFF
    return int.from_bytes(seed, "little")


def hash_string(value: str) -> int:
    return hash64(value.encode("utf-8"), SEED0, string_seed(value)) & HASH_MASK


def normalize_path(path: str) -> str:
    """Strip the assets root and any leading separators."""
    if path.startswith(ASSETS_PREFIX):
        path = path[len(ASSETS_PREFIX):]
    return path.lstrip("/")


def remove_extension(path: str) -> str:
    """Cut ``path`` at its first dot."""
    index = path.find(".")
    return path if index == -1 else path[:index]


def split_extension(path: str) -> Tuple[str, str]:
    """Split the extension off the last component of ``path``.

    Everything after the first dot of the file name counts as the
    extension, so ``a/b.fox2.xml`` gives ``("a/b", "fox2.xml")``.
    """
    directory, _, file_name = path.rpartition("/")
    stem, dot, extension = file_name.partition(".")
    if directory or path.startswith("/"):
        stem = f"{directory}/{stem}"
    return stem, extension if dot else ""


def _is_meta(path: str) -> bool:
    if path.startswith(ASSETS_PREFIX):
        return path.startswith(META_PREFIX)
    return True


def hash_path(path: str) -> int:
    """Hash a path the way entry identities are computed."""
    value = hash_string(normalize_path(path))
    return value | META_FLAG if _is_meta(path) else value


def hash_path_without_extension(path: str) -> int:
    """Like :func:`hash_path`, but ignoring the extension."""
    value = hash_string(remove_extension(normalize_path(path)))
    return value | META_FLAG if _is_meta(path) else value
