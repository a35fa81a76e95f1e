"""QAR Toolkit - read Fox Engine QAR archives."""

__version__ = "0.1.0"

from .errors import CapabilityError, FormatError, QARError, UnsupportedOperationError, UseAfterCloseError
from .hashing import EntryNameMap, hash64, hash_path, hash_path_without_extension
from .qar import QARArchive, QARArchiveMode, QAREntry

__all__ = [
    "__version__",
    "QARArchive",
    "QARArchiveMode",
    "QAREntry",
    "EntryNameMap",
    "hash64",
    "hash_path",
    "hash_path_without_extension",
    "QARError",
    "FormatError",
    "CapabilityError",
    "UseAfterCloseError",
    "UnsupportedOperationError",
]
