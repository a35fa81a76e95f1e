"""QAR archive container."""

from .entry import QAREntry
from .header import ArchiveHeader, ContentHeader, EntryHeader, SectionDecoder
from .reader import QARArchive, QARArchiveMode

__all__ = [
    "QARArchive",
    "QARArchiveMode",
    "QAREntry",
    "ArchiveHeader",
    "EntryHeader",
    "ContentHeader",
    "SectionDecoder",
]
