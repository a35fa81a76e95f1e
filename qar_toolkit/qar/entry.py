"""A single file stored in a QAR archive."""

import logging
import posixpath
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..crypto.position_cipher import PositionCipher
from ..crypto.rotor_cipher import RotorCipher
from ..crypto.stream import CipherReader
from ..errors import FormatError
from .header import ENTRY_HEADER_SIZE, ContentHeader, EntryHeader
from .streams import DecompressReader, EntryStream

if TYPE_CHECKING:
    from .reader import QARArchive

LOG = logging.getLogger(__name__)


class HeaderState(Enum):
    UNPARSED = "unparsed"
    PARSED = "parsed"
    FAILED = "failed"


class QAREntry:
    """An archive entry, located by its section record.

    The entry header is read on first access of any property that needs
    it and cached. A failed read is cached too: later accesses raise the
    same error again.
    """

    def __init__(self, archive: "QARArchive", section: int, index: int = 0):
        self._archive = archive
        self._section = section
        self._version = archive.version
        self._offset = (section >> 40) << archive.header.block_shift
        self.index = index
        self._state = HeaderState.UNPARSED
        self._header: Optional[EntryHeader] = None
        self._error: Optional[FormatError] = None

    def __repr__(self) -> str:
        if self._state is HeaderState.PARSED:
            return f"<QAREntry {self.full_name} length={self.length} compressed={self.compressed}>"
        return f"<QAREntry #{self.index} offset=0x{self.offset:X} {self._state.value}>"

    @property
    def archive(self) -> "QARArchive":
        return self._archive

    @property
    def section(self) -> int:
        return self._section

    @property
    def offset(self) -> int:
        """Offset of the entry header in the archive (block aligned)."""
        return self._offset

    @property
    def header(self) -> EntryHeader:
        self._ensure_header()
        return self._header

    @property
    def content_header(self) -> ContentHeader:
        return self.header.content

    @property
    def length(self) -> int:
        """Uncompressed size of the entry."""
        header = self.header
        return header.size1 if self._version != 2 else header.size2

    @property
    def compressed_length(self) -> int:
        """Size of the entry as stored."""
        header = self.header
        return header.size2 if self._version != 2 else header.size1

    @property
    def compressed(self) -> bool:
        return self.length != self.compressed_length

    @property
    def hash(self) -> int:
        return self.header.hash

    @property
    def seed(self) -> int:
        return self.header.seed

    @property
    def full_name(self) -> str:
        """Name resolved from the hash, hex for unknown parts."""
        return self._archive.resolve_name(self.hash)

    @property
    def name(self) -> str:
        return posixpath.basename(self.full_name)

    def _ensure_header(self) -> None:
        if self._state is HeaderState.PARSED:
            return
        if self._state is HeaderState.FAILED:
            raise self._error

        try:
            self._header = self._archive._read_entry_header(self.offset)
        except FormatError as exc:
            self._state = HeaderState.FAILED
            self._error = exc
            raise
        self._state = HeaderState.PARSED
        LOG.debug(
            "Entry %d at 0x%X: hash=0x%016X size1=%d size2=%d signature=0x%08X",
            self.index,
            self.offset,
            self._header.hash,
            self._header.size1,
            self._header.size2,
            self._header.content.signature,
        )

    def open(self) -> EntryStream:
        """Open a forward-only stream over the decoded entry contents."""
        self._ensure_header()
        content = self._header.content
        raw = self._archive._open_section(self.offset + ENTRY_HEADER_SIZE, self.compressed_length)

        cipher = PositionCipher(self._version, self.hash, self.seed)
        length = self.compressed_length

        # The content header is not part of the stream, but it advances the cipher.
        if content.header_size:
            consumed = raw.read(content.header_size)
            if len(consumed) != content.header_size:
                raw.close()
                raise FormatError("Truncated entry content header")
            cipher.transform_block(consumed)
            length -= content.header_size

        if self.compressed:
            LOG.debug("Entry %d: inflating %d -> %d bytes", self.index, self.compressed_length, self.length)
            return EntryStream(DecompressReader(raw), self.length, self._archive._check_open)

        stream = CipherReader(raw, cipher)
        if content.encrypted:
            stream = CipherReader(stream, RotorCipher(content.key))
        return EntryStream(stream, length, self._archive._check_open)

    def read(self) -> bytes:
        """Read the whole decoded contents of the entry."""
        with self.open() as stream:
            return stream.read()
