"""QAR archive reader."""

import logging
import threading
from enum import IntEnum
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, List, Optional, Tuple, Union

from ..errors import CapabilityError, FormatError, UnsupportedOperationError, UseAfterCloseError
from ..hashing.name_map import DEFAULT_NAME_MAP, EXTENSION_SHIFT, FILE_NAME_MASK, EntryNameMap, entry_hash
from ..utils.binary import BinaryReader
from .entry import QAREntry
from .header import HEADER_SIZE, UNKNOWN_RECORD_SIZE, ArchiveHeader, EntryHeader, SectionDecoder
from .streams import SectionStream, preserved_position

LOG = logging.getLogger(__name__)


class QARArchiveMode(IntEnum):
    READ = 0  # only reading entries is permitted
    CREATE = 1  # only creating entries is permitted
    UPDATE = 2  # reading and writing are permitted


_FILE_MODES = {
    QARArchiveMode.READ: "rb",
    QARArchiveMode.CREATE: "xb",  # never truncate an existing archive
    QARArchiveMode.UPDATE: "r+b",
}


def _supports(source, capability: str) -> bool:
    check = getattr(source, capability, None)
    if check is None or getattr(source, "closed", False):
        return False
    return bool(check())


class QARArchive:
    """Reader for QAR (Fox Engine) archives.

    The archive owns ``source`` and closes it on :meth:`close` unless
    ``leave_open`` is set. Entry headers and the section table are read
    lazily. Every seek+read pair on the shared source happens under the
    archive lock.
    """

    def __init__(
        self,
        source: BinaryIO,
        mode: QARArchiveMode = QARArchiveMode.READ,
        leave_open: bool = False,
        name_map: Optional[EntryNameMap] = None,
    ):
        if source is None:
            raise TypeError("source must not be None")
        mode = QARArchiveMode(mode)
        self._check_capabilities(source, mode)

        self.mode = mode
        self.name_map = name_map if name_map is not None else DEFAULT_NAME_MAP
        self._source = source
        self._leave_open = leave_open
        self._lock = threading.RLock()
        self._closed = False
        self._header: Optional[ArchiveHeader] = None
        self._entries: List[QAREntry] = []
        self._unknown_records: List[bytes] = []
        self._sections_read = False

        if mode == QARArchiveMode.READ:
            self._read_header()
        elif mode == QARArchiveMode.UPDATE and self._source_length() > 0:
            self._read_header()
            self._ensure_sections()

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        mode: QARArchiveMode = QARArchiveMode.READ,
        name_map: Optional[EntryNameMap] = None,
    ) -> "QARArchive":
        """Open the archive file at ``path``.

        CREATE mode refuses to open an existing file.
        """
        handle = open(path, _FILE_MODES[QARArchiveMode(mode)])
        try:
            return cls(handle, mode, leave_open=False, name_map=name_map)
        except Exception:
            handle.close()
            raise

    @staticmethod
    def _check_capabilities(source, mode: QARArchiveMode) -> None:
        needed = {
            QARArchiveMode.READ: ("readable", "seekable"),
            QARArchiveMode.CREATE: ("writable",),
            QARArchiveMode.UPDATE: ("writable", "readable", "seekable"),
        }[mode]
        for capability in needed:
            if not _supports(source, capability):
                raise CapabilityError(
                    f"{mode.name} mode needs a {capability} stream; the source is closed or not {capability}"
                )

    def __enter__(self) -> "QARArchive":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the archive, and the source unless ``leave_open`` was set."""
        if self._closed:
            return
        if not self._leave_open:
            self._source.close()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def header(self) -> ArchiveHeader:
        self._check_open()
        if self._header is None:
            raise UnsupportedOperationError("The archive has no header to read")
        return self._header

    @property
    def version(self) -> int:
        return self.header.version

    @property
    def flags(self) -> int:
        return self.header.flags

    @property
    def unknown_records(self) -> List[bytes]:
        """Raw 16-byte records following the section table (not interpreted)."""
        self._ensure_sections()
        return list(self._unknown_records)

    @property
    def entries(self) -> List[QAREntry]:
        if self.mode == QARArchiveMode.CREATE:
            raise UnsupportedOperationError("Archives opened for creation cannot be read")
        self._ensure_sections()
        return list(self._entries)

    def _check_open(self) -> None:
        if self._closed:
            raise UseAfterCloseError("The archive has been closed")

    def _source_length(self) -> int:
        with self._lock, preserved_position(self._source):
            return self._source.seek(0, 2)

    def _read_header(self) -> None:
        with self._lock:
            self._source.seek(0)
            self._header = ArchiveHeader.from_reader(BinaryReader(self._source))
        LOG.debug(
            "QAR v%d: flags=0x%X files=%d unknown=%d",
            self._header.version,
            self._header.flags,
            self._header.file_count,
            self._header.unknown_count,
        )

    def _ensure_sections(self) -> None:
        self._check_open()
        if self._sections_read:
            return
        if self._header is None:
            # empty archive opened for update
            self._sections_read = True
            return
        header = self._header

        with self._lock, preserved_position(self._source):
            self._source.seek(HEADER_SIZE)
            reader = BinaryReader(self._source)
            decoder = SectionDecoder(header.version)
            try:
                sections = decoder.read_all(reader, header.file_count)
                unknown = [reader.read_bytes(UNKNOWN_RECORD_SIZE) for _ in range(header.unknown_count)]
            except EOFError as exc:
                raise FormatError(f"Truncated section table: {exc}") from exc

        self._entries = [QAREntry(self, section, index) for index, section in enumerate(sections)]
        self._unknown_records = unknown
        self._sections_read = True
        LOG.debug("Read %d sections and %d unknown records", len(sections), len(unknown))

    def _read_entry_header(self, offset: int) -> EntryHeader:
        self._check_open()
        with self._lock, preserved_position(self._source):
            self._source.seek(offset)
            return EntryHeader.from_stream(self._source, self.version)

    def _open_section(self, position: int, length: int) -> SectionStream:
        self._check_open()
        return SectionStream(self._source, position, length, self._lock, self._check_open)

    def resolve_name(self, hash: int) -> str:
        return self.name_map.resolve(hash)

    def create_entry(self, name: str) -> QAREntry:
        """Add an entry. Writing archives is not supported yet."""
        if name is None:
            raise TypeError("name must not be None")
        if not name:
            raise ValueError("The entry name cannot be empty")
        if self.mode == QARArchiveMode.READ:
            raise UnsupportedOperationError("The archive was opened for reading only")
        self._check_open()
        raise UnsupportedOperationError("Creating QAR entries is not supported yet")

    def extract_file(self, entry: QAREntry) -> bytes:
        """Extract a single file from the archive."""
        self._check_open()
        return entry.read()

    def extract_all(
        self, output_dir: Path, progress_callback: Optional[Callable[[int, int, str], None]] = None
    ) -> Iterator[Tuple[str, Path]]:
        """Extract all files to the output directory.

        Yields (name, output_path) for each extracted file.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        entries = self.entries

        for i, entry in enumerate(entries):
            name = entry.full_name
            parts = [part for part in name.split("/") if part not in ("", ".", "..")]
            if not parts:
                parts = [f"unknown_{i}"]
            relative = Path(*parts)

            output_path = output_dir / relative
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(self.extract_file(entry))

            if progress_callback:
                progress_callback(i, len(entries), name)

            yield name, output_path

    def list_files(self) -> List[str]:
        """List the resolved names of all entries."""
        return [entry.full_name for entry in self.entries]

    def get_entry_by_hash(self, hash: int) -> Optional[QAREntry]:
        for entry in self.entries:
            if entry.hash == hash:
                return entry
        return None

    def get_entry_by_name(self, path: str) -> Optional[QAREntry]:
        """Find an entry by path, comparing hashes (the meta flag is ignored)."""
        target = entry_hash(path)
        mask = FILE_NAME_MASK | (0x1FFF << EXTENSION_SHIFT)
        for entry in self.entries:
            if entry.hash & mask == target:
                return entry
        return None
