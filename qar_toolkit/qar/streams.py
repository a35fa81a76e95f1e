"""Stream views over the shared archive source."""

import io
import threading
import zlib
from contextlib import contextmanager
from typing import BinaryIO, Callable, Iterator, Optional

from ..errors import FormatError, UnsupportedOperationError

CHUNK_SIZE = 64 * 1024

# Accept both gzip and zlib framing.
AUTO_DETECT_WBITS = zlib.MAX_WBITS | 32


@contextmanager
def preserved_position(stream: BinaryIO) -> Iterator[BinaryIO]:
    """Restore the position of ``stream`` once the block exits."""
    position = stream.tell()
    try:
        yield stream
    finally:
        stream.seek(position)


class _ReadOnlyStream(io.RawIOBase):
    """Common behaviour of the forward-only, read-only views."""

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return False

    def seek(self, offset, whence=io.SEEK_SET):
        raise UnsupportedOperationError(f"{type(self).__name__} does not support seeking")

    def truncate(self, size=None):
        raise UnsupportedOperationError(f"{type(self).__name__} is read-only")

    def write(self, data):
        raise UnsupportedOperationError(f"{type(self).__name__} is read-only")


class SectionStream(_ReadOnlyStream):
    """Bounded view of ``length`` bytes of ``source`` starting at ``start``.

    The view keeps its own position and seeks the shared source before
    every read, under ``lock`` when one is given. ``check_open`` is called
    before every read so the owner can refuse reads once it is closed.
    Closing the view leaves the source open.
    """

    def __init__(
        self,
        source: BinaryIO,
        start: int,
        length: int,
        lock: Optional[threading.RLock] = None,
        check_open: Optional[Callable[[], None]] = None,
    ):
        super().__init__()
        self._source = source
        self._check_open = check_open
        self._start = start
        self._length = length
        self._position = 0
        self._lock = lock or threading.RLock()

    @property
    def length(self) -> int:
        return self._length

    def tell(self) -> int:
        return self._position

    def readinto(self, buffer) -> int:
        if self._check_open is not None:
            self._check_open()
        count = min(len(buffer), self._length - self._position)
        if count <= 0:
            return 0
        with self._lock:
            self._source.seek(self._start + self._position)
            data = self._source.read(count)
        buffer[: len(data)] = data
        self._position += len(data)
        return len(data)


class DecompressReader(_ReadOnlyStream):
    """Streaming DEFLATE decompressor (gzip or zlib framed)."""

    def __init__(self, source: BinaryIO, chunk_size: int = CHUNK_SIZE):
        super().__init__()
        self._source = source
        self._chunk_size = chunk_size
        self._decompressor = zlib.decompressobj(AUTO_DETECT_WBITS)
        self._output = bytearray()
        self._eof = False

    def readinto(self, buffer) -> int:
        while not self._output and not self._eof:
            self._fill()
        count = min(len(buffer), len(self._output))
        buffer[:count] = self._output[:count]
        del self._output[:count]
        return count

    def _fill(self) -> None:
        chunk = self._source.read(self._chunk_size)
        try:
            if chunk:
                self._output += self._decompressor.decompress(chunk)
            else:
                self._output += self._decompressor.flush()
        except zlib.error as exc:
            raise FormatError(f"Corrupt compressed entry data: {exc}") from exc
        if not chunk or self._decompressor.eof:
            self._eof = True

    def close(self) -> None:
        if not self.closed:
            self._source.close()
        super().close()


class EntryStream(_ReadOnlyStream):
    """The stream handed out by :meth:`QAREntry.open`.

    Reads are clamped to ``length`` bytes no matter how much the wrapped
    pipeline could still produce. A read returns fewer bytes than asked
    for only at the end of the stream. ``check_open`` is called before
    every read, like in :class:`SectionStream`.
    """

    def __init__(self, stream: BinaryIO, length: int, check_open: Optional[Callable[[], None]] = None):
        super().__init__()
        self._stream = stream
        self._check_open = check_open
        self._length = length
        self._position = 0

    @property
    def length(self) -> int:
        return self._length

    def tell(self) -> int:
        return self._position

    def readinto(self, buffer) -> int:
        if self._check_open is not None:
            self._check_open()
        count = min(len(buffer), self._length - self._position)
        if count <= 0:
            return 0
        filled = 0
        while filled < count:
            data = self._stream.read(count - filled)
            if not data:
                break
            buffer[filled : filled + len(data)] = data
            filled += len(data)
        self._position += filled
        return filled

    def close(self) -> None:
        if not self.closed:
            self._stream.close()
        super().close()
