"""Read adapter applying a block cipher to a stream as it is consumed."""

import io
from typing import BinaryIO

from ..errors import UnsupportedOperationError

CHUNK_SIZE = 64 * 1024


class CipherReader(io.RawIOBase):
    """Forward-only reader transforming ``source`` through ``cipher``.

    Whole blocks go through ``cipher.transform_block`` as soon as they are
    available; whatever is left when the source is exhausted goes through
    ``cipher.transform_final_block`` exactly once. The reader owns the
    source and closes it.
    """

    def __init__(self, source: BinaryIO, cipher, chunk_size: int = CHUNK_SIZE):
        super().__init__()
        self._source = source
        self._cipher = cipher
        self._chunk_size = chunk_size
        self._pending = bytearray()
        self._output = bytearray()
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._output and not self._eof:
            self._fill()
        count = min(len(buffer), len(self._output))
        buffer[:count] = self._output[:count]
        del self._output[:count]
        return count

    def _fill(self) -> None:
        chunk = self._source.read(self._chunk_size)
        if not chunk:
            self._eof = True
            self._output += self._cipher.transform_final_block(bytes(self._pending))
            self._pending.clear()
            return

        self._pending += chunk
        whole = len(self._pending) - len(self._pending) % self._cipher.block_size
        if whole:
            self._output += self._cipher.transform_block(bytes(self._pending[:whole]))
            del self._pending[:whole]

    def seekable(self) -> bool:
        return False

    def writable(self) -> bool:
        return False

    def seek(self, offset, whence=io.SEEK_SET):
        raise UnsupportedOperationError("Cipher streams do not support seeking")

    def truncate(self, size=None):
        raise UnsupportedOperationError("Cipher streams are read-only")

    def write(self, data):
        raise UnsupportedOperationError("Cipher streams are read-only")

    def close(self) -> None:
        if not self.closed:
            self._source.close()
        super().close()
