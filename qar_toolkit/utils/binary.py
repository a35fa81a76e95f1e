"""Binary reading utilities for little-endian QAR data."""

import struct
from io import BytesIO
from typing import BinaryIO, Tuple, Union


class BinaryReader:
    """Helper for reading little-endian binary data (Fox Engine format)."""

    def __init__(self, data: Union[bytes, BinaryIO]):
        if isinstance(data, (bytes, bytearray)):
            self._stream = BytesIO(data)
        else:
            self._stream = data

    def tell(self) -> int:
        return self._stream.tell()

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._stream.seek(offset, whence)

    def read_bytes(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) < size:
            raise EOFError(f"Expected {size} bytes, got {len(data)}")
        return data

    def read_u32(self) -> int:
        return struct.unpack("<I", self.read_bytes(4))[0]

    def read_u32_array(self, count: int) -> Tuple[int, ...]:
        """Read ``count`` consecutive little-endian 32-bit words."""
        return struct.unpack(f"<{count}I", self.read_bytes(4 * count))


def read_u32_le(data: bytes, offset: int = 0) -> int:
    """Read a little-endian 32-bit unsigned integer from bytes."""
    return struct.unpack_from("<I", data, offset)[0]


def read_u64_le(data: bytes, offset: int = 0) -> int:
    """Read a little-endian 64-bit unsigned integer from bytes."""
    return struct.unpack_from("<Q", data, offset)[0]
