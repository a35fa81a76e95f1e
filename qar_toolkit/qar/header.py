"""QAR header, section table and entry header structures.

Every stored 32-bit word is XOR-masked with one of the four ``XOR_MASKS``.
The mask used for a field is fixed by the field's position.
"""

from dataclasses import dataclass
from typing import BinaryIO, List

from ..crypto.position_cipher import PositionCipher
from ..errors import FormatError
from ..utils.binary import BinaryReader, read_u32_le, read_u64_le

# "SQAR" read as a little-endian word
QAR_MAGIC = 0x52415153

XOR_MASKS = (0x41441043, 0x11C22050, 0xD05608C3, 0x532C7319)
M1, M2, M3, M4 = XOR_MASKS

HEADER_SIZE = 32  # magic + 7 words
SECTION_SIZE = 8
UNKNOWN_RECORD_SIZE = 16
ENTRY_HEADER_SIZE = 32

SECTION_ROTOR_SEED = 0xA2C18EC3

FLAG_LARGE_BLOCKS = 0x800

# Content header signatures
SIGNATURE_SHORT = 0xA0F8EFE6  # 8-byte header
SIGNATURE_LONG = 0xE3F8EFE6  # 16-byte header with sizes


@dataclass(frozen=True)
class ArchiveHeader:
    """QAR archive header (32 bytes)."""

    flags: int
    file_count: int
    unknown_count: int
    block_file_end: int
    offset_first_file: int
    version: int  # 1 or 2
    reserved: int  # always 0

    @property
    def block_shift(self) -> int:
        """Shift turning a section block number into a byte offset."""
        return 12 if self.flags & FLAG_LARGE_BLOCKS else 10

    @classmethod
    def from_reader(cls, reader: BinaryReader) -> "ArchiveHeader":
        """Read and validate the magic and the masked header words."""
        try:
            magic = reader.read_u32()
            if magic != QAR_MAGIC:
                raise FormatError(f"Invalid QAR magic: 0x{magic:08X}, expected 0x{QAR_MAGIC:08X}")
            words = reader.read_u32_array(7)
        except EOFError as exc:
            raise FormatError(f"Truncated QAR header: {exc}") from exc

        header = cls(
            flags=words[0] ^ M1,
            file_count=words[1] ^ M2,
            unknown_count=words[2] ^ M3,
            block_file_end=words[3] ^ M4,
            offset_first_file=words[4] ^ M1,
            version=words[5] ^ M1,
            reserved=words[6] ^ M2,
        )

        if header.version not in (1, 2):
            raise FormatError(f"Unsupported QAR version: {header.version}")
        if header.reserved != 0:
            raise FormatError(f"Reserved header word is not zero: 0x{header.reserved:08X}")
        return header


class SectionDecoder:
    """Decode the section table, one 8-byte record at a time.

    Version 1 records are masked by a table entry chosen from the record
    index. Version 2 chooses the entry from a rotor that every decoded
    record updates, so records must be decoded in table order.
    """

    def __init__(self, version: int):
        self.version = version
        self.index = 0
        self.rotor = SECTION_ROTOR_SEED

    def decode(self, word1: int, word2: int) -> int:
        offset1 = self.index * SECTION_SIZE
        offset2 = offset1 + 4
        base = self.rotor if self.version == 2 else self.index

        word1 ^= XOR_MASKS[(base + offset1 // 5) % 4]
        word2 ^= XOR_MASKS[(base + offset2 // 5) % 4]

        if self.version == 2:
            rotation = (word2 // 256) % 19
            rotated = ((word1 >> rotation) | (word1 << (32 - rotation))) & 0xFFFFFFFF
            self.rotor ^= rotated

        self.index += 1
        return (word2 << 32) | word1

    def read(self, reader: BinaryReader) -> int:
        word1, word2 = reader.read_u32_array(2)
        return self.decode(word1, word2)

    def read_all(self, reader: BinaryReader, count: int) -> List[int]:
        return [self.read(reader) for _ in range(count)]


@dataclass(frozen=True)
class ContentHeader:
    """Optional encrypted descriptor in front of an entry payload.

    A missing header is represented by ``signature == 0``.
    """

    signature: int = 0
    key: int = 0
    size1: int = 0
    size2: int = 0

    @property
    def header_size(self) -> int:
        if self.signature == SIGNATURE_SHORT:
            return 8
        if self.signature == SIGNATURE_LONG:
            return 16
        return 0

    @property
    def encrypted(self) -> bool:
        return self.signature in (SIGNATURE_SHORT, SIGNATURE_LONG)

    @classmethod
    def from_stream(cls, stream: BinaryIO, version: int, hash: int, seed: int) -> "ContentHeader":
        """Try to read a content header where an entry payload starts."""
        block = stream.read(8)
        if len(block) != 8:
            return cls()

        cipher = PositionCipher(version, hash, seed)
        block = cipher.transform_block(block)
        signature = read_u32_le(block, 0)
        key = read_u32_le(block, 4)

        if signature == SIGNATURE_SHORT:
            return cls(signature=signature, key=key)
        if signature != SIGNATURE_LONG:
            return cls()

        block = stream.read(8)
        if len(block) != 8:
            raise FormatError("Truncated entry content header")
        block = cipher.transform_block(block)
        size1 = read_u32_le(block, 0)
        size2 = read_u32_le(block, 4)
        if size1 != size2:
            raise FormatError(f"Content header sizes differ: {size1} != {size2}")
        return cls(signature=signature, key=key, size1=size1, size2=size2)


@dataclass(frozen=True)
class EntryHeader:
    """Per-entry header (32 bytes) plus its optional content header."""

    hash: int  # 8 bytes: entry identity
    size1: int  # 4 bytes: uncompressed (v1) / compressed (v2) size
    size2: int  # 4 bytes: compressed (v1) / uncompressed (v2) size
    data_hash: bytes  # 16 bytes: digest, source of the seed
    content: ContentHeader = ContentHeader()

    @property
    def seed(self) -> int:
        """The 8-byte window of the digest selected by the hash parity."""
        return read_u64_le(self.data_hash, (self.hash & 0xFFFFFFFF) % 2 * 8)

    @classmethod
    def from_stream(cls, stream: BinaryIO, version: int) -> "EntryHeader":
        """Read the 32-byte header, then probe for a content header."""
        reader = BinaryReader(stream)
        try:
            words = reader.read_u32_array(8)
        except EOFError as exc:
            raise FormatError(f"Truncated entry header: {exc}") from exc

        digest = bytearray()
        for word, mask in zip(words[4:], (M4, M1, M1, M2)):
            digest += (word ^ mask).to_bytes(4, "little")

        header = cls(
            hash=((words[1] ^ M1) << 32) | (words[0] ^ M1),
            size1=words[2] ^ M2,
            size2=words[3] ^ M3,
            data_hash=bytes(digest),
        )
        content = ContentHeader.from_stream(stream, version, header.hash, header.seed)
        return cls(header.hash, header.size1, header.size2, header.data_hash, content)
