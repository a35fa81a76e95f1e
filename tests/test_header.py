"""Tests for QAR header and section table decoding."""

import io
import struct

import pytest

from builders import FakeEntry, build_header, encode_sections, seed_of
from qar_toolkit.errors import FormatError
from qar_toolkit.qar.header import (
    SECTION_ROTOR_SEED,
    SIGNATURE_LONG,
    SIGNATURE_SHORT,
    ArchiveHeader,
    ContentHeader,
    EntryHeader,
    SectionDecoder,
)
from qar_toolkit.utils.binary import BinaryReader


def read_header(data: bytes) -> ArchiveHeader:
    return ArchiveHeader.from_reader(BinaryReader(data))


class TestArchiveHeader:
    """Tests for ArchiveHeader."""

    @pytest.mark.parametrize("version", [1, 2])
    def test_round_trip(self, version):
        header = read_header(
            build_header(
                flags=0x800,
                file_count=123,
                unknown_count=4,
                block_file_end=0xABCDEF,
                offset_first_file=0x400,
                version=version,
            )
        )

        assert header.flags == 0x800
        assert header.file_count == 123
        assert header.unknown_count == 4
        assert header.block_file_end == 0xABCDEF
        assert header.offset_first_file == 0x400
        assert header.version == version
        assert header.reserved == 0

    def test_fields_are_masked_on_disk(self):
        data = build_header(version=1)
        assert struct.unpack_from("<I", data, 24)[0] == 1 ^ 0x41441043

    @pytest.mark.parametrize("position", [0, 1, 2, 3])
    def test_corrupted_magic(self, position):
        data = bytearray(build_header())
        data[position] ^= 0xFF
        with pytest.raises(FormatError, match="magic"):
            read_header(bytes(data))

    @pytest.mark.parametrize("version", [0, 3, 0xFFFFFFFF])
    def test_invalid_version(self, version):
        with pytest.raises(FormatError, match="version"):
            read_header(build_header(version=version))

    def test_reserved_must_be_zero(self):
        with pytest.raises(FormatError, match="Reserved"):
            read_header(build_header(reserved=1))

    def test_truncated(self):
        with pytest.raises(FormatError, match="Truncated"):
            read_header(build_header()[:20])

    def test_empty(self):
        with pytest.raises(FormatError):
            read_header(b"")

    def test_block_shift(self):
        assert read_header(build_header(flags=0)).block_shift == 10
        assert read_header(build_header(flags=0x800)).block_shift == 12
        assert read_header(build_header(flags=0x801)).block_shift == 12


class TestSectionDecoder:
    """Tests for SectionDecoder."""

    SECTIONS = [
        (0x5555CCCD, 0x00000102),
        (0xDEADBEEF, 0x12345678),
        (0x00000000, 0xFFFFFFFF),
        (0x13579BDF, 0x00ABCD00),
        (0xCAFEBABE, 0x00000300),
    ]

    @pytest.mark.parametrize("version", [1, 2])
    def test_decodes_in_order(self, version):
        reader = BinaryReader(encode_sections(version, self.SECTIONS))
        decoded = SectionDecoder(version).read_all(reader, len(self.SECTIONS))
        assert decoded == [(w2 << 32) | w1 for w1, w2 in self.SECTIONS]

    def test_version1_has_no_chaining(self):
        """A version 1 record decodes the same regardless of its neighbours."""
        data = encode_sections(1, self.SECTIONS)
        decoder = SectionDecoder(1)
        decoder.index = 3
        word1, word2 = struct.unpack_from("<2I", data, 24)
        assert decoder.decode(word1, word2) == (0x00ABCD00 << 32) | 0x13579BDF

    def test_version2_rotor_update(self):
        decoder = SectionDecoder(2)
        word1, word2 = 0x80000001, 0x00000100  # rotate right by 1
        encoded = encode_sections(2, [(word1, word2)])
        decoder.read(BinaryReader(encoded))
        assert decoder.rotor == SECTION_ROTOR_SEED ^ 0xC0000000

    def test_version2_zero_rotation(self):
        decoder = SectionDecoder(2)
        decoder.read(BinaryReader(encode_sections(2, [(0x12345678, 0)])))
        assert decoder.rotor == SECTION_ROTOR_SEED ^ 0x12345678


class TestEntryHeader:
    """Tests for EntryHeader and ContentHeader."""

    DIGEST = bytes(range(0x10, 0x20))

    def test_fields(self):
        entry = FakeEntry(hash=0x0123456789ABCDEF, data=b"A" * 24, digest=self.DIGEST)
        header = EntryHeader.from_stream(io.BytesIO(entry.encode(1)), 1)

        assert header.hash == 0x0123456789ABCDEF
        assert header.size1 == 24
        assert header.size2 == 24
        assert header.data_hash == self.DIGEST
        assert header.content == ContentHeader()
        assert not header.content.encrypted
        assert header.content.header_size == 0

    def test_seed_window_follows_hash_parity(self):
        odd = FakeEntry(hash=0x1, data=b"", digest=self.DIGEST)
        even = FakeEntry(hash=0x2, data=b"", digest=self.DIGEST)
        assert EntryHeader.from_stream(io.BytesIO(odd.encode(1)), 1).seed == int.from_bytes(self.DIGEST[8:], "little")
        assert EntryHeader.from_stream(io.BytesIO(even.encode(1)), 1).seed == int.from_bytes(self.DIGEST[:8], "little")

    def test_seed_uses_low_hash_half_only(self):
        entry = FakeEntry(hash=0x0000000100000002, data=b"", digest=self.DIGEST)
        assert EntryHeader.from_stream(io.BytesIO(entry.encode(1)), 1).seed == seed_of(entry.hash, self.DIGEST)
        assert seed_of(entry.hash, self.DIGEST) == int.from_bytes(self.DIGEST[:8], "little")

    @pytest.mark.parametrize("version", [1, 2])
    def test_short_content_header(self, version):
        entry = FakeEntry(hash=0xAB, data=b"B" * 16, content="short", key=0x77)
        header = EntryHeader.from_stream(io.BytesIO(entry.encode(version)), version)

        assert header.content.signature == SIGNATURE_SHORT
        assert header.content.key == 0x77
        assert header.content.header_size == 8
        assert header.content.encrypted

    @pytest.mark.parametrize("version", [1, 2])
    def test_long_content_header(self, version):
        entry = FakeEntry(hash=0xAC, data=b"C" * 40, content="long", key=0x99)
        header = EntryHeader.from_stream(io.BytesIO(entry.encode(version)), version)

        assert header.content.signature == SIGNATURE_LONG
        assert header.content.key == 0x99
        assert header.content.size1 == header.content.size2 == 40
        assert header.content.header_size == 16

    def test_long_content_header_size_mismatch(self):
        entry = FakeEntry(hash=0xAC, data=b"C" * 40, content="long", long_sizes=(40, 41))
        with pytest.raises(FormatError, match="differ"):
            EntryHeader.from_stream(io.BytesIO(entry.encode(1)), 1)

    def test_long_content_header_truncated(self):
        entry = FakeEntry(hash=0xAC, data=b"", content="long")
        data = entry.encode(2)[:32 + 12]
        with pytest.raises(FormatError, match="Truncated"):
            EntryHeader.from_stream(io.BytesIO(data), 2)

    def test_missing_content_header_when_payload_is_short(self):
        entry = FakeEntry(hash=0xAD, data=b"tiny")
        header = EntryHeader.from_stream(io.BytesIO(entry.encode(1)), 1)
        assert header.content.signature == 0
        assert header.content.key == 0

    def test_unknown_signature_resets_key(self):
        entry = FakeEntry(hash=0xAE, data=struct.pack("<2I", 0x11111111, 0x22222222))
        header = EntryHeader.from_stream(io.BytesIO(entry.encode(2)), 2)
        assert header.content == ContentHeader()

    def test_truncated_entry_header(self):
        with pytest.raises(FormatError, match="Truncated"):
            EntryHeader.from_stream(io.BytesIO(b"\x00" * 31), 1)
