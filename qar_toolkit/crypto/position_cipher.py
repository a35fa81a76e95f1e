"""Position-keyed XOR cipher used on entry headers and payloads.

The keystream for every 8-byte word depends only on the word's absolute
offset in the stream, the low half of the entry hash and (version 2) the
entry seed. The transform is its own inverse.
"""

import struct

DECRYPTION_TABLE = (
    0xBB8ADEDB,
    0x65229958,
    0x08453206,
    0x88121302,
    0x4C344955,
    0x2C02F10C,
    0x4887F823,
    0xF3818583,
)

MASK32 = 0xFFFFFFFF


class PositionCipher:
    """Stateful position cipher for one logical byte stream.

    ``position`` counts every byte transformed so far and is never reset,
    so an instance must not be shared between streams.
    """

    block_size = 8

    def __init__(self, version: int, hash: int, seed: int):
        self.version = version
        self.hash_low = hash & MASK32
        self.seed = seed
        self.seed_low = seed & MASK32
        self.seed_high = (seed >> 32) & MASK32
        self.position = 0

    def _index(self, offset: int) -> int:
        return 2 * ((self.hash_low + offset // 11) % 4)

    def transform_block(self, data: bytes) -> bytes:
        """Transform the whole 8-byte words of ``data``.

        Trailing bytes that do not fill a word are ignored; the result is
        ``len(data) // 8 * 8`` bytes long.
        """
        blocks = len(data) // 8
        words = list(struct.unpack_from(f"<{blocks * 2}I", data))

        for i in range(blocks):
            index = self._index(self.position + i * 8)
            low = DECRYPTION_TABLE[index]
            high = DECRYPTION_TABLE[index + 1]
            if self.version == 2:
                low ^= self.seed_low
                high ^= self.seed_high
            words[2 * i] ^= low
            words[2 * i + 1] ^= high

        self.position += blocks * 8
        return struct.pack(f"<{blocks * 2}I", *words)

    def transform_final_block(self, data: bytes) -> bytes:
        """Transform a trailing run of any length, byte by byte."""
        output = bytearray(len(data))

        for i, value in enumerate(data):
            word = i % 8
            if self.version != 2:
                offset = self.position + i
                index = 2 * ((self.hash_low + (offset - offset % 8) // 11) % 4)
                mask = DECRYPTION_TABLE[index] if word < 4 else DECRYPTION_TABLE[index + 1]
            else:
                offset = (i - word) + self.position
                index = 2 * ((self.hash_low + self.seed + offset // 11) % 4)
                mask = DECRYPTION_TABLE[index] if word < 4 else DECRYPTION_TABLE[index + 1]
                mask ^= self.seed_low if word < 4 else self.seed_high
            output[i] = value ^ ((mask >> (8 * (word % 4))) & 0xFF)

        self.position += len(data)
        return bytes(output)
