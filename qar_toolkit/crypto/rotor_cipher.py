"""Multiplicative-congruential keystream cipher (second payload layer)."""

import struct

MASK32 = 0xFFFFFFFF

KEY_MULTIPLIER = 278
KEY_SALT = 25974
ROTOR_MULTIPLIER = 48828125  # 5**11


class RotorCipher:
    """XOR every 32-bit word with a rotor advanced by ``key + 5**11 * rotor``."""

    block_size = 64

    def __init__(self, key: int):
        key &= MASK32
        self.key = (KEY_MULTIPLIER * key) & MASK32
        self.rotor = (key | ((key ^ KEY_SALT) << 16)) & MASK32

    def _xor_words(self, data: bytes, count: int, output: bytearray) -> None:
        words = struct.unpack_from(f"<{count}I", data)
        rotor = self.rotor
        result = []
        for word in words:
            result.append(rotor ^ word)
            rotor = (self.key + ROTOR_MULTIPLIER * rotor) & MASK32
        self.rotor = rotor
        struct.pack_into(f"<{count}I", output, 0, *result)

    def transform_block(self, data: bytes) -> bytes:
        """Transform whole 64-byte groups only; the remainder is dropped."""
        size = len(data) - len(data) % 64
        output = bytearray(size)
        if size:
            self._xor_words(data, size // 4, output)
        return bytes(output)

    def transform_final_block(self, data: bytes) -> bytes:
        """Transform the tail: 16-byte groups, then single words.

        A remainder shorter than a word is not transformed and comes back
        as zero bytes.
        """
        output = bytearray(len(data))
        words = len(data) // 4
        if words:
            # 16-byte groups advance the rotor exactly like single words
            self._xor_words(data, words, output)
        return bytes(output)
