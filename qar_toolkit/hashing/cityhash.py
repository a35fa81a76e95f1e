"""Seeded 64-bit CityHash.

This is the CityHash 1.0.x construction the Fox Engine uses for path
hashes. Only the 64-bit variants are implemented. Python integers are
unbounded, so every intermediate result is reduced modulo 2**64 with
``MASK64``.
"""

import struct
from typing import Tuple

MASK64 = 0xFFFFFFFFFFFFFFFF
MASK32 = 0xFFFFFFFF

# Some primes between 2^63 and 2^64.
K0 = 0xC3A5C85C97CB3127
K1 = 0xB492B66FBE98F273
K2 = 0x9AE16A3B2F90404F
K3 = 0xC949D7C7509E6557

# Murmur-inspired multiplier for the 128 -> 64 bit fold
K_MUL = 0x9DDFEA08EB382D69


def _fetch64(data: bytes, offset: int) -> int:
    return struct.unpack_from("<Q", data, offset)[0]


def _fetch32(data: bytes, offset: int) -> int:
    return struct.unpack_from("<I", data, offset)[0]


def _rotate(value: int, shift: int) -> int:
    if shift == 0:
        return value
    return ((value >> shift) | (value << (64 - shift))) & MASK64


def _shift_mix(value: int) -> int:
    return value ^ (value >> 47)


def hash_len16(low: int, high: int) -> int:
    """Fold a 128-bit value (low, high) into 64 bits."""
    a = ((low ^ high) * K_MUL) & MASK64
    a ^= a >> 47
    b = ((high ^ a) * K_MUL) & MASK64
    b ^= b >> 47
    return (b * K_MUL) & MASK64


def _hash_len_0_to_16(data: bytes) -> int:
    length = len(data)
    if length > 8:
        a = _fetch64(data, 0)
        b = _fetch64(data, length - 8)
        return hash_len16(a, _rotate((b + length) & MASK64, length)) ^ b
    if length >= 4:
        a = _fetch32(data, 0)
        return hash_len16(length + (a << 3), _fetch32(data, length - 4))
    if length > 0:
        a = data[0]
        b = data[length >> 1]
        c = data[length - 1]
        y = (a + (b << 8)) & MASK32
        z = (length + (c << 2)) & MASK32
        return (_shift_mix(((y * K2) ^ (z * K3)) & MASK64) * K2) & MASK64
    return K2


def _hash_len_17_to_32(data: bytes) -> int:
    length = len(data)
    a = (_fetch64(data, 0) * K1) & MASK64
    b = _fetch64(data, 8)
    c = (_fetch64(data, length - 8) * K2) & MASK64
    d = (_fetch64(data, length - 16) * K0) & MASK64
    return hash_len16(
        (_rotate((a - b) & MASK64, 43) + _rotate(c, 30) + d) & MASK64,
        (a + _rotate(b ^ K3, 20) - c + length) & MASK64,
    )


def _weak_hash_len32_with_seeds(data: bytes, offset: int, a: int, b: int) -> Tuple[int, int]:
    """Return a 128-bit (low, high) hash of 32 bytes plus two seeds."""
    z = _fetch64(data, offset + 24)
    a = (a + _fetch64(data, offset)) & MASK64
    b = _rotate((b + a + z) & MASK64, 21)
    c = a
    a = (a + _fetch64(data, offset + 8)) & MASK64
    a = (a + _fetch64(data, offset + 16)) & MASK64
    b = (b + _rotate(a, 44)) & MASK64
    return (a + z) & MASK64, (b + c) & MASK64


def _hash_len_33_to_64(data: bytes) -> int:
    length = len(data)
    z = _fetch64(data, 24)
    a = (_fetch64(data, 0) + ((length + _fetch64(data, length - 16)) * K0)) & MASK64
    b = _rotate((a + z) & MASK64, 52)
    c = _rotate(a, 37)
    a = (a + _fetch64(data, 8)) & MASK64
    c = (c + _rotate(a, 7)) & MASK64
    a = (a + _fetch64(data, 16)) & MASK64
    vf = (a + z) & MASK64
    vs = (b + _rotate(a, 31) + c) & MASK64

    a = (_fetch64(data, 16) + _fetch64(data, length - 32)) & MASK64
    z = _fetch64(data, length - 8)
    b = _rotate((a + z) & MASK64, 52)
    c = _rotate(a, 37)
    a = (a + _fetch64(data, length - 24)) & MASK64
    c = (c + _rotate(a, 7)) & MASK64
    a = (a + _fetch64(data, length - 16)) & MASK64
    wf = (a + z) & MASK64
    ws = (b + _rotate(a, 31) + c) & MASK64

    r = _shift_mix((((vf + ws) * K2) + ((wf + vs) * K0)) & MASK64)
    return (_shift_mix((r * K0 + vs) & MASK64) * K2) & MASK64


def city_hash64(data: bytes) -> int:
    """Unseeded 64-bit CityHash of ``data``."""
    length = len(data)
    if length <= 32:
        if length <= 16:
            return _hash_len_0_to_16(data)
        return _hash_len_17_to_32(data)
    if length <= 64:
        return _hash_len_33_to_64(data)

    # For strings over 64 bytes we hash the end first, and then as we
    # loop we keep 56 bytes of state: v, w, x, y, and z.
    x = _fetch64(data, length - 40)
    y = (_fetch64(data, length - 16) + _fetch64(data, length - 56)) & MASK64
    z = hash_len16((_fetch64(data, length - 48) + length) & MASK64, _fetch64(data, length - 24))
    v = _weak_hash_len32_with_seeds(data, length - 64, length, z)
    w = _weak_hash_len32_with_seeds(data, length - 32, (y + K1) & MASK64, x)
    x = (x * K1 + _fetch64(data, 0)) & MASK64

    # Operate on 64-byte chunks, stopping before the (possibly partial) last one.
    remaining = (length - 1) & ~63
    offset = 0
    while True:
        x = (_rotate((x + y + v[0] + _fetch64(data, offset + 8)) & MASK64, 37) * K1) & MASK64
        y = (_rotate((y + v[1] + _fetch64(data, offset + 48)) & MASK64, 42) * K1) & MASK64
        x ^= w[1]
        y = (y + v[0] + _fetch64(data, offset + 40)) & MASK64
        z = (_rotate((z + w[0]) & MASK64, 33) * K1) & MASK64
        v = _weak_hash_len32_with_seeds(data, offset, (v[1] * K1) & MASK64, (x + w[0]) & MASK64)
        w = _weak_hash_len32_with_seeds(
            data, offset + 32, (z + w[1]) & MASK64, (y + _fetch64(data, offset + 16)) & MASK64
        )
        z, x = x, z
        offset += 64
        remaining -= 64
        if remaining == 0:
            break

    return hash_len16(
        (hash_len16(v[0], w[0]) + _shift_mix(y) * K1 + z) & MASK64,
        (hash_len16(v[1], w[1]) + x) & MASK64,
    )


def hash64(data: bytes, seed0: int, seed1: int) -> int:
    """Seeded 64-bit CityHash (``CityHash64WithSeeds``)."""
    return hash_len16((city_hash64(data) - seed0) & MASK64, seed1 & MASK64)
