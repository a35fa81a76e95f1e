"""Stream ciphers protecting QAR metadata and payloads."""

from .position_cipher import PositionCipher
from .rotor_cipher import RotorCipher
from .stream import CipherReader

__all__ = ["PositionCipher", "RotorCipher", "CipherReader"]
