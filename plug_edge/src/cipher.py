"""
Autokey XOR stream cipher and length-prefix framing for the plug protocol.

HS110-class plugs obscure their JSON payloads with a one-byte autokey XOR
cipher: the key starts at 171 for every message and is replaced by each
ciphertext byte as it is produced. On TCP each encrypted message is preceded
by its length as a 4-byte big-endian unsigned integer.

Both directions are binary-safe and length-preserving; ``decrypt`` is the
exact inverse of ``encrypt`` for every byte sequence, including ``b""``.

CHANGELOG:
- 2026-10-09: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import struct

INITIAL_KEY: int = 171
"""Key byte every encrypt/decrypt call starts from."""

HEADER_SIZE: int = 4
"""Size in bytes of the big-endian length prefix."""

_HEADER = struct.Struct(">I")


def encrypt(plaintext: bytes) -> bytes:
    """Encrypt *plaintext* with the autokey XOR cipher.

    Args:
        plaintext: Raw bytes to encrypt.

    Returns:
        Ciphertext of the same length.
    """
    key = INITIAL_KEY
    out = bytearray(len(plaintext))
    for idx, byte in enumerate(plaintext):
        key ^= byte
        out[idx] = key
    return bytes(out)


def decrypt(ciphertext: bytes) -> bytes:
    """Decrypt *ciphertext* produced by :func:`encrypt`.

    Args:
        ciphertext: Raw encrypted bytes.

    Returns:
        Plaintext of the same length.
    """
    key = INITIAL_KEY
    out = bytearray(len(ciphertext))
    for idx, byte in enumerate(ciphertext):
        out[idx] = key ^ byte
        key = byte
    return bytes(out)


def frame(payload: bytes) -> bytes:
    """Encrypt *payload* and prefix it with its 4-byte big-endian length."""
    encrypted = encrypt(payload)
    return _HEADER.pack(len(encrypted)) + encrypted


def unpack_length(header: bytes) -> int:
    """Decode the declared body length from the first 4 bytes of *header*."""
    return _HEADER.unpack_from(header)[0]
