"""
LPK key derivation and stream cipher.

Keys are Java ``String.hashCode`` values of a per-entry key string. The cipher
is an LCG keystream XORed over the payload, reseeded every 1024 bytes, so the
same call both encrypts and decrypts.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .manifest import SidecarConfig


# ============================================================================
# 常量
# ============================================================================

CHUNK_SIZE = 1024

LCG_MULTIPLIER = 214013
LCG_INCREMENT = 2531011

_INT32_MASK = 0xFFFFFFFF


def string_hash(s: str) -> int:
    """Java ``String.hashCode`` sign-extended to a Python int."""
    h = 0
    data = s.encode('utf-16-le', 'surrogatepass')
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & _INT32_MASK
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def key_string(
    model_id: str,
    entry_name: str,
    sidecar: Optional[SidecarConfig] = None,
) -> str:
    """Build the string hashed into an entry key.

    STM packages (``sidecar`` given) mix in the external config fields;
    STD packages only use the model id and entry name.
    """
    if sidecar is not None:
        return f"{model_id}{sidecar.file_id}{entry_name}{sidecar.meta_data}"
    return f"{model_id}{entry_name}"


def derive_key(
    model_id: str,
    entry_name: str,
    sidecar: Optional[SidecarConfig] = None,
) -> int:
    return string_hash(key_string(model_id, entry_name, sidecar))


def lcg_xor(data: bytes, key: int) -> bytes:
    """XOR ``data`` with the LCG keystream seeded by ``key``.

    The state restarts from ``key`` at every CHUNK_SIZE boundary.
    """
    out = bytearray(len(data))
    for start in range(0, len(data), CHUNK_SIZE):
        state = key
        for i in range(start, min(start + CHUNK_SIZE, len(data))):
            state = ((LCG_INCREMENT + LCG_MULTIPLIER * state) >> 16) & 0xFFFF & _INT32_MASK
            out[i] = data[i] ^ (state & 0xFF)
    return bytes(out)


__all__ = [
    "CHUNK_SIZE",
    "string_hash",
    "key_string",
    "derive_key",
    "lcg_xor",
]
