"""
Content sniffing for decrypted LPK payloads.

Hashed entries carry no usable file name, so the output extension is chosen
from the payload itself. Binary magic numbers are checked first: binary data
can happen to be valid UTF-8, so text sniffing only runs once every magic
check has failed.
"""
from __future__ import annotations

from enum import Enum


# ============================================================================
# Magic numbers
# ============================================================================

PNG_MAGIC = b'\x89PNG'
MOC3_MAGIC = b'MOC3'
MOC_MAGIC = b'moc'
RIFF_MAGIC = b'RIFF'
OGG_MAGIC = b'OggS'
ID3_MAGIC = b'ID3'
JPEG_MAGIC = b'\xff\xd8\xff'

MOTION_MARKER = '# Live2D'

DEFAULT_EXTENSION = 'bin'

# Ordered: first match wins
_BINARY_SIGNATURES = (
    (PNG_MAGIC, 'png'),
    (MOC3_MAGIC, 'moc3'),
    (MOC_MAGIC, 'moc'),
    (RIFF_MAGIC, 'wav'),
    (OGG_MAGIC, 'ogg'),
)


class AssetKind(Enum):
    """Coarse asset category for an extension"""
    IMAGE = "image"
    MODEL = "model"
    AUDIO = "audio"
    TEXT = "text"
    MOTION = "motion"
    BINARY = "binary"


EXTENSION_KINDS = {
    'png': AssetKind.IMAGE,
    'jpg': AssetKind.IMAGE,
    'moc3': AssetKind.MODEL,
    'moc': AssetKind.MODEL,
    'wav': AssetKind.AUDIO,
    'ogg': AssetKind.AUDIO,
    'mp3': AssetKind.AUDIO,
    'json': AssetKind.TEXT,
    'mtn': AssetKind.MOTION,
    'bin': AssetKind.BINARY,
}


def _is_mp3(data: bytes) -> bool:
    # MPEG frame sync (11 set bits) or an ID3v2 tag
    if data[0] == 0xFF and (data[1] & 0xE0) == 0xE0:
        return True
    return data.startswith(ID3_MAGIC)


def _sniff_text(data: bytes) -> str | None:
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError:
        return None
    trimmed = text.lstrip()
    if trimmed.startswith(('{', '[')):
        return 'json'
    if trimmed.startswith(MOTION_MARKER):
        return 'mtn'
    return None


def detect_extension(data: bytes) -> str:
    """Return the file extension (without dot) matching the payload."""
    if len(data) >= 4:
        for magic, ext in _BINARY_SIGNATURES:
            if data.startswith(magic):
                return ext
        if _is_mp3(data):
            return 'mp3'
        if data.startswith(JPEG_MAGIC):
            return 'jpg'

    return _sniff_text(data) or DEFAULT_EXTENSION


def classify(name: str) -> AssetKind:
    """Asset kind of an extracted file, by its extension"""
    ext = name.rsplit('.', 1)[-1].lower() if '.' in name else ''
    return EXTENSION_KINDS.get(ext, AssetKind.BINARY)


__all__ = [
    "AssetKind",
    "EXTENSION_KINDS",
    "DEFAULT_EXTENSION",
    "detect_extension",
    "classify",
]
