"""
Shared fixtures: build LPK archives on the fly.
"""
import json
import zipfile
from pathlib import Path
from typing import Dict, Optional

import pytest


MODEL_ID = "model-1234"

DESCRIPTOR_ENTRY = "0123456789abcdef0123456789abcdef.bin3"
TEXTURE_ENTRY = "fedcba9876543210fedcba9876543210.bin"
MOC_ENTRY = "00112233445566778899aabbccddeeff.bin"

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + bytes(range(64))
MOC3_BYTES = b'MOC3' + bytes(2000)


def write_zip(path: Path, entries: Dict[str, bytes], compression: int = zipfile.ZIP_STORED) -> Path:
    with zipfile.ZipFile(path, 'w', compression=compression) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def corrupt_entry(path: Path, name: str) -> Path:
    """Overwrite the first compressed byte of a deflated entry with a reserved block type"""
    with zipfile.ZipFile(path) as zf:
        offset = zf.getinfo(name).header_offset
    raw = bytearray(path.read_bytes())
    name_len = int.from_bytes(raw[offset + 26:offset + 28], 'little')
    extra_len = int.from_bytes(raw[offset + 28:offset + 30], 'little')
    raw[offset + 30 + name_len + extra_len] = 0xFF
    path.write_bytes(bytes(raw))
    return path


def manifest_bytes(
    *,
    costume_path: str = DESCRIPTOR_ENTRY,
    name: Optional[str] = "Test Model",
    format_type: str = "STD_2_0",
    encrypt: str = "true",
    model_id: str = MODEL_ID,
) -> bytes:
    data = {
        "type": format_type,
        "encrypt": encrypt,
        "id": model_id,
        "list": [{"avatar": "", "costume": [{"name": "default", "path": costume_path}]}],
    }
    if name is not None:
        data["name"] = name
    return json.dumps(data).encode('utf-8')


def modern_descriptor() -> bytes:
    return json.dumps({
        "Version": 3,
        "FileReferences": {
            "Moc": MOC_ENTRY,
            "Textures": [TEXTURE_ENTRY],
        },
    }).encode('utf-8')


@pytest.fixture
def encrypted_lpk(tmp_path):
    """Factory for an encrypted STD/STM package with descriptor, texture and moc."""
    from rive2d.packaging.cipher import derive_key, lcg_xor

    def build(
        *,
        name: Optional[str] = "Test Model",
        format_type: str = "STD_2_0",
        sidecar=None,
        descriptor: Optional[bytes] = None,
        extra: Optional[Dict[str, bytes]] = None,
        manifest_entry: str = "config.mlve",
        compression: int = zipfile.ZIP_STORED,
    ) -> Path:
        plain = {
            DESCRIPTOR_ENTRY: descriptor if descriptor is not None else modern_descriptor(),
            TEXTURE_ENTRY: PNG_BYTES,
            MOC_ENTRY: MOC3_BYTES,
        }
        entries = {manifest_entry: manifest_bytes(name=name, format_type=format_type)}
        for entry, data in plain.items():
            entries[entry] = lcg_xor(data, derive_key(MODEL_ID, entry, sidecar))
        entries.update(extra or {})
        src_dir = tmp_path / "src"
        src_dir.mkdir(exist_ok=True)
        return write_zip(src_dir / "model.lpk", entries, compression=compression)

    return build
