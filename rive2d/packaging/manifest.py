"""
LPK Manifest - 清单与外部配置

功能：
- 在容器中查找清单 (config.mlve 或其 MD5 散列名)
- 解析角色/服装结构
- 读取 STM 格式所需的外部 config.json

清单格式::

    {
        "type": "STD_2_0",
        "encrypt": "true",
        "id": "...",
        "name": "...",
        "list": [
            {"avatar": "...", "costume": [{"name": "...", "path": "<hash>.bin3"}]}
        ]
    }
"""
from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from .errors import ManifestError

logger = logging.getLogger(__name__)


# ============================================================================
# 常量
# ============================================================================

MANIFEST_NAME = "config.mlve"
MANIFEST_HASH = hashlib.md5(MANIFEST_NAME.encode('utf-8')).hexdigest()

SIDECAR_NAME = "config.json"

# Format types starting with this prefix need the external config.json
SIDECAR_FORMAT_PREFIX = "STM"


def manifest_candidates() -> Tuple[str, ...]:
    """Entry names tried when locating the manifest, in lookup order."""
    return (MANIFEST_NAME, MANIFEST_HASH, f"{MANIFEST_HASH}.bin")


def is_manifest_entry(name: str) -> bool:
    return name in manifest_candidates()


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ManifestError(f"Manifest field '{key}' must be a string")
    return value


def _str(data: Dict[str, Any], key: str) -> str:
    return _optional_str(data, key) or ""


def _list(data: Dict[str, Any], key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ManifestError(f"Manifest field '{key}' must be a list")
    return value


def _object(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ManifestError(f"{what} must be an object")
    return value


# ============================================================================
# 数据结构
# ============================================================================

@dataclass(frozen=True)
class Costume:
    """服装条目"""
    path: str = ""                      # 容器内条目名 (通常为 <hash>.bin3)
    name: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Costume':
        d = _object(d, "Costume")
        return cls(path=_str(d, 'path'), name=_str(d, 'name'))


@dataclass(frozen=True)
class Character:
    """角色条目"""
    costumes: Tuple[Costume, ...] = ()
    avatar: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Character':
        d = _object(d, "Character")
        return cls(
            costumes=tuple(Costume.from_dict(c) for c in _list(d, 'costume')),
            avatar=_str(d, 'avatar'),
        )


@dataclass(frozen=True)
class Manifest:
    """LPK 清单"""
    format_type: Optional[str] = None   # STM_1_0 / STD_1_0 / STD_2_0
    encrypted: bool = False
    model_id: Optional[str] = None      # 参与密钥派生
    model_name: Optional[str] = None
    characters: Tuple[Character, ...] = field(default_factory=tuple)

    @property
    def requires_sidecar(self) -> bool:
        return (self.format_type or "").startswith(SIDECAR_FORMAT_PREFIX)

    def costumes(self) -> Iterator[Costume]:
        """All costumes in document order"""
        for character in self.characters:
            yield from character.costumes

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.format_type,
            'encrypt': 'true' if self.encrypted else 'false',
            'id': self.model_id,
            'name': self.model_name,
            'list': [
                {
                    'avatar': ch.avatar,
                    'costume': [{'name': c.name, 'path': c.path} for c in ch.costumes],
                }
                for ch in self.characters
            ],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Manifest':
        d = _object(d, "Manifest")
        return cls(
            format_type=_optional_str(d, 'type'),
            encrypted=_optional_str(d, 'encrypt') == 'true',
            model_id=_optional_str(d, 'id'),
            model_name=_optional_str(d, 'name'),
            characters=tuple(Character.from_dict(c) for c in _list(d, 'list')),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Manifest':
        try:
            parsed = json.loads(data.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ManifestError(f"Manifest is not valid JSON: {e}")
        return cls.from_dict(parsed)


@dataclass(frozen=True)
class SidecarConfig:
    """STM 格式的外部 config.json"""
    file_id: str = ""
    meta_data: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'SidecarConfig':
        d = _object(d, "Sidecar config")
        return cls(file_id=_str(d, 'fileId'), meta_data=_str(d, 'metaData'))


# ============================================================================
# 查找与加载
# ============================================================================

def locate_manifest(container) -> Optional[Manifest]:
    """Return the first manifest candidate that exists and parses.

    ``None`` means the package is a plain (unencrypted) LPK. A malformed
    manifest is treated the same as a missing one.
    """
    for name in manifest_candidates():
        data = container.read_entry(name)
        if data is None:
            continue
        try:
            manifest = Manifest.from_bytes(data)
        except ManifestError as e:
            # TODO: report malformed manifests separately instead of falling back
            logger.debug(f"Ignoring manifest candidate {name}: {e}")
            continue
        logger.debug(f"Manifest found at {name}")
        return manifest
    return None


def load_sidecar(container_path: Path) -> SidecarConfig:
    """Load ``config.json`` beside the container.

    Missing or unreadable files yield an empty config; keys derived from it
    are incomplete but extraction still proceeds.
    """
    sidecar_path = Path(container_path).parent / SIDECAR_NAME
    if sidecar_path.exists():
        try:
            with open(sidecar_path, 'r', encoding='utf-8') as f:
                config = SidecarConfig.from_dict(json.load(f))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ManifestError) as e:
            logger.warning(f"Failed to read {sidecar_path}: {e}")
        else:
            logger.info(f"Loaded external {SIDECAR_NAME} for STM decryption")
            return config
    logger.warning(f"No {SIDECAR_NAME} found for STM format LPK, decryption may fail")
    return SidecarConfig()


__all__ = [
    "MANIFEST_NAME",
    "MANIFEST_HASH",
    "SIDECAR_NAME",
    "Costume",
    "Character",
    "Manifest",
    "SidecarConfig",
    "manifest_candidates",
    "is_manifest_entry",
    "locate_manifest",
    "load_sidecar",
]
