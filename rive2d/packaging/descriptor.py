"""
Model descriptor resolution - 模型描述文件定位与重写

Plain packages already contain a ``*.model3.json`` / ``*.model.json``; it only
has to be found. Encrypted packages name their descriptor by a costume path in
the manifest. Once decrypted, its references to hashed entry names are
rewritten to the sniffed output names and it is saved under the model name.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

from .errors import DescriptorNotFoundError, LpkError
from .manifest import Manifest

logger = logging.getLogger(__name__)


MODERN_SUFFIX = ".model3.json"      # Cubism 3/4
LEGACY_SUFFIX = ".model.json"       # Cubism 2
DESCRIPTOR_SUFFIXES = (MODERN_SUFFIX, LEGACY_SUFFIX)

# Keys only present in Cubism 3+ descriptors
_MODERN_MARKERS = ('"FileReferences"', '"Version"')

DEFAULT_MODEL_NAME = "model"


def is_descriptor_name(name: str) -> bool:
    return name.endswith(DESCRIPTOR_SUFFIXES)


def find_descriptor(directory: Path) -> Optional[Path]:
    """Depth-first search for the first descriptor file under ``directory``."""
    try:
        children = sorted(Path(directory).iterdir(), key=lambda p: p.name)
    except OSError:
        return None
    for child in children:
        if child.is_dir():
            found = find_descriptor(child)
            if found is not None:
                return found
        elif is_descriptor_name(child.name):
            return child
    return None


def descriptor_suffix(text: str) -> str:
    """Pick the descriptor suffix from the Cubism generation of ``text``"""
    if any(marker in text for marker in _MODERN_MARKERS):
        return MODERN_SUFFIX
    return LEGACY_SUFFIX


def sanitize_filename(name: Optional[str], placeholder: str = DEFAULT_MODEL_NAME) -> str:
    """Replace anything but alphanumerics, ``-``, ``_`` and ``.`` with ``_``."""
    if not name:
        name = placeholder
    return ''.join(c if c.isalnum() or c in '-_.' else '_' for c in name)


def rewrite_references(text: str, rename_map: Mapping[str, str]) -> str:
    # Longest names first so no key is replaced inside a longer one
    for old_name in sorted(rename_map, key=len, reverse=True):
        text = text.replace(old_name, rename_map[old_name])
    return text


def resolve_descriptor(
    manifest: Manifest,
    rename_map: Mapping[str, str],
    output_dir: Path,
    placeholder_name: str = DEFAULT_MODEL_NAME,
    keep_intermediate: bool = False,
) -> Path:
    """
    Finalize the model descriptor of a decrypted package.

    Args:
        manifest: 已解析的清单
        rename_map: 原条目名 -> 输出文件名
        output_dir: 解包目录
        placeholder_name: 清单没有模型名时使用的文件名
        keep_intermediate: 保留中间文件 (<hash>.json)

    Returns:
        最终描述文件路径
    """
    output_dir = Path(output_dir)
    for costume in manifest.costumes():
        renamed = rename_map.get(costume.path)
        if renamed is None:
            continue
        source = output_dir / renamed
        if not source.is_file():
            continue

        try:
            text = source.read_bytes().decode('utf-8')
        except UnicodeDecodeError as e:
            raise LpkError(f"Model descriptor is not UTF-8 text: {e}", entry=costume.path)
        text = rewrite_references(text, rename_map)

        filename = sanitize_filename(manifest.model_name, placeholder_name) + descriptor_suffix(text)
        target = output_dir / filename
        target.write_bytes(text.encode('utf-8'))

        if not keep_intermediate and source.resolve() != target.resolve():
            source.unlink()

        logger.info(f"Model descriptor written: {target}")
        return target

    raise DescriptorNotFoundError("No model descriptor found in encrypted LPK")


def read_descriptor(path: Path) -> str:
    """读取模型描述文件内容"""
    path = Path(path)
    if not path.exists():
        raise LpkError("Model file not found")
    if path.suffix != '.json':
        raise LpkError("Invalid model file format")
    return path.read_text(encoding='utf-8')


__all__ = [
    "MODERN_SUFFIX",
    "LEGACY_SUFFIX",
    "DESCRIPTOR_SUFFIXES",
    "is_descriptor_name",
    "find_descriptor",
    "descriptor_suffix",
    "sanitize_filename",
    "rewrite_references",
    "resolve_descriptor",
    "read_descriptor",
]
