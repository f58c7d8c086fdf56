"""
LPK Extraction - LPK 解包

功能：
- 普通 LPK: 原样解压后查找模型描述文件
- 加密 LPK (Live2DViewerEX, STM_1_0 / STD_1_0 / STD_2_0):
  逐条目解密、按内容识别扩展名、重命名并修复描述文件中的引用

解包结果::

    output_dir/
    ├── <模型名>.model3.json      # 最终描述文件
    ├── <hash>.moc3
    ├── <hash>.png
    └── ...
"""
from __future__ import annotations

import logging
import shutil
import zipfile
import zlib
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath, PureWindowsPath
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union

from .cipher import derive_key, lcg_xor
from .container import LpkContainer
from .descriptor import DEFAULT_MODEL_NAME, find_descriptor, resolve_descriptor
from .errors import DescriptorNotFoundError, LpkError
from .manifest import Manifest, SidecarConfig, is_manifest_entry, load_sidecar, locate_manifest
from .sniff import AssetKind, classify, detect_extension

logger = logging.getLogger(__name__)


# ============================================================================
# 常量
# ============================================================================

# Checked in order: ".bin3" must be stripped before ".bin"
HASHED_SUFFIXES = ('.bin3', '.bin')
HASHED_STEM_LENGTH = 32

_HEX_DIGITS = frozenset('0123456789abcdef')

RenameMap = Mapping[str, str]


def strip_hashed_suffix(name: str) -> Optional[str]:
    """Return ``name`` without its hashed-payload suffix, or None."""
    for suffix in HASHED_SUFFIXES:
        if name.endswith(suffix):
            return name[:-len(suffix)]
    return None


def is_hashed_entry(name: str) -> bool:
    """True for ``<32 hex chars>.bin3`` / ``<32 hex chars>.bin`` entry names"""
    stem = strip_hashed_suffix(name)
    if stem is None:
        return False
    return len(stem) == HASHED_STEM_LENGTH and all(c in _HEX_DIGITS for c in stem)


def _output_path(output_dir: Path, name: str) -> Path:
    parts = PurePosixPath(name.replace('\\', '/')).parts
    if not parts or parts[0] == '/' or '..' in parts or PureWindowsPath(name).drive:
        raise LpkError("Entry path escapes the output directory", entry=name)
    return output_dir.joinpath(*parts)


# ============================================================================
# 包类型
# ============================================================================

@dataclass(frozen=True)
class PlainPackage:
    """没有清单的普通 LPK"""
    kind = "plain"


@dataclass(frozen=True)
class EncryptedPackage:
    """带清单的 LPK; sidecar 仅 STM 格式存在"""
    manifest: Manifest
    sidecar: Optional[SidecarConfig] = None
    kind = "encrypted"


Package = Union[PlainPackage, EncryptedPackage]


def open_package(container: LpkContainer, container_path: Path) -> Package:
    """Decide once which extraction path applies to ``container``."""
    manifest = locate_manifest(container)
    if manifest is None:
        return PlainPackage()
    sidecar = load_sidecar(container_path) if manifest.requires_sidecar else None
    return EncryptedPackage(manifest=manifest, sidecar=sidecar)


@dataclass
class ExtractionReport:
    """解包结果"""
    descriptor: Path
    kind: str
    rename_map: RenameMap = field(default_factory=dict)
    asset_counts: Dict[AssetKind, int] = field(default_factory=dict)


# ============================================================================
# 条目解密
# ============================================================================

def decrypt_entries(
    container: LpkContainer,
    package: EncryptedPackage,
    output_dir: Path,
) -> RenameMap:
    """
    Decrypt and write every non-manifest entry.

    Returns:
        原条目名 -> 新文件名 (只读)
    """
    manifest = package.manifest
    model_id = manifest.model_id or ""
    rename_map: Dict[str, str] = {}

    for entry_name in container.list_entry_names():
        if is_manifest_entry(entry_name):
            continue

        hashed = is_hashed_entry(entry_name)
        data = container.read_entry(entry_name)
        if data is None:
            raise LpkError("Entry disappeared from archive", entry=entry_name)

        if manifest.encrypted and hashed:
            key = derive_key(model_id, entry_name, package.sidecar)
            data = lcg_xor(data, key)

        if hashed:
            out_name = f"{strip_hashed_suffix(entry_name)}.{detect_extension(data)}"
            rename_map[entry_name] = out_name
        else:
            out_name = entry_name

        out_path = _output_path(output_dir, out_name)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(data)
        logger.debug(f"{entry_name} -> {out_name} ({len(data)} bytes)")

    return MappingProxyType(rename_map)


def _count_assets(rename_map: RenameMap) -> Dict[AssetKind, int]:
    return dict(Counter(classify(name) for name in rename_map.values()))


# ============================================================================
# 解包入口
# ============================================================================

def _reset_output_dir(output_dir: Path):
    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)


def _extract_plain(container: LpkContainer, output_dir: Path) -> ExtractionReport:
    container.extract_all(output_dir)
    descriptor = find_descriptor(output_dir)
    if descriptor is None:
        raise DescriptorNotFoundError("No .model3.json or .model.json found in archive")
    return ExtractionReport(descriptor=descriptor, kind=PlainPackage.kind)


def _extract_encrypted(
    container: LpkContainer,
    package: EncryptedPackage,
    output_dir: Path,
    placeholder_name: str,
    keep_intermediate: bool,
) -> ExtractionReport:
    rename_map = decrypt_entries(container, package, output_dir)
    descriptor = resolve_descriptor(
        package.manifest,
        rename_map,
        output_dir,
        placeholder_name=placeholder_name,
        keep_intermediate=keep_intermediate,
    )
    return ExtractionReport(
        descriptor=descriptor,
        kind=EncryptedPackage.kind,
        rename_map=rename_map,
        asset_counts=_count_assets(rename_map),
    )


def extract_lpk_report(
    lpk_path: Path,
    output_dir: Path,
    *,
    placeholder_name: str = DEFAULT_MODEL_NAME,
    keep_intermediate: bool = False,
) -> ExtractionReport:
    """
    解包 LPK 文件

    ``output_dir`` is always wiped first; concurrent calls must use distinct
    output directories.

    Raises:
        LpkError: any failure, with a human-readable message
    """
    lpk_path = Path(lpk_path)
    output_dir = Path(output_dir).resolve()

    try:
        _reset_output_dir(output_dir)
        with LpkContainer(lpk_path) as container:
            package = open_package(container, lpk_path)
            logger.info(f"Extracting {package.kind} LPK {lpk_path} -> {output_dir}")
            if isinstance(package, EncryptedPackage):
                report = _extract_encrypted(
                    container, package, output_dir, placeholder_name, keep_intermediate,
                )
            else:
                report = _extract_plain(container, output_dir)
    except LpkError:
        raise
    except (OSError, zipfile.BadZipFile, zlib.error, NotImplementedError) as e:
        raise LpkError(f"Extraction of {lpk_path} failed: {e}")

    logger.info(f"Model descriptor: {report.descriptor}")
    return report


def extract_lpk(
    lpk_path: Path,
    output_dir: Path,
    *,
    placeholder_name: str = DEFAULT_MODEL_NAME,
    keep_intermediate: bool = False,
) -> Path:
    """Extract ``lpk_path`` into ``output_dir`` and return the descriptor path."""
    report = extract_lpk_report(
        lpk_path,
        output_dir,
        placeholder_name=placeholder_name,
        keep_intermediate=keep_intermediate,
    )
    return report.descriptor


__all__ = [
    "HASHED_SUFFIXES",
    "RenameMap",
    "strip_hashed_suffix",
    "is_hashed_entry",
    "PlainPackage",
    "EncryptedPackage",
    "Package",
    "open_package",
    "ExtractionReport",
    "decrypt_entries",
    "extract_lpk_report",
    "extract_lpk",
]
