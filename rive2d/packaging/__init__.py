"""
rive2d Packaging Module
LPK 模型包解包系统

包含:
- lpk: 解包入口与条目解密流水线
- manifest: 清单与外部 config.json
- cipher: 密钥派生与 LCG XOR 流加密
- sniff: 按文件头识别资源类型
- descriptor: 模型描述文件定位与引用重写
- container: ZIP 容器读取
- settings: 解包配置
"""

from .errors import (
    LpkError,
    ManifestError,
    DescriptorNotFoundError,
)

from .sniff import (
    AssetKind,
    detect_extension,
    classify,
)

from .cipher import (
    CHUNK_SIZE,
    string_hash,
    derive_key,
    lcg_xor,
)

from .container import LpkContainer

from .manifest import (
    MANIFEST_NAME,
    Costume,
    Character,
    Manifest,
    SidecarConfig,
    locate_manifest,
    load_sidecar,
)

from .descriptor import (
    DESCRIPTOR_SUFFIXES,
    find_descriptor,
    sanitize_filename,
    rewrite_references,
    resolve_descriptor,
    read_descriptor,
)

from .lpk import (
    is_hashed_entry,
    PlainPackage,
    EncryptedPackage,
    open_package,
    ExtractionReport,
    decrypt_entries,
    extract_lpk,
    extract_lpk_report,
)

from .settings import ExtractSettings

__all__ = [
    # Errors
    'LpkError',
    'ManifestError',
    'DescriptorNotFoundError',
    # Sniffing
    'AssetKind',
    'detect_extension',
    'classify',
    # Cipher
    'CHUNK_SIZE',
    'string_hash',
    'derive_key',
    'lcg_xor',
    # Container / Manifest
    'LpkContainer',
    'MANIFEST_NAME',
    'Costume',
    'Character',
    'Manifest',
    'SidecarConfig',
    'locate_manifest',
    'load_sidecar',
    # Descriptor
    'DESCRIPTOR_SUFFIXES',
    'find_descriptor',
    'sanitize_filename',
    'rewrite_references',
    'resolve_descriptor',
    'read_descriptor',
    # Extraction
    'is_hashed_entry',
    'PlainPackage',
    'EncryptedPackage',
    'open_package',
    'ExtractionReport',
    'decrypt_entries',
    'extract_lpk',
    'extract_lpk_report',
    # Settings
    'ExtractSettings',
]
