"""
Extraction Settings - 解包配置

保存在 JSON 文件中，供命令行使用::

    {
        "output_root": "models",
        "placeholder_name": "model",
        "log_level": "INFO",
        "keep_intermediate": false
    }
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


@dataclass
class ExtractSettings:
    """解包配置"""
    output_root: str = "models"             # 每个模型解包到 <output_root>/<lpk 文件名>
    placeholder_name: str = "model"         # 清单无模型名时的描述文件名
    log_level: str = "INFO"
    keep_intermediate: bool = False         # 保留解密后的原始描述文件

    def output_dir_for(self, lpk_path: Path) -> Path:
        """Output directory dedicated to one package"""
        return Path(self.output_root) / Path(lpk_path).stem

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExtractSettings':
        if not isinstance(data, dict):
            raise ValueError("Settings must be a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown settings: {', '.join(sorted(unknown))}")
        values = {k: v for k, v in data.items() if k in known}
        for f in fields(cls):
            if f.name in values and not isinstance(values[f.name], type(f.default)):
                raise ValueError(
                    f"Setting {f.name!r} must be {type(f.default).__name__}, "
                    f"got {type(values[f.name]).__name__}"
                )
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> 'ExtractSettings':
        return cls.from_dict(json.loads(json_str))

    def save(self, path: Path) -> None:
        """保存到文件"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())

    @classmethod
    def load(cls, path: Path) -> 'ExtractSettings':
        """从文件加载; 文件不存在时返回默认配置"""
        path = Path(path)
        if not path.exists():
            return cls()
        with open(path, 'r', encoding='utf-8') as f:
            return cls.from_json(f.read())


__all__ = ["ExtractSettings"]
