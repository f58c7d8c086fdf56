"""
LPK container access - ZIP 容器读取

Thin wrapper over :mod:`zipfile` exposing only what the extraction pipeline
needs: ordered entry names, entry bytes by name, and a verbatim extract.
"""
from __future__ import annotations

import logging
import zipfile
import zlib
from pathlib import Path
from typing import List, Optional

from .errors import LpkError

logger = logging.getLogger(__name__)

# zlib.error: corrupt deflate stream; NotImplementedError: unsupported compression
_READ_ERRORS = (zipfile.BadZipFile, zlib.error, NotImplementedError, OSError, RuntimeError)


class LpkContainer:
    """
    LPK 容器

    Usage::

        with LpkContainer(path) as container:
            for name in container.list_entry_names():
                data = container.read_entry(name)
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._zip: Optional[zipfile.ZipFile] = None

    def open(self):
        """打开 ZIP 文件"""
        if self._zip is not None:
            return
        try:
            self._zip = zipfile.ZipFile(self.path, 'r')
        except FileNotFoundError:
            raise LpkError(f"LPK file not found: {self.path}")
        except zipfile.BadZipFile as e:
            raise LpkError(f"Not a valid LPK archive: {self.path}: {e}")
        except OSError as e:
            raise LpkError(f"Cannot open {self.path}: {e}")
        logger.debug(f"Opened {self.path} ({len(self._zip.namelist())} entries)")

    def close(self):
        """关闭文件句柄"""
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.close()

    @property
    def archive(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise RuntimeError("Container not opened")
        return self._zip

    def list_entry_names(self) -> List[str]:
        """File entry names in archive order (directory entries skipped)"""
        return [info.filename for info in self.archive.infolist() if not info.is_dir()]

    def read_entry(self, name: str) -> Optional[bytes]:
        """读取条目内容; 不存在时返回 None"""
        try:
            return self.archive.read(name)
        except KeyError:
            return None
        except _READ_ERRORS as e:
            raise LpkError(f"Failed to read entry: {e}", entry=name)

    def extract_all(self, output_dir: Path):
        """Extract every entry verbatim under ``output_dir``"""
        try:
            self.archive.extractall(output_dir)
        except _READ_ERRORS as e:
            raise LpkError(f"Failed to extract {self.path}: {e}")


__all__ = ["LpkContainer"]
