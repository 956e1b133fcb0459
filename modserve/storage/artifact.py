"""
内容寻址文件存储

上传内容按 MD5 寻址，写入 <storage_root>/<category>/<md5>，只写一次。
"""

import hashlib
import os
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import aiofiles
from loguru import logger

from modserve.exceptions import (
    ConfigError,
    NotFoundError,
    StorageError,
    ValidationError,
)

LOGO = "logo"
FILE = "file"
CATEGORIES = (LOGO, FILE)

_MEDIA_TYPE = re.compile(r"^[a-z0-9][a-z0-9!#$&^_.+-]*/[a-z0-9][a-z0-9!#$&^_.+-]*$")


@dataclass(frozen=True)
class Artifact:
    """已存储的文件引用"""

    md5: str
    content_type: str
    category: str

    @property
    def relative_path(self) -> str:
        return f"{self.category}/{self.md5}"


def content_hash(content: bytes) -> str:
    """计算内容的 MD5 值"""
    return hashlib.md5(content).hexdigest()


def parse_media_type(declared: Optional[str]) -> str:
    """
    规范化声明的媒体类型

    去掉参数（如 charset），转为小写；无法解析时抛出 ValidationError。
    """
    if not declared:
        raise ValidationError("缺少媒体类型")

    media_type = declared.split(";", 1)[0].strip().lower()
    if not _MEDIA_TYPE.match(media_type):
        raise ValidationError(
            f"无法解析的媒体类型: {declared}", context={"media_type": declared}
        )
    return media_type


def absolute_path(
    md5: str, storage_root: Union[str, Path, None], category: str
) -> Path:
    """根据哈希推导文件的绝对路径"""
    if not storage_root:
        raise ConfigError("未配置存储目录")
    if category not in CATEGORIES:
        raise ValidationError(f"未知的文件类别: {category}")
    return Path(storage_root).resolve() / category / md5


class ArtifactStore:
    """内容寻址文件存储"""

    def __init__(self, storage_root: Union[str, Path, None]):
        self.storage_root = storage_root

    def absolute_path(self, md5: str, category: str) -> Path:
        return absolute_path(md5, self.storage_root, category)

    async def put(
        self, content: bytes, declared_media_type: str, category: str
    ) -> Artifact:
        """
        写入文件

        Args:
            content: 文件内容
            declared_media_type: 上传时声明的媒体类型
            category: 文件类别（logo / file）

        Returns:
            Artifact: 哈希与内容类型
        """
        if not content:
            raise ValidationError("上传内容为空")

        content_type = parse_media_type(declared_media_type)
        md5 = content_hash(content)
        path = self.absolute_path(md5, category)

        if await self._is_valid(path, md5):
            logger.debug(f"[存储] {category}/{md5} 已存在且校验通过")
            return Artifact(md5=md5, content_type=content_type, category=category)

        try:
            os.makedirs(path.parent, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"无法创建目录: {path.parent}", context={"path": str(path.parent)}
            ) from e

        # 先写临时文件再重命名，重复写入不会破坏已有内容
        temp_path = path.with_name(f"{md5}.{uuid.uuid4().hex}.tmp")
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(content)
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(
                f"无法写入文件: {path}", context={"path": str(path)}
            ) from e

        logger.info(f"[存储] 已写入 {category}/{md5} ({len(content)} 字节)")
        return Artifact(md5=md5, content_type=content_type, category=category)

    async def get(self, path: Union[str, Path]) -> bytes:
        """读取文件内容"""
        path = Path(path)
        if not path.is_file():
            raise NotFoundError("存储文件不存在", context={"path": str(path)})

        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise StorageError(
                f"无法读取文件: {path}", context={"path": str(path)}
            ) from e

    async def get_artifact(self, artifact: Artifact) -> bytes:
        return await self.get(self.absolute_path(artifact.md5, artifact.category))

    @staticmethod
    async def _is_valid(path: Path, expected_md5: str) -> bool:
        if not path.is_file():
            return False

        md5 = hashlib.md5()
        try:
            async with aiofiles.open(path, "rb") as f:
                while True:
                    data = await f.read(65536)
                    if not data:
                        break
                    md5.update(data)
        except OSError:
            return False
        return md5.hexdigest() == expected_md5
