"""
API 数据模型

定义上游版本源记录与启动器清单文档的数据类。
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, List, Dict, Any


class ReleaseType(Enum):
    """Minecraft 发布类型"""

    RELEASE = "release"
    SNAPSHOT = "snapshot"
    OLD_BETA = "old_beta"
    OLD_ALPHA = "old_alpha"


@dataclass
class MinecraftRecord:
    """
    上游 Minecraft 版本记录。
    """

    name: str
    type: ReleaseType = ReleaseType.RELEASE

    @classmethod
    def from_mojang(cls, data: dict) -> "MinecraftRecord":
        """
        将 Mojang 版本清单中的条目转换为 MinecraftRecord 对象。
        """
        return cls(
            name=data.get("id", ""),
            type=ReleaseType(data.get("type", "release")),
        )


@dataclass
class ForgeRecord:
    """
    上游 Forge 版本记录。
    """

    name: str
    minecraft: str

    @classmethod
    def from_maven(cls, mc_version: str, full_version: str) -> "ForgeRecord":
        """
        将 maven-metadata.json 中的完整版本号（如 1.12.2-14.23.5.2847）拆分。
        """
        prefix = f"{mc_version}-"
        number = full_version[len(prefix):] if full_version.startswith(prefix) else full_version
        # 旧版本带有 -1.7.10 之类的后缀
        suffix = f"-{mc_version}"
        if number.endswith(suffix):
            number = number[: -len(suffix)]
        return cls(name=number, minecraft=mc_version)


@dataclass
class ModEntry:
    """构建清单中的模组条目"""

    name: str
    version: str
    md5: Optional[str] = None
    url: Optional[str] = None


@dataclass
class BuildManifest:
    """构建清单"""

    minecraft: Optional[str]
    forge: Optional[str] = None
    java: Optional[str] = None
    memory: Optional[str] = None
    mods: List[ModEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PackManifest:
    """整合包清单"""

    name: str
    display_name: str
    url: Optional[str] = None
    logo: Optional[str] = None
    logo_md5: Optional[str] = None
    recommended: Optional[str] = None
    latest: Optional[str] = None
    builds: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
