"""
ModServe 数据模型包

包含配置模型和 API 模型定义。
"""

from modserve.models.config import (
    HTTPConfig,
    DatabaseConfig,
    FeedConfig,
    ServerConfig,
)
from modserve.models.api import (
    ReleaseType,
    MinecraftRecord,
    ForgeRecord,
    ModEntry,
    BuildManifest,
    PackManifest,
)

__all__ = [
    # 配置模型
    "HTTPConfig",
    "DatabaseConfig",
    "FeedConfig",
    "ServerConfig",
    # API 模型
    "ReleaseType",
    "MinecraftRecord",
    "ForgeRecord",
    "ModEntry",
    "BuildManifest",
    "PackManifest",
]
