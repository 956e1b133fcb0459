"""
配置模型

服务端、数据库与上游版本源的配置数据类。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from modserve.exceptions import ConfigValidationError

MINECRAFT_MANIFEST_URL = (
    "https://launchermeta.mojang.com/mc/game/version_manifest.json"
)
FORGE_METADATA_URL = (
    "https://files.minecraftforge.net/net/minecraftforge/forge/maven-metadata.json"
)


@dataclass
class HTTPConfig:
    """HTTP 服务配置"""

    host: str = "0.0.0.0"
    port: int = 8080
    public_url: str = "http://localhost:8080"
    storage: str = "storage"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HTTPConfig":
        port = data.get("port", 8080)
        if isinstance(port, bool) or not isinstance(port, int) or port <= 0:
            raise ConfigValidationError(
                f"无效的端口: {port}", context={"field": "server.port"}
            )

        storage = data.get("storage", "storage")
        if not storage:
            raise ConfigValidationError(
                "存储目录不能为空", context={"field": "server.storage"}
            )

        return cls(
            host=data.get("host", "0.0.0.0"),
            port=port,
            public_url=str(data.get("public_url", f"http://localhost:{port}")).rstrip(
                "/"
            ),
            storage=str(storage),
        )


@dataclass
class DatabaseConfig:
    """数据库配置"""

    url: str = "sqlite+aiosqlite:///modserve.db"
    echo: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatabaseConfig":
        url = data.get("url", "sqlite+aiosqlite:///modserve.db")
        if not url:
            raise ConfigValidationError(
                "数据库地址不能为空", context={"field": "database.url"}
            )
        return cls(url=url, echo=bool(data.get("echo", False)))


@dataclass
class FeedConfig:
    """上游版本源配置"""

    minecraft_url: str = MINECRAFT_MANIFEST_URL
    forge_url: str = FORGE_METADATA_URL
    timeout: float = 30

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedConfig":
        return cls(
            minecraft_url=data.get("minecraft_url", MINECRAFT_MANIFEST_URL),
            forge_url=data.get("forge_url", FORGE_METADATA_URL),
            timeout=float(data.get("timeout", 30)),
        )


@dataclass
class ServerConfig:
    """ModServe 完整配置"""

    server: HTTPConfig = field(default_factory=HTTPConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    debug: bool = False
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerConfig":
        """从配置字典构建"""
        for section in ("server", "database", "feed"):
            if not isinstance(data.get(section, {}), dict):
                raise ConfigValidationError(
                    f"配置段 [{section}] 必须是表", context={"field": section}
                )

        return cls(
            server=HTTPConfig.from_dict(data.get("server", {})),
            database=DatabaseConfig.from_dict(data.get("database", {})),
            feed=FeedConfig.from_dict(data.get("feed", {})),
            debug=bool(data.get("debug", False)),
            log_file=data.get("log_file") or None,
        )
