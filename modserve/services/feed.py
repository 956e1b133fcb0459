"""
上游版本源客户端

获取 Mojang 版本清单与 Forge maven 元数据，交给同步逻辑入库。
"""

from typing import List, Optional

import aiohttp
from loguru import logger

from modserve.exceptions import FeedError
from modserve.models import FeedConfig, ForgeRecord, MinecraftRecord


class ReleaseFeedClient:
    """上游版本源客户端"""

    def __init__(
        self,
        config: Optional[FeedConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or FeedConfig()
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout)
            )
        return self._session

    async def _request(self, url: str):
        """发送请求并解析 JSON"""
        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    raise FeedError(
                        f"版本源请求失败 (状态码: {response.status})",
                        status=response.status,
                        url=url,
                    )
                # maven 元数据常以 text/plain 返回
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise FeedError(f"版本源请求失败: {e}", url=url) from e
        except ValueError as e:
            raise FeedError(f"版本源返回了无效的 JSON: {e}", url=url) from e

    async def minecraft_versions(self) -> List[MinecraftRecord]:
        """获取所有 Minecraft 版本"""
        data = await self._request(self.config.minecraft_url)
        if not isinstance(data, dict) or not isinstance(data.get("versions"), list):
            raise FeedError("Minecraft 版本清单格式无效", url=self.config.minecraft_url)

        records = []
        for entry in data["versions"]:
            try:
                records.append(MinecraftRecord.from_mojang(entry))
            except ValueError:
                logger.debug(f"跳过未知类型的版本: {entry.get('id')}")
        logger.info(f"获取到 {len(records)} 个 Minecraft 版本")
        return records

    async def forge_versions(self) -> List[ForgeRecord]:
        """获取所有 Forge 版本"""
        data = await self._request(self.config.forge_url)
        if not isinstance(data, dict):
            raise FeedError("Forge 元数据格式无效", url=self.config.forge_url)

        records = [
            ForgeRecord.from_maven(mc_version, full_version)
            for mc_version, versions in data.items()
            for full_version in versions
        ]
        logger.info(f"获取到 {len(records)} 个 Forge 版本")
        return records

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
