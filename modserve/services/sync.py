"""
版本同步服务

逐条调用仓库的 sync，统计新增/更新/未变化数量。
"""

from dataclasses import dataclass
from typing import Iterable

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from modserve.store.repository import ReleaseRepository


@dataclass
class SyncStats:
    """同步统计"""

    total: int = 0
    changed: int = 0

    @property
    def unchanged(self) -> int:
        return self.total - self.changed


async def sync_records(
    session: AsyncSession,
    repository: ReleaseRepository,
    records: Iterable,
) -> SyncStats:
    """
    同步一批上游记录

    Args:
        session: 数据库会话
        repository: MinecraftRepository 或 ForgeRepository
        records: 上游记录

    Returns:
        SyncStats
    """
    stats = SyncStats()
    for record in records:
        _, changed = await repository.sync(session, record)
        stats.total += 1
        if changed:
            stats.changed += 1

    logger.success(
        f"{repository.label}同步完成: {stats.changed} 条变化, {stats.unchanged} 条未变化"
    )
    return stats
