"""
数据库引擎与会话

每个请求使用一个 AsyncSession，关联的检查与写入在同一事务内完成。
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from loguru import logger

from modserve.models import DatabaseConfig
from modserve.store.models import Base


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """创建异步引擎"""
    engine = create_async_engine(config.url, echo=config.echo, future=True)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_conn, conn_record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA busy_timeout=30000;")  # 30秒
            cur.close()

    logger.debug(f"数据库引擎已创建: {engine.url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """创建会话工厂（提交后不过期，避免异步上下文中的延迟加载）"""
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """创建所有表"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("数据库表已就绪")
