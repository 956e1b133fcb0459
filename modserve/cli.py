"""
CLI 模块

命令行接口实现。
"""

import asyncio
import json
from pathlib import Path

import click
import toml
import yaml
from aiohttp import web
from loguru import logger

from modserve import __version__
from modserve.exceptions import ModServeError
from modserve.logger import setup_logger
from modserve.models import ServerConfig
from modserve.services import ReleaseFeedClient, sync_records
from modserve.storage import ArtifactStore
from modserve.store import Repositories, create_engine, create_session_factory, init_db


def load_config(config_path: str) -> dict:
    """加载配置文件"""
    path = Path(config_path)

    if not path.exists():
        raise click.ClickException(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()

    if suffix == ".toml":
        return toml.load(config_path)
    elif suffix == ".json":
        return json.loads(path.read_text())
    elif suffix in (".yaml", ".yml"):
        return yaml.safe_load(path.read_text()) or {}
    else:
        raise click.ClickException(f"不支持的配置文件格式: {suffix}")


def build_config(config_path: str, debug: bool) -> ServerConfig:
    """读取并校验配置，同时初始化日志"""
    try:
        config = ServerConfig.from_dict(load_config(config_path))
    except ModServeError as e:
        logger.error(f"配置错误: {e}")
        raise click.ClickException(str(e))

    if debug or config.debug:
        config.debug = True
        setup_logger(level="DEBUG", log_file=config.log_file)
    else:
        setup_logger(log_file=config.log_file)
    return config


async def run_init_db(config: ServerConfig):
    """创建数据表"""
    engine = create_engine(config.database)
    try:
        await init_db(engine)
    finally:
        await engine.dispose()


async def run_sync(config: ServerConfig, minecraft: bool, forge: bool):
    """从上游版本源同步 Minecraft / Forge 版本"""
    engine = create_engine(config.database)
    repositories = Repositories(ArtifactStore(config.server.storage))
    try:
        await init_db(engine)
        sessions = create_session_factory(engine)

        async with ReleaseFeedClient(config.feed) as client:
            if minecraft:
                records = await client.minecraft_versions()
                async with sessions() as session:
                    stats = await sync_records(session, repositories.minecrafts, records)
                click.echo(f"Minecraft: {stats.changed} 变化 / {stats.total} 总数")

            if forge:
                records = await client.forge_versions()
                async with sessions() as session:
                    stats = await sync_records(session, repositories.forges, records)
                click.echo(f"Forge: {stats.changed} 变化 / {stats.total} 总数")
    finally:
        await engine.dispose()


@click.group()
@click.version_option(version=__version__)
def main():
    """ModServe - Minecraft 整合包服务端"""


@main.command()
@click.argument("config", type=click.Path(exists=True), default="modserve.toml")
@click.option("--debug", is_flag=True, help="启用调试模式")
def serve(config: str, debug: bool):
    """启动 HTTP 服务"""
    from modserve.server.app import create_app

    server_config = build_config(config, debug)
    logger.info(
        f"启动服务: {server_config.server.host}:{server_config.server.port}"
        f" (存储目录: {server_config.server.storage})"
    )
    web.run_app(
        create_app(server_config),
        host=server_config.server.host,
        port=server_config.server.port,
        print=None,
    )


@main.command()
@click.argument("config", type=click.Path(exists=True), default="modserve.toml")
@click.option("--minecraft/--no-minecraft", default=True, help="同步 Minecraft 版本")
@click.option("--forge/--no-forge", default=True, help="同步 Forge 版本")
@click.option("--debug", is_flag=True, help="启用调试模式")
def sync(config: str, minecraft: bool, forge: bool, debug: bool):
    """同步上游版本"""
    server_config = build_config(config, debug)
    try:
        asyncio.run(run_sync(server_config, minecraft, forge))
    except ModServeError as e:
        logger.error(f"同步失败: {e}")
        raise click.ClickException(str(e))


@main.command("init-db")
@click.argument("config", type=click.Path(exists=True), default="modserve.toml")
@click.option("--debug", is_flag=True, help="启用调试模式")
def init_db_command(config: str, debug: bool):
    """创建数据表"""
    server_config = build_config(config, debug)
    asyncio.run(run_init_db(server_config))
    logger.success("数据表已创建")


if __name__ == "__main__":
    main()
