"""
Web 应用

组装路由、请求会话与错误处理中间件。
"""

from typing import Optional

from aiohttp import web
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from modserve.exceptions import (
    ConfigError,
    ConflictError,
    FeedError,
    ModServeError,
    NotFoundError,
    PayloadError,
    StorageError,
    ValidationError,
)
from modserve.models import ServerConfig
from modserve.server import builds, launcher, members, mods, packs, releases
from modserve.server.helpers import (
    CONFIG,
    MANIFESTS,
    REPOSITORIES,
    SESSION,
)
from modserve.services import ManifestSynthesizer
from modserve.storage import ArtifactStore
from modserve.store import Repositories, create_engine, create_session_factory, init_db

ENGINE = web.AppKey("engine", AsyncEngine)
SESSIONS = web.AppKey("sessions", object)

# 按顺序匹配，子类在前
STATUS_CODES = (
    (PayloadError, 412),
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (FeedError, 502),
    (ConfigError, 500),
    (StorageError, 500),
)


def status_for(error: ModServeError) -> int:
    for error_type, status in STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


@web.middleware
async def error_middleware(request: web.Request, handler):
    """把 ModServe 异常转换为 JSON 错误响应"""
    try:
        response = await handler(request)
    except web.HTTPException:
        raise
    except ModServeError as e:
        status = status_for(e)
        if status >= 500:
            logger.exception(f"{request.method} {request.path} 失败: {e}")
        else:
            logger.debug(f"{request.method} {request.path} -> {status}: {e}")
        return web.json_response(e.to_dict(), status=status)
    except Exception as e:
        logger.exception(f"{request.method} {request.path} 运行时错误: {e}")
        return web.json_response(
            ModServeError(f"运行时错误: {e}").to_dict(), status=500
        )

    logger.debug(f"{request.method} {request.path} -> {response.status}")
    return response


@web.middleware
async def session_middleware(request: web.Request, handler):
    """每个请求一个数据库会话"""
    async with request.app[SESSIONS]() as session:
        request[SESSION] = session
        return await handler(request)


async def _init_db(app: web.Application) -> None:
    await init_db(app[ENGINE])


async def _dispose(app: web.Application) -> None:
    await app[ENGINE].dispose()


def create_app(
    config: ServerConfig, engine: Optional[AsyncEngine] = None
) -> web.Application:
    """
    创建 Web 应用

    Args:
        config: 服务配置
        engine: 数据库引擎（为空时按配置创建）
    """
    engine = engine or create_engine(config.database)
    artifacts = ArtifactStore(config.server.storage)
    repositories = Repositories(artifacts)

    app = web.Application(middlewares=[error_middleware, session_middleware])
    app[CONFIG] = config
    app[ENGINE] = engine
    app[SESSIONS] = create_session_factory(engine)
    app[REPOSITORIES] = repositories
    app[MANIFESTS] = ManifestSynthesizer(repositories, config.server.public_url)

    for module in (packs, builds, mods, releases, members, launcher):
        app.add_routes(module.routes)

    app.on_startup.append(_init_db)
    app.on_cleanup.append(_dispose)
    return app
