"""
启动器接口

提供整合包 / 构建清单与文件下载。
"""

from aiohttp import web

from modserve.server.helpers import MANIFESTS, repositories_of, session_of
from modserve.storage import absolute_path

routes = web.RouteTableDef()


@routes.get("/modpacks")
async def get_modpacks(request: web.Request) -> web.Response:
    manifests = request.app[MANIFESTS]
    return web.json_response(await manifests.all_manifests(session_of(request)))


@routes.get("/modpacks/{pack}")
async def get_modpack(request: web.Request) -> web.Response:
    manifests = request.app[MANIFESTS]
    manifest = await manifests.pack_manifest(
        session_of(request), request.match_info["pack"]
    )
    return web.json_response(manifest.to_dict())


@routes.get("/modpacks/{pack}/{build}")
async def get_modpack_build(request: web.Request) -> web.Response:
    manifests = request.app[MANIFESTS]
    manifest = await manifests.build_manifest(
        session_of(request), request.match_info["pack"], request.match_info["build"]
    )
    return web.json_response(manifest.to_dict())


@routes.get("/storage/{category:logo|file}/{md5:[0-9a-f]+}")
async def get_storage(request: web.Request) -> web.Response:
    """
    按哈希读取原始文件

    内容类型取自引用该文件的记录；没有记录引用时按二进制流返回。
    """
    repositories = repositories_of(request)
    category, md5 = request.match_info["category"], request.match_info["md5"]

    path = absolute_path(md5, repositories.artifacts.storage_root, category)
    content = await repositories.artifacts.get(path)

    artifact = await repositories.find_artifact(session_of(request), category, md5)
    content_type = artifact.content_type if artifact else "application/octet-stream"
    return web.Response(body=content, content_type=content_type)
