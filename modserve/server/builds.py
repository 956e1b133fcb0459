"""
构建接口
"""

from aiohttp import web

from modserve.exceptions import ConflictError, NotFoundError
from modserve.server.helpers import (
    message,
    read_payload,
    record,
    records,
    repositories_of,
    session_of,
)
from modserve.server.links import link, unlink
from modserve.store.relations import build_versions

routes = web.RouteTableDef()


async def _pack_and_build(request: web.Request):
    repositories = repositories_of(request)
    session = session_of(request)
    pack = await repositories.packs.get(session, request.match_info["pack"])
    build = await repositories.builds.get(
        session, request.match_info["build"], scope=pack
    )
    return pack, build


@routes.get("/api/packs/{pack}/builds")
async def get_builds(request: web.Request) -> web.Response:
    repositories = repositories_of(request)
    session = session_of(request)
    pack = await repositories.packs.get(session, request.match_info["pack"])
    return records(await repositories.builds.list(session, scope=pack))


@routes.post("/api/packs/{pack}/builds")
async def post_build(request: web.Request) -> web.Response:
    repositories = repositories_of(request)
    session = session_of(request)
    pack = await repositories.packs.get(session, request.match_info["pack"])
    fields, upload = await read_payload(request)
    build = await repositories.builds.create(session, fields, upload=upload, scope=pack)
    return record(build)


@routes.get("/api/packs/{pack}/builds/{build}")
async def get_build(request: web.Request) -> web.Response:
    _, build = await _pack_and_build(request)
    return record(build)


@routes.patch("/api/packs/{pack}/builds/{build}")
async def patch_build(request: web.Request) -> web.Response:
    _, build = await _pack_and_build(request)
    fields, upload = await read_payload(request)
    build = await repositories_of(request).builds.update(
        session_of(request), build, fields, upload=upload
    )
    return record(build)


@routes.delete("/api/packs/{pack}/builds/{build}")
async def delete_build(request: web.Request) -> web.Response:
    _, build = await _pack_and_build(request)
    await repositories_of(request).builds.delete(session_of(request), build)
    return message(200, "构建已删除")


@routes.get("/api/packs/{pack}/builds/{build}/versions")
async def get_build_versions(request: web.Request) -> web.Response:
    _, build = await _pack_and_build(request)
    return records(await build_versions.list_by_a(session_of(request), build))


async def _build_and_version(request: web.Request):
    repositories = repositories_of(request)
    session = session_of(request)
    _, build = await _pack_and_build(request)
    mod = await repositories.mods.get(session, request.match_info["mod"])
    version = await repositories.versions.get(
        session, request.match_info["version"], scope=mod
    )
    return build, version


@routes.patch("/api/packs/{pack}/builds/{build}/mods/{mod}/versions/{version}")
async def patch_build_version(request: web.Request) -> web.Response:
    build, version = await _build_and_version(request)
    return await link(request, build_versions, build, version)


@routes.delete("/api/packs/{pack}/builds/{build}/mods/{mod}/versions/{version}")
async def delete_build_version(request: web.Request) -> web.Response:
    build, version = await _build_and_version(request)
    return await unlink(request, build_versions, build, version)


@routes.get("/api/packs/{pack}/builds/{build}/versions/{version}/file")
async def get_build_version_file(request: web.Request) -> web.Response:
    """
    下载构建中某个版本的文件

    版本 slug 只在模组内唯一，多个模组同名版本时需用 ?mod= 或数字 ID 区分。
    """
    _, build = await _pack_and_build(request)
    session = session_of(request)
    ref = request.match_info["version"]

    versions = await build_versions.list_by_a(session, build)
    if "mod" in request.query:
        mod = await repositories_of(request).mods.get(session, request.query["mod"])
        versions = [v for v in versions if v.mod_id == mod.id]

    matches = [v for v in versions if str(v.id) == ref] or [
        v for v in versions if v.slug == ref
    ]
    if not matches:
        raise NotFoundError(f"构建中不存在该版本: {ref}", context={"version": ref})
    if len(matches) > 1:
        raise ConflictError(
            f"构建中有多个模组的版本为 {ref}，请指定模组",
            context={"version": ref, "mods": [v.mod_id for v in matches]},
        )
    version = matches[0]

    artifact = version.file
    if artifact is None:
        raise NotFoundError("版本没有可用的文件", context={"version": version.id})

    content = await repositories_of(request).artifacts.get_artifact(artifact)
    return web.Response(body=content, content_type=artifact.content_type)
