"""
Minecraft / Forge 版本接口

版本记录只通过同步创建，这里只提供查询与构建关联。
"""

from aiohttp import web

from modserve.server.helpers import record, records, repositories_of, session_of
from modserve.server.links import link, unlink
from modserve.store.relations import forge_builds, minecraft_builds

routes = web.RouteTableDef()

KINDS = {
    "minecraft": ("minecrafts", minecraft_builds),
    "forge": ("forges", forge_builds),
}


def _kind(request: web.Request):
    attr, relation = KINDS[request.match_info["kind"]]
    return getattr(repositories_of(request), attr), relation


async def _release(request: web.Request):
    repository, relation = _kind(request)
    release = await repository.get(session_of(request), request.match_info["release"])
    return release, relation


@routes.get("/api/{kind:minecraft|forge}")
async def get_releases(request: web.Request) -> web.Response:
    repository, _ = _kind(request)
    return records(await repository.list(session_of(request)))


@routes.get("/api/{kind:minecraft|forge}/{release}")
async def get_release(request: web.Request) -> web.Response:
    release, _ = await _release(request)
    return record(release)


@routes.get("/api/{kind:minecraft|forge}/{release}/builds")
async def get_release_builds(request: web.Request) -> web.Response:
    release, relation = await _release(request)
    return records(await relation.list_by_a(session_of(request), release))


async def _release_and_build(request: web.Request):
    repositories = repositories_of(request)
    session = session_of(request)
    release, relation = await _release(request)
    pack = await repositories.packs.get(session, request.match_info["pack"])
    build = await repositories.builds.get(
        session, request.match_info["build"], scope=pack
    )
    return release, relation, build


@routes.patch("/api/{kind:minecraft|forge}/{release}/builds/{pack}/{build}")
async def patch_release_build(request: web.Request) -> web.Response:
    release, relation, build = await _release_and_build(request)
    return await link(request, relation, release, build)


@routes.delete("/api/{kind:minecraft|forge}/{release}/builds/{pack}/{build}")
async def delete_release_build(request: web.Request) -> web.Response:
    release, relation, build = await _release_and_build(request)
    return await unlink(request, relation, release, build)
