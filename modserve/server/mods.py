"""
模组与版本接口
"""

from aiohttp import web

from modserve.server.helpers import (
    message,
    read_payload,
    record,
    records,
    repositories_of,
    session_of,
)
from modserve.server.links import link, unlink
from modserve.store.relations import build_versions, mod_teams, mod_users

routes = web.RouteTableDef()

MEMBERS = {
    "users": (mod_users, "users"),
    "teams": (mod_teams, "teams"),
}


async def _mod(request: web.Request):
    return await repositories_of(request).mods.get(
        session_of(request), request.match_info["mod"]
    )


async def _mod_and_version(request: web.Request):
    mod = await _mod(request)
    version = await repositories_of(request).versions.get(
        session_of(request), request.match_info["version"], scope=mod
    )
    return mod, version


@routes.get("/api/mods")
async def get_mods(request: web.Request) -> web.Response:
    return records(await repositories_of(request).mods.list(session_of(request)))


@routes.post("/api/mods")
async def post_mod(request: web.Request) -> web.Response:
    fields, _ = await read_payload(request)
    mod = await repositories_of(request).mods.create(session_of(request), fields)
    return record(mod)


@routes.get("/api/mods/{mod}")
async def get_mod(request: web.Request) -> web.Response:
    return record(await _mod(request))


@routes.patch("/api/mods/{mod}")
async def patch_mod(request: web.Request) -> web.Response:
    mod = await _mod(request)
    fields, _ = await read_payload(request)
    mod = await repositories_of(request).mods.update(session_of(request), mod, fields)
    return record(mod)


@routes.delete("/api/mods/{mod}")
async def delete_mod(request: web.Request) -> web.Response:
    mod = await _mod(request)
    await repositories_of(request).mods.delete(session_of(request), mod)
    return message(200, "模组已删除")


@routes.get("/api/mods/{mod}/{kind:users|teams}")
async def get_mod_members(request: web.Request) -> web.Response:
    mod = await _mod(request)
    relation, _ = MEMBERS[request.match_info["kind"]]
    return records(await relation.list_by_a(session_of(request), mod))


async def _member(request: web.Request):
    mod = await _mod(request)
    relation, attr = MEMBERS[request.match_info["kind"]]
    repository = getattr(repositories_of(request), attr)
    member = await repository.get(session_of(request), request.match_info["member"])
    return mod, relation, member


@routes.patch("/api/mods/{mod}/{kind:users|teams}/{member}")
async def patch_mod_member(request: web.Request) -> web.Response:
    mod, relation, member = await _member(request)
    return await link(request, relation, mod, member)


@routes.delete("/api/mods/{mod}/{kind:users|teams}/{member}")
async def delete_mod_member(request: web.Request) -> web.Response:
    mod, relation, member = await _member(request)
    return await unlink(request, relation, mod, member)


@routes.get("/api/mods/{mod}/versions")
async def get_versions(request: web.Request) -> web.Response:
    mod = await _mod(request)
    return records(
        await repositories_of(request).versions.list(session_of(request), scope=mod)
    )


@routes.post("/api/mods/{mod}/versions")
async def post_version(request: web.Request) -> web.Response:
    mod = await _mod(request)
    fields, upload = await read_payload(request)
    version = await repositories_of(request).versions.create(
        session_of(request), fields, upload=upload, scope=mod
    )
    return record(version)


@routes.get("/api/mods/{mod}/versions/{version}")
async def get_version(request: web.Request) -> web.Response:
    _, version = await _mod_and_version(request)
    return record(version)


@routes.patch("/api/mods/{mod}/versions/{version}")
async def patch_version(request: web.Request) -> web.Response:
    _, version = await _mod_and_version(request)
    fields, upload = await read_payload(request)
    version = await repositories_of(request).versions.update(
        session_of(request), version, fields, upload=upload
    )
    return record(version)


@routes.delete("/api/mods/{mod}/versions/{version}")
async def delete_version(request: web.Request) -> web.Response:
    _, version = await _mod_and_version(request)
    await repositories_of(request).versions.delete(session_of(request), version)
    return message(200, "版本已删除")


@routes.get("/api/mods/{mod}/versions/{version}/builds")
async def get_version_builds(request: web.Request) -> web.Response:
    _, version = await _mod_and_version(request)
    return records(await build_versions.list_by_b(session_of(request), version))


async def _version_and_build(request: web.Request):
    repositories = repositories_of(request)
    session = session_of(request)
    _, version = await _mod_and_version(request)
    pack = await repositories.packs.get(session, request.match_info["pack"])
    build = await repositories.builds.get(
        session, request.match_info["build"], scope=pack
    )
    return version, build


@routes.patch("/api/mods/{mod}/versions/{version}/builds/{pack}/{build}")
async def patch_version_build(request: web.Request) -> web.Response:
    version, build = await _version_and_build(request)
    return await link(request, build_versions, build, version)


@routes.delete("/api/mods/{mod}/versions/{version}/builds/{pack}/{build}")
async def delete_version_build(request: web.Request) -> web.Response:
    version, build = await _version_and_build(request)
    return await unlink(request, build_versions, build, version)
