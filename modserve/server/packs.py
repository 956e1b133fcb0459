"""
整合包接口
"""

from aiohttp import web
from loguru import logger

from modserve.server.helpers import (
    message,
    read_payload,
    record,
    records,
    repositories_of,
    session_of,
)
from modserve.server.links import link, unlink
from modserve.store.relations import pack_clients, pack_teams, pack_users

routes = web.RouteTableDef()

# 路径中的成员类型 -> (关系, 仓库属性名)
MEMBERS = {
    "clients": (pack_clients, "clients"),
    "users": (pack_users, "users"),
    "teams": (pack_teams, "teams"),
}


async def _pack(request: web.Request):
    return await repositories_of(request).packs.get(
        session_of(request), request.match_info["pack"]
    )


@routes.get("/api/packs")
async def get_packs(request: web.Request) -> web.Response:
    return records(await repositories_of(request).packs.list(session_of(request)))


@routes.post("/api/packs")
async def post_pack(request: web.Request) -> web.Response:
    fields, upload = await read_payload(request)
    pack = await repositories_of(request).packs.create(
        session_of(request), fields, upload=upload
    )
    return record(pack)


@routes.get("/api/packs/{pack}")
async def get_pack(request: web.Request) -> web.Response:
    return record(await _pack(request))


@routes.patch("/api/packs/{pack}")
async def patch_pack(request: web.Request) -> web.Response:
    pack = await _pack(request)
    fields, upload = await read_payload(request)
    pack = await repositories_of(request).packs.update(
        session_of(request), pack, fields, upload=upload
    )
    return record(pack)


@routes.delete("/api/packs/{pack}")
async def delete_pack(request: web.Request) -> web.Response:
    pack = await _pack(request)
    await repositories_of(request).packs.delete(session_of(request), pack)
    return message(200, "整合包已删除")


@routes.get("/api/packs/{pack}/{kind:clients|users|teams}")
async def get_pack_members(request: web.Request) -> web.Response:
    pack = await _pack(request)
    relation, _ = MEMBERS[request.match_info["kind"]]
    return records(await relation.list_by_a(session_of(request), pack))


@routes.patch("/api/packs/{pack}/{kind:clients|users|teams}/{member}")
async def patch_pack_member(request: web.Request) -> web.Response:
    pack, relation, member = await _member(request)
    return await link(request, relation, pack, member)


@routes.delete("/api/packs/{pack}/{kind:clients|users|teams}/{member}")
async def delete_pack_member(request: web.Request) -> web.Response:
    pack, relation, member = await _member(request)
    return await unlink(request, relation, pack, member)


async def _member(request: web.Request):
    pack = await _pack(request)
    relation, attr = MEMBERS[request.match_info["kind"]]
    repository = getattr(repositories_of(request), attr)
    member = await repository.get(session_of(request), request.match_info["member"])
    logger.debug(f"{relation.name}: {pack.slug} <-> {member.slug}")
    return pack, relation, member
