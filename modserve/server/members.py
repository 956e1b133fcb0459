"""
用户 / 团队 / 客户端接口

这些实体只作为关联目标：可以创建、查询、删除，不提供字段更新。
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
from modserve.store.relations import (
    mod_teams,
    mod_users,
    pack_clients,
    pack_teams,
    pack_users,
    team_users,
)

routes = web.RouteTableDef()

KIND_PATTERN = "{kind:users|teams|clients}"

# (实体类型, 关联类型) -> (关系, 实体位于关系的哪一侧)
RELATED = {
    ("users", "packs"): (pack_users, "b"),
    ("users", "mods"): (mod_users, "b"),
    ("users", "teams"): (team_users, "b"),
    ("teams", "packs"): (pack_teams, "b"),
    ("teams", "mods"): (mod_teams, "b"),
    ("teams", "users"): (team_users, "a"),
    ("clients", "packs"): (pack_clients, "b"),
}


async def _member(request: web.Request):
    repository = getattr(repositories_of(request), request.match_info["kind"])
    return await repository.get(session_of(request), request.match_info["member"])


@routes.get(f"/api/{KIND_PATTERN}")
async def get_members(request: web.Request) -> web.Response:
    repository = getattr(repositories_of(request), request.match_info["kind"])
    return records(await repository.list(session_of(request)))


@routes.post(f"/api/{KIND_PATTERN}")
async def post_member(request: web.Request) -> web.Response:
    repository = getattr(repositories_of(request), request.match_info["kind"])
    fields, _ = await read_payload(request)
    return record(await repository.create(session_of(request), fields))


@routes.get(f"/api/{KIND_PATTERN}/{{member}}")
async def get_member(request: web.Request) -> web.Response:
    return record(await _member(request))


@routes.delete(f"/api/{KIND_PATTERN}/{{member}}")
async def delete_member(request: web.Request) -> web.Response:
    member = await _member(request)
    repository = getattr(repositories_of(request), request.match_info["kind"])
    await repository.delete(session_of(request), member)
    return message(200, f"{repository.label}已删除")


@routes.get(f"/api/{KIND_PATTERN}/{{member}}/{{related:packs|mods|teams|users}}")
async def get_member_related(request: web.Request) -> web.Response:
    key = (request.match_info["kind"], request.match_info["related"])
    if key not in RELATED:
        raise web.HTTPNotFound()

    member = await _member(request)
    relation, side = RELATED[key]
    session = session_of(request)
    if side == "a":
        return records(await relation.list_by_a(session, member))
    return records(await relation.list_by_b(session, member))


async def _team_and_user(request: web.Request):
    repositories = repositories_of(request)
    session = session_of(request)
    team = await repositories.teams.get(session, request.match_info["team"])
    user = await repositories.users.get(session, request.match_info["user"])
    return team, user


@routes.patch("/api/teams/{team}/users/{user}")
async def patch_team_user(request: web.Request) -> web.Response:
    team, user = await _team_and_user(request)
    return await link(request, team_users, team, user)


@routes.delete("/api/teams/{team}/users/{user}")
async def delete_team_user(request: web.Request) -> web.Response:
    team, user = await _team_and_user(request)
    return await unlink(request, team_users, team, user)
