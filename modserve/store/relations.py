"""
关系注册表

每个多对多关系只实例化一次。
"""

from typing import Dict

from modserve.store.association import Association, LinkTable, ReferenceLink
from modserve.store.models import (
    Build,
    BuildVersion,
    Client,
    ClientPack,
    Forge,
    Minecraft,
    Mod,
    Pack,
    Team,
    TeamMod,
    TeamPack,
    TeamUser,
    User,
    UserMod,
    UserPack,
    Version,
)

build_versions = LinkTable(
    "build_versions", BuildVersion,
    Build, "build_id", Version, "version_id",
    a_label="构建", b_label="版本",
)

pack_clients = LinkTable(
    "pack_clients", ClientPack,
    Pack, "pack_id", Client, "client_id",
    a_label="整合包", b_label="客户端",
)

pack_users = LinkTable(
    "pack_users", UserPack,
    Pack, "pack_id", User, "user_id",
    a_label="整合包", b_label="用户", has_perm=True,
)

pack_teams = LinkTable(
    "pack_teams", TeamPack,
    Pack, "pack_id", Team, "team_id",
    a_label="整合包", b_label="团队", has_perm=True,
)

mod_users = LinkTable(
    "mod_users", UserMod,
    Mod, "mod_id", User, "user_id",
    a_label="模组", b_label="用户", has_perm=True,
)

mod_teams = LinkTable(
    "mod_teams", TeamMod,
    Mod, "mod_id", Team, "team_id",
    a_label="模组", b_label="团队", has_perm=True,
)

team_users = LinkTable(
    "team_users", TeamUser,
    Team, "team_id", User, "user_id",
    a_label="团队", b_label="用户", has_perm=True,
)

minecraft_builds = ReferenceLink(
    "minecraft_builds", Minecraft, Build, "minecraft_id",
    a_label="Minecraft", b_label="构建",
)

forge_builds = ReferenceLink(
    "forge_builds", Forge, Build, "forge_id",
    a_label="Forge", b_label="构建",
)

RELATIONS: Dict[str, Association] = {
    relation.name: relation
    for relation in (
        build_versions,
        pack_clients,
        pack_users,
        pack_teams,
        mod_users,
        mod_teams,
        team_users,
        minecraft_builds,
        forge_builds,
    )
}
