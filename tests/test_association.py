"""Tests for the shared link/unlink protocol over every relation."""

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from modserve.exceptions import ConflictError, NotFoundError
from modserve.models import ForgeRecord, MinecraftRecord
from modserve.store.models import BuildVersion
from modserve.store.relations import (
    RELATIONS,
    build_versions,
    forge_builds,
    minecraft_builds,
    pack_users,
    team_users,
)


@pytest_asyncio.fixture
async def graph(session, repositories):
    pack = await repositories.packs.create(session, {"name": "Tech Pack"})
    other_pack = await repositories.packs.create(session, {"name": "Magic Pack"})
    build = await repositories.builds.create(session, {"name": "b1"}, scope=pack)
    other_build = await repositories.builds.create(
        session, {"name": "b1"}, scope=other_pack
    )
    mod = await repositories.mods.create(session, {"name": "JEI"})
    versions = [
        await repositories.versions.create(session, {"name": name}, scope=mod)
        for name in ("4.7", "4.10", "4.8")
    ]
    return {
        "pack": pack,
        "build": build,
        "other_build": other_build,
        "mod": mod,
        "versions": versions,
    }


async def _count_rows(session):
    return await session.scalar(select(func.count()).select_from(BuildVersion))


class TestLinkTable:
    """Row-per-pair relations."""

    @pytest.mark.asyncio
    async def test_link_then_link_conflicts(self, session, graph):
        build, version = graph["build"], graph["versions"][0]

        await build_versions.link(session, build, version)
        with pytest.raises(ConflictError):
            await build_versions.link(session, build, version)

        assert await _count_rows(session) == 1
        assert [v.id for v in await build_versions.list_by_a(session, build)] == [
            version.id
        ]

    @pytest.mark.asyncio
    async def test_primary_key_rejects_duplicate_when_check_misses(
        self, session, graph, monkeypatch
    ):
        """A concurrent link that slips past the existence check still conflicts."""
        build_id, version_id = graph["build"].id, graph["versions"][0].id
        await build_versions.link(session, build_id, version_id)

        async def never_exists(session, a, b):
            return False

        monkeypatch.setattr(build_versions, "exists", never_exists)
        with pytest.raises(ConflictError):
            await build_versions.link(session, build_id, version_id)
        monkeypatch.undo()

        assert await _count_rows(session) == 1
        assert [v.id for v in await build_versions.list_by_a(session, build_id)] == [
            version_id
        ]

    @pytest.mark.asyncio
    async def test_unlink_twice_is_not_found(self, session, graph):
        build, version = graph["build"], graph["versions"][0]

        await build_versions.link(session, build, version)
        await build_versions.unlink(session, build, version)
        with pytest.raises(NotFoundError):
            await build_versions.unlink(session, build, version)

    @pytest.mark.asyncio
    async def test_unlink_never_linked(self, session, graph):
        with pytest.raises(NotFoundError):
            await build_versions.unlink(session, graph["build"], graph["versions"][1])

    @pytest.mark.asyncio
    async def test_exists_follows_history(self, session, graph):
        build, version = graph["build"], graph["versions"][0]

        assert not await build_versions.exists(session, build, version)
        await build_versions.link(session, build, version)
        assert await build_versions.exists(session, build, version)
        await build_versions.unlink(session, build, version)
        assert not await build_versions.exists(session, build, version)
        await build_versions.link(session, build, version)
        assert await build_versions.exists(session, build, version)

    @pytest.mark.asyncio
    async def test_lists_match_link_history(self, session, graph):
        build, other_build = graph["build"], graph["other_build"]
        v47, v410, v48 = graph["versions"]

        for version in (v47, v410, v48):
            await build_versions.link(session, build, version)
        await build_versions.link(session, other_build, v47)
        await build_versions.unlink(session, build, v48)

        listed = await build_versions.list_by_a(session, build)
        assert {v.id for v in listed} == {v47.id, v410.id}

        builds = await build_versions.list_by_b(session, v47)
        assert {b.id for b in builds} == {build.id, other_build.id}
        assert await build_versions.list_by_b(session, v48) == []

    @pytest.mark.asyncio
    async def test_lists_are_ordered_by_name(self, session, graph):
        build = graph["build"]
        for version in graph["versions"]:
            await build_versions.link(session, build, version)

        names = [v.name for v in await build_versions.list_by_a(session, build)]
        assert names == sorted(names)

    @pytest.mark.asyncio
    async def test_link_accepts_plain_ids(self, session, graph):
        build, version = graph["build"], graph["versions"][0]
        await build_versions.link(session, build.id, version.id)
        assert await build_versions.exists(session, build, version)

    @pytest.mark.asyncio
    async def test_perm_is_stored(self, session, repositories, graph):
        user = await repositories.users.create(session, {"name": "alice"})

        await pack_users.link(session, graph["pack"], user, perm="owner")

        assert await pack_users.perm(session, graph["pack"], user) == "owner"
        assert [p.id for p in await pack_users.list_by_b(session, user)] == [
            graph["pack"].id
        ]

    @pytest.mark.asyncio
    async def test_team_users(self, session, repositories):
        team = await repositories.teams.create(session, {"name": "Admins"})
        bob = await repositories.users.create(session, {"name": "bob"})
        alice = await repositories.users.create(session, {"name": "alice"})

        await team_users.link(session, team, bob)
        await team_users.link(session, team, alice)

        assert [u.name for u in await team_users.list_by_a(session, team)] == [
            "alice",
            "bob",
        ]

    def test_registry_contains_every_relation(self):
        assert set(RELATIONS) == {
            "build_versions",
            "pack_clients",
            "pack_users",
            "pack_teams",
            "mod_users",
            "mod_teams",
            "team_users",
            "minecraft_builds",
            "forge_builds",
        }


class TestReferenceLink:
    """Build to Minecraft/Forge relations stored on the build row."""

    @pytest.mark.asyncio
    async def test_link_and_unlink_minecraft(self, session, repositories, graph):
        minecraft, _ = await repositories.minecrafts.sync(
            session, MinecraftRecord(name="1.12.2")
        )
        build = graph["build"]

        await minecraft_builds.link(session, minecraft, build)
        assert await minecraft_builds.exists(session, minecraft, build)
        assert [b.id for b in await minecraft_builds.list_by_a(session, minecraft)] == [
            build.id
        ]
        assert [m.id for m in await minecraft_builds.list_by_b(session, build)] == [
            minecraft.id
        ]

        with pytest.raises(ConflictError):
            await minecraft_builds.link(session, minecraft, build)

        await minecraft_builds.unlink(session, minecraft, build)
        with pytest.raises(NotFoundError):
            await minecraft_builds.unlink(session, minecraft, build)
        assert await minecraft_builds.list_by_a(session, minecraft) == []

    @pytest.mark.asyncio
    async def test_build_has_at_most_one_forge(self, session, repositories, graph):
        first, _ = await repositories.forges.sync(
            session, ForgeRecord(name="14.23.5.2847", minecraft="1.12.2")
        )
        second, _ = await repositories.forges.sync(
            session, ForgeRecord(name="14.23.5.2860", minecraft="1.12.2")
        )
        first_id, second_id, build_id = first.id, second.id, graph["build"].id

        await forge_builds.link(session, first_id, build_id)
        with pytest.raises(ConflictError):
            await forge_builds.link(session, second_id, build_id)

        assert not await forge_builds.exists(session, second_id, build_id)
        assert await forge_builds.exists(session, first_id, build_id)
