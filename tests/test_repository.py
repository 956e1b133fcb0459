"""Tests for entity repositories."""

import hashlib
import re

import pytest
import pytest_asyncio

from modserve.exceptions import ConflictError, NotFoundError, ValidationError
from modserve.models import ForgeRecord, MinecraftRecord, ReleaseType
from modserve.storage import Upload


@pytest_asyncio.fixture
async def pack(session, repositories):
    return await repositories.packs.create(session, {"name": "Tech Pack"})


@pytest_asyncio.fixture
async def mod(session, repositories):
    return await repositories.mods.create(session, {"name": "JEI", "author": "mezz"})


class TestLookup:
    """ID and slug lookup."""

    @pytest.mark.asyncio
    async def test_get_by_id_and_slug(self, session, repositories, pack):
        assert (await repositories.packs.get(session, pack.id)).slug == "tech-pack"
        assert (await repositories.packs.get(session, str(pack.id))).id == pack.id
        assert (await repositories.packs.get(session, "tech-pack")).id == pack.id

    @pytest.mark.asyncio
    async def test_get_missing(self, session, repositories):
        with pytest.raises(NotFoundError):
            await repositories.packs.get(session, "nothing-here")
        with pytest.raises(NotFoundError):
            await repositories.packs.get(session, 999)

    @pytest.mark.asyncio
    async def test_scoped_get_ignores_other_parents(self, session, repositories, pack):
        other = await repositories.packs.create(session, {"name": "Magic Pack"})
        build = await repositories.builds.create(session, {"name": "b1"}, scope=other)

        with pytest.raises(NotFoundError):
            await repositories.builds.get(session, build.id, scope=pack)
        with pytest.raises(NotFoundError):
            await repositories.builds.get(session, "b1", scope=pack)
        assert (await repositories.builds.get(session, "b1", scope=other)).id == build.id

    @pytest.mark.asyncio
    async def test_list_is_ordered_by_name(self, session, repositories):
        for name in ("Zeta", "Alpha", "Mid"):
            await repositories.mods.create(session, {"name": name})

        names = [m.name for m in await repositories.mods.list(session)]
        assert names == ["Alpha", "Mid", "Zeta"]


class TestCreate:
    """Creating entities."""

    @pytest.mark.asyncio
    async def test_slug_is_derived_from_name(self, session, repositories, mod):
        assert mod.slug == "jei"
        assert mod.author == "mezz"

        version = await repositories.versions.create(
            session, {"name": "4.7.0"}, scope=mod
        )
        assert version.slug == "4.7.0"
        assert version.mod_id == mod.id

    @pytest.mark.asyncio
    async def test_explicit_slug(self, session, repositories):
        pack = await repositories.packs.create(
            session, {"name": "Tech", "slug": "Tech Reloaded"}
        )
        assert pack.slug == "tech-reloaded"

    @pytest.mark.asyncio
    async def test_cjk_name_is_transliterated(self, session, repositories):
        pack = await repositories.packs.create(session, {"name": "科技整合包"})

        assert re.fullmatch(r"[a-z0-9.-]+", pack.slug)
        assert pack.name == "科技整合包"
        assert (await repositories.packs.get(session, pack.slug)).id == pack.id

    @pytest.mark.asyncio
    async def test_unsluggable_name_gets_generated_slug(self, session, repositories):
        first = await repositories.mods.create(session, {"name": "!!!"})
        second = await repositories.mods.create(session, {"name": "???"})

        assert first.slug.startswith("mod-")
        assert second.slug.startswith("mod-")
        assert first.slug != second.slug

    @pytest.mark.asyncio
    async def test_unsluggable_explicit_slug_is_rejected(self, session, repositories):
        with pytest.raises(ValidationError):
            await repositories.mods.create(session, {"name": "JEI", "slug": "!!!"})

    @pytest.mark.asyncio
    async def test_duplicate_slug_conflicts(self, session, repositories, pack):
        with pytest.raises(ConflictError):
            await repositories.packs.create(session, {"name": "tech pack"})

    @pytest.mark.asyncio
    async def test_same_slug_under_different_parents(self, session, repositories, pack):
        other = await repositories.packs.create(session, {"name": "Magic Pack"})

        first = await repositories.builds.create(session, {"name": "b1"}, scope=pack)
        second = await repositories.builds.create(session, {"name": "b1"}, scope=other)

        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_empty_name_is_rejected(self, session, repositories):
        with pytest.raises(ValidationError):
            await repositories.mods.create(session, {"name": "   "})
        with pytest.raises(ValidationError):
            await repositories.mods.create(session, {})

    @pytest.mark.asyncio
    async def test_unknown_parent_is_rejected(self, session, repositories):
        with pytest.raises(ValidationError):
            await repositories.builds.create(session, {"name": "b1"}, scope=404)

    @pytest.mark.asyncio
    async def test_bool_fields_must_be_bool(self, session, repositories):
        with pytest.raises(ValidationError):
            await repositories.packs.create(
                session, {"name": "Hidden", "hidden": "yes"}
            )

    @pytest.mark.asyncio
    async def test_build_defaults(self, session, repositories, pack):
        build = await repositories.builds.create(session, {"name": "b1"}, scope=pack)
        assert build.published is True
        assert build.private is False
        assert build.minecraft_id is None

    @pytest.mark.asyncio
    async def test_build_resolves_release_refs(self, session, repositories, pack):
        minecraft, _ = await repositories.minecrafts.sync(
            session, MinecraftRecord(name="1.12.2")
        )
        build = await repositories.builds.create(
            session, {"name": "b1", "minecraft": "1.12.2"}, scope=pack
        )
        assert build.minecraft_id == minecraft.id

        with pytest.raises(ValidationError):
            await repositories.builds.create(
                session, {"name": "b2", "forge": "missing"}, scope=pack.id
            )


class TestUploads:
    """File and logo storage around row commits."""

    @pytest.mark.asyncio
    async def test_version_file_is_stored(
        self, session, repositories, mod, storage_root
    ):
        content = b"0123456789"
        version = await repositories.versions.create(
            session,
            {"name": "4.7"},
            upload=Upload(content, "application/java-archive"),
            scope=mod,
        )

        assert version.file_md5 == hashlib.md5(content).hexdigest()
        assert version.file.relative_path == f"file/{version.file_md5}"
        assert (storage_root / "file" / version.file_md5).read_bytes() == content

    @pytest.mark.asyncio
    async def test_failed_upload_creates_no_row(self, session, repositories, mod):
        mod_id = mod.id
        with pytest.raises(ValidationError):
            await repositories.versions.create(
                session,
                {"name": "4.7"},
                upload=Upload(b"", "application/java-archive"),
                scope=mod_id,
            )

        assert await repositories.versions.list(session, scope=mod_id) == []

    @pytest.mark.asyncio
    async def test_update_without_upload_keeps_file(self, session, repositories, mod):
        version = await repositories.versions.create(
            session, {"name": "4.7"}, upload=Upload(b"jar", "application/zip"), scope=mod
        )
        md5 = version.file_md5

        await repositories.versions.update(session, version, {"name": "4.7.1"})

        assert version.name == "4.7.1"
        assert version.slug == "4.7"
        assert version.file_md5 == md5

    @pytest.mark.asyncio
    async def test_pack_logo(self, session, repositories, pack, storage_root):
        await repositories.packs.update(
            session, pack, {}, upload=Upload(b"\x89PNG", "image/png")
        )

        assert pack.logo.category == "logo"
        assert pack.logo.content_type == "image/png"
        assert (storage_root / "logo" / pack.logo_md5).exists()

    @pytest.mark.asyncio
    async def test_mods_do_not_take_uploads(self, session, repositories):
        with pytest.raises(ValidationError):
            await repositories.mods.create(
                session, {"name": "JEI"}, upload=Upload(b"x", "text/plain")
            )


class TestPackPointers:
    """Recommended and latest builds."""

    @pytest.mark.asyncio
    async def test_pointers_resolve_within_pack(self, session, repositories, pack):
        build = await repositories.builds.create(session, {"name": "b1"}, scope=pack)

        await repositories.packs.update(
            session, pack, {"recommended": "b1", "latest": build.id}
        )

        assert pack.recommended_id == build.id
        assert pack.latest_id == build.id

    @pytest.mark.asyncio
    async def test_foreign_build_is_rejected(self, session, repositories, pack):
        pack_id = pack.id
        other = await repositories.packs.create(session, {"name": "Magic Pack"})
        foreign = await repositories.builds.create(session, {"name": "b9"}, scope=other)

        with pytest.raises(ValidationError):
            await repositories.packs.update(session, pack, {"latest": foreign.id})

        reloaded = await repositories.packs.get(session, pack_id)
        assert reloaded.latest_id is None

    @pytest.mark.asyncio
    async def test_clear_pointer(self, session, repositories, pack):
        build = await repositories.builds.create(session, {"name": "b1"}, scope=pack)
        await repositories.packs.update(session, pack, {"recommended": build.id})

        await repositories.packs.update(session, pack, {"recommended": None})

        assert pack.recommended_id is None


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, session, repositories, mod):
        mod_id = mod.id
        await repositories.mods.delete(session, mod)

        with pytest.raises(NotFoundError):
            await repositories.mods.get(session, mod_id)


class TestSync:
    """Upstream release synchronization."""

    @pytest.mark.asyncio
    async def test_sync_is_idempotent(self, session, repositories):
        record = MinecraftRecord(name="1.12.2", type=ReleaseType.RELEASE)

        first, changed = await repositories.minecrafts.sync(session, record)
        assert changed
        assert first.slug == "1.12.2"

        second, changed = await repositories.minecrafts.sync(session, record)
        assert not changed
        assert second.id == first.id
        assert len(await repositories.minecrafts.list(session)) == 1

    @pytest.mark.asyncio
    async def test_sync_updates_mutable_fields(self, session, repositories):
        await repositories.forges.sync(
            session, ForgeRecord(name="10.13.4.1614", minecraft="1.7.2")
        )

        forge, changed = await repositories.forges.sync(
            session, ForgeRecord(name="10.13.4.1614", minecraft="1.7.10")
        )

        assert changed
        assert forge.minecraft == "1.7.10"

    @pytest.mark.asyncio
    async def test_sync_requires_name(self, session, repositories):
        with pytest.raises(ValidationError):
            await repositories.minecrafts.sync(session, MinecraftRecord(name=""))
