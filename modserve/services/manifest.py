"""
清单合成

沿关联遍历 整合包 → 构建 → 模组版本 → 文件，生成启动器读取的清单文档。
每次请求都按当前关联状态重新生成，不做缓存。
"""

from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from modserve.exceptions import PartialDataError
from modserve.models import BuildManifest, ModEntry, PackManifest
from modserve.storage import Artifact
from modserve.store.models import Build, Forge, Minecraft, Mod, Pack, Version
from modserve.store.relations import build_versions
from modserve.store.repository import Repositories


class ManifestSynthesizer:
    """清单合成器"""

    def __init__(self, repositories: Repositories, public_url: str):
        self.repositories = repositories
        self.public_url = public_url.rstrip("/")

    def artifact_url(self, artifact: Artifact) -> str:
        """文件的下载地址，路径中包含 md5"""
        return f"{self.public_url}/storage/{artifact.relative_path}"

    async def all_manifests(self, session: AsyncSession) -> Dict[str, Any]:
        """所有公开整合包的清单"""
        modpacks = {}
        for pack in await self.repositories.packs.list(session):
            if pack.hidden or pack.private:
                continue
            modpacks[pack.slug] = (await self.pack_manifest(session, pack)).to_dict()

        return {"modpacks": modpacks, "mirror_url": f"{self.public_url}/storage/"}

    async def pack_manifest(self, session: AsyncSession, pack: Any) -> PackManifest:
        """
        整合包清单

        构建只列出名称，不展开其中的模组版本。

        Args:
            pack: Pack 实体，或其 ID / slug

        Returns:
            PackManifest
        """
        pack = await self._resolve_pack(session, pack)
        builds = await self.repositories.builds.list(session, scope=pack)

        logo = pack.logo
        return PackManifest(
            name=pack.slug,
            display_name=pack.name,
            url=pack.website,
            logo=self.artifact_url(logo) if logo else None,
            logo_md5=logo.md5 if logo else None,
            recommended=await self._pointer(session, pack, pack.recommended_id),
            latest=await self._pointer(session, pack, pack.latest_id),
            builds=[
                build.slug for build in builds if build.published and not build.private
            ],
        )

    async def build_manifest(
        self, session: AsyncSession, pack: Any, build: Any
    ) -> BuildManifest:
        """
        构建清单

        Raises:
            NotFoundError: 整合包不存在，或构建不属于该整合包
        """
        pack = await self._resolve_pack(session, pack)
        if isinstance(build, Build) and build.pack_id == pack.id:
            record = build
        else:
            ref = build.slug if isinstance(build, Build) else build
            record = await self.repositories.builds.get(session, ref, scope=pack)

        minecraft = (
            await session.get(Minecraft, record.minecraft_id)
            if record.minecraft_id
            else None
        )
        forge = await session.get(Forge, record.forge_id) if record.forge_id else None

        manifest = BuildManifest(
            minecraft=minecraft.name if minecraft else None,
            forge=forge.name if forge else None,
            java=record.min_java,
            memory=record.min_memory,
        )

        for version in await build_versions.list_by_a(session, record):
            entry = await self._mod_entry(session, version)
            if entry is not None:
                manifest.mods.append(entry)

        return manifest

    async def _mod_entry(
        self, session: AsyncSession, version: Version
    ) -> Optional[ModEntry]:
        mod = await session.get(Mod, version.mod_id)
        if mod is None:
            logger.warning(f"版本 {version.id} 的模组 {version.mod_id} 不存在，已跳过")
            return None

        entry = ModEntry(name=mod.slug, version=version.name)
        try:
            artifact = self._file(version)
        except PartialDataError as e:
            logger.warning(f"{e.message}: {mod.slug} {version.name}")
            return entry

        entry.md5 = artifact.md5
        entry.url = self.artifact_url(artifact)
        return entry

    @staticmethod
    def _file(version: Version) -> Artifact:
        artifact = version.file
        if artifact is None:
            raise PartialDataError(
                "版本没有文件", context={"version": version.id, "field": "url"}
            )
        return artifact

    async def _resolve_pack(self, session: AsyncSession, pack: Any) -> Pack:
        if isinstance(pack, Pack):
            return pack
        return await self.repositories.packs.get(session, pack)

    @staticmethod
    async def _pointer(
        session: AsyncSession, pack: Pack, build_id: Optional[int]
    ) -> Optional[str]:
        if build_id is None:
            return None
        build = await session.get(Build, build_id)
        # 构建被删除或不属于本包时视为未设置
        if build is None or build.pack_id != pack.id:
            return None
        return build.slug
