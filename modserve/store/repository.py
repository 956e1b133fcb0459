"""
实体仓库

每种实体的增删改查。带文件的实体先写入存储，成功后才提交数据库行。
删除不会级联清理关联，调用方需先解除关联。
"""

from typing import Any, Dict, List, Optional, Tuple, Type

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from modserve.exceptions import (
    ConflictError,
    ModServeError,
    NotFoundError,
    ValidationError,
)
from modserve.models import ForgeRecord, MinecraftRecord
from modserve.storage import FILE, LOGO, Artifact, ArtifactStore, Upload
from modserve.store.models import (
    Build,
    Client,
    Forge,
    Minecraft,
    Mod,
    Pack,
    Team,
    User,
    Version,
)
from modserve.utils import generated_slug, parse_id, slugify


class Repository:
    """通用实体仓库"""

    model: Type = None
    label: str = "实体"
    # 可写字段
    fields: Tuple[str, ...] = ()
    bool_fields: Tuple[str, ...] = ()
    # 所属父实体
    parent_model: Optional[Type] = None
    scope_column: Optional[str] = None

    def __init__(self, artifacts: Optional[ArtifactStore] = None):
        self.artifacts = artifacts

    def _scoped(self, stmt, scope: Any):
        if self.scope_column is None or scope is None:
            return stmt
        column = getattr(self.model, self.scope_column)
        return stmt.where(column == _id(scope))

    async def list(self, session: AsyncSession, scope: Any = None) -> List[Any]:
        """按名称升序列出"""
        stmt = self._scoped(select(self.model), scope).order_by(
            self.model.name.asc(), self.model.id.asc()
        )
        result = await session.scalars(stmt)
        return list(result.all())

    async def get(
        self, session: AsyncSession, id_or_slug: Any, scope: Any = None
    ) -> Any:
        """
        按数字 ID 或 slug 查找

        先尝试数字 ID，再尝试 slug；限定父实体时不会返回其他父实体下的记录。
        """
        ident = parse_id(id_or_slug)
        if ident is not None:
            record = await session.scalar(
                self._scoped(select(self.model).where(self.model.id == ident), scope)
            )
            if record is not None:
                return record

        if isinstance(id_or_slug, str) and id_or_slug:
            record = await session.scalar(
                self._scoped(
                    select(self.model).where(self.model.slug == id_or_slug), scope
                )
            )
            if record is not None:
                return record

        raise NotFoundError(
            f"{self.label}不存在: {id_or_slug}",
            context={"entity": self.model.__tablename__, "id": str(id_or_slug)},
        )

    async def create(
        self,
        session: AsyncSession,
        fields: Dict[str, Any],
        upload: Optional[Upload] = None,
        scope: Any = None,
    ) -> Any:
        """创建实体"""
        entity = self.model()
        if self.scope_column is not None:
            await self._check_parent(session, scope)
            setattr(entity, self.scope_column, _id(scope))

        try:
            await self._apply(session, entity, fields, creating=True)
            await self._check_slug(session, entity)
            # 文件写入成功后才提交数据库行
            if upload is not None:
                await self._store_upload(entity, upload)
            session.add(entity)
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise ConflictError(
                f"{self.label}已存在: {entity.slug}", context={"slug": entity.slug}
            ) from e
        except ModServeError:
            await session.rollback()
            raise

        logger.info(f"[创建] {self.label} {entity.slug} (ID: {entity.id})")
        return entity

    async def update(
        self,
        session: AsyncSession,
        entity: Any,
        fields: Dict[str, Any],
        upload: Optional[Upload] = None,
    ) -> Any:
        """更新实体；未提供文件时保留原有文件引用"""
        try:
            await self._apply(session, entity, fields, creating=False)
            await self._check_slug(session, entity)
            if upload is not None:
                await self._store_upload(entity, upload)
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise ConflictError(f"{self.label}的 slug 冲突") from e
        except ModServeError:
            await session.rollback()
            raise

        logger.info(f"[更新] {self.label} {entity.slug} (ID: {entity.id})")
        return entity

    async def delete(self, session: AsyncSession, entity: Any) -> None:
        """删除实体（不级联删除关联）"""
        ident, slug = entity.id, entity.slug
        try:
            await session.delete(entity)
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise ConflictError(
                f"{self.label}仍被引用，请先解除关联", context={"id": ident}
            ) from e

        logger.info(f"[删除] {self.label} {slug} (ID: {ident})")

    async def _check_parent(self, session: AsyncSession, scope: Any) -> None:
        if scope is None or await session.get(self.parent_model, _id(scope)) is None:
            raise ValidationError(
                f"{self.label}的所属实体不存在", context={"parent": scope and _id(scope)}
            )

    async def _apply(
        self,
        session: AsyncSession,
        entity: Any,
        fields: Dict[str, Any],
        creating: bool,
    ) -> None:
        for key in self.fields:
            if key not in fields:
                continue
            value = fields[key]
            if key in self.bool_fields and not isinstance(value, bool):
                raise ValidationError(f"字段 {key} 必须是布尔值", context={"field": key})
            if key not in self.bool_fields and value is not None and not isinstance(
                value, str
            ):
                value = str(value)
            setattr(entity, key, value)

        if "name" in fields or creating:
            name = fields.get("name", entity.name)
            if not isinstance(name, str) or not name.strip():
                raise ValidationError(
                    f"{self.label}名称不能为空", context={"field": "name"}
                )
            entity.name = name.strip()

        if fields.get("slug"):
            entity.slug = slugify(fields["slug"])
            if not entity.slug:
                raise ValidationError(
                    f"无效的 slug: {fields['slug']}", context={"field": "slug"}
                )
        elif creating or not entity.slug:
            entity.slug = slugify(entity.name) or generated_slug(
                self.model.__tablename__.rstrip("s")
            )

    async def _check_slug(self, session: AsyncSession, entity: Any) -> None:
        stmt = select(self.model.id).where(self.model.slug == entity.slug)
        if self.scope_column is not None:
            stmt = self._scoped(stmt, getattr(entity, self.scope_column))
        if entity.id is not None:
            stmt = stmt.where(self.model.id != entity.id)

        if await session.scalar(stmt) is not None:
            raise ConflictError(
                f"{self.label}已存在: {entity.slug}", context={"slug": entity.slug}
            )

    async def _store_upload(self, entity: Any, upload: Upload) -> None:
        raise ValidationError(f"{self.label}不支持上传文件")


class BuildRepository(Repository):
    model = Build
    label = "构建"
    fields = ("name", "min_java", "min_memory", "published", "private")
    bool_fields = ("published", "private")
    parent_model = Pack
    scope_column = "pack_id"

    def __init__(self, artifacts: Optional[ArtifactStore] = None):
        super().__init__(artifacts)
        self.minecrafts = MinecraftRepository()
        self.forges = ForgeRepository()

    async def _apply(self, session, entity, fields, creating):
        await super()._apply(session, entity, fields, creating)

        if "minecraft" in fields:
            entity.minecraft_id = await self._resolve(
                session, self.minecrafts, fields["minecraft"]
            )
        if "forge" in fields:
            entity.forge_id = await self._resolve(session, self.forges, fields["forge"])

    @staticmethod
    async def _resolve(session, repository, value) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            return (await repository.get(session, value)).id
        except NotFoundError as e:
            raise ValidationError(e.message, context=e.context) from e


class PackRepository(Repository):
    model = Pack
    label = "整合包"
    fields = ("name", "website", "hidden", "private")
    bool_fields = ("hidden", "private")

    def __init__(self, artifacts: Optional[ArtifactStore] = None):
        super().__init__(artifacts)
        self.builds = BuildRepository()

    async def _apply(self, session, entity, fields, creating):
        await super()._apply(session, entity, fields, creating)

        for key in ("recommended", "latest"):
            if key not in fields:
                continue
            value = fields[key]
            if value is None or value == "":
                setattr(entity, f"{key}_id", None)
                continue
            if entity.id is None:
                raise ValidationError(
                    f"新建整合包不能指定 {key} 构建", context={"field": key}
                )
            try:
                build = await self.builds.get(session, value, scope=entity.id)
            except NotFoundError as e:
                raise ValidationError(
                    f"{key} 构建不属于该整合包: {value}", context={"field": key}
                ) from e
            setattr(entity, f"{key}_id", build.id)

    async def _store_upload(self, entity, upload):
        if self.artifacts is None:
            raise ValidationError("未配置文件存储")
        artifact = await self.artifacts.put(upload.content, upload.media_type, LOGO)
        entity.logo_md5 = artifact.md5
        entity.logo_content_type = artifact.content_type


class ModRepository(Repository):
    model = Mod
    label = "模组"
    fields = ("name", "description", "author", "website", "donate")


class VersionRepository(Repository):
    model = Version
    label = "版本"
    fields = ("name",)
    parent_model = Mod
    scope_column = "mod_id"

    async def _store_upload(self, entity, upload):
        if self.artifacts is None:
            raise ValidationError("未配置文件存储")
        artifact = await self.artifacts.put(upload.content, upload.media_type, FILE)
        entity.file_md5 = artifact.md5
        entity.file_content_type = artifact.content_type


class ReleaseRepository(Repository):
    """上游同步的版本（Minecraft / Forge）"""

    def _sync_values(self, record) -> Dict[str, Any]:
        raise NotImplementedError

    async def sync(self, session: AsyncSession, record) -> Tuple[Any, bool]:
        """
        同步一条上游记录

        不存在则创建，存在则更新可变字段；相同输入再次同步不会产生写入。

        Returns:
            tuple: (实体, 是否发生变化)
        """
        if not record.name:
            raise ValidationError(f"{self.label}名称不能为空")

        values = self._sync_values(record)
        entity = await session.scalar(
            select(self.model).where(self.model.name == record.name)
        )

        if entity is None:
            slug = slugify(record.name) or generated_slug(
                self.model.__tablename__.rstrip("s")
            )
            entity = self.model(name=record.name, slug=slug, **values)
            session.add(entity)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError(
                    f"{self.label}已存在: {entity.slug}", context={"slug": entity.slug}
                ) from e
            logger.debug(f"[同步] 新增 {self.label} {record.name}")
            return entity, True

        changed = {
            key: value for key, value in values.items() if getattr(entity, key) != value
        }
        if not changed:
            return entity, False

        for key, value in changed.items():
            setattr(entity, key, value)
        await session.commit()
        logger.debug(f"[同步] 更新 {self.label} {record.name}: {list(changed)}")
        return entity, True


class MinecraftRepository(ReleaseRepository):
    model = Minecraft
    label = "Minecraft 版本"
    fields = ("name", "type")

    def _sync_values(self, record: MinecraftRecord) -> Dict[str, Any]:
        return {"type": record.type.value}


class ForgeRepository(ReleaseRepository):
    model = Forge
    label = "Forge 版本"
    fields = ("name", "minecraft")

    def _sync_values(self, record: ForgeRecord) -> Dict[str, Any]:
        return {"minecraft": record.minecraft}


class UserRepository(Repository):
    model = User
    label = "用户"
    fields = ("name",)


class TeamRepository(Repository):
    model = Team
    label = "团队"
    fields = ("name",)


class ClientRepository(Repository):
    model = Client
    label = "客户端"
    fields = ("name", "value")


class Repositories:
    """所有实体仓库，共享同一个文件存储"""

    def __init__(self, artifacts: ArtifactStore):
        self.artifacts = artifacts
        self.packs = PackRepository(artifacts)
        self.builds = BuildRepository(artifacts)
        self.mods = ModRepository(artifacts)
        self.versions = VersionRepository(artifacts)
        self.minecrafts = MinecraftRepository(artifacts)
        self.forges = ForgeRepository(artifacts)
        self.users = UserRepository(artifacts)
        self.teams = TeamRepository(artifacts)
        self.clients = ClientRepository(artifacts)

    async def find_artifact(
        self, session: AsyncSession, category: str, md5: str
    ) -> Optional[Artifact]:
        """
        按哈希查找引用该文件的记录，取回上传时的内容类型

        Returns:
            Artifact，没有记录引用该文件时返回 None
        """
        if category == LOGO:
            model, md5_column, type_column = (
                Pack, Pack.logo_md5, Pack.logo_content_type
            )
        elif category == FILE:
            model, md5_column, type_column = (
                Version, Version.file_md5, Version.file_content_type
            )
        else:
            raise ValidationError(f"未知的文件类别: {category}")

        content_type = await session.scalar(
            select(type_column)
            .where(md5_column == md5)
            .order_by(model.id.asc())
            .limit(1)
        )
        if content_type is None:
            return None
        return Artifact(md5=md5, content_type=content_type, category=category)


def _id(entity: Any) -> int:
    return entity if isinstance(entity, int) else entity.id
