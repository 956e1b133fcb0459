"""
关联表

所有多对多关系共用同一套 link / unlink / exists / list 协议：
已存在的关联不能重复建立，不存在的关联不能删除。
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Type, Union

from loguru import logger
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from modserve.exceptions import ConflictError, NotFoundError

EntityRef = Union[int, Any]


def _id(entity: EntityRef) -> int:
    """取实体主键，允许直接传入整数"""
    return entity if isinstance(entity, int) else entity.id


class Association(ABC):
    """
    A ↔ B 关联的统一接口

    子类只需实现存在性检查与底层写入，冲突与缺失的处理在这里统一完成。
    """

    has_perm: bool = False

    def __init__(
        self,
        name: str,
        a_model: Type,
        b_model: Type,
        a_label: str,
        b_label: str,
    ):
        self.name = name
        self.a_model = a_model
        self.b_model = b_model
        self.a_label = a_label
        self.b_label = b_label

    def _context(self, a: EntityRef, b: EntityRef) -> dict:
        return {"relation": self.name, "a": _id(a), "b": _id(b)}

    @abstractmethod
    async def exists(self, session: AsyncSession, a: EntityRef, b: EntityRef) -> bool:
        """关联是否存在"""
        pass

    @abstractmethod
    async def _insert(
        self, session: AsyncSession, a: EntityRef, b: EntityRef, perm: Optional[str]
    ) -> bool:
        """写入关联，返回 False 表示并发下已被占用"""
        pass

    @abstractmethod
    async def _remove(self, session: AsyncSession, a: EntityRef, b: EntityRef) -> bool:
        """删除关联，返回 False 表示关联已不存在"""
        pass

    @abstractmethod
    async def list_by_a(self, session: AsyncSession, a: EntityRef) -> List[Any]:
        """按名称升序列出 a 关联的所有 B"""
        pass

    @abstractmethod
    async def list_by_b(self, session: AsyncSession, b: EntityRef) -> List[Any]:
        """按名称升序列出 b 关联的所有 A"""
        pass

    async def link(
        self,
        session: AsyncSession,
        a: EntityRef,
        b: EntityRef,
        perm: Optional[str] = None,
    ) -> None:
        """
        建立关联

        Raises:
            ConflictError: 关联已存在（预检查或提交时唯一约束失败）
        """
        # 回滚会使实体过期，先取出主键
        a, b = _id(a), _id(b)
        context = self._context(a, b)

        if await self.exists(session, a, b):
            raise ConflictError(f"{self.b_label}已关联", context=context)

        try:
            inserted = await self._insert(session, a, b, perm)
            if not inserted:
                raise ConflictError(f"{self.b_label}已关联", context=context)
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise ConflictError(f"{self.b_label}已关联", context=context) from e
        except ConflictError:
            await session.rollback()
            raise

        logger.info(f"[关联] {self.name}: {a} -> {b}")

    async def unlink(self, session: AsyncSession, a: EntityRef, b: EntityRef) -> None:
        """
        删除关联

        Raises:
            NotFoundError: 关联不存在
        """
        a, b = _id(a), _id(b)
        context = self._context(a, b)

        if not await self.exists(session, a, b):
            raise NotFoundError(f"{self.b_label}未关联", context=context)

        if not await self._remove(session, a, b):
            await session.rollback()
            raise NotFoundError(f"{self.b_label}未关联", context=context)
        await session.commit()

        logger.info(f"[解除关联] {self.name}: {a} -x- {b}")


class LinkTable(Association):
    """以独立关联表存储的关系，每对一行"""

    def __init__(
        self,
        name: str,
        link_model: Type,
        a_model: Type,
        a_column: str,
        b_model: Type,
        b_column: str,
        a_label: str,
        b_label: str,
        has_perm: bool = False,
    ):
        super().__init__(name, a_model, b_model, a_label, b_label)
        self.link_model = link_model
        self.a_column = getattr(link_model, a_column)
        self.b_column = getattr(link_model, b_column)
        self._a_key = a_column
        self._b_key = b_column
        self.has_perm = has_perm

    def _match(self, a: EntityRef, b: EntityRef):
        return (self.a_column == _id(a), self.b_column == _id(b))

    async def exists(self, session: AsyncSession, a: EntityRef, b: EntityRef) -> bool:
        count = await session.scalar(
            select(func.count()).select_from(self.link_model).where(*self._match(a, b))
        )
        return bool(count)

    async def _insert(
        self, session: AsyncSession, a: EntityRef, b: EntityRef, perm: Optional[str]
    ) -> bool:
        values = {self._a_key: _id(a), self._b_key: _id(b)}
        if self.has_perm:
            values["perm"] = perm
        # 直接执行 INSERT，重复的行由复合主键拒绝
        await session.execute(insert(self.link_model).values(**values))
        return True

    async def _remove(self, session: AsyncSession, a: EntityRef, b: EntityRef) -> bool:
        result = await session.execute(
            delete(self.link_model)
            .where(*self._match(a, b))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def perm(
        self, session: AsyncSession, a: EntityRef, b: EntityRef
    ) -> Optional[str]:
        """读取关联携带的权限"""
        if not self.has_perm:
            return None
        return await session.scalar(
            select(self.link_model.perm).where(*self._match(a, b))
        )

    async def list_by_a(self, session: AsyncSession, a: EntityRef) -> List[Any]:
        result = await session.scalars(
            select(self.b_model)
            .join(self.link_model, self.b_column == self.b_model.id)
            .where(self.a_column == _id(a))
            .order_by(self.b_model.name.asc(), self.b_model.id.asc())
        )
        return list(result.all())

    async def list_by_b(self, session: AsyncSession, b: EntityRef) -> List[Any]:
        result = await session.scalars(
            select(self.a_model)
            .join(self.link_model, self.a_column == self.a_model.id)
            .where(self.b_column == _id(b))
            .order_by(self.a_model.name.asc(), self.a_model.id.asc())
        )
        return list(result.all())


class ReferenceLink(Association):
    """
    以 B 上的可空外键存储的关系

    用于构建与 Minecraft / Forge 的关联：每个构建最多指向一个版本。
    """

    def __init__(
        self,
        name: str,
        a_model: Type,
        b_model: Type,
        column: str,
        a_label: str,
        b_label: str,
    ):
        super().__init__(name, a_model, b_model, a_label, b_label)
        self.column = getattr(b_model, column)
        self._key = column

    async def exists(self, session: AsyncSession, a: EntityRef, b: EntityRef) -> bool:
        count = await session.scalar(
            select(func.count())
            .select_from(self.b_model)
            .where(self.b_model.id == _id(b), self.column == _id(a))
        )
        return bool(count)

    async def _insert(
        self, session: AsyncSession, a: EntityRef, b: EntityRef, perm: Optional[str]
    ) -> bool:
        # 只有尚未指向任何版本的构建才能建立关联
        result = await session.execute(
            update(self.b_model)
            .where(self.b_model.id == _id(b), self.column.is_(None))
            .values({self._key: _id(a)})
        )
        return result.rowcount > 0

    async def _remove(self, session: AsyncSession, a: EntityRef, b: EntityRef) -> bool:
        result = await session.execute(
            update(self.b_model)
            .where(self.b_model.id == _id(b), self.column == _id(a))
            .values({self._key: None})
        )
        return result.rowcount > 0

    async def list_by_a(self, session: AsyncSession, a: EntityRef) -> List[Any]:
        result = await session.scalars(
            select(self.b_model)
            .where(self.column == _id(a))
            .order_by(self.b_model.name.asc(), self.b_model.id.asc())
        )
        return list(result.all())

    async def list_by_b(self, session: AsyncSession, b: EntityRef) -> List[Any]:
        result = await session.scalars(
            select(self.a_model)
            .join(self.b_model, self.column == self.a_model.id)
            .where(self.b_model.id == _id(b))
            .order_by(self.a_model.name.asc(), self.a_model.id.asc())
        )
        return list(result.all())
